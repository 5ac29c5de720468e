"""Markdown knowledge base backing the server tools and the system prompt."""

from pathlib import Path

from portfolio_agent.shared.logging import get_logger

logger = get_logger(__name__)


class KnowledgeBase:
    """Reads the site owner's knowledge files from a directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def read(self, filename: str) -> str:
        """Return the file's text, or an empty string if it cannot be read."""
        path = self.directory / filename
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("knowledge_read_failed", filename=filename, error=str(e))
            return ""
