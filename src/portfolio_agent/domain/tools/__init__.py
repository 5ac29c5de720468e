"""Tools the assistant can call."""

from portfolio_agent.domain.tools.builtin import CLIENT_TOOL_NAMES, build_default_registry
from portfolio_agent.domain.tools.knowledge import KnowledgeBase
from portfolio_agent.domain.tools.registry import ToolDeclaration, ToolExecution, ToolRegistry

__all__ = [
    "CLIENT_TOOL_NAMES",
    "KnowledgeBase",
    "ToolDeclaration",
    "ToolExecution",
    "ToolRegistry",
    "build_default_registry",
]
