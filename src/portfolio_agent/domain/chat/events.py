"""Events emitted by the chat relay, in the order the client receives them."""

from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar


@dataclass(frozen=True)
class StreamEvent:
    """Base class; ``type`` is the SSE event name."""

    type: ClassVar[str] = "event"

    def payload(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MessageStart(StreamEvent):
    type: ClassVar[str] = "message_start"

    id: str
    model: str
    round: int = 1


@dataclass(frozen=True)
class ContentBlockStart(StreamEvent):
    type: ClassVar[str] = "content_block_start"

    index: int
    block_type: str = "text"

    def payload(self) -> dict[str, Any]:
        return {"type": self.block_type, "index": self.index}


@dataclass(frozen=True)
class TextDelta(StreamEvent):
    type: ClassVar[str] = "text_delta"

    text: str
    index: int = 0


@dataclass(frozen=True)
class ContentBlockStop(StreamEvent):
    type: ClassVar[str] = "content_block_stop"

    index: int


@dataclass(frozen=True)
class ToolUseStart(StreamEvent):
    type: ClassVar[str] = "tool_use_start"

    id: str
    name: str
    index: int = 0


@dataclass(frozen=True)
class ToolUseDelta(StreamEvent):
    type: ClassVar[str] = "tool_use_delta"

    id: str
    partial_json: str


@dataclass(frozen=True)
class ToolUseStop(StreamEvent):
    type: ClassVar[str] = "tool_use_stop"

    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult(StreamEvent):
    type: ClassVar[str] = "tool_result"

    tool_use_id: str
    name: str
    result: str
    is_error: bool = False
    error: str | None = None


@dataclass(frozen=True)
class MessageStop(StreamEvent):
    type: ClassVar[str] = "message_stop"

    stop_reason: str | None = None
    # Client tools the browser must run before continuing the conversation
    pending_client_tools: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class ErrorEvent(StreamEvent):
    type: ClassVar[str] = "error"

    kind: str
    message: str


@dataclass(frozen=True)
class Done(StreamEvent):
    type: ClassVar[str] = "done"
