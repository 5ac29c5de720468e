"""Streaming chat relay with a bounded tool-call loop.

One `ChatRelay.run()` call handles one request:

1. Call the provider with the system prompt, history and tool manifest
2. Forward text and tool-use events to the client as they arrive
3. When the model stops with server tool calls, execute them, append the
   assistant turn plus the tool results to the history, and go again
4. Stop when the model answers without tool calls, when it asks for a
   client tool, or when the round cap is hit

Provider failures are classified and reported as a single `ErrorEvent`.
Nothing here retries.
"""

import json
from collections.abc import AsyncIterator, Iterator
from contextlib import aclosing
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from portfolio_agent.domain.chat.errors import classify_provider_error
from portfolio_agent.domain.chat.events import (
    ContentBlockStart,
    ContentBlockStop,
    Done,
    ErrorEvent,
    MessageStart,
    MessageStop,
    StreamEvent,
    TextDelta,
    ToolResult,
    ToolUseDelta,
    ToolUseStart,
    ToolUseStop,
)
from portfolio_agent.domain.chat.provider import CompletionProvider
from portfolio_agent.domain.tools.registry import ToolRegistry
from portfolio_agent.observability.metrics import RELAY_ERRORS, RELAY_ROUNDS
from portfolio_agent.shared.logging import get_logger

logger = get_logger(__name__)

TOOL_ROUND_LIMIT = "tool_round_limit"


class RelayState(str, Enum):
    AWAITING_MODEL_RESPONSE = "awaiting_model_response"
    STREAMING_CONTENT = "streaming_content"
    TOOL_CALLS_PENDING = "tool_calls_pending"
    TURN_COMPLETE = "turn_complete"
    DONE = "done"
    FATAL_ERROR = "fatal_error"


@dataclass
class PendingToolCall:
    """A tool_use block whose input JSON is still arriving."""

    id: str
    name: str
    index: int
    input_json: str = ""
    input: dict[str, Any] = field(default_factory=dict)

    def parse_input(self) -> dict[str, Any]:
        """Parse the buffered JSON; anything unusable becomes ``{}``."""
        if not self.input_json:
            return {}
        try:
            parsed = json.loads(self.input_json)
        except json.JSONDecodeError:
            logger.warning("tool_input_unparseable", tool=self.name, tool_use_id=self.id)
            return {}
        return parsed if isinstance(parsed, dict) else {}


@dataclass
class _Round:
    """Per-round accumulation of what the model said."""

    number: int
    assistant_blocks: list[dict[str, Any]] = field(default_factory=list)
    text_blocks: dict[int, list[str]] = field(default_factory=dict)
    open_tool_calls: dict[int, PendingToolCall] = field(default_factory=dict)
    tool_calls: list[PendingToolCall] = field(default_factory=list)
    stop_reason: str | None = None


class ChatRelay:
    """Drives one conversation turn against the completion provider."""

    def __init__(
        self,
        provider: CompletionProvider,
        registry: ToolRegistry,
        system_prompt: str,
        max_rounds: int = 5,
    ) -> None:
        if max_rounds < 1:
            raise ValueError("max_rounds must be at least 1")
        self.provider = provider
        self.registry = registry
        self.system_prompt = system_prompt
        self.max_rounds = max_rounds
        self.state = RelayState.AWAITING_MODEL_RESPONSE
        self.rounds = 0

    async def run(self, messages: list[dict[str, Any]]) -> AsyncIterator[StreamEvent]:
        """Yield stream events until the model's turn is complete."""
        history = list(messages)
        manifest = self.registry.manifest()

        for number in range(1, self.max_rounds + 1):
            self.rounds = number
            self.state = RelayState.AWAITING_MODEL_RESPONSE
            RELAY_ROUNDS.inc()
            logger.info("relay_round_started", round=number, messages=len(history))

            current = _Round(number=number)
            try:
                async with aclosing(
                    self.provider.stream(
                        system=self.system_prompt,
                        messages=history,
                        tools=manifest,
                    )
                ) as provider_events:
                    async for provider_event in provider_events:
                        for event in self._translate(provider_event, current):
                            yield event
            except Exception as exc:
                error = classify_provider_error(exc)
                logger.error(
                    "provider_error",
                    round=number,
                    kind=error.kind.value,
                    error_class=type(exc).__name__,
                    error=str(exc),
                )
                self.state = RelayState.FATAL_ERROR
                RELAY_ERRORS.labels(kind=error.kind.value).inc()
                yield ErrorEvent(kind=error.kind.value, message=error.message)
                return

            if not current.tool_calls:
                self.state = RelayState.TURN_COMPLETE
                yield MessageStop(stop_reason=current.stop_reason)
                self.state = RelayState.DONE
                logger.info("relay_completed", rounds=number)
                yield Done()
                return

            self.state = RelayState.TOOL_CALLS_PENDING
            tool_results: list[dict[str, Any]] = []
            client_calls: list[PendingToolCall] = []

            # Sequential, in the order the model requested them
            for call in current.tool_calls:
                if self.registry.is_client_tool(call.name):
                    client_calls.append(call)
                    continue

                execution = await self.registry.execute(call.name, call.input)
                logger.info(
                    "tool_executed",
                    tool=call.name,
                    tool_use_id=call.id,
                    status=execution.status,
                )
                tool_results.append(
                    {
                        "type": "tool_result",
                        "tool_use_id": call.id,
                        "content": execution.content,
                        "is_error": execution.is_error,
                    }
                )
                yield ToolResult(
                    tool_use_id=call.id,
                    name=call.name,
                    result=execution.result,
                    is_error=execution.is_error,
                    error=execution.error,
                )

            if client_calls:
                # The browser runs these and sends the results back with the next request
                self.state = RelayState.TURN_COMPLETE
                yield MessageStop(
                    stop_reason="tool_use",
                    pending_client_tools=[
                        {"id": call.id, "name": call.name, "input": call.input}
                        for call in client_calls
                    ],
                )
                self.state = RelayState.DONE
                logger.info("relay_awaiting_client_tools", rounds=number, count=len(client_calls))
                yield Done()
                return

            history.append({"role": "assistant", "content": current.assistant_blocks})
            history.append({"role": "user", "content": tool_results})

        self.state = RelayState.FATAL_ERROR
        RELAY_ERRORS.labels(kind=TOOL_ROUND_LIMIT).inc()
        logger.warning("relay_round_limit_reached", rounds=self.rounds)
        yield ErrorEvent(
            kind=TOOL_ROUND_LIMIT,
            message=(
                f"Stopped after {self.max_rounds} rounds because the assistant kept "
                "requesting tools."
            ),
        )

    def _translate(self, event: Any, current: _Round) -> Iterator[StreamEvent]:
        """Map one provider event onto zero or more stream events."""
        event_type = getattr(event, "type", None)

        if event_type == "message_start":
            self.state = RelayState.STREAMING_CONTENT
            yield MessageStart(id=event.message.id, model=event.message.model, round=current.number)

        elif event_type == "content_block_start":
            block = event.content_block
            if block.type == "text":
                initial = getattr(block, "text", "") or ""
                current.text_blocks[event.index] = [initial]
                yield ContentBlockStart(index=event.index, block_type="text")
                if initial:
                    yield TextDelta(text=initial, index=event.index)
            elif block.type == "tool_use":
                call = PendingToolCall(id=block.id, name=block.name, index=event.index)
                current.open_tool_calls[event.index] = call
                yield ToolUseStart(id=call.id, name=call.name, index=event.index)

        elif event_type == "content_block_delta":
            delta = event.delta
            if delta.type == "text_delta":
                current.text_blocks.setdefault(event.index, []).append(delta.text)
                yield TextDelta(text=delta.text, index=event.index)
            elif delta.type == "input_json_delta":
                call = current.open_tool_calls.get(event.index)
                if call is not None:
                    call.input_json += delta.partial_json
                    yield ToolUseDelta(id=call.id, partial_json=delta.partial_json)

        elif event_type == "content_block_stop":
            call = current.open_tool_calls.pop(event.index, None)
            if call is not None:
                call.input = call.parse_input()
                current.tool_calls.append(call)
                current.assistant_blocks.append(
                    {"type": "tool_use", "id": call.id, "name": call.name, "input": call.input}
                )
                yield ToolUseStop(id=call.id, name=call.name, input=call.input)
            elif event.index in current.text_blocks:
                text = "".join(current.text_blocks.pop(event.index))
                # The API rejects empty text blocks in history
                if text:
                    current.assistant_blocks.append({"type": "text", "text": text})
                yield ContentBlockStop(index=event.index)

        elif event_type == "message_delta":
            current.stop_reason = getattr(event.delta, "stop_reason", None) or current.stop_reason
