"""Fake completion provider and Anthropic-shaped stream events for tests."""

from types import SimpleNamespace
from typing import Any


def message_start(message_id: str = "msg_1", model: str = "claude-test") -> SimpleNamespace:
    return SimpleNamespace(
        type="message_start", message=SimpleNamespace(id=message_id, model=model)
    )


def text_block(index: int, *chunks: str) -> list[SimpleNamespace]:
    return [
        SimpleNamespace(
            type="content_block_start",
            index=index,
            content_block=SimpleNamespace(type="text", text=""),
        ),
        *[
            SimpleNamespace(
                type="content_block_delta",
                index=index,
                delta=SimpleNamespace(type="text_delta", text=chunk),
            )
            for chunk in chunks
        ],
        SimpleNamespace(type="content_block_stop", index=index),
    ]


def tool_use_block(index: int, tool_id: str, name: str, *json_chunks: str) -> list[SimpleNamespace]:
    return [
        SimpleNamespace(
            type="content_block_start",
            index=index,
            content_block=SimpleNamespace(type="tool_use", id=tool_id, name=name, input={}),
        ),
        *[
            SimpleNamespace(
                type="content_block_delta",
                index=index,
                delta=SimpleNamespace(type="input_json_delta", partial_json=chunk),
            )
            for chunk in json_chunks
        ],
        SimpleNamespace(type="content_block_stop", index=index),
    ]


def message_end(stop_reason: str = "end_turn") -> list[SimpleNamespace]:
    return [
        SimpleNamespace(type="message_delta", delta=SimpleNamespace(stop_reason=stop_reason)),
        SimpleNamespace(type="message_stop"),
    ]


def text_round(*chunks: str, message_id: str = "msg_1") -> list[SimpleNamespace]:
    """A whole provider response that only contains text."""
    return [message_start(message_id), *text_block(0, *chunks), *message_end("end_turn")]


def tool_round(
    tool_id: str, name: str, *json_chunks: str, message_id: str = "msg_1"
) -> list[SimpleNamespace]:
    """A whole provider response that requests a single tool."""
    return [
        message_start(message_id),
        *tool_use_block(0, tool_id, name, *json_chunks),
        *message_end("tool_use"),
    ]


class FakeProvider:
    """Replays scripted rounds; an exception in a script is raised at that point."""

    def __init__(self, rounds: list[Any]) -> None:
        self.rounds = list(rounds)
        self.calls: list[dict[str, Any]] = []
        self.closed_streams = 0

    async def stream(
        self,
        *,
        system: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ):
        self.calls.append({"system": system, "messages": list(messages), "tools": tools})
        script = self.rounds.pop(0)
        if isinstance(script, BaseException):
            raise script
        try:
            for event in script:
                if isinstance(event, BaseException):
                    raise event
                yield event
        finally:
            self.closed_streams += 1
