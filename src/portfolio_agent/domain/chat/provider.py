"""Completion provider interface and the Anthropic implementation.

The relay is written against the Anthropic raw stream event shape
(``message_start``, ``content_block_start``/``delta``/``stop`` per index,
``message_delta``, ``message_stop``); any provider that yields objects of that
shape can back it.
"""

from collections.abc import AsyncIterator
from typing import Any, Protocol, cast

import anthropic

from portfolio_agent.shared.logging import get_logger

logger = get_logger(__name__)


class CompletionProvider(Protocol):
    """Streams one model response for a conversation."""

    def stream(
        self,
        *,
        system: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> AsyncIterator[Any]: ...


class AnthropicProvider:
    """Streams raw message events from the Anthropic Messages API.

    The SDK client is built with ``max_retries=0``: retry policy belongs to
    the caller, not to the relay.
    """

    def __init__(
        self,
        client: anthropic.AsyncAnthropic,
        model: str,
        max_tokens: int,
    ) -> None:
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    @classmethod
    def from_api_key(cls, api_key: str, model: str, max_tokens: int) -> "AnthropicProvider":
        client = anthropic.AsyncAnthropic(api_key=api_key, max_retries=0)
        return cls(client=client, model=model, max_tokens=max_tokens)

    async def stream(
        self,
        *,
        system: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> AsyncIterator[Any]:
        logger.debug("provider_stream_opened", model=self.model, messages=len(messages))
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=system,
            messages=cast(Any, messages),
            tools=cast(Any, tools),
            stream=True,
        )
        async with response:
            async for event in response:
                yield event

    async def close(self) -> None:
        await self.client.close()
