"""Unit tests for the Anthropic completion provider."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from portfolio_agent.domain.chat.provider import AnthropicProvider


class _FakeStream:
    """Stands in for the SDK's AsyncStream."""

    def __init__(self, events):
        self.events = events
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for event in self.events:
            yield event


class TestAnthropicProvider:
    def test_client_built_without_retries(self):
        with patch("portfolio_agent.domain.chat.provider.anthropic.AsyncAnthropic") as mock_client:
            provider = AnthropicProvider.from_api_key("sk-ant-test", "claude-test", 512)

        mock_client.assert_called_once_with(api_key="sk-ant-test", max_retries=0)
        assert provider.model == "claude-test"
        assert provider.max_tokens == 512

    @pytest.mark.asyncio
    async def test_stream_forwards_raw_events(self):
        events = [SimpleNamespace(type="message_start"), SimpleNamespace(type="message_stop")]
        sdk_stream = _FakeStream(events)
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=sdk_stream)
        provider = AnthropicProvider(client=client, model="claude-test", max_tokens=256)
        tools = [{"name": "t", "description": "d", "input_schema": {"type": "object"}}]

        received = [
            event
            async for event in provider.stream(
                system="sys", messages=[{"role": "user", "content": "Hi"}], tools=tools
            )
        ]

        assert received == events
        assert sdk_stream.closed
        client.messages.create.assert_awaited_once_with(
            model="claude-test",
            max_tokens=256,
            system="sys",
            messages=[{"role": "user", "content": "Hi"}],
            tools=tools,
            stream=True,
        )
