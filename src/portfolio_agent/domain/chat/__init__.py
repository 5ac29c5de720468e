"""Chat relay domain."""

from portfolio_agent.domain.chat.provider import AnthropicProvider, CompletionProvider
from portfolio_agent.domain.chat.relay import ChatRelay, RelayState
from portfolio_agent.domain.chat.system_prompt import build_system_prompt

__all__ = [
    "AnthropicProvider",
    "ChatRelay",
    "CompletionProvider",
    "RelayState",
    "build_system_prompt",
]
