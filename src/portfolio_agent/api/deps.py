"""FastAPI dependencies for API routes.

Long-lived collaborators (token issuer, tool registry, completion provider,
CAPTCHA verifier) are built once and kept on ``app.state``. Tests may put
their own instances there before sending requests.
"""

from typing import Annotated

from fastapi import Depends, Request

from portfolio_agent.auth.issuer import TokenIssuer
from portfolio_agent.config import Settings, get_settings
from portfolio_agent.domain.chat.provider import AnthropicProvider, CompletionProvider
from portfolio_agent.domain.chat.system_prompt import build_system_prompt
from portfolio_agent.domain.tools import KnowledgeBase, ToolRegistry, build_default_registry
from portfolio_agent.infrastructure.captcha import TurnstileVerifier
from portfolio_agent.infrastructure.secrets import build_secret_store
from portfolio_agent.shared.exceptions import ConfigurationError


def build_token_issuer(settings: Settings) -> TokenIssuer:
    return TokenIssuer(
        secret_store=build_secret_store(settings),
        secret_id=settings.jwt_secret_arn,
        issuer=settings.jwt_issuer,
        subject=settings.jwt_subject,
        expiry_hours=settings.jwt_expiry_hours,
    )


def build_provider(settings: Settings) -> CompletionProvider:
    if not settings.anthropic_api_key:
        raise ConfigurationError("ANTHROPIC_API_KEY is not configured")
    return AnthropicProvider.from_api_key(
        api_key=settings.anthropic_api_key,
        model=settings.anthropic_model,
        max_tokens=settings.anthropic_max_tokens,
    )


def get_knowledge_base(request: Request) -> KnowledgeBase:
    knowledge = getattr(request.app.state, "knowledge", None)
    if knowledge is None:
        knowledge = KnowledgeBase(get_settings().knowledge_dir)
        request.app.state.knowledge = knowledge
    return knowledge


def get_token_issuer(request: Request) -> TokenIssuer:
    """Get the process-wide token issuer (per FastAPI app)."""
    issuer = getattr(request.app.state, "token_issuer", None)
    if issuer is None:
        issuer = build_token_issuer(get_settings())
        request.app.state.token_issuer = issuer
    return issuer


def get_tool_registry(
    request: Request,
    knowledge: Annotated[KnowledgeBase, Depends(get_knowledge_base)],
) -> ToolRegistry:
    registry = getattr(request.app.state, "tool_registry", None)
    if registry is None:
        registry = build_default_registry(knowledge)
        request.app.state.tool_registry = registry
    return registry


def get_completion_provider(request: Request) -> CompletionProvider:
    """Get the completion provider; raises ConfigurationError without an API key."""
    provider = getattr(request.app.state, "completion_provider", None)
    if provider is None:
        provider = build_provider(get_settings())
        request.app.state.completion_provider = provider
    return provider


def get_system_prompt(
    knowledge: Annotated[KnowledgeBase, Depends(get_knowledge_base)],
) -> str:
    return build_system_prompt(get_settings().owner_name, knowledge)


def get_turnstile_verifier(request: Request) -> TurnstileVerifier:
    verifier = getattr(request.app.state, "turnstile_verifier", None)
    if verifier is None:
        verifier = TurnstileVerifier(get_settings().turnstile_secret_key)
        request.app.state.turnstile_verifier = verifier
    return verifier


TokenIssuerDep = Annotated[TokenIssuer, Depends(get_token_issuer)]
ToolRegistryDep = Annotated[ToolRegistry, Depends(get_tool_registry)]
SystemPromptDep = Annotated[str, Depends(get_system_prompt)]
TurnstileDep = Annotated[TurnstileVerifier, Depends(get_turnstile_verifier)]
