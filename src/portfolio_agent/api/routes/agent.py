"""Streaming agent endpoint.

``POST /api/agent`` takes the conversation so far and streams the assistant's
reply as server-sent events. Everything that can go wrong before the first
event (auth, bad body, CAPTCHA, missing key, provider refusing the first
call) is answered with a JSON error instead of a stream.
"""

from collections.abc import AsyncIterator
from typing import Any, Literal
from uuid import uuid4

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field, ValidationError

from portfolio_agent.api.deps import (
    SystemPromptDep,
    ToolRegistryDep,
    TurnstileDep,
    get_completion_provider,
)
from portfolio_agent.api.middleware.auth import TokenClaims
from portfolio_agent.api.ratelimit import RATE_LIMIT_AGENT, limiter
from portfolio_agent.api.streaming import SSE_HEADERS, SSE_MEDIA_TYPE, StreamFramer
from portfolio_agent.config import get_settings
from portfolio_agent.domain.chat import ChatRelay, CompletionProvider
from portfolio_agent.domain.chat.events import ErrorEvent, StreamEvent
from portfolio_agent.infrastructure.captcha import TurnstileVerifier, extract_client_ip
from portfolio_agent.shared.exceptions import BadRequestError, CaptchaError
from portfolio_agent.shared.logging import bind_request_context, get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Agent"])


# ----- Request Models -----


class MessageMetadata(BaseModel):
    timestamp: str | None = None
    captcha_token: str | None = Field(None, alias="captchaToken")


class MessageInput(BaseModel):
    """A single message in the conversation."""

    role: Literal["user", "assistant"]
    content: str | list[dict[str, Any]]
    metadata: MessageMetadata | None = None

    def to_provider(self) -> dict[str, Any]:
        # metadata never goes to the model
        return {"role": self.role, "content": self.content}


class AgentRequest(BaseModel):
    messages: list[MessageInput] = Field(..., min_length=1)


# ----- Helpers -----


async def _parse_request(request: Request) -> AgentRequest:
    try:
        body = await request.json()
    except ValueError:
        raise BadRequestError("messages array is required") from None

    if not isinstance(body, dict) or not isinstance(body.get("messages"), list):
        raise BadRequestError("messages array is required")

    try:
        return AgentRequest.model_validate(body)
    except ValidationError as e:
        reason = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise BadRequestError("Invalid messages", details={"reason": reason}) from None


async def _check_captcha(
    request: Request, agent_request: AgentRequest, verifier: TurnstileVerifier
) -> None:
    """Verify the Turnstile token sent with the opening message.

    Only the first user turn of a conversation carries a token (Turnstile
    tokens are single-use); follow-up turns rely on the JWT alone.
    """
    user_messages = [m for m in agent_request.messages if m.role == "user"]
    if len(user_messages) != 1:
        return

    metadata = user_messages[0].metadata
    token = metadata.captcha_token if metadata else None
    result = await verifier.verify(token, remote_ip=extract_client_ip(request.headers))
    if not result.valid:
        raise CaptchaError("CAPTCHA verification failed", details={"reason": result.error})


async def _prepend(first: StreamEvent, rest: AsyncIterator[StreamEvent]) -> AsyncIterator[StreamEvent]:
    try:
        yield first
        async for event in rest:
            yield event
    finally:
        await rest.aclose()  # type: ignore[attr-defined]


# ----- API Endpoints -----


@router.post("/agent", response_model=None)
@limiter.limit(RATE_LIMIT_AGENT)
async def agent(
    request: Request,
    claims: TokenClaims,
    registry: ToolRegistryDep,
    system_prompt: SystemPromptDep,
    turnstile: TurnstileDep,
) -> StreamingResponse | JSONResponse:
    """Stream the assistant's reply to ``messages`` as server-sent events.

    Events: message_start, content_block_start, text_delta, content_block_stop,
    tool_use_start, tool_use_delta, tool_use_stop, tool_result, message_stop,
    error, done.
    """
    settings = get_settings()
    request_id = request.headers.get("x-request-id") or uuid4().hex
    bind_request_context(request_id, sub=claims.get("sub"))

    agent_request = await _parse_request(request)

    if settings.turnstile_enabled:
        await _check_captcha(request, agent_request, turnstile)

    provider: CompletionProvider = get_completion_provider(request)
    relay = ChatRelay(
        provider=provider,
        registry=registry,
        system_prompt=system_prompt,
        max_rounds=settings.max_tool_rounds,
    )
    messages = [m.to_provider() for m in agent_request.messages]
    logger.info("agent_request", messages=len(messages))

    events = relay.run(messages)
    # The relay always yields at least one event
    first = await anext(events)

    if isinstance(first, ErrorEvent):
        # Nothing sent yet, so the failure can still be a plain HTTP error
        await events.aclose()  # type: ignore[attr-defined]
        return JSONResponse(
            status_code=500,
            content={"error": first.message, "details": first.kind},
        )

    framer = StreamFramer()
    return StreamingResponse(
        framer.frames(_prepend(first, events)),
        media_type=SSE_MEDIA_TYPE,
        headers={**SSE_HEADERS, "X-Request-ID": request_id},
    )
