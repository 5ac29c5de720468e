"""Health check endpoint."""

from fastapi import APIRouter
from pydantic import BaseModel

from portfolio_agent.api.deps import ToolRegistryDep
from portfolio_agent.config import get_settings

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    provider_configured: bool
    tools: int


@router.get("/health", response_model=HealthResponse)
async def health_check(registry: ToolRegistryDep) -> HealthResponse:
    """Basic health check - always returns OK if service is running."""
    from portfolio_agent import __version__

    return HealthResponse(
        status="healthy",
        version=__version__,
        provider_configured=bool(get_settings().anthropic_api_key),
        tools=len(registry),
    )
