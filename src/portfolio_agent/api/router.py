"""Main API router aggregating all routes."""

from fastapi import APIRouter

from portfolio_agent.api.routes import agent, health, token

# Create main router
api_router = APIRouter()

# Include route modules
api_router.include_router(health.router)
api_router.include_router(token.router)
api_router.include_router(agent.router)
