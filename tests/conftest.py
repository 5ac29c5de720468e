"""
Pytest configuration and fixtures for portfolio agent tests.
"""
import os
import time
from collections.abc import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt

# Set required env vars before any settings are loaded
os.environ["APP_ENV"] = "development"
os.environ["SECRET_STORE"] = "env"
os.environ["JWT_SECRET"] = "test-jwt-secret-at-least-32-chars-long"
os.environ["ANTHROPIC_API_KEY"] = "sk-ant-test-key"
os.environ["TURNSTILE_ENABLED"] = "false"

from portfolio_agent.auth.issuer import TokenIssuer  # noqa: E402
from portfolio_agent.config import DEFAULT_KNOWLEDGE_DIR, get_settings  # noqa: E402
from portfolio_agent.domain.tools import KnowledgeBase, ToolRegistry, build_default_registry  # noqa: E402
from portfolio_agent.infrastructure.secrets.env import EnvSecretStore  # noqa: E402

TEST_JWT_SECRET = os.environ["JWT_SECRET"]


class FakeClock:
    """Settable replacement for time.time()."""

    def __init__(self, now: float | None = None) -> None:
        self.now = int(time.time()) if now is None else now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def clear_settings_cache() -> None:
    get_settings.cache_clear()


@pytest.fixture
def jwt_secret() -> str:
    return TEST_JWT_SECRET


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token_issuer(clock: FakeClock) -> TokenIssuer:
    return TokenIssuer(EnvSecretStore(TEST_JWT_SECRET), secret_id="", clock=clock)


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Build a signed token; ``expires_in`` may be negative for an expired one."""

    def _make(expires_in: int = 3600, secret: str = TEST_JWT_SECRET) -> str:
        now = int(time.time())
        claims = {"iss": "archil-io-v2", "sub": "app", "iat": now, "exp": now + expires_in}
        return jwt.encode(claims, secret, algorithm="HS256")

    return _make


@pytest.fixture
def knowledge() -> KnowledgeBase:
    return KnowledgeBase(DEFAULT_KNOWLEDGE_DIR)


@pytest.fixture
def registry(knowledge: KnowledgeBase) -> ToolRegistry:
    return build_default_registry(knowledge)


@pytest.fixture
def app(token_issuer: TokenIssuer, registry: ToolRegistry, knowledge: KnowledgeBase):
    """App with in-process collaborators; tests set app.state.completion_provider."""
    from portfolio_agent.api.ratelimit import limiter
    from portfolio_agent.main import create_app

    limiter.reset()
    application = create_app()
    application.state.token_issuer = token_issuer
    application.state.tool_registry = registry
    application.state.knowledge = knowledge
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the app (no network)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
