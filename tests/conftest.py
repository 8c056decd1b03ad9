import os
from typing import AsyncGenerator

# Settings are read once and cached, so the test environment must be in place
# before anything under libs/ or services/ is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["ENVIRONMENT"] = "development"
os.environ["FAWATERAK_API_KEY"] = "test-api-key"
os.environ["FAWATERAK_PROVIDER_KEY"] = "test-provider-key"
os.environ["FAWATERAK_API_URL"] = "https://fawaterak.test/api/v2"
os.environ["APP_URL"] = "https://tutor.test"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from libs.common.config import get_settings  # noqa: E402

get_settings.cache_clear()

from libs.auth.dependencies import get_current_user  # noqa: E402
from libs.db.base import Base  # noqa: E402
from libs.db.session import get_async_db  # noqa: E402
from services.payments_service import models as _payment_models  # noqa: E402,F401
from services.payments_service.fawaterak_client import (  # noqa: E402
    FawaterakClient,
    get_fawaterak_client,
)
from services.wallet_service import models as _wallet_models  # noqa: E402,F401
from tests.factories import DEFAULT_USER_ID, UserFactory, make_auth_user  # noqa: E402

TEST_API_KEY = "test-api-key"
TEST_PROVIDER_KEY = "test-provider-key"
TEST_GATEWAY_URL = "https://fawaterak.test/api/v2"


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """
    Engine on a fresh database per test.

    A SQLite file (not ``:memory:``) so that separate sessions really run on
    separate connections and race on the same rows. Set TEST_DATABASE_URL to
    run against PostgreSQL instead.
    """
    db_url = os.environ.get("TEST_DATABASE_URL") or (
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    )
    engine = create_async_engine(db_url, future=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    """Sessions configured like ``libs.db.config.AsyncSessionLocal``."""
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def user(db_session):
    """The default authenticated user's row, with a zero balance."""
    row = UserFactory.create(id=DEFAULT_USER_ID)
    db_session.add(row)
    await db_session.commit()
    return row


class FakeFawaterak:
    """Stand-in for the Fawaterak API behind an ``httpx.MockTransport``.

    Tests set ``handler`` to a callable taking the ``httpx.Request``; every
    request is recorded in ``requests``.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.handler = lambda request: httpx.Response(
            200, json={"status": "success", "data": {}}
        )

    def respond(self, status_code: int = 200, json=None, text=None):
        if text is not None:
            self.handler = lambda request: httpx.Response(status_code, text=text)
        else:
            self.handler = lambda request: httpx.Response(status_code, json=json)

    def _dispatch(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self) -> FawaterakClient:
        return FawaterakClient(
            api_key=TEST_API_KEY,
            base_url=TEST_GATEWAY_URL,
            transport=httpx.MockTransport(self._dispatch),
        )


@pytest.fixture
def fawaterak() -> FakeFawaterak:
    return FakeFawaterak()


def _session_override(session_factory):
    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    return _get_db


@pytest_asyncio.fixture
async def payments_client(
    session_factory, fawaterak
) -> AsyncGenerator[AsyncClient, None]:
    """
    AsyncClient for the payments app: one DB session per request, the
    default user signed in, and the gateway replaced by ``fawaterak``.
    """
    from services.payments_service.app.main import app

    app.dependency_overrides[get_async_db] = _session_override(session_factory)
    app.dependency_overrides[get_current_user] = lambda: make_auth_user()
    app.dependency_overrides[get_fawaterak_client] = fawaterak.client

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def wallet_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    from services.wallet_service.app.main import app

    app.dependency_overrides[get_async_db] = _session_override(session_factory)
    app.dependency_overrides[get_current_user] = lambda: make_auth_user()

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
