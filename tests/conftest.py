"""Shared pytest fixtures for the assistance test suite.

Provides:
- db_engine: in-memory SQLite async engine with all tables, SAVEPOINTs and FKs on
- session_factory: session maker bound to db_engine
- db_session: a plain session on a fresh database (each test gets its own)
- client: AsyncClient whose requests each get a Unit-of-Work session on db_engine
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from assistance.db.session import Base, configure_sqlite, get_async_session
import assistance.db.tables  # noqa: F401  register ORM models on Base.metadata


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with all tables."""
    eng = configure_sqlite(create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
    ))
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """AsyncClient with get_async_session overridden to use the test engine."""
    from assistance.api.main import app

    async def _override_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_async_session] = _override_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
