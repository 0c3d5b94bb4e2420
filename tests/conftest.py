import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import fakeredis.aioredis
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from channel_service.config import settings
from channel_service.database import Base, get_db, utcnow
from channel_service.schemas.channels import ChannelCreate
from channel_service.services.cache import channel_cache
from channel_service.services.channel_manager import channel_manager
from channel_service.services.kafka_producer import kafka_producer
from channel_service.services.member_manager import member_manager

OWNER = "user-owner"
ADMIN = "user-admin"
MEMBER = "user-member"
OUTSIDER = "user-outsider"


def _enable_foreign_keys(engine):
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest_asyncio.fixture
async def db():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _enable_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def fake_redis():
    client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    channel_cache.redis_client = client
    yield client
    channel_cache.redis_client = None
    await client.aclose()


@pytest.fixture(autouse=True)
def published():
    """Capture events instead of sending them to Kafka."""
    with patch.object(kafka_producer, "publish", new=AsyncMock()) as mock:
        yield mock


def published_types(mock):
    return [call.args[0].value for call in mock.await_args_list]


@pytest_asyncio.fixture
async def channel(db):
    """A public channel owned by OWNER with ADMIN and MEMBER already in it."""
    created = await channel_manager.create_channel(
        db, OWNER, ChannelCreate(workspace_id="w1", name="general")
    )
    await member_manager.add_member(db, created.id, OWNER, ADMIN, role="admin")
    await member_manager.add_member(db, created.id, OWNER, MEMBER)
    return created


def in_future(hours: int = 1):
    return utcnow() + timedelta(hours=hours)


def in_past(hours: int = 1):
    return utcnow() - timedelta(hours=hours)


# ----------------------------------------------------------------------------
# HTTP fixtures
# ----------------------------------------------------------------------------


def auth_headers(user_id: str) -> dict:
    token = jwt.encode({"sub": user_id}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def http_session_factory(tmp_path):
    # File database with NullPool so every request opens its connection on
    # the TestClient event loop.
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'http.db'}", poolclass=NullPool)
    _enable_foreign_keys(engine)

    async def create_all():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_all())
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
def client(http_session_factory):
    from channel_service.main import app

    async def override_get_db():
        async with http_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    channel_cache.redis_client = None

    with patch("channel_service.main.init_db"), patch(
        "channel_service.main.create_tables", new=AsyncMock()
    ), patch("channel_service.main.close_db", new=AsyncMock()), patch(
        "channel_service.main.kafka_producer"
    ) as mock_kafka, patch(
        "channel_service.main.channel_cache"
    ) as mock_cache:
        mock_kafka.start = AsyncMock()
        mock_kafka.stop = AsyncMock()
        mock_cache.init_redis = AsyncMock()
        mock_cache.close_redis = AsyncMock()

        with TestClient(app) as c:
            yield c

    app.dependency_overrides.clear()
