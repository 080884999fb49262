import asyncio
import os

# Settings are read at import time, so the environment is prepared first.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ.setdefault("ADMIN_EMAIL", "admin@example.com")
os.environ.setdefault("ADMIN_PASSWORD", "admin-pass")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.db.database import Base
from app.storage.base import StorageBackend, StorageError, StoredFile

import app.models  # noqa: F401  registers every table on Base.metadata

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeRedis:
    """Just the commands the session store uses."""

    def __init__(self):
        self.data = {}
        self.ttl = {}

    async def set(self, key, value, ex=None):
        self.data[key] = value
        self.ttl[key] = ex
        return True

    async def get(self, key):
        return self.data.get(key)

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttl.pop(key, None)
        return removed


class FakeStorage(StorageBackend):
    def __init__(self):
        self.objects = {}
        self.deleted = []
        self.fail_on_delete = set()
        self.fail_on_save = False

    async def save(self, file_content, destination_path, content_type=None):
        if self.fail_on_save:
            raise StorageError("storage unavailable")
        url = f"https://files.test/{destination_path}"
        self.objects[url] = file_content
        return StoredFile(url=url, path=destination_path)

    async def delete(self, reference):
        if reference in self.fail_on_delete:
            raise StorageError(f"cannot delete {reference}")
        self.deleted.append(reference)
        return self.objects.pop(reference, None) is not None


@pytest.fixture
def database_url(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'qna.db'}"

    async def _create_schema():
        engine = create_async_engine(url, poolclass=NullPool)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await engine.dispose()

    asyncio.run(_create_schema())
    return url


@pytest.fixture
def session_factory(database_url):
    engine = create_async_engine(database_url, poolclass=NullPool)
    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    yield factory
    asyncio.run(engine.dispose())


@pytest.fixture
def run_db(session_factory):
    """Run ``fn(db)`` inside a fresh session and return its result."""

    def _run(fn):
        async def _inner():
            async with session_factory() as db:
                return await fn(db)

        return asyncio.run(_inner())

    return _run


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def make_client(session_factory, fake_redis, fake_storage):
    """
    Build TestClients that share one database, session store and object
    storage but keep separate cookie jars (one per browser).
    """
    from app.api.deps import get_attachment_service
    from app.db.database import get_db
    from app.db.redis import get_redis
    from app.main import app
    from app.services.attachment_service import AttachmentService

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        return fake_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_attachment_service] = lambda: AttachmentService(fake_storage)

    yield lambda: TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    return make_client()
