"""Shared fixtures: a temporary SQLite catalog and a temporary storage root."""
import io

import pytest
from fastapi.testclient import TestClient

from game_catalog.config import Settings
from game_catalog.database import build_engine, build_session_factory
from game_catalog.main import create_app
from game_catalog.models import Base
from game_catalog.services.blob_store import BlobStore
from game_catalog.services.catalog_store import CatalogStore
from game_catalog.services.game_files import GameFileService


class AsyncBytes:
    """Minimal async byte stream, shaped like an uploaded file."""

    def __init__(self, data: bytes):
        self._buf = io.BytesIO(data)

    async def read(self, size: int = -1) -> bytes:
        return self._buf.read(size)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}",
        FILE_STORAGE_PATH=str(tmp_path / "uploads"),
        MAX_UPLOAD_BYTES=1024,
        CORS_ORIGINS="*",
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def blob_store(test_settings) -> BlobStore:
    return BlobStore(test_settings.FILE_STORAGE_PATH, test_settings.MAX_UPLOAD_BYTES)


@pytest.fixture
async def catalog(test_settings):
    engine = build_engine(test_settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield CatalogStore(build_session_factory(engine))
    await engine.dispose()


@pytest.fixture
def game_files(blob_store, catalog) -> GameFileService:
    return GameFileService(blob_store, catalog)


@pytest.fixture
def app(test_settings):
    return create_app(test_settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
