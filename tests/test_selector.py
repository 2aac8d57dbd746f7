"""
Tests for backend selection and the storage lifespan.
"""

import logging
import pytest

from catalog.config import Settings
from catalog.main import shutdown, startup, storage_lifespan
from catalog.storage import (
    DatabaseStorage,
    InMemoryStorage,
    JsonFileStorage,
    configure_storage,
    create_storage,
    get_storage,
    reset_storage,
)
from catalog.utils.exceptions import StorageError
from tests.conftest import PropertyFactory


def make_settings(tmp_path, backend: str) -> Settings:
    return Settings(
        _env_file=None,
        storage_backend=backend,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}",
        data_dir=str(tmp_path / "data"),
        environment="testing",
    )


class TestCreateStorage:
    """Test backend construction from settings."""

    @pytest.mark.parametrize("backend,expected", [
        ("database", DatabaseStorage),
        ("json", JsonFileStorage),
        ("memory", InMemoryStorage),
    ])
    def test_builds_named_backend(self, tmp_path, backend, expected):
        storage = create_storage(make_settings(tmp_path, backend))

        assert type(storage) is expected
        assert storage.name == backend

    def test_json_backend_uses_data_dir(self, tmp_path):
        storage = create_storage(make_settings(tmp_path, "json"))

        assert storage.path_for("properties") == tmp_path / "data" / "properties.json"

    def test_unknown_backend(self, tmp_path):
        settings = make_settings(tmp_path, "memory").model_copy(update={"storage_backend": "redis"})

        with pytest.raises(ValueError, match="redis"):
            create_storage(settings)

    def test_database_requires_url_or_engine(self):
        with pytest.raises(ValueError):
            DatabaseStorage()


class TestConfiguredStorage:
    """Test the process-wide backend registration."""

    def test_get_before_configure(self):
        with pytest.raises(RuntimeError):
            get_storage()

    def test_configure_and_get(self):
        storage = InMemoryStorage()

        assert configure_storage(storage) is storage
        assert get_storage() is storage

    def test_configure_same_instance_twice(self):
        storage = InMemoryStorage()
        configure_storage(storage)

        configure_storage(storage)

        assert get_storage() is storage

    def test_cannot_replace_backend(self):
        configure_storage(InMemoryStorage())

        with pytest.raises(RuntimeError):
            configure_storage(InMemoryStorage())

    def test_reset(self):
        configure_storage(InMemoryStorage())
        reset_storage()

        with pytest.raises(RuntimeError):
            get_storage()


class TestLifespan:
    """Test startup and shutdown."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("backend", ["database", "json", "memory"])
    async def test_storage_lifespan(self, tmp_path, backend):
        settings = make_settings(tmp_path, backend)

        async with storage_lifespan(settings) as storage:
            assert get_storage() is storage
            created = await PropertyFactory.create_property(storage)
            assert await get_storage().get_property(created.id) == created

        with pytest.raises(RuntimeError):
            get_storage()

    @pytest.mark.asyncio
    async def test_json_data_survives_restart(self, tmp_path):
        settings = make_settings(tmp_path, "json")

        async with storage_lifespan(settings) as storage:
            created = await PropertyFactory.create_property(storage, title="Persisted")

        async with storage_lifespan(settings) as storage:
            assert (await storage.get_property(created.id)).title == "Persisted"

    @pytest.mark.asyncio
    async def test_database_data_survives_restart(self, tmp_path):
        settings = make_settings(tmp_path, "database")

        storage = await startup(settings)
        created = await PropertyFactory.create_property(storage, title="Persisted")
        await shutdown(storage)

        storage = await startup(settings)
        try:
            assert (await storage.get_property(created.id)).title == "Persisted"
        finally:
            await shutdown(storage)

    @pytest.mark.asyncio
    async def test_startup_logs_selected_backend(self, tmp_path, caplog):
        with caplog.at_level(logging.INFO):
            async with storage_lifespan(make_settings(tmp_path, "memory")):
                pass

        assert "Selected memory storage backend" in caplog.text

    @pytest.mark.asyncio
    async def test_failed_initialize_closes_backend(self, tmp_path, monkeypatch):
        settings = make_settings(tmp_path, "database").model_copy(
            update={"database_url": f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'catalog.db'}"}
        )
        closed = []
        original_close = DatabaseStorage.close

        async def tracking_close(self):
            closed.append(self)
            await original_close(self)

        monkeypatch.setattr(DatabaseStorage, "close", tracking_close)

        with pytest.raises(StorageError):
            await startup(settings)

        assert len(closed) == 1
        with pytest.raises(RuntimeError):
            get_storage()

    @pytest.mark.asyncio
    async def test_failed_configure_closes_backend(self, tmp_path, monkeypatch):
        installed = configure_storage(InMemoryStorage())
        closed = []

        async def tracking_close(self):
            closed.append(self)

        monkeypatch.setattr(JsonFileStorage, "close", tracking_close)

        with pytest.raises(RuntimeError):
            await startup(make_settings(tmp_path, "json"))

        assert len(closed) == 1 and isinstance(closed[0], JsonFileStorage)
        assert get_storage() is installed
