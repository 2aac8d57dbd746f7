"""
Backend selection.

The active backend is chosen once at process start from settings and then
handed to consumers. ``get_storage`` exists for frameworks that resolve
dependencies by calling a provider function.
"""

import logging
from typing import Optional

from catalog.config import Settings
from catalog.storage.base import StorageBackend

logger = logging.getLogger(__name__)

_active_storage: Optional[StorageBackend] = None


def create_storage(settings: Settings) -> StorageBackend:
    """
    Build the backend named by ``settings.storage_backend``.

    Returns:
        An uninitialized storage backend
    """
    backend = settings.storage_backend

    if backend == "database":
        from catalog.storage.database import DatabaseStorage
        storage = DatabaseStorage(settings.database_url, echo=settings.database_echo)
    elif backend == "json":
        from catalog.storage.json_file import JsonFileStorage
        storage = JsonFileStorage(settings.data_dir)
    elif backend == "memory":
        from catalog.storage.memory import InMemoryStorage
        storage = InMemoryStorage()
    else:
        raise ValueError(f"Unsupported storage backend: {backend}")

    logger.info(f"Selected {storage.name} storage backend")
    return storage


def configure_storage(storage: StorageBackend) -> StorageBackend:
    """
    Install the process-wide backend.

    Installing the same instance again is a no-op; installing a different
    one raises, since the backend is fixed for the process lifetime.
    """
    global _active_storage

    if _active_storage is not None and _active_storage is not storage:
        raise RuntimeError(
            f"Storage backend already configured ({_active_storage.name}); it cannot be replaced"
        )
    _active_storage = storage
    return storage


def get_storage() -> StorageBackend:
    """Return the process-wide backend."""
    if _active_storage is None:
        raise RuntimeError("Storage backend has not been configured")
    return _active_storage


def reset_storage() -> None:
    """Forget the configured backend. Intended for tests and shutdown."""
    global _active_storage
    _active_storage = None


__all__ = [
    "create_storage",
    "configure_storage",
    "get_storage",
    "reset_storage",
]
