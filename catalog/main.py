"""
Process entry point for the storage core.
Configures logging, then builds, initializes and installs the storage backend for the process lifetime.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
import logging

from catalog.config import Settings, get_settings
from catalog.storage.base import StorageBackend
from catalog.storage.selector import create_storage, configure_storage, reset_storage

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Configure root logging once for the process. Debug mode forces DEBUG level."""
    logging.basicConfig(
        level="DEBUG" if settings.debug else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def startup(settings: Optional[Settings] = None) -> StorageBackend:
    """
    Build and install the configured backend.

    Returns:
        The initialized backend, also available through get_storage()
    """
    settings = settings or get_settings()
    configure_logging(settings)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    storage = create_storage(settings)
    try:
        await storage.initialize()
        return configure_storage(storage)
    except Exception as e:
        logger.error(f"Failed to start {storage.name} storage: {e}")
        await storage.close()
        raise


async def shutdown(storage: StorageBackend) -> None:
    """Release the backend and uninstall it."""
    logger.info("Shutting down storage")
    try:
        await storage.close()
    finally:
        reset_storage()


@asynccontextmanager
async def storage_lifespan(settings: Optional[Settings] = None) -> AsyncIterator[StorageBackend]:
    """
    Storage lifespan manager.
    Handles startup and shutdown around the body, e.g. an ASGI app lifespan.
    """
    storage = await startup(settings)
    try:
        yield storage
    finally:
        await shutdown(storage)
