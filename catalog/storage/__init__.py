"""
Storage layer: the storage contract and its backends.
"""

from catalog.storage.base import StorageBackend
from catalog.storage.memory import InMemoryStorage
from catalog.storage.json_file import JsonFileStorage
from catalog.storage.database import DatabaseStorage
from catalog.storage.selector import create_storage, configure_storage, get_storage, reset_storage

__all__ = [
    "StorageBackend",
    "InMemoryStorage",
    "JsonFileStorage",
    "DatabaseStorage",
    "create_storage",
    "configure_storage",
    "get_storage",
    "reset_storage",
]
