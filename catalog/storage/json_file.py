"""
JSON file storage backend.
Persists each collection as one pretty-printed UTF-8 JSON array and rewrites it whole on every mutation.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Type, Union

import aiofiles
import aiofiles.os
from pydantic import ValidationError as PydanticValidationError

from catalog.storage.memory import InMemoryStorage, USERS, PROPERTIES
from catalog.utils.exceptions import StorageError

logger = logging.getLogger(__name__)


class JsonFileStorage(InMemoryStorage):
    """
    File-backed storage with async operations.

    Each operation loads the full collection from disk, so the cost is
    O(collection size); collections are expected to fit in memory.
    Writes go to a temporary sibling file that then replaces the target, so
    readers never observe a partially written document. Mutations within
    this process are serialized by the inherited write lock; separate
    processes writing the same files are last-write-wins.

    A missing, unreadable or malformed file is replaced with an empty
    collection instead of failing the caller.
    """

    name = "json"

    def __init__(self, data_dir: Union[str, Path]):
        """
        Initialize JSON storage.

        Args:
            data_dir: Directory holding users.json and properties.json
        """
        super().__init__()
        self.data_dir = Path(data_dir)
        self._files: Dict[str, Path] = {
            USERS: self.data_dir / "users.json",
            PROPERTIES: self.data_dir / "properties.json",
        }

    def path_for(self, collection: str) -> Path:
        """Location of a collection's document."""
        return self._files[collection]

    async def initialize(self) -> None:
        """Create the data directory and empty documents that do not exist yet."""
        await aiofiles.os.makedirs(self.data_dir, exist_ok=True)
        async with self._write_lock:
            for collection, path in self._files.items():
                if not await aiofiles.os.path.exists(path):
                    await self._write_document(path, [])
                    logger.info(f"Initialized empty {collection} store at {path}")

    async def _load(self, collection: str, model: Type) -> list:
        path = self._files[collection]
        document = await self._read_document(path)
        try:
            return [model.model_validate(item) for item in document]
        except PydanticValidationError as e:
            logger.error(f"Invalid record in {path}: {e}")
            raise StorageError(f"Invalid record in {path.name}")

    async def _save(self, collection: str, records: list) -> None:
        document = [record.model_dump(mode="json", by_alias=True) for record in records]
        await self._write_document(self._files[collection], document)
        logger.debug(f"Wrote {len(document)} records to {self._files[collection]}")

    async def _read_document(self, path: Path) -> List[dict]:
        """
        Read a collection document, replacing it with an empty one if unusable.

        The reset happens under the write lock after a second read, so it never
        overwrites a document a writer has just saved. When the lock is already
        held, the holder rewrites the file and the reset is left to it.
        """
        document = await self._try_read_document(path)
        if document is not None:
            return document

        if not self._write_lock.locked():
            async with self._write_lock:
                document = await self._try_read_document(path)
                if document is None:
                    await self._write_document(path, [])
                    logger.info(f"Reset store {path} to an empty collection")

        return document if document is not None else []

    async def _try_read_document(self, path: Path) -> Optional[List[dict]]:
        """Parse a collection document, or return None if it is missing or unusable."""
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                content = await f.read()
            document = json.loads(content)
        except FileNotFoundError:
            logger.info(f"Store {path} does not exist")
            return None
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Store {path} is unreadable: {e}")
            return None

        if not isinstance(document, list):
            logger.warning(f"Store {path} does not hold a JSON array")
            return None
        return document

    async def _write_document(self, path: Path, document: List[dict]) -> None:
        """Atomically replace a document with the given array."""
        payload = json.dumps(document, ensure_ascii=False, indent=2)
        temp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")

        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
                await f.write(payload)
            await aiofiles.os.replace(temp_path, path)
        except OSError as e:
            logger.error(f"Failed to write store {path}: {e}")
            if await aiofiles.os.path.exists(temp_path):
                await aiofiles.os.remove(temp_path)
            raise StorageError(f"Failed to write {path.name}")


__all__ = ["JsonFileStorage"]
