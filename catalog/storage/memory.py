"""
In-memory storage backend.
Keeps each collection as a list of records and answers queries with the shared in-memory engine.
The JSON file backend reuses all of this and only replaces how collections are loaded and saved.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Type

from catalog.database import new_id
from catalog.schemas import (
    PropertyCreate,
    PropertyUpdate,
    PropertyRecord,
    UserCreate,
    UserUpdate,
    UserRecord,
)
from catalog.storage import filtering
from catalog.storage.base import (
    StorageBackend,
    FiltersInput,
    PropertyCreateInput,
    PropertyUpdateInput,
    UserCreateInput,
    UserUpdateInput,
    coerce,
    coerce_filters,
    coerce_query,
)
from catalog.utils.exceptions import DuplicateResourceError, PropertyNotFoundError, UserNotFoundError
from catalog.utils.security import hash_password
from catalog.utils.timestamps import utcnow

logger = logging.getLogger(__name__)

USERS = "users"
PROPERTIES = "properties"


class InMemoryStorage(StorageBackend):
    """
    Storage backend holding whole collections in process memory.

    Every mutation loads the full collection, applies the change and saves
    the full collection back. Mutations are serialized by a single lock so a
    read-modify-write cycle is never interleaved with another one; reads do
    not take the lock.
    """

    name = "memory"

    def __init__(self):
        self._collections: Dict[str, list] = {USERS: [], PROPERTIES: []}
        self._write_lock = asyncio.Lock()

    # Collection access, overridden by durable subclasses

    async def _load(self, collection: str, model: Type) -> list:
        """Return a fresh list holding every record of the collection."""
        return list(self._collections[collection])

    async def _save(self, collection: str, records: list) -> None:
        """Replace the whole collection."""
        self._collections[collection] = list(records)

    # User operations

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        users = await self._load(USERS, UserRecord)
        return next((user for user in users if user.id == user_id), None)

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        users = await self._load(USERS, UserRecord)
        return next((user for user in users if user.username == username), None)

    async def create_user(self, data: UserCreateInput) -> UserRecord:
        payload = coerce(UserCreate, data, "Invalid user data")

        async with self._write_lock:
            users = await self._load(USERS, UserRecord)
            if any(user.username == payload.username for user in users):
                raise DuplicateResourceError("User", payload.username)

            now = utcnow()
            fields = payload.model_dump(exclude={"password"})
            user = UserRecord(
                id=new_id(),
                hashed_password=hash_password(payload.password),
                created_at=now,
                updated_at=now,
                **fields,
            )
            users.append(user)
            await self._save(USERS, users)

        logger.info(f"Created user: {user.username} (ID: {user.id})")
        return user

    async def update_user(self, user_id: str, data: UserUpdateInput) -> UserRecord:
        changes = coerce(UserUpdate, data, "Invalid user update").changes()
        if "password" in changes:
            changes["hashed_password"] = hash_password(changes.pop("password"))

        async with self._write_lock:
            users = await self._load(USERS, UserRecord)
            index = _index_of(users, user_id)
            if index is None:
                raise UserNotFoundError(user_id)

            new_username = changes.get("username")
            if new_username is not None and any(
                user.username == new_username and user.id != user_id for user in users
            ):
                raise DuplicateResourceError("User", new_username)

            updated = UserRecord.model_validate({**users[index].model_dump(), **changes, "updated_at": utcnow()})
            users[index] = updated
            await self._save(USERS, users)

        logger.info(f"Updated user {user_id}: {sorted(changes)}")
        return updated

    # Property operations

    async def get_properties(self, filters: FiltersInput = None) -> List[PropertyRecord]:
        query_filters = coerce_filters(filters)
        properties = await self._load(PROPERTIES, PropertyRecord)
        result = filtering.query_properties(properties, query_filters)
        logger.debug(f"Property query matched {len(result)} of {len(properties)} records")
        return result

    async def get_property(self, property_id: str) -> Optional[PropertyRecord]:
        properties = await self._load(PROPERTIES, PropertyRecord)
        return next((prop for prop in properties if prop.id == property_id), None)

    async def create_property(self, data: PropertyCreateInput) -> PropertyRecord:
        payload = coerce(PropertyCreate, data, "Invalid property data")

        async with self._write_lock:
            properties = await self._load(PROPERTIES, PropertyRecord)
            now = utcnow()
            created = PropertyRecord(id=new_id(), created_at=now, updated_at=now, **payload.model_dump())
            properties.append(created)
            await self._save(PROPERTIES, properties)

        logger.info(f"Created property: {created.title} (ID: {created.id})")
        return created

    async def update_property(self, property_id: str, data: PropertyUpdateInput) -> PropertyRecord:
        changes = coerce(PropertyUpdate, data, "Invalid property update").changes()

        async with self._write_lock:
            properties = await self._load(PROPERTIES, PropertyRecord)
            index = _index_of(properties, property_id)
            if index is None:
                raise PropertyNotFoundError(property_id)

            updated = PropertyRecord.model_validate(
                {**properties[index].model_dump(), **changes, "updated_at": utcnow()}
            )
            properties[index] = updated
            await self._save(PROPERTIES, properties)

        logger.info(f"Updated property {property_id}: {sorted(changes)}")
        return updated

    async def delete_property(self, property_id: str) -> None:
        async with self._write_lock:
            properties = await self._load(PROPERTIES, PropertyRecord)
            remaining = [prop for prop in properties if prop.id != property_id]
            if len(remaining) == len(properties):
                raise PropertyNotFoundError(property_id)
            await self._save(PROPERTIES, remaining)

        logger.info(f"Deleted property {property_id}")

    async def search_properties(self, query: str, filters: FiltersInput = None) -> List[PropertyRecord]:
        query = coerce_query(query)
        query_filters = coerce_filters(filters)
        properties = await self._load(PROPERTIES, PropertyRecord)
        result = filtering.search_properties(properties, query, query_filters)
        logger.debug(f"Property search for '{query}' returned {len(result)} results")
        return result


def _index_of(records: list, record_id: str) -> Optional[int]:
    for index, record in enumerate(records):
        if record.id == record_id:
            return index
    return None


__all__ = ["InMemoryStorage", "USERS", "PROPERTIES"]
