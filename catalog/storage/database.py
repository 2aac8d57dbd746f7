"""
Relational storage backend using async SQLAlchemy.
Composes filter predicates into SQL so that filtering, sorting and pagination run in the database.
"""

from sqlalchemy import String, and_, cast, column, delete, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from catalog.database import Base, check_database_connection, create_engine, create_session_factory, create_tables, new_id
from catalog.models import Property, User, SortOrder
from catalog.schemas import (
    PropertyCreate,
    PropertyUpdate,
    PropertyRecord,
    PropertyFilters,
    UserCreate,
    UserUpdate,
    UserRecord,
)
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
from catalog.utils.exceptions import (
    DuplicateResourceError,
    PropertyNotFoundError,
    StorageError,
    UserNotFoundError,
)
from catalog.utils.security import hash_password
from catalog.utils.timestamps import utcnow

logger = logging.getLogger(__name__)

# Record fields held as decimal strings and as NUMERIC columns
DECIMAL_FIELDS = ("price", "lot_size", "tax_amount")

# Text columns matched by free-text search; the enum column is matched on its stored value
SEARCH_TEXT_COLUMNS = (
    Property.title,
    Property.description,
    Property.location,
    Property.address,
    Property.city,
    Property.state,
    cast(Property.property_type, String),
)

# JSON list columns, matched one element at a time
SEARCH_LIST_COLUMNS = (Property.amenities, Property.strong_points)

SORT_COLUMNS = {
    SortOrder.PRICE_ASC: (Property.price.asc(),),
    SortOrder.PRICE_DESC: (Property.price.desc(),),
    SortOrder.NEWEST: (Property.created_at.desc(),),
    SortOrder.OLDEST: (Property.created_at.asc(),),
}


def _row_dict(row: Base) -> Dict[str, Any]:
    return {column.key: getattr(row, column.key) for column in row.__table__.columns}


def _to_property_record(row: Property) -> PropertyRecord:
    return PropertyRecord.model_validate(_row_dict(row))


def _to_user_record(row: Optional[User]) -> Optional[UserRecord]:
    return UserRecord.model_validate(_row_dict(row)) if row is not None else None


def _column_values(values: Dict[str, Any]) -> Dict[str, Any]:
    """Convert decimal strings from the schemas to Decimal column values."""
    converted = dict(values)
    for field in DECIMAL_FIELDS:
        if converted.get(field) is not None:
            converted[field] = Decimal(converted[field])
    return converted


class DatabaseStorage(StorageBackend):
    """
    Storage backend on an async SQLAlchemy engine (PostgreSQL or SQLite).

    Every operation runs in its own session; writes run in a transaction
    that is rolled back on failure.
    """

    name = "database"

    def __init__(self, database_url: Optional[str] = None, *, engine: Optional[AsyncEngine] = None, echo: bool = False):
        """
        Initialize the relational backend.

        Args:
            database_url: Async SQLAlchemy URL, used when no engine is given
            engine: Existing engine to reuse; it is not disposed by close()
            echo: Log emitted SQL
        """
        if engine is None and not database_url:
            raise ValueError("DatabaseStorage requires a database_url or an engine")

        self._owns_engine = engine is None
        self.engine = engine if engine is not None else create_engine(database_url, echo=echo)
        self._session_factory = create_session_factory(self.engine)

    async def initialize(self) -> None:
        """Check connectivity, then create missing tables."""
        if not await check_database_connection(self._session_factory):
            raise StorageError("Database is not reachable")

        try:
            await create_tables(self.engine)
        except SQLAlchemyError as e:
            logger.error(f"Failed to create tables: {e}")
            raise StorageError("Failed to initialize database schema")

    async def close(self) -> None:
        if self._owns_engine:
            await self.engine.dispose()
            logger.info("Database connections closed")

    # User operations

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        try:
            async with self._session_factory() as session:
                return _to_user_record(await session.get(User, user_id))
        except SQLAlchemyError as e:
            logger.error(f"Failed to get user {user_id}: {e}")
            raise StorageError("Failed to read user")

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        try:
            async with self._session_factory() as session:
                row = await session.scalar(select(User).where(User.username == username))
                return _to_user_record(row)
        except SQLAlchemyError as e:
            logger.error(f"Failed to get user by username {username}: {e}")
            raise StorageError("Failed to read user")

    async def create_user(self, data: UserCreateInput) -> UserRecord:
        payload = coerce(UserCreate, data, "Invalid user data")
        now = utcnow()
        row = User(
            id=new_id(),
            hashed_password=hash_password(payload.password),
            created_at=now,
            updated_at=now,
            **payload.model_dump(exclude={"password"}),
        )

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    taken = await session.scalar(select(User.id).where(User.username == payload.username))
                    if taken is not None:
                        raise DuplicateResourceError("User", payload.username)
                    session.add(row)
        except IntegrityError as e:
            # Lost a race with a concurrent insert of the same username
            logger.error(f"Username conflict for {payload.username}: {e}")
            raise DuplicateResourceError("User", payload.username)
        except SQLAlchemyError as e:
            logger.error(f"Failed to create user: {e}")
            raise StorageError("Failed to create user")

        logger.info(f"Created user: {row.username} (ID: {row.id})")
        return _to_user_record(row)

    async def update_user(self, user_id: str, data: UserUpdateInput) -> UserRecord:
        changes = coerce(UserUpdate, data, "Invalid user update").changes()
        if "password" in changes:
            changes["hashed_password"] = hash_password(changes.pop("password"))

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    row = await session.get(User, user_id)
                    if row is None:
                        raise UserNotFoundError(user_id)

                    new_username = changes.get("username")
                    if new_username is not None:
                        taken = await session.scalar(
                            select(User.id).where(and_(User.username == new_username, User.id != user_id))
                        )
                        if taken is not None:
                            raise DuplicateResourceError("User", new_username)

                    for field, value in changes.items():
                        setattr(row, field, value)
                    row.updated_at = utcnow()
        except IntegrityError as e:
            logger.error(f"Username conflict updating user {user_id}: {e}")
            raise DuplicateResourceError("User", changes.get("username", ""))
        except SQLAlchemyError as e:
            logger.error(f"Failed to update user {user_id}: {e}")
            raise StorageError("Failed to update user")

        logger.info(f"Updated user {user_id}: {sorted(changes)}")
        return _to_user_record(row)

    # Property operations

    async def get_properties(self, filters: FiltersInput = None) -> List[PropertyRecord]:
        query_filters = coerce_filters(filters)
        query = (
            select(Property)
            .where(and_(*self._build_filter_conditions(query_filters)))
            .order_by(*SORT_COLUMNS[query_filters.sort_by], Property.id.asc())
        )
        query = self._paginate(query, query_filters)

        try:
            async with self._session_factory() as session:
                rows = (await session.execute(query)).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to query properties: {e}")
            raise StorageError("Failed to query properties")

        logger.debug(f"Property query returned {len(rows)} records")
        return [_to_property_record(row) for row in rows]

    async def get_property(self, property_id: str) -> Optional[PropertyRecord]:
        try:
            async with self._session_factory() as session:
                row = await session.get(Property, property_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to get property {property_id}: {e}")
            raise StorageError("Failed to read property")

        if row is None:
            logger.debug(f"Property with id {property_id} not found")
            return None
        return _to_property_record(row)

    async def create_property(self, data: PropertyCreateInput) -> PropertyRecord:
        payload = coerce(PropertyCreate, data, "Invalid property data")
        now = utcnow()
        row = Property(id=new_id(), created_at=now, updated_at=now, **_column_values(payload.model_dump()))

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(row)
        except SQLAlchemyError as e:
            logger.error(f"Failed to create property: {e}")
            raise StorageError("Failed to create property")

        logger.info(f"Created property: {row.title} (ID: {row.id})")
        return _to_property_record(row)

    async def update_property(self, property_id: str, data: PropertyUpdateInput) -> PropertyRecord:
        changes = coerce(PropertyUpdate, data, "Invalid property update").changes()

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    row = await session.get(Property, property_id)
                    if row is None:
                        raise PropertyNotFoundError(property_id)
                    for field, value in _column_values(changes).items():
                        setattr(row, field, value)
                    row.updated_at = utcnow()
        except SQLAlchemyError as e:
            logger.error(f"Failed to update property {property_id}: {e}")
            raise StorageError("Failed to update property")

        logger.info(f"Updated property {property_id}: {sorted(changes)}")
        return _to_property_record(row)

    async def delete_property(self, property_id: str) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(delete(Property).where(Property.id == property_id))
                    if result.rowcount == 0:
                        raise PropertyNotFoundError(property_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete property {property_id}: {e}")
            raise StorageError("Failed to delete property")

        logger.info(f"Deleted property {property_id}")

    async def search_properties(self, query: str, filters: FiltersInput = None) -> List[PropertyRecord]:
        query = coerce_query(query)
        query_filters = coerce_filters(filters)

        # Any searchable column or list element may match; the match is AND-ed with the filters
        text_match = or_(
            *(text_column.icontains(query, autoescape=True) for text_column in SEARCH_TEXT_COLUMNS),
            *(self._list_element_contains(list_column, query) for list_column in SEARCH_LIST_COLUMNS),
        )
        statement = (
            select(Property)
            .where(and_(text_match, *self._build_filter_conditions(query_filters)))
            .order_by(Property.featured.desc(), Property.created_at.desc(), Property.id.asc())
        )
        statement = self._paginate(statement, query_filters)

        try:
            async with self._session_factory() as session:
                rows = (await session.execute(statement)).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to search properties with term '{query}': {e}")
            raise StorageError("Failed to search properties")

        logger.debug(f"Property search for '{query}' returned {len(rows)} results")
        return [_to_property_record(row) for row in rows]

    def _list_element_contains(self, list_column, query: str):
        """
        EXISTS condition matching any single element of a JSON list column.

        Elements are unpacked by the database so the query never matches
        JSON punctuation or escape sequences of the serialized list.
        """
        if self.engine.dialect.name == "postgresql":
            elements = func.json_array_elements_text(list_column)
        else:
            elements = func.json_each(list_column)
        element = elements.table_valued(column("value", String))

        return (
            select(element.c.value)
            .where(element.c.value.icontains(query, autoescape=True))
            .correlate(Property)
            .exists()
        )

    def _build_filter_conditions(self, filters: PropertyFilters) -> List:
        """
        Build SQLAlchemy filter conditions from the query filters.

        One condition per supplied option; the status condition is always
        present and defaults to active.
        """
        conditions = []

        if filters.listing_type is not None:
            conditions.append(Property.listing_type == filters.listing_type)

        if filters.property_type is not None:
            conditions.append(Property.property_type == filters.property_type)

        # Price range filters compare against the NUMERIC column
        if filters.min_price is not None:
            conditions.append(Property.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Property.price <= filters.max_price)

        if filters.min_beds is not None:
            conditions.append(Property.bedrooms >= filters.min_beds)
        if filters.min_baths is not None:
            conditions.append(Property.bathrooms >= filters.min_baths)

        # Location filters (case-insensitive partial match)
        if filters.city is not None:
            conditions.append(Property.city.icontains(filters.city, autoescape=True))
        if filters.state is not None:
            conditions.append(Property.state.icontains(filters.state, autoescape=True))

        if filters.featured is not None:
            conditions.append(Property.featured == filters.featured)

        conditions.append(Property.status == filters.effective_status)

        return conditions

    @staticmethod
    def _paginate(statement, filters: PropertyFilters):
        if filters.offset:
            statement = statement.offset(filters.offset)
        if filters.limit is not None:
            statement = statement.limit(filters.limit)
        return statement


__all__ = ["DatabaseStorage"]
