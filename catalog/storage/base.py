"""
Storage contract shared by every backend.
Defines the user and property operations plus the input coercion all backends apply.
"""

from abc import ABC, abstractmethod
from pydantic import BaseModel, ValidationError as PydanticValidationError
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from catalog.schemas import (
    PropertyCreate,
    PropertyUpdate,
    PropertyRecord,
    PropertyFilters,
    UserCreate,
    UserUpdate,
    UserRecord,
)
from catalog.utils.exceptions import ValidationError

SchemaType = TypeVar("SchemaType", bound=BaseModel)

PropertyCreateInput = Union[PropertyCreate, Dict[str, Any]]
PropertyUpdateInput = Union[PropertyUpdate, Dict[str, Any]]
UserCreateInput = Union[UserCreate, Dict[str, Any]]
UserUpdateInput = Union[UserUpdate, Dict[str, Any]]
FiltersInput = Union[PropertyFilters, Dict[str, Any], None]


def coerce(schema: Type[SchemaType], data: Any, detail: str) -> SchemaType:
    """
    Validate raw input against a schema.

    Schema instances pass through; dicts are validated.

    Raises:
        ValidationError: If the input is structurally invalid
    """
    if isinstance(data, schema):
        return data
    if not isinstance(data, dict):
        raise ValidationError(f"{detail}: expected an object, got {type(data).__name__}")
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e, detail=detail)


def coerce_filters(filters: FiltersInput) -> PropertyFilters:
    """Normalize optional filters to a PropertyFilters instance."""
    if filters is None:
        return PropertyFilters()
    return coerce(PropertyFilters, filters, "Invalid property filters")


def coerce_query(query: Any) -> str:
    """Search terms must be text; an empty string matches every record."""
    if not isinstance(query, str):
        raise ValidationError("Search query must be a string")
    return query


class StorageBackend(ABC):
    """
    Abstract storage interface.

    Implementations must return identical results for identical inputs:
    the same records in the same order for every filter combination.
    Read operations signal a miss by returning None; updates and deletes
    of a missing id raise NotFoundError.
    """

    name: str = "abstract"

    async def initialize(self) -> None:
        """Prepare durable storage. Safe to call more than once."""

    async def close(self) -> None:
        """Release resources held by the backend."""

    # User operations

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        """Get user by ID."""

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        """Get user by username."""

    @abstractmethod
    async def create_user(self, data: UserCreateInput) -> UserRecord:
        """Create a user; raises ConflictError if the username is taken."""

    @abstractmethod
    async def update_user(self, user_id: str, data: UserUpdateInput) -> UserRecord:
        """Merge a partial update into a user; raises NotFoundError if absent."""

    # Property operations

    @abstractmethod
    async def get_properties(self, filters: FiltersInput = None) -> List[PropertyRecord]:
        """List properties matching the filters, sorted and paginated."""

    @abstractmethod
    async def get_property(self, property_id: str) -> Optional[PropertyRecord]:
        """Get property by ID."""

    @abstractmethod
    async def create_property(self, data: PropertyCreateInput) -> PropertyRecord:
        """Create a property with defaults applied."""

    @abstractmethod
    async def update_property(self, property_id: str, data: PropertyUpdateInput) -> PropertyRecord:
        """Merge a partial update into a property; raises NotFoundError if absent."""

    @abstractmethod
    async def delete_property(self, property_id: str) -> None:
        """Hard delete a property; raises NotFoundError if absent."""

    @abstractmethod
    async def search_properties(self, query: str, filters: FiltersInput = None) -> List[PropertyRecord]:
        """Free-text search combined with the listing filters, featured first then newest."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


__all__ = [
    "StorageBackend",
    "coerce",
    "coerce_filters",
    "coerce_query",
]
