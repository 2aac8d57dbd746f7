"""
Property service for operator-facing listing management.
Wraps the storage contract with authorization checks for every write and image attachment.
"""

from typing import Callable, List, Optional
import logging

from catalog.schemas import PropertyRecord, UserRecord
from catalog.storage.base import (
    StorageBackend,
    FiltersInput,
    PropertyCreateInput,
    PropertyUpdateInput,
)
from catalog.utils.exceptions import (
    InsufficientPermissionsError,
    PropertyNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Receives the action being attempted, e.g. "create properties", and allows or denies it
AuthorizationPredicate = Callable[[str], bool]


def admin_only(user: Optional[UserRecord]) -> AuthorizationPredicate:
    """Build a predicate that allows every action for admins and nothing otherwise."""
    def authorize(action: str) -> bool:
        return user is not None and user.is_admin
    return authorize


def deny_all(action: str) -> bool:
    """Predicate for anonymous callers."""
    return False


class PropertyService:
    """
    Property service for listing management.
    Reads are open; create, update, delete and image attachment require the
    authorization predicate to allow the action before storage is touched.
    """

    def __init__(self, storage: StorageBackend, authorize: AuthorizationPredicate = deny_all):
        self.storage = storage
        self.authorize = authorize

    def _require(self, action: str) -> None:
        if not self.authorize(action):
            logger.warning(f"Denied attempt to {action}")
            raise InsufficientPermissionsError(action)

    async def list_properties(self, filters: FiltersInput = None) -> List[PropertyRecord]:
        """List properties with the standard filters."""
        return await self.storage.get_properties(filters)

    async def search(self, query: str, filters: FiltersInput = None) -> List[PropertyRecord]:
        """
        Free-text search.

        Raises:
            ValidationError: If the query is missing or blank
        """
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("Search query is required")
        return await self.storage.search_properties(query.strip(), filters)

    async def get_property(self, property_id: str) -> PropertyRecord:
        """
        Get property by ID.

        Raises:
            PropertyNotFoundError: If property doesn't exist
        """
        property_obj = await self.storage.get_property(property_id)
        if property_obj is None:
            raise PropertyNotFoundError(property_id)
        return property_obj

    async def create_property(self, data: PropertyCreateInput) -> PropertyRecord:
        """
        Create a new listing.

        Raises:
            InsufficientPermissionsError: If the caller is not authorized
            ValidationError: If property data is invalid
        """
        self._require("create properties")
        property_obj = await self.storage.create_property(data)
        logger.info(f"Property created: {property_obj.title} (ID: {property_obj.id})")
        return property_obj

    async def update_property(self, property_id: str, data: PropertyUpdateInput) -> PropertyRecord:
        """
        Apply a partial update.

        Raises:
            InsufficientPermissionsError: If the caller is not authorized
            PropertyNotFoundError: If property doesn't exist
            ValidationError: If update data is invalid
        """
        self._require("update properties")
        return await self.storage.update_property(property_id, data)

    async def delete_property(self, property_id: str) -> None:
        """
        Delete a listing.

        Raises:
            InsufficientPermissionsError: If the caller is not authorized
            PropertyNotFoundError: If property doesn't exist
        """
        self._require("delete properties")
        await self.storage.delete_property(property_id)

    async def attach_images(self, property_id: str, images: List[str]) -> PropertyRecord:
        """
        Replace a listing's image references.

        Image references are already resolved to stored locations by the
        upload handler; their order is the display order.

        Raises:
            InsufficientPermissionsError: If the caller is not authorized
            ValidationError: If images is not a list of strings
            PropertyNotFoundError: If property doesn't exist
        """
        self._require("upload images")
        if not isinstance(images, list) or not all(isinstance(image, str) for image in images):
            raise ValidationError("Images must be an array of strings")

        property_obj = await self.storage.update_property(property_id, {"images": images})
        logger.info(f"Attached {len(images)} images to property {property_id}")
        return property_obj
