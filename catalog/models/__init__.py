"""
Database models for the property catalog.
Includes the User and Property tables used by the relational backend.
"""

from catalog.models.enums import PropertyType, ListingType, PropertyStatus, UserRole, SortOrder
from catalog.models.user import User
from catalog.models.property import Property

__all__ = [
    "User",
    "UserRole",
    "Property",
    "PropertyType",
    "ListingType",
    "PropertyStatus",
    "SortOrder",
]
