"""
Pydantic schemas for records, write payloads and query filters.
"""

from .property import PropertyCreate, PropertyUpdate, PropertyRecord
from .user import UserCreate, UserUpdate, UserRecord
from .filters import PropertyFilters

__all__ = [
    "PropertyCreate",
    "PropertyUpdate",
    "PropertyRecord",
    "UserCreate",
    "UserUpdate",
    "UserRecord",
    "PropertyFilters",
]
