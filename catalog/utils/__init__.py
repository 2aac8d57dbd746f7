"""
Utility modules for the property catalog.
"""

from .exceptions import (
    APIException,
    ValidationError,
    NotFoundError,
    ForbiddenError,
    ConflictError,
    StorageError,
    InsufficientPermissionsError,
    PropertyNotFoundError,
    UserNotFoundError,
    DuplicateResourceError,
)

from .security import hash_password, verify_password
from .timestamps import utcnow, ensure_utc

__all__ = [
    # Exceptions
    "APIException",
    "ValidationError",
    "NotFoundError",
    "ForbiddenError",
    "ConflictError",
    "StorageError",
    "InsufficientPermissionsError",
    "PropertyNotFoundError",
    "UserNotFoundError",
    "DuplicateResourceError",

    # Security
    "hash_password",
    "verify_password",

    # Time
    "utcnow",
    "ensure_utc",
]
