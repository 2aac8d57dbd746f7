"""
Custom exception classes for the property catalog.
Provides structured errors with the HTTP status codes a transport layer should use.
"""

from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base exception class for all catalog errors."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code

    def __str__(self) -> str:
        return self.detail


class ValidationError(APIException):
    """Malformed input rejected before it reaches durable storage."""

    def __init__(
        self,
        detail: str,
        field_errors: Optional[List[Dict[str, str]]] = None
    ):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code="VALIDATION_ERROR"
        )
        self.field_errors = field_errors or []

    @classmethod
    def from_pydantic(cls, exc, detail: str = "Invalid data") -> "ValidationError":
        """Translate a pydantic ValidationError into per-field errors."""
        field_errors = [
            {
                "field": ".".join(str(part) for part in error["loc"]) or "__root__",
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]
        return cls(detail, field_errors=field_errors)


class NotFoundError(APIException):
    """Resource not found exception."""

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        detail = f"{resource} not found"
        if resource_id:
            detail += f" with ID: {resource_id}"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND"
        )
        self.resource = resource
        self.resource_id = resource_id


class ForbiddenError(APIException):
    """Access forbidden exception."""

    def __init__(self, detail: str = "Access forbidden"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="FORBIDDEN"
        )


class ConflictError(APIException):
    """Resource conflict exception."""

    def __init__(self, detail: str, resource: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code="CONFLICT"
        )
        self.resource = resource


class StorageError(APIException):
    """Durable store could not be read or written."""

    def __init__(self, detail: str = "Storage operation failed"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code="STORAGE_ERROR"
        )


class InsufficientPermissionsError(ForbiddenError):
    """Insufficient permissions exception."""

    def __init__(self, action: str):
        super().__init__(f"Insufficient permissions to {action}")
        self.action = action


class PropertyNotFoundError(NotFoundError):
    """Property not found exception."""

    def __init__(self, property_id: str):
        super().__init__("Property", property_id)


class UserNotFoundError(NotFoundError):
    """User not found exception."""

    def __init__(self, user_id: str):
        super().__init__("User", user_id)


class DuplicateResourceError(ConflictError):
    """Duplicate resource exception."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} with identifier '{identifier}' already exists", resource=resource)
        self.identifier = identifier
