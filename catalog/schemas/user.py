"""
Pydantic schemas for user records and write payloads.
"""

from pydantic import ConfigDict, Field, model_validator
from typing import Any, Dict, Optional

from catalog.models.enums import UserRole
from catalog.schemas.common import CatalogModel, UTCDateTime
from catalog.utils.security import MIN_PASSWORD_LENGTH


class UserCreate(CatalogModel):
    """Payload for creating a user. The plain password is hashed by the storage layer."""

    model_config = ConfigDict(extra="forbid")

    username: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, repr=False)
    email: Optional[str] = Field(None, max_length=255)
    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    profile_image_url: Optional[str] = None
    role: UserRole = UserRole.USER


class UserUpdate(CatalogModel):
    """Partial user update. A supplied password is re-hashed before storage."""

    model_config = ConfigDict(extra="forbid")

    username: Optional[str] = Field(None, min_length=3, max_length=255)
    password: Optional[str] = Field(None, min_length=MIN_PASSWORD_LENGTH, repr=False)
    email: Optional[str] = Field(None, max_length=255)
    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    profile_image_url: Optional[str] = None
    role: Optional[UserRole] = None

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        cleared = [
            name for name in ("username", "password", "role")
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if cleared:
            raise ValueError(f"Fields cannot be null: {', '.join(cleared)}")
        return self

    def changes(self) -> Dict[str, Any]:
        """Return only the fields that were explicitly supplied."""
        return self.model_dump(exclude_unset=True)


class UserRecord(CatalogModel):
    """A stored user. Carries the password hash so callers can verify logins."""

    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    hashed_password: str = Field(..., repr=False)
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: UserRole = UserRole.USER
    created_at: UTCDateTime
    updated_at: UTCDateTime

    @property
    def is_admin(self) -> bool:
        """Check if user has admin role."""
        return self.role == UserRole.ADMIN

    def public_dict(self) -> Dict[str, Any]:
        """Serializable representation without the password hash."""
        return self.model_dump(mode="json", by_alias=True, exclude={"hashed_password"})
