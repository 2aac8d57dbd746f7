"""
User model for operator accounts.
"""

from sqlalchemy import String, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from catalog.database import Base
from catalog.models.enums import UserRole
from typing import Optional


class User(Base):
    """
    User row used by the relational backend.
    Username uniqueness is enforced by a unique index as well as by the storage layer.
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="Login name - must be unique"
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Password hash produced by passlib"
    )

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    profile_image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    role: Mapped[UserRole] = mapped_column(
        SQLEnum(
            UserRole,
            values_callable=lambda members: [member.value for member in members],
            native_enum=False,
            length=10,
        ),
        nullable=False,
        default=UserRole.USER,
        comment="User role for access control"
    )

    def __repr__(self) -> str:
        """String representation of the user."""
        return f"<User(id={self.id}, username={self.username}, role={self.role})>"
