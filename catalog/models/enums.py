"""
Enumerations shared by the database models and the record schemas.
"""

import enum


class PropertyType(str, enum.Enum):
    """Kind of building being listed."""
    HOUSE = "house"
    APARTMENT = "apartment"
    CONDO = "condo"
    TOWNHOUSE = "townhouse"
    VILLA = "villa"


class ListingType(str, enum.Enum):
    """Whether a property is offered for sale or for rent."""
    SALE = "sale"
    RENT = "rent"


class PropertyStatus(str, enum.Enum):
    """Lifecycle stage of a listing."""
    ACTIVE = "active"
    PENDING = "pending"
    SOLD = "sold"
    INACTIVE = "inactive"


class UserRole(str, enum.Enum):
    """User role enumeration for role-based access control."""
    USER = "user"
    ADMIN = "admin"


class SortOrder(str, enum.Enum):
    """Result orderings supported by property queries."""
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    NEWEST = "newest"
    OLDEST = "oldest"
