"""
Property model for sale and rental listings.
Maps listing data, pricing and ordered image/amenity lists to the properties table.
"""

from sqlalchemy import String, Text, Integer, Numeric, Boolean, JSON, Enum as SQLEnum, Index
from sqlalchemy.orm import Mapped, mapped_column
from catalog.database import Base
from catalog.models.enums import PropertyType, ListingType, PropertyStatus
from decimal import Decimal
from typing import List, Optional


def _enum_column(enum_cls, length: int) -> SQLEnum:
    # Store enum values ("house"), not member names, as plain strings
    return SQLEnum(
        enum_cls,
        values_callable=lambda members: [member.value for member in members],
        native_enum=False,
        length=length,
        validate_strings=True,
    )


class Property(Base):
    """
    Property row used by the relational backend.
    Column set mirrors PropertyRecord so rows convert one-to-one.
    """

    __tablename__ = "properties"

    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Pricing is exact; bounds are compared against this column directly
    price: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2), nullable=False, index=True)

    # Location
    location: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    city: Mapped[str] = mapped_column(Text, nullable=False)
    state: Mapped[str] = mapped_column(Text, nullable=False)
    zip_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Classification
    property_type: Mapped[PropertyType] = mapped_column(_enum_column(PropertyType, 20), nullable=False, index=True)
    listing_type: Mapped[ListingType] = mapped_column(_enum_column(ListingType, 10), nullable=False, index=True)

    # Rooms and size
    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False)
    bathrooms: Mapped[int] = mapped_column(Integer, nullable=False)
    sqft: Mapped[int] = mapped_column(Integer, nullable=False)
    parking: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    car_spaces: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    year_built: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    lot_size: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=10, scale=2), nullable=True)

    # Ordered lists of opaque strings
    images: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    amenities: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    strong_points: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    tax_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=10, scale=2), nullable=True)
    map_embed_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    status: Mapped[PropertyStatus] = mapped_column(
        _enum_column(PropertyStatus, 10),
        nullable=False,
        default=PropertyStatus.ACTIVE,
        index=True
    )

    def __repr__(self) -> str:
        """String representation of the property."""
        return f"<Property(id={self.id}, title={self.title[:30]}, price={self.price})>"


# Default listing query: active records, newest first
status_created_index = Index(
    "idx_properties_status_created",
    Property.status,
    Property.created_at,
)

# Common filter combination on the listing page
listing_type_price_index = Index(
    "idx_properties_listing_price",
    Property.listing_type,
    Property.price,
    Property.status,
)
