"""
Pydantic schemas for property records and write payloads.
Handles field defaults, decimal normalization and partial-update validation.
"""

from pydantic import ConfigDict, Field, field_validator, model_validator
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from catalog.models.enums import PropertyType, ListingType, PropertyStatus
from catalog.schemas.common import CatalogModel, PriceString, AmountString, NonEmptyStr, UTCDateTime

# Fields the storage layer searches with the free-text query
SEARCHABLE_TEXT_FIELDS = ("title", "description", "location", "address", "city", "state", "property_type")
SEARCHABLE_LIST_FIELDS = ("amenities", "strong_points")


class PropertyCreate(CatalogModel):
    """Payload for creating a property. Omitted optional fields take their defaults."""

    model_config = ConfigDict(extra="forbid")

    title: NonEmptyStr
    description: Optional[str] = None
    price: PriceString

    location: NonEmptyStr
    address: Optional[str] = None
    city: NonEmptyStr
    state: NonEmptyStr
    zip_code: Optional[str] = None

    property_type: PropertyType
    listing_type: ListingType

    bedrooms: int = Field(..., ge=0)
    bathrooms: int = Field(..., ge=0)
    sqft: int = Field(..., ge=0)
    parking: int = Field(0, ge=0)
    car_spaces: int = Field(1, ge=0)
    year_built: Optional[int] = Field(None, ge=0)
    lot_size: Optional[AmountString] = None

    images: List[str] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    strong_points: List[str] = Field(default_factory=list)

    tax_amount: Optional[AmountString] = None
    map_embed_url: Optional[str] = None

    featured: bool = False
    status: PropertyStatus = PropertyStatus.ACTIVE

    @field_validator("images", "amenities", "strong_points", mode="before")
    @classmethod
    def default_empty_list(cls, v):
        """Treat an explicit null list as empty."""
        return [] if v is None else v

    @field_validator("parking", mode="before")
    @classmethod
    def default_parking(cls, v):
        return 0 if v is None else v

    @field_validator("car_spaces", mode="before")
    @classmethod
    def default_car_spaces(cls, v):
        return 1 if v is None else v

    @field_validator("featured", mode="before")
    @classmethod
    def default_featured(cls, v):
        return False if v is None else v

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, v):
        return PropertyStatus.ACTIVE if v is None else v


class PropertyUpdate(CatalogModel):
    """
    Partial update payload.

    Only fields explicitly supplied are applied. Server-managed fields and
    unknown keys are rejected, and non-nullable fields cannot be set to null.
    """

    model_config = ConfigDict(extra="forbid")

    title: Optional[NonEmptyStr] = None
    description: Optional[str] = None
    price: Optional[PriceString] = None

    location: Optional[NonEmptyStr] = None
    address: Optional[str] = None
    city: Optional[NonEmptyStr] = None
    state: Optional[NonEmptyStr] = None
    zip_code: Optional[str] = None

    property_type: Optional[PropertyType] = None
    listing_type: Optional[ListingType] = None

    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    sqft: Optional[int] = Field(None, ge=0)
    parking: Optional[int] = Field(None, ge=0)
    car_spaces: Optional[int] = Field(None, ge=0)
    year_built: Optional[int] = Field(None, ge=0)
    lot_size: Optional[AmountString] = None

    images: Optional[List[str]] = None
    amenities: Optional[List[str]] = None
    strong_points: Optional[List[str]] = None

    tax_amount: Optional[AmountString] = None
    map_embed_url: Optional[str] = None

    featured: Optional[bool] = None
    status: Optional[PropertyStatus] = None

    NON_NULLABLE: ClassVar[Tuple[str, ...]] = (
        "title", "price", "location", "city", "state", "property_type", "listing_type",
        "bedrooms", "bathrooms", "sqft", "parking", "car_spaces",
        "images", "amenities", "strong_points", "featured", "status",
    )

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        """Required record fields may be changed but never cleared."""
        cleared = [name for name in self.NON_NULLABLE if name in self.model_fields_set and getattr(self, name) is None]
        if cleared:
            raise ValueError(f"Fields cannot be null: {', '.join(cleared)}")
        return self

    def changes(self) -> Dict[str, Any]:
        """Return only the fields that were explicitly supplied."""
        return self.model_dump(exclude_unset=True)


class PropertyRecord(CatalogModel):
    """A stored property as returned by every storage backend."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: Optional[str] = None
    price: PriceString

    location: str
    address: Optional[str] = None
    city: str
    state: str
    zip_code: Optional[str] = None

    property_type: PropertyType
    listing_type: ListingType

    bedrooms: int
    bathrooms: int
    sqft: int
    parking: int = 0
    car_spaces: int = 1
    year_built: Optional[int] = None
    lot_size: Optional[AmountString] = None

    images: List[str] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    strong_points: List[str] = Field(default_factory=list)

    tax_amount: Optional[AmountString] = None
    map_embed_url: Optional[str] = None

    featured: bool = False
    status: PropertyStatus = PropertyStatus.ACTIVE

    created_at: UTCDateTime
    updated_at: UTCDateTime

    def searchable_values(self) -> List[str]:
        """All text the free-text search matches against, missing fields skipped."""
        values = []
        for name in SEARCHABLE_TEXT_FIELDS:
            value = getattr(self, name)
            if value is not None:
                values.append(value.value if isinstance(value, PropertyType) else value)
        for name in SEARCHABLE_LIST_FIELDS:
            values.extend(getattr(self, name))
        return values
