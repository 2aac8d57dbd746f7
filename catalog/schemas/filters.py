"""
Query filters for property listing and search.
"""

from pydantic import ConfigDict, Field
from decimal import Decimal
from typing import Optional

from catalog.models.enums import PropertyType, ListingType, PropertyStatus, SortOrder
from catalog.schemas.common import CatalogModel


class PropertyFilters(CatalogModel):
    """
    Declarative query descriptor shared by every storage backend.

    Every option is independently optional and absence means no constraint,
    except ``status``: when omitted, only active listings match.
    Type coercion of raw request parameters is the caller's job; values are
    validated here so that both backends see the same typed filters.
    """

    model_config = ConfigDict(extra="forbid")

    listing_type: Optional[ListingType] = None
    property_type: Optional[PropertyType] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    min_beds: Optional[int] = Field(None, ge=0)
    min_baths: Optional[int] = Field(None, ge=0)
    city: Optional[str] = None
    state: Optional[str] = None
    featured: Optional[bool] = None
    status: Optional[PropertyStatus] = None
    limit: Optional[int] = Field(None, ge=1)
    offset: Optional[int] = Field(None, ge=0)
    sort_by: SortOrder = SortOrder.NEWEST

    @property
    def effective_status(self) -> PropertyStatus:
        """Status constraint actually applied by the backends."""
        return self.status if self.status is not None else PropertyStatus.ACTIVE
