"""
Shared schema building blocks: camelCase aliasing, decimal strings and UTC timestamps.
"""

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from datetime import datetime
from functools import partial
from typing import Annotated

from catalog.utils.timestamps import ensure_utc

TWO_PLACES = Decimal("0.01")


class CatalogModel(BaseModel):
    """Base schema accepting both snake_case names and camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def normalize_decimal(value, integer_digits: int = 10) -> str:
    """
    Convert a number or numeric string to a base-10 string with two decimals.

    Args:
        value: int, Decimal, float or numeric string
        integer_digits: Maximum digits before the decimal point

    Returns:
        Normalized string such as "450000.00"

    Raises:
        ValueError: If the value is not a finite, non-negative number in range
    """
    if isinstance(value, bool):
        raise ValueError("Expected a decimal number, got a boolean")
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"Invalid decimal value: {value!r}")

    if not number.is_finite():
        raise ValueError("Decimal value must be finite")
    if number < 0:
        raise ValueError("Decimal value cannot be negative")
    if number >= Decimal(10) ** integer_digits:
        raise ValueError("Decimal value exceeds maximum allowed value")

    return format(number.quantize(TWO_PLACES, rounding=ROUND_HALF_UP), "f")


# Price column is NUMERIC(12, 2), lot size and tax are NUMERIC(10, 2)
PriceString = Annotated[str, BeforeValidator(partial(normalize_decimal, integer_digits=10))]
AmountString = Annotated[str, BeforeValidator(partial(normalize_decimal, integer_digits=8))]

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

UTCDateTime = Annotated[datetime, AfterValidator(ensure_utc)]
