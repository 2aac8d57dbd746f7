"""
In-memory query engine used by the file-backed and in-memory backends.
Reproduces the relational backend's predicates, orderings and pagination on lists of records.
"""

from decimal import Decimal
from typing import Callable, Iterable, List, Optional

from catalog.models.enums import SortOrder
from catalog.schemas import PropertyFilters, PropertyRecord

Predicate = Callable[[PropertyRecord], bool]


def _contains(haystack: Optional[str], needle: str) -> bool:
    return haystack is not None and needle.lower() in haystack.lower()


def build_predicates(filters: PropertyFilters) -> List[Predicate]:
    """
    Build one predicate per supplied filter option.

    The status predicate is always present: an omitted status means active only.
    """
    predicates: List[Predicate] = []

    if filters.listing_type is not None:
        listing_type = filters.listing_type
        predicates.append(lambda p: p.listing_type == listing_type)

    if filters.property_type is not None:
        property_type = filters.property_type
        predicates.append(lambda p: p.property_type == property_type)

    # Prices are stored as text but compared as exact decimals
    if filters.min_price is not None:
        min_price = filters.min_price
        predicates.append(lambda p: Decimal(p.price) >= min_price)
    if filters.max_price is not None:
        max_price = filters.max_price
        predicates.append(lambda p: Decimal(p.price) <= max_price)

    if filters.min_beds is not None:
        min_beds = filters.min_beds
        predicates.append(lambda p: p.bedrooms >= min_beds)
    if filters.min_baths is not None:
        min_baths = filters.min_baths
        predicates.append(lambda p: p.bathrooms >= min_baths)

    if filters.city is not None:
        city = filters.city
        predicates.append(lambda p: _contains(p.city, city))
    if filters.state is not None:
        state = filters.state
        predicates.append(lambda p: _contains(p.state, state))

    if filters.featured is not None:
        featured = filters.featured
        predicates.append(lambda p: p.featured == featured)

    status = filters.effective_status
    predicates.append(lambda p: p.status == status)

    return predicates


def apply_filters(records: Iterable[PropertyRecord], filters: PropertyFilters) -> List[PropertyRecord]:
    """Reduce the collection by each predicate in turn."""
    result = list(records)
    for predicate in build_predicates(filters):
        result = [record for record in result if predicate(record)]
    return result


def matches_query(record: PropertyRecord, query: str) -> bool:
    """Case-insensitive substring match against any searchable field."""
    needle = query.lower()
    return any(needle in value.lower() for value in record.searchable_values())


def sort_properties(records: Iterable[PropertyRecord], sort_by: SortOrder) -> List[PropertyRecord]:
    """
    Order records by the requested sort, ties broken by id ascending.

    Sorts are stable, so ordering by id first and then by the primary key
    gives the same order as ORDER BY <key>, id.
    """
    ordered = sorted(records, key=lambda p: p.id)
    if sort_by == SortOrder.PRICE_ASC:
        ordered.sort(key=lambda p: Decimal(p.price))
    elif sort_by == SortOrder.PRICE_DESC:
        ordered.sort(key=lambda p: Decimal(p.price), reverse=True)
    elif sort_by == SortOrder.OLDEST:
        ordered.sort(key=lambda p: p.created_at)
    else:
        ordered.sort(key=lambda p: p.created_at, reverse=True)
    return ordered


def sort_for_search(records: Iterable[PropertyRecord]) -> List[PropertyRecord]:
    """Featured first, then newest, then id ascending."""
    ordered = sorted(records, key=lambda p: p.id)
    ordered.sort(key=lambda p: p.created_at, reverse=True)
    ordered.sort(key=lambda p: p.featured, reverse=True)
    return ordered


def paginate(records: List[PropertyRecord], offset: Optional[int], limit: Optional[int]) -> List[PropertyRecord]:
    """Apply offset, then limit."""
    if offset:
        records = records[offset:]
    if limit is not None:
        records = records[:limit]
    return records


def query_properties(records: Iterable[PropertyRecord], filters: PropertyFilters) -> List[PropertyRecord]:
    """Full listing pipeline: filter, sort, paginate."""
    matched = apply_filters(records, filters)
    return paginate(sort_properties(matched, filters.sort_by), filters.offset, filters.limit)


def search_properties(records: Iterable[PropertyRecord], query: str, filters: PropertyFilters) -> List[PropertyRecord]:
    """Search pipeline: text match AND filters, search ordering, paginate."""
    matched = [record for record in apply_filters(records, filters) if matches_query(record, query)]
    return paginate(sort_for_search(matched), filters.offset, filters.limit)
