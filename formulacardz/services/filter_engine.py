"""
Collection filtering.

Pure functions over a sequence of ownership records. Stages are ANDed
together; each stage is a no-op when its FilterSpec field is empty.

Supports queries like:
- "ham" -> records whose driver, constructor, card number or set contains "ham"
- set_name="2024 Topps Chrome F1" -> exact set facet
- constructor_name="Ferrari", driver_name="Charles Leclerc" -> exact facets
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal

from formulacardz.models.filters import FilterSpec
from formulacardz.models.ownership import OwnershipRecord

FacetField = Literal["set_name", "constructor_name", "driver_name"]

FACET_FIELDS: tuple[FacetField, ...] = ("set_name", "constructor_name", "driver_name")


def matches_search(record: OwnershipRecord, search_text: str) -> bool:
    """Case-insensitive substring match on driver, constructor, card number, set."""
    if not search_text.strip():
        return True
    term = search_text.lower()

    details = record.details
    if details is None:
        return False

    return any(
        term in value.lower()
        for value in (
            details.driver_name,
            details.constructor_name,
            details.card_number,
            details.set_name,
        )
    )


def facet_value(record: OwnershipRecord, facet: FacetField) -> str | None:
    if record.details is None:
        return None
    value: str = getattr(record.details, facet)
    return value


def apply_filters(records: Iterable[OwnershipRecord], spec: FilterSpec) -> list[OwnershipRecord]:
    """
    Filter records by search text, then by exact facet values.

    Args:
        records: Base collection
        spec: Query; empty fields are ignored

    Returns:
        Matching records in their original order
    """
    facets: list[tuple[FacetField, str]] = [
        (facet, value) for facet in FACET_FIELDS if (value := getattr(spec, facet))
    ]

    return [
        record
        for record in records
        if matches_search(record, spec.search_text)
        and all(facet_value(record, facet) == value for facet, value in facets)
    ]


def total_value(records: Iterable[OwnershipRecord]) -> Decimal:
    """Sum of purchase price x quantity; records without a price count as zero."""
    return sum(
        ((record.purchase_price or Decimal(0)) * record.quantity for record in records),
        Decimal(0),
    )


def distinct_values(records: Iterable[OwnershipRecord], facet: FacetField) -> list[str]:
    """
    Sorted unique values of a facet.

    Pass the unfiltered collection so facet choices do not shrink as other
    facets are applied.
    """
    values = {value for record in records if (value := facet_value(record, facet))}
    return sorted(values)


@dataclass(frozen=True, slots=True)
class CollectionView:
    """Everything a collection screen renders for one query."""

    records: list[OwnershipRecord]
    total_value: Decimal
    total_quantity: int
    facet_options: dict[str, list[str]] = field(default_factory=dict)


def build_collection_view(records: Sequence[OwnershipRecord], spec: FilterSpec) -> CollectionView:
    """
    Filter the collection and derive its summary.

    Totals and facet options come from the whole collection, not the
    filtered subset.
    """
    return CollectionView(
        records=apply_filters(records, spec),
        total_value=total_value(records),
        total_quantity=sum(r.quantity for r in records),
        facet_options={facet: distinct_values(records, facet) for facet in FACET_FIELDS},
    )
