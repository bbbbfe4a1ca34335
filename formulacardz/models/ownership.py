"""
Ownership records.

An ownership record is the quantity of one card variant a user owns. The
variant is identified by the triple (card_id, parallel, condition); a
collection never holds two records with the same triple.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import NamedTuple


class OwnershipKey(NamedTuple):
    """Identity of an ownership record within one user's collection."""

    card_id: str
    parallel: str | None
    condition: str


@dataclass(frozen=True, slots=True)
class CardDetails:
    """Catalog fields delivered flattened alongside an ownership record."""

    year: int
    set_name: str
    card_number: str
    driver_name: str
    constructor_name: str
    rookie_card: bool = False
    image_url: str | None = None


@dataclass(frozen=True, slots=True)
class OwnershipRecord:
    """
    A quantity of a specific card variant owned by the current user.

    Attributes:
        card_id: Catalog card identifier
        parallel: Parallel name, None for the base card
        condition: Grade label (e.g., "Raw", "PSA 10")
        quantity: Copies owned, always >= 1
        purchase_price: Price paid per copy, if recorded
        purchase_date: Date bought, if recorded
        details: Catalog fields used for search and display
    """

    card_id: str
    parallel: str | None
    condition: str
    quantity: int
    purchase_price: Decimal | None = None
    purchase_date: date | None = None
    details: CardDetails | None = None

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError(f"Record {self.key} has invalid quantity {self.quantity}")

    @property
    def key(self) -> OwnershipKey:
        return OwnershipKey(self.card_id, self.parallel, self.condition)
