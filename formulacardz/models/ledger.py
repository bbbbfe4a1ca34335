"""
Ownership ledger - in-memory record set keyed by (card, parallel, condition).

INVARIANT: At most one record per OwnershipKey.
INVARIANT: Every stored record has quantity >= 1. A record whose quantity
reaches zero (or would go below it) is deleted, never stored.

The ledger performs no I/O. Callers validate and talk to the remote service
first, then apply the change here.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import replace
from datetime import date
from decimal import Decimal
from enum import Enum

from formulacardz.models.failure import NotFoundError
from formulacardz.models.ownership import CardDetails, OwnershipKey, OwnershipRecord

logger = logging.getLogger(__name__)


class Unset(Enum):
    """Marker for an update field the caller did not supply."""

    TOKEN = 0


UNSET = Unset.TOKEN


class OwnershipLedger:
    """
    Insertion-ordered map of ownership records.

    Order carries no meaning for correctness; it only keeps snapshots stable
    for display.
    """

    def __init__(self, records: Iterable[OwnershipRecord] = ()) -> None:
        self._records: dict[OwnershipKey, OwnershipRecord] = {}
        for record in records:
            existing = self._records.get(record.key)
            if existing is not None:
                # Collapse duplicate rows so the one-record-per-key invariant holds
                logger.warning("Duplicate ownership rows for %s merged", record.key)
                record = replace(existing, quantity=existing.quantity + record.quantity)
            self._records[record.key] = record

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __iter__(self) -> Iterator[OwnershipRecord]:
        return iter(self._records.values())

    def get(self, key: OwnershipKey) -> OwnershipRecord | None:
        return self._records.get(key)

    def require(self, key: OwnershipKey) -> OwnershipRecord:
        """
        Look up a record by key.

        Raises:
            NotFoundError: If no record holds this key
        """
        record = self._records.get(key)
        if record is None:
            raise NotFoundError(key.card_id, key.parallel, key.condition)
        return record

    def snapshot(self) -> tuple[OwnershipRecord, ...]:
        return tuple(self._records.values())

    def total_quantity(self) -> int:
        return sum(r.quantity for r in self._records.values())

    # --- mutations ---

    def add(
        self,
        key: OwnershipKey,
        quantity: int,
        purchase_price: Decimal | None = None,
        purchase_date: date | None = None,
        details: CardDetails | None = None,
    ) -> OwnershipRecord:
        """
        Create the record, or sum into the existing one.

        Price and date are last-write-wins: they always take the values of
        this call, even when None.
        """
        existing = self._records.get(key)
        if existing is None:
            record = OwnershipRecord(
                card_id=key.card_id,
                parallel=key.parallel,
                condition=key.condition,
                quantity=quantity,
                purchase_price=purchase_price,
                purchase_date=purchase_date,
                details=details,
            )
        else:
            record = replace(
                existing,
                quantity=existing.quantity + quantity,
                purchase_price=purchase_price,
                purchase_date=purchase_date,
                details=details or existing.details,
            )

        self._records[key] = record
        return record

    def update(
        self,
        old_key: OwnershipKey,
        new_key: OwnershipKey,
        quantity: int | None = None,
        purchase_price: Decimal | None = None,
        purchase_date: date | None = None,
    ) -> OwnershipRecord:
        """
        Update the record at `old_key`, re-keying it to `new_key`.

        - Same key: fields replaced in place.
        - New key free: the record moves, keeping its position.
        - New key taken: the source quantity is summed into the destination
          and the source is deleted.

        A supplied quantity replaces the source quantity before any merge.
        Price and date overwrite only when supplied.

        Raises:
            NotFoundError: If `old_key` is absent
        """
        source = self.require(old_key)

        updated = replace(
            source,
            card_id=new_key.card_id,
            parallel=new_key.parallel,
            condition=new_key.condition,
            quantity=quantity if quantity is not None else source.quantity,
            purchase_price=(
                purchase_price if purchase_price is not None else source.purchase_price
            ),
            purchase_date=purchase_date if purchase_date is not None else source.purchase_date,
        )

        if new_key == old_key:
            self._records[old_key] = updated
            return updated

        destination = self._records.get(new_key)
        if destination is None:
            self._records = {
                (new_key if k == old_key else k): (updated if k == old_key else r)
                for k, r in self._records.items()
            }
            return updated

        merged = replace(
            destination,
            quantity=destination.quantity + updated.quantity,
            purchase_price=(
                purchase_price if purchase_price is not None else destination.purchase_price
            ),
            purchase_date=(
                purchase_date if purchase_date is not None else destination.purchase_date
            ),
            details=destination.details or source.details,
        )
        del self._records[old_key]
        self._records[new_key] = merged
        logger.debug("Merged %s into %s", old_key, new_key)
        return merged

    def remove(self, key: OwnershipKey, quantity: int) -> OwnershipRecord | None:
        """
        Subtract `quantity` copies.

        Returns the remaining record, or None when the record was deleted
        because nothing (or less than nothing) remained.

        Raises:
            NotFoundError: If `key` is absent
        """
        record = self.require(key)
        remaining = record.quantity - quantity

        if remaining <= 0:
            del self._records[key]
            return None

        record = replace(record, quantity=remaining)
        self._records[key] = record
        return record
