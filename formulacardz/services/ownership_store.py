"""
Ownership store.

Keeps the signed-in user's ownership records consistent with the remote
service. Every mutation follows the same order:

1. Require an active session (AuthError otherwise)
2. Validate input and check the local ledger (ValidationError / NotFoundError)
3. Call the remote service (NetworkError on failure, local state untouched)
4. Apply the change to the local ledger

Writes for one user are serialized through a per-user asyncio.Lock, so two
mutations of the same key never interleave between steps 2 and 4.

Each user has their own ledger. A mutation binds to its user's ledger
before the remote call, so a write still in flight when the user signs out
never lands in the next user's records.
"""

import asyncio
import logging
from datetime import date
from decimal import Decimal, InvalidOperation

from formulacardz.client.formula_api import FormulaCardzClient
from formulacardz.client.schemas import (
    AddCardToCollectionRequest,
    RemoveCardFromCollectionRequest,
    UpdateCardInCollectionRequest,
)
from formulacardz.models.failure import ValidationError
from formulacardz.models.ledger import UNSET, OwnershipLedger, Unset
from formulacardz.models.ownership import CardDetails, OwnershipKey, OwnershipRecord
from formulacardz.services.session_store import SessionStore
from formulacardz.services.validation import (
    normalize_parallel,
    validate_card_id,
    validate_condition,
    validate_quantity,
)

logger = logging.getLogger(__name__)

Money = Decimal | int | float | str


def to_money(value: Money | None) -> Decimal | None:
    """Coerce a price to Decimal, rejecting negatives and garbage."""
    if value is None:
        return None
    try:
        # str() first so 0.1 stays 0.1 instead of its binary expansion
        amount = Decimal(str(value))
    except InvalidOperation as e:
        raise ValidationError("purchase_price", "Please enter a valid price") from e
    if not amount.is_finite() or amount < 0:
        raise ValidationError("purchase_price", "Please enter a valid price")
    return amount


class OwnershipStore:
    """The current user's collection, gated on SessionStore."""

    def __init__(self, client: FormulaCardzClient, sessions: SessionStore) -> None:
        self._client = client
        self._sessions = sessions
        self._ledgers: dict[str, OwnershipLedger] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        return lock

    def _ledger_for(self, user_id: str) -> OwnershipLedger:
        ledger = self._ledgers.get(user_id)
        if ledger is None:
            ledger = self._ledgers[user_id] = OwnershipLedger()
        return ledger

    def _current_ledger(self) -> OwnershipLedger | None:
        current = self._sessions.current
        return self._ledgers.get(current.user_id) if current is not None else None

    def snapshot(self) -> tuple[OwnershipRecord, ...]:
        """Records of the signed-in user; empty when nobody is signed in."""
        ledger = self._current_ledger()
        return ledger.snapshot() if ledger is not None else ()

    def get(self, card_id: str, parallel: str | None, condition: str) -> OwnershipRecord | None:
        ledger = self._current_ledger()
        if ledger is None:
            return None
        return ledger.get(OwnershipKey(card_id, normalize_parallel(parallel), condition))

    def clear(self) -> None:
        """Drop all local records, e.g. after logout."""
        self._ledgers = {}

    async def load(self) -> tuple[OwnershipRecord, ...]:
        """
        Replace local records with the service's copy.

        Raises:
            AuthError: If nobody is signed in
            NetworkError: If the collection cannot be fetched or is malformed
        """
        session = self._sessions.require()
        async with self._lock_for(session.user_id):
            rows = await self._client.get_collection(session.user_id)
            ledger = self._ledgers[session.user_id] = OwnershipLedger(
                row.to_record() for row in rows
            )

        logger.info("Loaded %d ownership records for user %s", len(ledger), session.user_id)
        return ledger.snapshot()

    async def add(
        self,
        card_id: str,
        parallel: str | None,
        condition: str,
        quantity: int = 1,
        purchase_price: Money | None = None,
        purchase_date: date | None = None,
        details: CardDetails | None = None,
    ) -> OwnershipRecord:
        """
        Add copies of a card variant.

        An existing record at the same key has the quantity summed and its
        price and date overwritten by this call's values.

        Raises:
            AuthError: If nobody is signed in
            ValidationError: If quantity < 1 or the card/condition is blank
            NetworkError: If the service rejects the write
        """
        session = self._sessions.require()
        key = OwnershipKey(
            validate_card_id(card_id), normalize_parallel(parallel), validate_condition(condition)
        )
        quantity = validate_quantity(quantity)
        price = to_money(purchase_price)

        async with self._lock_for(session.user_id):
            ledger = self._ledger_for(session.user_id)
            await self._client.add_card_to_collection(
                AddCardToCollectionRequest(
                    user_id=session.user_id,
                    card_id=key.card_id,
                    quantity=quantity,
                    parallel=key.parallel,
                    purchase_price=price,
                    purchase_date=purchase_date,
                    condition=key.condition,
                )
            )
            record = ledger.add(key, quantity, price, purchase_date, details)

        logger.info("Added %d x %s (now %d)", quantity, key, record.quantity)
        return record

    async def update(
        self,
        card_id: str,
        old_parallel: str | None,
        old_condition: str,
        quantity: int | None = None,
        parallel: str | None | Unset = UNSET,
        condition: str | None = None,
        purchase_price: Money | None = None,
        purchase_date: date | None = None,
    ) -> OwnershipRecord:
        """
        Update the record at (card_id, old_parallel, old_condition).

        `parallel` and `condition` default to the old values; pass
        `parallel=None` to move the record to the base card. If the
        resulting key already holds a record, the two are merged into it.

        Raises:
            AuthError: If nobody is signed in
            ValidationError: If a supplied quantity is < 1
            NotFoundError: If the old key is not in the collection
            NetworkError: If the service rejects the write
        """
        session = self._sessions.require()
        old_key = OwnershipKey(
            validate_card_id(card_id),
            normalize_parallel(old_parallel),
            validate_condition(old_condition, "old_condition"),
        )
        new_key = OwnershipKey(
            old_key.card_id,
            old_key.parallel if isinstance(parallel, Unset) else normalize_parallel(parallel),
            old_key.condition if condition is None else validate_condition(condition),
        )
        if quantity is not None:
            quantity = validate_quantity(quantity)
        price = to_money(purchase_price)

        async with self._lock_for(session.user_id):
            ledger = self._ledger_for(session.user_id)
            ledger.require(old_key)

            await self._client.update_card_in_collection(
                UpdateCardInCollectionRequest(
                    user_id=session.user_id,
                    card_id=old_key.card_id,
                    old_parallel=old_key.parallel,
                    old_condition=old_key.condition,
                    quantity=quantity,
                    parallel=new_key.parallel,
                    purchase_price=price,
                    purchase_date=purchase_date,
                    condition=new_key.condition,
                )
            )
            merging = old_key != new_key and new_key in ledger
            record = ledger.update(old_key, new_key, quantity, price, purchase_date)

        if merging:
            logger.info("Merged %s into %s (now %d)", old_key, new_key, record.quantity)
        else:
            logger.info("Updated %s -> %s", old_key, new_key)
        return record

    async def remove(
        self,
        card_id: str,
        parallel: str | None,
        condition: str,
        quantity: int | None = None,
    ) -> OwnershipRecord | None:
        """
        Remove copies of a card variant.

        `quantity=None` removes every owned copy. Returns the remaining
        record, or None if the record was deleted.

        Raises:
            AuthError: If nobody is signed in
            ValidationError: If quantity < 1 or exceeds the owned quantity
            NotFoundError: If the key is not in the collection
            NetworkError: If the service rejects the write
        """
        session = self._sessions.require()
        key = OwnershipKey(
            validate_card_id(card_id), normalize_parallel(parallel), validate_condition(condition)
        )
        if quantity is not None:
            quantity = validate_quantity(quantity)

        async with self._lock_for(session.user_id):
            ledger = self._ledger_for(session.user_id)
            owned = ledger.require(key).quantity
            if quantity is None:
                quantity = owned
            if quantity > owned:
                raise ValidationError(
                    "quantity", f"You only own {owned} of this card and cannot remove {quantity}"
                )

            await self._client.remove_card_from_collection(
                RemoveCardFromCollectionRequest(
                    user_id=session.user_id,
                    card_id=key.card_id,
                    quantity_to_subtract=quantity,
                    parallel=key.parallel,
                    condition=key.condition,
                )
            )
            record = ledger.remove(key, quantity)

        if record is None:
            logger.info("Removed %s from collection", key)
        else:
            logger.info("Removed %d x %s (now %d)", quantity, key, record.quantity)
        return record

