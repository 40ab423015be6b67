"""
backend/cleanconnect/ledger/services.py

Ledger Service Layer
Owns every adjustment of a user's escrow balance:
- debit when a booking is requested (conditional on sufficient funds)
- credit when a cleaner is paid out
- refund when a booking is cancelled, declined or expires

Each adjustment is one atomic UPDATE on the user row plus an append-only
LedgerEntry keyed by the logical event, so replaying an event is a no-op.
The ledger never commits; the calling workflow owns the transaction boundary
and any compensation. It only rolls back when a concurrent writer already
applied the same event (ConcurrentUpdateError).
"""

import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cleanconnect.core.exceptions import (
    ConcurrentUpdateError,
    InsufficientFundsError,
    NotFoundError,
    ValidationError,
)
from cleanconnect.database.models import User
from cleanconnect.ledger.models import LedgerEntry, LedgerEntryKind

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Normalize an amount to a 2-decimal Decimal."""
    return Decimal(str(value)).quantize(CENT)


class Ledger:
    """Atomic balance adjustments with per-event idempotency."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _already_applied(self, event_key: str) -> bool:
        existing = await self.db.scalar(
            select(LedgerEntry.id).where(LedgerEntry.event_key == event_key)
        )
        if existing:
            logger.info(f"[LEDGER] Event {event_key} already applied, skipping")
            return True
        return False

    async def get_balance(self, user_id: UUID) -> Decimal:
        balance = await self.db.scalar(select(User.balance).where(User.id == user_id))
        if balance is None:
            raise NotFoundError("User not found")
        return to_money(balance)

    async def _record(
        self,
        user_id: UUID,
        kind: LedgerEntryKind,
        amount: Decimal,
        event_key: str,
        service_id: UUID | None,
    ) -> None:
        """
        Append the entry and flush it with the balance UPDATE.

        A unique violation on event_key means a concurrent writer applied the
        same event between our check and this flush: the whole transaction
        is rolled back, so the balance change above is undone too.
        """
        self.db.add(
            LedgerEntry(
                user_id=user_id,
                service_id=service_id,
                kind=kind,
                amount=amount,
                event_key=event_key,
            )
        )
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            logger.warning(f"[LEDGER] Event {event_key} applied concurrently, rolled back")
            raise ConcurrentUpdateError("This balance change was already applied by another request.")

    # ---------------------------------------------------
    # Debit
    # ---------------------------------------------------
    async def debit(
        self,
        user_id: UUID,
        amount: Decimal,
        event_key: str,
        service_id: UUID | None = None,
    ) -> bool:
        """
        Take `amount` from the user's balance.

        Compare-and-swap on the balance: the UPDATE only matches while
        balance >= amount, so concurrent debits can never drive it negative.

        Returns:
            bool: True if applied, False if `event_key` was already applied.

        Raises:
            ValidationError: amount is not positive.
            InsufficientFundsError: balance lower than amount; nothing written.
            NotFoundError: unknown user.
        """
        amount = to_money(amount)
        if amount <= 0:
            raise ValidationError("Debit amount must be greater than zero")
        if await self._already_applied(event_key):
            return False

        result = await self.db.execute(
            update(User)
            .where(User.id == user_id, User.balance >= amount)
            .values(balance=User.balance - amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            current = await self.get_balance(user_id)
            logger.warning(
                f"[LEDGER] Insufficient funds for user {user_id}: required={amount}, current={current}"
            )
            raise InsufficientFundsError(required=amount, current=current)

        await self._record(user_id, LedgerEntryKind.DEBIT, amount, event_key, service_id)
        logger.info(f"[LEDGER] Debited {amount} from user {user_id} ({event_key})")
        return True

    # ---------------------------------------------------
    # Credit / Refund
    # ---------------------------------------------------
    async def _increment(
        self,
        kind: LedgerEntryKind,
        user_id: UUID,
        amount: Decimal,
        event_key: str,
        service_id: UUID | None,
    ) -> bool:
        amount = to_money(amount)
        if amount <= 0:
            raise ValidationError(f"{kind.value.capitalize()} amount must be greater than zero")
        if await self._already_applied(event_key):
            return False

        result = await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(balance=User.balance + amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise NotFoundError("User not found")

        await self._record(user_id, kind, amount, event_key, service_id)
        logger.info(f"[LEDGER] {kind.value} of {amount} to user {user_id} ({event_key})")
        return True

    async def credit(
        self,
        user_id: UUID,
        amount: Decimal,
        event_key: str,
        service_id: UUID | None = None,
    ) -> bool:
        """Add `amount` to the user's balance (payouts and compensation)."""
        return await self._increment(LedgerEntryKind.CREDIT, user_id, amount, event_key, service_id)

    async def refund(
        self,
        user_id: UUID,
        amount: Decimal,
        event_key: str,
        service_id: UUID | None = None,
    ) -> bool:
        """Return `amount` to a requesting user's balance."""
        return await self._increment(LedgerEntryKind.REFUND, user_id, amount, event_key, service_id)
