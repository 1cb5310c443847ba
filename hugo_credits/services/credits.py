"""Credit ledger: per-user balance with a prepend-only transaction log.

Every mutation is a read followed by a full-record overwrite. There is no
locking, so two concurrent writers on the same user can lose an update
(last write wins).
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable

from hugo_credits.core.exceptions import StorageAccessError
from hugo_credits.core.logging import get_logger
from hugo_credits.models.credit_account import CreditAccount, utc_now
from hugo_credits.storage.base import CreditStore

log = get_logger(__name__)

INITIAL_CREDITS = 50


class LedgerOutcome(str, Enum):
    SUCCESS = "success"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    NO_ACCOUNT = "no_account"
    STORAGE_FAILURE = "storage_failure"
    INVALID_INPUT = "invalid_input"


@dataclass(frozen=True)
class LedgerResult:
    outcome: LedgerOutcome
    account: CreditAccount | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is LedgerOutcome.SUCCESS


class CreditLedger:
    def __init__(
        self,
        store: CreditStore,
        initial_credits: int = INITIAL_CREDITS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.initial_credits = initial_credits
        self.clock = clock

    async def get_account(self, user_id: str | None) -> CreditAccount:
        """Return the user's account, creating it with the opening balance on first read.

        Never raises: no user id or a storage failure yields the zero-credit placeholder.
        """
        if not user_id:
            return CreditAccount.placeholder()
        try:
            account = await self.store.get(user_id)
            if account is not None:
                return account
            account = await self.store.create(user_id, CreditAccount.opening(self.initial_credits, self.clock()))
        except StorageAccessError as e:
            log.warning("credits_read_failed", user_id=user_id, error=e.message)
            return CreditAccount.placeholder()
        log.info("credits_account_created", user_id=user_id, credits=account.credits)
        return account

    async def apply(self, user_id: str | None, amount: int, concept: str) -> LedgerResult:
        """Add signed `amount` and prepend a transaction.

        A missing record counts as a zero balance here; it does not get the opening credits.
        """
        if not user_id:
            return LedgerResult(LedgerOutcome.INVALID_INPUT)
        try:
            current = await self.store.get(user_id) or CreditAccount()
            updated = current.with_entry(amount, concept, self.clock())
            await self.store.replace(user_id, updated)
        except StorageAccessError as e:
            log.warning("credits_update_failed", user_id=user_id, amount=amount, error=e.message)
            return LedgerResult(LedgerOutcome.STORAGE_FAILURE)
        log.info(
            "credits_updated",
            user_id=user_id,
            amount=amount,
            concept=concept,
            balance_after=updated.credits,
        )
        return LedgerResult(LedgerOutcome.SUCCESS, updated)

    async def try_deduct(self, user_id: str | None, amount: int, concept: str) -> LedgerResult:
        """Deduct a positive `amount` from an existing account if the balance covers it."""
        if not user_id or amount <= 0:
            return LedgerResult(LedgerOutcome.INVALID_INPUT)
        try:
            current = await self.store.get(user_id)
        except StorageAccessError as e:
            log.warning("credits_deduct_failed", user_id=user_id, amount=amount, error=e.message)
            return LedgerResult(LedgerOutcome.STORAGE_FAILURE)
        if current is None:
            log.info("credits_deduct_rejected", user_id=user_id, amount=amount, reason="no_account")
            return LedgerResult(LedgerOutcome.NO_ACCOUNT)
        if current.credits < amount:
            log.info(
                "credits_deduct_rejected",
                user_id=user_id,
                amount=amount,
                credits=current.credits,
                reason="insufficient_funds",
            )
            return LedgerResult(LedgerOutcome.INSUFFICIENT_FUNDS, current)
        return await self.apply(user_id, -amount, concept)

    async def update_account(self, user_id: str | None, amount: int, concept: str) -> bool:
        return (await self.apply(user_id, amount, concept)).ok

    async def deduct_account(self, user_id: str | None, amount: int, concept: str) -> bool:
        return (await self.try_deduct(user_id, amount, concept)).ok
