"""Unit tests for the credit ledger (in-memory store)."""

import asyncio

import pytest

from hugo_credits.core.exceptions import StorageAccessError
from hugo_credits.models.credit_account import CreditAccount
from hugo_credits.services.credits import CreditLedger, LedgerOutcome
from hugo_credits.storage.memory import InMemoryCreditStore

pytestmark = pytest.mark.asyncio


class FailingStore(InMemoryCreditStore):
    """Raises StorageAccessError on the operations named in `fail_on`."""

    def __init__(self, *fail_on: str) -> None:
        super().__init__()
        self.fail_on = set(fail_on)

    async def get(self, user_id):
        if "get" in self.fail_on:
            raise StorageAccessError("connection refused")
        return await super().get(user_id)

    async def create(self, user_id, account):
        if "create" in self.fail_on:
            raise StorageAccessError("connection refused")
        return await super().create(user_id, account)

    async def replace(self, user_id, account):
        if "replace" in self.fail_on:
            raise StorageAccessError("connection refused")
        await super().replace(user_id, account)


class YieldingStore(InMemoryCreditStore):
    """Suspends on every read and write, like a network round-trip."""

    async def get(self, user_id):
        await asyncio.sleep(0)
        return await super().get(user_id)

    async def replace(self, user_id, account):
        await asyncio.sleep(0)
        await super().replace(user_id, account)


async def test_get_account_opens_new_account(ledger, store):
    account = await ledger.get_account("user-1")
    assert account.credits == 50
    assert account.transactions == []
    assert account.last_updated is not None
    assert store.records["user-1"]["credits"] == 50

    again = await ledger.get_account("user-1")
    assert again == account


async def test_get_account_empty_user_id_returns_placeholder(ledger, store):
    account = await ledger.get_account("")
    assert account.credits == 0
    assert account.transactions == []
    assert store.records == {}

    assert (await ledger.get_account(None)).credits == 0


async def test_get_account_returns_existing_record(ledger, store):
    await store.replace("user-1", CreditAccount(credits=7))
    account = await ledger.get_account("user-1")
    assert account.credits == 7


async def test_get_account_initial_credits_configurable(store, clock):
    ledger = CreditLedger(store, initial_credits=10, clock=clock)
    assert (await ledger.get_account("user-1")).credits == 10


async def test_get_account_does_not_overwrite_record_created_meanwhile(store):
    existing = CreditAccount(credits=3)

    class RacingStore(InMemoryCreditStore):
        async def get(self, user_id):
            # another writer creates the record right after our read
            await store.replace(user_id, existing)
            return None

        async def create(self, user_id, account):
            return await store.create(user_id, account)

    racing = CreditLedger(RacingStore())
    account = await racing.get_account("user-1")
    assert account.credits == 3
    assert store.records["user-1"]["credits"] == 3


async def test_get_account_storage_failure_returns_placeholder(clock):
    ledger = CreditLedger(FailingStore("get"), clock=clock)
    account = await ledger.get_account("user-1")
    assert account.credits == 0


async def test_get_account_failed_create_returns_placeholder_and_retry_creates_once(clock):
    store = FailingStore("create")
    ledger = CreditLedger(store, clock=clock)
    assert (await ledger.get_account("user-1")).credits == 0
    assert store.records == {}

    store.fail_on.clear()
    assert (await ledger.get_account("user-1")).credits == 50
    assert (await ledger.get_account("user-1")).credits == 50
    assert list(store.records) == ["user-1"]


async def test_update_account_prepends_transaction(ledger, store):
    await ledger.get_account("user-1")
    assert await ledger.update_account("user-1", 10, "bonus") is True

    account = await store.get("user-1")
    assert account.credits == 60
    tx = account.transactions[0]
    assert tx.amount == 10
    assert tx.balance_after == 60
    assert tx.concept == "bonus"

    assert await ledger.update_account("user-1", -5, "coffee") is True
    account = await store.get("user-1")
    assert [t.concept for t in account.transactions] == ["coffee", "bonus"]
    assert account.transactions[0].balance_after == 55


async def test_update_account_missing_record_starts_from_zero(ledger, store):
    assert await ledger.update_account("user-2", 10, "bonus") is True
    account = await store.get("user-2")
    assert account.credits == 10
    assert len(account.transactions) == 1


async def test_update_account_record_with_null_fields(ledger, store):
    store.records["user-3"] = {"credits": None, "transactions": None}
    assert await ledger.update_account("user-3", 10, "bonus") is True
    account = await store.get("user-3")
    assert account.credits == 10
    assert [t.balance_after for t in account.transactions] == [10]
    assert (await ledger.get_account("user-3")).credits == 10


async def test_update_account_can_go_negative(ledger, store):
    await ledger.get_account("user-1")
    assert await ledger.update_account("user-1", -80, "correction") is True
    assert (await store.get("user-1")).credits == -30


async def test_update_account_empty_user_id(ledger, store):
    assert await ledger.update_account("", 10, "bonus") is False
    result = await ledger.apply("", 10, "bonus")
    assert result.outcome is LedgerOutcome.INVALID_INPUT
    assert store.records == {}


async def test_update_account_storage_failure(clock):
    for failing in ("get", "replace"):
        ledger = CreditLedger(FailingStore(failing), clock=clock)
        assert await ledger.update_account("user-1", 10, "bonus") is False
        result = await ledger.apply("user-1", 10, "bonus")
        assert result.outcome is LedgerOutcome.STORAGE_FAILURE


async def test_transaction_id_and_date_from_clock(ledger, store, clock):
    expected = clock.now
    await ledger.update_account("user-1", 1, "tip")
    tx = (await store.get("user-1")).transactions[0]
    assert tx.date == expected
    assert tx.id == str(int(expected.timestamp() * 1000))


async def test_deduct_account_success(ledger, store):
    await ledger.get_account("user-1")
    await ledger.update_account("user-1", 10, "bonus")
    assert await ledger.deduct_account("user-1", 20, "purchase") is True

    account = await store.get("user-1")
    assert account.credits == 40
    assert account.transactions[0].amount == -20
    assert account.transactions[0].balance_after == 40


async def test_deduct_account_exact_balance(ledger, store):
    await ledger.get_account("user-1")
    assert await ledger.deduct_account("user-1", 50, "all in") is True
    assert (await store.get("user-1")).credits == 0


async def test_deduct_account_insufficient_funds_leaves_record(ledger, store):
    await ledger.get_account("user-1")
    before = dict(store.records["user-1"])

    assert await ledger.deduct_account("user-1", 1000, "purchase") is False
    result = await ledger.try_deduct("user-1", 1000, "purchase")
    assert result.outcome is LedgerOutcome.INSUFFICIENT_FUNDS
    assert result.account.credits == 50
    assert store.records["user-1"] == before


async def test_deduct_account_without_record_does_not_create(ledger, store):
    assert await ledger.deduct_account("new-user", 5, "x") is False
    result = await ledger.try_deduct("new-user", 5, "x")
    assert result.outcome is LedgerOutcome.NO_ACCOUNT
    assert store.records == {}


async def test_deduct_account_rejects_non_positive_amount(ledger, store):
    await ledger.get_account("user-1")
    for amount in (0, -10):
        result = await ledger.try_deduct("user-1", amount, "refund?")
        assert result.outcome is LedgerOutcome.INVALID_INPUT
    assert (await store.get("user-1")).credits == 50


async def test_deduct_account_storage_failure(clock):
    store = FailingStore()
    ledger = CreditLedger(store, clock=clock)
    await ledger.get_account("user-1")

    store.fail_on.add("get")
    assert await ledger.deduct_account("user-1", 5, "x") is False
    store.fail_on = {"replace"}
    result = await ledger.try_deduct("user-1", 5, "x")
    assert result.outcome is LedgerOutcome.STORAGE_FAILURE


async def test_sequential_updates_accumulate(ledger, store):
    await ledger.get_account("user-1")
    amounts = [5, -3, 12, -20, 7]
    for i, amount in enumerate(amounts):
        assert await ledger.update_account("user-1", amount, f"op-{i}")

    account = await store.get("user-1")
    assert account.credits == 50 + sum(amounts)
    assert len(account.transactions) == len(amounts)
    assert [t.concept for t in account.transactions] == [f"op-{i}" for i in reversed(range(len(amounts)))]
    dates = [t.date for t in account.transactions]
    assert dates == sorted(dates, reverse=True)
    assert account.transactions[0].balance_after == account.credits


async def test_concurrent_updates_lose_one_write(clock):
    store = YieldingStore()
    ledger = CreditLedger(store, clock=clock)
    await ledger.get_account("user-1")

    results = await asyncio.gather(
        ledger.update_account("user-1", 10, "a"),
        ledger.update_account("user-1", -5, "b"),
    )
    assert results == [True, True]

    account = await store.get("user-1")
    assert account.credits in (60, 45)
    assert len(account.transactions) == 1
