"""
Tests for the balance adjustment primitives.
"""

import asyncio
from datetime import date, datetime, timezone

import pytest

from pocketledger.errors import ConsistencyError
from pocketledger.models.ledger import LedgerEntry
from pocketledger.reconciliation import (
    BalanceAdjuster,
    advance_watermark,
    aggregate_delta,
    entry_delta,
    latest_date,
)
from tests.conftest import ACCOUNT_ID


def entry(kind: str, amount: int, day: int = 1) -> LedgerEntry:
    return LedgerEntry(
        account_id=ACCOUNT_ID,
        kind=kind,
        amount_cents=amount,
        entry_date=date(2024, 1, day),
        title="Entry",
    )


@pytest.fixture
def adjuster(account_store, reconciliation_settings):
    return BalanceAdjuster(account_store, reconciliation_settings)


class TestDeltas:

    def test_entry_delta(self):
        assert entry_delta(entry("debit", 500), entry("debit", 700)) == -200
        assert entry_delta(entry("debit", 500), entry("credit", 500)) == 1000
        assert entry_delta(entry("credit", 300), entry("credit", 300)) == 0

    def test_aggregate_delta(self):
        entries = [entry("credit", 200), entry("debit", 50), entry("debit", 30)]
        assert aggregate_delta(entries) == 120
        assert aggregate_delta([]) == 0

    def test_latest_date(self):
        entries = [entry("credit", 1, day=3), entry("credit", 1, day=9), entry("credit", 1, day=5)]
        assert latest_date(entries) == date(2024, 1, 9)
        assert latest_date([]) is None


class TestAdvanceWatermark:

    def test_unset_watermark_advances(self):
        assert advance_watermark(None, date(2024, 1, 10)) == datetime(2024, 1, 10, tzinfo=timezone.utc)

    def test_later_date_advances(self):
        current = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert advance_watermark(current, date(2024, 1, 10)) == datetime(2024, 1, 10, tzinfo=timezone.utc)

    def test_earlier_date_keeps_current(self):
        current = datetime(2024, 1, 10, tzinfo=timezone.utc)
        assert advance_watermark(current, date(2024, 1, 2)) == current

    def test_same_day_later_time_keeps_current(self):
        """A watermark set during a day is not earlier than that day's start."""
        current = datetime(2024, 1, 10, 15, 30, tzinfo=timezone.utc)
        assert advance_watermark(current, date(2024, 1, 10)) == current

    def test_no_date_keeps_current(self):
        current = datetime(2024, 1, 10, tzinfo=timezone.utc)
        assert advance_watermark(current, None) == current
        assert advance_watermark(None, None) is None


class TestBalanceAdjuster:

    @pytest.mark.asyncio
    async def test_apply(self, adjuster, account_store):
        account = await adjuster.apply(ACCOUNT_ID, -250, date(2024, 1, 4), ["e-1"])

        assert account.balance_cents == 9750
        stored = await account_store.get_account(ACCOUNT_ID)
        assert stored.balance_cents == 9750
        assert stored.watermark == datetime(2024, 1, 4, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_retries_store_failures(self, adjuster, account_store):
        account_store.fail_updates = 1

        await adjuster.apply(ACCOUNT_ID, 100, None, ["e-1"])

        assert len(account_store.update_attempts) == 2
        assert (await account_store.get_account(ACCOUNT_ID)).balance_cents == 10100

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_consistency_error(self, adjuster, account_store):
        account_store.fail_updates = 5

        with pytest.raises(ConsistencyError) as exc_info:
            await adjuster.apply(ACCOUNT_ID, 100, date(2024, 1, 4), ["e-1", "e-2"])

        error = exc_info.value
        assert error.account_id == ACCOUNT_ID
        assert error.delta_cents == 100
        assert error.entry_ids == ["e-1", "e-2"]
        assert error.advance_to == date(2024, 1, 4)
        # attempts configured in conftest
        assert len(account_store.update_attempts) == 2
        assert (await account_store.get_account(ACCOUNT_ID)).balance_cents == 10000

    @pytest.mark.asyncio
    async def test_missing_account_is_consistency_error(self, adjuster, account_store):
        await account_store.delete_account(ACCOUNT_ID)

        with pytest.raises(ConsistencyError):
            await adjuster.apply(ACCOUNT_ID, 100, None, ["e-1"])

    @pytest.mark.asyncio
    async def test_missing_account_tolerated_when_allowed(self, adjuster, account_store):
        await account_store.delete_account(ACCOUNT_ID)

        assert await adjuster.apply(ACCOUNT_ID, 100, None, ["e-1"], missing_ok=True) is None

    @pytest.mark.asyncio
    async def test_concurrent_adjustments_do_not_lose_updates(self, adjuster, account_store):
        await asyncio.gather(*[
            adjuster.apply(ACCOUNT_ID, 10, None, [f"e-{i}"]) for i in range(20)
        ])

        assert (await account_store.get_account(ACCOUNT_ID)).balance_cents == 10200

    @pytest.mark.asyncio
    async def test_locks_released_after_adjustments(self, adjuster, account_store):
        await adjuster.apply(ACCOUNT_ID, 10, None, ["e-1"])
        await asyncio.gather(*[
            adjuster.apply(ACCOUNT_ID, 10, None, [f"e-{i}"]) for i in range(5)
        ])
        account_store.fail_updates = 5
        with pytest.raises(ConsistencyError):
            await adjuster.apply(ACCOUNT_ID, 10, None, ["e-9"])
        with pytest.raises(ConsistencyError):
            await adjuster.apply("acc-gone", 10, None, ["e-10"])

        assert adjuster._locks == {}
        assert not adjuster._lock_users
