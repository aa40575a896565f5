"""
Shared fixtures.

Stores are the in-memory backend wrapped in recording doubles, so tests
can count account writes and make either store fail on demand. No test
talks to a real backend.
"""

from datetime import date, datetime, timezone
from typing import Optional

import pytest

from pocketledger.accounts import AccountService
from pocketledger.config import ReconciliationSettings
from pocketledger.errors import StoreError
from pocketledger.models.ledger import Account, AccountUpdate, LedgerEntry
from pocketledger.reconciliation import LedgerEngine
from pocketledger.services.storage import InMemoryAccountStore, InMemoryEntryStore
from pocketledger.status import StatusHistory, StatusRelay


class RecordingEntryStore(InMemoryEntryStore):
    """Entry store that records writes and can be told to fail them."""
    
    def __init__(self, entries: Optional[list[LedgerEntry]] = None):
        super().__init__(entries)
        self.writes: list[str] = []
        self.fail_writes = False
    
    def _record(self, operation: str) -> None:
        self.writes.append(operation)
        if self.fail_writes:
            raise StoreError("entries sheet unavailable")
    
    async def put_entry(self, entry):
        self._record("put_entry")
        await super().put_entry(entry)
    
    async def put_entries(self, entries):
        self._record("put_entries")
        await super().put_entries(entries)
    
    async def delete_entry(self, entry_id):
        self._record("delete_entry")
        await super().delete_entry(entry_id)


class RecordingAccountStore(InMemoryAccountStore):
    """Account store that records update attempts and can fail the next N."""
    
    def __init__(self, accounts: Optional[list[Account]] = None):
        super().__init__(accounts)
        self.update_attempts: list[tuple[str, AccountUpdate]] = []
        self.fail_updates = 0
    
    async def update_account(self, account_id, update):
        self.update_attempts.append((account_id, update))
        if self.fail_updates:
            self.fail_updates -= 1
            raise StoreError("accounts sheet unavailable")
        await super().update_account(account_id, update)


ACCOUNT_ID = "acc-checking"


@pytest.fixture
def reconciliation_settings():
    return ReconciliationSettings(
        adjustment_attempts=2,
        adjustment_backoff_min_seconds=0,
        adjustment_backoff_max_seconds=0,
        max_batch_size=5,
    )


@pytest.fixture
def account():
    return Account(
        id=ACCOUNT_ID,
        name="Checking",
        balance_cents=10000,
        watermark=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def entry_store():
    return RecordingEntryStore()


@pytest.fixture
def account_store(account):
    return RecordingAccountStore([account])


@pytest.fixture
def history():
    return StatusHistory()


@pytest.fixture
def relay(history):
    return StatusRelay(subscribers=[history])


@pytest.fixture
def engine(entry_store, account_store, relay, reconciliation_settings):
    return LedgerEngine(
        entry_store=entry_store,
        account_store=account_store,
        status_relay=relay,
        settings=reconciliation_settings,
    )


@pytest.fixture
def account_service(account_store, relay):
    return AccountService(account_store=account_store, status_relay=relay)


def make_draft(**overrides) -> dict:
    draft = {
        "account_id": ACCOUNT_ID,
        "kind": "debit",
        "amount_cents": 500,
        "entry_date": date(2024, 1, 10),
        "title": "Groceries",
    }
    draft.update(overrides)
    return draft
