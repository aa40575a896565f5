"""
Tests for application wiring and settings.
"""

from datetime import date
from unittest.mock import patch

import pytest

from pocketledger import orchestrator
from pocketledger.config import (
    AppSettings,
    ReconciliationSettings,
    Settings,
    get_settings,
    validate_all_settings,
)
from pocketledger.errors import ValidationError
from pocketledger.models.ledger import Account
from pocketledger.models.status import StatusAction, StatusEventBuilder, StatusScope
from pocketledger.services.storage import (
    ConnectionError,
    InMemoryAccountStore,
    InMemoryCategoryStore,
    InMemoryEntryStore,
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    for name in ("STORAGE_BACKEND", "STATUS_HISTORY_SIZE", "RECONCILIATION_MAX_BATCH_SIZE"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:

    def test_defaults(self):
        app = AppSettings()
        assert app.storage_backend == "memory"
        assert ReconciliationSettings().adjustment_attempts == 3

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("RECONCILIATION_MAX_BATCH_SIZE", "25")
        assert get_settings().reconciliation.max_batch_size == 25

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValueError):
            AppSettings(storage_backend="postgres")

    def test_backoff_bounds(self):
        with pytest.raises(ValueError):
            ReconciliationSettings(
                adjustment_backoff_min_seconds=3,
                adjustment_backoff_max_seconds=1,
            )

    def test_validate_all_settings_memory_backend(self):
        results = validate_all_settings()
        assert results["app"] is True
        assert results["reconciliation"] is True
        assert "google_sheets" not in results


class TestCreateStores:

    def test_memory_backend(self):
        entries, accounts, categories = orchestrator.create_stores(Settings())
        assert isinstance(entries, InMemoryEntryStore)
        assert isinstance(accounts, InMemoryAccountStore)
        assert isinstance(categories, InMemoryCategoryStore)

    def test_unreachable_sheets_raise(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "google_sheets")
        monkeypatch.setenv("GOOGLE_SHEETS_CREDENTIALS_PATH", __file__)
        monkeypatch.setenv("GOOGLE_SHEETS_SPREADSHEET_ID", "sheet-123")
        with patch.object(orchestrator, "GoogleSheetsClient") as client_cls:
            client_cls.return_value.get_spreadsheet.side_effect = ConnectionError("offline")
            with pytest.raises(ConnectionError):
                orchestrator.create_stores(Settings())


class TestCreateAppComponents:

    @pytest.mark.asyncio
    async def test_engine_and_service_share_relay(self):
        engine, account_service, _, history = orchestrator.create_app_components(Settings())

        created = await account_service.save_account({"name": "Cash", "balance_cents": 1000})
        await engine.create_entry({
            "account_id": created.id,
            "kind": "expense",
            "amount_cents": 400,
            "entry_date": date(2024, 5, 1),
            "title": "Taxi",
        })

        assert (await account_service.get_account(created.id)).balance_cents == 600
        assert len(history) == 2
        assert engine.status_relay is not None

    @pytest.mark.asyncio
    async def test_injected_stores(self):
        accounts = InMemoryAccountStore([Account(id="acc-1", name="Cash")])
        engine, account_service, _, _ = orchestrator.create_app_components(
            Settings(),
            entry_store=InMemoryEntryStore(),
            account_store=accounts,
        )

        assert [a.id for a in await account_service.list_accounts()] == ["acc-1"]

    def test_history_size_from_settings(self, monkeypatch):
        monkeypatch.setenv("STATUS_HISTORY_SIZE", "3")
        _, _, _, history = orchestrator.create_app_components(Settings())

        for _ in range(5):
            history(StatusEventBuilder.success(StatusScope.ENTRIES, StatusAction.CREATE, "Entry created"))
        assert len(history) == 3

    @pytest.mark.asyncio
    async def test_imports_checked_against_shared_categories(self):
        engine, account_service, category_service, _ = orchestrator.create_app_components(Settings())
        account = await account_service.save_account({"name": "Cash"})
        category = await category_service.save_category({"name": "Transport"})
        item = {"kind": "debit", "amount_cents": 250, "entry_date": date(2024, 5, 2), "title": "Bus"}

        result = await engine.import_batch(account.id, [dict(item, category_id=category.id)])
        assert result.count == 1

        with pytest.raises(ValidationError):
            await engine.import_batch(account.id, [dict(item, category_id="cat-unknown")])
