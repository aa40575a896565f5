"""
Application wiring for Pocket Ledger

Builds the stores, the status relay, the reconciliation engine and the
account and category services from settings, so callers (a UI, a script,
a test) get one consistent set of components.

DESIGN DECISION: Engine and services share one relay and one set of
stores. Subscribers registered on the relay see every status event.
The engine gets the category store too, so imports can only file
entries under categories that exist.
"""

from typing import Optional

import structlog

from pocketledger.accounts import AccountService
from pocketledger.categories import CategoryService
from pocketledger.config import Settings, get_settings
from pocketledger.reconciliation import LedgerEngine
from pocketledger.services.storage import (
    AccountStoreInterface,
    CategoryStoreInterface,
    EntryStoreInterface,
    GoogleSheetsAccountStore,
    GoogleSheetsCategoryStore,
    GoogleSheetsClient,
    GoogleSheetsEntryStore,
    InMemoryAccountStore,
    InMemoryCategoryStore,
    InMemoryEntryStore,
)
from pocketledger.status import StatusHistory, StatusRelay


logger = structlog.get_logger("pocketledger.orchestrator")


def create_stores(
    settings: Optional[Settings] = None,
) -> tuple[EntryStoreInterface, AccountStoreInterface, CategoryStoreInterface]:
    """
    Create the entry, account and category stores for the configured backend.
    
    Raises:
        ConnectionError: If Google Sheets is selected but unreachable
    """
    settings = settings or get_settings()
    backend = settings.app.storage_backend
    
    if backend == "google_sheets":
        try:
            sheets_client = GoogleSheetsClient(settings.google_sheets)
            sheets_client.get_spreadsheet()
        except Exception as e:
            # No silent fallback to memory: entries would be lost on exit
            logger.error("storage_unavailable", backend=backend, error=str(e))
            raise
        return (
            GoogleSheetsEntryStore(sheets_client),
            GoogleSheetsAccountStore(sheets_client),
            GoogleSheetsCategoryStore(sheets_client),
        )
    
    return InMemoryEntryStore(), InMemoryAccountStore(), InMemoryCategoryStore()


def create_app_components(
    settings: Optional[Settings] = None,
    entry_store: Optional[EntryStoreInterface] = None,
    account_store: Optional[AccountStoreInterface] = None,
    category_store: Optional[CategoryStoreInterface] = None,
) -> tuple[LedgerEngine, AccountService, CategoryService, StatusHistory]:
    """
    Factory function to create all application components.
    
    Args:
        settings: Settings to use; defaults to the cached environment settings
        entry_store: Use this entry store instead of the configured backend
        account_store: Use this account store instead of the configured backend
        category_store: Use this category store instead of the configured backend
        
    Returns:
        (ledger_engine, account_service, category_service, status_history)
    """
    settings = settings or get_settings()
    
    if entry_store is None or account_store is None or category_store is None:
        default_entries, default_accounts, default_categories = create_stores(settings)
        if entry_store is None:
            entry_store = default_entries
        if account_store is None:
            account_store = default_accounts
        if category_store is None:
            category_store = default_categories
    
    history = StatusHistory(maxlen=settings.app.status_history_size)
    relay = StatusRelay(subscribers=[history])
    
    engine = LedgerEngine(
        entry_store=entry_store,
        account_store=account_store,
        status_relay=relay,
        settings=settings.reconciliation,
        category_store=category_store,
    )
    account_service = AccountService(
        account_store=account_store,
        status_relay=relay,
    )
    category_service = CategoryService(
        category_store=category_store,
        status_relay=relay,
    )
    
    return engine, account_service, category_service, history
