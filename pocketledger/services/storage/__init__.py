"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
An in-memory backend is the default; Google Sheets is the shared backend.
"""

from pocketledger.errors import NotFoundError, StoreError
from pocketledger.services.storage.interface import (
    AccountStoreInterface,
    CategoryStoreInterface,
    ConnectionError,
    EntryStoreInterface,
    sort_entries,
)
from pocketledger.services.storage.memory import (
    InMemoryAccountStore,
    InMemoryCategoryStore,
    InMemoryEntryStore,
)
from pocketledger.services.storage.google_sheets import (
    ACCOUNT_COLUMNS,
    CATEGORY_COLUMNS,
    ENTRY_COLUMNS,
    GoogleSheetsAccountStore,
    GoogleSheetsCategoryStore,
    GoogleSheetsClient,
    GoogleSheetsEntryStore,
)

__all__ = [
    # Interfaces
    "AccountStoreInterface",
    "CategoryStoreInterface",
    "EntryStoreInterface",
    "sort_entries",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StoreError",
    # In-memory implementation
    "InMemoryAccountStore",
    "InMemoryCategoryStore",
    "InMemoryEntryStore",
    # Google Sheets implementation
    "ACCOUNT_COLUMNS",
    "CATEGORY_COLUMNS",
    "ENTRY_COLUMNS",
    "GoogleSheetsAccountStore",
    "GoogleSheetsCategoryStore",
    "GoogleSheetsClient",
    "GoogleSheetsEntryStore",
]
