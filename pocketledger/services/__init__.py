"""Services package."""

from pocketledger.services.storage import (
    AccountStoreInterface,
    CategoryStoreInterface,
    ConnectionError,
    EntryStoreInterface,
    GoogleSheetsAccountStore,
    GoogleSheetsCategoryStore,
    GoogleSheetsClient,
    GoogleSheetsEntryStore,
    InMemoryAccountStore,
    InMemoryCategoryStore,
    InMemoryEntryStore,
    NotFoundError,
    StoreError,
)

__all__ = [
    "AccountStoreInterface",
    "CategoryStoreInterface",
    "ConnectionError",
    "EntryStoreInterface",
    "GoogleSheetsAccountStore",
    "GoogleSheetsCategoryStore",
    "GoogleSheetsClient",
    "GoogleSheetsEntryStore",
    "InMemoryAccountStore",
    "InMemoryCategoryStore",
    "InMemoryEntryStore",
    "NotFoundError",
    "StoreError",
]
