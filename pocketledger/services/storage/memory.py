"""
In-Memory Storage Implementation

Keeps entries and accounts in dictionaries. Used as the default backend
for local runs and as the base for test doubles.

Models are copied on the way in and out so callers can never mutate
stored state by holding on to a returned object.
"""

from typing import Optional

from pocketledger.errors import NotFoundError
from pocketledger.models.ledger import Account, AccountUpdate, Category, LedgerEntry
from pocketledger.services.storage.interface import (
    AccountStoreInterface,
    CategoryStoreInterface,
    EntryStoreInterface,
    sort_entries,
)


class InMemoryEntryStore(EntryStoreInterface):
    """Entry store backed by a dict keyed by entry id."""
    
    def __init__(self, entries: Optional[list[LedgerEntry]] = None):
        self._entries: dict[str, LedgerEntry] = {}
        for entry in entries or []:
            self._entries[entry.id] = entry.model_copy(deep=True)
    
    async def get_entry(self, entry_id: str) -> Optional[LedgerEntry]:
        entry = self._entries.get(entry_id)
        return entry.model_copy(deep=True) if entry else None
    
    async def put_entry(self, entry: LedgerEntry) -> None:
        self._entries[entry.id] = entry.model_copy(deep=True)
    
    async def delete_entry(self, entry_id: str) -> None:
        self._entries.pop(entry_id, None)
    
    async def put_entries(self, entries: list[LedgerEntry]) -> None:
        # Build first so a bad item leaves the store untouched
        staged = {entry.id: entry.model_copy(deep=True) for entry in entries}
        self._entries.update(staged)
    
    async def list_entries(
        self,
        account_id: Optional[str] = None,
    ) -> list[LedgerEntry]:
        entries = [
            entry.model_copy(deep=True)
            for entry in self._entries.values()
            if account_id is None or entry.account_id == account_id
        ]
        return sort_entries(entries)


class InMemoryAccountStore(AccountStoreInterface):
    """Account store backed by a dict keyed by account id."""
    
    def __init__(self, accounts: Optional[list[Account]] = None):
        self._accounts: dict[str, Account] = {}
        for account in accounts or []:
            self._accounts[account.id] = account.model_copy(deep=True)
    
    async def get_account(self, account_id: str) -> Optional[Account]:
        account = self._accounts.get(account_id)
        return account.model_copy(deep=True) if account else None
    
    async def update_account(self, account_id: str, update: AccountUpdate) -> None:
        account = self._accounts.get(account_id)
        if account is None:
            raise NotFoundError(f"Account not found: {account_id}")
        self._accounts[account_id] = account.model_copy(update=update.changes())
    
    async def put_account(self, account: Account) -> None:
        self._accounts[account.id] = account.model_copy(deep=True)
    
    async def delete_account(self, account_id: str) -> None:
        self._accounts.pop(account_id, None)
    
    async def list_accounts(self) -> list[Account]:
        accounts = [a.model_copy(deep=True) for a in self._accounts.values()]
        accounts.sort(key=lambda a: a.name.lower())
        return accounts


class InMemoryCategoryStore(CategoryStoreInterface):
    """Category store backed by a dict keyed by category id."""
    
    def __init__(self, categories: Optional[list[Category]] = None):
        self._categories: dict[str, Category] = {}
        for category in categories or []:
            self._categories[category.id] = category.model_copy(deep=True)
    
    async def get_category(self, category_id: str) -> Optional[Category]:
        category = self._categories.get(category_id)
        return category.model_copy(deep=True) if category else None
    
    async def put_category(self, category: Category) -> None:
        self._categories[category.id] = category.model_copy(deep=True)
    
    async def delete_category(self, category_id: str) -> None:
        self._categories.pop(category_id, None)
    
    async def list_categories(self) -> list[Category]:
        categories = [c.model_copy(deep=True) for c in self._categories.values()]
        categories.sort(key=lambda c: c.name.lower())
        return categories
