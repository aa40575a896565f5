"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep the reconciliation logic decoupled from storage

The two stores are independent: nothing here offers a
transaction spanning an entry write and an account write. The
reconciliation engine is written with that in mind.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pocketledger.errors import StoreError
from pocketledger.models.ledger import Account, AccountUpdate, Category, LedgerEntry


def sort_entries(entries: list[LedgerEntry]) -> list[LedgerEntry]:
    """Conventional listing order: newest date first, then newest created."""
    return sorted(
        entries,
        key=lambda e: (e.entry_date, e.created_at),
        reverse=True,
    )


class EntryStoreInterface(ABC):
    """
    Abstract interface for ledger entry storage.
    
    Each call is assumed strongly consistent on its own.
    """
    
    @abstractmethod
    async def get_entry(self, entry_id: str) -> Optional[LedgerEntry]:
        """
        Retrieve an entry by its ID.
        
        Returns:
            The entry if found, None otherwise
            
        Raises:
            StoreError: If the read fails
        """
        pass
    
    @abstractmethod
    async def put_entry(self, entry: LedgerEntry) -> None:
        """
        Insert or replace an entry (keyed by id).
        
        Raises:
            StoreError: If the write fails
        """
        pass
    
    @abstractmethod
    async def delete_entry(self, entry_id: str) -> None:
        """
        Delete an entry by ID. Deleting a missing entry is not an error.
        
        Raises:
            StoreError: If the delete fails
        """
        pass
    
    @abstractmethod
    async def put_entries(self, entries: list[LedgerEntry]) -> None:
        """
        Insert many entries in one set operation.
        
        Raises:
            StoreError: If the write fails
        """
        pass
    
    @abstractmethod
    async def list_entries(
        self,
        account_id: Optional[str] = None,
    ) -> list[LedgerEntry]:
        """
        List entries, optionally for one account.
        
        Returns:
            Entries ordered by (entry_date desc, created_at desc)
        """
        pass


class AccountStoreInterface(ABC):
    """
    Abstract interface for account storage.
    
    There is no version check on updates: concurrent writers from
    different processes can overwrite each other.
    """
    
    @abstractmethod
    async def get_account(self, account_id: str) -> Optional[Account]:
        """
        Retrieve an account by its ID.
        
        Returns:
            The account if found, None otherwise
        """
        pass
    
    @abstractmethod
    async def update_account(self, account_id: str, update: AccountUpdate) -> None:
        """
        Write the set fields of `update` onto an existing account.
        
        Raises:
            NotFoundError: If the account doesn't exist
            StoreError: If the write fails
        """
        pass
    
    @abstractmethod
    async def put_account(self, account: Account) -> None:
        """
        Insert or replace a whole account (keyed by id).
        
        Raises:
            StoreError: If the write fails
        """
        pass
    
    @abstractmethod
    async def delete_account(self, account_id: str) -> None:
        """Delete an account by ID. Deleting a missing account is not an error."""
        pass
    
    @abstractmethod
    async def list_accounts(self) -> list[Account]:
        """
        List all accounts.
        
        Returns:
            Accounts ordered by name
        """
        pass


class CategoryStoreInterface(ABC):
    """Abstract interface for category storage."""
    
    @abstractmethod
    async def get_category(self, category_id: str) -> Optional[Category]:
        """
        Retrieve a category by its ID.
        
        Returns:
            The category if found, None otherwise
        """
        pass
    
    @abstractmethod
    async def put_category(self, category: Category) -> None:
        """
        Insert or replace a category (keyed by id).
        
        Raises:
            StoreError: If the write fails
        """
        pass
    
    @abstractmethod
    async def delete_category(self, category_id: str) -> None:
        """Delete a category by ID. Deleting a missing category is not an error."""
        pass
    
    @abstractmethod
    async def list_categories(self) -> list[Category]:
        """
        List all categories.
        
        Returns:
            Categories ordered by name
        """
        pass


class ConnectionError(StoreError):
    """Could not connect to storage backend."""
    pass
