"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the shared storage backend because:
1. Users can view their ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions, and no way to span the Entries and Accounts sheets
  in one write (the reconciliation engine deals with that)
- Limited query capabilities (we filter in Python)
"""

from datetime import date, datetime
from typing import Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pocketledger.config import GoogleSheetsSettings, get_settings
from pocketledger.errors import NotFoundError, StoreError
from pocketledger.models.ledger import (
    Account,
    AccountUpdate,
    Category,
    EntryKind,
    LedgerEntry,
)
from pocketledger.services.storage.interface import (
    AccountStoreInterface,
    CategoryStoreInterface,
    ConnectionError,
    EntryStoreInterface,
    sort_entries,
)


# Column mappings for Entries sheet
ENTRY_COLUMNS = [
    "id",
    "account_id",
    "kind",
    "amount_cents",
    "entry_date",
    "title",
    "category_id",
    "note",
    "created_at",
    "updated_at",
]

# Column mappings for Accounts sheet
ACCOUNT_COLUMNS = [
    "id",
    "name",
    "color_hex",
    "description",
    "balance_cents",
    "watermark",
    "created_at",
    "updated_at",
]

# Column mappings for Categories sheet
CATEGORY_COLUMNS = [
    "id",
    "name",
    "color_hex",
    "created_at",
    "updated_at",
]

logger = structlog.get_logger("pocketledger.storage.google_sheets")

# Only for writes that are safe to repeat: each one locates its rows by id
# first. Balance updates are retried by BalanceAdjuster, not here.
write_retry = retry(
    retry=retry_if_exception_type(StoreError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


def _cell(row: list, index: int) -> str:
    """Read a cell, treating missing trailing columns as empty."""
    try:
        return row[index] or ""
    except IndexError:
        return ""


def _find_row(all_rows: list[list], row_id: str) -> Optional[int]:
    """1-based sheet row number of `row_id`, skipping the header."""
    for idx, row in enumerate(all_rows[1:], start=2):
        if row and row[0] == row_id:
            return idx
    return None


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.
    
    Handles authentication and creates missing worksheets.
    """
    
    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets
    
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.
        
        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")
        
        return self._client
    
    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet
    
    def _get_or_create_sheet(self, title: str, columns: list[str]) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet
    
    def get_entries_sheet(self) -> gspread.Worksheet:
        """Get or create the Entries worksheet."""
        return self._get_or_create_sheet(self._settings.entries_sheet_name, ENTRY_COLUMNS)
    
    def get_accounts_sheet(self) -> gspread.Worksheet:
        """Get or create the Accounts worksheet."""
        return self._get_or_create_sheet(self._settings.accounts_sheet_name, ACCOUNT_COLUMNS)
    
    def get_categories_sheet(self) -> gspread.Worksheet:
        """Get or create the Categories worksheet."""
        return self._get_or_create_sheet(self._settings.categories_sheet_name, CATEGORY_COLUMNS)


class GoogleSheetsEntryStore(EntryStoreInterface):
    """
    Google Sheets implementation of entry storage.
    
    One entry per row. Amounts are stored as integer cents.
    """
    
    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
    
    @staticmethod
    def _entry_to_row(entry: LedgerEntry) -> list:
        return [
            entry.id,
            entry.account_id,
            entry.kind.value,
            str(entry.amount_cents),
            entry.entry_date.isoformat(),
            entry.title,
            entry.category_id or "",
            entry.note or "",
            entry.created_at.isoformat(),
            entry.updated_at.isoformat(),
        ]
    
    @staticmethod
    def _row_to_entry(row: list) -> LedgerEntry:
        return LedgerEntry(
            id=_cell(row, 0),
            account_id=_cell(row, 1),
            kind=EntryKind(_cell(row, 2)),
            amount_cents=int(_cell(row, 3)),
            entry_date=date.fromisoformat(_cell(row, 4)),
            title=_cell(row, 5),
            category_id=_cell(row, 6) or None,
            note=_cell(row, 7) or None,
            created_at=datetime.fromisoformat(_cell(row, 8)),
            updated_at=datetime.fromisoformat(_cell(row, 9)),
        )
    
    async def get_entry(self, entry_id: str) -> Optional[LedgerEntry]:
        try:
            all_rows = self._client.get_entries_sheet().get_all_values()
            idx = _find_row(all_rows, entry_id)
            return self._row_to_entry(all_rows[idx - 1]) if idx else None
        except Exception as e:
            raise StoreError(f"Failed to get entry: {e}") from e
    
    @write_retry
    async def put_entry(self, entry: LedgerEntry) -> None:
        try:
            sheet = self._client.get_entries_sheet()
            row = self._entry_to_row(entry)
            idx = _find_row(sheet.get_all_values(), entry.id)
            if idx:
                sheet.update(range_name=f"A{idx}", values=[row], value_input_option="RAW")
            else:
                sheet.append_row(row, value_input_option="RAW")
        except Exception as e:
            raise StoreError(f"Failed to save entry: {e}") from e
    
    @write_retry
    async def delete_entry(self, entry_id: str) -> None:
        try:
            sheet = self._client.get_entries_sheet()
            idx = _find_row(sheet.get_all_values(), entry_id)
            if idx:
                sheet.delete_rows(idx)
        except Exception as e:
            raise StoreError(f"Failed to delete entry: {e}") from e
    
    @write_retry
    async def put_entries(self, entries: list[LedgerEntry]) -> None:
        if not entries:
            return
        try:
            sheet = self._client.get_entries_sheet()
            # A retried append may have landed already; rows are keyed by id
            stored_ids = {row[0] for row in sheet.get_all_values()[1:] if row}
            rows = [
                self._entry_to_row(entry)
                for entry in entries
                if entry.id not in stored_ids
            ]
            if rows:
                # One API call for the whole set
                sheet.append_rows(rows, value_input_option="RAW")
        except Exception as e:
            raise StoreError(f"Failed to save {len(entries)} entries: {e}") from e
    
    async def list_entries(
        self,
        account_id: Optional[str] = None,
    ) -> list[LedgerEntry]:
        try:
            all_rows = self._client.get_entries_sheet().get_all_values()[1:]
        except Exception as e:
            raise StoreError(f"Failed to list entries: {e}") from e
        
        entries = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            if account_id is not None and _cell(row, 1) != account_id:
                continue
            try:
                entries.append(self._row_to_entry(row))
            except ValueError as e:
                logger.warning("entry_row_skipped", entry_id=row[0], error=str(e))
        return sort_entries(entries)


class GoogleSheetsAccountStore(AccountStoreInterface):
    """Google Sheets implementation of account storage."""
    
    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
    
    @staticmethod
    def _account_to_row(account: Account) -> list:
        return [
            account.id,
            account.name,
            account.color_hex or "",
            account.description or "",
            str(account.balance_cents),
            account.watermark.isoformat() if account.watermark else "",
            account.created_at.isoformat(),
            account.updated_at.isoformat(),
        ]
    
    @staticmethod
    def _row_to_account(row: list) -> Account:
        watermark = _cell(row, 5)
        return Account(
            id=_cell(row, 0),
            name=_cell(row, 1),
            color_hex=_cell(row, 2) or None,
            description=_cell(row, 3) or None,
            balance_cents=int(_cell(row, 4) or 0),
            watermark=datetime.fromisoformat(watermark) if watermark else None,
            created_at=datetime.fromisoformat(_cell(row, 6)),
            updated_at=datetime.fromisoformat(_cell(row, 7)),
        )
    
    async def get_account(self, account_id: str) -> Optional[Account]:
        try:
            all_rows = self._client.get_accounts_sheet().get_all_values()
            idx = _find_row(all_rows, account_id)
            return self._row_to_account(all_rows[idx - 1]) if idx else None
        except Exception as e:
            raise StoreError(f"Failed to get account: {e}") from e
    
    async def update_account(self, account_id: str, update: AccountUpdate) -> None:
        """Single attempt; the caller owns the retry policy."""
        try:
            sheet = self._client.get_accounts_sheet()
            all_rows = sheet.get_all_values()
            idx = _find_row(all_rows, account_id)
            if idx is None:
                raise NotFoundError(f"Account not found: {account_id}")
            
            account = self._row_to_account(all_rows[idx - 1])
            updated = account.model_copy(update=update.changes())
            sheet.update(
                range_name=f"A{idx}",
                values=[self._account_to_row(updated)],
                value_input_option="RAW",
            )
        except NotFoundError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to update account: {e}") from e
    
    @write_retry
    async def put_account(self, account: Account) -> None:
        try:
            sheet = self._client.get_accounts_sheet()
            row = self._account_to_row(account)
            idx = _find_row(sheet.get_all_values(), account.id)
            if idx:
                sheet.update(range_name=f"A{idx}", values=[row], value_input_option="RAW")
            else:
                sheet.append_row(row, value_input_option="RAW")
        except Exception as e:
            raise StoreError(f"Failed to save account: {e}") from e
    
    @write_retry
    async def delete_account(self, account_id: str) -> None:
        try:
            sheet = self._client.get_accounts_sheet()
            idx = _find_row(sheet.get_all_values(), account_id)
            if idx:
                sheet.delete_rows(idx)
        except Exception as e:
            raise StoreError(f"Failed to delete account: {e}") from e
    
    async def list_accounts(self) -> list[Account]:
        try:
            all_rows = self._client.get_accounts_sheet().get_all_values()[1:]
        except Exception as e:
            raise StoreError(f"Failed to list accounts: {e}") from e
        
        accounts = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            try:
                accounts.append(self._row_to_account(row))
            except ValueError as e:
                logger.warning("account_row_skipped", account_id=row[0], error=str(e))
        accounts.sort(key=lambda a: a.name.lower())
        return accounts


class GoogleSheetsCategoryStore(CategoryStoreInterface):
    """Google Sheets implementation of category storage."""
    
    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
    
    @staticmethod
    def _category_to_row(category: Category) -> list:
        return [
            category.id,
            category.name,
            category.color_hex or "",
            category.created_at.isoformat(),
            category.updated_at.isoformat(),
        ]
    
    @staticmethod
    def _row_to_category(row: list) -> Category:
        return Category(
            id=_cell(row, 0),
            name=_cell(row, 1),
            color_hex=_cell(row, 2) or None,
            created_at=datetime.fromisoformat(_cell(row, 3)),
            updated_at=datetime.fromisoformat(_cell(row, 4)),
        )
    
    async def get_category(self, category_id: str) -> Optional[Category]:
        try:
            all_rows = self._client.get_categories_sheet().get_all_values()
            idx = _find_row(all_rows, category_id)
            return self._row_to_category(all_rows[idx - 1]) if idx else None
        except Exception as e:
            raise StoreError(f"Failed to get category: {e}") from e
    
    @write_retry
    async def put_category(self, category: Category) -> None:
        try:
            sheet = self._client.get_categories_sheet()
            row = self._category_to_row(category)
            idx = _find_row(sheet.get_all_values(), category.id)
            if idx:
                sheet.update(range_name=f"A{idx}", values=[row], value_input_option="RAW")
            else:
                sheet.append_row(row, value_input_option="RAW")
        except Exception as e:
            raise StoreError(f"Failed to save category: {e}") from e
    
    @write_retry
    async def delete_category(self, category_id: str) -> None:
        try:
            sheet = self._client.get_categories_sheet()
            idx = _find_row(sheet.get_all_values(), category_id)
            if idx:
                sheet.delete_rows(idx)
        except Exception as e:
            raise StoreError(f"Failed to delete category: {e}") from e
    
    async def list_categories(self) -> list[Category]:
        try:
            all_rows = self._client.get_categories_sheet().get_all_values()[1:]
        except Exception as e:
            raise StoreError(f"Failed to list categories: {e}") from e
        
        categories = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            try:
                categories.append(self._row_to_category(row))
            except ValueError as e:
                logger.warning("category_row_skipped", category_id=row[0], error=str(e))
        categories.sort(key=lambda c: c.name.lower())
        return categories
