"""
Core Data Models for Pocket Ledger

These models define the schemas for accounts, ledger entries and the
inputs that mutate them. They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging

DESIGN DECISION: Input models (drafts, updates, import items) only check
types. Business rules (positive amounts, non-empty titles, categories on
import) live in the validator so a bad request is reported as a list of
issues instead of failing on the first one.
"""

from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


def watermark_for(entry_date: date) -> datetime:
    """The watermark an entry dated `entry_date` stands for (UTC midnight)."""
    return datetime.combine(entry_date, time.min, tzinfo=timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class EntryKind(str, Enum):
    """
    Direction of a ledger entry.
    
    Credits add to the account balance, debits subtract from it.
    """
    CREDIT = "credit"
    DEBIT = "debit"


# Vocabulary used by the bank exports and older clients
KIND_ALIASES = {
    "income": EntryKind.CREDIT,
    "expense": EntryKind.DEBIT,
}


def _normalise_kind(value):
    if isinstance(value, str):
        lowered = value.strip().lower()
        return KIND_ALIASES.get(lowered, lowered)
    return value


def signed_cents(kind: EntryKind, amount_cents: int) -> int:
    """Amount with the sign applied by kind."""
    return amount_cents if kind == EntryKind.CREDIT else -amount_cents


# =============================================================================
# ACCOUNTS
# =============================================================================

class Account(BaseModel):
    """
    An account with a cached balance.
    
    The watermark records the point in time through which the cached
    balance is known to be accurate. It only moves forward, except on a
    manual balance edit, which resets it to "now".
    """
    model_config = ConfigDict(str_strip_whitespace=True)
    
    id: str = Field(
        default_factory=new_id,
        description="Unique account ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display name"
    )
    color_hex: Optional[str] = Field(
        default=None,
        pattern="^#[0-9a-fA-F]{6}$",
        description="Display colour"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=1000,
    )
    balance_cents: int = Field(
        default=0,
        description="Cached balance in minor currency units"
    )
    watermark: Optional[datetime] = Field(
        default=None,
        description="Balance known accurate through this point"
    )
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    
    @field_validator('watermark', 'created_at', 'updated_at')
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Naive timestamps coming from storage are UTC."""
        return _as_utc(v)


class AccountUpdate(BaseModel):
    """
    Partial account update written by the reconciliation engine.
    
    Only fields that are set are written.
    """
    balance_cents: Optional[int] = None
    watermark: Optional[datetime] = None
    updated_at: datetime = Field(default_factory=utc_now)
    
    @field_validator('watermark', 'updated_at')
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)
    
    def changes(self) -> dict:
        """Fields to write, skipping the ones left empty."""
        return self.model_dump(exclude_none=True)


class AccountDraft(BaseModel):
    """Account as submitted by the user (create when `id` is empty)."""
    model_config = ConfigDict(str_strip_whitespace=True)
    
    id: Optional[str] = None
    name: str
    color_hex: Optional[str] = None
    description: Optional[str] = None
    balance_cents: int = 0


# =============================================================================
# CATEGORIES
# =============================================================================

class Category(BaseModel):
    """
    A user-defined grouping for entries.
    
    Imported entries must carry one; ad-hoc entries may leave it empty.
    """
    model_config = ConfigDict(str_strip_whitespace=True)
    
    id: str = Field(
        default_factory=new_id,
        description="Unique category ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )
    color_hex: Optional[str] = Field(
        default=None,
        pattern="^#[0-9a-fA-F]{6}$",
        description="Display colour"
    )
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    
    @field_validator('created_at', 'updated_at')
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class CategoryDraft(BaseModel):
    """Category as submitted by the user (create when `id` is empty)."""
    model_config = ConfigDict(str_strip_whitespace=True)
    
    id: Optional[str] = None
    name: str
    color_hex: Optional[str] = None


# =============================================================================
# LEDGER ENTRIES
# =============================================================================

class LedgerEntry(BaseModel):
    """
    A single recorded income or expense against one account.
    
    This is the stored form. Stored entries always satisfy the business
    rules; anything else is rejected before it gets here.
    """
    model_config = ConfigDict(str_strip_whitespace=True)
    
    id: str = Field(
        default_factory=new_id,
        description="Unique entry ID"
    )
    account_id: str = Field(
        ...,
        min_length=1,
        description="Owning account"
    )
    kind: EntryKind
    amount_cents: int = Field(
        ...,
        gt=0,
        description="Unsigned amount in minor currency units"
    )
    entry_date: date
    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    category_id: Optional[str] = Field(
        default=None,
        description="Category; empty for ad-hoc entries"
    )
    note: Optional[str] = Field(
        default=None,
        max_length=1000,
    )
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    
    @field_validator('kind', mode='before')
    @classmethod
    def normalise_kind(cls, v):
        return _normalise_kind(v)
    
    @field_validator('created_at', 'updated_at')
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)
    
    @property
    def signed_cents(self) -> int:
        return signed_cents(self.kind, self.amount_cents)


class EntryDraft(BaseModel):
    """A new entry as submitted by the user."""
    model_config = ConfigDict(str_strip_whitespace=True)
    
    id: Optional[str] = None
    account_id: str
    kind: EntryKind
    amount_cents: int
    entry_date: date
    title: str
    category_id: Optional[str] = None
    note: Optional[str] = None
    
    @field_validator('kind', mode='before')
    @classmethod
    def normalise_kind(cls, v):
        return _normalise_kind(v)


class EntryUpdate(BaseModel):
    """
    New field values for an existing entry.
    
    Only fields that are explicitly set are changed. The owning account
    cannot be changed; moving an entry is a delete plus a create.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")
    
    kind: Optional[EntryKind] = None
    amount_cents: Optional[int] = None
    entry_date: Optional[date] = None
    title: Optional[str] = None
    category_id: Optional[str] = None
    note: Optional[str] = None
    
    @field_validator('kind', mode='before')
    @classmethod
    def normalise_kind(cls, v):
        return _normalise_kind(v)


class ImportItem(BaseModel):
    """A candidate entry produced by an import parser."""
    model_config = ConfigDict(str_strip_whitespace=True)
    
    kind: EntryKind
    amount_cents: int
    entry_date: date
    title: str
    category_id: Optional[str] = None
    note: Optional[str] = None
    
    @field_validator('kind', mode='before')
    @classmethod
    def normalise_kind(cls, v):
        return _normalise_kind(v)
    
    @property
    def signed_cents(self) -> int:
        return signed_cents(self.kind, self.amount_cents)


# =============================================================================
# RESULTS & VALIDATION
# =============================================================================

class OperationResult(BaseModel):
    """Successful outcome of a ledger operation."""
    
    ok: bool = True
    id: Optional[str] = None
    count: Optional[int] = None


class ValidationIssue(BaseModel):
    """A single validation issue found."""
    
    field: str = Field(
        ...,
        description="Field with the issue (prefixed with the item index in batches)"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning)$",
    )


class ValidationResult(BaseModel):
    """Outcome of validating one input or one batch."""
    
    issues: list[ValidationIssue] = Field(default_factory=list)
    
    @property
    def is_valid(self) -> bool:
        return not self.has_errors
    
    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)
    
    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
