"""
Data Models Package

This package contains all Pydantic models used in Pocket Ledger.
All data flowing through the system must conform to these schemas.
"""

from pocketledger.models.ledger import (
    Account,
    AccountDraft,
    AccountUpdate,
    Category,
    CategoryDraft,
    EntryDraft,
    EntryKind,
    EntryUpdate,
    ImportItem,
    LedgerEntry,
    OperationResult,
    ValidationIssue,
    ValidationResult,
    signed_cents,
    utc_now,
    watermark_for,
)
from pocketledger.models.status import (
    StatusAction,
    StatusEvent,
    StatusEventBuilder,
    StatusScope,
    StatusState,
)

__all__ = [
    # Ledger models
    "Account",
    "AccountDraft",
    "AccountUpdate",
    "Category",
    "CategoryDraft",
    "EntryDraft",
    "EntryKind",
    "EntryUpdate",
    "ImportItem",
    "LedgerEntry",
    "OperationResult",
    "ValidationIssue",
    "ValidationResult",
    "signed_cents",
    "utc_now",
    "watermark_for",
    # Status models
    "StatusAction",
    "StatusEvent",
    "StatusEventBuilder",
    "StatusScope",
    "StatusState",
]
