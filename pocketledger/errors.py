"""
Error taxonomy for ledger operations.

Callers can tell apart four outcomes:
- ValidationError: input rejected, nothing was written
- NotFoundError: a required entry or account does not exist, nothing was written
- StoreError: a store call failed; if it was the first write, nothing was written
- ConsistencyError: the entry write succeeded but the paired account
  adjustment did not, so ledger and balance are out of step
"""

from datetime import date
from typing import Optional


class LedgerError(Exception):
    """Base exception for all ledger operations."""
    pass


class ValidationError(LedgerError):
    """Input rejected before any write."""

    def __init__(self, message: str, issues: Optional[list] = None):
        super().__init__(message)
        self.issues = issues or []


class NotFoundError(LedgerError):
    """Entry or account not found where it is required."""
    pass


class StoreError(LedgerError):
    """A collaborator store failed to read or write."""
    pass


class ConsistencyError(LedgerError):
    """
    Entry write succeeded but the account adjustment failed.

    Carries everything needed to re-apply the adjustment later.
    """

    def __init__(
        self,
        message: str,
        account_id: str,
        delta_cents: int,
        entry_ids: list[str],
        advance_to: Optional[date] = None,
    ):
        super().__init__(message)
        self.account_id = account_id
        self.delta_cents = delta_cents
        self.entry_ids = entry_ids
        self.advance_to = advance_to
