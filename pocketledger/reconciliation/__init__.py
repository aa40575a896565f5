"""Balance reconciliation package."""

from pocketledger.reconciliation.balance import (
    BalanceAdjuster,
    advance_watermark,
    aggregate_delta,
    entry_delta,
    latest_date,
)
from pocketledger.reconciliation.batch import BatchImporter
from pocketledger.reconciliation.engine import LedgerEngine

__all__ = [
    "BalanceAdjuster",
    "BatchImporter",
    "LedgerEngine",
    "advance_watermark",
    "aggregate_delta",
    "entry_delta",
    "latest_date",
]
