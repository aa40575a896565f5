"""
Balance adjustment primitives.

The entry write and the account write are two separate calls to two
independent stores. Everything that touches the account side of that
pair goes through BalanceAdjuster, which:
1. Reads the account, adds the delta, advances the watermark, writes it back
2. Serializes those read-modify-write cycles per account within one process
3. Retries store failures with backoff
4. Reports a failure that survives the retries as a ConsistencyError

Watermarks only ever move forward here. Only a manual balance edit
(see AccountService) may move one back to "now".
"""

import asyncio
from collections import Counter
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import AsyncIterator, Iterable, Optional

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pocketledger.config import ReconciliationSettings
from pocketledger.errors import ConsistencyError, NotFoundError, StoreError
from pocketledger.models.ledger import (
    Account,
    AccountUpdate,
    LedgerEntry,
    watermark_for,
)
from pocketledger.services.storage import AccountStoreInterface


logger = structlog.get_logger("pocketledger.reconciliation")


def entry_delta(previous: LedgerEntry, updated: LedgerEntry) -> int:
    """Balance change caused by replacing `previous` with `updated`."""
    return updated.signed_cents - previous.signed_cents


def aggregate_delta(entries: Iterable[LedgerEntry]) -> int:
    return sum(entry.signed_cents for entry in entries)


def latest_date(entries: Iterable[LedgerEntry]) -> Optional[date]:
    return max((entry.entry_date for entry in entries), default=None)


def advance_watermark(
    current: Optional[datetime],
    entry_date: Optional[date],
) -> Optional[datetime]:
    """
    Move the watermark to `entry_date` if that is later.
    
    An unset watermark is always advanced. A missing date leaves it as is.
    """
    if entry_date is None:
        return current
    candidate = watermark_for(entry_date)
    if current is None or current < candidate:
        return candidate
    return current


def _log_retry(retry_state: RetryCallState) -> None:
    logger.warning(
        "account_adjustment_retry",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
    )


class BalanceAdjuster:
    """Applies signed deltas to account balances."""
    
    def __init__(
        self,
        account_store: AccountStoreInterface,
        settings: ReconciliationSettings,
    ):
        self._store = account_store
        self._settings = settings
        # Only accounts with an adjustment in flight have an entry
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: Counter[str] = Counter()
    
    @asynccontextmanager
    async def _account_lock(self, account_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(account_id, asyncio.Lock())
        self._lock_users[account_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[account_id] -= 1
            if not self._lock_users[account_id]:
                del self._lock_users[account_id]
                del self._locks[account_id]
    
    async def ensure_account(self, account_id: str) -> Account:
        """
        Read an account that must exist.
        
        Raises:
            NotFoundError: If the account doesn't exist
            StoreError: If the read fails
        """
        account = await self._store.get_account(account_id)
        if account is None:
            raise NotFoundError(f"Account not found: {account_id}")
        return account
    
    async def _apply_once(
        self,
        account_id: str,
        delta_cents: int,
        advance_to: Optional[date],
    ) -> Account:
        async with self._account_lock(account_id):
            account = await self.ensure_account(account_id)
            update = AccountUpdate(
                balance_cents=account.balance_cents + delta_cents,
                watermark=advance_watermark(account.watermark, advance_to),
            )
            await self._store.update_account(account_id, update)
            return account.model_copy(update=update.changes())
    
    async def apply(
        self,
        account_id: str,
        delta_cents: int,
        advance_to: Optional[date],
        entry_ids: list[str],
        missing_ok: bool = False,
    ) -> Optional[Account]:
        """
        Apply one adjustment, retrying store failures.
        
        Only called after the paired entry write has succeeded, so any
        failure here leaves ledger and balance out of step.
        
        Args:
            account_id: Account to adjust
            delta_cents: Signed change to the balance
            advance_to: Entry date the watermark may advance to (None = keep)
            entry_ids: Entries this adjustment belongs to
            missing_ok: Return None instead of failing if the account is gone
            
        Returns:
            The account as written, or None if it was missing and missing_ok
            
        Raises:
            ConsistencyError: If the adjustment could not be applied
        """
        account = None
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(StoreError),
                stop=stop_after_attempt(self._settings.adjustment_attempts),
                wait=wait_exponential(
                    multiplier=self._settings.adjustment_backoff_min_seconds,
                    min=self._settings.adjustment_backoff_min_seconds,
                    max=self._settings.adjustment_backoff_max_seconds,
                ),
                before_sleep=_log_retry,
                reraise=True,
            ):
                with attempt:
                    account = await self._apply_once(account_id, delta_cents, advance_to)
        except NotFoundError as e:
            if missing_ok:
                logger.warning(
                    "account_adjustment_skipped",
                    reason="account_missing",
                    account_id=account_id,
                    delta_cents=delta_cents,
                )
                return None
            raise self._inconsistent(account_id, delta_cents, advance_to, entry_ids, e) from e
        except StoreError as e:
            raise self._inconsistent(account_id, delta_cents, advance_to, entry_ids, e) from e
        
        logger.info(
            "account_adjusted",
            account_id=account_id,
            delta_cents=delta_cents,
            balance_cents=account.balance_cents,
            entry_count=len(entry_ids),
        )
        return account
    
    @staticmethod
    def _inconsistent(
        account_id: str,
        delta_cents: int,
        advance_to: Optional[date],
        entry_ids: list[str],
        cause: Exception,
    ) -> ConsistencyError:
        logger.error(
            "account_adjustment_failed",
            account_id=account_id,
            delta_cents=delta_cents,
            entry_ids=entry_ids,
            error=str(cause),
        )
        return ConsistencyError(
            f"Entries were written but account {account_id} was not adjusted "
            f"by {delta_cents} cents: {cause}",
            account_id=account_id,
            delta_cents=delta_cents,
            entry_ids=entry_ids,
            advance_to=advance_to,
        )
