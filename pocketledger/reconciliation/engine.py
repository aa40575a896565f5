"""
Balance Reconciliation Engine

Every ledger entry mutation is mirrored by exactly one adjustment of the
owning account's cached balance. The balance is kept incrementally: each
mutation applies a signed delta, nothing ever rescans the ledger. An entry
changed behind the engine's back therefore breaks the balance silently.

Order of work for every mutation:
1. Validate input (ValidationError, nothing written)
2. Read what is needed (NotFoundError, nothing written)
3. Write the entry (StoreError, nothing written)
4. Adjust the account (ConsistencyError, entry already written)
5. Emit one status event

The engine never undoes a successful entry write. A ConsistencyError
carries the pending adjustment so the caller can retry_adjustment() it
or flag the account for manual reconciliation.
"""

from typing import Optional, Union

import structlog

from pocketledger.config import ReconciliationSettings, get_settings
from pocketledger.errors import ConsistencyError, NotFoundError, ValidationError
from pocketledger.models.ledger import (
    EntryDraft,
    EntryUpdate,
    ImportItem,
    LedgerEntry,
    OperationResult,
    new_id,
    utc_now,
)
from pocketledger.models.status import StatusAction, StatusScope
from pocketledger.reconciliation.balance import BalanceAdjuster, entry_delta
from pocketledger.reconciliation.batch import BatchImporter
from pocketledger.services.storage import (
    AccountStoreInterface,
    CategoryStoreInterface,
    EntryStoreInterface,
)
from pocketledger.status import StatusRelay
from pocketledger.validation import EntryValidator, parse_model, raise_if_invalid


class LedgerEngine:
    """
    Single entry point for ledger mutations.
    
    Usage:
        engine = LedgerEngine(entry_store, account_store, relay)
        result = await engine.create_entry({...})
    """
    
    def __init__(
        self,
        entry_store: EntryStoreInterface,
        account_store: AccountStoreInterface,
        status_relay: Optional[StatusRelay] = None,
        settings: Optional[ReconciliationSettings] = None,
        validator: Optional[EntryValidator] = None,
        category_store: Optional[CategoryStoreInterface] = None,
    ):
        self._entries = entry_store
        self._relay = status_relay or StatusRelay()
        self._settings = settings or get_settings().reconciliation
        self._validator = validator or EntryValidator(
            max_batch_size=self._settings.max_batch_size,
        )
        self._adjuster = BalanceAdjuster(account_store, self._settings)
        self._importer = BatchImporter(
            entry_store=entry_store,
            adjuster=self._adjuster,
            validator=self._validator,
            status_relay=self._relay,
            category_store=category_store,
        )
        self._logger = structlog.get_logger("pocketledger.engine")
    
    @property
    def status_relay(self) -> StatusRelay:
        return self._relay
    
    async def create_entry(self, draft: Union[EntryDraft, dict]) -> OperationResult:
        """
        Record a new entry and add its signed amount to the account.
        
        The watermark advances to the entry date if that is later.
        """
        async with self._relay.track(
            scope=StatusScope.ENTRIES,
            action=StatusAction.CREATE,
            error_message="Entry save failed",
            success_message="Entry created",
            partial_message="Entry saved, balance not adjusted",
        ) as op:
            draft = parse_model(EntryDraft, draft, "Entry rejected")
            raise_if_invalid(self._validator.validate_draft(draft), "Entry rejected")
            
            if draft.id and await self._entries.get_entry(draft.id) is not None:
                raise ValidationError(f"Entry already exists: {draft.id}")
            await self._adjuster.ensure_account(draft.account_id)
            
            now = utc_now()
            data = draft.model_dump()
            data.update(id=draft.id or new_id(), created_at=now, updated_at=now)
            entry = parse_model(LedgerEntry, data, "Entry rejected")
            op.details["entry_id"] = entry.id
            
            await self._entries.put_entry(entry)
            await self._adjuster.apply(
                entry.account_id,
                entry.signed_cents,
                entry.entry_date,
                [entry.id],
            )
            return OperationResult(id=entry.id)
    
    async def update_entry(
        self,
        entry_id: str,
        changes: Union[EntryUpdate, dict],
    ) -> OperationResult:
        """
        Change an existing entry and adjust the account by the difference.
        
        When kind and amount leave the signed amount unchanged, the account
        is not written at all (and its watermark does not move).
        """
        async with self._relay.track(
            scope=StatusScope.ENTRIES,
            action=StatusAction.UPDATE,
            error_message="Entry save failed",
            success_message="Entry updated",
            partial_message="Entry updated, balance not adjusted",
        ) as op:
            op.details["entry_id"] = entry_id
            changes = parse_model(EntryUpdate, changes, "Entry rejected")
            
            previous = await self._entries.get_entry(entry_id)
            if previous is None:
                raise NotFoundError(f"Entry not found: {entry_id}")
            raise_if_invalid(
                self._validator.validate_update(previous, changes),
                "Entry rejected",
            )
            
            data = previous.model_dump()
            data.update(changes.model_dump(exclude_unset=True))
            data["updated_at"] = utc_now()
            updated = parse_model(LedgerEntry, data, "Entry rejected")
            
            delta = entry_delta(previous, updated)
            op.details["delta_cents"] = delta
            if delta != 0:
                await self._adjuster.ensure_account(updated.account_id)
            
            await self._entries.put_entry(updated)
            
            if delta != 0:
                await self._adjuster.apply(
                    updated.account_id,
                    delta,
                    updated.entry_date,
                    [updated.id],
                )
            else:
                self._logger.info(
                    "account_adjustment_skipped",
                    reason="zero_delta",
                    entry_id=entry_id,
                )
            return OperationResult(id=updated.id)
    
    async def delete_entry(self, entry_id: str) -> OperationResult:
        """
        Delete an entry and take its signed amount back out of the account.
        
        Deleting a missing entry succeeds without touching any account.
        The watermark is left where it is.
        """
        async with self._relay.track(
            scope=StatusScope.ENTRIES,
            action=StatusAction.DELETE,
            error_message="Entry deletion failed",
            success_message="Entry deleted",
            partial_message="Entry deleted, balance not adjusted",
        ) as op:
            op.details["entry_id"] = entry_id
            
            previous = await self._entries.get_entry(entry_id)
            if previous is None:
                op.success_message = "Entry already deleted"
                return OperationResult(id=entry_id)
            
            await self._entries.delete_entry(entry_id)
            
            # Account removed in the meantime: nothing left to reconcile
            await self._adjuster.apply(
                previous.account_id,
                -previous.signed_cents,
                None,
                [previous.id],
                missing_ok=True,
            )
            return OperationResult(id=entry_id)
    
    async def import_batch(
        self,
        account_id: str,
        items: list[Union[ImportItem, dict]],
    ) -> OperationResult:
        """Import many entries into one account with one adjustment."""
        return await self._importer.import_batch(account_id, items)
    
    async def list_entries(self, account_id: Optional[str] = None) -> list[LedgerEntry]:
        """Entries ordered by (entry_date desc, created_at desc)."""
        async with self._relay.track(
            scope=StatusScope.ENTRIES,
            action=StatusAction.LIST,
            error_message="Entries listing failed",
        ):
            return await self._entries.list_entries(account_id)
    
    async def retry_adjustment(self, error: ConsistencyError) -> OperationResult:
        """
        Re-apply the adjustment a ConsistencyError left pending.
        
        Only call this once per error: the adjustment is not idempotent.
        """
        async with self._relay.track(
            scope=StatusScope.ACCOUNTS,
            action=StatusAction.ADJUST,
            error_message="Balance adjustment failed",
            success_message="Balance adjustment applied",
        ) as op:
            op.details.update(
                account_id=error.account_id,
                delta_cents=error.delta_cents,
            )
            await self._adjuster.apply(
                error.account_id,
                error.delta_cents,
                error.advance_to,
                error.entry_ids,
            )
            return OperationResult(id=error.account_id, count=len(error.entry_ids))
