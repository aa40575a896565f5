"""
Batch Import Reconciler

Commits many imported entries for one account with a single aggregate
balance adjustment, instead of one adjustment per entry.

Validation is all-or-nothing: every candidate is checked first and a
single bad row rejects the whole batch before anything is written. The
entry write and the account write are still two separate calls, so the
same partial-failure handling as single entries applies.

When a category store is configured, every imported category id must
name an existing category.
"""

from typing import Optional, Union

from pocketledger.errors import ValidationError
from pocketledger.models.ledger import (
    ImportItem,
    LedgerEntry,
    OperationResult,
    ValidationIssue,
    ValidationResult,
    new_id,
    utc_now,
)
from pocketledger.models.status import StatusAction, StatusScope
from pocketledger.reconciliation.balance import (
    BalanceAdjuster,
    aggregate_delta,
    latest_date,
)
from pocketledger.services.storage import CategoryStoreInterface, EntryStoreInterface
from pocketledger.status import StatusRelay
from pocketledger.validation import EntryValidator, parse_model, raise_if_invalid


def _prefixed(issues: list[ValidationIssue], index: int) -> list[ValidationIssue]:
    return [
        issue.model_copy(update={"field": f"items[{index}].{issue.field}"})
        for issue in issues
    ]


class BatchImporter:
    """Validates and commits import batches."""
    
    def __init__(
        self,
        entry_store: EntryStoreInterface,
        adjuster: BalanceAdjuster,
        validator: EntryValidator,
        status_relay: StatusRelay,
        category_store: Optional[CategoryStoreInterface] = None,
    ):
        self._entries = entry_store
        self._adjuster = adjuster
        self._validator = validator
        self._relay = status_relay
        self._categories = category_store
    
    def _prepare_entries(
        self,
        account_id: str,
        items: list[Union[ImportItem, dict]],
    ) -> tuple[list[tuple[int, LedgerEntry]], list[ValidationIssue]]:
        """
        Parse, validate and build every item.
        
        Returns the built entries with their item index, and the issues
        of every item that could not be built.
        """
        issues = self._validator.validate_batch_size(len(items))
        prepared = []
        now = utc_now()
        
        for index, raw in enumerate(items):
            try:
                item = parse_model(ImportItem, raw, "Import item rejected")
            except ValidationError as e:
                issues.extend(_prefixed(e.issues, index))
                continue
            
            item_issues = self._validator.validate_import_item(index, item)
            if item_issues:
                issues.extend(item_issues)
                continue
            
            data = item.model_dump()
            data.update(id=new_id(), account_id=account_id, created_at=now, updated_at=now)
            try:
                prepared.append((index, parse_model(LedgerEntry, data, "Import item rejected")))
            except ValidationError as e:
                issues.extend(_prefixed(e.issues, index))
        
        return prepared, issues
    
    async def _category_issues(
        self,
        prepared: list[tuple[int, LedgerEntry]],
    ) -> list[ValidationIssue]:
        if self._categories is None or not prepared:
            return []
        known_ids = {category.id for category in await self._categories.list_categories()}
        return self._validator.validate_known_categories(prepared, known_ids)
    
    async def import_batch(
        self,
        account_id: str,
        items: list[Union[ImportItem, dict]],
    ) -> OperationResult:
        """
        Import `items` into `account_id`.
        
        Returns:
            OperationResult with the number of entries written
            
        Raises:
            ValidationError: If any item is invalid (nothing written)
            NotFoundError: If the account doesn't exist (nothing written)
            StoreError: If the entry write fails (nothing written)
            ConsistencyError: If entries were written but the balance wasn't adjusted
        """
        async with self._relay.track(
            scope=StatusScope.ENTRIES,
            action=StatusAction.IMPORT,
            error_message="Import failed",
            partial_message="Entries imported, balance not adjusted",
        ) as op:
            op.details["account_id"] = account_id
            
            prepared, issues = self._prepare_entries(account_id, list(items))
            issues.extend(await self._category_issues(prepared))
            raise_if_invalid(ValidationResult(issues=issues), "Import rejected")
            
            entries = [entry for _, entry in prepared]
            if not entries:
                op.success_message = "Nothing to import"
                return OperationResult(count=0)
            
            await self._adjuster.ensure_account(account_id)
            
            await self._entries.put_entries(entries)
            
            delta = aggregate_delta(entries)
            op.details.update(count=len(entries), delta_cents=delta)
            await self._adjuster.apply(
                account_id,
                delta,
                latest_date(entries),
                [entry.id for entry in entries],
            )
            
            op.success_message = f"Imported {len(entries)} entries"
            return OperationResult(count=len(entries))
