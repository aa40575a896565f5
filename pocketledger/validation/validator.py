"""
Entry Validation

DESIGN DECISION: Every input is validated completely before anything is
written. Validation collects all issues instead of stopping at the first,
so a rejected import batch tells the user about every bad row at once.

Rules:
- amount must be a positive number of cents
- title must not be empty
- kind must be credit or debit
- imported entries must have a category

IMPORTANT: Validation NEVER silently fixes issues.
"""

from typing import Optional, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from pocketledger.errors import ValidationError
from pocketledger.models.ledger import (
    EntryDraft,
    EntryKind,
    EntryUpdate,
    ImportItem,
    LedgerEntry,
    ValidationIssue,
    ValidationResult,
)


ModelT = TypeVar("ModelT", bound=BaseModel)


class EntryValidator:
    """Checks entry inputs against the ledger's business rules."""
    
    def __init__(self, max_batch_size: Optional[int] = None):
        self._max_batch_size = max_batch_size
    
    def _check_fields(
        self,
        prefix: str,
        kind,
        amount_cents: Optional[int],
        title: Optional[str],
        category_id: Optional[str] = None,
        require_category: bool = False,
    ) -> list[ValidationIssue]:
        issues = []
        
        if not isinstance(kind, EntryKind):
            issues.append(ValidationIssue(
                field=f"{prefix}kind",
                issue_type="invalid_value",
                message=f"Kind must be 'credit' or 'debit', got {kind!r}",
            ))
        
        if amount_cents is None:
            issues.append(ValidationIssue(
                field=f"{prefix}amount_cents",
                issue_type="missing",
                message="Amount is required",
            ))
        elif amount_cents <= 0:
            issues.append(ValidationIssue(
                field=f"{prefix}amount_cents",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
            ))
        
        if not title or not title.strip():
            issues.append(ValidationIssue(
                field=f"{prefix}title",
                issue_type="missing",
                message="Title is required",
            ))
        
        if require_category and not category_id:
            issues.append(ValidationIssue(
                field=f"{prefix}category_id",
                issue_type="missing",
                message="Category must be assigned before import",
            ))
        
        return issues
    
    def validate_draft(self, draft: EntryDraft) -> ValidationResult:
        """Validate a new entry."""
        issues = self._check_fields(
            prefix="",
            kind=draft.kind,
            amount_cents=draft.amount_cents,
            title=draft.title,
        )
        if not draft.account_id:
            issues.append(ValidationIssue(
                field="account_id",
                issue_type="missing",
                message="Account is required",
            ))
        return ValidationResult(issues=issues)
    
    def validate_update(
        self,
        previous: LedgerEntry,
        changes: EntryUpdate,
    ) -> ValidationResult:
        """Validate the entry as it will look once `changes` are applied."""
        values = {**previous.model_dump(), **changes.model_dump(exclude_unset=True)}
        return ValidationResult(issues=self._check_fields(
            prefix="",
            kind=values["kind"],
            amount_cents=values["amount_cents"],
            title=values["title"],
        ))
    
    def validate_batch_size(self, count: int) -> list[ValidationIssue]:
        if self._max_batch_size is None or count <= self._max_batch_size:
            return []
        return [ValidationIssue(
            field="items",
            issue_type="too_many",
            message=f"Batch has {count} entries, the limit is {self._max_batch_size}",
        )]
    
    def validate_import_item(self, index: int, item: ImportItem) -> list[ValidationIssue]:
        """Issues for one batch item, fields prefixed with its index."""
        return self._check_fields(
            prefix=f"items[{index}].",
            kind=item.kind,
            amount_cents=item.amount_cents,
            title=item.title,
            category_id=item.category_id,
            require_category=True,
        )
    
    def validate_known_categories(
        self,
        prepared: list[tuple[int, LedgerEntry]],
        known_ids: set[str],
    ) -> list[ValidationIssue]:
        """Issues for batch entries whose category doesn't exist."""
        return [
            ValidationIssue(
                field=f"items[{index}].category_id",
                issue_type="unknown",
                message=f"Category not found: {entry.category_id}",
            )
            for index, entry in prepared
            if entry.category_id and entry.category_id not in known_ids
        ]


def raise_if_invalid(result: ValidationResult, message: str) -> None:
    """Turn a failed ValidationResult into a ValidationError."""
    if result.is_valid:
        return
    summary = "; ".join(f"{i.field}: {i.message}" for i in result.issues if i.severity == "error")
    raise ValidationError(f"{message} ({summary})", issues=result.issues)


def parse_model(model_cls: type[ModelT], data: Union[ModelT, dict], message: str) -> ModelT:
    """
    Accept either a model instance or a plain dict.
    
    Pydantic errors are reported as a ValidationError so callers only
    ever deal with one rejection type.
    """
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as e:
        issues = [
            ValidationIssue(
                field=".".join(str(part) for part in err["loc"]) or "input",
                issue_type=err["type"],
                message=err["msg"],
            )
            for err in e.errors()
        ]
        raise_if_invalid(ValidationResult(issues=issues), message)
        raise
