"""
Tests for entry validation.
"""

from datetime import date

import pytest

from pocketledger.errors import ValidationError
from pocketledger.models.ledger import (
    EntryDraft,
    EntryUpdate,
    ImportItem,
    LedgerEntry,
    ValidationIssue,
    ValidationResult,
)
from pocketledger.validation import EntryValidator, parse_model, raise_if_invalid


def draft(**overrides) -> EntryDraft:
    data = {
        "account_id": "acc-1",
        "kind": "debit",
        "amount_cents": 100,
        "entry_date": date(2024, 2, 1),
        "title": "Coffee",
    }
    data.update(overrides)
    return EntryDraft(**data)


def import_item(**overrides) -> ImportItem:
    data = {
        "kind": "credit",
        "amount_cents": 100,
        "entry_date": date(2024, 2, 1),
        "title": "Refund",
        "category_id": "cat-misc",
    }
    data.update(overrides)
    return ImportItem(**data)


class TestDraftValidation:

    def test_valid_draft(self):
        assert EntryValidator().validate_draft(draft()).is_valid

    @pytest.mark.parametrize("amount", [0, -5])
    def test_non_positive_amount(self, amount):
        result = EntryValidator().validate_draft(draft(amount_cents=amount))
        assert [i.field for i in result.issues] == ["amount_cents"]

    def test_collects_every_issue(self):
        """Validation reports all issues, not just the first."""
        result = EntryValidator().validate_draft(
            draft(amount_cents=0, title="", account_id="")
        )
        assert {i.field for i in result.issues} == {"amount_cents", "title", "account_id"}
        assert result.error_count == 3

    def test_category_optional_for_single_entries(self):
        assert EntryValidator().validate_draft(draft(category_id=None)).is_valid


class TestUpdateValidation:

    @pytest.fixture
    def previous(self):
        return LedgerEntry(
            account_id="acc-1",
            kind="debit",
            amount_cents=100,
            entry_date=date(2024, 2, 1),
            title="Coffee",
        )

    def test_merged_values_are_checked(self, previous):
        result = EntryValidator().validate_update(previous, EntryUpdate(amount_cents=0))
        assert [i.field for i in result.issues] == ["amount_cents"]

    def test_untouched_fields_come_from_previous(self, previous):
        result = EntryValidator().validate_update(previous, EntryUpdate(note="oat milk"))
        assert result.is_valid


class TestImportValidation:

    def test_category_required(self):
        issues = EntryValidator().validate_import_item(3, import_item(category_id=None))
        assert [i.field for i in issues] == ["items[3].category_id"]

    def test_valid_item(self):
        assert EntryValidator().validate_import_item(0, import_item()) == []

    def test_batch_size_limit(self):
        validator = EntryValidator(max_batch_size=2)
        assert validator.validate_batch_size(2) == []

        issues = validator.validate_batch_size(3)
        assert issues[0].field == "items"
        assert issues[0].issue_type == "too_many"

    def test_no_limit_configured(self):
        assert EntryValidator().validate_batch_size(100000) == []


class TestRaiseIfInvalid:

    def test_valid_result_passes(self):
        raise_if_invalid(ValidationResult(), "Entry rejected")

    def test_warnings_do_not_raise(self):
        result = ValidationResult(issues=[
            ValidationIssue(field="note", issue_type="long", message="Long note", severity="warning"),
        ])
        raise_if_invalid(result, "Entry rejected")

    def test_errors_raise_with_issues(self):
        result = ValidationResult(issues=[
            ValidationIssue(field="title", issue_type="missing", message="Title is required"),
        ])
        with pytest.raises(ValidationError) as exc_info:
            raise_if_invalid(result, "Entry rejected")

        assert "title: Title is required" in str(exc_info.value)
        assert exc_info.value.issues == result.issues


class TestParseModel:

    def test_instance_passes_through(self):
        item = import_item()
        assert parse_model(ImportItem, item, "Import item rejected") is item

    def test_dict_is_validated(self):
        item = parse_model(
            ImportItem,
            {"kind": "expense", "amount_cents": 10, "entry_date": "2024-02-01", "title": "Bus"},
            "Import item rejected",
        )
        assert item.entry_date == date(2024, 2, 1)

    def test_pydantic_errors_become_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_model(
                ImportItem,
                {"kind": "transfer", "amount_cents": 10, "entry_date": "2024-02-01", "title": "Bus"},
                "Import item rejected",
            )

        assert [i.field for i in exc_info.value.issues] == ["kind"]

    def test_missing_fields_reported_by_name(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_model(EntryDraft, {"kind": "debit"}, "Entry rejected")

        fields = {i.field for i in exc_info.value.issues}
        assert {"account_id", "amount_cents", "entry_date", "title"} <= fields
