"""Validation package."""

from pocketledger.validation.validator import EntryValidator, parse_model, raise_if_invalid

__all__ = ["EntryValidator", "parse_model", "raise_if_invalid"]
