"""Form entry validation."""

from movemaster.validation.validator import EntryValidator

__all__ = ["EntryValidator"]
