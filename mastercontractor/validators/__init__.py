"""Validation of untrusted extraction payloads."""

from mastercontractor.validators.extraction_validator import (
    ValidationResult,
    parse_line_record,
    parse_quote_record,
    validate_extraction,
)

__all__ = [
    "ValidationResult",
    "parse_line_record",
    "parse_quote_record",
    "validate_extraction",
]
