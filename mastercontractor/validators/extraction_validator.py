"""Extraction payload parsing and validation.

Quotes and lines arrive from AI extraction and are untrusted. This module
deserializes raw dictionaries into typed Pydantic models before any engine
sees them.

LENIENT MODE (default): bad records are skipped with a warning so one broken
line does not block a whole project. STRICT MODE fails on the first bad record.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

import structlog
from pydantic import ValidationError as PydanticValidationError

from mastercontractor.config.errors import ValidationError
from mastercontractor.models.quote import Line, Quote, ReconciliationRule

logger = structlog.get_logger(__name__)


@dataclass
class ValidationResult:
    """Result of extraction payload validation."""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    quotes: List[Quote] = field(default_factory=list)
    lines: List[Line] = field(default_factory=list)


def _pydantic_errors(e: PydanticValidationError) -> List[str]:
    return [f"{err['loc']}: {err['msg']}" for err in e.errors()]


def parse_quote_record(data: Dict[str, Any]) -> Quote:
    """Parse a raw extraction record into a typed Quote.

    Args:
        data: Raw dictionary from extraction

    Returns:
        Typed Quote object

    Raises:
        ValidationError: If the record is not a dict or fails the schema
    """
    if not isinstance(data, dict):
        raise ValidationError("Quote record must be a dictionary")
    try:
        return Quote.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Invalid quote record {data.get('id')!r}",
            details={"errors": _pydantic_errors(e)},
        ) from e


def parse_line_record(data: Dict[str, Any]) -> Line:
    """Parse a raw extraction record into a typed Line.

    Raises:
        ValidationError: If the record is not a dict or fails the schema
    """
    if not isinstance(data, dict):
        raise ValidationError("Line record must be a dictionary")
    try:
        return Line.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Invalid line record {data.get('id')!r}",
            details={"errors": _pydantic_errors(e)},
        ) from e


def validate_extraction(payload: Dict[str, Any], strict: bool = False) -> ValidationResult:
    """Validate an extraction payload of ``quotes`` and ``lines``.

    In LENIENT mode:
    - Records that fail the schema are skipped and reported as warnings
    - The result is valid as long as the payload itself is well-formed

    In STRICT mode:
    - The first bad record makes the result invalid

    Either mode warns about AUTHORITATIVE quotes that are not flagged as
    wrappers and lines that reference an unknown quote.

    Args:
        payload: Raw dictionary with ``quotes`` and ``lines`` lists
        strict: Fail on the first bad record instead of skipping it

    Returns:
        ValidationResult with parsed quotes and lines
    """
    result = ValidationResult()

    if not isinstance(payload, dict):
        result.is_valid = False
        result.errors.append("Extraction payload must be a dictionary")
        return result

    raw_quotes = payload.get("quotes", [])
    raw_lines = payload.get("lines", [])
    for name, value in (("quotes", raw_quotes), ("lines", raw_lines)):
        if not isinstance(value, list):
            result.is_valid = False
            result.errors.append(f"'{name}' must be a list")
    if not result.is_valid:
        return result

    for kind, records, parse, target in (
        ("quote", raw_quotes, parse_quote_record, result.quotes),
        ("line", raw_lines, parse_line_record, result.lines),
    ):
        for index, record in enumerate(records):
            try:
                target.append(parse(record))
            except ValidationError as e:
                errors = e.details.get("errors") or [e.message]
                message = f"{kind}[{index}]: {e.message}: {'; '.join(errors)}"
                if strict:
                    result.is_valid = False
                    result.errors.append(message)
                    logger.warning(
                        "strict_validation_failed",
                        kind=kind,
                        index=index,
                        code=e.code,
                    )
                    return result
                result.warnings.append(f"Skipped {message}")

    quote_ids = {q.id for q in result.quotes}

    for quote in result.quotes:
        if quote.reconciliation_rule == ReconciliationRule.AUTHORITATIVE and not quote.is_wrapper:
            result.warnings.append(
                f"Quote {quote.id} is AUTHORITATIVE but not flagged as a wrapper"
            )
        if quote.is_wrapper and quote.reconciliation_rule is None:
            result.warnings.append(f"Wrapper {quote.id} has no reconciliation rule")

    for line in result.lines:
        if line.quote_id not in quote_ids:
            result.warnings.append(f"Line {line.id} references unknown quote {line.quote_id!r}")

    if result.warnings:
        logger.warning(
            "extraction_validation_warnings",
            warnings=len(result.warnings),
            quotes=len(result.quotes),
            lines=len(result.lines),
        )
    else:
        logger.info(
            "extraction_validation_passed",
            quotes=len(result.quotes),
            lines=len(result.lines),
        )

    return result
