"""
Reconcile a project snapshot from a JSON file and print the report.

The snapshot holds everything the engines need for one project:

  {
    "project_id": "proj-1",
    "quotes": [...], "lines": [...],
    "gaps": [...], "decisions": [...],
    "plan_text": "Install ANDERSEN windows 36x80",
    "takeoff": [{"scope_tag": "DRYWALL", "qty": 1200, "unit": "SF"}]
  }

Usage:
  python -m mastercontractor.scripts.reconcile_project --input project.json
  python -m mastercontractor.scripts.reconcile_project --input project.json --json

Exit codes: 0 reconciled, 2 blocking issues found, 1 invalid input.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import structlog
from pydantic import ValidationError as PydanticValidationError

from mastercontractor.config.errors import MasterContractorError, ValidationError
from mastercontractor.config.settings import settings
from mastercontractor.data.ratebook import get_ratebook
from mastercontractor.models.decision import Decision
from mastercontractor.models.gap import Gap
from mastercontractor.models.takeoff import TakeoffItem
from mastercontractor.services.reconciliation import ReconciliationReport, reconcile_project
from mastercontractor.utils.engine_logger import configure_logging, log_reconciliation_report
from mastercontractor.validators.extraction_validator import validate_extraction

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_INVALID_INPUT = 1
EXIT_BLOCKING = 2


def _load_snapshot(path: str) -> Dict[str, Any]:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ValidationError(f"Input file not found: {path}", field="input") from e
    except json.JSONDecodeError as e:
        raise ValidationError(f"Input is not valid JSON: {e}", field="input") from e
    if not isinstance(data, dict):
        raise ValidationError("Input must be a JSON object", field="input")
    return data


def _parse_list(model, records: Any, name: str) -> List[Any]:
    if not isinstance(records, list):
        raise ValidationError(f"'{name}' must be a list", field=name)
    try:
        return [model.model_validate(record) for record in records]
    except PydanticValidationError as e:
        errors = [f"{err['loc']}: {err['msg']}" for err in e.errors()]
        raise ValidationError(f"Invalid {name} record", field=name, details={"errors": errors}) from e


def _report_to_dict(report: ReconciliationReport) -> Dict[str, Any]:
    summary = report.summary
    return {
        "project_id": report.project_id,
        "has_blocking_issues": report.has_blocking_issues,
        "summary": {
            **summary.model_dump(mode="json"),
            "likely_total": summary.likely_total,
        },
        "wrappers": {
            wrapper_id: {
                "is_valid": result.is_valid,
                "verified_cost": result.verified_cost,
                "issues": result.issues,
                "warnings": result.warnings,
                "tax_audit": result.tax_audit.status.value if result.tax_audit else None,
            }
            for wrapper_id, result in report.wrapper_results.items()
        },
        "updated_lines": [line.model_dump(mode="json") for line in report.updated_lines],
        "gaps": [gap.model_dump(mode="json") for gap in report.gaps],
        "decisions": [decision.model_dump(mode="json") for decision in report.decisions],
        "skipped_decisions": report.skipped_decisions,
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Reconcile a project snapshot and report costs")
    parser.add_argument("--input", required=True, help="Project snapshot JSON file")
    parser.add_argument(
        "--ratebook",
        required=False,
        help="Regional ratebook JSON (defaults to RATEBOOK_PATH or the built-in RATEBOOK_V1)",
    )
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument("--strict", action="store_true", help="Fail on the first bad quote or line")
    args = parser.parse_args(argv)

    try:
        settings.validate()
    except MasterContractorError as e:
        print(f"✗ {e.message}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    configure_logging(settings.log_level, settings.log_format)

    try:
        rules = settings.safety_rules()
        ratebook = get_ratebook(args.ratebook)
        if ratebook.region != settings.ratebook_region:
            logger.warning(
                "ratebook_region_mismatch",
                expected=settings.ratebook_region,
                loaded=ratebook.region,
            )

        snapshot = _load_snapshot(args.input)
        extraction = validate_extraction(snapshot, strict=args.strict)
        if not extraction.is_valid:
            for error in extraction.errors:
                print(f"✗ {error}", file=sys.stderr)
            return EXIT_INVALID_INPUT
        for warning in extraction.warnings:
            print(f"⚠ {warning}", file=sys.stderr)

        gaps = _parse_list(Gap, snapshot.get("gaps") or [], "gaps")
        decisions = _parse_list(Decision, snapshot.get("decisions") or [], "decisions")
        takeoff = _parse_list(TakeoffItem, snapshot.get("takeoff") or [], "takeoff")
    except MasterContractorError as e:
        logger.error("reconcile_input_invalid", **e.to_dict())
        print(f"✗ {e.message}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    report = reconcile_project(
        snapshot.get("project_id"),
        extraction.quotes,
        extraction.lines,
        gaps=gaps,
        decisions=decisions,
        plan_text=snapshot.get("plan_text") or "",
        takeoff_items=takeoff,
        ratebook=ratebook,
        rules=rules,
    )

    if args.json:
        print(json.dumps(_report_to_dict(report), indent=2, sort_keys=True))
    else:
        log_reconciliation_report(report)

    return EXIT_BLOCKING if report.has_blocking_issues else EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
