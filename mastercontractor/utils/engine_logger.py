"""Engine Logger for MasterContractor.

Configures structlog for the command line and prints highly visible,
banner-style reconciliation reports that stand out in a terminal.
"""

import logging
import sys
from datetime import datetime, timezone
from typing import List, Optional, TextIO

import structlog

from mastercontractor.services.reconciliation import ReconciliationReport

logger = structlog.get_logger(__name__)

# Visual markers for different report sections
BANNER_WIDTH = 80
REPORT_BANNER_CHAR = "█"
SECTION_BANNER_CHAR = "─"
BLOCKING_BANNER_CHAR = "!"


def configure_logging(level: str = "INFO", fmt: str = "console") -> None:
    """Configure structlog with ISO timestamps and a console or JSON renderer.

    Args:
        level: Minimum log level name (DEBUG, INFO, WARNING, ERROR)
        fmt: ``console`` for human-readable output, ``json`` for log shipping
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if fmt == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _create_banner(char: str, text: str, width: int = BANNER_WIDTH) -> str:
    """Create a centered banner with given character."""
    text_with_spaces = f" {text} "
    padding = (width - len(text_with_spaces)) // 2
    return char * padding + text_with_spaces + char * (width - padding - len(text_with_spaces))


def _money(value: Optional[float]) -> str:
    return f"${value or 0:,.2f}"


def format_reconciliation_report(report: ReconciliationReport) -> List[str]:
    """Render a reconciliation report as banner lines."""
    summary = report.summary
    estimated = summary.estimated_cost
    timestamp = datetime.now(timezone.utc).isoformat()
    header_char = BLOCKING_BANNER_CHAR if report.has_blocking_issues else REPORT_BANNER_CHAR
    title = "✗ BLOCKING ISSUES FOUND" if report.has_blocking_issues else "✓ PROJECT RECONCILED"

    out = [
        header_char * BANNER_WIDTH,
        _create_banner(header_char, title),
        header_char * BANNER_WIDTH,
        f"║ Project ID    : {report.project_id or '-'}",
        f"║ Timestamp     : {timestamp}",
        f"║ Verified Cost : {_money(summary.verified_cost)}",
        f"║ Pending Cost  : {_money(summary.pending_cost)}",
        (
            f"║ Estimated     : {_money(estimated.low)} / {_money(estimated.mid)} / "
            f"{_money(estimated.high)}"
        ),
        f"║ Likely Total  : {_money(summary.likely_total)}",
        f"║ Open Gaps     : {summary.gap_count}",
        f"║ Decisions     : {summary.decision_count}",
        f"║ Confidence    : {summary.confidence.value}",
    ]

    if report.wrapper_results:
        out.append(_create_banner(SECTION_BANNER_CHAR, "WRAPPERS"))
        for wrapper_id, result in report.wrapper_results.items():
            status = "VALID" if result.is_valid else "INVALID"
            out.append(f"║ {wrapper_id}: {status}, verified {_money(result.verified_cost)}")
            out.extend(f"║   ✗ {issue}" for issue in result.issues)
            out.extend(f"║   ⚠ {warning}" for warning in result.warnings)

    if report.gaps:
        out.append(_create_banner(SECTION_BANNER_CHAR, "NEW GAPS"))
        for gap in report.gaps:
            estimate = (
                f" ({_money(gap.estimated_low)} - {_money(gap.estimated_high)})"
                if gap.has_estimate
                else ""
            )
            out.append(f"║ [{gap.scope_tag}] {gap.description}{estimate}")
            out.append(f"║   source: {gap.source}")

    if report.decisions:
        out.append(_create_banner(SECTION_BANNER_CHAR, "NEW DECISIONS"))
        for decision in report.decisions:
            out.append(f"║ [{decision.decision_type.value}] {decision.title}")
            if decision.description:
                out.append(f"║   {decision.description}")

    if report.skipped_decisions:
        out.append(f"║ Skipped {report.skipped_decisions} decision(s) already in the queue")

    out.append(header_char * BANNER_WIDTH)
    return out


def log_reconciliation_report(report: ReconciliationReport, stream: Optional[TextIO] = None) -> None:
    """Print a reconciliation report with prominent banners."""
    stream = stream or sys.stdout

    print("\n", file=stream)
    for line in format_reconciliation_report(report):
        print(line, file=stream)
    print("\n", file=stream)

    logger.info(
        "reconciliation_report_logged",
        project_id=report.project_id,
        blocking=report.has_blocking_issues,
    )
