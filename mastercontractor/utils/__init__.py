"""Utility modules for MasterContractor."""

from mastercontractor.utils.engine_logger import (
    configure_logging,
    format_reconciliation_report,
    log_reconciliation_report,
)

__all__ = [
    "configure_logging",
    "format_reconciliation_report",
    "log_reconciliation_report",
]
