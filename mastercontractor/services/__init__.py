"""Reconciliation engines for MasterContractor.

Every engine is a pure function over quotes, lines, gaps and decisions.
Nothing here performs I/O; callers persist the returned drafts.
"""

from mastercontractor.services.dedupe import (
    DedupeResult,
    DedupeStatus,
    MatchResult,
    MatchType,
    apply_dedupe_result,
    check_tax_trap,
    compare_line_to_quote,
    find_best_match,
    get_variance_percent,
    has_text_evidence,
    is_exact_match,
    is_soft_match,
    run_dedupe_check,
)
from mastercontractor.services.safety import (
    SourceType,
    TaxAuditResult,
    TaxAuditStatus,
    WrapperValidationResult,
    audit_wrapper_for_tax_trap,
    calculate_confidence,
    evaluate_soft_match_safety,
    validate_wrapper_truth,
)
from mastercontractor.services.gap_detection import (
    consolidate_gaps,
    contains_exclusion_keyword,
    is_labor_only,
    scan_destructive_dependencies,
    scan_quote_for_gaps,
)
from mastercontractor.services.conflict_detection import (
    Severity,
    create_brand_conflict_decisions,
    detect_quantity_mismatches,
    run_conflict_scan,
    scan_for_brand_conflicts,
    scan_for_spec_variances,
)
from mastercontractor.services.project_summary import (
    calculate_estimated_cost,
    calculate_pending_cost,
    calculate_verified_cost,
    determine_confidence,
    generate_project_summary,
)
from mastercontractor.services.pricing_intelligence import (
    PricePosition,
    RetailStrategy,
    benchmark_sub_bid,
    recommend_retail_price,
)
from mastercontractor.services.site_logistics import (
    JobComplexity,
    apply_labor_multiplier,
    calculate_duration_weeks,
    calculate_logistics_cost,
    generate_logistics_profile,
    get_job_complexity,
    get_labor_multiplier,
)
from mastercontractor.services.reconciliation import ReconciliationReport, reconcile_project

__all__ = [
    "DedupeResult",
    "DedupeStatus",
    "MatchResult",
    "MatchType",
    "apply_dedupe_result",
    "check_tax_trap",
    "compare_line_to_quote",
    "find_best_match",
    "get_variance_percent",
    "has_text_evidence",
    "is_exact_match",
    "is_soft_match",
    "run_dedupe_check",
    "SourceType",
    "TaxAuditResult",
    "TaxAuditStatus",
    "WrapperValidationResult",
    "audit_wrapper_for_tax_trap",
    "calculate_confidence",
    "evaluate_soft_match_safety",
    "validate_wrapper_truth",
    "consolidate_gaps",
    "contains_exclusion_keyword",
    "is_labor_only",
    "scan_destructive_dependencies",
    "scan_quote_for_gaps",
    "Severity",
    "create_brand_conflict_decisions",
    "detect_quantity_mismatches",
    "run_conflict_scan",
    "scan_for_brand_conflicts",
    "scan_for_spec_variances",
    "calculate_estimated_cost",
    "calculate_pending_cost",
    "calculate_verified_cost",
    "determine_confidence",
    "generate_project_summary",
    "PricePosition",
    "RetailStrategy",
    "benchmark_sub_bid",
    "recommend_retail_price",
    "JobComplexity",
    "apply_labor_multiplier",
    "calculate_duration_weeks",
    "calculate_logistics_cost",
    "generate_logistics_profile",
    "get_job_complexity",
    "get_labor_multiplier",
    "ReconciliationReport",
    "reconcile_project",
]
