"""Safety Engine for MasterContractor.

Tax trap and wrapper audit logic at the quote level:
- Tax-trap audit of a wrapper total against the sum of its children
- Wrapper Truth Rule validation (AUTHORITATIVE wrapper total is the cost of record)
- Soft-match safety gate (no text evidence, no auto-accept)
- Data-quality confidence calculator

All functions are total: abnormal outcomes come back as issues, warnings or
decision drafts rather than exceptions.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

import structlog

from mastercontractor.config.safety_rules import DEFAULT_SAFETY_RULES, SafetyRules
from mastercontractor.models.cost_range import ConfidenceLevel
from mastercontractor.models.decision import DecisionDraft, DecisionType
from mastercontractor.models.quote import Line, Quote, ReconciliationRule

logger = structlog.get_logger(__name__)


# =============================================================================
# TAX TRAP DETECTION
# =============================================================================


class TaxAuditStatus(str, Enum):
    """Outcome of a wrapper tax-trap audit."""

    OK = "OK"
    TAX_TRAP_DETECTED = "TAX_TRAP_DETECTED"
    VARIANCE_WARNING = "VARIANCE_WARNING"


@dataclass
class TaxAuditResult:
    """Wrapper total vs children sum audit."""

    status: TaxAuditStatus
    variance: float
    variance_percent: float
    details: str
    recommendation: str


def audit_wrapper_for_tax_trap(
    wrapper_total: float,
    children_sum: float,
    rules: SafetyRules = DEFAULT_SAFETY_RULES,
) -> TaxAuditResult:
    """Compare a wrapper's total with the sum of its children.

    Tax + freight typically adds 4-12% on top of a subtotal, so a wrapper that
    exceeds its children by that much most likely has children linked to
    subtotals instead of totals.

    Args:
        wrapper_total: The wrapper quote's total
        children_sum: Sum of the child quote totals
        rules: Safety thresholds

    Returns:
        TaxAuditResult with OK, TAX_TRAP_DETECTED or VARIANCE_WARNING.
    """
    variance = wrapper_total - children_sum
    if wrapper_total > 0:
        variance_percent = (variance / wrapper_total) * 100
    elif children_sum == 0:
        variance_percent = 0.0
    else:
        # Zero baseline: children that exceed an empty wrapper are a full-size variance
        variance_percent = -100.0 if children_sum > 0 else 100.0

    if abs(variance_percent) < rules.tax_trap_tolerance_percent:
        return TaxAuditResult(
            status=TaxAuditStatus.OK,
            variance=variance,
            variance_percent=variance_percent,
            details="Wrapper total matches child sum exactly.",
            recommendation="No action needed.",
        )

    if rules.tax_trap_band_low_percent <= variance_percent <= rules.tax_trap_band_high_percent:
        return TaxAuditResult(
            status=TaxAuditStatus.TAX_TRAP_DETECTED,
            variance=variance,
            variance_percent=variance_percent,
            details=(
                f"Wrapper total is {variance_percent:.1f}% higher than child sum. "
                f"This matches typical Tax + Freight range."
            ),
            recommendation=(
                f"Verify children are linked to SUBTOTAL (${children_sum:,.0f}), "
                f"not TOTAL (${wrapper_total:,.0f}). The ${variance:,.0f} difference "
                f"is likely Tax/Freight."
            ),
        )

    if (
        variance_percent > rules.tax_trap_band_high_percent
        or variance_percent < rules.negative_variance_floor_percent
    ):
        return TaxAuditResult(
            status=TaxAuditStatus.VARIANCE_WARNING,
            variance=variance,
            variance_percent=variance_percent,
            details=f"Unusual variance: {variance_percent:.1f}% (${variance:,.0f}).",
            recommendation="Review line items for missing entries or double-counting.",
        )

    return TaxAuditResult(
        status=TaxAuditStatus.OK,
        variance=variance,
        variance_percent=variance_percent,
        details=f"Minor variance of {variance_percent:.1f}% is within tolerance.",
        recommendation="No action needed.",
    )


# =============================================================================
# WRAPPER TRUTH VALIDATION
# =============================================================================


@dataclass
class WrapperValidationResult:
    """Wrapper Truth Rule check.

    Attributes:
        is_valid: False when any fatal issue was found
        issues: Fatal structural or variance problems
        warnings: Non-fatal findings (tax trap, line-sum drift)
        verified_cost: Cost this wrapper contributes under its rule
        tax_audit: Audit result for AUTHORITATIVE wrappers
    """

    is_valid: bool
    issues: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    verified_cost: float = 0.0
    tax_audit: Optional[TaxAuditResult] = None


def validate_wrapper_truth(
    wrapper: Quote,
    child_quotes: Sequence[Quote],
    wrapper_lines: Sequence[Line],
    rules: SafetyRules = DEFAULT_SAFETY_RULES,
) -> WrapperValidationResult:
    """Validate a wrapper quote against the Wrapper Truth Rule.

    1. AUTHORITATIVE: the wrapper's own total is the verified cost; children
       are visibility only and are audited, never added.
    2. ADDITIVE: the verified cost is the sum of the children's totals.
    3. REFERENCE_ONLY: no cost contribution.
    """
    issues: List[str] = []
    warnings: List[str] = []

    if not wrapper.is_wrapper:
        issues.append("Quote is not marked as wrapper but has child quotes.")

    if wrapper.reconciliation_rule is None:
        issues.append("Wrapper missing reconciliation_rule. Cannot determine cost treatment.")

    child_sum = sum(q.total or 0 for q in child_quotes)

    if wrapper.reconciliation_rule == ReconciliationRule.AUTHORITATIVE:
        wrapper_total = wrapper.total or 0

        tax_audit = audit_wrapper_for_tax_trap(wrapper_total, child_sum, rules)

        if tax_audit.status == TaxAuditStatus.TAX_TRAP_DETECTED:
            warnings.append(tax_audit.details)
            warnings.append(tax_audit.recommendation)
            logger.warning(
                "tax_trap_detected",
                wrapper_id=wrapper.id,
                variance_percent=round(tax_audit.variance_percent, 2),
            )
        elif tax_audit.status == TaxAuditStatus.VARIANCE_WARNING:
            issues.append(tax_audit.details)
            issues.append(tax_audit.recommendation)

        line_sum = sum(line.amount or 0 for line in wrapper_lines)
        if abs(line_sum - wrapper_total) > rules.wrapper_line_sum_tolerance:
            warnings.append(
                f"Wrapper line items sum (${line_sum:,.2f}) differs from total (${wrapper_total:,.2f})."
            )

        result = WrapperValidationResult(
            is_valid=not issues,
            issues=issues,
            warnings=warnings,
            verified_cost=wrapper_total,
            tax_audit=tax_audit,
        )
    elif wrapper.reconciliation_rule == ReconciliationRule.ADDITIVE:
        result = WrapperValidationResult(
            is_valid=not issues,
            issues=issues,
            warnings=warnings,
            verified_cost=child_sum,
        )
    else:
        # REFERENCE_ONLY, or no rule at all
        result = WrapperValidationResult(
            is_valid=not issues,
            issues=issues,
            warnings=warnings,
            verified_cost=0.0,
        )

    if not result.is_valid:
        logger.warning("wrapper_validation_failed", wrapper_id=wrapper.id, issues=issues)
    return result


# =============================================================================
# SOFT MATCH SAFETY GATE
# =============================================================================


@dataclass
class SoftMatchGate:
    """Decision of the soft-match safety gate."""

    allowed: bool
    reason: str
    requires_decision: bool
    decision: Optional[DecisionDraft] = None


def evaluate_soft_match_safety(
    variance_percent: float,
    has_text_evidence: bool,
    source_desc: str,
    target_desc: str,
) -> SoftMatchGate:
    """Gate a soft match.

    Without text evidence a soft match is always rejected and routed to the
    decision queue, however small the variance. With evidence it is approved.
    """
    if not has_text_evidence:
        return SoftMatchGate(
            allowed=False,
            reason=(
                f"Soft match ({variance_percent:.1f}% variance) rejected: No text evidence "
                f'linking "{source_desc}" to "{target_desc}".'
            ),
            requires_decision=True,
            decision=DecisionDraft(
                decision_type=DecisionType.SOFT_MATCH,
                title=f"Review: {source_desc}",
                description=f"{variance_percent:.1f}% variance match without vendor/quote evidence.",
                evidence={
                    "variance_percent": round(variance_percent, 2),
                    "source": source_desc,
                    "target": target_desc,
                },
            ),
        )

    return SoftMatchGate(
        allowed=True,
        reason=f"Soft match ({variance_percent:.1f}% variance) approved with text evidence.",
        requires_decision=False,
    )


# =============================================================================
# CONFIDENCE CALCULATOR
# =============================================================================


class SourceType(str, Enum):
    """Origin of a priced figure, for confidence scoring."""

    QUOTE = "QUOTE"
    ESTIMATE = "ESTIMATE"
    RATEBOOK = "RATEBOOK"


def calculate_confidence(
    has_text_evidence: bool,
    variance_percent: float,
    source_type: SourceType,
    has_ranges: bool,
    rules: SafetyRules = DEFAULT_SAFETY_RULES,
) -> ConfidenceLevel:
    """Calculate a confidence level from data quality.

    HIGH: quote-backed with evidence and <1% variance, or quote-backed with <5%
    variance. MEDIUM: quote-backed, or ratebook with ranges. LOW otherwise.
    """
    source_type = SourceType(source_type)

    if source_type == SourceType.QUOTE:
        if has_text_evidence and variance_percent < rules.high_confidence_evidence_variance_percent:
            return ConfidenceLevel.HIGH
        if variance_percent < rules.high_confidence_variance_percent:
            return ConfidenceLevel.HIGH
        return ConfidenceLevel.MEDIUM

    if source_type == SourceType.RATEBOOK and has_ranges:
        return ConfidenceLevel.MEDIUM

    return ConfidenceLevel.LOW
