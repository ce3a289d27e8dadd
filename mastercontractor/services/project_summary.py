"""Project Summary Engine for MasterContractor.

The single point of truth for "what does this project cost right now".

Wrapper Truth Rule:
- A VERIFIED wrapper with AUTHORITATIVE reconciliation contributes its own
  total; its children are audit-only and never added on top.
- Other VERIFIED quotes contribute only under ADDITIVE reconciliation.
- REFERENCE_ONLY quotes never contribute.

Everything is recomputed from the quotes, gaps and decisions passed in;
nothing is cached between calls.
"""

from typing import Sequence, Set

import structlog

from mastercontractor.models.cost_range import ConfidenceLevel
from mastercontractor.models.decision import Decision
from mastercontractor.models.gap import Gap
from mastercontractor.models.quote import Quote, QuoteStatus, ReconciliationRule
from mastercontractor.models.summary import EstimatedCost, ProjectSummary

logger = structlog.get_logger(__name__)

PENDING_STATUSES = (QuoteStatus.PENDING, QuoteStatus.DECISION_REQUIRED)


def _is_authoritative_wrapper(quote: Quote) -> bool:
    return (
        quote.is_wrapper
        and quote.reconciliation_rule == ReconciliationRule.AUTHORITATIVE
        and quote.status == QuoteStatus.VERIFIED
    )


def calculate_verified_cost(quotes: Sequence[Quote]) -> float:
    """Sum the verified cost of record without double counting.

    First pass adds authoritative wrapper totals and records their direct
    children. Second pass adds VERIFIED, non-wrapper, ADDITIVE quotes that are
    not among those children. Each quote id counts at most once.
    """
    total = 0.0
    counted: Set[str] = set()
    wrapper_children: Set[str] = set()

    for wrapper in quotes:
        if not _is_authoritative_wrapper(wrapper) or wrapper.id in counted:
            continue
        total += wrapper.total or 0
        counted.add(wrapper.id)
        wrapper_children.update(q.id for q in quotes if q.parent_quote_id == wrapper.id)

    for quote in quotes:
        if quote.status != QuoteStatus.VERIFIED:
            continue
        if quote.is_wrapper:
            continue
        if quote.id in wrapper_children or quote.id in counted:
            continue
        if quote.reconciliation_rule == ReconciliationRule.ADDITIVE:
            total += quote.total or 0
            counted.add(quote.id)

    return total


def calculate_pending_cost(quotes: Sequence[Quote]) -> float:
    """Sum totals of quotes awaiting verification or a decision."""
    return sum(q.total or 0 for q in quotes if q.status in PENDING_STATUSES)


def calculate_estimated_cost(gaps: Sequence[Gap]) -> EstimatedCost:
    """Sum estimates of unresolved gaps.

    Resolved gaps contribute nothing; their cost is in the resolving quote.
    """
    unresolved = [g for g in gaps if not getattr(g, "resolved", False)]

    return EstimatedCost(
        low=sum(g.estimated_low or 0 for g in unresolved),
        mid=sum(g.estimated_mid or 0 for g in unresolved),
        high=sum(g.estimated_high or 0 for g in unresolved),
    )


def determine_confidence(
    verified_cost: float,
    pending_cost: float,
    estimated_mid: float,
    gap_count: int,
    decision_count: int,
) -> ConfidenceLevel:
    """Overall project confidence.

    HIGH: >80% verified, <2 gaps, <2 open decisions.
    MEDIUM: >50% verified, <5 gaps, <5 open decisions.
    LOW otherwise, and always when there is nothing to estimate.
    """
    total_estimate = verified_cost + pending_cost + estimated_mid

    if total_estimate == 0:
        return ConfidenceLevel.LOW

    verified_percent = (verified_cost / total_estimate) * 100

    if verified_percent > 80 and gap_count < 2 and decision_count < 2:
        return ConfidenceLevel.HIGH

    if verified_percent > 50 and gap_count < 5 and decision_count < 5:
        return ConfidenceLevel.MEDIUM

    return ConfidenceLevel.LOW


def generate_project_summary(
    quotes: Sequence[Quote],
    gaps: Sequence[Gap],
    decisions: Sequence[Decision],
) -> ProjectSummary:
    """Compose the verified, pending and estimated costs into one snapshot."""
    verified_cost = calculate_verified_cost(quotes)
    pending_cost = calculate_pending_cost(quotes)
    estimated_cost = calculate_estimated_cost(gaps)
    gap_count = sum(1 for g in gaps if not getattr(g, "resolved", False))
    decision_count = sum(1 for d in decisions if not getattr(d, "resolved", False))

    confidence = determine_confidence(
        verified_cost,
        pending_cost,
        estimated_cost.mid,
        gap_count,
        decision_count,
    )

    logger.debug(
        "project_summary_generated",
        verified_cost=verified_cost,
        pending_cost=pending_cost,
        estimated_mid=estimated_cost.mid,
        gap_count=gap_count,
        decision_count=decision_count,
        confidence=confidence.value,
    )

    return ProjectSummary(
        verified_cost=verified_cost,
        pending_cost=pending_cost,
        estimated_cost=estimated_cost,
        gap_count=gap_count,
        decision_count=decision_count,
        confidence=confidence,
    )
