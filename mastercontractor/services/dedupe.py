"""Dedupe Engine for MasterContractor.

Decides whether a parent quote's line and a candidate child quote are the same
real-world cost, and whether that correspondence may be trusted automatically.

Safety Constitution rules applied here:
- Only extracted text (vendor name, quote number) counts as evidence. Internal
  IDs prove nothing about real-world correspondence and are never used.
- A line is auto-linked only with text evidence, whatever the numeric match.
- Every match without evidence becomes a POTENTIAL_DUPLICATE decision.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

import structlog

from mastercontractor.config.safety_rules import DEFAULT_SAFETY_RULES, SafetyRules
from mastercontractor.models.decision import DecisionDraft, DecisionType
from mastercontractor.models.quote import Line, Quote, QuoteStatus

logger = structlog.get_logger(__name__)

# Advisory scores; nothing downstream branches on them.
EXACT_WITH_EVIDENCE_SCORE = 95
EXACT_WITHOUT_EVIDENCE_SCORE = 50
SOFT_WITH_EVIDENCE_SCORE = 75
SOFT_WITHOUT_EVIDENCE_SCORE = 25


# =============================================================================
# Result Types
# =============================================================================


class MatchType(str, Enum):
    """Numeric correspondence between a line and a quote."""

    EXACT = "EXACT"
    SOFT = "SOFT"
    NO_MATCH = "NO_MATCH"


class DedupeStatus(str, Enum):
    """Outcome of the dedupe gate."""

    AUTO_LINKED = "AUTO_LINKED"
    POTENTIAL_DUPLICATE = "POTENTIAL_DUPLICATE"
    NO_MATCH = "NO_MATCH"


@dataclass
class TextEvidence:
    """Extracted text linking a parent quote to a child quote."""

    has_evidence: bool
    details: str = ""


@dataclass
class TaxTrapCheck:
    """Whether a line was priced to a subtotal while the real total is higher."""

    is_tax_trap: bool
    matches_subtotal: bool
    matches_total: bool


@dataclass
class MatchResult:
    """Classification of a line against a candidate quote.

    Attributes:
        type: EXACT, SOFT or NO_MATCH
        confidence: Advisory score (0-100)
        has_text_evidence: Whether extracted text links the two quotes
        evidence_details: Human-readable evidence, never an internal ID
        variance_percent: Variance against the closer of total / subtotal
        is_tax_trap: Exact match on subtotal while total is higher
    """

    type: MatchType
    confidence: int
    has_text_evidence: bool
    evidence_details: str = ""
    variance_percent: float = 0.0
    is_tax_trap: bool = False


@dataclass
class DedupeResult:
    """Outcome of running the dedupe gate for one line / quote pair."""

    status: DedupeStatus
    match: MatchResult
    source_line_id: str
    target_quote_id: Optional[str] = None
    decision: Optional[DecisionDraft] = None


# =============================================================================
# Numeric Matching
# =============================================================================


def is_exact_match(
    amount1: float,
    amount2: float,
    rules: SafetyRules = DEFAULT_SAFETY_RULES,
) -> bool:
    """Check if two amounts match within currency rounding tolerance."""
    return abs(amount1 - amount2) < rules.exact_match_tolerance


def get_variance_percent(amount1: float, amount2: float) -> float:
    """Variance between two amounts as a percent of the larger.

    Returns:
        0 when both are zero, 100 when only one is zero.
    """
    if amount1 == 0 and amount2 == 0:
        return 0.0
    if amount1 == 0 or amount2 == 0:
        return 100.0
    return abs(amount1 - amount2) / max(abs(amount1), abs(amount2)) * 100


def is_soft_match(
    amount1: float,
    amount2: float,
    rules: SafetyRules = DEFAULT_SAFETY_RULES,
) -> bool:
    """Check if amounts fall inside the soft-match band.

    Zero variance is an exact match, not a soft one.
    """
    if amount1 == 0 or amount2 == 0:
        return False
    variance = get_variance_percent(amount1, amount2)
    return 0 < variance <= rules.soft_match_variance_percent


# =============================================================================
# Evidence
# =============================================================================


def has_text_evidence(parent_quote: Quote, child_quote: Quote) -> TextEvidence:
    """Look for the child's vendor name or quote number in the parent's text.

    Case-insensitive substring search over the parent's notes and raw text.
    """
    combined_parent = parent_quote.evidence_text().lower()

    child_vendor = (child_quote.vendor_name or "").strip().lower()
    child_quote_num = (child_quote.quote_number or "").strip().lower()

    evidence_found = []

    if child_vendor and child_vendor in combined_parent:
        evidence_found.append(f'Vendor "{child_quote.vendor_name}" found in parent')

    if child_quote_num and child_quote_num in combined_parent:
        evidence_found.append(f'Quote# "{child_quote.quote_number}" found in parent')

    return TextEvidence(
        has_evidence=bool(evidence_found),
        details="; ".join(evidence_found),
    )


def check_tax_trap(
    parent_line_amount: float,
    child_quote: Quote,
    rules: SafetyRules = DEFAULT_SAFETY_RULES,
) -> TaxTrapCheck:
    """Detect a line priced to a child's subtotal while its total is higher."""
    subtotal = child_quote.subtotal or 0
    total = child_quote.total or 0

    # A missing amount is not $0; it cannot match anything
    matches_subtotal = (
        child_quote.subtotal is not None and is_exact_match(parent_line_amount, subtotal, rules)
    )
    matches_total = (
        child_quote.total is not None and is_exact_match(parent_line_amount, total, rules)
    )

    return TaxTrapCheck(
        is_tax_trap=matches_subtotal and not matches_total and total > subtotal,
        matches_subtotal=matches_subtotal,
        matches_total=matches_total,
    )


# =============================================================================
# Classification
# =============================================================================


def compare_line_to_quote(
    parent_line: Line,
    parent_quote: Quote,
    child_quote: Quote,
    rules: SafetyRules = DEFAULT_SAFETY_RULES,
) -> MatchResult:
    """Classify a parent line against a candidate child quote.

    Args:
        parent_line: Line on the parent (wrapper) quote
        parent_quote: Quote that owns ``parent_line``; its text is the evidence source
        child_quote: Candidate child quote
        rules: Safety thresholds

    Returns:
        MatchResult of type EXACT, SOFT or NO_MATCH.
    """
    if parent_line.amount is None or (child_quote.total is None and child_quote.subtotal is None):
        return MatchResult(
            type=MatchType.NO_MATCH,
            confidence=0,
            has_text_evidence=False,
            variance_percent=100.0,
        )

    line_amount = parent_line.amount
    child_total = child_quote.total or 0
    child_subtotal = child_quote.subtotal or 0

    evidence = has_text_evidence(parent_quote, child_quote)
    tax_trap = check_tax_trap(line_amount, child_quote, rules)

    if tax_trap.matches_total or tax_trap.matches_subtotal:
        details = evidence.details
        if tax_trap.is_tax_trap:
            details = (
                f"TAX TRAP: Line matches subtotal (${child_subtotal:,.2f}), "
                f"child total is ${child_total:,.2f}. {evidence.details}"
            ).strip()
        return MatchResult(
            type=MatchType.EXACT,
            confidence=(
                EXACT_WITH_EVIDENCE_SCORE if evidence.has_evidence else EXACT_WITHOUT_EVIDENCE_SCORE
            ),
            has_text_evidence=evidence.has_evidence,
            evidence_details=details,
            variance_percent=0.0,
            is_tax_trap=tax_trap.is_tax_trap,
        )

    min_variance = min(
        get_variance_percent(line_amount, amount)
        for amount in (child_quote.total, child_quote.subtotal)
        if amount is not None
    )

    if min_variance <= rules.soft_match_variance_percent:
        return MatchResult(
            type=MatchType.SOFT,
            confidence=(
                SOFT_WITH_EVIDENCE_SCORE if evidence.has_evidence else SOFT_WITHOUT_EVIDENCE_SCORE
            ),
            has_text_evidence=evidence.has_evidence,
            evidence_details=evidence.details,
            variance_percent=min_variance,
        )

    return MatchResult(
        type=MatchType.NO_MATCH,
        confidence=0,
        has_text_evidence=False,
        variance_percent=min_variance,
    )


# =============================================================================
# Gate
# =============================================================================


def _duplicate_decision(
    parent_line: Line,
    parent_quote: Quote,
    child_quote: Quote,
    match: MatchResult,
) -> DecisionDraft:
    """Build the review-queue entry for a match without evidence."""
    if match.type == MatchType.EXACT:
        decision_type = DecisionType.POTENTIAL_DUPLICATE
        description = (
            f"Exact amount match (${parent_line.amount or 0:,.2f}) "
            f"but no vendor/quote# evidence found."
        )
    else:
        decision_type = DecisionType.SOFT_MATCH
        description = (
            f"Soft match ({match.variance_percent:.1f}% variance) without text evidence."
        )

    evidence: Dict[str, Any] = {
        "match_type": match.type.value,
        "variance_percent": round(match.variance_percent, 2),
        "parent_amount": parent_line.amount,
        "child_vendor": child_quote.vendor_name,
        "child_quote_number": child_quote.quote_number,
        "child_total": child_quote.total,
        "child_subtotal": child_quote.subtotal,
        "tax_trap": match.is_tax_trap,
    }

    return DecisionDraft(
        project_id=parent_quote.project_id,
        decision_type=decision_type,
        title=f"Possible duplicate: {parent_line.description}",
        description=description,
        quote_id_a=parent_quote.id,
        quote_id_b=child_quote.id,
        line_id_a=parent_line.id,
        evidence=evidence,
    )


def run_dedupe_check(
    parent_line: Line,
    parent_quote: Quote,
    child_quote: Quote,
    rules: SafetyRules = DEFAULT_SAFETY_RULES,
) -> DedupeResult:
    """Run the dedupe gate for a line / candidate quote pair.

    - NO_MATCH: no action
    - Any match with text evidence: AUTO_LINKED
    - Any match without text evidence: POTENTIAL_DUPLICATE plus a decision
    """
    match = compare_line_to_quote(parent_line, parent_quote, child_quote, rules)

    if match.type == MatchType.NO_MATCH:
        return DedupeResult(
            status=DedupeStatus.NO_MATCH,
            match=match,
            source_line_id=parent_line.id,
        )

    if match.has_text_evidence:
        logger.info(
            "dedupe_auto_linked",
            line_id=parent_line.id,
            child_quote_id=child_quote.id,
            match_type=match.type.value,
            evidence=match.evidence_details,
        )
        return DedupeResult(
            status=DedupeStatus.AUTO_LINKED,
            match=match,
            source_line_id=parent_line.id,
            target_quote_id=child_quote.id,
        )

    logger.info(
        "dedupe_potential_duplicate",
        line_id=parent_line.id,
        child_quote_id=child_quote.id,
        match_type=match.type.value,
        variance_percent=round(match.variance_percent, 2),
    )
    return DedupeResult(
        status=DedupeStatus.POTENTIAL_DUPLICATE,
        match=match,
        source_line_id=parent_line.id,
        decision=_duplicate_decision(parent_line, parent_quote, child_quote, match),
    )


def apply_dedupe_result(line: Line, result: DedupeResult) -> Line:
    """Return the line as it should be stored after a dedupe check.

    The caller persists this line together with ``result.decision`` so a retry
    never raises the same decision twice.
    """
    if result.source_line_id != line.id:
        raise ValueError(
            f"Dedupe result is for line {result.source_line_id!r}, not {line.id!r}"
        )

    if result.status == DedupeStatus.AUTO_LINKED:
        return line.model_copy(update={
            "matched_line_id": result.target_quote_id,
            "match_confidence": float(result.match.confidence),
            "match_evidence": result.match.evidence_details,
        })

    if result.status == DedupeStatus.POTENTIAL_DUPLICATE:
        return line.model_copy(update={
            "status": QuoteStatus.POTENTIAL_DUPLICATE,
            "match_confidence": float(result.match.confidence),
        })

    return line


def _rank(result: DedupeResult) -> Tuple[float, bool]:
    return (result.match.variance_percent, not result.match.has_text_evidence)


def find_best_match(
    parent_line: Line,
    parent_quote: Quote,
    candidates: Sequence[Quote],
    rules: SafetyRules = DEFAULT_SAFETY_RULES,
) -> Optional[DedupeResult]:
    """Run the gate against several candidates and keep the strongest result.

    Candidates are ranked by lower variance, then by text evidence. The
    advisory score plays no part. Returns None when no candidate matches.
    """
    best: Optional[DedupeResult] = None
    for child in candidates:
        if child.id == parent_quote.id:
            continue
        result = run_dedupe_check(parent_line, parent_quote, child, rules)
        if result.status == DedupeStatus.NO_MATCH:
            continue
        if best is None or _rank(result) < _rank(best):
            best = result
    return best
