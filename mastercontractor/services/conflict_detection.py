"""Conflict Detection Engine for MasterContractor.

Brand and spec mismatch detection between what a plan specifies and what a
quote actually delivers:
- Brand conflicts: plan names one brand in a category, a quote line another
- Spec variances: plan and quote dimensions disagree
- Quantity mismatches: quoted quantity drifts from the takeoff

Brand conflicts and critical dimension mismatches become decisions and block
the workflow. Quantity mismatches are informational; they are handled through
the gap / re-quote flow instead of the decision queue.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

import structlog

from mastercontractor.config.safety_rules import DEFAULT_SAFETY_RULES, SafetyRules
from mastercontractor.data.ratebook import DEFAULT_RATEBOOK, Ratebook
from mastercontractor.models.decision import DecisionDraft, DecisionType
from mastercontractor.models.quote import Line
from mastercontractor.models.takeoff import TakeoffItem
from mastercontractor.services.text_matching import (
    DEFAULT_BRAND_MATCHER,
    DEFAULT_DIMENSION_EXTRACTOR,
    BrandExtractor,
    DimensionExtractor,
    find_brand,
    parse_dimensions,
)

logger = structlog.get_logger(__name__)


class Severity(str, Enum):
    """How serious a detected conflict is."""

    CRITICAL = "CRITICAL"
    WARNING = "WARNING"
    INFO = "INFO"


# =============================================================================
# BRAND CONFLICT DETECTION
# =============================================================================


@dataclass
class BrandConflict:
    """Plan and quote name different brands in the same category."""

    category: str
    plan_brand: str
    quote_brand: str
    quote_line_id: str
    severity: Severity
    description: str


def scan_for_brand_conflicts(
    plan_text: str,
    quote_lines: Sequence[Line],
    ratebook: Ratebook = DEFAULT_RATEBOOK,
    matcher: BrandExtractor = DEFAULT_BRAND_MATCHER,
) -> List[BrandConflict]:
    """Scan quote lines for brands that differ from the plan's brand.

    Only a different brand in the same category counts; the same brand
    mentioned again is not a conflict.
    """
    conflicts: List[BrandConflict] = []

    for category, brands in ratebook.brand_catalogs.items():
        plan_brand = find_brand(plan_text, brands, matcher)
        if not plan_brand:
            continue

        for line in quote_lines:
            line_brand = find_brand(line.description, brands, matcher)
            if line_brand and line_brand != plan_brand:
                conflicts.append(BrandConflict(
                    category=category,
                    plan_brand=plan_brand.upper(),
                    quote_brand=line_brand.upper(),
                    quote_line_id=line.id,
                    severity=Severity.CRITICAL,
                    description=(
                        f"Plan specifies {plan_brand.upper()} {category}, "
                        f"but quote includes {line_brand.upper()}."
                    ),
                ))

    return conflicts


def create_brand_conflict_decisions(
    project_id: Optional[str],
    conflicts: Sequence[BrandConflict],
) -> List[DecisionDraft]:
    """Convert brand conflicts to decision queue drafts."""
    return [
        DecisionDraft(
            project_id=project_id,
            decision_type=DecisionType.BRAND_CONFLICT,
            title=f"{conflict.category.upper()} Brand Mismatch",
            description=conflict.description,
            line_id_a=conflict.quote_line_id,
            evidence={
                "category": conflict.category,
                "plan_brand": conflict.plan_brand,
                "quote_brand": conflict.quote_brand,
                "severity": conflict.severity.value,
            },
        )
        for conflict in conflicts
    ]


# =============================================================================
# SPEC VARIANCE DETECTION
# =============================================================================


@dataclass
class SpecVariance:
    """A plan vs quote specification difference."""

    field: str
    plan_value: str
    quote_value: str
    severity: Severity


def scan_for_spec_variances(
    plan_text: str,
    quote_text: str,
    extractor: DimensionExtractor = DEFAULT_DIMENSION_EXTRACTOR,
) -> List[SpecVariance]:
    """Compare the dimensions found in plan text and quote text."""
    variances: List[SpecVariance] = []

    plan_dims = parse_dimensions(plan_text, extractor)
    quote_dims = parse_dimensions(quote_text, extractor)

    for name in ("width", "height"):
        plan_value = getattr(plan_dims, name)
        quote_value = getattr(quote_dims, name)
        if plan_value and quote_value and plan_value != quote_value:
            variances.append(SpecVariance(
                field=name,
                plan_value=str(plan_value),
                quote_value=str(quote_value),
                severity=Severity.CRITICAL,
            ))

    return variances


# =============================================================================
# QUANTITY MISMATCH DETECTION
# =============================================================================


@dataclass
class QuantityMismatch:
    """Quoted quantity outside tolerance of the takeoff quantity."""

    scope_tag: str
    expected_qty: float
    quoted_qty: float
    variance_percent: float
    severity: Severity


def detect_quantity_mismatches(
    takeoff_items: Sequence[TakeoffItem],
    quote_lines: Sequence[Line],
    tolerance_percent: Optional[float] = None,
    rules: SafetyRules = DEFAULT_SAFETY_RULES,
) -> List[QuantityMismatch]:
    """Compare takeoff quantities against quoted quantities.

    Lines are matched to takeoff items by scope tag (case-insensitive). Above
    ``tolerance_percent`` (default 10) a mismatch is a WARNING, above the
    critical threshold (25) it is CRITICAL.
    """
    if tolerance_percent is None:
        tolerance_percent = rules.quantity_tolerance_percent

    mismatches: List[QuantityMismatch] = []

    for takeoff in takeoff_items:
        matching_line = next(
            (
                line for line in quote_lines
                if line.scope_tag and line.scope_tag.upper() == takeoff.scope_tag.upper()
            ),
            None,
        )
        if matching_line is None or not matching_line.quantity:
            continue

        if takeoff.qty == 0:
            variance_percent = 100.0
        else:
            variance_percent = abs((matching_line.quantity - takeoff.qty) / takeoff.qty * 100)

        if variance_percent > tolerance_percent:
            mismatches.append(QuantityMismatch(
                scope_tag=takeoff.scope_tag,
                expected_qty=takeoff.qty,
                quoted_qty=matching_line.quantity,
                variance_percent=variance_percent,
                severity=(
                    Severity.CRITICAL
                    if variance_percent > rules.quantity_critical_percent
                    else Severity.WARNING
                ),
            ))

    return mismatches


# =============================================================================
# COMBINED CONFLICT SCANNER
# =============================================================================


@dataclass
class ConflictScanResult:
    """All conflict findings for a plan / quote comparison."""

    brand_conflicts: List[BrandConflict] = field(default_factory=list)
    spec_variances: List[SpecVariance] = field(default_factory=list)
    quantity_mismatches: List[QuantityMismatch] = field(default_factory=list)
    has_blocking_issues: bool = False
    decisions: List[DecisionDraft] = field(default_factory=list)


def run_conflict_scan(
    project_id: Optional[str],
    plan_text: str,
    quote_lines: Sequence[Line],
    takeoff_items: Optional[Sequence[TakeoffItem]] = None,
    ratebook: Ratebook = DEFAULT_RATEBOOK,
    rules: SafetyRules = DEFAULT_SAFETY_RULES,
    extractor: DimensionExtractor = DEFAULT_DIMENSION_EXTRACTOR,
    matcher: BrandExtractor = DEFAULT_BRAND_MATCHER,
) -> ConflictScanResult:
    """Run all conflict scans and return combined results."""
    brand_conflicts = scan_for_brand_conflicts(plan_text, quote_lines, ratebook, matcher)

    quote_text = " ".join(line.description or "" for line in quote_lines)
    spec_variances = scan_for_spec_variances(plan_text, quote_text, extractor)

    quantity_mismatches = (
        detect_quantity_mismatches(takeoff_items, quote_lines, rules=rules)
        if takeoff_items
        else []
    )

    decisions = create_brand_conflict_decisions(project_id, brand_conflicts)

    for variance in spec_variances:
        if variance.severity != Severity.CRITICAL:
            continue
        decisions.append(DecisionDraft(
            project_id=project_id,
            decision_type=DecisionType.SPEC_CONFLICT,
            title=f"{variance.field.upper()} Dimension Mismatch",
            description=f"Plan shows {variance.plan_value}, quote shows {variance.quote_value}.",
            evidence={
                "field": variance.field,
                "plan_value": variance.plan_value,
                "quote_value": variance.quote_value,
            },
        ))

    has_blocking_issues = (
        any(c.severity == Severity.CRITICAL for c in brand_conflicts)
        or any(v.severity == Severity.CRITICAL for v in spec_variances)
    )

    if has_blocking_issues:
        logger.warning(
            "conflict_scan_blocking",
            project_id=project_id,
            brand_conflicts=len(brand_conflicts),
            spec_variances=len(spec_variances),
        )

    return ConflictScanResult(
        brand_conflicts=brand_conflicts,
        spec_variances=spec_variances,
        quantity_mismatches=quantity_mismatches,
        has_blocking_issues=has_blocking_issues,
        decisions=decisions,
    )
