"""Gap Detection Engine for MasterContractor.

Surfaces scope that is intended but missing from priced deliverables:
- Exclusion language ("SIDING NOT IN ESTIMATE") creates a gap
- Labor-only pricing always creates a materials gap
- Scope dependency rules (tile implies thinset/grout) create a gap with a
  ratebook default estimate

Keyword-derived gaps are LOW confidence with no estimate: the engine never
invents a number it cannot justify.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import structlog

from mastercontractor.config.safety_rules import DEFAULT_SAFETY_RULES, SafetyRules
from mastercontractor.data.ratebook import DEFAULT_RATEBOOK, Ratebook
from mastercontractor.models.cost_range import ConfidenceLevel
from mastercontractor.models.gap import GapDraft
from mastercontractor.models.quote import Line, LineType, Quote

logger = structlog.get_logger(__name__)

UNSPECIFIED_SCOPE = "UNSPECIFIED"
SOURCE_SEPARATOR = "; "


def _find_keyword(upper_text: str, keyword: str) -> Optional[re.Match]:
    """Find a whole-word keyword; "NIC" must not hit "MECHANICAL"."""
    return re.search(rf"(?<![A-Z0-9]){re.escape(keyword)}(?![A-Z0-9])", upper_text)


# =============================================================================
# Keyword Checks
# =============================================================================


@dataclass
class ExclusionMatch:
    """Exclusion keyword hit and the scope it most likely refers to."""

    found: bool
    keyword: str = ""
    extracted_scope: str = ""


@dataclass
class LaborOnlyMatch:
    """Labor-only keyword hit."""

    is_labor: bool
    keyword: str = ""


def contains_exclusion_keyword(
    text: str,
    rules: SafetyRules = DEFAULT_SAFETY_RULES,
) -> ExclusionMatch:
    """Look for exclusion language and guess the excluded scope.

    The scope is the last one or two words longer than two characters that
    precede the keyword. This is a best-effort guess; gaps built from it are
    LOW confidence and meant for human review.
    """
    upper_text = (text or "").upper()

    for keyword in rules.exclusion_keywords:
        found = _find_keyword(upper_text, keyword)
        if found is None:
            continue

        scope_part = upper_text[:found.start()].strip()
        words = [w for w in re.split(r"\s+", scope_part) if len(w) > 2]
        extracted_scope = " ".join(words[-2:]) or UNSPECIFIED_SCOPE

        return ExclusionMatch(found=True, keyword=keyword, extracted_scope=extracted_scope)

    return ExclusionMatch(found=False)


def is_labor_only(
    text: str,
    rules: SafetyRules = DEFAULT_SAFETY_RULES,
) -> LaborOnlyMatch:
    """Check if text marks a line as labor-only."""
    upper_text = (text or "").upper()

    for keyword in rules.labor_only_keywords:
        if _find_keyword(upper_text, keyword):
            return LaborOnlyMatch(is_labor=True, keyword=keyword)

    return LaborOnlyMatch(is_labor=False)


# =============================================================================
# Quote Scanning
# =============================================================================


@dataclass
class LaborOnlyFlag:
    """A line priced as labor without materials."""

    quote_id: str
    line_id: str
    description: str


@dataclass
class GapDetectionResult:
    """Gaps and labor-only flags found on one quote."""

    gaps: List[GapDraft] = field(default_factory=list)
    labor_only_flags: List[LaborOnlyFlag] = field(default_factory=list)


def scan_quote_for_gaps(
    quote: Quote,
    lines: Sequence[Line],
    project_id: Optional[str] = None,
    rules: SafetyRules = DEFAULT_SAFETY_RULES,
) -> GapDetectionResult:
    """Scan a quote's text and lines for exclusions and labor-only items."""
    project_id = project_id or quote.project_id
    result = GapDetectionResult()

    exclusion = contains_exclusion_keyword(f"{quote.notes or ''} {quote.raw_text or ''}", rules)
    if exclusion.found:
        result.gaps.append(GapDraft(
            project_id=project_id,
            scope_tag=exclusion.extracted_scope,
            description=f"Excluded from {quote.vendor_name} quote",
            source=f'Extracted from: "{exclusion.keyword}" in quote {quote.quote_number or quote.id}',
            confidence=ConfidenceLevel.LOW,
        ))

    for line in lines:
        line_text = line.scan_text()

        line_exclusion = contains_exclusion_keyword(line_text, rules)
        if line_exclusion.found:
            scope = line_exclusion.extracted_scope
            if scope == UNSPECIFIED_SCOPE and line.scope_tag:
                scope = line.scope_tag
            result.gaps.append(GapDraft(
                project_id=project_id,
                scope_tag=scope,
                description=f"Excluded: {line.description}",
                source=f'Extracted from line {line.id}: "{line_exclusion.keyword}"',
                confidence=ConfidenceLevel.LOW,
            ))

        labor_check = is_labor_only(line_text, rules)
        if labor_check.is_labor or line.line_type == LineType.LABOR:
            result.labor_only_flags.append(LaborOnlyFlag(
                quote_id=quote.id,
                line_id=line.id,
                description=line.description,
            ))
            result.gaps.append(GapDraft(
                project_id=project_id,
                scope_tag=line.scope_tag or "MATERIALS",
                description=f"Materials needed for: {line.description}",
                source=(
                    f'Labor-only detected on line {line.id}: '
                    f'"{labor_check.keyword or "line_type=LABOR"}"'
                ),
                confidence=ConfidenceLevel.LOW,
            ))

    if result.gaps:
        logger.info(
            "gap_detected",
            quote_id=quote.id,
            gaps=len(result.gaps),
            labor_only=len(result.labor_only_flags),
        )
    return result


# =============================================================================
# Scope Dependencies
# =============================================================================


def _contains_any(text: str, keywords: Sequence[str]) -> bool:
    # Word starts only: "demo" hits "demolition", "ice" does not hit "service"
    return any(re.search(rf"\b{re.escape(keyword.lower())}", text) for keyword in keywords)


def scan_destructive_dependencies(
    lines: Sequence[Line],
    project_id: Optional[str] = None,
    ratebook: Ratebook = DEFAULT_RATEBOOK,
) -> List[GapDraft]:
    """Check ratebook scope dependencies across all line text.

    If any trigger keyword of a rule appears in the combined text but none of
    its required keywords do, a gap is created with the rule's default
    estimate and explicit rule provenance.
    """
    combined = " ".join(
        f"{line.description or ''} {line.scope_tag or ''} {line.notes or ''}" for line in lines
    ).lower()

    gaps: List[GapDraft] = []
    for rule in ratebook.scope_dependencies:
        if not _contains_any(combined, rule.trigger):
            continue
        if _contains_any(combined, rule.requires):
            continue

        gap = GapDraft(
            project_id=project_id,
            scope_tag=rule.name,
            description=rule.gap_description,
            source=(
                f"Dependency Rule: {'/'.join(rule.trigger)} requires "
                f"{'/'.join(rule.requires)}"
            ),
        ).with_estimate(rule.default_estimate)
        gaps.append(gap)

        logger.info(
            "dependency_gap_detected",
            rule=rule.default_estimate.source.ref,
            scope_tag=rule.name,
        )

    return gaps


# =============================================================================
# Consolidation
# =============================================================================


def consolidate_gaps(gaps: Sequence[GapDraft]) -> List[GapDraft]:
    """Merge gaps that share a scope tag (case-insensitive).

    Sources are concatenated, never dropped. The estimate triple and its rate
    source come together from whichever gap has the largest ``estimated_high``.
    Applying this twice gives the same result as applying it once.
    """
    merged: Dict[str, GapDraft] = {}

    for gap in gaps:
        key = (gap.scope_tag or "").upper()
        existing = merged.get(key)

        if existing is None:
            merged[key] = gap
            continue

        update = {"source": SOURCE_SEPARATOR.join(s for s in (existing.source, gap.source) if s)}

        incoming_high = gap.estimated_high if gap.estimated_high is not None else -1.0
        existing_high = existing.estimated_high if existing.estimated_high is not None else -1.0
        if incoming_high > existing_high:
            update.update({
                "estimated_low": gap.estimated_low,
                "estimated_mid": gap.estimated_mid,
                "estimated_high": gap.estimated_high,
                "rate_source": gap.rate_source,
            })

        merged[key] = existing.model_copy(update=update)

    return list(merged.values())
