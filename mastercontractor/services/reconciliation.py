"""Reconciliation pass for MasterContractor.

Runs every engine over one project snapshot and collects the results:

1. Wrapper Truth validation for each wrapper quote
2. Dedupe of wrapper lines against the wrapper's child quotes
3. Gap scanning (quote text, lines, scope dependencies), consolidated
4. Conflict scan of plan text and takeoff against quote lines
5. Project summary

The pass is a pure function of its inputs. Gap and decision drafts that an
earlier run already stored are not raised again, so re-running it after the
caller persisted the previous report adds nothing new.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

import structlog

from mastercontractor.config.safety_rules import DEFAULT_SAFETY_RULES, SafetyRules
from mastercontractor.data.ratebook import DEFAULT_RATEBOOK, Ratebook
from mastercontractor.models.decision import Decision, DecisionDraft
from mastercontractor.models.gap import Gap, GapDraft
from mastercontractor.models.quote import Line, Quote, QuoteStatus
from mastercontractor.models.summary import ProjectSummary
from mastercontractor.models.takeoff import TakeoffItem
from mastercontractor.services.conflict_detection import ConflictScanResult, run_conflict_scan
from mastercontractor.services.dedupe import (
    DedupeResult,
    DedupeStatus,
    apply_dedupe_result,
    find_best_match,
)
from mastercontractor.services.gap_detection import (
    SOURCE_SEPARATOR,
    LaborOnlyFlag,
    consolidate_gaps,
    scan_destructive_dependencies,
    scan_quote_for_gaps,
)
from mastercontractor.services.project_summary import generate_project_summary
from mastercontractor.services.safety import WrapperValidationResult, validate_wrapper_truth

logger = structlog.get_logger(__name__)


@dataclass
class ReconciliationReport:
    """Everything one reconciliation pass found.

    Attributes:
        project_id: Project the pass ran for
        summary: Cost snapshot including the newly detected gaps and decisions
        wrapper_results: Wrapper Truth validation keyed by wrapper quote id
        dedupe_results: Non-trivial dedupe outcomes for wrapper lines
        updated_lines: Lines changed by dedupe, ready to persist
        gaps: New, consolidated gap drafts
        labor_only_flags: Lines priced as labor without materials
        conflict_scan: Plan vs quote findings, None when there was no plan or takeoff
        decisions: New decision drafts, free of duplicates
        skipped_decisions: Drafts dropped because an open decision already covers them
    """

    project_id: Optional[str]
    summary: ProjectSummary
    wrapper_results: Dict[str, WrapperValidationResult] = field(default_factory=dict)
    dedupe_results: List[DedupeResult] = field(default_factory=list)
    updated_lines: List[Line] = field(default_factory=list)
    gaps: List[GapDraft] = field(default_factory=list)
    labor_only_flags: List[LaborOnlyFlag] = field(default_factory=list)
    conflict_scan: Optional[ConflictScanResult] = None
    decisions: List[DecisionDraft] = field(default_factory=list)
    skipped_decisions: int = 0

    @property
    def has_blocking_issues(self) -> bool:
        """True when a wrapper is invalid or the conflict scan blocks."""
        if any(not result.is_valid for result in self.wrapper_results.values()):
            return True
        return bool(self.conflict_scan and self.conflict_scan.has_blocking_issues)


def _lines_for(quote_id: str, lines: Sequence[Line]) -> List[Line]:
    return [line for line in lines if line.quote_id == quote_id]


def _needs_dedupe(line: Line) -> bool:
    return not line.matched_line_id and line.status != QuoteStatus.POTENTIAL_DUPLICATE


def _filter_decisions(
    drafts: Sequence[DecisionDraft],
    existing: Sequence[Decision],
) -> Tuple[List[DecisionDraft], int]:
    """Drop drafts already open in the queue or repeated within this pass."""
    seen: Set[Tuple[str, ...]] = {d.fingerprint() for d in existing if not d.resolved}
    kept: List[DecisionDraft] = []
    skipped = 0

    for draft in drafts:
        key = draft.fingerprint()
        if key in seen:
            skipped += 1
            continue
        seen.add(key)
        kept.append(draft)

    return kept, skipped


def _source_parts(source: str) -> List[str]:
    return [part for part in (source or "").split(SOURCE_SEPARATOR) if part]


def _filter_gaps(drafts: Sequence[GapDraft], existing: Sequence[Gap]) -> List[GapDraft]:
    """Drop conditions an open stored gap already records.

    A condition is a scope tag plus one source. Resolved gaps never cover a
    new condition. A draft sharing a scope tag with an open gap is kept with
    only the sources that gap does not list yet.
    """
    known: Dict[str, Set[str]] = {}
    for gap in existing:
        if gap.resolved:
            continue
        known.setdefault((gap.scope_tag or "").upper(), set()).update(_source_parts(gap.source))

    kept: List[GapDraft] = []
    for draft in drafts:
        key = (draft.scope_tag or "").upper()
        if key not in known:
            kept.append(draft)
            continue
        new_sources = [s for s in _source_parts(draft.source) if s not in known[key]]
        if new_sources:
            kept.append(draft.model_copy(update={"source": SOURCE_SEPARATOR.join(new_sources)}))
    return kept


def reconcile_project(
    project_id: Optional[str],
    quotes: Sequence[Quote],
    lines: Sequence[Line],
    gaps: Sequence[Gap] = (),
    decisions: Sequence[Decision] = (),
    plan_text: str = "",
    takeoff_items: Optional[Sequence[TakeoffItem]] = None,
    ratebook: Ratebook = DEFAULT_RATEBOOK,
    rules: SafetyRules = DEFAULT_SAFETY_RULES,
) -> ReconciliationReport:
    """Run the full reconciliation pass over a project snapshot.

    Args:
        project_id: Project being reconciled
        quotes: All quotes of the project
        lines: All lines of those quotes
        gaps: Gaps already stored for the project
        decisions: Decisions already stored for the project
        plan_text: Plan / spec text for the conflict scan
        takeoff_items: Takeoff quantities for the quantity-mismatch check
        ratebook: Rule and rate table
        rules: Safety thresholds

    Returns:
        ReconciliationReport. Nothing is persisted; the caller stores the
        updated lines, new gaps and new decisions.
    """
    logger.info(
        "reconciliation_started",
        project_id=project_id,
        quotes=len(quotes),
        lines=len(lines),
    )

    wrapper_results: Dict[str, WrapperValidationResult] = {}
    dedupe_results: List[DedupeResult] = []
    updated_lines: List[Line] = []
    decision_drafts: List[DecisionDraft] = []

    for wrapper in quotes:
        children = [q for q in quotes if q.parent_quote_id == wrapper.id]
        if not wrapper.is_wrapper and not children:
            continue

        wrapper_lines = _lines_for(wrapper.id, lines)
        wrapper_results[wrapper.id] = validate_wrapper_truth(wrapper, children, wrapper_lines, rules)

        for line in wrapper_lines:
            if not _needs_dedupe(line):
                continue
            result = find_best_match(line, wrapper, children, rules)
            if result is None:
                continue
            dedupe_results.append(result)
            updated_lines.append(apply_dedupe_result(line, result))
            if result.status == DedupeStatus.POTENTIAL_DUPLICATE and result.decision:
                decision = result.decision
                if decision.project_id is None:
                    decision = decision.model_copy(update={"project_id": project_id})
                decision_drafts.append(decision)

    gap_drafts: List[GapDraft] = []
    labor_only_flags: List[LaborOnlyFlag] = []
    for quote in quotes:
        scan = scan_quote_for_gaps(quote, _lines_for(quote.id, lines), project_id, rules)
        gap_drafts.extend(scan.gaps)
        labor_only_flags.extend(scan.labor_only_flags)
    gap_drafts.extend(scan_destructive_dependencies(lines, project_id, ratebook))

    new_gaps = _filter_gaps(consolidate_gaps(gap_drafts), gaps)

    conflict_scan = None
    if plan_text or takeoff_items:
        conflict_scan = run_conflict_scan(
            project_id,
            plan_text,
            lines,
            takeoff_items,
            ratebook=ratebook,
            rules=rules,
        )
        decision_drafts.extend(conflict_scan.decisions)

    new_decisions, skipped = _filter_decisions(decision_drafts, decisions)

    summary = generate_project_summary(
        quotes,
        [*gaps, *new_gaps],
        [*decisions, *new_decisions],
    )

    report = ReconciliationReport(
        project_id=project_id,
        summary=summary,
        wrapper_results=wrapper_results,
        dedupe_results=dedupe_results,
        updated_lines=updated_lines,
        gaps=new_gaps,
        labor_only_flags=labor_only_flags,
        conflict_scan=conflict_scan,
        decisions=new_decisions,
        skipped_decisions=skipped,
    )

    logger.info(
        "reconciliation_complete",
        project_id=project_id,
        new_gaps=len(new_gaps),
        new_decisions=len(new_decisions),
        skipped_decisions=skipped,
        blocking=report.has_blocking_issues,
        confidence=summary.confidence.value,
    )
    return report
