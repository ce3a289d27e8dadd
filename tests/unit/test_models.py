"""
Unit Tests for Domain Models.

Test Coverage:
- CostRange ordering, provenance and scaling
- Frozen quotes and lines
- Gap and Decision drafts, promotion and resolution
- Decision fingerprints
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from mastercontractor.models.cost_range import (
    ConfidenceLevel,
    CostRange,
    RateSource,
    RateSourceType,
)
from mastercontractor.models.decision import Decision, DecisionDraft, DecisionType
from mastercontractor.models.gap import Gap, GapDraft
from mastercontractor.models.quote import QuoteStatus
from tests.fixtures.mock_project_data import make_line, make_quote


# =============================================================================
# CostRange
# =============================================================================


class TestCostRange:
    """Tests for CostRange."""

    def test_from_ratebook(self):
        rng = CostRange.from_ratebook(100, 200, 300, "RULE:X")

        assert rng.confidence == ConfidenceLevel.MEDIUM
        assert rng.source.type == RateSourceType.RATEBOOK_V1
        assert rng.source.ref == "RULE:X"
        assert rng.source.date == "2024-Q4"
        assert rng.to_dict() == {"low": 100, "likely": 200, "high": 300}

    def test_order_is_enforced(self):
        with pytest.raises(PydanticValidationError):
            CostRange(
                low=300,
                likely=200,
                high=100,
                source=RateSource(type=RateSourceType.USER_OVERRIDE, ref="manual"),
            )

    def test_negative_rejected(self):
        with pytest.raises(PydanticValidationError):
            CostRange.from_ratebook(-1, 0, 1, "RULE:X")

    def test_scaling_keeps_provenance(self):
        scaled = CostRange.from_ratebook(100, 200, 300, "RULE:X") * 1.5

        assert (scaled.low, scaled.likely, scaled.high) == (150, 300, 450)
        assert scaled.source.ref == "RULE:X"

    def test_confidence_rank(self):
        assert ConfidenceLevel.LOW.rank < ConfidenceLevel.MEDIUM.rank < ConfidenceLevel.HIGH.rank


# =============================================================================
# Quotes and Lines
# =============================================================================


class TestQuoteAndLine:
    """Tests for Quote and Line."""

    def test_quote_is_frozen(self):
        quote = make_quote("q-1")
        with pytest.raises(PydanticValidationError):
            quote.total = 5

    def test_with_status_returns_copy(self):
        quote = make_quote("q-1")
        verified = quote.with_status(QuoteStatus.VERIFIED)

        assert quote.status == QuoteStatus.PENDING
        assert verified.status == QuoteStatus.VERIFIED

    def test_nullable_money(self):
        """Absent money stays None rather than zero."""
        quote = make_quote("q-1", total=None)
        assert quote.total is None
        assert quote.subtotal is None

    def test_evidence_and_scan_text(self):
        quote = make_quote("q-1", raw_text="Proposal", notes="Includes tile")
        line = make_line("l-1", description="Tile", notes="by others")

        assert "Proposal" in quote.evidence_text() and "Includes tile" in quote.evidence_text()
        assert line.scan_text() == "Tile by others"


# =============================================================================
# Gaps
# =============================================================================


class TestGap:
    """Tests for GapDraft and Gap."""

    def test_draft_without_estimate(self):
        draft = GapDraft(scope_tag="SIDING", description="Siding excluded")
        assert not draft.has_estimate
        assert draft.confidence == ConfidenceLevel.LOW

    def test_with_estimate(self):
        estimate = CostRange.from_ratebook(100, 200, 300, "RULE:X")
        draft = GapDraft(scope_tag="PAINT", description="Paint").with_estimate(estimate)

        assert draft.has_estimate
        assert (draft.estimated_low, draft.estimated_mid, draft.estimated_high) == (100, 200, 300)
        assert draft.rate_source == "RULE:X"
        assert draft.confidence == ConfidenceLevel.MEDIUM

    def test_from_draft_and_resolve(self):
        draft = GapDraft(scope_tag="PAINT", description="Paint", project_id="proj-1")
        gap = Gap.from_draft(draft, "g-1")

        assert gap.id == "g-1"
        assert gap.project_id == "proj-1"
        assert not gap.resolved

        resolved = gap.resolve("q-paint")
        assert resolved.resolved
        assert resolved.resolved_by_quote_id == "q-paint"
        assert not gap.resolved

    def test_stored_gap_needs_project(self):
        draft = GapDraft(scope_tag="PAINT", description="Paint")
        with pytest.raises(PydanticValidationError):
            Gap.from_draft(draft, "g-1")


# =============================================================================
# Decisions
# =============================================================================


class TestDecision:
    """Tests for DecisionDraft and Decision."""

    def test_fingerprint_ignores_description_and_evidence(self):
        a = DecisionDraft(
            decision_type=DecisionType.SOFT_MATCH,
            title="Review",
            line_id_a="l-1",
            quote_id_b="q-2",
            description="first",
            evidence={"variance": 2.0},
        )
        b = a.model_copy(update={"description": "second", "evidence": {"variance": 3.0}})

        assert a.fingerprint() == b.fingerprint()

    def test_fingerprint_distinguishes_targets(self):
        a = DecisionDraft(decision_type=DecisionType.SOFT_MATCH, title="Review", line_id_a="l-1")
        b = a.model_copy(update={"line_id_a": "l-2"})
        assert a.fingerprint() != b.fingerprint()

    def test_stored_decision_keeps_fingerprint(self):
        draft = DecisionDraft(
            decision_type=DecisionType.BRAND_CONFLICT, title="WINDOWS Brand Mismatch"
        )
        decision = Decision.from_draft(draft, "d-1", project_id="proj-1")

        assert decision.fingerprint() == draft.fingerprint()
        assert decision.project_id == "proj-1"

    def test_resolve(self):
        decision = Decision(
            id="d-1",
            project_id="proj-1",
            decision_type=DecisionType.POTENTIAL_DUPLICATE,
            title="Possible duplicate",
        )
        resolved = decision.resolve("LINK", resolved_at="2024-11-02")

        assert resolved.resolved
        assert resolved.resolution == "LINK"
        assert resolved.resolved_at == "2024-11-02"
        assert not decision.resolved
