"""
Unit Tests for the Project Summary Engine.

Test Coverage:
- Verified cost under the Wrapper Truth Rule
- Pending and estimated costs
- Confidence thresholds
- Full summary generation on the kitchen remodel
"""

import random

from mastercontractor.models.cost_range import ConfidenceLevel
from mastercontractor.models.quote import QuoteStatus, ReconciliationRule
from mastercontractor.services.project_summary import (
    calculate_estimated_cost,
    calculate_pending_cost,
    calculate_verified_cost,
    determine_confidence,
    generate_project_summary,
)
from tests.fixtures.mock_project_data import (
    CABINET_CHILD,
    FLOORING_CHILD,
    GC_WRAPPER,
    make_decision,
    make_gap,
    make_quote,
)


# =============================================================================
# Verified Cost
# =============================================================================


class TestCalculateVerifiedCost:
    """Tests for calculate_verified_cost."""

    def test_authoritative_wrapper_excludes_children(self):
        """Only the wrapper total counts; verified children are audit-only."""
        assert calculate_verified_cost([GC_WRAPPER, FLOORING_CHILD, CABINET_CHILD]) == 10700.0

    def test_additive_quotes_are_summed(self):
        quotes = [
            make_quote("q-1", total=1000.0, status=QuoteStatus.VERIFIED),
            make_quote("q-2", total=2500.0, status=QuoteStatus.VERIFIED),
        ]
        assert calculate_verified_cost(quotes) == 3500.0

    def test_wrapper_plus_independent_quote(self):
        independent = make_quote("q-paint", total=1800.0, status=QuoteStatus.VERIFIED)
        quotes = [FLOORING_CHILD, GC_WRAPPER, independent, CABINET_CHILD]
        assert calculate_verified_cost(quotes) == 12500.0

    def test_unverified_and_reference_quotes_do_not_count(self):
        quotes = [
            make_quote("q-1", total=1000.0, status=QuoteStatus.PENDING),
            make_quote(
                "q-2",
                total=2000.0,
                status=QuoteStatus.VERIFIED,
                reconciliation_rule=ReconciliationRule.REFERENCE_ONLY,
            ),
        ]
        assert calculate_verified_cost(quotes) == 0.0

    def test_unverified_wrapper_does_not_count(self):
        """An unverified wrapper adds nothing, and neither does a wrapper flag on an ADDITIVE quote."""
        pending_wrapper = GC_WRAPPER.with_status(QuoteStatus.PENDING)
        additive_wrapper = make_quote(
            "q-w", total=5000.0, is_wrapper=True, status=QuoteStatus.VERIFIED
        )
        assert calculate_verified_cost([pending_wrapper, additive_wrapper]) == 0.0

    def test_null_total_counts_as_zero(self):
        quotes = [make_quote("q-1", total=None, status=QuoteStatus.VERIFIED)]
        assert calculate_verified_cost(quotes) == 0.0

    def test_duplicate_quote_ids_count_once(self):
        quote = make_quote("q-1", total=1000.0, status=QuoteStatus.VERIFIED)
        assert calculate_verified_cost([quote, quote]) == 1000.0

    def test_wrapper_exclusivity_property(self):
        """Children's totals never affect the verified cost of an authoritative wrapper."""
        rng = random.Random(7)

        for _ in range(200):
            wrapper_total = round(rng.uniform(1000, 50000), 2)
            wrapper = make_quote(
                "q-w",
                total=wrapper_total,
                is_wrapper=True,
                reconciliation_rule=ReconciliationRule.AUTHORITATIVE,
                status=QuoteStatus.VERIFIED,
            )
            children = [
                make_quote(
                    f"q-c{i}",
                    total=round(rng.uniform(0, 40000), 2),
                    parent_quote_id="q-w",
                    status=rng.choice([QuoteStatus.VERIFIED, QuoteStatus.PENDING]),
                    reconciliation_rule=rng.choice(list(ReconciliationRule)),
                )
                for i in range(rng.randint(0, 6))
            ]
            quotes = children + [wrapper]
            rng.shuffle(quotes)

            assert calculate_verified_cost(quotes) == wrapper_total


# =============================================================================
# Pending and Estimated Cost
# =============================================================================


class TestPendingAndEstimated:
    """Tests for calculate_pending_cost and calculate_estimated_cost."""

    def test_pending_includes_decision_required(self):
        quotes = [
            make_quote("q-1", total=1000.0, status=QuoteStatus.PENDING),
            make_quote("q-2", total=500.0, status=QuoteStatus.DECISION_REQUIRED),
            make_quote("q-3", total=9999.0, status=QuoteStatus.VERIFIED),
            make_quote("q-4", total=None, status=QuoteStatus.PENDING),
        ]
        assert calculate_pending_cost(quotes) == 1500.0

    def test_estimated_skips_resolved_gaps(self):
        gaps = [
            make_gap("g-1"),
            make_gap("g-2", estimated_low=None, estimated_mid=None, estimated_high=None),
            make_gap("g-3", resolved=True, resolved_by_quote_id="q-9"),
        ]
        estimate = calculate_estimated_cost(gaps)
        assert (estimate.low, estimate.mid, estimate.high) == (100.0, 200.0, 300.0)


# =============================================================================
# Confidence
# =============================================================================


class TestDetermineConfidence:
    """Tests for determine_confidence."""

    def test_nothing_to_estimate_is_low(self):
        assert determine_confidence(0, 0, 0, 0, 0) == ConfidenceLevel.LOW

    def test_high(self):
        assert determine_confidence(9000, 500, 500, 1, 1) == ConfidenceLevel.HIGH

    def test_too_many_gaps_drops_to_medium(self):
        assert determine_confidence(9000, 500, 500, 2, 0) == ConfidenceLevel.MEDIUM

    def test_medium_threshold(self):
        assert determine_confidence(6000, 2000, 2000, 4, 4) == ConfidenceLevel.MEDIUM

    def test_boundaries_are_exclusive(self):
        """Exactly 80% is not HIGH and exactly 50% is not MEDIUM."""
        assert determine_confidence(8000, 2000, 0, 0, 0) == ConfidenceLevel.MEDIUM
        assert determine_confidence(5000, 5000, 0, 0, 0) == ConfidenceLevel.LOW

    def test_too_many_decisions_is_low(self):
        assert determine_confidence(9000, 0, 0, 0, 5) == ConfidenceLevel.LOW


# =============================================================================
# Summary
# =============================================================================


class TestGenerateProjectSummary:
    """Tests for generate_project_summary."""

    def test_kitchen_summary(self):
        quotes = [GC_WRAPPER, FLOORING_CHILD, CABINET_CHILD]
        gaps = [make_gap("g-1", estimated_mid=4000.0, estimated_high=8000.0)]
        decisions = [make_decision("d-1"), make_decision("d-2", resolved=True)]

        summary = generate_project_summary(quotes, gaps, decisions)

        assert summary.verified_cost == 10700.0
        assert summary.pending_cost == 0.0
        assert summary.estimated_cost.mid == 4000.0
        assert summary.gap_count == 1
        assert summary.decision_count == 1
        assert summary.confidence == ConfidenceLevel.MEDIUM
        assert summary.likely_total == 14700.0

    def test_empty_project(self):
        summary = generate_project_summary([], [], [])
        assert summary.verified_cost == 0.0
        assert summary.confidence == ConfidenceLevel.LOW

    def test_recomputed_from_inputs(self):
        """Same inputs always give the same summary."""
        quotes = [GC_WRAPPER, FLOORING_CHILD]
        assert generate_project_summary(quotes, [], []) == generate_project_summary(quotes, [], [])
