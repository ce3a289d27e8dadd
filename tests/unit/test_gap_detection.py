"""
Unit Tests for the Gap Detection Engine.

Test Coverage:
- Exclusion keywords and scope extraction
- Labor-only detection and materials gaps
- Scope dependency rules with ratebook estimates
- Gap consolidation (source concatenation, estimate selection, idempotence)
"""

import random

from mastercontractor.config.safety_rules import SafetyRules
from mastercontractor.data.ratebook import DEFAULT_RATEBOOK, ScopeDependency
from mastercontractor.models.cost_range import ConfidenceLevel, CostRange
from mastercontractor.models.gap import GapDraft
from mastercontractor.models.quote import LineType
from mastercontractor.services.gap_detection import (
    consolidate_gaps,
    contains_exclusion_keyword,
    is_labor_only,
    scan_destructive_dependencies,
    scan_quote_for_gaps,
)
from tests.fixtures.mock_project_data import LABOR_LINE, make_line, make_quote


# =============================================================================
# Keyword Checks
# =============================================================================


class TestExclusionKeywords:
    """Tests for contains_exclusion_keyword."""

    def test_scope_from_preceding_word(self):
        """The word before the keyword becomes the scope."""
        match = contains_exclusion_keyword("Siding NOT IN ESTIMATE, see separate quote")
        assert match.found
        assert match.keyword == "NOT IN ESTIMATE"
        assert match.extracted_scope == "SIDING"

    def test_takes_last_two_long_words(self):
        """At most two words, skipping words of two letters or fewer."""
        match = contains_exclusion_keyword("Gutter and downspout work by others")
        assert match.keyword == "BY OTHERS"
        assert match.extracted_scope == "DOWNSPOUT WORK"

    def test_case_insensitive(self):
        match = contains_exclusion_keyword("paint excluded")
        assert match.found
        assert match.extracted_scope == "PAINT"

    def test_keyword_at_start_is_unspecified(self):
        match = contains_exclusion_keyword("Excluded: permits")
        assert match.found
        assert match.extracted_scope == "UNSPECIFIED"

    def test_no_keyword(self):
        assert not contains_exclusion_keyword("Install vanity and faucet").found
        assert not contains_exclusion_keyword("").found

    def test_short_keyword_needs_whole_word(self):
        """Short acronyms like NIC only match as whole words."""
        assert not contains_exclusion_keyword("Mechanical rough-in").found
        assert not contains_exclusion_keyword("Electronic ignition").found
        assert contains_exclusion_keyword("Gutters NIC").extracted_scope == "GUTTERS"
        assert contains_exclusion_keyword("Gutters N.I.C.").found

    def test_custom_keyword_set(self):
        """Keyword sets come from the injected rules."""
        rules = SafetyRules(exclusion_keywords=("OWNER SUPPLIED",))
        assert contains_exclusion_keyword("Tile OWNER SUPPLIED", rules).found
        assert not contains_exclusion_keyword("Tile NOT INCLUDED", rules).found


class TestLaborOnly:
    """Tests for is_labor_only."""

    def test_labor_keywords(self):
        assert is_labor_only("Install only, materials by owner").is_labor
        assert is_labor_only("Cabinet set - MBO").keyword == "MBO"

    def test_short_keyword_needs_whole_word(self):
        assert not is_labor_only("Combo unit washer dryer").is_labor
        assert is_labor_only("Appliances MBO, install").is_labor

    def test_regular_line(self):
        assert not is_labor_only("Supply and install vanity").is_labor


# =============================================================================
# Quote Scanning
# =============================================================================


class TestScanQuoteForGaps:
    """Tests for scan_quote_for_gaps."""

    def test_quote_notes_exclusion_creates_low_confidence_gap(self):
        """Exclusion language in quote notes creates a gap without an estimate."""
        quote = make_quote(
            "q-1", vendor_name="Summit Exteriors", quote_number="SE-9",
            notes="Siding NOT IN ESTIMATE, see separate quote",
        )
        result = scan_quote_for_gaps(quote, [])

        assert len(result.gaps) == 1
        gap = result.gaps[0]
        assert gap.scope_tag == "SIDING"
        assert gap.confidence == ConfidenceLevel.LOW
        assert not gap.has_estimate
        assert gap.project_id == quote.project_id
        assert "Summit Exteriors" in gap.description
        assert "SE-9" in gap.source

    def test_line_exclusion_falls_back_to_scope_tag(self):
        """An unspecified scope uses the line's scope tag."""
        quote = make_quote("q-1")
        line = make_line("l-1", "q-1", description="Excluded: permits", scope_tag="PERMITS")
        result = scan_quote_for_gaps(quote, [line])

        assert [g.scope_tag for g in result.gaps] == ["PERMITS"]

    def test_line_notes_are_scanned(self):
        """Line notes count as well as the description."""
        quote = make_quote("q-1")
        line = make_line("l-1", "q-1", description="Vanity", notes="Faucet not included")
        result = scan_quote_for_gaps(quote, [line])

        assert result.gaps[0].scope_tag == "VANITY FAUCET"

    def test_labor_only_line_creates_materials_gap(self):
        """Labor-only pricing always spawns a materials gap and a flag."""
        quote = make_quote("q-1")
        result = scan_quote_for_gaps(quote, [LABOR_LINE])

        assert len(result.labor_only_flags) == 1
        assert result.labor_only_flags[0].line_id == "l-labor"
        assert result.gaps[0].scope_tag == "MATERIALS"
        assert "LABOR ONLY" in result.gaps[0].source
        assert "l-labor" in result.gaps[0].source

    def test_labor_line_type_without_keyword(self):
        """line_type=LABOR alone is enough."""
        quote = make_quote("q-1")
        line = make_line(
            "l-1", "q-1", description="Crew day", scope_tag="FRAMING", line_type=LineType.LABOR
        )
        result = scan_quote_for_gaps(quote, [line])

        assert result.gaps[0].scope_tag == "FRAMING"
        assert "line_type=LABOR" in result.gaps[0].source

    def test_clean_quote_has_no_gaps(self):
        quote = make_quote("q-1", notes="Thank you for your business")
        line = make_line("l-1", "q-1", description="Supply and install vanity")
        result = scan_quote_for_gaps(quote, [line], project_id="proj-x")

        assert result.gaps == []
        assert result.labor_only_flags == []


# =============================================================================
# Scope Dependencies
# =============================================================================


class TestScanDestructiveDependencies:
    """Tests for scan_destructive_dependencies."""

    def test_drywall_without_paint(self):
        """Drywall with no finish creates a PAINT gap with rule provenance."""
        lines = [make_line("l-1", description="Hang and tape drywall")]
        gaps = scan_destructive_dependencies(lines, "proj-1")

        assert len(gaps) == 1
        gap = gaps[0]
        assert gap.scope_tag == "PAINT"
        assert gap.project_id == "proj-1"
        assert gap.source == "Dependency Rule: drywall/sheetrock/gypsum requires paint/prime/finish"
        assert (gap.estimated_low, gap.estimated_mid, gap.estimated_high) == (1500, 2500, 4000)
        assert gap.rate_source == "RULE:DRYWALL_REQUIRES_PAINT"

    def test_requirement_on_any_line_satisfies_rule(self):
        """Required keywords may appear on a different line."""
        lines = [
            make_line("l-1", description="Hang drywall"),
            make_line("l-2", description="Prime and paint walls"),
        ]
        assert scan_destructive_dependencies(lines) == []

    def test_tile_without_setting_materials(self):
        lines = [make_line("l-1", description="Porcelain tile shower walls")]
        gaps = scan_destructive_dependencies(lines)
        assert [g.scope_tag for g in gaps] == ["TILE PREP"]

    def test_scope_tag_counts_as_text(self):
        """Scope tags are part of the scanned text."""
        lines = [make_line("l-1", description="Walls", scope_tag="DRYWALL")]
        assert [g.scope_tag for g in scan_destructive_dependencies(lines)] == ["PAINT"]

    def test_required_keyword_must_start_a_word(self):
        """A required keyword inside another word (ice in service) does not count."""
        lines = [
            make_line("l-1", description="Architectural shingle roof replacement"),
            make_line("l-2", description="Service call fee"),
        ]
        assert [g.scope_tag for g in scan_destructive_dependencies(lines)] == ["ROOFING PREP"]

    def test_keyword_prefix_matches_longer_word(self):
        """A required keyword may start a longer word (demo in demolition)."""
        lines = [make_line("l-1", description="Shingle roof with full demolition")]
        assert scan_destructive_dependencies(lines) == []

    def test_injected_ratebook(self):
        """A regional ratebook with its own rules replaces the default table."""
        rule = ScopeDependency(
            name="DECK STAIN",
            trigger=("deck",),
            requires=("stain", "seal"),
            gap_description="Deck without finish",
            default_estimate=CostRange.from_ratebook(300, 500, 900, "RULE:DECK_REQUIRES_STAIN"),
        )
        ratebook = DEFAULT_RATEBOOK.model_copy(update={"scope_dependencies": (rule,)})
        lines = [make_line("l-1", description="Build cedar deck")]

        gaps = scan_destructive_dependencies(lines, ratebook=ratebook)

        assert [g.scope_tag for g in gaps] == ["DECK STAIN"]
        assert gaps[0].estimated_mid == 500

    def test_no_lines(self):
        assert scan_destructive_dependencies([]) == []


# =============================================================================
# Consolidation
# =============================================================================


def _gap(scope_tag, source, high=None):
    gap = GapDraft(scope_tag=scope_tag, description=f"{scope_tag} gap", source=source)
    if high is None:
        return gap
    return gap.model_copy(update={
        "estimated_low": high / 4,
        "estimated_mid": high / 2,
        "estimated_high": high,
        "rate_source": f"RULE:{source}",
    })


class TestConsolidateGaps:
    """Tests for consolidate_gaps."""

    def test_merges_case_insensitive_scope(self):
        """Same scope tag in any case merges into one gap."""
        merged = consolidate_gaps([_gap("PAINT", "a"), _gap("paint", "b"), _gap("TILE", "c")])

        assert len(merged) == 2
        assert merged[0].scope_tag == "PAINT"
        assert merged[0].source == "a; b"

    def test_largest_high_estimate_wins_atomically(self):
        """Low, mid, high and rate source come from the same gap."""
        merged = consolidate_gaps([_gap("PAINT", "small", 400), _gap("PAINT", "big", 1000)])[0]

        assert merged.estimated_high == 1000
        assert merged.estimated_mid == 500
        assert merged.estimated_low == 250
        assert merged.rate_source == "RULE:big"
        assert merged.source == "small; big"

    def test_existing_larger_estimate_is_kept(self):
        merged = consolidate_gaps([_gap("PAINT", "big", 1000), _gap("PAINT", "none")])[0]
        assert merged.estimated_high == 1000
        assert merged.rate_source == "RULE:big"

    def test_estimate_replaces_missing_estimate(self):
        merged = consolidate_gaps([_gap("PAINT", "none"), _gap("PAINT", "est", 800)])[0]
        assert merged.estimated_high == 800

    def test_idempotent(self):
        """Consolidating twice equals consolidating once."""
        rng = random.Random(99)
        tags = ["PAINT", "paint", "Tile", "TILE", "SIDING", "Materials", "MATERIALS"]

        for _ in range(100):
            gaps = [
                _gap(
                    rng.choice(tags),
                    f"src{i}",
                    rng.choice([None, rng.randint(1, 10000)]),
                )
                for i in range(rng.randint(0, 12))
            ]
            once = consolidate_gaps(gaps)
            assert consolidate_gaps(once) == once
            assert len({g.scope_tag.upper() for g in once}) == len(once)
