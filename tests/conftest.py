"""Pytest configuration and shared fixtures for MasterContractor tests."""

import os
import sys

import pytest


# ============================================================================
# Ensure local imports work (mastercontractor/, tests/fixtures/)
# ============================================================================
#
# Tests import `mastercontractor...` and `tests.fixtures...` absolutely, so the
# repository root must be importable even without an editable install.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


from mastercontractor.models.quote import QuoteStatus, ReconciliationRule  # noqa: E402
from tests.fixtures.mock_project_data import (  # noqa: E402
    CABINET_CHILD,
    FLOORING_CHILD,
    GC_LINES,
    GC_WRAPPER,
    make_line,
    make_quote,
)


# ============================================================================
# Quote Fixtures
# ============================================================================

@pytest.fixture
def wrapper_quote():
    """Verified AUTHORITATIVE GC wrapper."""
    return GC_WRAPPER


@pytest.fixture
def child_quotes():
    """The wrapper's two child quotes."""
    return [FLOORING_CHILD, CABINET_CHILD]


@pytest.fixture
def wrapper_lines():
    """Lines on the GC wrapper, summing to its total."""
    return list(GC_LINES)


@pytest.fixture
def parent_with_evidence():
    """Parent quote whose notes name ABC Flooring Inc."""
    return make_quote(
        "q-parent",
        vendor_name="Prime Builders",
        notes="Flooring per ABC Flooring Inc proposal",
        is_wrapper=True,
        reconciliation_rule=ReconciliationRule.AUTHORITATIVE,
    )


@pytest.fixture
def parent_without_evidence():
    """Parent quote with no reference to any child vendor."""
    return make_quote(
        "q-parent",
        vendor_name="Prime Builders",
        notes="Flooring allowance per plan",
        is_wrapper=True,
        reconciliation_rule=ReconciliationRule.AUTHORITATIVE,
    )


@pytest.fixture
def flooring_child():
    """Child quote with tax on top of its subtotal."""
    return make_quote(
        "q-child",
        vendor_name="ABC Flooring Inc",
        quote_number="F-2231",
        subtotal=5000.0,
        total=5350.0,
        status=QuoteStatus.VERIFIED,
    )


@pytest.fixture
def flooring_line():
    """Parent line priced to the child's total."""
    return make_line("l-floor", "q-parent", description="Flooring", amount=5350.0)
