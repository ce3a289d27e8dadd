"""Data models for MasterContractor.

Quotes, lines, gaps, decisions and cost ranges shared by every engine.
"""

from mastercontractor.models.cost_range import (
    ConfidenceLevel,
    CostRange,
    RateSource,
    RateSourceType,
)
from mastercontractor.models.quote import (
    Line,
    LineType,
    Quote,
    QuoteStatus,
    ReconciliationRule,
)
from mastercontractor.models.gap import Gap, GapDraft
from mastercontractor.models.decision import Decision, DecisionDraft, DecisionType
from mastercontractor.models.summary import EstimatedCost, ProjectSummary
from mastercontractor.models.site_context import (
    AccessDifficulty,
    DEFAULT_SITE_CONTEXT,
    SiteContext,
)
from mastercontractor.models.takeoff import TakeoffItem

__all__ = [
    "ConfidenceLevel",
    "CostRange",
    "RateSource",
    "RateSourceType",
    "Line",
    "LineType",
    "Quote",
    "QuoteStatus",
    "ReconciliationRule",
    "Gap",
    "GapDraft",
    "Decision",
    "DecisionDraft",
    "DecisionType",
    "EstimatedCost",
    "ProjectSummary",
    "AccessDifficulty",
    "DEFAULT_SITE_CONTEXT",
    "SiteContext",
    "TakeoffItem",
]
