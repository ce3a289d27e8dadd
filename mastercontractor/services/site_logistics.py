"""Site Logistics Engine for MasterContractor.

Site context and general conditions calculations:
- Labor multiplier from access difficulty, occupancy, parking distance and
  stair carries
- Job duration and complexity from hard costs and scope
- Logistics profile (dumpsters, sanitation, project management, permits)

Every generated line carries the ratebook rule it was priced from.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence

import structlog

from mastercontractor.data.ratebook import DEFAULT_RATEBOOK, Ratebook
from mastercontractor.models.cost_range import (
    ConfidenceLevel,
    CostRange,
    RateSource,
    RateSourceType,
)
from mastercontractor.models.quote import LineType
from mastercontractor.models.site_context import (
    DEFAULT_SITE_CONTEXT,
    AccessDifficulty,
    SiteContext,
)

logger = structlog.get_logger(__name__)

GENERAL_REQUIREMENTS = "01-General Requirements"
MEP_TAGS = ("PLUMBING", "ELECTRICAL", "HVAC")
STRUCTURAL_TAGS = ("FOUNDATION", "FRAMING", "ROOFING")
HIGH_SUPERVISION_ACCESS = (AccessDifficulty.HARD, AccessDifficulty.CRANE_REQUIRED)


class JobComplexity(str, Enum):
    """Supervision tier for project management hours."""

    SIMPLE = "SIMPLE"
    MODERATE = "MODERATE"
    COMPLEX = "COMPLEX"


# =============================================================================
# Labor
# =============================================================================


def get_labor_multiplier(
    context: SiteContext = DEFAULT_SITE_CONTEXT,
    ratebook: Ratebook = DEFAULT_RATEBOOK,
) -> float:
    """Labor multiplier for a site, rounded to 3 places.

    Base multiplier by access difficulty, times the occupancy multiplier for
    occupied sites, plus up to 0.15 for parking beyond 100ft and up to 0.25
    for floors above ground without an elevator.
    """
    multiplier = ratebook.labor_multipliers.get(context.access, 1.0)

    if context.is_occupied:
        multiplier *= ratebook.occupancy_multiplier

    if context.distance_to_parking > 100:
        multiplier += min(0.15, (context.distance_to_parking - 100) / 500 * 0.15)

    if not context.has_elevator and context.floor_number > 1:
        multiplier += min(0.25, (context.floor_number - 1) * 0.08)

    return round(multiplier, 3)


@dataclass
class LaborAdjustment:
    """A base cost scaled by the site labor multiplier."""

    adjusted: float
    multiplier: float
    breakdown: str


def apply_labor_multiplier(
    base_cost: float,
    context: SiteContext = DEFAULT_SITE_CONTEXT,
    ratebook: Ratebook = DEFAULT_RATEBOOK,
) -> LaborAdjustment:
    """Apply the site labor multiplier to a cost, with a readable breakdown."""
    multiplier = get_labor_multiplier(context, ratebook)
    adjusted = round(base_cost * multiplier)

    parts: List[str] = []
    if context.access != AccessDifficulty.EASY:
        parts.append(f"Access: {context.access.value}")
    if context.is_occupied:
        parts.append("Occupied site")
    if context.distance_to_parking > 100:
        parts.append(f"Parking {context.distance_to_parking:g}ft")
    if not context.has_elevator and context.floor_number > 1:
        parts.append(f"Floor {context.floor_number}, no elevator")

    breakdown = f"{multiplier:g}x ({', '.join(parts)})" if parts else "1.0x (easy access)"

    return LaborAdjustment(adjusted=adjusted, multiplier=multiplier, breakdown=breakdown)


# =============================================================================
# Duration and Complexity
# =============================================================================


def calculate_duration_weeks(hard_costs: float, ratebook: Ratebook = DEFAULT_RATEBOOK) -> int:
    """Job duration in weeks: base weeks plus one per $15k, capped at 52."""
    rules = ratebook.duration_rules
    additional_weeks = math.ceil(hard_costs / rules.cost_per_week)
    return min(rules.base_weeks + additional_weeks, rules.max_weeks)


def get_job_complexity(hard_costs: float, scope_tags: Sequence[str]) -> JobComplexity:
    """Classify a job by cost and by MEP / structural scope."""
    upper_tags = {tag.upper() for tag in scope_tags}
    has_mep = any(tag in upper_tags for tag in MEP_TAGS)
    has_structural = any(tag in upper_tags for tag in STRUCTURAL_TAGS)

    if hard_costs > 100000 or (has_mep and has_structural):
        return JobComplexity.COMPLEX
    if hard_costs > 30000 or has_mep or has_structural:
        return JobComplexity.MODERATE
    return JobComplexity.SIMPLE


# =============================================================================
# Logistics Profile
# =============================================================================


@dataclass
class LogisticsLineItem:
    """A general conditions line."""

    id: str
    description: str
    category: str
    qty: float
    unit: str
    unit_price: CostRange
    total_likely: float
    type: LineType
    source_ref: str


def generate_logistics_profile(
    hard_costs: float,
    scope_tags: Sequence[str],
    context: SiteContext = DEFAULT_SITE_CONTEXT,
    ratebook: Ratebook = DEFAULT_RATEBOOK,
) -> List[LogisticsLineItem]:
    """Generate the general conditions lines for a job.

    Dumpsters (one pull per $15k), portable sanitation (one per month of
    duration), project management hours by complexity and permit fees as a
    fraction of job value. Hard-access sites get 1.5x PM hours.
    """
    logistics = ratebook.logistics
    duration_rules = ratebook.duration_rules
    duration_weeks = calculate_duration_weeks(hard_costs, ratebook)
    complexity = get_job_complexity(hard_costs, scope_tags)

    lines: List[LogisticsLineItem] = []

    dumpster_count = max(1, math.ceil(hard_costs / duration_rules.dumpster_cost_per_pull))
    lines.append(LogisticsLineItem(
        id="log-dumpster",
        description=f"30yd Dumpster Rental ({dumpster_count} pulls)",
        category=GENERAL_REQUIREMENTS,
        qty=dumpster_count,
        unit="EA",
        unit_price=logistics.dumpster,
        total_likely=logistics.dumpster.likely * dumpster_count,
        type=LineType.LOGISTICS,
        source_ref=logistics.dumpster.source.ref,
    ))

    months = max(1, math.ceil(duration_weeks / 4))
    lines.append(LogisticsLineItem(
        id="log-toilet",
        description=f"Portable Sanitation ({months} month{'s' if months > 1 else ''})",
        category=GENERAL_REQUIREMENTS,
        qty=months,
        unit="MO",
        unit_price=logistics.toilet,
        total_likely=logistics.toilet.likely * months,
        type=LineType.LOGISTICS,
        source_ref=logistics.toilet.source.ref,
    ))

    pm_hours_per_week = duration_rules.pm_hours_per_week.get(complexity.value, 0)
    if context.access in HIGH_SUPERVISION_ACCESS:
        pm_hours_per_week = round(pm_hours_per_week * 1.5)
    total_pm_hours = pm_hours_per_week * duration_weeks
    lines.append(LogisticsLineItem(
        id="log-pm",
        description=f"Project Management ({total_pm_hours}hrs over {duration_weeks}wks)",
        category=GENERAL_REQUIREMENTS,
        qty=total_pm_hours,
        unit="HR",
        unit_price=logistics.pm_labor,
        total_likely=logistics.pm_labor.likely * total_pm_hours,
        type=LineType.LABOR,
        source_ref=logistics.pm_labor.source.ref,
    ))

    permit = logistics.permit_percent
    permit_cost = round(hard_costs * permit.likely)
    if permit_cost > 0:
        lines.append(LogisticsLineItem(
            id="log-permit",
            description=f"Permit Fees ({permit.likely * 100:.1f}% of job)",
            category=GENERAL_REQUIREMENTS,
            qty=1,
            unit="LS",
            unit_price=CostRange(
                low=round(hard_costs * permit.low),
                likely=permit_cost,
                high=round(hard_costs * permit.high),
                confidence=ConfidenceLevel.MEDIUM,
                source=RateSource(type=RateSourceType.LOGISTICS_RULE, ref="RULE:PERMIT_PERCENT"),
            ),
            total_likely=permit_cost,
            type=LineType.LOGISTICS,
            source_ref="RULE:PERMIT_PERCENT",
        ))

    logger.debug(
        "logistics_profile_generated",
        hard_costs=hard_costs,
        duration_weeks=duration_weeks,
        complexity=complexity.value,
        lines=len(lines),
    )
    return lines


@dataclass
class LogisticsCost:
    """Total general conditions cost with its lines."""

    low: float
    likely: float
    high: float
    lines: List[LogisticsLineItem]


def calculate_logistics_cost(
    hard_costs: float,
    scope_tags: Sequence[str],
    context: SiteContext = DEFAULT_SITE_CONTEXT,
    ratebook: Ratebook = DEFAULT_RATEBOOK,
) -> LogisticsCost:
    """Total logistics cost; low and high are 85% and 125% of likely."""
    lines = generate_logistics_profile(hard_costs, scope_tags, context, ratebook)
    likely = sum(line.total_likely for line in lines)

    return LogisticsCost(
        low=round(likely * 0.85),
        likely=likely,
        high=round(likely * 1.25),
        lines=lines,
    )
