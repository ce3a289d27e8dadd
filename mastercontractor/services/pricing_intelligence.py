"""Pricing Intelligence for MasterContractor.

Benchmarks subcontractor bids against market ranges and derives client-facing
retail pricing from hard costs.
"""

from dataclasses import dataclass
from enum import Enum

import structlog

from mastercontractor.config.safety_rules import DEFAULT_SAFETY_RULES, SafetyRules
from mastercontractor.models.cost_range import CostRange

logger = structlog.get_logger(__name__)


class PricePosition(str, Enum):
    """Where a bid sits relative to the market range."""

    LOW = "LOW"
    FAIR = "FAIR"
    HIGH = "HIGH"
    EXTREME_HIGH = "EXTREME_HIGH"


POSITION_MESSAGES = {
    PricePosition.LOW: "Bid is below expected range. Verify scope completeness and exclusions.",
    PricePosition.FAIR: "Within expected market range.",
    PricePosition.HIGH: "Bid is above market range. Negotiate and compare alternates.",
    PricePosition.EXTREME_HIGH: "Bid is significantly above market. Require itemized backup or rebid.",
}


def _round_money(value: float) -> float:
    return round(value, 2)


# =============================================================================
# Sub Bid Benchmark
# =============================================================================


@dataclass
class SubBidBenchmark:
    """A bid compared against a market range."""

    position: PricePosition
    variance_from_likely_percent: float
    suggested_low: float
    suggested_likely: float
    suggested_high: float
    message: str


def benchmark_sub_bid(
    amount: float,
    market_range: CostRange,
    rules: SafetyRules = DEFAULT_SAFETY_RULES,
) -> SubBidBenchmark:
    """Compare a subcontractor bid to a market range.

    At or below ``low`` is LOW, up to ``high`` is FAIR. Above the range the
    bid is HIGH while within the extreme threshold (15%) of ``likely`` and
    EXTREME_HIGH beyond it.

    Example:
        >>> rng = CostRange.from_ratebook(8500, 10000, 12000, "RULE:X")
        >>> benchmark_sub_bid(13500, rng).position
        <PricePosition.EXTREME_HIGH: 'EXTREME_HIGH'>
    """
    likely = max(market_range.likely, 1)
    variance = (amount - likely) / likely * 100

    if amount <= market_range.low:
        position = PricePosition.LOW
    elif amount <= market_range.high:
        position = PricePosition.FAIR
    elif variance <= rules.extreme_high_variance_percent:
        position = PricePosition.HIGH
    else:
        position = PricePosition.EXTREME_HIGH

    logger.debug(
        "sub_bid_benchmarked",
        amount=amount,
        position=position.value,
        variance_percent=round(variance, 2),
    )

    return SubBidBenchmark(
        position=position,
        variance_from_likely_percent=round(variance, 2),
        suggested_low=market_range.low,
        suggested_likely=market_range.likely,
        suggested_high=market_range.high,
        message=POSITION_MESSAGES[position],
    )


# =============================================================================
# Retail Pricing
# =============================================================================


@dataclass
class RetailStrategy:
    """Markup strategy applied on top of hard cost, in percent."""

    overhead_percent: float
    profit_percent: float
    contingency_percent: float


@dataclass
class RetailRecommendation:
    """Floor / target / stretch sell prices."""

    floor: float
    target: float
    stretch: float
    total_markup_percent_on_hard_cost: float


def recommend_retail_price(hard_cost: float, strategy: RetailStrategy) -> RetailRecommendation:
    """Recommend client-facing retail pricing from hard costs.

    floor = hard cost with overhead and profit, target adds half the
    contingency, stretch adds all of it.
    """
    base_multiplier = 1 + (strategy.overhead_percent + strategy.profit_percent) / 100

    floor = hard_cost * base_multiplier
    target = floor * (1 + strategy.contingency_percent / 200)
    stretch = floor * (1 + strategy.contingency_percent / 100)

    markup_percent = (target - hard_cost) / max(hard_cost, 1) * 100

    return RetailRecommendation(
        floor=_round_money(floor),
        target=_round_money(target),
        stretch=_round_money(stretch),
        total_markup_percent_on_hard_cost=round(markup_percent, 2),
    )
