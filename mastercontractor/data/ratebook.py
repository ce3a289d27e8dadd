"""Ratebook data for MasterContractor.

Centralized, read-only pricing and rule data with provenance:
- Logistics defaults (general conditions)
- Duration rules
- Scope dependencies (if a trigger scope is priced, a required scope must be too)
- Brand catalogs for conflict detection
- CSI division labels and standard scope tags
- Labor multipliers by site access

The built-in ``DEFAULT_RATEBOOK`` holds US national averages (2024-Q4). A
regional ratebook can be swapped in without code changes by pointing
``RATEBOOK_PATH`` at a JSON document with the same shape.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import structlog
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from mastercontractor.config.errors import ErrorCode, RatebookError
from mastercontractor.config.settings import settings
from mastercontractor.models.cost_range import CostRange
from mastercontractor.models.site_context import AccessDifficulty

logger = structlog.get_logger(__name__)

_range = CostRange.from_ratebook


# =============================================================================
# Ratebook Models
# =============================================================================


class PercentRange(BaseModel):
    """Low / likely / high fraction of job value."""

    low: float = Field(..., ge=0)
    likely: float = Field(..., ge=0)
    high: float = Field(..., ge=0)

    class Config:
        frozen = True


class LogisticsDefaults(BaseModel):
    """General conditions rates."""

    dumpster: CostRange = Field(..., description="30yd roll-off, haul + dump fees (per pull)")
    toilet: CostRange = Field(..., description="Portable sanitation, monthly rental + service")
    pm_labor: CostRange = Field(..., description="Project management, burdened hourly rate")
    site_super: CostRange = Field(..., description="Site supervision, daily rate")
    permit_percent: PercentRange = Field(..., description="Permit fees as fraction of job value")
    insurance_percent: PercentRange = Field(..., description="Insurance as fraction of job value")

    class Config:
        frozen = True


class DurationRules(BaseModel):
    """Job duration heuristics."""

    base_weeks: int = 2
    cost_per_week: float = 15000
    max_weeks: int = 52
    pm_hours_per_week: Dict[str, int] = Field(
        default_factory=lambda: {"SIMPLE": 4, "MODERATE": 8, "COMPLEX": 12}
    )
    dumpster_cost_per_pull: float = 15000

    class Config:
        frozen = True


class ScopeDependency(BaseModel):
    """If any trigger keyword is priced, at least one required keyword must be."""

    name: str = Field(..., description="Scope tag the gap is filed under")
    trigger: Tuple[str, ...] = Field(..., min_length=1)
    requires: Tuple[str, ...] = Field(..., min_length=1)
    gap_description: str
    default_estimate: CostRange

    class Config:
        frozen = True


class Ratebook(BaseModel):
    """Versioned, region-specific rule and rate table."""

    version: str = Field(default="RATEBOOK_V1")
    region: str = Field(default="US National")
    logistics: LogisticsDefaults
    duration_rules: DurationRules = Field(default_factory=DurationRules)
    scope_dependencies: Tuple[ScopeDependency, ...] = ()
    brand_catalogs: Dict[str, Tuple[str, ...]] = Field(default_factory=dict)
    csi_divisions: Dict[str, str] = Field(default_factory=dict)
    standard_scope_tags: Tuple[str, ...] = ()
    labor_multipliers: Dict[AccessDifficulty, float] = Field(default_factory=dict)
    occupancy_multiplier: float = Field(default=1.15, ge=1)

    class Config:
        frozen = True


# =============================================================================
# RATEBOOK_V1 (US National Averages 2024)
# =============================================================================

LOGISTICS_DEFAULTS = LogisticsDefaults(
    dumpster=_range(550, 650, 850, "RULE:US_AVG_2024_WASTE"),
    toilet=_range(150, 185, 225, "RULE:US_AVG_2024_SANITATION"),
    pm_labor=_range(85, 110, 135, "RULE:US_AVG_2024_MGMT"),
    site_super=_range(450, 550, 700, "RULE:US_AVG_2024_SUPER"),
    permit_percent=PercentRange(low=0.01, likely=0.015, high=0.025),
    insurance_percent=PercentRange(low=0.015, likely=0.02, high=0.03),
)

SCOPE_DEPENDENCIES = (
    ScopeDependency(
        name="PAINT",
        trigger=("drywall", "sheetrock", "gypsum"),
        requires=("paint", "prime", "finish"),
        gap_description="Drywall detected but no paint/finish included",
        default_estimate=_range(1500, 2500, 4000, "RULE:DRYWALL_REQUIRES_PAINT"),
    ),
    ScopeDependency(
        name="TILE PREP",
        trigger=("tile", "ceramic", "porcelain"),
        requires=("thinset", "mortar", "grout", "subfloor"),
        gap_description="Tile detected but prep materials may be missing",
        default_estimate=_range(500, 800, 1200, "RULE:TILE_REQUIRES_PREP"),
    ),
    ScopeDependency(
        name="FLOORING DEMO",
        trigger=("flooring", "hardwood", "lvp", "laminate"),
        requires=("demo", "removal", "subfloor", "underlayment"),
        gap_description="Flooring detected but old floor removal not included",
        default_estimate=_range(800, 1200, 2000, "RULE:FLOORING_REQUIRES_DEMO"),
    ),
    ScopeDependency(
        name="COUNTERTOPS",
        trigger=("cabinets", "cabinet"),
        requires=("demo", "countertop", "plumbing", "electrical"),
        gap_description="Cabinets detected - verify counters and connections included",
        default_estimate=_range(2000, 4000, 8000, "RULE:CABINETS_REQUIRE_CONNECTIONS"),
    ),
    ScopeDependency(
        name="WINDOW TRIM",
        trigger=("window", "windows"),
        requires=("trim", "casing", "flash", "caulk"),
        gap_description="Windows detected but interior trim may be missing",
        default_estimate=_range(150, 250, 400, "RULE:WINDOWS_REQUIRE_TRIM"),
    ),
    ScopeDependency(
        name="ROOFING PREP",
        trigger=("roofing", "shingle", "roof"),
        requires=("demo", "tear", "flash", "drip", "ice", "underlayment"),
        gap_description="Roofing detected but tear-off or underlayment may be missing",
        default_estimate=_range(2000, 3500, 6000, "RULE:ROOF_REQUIRES_PREP"),
    ),
)

BRAND_CATALOGS: Dict[str, Tuple[str, ...]] = {
    "windows": ("andersen", "harvey", "pella", "marvin", "milgard", "renewal"),
    "plumbing": ("kohler", "moen", "delta", "american standard", "grohe", "hansgrohe"),
    "appliances": ("ge", "whirlpool", "samsung", "lg", "bosch", "kitchenaid", "frigidaire"),
    "hvac": ("carrier", "trane", "lennox", "rheem", "goodman", "daikin"),
    "roofing": ("gaf", "certainteed", "owens corning", "iko", "tamko"),
    "paint": ("benjamin moore", "sherwin williams", "behr", "ppg", "dunn edwards"),
    "cabinets": ("kraftmaid", "merillat", "thomasville", "ikea", "custom"),
}

CSI_DIVISIONS: Dict[str, str] = {
    "01": "General Requirements",
    "02": "Existing Conditions",
    "03": "Concrete",
    "04": "Masonry",
    "05": "Metals",
    "06": "Wood, Plastics, Composites",
    "07": "Thermal & Moisture Protection",
    "08": "Openings",
    "09": "Finishes",
    "10": "Specialties",
    "11": "Equipment",
    "12": "Furnishings",
    "21": "Fire Suppression",
    "22": "Plumbing",
    "23": "HVAC",
    "26": "Electrical",
    "27": "Communications",
    "31": "Earthwork",
    "32": "Exterior Improvements",
    "33": "Utilities",
}

STANDARD_SCOPE_TAGS: Tuple[str, ...] = (
    "DEMO",
    "FOUNDATION",
    "FRAMING",
    "ROOFING",
    "SIDING",
    "WINDOWS",
    "DOORS",
    "INSULATION",
    "DRYWALL",
    "PAINT",
    "FLOORING",
    "TILE",
    "CABINETS",
    "COUNTERTOPS",
    "PLUMBING",
    "ELECTRICAL",
    "HVAC",
    "APPLIANCES",
    "FIXTURES",
    "LANDSCAPING",
    "PERMITS",
    "DUMPSTER",
    "CLEANUP",
)

LABOR_MULTIPLIERS: Dict[AccessDifficulty, float] = {
    AccessDifficulty.EASY: 1.0,
    AccessDifficulty.MODERATE: 1.15,
    AccessDifficulty.HARD: 1.35,
    AccessDifficulty.CRANE_REQUIRED: 1.60,
}

DEFAULT_RATEBOOK = Ratebook(
    version="RATEBOOK_V1",
    region="US National",
    logistics=LOGISTICS_DEFAULTS,
    duration_rules=DurationRules(),
    scope_dependencies=SCOPE_DEPENDENCIES,
    brand_catalogs=BRAND_CATALOGS,
    csi_divisions=CSI_DIVISIONS,
    standard_scope_tags=STANDARD_SCOPE_TAGS,
    labor_multipliers=LABOR_MULTIPLIERS,
    occupancy_multiplier=1.15,
)


# =============================================================================
# Loading
# =============================================================================


def load_ratebook(path: Union[str, Path]) -> Ratebook:
    """Load a regional ratebook from a JSON file.

    Args:
        path: Path to a JSON document matching the Ratebook shape.

    Returns:
        Parsed, frozen Ratebook.

    Raises:
        RatebookError: If the file is missing, not JSON, or fails validation.
    """
    path = Path(path)
    if not path.is_file():
        raise RatebookError(
            ErrorCode.RATEBOOK_NOT_FOUND,
            f"Ratebook file not found: {path}",
            path=str(path),
        )

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise RatebookError(
            ErrorCode.RATEBOOK_INVALID,
            f"Ratebook is not valid JSON: {e}",
            path=str(path),
        ) from e

    try:
        ratebook = Ratebook.model_validate(data)
    except PydanticValidationError as e:
        errors = [f"{err['loc']}: {err['msg']}" for err in e.errors()]
        raise RatebookError(
            ErrorCode.RATEBOOK_INVALID,
            "Ratebook failed schema validation",
            path=str(path),
            details={"errors": errors},
        ) from e

    logger.info(
        "ratebook_loaded",
        path=str(path),
        version=ratebook.version,
        region=ratebook.region,
        dependency_rules=len(ratebook.scope_dependencies),
    )
    return ratebook


@lru_cache(maxsize=4)
def _load_cached(path: Optional[str]) -> Ratebook:
    if path is None:
        return DEFAULT_RATEBOOK
    return load_ratebook(path)


def get_ratebook(path: Optional[str] = None) -> Ratebook:
    """Return the configured ratebook.

    Args:
        path: Explicit JSON path; falls back to ``RATEBOOK_PATH``, then the
            built-in RATEBOOK_V1.

    Returns:
        Ratebook loaded once per path.
    """
    return _load_cached(path or settings.ratebook_path)
