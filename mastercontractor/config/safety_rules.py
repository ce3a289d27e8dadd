"""Safety Constitution thresholds.

Every engine function takes a ``rules`` argument defaulting to
``DEFAULT_SAFETY_RULES``. The value is frozen; build a new one with
``model_copy(update=...)`` to run an engine under different thresholds.
"""

from typing import Tuple

from pydantic import BaseModel, Field, model_validator


class SafetyRules(BaseModel):
    """Read-only rule set consumed by the reconciliation engines."""

    # Matching
    exact_match_tolerance: float = Field(
        default=0.01, gt=0, description="Currency rounding tolerance for exact matches ($)"
    )
    soft_match_variance_percent: float = Field(
        default=8.0, gt=0, le=100, description="Max variance (%) for a soft match"
    )

    # Wrapper / tax-trap audit
    tax_trap_tolerance_percent: float = Field(
        default=0.5, ge=0, description="Wrapper vs children variance treated as exact (%)"
    )
    tax_trap_band_low_percent: float = Field(
        default=4.0, description="Lower bound of typical tax + freight variance (%)"
    )
    tax_trap_band_high_percent: float = Field(
        default=12.0, description="Upper bound of typical tax + freight variance (%)"
    )
    negative_variance_floor_percent: float = Field(
        default=-1.0, description="Children exceeding wrapper beyond this is a warning (%)"
    )
    wrapper_line_sum_tolerance: float = Field(
        default=1.0, ge=0, description="Allowed gap between wrapper line sum and total ($)"
    )

    # Confidence
    high_confidence_evidence_variance_percent: float = Field(default=1.0, ge=0)
    high_confidence_variance_percent: float = Field(default=5.0, ge=0)

    # Quantity checks
    quantity_tolerance_percent: float = Field(default=10.0, ge=0)
    quantity_critical_percent: float = Field(default=25.0, ge=0)

    # Sub-bid benchmarking
    extreme_high_variance_percent: float = Field(default=15.0, ge=0)

    # Keyword sets (uppercase)
    exclusion_keywords: Tuple[str, ...] = (
        "NOT IN ESTIMATE",
        "NOT INCLUDED",
        "EXCLUDED",
        "BY OTHERS",
        "NIC",
        "N.I.C.",
        "ALLOWANCE ONLY",
    )
    labor_only_keywords: Tuple[str, ...] = (
        "LABOR ONLY",
        "INSTALL ONLY",
        "INSTALLATION ONLY",
        "LABOR SEPARATE",
        "MATERIALS SEPARATE",
        "MATERIALS BY OWNER",
        "MBO",
    )

    class Config:
        frozen = True

    @model_validator(mode="after")
    def validate_bands(self) -> "SafetyRules":
        """Ensure the tax-trap band and quantity thresholds are ordered."""
        if self.tax_trap_band_low_percent > self.tax_trap_band_high_percent:
            raise ValueError(
                f"Tax trap band must be low <= high, got: "
                f"low={self.tax_trap_band_low_percent}, high={self.tax_trap_band_high_percent}"
            )
        if self.quantity_tolerance_percent > self.quantity_critical_percent:
            raise ValueError(
                f"Quantity tolerance ({self.quantity_tolerance_percent}) must not exceed "
                f"critical threshold ({self.quantity_critical_percent})"
            )
        return self


DEFAULT_SAFETY_RULES = SafetyRules()
