"""Cost range models for MasterContractor.

A CostRange is the unit of estimated (non-quoted) pricing. It always carries
provenance so a reviewer can tell a ratebook default from a quote extract.
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class ConfidenceLevel(str, Enum):
    """Confidence rating shared by quotes, gaps, ranges and summaries."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        """Ordinal used to compare levels (LOW=0 .. HIGH=2)."""
        return _CONFIDENCE_RANK[self]


_CONFIDENCE_RANK = {
    ConfidenceLevel.LOW: 0,
    ConfidenceLevel.MEDIUM: 1,
    ConfidenceLevel.HIGH: 2,
}


class RateSourceType(str, Enum):
    """Where a rate came from."""

    QUOTE_EXTRACT = "QUOTE_EXTRACT"     # Extracted from vendor quote
    RATEBOOK_V1 = "RATEBOOK_V1"         # From regional ratebook
    LOGISTICS_RULE = "LOGISTICS_RULE"   # Calculated from job parameters
    USER_OVERRIDE = "USER_OVERRIDE"     # Manual entry by user


# =============================================================================
# COST RANGE
# =============================================================================


class RateSource(BaseModel):
    """Provenance for a rate ("Quote #1042", "RULE:TILE_REQUIRES_PREP")."""

    type: RateSourceType = Field(..., description="Kind of source")
    ref: str = Field(..., description="Human-readable reference")
    date: Optional[str] = Field(default=None, description="When the rate was captured")

    class Config:
        frozen = True


class CostRange(BaseModel):
    """Low / likely / high estimate with confidence and provenance."""

    low: float = Field(..., ge=0, description="Optimistic estimate")
    likely: float = Field(..., ge=0, description="Most likely estimate")
    high: float = Field(..., ge=0, description="Pessimistic estimate")
    confidence: ConfidenceLevel = Field(default=ConfidenceLevel.MEDIUM)
    source: RateSource

    class Config:
        frozen = True

    @model_validator(mode="after")
    def validate_order(self) -> "CostRange":
        """Ensure low <= likely <= high."""
        if not (self.low <= self.likely <= self.high):
            raise ValueError(
                f"Cost range must be low <= likely <= high, got: "
                f"low={self.low}, likely={self.likely}, high={self.high}"
            )
        return self

    @classmethod
    def from_ratebook(
        cls,
        low: float,
        likely: float,
        high: float,
        ref: str,
        date: str = "2024-Q4",
    ) -> "CostRange":
        """Create a MEDIUM-confidence ratebook range."""
        return cls(
            low=low,
            likely=likely,
            high=high,
            confidence=ConfidenceLevel.MEDIUM,
            source=RateSource(type=RateSourceType.RATEBOOK_V1, ref=ref, date=date),
        )

    def __mul__(self, factor: float) -> "CostRange":
        """Scale the range, keeping confidence and provenance."""
        return self.model_copy(update={
            "low": round(self.low * factor, 2),
            "likely": round(self.likely * factor, 2),
            "high": round(self.high * factor, 2),
        })

    def to_dict(self) -> Dict[str, float]:
        """Convert the numeric triple to a dictionary."""
        return {
            "low": self.low,
            "likely": self.likely,
            "high": self.high
        }
