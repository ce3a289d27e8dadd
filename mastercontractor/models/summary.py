"""Project summary snapshot models for MasterContractor."""

from pydantic import BaseModel, Field

from mastercontractor.models.cost_range import ConfidenceLevel


class EstimatedCost(BaseModel):
    """Low / mid / high sum of unresolved gap estimates."""

    low: float = Field(default=0.0)
    mid: float = Field(default=0.0)
    high: float = Field(default=0.0)

    class Config:
        frozen = True


class ProjectSummary(BaseModel):
    """What the project costs right now.

    Recomputed from scratch on every call; nothing here is cached state.
    """

    verified_cost: float = Field(..., description="Cost backed by verified quotes")
    pending_cost: float = Field(..., description="Quotes awaiting verification or a decision")
    estimated_cost: EstimatedCost = Field(..., description="Unresolved gap estimates")
    gap_count: int = Field(..., ge=0, description="Unresolved gaps")
    decision_count: int = Field(..., ge=0, description="Unresolved decisions")
    confidence: ConfidenceLevel = Field(..., description="Overall confidence")

    class Config:
        frozen = True

    @property
    def likely_total(self) -> float:
        """Verified + pending + mid estimate."""
        return self.verified_cost + self.pending_cost + self.estimated_cost.mid
