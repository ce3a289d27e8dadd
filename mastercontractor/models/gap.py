"""Gap models for MasterContractor.

A gap is scope that is implied or required but not present in any priced
quote. Engines emit ``GapDraft`` values; ``Gap`` is the persisted entity.
Null estimates mean no number could be justified, not zero cost.
"""

from typing import Optional

from pydantic import BaseModel, Field

from mastercontractor.models.cost_range import ConfidenceLevel, CostRange


class GapDraft(BaseModel):
    """A detected gap before it has been stored."""

    project_id: Optional[str] = Field(default=None, description="Owning project")
    scope_tag: str = Field(..., description="Scope category of the missing work")
    description: str = Field(..., description="What is missing")
    source: str = Field(default="", description="Keyword or rule that triggered the gap")

    estimated_low: Optional[float] = Field(default=None, ge=0)
    estimated_mid: Optional[float] = Field(default=None, ge=0)
    estimated_high: Optional[float] = Field(default=None, ge=0)
    rate_source: Optional[str] = Field(default=None, description="Provenance of the estimate")
    confidence: ConfidenceLevel = Field(default=ConfidenceLevel.LOW)

    class Config:
        frozen = True

    @property
    def has_estimate(self) -> bool:
        """True when any part of the estimate triple is set."""
        return any(
            v is not None for v in (self.estimated_low, self.estimated_mid, self.estimated_high)
        )

    def with_estimate(self, estimate: CostRange) -> "GapDraft":
        """Return a copy carrying ``estimate`` as its low/mid/high triple."""
        return self.model_copy(update={
            "estimated_low": estimate.low,
            "estimated_mid": estimate.likely,
            "estimated_high": estimate.high,
            "rate_source": estimate.source.ref,
            "confidence": estimate.confidence,
        })


class Gap(GapDraft):
    """A stored gap, resolvable by linking a covering quote."""

    id: str = Field(..., description="Gap ID")
    project_id: str = Field(..., description="Owning project")
    resolved: bool = Field(default=False)
    resolved_by_quote_id: Optional[str] = Field(default=None)

    created_at: Optional[str] = Field(default=None)
    updated_at: Optional[str] = Field(default=None)

    @classmethod
    def from_draft(cls, draft: GapDraft, gap_id: str, project_id: Optional[str] = None) -> "Gap":
        """Promote a draft at the persistence boundary."""
        data = draft.model_dump()
        data["project_id"] = project_id or draft.project_id
        return cls(id=gap_id, **data)

    def resolve(self, quote_id: str) -> "Gap":
        """Return a copy resolved by the quote that covers this scope."""
        return self.model_copy(update={"resolved": True, "resolved_by_quote_id": quote_id})
