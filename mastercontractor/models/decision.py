"""Decision queue models for MasterContractor.

Decisions are raised whenever the engine cannot safely resolve a match,
conflict or ambiguity on its own. Only a user resolves them.
"""

from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, Field


class DecisionType(str, Enum):
    """Why a decision was raised."""

    POTENTIAL_DUPLICATE = "POTENTIAL_DUPLICATE"  # Exact match without text evidence
    SPEC_CONFLICT = "SPEC_CONFLICT"              # Dimension / spec mismatch
    SOFT_MATCH = "SOFT_MATCH"                    # <=8% variance, needs review
    AMBIGUOUS_SCOPE = "AMBIGUOUS_SCOPE"          # Vague input needs clarification
    LABOR_ONLY = "LABOR_ONLY"                    # Materials missing
    BRAND_CONFLICT = "BRAND_CONFLICT"            # Plan vs quote brand mismatch


class DecisionDraft(BaseModel):
    """A decision before it has been stored."""

    project_id: Optional[str] = Field(default=None, description="Owning project")
    decision_type: DecisionType = Field(..., description="Decision category")
    title: str = Field(..., description="Short title for the review queue")
    description: Optional[str] = Field(default=None)

    quote_id_a: Optional[str] = Field(default=None)
    quote_id_b: Optional[str] = Field(default=None)
    line_id_a: Optional[str] = Field(default=None)
    line_id_b: Optional[str] = Field(default=None)

    evidence: Dict[str, Any] = Field(default_factory=dict, description="Structured evidence payload")

    class Config:
        frozen = True

    def fingerprint(self) -> Tuple[str, ...]:
        """Identity of the condition this decision was raised for.

        Two drafts with the same fingerprint describe the same condition, so a
        retried reconciliation pass can skip the second one.
        """
        return (
            DecisionType(self.decision_type).value,
            self.quote_id_a or "",
            self.quote_id_b or "",
            self.line_id_a or "",
            self.line_id_b or "",
            self.title,
        )


class Decision(DecisionDraft):
    """A stored decision awaiting (or recording) human resolution."""

    id: str = Field(..., description="Decision ID")
    project_id: str = Field(..., description="Owning project")
    resolved: bool = Field(default=False)
    resolution: Optional[str] = Field(default=None)
    resolved_at: Optional[str] = Field(default=None)
    created_at: Optional[str] = Field(default=None)

    @classmethod
    def from_draft(
        cls,
        draft: DecisionDraft,
        decision_id: str,
        project_id: Optional[str] = None,
    ) -> "Decision":
        """Promote a draft at the persistence boundary."""
        data = draft.model_dump()
        data["project_id"] = project_id or draft.project_id
        return cls(id=decision_id, **data)

    def resolve(self, resolution: str, resolved_at: Optional[str] = None) -> "Decision":
        """Return a copy recording the user's resolution."""
        return self.model_copy(update={
            "resolved": True,
            "resolution": resolution,
            "resolved_at": resolved_at,
        })
