"""Takeoff quantity models for MasterContractor."""

from pydantic import BaseModel, Field


class TakeoffItem(BaseModel):
    """Expected quantity for a scope, measured from the plans."""

    scope_tag: str = Field(..., description="Scope category, matched case-insensitively")
    qty: float = Field(..., description="Expected quantity")
    unit: str = Field(default="", description="Unit of measurement")

    class Config:
        frozen = True
