"""Site context models for MasterContractor.

Site access and occupancy drive the labor multiplier and logistics profile.
"""

from enum import Enum

from pydantic import BaseModel, Field


class AccessDifficulty(str, Enum):
    """How hard it is to get crews and material to the work area."""

    EASY = "EASY"                      # Ground floor, good parking
    MODERATE = "MODERATE"              # 2nd floor, stairs
    HARD = "HARD"                      # 3rd+ floor walkup, limited access
    CRANE_REQUIRED = "CRANE_REQUIRED"  # Heavy equipment needed


class SiteContext(BaseModel):
    """Physical conditions of the job site."""

    access: AccessDifficulty = Field(default=AccessDifficulty.EASY)
    is_occupied: bool = Field(default=False, description="Dust protection, working hour limits")
    distance_to_parking: float = Field(default=50, ge=0, description="Feet from parking to work area")
    has_elevator: bool = Field(default=False)
    floor_number: int = Field(default=1, ge=1, description="1 = ground floor")

    class Config:
        frozen = True


DEFAULT_SITE_CONTEXT = SiteContext()
