"""Quote and line item models for MasterContractor.

Quotes and lines arrive from AI extraction or manual entry and are treated as
untrusted input by the engines. Monetary fields are nullable: absence is not
zero, and engines only coerce None to 0 where arithmetic requires it.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from mastercontractor.models.cost_range import ConfidenceLevel


# =============================================================================
# ENUMS
# =============================================================================


class QuoteStatus(str, Enum):
    """Lifecycle status shared by quotes and lines."""

    VERIFIED = "VERIFIED"
    PENDING = "PENDING"
    POTENTIAL_DUPLICATE = "POTENTIAL_DUPLICATE"
    DECISION_REQUIRED = "DECISION_REQUIRED"
    ESTIMATE = "ESTIMATE"
    GAP = "GAP"


class ReconciliationRule(str, Enum):
    """How a quote's cost counts toward the project total."""

    AUTHORITATIVE = "AUTHORITATIVE"    # Wrapper total IS the verified cost
    ADDITIVE = "ADDITIVE"              # Add to other quotes
    REFERENCE_ONLY = "REFERENCE_ONLY"  # For audit, not cost calculation


class LineType(str, Enum):
    """What a priced line covers."""

    MATERIAL = "MATERIAL"
    LABOR = "LABOR"
    MATERIAL_AND_LABOR = "MATERIAL_AND_LABOR"
    LOGISTICS = "LOGISTICS"
    OTHER = "OTHER"


# =============================================================================
# QUOTE
# =============================================================================


class Quote(BaseModel):
    """A vendor's priced document.

    A wrapper quote (``is_wrapper``) bundles child quotes that point at it via
    ``parent_quote_id``. Under AUTHORITATIVE reconciliation the wrapper's own
    ``total`` is the cost of record and its children are audit-only.
    """

    id: str = Field(..., description="Quote ID")
    project_id: Optional[str] = Field(default=None, description="Owning project")
    vendor_name: str = Field(default="", description="Vendor name as extracted")
    quote_number: Optional[str] = Field(default=None, description="Vendor quote number")
    quote_date: Optional[str] = Field(default=None, description="Quote date as extracted")

    subtotal: Optional[float] = Field(default=None, description="Pre-tax subtotal ($)")
    tax: Optional[float] = Field(default=None, description="Sales tax ($)")
    freight: Optional[float] = Field(default=None, description="Freight / delivery ($)")
    total: Optional[float] = Field(default=None, description="All-in total ($)")

    is_wrapper: bool = Field(default=False, description="Bundled rollup of child quotes")
    reconciliation_rule: Optional[ReconciliationRule] = Field(
        default=ReconciliationRule.ADDITIVE,
        description="Cost treatment; None is reported as a wrapper issue"
    )
    parent_quote_id: Optional[str] = Field(default=None, description="Wrapper this quote rolls up into")

    linked_vendor_evidence: Optional[str] = Field(default=None)
    linked_quote_evidence: Optional[str] = Field(default=None)

    status: QuoteStatus = Field(default=QuoteStatus.PENDING)
    confidence: ConfidenceLevel = Field(default=ConfidenceLevel.MEDIUM)
    notes: Optional[str] = Field(default=None, description="Free-text notes")
    raw_text: Optional[str] = Field(default=None, description="Raw extracted document text")

    created_at: Optional[str] = Field(default=None)
    updated_at: Optional[str] = Field(default=None)

    class Config:
        frozen = True

    def evidence_text(self) -> str:
        """Notes and raw text combined, used as the evidence source."""
        return f"{self.raw_text or ''} {self.notes or ''}"

    def with_status(self, status: QuoteStatus) -> "Quote":
        """Return a copy with a new status."""
        return self.model_copy(update={"status": status})


# =============================================================================
# LINE
# =============================================================================


class Line(BaseModel):
    """One priced item within a Quote."""

    id: str = Field(..., description="Line ID")
    quote_id: Optional[str] = Field(default=None, description="Owning quote")
    description: str = Field(default="", description="Line description")
    scope_tag: Optional[str] = Field(default=None, description="Category, e.g. DRYWALL")
    quantity: Optional[float] = Field(default=None)
    unit: Optional[str] = Field(default=None)
    unit_price: Optional[float] = Field(default=None)
    amount: Optional[float] = Field(default=None, description="Extended amount ($)")

    line_type: LineType = Field(default=LineType.MATERIAL_AND_LABOR)

    matched_line_id: Optional[str] = Field(default=None, description="Link set by dedupe")
    match_confidence: Optional[float] = Field(default=None)
    match_evidence: Optional[str] = Field(
        default=None, description="Extracted text proving the link, never an ID"
    )

    status: QuoteStatus = Field(default=QuoteStatus.PENDING)
    notes: Optional[str] = Field(default=None)

    created_at: Optional[str] = Field(default=None)
    updated_at: Optional[str] = Field(default=None)

    class Config:
        frozen = True

    def scan_text(self) -> str:
        """Description and notes combined, used for keyword scans."""
        return f"{self.description or ''} {self.notes or ''}"
