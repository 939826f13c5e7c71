"""Legal document schemas and the legal comparison shape.

The comparison models double as the parser for the AI collaborator's
required-documents answer, so they tolerate missing optional keys.
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional


class LegalDocumentBase(BaseModel):
    legal_type: Optional[str] = None
    issued_by: Optional[str] = None
    issued_at: Optional[date] = None
    valid_until: Optional[date] = None
    file_name: Optional[str] = None
    file_url: Optional[str] = None
    notes: Optional[str] = None


class LegalResponse(LegalDocumentBase):
    """Business-level legal document."""
    id: int
    business_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProductLegalResponse(LegalDocumentBase):
    """Product-level legal document."""
    id: int
    product_id: int
    product_name: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LegalStepSchema(BaseModel):
    step_number: int = 0
    description: str = ""
    redirect_url: Optional[str] = None


class LegalRequirement(BaseModel):
    type: str
    has_legal: bool = False
    notes: Optional[str] = None
    steps: list[LegalStepSchema] = Field(default_factory=list)


class ProductLegalComparison(BaseModel):
    product_name: str
    required: list[LegalRequirement] = Field(default_factory=list)


class LegalComparison(BaseModel):
    """Required documents for a business and its products, tagged with ownership."""
    required: list[LegalRequirement] = Field(default_factory=list)
    products: list[ProductLegalComparison] = Field(default_factory=list)


class LegalAnalysisRequest(BaseModel):
    business_id: int
    is_refresh: bool = False
