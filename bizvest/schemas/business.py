from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional

from bizvest.schemas.product import ProductCreate, ProductResponse
from bizvest.schemas.legal import LegalResponse
from bizvest.schemas.financial import FinancialResponse


class BusinessBase(BaseModel):
    """Base business schema."""
    name: str = Field(..., min_length=1, max_length=255)
    type: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    industry: Optional[str] = Field(None, max_length=100)
    founded_at: Optional[date] = None


class BusinessCreate(BusinessBase):
    """Schema for creating a business. The owner is taken from the token."""
    pass


class AdditionalInfoItem(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    value: Optional[str] = None


class AdditionalInfoResponse(AdditionalInfoItem):
    id: int

    class Config:
        from_attributes = True


class BusinessCreateRequest(BaseModel):
    """Body of POST /business: the business plus its initial details and products."""
    business: BusinessCreate
    additional_info: list[AdditionalInfoItem] = Field(default_factory=list)
    products: list[ProductCreate] = Field(default_factory=list)


class BusinessUpdate(BaseModel):
    """Schema for updating a business (all fields optional)."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    industry: Optional[str] = Field(None, max_length=100)
    founded_at: Optional[date] = None


class BusinessResponse(BusinessBase):
    """Business with the valuation of its current financial."""
    id: int
    user_id: int
    legal_analyzed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    financial: Optional[FinancialResponse] = None
    ebitda_multiplier: float = 1.0
    market_cap: float = 0.0

    class Config:
        from_attributes = True


class BusinessDetailResponse(BusinessResponse):
    """Business detail with its products, legal documents and extra info."""
    products: list[ProductResponse] = Field(default_factory=list)
    legals: list[LegalResponse] = Field(default_factory=list)
    additional_info: list[AdditionalInfoResponse] = Field(default_factory=list)


class BusinessListResponse(BaseModel):
    """Paginated business list for investors."""
    businesses: list[BusinessResponse]
    total: int
    page: int
    limit: int
    totalPages: int
