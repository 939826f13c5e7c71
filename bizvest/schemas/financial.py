from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class FinancialWrite(BaseModel):
    """Body of POST/PUT /business/{id}/financial.

    On POST a missing amount is stored as 0. On PUT a missing amount keeps the
    value of the current financial.
    """
    revenue: Optional[float] = None
    ebitda: Optional[float] = None
    assets: Optional[float] = None
    liabilities: Optional[float] = None
    equity: Optional[float] = None
    report_file_url: Optional[str] = Field(None, max_length=1000)
    notes: Optional[str] = None


class FinancialCreate(FinancialWrite):
    pass


class FinancialUpdate(FinancialWrite):
    pass


class FinancialResponse(BaseModel):
    """A financial snapshot with its valuation.

    ``id`` is null when the business has no financial yet.
    """
    id: Optional[int] = None
    business_id: int
    revenue: float = 0.0
    ebitda: float = 0.0
    assets: float = 0.0
    liabilities: float = 0.0
    equity: float = 0.0
    report_file_url: Optional[str] = None
    notes: Optional[str] = None
    ebitda_multiplier: float = 1.0
    market_cap: float = 0.0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
