from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from bizvest.models.investment import InvestmentStatus


class InvestmentCreate(BaseModel):
    """Schema for creating an investment. The investor is taken from the token."""
    business_id: int
    investment_amount: float = Field(..., gt=0)


class InvestmentUpdate(BaseModel):
    """Schema for updating an investment."""
    investment_amount: Optional[float] = Field(None, gt=0)


class InvestmentStatusUpdate(BaseModel):
    investment_status: InvestmentStatus


class InvestmentResponse(BaseModel):
    """Schema for investment response."""
    id: int
    investor_id: int
    business_id: int
    business_name: Optional[str] = None
    investment_amount: float
    investment_status: InvestmentStatus
    purchased_at: Optional[datetime] = None
    exited_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_db_investment(cls, investment) -> "InvestmentResponse":
        """Build from an Investment whose ``business`` relationship is loaded."""
        business = investment.business
        return cls(
            id=investment.id,
            investor_id=investment.investor_id,
            business_id=investment.business_id,
            business_name=business.name if business is not None else None,
            investment_amount=investment.investment_amount,
            investment_status=investment.investment_status,
            purchased_at=investment.purchased_at,
            exited_at=investment.exited_at,
            created_at=investment.created_at,
            updated_at=investment.updated_at,
        )
