from sqlalchemy import Column, Integer, DateTime, Float, ForeignKey, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from bizvest.database import Base, utcnow


class InvestmentStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    funded = "funded"
    active = "active"
    exited = "exited"
    rejected = "rejected"
    cancelled = "cancelled"


class Investment(Base):
    """An investor's stake in a business."""

    __tablename__ = "investments"

    id = Column(Integer, primary_key=True, index=True)
    investor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    investment_amount = Column(Float, nullable=False)

    investment_status = Column(
        Enum(InvestmentStatus),
        default=InvestmentStatus.pending,
        nullable=False,
    )
    purchased_at = Column(DateTime(timezone=True), nullable=True)  # set on -> active
    exited_at = Column(DateTime(timezone=True), nullable=True)     # set on -> exited

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    # Relationships
    investor = relationship("User", back_populates="investments")
    business = relationship("Business", back_populates="investments")

    def __repr__(self):
        return f"<Investment {self.id}: {self.investment_amount} in business {self.business_id}>"
