from sqlalchemy import Column, Integer, String, DateTime, Text, Float, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from bizvest.database import Base, utcnow


class Financial(Base):
    """One financial statement snapshot.

    Rows are append-only: a business's history grows by one row per write and
    its current financial is the most recently created row.
    """

    __tablename__ = "financials"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)

    # Amounts in IDR
    revenue = Column(Float, nullable=False, default=0.0)
    ebitda = Column(Float, nullable=False, default=0.0)
    assets = Column(Float, nullable=False, default=0.0)
    liabilities = Column(Float, nullable=False, default=0.0)
    equity = Column(Float, nullable=False, default=0.0)

    report_file_url = Column(String(1000))  # raw financial report (pdf/txt)
    notes = Column(Text)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    business = relationship("Business", back_populates="financials")

    def __repr__(self):
        return f"<Financial {self.id} business={self.business_id}>"
