from sqlalchemy import Column, Integer, String, DateTime, Date, Text, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from bizvest.database import Base, utcnow


class Business(Base):
    """A company listed on the marketplace, owned by exactly one user."""

    __tablename__ = "businesses"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    type = Column(String(100))
    description = Column(Text)
    industry = Column(String(100), index=True)
    founded_at = Column(Date, nullable=True)

    # Set whenever a legal comparison has been stored for this business
    legal_analyzed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    # Relationships
    owner = relationship("User", back_populates="businesses")
    additional_info = relationship("BusinessAdditionalInfo", back_populates="business")
    products = relationship("Product", back_populates="business")
    legals = relationship("Legal", back_populates="business")
    financials = relationship("Financial", back_populates="business")
    missing_legals = relationship("MissingLegal", back_populates="business")
    investments = relationship("Investment", back_populates="business")

    def __repr__(self):
        return f"<Business {self.id}: {self.name}>"


class BusinessAdditionalInfo(Base):
    """Free-form name/value details supplied when a business is registered."""

    __tablename__ = "business_additional_info"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    value = Column(Text)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    business = relationship("Business", back_populates="additional_info")
