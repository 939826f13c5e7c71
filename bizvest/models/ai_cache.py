"""Cached AI output per business.

Each generation appends a new header row with its items. Reads take the most
recent header unless the caller forces a refresh.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, Float, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from bizvest.database import Base, utcnow


class BusinessAISuggestion(Base):
    __tablename__ = "business_ai_suggestions"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    business_name = Column(String(255))
    generated_at = Column(String(50))  # as reported by the model

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    items = relationship(
        "BusinessAISuggestionItem",
        back_populates="suggestion_set",
        cascade="all, delete-orphan",
        order_by="BusinessAISuggestionItem.id",
    )


class BusinessAISuggestionItem(Base):
    __tablename__ = "business_ai_suggestion_items"

    id = Column(Integer, primary_key=True, index=True)
    suggestion_set_id = Column(
        Integer, ForeignKey("business_ai_suggestions.id"), nullable=False, index=True
    )
    suggestion = Column(Text, nullable=False)
    category = Column(String(100))
    priority = Column(String(20))  # High / Medium / Low

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    suggestion_set = relationship("BusinessAISuggestion", back_populates="items")


class BusinessProjection(Base):
    __tablename__ = "business_projections"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    business_name = Column(String(255))
    generated_at = Column(String(50))

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    items = relationship(
        "BusinessProjectionItem",
        back_populates="projection",
        cascade="all, delete-orphan",
        order_by="BusinessProjectionItem.year",
    )


class BusinessProjectionItem(Base):
    __tablename__ = "business_projection_items"

    id = Column(Integer, primary_key=True, index=True)
    projection_id = Column(Integer, ForeignKey("business_projections.id"), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    revenue = Column(Float, default=0.0)
    expenses = Column(Float, default=0.0)
    net_income = Column(Float, default=0.0)
    cash_flow = Column(Float, default=0.0)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    projection = relationship("BusinessProjection", back_populates="items")
