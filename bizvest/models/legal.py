"""Business legal documents and the derived missing-document records."""

from sqlalchemy import Column, Integer, String, DateTime, Date, Text, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from bizvest.database import Base, utcnow


class Legal(Base):
    """Filed legal document at business level (license, certificate, permit)."""

    __tablename__ = "legals"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)

    legal_type = Column(String(255), index=True)
    issued_by = Column(String(255))
    issued_at = Column(Date, nullable=True)
    valid_until = Column(Date, nullable=True)
    file_name = Column(String(500))
    file_url = Column(String(1000))
    notes = Column(Text)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    business = relationship("Business", back_populates="legals")

    def __repr__(self):
        return f"<Legal {self.legal_type} business={self.business_id}>"


class MissingLegal(Base):
    """A business-level document the last reconciliation found missing.

    Rows are replaced wholesale on every reconciliation of the business.
    """

    __tablename__ = "missing_legals"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    legal_type = Column(String(255), nullable=False)
    notes = Column(Text)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    business = relationship("Business", back_populates="missing_legals")
    steps = relationship(
        "LegalStep",
        back_populates="missing_legal",
        cascade="all, delete-orphan",
        order_by="LegalStep.step_number",
    )


class MissingProductLegal(Base):
    """A product-level document the last reconciliation found missing."""

    __tablename__ = "missing_product_legals"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    legal_type = Column(String(255), nullable=False)
    notes = Column(Text)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    product = relationship("Product", back_populates="missing_legals")
    steps = relationship(
        "LegalStep",
        back_populates="missing_product_legal",
        cascade="all, delete-orphan",
        order_by="LegalStep.step_number",
    )


class LegalStep(Base):
    """One remediation step; belongs to exactly one missing-document row."""

    __tablename__ = "legal_steps"

    id = Column(Integer, primary_key=True, index=True)
    missing_legal_id = Column(Integer, ForeignKey("missing_legals.id"), nullable=True, index=True)
    missing_product_legal_id = Column(
        Integer, ForeignKey("missing_product_legals.id"), nullable=True, index=True
    )

    step_number = Column(Integer, nullable=False)
    description = Column(Text, nullable=False)
    redirect_url = Column(String(1000))

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    missing_legal = relationship("MissingLegal", back_populates="steps")
    missing_product_legal = relationship("MissingProductLegal", back_populates="steps")
