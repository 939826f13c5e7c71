from sqlalchemy import Column, Integer, String, DateTime, Date, Text, Float, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from bizvest.database import Base, utcnow


class Product(Base):
    """Product sold by a business."""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text)
    category = Column(String(100))  # e.g. Food, Tech, Service
    unit = Column(String(50))       # e.g. kg, piece, service hour

    hpp = Column(Float)  # cost per unit (harga pokok penjualan)
    revenue = Column(Float)
    profit = Column(Float)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    # Relationships
    business = relationship("Business", back_populates="products")
    product_legals = relationship("ProductLegal", back_populates="product")
    missing_legals = relationship("MissingProductLegal", back_populates="product")

    def __repr__(self):
        return f"<Product {self.id}: {self.name}>"


class ProductLegal(Base):
    """Filed legal document for a single product (Halal, BPOM, patent...)."""

    __tablename__ = "product_legals"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

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

    product = relationship("Product", back_populates="product_legals")

    def __repr__(self):
        return f"<ProductLegal {self.legal_type} product={self.product_id}>"
