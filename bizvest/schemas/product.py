from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class ProductBase(BaseModel):
    """Base product schema."""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    unit: Optional[str] = Field(None, max_length=50)
    hpp: Optional[float] = None
    revenue: Optional[float] = None
    profit: Optional[float] = None


class ProductCreate(ProductBase):
    """Schema for creating a product."""
    pass


class ProductBulkCreate(BaseModel):
    """Body of POST /business/{id}/products."""
    products: list[ProductCreate] = Field(..., min_length=1)


class ProductUpdate(BaseModel):
    """Schema for updating a product (all fields optional)."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    unit: Optional[str] = Field(None, max_length=50)
    hpp: Optional[float] = None
    revenue: Optional[float] = None
    profit: Optional[float] = None


class ProductResponse(ProductBase):
    """Schema for product response."""
    id: int
    business_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
