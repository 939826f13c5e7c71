from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List
import logging

from bizvest.database import utcnow
from bizvest.exceptions import NotFoundError
from bizvest.models.product import Product
from bizvest.schemas.product import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "description", "category", "unit", "hpp", "revenue", "profit")


class ProductService:
    """Product CRUD scoped to one business."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_products(self, business_id: int) -> List[Product]:
        result = await self.db.execute(
            select(Product)
            .where(Product.business_id == business_id, Product.deleted_at.is_(None))
            .order_by(Product.id)
        )
        return list(result.scalars().all())

    async def get_product(self, business_id: int, product_id: int) -> Product:
        """A live product of this business; products of other businesses are not found."""
        result = await self.db.execute(
            select(Product).where(
                Product.id == product_id,
                Product.business_id == business_id,
                Product.deleted_at.is_(None),
            )
        )
        product = result.scalar_one_or_none()
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    async def add_products(self, business_id: int, items: List[ProductCreate]) -> List[Product]:
        products = [Product(business_id=business_id, **item.model_dump()) for item in items]
        self.db.add_all(products)
        await self.db.commit()
        logger.info(f"Added {len(products)} products to business {business_id}")
        return products

    async def update_product(self, business_id: int, product_id: int, data: ProductUpdate) -> Product:
        product = await self.get_product(business_id, product_id)
        update_data = data.model_dump(exclude_unset=True)
        for field in UPDATABLE_FIELDS:
            if field in update_data:
                if field == "name" and update_data[field] is None:
                    continue  # name is required
                setattr(product, field, update_data[field])

        await self.db.commit()
        return product

    async def delete_product(self, business_id: int, product_id: int) -> None:
        product = await self.get_product(business_id, product_id)
        product.deleted_at = utcnow()
        await self.db.commit()
        logger.info(f"Soft-deleted product {product_id} of business {business_id}")
