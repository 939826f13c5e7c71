"""
Legal Document Service

Stores uploaded legal documents for a business or one of its products and
lists what has been filed.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import date, datetime
from typing import List, Optional
import logging

from bizvest.models.legal import Legal
from bizvest.models.product import Product, ProductLegal
from bizvest.schemas.legal import ProductLegalResponse
from bizvest.services.file_storage import FileStorage

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM-DD form value. Anything else is ignored (None)."""
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        logger.debug(f"Ignoring unparseable date {value!r}")
        return None


class LegalService:
    """Service class for business and product legal documents."""

    def __init__(self, db: AsyncSession, storage: Optional[FileStorage] = None):
        self.db = db
        self.storage = storage or FileStorage()

    async def list_business_legals(self, business_id: int) -> List[Legal]:
        result = await self.db.execute(
            select(Legal)
            .where(Legal.business_id == business_id, Legal.deleted_at.is_(None))
            .order_by(Legal.id)
        )
        return list(result.scalars().all())

    async def list_product_legals(self, business_id: int) -> List[ProductLegalResponse]:
        """Every live product document of a business, tagged with the product name."""
        result = await self.db.execute(
            select(ProductLegal, Product.name)
            .join(Product, ProductLegal.product_id == Product.id)
            .where(
                Product.business_id == business_id,
                Product.deleted_at.is_(None),
                ProductLegal.deleted_at.is_(None),
            )
            .order_by(ProductLegal.id)
        )
        documents = []
        for legal, product_name in result.all():
            response = ProductLegalResponse.model_validate(legal)
            response.product_name = product_name
            documents.append(response)
        return documents

    async def create_business_legal(
        self,
        business_id: int,
        filename: Optional[str],
        content: bytes,
        legal_type: Optional[str] = None,
        issued_by: Optional[str] = None,
        issued_at: Optional[str] = None,
        valid_until: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Legal:
        stored = self.storage.save_business_legal(business_id, filename, content)
        legal = Legal(
            business_id=business_id,
            legal_type=legal_type,
            issued_by=issued_by,
            issued_at=parse_date(issued_at),
            valid_until=parse_date(valid_until),
            file_name=stored.file_name,
            file_url=stored.file_url,
            notes=notes,
        )
        self.db.add(legal)
        await self.db.commit()
        logger.info(f"Filed {legal_type!r} for business {business_id}")
        return legal

    async def create_product_legal(
        self,
        business_id: int,
        product: Product,
        filename: Optional[str],
        content: bytes,
        legal_type: Optional[str] = None,
        issued_by: Optional[str] = None,
        issued_at: Optional[str] = None,
        valid_until: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> ProductLegal:
        stored = self.storage.save_product_legal(business_id, product.id, filename, content)
        legal = ProductLegal(
            product_id=product.id,
            legal_type=legal_type,
            issued_by=issued_by,
            issued_at=parse_date(issued_at),
            valid_until=parse_date(valid_until),
            file_name=stored.file_name,
            file_url=stored.file_url,
            notes=notes,
        )
        self.db.add(legal)
        await self.db.commit()
        logger.info(f"Filed {legal_type!r} for product {product.id} of business {business_id}")
        return legal
