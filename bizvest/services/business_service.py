"""
Business Service

Business CRUD scoped to the owner, plus the paginated public listing used by
investors. Reads never return soft-deleted businesses or products.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload
from typing import List, Optional, Tuple
import logging

from bizvest.database import utcnow
from bizvest.exceptions import NotFoundError, ForbiddenError
from bizvest.models.business import Business, BusinessAdditionalInfo
from bizvest.models.financial import Financial
from bizvest.models.legal import Legal
from bizvest.models.product import Product
from bizvest.models.user import User
from bizvest.schemas.business import (
    BusinessCreateRequest,
    BusinessDetailResponse,
    BusinessResponse,
    BusinessUpdate,
    AdditionalInfoResponse,
)
from bizvest.schemas.legal import LegalResponse
from bizvest.schemas.product import ProductResponse
from bizvest.services.financial_service import financial_response
from bizvest.services.valuation import ebitda_multiplier, market_cap

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "type", "description", "industry", "founded_at")


def _business_fields(business: Business, financial: Optional[Financial]) -> dict:
    revenue = financial.revenue if financial is not None else 0.0
    ebitda = financial.ebitda if financial is not None else 0.0
    return dict(
        id=business.id,
        user_id=business.user_id,
        name=business.name,
        type=business.type,
        description=business.description,
        industry=business.industry,
        founded_at=business.founded_at,
        legal_analyzed_at=business.legal_analyzed_at,
        created_at=business.created_at,
        updated_at=business.updated_at,
        financial=financial_response(business.id, financial) if financial is not None else None,
        ebitda_multiplier=ebitda_multiplier(revenue),
        market_cap=market_cap(ebitda, revenue),
    )


def business_response(business: Business, financial: Optional[Financial]) -> BusinessResponse:
    """Business summary valued from its current financial."""
    return BusinessResponse(**_business_fields(business, financial))


def business_detail_response(business: Business, financial: Optional[Financial]) -> BusinessDetailResponse:
    """Business detail. Relationships must already be loaded."""
    return BusinessDetailResponse(
        **_business_fields(business, financial),
        products=[ProductResponse.model_validate(p) for p in business.products],
        legals=[LegalResponse.model_validate(legal) for legal in business.legals],
        additional_info=[AdditionalInfoResponse.model_validate(i) for i in business.additional_info],
    )


class BusinessService:
    """Service class for business operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _detail_query(self, business_id: int):
        return (
            select(Business)
            .where(Business.id == business_id, Business.deleted_at.is_(None))
            .options(
                selectinload(Business.products.and_(Product.deleted_at.is_(None))),
                selectinload(Business.legals.and_(Legal.deleted_at.is_(None))),
                selectinload(Business.additional_info),
            )
            .execution_options(populate_existing=True)
        )

    async def get_business(self, business_id: int) -> Business:
        """Get a live business or raise NotFoundError."""
        result = await self.db.execute(
            select(Business).where(Business.id == business_id, Business.deleted_at.is_(None))
        )
        business = result.scalar_one_or_none()
        if business is None:
            raise NotFoundError("Business", business_id)
        return business

    async def get_business_detail(self, business_id: int) -> Business:
        """Get a live business with products, legals and additional info loaded."""
        result = await self.db.execute(self._detail_query(business_id))
        business = result.scalar_one_or_none()
        if business is None:
            raise NotFoundError("Business", business_id)
        return business

    async def get_owned_business(self, business_id: int, user: User) -> Business:
        """Get a live business owned by ``user``.

        Raises NotFoundError if it does not exist and ForbiddenError if it
        belongs to someone else.
        """
        business = await self.get_business(business_id)
        if business.user_id != user.id:
            logger.warning(f"User {user.id} denied access to business {business_id}")
            raise ForbiddenError("You do not own this business")
        return business

    async def create_business(self, owner: User, data: BusinessCreateRequest) -> Business:
        """Create a business with its additional info and initial products atomically."""
        try:
            business = Business(user_id=owner.id, **data.business.model_dump())
            self.db.add(business)
            await self.db.flush()

            for info in data.additional_info:
                self.db.add(BusinessAdditionalInfo(business_id=business.id, **info.model_dump()))
            for product in data.products:
                self.db.add(Product(business_id=business.id, **product.model_dump()))

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Created business {business.id} for user {owner.id} "
            f"with {len(data.products)} products"
        )
        return await self.get_business_detail(business.id)

    async def list_user_businesses(self, user_id: int) -> List[Business]:
        result = await self.db.execute(
            select(Business)
            .where(Business.user_id == user_id, Business.deleted_at.is_(None))
            .order_by(Business.created_at.desc(), Business.id.desc())
        )
        return list(result.scalars().all())

    async def update_business(self, business: Business, data: BusinessUpdate) -> Business:
        update_data = data.model_dump(exclude_unset=True)
        for field in UPDATABLE_FIELDS:
            if field in update_data:
                if field == "name" and update_data[field] is None:
                    continue  # name is required
                setattr(business, field, update_data[field])

        await self.db.commit()
        return await self.get_business_detail(business.id)

    async def delete_business(self, business: Business) -> None:
        business.deleted_at = utcnow()
        await self.db.commit()
        logger.info(f"Soft-deleted business {business.id}")

    async def list_businesses(
        self,
        page: int,
        limit: int,
        industry: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Business], int]:
        """Public listing, newest first. Returns (page of businesses, total)."""
        query = select(Business).where(Business.deleted_at.is_(None))

        if industry:
            query = query.where(Business.industry == industry)
        if search:
            query = query.where(
                or_(
                    Business.name.icontains(search, autoescape=True),
                    Business.description.icontains(search, autoescape=True),
                )
            )

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.db.execute(count_query)
        total = total_result.scalar()

        offset = (page - 1) * limit
        query = (
            query.order_by(Business.created_at.desc(), Business.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total
