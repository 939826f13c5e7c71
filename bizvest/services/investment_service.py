"""
Investment Service

Investments are owned by their investor. The owner of the invested business
may read them but only the investor may change them.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from typing import List
import logging

from bizvest.database import utcnow
from bizvest.exceptions import NotFoundError, ForbiddenError
from bizvest.models.business import Business
from bizvest.models.investment import Investment, InvestmentStatus
from bizvest.models.user import User
from bizvest.schemas.investment import InvestmentCreate, InvestmentUpdate

logger = logging.getLogger(__name__)


class InvestmentService:
    """Service class for investment operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _query(self):
        return (
            select(Investment)
            .where(Investment.deleted_at.is_(None))
            .options(selectinload(Investment.business))
            .order_by(Investment.created_at.desc(), Investment.id.desc())
        )

    async def _get(self, investment_id: int) -> Investment:
        result = await self.db.execute(
            self._query()
            .where(Investment.id == investment_id)
            .execution_options(populate_existing=True)
        )
        investment = result.scalar_one_or_none()
        if investment is None:
            raise NotFoundError("Investment", investment_id)
        return investment

    async def get_readable(self, investment_id: int, user: User) -> Investment:
        """Investment visible to its investor or to the invested business's owner."""
        investment = await self._get(investment_id)
        if investment.investor_id == user.id:
            return investment
        if investment.business is not None and investment.business.user_id == user.id:
            return investment
        raise ForbiddenError("You cannot view this investment")

    async def get_own(self, investment_id: int, user: User) -> Investment:
        """Investment made by ``user``; anyone else gets ForbiddenError."""
        investment = await self._get(investment_id)
        if investment.investor_id != user.id:
            raise ForbiddenError("Only the investor can modify this investment")
        return investment

    async def create(self, investor: User, data: InvestmentCreate) -> Investment:
        result = await self.db.execute(
            select(Business.id).where(
                Business.id == data.business_id,
                Business.deleted_at.is_(None),
            )
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Business", data.business_id)

        investment = Investment(
            investor_id=investor.id,
            business_id=data.business_id,
            investment_amount=data.investment_amount,
            investment_status=InvestmentStatus.pending,
        )
        self.db.add(investment)
        await self.db.commit()
        logger.info(f"Investor {investor.id} invested in business {data.business_id}")
        return await self._get(investment.id)

    async def list_for_investor(self, investor_id: int) -> List[Investment]:
        result = await self.db.execute(self._query().where(Investment.investor_id == investor_id))
        return list(result.scalars().all())

    async def list_for_business(self, business_id: int) -> List[Investment]:
        result = await self.db.execute(self._query().where(Investment.business_id == business_id))
        return list(result.scalars().all())

    async def list_for_investor_in_business(self, investor_id: int, business_id: int) -> List[Investment]:
        result = await self.db.execute(
            self._query().where(
                Investment.investor_id == investor_id,
                Investment.business_id == business_id,
            )
        )
        return list(result.scalars().all())

    async def update(self, investment: Investment, data: InvestmentUpdate) -> Investment:
        if data.investment_amount is not None:
            investment.investment_amount = data.investment_amount
        await self.db.commit()
        return await self._get(investment.id)

    async def set_status(self, investment: Investment, status: InvestmentStatus) -> Investment:
        """Move an investment to ``status``.

        Entering ``active`` stamps purchased_at and entering ``exited`` stamps
        exited_at. Other statuses leave both timestamps alone.
        """
        investment.investment_status = status
        if status == InvestmentStatus.active:
            investment.purchased_at = utcnow()
        elif status == InvestmentStatus.exited:
            investment.exited_at = utcnow()

        await self.db.commit()
        logger.info(f"Investment {investment.id} status set to {status.value}")
        return await self._get(investment.id)

    async def delete(self, investment: Investment) -> None:
        investment.deleted_at = utcnow()
        await self.db.commit()
        logger.info(f"Soft-deleted investment {investment.id}")
