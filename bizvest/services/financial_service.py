"""
Financial Service

Financial history is append-only: every write inserts a new row and the
current financial of a business is its most recently created row
(created_at DESC, id DESC). Earlier rows are never mutated.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import aliased
from typing import Dict, Iterable, List, Optional
import logging

from bizvest.models.business import Business
from bizvest.models.financial import Financial
from bizvest.schemas.financial import FinancialCreate, FinancialUpdate, FinancialResponse
from bizvest.services.valuation import ebitda_multiplier, market_cap

logger = logging.getLogger(__name__)

AMOUNT_FIELDS = ("revenue", "ebitda", "assets", "liabilities", "equity")


def financial_response(business_id: int, financial: Optional[Financial]) -> FinancialResponse:
    """Serialize a financial with its valuation; an empty record when there is none."""
    if financial is None:
        return FinancialResponse(
            id=None,
            business_id=business_id,
            ebitda_multiplier=ebitda_multiplier(0),
            market_cap=0.0,
        )
    return FinancialResponse(
        id=financial.id,
        business_id=financial.business_id,
        revenue=financial.revenue or 0.0,
        ebitda=financial.ebitda or 0.0,
        assets=financial.assets or 0.0,
        liabilities=financial.liabilities or 0.0,
        equity=financial.equity or 0.0,
        report_file_url=financial.report_file_url,
        notes=financial.notes,
        ebitda_multiplier=ebitda_multiplier(financial.revenue),
        market_cap=market_cap(financial.ebitda, financial.revenue),
        created_at=financial.created_at,
        updated_at=financial.updated_at,
    )


class FinancialService:
    """Service class for financial history operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _newest_first():
        return (Financial.created_at.desc(), Financial.id.desc())

    async def get_current(self, business_id: int) -> Optional[Financial]:
        result = await self.db.execute(
            select(Financial)
            .where(Financial.business_id == business_id, Financial.deleted_at.is_(None))
            .order_by(*self._newest_first())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_current_many(self, business_ids: Iterable[int]) -> Dict[int, Financial]:
        """Current financial per business, one query for the whole batch."""
        ids = list(business_ids)
        if not ids:
            return {}

        ranked = (
            select(
                Financial,
                func.row_number()
                .over(partition_by=Financial.business_id, order_by=self._newest_first())
                .label("row_num"),
            )
            .where(Financial.business_id.in_(ids), Financial.deleted_at.is_(None))
            .subquery()
        )
        latest = aliased(Financial, ranked)
        result = await self.db.execute(select(latest).where(ranked.c.row_num == 1))
        return {financial.business_id: financial for financial in result.scalars().all()}

    async def current_averages(self) -> Dict[str, float]:
        """Average amounts over the current financial of every live business."""
        ranked = (
            select(
                Financial,
                func.row_number()
                .over(partition_by=Financial.business_id, order_by=self._newest_first())
                .label("row_num"),
            )
            .join(Business, Business.id == Financial.business_id)
            .where(Financial.deleted_at.is_(None), Business.deleted_at.is_(None))
            .subquery()
        )
        result = await self.db.execute(
            select(
                func.avg(ranked.c.ebitda),
                func.avg(ranked.c.revenue),
                func.avg(ranked.c.assets),
                func.avg(ranked.c.equity),
            ).where(ranked.c.row_num == 1)
        )
        avg_ebitda, avg_revenue, avg_assets, avg_equity = result.one()
        return {
            "ebitda": float(avg_ebitda or 0.0),
            "revenue": float(avg_revenue or 0.0),
            "assets": float(avg_assets or 0.0),
            "equity": float(avg_equity or 0.0),
        }

    async def get_history(self, business_id: int) -> List[Financial]:
        result = await self.db.execute(
            select(Financial)
            .where(Financial.business_id == business_id, Financial.deleted_at.is_(None))
            .order_by(*self._newest_first())
        )
        return list(result.scalars().all())

    async def create(self, business_id: int, data: FinancialCreate) -> Financial:
        """Append a financial built only from the supplied fields."""
        values = data.model_dump()
        for field in AMOUNT_FIELDS:
            if values[field] is None:
                values[field] = 0.0
        return await self._append(business_id, values)

    async def update(self, business_id: int, data: FinancialUpdate) -> Financial:
        """Append a copy of the current financial overlaid with the supplied fields."""
        current = await self.get_current(business_id)
        values = {field: 0.0 for field in AMOUNT_FIELDS}
        values.update(report_file_url=None, notes=None)
        if current is not None:
            for field in values:
                values[field] = getattr(current, field)

        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                values[field] = value

        return await self._append(business_id, values)

    async def _append(self, business_id: int, values: dict) -> Financial:
        financial = Financial(business_id=business_id, **values)
        self.db.add(financial)
        await self.db.commit()
        await self.db.refresh(financial)
        logger.info(f"Appended financial {financial.id} for business {business_id}")
        return financial
