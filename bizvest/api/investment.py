from fastapi import APIRouter, Query, status
from typing import List, Optional

from bizvest.api.deps import DbSession, CurrentUser
from bizvest.exceptions import ForbiddenError
from bizvest.schemas.business import BusinessDetailResponse, BusinessListResponse
from bizvest.schemas.investment import (
    InvestmentCreate,
    InvestmentResponse,
    InvestmentStatusUpdate,
    InvestmentUpdate,
)
from bizvest.services.business_service import (
    BusinessService,
    business_detail_response,
    business_response,
)
from bizvest.services.financial_service import FinancialService
from bizvest.services.investment_service import InvestmentService
from bizvest.utils.pagination import resolve_page_params, total_pages

router = APIRouter()


def _responses(investments) -> List[InvestmentResponse]:
    return [InvestmentResponse.from_db_investment(i) for i in investments]


# ---------------------------------------------------------------------------
# Public browsing
# ---------------------------------------------------------------------------

@router.get("/businesses", response_model=BusinessListResponse)
async def browse_businesses(
    db: DbSession,
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    industry: Optional[str] = None,
    search: Optional[str] = None,
):
    """Paginated list of businesses open for investment, newest first.

    Unusable ``page``/``limit`` values fall back to 1 and 10.
    """
    page_number, page_size = resolve_page_params(page, limit)
    businesses, total = await BusinessService(db).list_businesses(
        page_number, page_size, industry=industry, search=search
    )
    financials = await FinancialService(db).get_current_many(b.id for b in businesses)

    return BusinessListResponse(
        businesses=[business_response(b, financials.get(b.id)) for b in businesses],
        total=total,
        page=page_number,
        limit=page_size,
        totalPages=total_pages(total, page_size),
    )


@router.get("/businesses/{business_id}", response_model=BusinessDetailResponse)
async def get_business_for_investor(business_id: int, db: DbSession):
    business = await BusinessService(db).get_business_detail(business_id)
    financial = await FinancialService(db).get_current(business_id)
    return business_detail_response(business, financial)


# ---------------------------------------------------------------------------
# Investments
# ---------------------------------------------------------------------------

@router.post("", response_model=InvestmentResponse, status_code=status.HTTP_201_CREATED)
async def create_investment(
    investment_data: InvestmentCreate,
    db: DbSession,
    current_user: CurrentUser,
):
    investment = await InvestmentService(db).create(current_user, investment_data)
    return InvestmentResponse.from_db_investment(investment)


@router.get("", response_model=List[InvestmentResponse])
async def list_my_investments(db: DbSession, current_user: CurrentUser):
    return _responses(await InvestmentService(db).list_for_investor(current_user.id))


@router.get("/user", response_model=List[InvestmentResponse])
async def list_user_investments(db: DbSession, current_user: CurrentUser):
    return _responses(await InvestmentService(db).list_for_investor(current_user.id))


@router.get("/investor/{investor_id}", response_model=List[InvestmentResponse])
async def list_investor_investments(investor_id: int, db: DbSession, current_user: CurrentUser):
    if investor_id != current_user.id:
        raise ForbiddenError("You can only list your own investments")
    return _responses(await InvestmentService(db).list_for_investor(investor_id))


@router.get("/business/{business_id}", response_model=List[InvestmentResponse])
async def list_business_investments(business_id: int, db: DbSession, current_user: CurrentUser):
    """Investments in a business; owner only."""
    await BusinessService(db).get_owned_business(business_id, current_user)
    return _responses(await InvestmentService(db).list_for_business(business_id))


@router.get("/user/business/{business_id}", response_model=List[InvestmentResponse])
async def list_my_investments_in_business(business_id: int, db: DbSession, current_user: CurrentUser):
    return _responses(
        await InvestmentService(db).list_for_investor_in_business(current_user.id, business_id)
    )


@router.get("/{investment_id}", response_model=InvestmentResponse)
async def get_investment(investment_id: int, db: DbSession, current_user: CurrentUser):
    """Readable by the investor and by the owner of the invested business."""
    investment = await InvestmentService(db).get_readable(investment_id, current_user)
    return InvestmentResponse.from_db_investment(investment)


@router.put("/{investment_id}", response_model=InvestmentResponse)
async def update_investment(
    investment_id: int,
    investment_data: InvestmentUpdate,
    db: DbSession,
    current_user: CurrentUser,
):
    service = InvestmentService(db)
    investment = await service.get_own(investment_id, current_user)
    investment = await service.update(investment, investment_data)
    return InvestmentResponse.from_db_investment(investment)


@router.patch("/{investment_id}/status", response_model=InvestmentResponse)
async def update_investment_status(
    investment_id: int,
    status_data: InvestmentStatusUpdate,
    db: DbSession,
    current_user: CurrentUser,
):
    """Change the status; ``active`` and ``exited`` stamp their timestamps."""
    service = InvestmentService(db)
    investment = await service.get_own(investment_id, current_user)
    investment = await service.set_status(investment, status_data.investment_status)
    return InvestmentResponse.from_db_investment(investment)


@router.delete("/{investment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_investment(investment_id: int, db: DbSession, current_user: CurrentUser):
    service = InvestmentService(db)
    investment = await service.get_own(investment_id, current_user)
    await service.delete(investment)
