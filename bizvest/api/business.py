"""Business, product, legal document and financial endpoints.

Reads of a business and its products/documents are public. Every write, the
legal comparison and the financial writes require the caller to own the
business; financial reads require any authenticated user.
"""

from fastapi import APIRouter, File, Form, UploadFile, status
from typing import List, Optional
import logging

from bizvest.api.deps import DbSession, CurrentUser, OwnedBusiness
from bizvest.exceptions import BadRequestError, NotFoundError
from bizvest.schemas.business import (
    BusinessCreateRequest,
    BusinessDetailResponse,
    BusinessResponse,
    BusinessUpdate,
)
from bizvest.schemas.financial import FinancialCreate, FinancialUpdate, FinancialResponse
from bizvest.schemas.legal import LegalComparison, LegalResponse, ProductLegalResponse
from bizvest.schemas.product import ProductBulkCreate, ProductResponse, ProductUpdate
from bizvest.services.business_service import (
    BusinessService,
    business_detail_response,
    business_response,
)
from bizvest.services.financial_service import FinancialService, financial_response
from bizvest.services.legal_reconciler import LegalReconciler
from bizvest.services.legal_service import LegalService
from bizvest.services.product_service import ProductService

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Businesses
# ---------------------------------------------------------------------------

@router.post("", response_model=BusinessDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_business(
    business_data: BusinessCreateRequest,
    db: DbSession,
    current_user: CurrentUser,
):
    """Create a business with its additional info and initial products."""
    business = await BusinessService(db).create_business(current_user, business_data)
    return business_detail_response(business, None)


@router.get("/user", response_model=List[BusinessResponse])
async def list_my_businesses(db: DbSession, current_user: CurrentUser):
    """Businesses owned by the caller, valued from their current financials."""
    businesses = await BusinessService(db).list_user_businesses(current_user.id)
    financials = await FinancialService(db).get_current_many(b.id for b in businesses)
    return [business_response(b, financials.get(b.id)) for b in businesses]


@router.get("/{business_id}", response_model=BusinessDetailResponse)
async def get_business(business_id: int, db: DbSession):
    """Business detail with products, legal documents and current financial."""
    business = await BusinessService(db).get_business_detail(business_id)
    financial = await FinancialService(db).get_current(business_id)
    return business_detail_response(business, financial)


@router.put("/{business_id}", response_model=BusinessDetailResponse)
async def update_business(
    business: OwnedBusiness,
    business_data: BusinessUpdate,
    db: DbSession,
):
    """Update business profile fields."""
    updated = await BusinessService(db).update_business(business, business_data)
    financial = await FinancialService(db).get_current(updated.id)
    return business_detail_response(updated, financial)


@router.delete("/{business_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_business(business: OwnedBusiness, db: DbSession):
    """Soft-delete a business."""
    await BusinessService(db).delete_business(business)


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

@router.get("/{business_id}/products", response_model=List[ProductResponse])
async def list_products(business_id: int, db: DbSession):
    await BusinessService(db).get_business(business_id)
    return await ProductService(db).list_products(business_id)


@router.post(
    "/{business_id}/products",
    response_model=List[ProductResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_products(
    business: OwnedBusiness,
    product_data: ProductBulkCreate,
    db: DbSession,
):
    return await ProductService(db).add_products(business.id, product_data.products)


@router.get("/{business_id}/products/legal", response_model=List[ProductLegalResponse])
async def list_product_legals(business_id: int, db: DbSession):
    """Legal documents of every product of the business."""
    await BusinessService(db).get_business(business_id)
    return await LegalService(db).list_product_legals(business_id)


@router.put("/{business_id}/products/{product_id}", response_model=ProductResponse)
async def update_product(
    business: OwnedBusiness,
    product_id: int,
    product_data: ProductUpdate,
    db: DbSession,
):
    return await ProductService(db).update_product(business.id, product_id, product_data)


@router.delete("/{business_id}/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(business: OwnedBusiness, product_id: int, db: DbSession):
    await ProductService(db).delete_product(business.id, product_id)


# ---------------------------------------------------------------------------
# Legal documents
# ---------------------------------------------------------------------------

async def _read_upload(file: UploadFile) -> bytes:
    contents = await file.read()
    if not contents:
        raise BadRequestError("Uploaded file is empty")
    return contents


@router.get("/{business_id}/legal", response_model=List[LegalResponse])
async def list_business_legals(business_id: int, db: DbSession):
    await BusinessService(db).get_business(business_id)
    return await LegalService(db).list_business_legals(business_id)


@router.post(
    "/{business_id}/legal",
    response_model=LegalResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_business_legal(
    business: OwnedBusiness,
    db: DbSession,
    file: UploadFile = File(...),
    legal_type: Optional[str] = Form(None),
    issued_by: Optional[str] = Form(None),
    issued_at: Optional[str] = Form(None),
    valid_until: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
):
    """Upload a business-level legal document (multipart)."""
    contents = await _read_upload(file)
    return await LegalService(db).create_business_legal(
        business.id,
        file.filename,
        contents,
        legal_type=legal_type,
        issued_by=issued_by,
        issued_at=issued_at,
        valid_until=valid_until,
        notes=notes,
    )


@router.post(
    "/{business_id}/products/{product_id}/legal",
    response_model=ProductLegalResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_product_legal(
    business: OwnedBusiness,
    product_id: int,
    db: DbSession,
    file: UploadFile = File(...),
    legal_type: Optional[str] = Form(None),
    issued_by: Optional[str] = Form(None),
    issued_at: Optional[str] = Form(None),
    valid_until: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
):
    """Upload a legal document for one product of the business (multipart)."""
    product = await ProductService(db).get_product(business.id, product_id)
    contents = await _read_upload(file)
    legal = await LegalService(db).create_product_legal(
        business.id,
        product,
        file.filename,
        contents,
        legal_type=legal_type,
        issued_by=issued_by,
        issued_at=issued_at,
        valid_until=valid_until,
        notes=notes,
    )
    response = ProductLegalResponse.model_validate(legal)
    response.product_name = product.name
    return response


@router.get("/{business_id}/legal/comparison", response_model=LegalComparison)
async def get_legal_comparison(business: OwnedBusiness, db: DbSession):
    """The stored legal comparison. Never calls the AI provider."""
    comparison = await LegalReconciler(db).load(business.id)
    if comparison is None:
        raise NotFoundError("Legal analysis for this business")
    return comparison


# ---------------------------------------------------------------------------
# Financials (append-only history)
# ---------------------------------------------------------------------------

@router.get("/{business_id}/financial", response_model=FinancialResponse)
async def get_financial(business_id: int, db: DbSession, current_user: CurrentUser):
    """Current financial with valuation; an empty record when there is none."""
    await BusinessService(db).get_business(business_id)
    financial = await FinancialService(db).get_current(business_id)
    return financial_response(business_id, financial)


@router.get("/{business_id}/financial/history", response_model=List[FinancialResponse])
async def get_financial_history(business_id: int, db: DbSession, current_user: CurrentUser):
    """Every financial snapshot, newest first."""
    await BusinessService(db).get_business(business_id)
    history = await FinancialService(db).get_history(business_id)
    return [financial_response(business_id, financial) for financial in history]


@router.post(
    "/{business_id}/financial",
    response_model=FinancialResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_financial(
    business: OwnedBusiness,
    financial_data: FinancialCreate,
    db: DbSession,
):
    financial = await FinancialService(db).create(business.id, financial_data)
    return financial_response(business.id, financial)


@router.put("/{business_id}/financial", response_model=FinancialResponse)
async def update_financial(
    business: OwnedBusiness,
    financial_data: FinancialUpdate,
    db: DbSession,
):
    """Record a new snapshot: the current one overlaid with the supplied fields."""
    financial = await FinancialService(db).update(business.id, financial_data)
    return financial_response(business.id, financial)
