from fastapi import APIRouter, File, Query, UploadFile
import logging

from bizvest.api.deps import DbSession, CurrentUser, Gateway, OwnedBusiness
from bizvest.exceptions import BadRequestError
from bizvest.schemas.genai import (
    ChatResponse,
    InferProductsResponse,
    InvestmentAdviceRequest,
    InvestmentAdviceResponse,
    ProjectionsEnvelope,
    SuggestionsEnvelope,
)
from bizvest.schemas.legal import LegalAnalysisRequest, LegalComparison
from bizvest.services.business_service import BusinessService
from bizvest.services.genai_service import GenAIService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/response", response_model=ChatResponse)
async def chat(
    db: DbSession,
    gateway: Gateway,
    current_user: CurrentUser,
    input: str = Query(..., min_length=1),
):
    """Free-form chat answered as a list of headed sections."""
    sections = await GenAIService(db, gateway).chat(input)
    return ChatResponse(response=sections)


@router.post("/infer-products", response_model=InferProductsResponse)
async def infer_products(
    db: DbSession,
    gateway: Gateway,
    current_user: CurrentUser,
    file: UploadFile = File(...),
):
    """Extract product names from an uploaded PDF."""
    contents = await file.read()
    if not contents:
        raise BadRequestError("Uploaded file is empty")

    products = await GenAIService(db, gateway).infer_products(contents)
    return InferProductsResponse(products=products)


@router.post("/legal-analysis", response_model=LegalComparison)
async def legal_analysis(
    request: LegalAnalysisRequest,
    db: DbSession,
    gateway: Gateway,
    current_user: CurrentUser,
):
    """Required-vs-owned legal documents; served from storage unless refreshing."""
    if request.business_id <= 0:
        raise BadRequestError("Invalid business ID")
    await BusinessService(db).get_owned_business(request.business_id, current_user)
    return await GenAIService(db, gateway).analyze_legal(request.business_id, request.is_refresh)


@router.get("/business/{business_id}/suggestions", response_model=SuggestionsEnvelope)
async def business_suggestions(
    business: OwnedBusiness,
    db: DbSession,
    gateway: Gateway,
    isRefresh: bool = False,
):
    suggestions = await GenAIService(db, gateway).get_suggestions(business.id, isRefresh)
    return SuggestionsEnvelope(data=suggestions)


@router.get("/business/{business_id}/projections", response_model=ProjectionsEnvelope)
async def business_projections(
    business_id: int,
    db: DbSession,
    gateway: Gateway,
    current_user: CurrentUser,
    isRefresh: bool = False,
):
    """5-year projection; the summary is always recomputed from the items."""
    await BusinessService(db).get_business(business_id)
    projections = await GenAIService(db, gateway).get_projections(business_id, isRefresh)
    return ProjectionsEnvelope(data=projections)


@router.post("/investment-advice", response_model=InvestmentAdviceResponse)
async def investment_advice(
    request: InvestmentAdviceRequest,
    db: DbSession,
    gateway: Gateway,
    current_user: CurrentUser,
):
    return await GenAIService(db, gateway).investment_advice(request.query, request.preferences)
