from bizvest.models.user import User
from bizvest.models.business import Business, BusinessAdditionalInfo
from bizvest.models.product import Product, ProductLegal
from bizvest.models.legal import Legal, MissingLegal, MissingProductLegal, LegalStep
from bizvest.models.financial import Financial
from bizvest.models.investment import Investment, InvestmentStatus
from bizvest.models.ai_cache import (
    BusinessAISuggestion,
    BusinessAISuggestionItem,
    BusinessProjection,
    BusinessProjectionItem,
)

__all__ = [
    "User",
    "Business",
    "BusinessAdditionalInfo",
    "Product",
    "ProductLegal",
    "Legal",
    "MissingLegal",
    "MissingProductLegal",
    "LegalStep",
    "Financial",
    "Investment",
    "InvestmentStatus",
    "BusinessAISuggestion",
    "BusinessAISuggestionItem",
    "BusinessProjection",
    "BusinessProjectionItem",
]
