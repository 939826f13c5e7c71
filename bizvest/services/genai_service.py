"""
GenAI Service

Builds prompts from marketplace data, sends them through the AI gateway and
turns the answers into API responses:

- free-form chat
- product names inferred from an uploaded PDF
- legal-compliance analysis (handed to the legal reconciler)
- improvement suggestions and 5-year projections, cached per business
- investment advice grounded in live marketplace data

Amounts are in IDR and the regulatory context is Indonesia.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_, case, exists
from sqlalchemy.orm import selectinload
from pydantic import ValidationError
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence
import logging

from bizvest.exceptions import AIServiceError
from bizvest.models.ai_cache import (
    BusinessAISuggestion,
    BusinessAISuggestionItem,
    BusinessProjection,
    BusinessProjectionItem,
)
from bizvest.models.business import Business
from bizvest.models.financial import Financial
from bizvest.models.legal import Legal
from bizvest.models.product import Product, ProductLegal
from bizvest.schemas.genai import (
    ChatSection,
    GeneratedProjections,
    InvestmentAdviceResponse,
    InvestmentPreferences,
    ProjectionItem,
    ProjectionsResponse,
    SuggestionItem,
    SuggestionsResponse,
)
from bizvest.schemas.legal import LegalComparison
from bizvest.services.ai_gateway import (
    AIGateway,
    Attachment,
    BOOLEAN,
    NUMBER,
    STRING,
    schema_array,
    schema_object,
)
from bizvest.services.financial_service import FinancialService
from bizvest.services.legal_reconciler import LegalReconciler
from bizvest.services.valuation import market_cap

logger = logging.getLogger(__name__)

MAX_ADVICE_BUSINESSES = 8
MAX_PROMPT_BUSINESSES = 6

STOP_WORDS = {
    "saya", "ingin", "mau", "invest", "investasi", "bisnis", "usaha",
    "perusahaan", "di", "pada", "dengan", "yang", "dan", "atau", "untuk",
    "adalah", "ini", "itu", "ada", "tidak",
    "i", "want", "to", "in", "a", "an", "the", "and", "or", "business", "company",
}


# ---------------------------------------------------------------------------
# Response schemas sent to the provider
# ---------------------------------------------------------------------------

CHAT_SCHEMA = schema_array(schema_object({"header": STRING, "response": STRING}))

_STEP = schema_object({"step_number": NUMBER, "description": STRING, "redirect_url": STRING})
_REQUIREMENT = schema_object({
    "type": STRING,
    "has_legal": BOOLEAN,
    "notes": STRING,
    "steps": schema_array(_STEP),
})
LEGAL_COMPARISON_SCHEMA = schema_object({
    "required": schema_array(_REQUIREMENT),
    "products": schema_array(schema_object({
        "product_name": STRING,
        "required": schema_array(_REQUIREMENT),
    })),
})

SUGGESTIONS_SCHEMA = schema_object(
    {
        "business_name": STRING,
        "suggestions": schema_array(schema_object(
            {"suggestion": STRING, "category": STRING, "priority": STRING},
            required=["suggestion", "category", "priority"],
        )),
        "generated_at": STRING,
    },
    required=["business_name", "suggestions", "generated_at"],
)

PROJECTIONS_SCHEMA = schema_object(
    {
        "business_name": STRING,
        "projections": schema_array(schema_object(
            {
                "year": NUMBER,
                "revenue": NUMBER,
                "expenses": NUMBER,
                "netIncome": NUMBER,
                "cashFlow": NUMBER,
            },
            required=["year", "revenue", "expenses", "netIncome", "cashFlow"],
        )),
        "generated_at": STRING,
    },
    required=["business_name", "projections", "generated_at"],
)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def _now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def split_product_names(text: str) -> List[str]:
    """Split the model's comma-separated answer into clean product names."""
    names = []
    for raw in text.split(","):
        name = raw.strip().strip('\\"').strip()
        if name:
            names.append(name)
    return names


def extract_keywords(query: str) -> List[str]:
    """Lower-cased query words longer than two characters, minus stop words."""
    return [
        word for word in query.lower().split()
        if len(word) > 2 and word not in STOP_WORDS
    ]


def summarize_projections(items: Sequence[ProjectionItem]) -> Dict[str, object]:
    """Totals, mean year-over-year growth and break-even year of a projection."""
    ordered = sorted(items, key=lambda item: item.year)
    growth = [
        (current.revenue - previous.revenue) / previous.revenue * 100
        for previous, current in zip(ordered, ordered[1:])
        if previous.revenue > 0
    ]
    break_even = next((str(item.year) for item in ordered if item.net_income > 0), "N/A")
    return {
        "total_projected_revenue": sum(item.revenue for item in ordered),
        "average_growth_rate": f"{sum(growth) / len(growth):.1f}%" if growth else "N/A",
        "break_even_year": break_even,
    }


def build_business_profile(business: Business) -> str:
    """Plain-text profile of a business, its documents and its products.

    ``products``, ``legals`` and each product's ``product_legals`` must be loaded.
    """
    lines = [
        f"Business Name: {business.name}",
        f"Business Type: {business.type or '-'}",
        f"Industry: {business.industry or '-'}",
        f"Description: {business.description or '-'}",
    ]
    if business.founded_at:
        lines.append(f"Founded: {business.founded_at.isoformat()}")

    lines.append("")
    lines.append("Current Legal Documents:")
    if not business.legals:
        lines.append("- No legal documents currently registered")
    for legal in business.legals:
        lines.append(_describe_document(legal, "- "))

    lines.append("")
    lines.append("Products:")
    if not business.products:
        lines.append("- No products registered")
    for product in business.products:
        lines.append(f"- Product: {product.name}")
        if not product.product_legals:
            lines.append("  Legal documents: None")
            continue
        lines.append("  Legal documents:")
        for document in product.product_legals:
            lines.append(_describe_document(document, "    - "))

    return "\n".join(lines) + "\n"


def _describe_document(document, prefix: str) -> str:
    text = f"{prefix}{document.legal_type}"
    if document.issued_by:
        text += f" (issued by {document.issued_by})"
    if document.valid_until:
        text += f" [valid until {document.valid_until.isoformat()}]"
    return text


def _describe_financial(financial: Optional[Financial]) -> str:
    if financial is None:
        return "No structured financial record found for this business."
    return (
        f"Revenue: {financial.revenue:.2f}\n"
        f"EBITDA: {financial.ebitda:.2f}\n"
        f"Assets: {financial.assets:.2f}\n"
        f"Liabilities: {financial.liabilities:.2f}\n"
        f"Equity: {financial.equity:.2f}\n"
        f"Notes: {financial.notes or '-'}"
    )


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

INFER_PRODUCTS_PROMPT = (
    "Extract product names from this document. "
    "Only the product names, separated by comma."
)

LEGAL_ANALYSIS_PROMPT = """You are a business lawyer specialising in Indonesian regulation and compliance.
Analyse the business profile below, identify the legal documents it is required to hold,
check which of them it already holds, and explain how to obtain the ones that are missing.

**Business Profile:**
{profile}

**Instructions:**
1. Company documents: based on the business type, industry and location (Indonesia), list the
   mandatory company-level legal documents and whether the business already holds each one.
   For every missing document give practical step-by-step guidance numbered from 1.
2. Product documents: for every product in the profile, list the documents Indonesian
   regulation requires for it (for example Halal certification, BPOM registration or SNI)
   and whether the product already holds each one, with numbered steps for missing ones.

Guidelines:
- Use the official Indonesian document names.
- Only include "steps" when has_legal is false, always starting at step_number 1.
- redirect_url should look like an internal guide URL, e.g. /legal/guide/akta-pendirian.
- Use the product names exactly as they appear in the profile.
"""

SUGGESTIONS_PROMPT = """To complete a business profile on our investment marketplace, the owner fills in,
in this order:

1. trademark registration
2. product documents
3. financial data (as reported for tax purposes)

The owner has provided the following data:
{summary}

List what is missing. You may improvise a little based on what you know about the company.

Notes:
- Prioritise suggestions based on what is already complete.
- Give specific, actionable suggestions that name the page to visit, such as
  "Visit the Products page", "Visit the Legal Documents page",
  "Visit the Financial Data page" or "Visit the Projections page".
- category is one of: Legal Documents, Financial Data, Product Information, Profile Completion.
- priority is High, Medium or Low.
- At most 5 suggestions.
- generated_at is an ISO-8601 UTC timestamp.
"""

PROJECTIONS_PROMPT = """You are an experienced financial analyst for Indonesian small and medium enterprises.
Using the business profile and latest financial summary below, produce a 5-year financial projection.

**Business Profile:**
{profile}

**Latest Financial Summary:**
{financial}

**Output instructions:**
- Output valid JSON only.
- Use numbers for every numeric value.
- Exactly 5 consecutive years, starting next year ({first_year}).
- Currency: Indonesian Rupiah (IDR).
- generated_at is an ISO-8601 UTC timestamp.
"""

ADVICE_INSTRUCTIONS = """
RESPONSE INSTRUCTIONS:
1. Give advice specific to the real data above.
2. If a business fits, name it and explain the specific reasons.
3. Compare against the market averages for context.
4. Explain risks and potential returns based on the actual financial data.
5. Give actionable recommendations that are easy to understand.
6. Answer in the language of the investor's question, in a professional but accessible tone.
7. If the data is not sufficient, explain what would need to be completed.

Answer in 2-3 informative paragraphs.
"""


class GenAIService:
    """AI-backed features. The gateway is injected, never looked up globally."""

    def __init__(self, db: AsyncSession, gateway: AIGateway):
        self.db = db
        self.gateway = gateway

    # --- chat and document inference -------------------------------------

    async def chat(self, text: str) -> List[ChatSection]:
        raw = await self.gateway.generate_json(text, CHAT_SCHEMA, feature="chat")
        if not isinstance(raw, list):
            raise AIServiceError("expected a list of chat sections")
        try:
            return [ChatSection.model_validate(section) for section in raw]
        except ValidationError as e:
            raise AIServiceError(f"malformed chat response: {e.error_count()} errors")

    async def infer_products(self, content: bytes, mime_type: str = "application/pdf") -> List[str]:
        text = await self.gateway.generate_text(
            INFER_PRODUCTS_PROMPT,
            response_mime_type="application/json",
            response_schema=STRING,
            attachment=Attachment(mime_type=mime_type, data=content),
            feature="infer_products",
        )
        products = split_product_names(text)
        logger.info(f"Inferred {len(products)} products from uploaded document")
        return products

    # --- legal analysis ----------------------------------------------------

    async def _load_business_profile(self, business_id: int) -> Business:
        result = await self.db.execute(
            select(Business)
            .where(Business.id == business_id, Business.deleted_at.is_(None))
            .options(
                selectinload(Business.legals.and_(Legal.deleted_at.is_(None))),
                selectinload(Business.products.and_(Product.deleted_at.is_(None)))
                .selectinload(Product.product_legals.and_(ProductLegal.deleted_at.is_(None))),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def analyze_legal(self, business_id: int, is_refresh: bool = False) -> LegalComparison:
        """Stored comparison unless refreshing; otherwise ask the AI and store the result."""
        reconciler = LegalReconciler(self.db)
        if not is_refresh:
            stored = await reconciler.load(business_id)
            if stored is not None:
                logger.debug(f"Serving stored legal comparison for business {business_id}")
                return stored

        business = await self._load_business_profile(business_id)
        prompt = LEGAL_ANALYSIS_PROMPT.format(profile=build_business_profile(business))
        raw = await self.gateway.generate_json(prompt, LEGAL_COMPARISON_SCHEMA, feature="legal_analysis")
        try:
            required = LegalComparison.model_validate(raw)
        except ValidationError as e:
            raise AIServiceError(f"malformed legal analysis: {e.error_count()} errors")

        comparison = await reconciler.reconcile(business_id, required)
        await reconciler.persist(business_id, comparison)
        return comparison

    # --- suggestions -------------------------------------------------------

    async def get_suggestions(self, business_id: int, is_refresh: bool = False) -> SuggestionsResponse:
        if not is_refresh:
            cached = await self._latest(BusinessAISuggestion, business_id)
            if cached is not None:
                return SuggestionsResponse(
                    business_id=business_id,
                    business_name=cached.business_name,
                    generated_at=cached.generated_at,
                    suggestions=[
                        SuggestionItem(suggestion=i.suggestion, category=i.category, priority=i.priority)
                        for i in cached.items
                    ],
                )

        business = await self._load_business_profile(business_id)
        financial = await FinancialService(self.db).get_current(business_id)
        prompt = SUGGESTIONS_PROMPT.format(summary=self._data_summary(business, financial))
        raw = await self.gateway.generate_json(prompt, SUGGESTIONS_SCHEMA, feature="suggestions")
        try:
            generated = SuggestionsResponse.model_validate(raw)
        except ValidationError as e:
            raise AIServiceError(f"malformed suggestions: {e.error_count()} errors")

        generated.business_id = business_id
        generated.business_name = generated.business_name or business.name
        generated.generated_at = generated.generated_at or _now_iso()

        self.db.add(BusinessAISuggestion(
            business_id=business_id,
            business_name=generated.business_name,
            generated_at=generated.generated_at,
            items=[
                BusinessAISuggestionItem(suggestion=s.suggestion, category=s.category, priority=s.priority)
                for s in generated.suggestions
            ],
        ))
        await self.db.commit()
        logger.info(f"Cached {len(generated.suggestions)} suggestions for business {business_id}")
        return generated

    @staticmethod
    def _data_summary(business: Business, financial: Optional[Financial]) -> str:
        lines = [
            f"company name: {business.name}",
            f"company category: {business.type or 'not provided'}",
        ]
        if business.products:
            lines.append("products:")
            lines.extend(f"  - {product.name}" for product in business.products)
        else:
            lines.append("products: no product data yet")

        if business.legals:
            lines.append("legal documents already held:")
            for legal in business.legals:
                notes = f" ({legal.notes})" if legal.notes else ""
                lines.append(f"  - {legal.legal_type}{notes}")
        else:
            lines.append("legal documents: none yet")

        if financial is not None:
            lines.append("financial data:")
            lines.append(f"  - Revenue: {financial.revenue:.2f}")
            lines.append(f"  - EBITDA: {financial.ebitda:.2f}")
            lines.append(f"  - Assets: {financial.assets:.2f}")
            lines.append(f"  - Liabilities: {financial.liabilities:.2f}")
            lines.append(f"  - Equity: {financial.equity:.2f}")
            if financial.notes:
                lines.append(f"  - Notes: {financial.notes}")
        else:
            lines.append("financial data: none yet")
        return "\n".join(lines)

    # --- projections -------------------------------------------------------

    async def get_projections(self, business_id: int, is_refresh: bool = False) -> ProjectionsResponse:
        if not is_refresh:
            cached = await self._latest(BusinessProjection, business_id)
            if cached is not None:
                items = [
                    ProjectionItem(
                        year=i.year,
                        revenue=i.revenue or 0.0,
                        expenses=i.expenses or 0.0,
                        net_income=i.net_income or 0.0,
                        cash_flow=i.cash_flow or 0.0,
                    )
                    for i in cached.items
                ]
                return self._projection_response(business_id, cached.business_name, items, cached.generated_at)

        business = await self._load_business_profile(business_id)
        financial = await FinancialService(self.db).get_current(business_id)
        prompt = PROJECTIONS_PROMPT.format(
            profile=build_business_profile(business),
            financial=_describe_financial(financial),
            first_year=datetime.now(timezone.utc).year + 1,
        )
        raw = await self.gateway.generate_json(prompt, PROJECTIONS_SCHEMA, feature="projections")
        try:
            generated = GeneratedProjections.model_validate(raw)
        except ValidationError as e:
            raise AIServiceError(f"malformed projections: {e.error_count()} errors")

        items = sorted(generated.projections, key=lambda item: item.year)
        business_name = generated.business_name or business.name
        generated_at = generated.generated_at or _now_iso()

        self.db.add(BusinessProjection(
            business_id=business_id,
            business_name=business_name,
            generated_at=generated_at,
            items=[
                BusinessProjectionItem(
                    year=item.year,
                    revenue=item.revenue,
                    expenses=item.expenses,
                    net_income=item.net_income,
                    cash_flow=item.cash_flow,
                )
                for item in items
            ],
        ))
        await self.db.commit()
        logger.info(f"Cached {len(items)}-year projection for business {business_id}")
        return self._projection_response(business_id, business_name, items, generated_at)

    @staticmethod
    def _projection_response(business_id, business_name, items, generated_at) -> ProjectionsResponse:
        return ProjectionsResponse(
            business_id=business_id,
            business_name=business_name,
            projections=items,
            generated_at=generated_at,
            **summarize_projections(items),
        )

    async def _latest(self, model, business_id: int):
        """Most recent cache entry of ``model`` for a business, items loaded."""
        result = await self.db.execute(
            select(model)
            .where(model.business_id == business_id)
            .options(selectinload(model.items))
            .order_by(model.created_at.desc(), model.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    # --- investment advice -------------------------------------------------

    async def investment_advice(
        self,
        query: str,
        preferences: Optional[InvestmentPreferences] = None,
    ) -> InvestmentAdviceResponse:
        businesses = await self._relevant_businesses(query, preferences)
        financials = await FinancialService(self.db).get_current_many(b.id for b in businesses)
        stats = await self._market_statistics()

        prompt = self._advice_context(businesses, financials, stats, query)
        answer = await self.gateway.generate_text(prompt, feature="investment_advice")
        return InvestmentAdviceResponse(response=answer, generated_at=_now_iso())

    async def _relevant_businesses(
        self,
        query: str,
        preferences: Optional[InvestmentPreferences],
    ) -> List[Business]:
        statement = (
            select(Business)
            .where(Business.deleted_at.is_(None))
            .options(
                selectinload(Business.products.and_(Product.deleted_at.is_(None))),
                selectinload(Business.legals.and_(Legal.deleted_at.is_(None))),
            )
        )

        keywords = extract_keywords(query)
        if keywords:
            conditions = []
            for keyword in keywords:
                conditions.extend([
                    Business.name.icontains(keyword, autoescape=True),
                    Business.description.icontains(keyword, autoescape=True),
                    Business.industry.icontains(keyword, autoescape=True),
                    Business.type.icontains(keyword, autoescape=True),
                ])
            statement = statement.where(or_(*conditions))

        if preferences is not None and preferences.industry:
            statement = statement.where(Business.industry == preferences.industry)

        has_financial = exists().where(
            Financial.business_id == Business.id,
            Financial.deleted_at.is_(None),
        )
        statement = statement.order_by(
            case((has_financial, 0), else_=1),
            Business.created_at.desc(),
            Business.id.desc(),
        ).limit(MAX_ADVICE_BUSINESSES)

        result = await self.db.execute(statement)
        return list(result.scalars().all())

    async def _market_statistics(self) -> dict:
        live = Business.deleted_at.is_(None)

        total = (await self.db.execute(select(func.count(Business.id)).where(live))).scalar() or 0
        with_financial = (await self.db.execute(
            select(func.count(func.distinct(Financial.business_id)))
            .select_from(Financial)
            .join(Business, Business.id == Financial.business_id)
            .where(live, Financial.deleted_at.is_(None))
        )).scalar() or 0
        industries = (await self.db.execute(
            select(Business.industry, func.count(Business.id))
            .where(live, Business.industry.is_not(None), Business.industry != "")
            .group_by(Business.industry)
            .order_by(func.count(Business.id).desc())
        )).all()

        return {
            "total_businesses": total,
            "businesses_with_financial": with_financial,
            "industry_distribution": [(industry, count) for industry, count in industries],
            "financial_averages": await FinancialService(self.db).current_averages(),
        }

    @staticmethod
    def _advice_context(
        businesses: Sequence[Business],
        financials: Dict[int, Financial],
        stats: dict,
        query: str,
    ) -> str:
        lines = [
            "You are an experienced investment advisor helping investors find the best small-business",
            "investment opportunities in Indonesia. Use the live market data below to give accurate,",
            "specific advice. All amounts are in Indonesian Rupiah (Rp).",
            "",
            "CURRENT MARKET OVERVIEW:",
            f"- Businesses on the platform: {stats['total_businesses']}",
            f"- Businesses with financial data: {stats['businesses_with_financial']}",
        ]
        if stats["industry_distribution"]:
            lines.append("- Industry distribution:")
            lines.extend(f"  * {industry}: {count} businesses" for industry, count in stats["industry_distribution"])

        averages = stats["financial_averages"]
        lines.extend([
            "",
            "MARKET FINANCIAL AVERAGES:",
            f"- Average EBITDA: Rp {averages['ebitda']:.0f}",
            f"- Average Revenue: Rp {averages['revenue']:.0f}",
            f"- Average Assets: Rp {averages['assets']:.0f}",
            f"- Average Equity: Rp {averages['equity']:.0f}",
            "",
            "RELEVANT INVESTMENT OPPORTUNITIES:",
        ])

        if not businesses:
            lines.append("- No businesses currently match the search criteria.")
        for index, business in enumerate(businesses[:MAX_PROMPT_BUSINESSES], start=1):
            lines.append("")
            lines.append(f"{index}. {business.name} ({business.industry or '-'})")
            lines.append(f"   - Type: {business.type or '-'}")
            lines.append(f"   - Description: {business.description or '-'}")
            financial = financials.get(business.id)
            if financial is None:
                lines.append("   - Financial data: not available yet")
            else:
                lines.append(f"   - Revenue: Rp {financial.revenue:.0f}")
                lines.append(f"   - EBITDA: Rp {financial.ebitda:.0f}")
                lines.append(f"   - Assets: Rp {financial.assets:.0f}")
                lines.append(f"   - Equity: Rp {financial.equity:.0f}")
                lines.append(f"   - Computed business value: Rp {market_cap(financial.ebitda, financial.revenue):.0f}")
                if financial.assets and financial.assets > 0:
                    ratio = financial.liabilities / financial.assets * 100
                    lines.append(f"   - Debt-to-asset ratio: {ratio:.1f}%")
            lines.append(f"   - Legal documents: {len(business.legals)}")
            lines.append(f"   - Products: {len(business.products)}")

        lines.append("")
        lines.append(f"INVESTOR QUESTION: {query}")
        lines.append(ADVICE_INSTRUCTIONS)
        return "\n".join(lines)
