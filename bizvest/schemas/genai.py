"""Schemas for the AI endpoints and for parsing the model's JSON answers."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class ChatSection(BaseModel):
    header: str = ""
    response: str = ""


class ChatResponse(BaseModel):
    response: list[ChatSection]


class InferProductsResponse(BaseModel):
    products: list[str]


class SuggestionItem(BaseModel):
    suggestion: str
    category: Optional[str] = None
    priority: Optional[str] = None


class SuggestionsResponse(BaseModel):
    business_id: Optional[int] = None
    business_name: Optional[str] = None
    suggestions: list[SuggestionItem] = Field(default_factory=list)
    generated_at: Optional[str] = None


class ProjectionItem(BaseModel):
    """One projected year. Accepts the model's camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    year: int
    revenue: float = 0.0
    expenses: float = 0.0
    net_income: float = Field(0.0, alias="netIncome")
    cash_flow: float = Field(0.0, alias="cashFlow")


class GeneratedProjections(BaseModel):
    """The model's projection answer. Summary fields it reports are ignored."""
    business_name: Optional[str] = None
    projections: list[ProjectionItem] = Field(default_factory=list)
    generated_at: Optional[str] = None


class ProjectionsResponse(BaseModel):
    business_id: Optional[int] = None
    business_name: Optional[str] = None
    projections: list[ProjectionItem] = Field(default_factory=list)
    total_projected_revenue: float = 0.0
    average_growth_rate: str = "N/A"
    break_even_year: str = "N/A"
    generated_at: Optional[str] = None


class SuggestionsEnvelope(BaseModel):
    success: bool = True
    data: SuggestionsResponse
    message: str = "Business suggestions generated successfully"


class ProjectionsEnvelope(BaseModel):
    success: bool = True
    data: ProjectionsResponse
    message: str = "Projections generated successfully"


class InvestmentPreferences(BaseModel):
    """Investor preferences. Only ``industry`` narrows the search."""

    model_config = ConfigDict(extra="allow")

    industry: Optional[str] = None


class InvestmentAdviceRequest(BaseModel):
    query: str = Field(..., min_length=1)
    preferences: Optional[InvestmentPreferences] = None


class InvestmentAdviceResponse(BaseModel):
    response: str
    generated_at: str
