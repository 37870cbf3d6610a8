from datetime import date

from pydantic import Field

from app.models.expense import ApiModel, CategoryBreakdown, Money


class AnalysisPublic(ApiModel):
    """Flat analysis report as served to the client."""

    total_expenses: Money
    expense_count: int
    category_breakdown: CategoryBreakdown = Field(default_factory=dict)
    average_expense: Money
    top_category: str
    start_date: date
    end_date: date
    ai_insights: str
    narrative_source: str
