"""
Insight composition: turns aggregates into material for the narrative generators.

The prompt payload is kept structured so that the remote and the rule-based
generator can each format it their own way. The rule-based text lives here so
it can be produced without any network dependency.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from app.core.config import settings
from app.models.expense import ExpenseDataset
from app.utils.analyzer import NO_CATEGORY, ZERO, Aggregates, quantize_money

SUMMARY_HEADING = "📊 Expense Summary"
CLOSING_TIP = "💡 Tip: Track your expenses regularly to identify patterns and save more!"


@dataclass(frozen=True)
class PromptPayload:
    start_date: date
    end_date: date
    total: Decimal
    count: int
    average: Decimal
    category_totals: Dict[str, Decimal] = field(default_factory=dict)
    top_category: str = NO_CATEGORY
    currency: str = "₹"

    @property
    def top_category_amount(self) -> Decimal:
        return self.category_totals.get(self.top_category, ZERO)


def format_amount(value: Decimal, currency: str) -> str:
    return f"{currency}{quantize_money(value):.2f}"


def concentration_percentage(amount: Decimal, total: Decimal) -> Decimal:
    if total == 0:
        return ZERO
    return quantize_money(amount * 100 / total)


def compose_prompt(dataset: ExpenseDataset, aggregates: Aggregates, currency: Optional[str] = None) -> PromptPayload:
    return PromptPayload(
        start_date=dataset.start_date,
        end_date=dataset.end_date,
        total=aggregates.total,
        count=aggregates.count,
        average=aggregates.average,
        category_totals=dict(aggregates.category_totals),
        top_category=aggregates.top_category,
        currency=currency or settings.CURRENCY_SYMBOL,
    )


def render_fallback_narrative(payload: PromptPayload, threshold_percent: Optional[Decimal] = None) -> str:
    if threshold_percent is None:
        threshold_percent = Decimal(settings.CONCENTRATION_THRESHOLD_PERCENT)
    money = payload.currency

    paragraphs: List[str] = [
        SUMMARY_HEADING,
        f"During this period, you spent a total of {format_amount(payload.total, money)} "
        f"across {payload.count} transactions.",
    ]

    if payload.category_totals:
        top = payload.top_category
        top_amount = payload.top_category_amount
        paragraphs.append(
            f"💰 Your highest spending category is {top} with {format_amount(top_amount, money)}."
        )
        percentage = concentration_percentage(top_amount, payload.total)
        if percentage > threshold_percent:
            paragraphs.append(
                f"⚠️ Alert: {top} represents {percentage:.2f}% of your total spending. "
                "Consider reviewing this category."
            )

    if payload.count > 0:
        paragraphs.append(f"📈 Average transaction: {format_amount(payload.average, money)}")

    paragraphs.append(CLOSING_TIP)
    return "\n\n".join(paragraphs)


def compose_fallback_narrative(dataset: ExpenseDataset, aggregates: Aggregates) -> str:
    return render_fallback_narrative(compose_prompt(dataset, aggregates))
