from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable

from app.models.expense import Category, ExpenseDataset, ExpenseRecord

NO_CATEGORY = "N/A"
CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Aggregates:
    """Deterministic numeric facts about an expense dataset."""

    total: Decimal
    count: int
    average: Decimal
    category_totals: Dict[str, Decimal] = field(default_factory=dict)
    top_category: str = NO_CATEGORY

    @property
    def top_category_amount(self) -> Decimal:
        return self.category_totals.get(self.top_category, ZERO)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "count": self.count,
            "average": self.average,
            "category_totals": dict(self.category_totals),
            "top_category": self.top_category,
        }


def total_amount(records: Iterable[ExpenseRecord]) -> Decimal:
    return sum((record.amount for record in records), ZERO)


def category_totals(records: Iterable[ExpenseRecord]) -> Dict[str, Decimal]:
    """
    Sums amounts per category. Categories without records are left out and the
    keys follow Category declaration order.
    """
    sums: Dict[Category, Decimal] = {}
    for record in records:
        sums[record.category] = sums.get(record.category, ZERO) + record.amount
    return {category.value: sums[category] for category in Category if category in sums}


def top_category(totals: Dict[str, Decimal]) -> str:
    best_name = NO_CATEGORY
    best_amount = None
    for category in Category:
        amount = totals.get(category.value)
        if amount is None:
            continue
        # Strict comparison keeps the earliest declared category on ties.
        if best_amount is None or amount > best_amount:
            best_name, best_amount = category.value, amount
    return best_name


def average_amount(total: Decimal, count: int) -> Decimal:
    if count == 0:
        return ZERO
    return quantize_money(total / Decimal(count))


def aggregate(dataset: ExpenseDataset) -> Aggregates:
    records = dataset.records
    total = total_amount(records)
    totals = category_totals(records)
    return Aggregates(
        total=total,
        count=len(records),
        average=average_amount(total, len(records)),
        category_totals=totals,
        top_category=top_category(totals),
    )
