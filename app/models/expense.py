from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from app.core.exceptions import DatasetContractViolation


class Category(str, Enum):
    # Declaration order breaks ties between equal category totals.
    FOOD = "FOOD"
    TRANSPORTATION = "TRANSPORTATION"
    UTILITIES = "UTILITIES"
    ENTERTAINMENT = "ENTERTAINMENT"
    HEALTHCARE = "HEALTHCARE"
    SHOPPING = "SHOPPING"
    EDUCATION = "EDUCATION"
    TRAVEL = "TRAVEL"
    HOUSING = "HOUSING"
    INSURANCE = "INSURANCE"
    SAVINGS = "SAVINGS"
    OTHER = "OTHER"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    DIGITAL_WALLET = "DIGITAL_WALLET"
    OTHER = "OTHER"


# Exact in Python, a JSON number on the wire.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ExpenseRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: Optional[str] = None
    amount: Decimal = Field(gt=0, decimal_places=2)
    category: Category
    expense_date: date
    payment_method: PaymentMethod
    vendor: Optional[str] = None


class ApiModel(BaseModel):
    # snake_case in Python, camelCase on the wire
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExpensePublic(ApiModel):
    id: str
    title: str
    description: Optional[str] = None
    amount: Money
    category: Category
    expense_date: date
    payment_method: PaymentMethod
    vendor: Optional[str] = None

    @classmethod
    def from_record(cls, record: ExpenseRecord) -> "ExpensePublic":
        return cls(
            id=record.id,
            title=record.title,
            description=record.description,
            amount=record.amount,
            category=record.category,
            expense_date=record.expense_date,
            payment_method=record.payment_method,
            vendor=record.vendor,
        )


@dataclass(frozen=True)
class ExpenseDataset:
    """
    Expenses of a single user inside an inclusive [start_date, end_date] window,
    newest first. The window is checked here; ordering and user scoping are the
    caller's responsibility.
    """

    records: Tuple[ExpenseRecord, ...]
    start_date: date
    end_date: date

    def __post_init__(self) -> None:
        if self.start_date is None or self.end_date is None:
            raise DatasetContractViolation("Dataset window requires both start_date and end_date")
        if self.end_date < self.start_date:
            raise DatasetContractViolation(
                f"Dataset window is inverted: end_date {self.end_date} is before start_date {self.start_date}"
            )
        # Accept any iterable but always store a tuple.
        object.__setattr__(self, "records", tuple(self.records))

    def __len__(self) -> int:
        return len(self.records)


class TotalPublic(ApiModel):
    total: Money


CategoryBreakdown = Dict[str, Money]
