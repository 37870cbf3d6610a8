from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.models.expense import Category, ExpenseDataset, ExpenseRecord, PaymentMethod


@pytest.fixture
def make_record():
    counter = {"next": 0}

    def _make(category, amount, expense_date=date(2025, 1, 15), payment_method=PaymentMethod.CASH):
        counter["next"] += 1
        return ExpenseRecord(
            id=str(counter["next"]),
            title=f"{Category(category).value.title()} expense",
            amount=Decimal(amount),
            category=category,
            expense_date=expense_date,
            payment_method=payment_method,
        )

    return _make


@pytest.fixture
def make_dataset():
    def _make(records, start_date=date(2025, 1, 1), end_date=date(2025, 1, 31)):
        return ExpenseDataset(records=tuple(records), start_date=start_date, end_date=end_date)

    return _make


class FakeCompletions:
    def __init__(self, content=None, error=None, choices=None):
        self.content = content
        self.error = error
        self.choices = choices
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if self.choices is not None:
            return SimpleNamespace(choices=self.choices)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAI:
    """Stands in for openai.OpenAI and records how it was built and called."""

    def __init__(self, **completion_kwargs):
        self.completions = FakeCompletions(**completion_kwargs)
        self.chat = SimpleNamespace(completions=self.completions)
        self.factory_calls = []

    def factory(self, api_key, timeout):
        self.factory_calls.append((api_key, timeout))
        return self

    @property
    def call_count(self):
        return len(self.completions.calls)


@pytest.fixture
def fake_openai():
    return FakeOpenAI
