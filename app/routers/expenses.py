import logging
from datetime import date
from typing import List

from botocore.exceptions import ClientError
from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.exceptions import DatasetContractViolation
from app.core.security import get_current_user_id
from app.db import dynamo
from app.models.expense import Category, CategoryBreakdown, ExpensePublic, TotalPublic
from app.utils.analyzer import aggregate, total_amount

router = APIRouter()
logger = logging.getLogger(__name__)


def _load_dataset(user_id: str, start_date: date, end_date: date):
    try:
        return dynamo.load_dataset(user_id, start_date, end_date)
    except DatasetContractViolation as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ClientError as e:
        raise HTTPException(status_code=500, detail=f"Failed to load expenses: {e.response['Error']['Message']}")


@router.get("/", response_model=List[ExpensePublic])
def list_expenses(user_id: str = Depends(get_current_user_id)):
    records = [dynamo.to_record(item) for item in dynamo.get_all_expenses(user_id)]
    return [ExpensePublic.from_record(record) for record in records]


@router.get("/date-range", response_model=List[ExpensePublic])
def list_expenses_by_date_range(
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    user_id: str = Depends(get_current_user_id),
):
    dataset = _load_dataset(user_id, start_date, end_date)
    return [ExpensePublic.from_record(record) for record in dataset.records]


@router.get("/category/{category}", response_model=List[ExpensePublic])
def list_expenses_by_category(category: Category, user_id: str = Depends(get_current_user_id)):
    records = [dynamo.to_record(item) for item in dynamo.get_expenses_by_category(user_id, category)]
    return [ExpensePublic.from_record(record) for record in records]


@router.get("/total", response_model=TotalPublic)
def get_total_expenses(user_id: str = Depends(get_current_user_id)):
    records = [dynamo.to_record(item) for item in dynamo.get_all_expenses(user_id)]
    return TotalPublic(total=total_amount(records))


@router.get("/total/date-range", response_model=TotalPublic)
def get_total_expenses_by_date_range(
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    user_id: str = Depends(get_current_user_id),
):
    dataset = _load_dataset(user_id, start_date, end_date)
    return TotalPublic(total=aggregate(dataset).total)


@router.get("/category-summary", response_model=CategoryBreakdown)
def get_category_summary(
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    user_id: str = Depends(get_current_user_id),
):
    """
    Per-category totals for the window. Categories with no expenses are omitted.
    """
    dataset = _load_dataset(user_id, start_date, end_date)
    return aggregate(dataset).category_totals


# Declared last so the fixed paths above are matched first.
@router.get("/{expense_id}", response_model=ExpensePublic)
def get_expense(expense_id: str, user_id: str = Depends(get_current_user_id)):
    item = dynamo.get_expense(user_id, expense_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")
    return ExpensePublic.from_record(dynamo.to_record(item))
