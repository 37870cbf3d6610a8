import logging
from datetime import date
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from app.core.config import settings
from app.models.expense import Category, ExpenseDataset, ExpenseRecord

logger = logging.getLogger(__name__)

# Initialize DynamoDB resource
dynamodb = boto3.resource("dynamodb", region_name=settings.DYNAMO_REGION)

# Get table references
expenses_table = dynamodb.Table(settings.DYNAMO_EXPENSES_TABLE)


def _query_all(**kwargs) -> List[Dict[str, Any]]:
    """Run a query and follow LastEvaluatedKey until every page is read."""
    items: List[Dict[str, Any]] = []
    while True:
        response = expenses_table.query(**kwargs)
        items.extend(response.get("Items", []))
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return items
        kwargs["ExclusiveStartKey"] = last_key


def _newest_first(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(items, key=lambda item: item.get("expense_date", ""), reverse=True)


def get_all_expenses(user_id: str) -> List[Dict[str, Any]]:
    """All expenses of a user, newest first."""
    try:
        items = _query_all(KeyConditionExpression=Key("user_id").eq(user_id))
        return _newest_first([_from_dynamo(item) for item in items])
    except ClientError as e:
        logger.error(f"get_all_expenses failed: {e.response['Error']['Message']}")
        return []


def _query_date_range(user_id: str, start_date: date, end_date: date) -> List[Dict[str, Any]]:
    items = _query_all(
        KeyConditionExpression=Key("user_id").eq(user_id),
        FilterExpression=Attr("expense_date").between(start_date.isoformat(), end_date.isoformat()),
    )
    return _newest_first([_from_dynamo(item) for item in items])


def get_expenses_by_date_range(user_id: str, start_date: date, end_date: date) -> List[Dict[str, Any]]:
    """
    Expenses of a user whose expense_date lies in [start_date, end_date], newest first.
    expense_date is stored as an ISO 'YYYY-MM-DD' string so lexical order matches date order.
    """
    try:
        return _query_date_range(user_id, start_date, end_date)
    except ClientError as e:
        logger.error(f"get_expenses_by_date_range failed: {e.response['Error']['Message']}")
        return []


def get_expense(user_id: str, expense_id: str) -> Optional[Dict[str, Any]]:
    """Fetch a single expense item."""
    try:
        response = expenses_table.get_item(Key={"user_id": user_id, "expense_id": expense_id})
        item = response.get("Item")
        return _from_dynamo(item) if item else None
    except ClientError as e:
        logger.error(f"get_expense failed: {e.response['Error']['Message']}")
        return None


def get_expenses_by_category(user_id: str, category: Category) -> List[Dict[str, Any]]:
    """Expenses of a user in one category, newest first."""
    try:
        items = _query_all(
            KeyConditionExpression=Key("user_id").eq(user_id),
            FilterExpression=Attr("category").eq(category.value),
        )
        return _newest_first([_from_dynamo(item) for item in items])
    except ClientError as e:
        logger.error(f"get_expenses_by_category failed: {e.response['Error']['Message']}")
        return []


def to_record(item: Dict[str, Any]) -> ExpenseRecord:
    return ExpenseRecord(
        id=str(item["expense_id"]),
        title=item["title"],
        description=item.get("description"),
        amount=item["amount"],
        category=item["category"],
        expense_date=item["expense_date"],
        payment_method=item["payment_method"],
        vendor=item.get("vendor"),
    )


def load_dataset(user_id: str, start_date: date, end_date: date) -> ExpenseDataset:
    """
    Build the dataset the analysis engine works on for one user and window.
    Storage errors propagate: an unreadable table must not look like an empty month.
    """
    try:
        items = _query_date_range(user_id, start_date, end_date)
    except ClientError as e:
        logger.error(f"load_dataset failed: {e.response['Error']['Message']}")
        raise
    return ExpenseDataset(
        records=tuple(to_record(item) for item in items),
        start_date=start_date,
        end_date=end_date,
    )


def _from_dynamo(obj: Any):
    """
    Recursively unwrap DynamoDB containers. Numbers stay Decimal so that
    amounts keep their exact value.
    """
    if isinstance(obj, list):
        return [_from_dynamo(item) for item in obj]
    if isinstance(obj, dict):
        return {k: _from_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, set):
        return sorted(obj)
    return obj
