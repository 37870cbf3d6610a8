import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.exceptions import DatasetContractViolation
from app.core.security import get_current_user_id
from app.db import dynamo
from app.models.analysis import AnalysisPublic
from app.utils.report import ReportBuilder

router = APIRouter()
logger = logging.getLogger(__name__)
report_builder = ReportBuilder()


@router.get("", response_model=AnalysisPublic)
def get_expense_analysis(
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    user_id: str = Depends(get_current_user_id),
):
    """
    Aggregates and narrative insights for the user's expenses between startDate and endDate (inclusive).
    """
    try:
        logger.info(f"Generating analysis for user_id: {user_id}, window: {start_date}..{end_date}")

        dataset = dynamo.load_dataset(user_id, start_date, end_date)
        logger.info(f"Found {len(dataset)} expenses for user {user_id}")

        report = report_builder.build_report(dataset)
        return report.to_public()
    except DatasetContractViolation as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error generating analysis: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")
