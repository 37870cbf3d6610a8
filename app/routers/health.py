"""
Health Check Router
Liveness plus reachability of the services the analysis depends on
"""
from datetime import datetime

from fastapi import APIRouter
import logging

from app.core.config import settings
from app.db import dynamo
from app.utils.narrative import RemoteNarrativeGenerator

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check():
    """
    Health check endpoint.
    Returns API status.
    """
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/status")
def services_status():
    """
    Check the services behind the analysis endpoint:
    - DynamoDB (Expenses table)
    - OpenAI narrative (configured or rule-based only)
    """
    status = {
        "timestamp": datetime.utcnow().isoformat(),
        "services": {}
    }

    dynamodb_status = {
        "connected": False,
        "table": settings.DYNAMO_EXPENSES_TABLE,
        "region": settings.DYNAMO_REGION,
        "error": None
    }
    try:
        dynamo.expenses_table.scan(Limit=1)
        dynamodb_status["connected"] = True
        dynamodb_status["status"] = "accessible"
    except Exception as e:
        dynamodb_status["error"] = str(e)
        dynamodb_status["status"] = "error"
        logger.error(f"DynamoDB check failed: {str(e)}")

    status["services"]["dynamodb"] = dynamodb_status

    # Never calls OpenAI: only reports whether a remote attempt would be made.
    remote_configured = RemoteNarrativeGenerator().is_configured
    status["services"]["narrative"] = {
        "remote_configured": remote_configured,
        "model": settings.OPENAI_MODEL,
        "mode": "remote_with_fallback" if remote_configured else "fallback_only",
    }

    status["overall_status"] = "healthy" if dynamodb_status["connected"] else "degraded"

    return status
