"""
Health check endpoints for monitoring system status
"""

from datetime import datetime

import pytz
from fastapi import APIRouter
import structlog

from time_server.models.schemas import HealthCheck
from time_server.ranges.expression_parser import get_expression_parser

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.get("", response_model=HealthCheck, response_model_exclude_none=True)
@router.get("/", response_model=HealthCheck, response_model_exclude_none=True)
async def health_check() -> HealthCheck:
    """Public health probe - status only"""
    return HealthCheck(status="healthy")


@router.get("/liveness")
async def liveness_probe():
    """Kubernetes liveness probe endpoint"""
    return {"status": "alive", "timestamp": datetime.now(pytz.utc).isoformat()}


@router.get("/readiness")
async def readiness_probe():
    """Kubernetes readiness probe endpoint - ready once the expression parser is built"""
    get_expression_parser()
    return {"status": "ready", "timestamp": datetime.now(pytz.utc).isoformat()}
