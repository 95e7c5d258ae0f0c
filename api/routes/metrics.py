"""
Prometheus scrape endpoint
"""

from fastapi import APIRouter
from fastapi.responses import Response

from core.metrics import CONTENT_TYPE_LATEST, expose_metrics

router = APIRouter(tags=["Metrics"])


@router.get("/metrics")
async def metrics():
    """Current value of every ingestion counter and summary."""
    return Response(content=expose_metrics(), media_type=CONTENT_TYPE_LATEST)
