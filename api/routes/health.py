"""
Health check endpoint with database status
"""

from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint.

    Returns:
    - Connectivity of each configured store
    - "healthy" if every store answers, otherwise "degraded"
    """
    engines: Dict[str, AsyncEngine] = getattr(request.app.state, "engines", {})

    databases = {}
    for store_name, engine in engines.items():
        connected = False
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            connected = True
        except Exception as e:
            logger.error(f"{store_name} database connection failed: {str(e)}")
        databases[store_name] = {"connected": connected}

    healthy = all(db["connected"] for db in databases.values())

    return {
        "status": "healthy" if healthy else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "databases": databases,
    }
