"""
Health API endpoints
"""

import asyncio
import time
from datetime import datetime
from typing import Any, Dict, List

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.core.config import config
from app.core.logger import logger
from app.db.mongodb import db
from app.events.publisher import get_event_publisher

router = APIRouter()

# Track service start time
start_time = time.time()


@router.get("/health")
def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": config.service_name,
        "timestamp": datetime.now().isoformat(),
        "version": config.service_version,
    }


@router.get("/health/ready")
async def readiness_check():
    """
    Readiness probe. The service is ready when the loan store answers;
    a disconnected event channel only degrades it, since loans can still
    be created with pending notifications.
    """
    health_checks = await perform_health_checks()
    failed_checks = [check for check in health_checks if check["status"] == "unhealthy"]

    if not failed_checks:
        degraded = any(check["status"] == "degraded" for check in health_checks)
        return {
            "status": "degraded" if degraded else "ready",
            "service": config.service_name,
            "timestamp": datetime.now().isoformat(),
            "checks": health_checks,
        }

    logger.warning(
        f"Readiness check failed - {len(failed_checks)} checks failed",
        metadata={
            "failed_checks": [check["name"] for check in failed_checks],
            "event": "readiness_check_failed"
        }
    )
    return JSONResponse(
        status_code=503,
        content={
            "status": "not ready",
            "service": config.service_name,
            "timestamp": datetime.now().isoformat(),
            "checks": health_checks,
            "errors": [f"{check['name']}: {check.get('error', 'Unknown error')}" for check in failed_checks],
        },
    )


@router.get("/health/live")
def liveness_check():
    """Liveness probe - check if the app is running"""
    return {
        "status": "alive",
        "service": config.service_name,
        "timestamp": datetime.now().isoformat(),
        "uptime": time.time() - start_time,
    }


async def perform_health_checks() -> List[Dict[str, Any]]:
    """Run dependency checks concurrently"""
    return list(await asyncio.gather(check_database_health(), check_message_broker_health()))


async def check_database_health() -> Dict[str, Any]:
    """Check MongoDB database connectivity"""
    check_start = time.time()

    try:
        if db.client is None:
            raise RuntimeError("not connected")

        await asyncio.wait_for(db.client.admin.command("ping"), timeout=config.store_timeout_seconds)

        return {
            "name": "database",
            "status": "healthy",
            "response_time_ms": round((time.time() - check_start) * 1000, 2),
            "database": config.mongodb_database,
        }

    except Exception as e:
        logger.error(
            f"Database health check failed: {e}",
            metadata={"error": str(e), "event": "health_check_database_failed"}
        )
        return {
            "name": "database",
            "status": "unhealthy",
            "error": str(e) or type(e).__name__,
            "response_time_ms": round((time.time() - check_start) * 1000, 2),
        }


async def check_message_broker_health() -> Dict[str, Any]:
    """Check whether the event producer is connected"""
    broker = get_event_publisher().broker
    healthy = broker.is_healthy()
    result = {
        "name": "message_broker",
        "status": "healthy" if healthy else "degraded",
        "topic": config.kafka_loan_topic,
    }
    if not healthy:
        result["error"] = "producer not connected"
    return result
