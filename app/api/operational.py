"""
Operational and monitoring API endpoints
Provides metrics and version info
"""

import os
import sys
import time
from datetime import datetime

import psutil
from fastapi import APIRouter

from app.core.config import config
from app.core.logger import logger
from app.events.publisher import get_event_publisher

router = APIRouter()

# Track service start time
start_time = time.time()


@router.get("/metrics")
async def get_metrics():
    """
    Get service metrics for monitoring.
    `events` counts loan events accepted by and rejected from the channel;
    a rejected event is a loan whose notification is pending.
    """
    publisher = get_event_publisher()
    process = psutil.Process()
    memory_info = process.memory_info()

    logger.debug("Metrics endpoint called", metadata={"event": "metrics_requested"})

    return {
        "service": config.service_name,
        "timestamp": datetime.now().isoformat(),
        "uptime_seconds": round(time.time() - start_time, 2),
        "events": {
            "topic": publisher.topic,
            **publisher.stats,
        },
        "broker": await publisher.broker.get_stats(),
        "process": {
            "pid": os.getpid(),
            "memory_rss_mb": round(memory_info.rss / 1024 / 1024, 2),
            "cpu_percent": process.cpu_percent(),
        },
        "runtime": {
            "python_version": sys.version.split()[0],
            "platform": sys.platform,
        },
    }


@router.get("/version")
def get_version():
    """Get service version information"""
    return {
        "service": config.service_name,
        "version": config.service_version,
        "environment": config.environment,
        "timestamp": datetime.now().isoformat(),
    }
