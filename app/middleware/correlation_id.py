"""
Correlation ID Middleware for request tracing
Ensures every request has a correlation ID that follows it into
downstream service calls, log entries and published events
"""

import uuid
from contextvars import ContextVar
from typing import Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import config

# Context variable to store correlation ID for the current request or message
correlation_id_ctx: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> Optional[str]:
    """Get the correlation ID from the current context"""
    return correlation_id_ctx.get()


def set_correlation_id(correlation_id: Optional[str]) -> None:
    """Set the correlation ID in the current context"""
    correlation_id_ctx.set(correlation_id)


def create_headers_with_correlation_id(
    additional_headers: Optional[Dict[str, str]] = None,
) -> Dict[str, str]:
    """Headers for outgoing requests, carrying the current correlation ID"""
    headers = {"Accept": "application/json"}

    correlation_id = get_correlation_id()
    if correlation_id:
        headers[config.correlation_id_header] = correlation_id

    if additional_headers:
        headers.update(additional_headers)

    return headers


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware to handle correlation IDs for request tracing

    - Extracts correlation ID from request headers (or generates a new one)
    - Stores it in context for use throughout the request lifecycle
    - Adds it to response headers
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(
            config.correlation_id_header,
            str(uuid.uuid4())
        )

        set_correlation_id(correlation_id)
        request.state.correlation_id = correlation_id

        response = await call_next(request)

        response.headers[config.correlation_id_header] = correlation_id

        return response
