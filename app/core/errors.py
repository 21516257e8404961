"""
Error types and FastAPI error handlers for the Loan Service
"""

import traceback
from typing import Any, Optional

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.core.config import config
from app.core.logger import logger


class ErrorResponse(Exception):
    """Custom exception for application errors"""

    def __init__(self, message: str, status_code: int = 400, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class EntityNotFound(ErrorResponse):
    """A referenced user or book does not exist in its owning service"""

    def __init__(self, kind: str, entity_id: Any):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(
            f"{kind.capitalize()} {entity_id} not found",
            status_code=404,
            details={"kind": kind, "id": entity_id},
        )


class UpstreamUnavailable(ErrorResponse):
    """A remote entity service could not be reached or answered badly"""

    def __init__(self, kind: str, reason: str = ""):
        self.kind = kind
        self.reason = reason
        super().__init__(
            f"{kind.capitalize()} service unavailable",
            status_code=503,
            details={"kind": kind, "reason": reason},
        )


class StoreUnavailable(ErrorResponse):
    """The loan record store failed or timed out"""

    def __init__(self, reason: str = ""):
        self.reason = reason
        super().__init__(
            "Loan store unavailable",
            status_code=503,
            details={"reason": reason},
        )


class PublishFailed(ErrorResponse):
    """The event channel did not accept a loan event"""

    def __init__(self, topic: str, reason: str = ""):
        self.topic = topic
        self.reason = reason
        super().__init__(
            f"Failed to publish event to topic '{topic}'",
            status_code=502,
            details={"topic": topic, "reason": reason},
        )


class MalformedEvent(ErrorResponse):
    """A consumed message could not be decoded into a loan event"""

    def __init__(self, reason: str, payload: Optional[Any] = None):
        self.reason = reason
        self.payload = payload
        super().__init__(
            f"Malformed event: {reason}",
            status_code=400,
            details={"reason": reason},
        )


class ErrorResponseModel(BaseModel):
    """Pydantic model for error responses"""
    error: str
    details: Optional[dict] = None


async def error_response_handler(request: Request, exc: ErrorResponse):
    """Handler for custom ErrorResponse exceptions"""
    metadata = {
        "event": "error_response",
        "error_type": type(exc).__name__,
        "status_code": exc.status_code,
        "url": str(request.url),
        "method": request.method,
        **exc.details,
    }

    if config.environment == "development":
        metadata["traceback"] = traceback.format_exc()

    logger.error(
        f"Error: {exc.message}",
        metadata=metadata
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "details": exc.details}
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handler for FastAPI HTTPException"""
    logger.error(
        f"HTTPException: {exc.detail}",
        metadata={
            "event": "http_exception",
            "status_code": exc.status_code,
            "url": str(request.url),
            "method": request.method,
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail}
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handler for request body/path validation errors"""
    errors = jsonable_encoder(exc.errors())
    logger.error(
        "Validation error",
        metadata={"event": "validation_error", "errors": errors}
    )
    return JSONResponse(
        status_code=422,
        content={"error": "Validation error", "details": {"errors": errors}}
    )
