"""
FastAPI Application - Loan Service
Creates loans for existing users and books and announces them on the event channel
"""

# Load environment variables from .env file FIRST before any other imports
from dotenv import load_dotenv
load_dotenv()

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from app.api import health, loans, operational
from app.core.config import config
from app.core.errors import (
    ErrorResponse,
    error_response_handler,
    http_exception_handler,
    validation_exception_handler,
)
from app.core.logger import logger
from app.db.mongodb import close_mongo_connection, connect_to_mongo
from app.events.publisher import get_event_publisher
from app.middleware import CorrelationIdMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Starting Loan Service...")
    await connect_to_mongo()

    publisher = get_event_publisher()
    try:
        await publisher.broker.connect()
    except Exception as e:
        # Loans can still be created; their notifications stay pending
        logger.warning(
            "Event channel unavailable at startup",
            metadata={"event": "broker_connect_failed", "error": str(e)}
        )

    logger.info(
        "Loan Service started successfully",
        metadata={
            "service_name": config.service_name,
            "version": config.service_version,
            "environment": config.environment,
            "port": config.port,
            "topic": config.kafka_loan_topic,
        }
    )

    yield

    logger.info("Shutting down Loan Service...")
    await publisher.broker.disconnect()
    await close_mongo_connection()


app = FastAPI(
    title="Loan Service",
    description="Records book loans and publishes loan-created events",
    version=config.service_version,
    lifespan=lifespan
)

# Configure error handlers
app.add_exception_handler(ErrorResponse, error_response_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.add_middleware(CorrelationIdMiddleware)

# Include API routers
app.include_router(health.router, tags=["health"])
app.include_router(operational.router, tags=["operational"])
app.include_router(loans.router, prefix="/api/loans", tags=["loans"])


if __name__ == "__main__":
    import uvicorn

    logger.info(
        f"Starting {config.service_name} on port {config.port}",
        metadata={
            "service_name": config.service_name,
            "version": config.service_version,
            "environment": config.environment,
            "port": config.port
        }
    )

    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.environment == "development"
    )
