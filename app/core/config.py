"""
Core configuration and settings for the Loan Service
Values come from environment variables (or a .env file)
"""

from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Application configuration with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Allow extra fields to be ignored
    )

    # Service information
    service_name: str = Field(default="loan-service")
    service_version: str = Field(default="1.0.0")
    environment: str = Field(default="development")

    # Server configuration
    port: int = Field(default=8085)
    host: str = Field(default="0.0.0.0")  # nosec B104

    # Database configuration
    mongodb_host: str = Field(default="localhost")
    mongodb_port: int = Field(default=27017)
    mongodb_username: Optional[str] = Field(default=None)
    mongodb_password: Optional[str] = Field(default=None)
    mongodb_database: str = Field(default="loandb")
    store_timeout_seconds: float = Field(default=5.0, gt=0)

    @property
    def mongodb_url(self) -> str:
        """Construct MongoDB connection URL"""
        if self.mongodb_username and self.mongodb_password:
            return (
                f"mongodb://{self.mongodb_username}:{self.mongodb_password}"
                f"@{self.mongodb_host}:{self.mongodb_port}/{self.mongodb_database}?authSource=admin"
            )
        return f"mongodb://{self.mongodb_host}:{self.mongodb_port}/{self.mongodb_database}"

    # Remote entity services (user directory, book catalog)
    user_service_url: str = Field(default="http://localhost:8081")
    book_service_url: str = Field(default="http://localhost:8082")
    upstream_timeout_seconds: float = Field(default=5.0, gt=0)
    upstream_max_retries: int = Field(default=0, ge=0)
    upstream_retry_backoff: float = Field(default=0.2, ge=0)

    # Kafka configuration
    kafka_bootstrap_servers: str = Field(default="localhost:9092")
    kafka_loan_topic: str = Field(default="loan-created")
    kafka_consumer_group: str = Field(default="notification-group")
    kafka_send_timeout_seconds: float = Field(default=10.0, gt=0)
    kafka_legacy_payload: bool = Field(default=False)

    @property
    def kafka_brokers(self) -> List[str]:
        """Bootstrap servers as a list"""
        return [b.strip() for b in self.kafka_bootstrap_servers.split(",") if b.strip()]

    # Logging configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")
    log_to_file: bool = Field(default=False)
    log_to_console: bool = Field(default=True)
    log_file_path: str = Field(default="logs/loan-service.log")

    # Request tracing
    correlation_id_header: str = Field(default="X-Correlation-ID")


# Global config instance
config = Config()
