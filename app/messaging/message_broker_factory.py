"""
Message Broker Factory
Creates the message broker instance described by configuration
"""

from typing import Optional

from app.core.config import config
from app.core.logger import logger
from .i_message_broker import IMessageBroker
from .kafka_broker import KafkaBroker


class MessageBrokerFactory:
    """Factory for creating message broker instances"""

    @staticmethod
    def create(group_id: Optional[str] = None) -> IMessageBroker:
        """
        Create a Kafka broker from the configured bootstrap servers

        Args:
            group_id: Consumer group for the consuming side; None for publishers

        Returns:
            IMessageBroker implementation
        """
        logger.info(
            "Creating message broker: kafka",
            metadata={"brokers": config.kafka_brokers, "group_id": group_id}
        )
        return KafkaBroker(
            config.kafka_brokers,
            group_id=group_id,
            send_timeout=config.kafka_send_timeout_seconds,
        )
