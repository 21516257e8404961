"""
Message Broker Interface
Defines the contract for the event channel used between the loan service
and its consumers. Business logic depends on this abstraction only.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional

from app.models.loan import PublishOutcome

# (value, key, headers) -> awaitable
MessageHandler = Callable[[bytes, Optional[bytes], Dict[str, str]], Awaitable[Any]]


class IMessageBroker(ABC):
    """Abstract base class for message broker implementations"""

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish the publishing connection to the message broker
        """
        pass

    @abstractmethod
    async def send(
        self,
        topic: str,
        value: bytes,
        key: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> PublishOutcome:
        """
        Submit a message and wait until the broker acknowledges it

        Args:
            topic: Destination topic
            value: Serialized message body
            key: Partitioning key; messages sharing a key keep their order
            headers: Message headers

        Returns:
            Where the broker stored the message
        """
        pass

    @abstractmethod
    async def consume(self, topic: str, handler: MessageHandler) -> None:
        """
        Consume messages from a topic until the broker is disconnected

        Args:
            topic: Topic to subscribe to
            handler: Async callback invoked once per delivered message
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """
        Close connections to the message broker
        """
        pass

    @abstractmethod
    def is_healthy(self) -> bool:
        """
        Check if the broker connection is healthy

        Returns:
            True if connected and ready, False otherwise
        """
        pass

    @abstractmethod
    async def get_stats(self) -> Dict[str, Any]:
        """
        Get message counters (for monitoring)

        Returns:
            Dictionary with statistics
        """
        pass
