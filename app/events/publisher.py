"""
Loan Event Publisher
Serializes loan events and hands them to the event channel
"""

import json
from typing import Optional

from app.core.config import config
from app.core.errors import PublishFailed
from app.core.logger import logger
from app.messaging.i_message_broker import IMessageBroker
from app.messaging.message_broker_factory import MessageBrokerFactory
from app.middleware.correlation_id import get_correlation_id
from app.models.loan import LoanEvent, PublishOutcome


class LoanEventPublisher:
    """
    Publisher for loan events.

    The contract ends when the channel acknowledges the message; delivery to
    consumers is the channel's concern. No retries are made here: a failed
    send is reported to the caller as PublishFailed.
    """

    def __init__(self, broker: IMessageBroker, topic: str, legacy_field_names: bool = False):
        self.broker = broker
        self.topic = topic
        self.legacy_field_names = legacy_field_names
        self.stats = {"published": 0, "failed": 0}

    def serialize(self, event: LoanEvent) -> bytes:
        """JSON message body for an event"""
        return json.dumps(event.to_payload(self.legacy_field_names)).encode("utf-8")

    async def publish(self, event: LoanEvent) -> PublishOutcome:
        """
        Publish an event keyed by loan id, so events for one loan keep their order.

        Raises:
            PublishFailed: the channel did not accept the event
        """
        headers = {"eventType": event.event_type.value}
        correlation_id = get_correlation_id()
        if correlation_id:
            headers[config.correlation_id_header] = correlation_id

        try:
            outcome = await self.broker.send(
                self.topic,
                value=self.serialize(event),
                key=str(event.loan_id).encode("utf-8"),
                headers=headers,
            )
        except Exception as e:
            self.stats["failed"] += 1
            logger.error(
                f"Failed to publish {event.event_type.value} for loan {event.loan_id}",
                error=e,
                metadata={
                    "event": "publish_failed",
                    "topic": self.topic,
                    "loan_id": event.loan_id,
                }
            )
            raise PublishFailed(self.topic, f"{type(e).__name__}: {e}") from e

        self.stats["published"] += 1
        logger.info(
            f"Published {event.event_type.value} for loan {event.loan_id}",
            metadata={
                "event": "event_published",
                "topic": outcome.topic,
                "partition": outcome.partition,
                "offset": outcome.offset,
                "loan_id": event.loan_id,
            }
        )
        return outcome


_publisher: Optional[LoanEventPublisher] = None


def get_event_publisher() -> LoanEventPublisher:
    """Get the process-wide loan event publisher"""
    global _publisher
    if _publisher is None:
        _publisher = LoanEventPublisher(
            MessageBrokerFactory.create(),
            topic=config.kafka_loan_topic,
            legacy_field_names=config.kafka_legacy_payload,
        )
    return _publisher
