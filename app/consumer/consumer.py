"""
Notification Consumer - Message Consumer
Subscribes to the loan topic and drives notifications for each loan event

Run with: python -m app.consumer.consumer
"""

import asyncio
import json
import signal
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv
from pydantic import ValidationError

from app.consumer.handlers.handler_registry import EventHandler, build_handlers, get_handler
from app.core.config import config
from app.core.errors import MalformedEvent
from app.core.logger import logger
from app.db.mongodb import close_mongo_connection, connect_to_mongo, get_processed_events_collection
from app.messaging.i_message_broker import IMessageBroker
from app.messaging.message_broker_factory import MessageBrokerFactory
from app.middleware.correlation_id import set_correlation_id
from app.models.loan import LoanEvent
from app.repositories.processed_events import ProcessedEventRepository
from app.services.notification import LoggingNotifier

MAX_LOGGED_PAYLOAD = 1000


def decode_event(value: Optional[bytes]) -> Tuple[Optional[str], LoanEvent]:
    """
    Decode a raw message into (event type name, LoanEvent).

    Raises:
        MalformedEvent: empty body, invalid JSON, not an object, or
            fields missing or of the wrong type
    """
    if not value:
        raise MalformedEvent("empty payload", value)

    try:
        message = json.loads(value)
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedEvent(f"invalid JSON: {e}", value)

    if not isinstance(message, dict):
        raise MalformedEvent("payload is not a JSON object", value)

    try:
        event = LoanEvent.model_validate(message)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise MalformedEvent(f"invalid fields: {fields}", value)

    return message.get("eventType"), event


class LoanConsumer:
    """Consumer process for loan events"""

    def __init__(self, broker: IMessageBroker, topic: str, handlers: Dict[str, EventHandler]):
        self.broker = broker
        self.topic = topic
        self.handlers = handlers
        self.stats = {"handled": 0, "duplicates": 0, "malformed": 0, "failed": 0}

    async def process_message(
        self,
        value: Optional[bytes],
        key: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        """
        Decode one message and route it to its handler. Malformed messages
        and handler failures are logged and counted; nothing is raised, so
        one bad message never stops consumption.
        """
        headers = headers or {}
        correlation_id = headers.get(config.correlation_id_header)
        if not correlation_id and key:
            correlation_id = key.decode("utf-8", errors="replace")
        set_correlation_id(correlation_id)

        try:
            event_type, event = decode_event(value)

            handler = get_handler(self.handlers, event_type)
            if handler is None:
                raise MalformedEvent(f"no handler for event type {event_type!r}", value)

            if await handler(event):
                self.stats["handled"] += 1
            else:
                self.stats["duplicates"] += 1

        except MalformedEvent as e:
            self.stats["malformed"] += 1
            payload = value.decode("utf-8", errors="replace") if value else None
            logger.error(
                f"Skipping malformed event: {e.reason}",
                metadata={
                    "event": "malformed_event",
                    "reason": e.reason,
                    "payload": payload[:MAX_LOGGED_PAYLOAD] if payload else payload,
                }
            )

        except Exception as e:
            self.stats["failed"] += 1
            logger.error(
                f"Error processing loan event: {e}",
                error=e,
                metadata={"event": "loan_event_error"}
            )

    async def start(self):
        """Start the consumer and block while consuming messages"""
        logger.info(
            "Notification consumer starting",
            metadata={"topic": self.topic, "group_id": config.kafka_consumer_group}
        )
        await self.broker.consume(self.topic, self.process_message)

    async def stop(self):
        """Gracefully stop the consumer"""
        logger.info("Stopping notification consumer...", metadata={"stats": self.stats})
        await self.broker.disconnect()
        logger.info("Notification consumer stopped")


async def main():
    """Main entry point for the consumer"""
    load_dotenv()

    await connect_to_mongo()
    processed_events = ProcessedEventRepository(await get_processed_events_collection())
    await processed_events.ensure_indexes()

    consumer = LoanConsumer(
        MessageBrokerFactory.create(group_id=config.kafka_consumer_group),
        topic=config.kafka_loan_topic,
        handlers=build_handlers(LoggingNotifier(), processed_events),
    )

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, lambda s=signum: asyncio.create_task(_shutdown(consumer, s)))

    try:
        await consumer.start()
    except Exception as e:
        logger.error(f"Consumer error: {e}", error=e)
        raise
    finally:
        await consumer.stop()
        await close_mongo_connection()


async def _shutdown(consumer: LoanConsumer, signum: int):
    logger.info(f"Received signal {signum}, initiating graceful shutdown...")
    await consumer.stop()


if __name__ == "__main__":
    asyncio.run(main())
