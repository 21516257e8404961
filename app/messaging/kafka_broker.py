"""
Kafka Broker Implementation
Implements the IMessageBroker interface for Apache Kafka using aiokafka
"""

import asyncio
from typing import Any, Dict, List, Optional

from aiokafka import AIOKafkaConsumer, AIOKafkaProducer
from aiokafka.errors import KafkaError

from app.core.logger import logger
from app.models.loan import PublishOutcome
from .i_message_broker import IMessageBroker, MessageHandler


class KafkaBroker(IMessageBroker):
    """Kafka implementation of IMessageBroker"""

    def __init__(
        self,
        brokers: List[str],
        group_id: Optional[str] = None,
        send_timeout: float = 10.0,
    ):
        """
        Initialize Kafka broker

        Args:
            brokers: List of Kafka broker addresses
            group_id: Consumer group ID (consuming side only)
            send_timeout: Upper bound on waiting for a send acknowledgement
        """
        self.brokers = brokers
        self.group_id = group_id
        self.send_timeout = send_timeout
        self.producer: Optional[AIOKafkaProducer] = None
        self.consumer: Optional[AIOKafkaConsumer] = None
        self._connect_lock = asyncio.Lock()
        self.stats = {
            "messages_sent": 0,
            "send_failures": 0,
            "messages_consumed": 0,
            "handler_failures": 0,
            "commit_failures": 0,
        }

    async def connect(self) -> None:
        """Start the Kafka producer. Concurrent callers share one producer."""
        async with self._connect_lock:
            if self.producer is not None:
                return
            await self._start_producer()

    async def _start_producer(self) -> None:
        logger.info(
            "Connecting Kafka producer",
            metadata={"event": "kafka_producer_connect", "brokers": self.brokers}
        )
        producer = AIOKafkaProducer(
            bootstrap_servers=",".join(self.brokers),
            acks="all",
        )
        try:
            await producer.start()
        except BaseException:
            await producer.stop()
            raise
        self.producer = producer
        logger.info("Kafka producer connected", metadata={"event": "kafka_producer_connected"})

    async def send(
        self,
        topic: str,
        value: bytes,
        key: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> PublishOutcome:
        """
        Send a message and wait for the broker acknowledgement. Starting
        the producer on first use counts against the same timeout.
        """
        kafka_headers = [(k, v.encode("utf-8")) for k, v in (headers or {}).items()]
        try:
            metadata = await asyncio.wait_for(
                self._connect_and_send(topic, value, key, kafka_headers),
                timeout=self.send_timeout,
            )
        except (KafkaError, asyncio.TimeoutError):
            self.stats["send_failures"] += 1
            raise

        self.stats["messages_sent"] += 1
        return PublishOutcome(topic=metadata.topic, partition=metadata.partition, offset=metadata.offset)

    async def _connect_and_send(self, topic, value, key, kafka_headers):
        if self.producer is None:
            await self.connect()
        return await self.producer.send_and_wait(topic, value=value, key=key, headers=kafka_headers)

    async def consume(self, topic: str, handler: MessageHandler) -> None:
        """
        Consume messages one at a time. Offsets are committed after the
        handler returns, so a crash before the commit means redelivery.
        A failing handler is logged and its offset is still committed, so
        the message is not redelivered. A failed commit is logged and the
        loop goes on.
        """
        consumer = AIOKafkaConsumer(
            topic,
            bootstrap_servers=",".join(self.brokers),
            group_id=self.group_id,
            enable_auto_commit=False,
            auto_offset_reset="earliest",
        )
        await consumer.start()
        self.consumer = consumer
        logger.info(
            f"Consuming from topic {topic}",
            metadata={"event": "kafka_consumer_started", "topic": topic, "group_id": self.group_id}
        )

        try:
            async for message in consumer:
                self.stats["messages_consumed"] += 1
                headers = {k: v.decode("utf-8", errors="replace") for k, v in (message.headers or [])}
                try:
                    await handler(message.value, message.key, headers)
                except Exception as e:
                    self.stats["handler_failures"] += 1
                    logger.error(
                        f"Error processing Kafka message: {e}",
                        error=e,
                        metadata={
                            "event": "kafka_message_error",
                            "topic": message.topic,
                            "partition": message.partition,
                            "offset": message.offset,
                        }
                    )
                try:
                    await consumer.commit()
                except KafkaError as e:
                    # Uncommitted messages are redelivered; the dedupe claim absorbs them
                    self.stats["commit_failures"] += 1
                    logger.warning(
                        f"Failed to commit Kafka offset: {e}",
                        metadata={
                            "event": "kafka_commit_failed",
                            "topic": message.topic,
                            "partition": message.partition,
                            "offset": message.offset,
                        }
                    )
        finally:
            await self._stop_consumer()

    async def _stop_consumer(self) -> None:
        if self.consumer is not None:
            consumer, self.consumer = self.consumer, None
            await consumer.stop()

    async def disconnect(self) -> None:
        """Close Kafka producer and consumer"""
        await self._stop_consumer()
        if self.producer is not None:
            producer, self.producer = self.producer, None
            await producer.stop()
        logger.info("Kafka broker closed")

    def is_healthy(self) -> bool:
        """Check if a producer or consumer is running"""
        return self.producer is not None or self.consumer is not None

    async def get_stats(self) -> Dict[str, Any]:
        """Get Kafka message counters"""
        return {
            "broker": "kafka",
            "status": "connected" if self.is_healthy() else "disconnected",
            **self.stats,
        }
