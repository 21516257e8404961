"""Unit tests for KafkaBroker"""
import asyncio
import time
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from aiokafka.errors import CommitFailedError, KafkaConnectionError

from app.messaging.kafka_broker import KafkaBroker


class FakeConsumer:
    """Stands in for AIOKafkaConsumer, replaying a fixed list of records"""

    def __init__(self, records):
        self.records = list(records)
        self.start = AsyncMock()
        self.stop = AsyncMock()
        self.commit = AsyncMock()

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self.records:
            raise StopAsyncIteration
        return self.records.pop(0)


def make_record(value, key=None, headers=None, offset=0):
    record = MagicMock()
    record.topic = "loan-created"
    record.partition = 0
    record.offset = offset
    record.value = value
    record.key = key
    record.headers = headers or []
    return record


@pytest.fixture
def broker():
    return KafkaBroker(["kafka1:9092", "kafka2:9092"], group_id="notification-group", send_timeout=1.0)


@pytest.fixture
def mock_producer():
    producer = AsyncMock()
    metadata = MagicMock(topic="loan-created", partition=1, offset=42)
    producer.send_and_wait.return_value = metadata
    return producer


class TestSend:

    @pytest.mark.asyncio
    async def test_send_connects_lazily_and_acks_all(self, broker, mock_producer):
        with patch("app.messaging.kafka_broker.AIOKafkaProducer", return_value=mock_producer) as producer_cls:
            outcome = await broker.send(
                "loan-created", value=b"{}", key=b"101", headers={"eventType": "LOAN_CREATED"}
            )

        producer_cls.assert_called_once_with(bootstrap_servers="kafka1:9092,kafka2:9092", acks="all")
        mock_producer.start.assert_awaited_once()
        mock_producer.send_and_wait.assert_awaited_once_with(
            "loan-created", value=b"{}", key=b"101", headers=[("eventType", b"LOAN_CREATED")]
        )
        assert (outcome.topic, outcome.partition, outcome.offset) == ("loan-created", 1, 42)
        assert broker.stats["messages_sent"] == 1
        assert broker.is_healthy()

    @pytest.mark.asyncio
    async def test_send_failure_is_counted_and_raised(self, broker, mock_producer):
        mock_producer.send_and_wait.side_effect = KafkaConnectionError("down")

        with patch("app.messaging.kafka_broker.AIOKafkaProducer", return_value=mock_producer):
            with pytest.raises(KafkaConnectionError):
                await broker.send("loan-created", value=b"{}")

        assert broker.stats["send_failures"] == 1
        assert broker.stats["messages_sent"] == 0

    @pytest.mark.asyncio
    async def test_connect_failure_is_counted(self, broker, mock_producer):
        mock_producer.start.side_effect = KafkaConnectionError("no brokers")

        with patch("app.messaging.kafka_broker.AIOKafkaProducer", return_value=mock_producer):
            with pytest.raises(KafkaConnectionError):
                await broker.send("loan-created", value=b"{}")

        mock_producer.stop.assert_awaited_once()
        assert broker.stats["send_failures"] == 1
        assert not broker.is_healthy()

    @pytest.mark.asyncio
    async def test_send_times_out(self, mock_producer):
        async def never_acked(*args, **kwargs):
            await asyncio.sleep(10)

        mock_producer.send_and_wait.side_effect = never_acked
        broker = KafkaBroker(["kafka:9092"], send_timeout=0.01)

        with patch("app.messaging.kafka_broker.AIOKafkaProducer", return_value=mock_producer):
            with pytest.raises(asyncio.TimeoutError):
                await broker.send("loan-created", value=b"{}")

        assert broker.stats["send_failures"] == 1

    @pytest.mark.asyncio
    async def test_disconnect_stops_producer(self, broker, mock_producer):
        with patch("app.messaging.kafka_broker.AIOKafkaProducer", return_value=mock_producer):
            await broker.connect()
            await broker.disconnect()

        mock_producer.stop.assert_awaited_once()
        assert not broker.is_healthy()
        stats = await broker.get_stats()
        assert stats["status"] == "disconnected"


class TestConsume:

    @pytest.mark.asyncio
    async def test_consume_commits_after_each_message(self, broker):
        consumer = FakeConsumer([
            make_record(b'{"a": 1}', key=b"101", headers=[("eventType", b"LOAN_CREATED")], offset=0),
            make_record(b'{"a": 2}', offset=1),
        ])
        handler = AsyncMock()

        with patch("app.messaging.kafka_broker.AIOKafkaConsumer", return_value=consumer) as consumer_cls:
            await broker.consume("loan-created", handler)

        consumer_cls.assert_called_once_with(
            "loan-created",
            bootstrap_servers="kafka1:9092,kafka2:9092",
            group_id="notification-group",
            enable_auto_commit=False,
            auto_offset_reset="earliest",
        )
        assert handler.await_count == 2
        handler.assert_any_await(b'{"a": 1}', b"101", {"eventType": "LOAN_CREATED"})
        assert consumer.commit.await_count == 2
        consumer.stop.assert_awaited_once()
        assert broker.stats["messages_consumed"] == 2

    @pytest.mark.asyncio
    async def test_handler_failure_does_not_stop_consumption(self, broker):
        consumer = FakeConsumer([make_record(b"bad", offset=0), make_record(b"good", offset=1)])
        handler = AsyncMock(side_effect=[RuntimeError("boom"), None])

        with patch("app.messaging.kafka_broker.AIOKafkaConsumer", return_value=consumer):
            await broker.consume("loan-created", handler)

        assert handler.await_count == 2
        assert consumer.commit.await_count == 2
        assert broker.stats["handler_failures"] == 1

    @pytest.mark.asyncio
    async def test_commit_failure_does_not_stop_consumption(self, broker):
        # Arrange
        consumer = FakeConsumer([
            make_record(b"one", offset=0),
            make_record(b"two", offset=1),
            make_record(b"three", offset=2),
        ])
        consumer.commit.side_effect = [CommitFailedError("rebalance"), None, None]
        handler = AsyncMock()

        # Act
        with patch("app.messaging.kafka_broker.AIOKafkaConsumer", return_value=consumer):
            await broker.consume("loan-created", handler)

        # Assert
        assert handler.await_count == 3
        assert consumer.commit.await_count == 3
        assert broker.stats["commit_failures"] == 1
        consumer.stop.assert_awaited_once()


class TestProducerStartup:

    @pytest.fixture
    def slow_producers(self):
        """Producers whose start takes a while, one per constructor call"""
        created = []

        def build(**kwargs):
            producer = AsyncMock()

            async def slow_start():
                await asyncio.sleep(0.05)

            producer.start.side_effect = slow_start
            producer.send_and_wait.return_value = MagicMock(topic="loan-created", partition=0, offset=len(created))
            created.append(producer)
            return producer

        return created, build

    @pytest.mark.asyncio
    async def test_concurrent_sends_share_one_producer(self, broker, slow_producers):
        created, build = slow_producers

        with patch("app.messaging.kafka_broker.AIOKafkaProducer", side_effect=build):
            await asyncio.gather(*(broker.send("loan-created", value=b"{}") for _ in range(3)))

        assert len(created) == 1
        assert created[0].send_and_wait.await_count == 3
        assert broker.stats["messages_sent"] == 3

    @pytest.mark.asyncio
    async def test_producer_start_counts_against_send_timeout(self):
        producer = AsyncMock()

        async def hanging_start():
            await asyncio.sleep(0.5)

        producer.start.side_effect = hanging_start
        broker = KafkaBroker(["kafka:9092"], send_timeout=0.05)

        started = time.monotonic()
        with patch("app.messaging.kafka_broker.AIOKafkaProducer", return_value=producer):
            with pytest.raises(asyncio.TimeoutError):
                await broker.send("loan-created", value=b"{}")
        elapsed = time.monotonic() - started

        assert elapsed < 0.4
        producer.stop.assert_awaited_once()
        producer.send_and_wait.assert_not_awaited()
        assert broker.producer is None
        assert broker.stats["send_failures"] == 1


class TestMessageBrokerFactory:

    def test_create_uses_configured_brokers(self):
        from app.messaging.message_broker_factory import MessageBrokerFactory

        broker = MessageBrokerFactory.create(group_id="notification-group")

        assert isinstance(broker, KafkaBroker)
        assert broker.group_id == "notification-group"
        assert broker.brokers == ["localhost:9092"]
