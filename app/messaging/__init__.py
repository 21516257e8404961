"""
Event channel: broker interface and its Kafka implementation
"""

from .i_message_broker import IMessageBroker, MessageHandler
from .kafka_broker import KafkaBroker
from .message_broker_factory import MessageBrokerFactory

__all__ = ["IMessageBroker", "MessageHandler", "KafkaBroker", "MessageBrokerFactory"]
