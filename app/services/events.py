"""Account lifecycle events: fire-and-forget publishing to Kafka (or the log when disabled)."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from kafka import KafkaProducer
from kafka.errors import KafkaError

if TYPE_CHECKING:
    from app.core.config import Settings
    from app.models import User

logger = logging.getLogger(__name__)


def user_event(user: User, is_active: bool) -> dict[str, Any]:
    """Event value for account creation/deletion."""
    return {"id": user.id, "role": user.role, "isActive": is_active}


class EventPublisher(ABC):
    """Publishes a keyed JSON value to a topic. Never raises for delivery failures."""

    @abstractmethod
    def emit(self, topic: str, key: str, value: dict[str, Any]) -> None:
        """Queue value for delivery; delivery failures are logged, never raised."""

    def close(self) -> None:
        """Release broker resources (no-op by default)."""


class LoggingEventPublisher(EventPublisher):
    """Used when KAFKA_ENABLED is false: events are only written to the log."""

    def emit(self, topic: str, key: str, value: dict[str, Any]) -> None:
        logger.info("Event (not published) topic=%s key=%s value=%s", topic, key, value)


class KafkaEventPublisher(EventPublisher):
    """Wraps a shared KafkaProducer; send() is asynchronous and failures are only logged."""

    def __init__(self, producer: KafkaProducer) -> None:
        self._producer = producer

    def emit(self, topic: str, key: str, value: dict[str, Any]) -> None:
        try:
            future = self._producer.send(topic, key=key, value=value)
        except KafkaError as e:
            logger.error("Event publish failed: topic=%s key=%s error=%s", topic, key, e)
            return
        future.add_errback(_log_delivery_failure, topic, key)
        logger.debug("Event queued: topic=%s key=%s", topic, key)

    def close(self) -> None:
        self._producer.flush()
        self._producer.close()


def _log_delivery_failure(topic: str, key: str, exc: BaseException) -> None:
    logger.error("Event delivery failed: topic=%s key=%s error=%s", topic, key, exc)


def build_publisher(settings: Settings) -> EventPublisher:
    """Create the process-wide publisher from settings."""
    if not settings.KAFKA_ENABLED:
        logger.info("Kafka is disabled (KAFKA_ENABLED=false); events will only be logged.")
        return LoggingEventPublisher()
    brokers = [b.strip() for b in settings.KAFKA_BROKERS.split(",") if b.strip()]
    producer = KafkaProducer(
        bootstrap_servers=brokers,
        client_id=settings.KAFKA_CLIENT_ID,
        key_serializer=lambda k: str(k).encode("utf-8"),
        value_serializer=lambda v: json.dumps(v).encode("utf-8"),
        max_block_ms=settings.KAFKA_MAX_BLOCK_MS,
    )
    logger.info("Kafka producer connected: brokers=%s", brokers)
    return KafkaEventPublisher(producer)
