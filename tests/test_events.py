"""Unit tests for app.services.events: Kafka publishing is fire-and-forget."""

import unittest
from unittest.mock import MagicMock, patch

from kafka.errors import KafkaTimeoutError

from app.models import User
from app.services.events import (
    EventPublisher,
    KafkaEventPublisher,
    LoggingEventPublisher,
    _log_delivery_failure,
    build_publisher,
    user_event,
)


class TestUserEvent(unittest.TestCase):
    def test_shape(self) -> None:
        user = User(id=3, email="a@example.com", role="ADMIN")
        self.assertEqual(
            user_event(user, is_active=False), {"id": 3, "role": "ADMIN", "isActive": False}
        )


class TestEventPublisher(unittest.TestCase):
    def test_subclass_without_emit_cannot_be_created(self) -> None:
        class Incomplete(EventPublisher):
            pass

        with self.assertRaises(TypeError):
            Incomplete()


class TestKafkaEventPublisher(unittest.TestCase):
    def test_emit_sends_keyed_value(self) -> None:
        producer = MagicMock()
        publisher = KafkaEventPublisher(producer)

        publisher.emit("user.created", key="3", value={"id": 3})

        producer.send.assert_called_once_with("user.created", key="3", value={"id": 3})
        future = producer.send.return_value
        future.add_errback.assert_called_once_with(_log_delivery_failure, "user.created", "3")

    def test_send_failure_is_logged_not_raised(self) -> None:
        producer = MagicMock()
        producer.send.side_effect = KafkaTimeoutError("metadata timeout")
        publisher = KafkaEventPublisher(producer)

        with self.assertLogs("app.services.events", level="ERROR") as logs:
            publisher.emit("user.deleted", key="3", value={"id": 3})

        self.assertIn("topic=user.deleted", logs.output[0])

    def test_delivery_failure_callback_logs(self) -> None:
        with self.assertLogs("app.services.events", level="ERROR") as logs:
            _log_delivery_failure("user.created", "3", KafkaTimeoutError("no ack"))
        self.assertIn("key=3", logs.output[0])

    def test_close_flushes_producer(self) -> None:
        producer = MagicMock()
        KafkaEventPublisher(producer).close()
        producer.flush.assert_called_once()
        producer.close.assert_called_once()


class TestBuildPublisher(unittest.TestCase):
    def test_disabled_returns_logging_publisher(self) -> None:
        settings = MagicMock()
        settings.KAFKA_ENABLED = False
        self.assertIsInstance(build_publisher(settings), LoggingEventPublisher)

    @patch("app.services.events.KafkaProducer")
    def test_enabled_builds_producer(self, mock_producer: MagicMock) -> None:
        settings = MagicMock()
        settings.KAFKA_ENABLED = True
        settings.KAFKA_BROKERS = "kafka-1:9092, kafka-2:9092"
        settings.KAFKA_CLIENT_ID = "user"
        settings.KAFKA_MAX_BLOCK_MS = 5000

        publisher = build_publisher(settings)

        self.assertIsInstance(publisher, KafkaEventPublisher)
        kwargs = mock_producer.call_args.kwargs
        self.assertEqual(kwargs["bootstrap_servers"], ["kafka-1:9092", "kafka-2:9092"])
        self.assertEqual(kwargs["client_id"], "user")
        self.assertEqual(kwargs["value_serializer"]({"id": 1}), b'{"id": 1}')
        self.assertEqual(kwargs["key_serializer"](1), b"1")


if __name__ == "__main__":
    unittest.main()
