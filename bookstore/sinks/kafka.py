"""Kafka sink for publishing entity snapshots and lifecycle events."""

import json
import logging
import time
from dataclasses import dataclass, is_dataclass
from typing import Any

from confluent_kafka import KafkaException, Producer

from bookstore.config import KafkaConfig
from bookstore.exceptions import SinkError
from bookstore.models.base import Event
from bookstore.sinks.serialization import to_dict

logger = logging.getLogger(__name__)

# Snapshot topics are "<prefix>.<table>"; commerce records share the order key
KEY_FIELDS = {
    "members": "member_id",
    "books": "book_id",
    "loans": "loan_id",
    "orders": "order_id",
    "payments": "order_id",
    "deliveries": "order_id",
    "refunds": "order_id",
}


@dataclass
class ProducerStats:
    """Delivery counters for one sink."""

    sent: int = 0
    delivered: int = 0
    failed: int = 0
    start_time: float | None = None
    end_time: float | None = None

    @property
    def success_rate(self) -> float:
        settled = self.delivered + self.failed
        return self.delivered / settled if settled else 0.0

    @property
    def throughput(self) -> float:
        """Messages sent per second between the first send and close."""
        if self.start_time is None or self.end_time is None:
            return 0.0
        elapsed = self.end_time - self.start_time
        return self.sent / elapsed if elapsed > 0 else 0.0


def message_key(topic: str, record: Any) -> str | None:
    """Partition key: an event's subject, otherwise the table's key field."""
    if isinstance(record, Event):
        return record.subject
    field = KEY_FIELDS.get(topic.rsplit(".", 1)[-1])
    if field is None:
        return None
    if isinstance(record, dict):
        return record.get(field)
    if is_dataclass(record):
        return getattr(record, field, None)
    return None


def message_headers(record: Any) -> list[tuple[str, bytes]] | None:
    if not isinstance(record, Event):
        return None
    return [
        ("event_type", record.event_type.encode("utf-8")),
        ("source", record.source.encode("utf-8")),
    ]


class KafkaSink:
    """Publish records to Kafka topics as JSON.

    Messages are keyed so that every event of one loan or order lands on the
    same partition, in order. Lifecycle events also carry ``event_type`` and
    ``source`` headers for consumers that filter without decoding.

    Parameters
    ----------
    config : KafkaConfig | str
        Producer settings, or just the bootstrap servers.
    """

    def __init__(self, config: KafkaConfig | str) -> None:
        if isinstance(config, str):
            config = KafkaConfig(bootstrap_servers=config)
        self.config = config
        self.producer = Producer(config.to_dict())
        self.stats = ProducerStats()

    def _delivery_callback(self, err: Any, msg: Any) -> None:
        if err:
            self.stats.failed += 1
            logger.error("Delivery failed: %s", err)
        else:
            self.stats.delivered += 1
            logger.debug("Delivered to %s[%d]@%d", msg.topic(), msg.partition(), msg.offset())

    def send(self, topic: str, record: Any, key: str | None = None) -> None:
        """Produce one record.

        Raises
        ------
        SinkError
            If the producer rejects the message (e.g. local queue full).
        """
        if key is None:
            key = message_key(topic, record)
        value = json.dumps(to_dict(record), ensure_ascii=False, default=str).encode("utf-8")

        try:
            self.producer.produce(
                topic=topic,
                key=key.encode("utf-8") if key else None,
                value=value,
                headers=message_headers(record),
                callback=self._delivery_callback,
            )
        except (BufferError, KafkaException) as exc:
            raise SinkError(f"Failed to produce to {topic}: {exc}") from exc

        if self.stats.start_time is None:
            self.stats.start_time = time.time()
        self.stats.sent += 1
        self.producer.poll(0)

    def write_batch(self, topic: str, records: list[Any]) -> None:
        """Produce a table snapshot and wait for delivery."""
        logger.info("Writing %d records to %s", len(records), topic)
        for record in records:
            self.send(topic, record)
        self.flush()

    def flush(self, timeout: float = 30.0) -> None:
        remaining = self.producer.flush(timeout)
        if remaining:
            logger.warning("%d messages still queued after flush", remaining)

    def close(self) -> None:
        self.flush()
        self.stats.end_time = time.time()
        logger.info(
            "Kafka sink closed: sent=%d, delivered=%d, failed=%d (%.1f msg/s)",
            self.stats.sent,
            self.stats.delivered,
            self.stats.failed,
            self.stats.throughput,
        )
