"""Tests for serialization and output sinks."""

import json
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from bookstore.config import KafkaConfig
from bookstore.exceptions import SinkError
from bookstore.models.base import Event
from bookstore.models.commerce import Order, Payment
from bookstore.models.library import Loan
from bookstore.models.money import Money
from bookstore.sinks import ConsoleSink, JsonFileSink, KafkaSink
from bookstore.sinks.kafka import ProducerStats, message_key
from bookstore.sinks.serialization import serialize_value, to_dict


class TestSerialization:
    """Tests for to_dict and serialize_value."""

    def test_money(self) -> None:
        """Test Money serializes to a string amount and currency."""
        assert to_dict(Money.of("1234.5")) == {"amount": "1234.50", "currency": "KRW"}
        assert serialize_value(Money.of(1, "USD")) == {"amount": "1.00", "currency": "USD"}

    def test_loan(self, loan: Loan, day0: datetime) -> None:
        """Test a loan with history serializes to JSON-safe values."""
        loan.update_status(datetime(2024, 3, 20, 10, 0))
        data = to_dict(loan)

        assert data["status"] == "OVERDUE"
        assert data["loan_date"] == day0.isoformat()
        assert data["overdue_fee"] == {"amount": "5000.00", "currency": "KRW"}
        assert data["history"][0]["to_status"] == "OVERDUE"
        json.dumps(data)

    def test_order_items(self, order: Order) -> None:
        """Test nested order lines serialize."""
        data = to_dict(order)
        assert data["items"][0] == {
            "book_id": "book-001",
            "quantity": 2,
            "unit_price": {"amount": "15000.00", "currency": "KRW"},
        }

    def test_dict_and_fallback(self) -> None:
        """Test dicts and arbitrary objects."""
        assert to_dict({"when": datetime(2024, 1, 1), "n": 1}) == {"when": "2024-01-01T00:00:00", "n": 1}
        assert to_dict(42) == {"value": "42"}


@pytest.fixture
def event(day0: datetime) -> Event:
    return Event(
        event_id="evt-1",
        event_type="loan.created",
        event_time=day0,
        source="bookstore-backoffice",
        subject="loan-001",
        data={"loan_id": "loan-001"},
    )


class TestConsoleSink:
    """Tests for ConsoleSink."""

    def test_write_batch_truncates(self, completed_payment: Payment, capsys: pytest.CaptureFixture) -> None:
        """Test batches respect max_records."""
        sink = ConsoleSink(pretty=False, max_records=1)
        sink.write_batch("payments", [completed_payment, completed_payment])

        out = capsys.readouterr().out
        assert "Entity: payments (2 records)" in out
        assert '"payment_id": "payment-001"' in out
        assert "... and 1 more records" in out

    def test_send_and_close(self, event: Event, capsys: pytest.CaptureFixture) -> None:
        """Test events are prefixed with topic and key."""
        sink = ConsoleSink(pretty=False)
        sink.send("dev.bookstore.loan-events", event, key="loan-001")
        sink.close()

        out = capsys.readouterr().out
        assert "[dev.bookstore.loan-events key=loan-001]" in out
        assert "dev.bookstore.loan-events: 1 records" in out


class TestJsonFileSink:
    """Tests for JsonFileSink."""

    def test_write_batch(self, tmp_path: Path, loan: Loan) -> None:
        """Test snapshots are written as a JSON array."""
        sink = JsonFileSink(tmp_path / "out")
        sink.write_batch("loans", [loan])

        data = json.loads((tmp_path / "out" / "loans.json").read_text(encoding="utf-8"))
        assert data[0]["loan_id"] == "loan-001"
        assert data[0]["status"] == "ACTIVE"

    def test_send_appends_jsonl(self, tmp_path: Path, event: Event) -> None:
        """Test events are appended one per line."""
        sink = JsonFileSink(tmp_path)
        sink.send("dev.bookstore.loan-events", event)
        sink.send("dev.bookstore.loan-events", event)
        sink.close()

        lines = (tmp_path / "dev_bookstore_loan-events.jsonl").read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["subject"] == "loan-001"

    def test_write_failure(self, tmp_path: Path, loan: Loan) -> None:
        """Test OS errors surface as SinkError."""
        sink = JsonFileSink(tmp_path)
        (tmp_path / "loans.json").mkdir()
        with pytest.raises(SinkError):
            sink.write_batch("loans", [loan])


class TestKafkaSink:
    """Tests for KafkaSink with a mocked producer."""

    @pytest.fixture
    def producer(self):
        with patch("bookstore.sinks.kafka.Producer") as producer_cls:
            producer = producer_cls.return_value
            producer.flush.return_value = 0
            yield producer

    def test_config_variants(self, producer: MagicMock) -> None:
        """Test the sink accepts a bootstrap string or a KafkaConfig."""
        assert KafkaSink("broker:9092").config == KafkaConfig(bootstrap_servers="broker:9092")

        with patch("bookstore.sinks.kafka.Producer") as producer_cls:
            KafkaSink(KafkaConfig(bootstrap_servers="k:1", acks="1"))
        settings = producer_cls.call_args.args[0]
        assert settings["bootstrap.servers"] == "k:1"
        assert settings["acks"] == "1"

    def test_send_event_keyed_by_subject(self, producer: MagicMock, event: Event) -> None:
        """Test events use their subject as key."""
        sink = KafkaSink("broker:9092")
        sink.send("dev.bookstore.loan-events", event)

        kwargs = producer.produce.call_args.kwargs
        assert kwargs["topic"] == "dev.bookstore.loan-events"
        assert kwargs["key"] == b"loan-001"
        assert json.loads(kwargs["value"])["event_type"] == "loan.created"
        assert kwargs["headers"] == [("event_type", b"loan.created"), ("source", b"bookstore-backoffice")]
        assert sink.stats.sent == 1
        producer.poll.assert_called_with(0)

    def test_write_batch_keys_by_table(self, producer: MagicMock, completed_payment: Payment) -> None:
        """Test snapshot keys come from the topic's key field."""
        sink = KafkaSink("broker:9092")
        sink.write_batch("dev.bookstore.payments", [completed_payment])

        assert producer.produce.call_args.kwargs["key"] == b"order-001"
        assert producer.produce.call_args.kwargs["headers"] is None
        producer.flush.assert_called()

    def test_message_key(self, loan: Loan) -> None:
        """Test key lookup for dict and dataclass records and unknown topics."""
        assert message_key("dev.bookstore.loans", loan) == "loan-001"
        assert message_key("dev.bookstore.books", {"book_id": "book-9"}) == "book-9"
        assert message_key("audit", loan) is None

    def test_buffer_error(self, producer: MagicMock, event: Event) -> None:
        """Test a full local queue raises SinkError."""
        producer.produce.side_effect = BufferError("queue full")
        sink = KafkaSink("broker:9092")
        with pytest.raises(SinkError, match="queue full"):
            sink.send("topic", event)
        assert sink.stats.sent == 0

    def test_delivery_callback(self, producer: MagicMock) -> None:
        """Test delivery reports update the stats."""
        sink = KafkaSink("broker:9092")
        sink._delivery_callback(None, MagicMock())
        sink._delivery_callback("timeout", None)

        assert sink.stats.delivered == 1
        assert sink.stats.failed == 1
        assert sink.stats.success_rate == 0.5

    def test_close(self, producer: MagicMock) -> None:
        """Test close flushes and stamps the end time."""
        sink = KafkaSink("broker:9092")
        sink.close()
        producer.flush.assert_called_once_with(30.0)
        assert sink.stats.end_time is not None

    def test_stats_throughput(self) -> None:
        """Test throughput with and without timing."""
        assert ProducerStats().throughput == 0.0
        assert ProducerStats(sent=10, start_time=1.0, end_time=3.0).throughput == 5.0
