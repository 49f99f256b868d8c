"""Tests for the back office scenario and the sample data script."""

import importlib.util
import json
import logging
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from bookstore.config import ScenarioConfig
from bookstore.models.commerce import OrderStatus, PaymentStatus, RefundStatus
from bookstore.models.library import LoanStatus
from bookstore.scenarios import BackOfficeScenario

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "generate_sample_data.py"


@pytest.fixture
def small_config() -> ScenarioConfig:
    return ScenarioConfig(
        num_members=8,
        num_books=30,
        num_orders=15,
        start_date=datetime(2024, 1, 1, 9, 0),
        days=21,
    )


class TestBackOfficeScenario:
    """Tests for BackOfficeScenario."""

    def test_generate(self, small_config: ScenarioConfig, seed: int) -> None:
        """Test the scenario fills every table."""
        sink = MagicMock()
        store = BackOfficeScenario(config=small_config, seed=seed, sink=sink).generate()
        summary = store.summary()

        assert summary["members"] == 8
        assert summary["books"] == 30
        assert summary["orders"] == 15
        assert summary["payments"] == 15
        assert summary["loans"] > 0
        assert sink.send.called

    def test_reproducible(self, small_config: ScenarioConfig, seed: int) -> None:
        """Test the same seed replays the same history."""
        first = BackOfficeScenario(config=small_config, seed=seed).generate()
        second = BackOfficeScenario(config=small_config, seed=seed).generate()

        assert first.summary() == second.summary()
        assert [loan.status for loan in first.loans] == [loan.status for loan in second.loans]

    def test_invariants(self, small_config: ScenarioConfig, seed: int) -> None:
        """Test the generated history obeys the business rules."""
        scenario = BackOfficeScenario(config=small_config, seed=seed)
        store = scenario.generate()
        end = scenario.end_date

        held = {}
        for loan in store.loans:
            assert store.members.exists(loan.member_id)
            assert loan.due_date >= loan.loan_date
            if loan.status in (LoanStatus.ACTIVE, LoanStatus.OVERDUE):
                assert loan.book_id not in held
                held[loan.book_id] = loan.loan_id
                assert (loan.status == LoanStatus.OVERDUE) == loan.is_overdue(end)
            if loan.status == LoanStatus.CANCELLED:
                assert loan.overdue_fee.is_zero()
        for book in store.books:
            assert book.available == (book.book_id not in held)

        for payment in store.payments:
            assert payment.refunded_amount <= payment.amount
            order = store.orders.get(payment.order_id)
            refunded = store.total_completed_refunds_for_order(order.order_id)
            assert payment.refunded_amount == refunded
            if payment.status == PaymentStatus.REFUNDED:
                assert payment.refunded_amount == payment.amount
            if order.status == OrderStatus.CANCELLED:
                assert payment.status in (PaymentStatus.CANCELLED, PaymentStatus.FAILED)

        for refund in store.refunds:
            order = store.orders.get(refund.order_id)
            assert order.status == OrderStatus.DELIVERED
            if refund.status == RefundStatus.COMPLETED:
                assert refund.refund_transaction_id

    def test_rejections_are_counted_by_code(self, seed: int) -> None:
        """Test busy members run into loan rules that are tallied."""
        config = ScenarioConfig(num_members=2, num_books=5, num_orders=1, days=30, late_return_rate=1.0)
        scenario = BackOfficeScenario(config=config, seed=seed)
        scenario.generate()

        assert all(code.startswith("LOAN_") for code in scenario.rejections)


class TestGenerateSampleDataScript:
    """Tests for scripts/generate_sample_data.py."""

    @pytest.fixture
    def script(self):
        spec = importlib.util.spec_from_file_location("generate_sample_data", SCRIPT)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        yield module
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)

    def test_json_output(self, script, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        """Test the default sink writes one file per table plus event logs."""
        exit_code = script.main(
            [
                "--members", "5",
                "--books", "15",
                "--orders", "4",
                "--days", "14",
                "--seed", "7",
                "--output-dir", str(tmp_path),
            ]
        )

        assert exit_code == 0
        for table in ("members", "books", "loans", "orders", "payments", "deliveries", "refunds"):
            assert (tmp_path / f"{table}.json").exists()
        members = json.loads((tmp_path / "members.json").read_text(encoding="utf-8"))
        assert len(members) == 5
        assert (tmp_path / "dev_bookstore_order-events.jsonl").exists()
        assert "JSON files written to" in capsys.readouterr().out

    def test_console_output(self, script, capsys: pytest.CaptureFixture) -> None:
        """Test the console sink prints tables."""
        exit_code = script.main(["--members", "3", "--books", "10", "--orders", "2", "--days", "10", "--console"])

        assert exit_code == 0
        assert "Entity: members (3 records)" in capsys.readouterr().out
