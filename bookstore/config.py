"""Configuration management for the bookstore back office."""

import os
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Callable, TypeVar

from bookstore.exceptions import ConfigurationError
from bookstore.models.money import DEFAULT_CURRENCY, Money

T = TypeVar("T")


@dataclass
class LoanPolicyConfig:
    """Borrowing rules."""

    daily_late_fee: Decimal = Decimal("1000")  # Per whole overdue day
    currency: str = DEFAULT_CURRENCY
    default_loan_days: int = 14
    default_extension_days: int = 14
    max_extensions: int = 2
    extension_window_days: int = 3  # Extension opens this many days before due

    @property
    def daily_late_fee_rate(self) -> Money:
        return Money.of(self.daily_late_fee, self.currency)


@dataclass
class OrderPolicyConfig:
    """Checkout rules."""

    max_books_per_order: int = 10
    default_discount_rate: Decimal = Decimal("0")  # 0.05 for 5%


@dataclass
class KafkaConfig:
    """Kafka producer configuration."""

    bootstrap_servers: str = "localhost:9092"
    acks: str = "all"
    batch_size: int = 16384
    linger_ms: int = 5
    compression: str = "snappy"
    retries: int = 3

    def to_dict(self) -> dict[str, Any]:
        """Convert to confluent-kafka config dict."""
        return {
            "bootstrap.servers": self.bootstrap_servers,
            "acks": self.acks,
            "batch.size": self.batch_size,
            "linger.ms": self.linger_ms,
            "compression.type": self.compression,
            "retries": self.retries,
        }


@dataclass
class OutputConfig:
    """Output configuration."""

    json_output_dir: Path = field(default_factory=lambda: Path("output"))
    pretty_json: bool = False
    topic_prefix: str = "dev.bookstore"


@dataclass
class ScenarioConfig:
    """Configuration for the back office simulation."""

    name: str = "back_office"
    num_members: int = 50
    num_books: int = 120
    num_orders: int = 80
    start_date: datetime = field(default_factory=lambda: datetime(2024, 1, 1, 9, 0))
    days: int = 60
    late_return_rate: float = 0.2
    cancel_rate: float = 0.1
    refund_rate: float = 0.15


def _env(name: str, default: str, parse: Callable[[str], T]) -> T:
    raw = os.getenv(name, default)
    try:
        return parse(raw)
    except (ValueError, ArithmeticError) as exc:
        raise ConfigurationError(f"Invalid value for {name}: {raw!r}") from exc


def _decimal(raw: str) -> Decimal:
    try:
        return Decimal(raw)
    except InvalidOperation as exc:
        raise ValueError(raw) from exc


@dataclass
class BookstoreConfig:
    """Main configuration for the bookstore back office."""

    loans: LoanPolicyConfig = field(default_factory=LoanPolicyConfig)
    orders: OrderPolicyConfig = field(default_factory=OrderPolicyConfig)
    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    scenario: ScenarioConfig | None = None
    seed: int | None = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "BookstoreConfig":
        """Create config from environment variables.

        Raises
        ------
        ConfigurationError
            If a numeric variable cannot be parsed or a policy value is
            out of range.
        """
        loans = LoanPolicyConfig(
            daily_late_fee=_env("DAILY_LATE_FEE", "1000", _decimal),
            currency=os.getenv("CURRENCY", DEFAULT_CURRENCY),
            default_loan_days=_env("DEFAULT_LOAN_DAYS", "14", int),
            default_extension_days=_env("DEFAULT_EXTENSION_DAYS", "14", int),
            max_extensions=_env("MAX_EXTENSIONS", "2", int),
            extension_window_days=_env("EXTENSION_WINDOW_DAYS", "3", int),
        )
        orders = OrderPolicyConfig(
            max_books_per_order=_env("MAX_BOOKS_PER_ORDER", "10", int),
            default_discount_rate=_env("DEFAULT_DISCOUNT_RATE", "0", _decimal),
        )

        kafka = KafkaConfig(
            bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
            acks=os.getenv("KAFKA_ACKS", "all"),
        )

        output = OutputConfig(
            json_output_dir=Path(os.getenv("OUTPUT_DIR", "output")),
            pretty_json=os.getenv("PRETTY_JSON", "false").lower() == "true",
            topic_prefix=os.getenv("TOPIC_PREFIX", "dev.bookstore"),
        )

        seed = os.getenv("SEED")
        config = cls(
            loans=loans,
            orders=orders,
            kafka=kafka,
            output=output,
            seed=_env("SEED", seed, int) if seed else None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Reject policy values the domain cannot honour."""
        if self.loans.daily_late_fee < 0:
            raise ConfigurationError("DAILY_LATE_FEE must not be negative")
        if self.loans.default_loan_days <= 0:
            raise ConfigurationError("DEFAULT_LOAN_DAYS must be positive")
        if self.loans.default_extension_days <= 0:
            raise ConfigurationError("DEFAULT_EXTENSION_DAYS must be positive")
        if self.loans.max_extensions < 0:
            raise ConfigurationError("MAX_EXTENSIONS must not be negative")
        if self.orders.max_books_per_order <= 0:
            raise ConfigurationError("MAX_BOOKS_PER_ORDER must be positive")
        if not Decimal("0") <= self.orders.default_discount_rate < Decimal("1"):
            raise ConfigurationError("DEFAULT_DISCOUNT_RATE must be in [0, 1)")
        try:
            self.loans.daily_late_fee_rate
        except ValueError as exc:
            raise ConfigurationError(f"Invalid currency: {self.loans.currency!r}") from exc
