"""Shared plumbing for the Faker backed generators."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Generic, Iterator, TypeVar

from faker import Faker

from bookstore.models.money import Money

DEFAULT_LOCALE = "ko_KR"

T = TypeVar("T")


class BaseGenerator(ABC, Generic[T]):
    """Seeded Faker instance plus batch generation.

    Seeding also seeds the module level ``random`` that the scenarios draw
    from, so one seed replays a whole simulated history.

    Parameters
    ----------
    seed : int | None
        Random seed for reproducibility.
    locale : str
        Faker locale (default ``ko_KR``).
    """

    def __init__(self, seed: int | None = None, locale: str = DEFAULT_LOCALE) -> None:
        self.fake = Faker(locale)
        if seed is not None:
            self.fake.seed_instance(seed)
            random.seed(seed)

    @abstractmethod
    def generate(self, *args: Any, **kwargs: Any) -> T:
        """Generate one record."""

    def generate_batch(self, count: int, *args: Any, **kwargs: Any) -> Iterator[T]:
        """Yield ``count`` records, passing the arguments through to :meth:`generate`."""
        for _ in range(count):
            yield self.generate(*args, **kwargs)

    @staticmethod
    def chance(rate: float) -> bool:
        return random.random() < rate

    @staticmethod
    def price(low: int, high: int, step: int = 100, currency: str = "KRW") -> Money:
        """Random price in ``[low, high]`` on a ``step`` grid."""
        return Money.of(Decimal(random.randint(low // step, high // step) * step), currency)
