"""Delivery address factory."""

from __future__ import annotations

import random

from bookstore.generators.base import DEFAULT_LOCALE, BaseGenerator
from bookstore.models.base import Address


class AddressFactory(BaseGenerator[Address]):
    """Generate delivery addresses.

    Parameters
    ----------
    seed : int | None
        Random seed for reproducibility.
    locale : str
        Faker locale; ``ko_KR`` yields 5-digit postcodes and road addresses.
    detail_rate : float
        Share of addresses that carry a unit line.
    """

    def __init__(
        self,
        seed: int | None = None,
        locale: str = DEFAULT_LOCALE,
        detail_rate: float = 0.7,
    ) -> None:
        super().__init__(seed=seed, locale=locale)
        self.detail_rate = detail_rate

    def generate(self) -> Address:
        detail = None
        if self.chance(self.detail_rate):
            detail = f"{random.randint(1, 20)}F {random.randint(101, 2004)}"
        return Address(
            street=self.fake.street_address(),
            zip_code=self.fake.postcode(),
            detail=detail,
        )
