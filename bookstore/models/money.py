"""Currency-safe monetary value object."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

from bookstore.exceptions import CurrencyMismatchError, InvalidMoneyError

DEFAULT_CURRENCY = "KRW"
SCALE = Decimal("0.01")


def _to_decimal(amount: object) -> Decimal:
    """Coerce a user supplied amount to Decimal."""
    if amount is None:
        raise InvalidMoneyError("Amount is required")
    if isinstance(amount, bool):
        raise InvalidMoneyError(f"Invalid amount: {amount!r}")
    if isinstance(amount, Decimal):
        return amount
    if isinstance(amount, int):
        return Decimal(amount)
    if isinstance(amount, float):
        # str() keeps 0.1 as "0.1" instead of its binary expansion
        return Decimal(str(amount))
    if isinstance(amount, str):
        try:
            return Decimal(amount.strip())
        except InvalidOperation as exc:
            raise InvalidMoneyError(f"Invalid amount: {amount!r}") from exc
    raise InvalidMoneyError(f"Invalid amount type: {type(amount).__name__}")


def _normalize_currency(currency: object) -> str:
    if not isinstance(currency, str) or not currency.strip():
        raise InvalidMoneyError("Currency is required")
    code = currency.strip().upper()
    if len(code) != 3 or not (code.isascii() and code.isalpha()):
        raise InvalidMoneyError(f"Currency must be a 3-letter code: {currency!r}")
    return code


@functools.total_ordering
@dataclass(frozen=True)
class Money:
    """Immutable amount of money in a single currency.

    The amount is always scaled to two fraction digits using
    ``ROUND_HALF_UP``. Every arithmetic operation returns a new instance and
    refuses to mix currencies.

    Examples
    --------
    >>> Money.of("1000.005")
    Money(amount=Decimal('1000.01'), currency='KRW')
    >>> str(Money.of(1500, "usd"))
    '1500.00 USD'
    """

    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise InvalidMoneyError("Amount must be a Decimal; use Money.of() for other types")
        if not self.amount.is_finite():
            raise InvalidMoneyError(f"Amount must be finite: {self.amount}")
        try:
            scaled = self.amount.quantize(SCALE, rounding=ROUND_HALF_UP)
        except InvalidOperation as exc:
            # more digits than the decimal context precision can hold at two places
            raise InvalidMoneyError(f"Amount is out of range: {self.amount}") from exc
        if scaled.is_zero():
            scaled = abs(scaled)  # no "-0.00"
        object.__setattr__(self, "amount", scaled)
        object.__setattr__(self, "currency", _normalize_currency(self.currency))

    # Factories -------------------------------------------------------------

    @classmethod
    def of(cls, amount: Decimal | int | float | str, currency: str = DEFAULT_CURRENCY) -> Money:
        """Build a Money from any numeric representation.

        Parameters
        ----------
        amount : Decimal | int | float | str
            Amount; floats are converted through their shortest string form.
        currency : str
            ISO 4217 style 3-letter code (case insensitive).

        Raises
        ------
        InvalidMoneyError
            If the amount is missing or not numeric, or the currency is not
            a 3-letter code.
        """
        return cls(_to_decimal(amount), currency)

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> Money:
        return cls(Decimal("0"), currency)

    @classmethod
    def total(cls, values: Iterable[Money], currency: str = DEFAULT_CURRENCY) -> Money:
        """Sum amounts; an empty iterable yields zero in ``currency``."""
        result = cls.zero(currency)
        for value in values:
            result = result.add(value)
        return result

    # Arithmetic ------------------------------------------------------------

    def _check_currency(self, other: Money) -> None:
        if not isinstance(other, Money):
            raise InvalidMoneyError(f"Expected Money, got {type(other).__name__}")
        if other.currency != self.currency:
            raise CurrencyMismatchError(self.currency, other.currency)

    def add(self, other: Money) -> Money:
        self._check_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def subtract(self, other: Money) -> Money:
        self._check_currency(other)
        return Money(self.amount - other.amount, self.currency)

    def multiply(self, factor: int | Decimal) -> Money:
        if isinstance(factor, bool) or not isinstance(factor, (int, Decimal)):
            raise InvalidMoneyError(f"Invalid multiplier: {factor!r}")
        return Money(self.amount * Decimal(factor), self.currency)

    def divide(self, divisor: int) -> Money:
        if isinstance(divisor, bool) or not isinstance(divisor, int):
            raise InvalidMoneyError(f"Invalid divisor: {divisor!r}")
        if divisor == 0:
            raise InvalidMoneyError("Cannot divide money by zero")
        return Money(self.amount / Decimal(divisor), self.currency)

    __add__ = add
    __sub__ = subtract
    __mul__ = multiply

    # Comparison ------------------------------------------------------------

    def compare_to(self, other: Money) -> int:
        """Return -1, 0 or 1 like a classic comparator."""
        self._check_currency(other)
        if self.amount < other.amount:
            return -1
        return 1 if self.amount > other.amount else 0

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.compare_to(other) < 0

    def is_greater_than(self, other: Money) -> bool:
        return self.compare_to(other) > 0

    def is_less_than(self, other: Money) -> bool:
        return self.compare_to(other) < 0

    def is_zero(self) -> bool:
        return self.amount.is_zero()

    def is_positive(self) -> bool:
        return self.amount > 0

    def is_negative(self) -> bool:
        return self.amount < 0

    # Formatting ------------------------------------------------------------

    def format(self) -> str:
        """Plain amount with exactly two decimals, e.g. ``"1234.50"``."""
        return str(self.amount)

    def __str__(self) -> str:
        return f"{self.format()} {self.currency}"


ZERO = Money.zero()
