"""Tests for the Money value object."""

from dataclasses import FrozenInstanceError
from decimal import Decimal

import pytest

from bookstore.exceptions import CurrencyMismatchError, InvalidMoneyError
from bookstore.models.money import ZERO, Money


class TestConstruction:
    """Tests for Money.of and validation."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("0", "0.00"),
            ("1", "1.00"),
            ("0.1", "0.10"),
            ("0.004", "0.00"),
            ("0.005", "0.01"),
            ("0.015", "0.02"),
            ("0.025", "0.03"),
            ("1.005", "1.01"),
            ("1.004999", "1.00"),
            ("2.675", "2.68"),
            ("10.995", "11.00"),
            ("99.994", "99.99"),
            ("99.995", "100.00"),
            ("1234.5", "1234.50"),
            ("1000.125", "1000.13"),
            ("0.335", "0.34"),
            ("7.7749", "7.77"),
            ("-1.005", "-1.01"),
            ("-0.004", "0.00"),
            ("-2.5", "-2.50"),
            ("123456789.999", "123456790.00"),
            ("  42.42  ", "42.42"),
            ("1E+3", "1000.00"),
        ],
    )
    def test_string_round_trip_half_up(self, raw: str, expected: str) -> None:
        """Decimal strings are scaled to 2 places with HALF_UP."""
        assert Money.of(raw).format() == expected

    def test_default_currency_is_krw(self) -> None:
        """Test that KRW is the default currency."""
        assert Money.of(1000).currency == "KRW"

    def test_currency_is_upper_cased(self) -> None:
        """Test that currency codes are upper-cased."""
        assert Money.of(1, "usd").currency == "USD"

    def test_float_goes_through_str(self) -> None:
        """Test that floats are converted through their string form."""
        assert Money.of(0.1).amount == Decimal("0.10")
        assert Money.of(1.005).amount == Decimal("1.01")

    def test_int_and_decimal(self) -> None:
        """Test building from int and Decimal."""
        assert Money.of(5).amount == Decimal("5.00")
        assert Money.of(Decimal("5.555")).amount == Decimal("5.56")

    def test_none_amount_rejected(self) -> None:
        """Test that a missing amount is rejected."""
        with pytest.raises(InvalidMoneyError, match="required"):
            Money.of(None)

    @pytest.mark.parametrize("raw", ["abc", "", "1,000", True])
    def test_non_numeric_rejected(self, raw: object) -> None:
        """Test that non-numeric amounts are rejected."""
        with pytest.raises(InvalidMoneyError):
            Money.of(raw)

    @pytest.mark.parametrize("raw", ["NaN", "Infinity"])
    def test_non_finite_rejected(self, raw: str) -> None:
        """Test that NaN and infinity are rejected."""
        with pytest.raises(InvalidMoneyError, match="finite"):
            Money.of(raw)

    @pytest.mark.parametrize("raw", ["1e30", "-1e30", Decimal("123456789012345678901234567890")])
    def test_out_of_range_rejected(self, raw: object) -> None:
        """Test that amounts too large to scale raise InvalidMoneyError."""
        with pytest.raises(InvalidMoneyError, match="out of range"):
            Money.of(raw)

    def test_arithmetic_out_of_range_rejected(self) -> None:
        """Test that an overflowing product is reported the same way."""
        with pytest.raises(InvalidMoneyError, match="out of range"):
            Money.of("1e25").multiply(1_000_000)

    @pytest.mark.parametrize("currency", ["", "  ", "KR", "KRWW", "12A", None])
    def test_invalid_currency_rejected(self, currency: object) -> None:
        """Test that malformed currency codes are rejected."""
        with pytest.raises(InvalidMoneyError):
            Money.of(100, currency)

    def test_direct_construction_requires_decimal(self) -> None:
        """Test that the constructor only accepts Decimal."""
        with pytest.raises(InvalidMoneyError, match="Money.of"):
            Money(100)

    def test_invalid_money_is_value_error(self) -> None:
        """Test that money errors are also ValueErrors."""
        with pytest.raises(ValueError):
            Money.of("x")

    def test_immutable(self) -> None:
        """Test that Money cannot be mutated."""
        money = Money.of(1)
        with pytest.raises(FrozenInstanceError):
            money.amount = Decimal("2")

    def test_no_negative_zero(self) -> None:
        """Test that rounding to zero never yields -0.00."""
        assert Money.of("-0.001").format() == "0.00"

    def test_zero_factory(self) -> None:
        """Test the zero factory and ZERO constant."""
        assert Money.zero("USD") == Money.of(0, "USD")
        assert ZERO.is_zero()


class TestArithmetic:
    """Tests for arithmetic operations."""

    def test_add(self) -> None:
        """Test adding two amounts."""
        assert Money.of("1.10").add(Money.of("2.20")) == Money.of("3.30")

    def test_subtract(self) -> None:
        """Test subtracting into a negative amount."""
        assert Money.of(5000).subtract(Money.of(7000)) == Money.of(-2000)

    def test_operators(self) -> None:
        """Test the arithmetic operators."""
        a, b = Money.of(300), Money.of(200)
        assert a + b == Money.of(500)
        assert a - b == Money.of(100)
        assert a * 3 == Money.of(900)

    def test_multiply_rounds_half_up(self) -> None:
        """Test that multiplication rounds HALF_UP."""
        assert Money.of("10.00").multiply(Decimal("0.055")) == Money.of("0.55")
        assert Money.of("0.15").multiply(Decimal("0.5")) == Money.of("0.08")

    def test_multiply_rejects_float(self) -> None:
        """Test that float multipliers are rejected."""
        with pytest.raises(InvalidMoneyError):
            Money.of(1).multiply(1.5)

    def test_divide_rounds_half_up(self) -> None:
        """Test that division rounds HALF_UP."""
        assert Money.of(10).divide(3) == Money.of("3.33")
        assert Money.of(5).divide(8) == Money.of("0.63")

    def test_divide_by_zero(self) -> None:
        """Test dividing by zero."""
        with pytest.raises(InvalidMoneyError, match="zero"):
            Money.of(10).divide(0)

    def test_operations_return_new_instances(self) -> None:
        """Test that operations leave the operand unchanged."""
        original = Money.of(100)
        original.add(Money.of(1))
        assert original == Money.of(100)

    def test_currency_mismatch(self) -> None:
        """Test that mixing currencies fails."""
        with pytest.raises(CurrencyMismatchError, match="KRW vs USD"):
            Money.of(1).add(Money.of(1, "USD"))

    def test_total(self) -> None:
        """Test summing amounts."""
        assert Money.total([Money.of(1), Money.of(2), Money.of(3)]) == Money.of(6)
        assert Money.total([], "EUR") == Money.zero("EUR")


class TestComparison:
    """Tests for comparison and predicates."""

    def test_ordering(self) -> None:
        """Test rich comparisons."""
        assert Money.of(1) < Money.of(2)
        assert Money.of(2) >= Money.of(2)
        assert max(Money.of(3), Money.of(7), Money.of(5)) == Money.of(7)

    def test_compare_to(self) -> None:
        """Test the comparator."""
        assert Money.of(1).compare_to(Money.of(2)) == -1
        assert Money.of(2).compare_to(Money.of(2)) == 0
        assert Money.of(3).compare_to(Money.of(2)) == 1

    def test_compare_across_currencies_fails(self) -> None:
        """Test that comparing currencies fails."""
        with pytest.raises(CurrencyMismatchError):
            Money.of(1) < Money.of(1, "USD")

    def test_equality_ignores_scale(self) -> None:
        """Test equality and hashing after scaling."""
        assert Money.of("1.0") == Money.of("1.00")
        assert hash(Money.of("1.0")) == hash(Money.of(1))

    def test_different_currencies_not_equal(self) -> None:
        """Test that equal amounts in other currencies differ."""
        assert Money.of(1) != Money.of(1, "USD")

    def test_predicates(self) -> None:
        """Test sign and comparison predicates."""
        assert Money.of(0).is_zero()
        assert Money.of(1).is_positive()
        assert Money.of(-1).is_negative()
        assert Money.of(2).is_greater_than(Money.of(1))
        assert Money.of(1).is_less_than(Money.of(2))

    def test_str(self) -> None:
        """Test the string form."""
        assert str(Money.of("1234.5")) == "1234.50 KRW"
