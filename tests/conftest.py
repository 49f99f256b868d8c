"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta

import pytest

from bookstore.models.base import Address
from bookstore.models.commerce import Order, OrderItem, Payment, PaymentMethod
from bookstore.models.library import Book, Loan, Member, MembershipType
from bookstore.models.money import Money
from bookstore.store import BookstoreDataStore


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def day0() -> datetime:
    """Fixed clock origin; tests derive every ``now`` from it."""
    return datetime(2024, 3, 1, 10, 0)


def days(n: float) -> timedelta:
    return timedelta(days=n)


@pytest.fixture
def loan(day0: datetime) -> Loan:
    """ACTIVE 14-day loan opened at day 0."""
    return Loan.open("loan-001", "member-001", "book-001", day0)


@pytest.fixture
def address() -> Address:
    return Address(street="123 Teheran-ro, Gangnam-gu", zip_code="06236", detail="5F 501")


@pytest.fixture
def order_items() -> list[OrderItem]:
    return [
        OrderItem("book-001", 2, Money.of(15000)),
        OrderItem("book-002", 1, Money.of(12000)),
    ]


@pytest.fixture
def order(order_items: list[OrderItem], day0: datetime) -> Order:
    """PENDING order totalling 42000 with a 2000 discount."""
    return Order.place("order-001", "member-001", order_items, day0, discount=Money.of(2000))


@pytest.fixture
def completed_payment(day0: datetime) -> Payment:
    payment = Payment("payment-001", "order-001", PaymentMethod.CREDIT_CARD, Money.of(10000))
    payment.complete("TXN-001", day0)
    return payment


@pytest.fixture
def member(day0: datetime) -> Member:
    return Member(
        member_id="member-001",
        name="Kim Minji",
        email="minji@example.com",
        membership_type=MembershipType.REGULAR,
        join_date=day0 - days(100),
    )


@pytest.fixture
def books() -> list[Book]:
    return [
        Book(f"book-00{i}", f"Title {i}", "Author", f"978000000000{i}", Money.of(10000 + i * 1000))
        for i in range(1, 8)
    ]


@pytest.fixture
def store(member: Member, books: list[Book]) -> BookstoreDataStore:
    """Store seeded with one REGULAR member and seven books."""
    store = BookstoreDataStore()
    store.add_member(member)
    for book in books:
        store.add_book(book)
    return store
