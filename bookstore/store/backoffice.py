"""Back office data store with referential integrity."""

from contextlib import ExitStack
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from bookstore.exceptions import EntityNotFoundError, ReferentialIntegrityError
from bookstore.models.commerce import (
    Delivery,
    DeliveryStatus,
    Order,
    Payment,
    PaymentStatus,
    Refund,
    RefundStatus,
)
from bookstore.models.library import Book, Loan, LoanStatus, Member
from bookstore.models.money import DEFAULT_CURRENCY, Money
from bookstore.store.protocols import Repository
from bookstore.store.tables import EntityTable

UNRETURNED_LOAN_STATUSES = (LoanStatus.ACTIVE, LoanStatus.OVERDUE)

TABLE_BY_TYPE = {
    Member: "members",
    Book: "books",
    Loan: "loans",
    Order: "orders",
    Payment: "payments",
    Delivery: "deliveries",
    Refund: "refunds",
}


@dataclass
class BookstoreDataStore:
    """In-memory store for library and commerce entities.

    ``add_*`` methods check foreign keys; updates go through the table's
    ``save``, or :meth:`save_all` for several entities, so they are version
    checked.
    """

    members: EntityTable[Member] = field(default_factory=lambda: EntityTable("member", "member_id"))
    books: EntityTable[Book] = field(default_factory=lambda: EntityTable("book", "book_id"))
    loans: EntityTable[Loan] = field(default_factory=lambda: EntityTable("loan", "loan_id"))
    orders: EntityTable[Order] = field(default_factory=lambda: EntityTable("order", "order_id"))
    payments: EntityTable[Payment] = field(default_factory=lambda: EntityTable("payment", "payment_id"))
    deliveries: EntityTable[Delivery] = field(
        default_factory=lambda: EntityTable("delivery", "delivery_id")
    )
    refunds: EntityTable[Refund] = field(default_factory=lambda: EntityTable("refund", "refund_id"))

    # Inserts -----------------------------------------------------------------

    def _require(self, table: Repository, entity_id: str) -> None:
        if not table.exists(entity_id):
            raise ReferentialIntegrityError(table.entity_type, entity_id)

    def add_member(self, member: Member) -> Member:
        return self.members.add(member)

    def add_book(self, book: Book) -> Book:
        return self.books.add(book)

    def add_loan(self, loan: Loan) -> Loan:
        """Add a loan to the store."""
        self._require(self.members, loan.member_id)
        self._require(self.books, loan.book_id)
        return self.loans.add(loan)

    def add_order(self, order: Order) -> Order:
        """Add an order to the store."""
        self._require(self.members, order.member_id)
        for book_id in order.book_ids():
            self._require(self.books, book_id)
        return self.orders.add(order)

    def add_payment(self, payment: Payment) -> Payment:
        self._require(self.orders, payment.order_id)
        return self.payments.add(payment)

    def add_delivery(self, delivery: Delivery) -> Delivery:
        self._require(self.orders, delivery.order_id)
        return self.deliveries.add(delivery)

    def add_refund(self, refund: Refund) -> Refund:
        self._require(self.orders, refund.order_id)
        return self.refunds.add(refund)

    # Updates -----------------------------------------------------------------

    def save_all(self, *entities: Any) -> None:
        """Save several modified entities as one unit.

        Every involved table is locked (in a fixed order), every version is
        checked, and only then is anything written. A stale entity raises
        :class:`ConcurrencyConflictError` and leaves all of them unsaved.
        """
        pairs = [(self.tables()[TABLE_BY_TYPE[type(entity)]], entity) for entity in entities]
        locked = {table.entity_type: table for table, _ in pairs}
        with ExitStack() as stack:
            for name in sorted(locked):
                stack.enter_context(locked[name].lock)
            for table, entity in pairs:
                table.check_version(entity)
            for table, entity in pairs:
                table.write(entity)

    # Loan queries ------------------------------------------------------------

    def loans_for_member(self, member_id: str) -> list[Loan]:
        return self.loans.find(lambda loan: loan.member_id == member_id)

    def active_loans_for_member(self, member_id: str) -> list[Loan]:
        """Loans the member still holds (ACTIVE or OVERDUE)."""
        return self.loans.find(
            lambda loan: loan.member_id == member_id and loan.status in UNRETURNED_LOAN_STATUSES
        )

    def overdue_loans_for_member(self, member_id: str, now: datetime) -> list[Loan]:
        return [loan for loan in self.active_loans_for_member(member_id) if loan.is_overdue(now)]

    def has_unreturned_loan_for_book(self, book_id: str) -> bool:
        return bool(
            self.loans.find(
                lambda loan: loan.book_id == book_id and loan.status in UNRETURNED_LOAN_STATUSES
            )
        )

    def overdue_loans(self, now: datetime) -> list[Loan]:
        return self.loans.find(lambda loan: loan.is_overdue(now))

    # Commerce queries --------------------------------------------------------

    def orders_for_member(self, member_id: str) -> list[Order]:
        return self.orders.find(lambda order: order.member_id == member_id)

    def payment_for_order(self, order_id: str) -> Payment:
        """Return the order's payment.

        Raises
        ------
        EntityNotFoundError
            If the order has no payment.
        """
        payments = self.payments.find(lambda payment: payment.order_id == order_id)
        if not payments:
            raise EntityNotFoundError("payment", f"for order {order_id}")
        return payments[0]

    def payments_by_status(self, status: PaymentStatus) -> list[Payment]:
        return self.payments.find(lambda payment: payment.status == status)

    def delivery_for_order(self, order_id: str) -> Delivery:
        deliveries = self.deliveries.find(lambda delivery: delivery.order_id == order_id)
        if not deliveries:
            raise EntityNotFoundError("delivery", f"for order {order_id}")
        return deliveries[0]

    def delivery_by_tracking_number(self, tracking_number: str) -> Delivery:
        deliveries = self.deliveries.find(
            lambda delivery: delivery.tracking_number == tracking_number
        )
        if not deliveries:
            raise EntityNotFoundError("delivery", f"with tracking number {tracking_number}")
        return deliveries[0]

    def deliveries_by_status(self, status: DeliveryStatus) -> list[Delivery]:
        return self.deliveries.find(lambda delivery: delivery.status == status)

    def refunds_for_order(self, order_id: str) -> list[Refund]:
        return self.refunds.find(lambda refund: refund.order_id == order_id)

    def refunds_by_status(self, status: RefundStatus) -> list[Refund]:
        return self.refunds.find(lambda refund: refund.status == status)

    def total_completed_refunds_for_order(
        self, order_id: str, currency: str = DEFAULT_CURRENCY
    ) -> Money:
        """Sum of COMPLETED refund amounts for an order."""
        completed = [
            refund.amount
            for refund in self.refunds_for_order(order_id)
            if refund.status == RefundStatus.COMPLETED
        ]
        if completed:
            currency = completed[0].currency
        return Money.total(completed, currency)

    def summary(self) -> dict[str, int]:
        """Get summary statistics."""
        return {
            "members": len(self.members),
            "books": len(self.books),
            "loans": len(self.loans),
            "orders": len(self.orders),
            "payments": len(self.payments),
            "deliveries": len(self.deliveries),
            "refunds": len(self.refunds),
        }

    def tables(self) -> dict[str, EntityTable]:
        """Tables keyed by export name."""
        return {
            "members": self.members,
            "books": self.books,
            "loans": self.loans,
            "orders": self.orders,
            "payments": self.payments,
            "deliveries": self.deliveries,
            "refunds": self.refunds,
        }
