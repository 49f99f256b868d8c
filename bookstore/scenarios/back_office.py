"""Back office scenario: a few weeks of loans, orders and refunds."""

from __future__ import annotations

import heapq
import logging
import random
from datetime import datetime, timedelta

from bookstore.config import LoanPolicyConfig, OrderPolicyConfig, ScenarioConfig
from bookstore.exceptions import LoanError
from bookstore.generators import (
    AddressFactory,
    BookGenerator,
    MemberGenerator,
    OrderItemGenerator,
)
from bookstore.models.commerce import PaymentMethod
from bookstore.models.library import Loan
from bookstore.services import (
    DeliveryService,
    EventSink,
    LoanService,
    OrderService,
    PaymentService,
    RefundService,
    sequential_ids,
)
from bookstore.store.backoffice import BookstoreDataStore

logger = logging.getLogger(__name__)

COURIERS = ["CJ Logistics", "Hanjin", "Lotte Global Logistics", "Korea Post"]


class BackOfficeScenario:
    """Simulate a bookstore back office over a fixed clock.

    This scenario creates:
    - Members and a book catalogue
    - Loans that are returned on time, returned late, extended, cancelled
      or left overdue
    - Orders that go through payment, confirmation, shipping and delivery,
      with some cancelled and some partially or fully refunded

    Every step goes through the services, so business rules reject some
    attempts (loan limits, overdue members); those rejections are counted
    in ``rejections``.
    """

    def __init__(
        self,
        config: ScenarioConfig | None = None,
        seed: int | None = None,
        loan_policy: LoanPolicyConfig | None = None,
        order_policy: OrderPolicyConfig | None = None,
        sink: EventSink | None = None,
        topic_prefix: str = "dev.bookstore",
    ) -> None:
        """Initialize the scenario.

        Parameters
        ----------
        config : ScenarioConfig | None
            Sizes, rates and the simulated start date.
        seed : int | None
            Random seed for reproducibility.
        loan_policy, order_policy
            Business rules handed to the services.
        sink : EventSink | None
            Destination for lifecycle events.
        topic_prefix : str
            Prefix of the event topics.
        """
        self.config = config or ScenarioConfig()
        self.seed = seed
        if seed is not None:
            random.seed(seed)

        self.store = BookstoreDataStore()
        ids = sequential_ids()
        wiring = {"sink": sink, "topic_prefix": topic_prefix, "id_factory": ids}
        self.loans = LoanService(self.store, loan_policy, **wiring)
        self.orders = OrderService(self.store, order_policy, **wiring)
        self.payments = PaymentService(self.store, **wiring)
        self.deliveries = DeliveryService(self.store, **wiring)
        self.refunds = RefundService(self.store, **wiring)

        self._member_gen = MemberGenerator(seed=seed)
        self._book_gen = BookGenerator(seed=seed)
        self._item_gen = OrderItemGenerator(seed=seed)
        self._address_factory = AddressFactory(seed=seed)
        self.rejections: dict[str, int] = {}

    @property
    def end_date(self) -> datetime:
        return self.config.start_date + timedelta(days=self.config.days)

    def generate(self) -> BookstoreDataStore:
        """Run the simulation.

        Returns
        -------
        BookstoreDataStore
            Store containing all generated entities.
        """
        start = self.config.start_date
        logger.info(
            "Starting back office scenario: %d members, %d books, %d orders over %d days",
            self.config.num_members,
            self.config.num_books,
            self.config.num_orders,
            self.config.days,
        )

        for member in self._member_gen.generate_batch(self.config.num_members, joined_before=start):
            self.store.add_member(member)
        for book in self._book_gen.generate_batch(self.config.num_books, created_at=start):
            self.store.add_book(book)

        self._simulate_loans()
        self._simulate_orders()
        self.loans.refresh_statuses(self.end_date)

        logger.info("Scenario complete: %s, rejections=%s", self.store.summary(), self.rejections)
        return self.store

    def _reject(self, exc: LoanError) -> None:
        self.rejections[exc.code] = self.rejections.get(exc.code, 0) + 1
        logger.debug("Rejected: %s", exc.message)

    def _simulate_loans(self) -> None:
        members = list(self.store.members)
        books = list(self.store.books)
        start = self.config.start_date
        schedule: list[tuple[datetime, str, str]] = []

        for day in range(self.config.days):
            now = start + timedelta(days=day, hours=random.randint(0, 9))
            self._run_due(schedule, now)
            for member in random.sample(members, k=max(1, len(members) // 10)):
                book = random.choice(books)
                try:
                    loan = self.loans.create_loan(member.member_id, book.book_id, now)
                except LoanError as exc:
                    self._reject(exc)
                    continue
                self._plan_loan(schedule, loan)

        # Anything scheduled past the horizon stays open
        self._run_due(schedule, self.end_date)

    def _plan_loan(self, schedule: list[tuple[datetime, str, str]], loan: Loan) -> None:
        """Pick an outcome for a fresh loan and schedule its follow-up actions."""
        policy = self.loans.policy
        opened = loan.loan_date
        roll = random.random()
        if roll < self.config.cancel_rate:
            heapq.heappush(schedule, (opened + timedelta(hours=1), "cancel", loan.loan_id))
            return

        due_in = policy.default_loan_days
        earliest_return = 1
        if roll < self.config.cancel_rate + 0.15:
            heapq.heappush(schedule, (opened + timedelta(days=due_in - 1), "extend", loan.loan_id))
            earliest_return = due_in
            due_in += policy.default_extension_days

        if random.random() < self.config.late_return_rate:
            return_after = due_in + random.randint(1, 10)
        else:
            return_after = random.randint(earliest_return, due_in)
        heapq.heappush(schedule, (opened + timedelta(days=return_after), "return", loan.loan_id))

    def _run_due(self, schedule: list[tuple[datetime, str, str]], now: datetime) -> None:
        while schedule and schedule[0][0] <= now:
            at, action, loan_id = heapq.heappop(schedule)
            try:
                if action == "cancel":
                    self.loans.cancel_loan(loan_id, at, "Requested by member")
                elif action == "extend":
                    self.loans.extend_loan(loan_id, at)
                else:
                    self.loans.return_book(loan_id, at)
            except LoanError as exc:
                self._reject(exc)

    def _simulate_orders(self) -> None:
        members = list(self.store.members)
        books = list(self.store.books)
        start = self.config.start_date
        max_lines = min(3, self.orders.policy.max_books_per_order)

        for _ in range(self.config.num_orders):
            member = random.choice(members)
            now = start + timedelta(days=random.randint(0, max(0, self.config.days - 7)), hours=random.randint(0, 12))
            items = self._item_gen.generate(books, max_lines=max_lines, max_quantity=1)
            order, payment = self.orders.place_order(
                member.member_id, items, now, random.choice(list(PaymentMethod))
            )

            if random.random() < 0.05:
                self.payments.fail_payment(payment.payment_id, "Card declined", now + timedelta(minutes=1))
                self.orders.cancel_order(order.order_id, "Payment failed", now + timedelta(minutes=2))
                continue

            self.payments.complete_payment(
                payment.payment_id, f"TXN-{payment.payment_id}", now + timedelta(minutes=1)
            )

            if random.random() < self.config.cancel_rate:
                self.orders.cancel_order(order.order_id, "Changed mind", now + timedelta(hours=1))
                continue

            self.orders.confirm_order(
                order.order_id, member.name, self._address_factory.generate(), now + timedelta(hours=2)
            )
            tracking = f"{random.randint(10**11, 10**12 - 1)}"
            self.orders.ship_order(
                order.order_id, tracking, random.choice(COURIERS), now + timedelta(days=1)
            )
            delivery = self.deliveries.find_by_order_id(order.order_id)
            self.deliveries.mark_out_for_delivery(delivery.delivery_id, now + timedelta(days=2))
            self.orders.deliver_order(order.order_id, now + timedelta(days=2, hours=6))

            if random.random() < self.config.refund_rate:
                self._refund(order.order_id, member.name, now + timedelta(days=4))

    def _refund(self, order_id: str, member_name: str, now: datetime) -> None:
        order = self.orders.find_by_id(order_id)
        amount = order.final_amount if random.random() < 0.5 else order.final_amount.divide(2)
        if not amount.is_positive():
            return
        refund = self.refunds.create_refund(
            order_id,
            amount,
            "Damaged on arrival",
            member_name,
            now,
            bank_name="KB Kookmin",
            account_number=f"{random.randint(100000, 999999)}-{random.randint(10, 99)}",
            account_holder=member_name,
        )
        if random.random() < 0.2:
            self.refunds.reject_refund(refund.refund_id, "admin", "Outside return policy", now + timedelta(hours=3))
            return
        self.refunds.approve_refund(refund.refund_id, "admin", now + timedelta(hours=3))
        self.refunds.start_processing(refund.refund_id, now + timedelta(hours=4))
        if random.random() < 0.1:
            self.refunds.fail_refund(refund.refund_id, "Bank account closed", now + timedelta(hours=5))
            return
        self.refunds.complete_refund(refund.refund_id, f"RTX-{refund.refund_id}", now + timedelta(hours=5))
