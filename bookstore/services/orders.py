"""Order service: checkout and fulfilment across Order, Payment and Delivery."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from bookstore.config import OrderPolicyConfig
from bookstore.exceptions import EntityNotFoundError, OrderItemLimitExceededError
from bookstore.models.base import Address
from bookstore.models.commerce import (
    Delivery,
    Order,
    OrderItem,
    Payment,
    PaymentMethod,
    PaymentStatus,
)
from bookstore.models.money import Money
from bookstore.services.base import BaseService, EventSink, IdFactory
from bookstore.store.backoffice import BookstoreDataStore

logger = logging.getLogger(__name__)


class OrderService(BaseService):
    """Place, confirm, ship, deliver and cancel orders."""

    def __init__(
        self,
        store: BookstoreDataStore,
        policy: OrderPolicyConfig | None = None,
        sink: EventSink | None = None,
        topic_prefix: str = "dev.bookstore",
        id_factory: IdFactory | None = None,
    ) -> None:
        super().__init__(store, sink, topic_prefix, id_factory)
        self.policy = policy or OrderPolicyConfig()

    def place_order(
        self,
        member_id: str,
        items: Sequence[OrderItem],
        now: datetime,
        method: PaymentMethod,
        discount: Money | None = None,
        coupon_code: str | None = None,
    ) -> tuple[Order, Payment]:
        """Create a PENDING order and its PENDING payment.

        When ``discount`` is omitted the policy's default discount rate is
        applied to the total.

        Raises
        ------
        EntityNotFoundError
            If the member or any book does not exist or the book was deleted.
        OrderItemLimitExceededError
            If more than ``max_books_per_order`` copies are ordered.
        EmptyOrderItemsError, InvalidOrderAmountError
            From the Order itself.
        """
        self.store.members.get(member_id)
        for item in items:
            book = self.store.books.get(item.book_id)
            if book.is_deleted:
                raise EntityNotFoundError("book", item.book_id)

        order_id = self.new_id("order")
        quantity = sum(item.quantity for item in items)
        with self._transition("order", order_id, "place"):
            if quantity > self.policy.max_books_per_order:
                raise OrderItemLimitExceededError(
                    f"Order holds {quantity} books, limit is {self.policy.max_books_per_order}",
                    entity_id=order_id,
                    transition="place",
                    quantity=quantity,
                    limit=self.policy.max_books_per_order,
                )
            if discount is None and items and self.policy.default_discount_rate > 0:
                subtotal = Money.total(
                    (item.total_price for item in items), items[0].unit_price.currency
                )
                discount = subtotal.multiply(self.policy.default_discount_rate)
            order = Order.place(order_id, member_id, items, now, discount, coupon_code)

        payment = Payment(
            payment_id=self.new_id("payment"),
            order_id=order.order_id,
            method=method,
            amount=order.final_amount,
            created_at=now,
            updated_at=now,
        )
        self.store.add_order(order)
        self.store.add_payment(payment)
        self._publish("order", order.order_id, "placed", order, now)
        return order, payment

    def confirm_order(
        self,
        order_id: str,
        recipient_name: str,
        address: Address,
        now: datetime,
        phone_number: str | None = None,
    ) -> tuple[Order, Delivery]:
        """Confirm a PENDING order and open its delivery in PREPARING."""
        order = self.store.orders.get(order_id)
        with self._transition("order", order_id, "confirm"):
            order.confirm(now)
        delivery = Delivery(
            delivery_id=self.new_id("delivery"),
            order_id=order_id,
            recipient_name=recipient_name,
            address=address,
            phone_number=phone_number,
            created_at=now,
            updated_at=now,
        )
        self.store.orders.save(order)
        self.store.add_delivery(delivery)
        self._publish("order", order_id, "confirmed", order, now)
        return order, delivery

    def ship_order(
        self, order_id: str, tracking_number: str, courier_company: str, now: datetime
    ) -> tuple[Order, Delivery]:
        order = self.store.orders.get(order_id)
        delivery = self.store.delivery_for_order(order_id)
        with self._transition("order", order_id, "ship"):
            order.ship(now)
            delivery.start_shipping(tracking_number, courier_company, now)
        self.store.save_all(order, delivery)
        self._publish("order", order_id, "shipped", order, now)
        return order, delivery

    def deliver_order(self, order_id: str, now: datetime) -> tuple[Order, Delivery]:
        order = self.store.orders.get(order_id)
        delivery = self.store.delivery_for_order(order_id)
        with self._transition("order", order_id, "deliver"):
            order.deliver(now)
            delivery.complete(now)
        self.store.save_all(order, delivery)
        self._publish("order", order_id, "delivered", order, now)
        return order, delivery

    def cancel_order(self, order_id: str, reason: str, now: datetime) -> Order:
        """Cancel the order and settle its payment.

        A completed payment is cancelled; a pending one is marked failed.
        """
        order = self.store.orders.get(order_id)
        payment = self.store.payment_for_order(order_id)
        with self._transition("order", order_id, "cancel"):
            order.cancel(reason, now)
            if payment.status == PaymentStatus.COMPLETED:
                payment.cancel(now)
            elif payment.status == PaymentStatus.PENDING:
                payment.fail(f"Order cancelled: {reason}", now)
        self.store.save_all(order, payment)
        self._publish("order", order_id, "cancelled", order, now)
        return order

    def find_by_id(self, order_id: str) -> Order:
        return self.store.orders.get(order_id)

    def find_by_member(self, member_id: str) -> list[Order]:
        self.store.members.get(member_id)
        return self.store.orders_for_member(member_id)

    def net_amount(self, order_id: str) -> Money:
        """Final amount less completed refunds."""
        order = self.store.orders.get(order_id)
        refunded = self.store.total_completed_refunds_for_order(
            order_id, order.final_amount.currency
        )
        return order.net_amount(refunded)
