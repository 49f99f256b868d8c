"""Order models for the commerce domain."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence

from bookstore.exceptions import (
    EmptyOrderItemsError,
    InvalidOrderAmountError,
    InvalidOrderStateError,
    OrderCancellationNotAllowedError,
    RefundsExceedOrderTotalError,
)
from bookstore.models.commerce.enums import OrderStatus
from bookstore.models.lifecycle import Lifecycle, LifecycleEntity, StatusChange
from bookstore.models.money import Money

ORDER_LIFECYCLE: Lifecycle[OrderStatus] = Lifecycle(
    {
        OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
        OrderStatus.CONFIRMED: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
        OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    }
)


@dataclass(frozen=True)
class OrderItem:
    """Order line: one book, a quantity and the unit price at checkout."""

    book_id: str
    quantity: int
    unit_price: Money

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise InvalidOrderAmountError(
                f"Quantity must be at least 1, got {self.quantity}",
                transition="add_item",
                book_id=self.book_id,
            )

    @property
    def total_price(self) -> Money:
        return self.unit_price.multiply(self.quantity)


@dataclass
class Order(LifecycleEntity):
    """Purchase order.

    ``final_amount`` is ``total_amount - discount_amount`` and is never
    negative: a discount larger than the total is rejected at creation.
    """

    LIFECYCLE = ORDER_LIFECYCLE

    order_id: str
    member_id: str
    total_amount: Money
    discount_amount: Money | None = None
    status: OrderStatus = OrderStatus.PENDING
    items: list[OrderItem] = field(default_factory=list)
    coupon_code: str | None = None
    order_date: datetime | None = None
    confirmed_at: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    updated_at: datetime | None = None
    history: list[StatusChange] = field(default_factory=list)
    version: int = 0

    def __post_init__(self) -> None:
        if self.discount_amount is None:
            self.discount_amount = Money.zero(self.total_amount.currency)
        if self.total_amount.is_negative():
            raise InvalidOrderAmountError(
                f"Order total cannot be negative: {self.total_amount}",
                entity_id=self.order_id,
                total=self.total_amount,
            )
        if self.discount_amount.is_negative():
            raise InvalidOrderAmountError(
                f"Discount cannot be negative: {self.discount_amount}",
                entity_id=self.order_id,
                discount=self.discount_amount,
            )
        if self.discount_amount.is_greater_than(self.total_amount):
            raise InvalidOrderAmountError(
                f"Discount {self.discount_amount} exceeds order total {self.total_amount}",
                entity_id=self.order_id,
                total=self.total_amount,
                discount=self.discount_amount,
            )

    @classmethod
    def place(
        cls,
        order_id: str,
        member_id: str,
        items: Sequence[OrderItem],
        now: datetime,
        discount: Money | None = None,
        coupon_code: str | None = None,
    ) -> Order:
        """Create a PENDING order whose total is the sum of its lines."""
        if not items:
            raise EmptyOrderItemsError(
                "Order must contain at least one item",
                entity_id=order_id,
                transition="place",
            )
        currency = items[0].unit_price.currency
        total = Money.total((item.total_price for item in items), currency)
        return cls(
            order_id=order_id,
            member_id=member_id,
            total_amount=total,
            discount_amount=discount,
            items=list(items),
            coupon_code=coupon_code,
            order_date=now,
            updated_at=now,
        )

    @property
    def final_amount(self) -> Money:
        return self.total_amount.subtract(self.discount_amount)

    def net_amount(self, total_refunded: Money) -> Money:
        """Final amount less cumulative refunds (supplied by the caller)."""
        if total_refunded.is_greater_than(self.final_amount):
            raise RefundsExceedOrderTotalError(
                f"Refunded {total_refunded} exceeds order amount {self.final_amount}",
                entity_id=self.order_id,
                status=self.status,
                refunded=total_refunded,
                final_amount=self.final_amount,
            )
        return self.final_amount.subtract(total_refunded)

    def book_ids(self) -> list[str]:
        return [item.book_id for item in self.items]

    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def is_cancellable(self) -> bool:
        return self.can_transition_to(OrderStatus.CANCELLED)

    def confirm(self, now: datetime) -> None:
        self._advance(OrderStatus.CONFIRMED, now, lambda: self._invalid_state("confirm"))
        self.confirmed_at = now

    def ship(self, now: datetime) -> None:
        self._advance(OrderStatus.SHIPPED, now, lambda: self._invalid_state("start shipping"))
        self.shipped_at = now

    def deliver(self, now: datetime) -> None:
        self._advance(OrderStatus.DELIVERED, now, lambda: self._invalid_state("mark delivered"))
        self.delivered_at = now

    def cancel(self, reason: str, now: datetime) -> None:
        """Cancel a PENDING or CONFIRMED order.

        Raises
        ------
        OrderCancellationNotAllowedError
            If the order already shipped, was delivered or was cancelled.
        """
        self._advance(OrderStatus.CANCELLED, now, self._cancellation_not_allowed, reason)
        self.cancelled_at = now
        self.cancellation_reason = reason

    def _invalid_state(self, transition: str) -> InvalidOrderStateError:
        return InvalidOrderStateError(
            f"Order {self.order_id} in status {self.status.value} cannot {transition}",
            entity_id=self.order_id,
            status=self.status,
            transition=transition,
        )

    def _cancellation_not_allowed(self) -> OrderCancellationNotAllowedError:
        return OrderCancellationNotAllowedError(
            f"Order {self.order_id} in status {self.status.value} can no longer be cancelled",
            entity_id=self.order_id,
            status=self.status,
            transition="cancel",
        )
