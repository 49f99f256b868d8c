"""Payment model for the commerce domain."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from bookstore.exceptions import (
    InvalidPaymentAmountError,
    InvalidPaymentStateError,
    RefundAmountMismatchError,
)
from bookstore.models.commerce.enums import PaymentMethod, PaymentStatus
from bookstore.models.lifecycle import Lifecycle, LifecycleEntity, StatusChange
from bookstore.models.money import Money

PAYMENT_LIFECYCLE: Lifecycle[PaymentStatus] = Lifecycle(
    {
        PaymentStatus.PENDING: {PaymentStatus.COMPLETED, PaymentStatus.FAILED},
        PaymentStatus.COMPLETED: {
            PaymentStatus.CANCELLED,
            PaymentStatus.PARTIAL_REFUNDED,
            PaymentStatus.REFUNDED,
        },
        PaymentStatus.PARTIAL_REFUNDED: {
            PaymentStatus.PARTIAL_REFUNDED,
            PaymentStatus.REFUNDED,
        },
    }
)

# Statuses in which the money was actually captured
CAPTURED_STATUSES = (
    PaymentStatus.COMPLETED,
    PaymentStatus.PARTIAL_REFUNDED,
    PaymentStatus.REFUNDED,
)


def mask_card_number(card_number: str) -> str:
    """Keep only the last four digits: ``****-****-****-1234``."""
    digits = "".join(ch for ch in card_number if ch.isdigit())
    if len(digits) <= 4:
        return digits
    return "****-****-****-" + digits[-4:]


@dataclass
class Payment(LifecycleEntity):
    """Settlement of an order.

    ``refunded_amount`` never exceeds ``amount``. Status is REFUNDED exactly
    when the two are equal and PARTIAL_REFUNDED while a strictly positive,
    smaller amount has been refunded.
    """

    LIFECYCLE = PAYMENT_LIFECYCLE

    payment_id: str
    order_id: str
    method: PaymentMethod
    amount: Money
    status: PaymentStatus = PaymentStatus.PENDING
    refunded_amount: Money | None = None
    transaction_id: str | None = None
    pg_provider: str | None = None  # Payment gateway
    card_company: str | None = None
    card_number: str | None = None  # Masked on construction
    installment_months: int = 0
    payment_date: datetime | None = None
    failure_reason: str | None = None
    failed_at: datetime | None = None
    cancelled_at: datetime | None = None
    refunded_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    history: list[StatusChange] = field(default_factory=list)
    version: int = 0

    def __post_init__(self) -> None:
        if self.amount.is_negative():
            raise InvalidPaymentAmountError(
                f"Payment amount cannot be negative: {self.amount}",
                entity_id=self.payment_id,
                amount=self.amount,
            )
        if self.refunded_amount is None:
            self.refunded_amount = Money.zero(self.amount.currency)
        if self.card_number:
            self.card_number = mask_card_number(self.card_number)

    def is_refundable(self) -> bool:
        return self.status in (PaymentStatus.COMPLETED, PaymentStatus.PARTIAL_REFUNDED)

    def is_completed(self) -> bool:
        return self.status == PaymentStatus.COMPLETED

    def remaining_refundable(self) -> Money:
        return self.amount.subtract(self.refunded_amount)

    def captured_amount(self) -> Money:
        """What the customer actually paid: ``amount`` once captured, zero before
        capture or after a failure or cancellation."""
        if self.status in CAPTURED_STATUSES:
            return self.amount
        return Money.zero(self.amount.currency)

    def complete(self, transaction_id: str, now: datetime) -> None:
        self._advance(PaymentStatus.COMPLETED, now, lambda: self._invalid_state("complete"))
        self.transaction_id = transaction_id
        self.payment_date = now

    def fail(self, reason: str, now: datetime) -> None:
        self._advance(PaymentStatus.FAILED, now, lambda: self._invalid_state("fail"), reason)
        self.failure_reason = reason
        self.failed_at = now

    def cancel(self, now: datetime) -> None:
        """Cancel a completed payment.

        Raises
        ------
        InvalidPaymentStateError
            Only completed payments can be cancelled.
        """
        self._advance(
            PaymentStatus.CANCELLED,
            now,
            lambda: self._invalid_state("cancel", "Only completed payments can be cancelled"),
        )
        self.cancelled_at = now

    def refund(self, amount: Money, now: datetime) -> None:
        """Book a (partial) refund against this payment.

        The amount is checked before the status, so a refund on a fully
        refunded payment reports the amount overflow.

        Raises
        ------
        RefundAmountMismatchError
            If ``amount`` is not positive or the cumulative refund would
            exceed the paid amount.
        InvalidPaymentStateError
            If the payment is neither COMPLETED nor PARTIAL_REFUNDED.
        """
        if not amount.is_positive():
            raise self._mismatch(amount, f"Refund amount must be positive, got {amount}")
        new_total = self.refunded_amount.add(amount)
        if new_total.is_greater_than(self.amount):
            raise self._mismatch(
                amount,
                f"Refund of {amount} would exceed paid amount {self.amount} "
                f"(already refunded {self.refunded_amount})",
            )
        target = (
            PaymentStatus.REFUNDED
            if new_total == self.amount
            else PaymentStatus.PARTIAL_REFUNDED
        )
        self._advance(target, now, lambda: self._invalid_state("refund"))
        self.refunded_amount = new_total
        self.refunded_at = now

    def _mismatch(self, amount: Money, message: str) -> RefundAmountMismatchError:
        return RefundAmountMismatchError(
            message,
            entity_id=self.payment_id,
            status=self.status,
            transition="refund",
            requested=amount,
            refunded=self.refunded_amount,
            paid=self.amount,
        )

    def _invalid_state(self, transition: str, message: str | None = None) -> InvalidPaymentStateError:
        return InvalidPaymentStateError(
            message or f"Payment {self.payment_id} in status {self.status.value} cannot {transition}",
            entity_id=self.payment_id,
            status=self.status,
            transition=transition,
        )
