"""Payment service."""

from __future__ import annotations

from datetime import datetime

from bookstore.models.commerce import Payment, PaymentStatus
from bookstore.models.money import Money
from bookstore.services.base import BaseService


class PaymentService(BaseService):
    """Settle, fail, cancel and refund payments."""

    def find_by_id(self, payment_id: str) -> Payment:
        return self.store.payments.get(payment_id)

    def find_by_order_id(self, order_id: str) -> Payment:
        return self.store.payment_for_order(order_id)

    def find_by_status(self, status: PaymentStatus) -> list[Payment]:
        return self.store.payments_by_status(status)

    def complete_payment(self, payment_id: str, transaction_id: str, now: datetime) -> Payment:
        payment = self.store.payments.get(payment_id)
        with self._transition("payment", payment_id, "complete"):
            payment.complete(transaction_id, now)
        return self._save(payment, "completed", now)

    def fail_payment(self, payment_id: str, reason: str, now: datetime) -> Payment:
        payment = self.store.payments.get(payment_id)
        with self._transition("payment", payment_id, "fail"):
            payment.fail(reason, now)
        return self._save(payment, "failed", now)

    def cancel_payment(self, payment_id: str, now: datetime) -> Payment:
        payment = self.store.payments.get(payment_id)
        with self._transition("payment", payment_id, "cancel"):
            payment.cancel(now)
        return self._save(payment, "cancelled", now)

    def refund_payment(self, payment_id: str, amount: Money, now: datetime) -> Payment:
        """Book a refund directly on the payment, outside the refund workflow."""
        payment = self.store.payments.get(payment_id)
        with self._transition("payment", payment_id, "refund"):
            payment.refund(amount, now)
        return self._save(payment, "refunded", now)

    def _save(self, payment: Payment, action: str, now: datetime) -> Payment:
        self.store.payments.save(payment)
        self._publish("payment", payment.payment_id, action, payment, now)
        return payment
