"""Refund service: reconciles refund requests against the order's payment."""

from __future__ import annotations

import logging
from datetime import datetime

from bookstore.models.commerce import Refund, RefundStatus
from bookstore.models.money import Money
from bookstore.services.base import BaseService

logger = logging.getLogger(__name__)


class RefundService(BaseService):
    """Drive refunds from request to completion.

    Refunds cannot see each other, so approval and completion receive the
    order's completed-refund total and the captured payment amount from the
    store. Completion also books the amount on the payment; refund and
    payment are saved together with :meth:`BookstoreDataStore.save_all`
    and the events go out only after that commit.
    """

    def create_refund(
        self,
        order_id: str,
        amount: Money,
        reason: str,
        requested_by: str,
        now: datetime,
        bank_name: str | None = None,
        account_number: str | None = None,
        account_holder: str | None = None,
    ) -> Refund:
        """Open a REQUESTED refund for an existing order."""
        self.store.orders.get(order_id)
        refund_id = self.new_id("refund")
        with self._transition("refund", refund_id, "request"):
            refund = Refund.request(
                refund_id,
                order_id,
                amount,
                reason,
                requested_by,
                now,
                bank_name=bank_name,
                account_number=account_number,
                account_holder=account_holder,
            )
        self.store.add_refund(refund)
        self._publish("refund", refund_id, "requested", refund, now)
        return refund

    def find_by_id(self, refund_id: str) -> Refund:
        return self.store.refunds.get(refund_id)

    def find_by_order_id(self, order_id: str) -> list[Refund]:
        return self.store.refunds_for_order(order_id)

    def find_by_status(self, status: RefundStatus) -> list[Refund]:
        return self.store.refunds_by_status(status)

    def find_pending_refunds(self) -> list[Refund]:
        return self.find_by_status(RefundStatus.REQUESTED)

    def get_total_refunded_amount(self, order_id: str) -> Money:
        order = self.store.orders.get(order_id)
        return self.store.total_completed_refunds_for_order(
            order_id, order.final_amount.currency
        )

    def approve_refund(self, refund_id: str, approver: str, now: datetime) -> Refund:
        refund = self.store.refunds.get(refund_id)
        payment = self.store.payment_for_order(refund.order_id)
        already = self.get_total_refunded_amount(refund.order_id)
        with self._transition("refund", refund_id, "approve"):
            refund.approve(
                approver, now, already_refunded=already, paid_amount=payment.captured_amount()
            )
        return self._save(refund, "approved", now)

    def reject_refund(self, refund_id: str, rejecter: str, reason: str, now: datetime) -> Refund:
        refund = self.store.refunds.get(refund_id)
        with self._transition("refund", refund_id, "reject"):
            refund.reject(rejecter, reason, now)
        return self._save(refund, "rejected", now)

    def start_processing(self, refund_id: str, now: datetime) -> Refund:
        refund = self.store.refunds.get(refund_id)
        with self._transition("refund", refund_id, "start processing"):
            refund.start_processing(now)
        return self._save(refund, "processing", now)

    def complete_refund(self, refund_id: str, transaction_id: str, now: datetime) -> Refund:
        refund = self.store.refunds.get(refund_id)
        payment = self.store.payment_for_order(refund.order_id)
        already = self.get_total_refunded_amount(refund.order_id)
        with self._transition("refund", refund_id, "complete"):
            refund.complete(
                transaction_id,
                now,
                already_refunded=already,
                paid_amount=payment.captured_amount(),
            )
            payment.refund(refund.amount, now)
        self.store.save_all(refund, payment)
        self._publish("payment", payment.payment_id, "refunded", payment, now)
        self._publish("refund", refund_id, "completed", refund, now)
        return refund

    def fail_refund(self, refund_id: str, memo: str, now: datetime) -> Refund:
        refund = self.store.refunds.get(refund_id)
        refund.fail(memo, now)
        logger.warning("Refund %s failed: %s", refund_id, memo)
        return self._save(refund, "failed", now)

    def _save(self, refund: Refund, action: str, now: datetime) -> Refund:
        self.store.refunds.save(refund)
        self._publish("refund", refund.refund_id, action, refund, now)
        return refund
