"""Refund request model for the commerce domain."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from bookstore.exceptions import (
    InvalidRefundAmountError,
    InvalidRefundStateError,
    RefundTotalExceedsPaidError,
)
from bookstore.models.commerce.enums import RefundStatus
from bookstore.models.lifecycle import Lifecycle, LifecycleEntity, StatusChange
from bookstore.models.money import Money

REFUND_LIFECYCLE: Lifecycle[RefundStatus] = Lifecycle(
    {
        RefundStatus.REQUESTED: {RefundStatus.APPROVED, RefundStatus.REJECTED},
        RefundStatus.APPROVED: {RefundStatus.PROCESSING},
        RefundStatus.PROCESSING: {RefundStatus.COMPLETED, RefundStatus.FAILED},
    }
)


@dataclass
class Refund(LifecycleEntity):
    """Refund request against an order.

    A refund cannot see its siblings. ``approve`` and ``complete`` accept the
    order's completed-refund total and paid amount so the caller can enforce
    that the sum of completed refunds never exceeds what was paid.
    """

    LIFECYCLE = REFUND_LIFECYCLE

    refund_id: str
    order_id: str
    amount: Money
    reason: str
    requested_by: str
    requested_at: datetime
    status: RefundStatus = RefundStatus.REQUESTED
    bank_name: str | None = None
    account_number: str | None = None
    account_holder: str | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejected_by: str | None = None
    rejection_reason: str | None = None
    rejected_at: datetime | None = None
    processing_started_at: datetime | None = None
    completed_at: datetime | None = None
    failed_at: datetime | None = None
    processing_memo: str | None = None
    refund_transaction_id: str | None = None
    updated_at: datetime | None = None
    history: list[StatusChange] = field(default_factory=list)
    version: int = 0

    @classmethod
    def request(
        cls,
        refund_id: str,
        order_id: str,
        amount: Money,
        reason: str,
        requested_by: str,
        now: datetime,
        bank_name: str | None = None,
        account_number: str | None = None,
        account_holder: str | None = None,
    ) -> Refund:
        if not amount.is_positive():
            raise InvalidRefundAmountError(
                f"Refund amount must be positive, got {amount}",
                entity_id=refund_id,
                transition="request",
                amount=amount,
            )
        return cls(
            refund_id=refund_id,
            order_id=order_id,
            amount=amount,
            reason=reason,
            requested_by=requested_by,
            requested_at=now,
            bank_name=bank_name,
            account_number=account_number,
            account_holder=account_holder,
            updated_at=now,
        )

    # Predicates --------------------------------------------------------------

    def is_pending(self) -> bool:
        return self.status == RefundStatus.REQUESTED

    def is_approved(self) -> bool:
        return self.status == RefundStatus.APPROVED

    def is_rejected(self) -> bool:
        return self.status == RefundStatus.REJECTED

    def is_completed(self) -> bool:
        return self.status == RefundStatus.COMPLETED

    def can_cancel(self) -> bool:
        return self.status in (RefundStatus.REQUESTED, RefundStatus.APPROVED)

    # Transitions -------------------------------------------------------------

    def approve(
        self,
        approver: str,
        now: datetime,
        already_refunded: Money | None = None,
        paid_amount: Money | None = None,
    ) -> None:
        if self.can_transition_to(RefundStatus.APPROVED):
            self._check_total(already_refunded, paid_amount, "approve")
        self._advance(
            RefundStatus.APPROVED,
            now,
            lambda: self._invalid_state("approve", "Only requested refunds can be approved"),
        )
        self.approved_by = approver
        self.approved_at = now

    def reject(self, rejecter: str, reason: str, now: datetime) -> None:
        self._advance(
            RefundStatus.REJECTED,
            now,
            lambda: self._invalid_state("reject", "Only requested refunds can be rejected"),
            reason,
        )
        self.rejected_by = rejecter
        self.rejection_reason = reason
        self.rejected_at = now

    def start_processing(self, now: datetime) -> None:
        self._advance(
            RefundStatus.PROCESSING,
            now,
            lambda: self._invalid_state("start processing", "Only approved refunds can start processing"),
        )
        self.processing_started_at = now

    def complete(
        self,
        transaction_id: str,
        now: datetime,
        already_refunded: Money | None = None,
        paid_amount: Money | None = None,
    ) -> None:
        if self.can_transition_to(RefundStatus.COMPLETED):
            self._check_total(already_refunded, paid_amount, "complete")
        self._advance(
            RefundStatus.COMPLETED,
            now,
            lambda: self._invalid_state("complete", "Only processing refunds can be completed"),
        )
        self.refund_transaction_id = transaction_id
        self.completed_at = now

    def fail(self, memo: str, now: datetime) -> None:
        """Administrative transition to FAILED when downstream processing breaks."""
        self._force(RefundStatus.FAILED, now, memo)
        self.processing_memo = memo
        self.failed_at = now

    def _check_total(
        self,
        already_refunded: Money | None,
        paid_amount: Money | None,
        transition: str,
    ) -> None:
        if already_refunded is None or paid_amount is None:
            return
        new_total = already_refunded.add(self.amount)
        if new_total.is_greater_than(paid_amount):
            raise RefundTotalExceedsPaidError(
                f"Refund {self.refund_id} of {self.amount} would bring refunds for order "
                f"{self.order_id} to {new_total}, above the paid amount {paid_amount}",
                entity_id=self.refund_id,
                status=self.status,
                transition=transition,
                already_refunded=already_refunded,
                paid=paid_amount,
            )

    def _invalid_state(self, transition: str, message: str) -> InvalidRefundStateError:
        return InvalidRefundStateError(
            message,
            entity_id=self.refund_id,
            status=self.status,
            transition=transition,
        )
