"""Loan model for the library domain."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from bookstore.exceptions import (
    AlreadyReturnedError,
    InvalidLoanPeriodError,
    InvalidLoanStateError,
    OverdueExtensionError,
)
from bookstore.models.library.enums import LoanStatus
from bookstore.models.lifecycle import Lifecycle, LifecycleEntity, StatusChange
from bookstore.models.money import Money

DEFAULT_LOAN_DAYS = 14
DEFAULT_DAILY_LATE_FEE = Money.of(1000)

LOAN_LIFECYCLE: Lifecycle[LoanStatus] = Lifecycle(
    {
        LoanStatus.ACTIVE: {LoanStatus.RETURNED, LoanStatus.OVERDUE, LoanStatus.CANCELLED},
        LoanStatus.OVERDUE: {LoanStatus.RETURNED, LoanStatus.CANCELLED},
    }
)


@dataclass
class Loan(LifecycleEntity):
    """A book lent to a member.

    The overdue fee is a flat ``daily_late_fee`` per whole day past
    ``due_date``. The rate is captured when the loan is opened so later
    policy changes do not rewrite running loans.
    """

    LIFECYCLE = LOAN_LIFECYCLE

    loan_id: str
    member_id: str
    book_id: str
    loan_date: datetime
    due_date: datetime
    status: LoanStatus = LoanStatus.ACTIVE
    return_date: datetime | None = None
    daily_late_fee: Money = DEFAULT_DAILY_LATE_FEE
    overdue_fee: Money | None = None
    extension_count: int = 0
    updated_at: datetime | None = None
    history: list[StatusChange] = field(default_factory=list)
    version: int = 0

    def __post_init__(self) -> None:
        if self.due_date < self.loan_date:
            raise InvalidLoanPeriodError(
                f"Due date {self.due_date.isoformat()} precedes loan date {self.loan_date.isoformat()}",
                entity_id=self.loan_id,
                status=self.status,
            )
        if self.overdue_fee is None:
            self.overdue_fee = Money.zero(self.daily_late_fee.currency)

    @classmethod
    def open(
        cls,
        loan_id: str,
        member_id: str,
        book_id: str,
        now: datetime,
        loan_days: int = DEFAULT_LOAN_DAYS,
        daily_late_fee: Money = DEFAULT_DAILY_LATE_FEE,
    ) -> Loan:
        """Start a new ACTIVE loan due ``loan_days`` after ``now``."""
        if loan_days <= 0:
            raise InvalidLoanPeriodError(
                f"Loan period must be positive, got {loan_days} days",
                entity_id=loan_id,
                transition="open",
                loan_days=loan_days,
            )
        return cls(
            loan_id=loan_id,
            member_id=member_id,
            book_id=book_id,
            loan_date=now,
            due_date=now + timedelta(days=loan_days),
            daily_late_fee=daily_late_fee,
            updated_at=now,
        )

    # Derived values ----------------------------------------------------------

    def is_returned(self) -> bool:
        return self.return_date is not None

    def is_overdue(self, now: datetime) -> bool:
        return (
            self.return_date is None
            and self.status != LoanStatus.CANCELLED
            and now > self.due_date
        )

    def overdue_days(self, now: datetime) -> int:
        """Whole days past the due date; 0 once returned or cancelled."""
        if self.return_date is not None or self.status == LoanStatus.CANCELLED:
            return 0
        return max(0, (now - self.due_date).days)

    def calculate_overdue_fee(self, now: datetime) -> Money:
        return self.daily_late_fee.multiply(self.overdue_days(now))

    # Transitions -------------------------------------------------------------

    def return_book(self, now: datetime) -> None:
        """Close the loan, fixing the overdue fee as of ``now``.

        Raises
        ------
        AlreadyReturnedError
            If the loan was already returned.
        InvalidLoanStateError
            If the loan was cancelled.
        """
        if self.return_date is not None:
            raise self._already_returned("return")
        fee = self.calculate_overdue_fee(now)
        self._advance(LoanStatus.RETURNED, now, lambda: self._invalid_state("return"))
        self.return_date = now
        self.overdue_fee = fee

    def update_status(self, now: datetime) -> None:
        """Recompute status and fee as of ``now``; safe to call on every read."""
        if self.status == LoanStatus.CANCELLED:
            return
        if self.return_date is not None:
            status, fee = LoanStatus.RETURNED, self.overdue_fee
        elif now > self.due_date:
            status, fee = LoanStatus.OVERDUE, self.calculate_overdue_fee(now)
        else:
            status, fee = LoanStatus.ACTIVE, Money.zero(self.daily_late_fee.currency)
        if status == self.status and fee == self.overdue_fee:
            return
        self._force(status, now)
        self.overdue_fee = fee

    def extend_loan(self, additional_days: int, now: datetime) -> None:
        """Push the due date back by ``additional_days``.

        Raises
        ------
        AlreadyReturnedError
            If the loan was already returned.
        InvalidLoanStateError
            If the loan was cancelled.
        OverdueExtensionError
            If ``now`` is past the due date.
        InvalidLoanPeriodError
            If ``additional_days`` is not positive.
        """
        if self.return_date is not None:
            raise self._already_returned("extend")
        if self.status == LoanStatus.CANCELLED:
            raise self._invalid_state("extend")
        if now > self.due_date:
            raise OverdueExtensionError(
                f"Loan {self.loan_id} is overdue and cannot be extended",
                entity_id=self.loan_id,
                status=self.status,
                transition="extend",
                due_date=self.due_date.isoformat(),
            )
        if additional_days <= 0:
            raise InvalidLoanPeriodError(
                f"Extension must be positive, got {additional_days} days",
                entity_id=self.loan_id,
                status=self.status,
                transition="extend",
                additional_days=additional_days,
            )
        self.due_date = self.due_date + timedelta(days=additional_days)
        self.extension_count += 1
        self.updated_at = now

    def cancel_loan(self, now: datetime, reason: str | None = None) -> None:
        """Cancel an unreturned loan, overdue ones included; the fee is waived."""
        if self.return_date is not None:
            raise self._already_returned("cancel")
        self._advance(LoanStatus.CANCELLED, now, lambda: self._invalid_state("cancel"), reason)
        self.overdue_fee = Money.zero(self.daily_late_fee.currency)

    # Errors ------------------------------------------------------------------

    def _already_returned(self, transition: str) -> AlreadyReturnedError:
        return AlreadyReturnedError(
            f"Loan {self.loan_id} was already returned and cannot {transition}",
            entity_id=self.loan_id,
            status=self.status,
            transition=transition,
        )

    def _invalid_state(self, transition: str) -> InvalidLoanStateError:
        return InvalidLoanStateError(
            f"Loan {self.loan_id} in status {self.status.value} cannot {transition}",
            entity_id=self.loan_id,
            status=self.status,
            transition=transition,
        )
