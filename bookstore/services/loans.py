"""Loan service: borrowing rules around the Loan state machine."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from bookstore.config import LoanPolicyConfig
from bookstore.exceptions import (
    BookAlreadyLoanedError,
    BookNotAvailableError,
    ExtensionLimitExceededError,
    ExtensionTooEarlyError,
    LoanLimitExceededError,
    OverdueLoansExistError,
)
from bookstore.models.library import Loan, LoanStatus
from bookstore.models.money import Money
from bookstore.services.base import BaseService, EventSink, IdFactory
from bookstore.store.backoffice import UNRETURNED_LOAN_STATUSES, BookstoreDataStore

logger = logging.getLogger(__name__)


class LoanService(BaseService):
    """Create, return, extend and cancel loans.

    Member and book availability rules live here; the Loan entity only
    guards its own status.
    """

    def __init__(
        self,
        store: BookstoreDataStore,
        policy: LoanPolicyConfig | None = None,
        sink: EventSink | None = None,
        topic_prefix: str = "dev.bookstore",
        id_factory: IdFactory | None = None,
    ) -> None:
        super().__init__(store, sink, topic_prefix, id_factory)
        self.policy = policy or LoanPolicyConfig()

    def create_loan(
        self,
        member_id: str,
        book_id: str,
        now: datetime,
        loan_days: int | None = None,
    ) -> Loan:
        """Lend a book to a member.

        Parameters
        ----------
        member_id : str
            Borrowing member.
        book_id : str
            Book to lend.
        now : datetime
            Loan date.
        loan_days : int | None
            Loan period; defaults to ``policy.default_loan_days``.

        Returns
        -------
        Loan
            The persisted ACTIVE loan.

        Raises
        ------
        EntityNotFoundError
            If the member or book does not exist.
        BookNotAvailableError
            If the book is deleted or marked unavailable.
        BookAlreadyLoanedError
            If another unreturned loan holds the book.
        LoanLimitExceededError
            If the member is suspended or at the membership limit.
        OverdueLoansExistError
            If the member holds an overdue loan.
        """
        member = self.store.members.get(member_id)
        book = self.store.books.get(book_id)

        with self._transition("loan", f"{member_id}/{book_id}", "create"):
            if not book.is_loanable():
                raise BookNotAvailableError(
                    f"Book {book_id} is not available for loan",
                    transition="create",
                    book_id=book_id,
                )
            if self.store.has_unreturned_loan_for_book(book_id):
                raise BookAlreadyLoanedError(
                    f"Book {book_id} is already on loan",
                    transition="create",
                    book_id=book_id,
                )
            active = len(self.store.active_loans_for_member(member_id))
            if not member.can_borrow(active):
                raise LoanLimitExceededError(
                    f"Member {member_id} ({member.membership_type.value}) holds {active} of "
                    f"{member.max_loans} allowed loans",
                    transition="create",
                    member_id=member_id,
                    active_loans=active,
                    max_loans=member.max_loans,
                )
            overdue = self.store.overdue_loans_for_member(member_id, now)
            if overdue:
                raise OverdueLoansExistError(
                    f"Member {member_id} has {len(overdue)} overdue loan(s)",
                    transition="create",
                    member_id=member_id,
                    overdue_loans=len(overdue),
                )

            loan = Loan.open(
                loan_id=self.new_id("loan"),
                member_id=member_id,
                book_id=book_id,
                now=now,
                loan_days=loan_days if loan_days is not None else self.policy.default_loan_days,
                daily_late_fee=self.policy.daily_late_fee_rate,
            )

        self.store.add_loan(loan)
        book.mark_loaned()
        self.store.books.save(book)
        self._publish("loan", loan.loan_id, "created", loan, now)
        return loan

    def return_book(self, loan_id: str, now: datetime) -> Loan:
        loan = self.store.loans.get(loan_id)
        with self._transition("loan", loan_id, "return"):
            loan.return_book(now)
        self._save_releasing_book(loan)
        if loan.overdue_fee.is_positive():
            logger.info("Loan %s returned late, fee %s", loan_id, loan.overdue_fee)
        self._publish("loan", loan_id, "returned", loan, now)
        return loan

    def extend_loan(self, loan_id: str, now: datetime, days: int | None = None) -> Loan:
        """Extend a loan inside the extension window.

        Raises
        ------
        ExtensionTooEarlyError
            Before ``extension_window_days`` ahead of the due date.
        ExtensionLimitExceededError
            Once ``max_extensions`` extensions were granted.
        AlreadyReturnedError, OverdueExtensionError
            From the Loan itself.
        """
        loan = self.store.loans.get(loan_id)
        with self._transition("loan", loan_id, "extend"):
            if loan.status == LoanStatus.ACTIVE and not loan.is_returned() and not loan.is_overdue(now):
                self._check_extension_policy(loan, now)
            loan.extend_loan(days if days is not None else self.policy.default_extension_days, now)
        self.store.loans.save(loan)
        self._publish("loan", loan_id, "extended", loan, now)
        return loan

    def _check_extension_policy(self, loan: Loan, now: datetime) -> None:
        opens_at = loan.due_date - timedelta(days=self.policy.extension_window_days)
        if now < opens_at:
            raise ExtensionTooEarlyError(
                f"Loan {loan.loan_id} can be extended from {opens_at.isoformat()}",
                entity_id=loan.loan_id,
                status=loan.status,
                transition="extend",
                opens_at=opens_at.isoformat(),
            )
        if loan.extension_count >= self.policy.max_extensions:
            raise ExtensionLimitExceededError(
                f"Loan {loan.loan_id} was already extended {loan.extension_count} time(s)",
                entity_id=loan.loan_id,
                status=loan.status,
                transition="extend",
                max_extensions=self.policy.max_extensions,
            )

    def cancel_loan(self, loan_id: str, now: datetime, reason: str | None = None) -> Loan:
        loan = self.store.loans.get(loan_id)
        with self._transition("loan", loan_id, "cancel"):
            loan.cancel_loan(now, reason)
        self._save_releasing_book(loan)
        self._publish("loan", loan_id, "cancelled", loan, now)
        return loan

    def refresh_statuses(self, now: datetime) -> list[Loan]:
        """Recompute every unreturned loan; returns those whose status or fee changed."""
        changed = []
        for loan in self.store.loans.find(lambda candidate: candidate.status in UNRETURNED_LOAN_STATUSES):
            before = (loan.status, loan.overdue_fee)
            loan.update_status(now)
            if (loan.status, loan.overdue_fee) != before:
                self.store.loans.save(loan)
                changed.append(loan)
                if loan.status != before[0]:
                    self._publish("loan", loan.loan_id, loan.status.value.lower(), loan, now)
        logger.info("Refreshed loan statuses at %s: %d changed", now.isoformat(), len(changed))
        return changed

    def get_overdue_fee(self, loan_id: str, now: datetime) -> Money:
        """Fee owed as of ``now``; fixed once the loan is returned."""
        loan = self.store.loans.get(loan_id)
        if loan.is_returned() or loan.status == LoanStatus.CANCELLED:
            return loan.overdue_fee
        return loan.calculate_overdue_fee(now)

    def can_member_loan(self, member_id: str, now: datetime) -> bool:
        member = self.store.members.get(member_id)
        active = len(self.store.active_loans_for_member(member_id))
        return member.can_borrow(active) and not self.store.overdue_loans_for_member(member_id, now)

    def is_book_available_for_loan(self, book_id: str) -> bool:
        book = self.store.books.get(book_id)
        return book.is_loanable() and not self.store.has_unreturned_loan_for_book(book_id)

    def find_by_id(self, loan_id: str) -> Loan:
        return self.store.loans.get(loan_id)

    def find_by_member(self, member_id: str) -> list[Loan]:
        self.store.members.get(member_id)
        return self.store.loans_for_member(member_id)

    def find_overdue(self, now: datetime) -> list[Loan]:
        return self.store.overdue_loans(now)

    def _save_releasing_book(self, loan: Loan) -> None:
        book = self.store.books.get(loan.book_id)
        book.mark_returned()
        self.store.save_all(loan, book)
