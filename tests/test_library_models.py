"""Tests for Loan, Book and Member."""

from datetime import datetime, timedelta

import pytest

from bookstore.exceptions import (
    AlreadyReturnedError,
    InvalidLoanPeriodError,
    InvalidLoanStateError,
    LoanError,
    OverdueExtensionError,
)
from bookstore.models.library import Book, Loan, LoanStatus, Member, MembershipType
from bookstore.models.money import Money


def at(day0: datetime, days: float) -> datetime:
    return day0 + timedelta(days=days)


class TestLoanOpen:
    """Tests for opening loans."""

    def test_open_defaults(self, loan: Loan, day0: datetime) -> None:
        """Test a fresh loan is ACTIVE, due in 14 days, with no fee."""
        assert loan.status == LoanStatus.ACTIVE
        assert loan.due_date == at(day0, 14)
        assert loan.overdue_fee == Money.zero()
        assert loan.extension_count == 0
        assert loan.history == []

    @pytest.mark.parametrize("loan_days", [0, -3])
    def test_non_positive_period_rejected(self, day0: datetime, loan_days: int) -> None:
        """Test that the loan period must be positive."""
        with pytest.raises(InvalidLoanPeriodError):
            Loan.open("loan-x", "m", "b", day0, loan_days=loan_days)

    def test_due_before_loan_rejected(self, day0: datetime) -> None:
        """Test that the due date cannot precede the loan date."""
        with pytest.raises(InvalidLoanPeriodError, match="precedes"):
            Loan("loan-x", "m", "b", loan_date=day0, due_date=at(day0, -1))

    def test_custom_fee_currency(self, day0: datetime) -> None:
        """Test that the fee currency follows the daily rate."""
        loan = Loan.open("loan-x", "m", "b", day0, daily_late_fee=Money.of(1, "USD"))
        assert loan.overdue_fee == Money.zero("USD")


class TestLoanOverdue:
    """Tests for overdue detection and fees."""

    def test_day_19_is_overdue_by_five_days(self, loan: Loan, day0: datetime) -> None:
        """Test the status refresh five days after the due date."""
        loan.update_status(at(day0, 19))

        assert loan.status == LoanStatus.OVERDUE
        assert loan.overdue_days(at(day0, 19)) == 5
        assert loan.overdue_fee == Money.of(5000)
        assert loan.last_change.from_status == LoanStatus.ACTIVE

    def test_not_overdue_on_due_date(self, loan: Loan, day0: datetime) -> None:
        """Test the due instant itself is not overdue."""
        assert not loan.is_overdue(at(day0, 14))
        assert loan.overdue_days(at(day0, 14)) == 0

    def test_partial_days_are_truncated(self, loan: Loan, day0: datetime) -> None:
        """Test that only whole days are charged."""
        now = at(day0, 16.9)
        assert loan.is_overdue(now)
        assert loan.overdue_days(now) == 2
        assert loan.calculate_overdue_fee(now) == Money.of(2000)

    def test_update_status_is_idempotent(self, loan: Loan, day0: datetime) -> None:
        """Test that repeated refreshes add no history."""
        loan.update_status(at(day0, 20))
        loan.update_status(at(day0, 21))

        assert len(loan.history) == 1
        assert loan.overdue_fee == Money.of(7000)

    def test_update_status_keeps_updated_at_when_unchanged(self, loan: Loan, day0: datetime) -> None:
        """Test that a refresh with the same outcome leaves updated_at alone."""
        loan.update_status(at(day0, 5))
        assert loan.updated_at == day0

        loan.update_status(at(day0, 20))
        loan.update_status(at(day0, 20.5))
        assert loan.updated_at == at(day0, 20)

        loan.update_status(at(day0, 21))
        assert loan.updated_at == at(day0, 21)
        assert loan.overdue_fee == Money.of(7000)

    def test_update_status_keeps_returned_loan_untouched(self, loan: Loan, day0: datetime) -> None:
        """Test that refreshing a returned loan changes nothing."""
        loan.return_book(at(day0, 16))
        loan.update_status(at(day0, 30))

        assert loan.updated_at == at(day0, 16)
        assert loan.overdue_fee == Money.of(2000)

    def test_update_status_back_to_active_after_extension(self, loan: Loan, day0: datetime) -> None:
        """Test the refresh before the due date keeps the loan ACTIVE."""
        loan.update_status(at(day0, 5))
        assert loan.status == LoanStatus.ACTIVE
        assert loan.history == []

    def test_update_status_ignores_cancelled(self, loan: Loan, day0: datetime) -> None:
        """Test that cancelled loans are never recomputed."""
        loan.cancel_loan(at(day0, 1))
        loan.update_status(at(day0, 30))
        assert loan.status == LoanStatus.CANCELLED
        assert loan.overdue_fee == Money.zero()


class TestLoanReturn:
    """Tests for returning books."""

    def test_on_time_return(self, loan: Loan, day0: datetime) -> None:
        """Test returning before the due date."""
        loan.return_book(at(day0, 10))

        assert loan.status == LoanStatus.RETURNED
        assert loan.return_date == at(day0, 10)
        assert loan.overdue_fee == Money.zero()
        assert loan.is_returned()

    def test_late_return_fixes_fee(self, loan: Loan, day0: datetime) -> None:
        """Test that a late return freezes the fee at return time."""
        loan.update_status(at(day0, 16))
        loan.return_book(at(day0, 17))

        assert loan.status == LoanStatus.RETURNED
        assert loan.overdue_fee == Money.of(3000)
        assert loan.overdue_days(at(day0, 40)) == 0

    def test_double_return(self, loan: Loan, day0: datetime) -> None:
        """Test that returning twice fails."""
        loan.return_book(at(day0, 3))
        with pytest.raises(AlreadyReturnedError) as exc_info:
            loan.return_book(at(day0, 4))
        assert exc_info.value.code == "LOAN_ALREADY_RETURNED"

    def test_return_cancelled_loan(self, loan: Loan, day0: datetime) -> None:
        """Test that a cancelled loan cannot be returned."""
        loan.cancel_loan(at(day0, 1))
        with pytest.raises(InvalidLoanStateError):
            loan.return_book(at(day0, 2))
        assert loan.return_date is None


class TestLoanExtension:
    """Tests for extending loans."""

    def test_extend(self, loan: Loan, day0: datetime) -> None:
        """Test extending pushes the due date."""
        loan.extend_loan(7, at(day0, 12))

        assert loan.due_date == at(day0, 21)
        assert loan.extension_count == 1
        assert loan.status == LoanStatus.ACTIVE

    def test_extend_overdue(self, loan: Loan, day0: datetime) -> None:
        """Test that overdue loans cannot be extended."""
        with pytest.raises(OverdueExtensionError):
            loan.extend_loan(7, at(day0, 15))
        assert loan.due_date == at(day0, 14)

    @pytest.mark.parametrize("days", [0, -1])
    def test_extend_non_positive(self, loan: Loan, day0: datetime, days: int) -> None:
        """Test that the extension must be positive."""
        with pytest.raises(InvalidLoanPeriodError):
            loan.extend_loan(days, at(day0, 1))

    def test_extend_returned(self, loan: Loan, day0: datetime) -> None:
        """Test that returned loans cannot be extended."""
        loan.return_book(at(day0, 2))
        with pytest.raises(AlreadyReturnedError):
            loan.extend_loan(7, at(day0, 3))

    def test_extend_cancelled(self, loan: Loan, day0: datetime) -> None:
        """Test that cancelled loans cannot be extended."""
        loan.cancel_loan(at(day0, 1))
        with pytest.raises(InvalidLoanStateError):
            loan.extend_loan(7, at(day0, 2))


class TestLoanCancel:
    """Tests for cancelling loans."""

    def test_cancel_overdue_waives_fee(self, loan: Loan, day0: datetime) -> None:
        """Test cancelling an overdue loan drops its fee."""
        loan.update_status(at(day0, 18))
        loan.cancel_loan(at(day0, 18), reason="Lost in transit")

        assert loan.status == LoanStatus.CANCELLED
        assert loan.overdue_fee == Money.zero()
        assert loan.last_change.reason == "Lost in transit"
        assert loan.overdue_days(at(day0, 30)) == 0

    def test_cancel_returned(self, loan: Loan, day0: datetime) -> None:
        """Test that returned loans cannot be cancelled."""
        loan.return_book(at(day0, 1))
        with pytest.raises(AlreadyReturnedError):
            loan.cancel_loan(at(day0, 2))

    def test_cancel_twice(self, loan: Loan, day0: datetime) -> None:
        """Test that a cancelled loan cannot be cancelled again."""
        loan.cancel_loan(at(day0, 1))
        with pytest.raises(LoanError) as exc_info:
            loan.cancel_loan(at(day0, 2))
        assert exc_info.value.to_dict()["status"] == "CANCELLED"


class TestBookAndMember:
    """Tests for Book and Member helpers."""

    def test_book_loanable(self, books: list[Book], day0: datetime) -> None:
        """Test availability and soft deletion."""
        book = books[0]
        assert book.is_loanable()
        book.mark_loaned()
        assert not book.is_loanable()
        book.mark_returned()
        book.mark_as_deleted(day0)
        assert book.is_deleted
        assert not book.is_loanable()
        book.restore()
        assert book.is_loanable()

    @pytest.mark.parametrize(
        "membership, active, expected",
        [
            (MembershipType.REGULAR, 4, True),
            (MembershipType.REGULAR, 5, False),
            (MembershipType.PREMIUM, 9, True),
            (MembershipType.PREMIUM, 10, False),
            (MembershipType.SUSPENDED, 0, False),
        ],
    )
    def test_member_can_borrow(
        self, member: Member, membership: MembershipType, active: int, expected: bool
    ) -> None:
        """Test the membership loan limits."""
        member.membership_type = membership
        assert member.can_borrow(active) is expected
