"""Enumerations for the library domain."""

from enum import Enum


class LoanStatus(str, Enum):
    """Loan lifecycle status."""

    ACTIVE = "ACTIVE"
    RETURNED = "RETURNED"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class MembershipType(str, Enum):
    """Membership tier; decides how many books a member may hold."""

    REGULAR = "REGULAR"
    PREMIUM = "PREMIUM"
    SUSPENDED = "SUSPENDED"

    @property
    def max_loans(self) -> int:
        return _MAX_LOANS[self]

    @property
    def is_active(self) -> bool:
        return self is not MembershipType.SUSPENDED


_MAX_LOANS = {
    MembershipType.REGULAR: 5,
    MembershipType.PREMIUM: 10,
    MembershipType.SUSPENDED: 0,
}
