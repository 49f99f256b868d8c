"""Library member model."""

from dataclasses import dataclass
from datetime import datetime

from bookstore.models.library.enums import MembershipType


@dataclass
class Member:
    """Registered member who borrows and buys books."""

    member_id: str
    name: str
    email: str
    membership_type: MembershipType
    join_date: datetime
    phone: str | None = None
    version: int = 0

    @property
    def max_loans(self) -> int:
        return self.membership_type.max_loans

    def can_borrow(self, active_loan_count: int) -> bool:
        """Whether one more loan fits the membership limit."""
        return self.membership_type.is_active and active_loan_count < self.max_loans
