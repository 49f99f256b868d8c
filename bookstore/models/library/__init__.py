"""Library domain models."""

from bookstore.models.library.book import Book
from bookstore.models.library.enums import LoanStatus, MembershipType
from bookstore.models.library.loan import Loan
from bookstore.models.library.member import Member

__all__ = [
    "Book",
    "Loan",
    "LoanStatus",
    "Member",
    "MembershipType",
]
