"""Book catalogue model."""

from dataclasses import dataclass
from datetime import datetime

from bookstore.models.money import Money


@dataclass
class Book:
    """Catalogue entry that can be loaned or sold."""

    book_id: str
    title: str
    author: str
    isbn: str
    price: Money
    publisher: str | None = None
    available: bool = True  # False while on loan
    created_at: datetime | None = None
    deleted_at: datetime | None = None  # Soft delete marker
    version: int = 0

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def is_loanable(self) -> bool:
        return self.available and not self.is_deleted

    def mark_loaned(self) -> None:
        self.available = False

    def mark_returned(self) -> None:
        self.available = True

    def mark_as_deleted(self, now: datetime) -> None:
        self.deleted_at = now

    def restore(self) -> None:
        self.deleted_at = None
