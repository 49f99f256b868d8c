"""Book and order line generators."""

from __future__ import annotations

import random
from datetime import datetime
from typing import Sequence

from bookstore.generators.base import BaseGenerator
from bookstore.models.commerce import OrderItem
from bookstore.models.library import Book


class BookGenerator(BaseGenerator[Book]):
    """Generate synthetic catalogue entries."""

    # List prices in KRW, rounded to 100
    PRICE_RANGE = (8_000, 45_000)

    def generate(self, created_at: datetime | None = None) -> Book:
        """Generate a single book."""
        return Book(
            book_id=self.fake.uuid4(),
            title=self.fake.sentence(nb_words=3).rstrip("."),
            author=self.fake.name(),
            isbn=self.fake.isbn13(),
            price=self.price(*self.PRICE_RANGE),
            publisher=self.fake.company(),
            created_at=created_at,
        )


class OrderItemGenerator(BaseGenerator[list[OrderItem]]):
    """Pick order lines from a catalogue."""

    def generate(self, books: Sequence[Book], max_lines: int = 3, max_quantity: int = 2) -> list[OrderItem]:
        """Generate between one and ``max_lines`` distinct order lines.

        Parameters
        ----------
        books : Sequence[Book]
            Catalogue to choose from.
        max_lines : int
            Upper bound on distinct books.
        max_quantity : int
            Upper bound on copies per book.

        Returns
        -------
        list[OrderItem]
            Order lines priced at each book's list price.
        """
        picked = random.sample(list(books), k=min(len(books), random.randint(1, max_lines)))
        return [
            OrderItem(
                book_id=book.book_id,
                quantity=random.randint(1, max_quantity),
                unit_price=book.price,
            )
            for book in picked
        ]
