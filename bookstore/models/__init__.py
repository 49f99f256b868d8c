"""Domain models for the bookstore back office."""

from bookstore.models.base import Address, Event
from bookstore.models.lifecycle import Lifecycle, StatusChange
from bookstore.models.money import Money

__all__ = ["Address", "Event", "Lifecycle", "Money", "StatusChange"]
