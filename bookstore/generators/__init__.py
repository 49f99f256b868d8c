"""Faker based generators for members, books, order lines and addresses."""

from bookstore.generators.address import AddressFactory
from bookstore.generators.base import BaseGenerator
from bookstore.generators.books import BookGenerator, OrderItemGenerator
from bookstore.generators.members import MemberGenerator

__all__ = [
    "AddressFactory",
    "BaseGenerator",
    "BookGenerator",
    "MemberGenerator",
    "OrderItemGenerator",
]
