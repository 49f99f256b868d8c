"""Commerce domain models."""

from bookstore.models.commerce.delivery import Delivery
from bookstore.models.commerce.enums import (
    DeliveryStatus,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    RefundStatus,
)
from bookstore.models.commerce.order import Order, OrderItem
from bookstore.models.commerce.payment import Payment
from bookstore.models.commerce.refund import Refund

__all__ = [
    "Delivery",
    "DeliveryStatus",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "Refund",
    "RefundStatus",
]
