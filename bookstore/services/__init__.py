"""Back office services: load an entity, run its transition, save, publish."""

from bookstore.services.base import BaseService, EventSink, sequential_ids, uuid_ids
from bookstore.services.deliveries import DeliveryService
from bookstore.services.loans import LoanService
from bookstore.services.orders import OrderService
from bookstore.services.payments import PaymentService
from bookstore.services.refunds import RefundService

__all__ = [
    "BaseService",
    "DeliveryService",
    "EventSink",
    "LoanService",
    "OrderService",
    "PaymentService",
    "RefundService",
    "sequential_ids",
    "uuid_ids",
]
