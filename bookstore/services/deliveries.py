"""Delivery service."""

from __future__ import annotations

from datetime import datetime

from bookstore.models.base import Address
from bookstore.models.commerce import Delivery, DeliveryStatus
from bookstore.services.base import BaseService


class DeliveryService(BaseService):
    """Track shipments and apply courier updates."""

    def find_by_id(self, delivery_id: str) -> Delivery:
        return self.store.deliveries.get(delivery_id)

    def find_by_order_id(self, order_id: str) -> Delivery:
        return self.store.delivery_for_order(order_id)

    def find_by_tracking_number(self, tracking_number: str) -> Delivery:
        return self.store.delivery_by_tracking_number(tracking_number)

    def find_by_status(self, status: DeliveryStatus) -> list[Delivery]:
        return self.store.deliveries_by_status(status)

    def start_shipping(
        self, delivery_id: str, tracking_number: str, courier_company: str, now: datetime
    ) -> Delivery:
        delivery = self.store.deliveries.get(delivery_id)
        with self._transition("delivery", delivery_id, "start shipping"):
            delivery.start_shipping(tracking_number, courier_company, now)
        return self._save(delivery, "shipped", now)

    def mark_out_for_delivery(self, delivery_id: str, now: datetime) -> Delivery:
        delivery = self.store.deliveries.get(delivery_id)
        with self._transition("delivery", delivery_id, "out for delivery"):
            delivery.mark_out_for_delivery(now)
        return self._save(delivery, "out_for_delivery", now)

    def complete_delivery(self, delivery_id: str, now: datetime) -> Delivery:
        delivery = self.store.deliveries.get(delivery_id)
        with self._transition("delivery", delivery_id, "complete"):
            delivery.complete(now)
        return self._save(delivery, "delivered", now)

    def update_delivery_status(
        self,
        delivery_id: str,
        status: DeliveryStatus,
        now: datetime,
        memo: str | None = None,
    ) -> Delivery:
        """Courier or operator override; bypasses the transition table."""
        delivery = self.store.deliveries.get(delivery_id)
        delivery.update_status(status, now, memo)
        return self._save(delivery, status.value.lower(), now)

    def change_address(self, delivery_id: str, address: Address, now: datetime) -> Delivery:
        delivery = self.store.deliveries.get(delivery_id)
        with self._transition("delivery", delivery_id, "change address"):
            delivery.change_address(address, now)
        return self._save(delivery, "address_changed", now)

    def _save(self, delivery: Delivery, action: str, now: datetime) -> Delivery:
        self.store.deliveries.save(delivery)
        self._publish("delivery", delivery.delivery_id, action, delivery, now)
        return delivery
