"""Delivery model for the commerce domain."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from bookstore.exceptions import AddressChangeNotAllowedError, InvalidDeliveryStateError
from bookstore.models.base import Address
from bookstore.models.commerce.enums import DeliveryStatus
from bookstore.models.lifecycle import Lifecycle, LifecycleEntity, StatusChange

DEFAULT_DELIVERY_DAYS = 3

DELIVERY_LIFECYCLE: Lifecycle[DeliveryStatus] = Lifecycle(
    {
        DeliveryStatus.PREPARING: {DeliveryStatus.IN_TRANSIT},
        DeliveryStatus.IN_TRANSIT: {
            DeliveryStatus.OUT_FOR_DELIVERY,
            DeliveryStatus.DELIVERED,
            DeliveryStatus.FAILED,
            DeliveryStatus.RETURNED,
        },
        DeliveryStatus.OUT_FOR_DELIVERY: {
            DeliveryStatus.DELIVERED,
            DeliveryStatus.FAILED,
            DeliveryStatus.RETURNED,
        },
        DeliveryStatus.FAILED: {DeliveryStatus.RETURNED},
    }
)


@dataclass
class Delivery(LifecycleEntity):
    """Shipment of a confirmed order; the address is editable only while PREPARING."""

    LIFECYCLE = DELIVERY_LIFECYCLE

    delivery_id: str
    order_id: str
    recipient_name: str
    address: Address
    phone_number: str | None = None
    status: DeliveryStatus = DeliveryStatus.PREPARING
    tracking_number: str | None = None
    courier_company: str | None = None
    delivery_memo: str | None = None
    shipped_at: datetime | None = None
    out_for_delivery_at: datetime | None = None
    estimated_delivery_at: datetime | None = None
    delivered_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    history: list[StatusChange] = field(default_factory=list)
    version: int = 0

    def can_change_address(self) -> bool:
        return self.status == DeliveryStatus.PREPARING

    def is_delivered(self) -> bool:
        return self.status == DeliveryStatus.DELIVERED

    def start_shipping(
        self,
        tracking_number: str,
        courier_company: str,
        now: datetime,
        eta_days: int = DEFAULT_DELIVERY_DAYS,
    ) -> None:
        self._advance(
            DeliveryStatus.IN_TRANSIT,
            now,
            lambda: self._invalid_state(
                "start shipping", "Shipping can only start while the delivery is being prepared"
            ),
        )
        self.tracking_number = tracking_number
        self.courier_company = courier_company
        self.shipped_at = now
        self.estimated_delivery_at = now + timedelta(days=eta_days)

    def mark_out_for_delivery(self, now: datetime) -> None:
        self._advance(
            DeliveryStatus.OUT_FOR_DELIVERY,
            now,
            lambda: self._invalid_state("go out for delivery"),
        )
        self.out_for_delivery_at = now

    def complete(self, now: datetime) -> None:
        self._advance(DeliveryStatus.DELIVERED, now, lambda: self._invalid_state("complete"))
        self.delivered_at = now

    def update_status(self, new_status: DeliveryStatus, now: datetime, memo: str | None = None) -> None:
        """Administrative override; no guard is applied."""
        self._force(new_status, now, memo)
        if memo:
            self.delivery_memo = memo

    def change_address(self, address: Address, now: datetime) -> None:
        """Replace the address.

        Raises
        ------
        AddressChangeNotAllowedError
            Once the parcel has left the warehouse.
        """
        if not self.can_change_address():
            raise AddressChangeNotAllowedError(
                f"Address of delivery {self.delivery_id} cannot change in status {self.status.value}",
                entity_id=self.delivery_id,
                status=self.status,
                transition="change address",
            )
        self.address = address
        self.updated_at = now

    def change_address_parts(
        self,
        zip_code: str | None,
        street: str,
        detail: str | None,
        now: datetime,
    ) -> None:
        self.change_address(Address(street=street, zip_code=zip_code, detail=detail), now)

    def _invalid_state(self, transition: str, message: str | None = None) -> InvalidDeliveryStateError:
        return InvalidDeliveryStateError(
            message or f"Delivery {self.delivery_id} in status {self.status.value} cannot {transition}",
            entity_id=self.delivery_id,
            status=self.status,
            transition=transition,
        )
