"""Base models shared across domains."""

from dataclasses import dataclass, field, replace
from datetime import datetime

from bookstore.exceptions import InvalidAddressError


@dataclass(frozen=True)
class Address:
    """Delivery address.

    - street: road or lot address line (required)
    - zip_code: 5-digit postal code
    - detail: building, floor, unit
    """

    street: str
    zip_code: str | None = None
    detail: str | None = None

    def __post_init__(self) -> None:
        if not self.street or not self.street.strip():
            raise InvalidAddressError("Street address is required")

    @property
    def full_address(self) -> str:
        """Single line rendering: ``(zip) street detail``."""
        parts = []
        if self.zip_code:
            parts.append(f"({self.zip_code})")
        parts.append(self.street)
        if self.detail:
            parts.append(self.detail)
        return " ".join(parts)

    def with_detail(self, detail: str | None) -> "Address":
        return replace(self, detail=detail)

    def with_zip_code(self, zip_code: str | None) -> "Address":
        return replace(self, zip_code=zip_code)


@dataclass
class Event:
    """Standard event envelope for streaming."""

    event_id: str
    event_type: str  # entity.action (e.g., loan.returned)
    event_time: datetime
    source: str  # Service/system that generated
    subject: str  # Entity ID affected
    data: dict
    metadata: dict = field(default_factory=dict)
