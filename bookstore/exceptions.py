"""Custom exception hierarchy for the bookstore back office.

Every lifecycle guard violation is raised as a subclass of
:class:`LifecycleError`. Each entity owns one tagged base class
(``LoanError``, ``OrderError``, ...) whose ``kind`` attribute is a member of
that entity's error-kind enum, so callers can either catch the specific
subclass or catch the entity error and switch on ``kind``.
"""

from enum import Enum
from typing import Any


class BookstoreError(Exception):
    """Base exception for all bookstore errors."""


class EntityNotFoundError(BookstoreError):
    """Raised when an identifier does not resolve to a stored entity."""

    def __init__(self, entity_type: str, entity_id: str) -> None:
        super().__init__(f"{entity_type.capitalize()} {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ReferentialIntegrityError(EntityNotFoundError):
    """Raised when a foreign key reference is violated."""


class DuplicateEntityError(BookstoreError):
    """Raised when an entity is added twice under the same identifier."""

    def __init__(self, entity_type: str, entity_id: str) -> None:
        super().__init__(f"{entity_type.capitalize()} {entity_id} already exists")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ConcurrencyConflictError(BookstoreError):
    """Raised when a save is based on a stale version of an entity."""

    def __init__(self, entity_type: str, entity_id: str, expected: int, actual: int) -> None:
        super().__init__(
            f"{entity_type.capitalize()} {entity_id} was modified concurrently "
            f"(saving version {expected}, stored version {actual})"
        )
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected = expected
        self.actual = actual


class ConfigurationError(BookstoreError):
    """Raised when configuration is invalid or missing."""


class SinkError(BookstoreError):
    """Raised when a sink operation fails."""


class InvalidMoneyError(BookstoreError, ValueError):
    """Raised when a monetary value cannot be constructed or combined."""


class CurrencyMismatchError(InvalidMoneyError):
    """Raised when two amounts with different currencies are combined."""

    def __init__(self, left: str, right: str) -> None:
        super().__init__(f"Currency mismatch: {left} vs {right}")
        self.left = left
        self.right = right


class InvalidAddressError(BookstoreError, ValueError):
    """Raised when an address is missing its street line."""


# ---------------------------------------------------------------------------
# Lifecycle errors
# ---------------------------------------------------------------------------


class LifecycleError(BookstoreError):
    """Base class for guard violations raised by entity state machines.

    Parameters
    ----------
    message : str
        Human readable description.
    entity_id : str | None
        Identifier of the entity whose transition was rejected.
    status : Enum | None
        Status of the entity when the transition was attempted.
    transition : str | None
        Name of the rejected transition (e.g. ``"cancel"``).
    **context : Any
        Additional structured fields (amounts, limits, ...).
    """

    entity: str = "entity"
    kind: Enum

    def __init__(
        self,
        message: str,
        *,
        entity_id: str | None = None,
        status: Enum | None = None,
        transition: str | None = None,
        **context: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.entity_id = entity_id
        self.status = status
        self.transition = transition
        self.context = context

    @property
    def code(self) -> str:
        """Stable machine-readable error code."""
        return f"{self.entity.upper()}_{self.kind.value}"

    def to_dict(self) -> dict[str, Any]:
        """Structured representation for upstream error translation."""
        return {
            "code": self.code,
            "entity": self.entity,
            "kind": self.kind.value,
            "message": self.message,
            "entity_id": self.entity_id,
            "status": self.status.value if self.status is not None else None,
            "transition": self.transition,
            "context": {k: str(v) for k, v in self.context.items()},
        }


# Loan ---------------------------------------------------------------------


class LoanErrorKind(str, Enum):
    """Reasons a loan operation can be rejected."""

    ALREADY_RETURNED = "ALREADY_RETURNED"
    OVERDUE_EXTENSION = "OVERDUE_EXTENSION"
    INVALID_STATE = "INVALID_STATE"
    INVALID_PERIOD = "INVALID_PERIOD"
    BOOK_NOT_AVAILABLE = "BOOK_NOT_AVAILABLE"
    BOOK_ALREADY_LOANED = "BOOK_ALREADY_LOANED"
    LOAN_LIMIT_EXCEEDED = "LOAN_LIMIT_EXCEEDED"
    OVERDUE_LOANS_EXIST = "OVERDUE_LOANS_EXIST"
    EXTENSION_TOO_EARLY = "EXTENSION_TOO_EARLY"
    EXTENSION_LIMIT_EXCEEDED = "EXTENSION_LIMIT_EXCEEDED"


class LoanError(LifecycleError):
    """Base error for loan operations."""

    entity = "loan"
    kind = LoanErrorKind.INVALID_STATE


class AlreadyReturnedError(LoanError):
    """Raised when returning, extending or cancelling a returned loan."""

    kind = LoanErrorKind.ALREADY_RETURNED


class OverdueExtensionError(LoanError):
    """Raised when extending a loan past its due date."""

    kind = LoanErrorKind.OVERDUE_EXTENSION


class InvalidLoanStateError(LoanError):
    """Raised when a loan is in the wrong status for the operation."""

    kind = LoanErrorKind.INVALID_STATE


class InvalidLoanPeriodError(LoanError):
    """Raised for non-positive loan or extension periods."""

    kind = LoanErrorKind.INVALID_PERIOD


class BookNotAvailableError(LoanError):
    kind = LoanErrorKind.BOOK_NOT_AVAILABLE


class BookAlreadyLoanedError(LoanError):
    kind = LoanErrorKind.BOOK_ALREADY_LOANED


class LoanLimitExceededError(LoanError):
    kind = LoanErrorKind.LOAN_LIMIT_EXCEEDED


class OverdueLoansExistError(LoanError):
    kind = LoanErrorKind.OVERDUE_LOANS_EXIST


class ExtensionTooEarlyError(LoanError):
    kind = LoanErrorKind.EXTENSION_TOO_EARLY


class ExtensionLimitExceededError(LoanError):
    kind = LoanErrorKind.EXTENSION_LIMIT_EXCEEDED


# Order --------------------------------------------------------------------


class OrderErrorKind(str, Enum):
    """Reasons an order operation can be rejected."""

    INVALID_STATE = "INVALID_STATE"
    CANCELLATION_NOT_ALLOWED = "CANCELLATION_NOT_ALLOWED"
    EMPTY_ITEMS = "EMPTY_ITEMS"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    ITEM_LIMIT_EXCEEDED = "ITEM_LIMIT_EXCEEDED"
    REFUNDS_EXCEED_TOTAL = "REFUNDS_EXCEED_TOTAL"


class OrderError(LifecycleError):
    """Base error for order operations."""

    entity = "order"
    kind = OrderErrorKind.INVALID_STATE


class InvalidOrderStateError(OrderError):
    kind = OrderErrorKind.INVALID_STATE


class OrderCancellationNotAllowedError(OrderError):
    kind = OrderErrorKind.CANCELLATION_NOT_ALLOWED


class EmptyOrderItemsError(OrderError):
    kind = OrderErrorKind.EMPTY_ITEMS


class InvalidOrderAmountError(OrderError):
    kind = OrderErrorKind.INVALID_AMOUNT


class OrderItemLimitExceededError(OrderError):
    kind = OrderErrorKind.ITEM_LIMIT_EXCEEDED


# Payment ------------------------------------------------------------------


class PaymentErrorKind(str, Enum):
    """Reasons a payment operation can be rejected."""

    INVALID_STATE = "INVALID_STATE"
    REFUND_AMOUNT_MISMATCH = "REFUND_AMOUNT_MISMATCH"
    INVALID_AMOUNT = "INVALID_AMOUNT"


class PaymentError(LifecycleError):
    """Base error for payment operations."""

    entity = "payment"
    kind = PaymentErrorKind.INVALID_STATE


class InvalidPaymentStateError(PaymentError):
    kind = PaymentErrorKind.INVALID_STATE


class RefundAmountMismatchError(PaymentError):
    """Raised when a refund would push the refunded total past the paid amount."""

    kind = PaymentErrorKind.REFUND_AMOUNT_MISMATCH


class InvalidPaymentAmountError(PaymentError):
    kind = PaymentErrorKind.INVALID_AMOUNT


# Delivery -----------------------------------------------------------------


class DeliveryErrorKind(str, Enum):
    """Reasons a delivery operation can be rejected."""

    INVALID_STATE = "INVALID_STATE"
    ADDRESS_CHANGE_NOT_ALLOWED = "ADDRESS_CHANGE_NOT_ALLOWED"


class DeliveryError(LifecycleError):
    """Base error for delivery operations."""

    entity = "delivery"
    kind = DeliveryErrorKind.INVALID_STATE


class InvalidDeliveryStateError(DeliveryError):
    kind = DeliveryErrorKind.INVALID_STATE


class AddressChangeNotAllowedError(DeliveryError):
    kind = DeliveryErrorKind.ADDRESS_CHANGE_NOT_ALLOWED


# Refund -------------------------------------------------------------------


class RefundErrorKind(str, Enum):
    """Reasons a refund operation can be rejected."""

    INVALID_STATE = "INVALID_STATE"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    TOTAL_EXCEEDS_PAID = "TOTAL_EXCEEDS_PAID"


class RefundError(LifecycleError):
    """Base error for refund operations."""

    entity = "refund"
    kind = RefundErrorKind.INVALID_STATE


class InvalidRefundStateError(RefundError):
    kind = RefundErrorKind.INVALID_STATE


class InvalidRefundAmountError(RefundError):
    kind = RefundErrorKind.INVALID_AMOUNT


# Refund totals ------------------------------------------------------------
#
# Both are refund amount mismatches, tagged with the entity that raised them
# so that ``except RefundError`` and ``except OrderError`` see their own.


class RefundTotalExceedsPaidError(RefundAmountMismatchError, RefundError):
    """Raised when approving or completing a refund would push the order's
    completed refunds past the captured payment."""

    entity = "refund"
    kind = RefundErrorKind.TOTAL_EXCEEDS_PAID


class RefundsExceedOrderTotalError(RefundAmountMismatchError, OrderError):
    """Raised when cumulative refunds exceed an order's final amount."""

    entity = "order"
    kind = OrderErrorKind.REFUNDS_EXCEED_TOTAL
