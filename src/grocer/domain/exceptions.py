"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the API and CLI layers can catch them uniformly and display user-friendly
messages.  Storage failures are deliberately *not* DomainExceptions: they
propagate to the top-level handlers and surface as generic errors.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation message."""

    field: str
    message: str


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""

    def __init__(self, message: str, errors: list[FieldError] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class ProductNotFoundError(EntityNotFoundError):

    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product with ID {product_id} not found")
        self.product_id = product_id


class OrderNotFoundError(EntityNotFoundError):

    def __init__(self, order_id: int) -> None:
        super().__init__(f"Order #{order_id} not found")
        self.order_id = order_id


class ProductUnavailableError(DomainException):

    def __init__(self, product_id: str, product_name: str) -> None:
        super().__init__(f"Product {product_name} is not available")
        self.product_id = product_id
        self.product_name = product_name


class InsufficientStockError(DomainException):
    """Requested quantity exceeds the stock on hand."""

    retryable = False

    def __init__(
        self,
        product_id: str,
        product_name: str,
        requested: int,
        available: int,
    ) -> None:
        super().__init__(
            f"Insufficient stock for {product_name}. Available: {available}"
        )
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available


class StockConflictError(InsufficientStockError):
    """The conditional stock decrement lost a race with a concurrent order.

    The stock check passed, but by the time of the write another order had
    taken the units.  The client may resubmit.
    """

    retryable = True


class AccessDeniedError(DomainException):
    """The caller is not allowed to perform the operation."""


class StorageError(Exception):
    """Unexpected failure of the persistence layer."""


class TransientStorageError(StorageError):
    """The store was busy or locked; the operation may succeed if repeated."""
