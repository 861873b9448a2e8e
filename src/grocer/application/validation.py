"""Boundary validation for incoming order requests.

Runs once, before any storage access, and reports every problem it finds
as a list of field-level messages instead of stopping at the first one.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from grocer.application.dto import PlaceOrderCommand
from grocer.domain.exceptions import FieldError
from grocer.domain.model.order import MAX_LINE_ITEMS, MAX_NOTES_LENGTH, PaymentMethod
from grocer.domain.model.value_objects import PINCODE_PATTERN

_PAYMENT_METHODS = {m.value for m in PaymentMethod}


@dataclass(frozen=True)
class ValidationResult:
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def validate_place_order(command: PlaceOrderCommand) -> ValidationResult:
    errors: list[FieldError] = []

    if not command.items:
        errors.append(FieldError("items", "Order must contain at least one item"))
    elif len(command.items) > MAX_LINE_ITEMS:
        errors.append(FieldError("items", f"Maximum {MAX_LINE_ITEMS} items per order"))

    for i, item in enumerate(command.items):
        if not item.product_id or not str(item.product_id).strip():
            errors.append(FieldError(f"items[{i}].product", "Invalid product ID"))
        qty = item.quantity
        if isinstance(qty, bool) or not isinstance(qty, int) or qty < 1:
            errors.append(FieldError(f"items[{i}].quantity", "Quantity must be at least 1"))

    address = command.delivery_address
    if not (address.street or "").strip():
        errors.append(FieldError("deliveryAddress.street", "Street address is required"))
    if not (address.city or "").strip():
        errors.append(FieldError("deliveryAddress.city", "City is required"))
    if not (address.state or "").strip():
        errors.append(FieldError("deliveryAddress.state", "State is required"))
    if not PINCODE_PATTERN.match(address.pincode or ""):
        errors.append(
            FieldError("deliveryAddress.pincode", "Please provide a valid 6-digit pincode")
        )

    if command.payment_method is not None and command.payment_method not in _PAYMENT_METHODS:
        errors.append(FieldError("paymentMethod", "Invalid payment method"))

    if command.notes is not None and len(command.notes) > MAX_NOTES_LENGTH:
        errors.append(
            FieldError("notes", f"Notes cannot exceed {MAX_NOTES_LENGTH} characters")
        )

    return ValidationResult(errors)
