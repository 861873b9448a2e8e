"""Order aggregate, the core of the domain.

The Order is an aggregate root that owns its line items.  Items, prices and
totals are fixed by ``Order.create()``; afterwards only the status (and the
delivered timestamp that goes with it) may change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from grocer.domain.exceptions import ValidationError
from grocer.domain.model.value_objects import DeliveryAddress, Money, Quantity
from grocer.domain.service.pricing import PricingCalculator


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PACKED = "packed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)

    @staticmethod
    def parse(value: str) -> OrderStatus:
        try:
            return OrderStatus(value)
        except ValueError:
            raise ValidationError(f"Invalid status: {value!r}") from None


class PaymentMethod(Enum):
    CASH_ON_DELIVERY = "cash_on_delivery"
    ONLINE = "online"
    CARD = "card"


@dataclass(frozen=True)
class OrderLineItem:
    """Captures the discounted price of a product at order-creation time."""

    product_id: str
    product_name: str
    quantity: Quantity
    unit_price: Money  # locked at order-creation time

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value


# ---------------------------------------------------------------------------
# Constants for business rules
# ---------------------------------------------------------------------------
MAX_LINE_ITEMS = 50
MAX_NOTES_LENGTH = 200


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use the ``Order.create()`` factory for new orders; it prices the items
    and enforces all business rules.  The ``__init__`` is intentionally simple
    so the repository can reconstitute persisted orders without re-validating.
    """

    id: int | None
    user_id: str
    items: tuple[OrderLineItem, ...]
    subtotal: Money
    tax: Money
    delivery_fee: Money
    total_amount: Money
    delivery_address: DeliveryAddress
    payment_method: PaymentMethod = PaymentMethod.CASH_ON_DELIVERY
    payment_status: str = "pending"
    status: OrderStatus = OrderStatus.PENDING
    notes: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    estimated_delivery: datetime | None = None
    delivered_at: datetime | None = None

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        user_id: str,
        items: list[OrderLineItem],
        delivery_address: DeliveryAddress,
        pricing: PricingCalculator,
        payment_method: PaymentMethod = PaymentMethod.CASH_ON_DELIVERY,
        notes: str | None = None,
        created_at: datetime | None = None,
    ) -> Order:
        """Create a new order, enforcing all invariants."""
        if not user_id:
            raise ValidationError("Order must belong to a user")

        if not items:
            raise ValidationError("Order must contain at least one item")

        if len(items) > MAX_LINE_ITEMS:
            raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per order")

        if notes is not None and len(notes) > MAX_NOTES_LENGTH:
            raise ValidationError(
                f"Notes cannot exceed {MAX_NOTES_LENGTH} characters"
            )

        subtotal = Money.zero()
        for item in items:
            subtotal = subtotal + pricing.line_total(item.unit_price, item.quantity)
        totals = pricing.order_totals(subtotal)

        created_at = created_at or datetime.now(timezone.utc)
        return Order(
            id=None,
            user_id=user_id,
            items=tuple(items),
            subtotal=totals.subtotal,
            tax=totals.tax,
            delivery_fee=totals.delivery_fee,
            total_amount=totals.total,
            delivery_address=delivery_address,
            payment_method=payment_method,
            notes=notes,
            created_at=created_at,
            estimated_delivery=created_at
            + timedelta(days=pricing.policy.delivery_estimate_days),
        )

    # --- State transitions ----------------------------------------------------

    def change_status(self, new_status: OrderStatus, now: datetime | None = None) -> None:
        """Move the order to ``new_status``.

        Any status may follow any other.  Reaching DELIVERED stamps
        ``delivered_at``; no other field is touched.
        """
        self.status = new_status
        if new_status == OrderStatus.DELIVERED:
            self.delivered_at = now or datetime.now(timezone.utc)

    # --- Computed properties --------------------------------------------------

    @property
    def item_count(self) -> int:
        return sum(item.quantity.value for item in self.items)

    def belongs_to(self, user_id: str) -> bool:
        return self.user_id == user_id
