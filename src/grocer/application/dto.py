"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the API/CLI and application layers without
exposing domain internals to the outside world.  Money leaves the
application layer already rounded to cents.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Generic, TypeVar

from grocer.domain.model.order import Order
from grocer.domain.model.product import Product

T = TypeVar("T")


# --- Inputs -------------------------------------------------------------------


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: what the customer asked for (product id + quantity)."""

    product_id: str
    quantity: int


@dataclass(frozen=True)
class AddressSpec:
    street: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""


@dataclass(frozen=True)
class PlaceOrderCommand:
    items: list[OrderItemSpec]
    delivery_address: AddressSpec
    payment_method: str | None = None
    notes: str | None = None


# --- Outputs ------------------------------------------------------------------


@dataclass(frozen=True)
class OrderLineItemDTO:
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class OrderDTO:
    id: int
    user_id: str
    status: str
    items: list[OrderLineItemDTO]
    subtotal: Decimal
    tax: Decimal
    delivery_fee: Decimal
    total_amount: Decimal
    payment_method: str
    payment_status: str
    delivery_address: AddressSpec
    notes: str | None
    created_at: datetime
    estimated_delivery: datetime | None
    delivered_at: datetime | None


@dataclass(frozen=True)
class ProductDTO:
    id: str
    name: str
    description: str
    price: Decimal
    discount: Decimal
    discounted_price: Decimal
    stock: int
    is_available: bool
    unit: str
    category: str
    created_at: datetime


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a listing plus the numbers needed to navigate it."""

    items: list[T]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit)

    @property
    def has_next(self) -> bool:
        return self.page * self.limit < self.total

    @property
    def has_prev(self) -> bool:
        return self.page > 1


@dataclass(frozen=True)
class StatusStatDTO:
    status: str
    count: int
    total_amount: Decimal


@dataclass(frozen=True)
class OrderStatsDTO:
    status_stats: list[StatusStatDTO]
    total_orders: int
    total_revenue: Decimal
    recent_orders: list[OrderDTO] = field(default_factory=list)


# --- Mapping ------------------------------------------------------------------


def to_order_dto(order: Order) -> OrderDTO:
    address = order.delivery_address
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        user_id=order.user_id,
        status=order.status.value,
        items=[
            OrderLineItemDTO(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity.value,
                unit_price=item.unit_price.rounded(),
                line_total=item.line_total.rounded(),
            )
            for item in order.items
        ],
        subtotal=order.subtotal.rounded(),
        tax=order.tax.rounded(),
        delivery_fee=order.delivery_fee.rounded(),
        total_amount=order.total_amount.rounded(),
        payment_method=order.payment_method.value,
        payment_status=order.payment_status,
        delivery_address=AddressSpec(
            street=address.street,
            city=address.city,
            state=address.state,
            pincode=address.pincode,
        ),
        notes=order.notes,
        created_at=order.created_at,
        estimated_delivery=order.estimated_delivery,
        delivered_at=order.delivered_at,
    )


def to_product_dto(product: Product) -> ProductDTO:
    return ProductDTO(
        id=product.id,
        name=product.name,
        description=product.description,
        price=product.price.rounded(),
        discount=product.discount,
        discounted_price=product.discounted_price.rounded(),
        stock=product.stock,
        is_available=product.is_available,
        unit=product.unit.value,
        category=product.category.value,
        created_at=product.created_at,
    )
