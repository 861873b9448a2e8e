"""Pydantic request/response schemas for the REST API.

JSON keys are camelCase on the wire; Python attributes stay snake_case.
Request schemas only check *shape* (types); the business rules live in the
application layer so the CLI and the API report the same messages.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from grocer.application.dto import OrderDTO, OrderStatsDTO, Page, ProductDTO


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Requests -----------------------------------------------------------------


class OrderItemRequest(CamelModel):
    product: str = Field(..., description="Product ID")
    quantity: int


class AddressRequest(CamelModel):
    street: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""


class PlaceOrderRequest(CamelModel):
    items: list[OrderItemRequest] = Field(default_factory=list)
    delivery_address: AddressRequest = Field(default_factory=AddressRequest)
    payment_method: Optional[str] = Field(
        None, description="cash_on_delivery (default), online or card"
    )
    notes: Optional[str] = None


class StatusUpdateRequest(CamelModel):
    status: str


class ProductCreateRequest(CamelModel):
    name: str
    description: str = ""
    price: Decimal
    discount: Decimal = Decimal("0")
    stock: int = 0
    is_available: bool = True
    unit: str
    category: str


class ProductUpdateRequest(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    discount: Optional[Decimal] = None
    stock: Optional[int] = None
    is_available: Optional[bool] = None
    unit: Optional[str] = None
    category: Optional[str] = None


# --- Responses ----------------------------------------------------------------


class FieldErrorSchema(CamelModel):
    field: str
    message: str


class AddressSchema(CamelModel):
    street: str
    city: str
    state: str
    pincode: str


class OrderItemSchema(CamelModel):
    product_id: str
    product_name: str
    quantity: int
    unit_price: float
    line_total: float


class OrderSchema(CamelModel):
    id: int
    user_id: str
    status: str
    items: list[OrderItemSchema]
    subtotal: float
    tax: float
    delivery_fee: float
    total_amount: float
    payment_method: str
    payment_status: str
    delivery_address: AddressSchema
    notes: Optional[str] = None
    created_at: datetime
    estimated_delivery: Optional[datetime] = None
    delivered_at: Optional[datetime] = None


class PaginationSchema(CamelModel):
    current_page: int
    total_pages: int
    total: int
    limit: int
    has_next: bool
    has_prev: bool


class OrderListResponse(CamelModel):
    orders: list[OrderSchema]
    pagination: PaginationSchema


class ProductSchema(CamelModel):
    id: str
    name: str
    description: str
    price: float
    discount: float
    discounted_price: float
    stock: int
    is_available: bool
    unit: str
    category: str
    created_at: datetime


class ProductListResponse(CamelModel):
    products: list[ProductSchema]
    pagination: PaginationSchema


class CategorySchema(CamelModel):
    value: str
    label: str


class StatusStatSchema(CamelModel):
    status: str
    count: int
    total_amount: float


class OrderStatsResponse(CamelModel):
    status_stats: list[StatusStatSchema]
    total_orders: int
    total_revenue: float
    recent_orders: list[OrderSchema]


# --- Mapping ------------------------------------------------------------------


def order_schema(dto: OrderDTO) -> OrderSchema:
    return OrderSchema(
        id=dto.id,
        user_id=dto.user_id,
        status=dto.status,
        items=[
            OrderItemSchema(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                unit_price=float(item.unit_price),
                line_total=float(item.line_total),
            )
            for item in dto.items
        ],
        subtotal=float(dto.subtotal),
        tax=float(dto.tax),
        delivery_fee=float(dto.delivery_fee),
        total_amount=float(dto.total_amount),
        payment_method=dto.payment_method,
        payment_status=dto.payment_status,
        delivery_address=AddressSchema(
            street=dto.delivery_address.street,
            city=dto.delivery_address.city,
            state=dto.delivery_address.state,
            pincode=dto.delivery_address.pincode,
        ),
        notes=dto.notes,
        created_at=dto.created_at,
        estimated_delivery=dto.estimated_delivery,
        delivered_at=dto.delivered_at,
    )


def product_schema(dto: ProductDTO) -> ProductSchema:
    return ProductSchema(
        id=dto.id,
        name=dto.name,
        description=dto.description,
        price=float(dto.price),
        discount=float(dto.discount),
        discounted_price=float(dto.discounted_price),
        stock=dto.stock,
        is_available=dto.is_available,
        unit=dto.unit,
        category=dto.category,
        created_at=dto.created_at,
    )


def pagination_schema(page: Page) -> PaginationSchema:
    return PaginationSchema(
        current_page=page.page,
        total_pages=page.total_pages,
        total=page.total,
        limit=page.limit,
        has_next=page.has_next,
        has_prev=page.has_prev,
    )


def stats_schema(dto: OrderStatsDTO) -> OrderStatsResponse:
    return OrderStatsResponse(
        status_stats=[
            StatusStatSchema(status=s.status, count=s.count, total_amount=float(s.total_amount))
            for s in dto.status_stats
        ],
        total_orders=dto.total_orders,
        total_revenue=float(dto.total_revenue),
        recent_orders=[order_schema(o) for o in dto.recent_orders],
    )
