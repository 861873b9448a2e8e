"""Unit tests for the Order aggregate and its business rules."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from grocer.domain.exceptions import ValidationError
from grocer.domain.model.order import (
    MAX_LINE_ITEMS,
    Order,
    OrderLineItem,
    OrderStatus,
    PaymentMethod,
)
from grocer.domain.model.value_objects import DeliveryAddress, Money, Quantity
from grocer.domain.service.pricing import PricingCalculator

ADDRESS = DeliveryAddress("12 MG Road", "Pune", "MH", "411001")
NOW = datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)


def _make_item(name: str = "Rice", qty: int = 1, price: str = "15.00") -> OrderLineItem:
    """Helper to build a valid line item."""
    return OrderLineItem(
        product_id="1",
        product_name=name,
        quantity=Quantity(qty),
        unit_price=Money.of(price),
    )


def _create(items=None, **kwargs) -> Order:
    return Order.create(
        user_id=kwargs.pop("user_id", "u1"),
        items=items if items is not None else [_make_item()],
        delivery_address=ADDRESS,
        pricing=PricingCalculator(),
        created_at=kwargs.pop("created_at", NOW),
        **kwargs,
    )


class TestOrderCreation:

    def test_happy_path(self):
        order = _create([_make_item(qty=2, price="90")])
        assert order.user_id == "u1"
        assert order.status == OrderStatus.PENDING
        assert order.payment_method == PaymentMethod.CASH_ON_DELIVERY
        assert order.payment_status == "pending"
        assert order.subtotal == Money.of("180")
        assert order.tax == Money.of("9")
        assert order.delivery_fee == Money.of("50")
        assert order.total_amount == Money.of("239")

    def test_id_is_none_for_new_orders(self):
        assert _create().id is None  # assigned by repository

    def test_subtotal_sums_line_items(self):
        order = _create([
            _make_item("Rice", qty=3, price="15.00"),
            _make_item("Dal", qty=2, price="25.00"),
        ])
        assert order.subtotal == Money.of("95.00")
        assert order.item_count == 5

    def test_estimated_delivery_is_two_days_out(self):
        assert _create().estimated_delivery == NOW + timedelta(days=2)

    def test_empty_items_rejected(self):
        with pytest.raises(ValidationError, match="at least one item"):
            _create([])

    def test_too_many_lines_rejected(self):
        with pytest.raises(ValidationError, match="Maximum"):
            _create([_make_item() for _ in range(MAX_LINE_ITEMS + 1)])

    def test_long_notes_rejected(self):
        with pytest.raises(ValidationError, match="200 characters"):
            _create(notes="x" * 201)

    def test_notes_at_limit_allowed(self):
        assert _create(notes="x" * 200).notes == "x" * 200

    def test_missing_user_rejected(self):
        with pytest.raises(ValidationError, match="belong to a user"):
            _create(user_id="")


class TestOrderStatus:

    def test_any_status_may_follow_any_other(self):
        order = _create()
        order.change_status(OrderStatus.SHIPPED)
        order.change_status(OrderStatus.PENDING)
        assert order.status == OrderStatus.PENDING

    def test_delivered_sets_timestamp(self):
        order = _create()
        when = NOW + timedelta(days=1)
        order.change_status(OrderStatus.DELIVERED, now=when)
        assert order.delivered_at == when

    def test_other_statuses_leave_timestamp_alone(self):
        order = _create()
        order.change_status(OrderStatus.CANCELLED, now=NOW)
        assert order.delivered_at is None

    def test_status_change_keeps_totals(self):
        order = _create()
        before = (order.subtotal, order.tax, order.delivery_fee, order.total_amount)
        order.change_status(OrderStatus.CONFIRMED)
        assert (order.subtotal, order.tax, order.delivery_fee, order.total_amount) == before

    def test_terminal_statuses(self):
        assert OrderStatus.DELIVERED.is_terminal
        assert OrderStatus.CANCELLED.is_terminal
        assert not OrderStatus.SHIPPED.is_terminal

    def test_parse_rejects_unknown(self):
        with pytest.raises(ValidationError, match="Invalid status"):
            OrderStatus.parse("lost")

    def test_parse_is_case_sensitive(self):
        with pytest.raises(ValidationError):
            OrderStatus.parse("PENDING")


class TestOrderLineItem:

    def test_line_total(self):
        assert _make_item(qty=3, price="33.33").line_total.amount == Decimal("99.99")

    def test_belongs_to(self):
        order = _create()
        assert order.belongs_to("u1")
        assert not order.belongs_to("u2")
