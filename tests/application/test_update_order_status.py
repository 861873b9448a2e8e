"""Tests for the UpdateOrderStatus use case."""

import logging
from datetime import datetime, timezone

import pytest

from grocer.application.context import RequestContext, Role
from grocer.application.update_order_status import UpdateOrderStatusHandler
from grocer.domain.exceptions import AccessDeniedError, OrderNotFoundError, ValidationError
from grocer.domain.model.order import Order, OrderLineItem, OrderStatus
from grocer.domain.model.value_objects import DeliveryAddress, Money, Quantity
from grocer.domain.service.pricing import PricingCalculator
from tests.fakes import FakeOrderRepository

NOW = datetime(2024, 3, 4, 18, 30, tzinfo=timezone.utc)
ADMIN = RequestContext("boss", Role.ADMIN)


def _setup() -> tuple[UpdateOrderStatusHandler, FakeOrderRepository, Order]:
    repo = FakeOrderRepository()
    order = Order.create(
        user_id="u1",
        items=[OrderLineItem("1", "Rice", Quantity(2), Money.of("90"))],
        delivery_address=DeliveryAddress("12 MG Road", "Pune", "MH", "411001"),
        pricing=PricingCalculator(),
    )
    repo.save(order)
    return UpdateOrderStatusHandler(repo, clock=lambda: NOW), repo, order


class TestUpdateOrderStatus:

    def test_moves_status_forward(self):
        handler, repo, order = _setup()
        dto = handler.handle(order.id, "confirmed", ADMIN)
        assert dto.status == "confirmed"
        assert repo.get_by_id(order.id).status == OrderStatus.CONFIRMED

    def test_delivered_stamps_time(self):
        handler, _, order = _setup()
        dto = handler.handle(order.id, "delivered", ADMIN)
        assert dto.delivered_at == NOW

    def test_totals_unchanged(self):
        handler, _, order = _setup()
        dto = handler.handle(order.id, "shipped", ADMIN)
        assert str(dto.total_amount) == "239.00"

    def test_skipping_and_going_backwards_allowed(self):
        handler, _, order = _setup()
        handler.handle(order.id, "shipped", ADMIN)
        assert handler.handle(order.id, "pending", ADMIN).status == "pending"

    def test_leaving_terminal_status_is_logged(self, caplog):
        handler, _, order = _setup()
        handler.handle(order.id, "cancelled", ADMIN)
        with caplog.at_level(logging.WARNING):
            dto = handler.handle(order.id, "pending", ADMIN)
        assert dto.status == "pending"
        assert "terminal status cancelled" in caplog.text

    def test_invalid_status(self):
        handler, _, order = _setup()
        with pytest.raises(ValidationError, match="Invalid status"):
            handler.handle(order.id, "teleported", ADMIN)

    def test_missing_order(self):
        handler, _, _ = _setup()
        with pytest.raises(OrderNotFoundError):
            handler.handle(99, "confirmed", ADMIN)

    def test_customer_is_denied(self):
        handler, repo, order = _setup()
        with pytest.raises(AccessDeniedError, match="Admin access required"):
            handler.handle(order.id, "cancelled", RequestContext("u1"))
        assert repo.get_by_id(order.id).status == OrderStatus.PENDING
