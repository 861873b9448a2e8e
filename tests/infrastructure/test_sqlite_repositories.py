"""Tests for the SQLite repositories against a real database file."""

import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from grocer.application.context import RequestContext
from grocer.application.dto import AddressSpec, OrderItemSpec, PlaceOrderCommand
from grocer.application.place_order import PlaceOrderHandler
from grocer.domain.exceptions import InsufficientStockError, StockConflictError
from grocer.domain.model.order import Order, OrderLineItem, OrderStatus, PaymentMethod
from grocer.domain.model.product import Category, Product, Unit
from grocer.domain.model.value_objects import DeliveryAddress, Money, Quantity
from grocer.domain.repository.order_repository import OrderQuery
from grocer.domain.repository.product_repository import ProductQuery
from grocer.infrastructure.bootstrap import build_container
from grocer.infrastructure.persistence.sqlite_database import SqliteDatabase
from grocer.infrastructure.persistence.sqlite_product_repository import (
    SqliteProductRepository,
)

NOW = datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)


def _order(container, user_id="u1", minutes=0, qty=2, price="90") -> Order:
    return Order.create(
        user_id=user_id,
        items=[OrderLineItem("1", "Basmati Rice", Quantity(qty), Money.of(price))],
        delivery_address=DeliveryAddress("12 MG Road", "Pune", "MH", "411001"),
        pricing=container.pricing,
        payment_method=PaymentMethod.ONLINE,
        notes="Ring twice",
        created_at=NOW + timedelta(minutes=minutes),
    )


class TestSqliteProductRepository:

    def test_round_trip_keeps_decimals(self, stocked):
        product = stocked.product_repo.get_by_id("1")
        assert product.name == "Basmati Rice"
        assert product.price == Money.of("100")
        assert product.discount == Decimal("10")
        assert product.discounted_price == Money.of("90")
        assert product.stock == 5

    def test_get_by_name_ignores_case(self, stocked):
        assert stocked.product_repo.get_by_name("toor DAL").id == "2"

    def test_missing(self, stocked):
        assert stocked.product_repo.get_by_id("99") is None

    def test_next_id(self, stocked):
        assert stocked.product_repo.next_id() == "4"

    def test_list_filters_and_sorts(self, stocked):
        repo = stocked.product_repo
        newest_first = repo.list(ProductQuery(), 0, 10)
        assert [p.id for p in newest_first] == ["3", "2", "1"]

        by_price = repo.list(ProductQuery(sort_by="price", descending=False), 0, 10)
        assert [p.id for p in by_price] == ["1", "2", "3"]

        searched = repo.list(ProductQuery(search="PRESSED"), 0, 10)
        assert [p.id for p in searched] == ["3"]

        ranged = ProductQuery(min_price=Decimal("120"), max_price=Decimal("180"))
        assert [p.id for p in repo.list(ranged, 0, 10)] == ["2"]
        assert repo.count(ranged) == 1

    def test_unavailable_hidden_by_default(self, stocked):
        repo = stocked.product_repo
        product = repo.get_by_id("2")
        product.is_available = False
        repo.save(product)
        assert repo.count(ProductQuery()) == 2
        assert repo.count(ProductQuery(available_only=False)) == 3

    def test_update_via_save(self, stocked):
        repo = stocked.product_repo
        product = repo.get_by_id("1")
        product.update_price(Money.of("110.50"))
        repo.save(product)
        assert repo.get_by_id("1").price == Money.of("110.50")

    def test_delete(self, stocked):
        assert stocked.product_repo.delete("3") is True
        assert stocked.product_repo.delete("3") is False

    def test_decrement_is_all_or_nothing(self, stocked):
        repo = stocked.product_repo
        with pytest.raises(StockConflictError) as exc_info:
            repo.decrement_stock({"1": 2, "2": 11})
        assert exc_info.value.product_id == "2"
        assert exc_info.value.available == 10
        assert repo.get_by_id("1").stock == 5
        assert repo.get_by_id("2").stock == 10

    def test_decrement_and_restore(self, stocked):
        repo = stocked.product_repo
        repo.decrement_stock({"1": 5, "2": 3})
        assert repo.get_by_id("1").stock == 0
        repo.restore_stock({"1": 5, "2": 3})
        assert repo.get_by_id("1").stock == 5
        assert repo.get_by_id("2").stock == 10

    def test_concurrent_decrements_never_oversell(self, stocked, settings):
        # Separate repository objects, as separate processes would have.
        repos = [
            SqliteProductRepository(SqliteDatabase(settings.db_path, timeout=10))
            for _ in range(8)
        ]
        outcomes = []
        barrier = threading.Barrier(len(repos))

        def buy(repo):
            barrier.wait(timeout=5)
            try:
                repo.decrement_stock({"1": 1})
                outcomes.append("ok")
            except StockConflictError:
                outcomes.append("conflict")

        threads = [threading.Thread(target=buy, args=(r,)) for r in repos]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count("ok") == 5
        assert outcomes.count("conflict") == 3
        assert stocked.product_repo.get_by_id("1").stock == 0

    def test_save_of_stale_product_keeps_decrement(self, stocked):
        repo = stocked.product_repo
        loaded = repo.get_by_id("1")
        repo.decrement_stock({"1": 2})
        loaded.update_price(Money.of("120"))
        repo.save(loaded)

        product = repo.get_by_id("1")
        assert product.price == Money.of("120")
        assert product.stock == 3

    def test_save_writes_stock_of_new_product(self, container):
        container.product_repo.save(
            Product("7", "Saffron", Money.of("300"), Category.SPICES, Unit.G, stock=4)
        )
        assert container.product_repo.get_by_id("7").stock == 4

    def test_set_stock(self, stocked):
        repo = stocked.product_repo
        assert repo.set_stock("1", 42) is True
        assert repo.get_by_id("1").stock == 42
        assert repo.set_stock("99", 1) is False


class TestPlaceOrderOnSqlite:

    def test_two_buyers_for_last_unit(self, container, settings):
        container.product_repo.save(
            Product("1", "Saffron", Money.of("300"), Category.SPICES, Unit.G, stock=1)
        )
        # One container each, so every buyer has its own connection.
        handlers = [
            PlaceOrderHandler(c.order_repo, c.product_repo, c.pricing)
            for c in (build_container(settings), build_container(settings))
        ]
        command = PlaceOrderCommand(
            items=[OrderItemSpec("1", 1)],
            delivery_address=AddressSpec("12 MG Road", "Pune", "MH", "411001"),
        )
        outcomes = []
        barrier = threading.Barrier(len(handlers))

        def buy(index, handler):
            barrier.wait(timeout=5)
            try:
                handler.handle(command, RequestContext(f"u{index}"))
                outcomes.append("ok")
            except InsufficientStockError:
                outcomes.append("out of stock")

        threads = [
            threading.Thread(target=buy, args=(i, h)) for i, h in enumerate(handlers)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ["ok", "out of stock"]
        assert container.product_repo.get_by_id("1").stock == 0
        assert container.order_repo.count(OrderQuery()) == 1


class TestSqliteOrderRepository:

    def test_save_assigns_id_and_round_trips(self, container):
        repo = container.order_repo
        order = _order(container)
        repo.save(order)
        assert order.id == 1

        loaded = repo.get_by_id(1)
        assert loaded.user_id == "u1"
        assert loaded.items[0].quantity == Quantity(2)
        assert loaded.items[0].unit_price == Money.of("90")
        assert loaded.total_amount == Money.of("239")
        assert loaded.payment_method == PaymentMethod.ONLINE
        assert loaded.notes == "Ring twice"
        assert loaded.created_at == NOW
        assert loaded.estimated_delivery == NOW + timedelta(days=2)
        assert loaded.delivery_address.pincode == "411001"

    def test_status_update_persists(self, container):
        repo = container.order_repo
        order = _order(container)
        repo.save(order)
        order.change_status(OrderStatus.DELIVERED, now=NOW + timedelta(days=1))
        repo.save(order)

        loaded = repo.get_by_id(order.id)
        assert loaded.status == OrderStatus.DELIVERED
        assert loaded.delivered_at == NOW + timedelta(days=1)

    def test_list_newest_first_with_filters(self, container):
        repo = container.order_repo
        for minutes, user in enumerate(["u1", "u2", "u1", "u1"]):
            repo.save(_order(container, user_id=user, minutes=minutes))

        mine = repo.list(OrderQuery(user_id="u1"), 0, 2)
        assert [o.id for o in mine] == [4, 3]
        assert repo.count(OrderQuery(user_id="u1")) == 3
        assert repo.list(OrderQuery(user_id="u1"), 2, 2)[0].id == 1
        assert repo.count(OrderQuery(status=OrderStatus.SHIPPED)) == 0

    def test_status_totals(self, container):
        repo = container.order_repo
        delivered = _order(container, price="600", qty=1)
        repo.save(delivered)
        delivered.change_status(OrderStatus.DELIVERED)
        repo.save(delivered)
        repo.save(_order(container))

        totals = {t.status: t for t in repo.status_totals()}
        assert totals[OrderStatus.DELIVERED].count == 1
        assert totals[OrderStatus.DELIVERED].total_amount == Money.of("630")
        assert totals[OrderStatus.PENDING].total_amount == Money.of("239")
