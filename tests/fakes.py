"""In-memory fake repositories for testing.

These implement the same abstract interfaces as the SQLite repositories
but keep everything in a dict. No file I/O, no side effects.
"""

from __future__ import annotations

import threading
from dataclasses import replace

from grocer.domain.exceptions import StockConflictError
from grocer.domain.model.order import Order
from grocer.domain.model.product import Product
from grocer.domain.model.value_objects import Money
from grocer.domain.repository.order_repository import (
    OrderQuery,
    OrderRepository,
    StatusTotal,
)
from grocer.domain.repository.product_repository import ProductQuery, ProductRepository


class FakeOrderRepository(OrderRepository):

    def __init__(self, failures: list[Exception] | None = None) -> None:
        self._store: dict[int, Order] = {}
        self._next_id = 1
        # Raised, one per call, by the next calls to save().
        self._failures = list(failures or [])
        self.save_calls = 0

    def get_by_id(self, order_id: int) -> Order | None:
        return self._store.get(order_id)

    def save(self, order: Order) -> None:
        self.save_calls += 1
        if self._failures:
            raise self._failures.pop(0)
        if order.id is None:
            order.id = self._next_id
            self._next_id += 1
        self._store[order.id] = order

    def list(self, query: OrderQuery, offset: int, limit: int) -> list[Order]:
        matching = [o for o in self._store.values() if query.matches(o)]
        matching.sort(key=lambda o: (o.created_at, o.id), reverse=True)
        return matching[offset:offset + limit]

    def count(self, query: OrderQuery) -> int:
        return sum(1 for o in self._store.values() if query.matches(o))

    def status_totals(self) -> list[StatusTotal]:
        totals: dict = {}
        for order in self._store.values():
            count, amount = totals.get(order.status, (0, Money.zero()))
            totals[order.status] = (count + 1, amount + order.total_amount)
        return [
            StatusTotal(status=status, count=count, total_amount=amount)
            for status, (count, amount) in totals.items()
        ]


class FakeProductRepository(ProductRepository):
    """Hands out copies, like a real store, and decrements under a lock."""

    def __init__(self, products: list[Product] | None = None) -> None:
        self._store: dict[str, Product] = {}
        self._lock = threading.Lock()
        for p in products or []:
            self._store[p.id] = p

    def get_by_id(self, product_id: str) -> Product | None:
        product = self._store.get(product_id)
        return replace(product) if product else None

    def get_by_name(self, name: str) -> Product | None:
        for p in self._store.values():
            if p.name.lower() == name.lower():
                return replace(p)
        return None

    def list(self, query: ProductQuery, offset: int, limit: int) -> list[Product]:
        matching = [p for p in self._store.values() if query.matches(p)]
        matching.sort(
            key=lambda p: (self._sort_key(p, query.sort_by), int(p.id)),
            reverse=query.descending,
        )
        return [replace(p) for p in matching[offset:offset + limit]]

    def count(self, query: ProductQuery) -> int:
        return sum(1 for p in self._store.values() if query.matches(p))

    def next_id(self) -> str:
        return str(max((int(pid) for pid in self._store), default=0) + 1)

    def save(self, product: Product) -> None:
        with self._lock:
            existing = self._store.get(product.id)
            if existing is None:
                self._store[product.id] = replace(product)
            else:
                self._store[product.id] = replace(product, stock=existing.stock)

    def set_stock(self, product_id: str, stock: int) -> bool:
        with self._lock:
            if product_id not in self._store:
                return False
            self._store[product_id].stock = stock
            return True

    def delete(self, product_id: str) -> bool:
        with self._lock:
            return self._store.pop(product_id, None) is not None

    def decrement_stock(self, quantities: dict[str, int]) -> None:
        with self._lock:
            for product_id, quantity in quantities.items():
                product = self._store.get(product_id)
                if product is None or product.stock < quantity:
                    raise StockConflictError(
                        product_id,
                        product.name if product else product_id,
                        quantity,
                        product.stock if product else 0,
                    )
            for product_id, quantity in quantities.items():
                self._store[product_id].stock -= quantity

    def restore_stock(self, quantities: dict[str, int]) -> None:
        with self._lock:
            for product_id, quantity in quantities.items():
                if product_id in self._store:
                    self._store[product_id].stock += quantity

    def stock_of(self, product_id: str) -> int:
        return self._store[product_id].stock

    @staticmethod
    def _sort_key(product: Product, field: str):
        if field == "name":
            return product.name.lower()
        if field == "price":
            return product.price.amount
        if field == "discount":
            return product.discount
        return product.created_at
