"""Abstract repository for Product aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (SQLite, in-memory)
live in the infrastructure layer and in the tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from grocer.domain.model.product import Category, Product

SORT_FIELDS = ("name", "price", "created_at", "discount")


@dataclass(frozen=True)
class ProductQuery:
    """Filter and ordering for catalog listings."""

    category: Category | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    search: str | None = None
    available_only: bool = True
    sort_by: str = "created_at"
    descending: bool = True

    def matches(self, product: Product) -> bool:
        if self.available_only and not product.is_available:
            return False
        if self.category is not None and product.category != self.category:
            return False
        if self.min_price is not None and product.price.amount < self.min_price:
            return False
        if self.max_price is not None and product.price.amount > self.max_price:
            return False
        if self.search:
            needle = self.search.lower()
            if needle not in product.name.lower() and needle not in product.description.lower():
                return False
        return True


class ProductRepository(ABC):

    @abstractmethod
    def get_by_id(self, product_id: str) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def get_by_name(self, name: str) -> Product | None:
        """Return a product by its name (case-insensitive), or None."""

    @abstractmethod
    def list(self, query: ProductQuery, offset: int, limit: int) -> list[Product]:
        """Return one window of products matching ``query``."""

    @abstractmethod
    def count(self, query: ProductQuery) -> int:
        """Return how many products match ``query``."""

    @abstractmethod
    def next_id(self) -> str:
        """Generate the next unique product ID."""

    @abstractmethod
    def save(self, product: Product) -> None:
        """Persist a new or updated product.

        Stock is written only when the product is new; an existing row keeps
        its stock, which only ``set_stock`` and the decrement/restore pair move.
        """

    @abstractmethod
    def set_stock(self, product_id: str, stock: int) -> bool:
        """Overwrite the stock level; return False if the product does not exist."""

    @abstractmethod
    def delete(self, product_id: str) -> bool:
        """Remove a product; return False if it did not exist."""

    @abstractmethod
    def decrement_stock(self, quantities: dict[str, int]) -> None:
        """Atomically take ``quantities`` out of stock.

        Either every product is decremented or none is.  Each decrement only
        applies while ``stock >= quantity`` holds *at write time*; if any
        product fails that check the whole batch is rolled back and
        ``StockConflictError`` is raised.
        """

    @abstractmethod
    def restore_stock(self, quantities: dict[str, int]) -> None:
        """Add ``quantities`` back to stock (compensation for a failed order)."""
