"""SQLite-backed implementation of ProductRepository."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from decimal import Decimal

from grocer.domain.exceptions import StockConflictError
from grocer.domain.model.product import Category, Product, Unit
from grocer.domain.model.value_objects import Money
from grocer.domain.repository.product_repository import ProductQuery, ProductRepository
from grocer.infrastructure.persistence.sqlite_database import SqliteDatabase

logger = logging.getLogger(__name__)

_SORT_COLUMNS = {
    "name": "lower(name)",
    "price": "CAST(price AS REAL)",
    "created_at": "created_at",
    "discount": "CAST(discount AS REAL)",
}


class SqliteProductRepository(ProductRepository):

    def __init__(self, db: SqliteDatabase) -> None:
        self._db = db

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: str) -> Product | None:
        with self._db.reading() as conn:
            row = conn.execute(
                "SELECT * FROM products WHERE id = ?", (product_id,)
            ).fetchone()
        return self._to_domain(row) if row else None

    def get_by_name(self, name: str) -> Product | None:
        with self._db.reading() as conn:
            row = conn.execute(
                "SELECT * FROM products WHERE lower(name) = lower(?)", (name,)
            ).fetchone()
        return self._to_domain(row) if row else None

    def list(self, query: ProductQuery, offset: int, limit: int) -> list[Product]:
        where, params = self._where(query)
        direction = "DESC" if query.descending else "ASC"
        order_by = f"{_SORT_COLUMNS[query.sort_by]} {direction}, CAST(id AS INTEGER) {direction}"
        with self._db.reading() as conn:
            rows = conn.execute(
                f"SELECT * FROM products {where} ORDER BY {order_by} LIMIT ? OFFSET ?",
                (*params, limit, offset),
            ).fetchall()
        return [self._to_domain(r) for r in rows]

    def count(self, query: ProductQuery) -> int:
        where, params = self._where(query)
        with self._db.reading() as conn:
            return conn.execute(f"SELECT COUNT(*) FROM products {where}", params).fetchone()[0]

    def next_id(self) -> str:
        with self._db.reading() as conn:
            current = conn.execute(
                "SELECT MAX(CAST(id AS INTEGER)) FROM products"
            ).fetchone()[0]
        return str((current or 0) + 1)

    def save(self, product: Product) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO products (
                    id, name, description, price, currency, discount, stock,
                    is_available, unit, category, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (id) DO UPDATE SET
                    name = excluded.name,
                    description = excluded.description,
                    price = excluded.price,
                    currency = excluded.currency,
                    discount = excluded.discount,
                    is_available = excluded.is_available,
                    unit = excluded.unit,
                    category = excluded.category
                """,
                self._to_row(product),
            )

    def set_stock(self, product_id: str, stock: int) -> bool:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                "UPDATE products SET stock = ? WHERE id = ?", (stock, product_id)
            )
        return cursor.rowcount > 0

    def delete(self, product_id: str) -> bool:
        with self._db.transaction() as conn:
            cursor = conn.execute("DELETE FROM products WHERE id = ?", (product_id,))
        return cursor.rowcount > 0

    def decrement_stock(self, quantities: dict[str, int]) -> None:
        with self._db.transaction() as conn:
            for product_id, quantity in quantities.items():
                cursor = conn.execute(
                    "UPDATE products SET stock = stock - ? WHERE id = ? AND stock >= ?",
                    (quantity, product_id, quantity),
                )
                if cursor.rowcount == 0:
                    # Raising inside the transaction rolls back earlier lines.
                    row = conn.execute(
                        "SELECT name, stock FROM products WHERE id = ?", (product_id,)
                    ).fetchone()
                    raise StockConflictError(
                        product_id,
                        row["name"] if row else product_id,
                        quantity,
                        row["stock"] if row else 0,
                    )
        logger.debug("Stock decremented: %s", quantities)

    def restore_stock(self, quantities: dict[str, int]) -> None:
        with self._db.transaction() as conn:
            conn.executemany(
                "UPDATE products SET stock = stock + ? WHERE id = ?",
                [(quantity, product_id) for product_id, quantity in quantities.items()],
            )
        logger.info("Stock restored: %s", quantities)

    # --- Query building -------------------------------------------------------

    @staticmethod
    def _where(query: ProductQuery) -> tuple[str, tuple]:
        clauses: list[str] = []
        params: list = []
        if query.available_only:
            clauses.append("is_available = 1")
        if query.category is not None:
            clauses.append("category = ?")
            params.append(query.category.value)
        if query.min_price is not None:
            clauses.append("CAST(price AS REAL) >= ?")
            params.append(float(query.min_price))
        if query.max_price is not None:
            clauses.append("CAST(price AS REAL) <= ?")
            params.append(float(query.max_price))
        if query.search:
            clauses.append("(instr(lower(name), ?) > 0 OR instr(lower(description), ?) > 0)")
            needle = query.search.lower()
            params.extend([needle, needle])
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, tuple(params)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_row(product: Product) -> tuple:
        return (
            product.id,
            product.name,
            product.description,
            str(product.price.amount),
            product.price.currency,
            str(product.discount),
            product.stock,
            int(product.is_available),
            product.unit.value,
            product.category.value,
            product.created_at.isoformat(),
        )

    @staticmethod
    def _to_domain(row: sqlite3.Row) -> Product:
        return Product(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            price=Money(Decimal(row["price"]), row["currency"]),
            discount=Decimal(row["discount"]),
            stock=row["stock"],
            is_available=bool(row["is_available"]),
            unit=Unit(row["unit"]),
            category=Category(row["category"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )
