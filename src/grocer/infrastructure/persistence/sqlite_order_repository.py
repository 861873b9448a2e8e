"""SQLite-backed implementation of OrderRepository."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from decimal import Decimal

from grocer.domain.model.order import Order, OrderLineItem, OrderStatus, PaymentMethod
from grocer.domain.model.value_objects import DeliveryAddress, Money, Quantity
from grocer.domain.repository.order_repository import (
    OrderQuery,
    OrderRepository,
    StatusTotal,
)
from grocer.infrastructure.persistence.sqlite_database import SqliteDatabase


class SqliteOrderRepository(OrderRepository):

    def __init__(self, db: SqliteDatabase) -> None:
        self._db = db

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: int) -> Order | None:
        with self._db.reading() as conn:
            row = conn.execute("SELECT * FROM orders WHERE id = ?", (order_id,)).fetchone()
            if row is None:
                return None
            return self._to_domain(row, self._load_items(conn, [order_id])[order_id])

    def save(self, order: Order) -> None:
        new_id = None
        with self._db.transaction() as conn:
            if order.id is None:
                cursor = conn.execute(
                    """
                    INSERT INTO orders (
                        user_id, status, subtotal, tax, delivery_fee, total_amount,
                        currency, payment_method, payment_status, street, city,
                        state, pincode, notes, created_at, estimated_delivery,
                        delivered_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    self._to_row(order),
                )
                conn.executemany(
                    """
                    INSERT INTO order_items (
                        order_id, position, product_id, product_name, quantity, unit_price
                    ) VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            cursor.lastrowid,
                            position,
                            item.product_id,
                            item.product_name,
                            item.quantity.value,
                            str(item.unit_price.amount),
                        )
                        for position, item in enumerate(order.items)
                    ],
                )
                new_id = cursor.lastrowid
            else:
                # Items and totals are immutable; only the lifecycle fields move.
                conn.execute(
                    "UPDATE orders SET status = ?, delivered_at = ? WHERE id = ?",
                    (
                        order.status.value,
                        _iso(order.delivered_at),
                        order.id,
                    ),
                )
        if new_id is not None:
            order.id = new_id

    def list(self, query: OrderQuery, offset: int, limit: int) -> list[Order]:
        where, params = self._where(query)
        with self._db.reading() as conn:
            rows = conn.execute(
                f"SELECT * FROM orders {where} "
                "ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
                (*params, limit, offset),
            ).fetchall()
            items = self._load_items(conn, [r["id"] for r in rows])
        return [self._to_domain(r, items[r["id"]]) for r in rows]

    def count(self, query: OrderQuery) -> int:
        where, params = self._where(query)
        with self._db.reading() as conn:
            return conn.execute(f"SELECT COUNT(*) FROM orders {where}", params).fetchone()[0]

    def status_totals(self) -> list[StatusTotal]:
        with self._db.reading() as conn:
            rows = conn.execute(
                "SELECT status, total_amount, currency FROM orders ORDER BY status"
            ).fetchall()

        # Summed in Python so amounts stay Decimal.
        counts: dict[str, int] = {}
        sums: dict[str, Money] = {}
        for row in rows:
            status = row["status"]
            counts[status] = counts.get(status, 0) + 1
            amount = Money(Decimal(row["total_amount"]), row["currency"])
            sums[status] = sums[status] + amount if status in sums else amount
        return [
            StatusTotal(status=OrderStatus(s), count=counts[s], total_amount=sums[s])
            for s in counts
        ]

    # --- Query building -------------------------------------------------------

    @staticmethod
    def _where(query: OrderQuery) -> tuple[str, tuple]:
        clauses: list[str] = []
        params: list = []
        if query.user_id is not None:
            clauses.append("user_id = ?")
            params.append(query.user_id)
        if query.status is not None:
            clauses.append("status = ?")
            params.append(query.status.value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, tuple(params)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _load_items(
        conn: sqlite3.Connection, order_ids: list[int]
    ) -> dict[int, list[OrderLineItem]]:
        items: dict[int, list[OrderLineItem]] = {oid: [] for oid in order_ids}
        if not order_ids:
            return items
        placeholders = ", ".join("?" for _ in order_ids)
        rows = conn.execute(
            f"SELECT * FROM order_items WHERE order_id IN ({placeholders}) "
            "ORDER BY order_id, position",
            order_ids,
        ).fetchall()
        for row in rows:
            items[row["order_id"]].append(
                OrderLineItem(
                    product_id=row["product_id"],
                    product_name=row["product_name"],
                    quantity=Quantity(row["quantity"]),
                    unit_price=Money(Decimal(row["unit_price"])),
                )
            )
        return items

    @staticmethod
    def _to_row(order: Order) -> tuple:
        address = order.delivery_address
        return (
            order.user_id,
            order.status.value,
            str(order.subtotal.amount),
            str(order.tax.amount),
            str(order.delivery_fee.amount),
            str(order.total_amount.amount),
            order.total_amount.currency,
            order.payment_method.value,
            order.payment_status,
            address.street,
            address.city,
            address.state,
            address.pincode,
            order.notes,
            order.created_at.isoformat(),
            _iso(order.estimated_delivery),
            _iso(order.delivered_at),
        )

    @staticmethod
    def _to_domain(row: sqlite3.Row, items: list[OrderLineItem]) -> Order:
        currency = row["currency"]
        return Order(
            id=row["id"],
            user_id=row["user_id"],
            items=tuple(items),
            subtotal=Money(Decimal(row["subtotal"]), currency),
            tax=Money(Decimal(row["tax"]), currency),
            delivery_fee=Money(Decimal(row["delivery_fee"]), currency),
            total_amount=Money(Decimal(row["total_amount"]), currency),
            delivery_address=DeliveryAddress(
                street=row["street"],
                city=row["city"],
                state=row["state"],
                pincode=row["pincode"],
            ),
            payment_method=PaymentMethod(row["payment_method"]),
            payment_status=row["payment_status"],
            status=OrderStatus(row["status"]),
            notes=row["notes"],
            created_at=datetime.fromisoformat(row["created_at"]),
            estimated_delivery=_parse(row["estimated_delivery"]),
            delivered_at=_parse(row["delivered_at"]),
        )


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None
