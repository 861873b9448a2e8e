"""SQLite connection handling shared by the repositories.

Every operation opens its own connection, so the repositories are safe to
use from several threads or processes at once.  Writes run inside
``BEGIN IMMEDIATE`` transactions: SQLite takes the write lock up front and
any other writer waits (up to ``timeout`` seconds) instead of interleaving.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from grocer.domain.exceptions import StorageError, TransientStorageError

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS products (
    id            TEXT PRIMARY KEY,
    name          TEXT NOT NULL,
    description   TEXT NOT NULL DEFAULT '',
    price         TEXT NOT NULL,
    currency      TEXT NOT NULL DEFAULT 'INR',
    discount      TEXT NOT NULL DEFAULT '0',
    stock         INTEGER NOT NULL CHECK (stock >= 0),
    is_available  INTEGER NOT NULL DEFAULT 1,
    unit          TEXT NOT NULL,
    category      TEXT NOT NULL,
    created_at    TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS orders (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id             TEXT NOT NULL,
    status              TEXT NOT NULL,
    subtotal            TEXT NOT NULL,
    tax                 TEXT NOT NULL,
    delivery_fee        TEXT NOT NULL,
    total_amount        TEXT NOT NULL,
    currency            TEXT NOT NULL DEFAULT 'INR',
    payment_method      TEXT NOT NULL,
    payment_status      TEXT NOT NULL,
    street              TEXT NOT NULL,
    city                TEXT NOT NULL,
    state               TEXT NOT NULL,
    pincode             TEXT NOT NULL,
    notes               TEXT,
    created_at          TEXT NOT NULL,
    estimated_delivery  TEXT,
    delivered_at        TEXT
);

CREATE TABLE IF NOT EXISTS order_items (
    order_id      INTEGER NOT NULL REFERENCES orders (id),
    position      INTEGER NOT NULL,
    product_id    TEXT NOT NULL,
    product_name  TEXT NOT NULL,
    quantity      INTEGER NOT NULL CHECK (quantity >= 1),
    unit_price    TEXT NOT NULL,
    PRIMARY KEY (order_id, position)
);

CREATE INDEX IF NOT EXISTS idx_orders_user ON orders (user_id, created_at);
CREATE INDEX IF NOT EXISTS idx_orders_status ON orders (status);
"""


class SqliteDatabase:

    def __init__(self, path: Path | str, timeout: float = 5.0) -> None:
        self._path = Path(path)
        self._timeout = timeout

    @property
    def path(self) -> Path:
        return self._path

    def initialize(self) -> None:
        """Create the database file and tables if they do not exist yet."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        try:
            conn.executescript(SCHEMA)
        except sqlite3.Error as exc:
            raise _translate(exc) from exc
        finally:
            conn.close()
        logger.debug("SQLite schema ready at %s", self._path)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run the body inside one write transaction.

        Commits on success; rolls back on *any* exception, including domain
        exceptions raised by the body, and re-raises it.
        """
        conn = self._connect()
        try:
            try:
                conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as exc:
                raise _translate(exc) from exc
            try:
                yield conn
                conn.execute("COMMIT")
            except BaseException as exc:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                if isinstance(exc, sqlite3.Error):
                    raise _translate(exc) from exc
                raise
        finally:
            conn.close()

    @contextmanager
    def reading(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
        except sqlite3.Error as exc:
            raise _translate(exc) from exc
        finally:
            conn.close()

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(
                self._path,
                timeout=self._timeout,
                isolation_level=None,
                check_same_thread=False,
            )
        except sqlite3.Error as exc:
            raise _translate(exc) from exc
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn


def _translate(exc: sqlite3.Error) -> StorageError:
    message = str(exc).lower()
    if isinstance(exc, sqlite3.OperationalError) and ("locked" in message or "busy" in message):
        return TransientStorageError(str(exc))
    return StorageError(str(exc))
