"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from grocer.domain.model.order import Order, OrderStatus
from grocer.domain.model.value_objects import Money


@dataclass(frozen=True)
class OrderQuery:
    user_id: str | None = None
    status: OrderStatus | None = None

    def matches(self, order: Order) -> bool:
        if self.user_id is not None and order.user_id != self.user_id:
            return False
        if self.status is not None and order.status != self.status:
            return False
        return True


@dataclass(frozen=True)
class StatusTotal:
    status: OrderStatus
    count: int
    total_amount: Money


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a new or updated order, assigning an ID to new ones."""

    @abstractmethod
    def list(self, query: OrderQuery, offset: int, limit: int) -> list[Order]:
        """Return one window of matching orders, newest first."""

    @abstractmethod
    def count(self, query: OrderQuery) -> int:
        """Return how many orders match ``query``."""

    @abstractmethod
    def status_totals(self) -> list[StatusTotal]:
        """Return order count and summed total amount per status present."""
