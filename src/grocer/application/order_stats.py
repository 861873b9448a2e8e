"""Application service: Order Statistics use case (query)."""

from __future__ import annotations

from decimal import Decimal

from grocer.application.context import RequestContext
from grocer.application.dto import OrderStatsDTO, StatusStatDTO, to_order_dto
from grocer.domain.model.order import OrderStatus
from grocer.domain.repository.order_repository import OrderQuery, OrderRepository

RECENT_ORDERS = 5


class OrderStatsHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, context: RequestContext) -> OrderStatsDTO:
        context.require_admin()

        totals = self._order_repo.status_totals()
        revenue = next(
            (t.total_amount for t in totals if t.status == OrderStatus.DELIVERED),
            None,
        )
        recent = self._order_repo.list(OrderQuery(), 0, RECENT_ORDERS)

        return OrderStatsDTO(
            status_stats=[
                StatusStatDTO(
                    status=t.status.value,
                    count=t.count,
                    total_amount=t.total_amount.rounded(),
                )
                for t in totals
            ],
            total_orders=sum(t.count for t in totals),
            total_revenue=revenue.rounded() if revenue is not None else Decimal("0.00"),
            recent_orders=[to_order_dto(o) for o in recent],
        )
