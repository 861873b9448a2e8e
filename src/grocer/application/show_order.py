"""Application service: Show Order use case (query)."""

from __future__ import annotations

from grocer.application.context import RequestContext
from grocer.application.dto import OrderDTO, to_order_dto
from grocer.domain.exceptions import AccessDeniedError, OrderNotFoundError
from grocer.domain.repository.order_repository import OrderRepository


class ShowOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, order_id: int, context: RequestContext) -> OrderDTO:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if not context.is_admin and not order.belongs_to(context.user_id):
            raise AccessDeniedError("Access denied")
        return to_order_dto(order)
