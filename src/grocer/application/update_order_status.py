"""Application service: Update Order Status use case.

Any status may follow any other; leaving a terminal status is allowed but
logged.  Cancelling does not return stock to the catalog.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from grocer.application.context import RequestContext
from grocer.application.dto import OrderDTO, to_order_dto
from grocer.domain.exceptions import OrderNotFoundError
from grocer.domain.model.order import OrderStatus
from grocer.domain.repository.order_repository import OrderRepository

logger = logging.getLogger(__name__)


class UpdateOrderStatusHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def handle(self, order_id: int, new_status: str, context: RequestContext) -> OrderDTO:
        context.require_admin()
        status = OrderStatus.parse(new_status)

        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)

        previous = order.status
        if previous.is_terminal and status != previous:
            logger.warning(
                "Order #%s moved out of terminal status %s to %s",
                order_id,
                previous.value,
                status.value,
            )

        order.change_status(status, now=self._clock())
        self._order_repo.save(order)

        logger.info(
            "Order #%s status %s -> %s by %s",
            order_id,
            previous.value,
            status.value,
            context.user_id,
        )
        return to_order_dto(order)
