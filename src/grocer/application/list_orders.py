"""Application services: order listings (query).

Customers see their own orders; administrators can see everyone's and
filter by user.  Both are newest first.
"""

from __future__ import annotations

from grocer.application.context import RequestContext
from grocer.application.dto import OrderDTO, Page, to_order_dto
from grocer.application.pagination import page_offset
from grocer.domain.model.order import OrderStatus
from grocer.domain.repository.order_repository import OrderQuery, OrderRepository

MAX_LIMIT = 50


class ListOrdersHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(
        self,
        context: RequestContext,
        page: int = 1,
        limit: int = 10,
        status: str | None = None,
    ) -> Page[OrderDTO]:
        query = OrderQuery(
            user_id=context.user_id,
            status=OrderStatus.parse(status) if status else None,
        )
        return _fetch_page(self._order_repo, query, page, limit)


class ListAllOrdersHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(
        self,
        context: RequestContext,
        page: int = 1,
        limit: int = 20,
        status: str | None = None,
        user_id: str | None = None,
    ) -> Page[OrderDTO]:
        context.require_admin()
        query = OrderQuery(
            user_id=user_id or None,
            status=OrderStatus.parse(status) if status else None,
        )
        return _fetch_page(self._order_repo, query, page, limit)


def _fetch_page(
    repo: OrderRepository,
    query: OrderQuery,
    page: int,
    limit: int,
) -> Page[OrderDTO]:
    offset = page_offset(page, limit, MAX_LIMIT)
    orders = repo.list(query, offset, limit)
    return Page(
        items=[to_order_dto(o) for o in orders],
        page=page,
        limit=limit,
        total=repo.count(query),
    )
