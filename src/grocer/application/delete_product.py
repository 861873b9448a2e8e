"""Application service: Delete Product use case.

Orders already placed keep their line-item snapshots, so removing a
product never changes order history.
"""

from __future__ import annotations

import logging

from grocer.application.context import RequestContext
from grocer.domain.exceptions import ProductNotFoundError
from grocer.domain.repository.product_repository import ProductRepository

logger = logging.getLogger(__name__)


class DeleteProductHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(self, context: RequestContext, product_id: str) -> None:
        context.require_admin()
        if not self._product_repo.delete(product_id):
            raise ProductNotFoundError(product_id)
        logger.info("Product #%s deleted by %s", product_id, context.user_id)
