"""Application service: Show Product use case (query)."""

from __future__ import annotations

from grocer.application.dto import ProductDTO, to_product_dto
from grocer.domain.exceptions import ProductNotFoundError
from grocer.domain.repository.product_repository import ProductRepository


class ShowProductHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(self, product_id: str) -> ProductDTO:
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return to_product_dto(product)
