"""Application service: Update Product use case."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from grocer.application.add_product import parse_category, parse_unit
from grocer.application.context import RequestContext
from grocer.application.dto import ProductDTO, to_product_dto
from grocer.domain.exceptions import ProductNotFoundError, ValidationError
from grocer.domain.model.value_objects import Money
from grocer.domain.repository.product_repository import ProductRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProductChanges:
    """Fields left as None are not touched."""

    name: str | None = None
    description: str | None = None
    price: str | Decimal | None = None
    discount: str | Decimal | None = None
    stock: int | None = None
    is_available: bool | None = None
    unit: str | None = None
    category: str | None = None


class UpdateProductHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(
        self,
        context: RequestContext,
        product_id: str,
        changes: ProductChanges,
    ) -> ProductDTO:
        """Apply a partial update to a product.

        This does NOT affect any existing orders; they captured a
        price snapshot at creation time.
        """
        context.require_admin()

        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        if changes.name is not None and changes.name.strip() != product.name:
            other = self._product_repo.get_by_name(changes.name.strip())
            if other is not None and other.id != product.id:
                raise ValidationError(f"Product '{changes.name.strip()}' already exists")
            product.rename(changes.name)
        if changes.description is not None:
            product.description = changes.description
        if changes.price is not None:
            product.update_price(Money.of(changes.price))
        if changes.discount is not None:
            product.update_discount(changes.discount)
        if changes.stock is not None:
            product.set_stock(changes.stock)  # invariant check only
        if changes.is_available is not None:
            product.is_available = changes.is_available
        if changes.unit is not None:
            product.unit = parse_unit(changes.unit)
        if changes.category is not None:
            product.category = parse_category(changes.category)

        # save() never writes stock of an existing product, so orders placed
        # since the load keep their decrement.
        self._product_repo.save(product)
        if changes.stock is not None:
            self._product_repo.set_stock(product.id, changes.stock)
        logger.info("Product #%s updated by %s", product.id, context.user_id)
        return to_product_dto(self._product_repo.get_by_id(product.id) or product)
