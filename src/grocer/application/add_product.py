"""Application service: Add Product use case."""

from __future__ import annotations

import logging
from decimal import Decimal

from grocer.application.context import RequestContext
from grocer.application.dto import ProductDTO, to_product_dto
from grocer.domain.exceptions import ValidationError
from grocer.domain.model.product import Category, Product, Unit
from grocer.domain.model.value_objects import Money
from grocer.domain.repository.product_repository import ProductRepository

logger = logging.getLogger(__name__)


def parse_category(value: str) -> Category:
    try:
        return Category(value)
    except ValueError:
        raise ValidationError(f"Invalid category: {value!r}") from None


def parse_unit(value: str) -> Unit:
    try:
        return Unit(value)
    except ValueError:
        raise ValidationError(f"Invalid unit: {value!r}") from None


class AddProductHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(
        self,
        context: RequestContext,
        name: str,
        price: str | Decimal,
        category: str,
        unit: str,
        stock: int = 0,
        discount: str | Decimal = "0",
        description: str = "",
        is_available: bool = True,
    ) -> ProductDTO:
        """Add a new product to the catalog."""
        context.require_admin()

        if not name or not name.strip():
            raise ValidationError("Product name is required")

        if self._product_repo.get_by_name(name.strip()) is not None:
            raise ValidationError(f"Product '{name.strip()}' already exists")

        product = Product(
            id=self._product_repo.next_id(),
            name=name.strip(),
            price=Money.of(price),
            category=parse_category(category),
            unit=parse_unit(unit),
            stock=stock,
            discount=discount,
            description=description or "",
            is_available=is_available,
        )
        self._product_repo.save(product)
        logger.info("Product #%s '%s' added by %s", product.id, product.name, context.user_id)
        return to_product_dto(product)
