"""Application services: catalog listings (query)."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from grocer.application.context import RequestContext
from grocer.application.dto import Page, ProductDTO, to_product_dto
from grocer.application.pagination import page_offset
from grocer.domain.exceptions import FieldError, ValidationError
from grocer.domain.model.product import Category
from grocer.domain.repository.product_repository import (
    SORT_FIELDS,
    ProductQuery,
    ProductRepository,
)

MAX_LIMIT = 100


@dataclass(frozen=True)
class CategoryDTO:
    value: str
    label: str


class ListProductsHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(
        self,
        page: int = 1,
        limit: int = 20,
        category: str | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        search: str | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        include_unavailable: bool = False,
        context: RequestContext | None = None,
    ) -> Page[ProductDTO]:
        """List the catalog.

        Customers only ever see available products; passing
        ``include_unavailable`` requires an admin ``context``.
        """
        if include_unavailable:
            if context is None:
                raise ValidationError("Admin context required for full listing")
            context.require_admin()

        query = ProductQuery(
            category=_parse_category(category),
            min_price=min_price,
            max_price=max_price,
            search=search.strip() if search else None,
            available_only=not include_unavailable,
            sort_by=sort_by,
            descending=sort_order == "desc",
        )
        self._check(query, sort_order)

        offset = page_offset(page, limit, MAX_LIMIT)
        products = self._product_repo.list(query, offset, limit)
        return Page(
            items=[to_product_dto(p) for p in products],
            page=page,
            limit=limit,
            total=self._product_repo.count(query),
        )

    @staticmethod
    def _check(query: ProductQuery, sort_order: str) -> None:
        errors: list[FieldError] = []
        if query.sort_by not in SORT_FIELDS:
            errors.append(FieldError("sortBy", "Invalid sort field"))
        if sort_order not in ("asc", "desc"):
            errors.append(FieldError("sortOrder", "Sort order must be asc or desc"))
        if query.min_price is not None and query.min_price < 0:
            errors.append(FieldError("minPrice", "Min price must be non-negative"))
        if query.max_price is not None and query.max_price < 0:
            errors.append(FieldError("maxPrice", "Max price must be non-negative"))
        if errors:
            raise ValidationError("Validation failed", errors)


class ListCategoriesHandler:

    def handle(self) -> list[CategoryDTO]:
        return [CategoryDTO(value=c.value, label=c.label) for c in Category]


def _parse_category(value: str | None) -> Category | None:
    if not value:
        return None
    try:
        return Category(value)
    except ValueError:
        raise ValidationError(
            "Validation failed", [FieldError("category", "Invalid category")]
        ) from None
