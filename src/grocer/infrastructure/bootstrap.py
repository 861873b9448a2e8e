"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from dataclasses import dataclass

from grocer.domain.repository.order_repository import OrderRepository
from grocer.domain.repository.product_repository import ProductRepository
from grocer.domain.service.pricing import PricingCalculator
from grocer.infrastructure.config import Settings
from grocer.infrastructure.persistence.sqlite_database import SqliteDatabase
from grocer.infrastructure.persistence.sqlite_order_repository import (
    SqliteOrderRepository,
)
from grocer.infrastructure.persistence.sqlite_product_repository import (
    SqliteProductRepository,
)


@dataclass(frozen=True)
class Container:
    settings: Settings
    product_repo: ProductRepository
    order_repo: OrderRepository
    pricing: PricingCalculator


def build_container(settings: Settings | None = None) -> Container:
    settings = settings or Settings.from_env()
    db = SqliteDatabase(settings.db_path, timeout=settings.db_timeout)
    db.initialize()
    return Container(
        settings=settings,
        product_repo=SqliteProductRepository(db),
        order_repo=SqliteOrderRepository(db),
        pricing=PricingCalculator(settings.policy()),
    )
