"""Shared fixtures: a fresh SQLite-backed container per test."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from grocer.domain.model.product import Category, Product, Unit
from grocer.domain.model.value_objects import Money
from grocer.infrastructure.bootstrap import Container, build_container
from grocer.infrastructure.config import Settings

START = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(db_path=tmp_path / "grocer.db")


@pytest.fixture
def container(settings) -> Container:
    return build_container(settings)


@pytest.fixture
def stocked(container) -> Container:
    """Container whose catalog holds three products."""
    repo = container.product_repo
    repo.save(Product("1", "Basmati Rice", Money.of("100"), Category.GRAINS, Unit.KG,
                      stock=5, discount=Decimal("10"), created_at=START))
    repo.save(Product("2", "Toor Dal", Money.of("150"), Category.PULSES, Unit.KG,
                      stock=10, created_at=START + timedelta(days=1)))
    repo.save(Product("3", "Sunflower Oil", Money.of("200"), Category.OILS, Unit.L,
                      stock=0, created_at=START + timedelta(days=2),
                      description="Cold pressed"))
    return container
