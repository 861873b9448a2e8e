"""Product aggregate.

Products live independently of orders. They have their own lifecycle:
prices and discounts change, stock is topped up and sold down, products are
added and removed from the catalog.  Orders never hold a reference to the
mutable Product; they snapshot the discounted price at creation time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum

from grocer.domain.exceptions import ValidationError
from grocer.domain.model.value_objects import Money


class Category(Enum):
    GRAINS = "grains"
    PULSES = "pulses"
    FLOUR = "flour"
    OILS = "oils"
    SPICES = "spices"
    PACKAGED_FOOD = "packaged_food"
    CLEANING_ITEMS = "cleaning_items"
    PERSONAL_CARE = "personal_care"
    BEVERAGES = "beverages"
    SNACKS = "snacks"
    OTHERS = "others"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class Unit(Enum):
    KG = "kg"
    G = "g"
    L = "l"
    ML = "ml"
    PIECE = "piece"
    PACKET = "packet"
    BOTTLE = "bottle"
    BOX = "box"


MAX_DISCOUNT = Decimal("100")


def parse_discount(value: str | float | int | Decimal) -> Decimal:
    try:
        discount = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid discount: {value!r}") from exc
    if discount < 0 or discount > MAX_DISCOUNT:
        raise ValidationError("Discount must be between 0 and 100")
    return discount


@dataclass
class Product:
    """A product in the catalog.

    Invariants:
    - ``stock`` is never negative
    - ``discount`` lies in [0, 100], so ``discounted_price <= price``
    """

    id: str
    name: str
    price: Money
    category: Category
    unit: Unit
    stock: int = 0
    discount: Decimal = Decimal("0")
    is_available: bool = True
    description: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("Product name is required")
        self._check_stock(self.stock)
        self.discount = parse_discount(self.discount)

    @property
    def discounted_price(self) -> Money:
        return self.price * (1 - self.discount / 100)

    def can_supply(self, quantity: int) -> bool:
        return quantity <= self.stock

    # --- Mutations ------------------------------------------------------------

    def update_price(self, new_price: Money) -> None:
        """Change the product price.

        This does NOT affect any existing orders because orders
        capture a price snapshot at creation time.
        """
        self.price = new_price

    def update_discount(self, discount: str | float | int | Decimal) -> None:
        self.discount = parse_discount(discount)

    def set_stock(self, stock: int) -> None:
        self._check_stock(stock)
        self.stock = stock

    def rename(self, name: str) -> None:
        if not name or not name.strip():
            raise ValidationError("Product name is required")
        self.name = name.strip()

    @staticmethod
    def _check_stock(stock: int) -> None:
        if isinstance(stock, bool) or not isinstance(stock, int):
            raise ValidationError("Stock must be an integer")
        if stock < 0:
            raise ValidationError("Stock must be a non-negative integer")
