"""Domain service: Pricing.

Pure arithmetic over Money.  Every policy constant (tax rate, free-delivery
threshold, flat delivery fee, delivery estimate) lives on ``StorePolicy`` so
there is exactly one place that defines them.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from grocer.domain.model.value_objects import Money, Quantity


@dataclass(frozen=True)
class StorePolicy:
    tax_rate: Decimal = Decimal("0.05")
    free_delivery_threshold: Money = Money(Decimal("500"))
    delivery_fee: Money = Money(Decimal("50"))
    delivery_estimate_days: int = 2


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Money
    tax: Money
    delivery_fee: Money
    total: Money


class PricingCalculator:

    def __init__(self, policy: StorePolicy | None = None) -> None:
        self._policy = policy or StorePolicy()

    @property
    def policy(self) -> StorePolicy:
        return self._policy

    def line_total(self, unit_price: Money, quantity: Quantity) -> Money:
        """``unit_price`` must already include any discount."""
        return unit_price * quantity.value

    def order_totals(self, subtotal: Money) -> OrderTotals:
        tax = subtotal * self._policy.tax_rate
        if subtotal >= self._policy.free_delivery_threshold:
            delivery_fee = Money(Decimal("0"), subtotal.currency)
        else:
            delivery_fee = self._policy.delivery_fee
        return OrderTotals(
            subtotal=subtotal,
            tax=tax,
            delivery_fee=delivery_fee,
            total=subtotal + tax + delivery_fee,
        )
