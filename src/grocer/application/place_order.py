"""Application service: Place Order use case.

Turns a customer's cart into a persisted order, or fails without side
effects.  The flow is:

1. Validate the command (shape, address, payment method, notes).
2. Resolve every product and check availability and stock.
3. Snapshot each discounted price and let the Order aggregate compute totals.
4. Take the stock in one all-or-nothing conditional decrement.
5. Persist the order; if that fails, put the stock back.  Should the restore
   fail too, the error is raised as a plain StorageError so the attempt is
   not retried: the units stay held rather than being taken twice.

Step 4 is what prevents overselling: the stock check in step 2 is only a
fast, friendly rejection, the conditional decrement re-checks at write time
inside a single storage transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from grocer.application.context import RequestContext
from grocer.application.dto import OrderDTO, PlaceOrderCommand, to_order_dto
from grocer.application.validation import validate_place_order
from grocer.domain.exceptions import (
    InsufficientStockError,
    ProductNotFoundError,
    ProductUnavailableError,
    StorageError,
    TransientStorageError,
    ValidationError,
)
from grocer.domain.model.order import Order, OrderLineItem, PaymentMethod
from grocer.domain.model.value_objects import DeliveryAddress, Quantity
from grocer.domain.repository.order_repository import OrderRepository
from grocer.domain.repository.product_repository import ProductRepository
from grocer.domain.service.pricing import PricingCalculator

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2


class PlaceOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
        pricing: PricingCalculator,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._product_repo = product_repo
        self._pricing = pricing
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def handle(self, command: PlaceOrderCommand, context: RequestContext) -> OrderDTO:
        context.require_customer()

        result = validate_place_order(command)
        if not result.ok:
            raise ValidationError("Validation failed", result.errors)

        # Only storage contention is retried; stock outcomes are final.
        attempt = 1
        while True:
            try:
                order = self._place(command, context)
                break
            except TransientStorageError:
                if attempt >= MAX_ATTEMPTS:
                    raise
                attempt += 1
                logger.warning(
                    "Storage busy while placing order for user %s, retrying",
                    context.user_id,
                )

        logger.info(
            "Order #%s placed by user %s: %d line(s), total %s",
            order.id,
            order.user_id,
            len(order.items),
            order.total_amount,
        )
        return to_order_dto(order)

    # --- Internal steps -------------------------------------------------------

    def _place(self, command: PlaceOrderCommand, context: RequestContext) -> Order:
        requested = self._requested_quantities(command)
        line_items = self._price_lines(command, requested)

        spec = command.delivery_address
        order = Order.create(
            user_id=context.user_id,
            items=line_items,
            delivery_address=DeliveryAddress(
                street=spec.street.strip(),
                city=spec.city.strip(),
                state=spec.state.strip(),
                pincode=spec.pincode,
            ),
            pricing=self._pricing,
            payment_method=PaymentMethod(
                command.payment_method or PaymentMethod.CASH_ON_DELIVERY.value
            ),
            notes=command.notes,
            created_at=self._clock(),
        )

        try:
            self._product_repo.decrement_stock(requested)
        except InsufficientStockError as exc:
            logger.warning(
                "Stock conflict for product %s (requested %d, available %d)",
                exc.product_id,
                exc.requested,
                exc.available,
            )
            raise

        try:
            self._order_repo.save(order)
        except Exception:
            logger.exception("Failed to persist order, restoring stock")
            try:
                self._product_repo.restore_stock(requested)
            except StorageError as exc:
                # Stock is still taken; another attempt would take it twice.
                logger.error("Stock not restored for %s", requested)
                raise StorageError(f"Stock could not be restored: {exc}") from exc
            raise

        return order

    @staticmethod
    def _requested_quantities(command: PlaceOrderCommand) -> dict[str, int]:
        """Total quantity per product; a product may appear on several lines."""
        requested: dict[str, int] = {}
        for spec in command.items:
            requested[spec.product_id] = requested.get(spec.product_id, 0) + spec.quantity
        return requested

    def _price_lines(
        self,
        command: PlaceOrderCommand,
        requested: dict[str, int],
    ) -> list[OrderLineItem]:
        products = {}
        for product_id, quantity in requested.items():
            product = self._product_repo.get_by_id(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)
            if not product.is_available:
                raise ProductUnavailableError(product.id, product.name)
            if not product.can_supply(quantity):
                raise InsufficientStockError(
                    product.id, product.name, quantity, product.stock
                )
            products[product_id] = product

        return [
            OrderLineItem(
                product_id=spec.product_id,
                product_name=products[spec.product_id].name,
                quantity=Quantity(spec.quantity),
                unit_price=products[spec.product_id].discounted_price,  # snapshot
            )
            for spec in command.items
        ]
