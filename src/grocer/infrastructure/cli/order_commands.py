"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from grocer.application.context import RequestContext, Role
from grocer.application.dto import AddressSpec, OrderDTO, OrderItemSpec, PlaceOrderCommand
from grocer.application.list_orders import ListAllOrdersHandler, ListOrdersHandler
from grocer.application.order_stats import OrderStatsHandler
from grocer.application.place_order import PlaceOrderHandler
from grocer.application.show_order import ShowOrderHandler
from grocer.application.update_order_status import UpdateOrderStatusHandler
from grocer.application.validation import validate_place_order
from grocer.domain.exceptions import DomainException
from grocer.domain.model.order import OrderStatus, PaymentMethod
from grocer.infrastructure.bootstrap import build_container

ADMIN = RequestContext(user_id="cli", role=Role.ADMIN)


def _parse_items(raw: str) -> list[OrderItemSpec]:
    """Parse '1:3,7:5' (product id : quantity) into OrderItemSpec list."""
    specs: list[OrderItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductId:Quantity'."
            )
        product_id, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
        specs.append(OrderItemSpec(product_id=product_id.strip(), quantity=qty))
    return specs


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id}  (status={dto.status})")
    click.echo(f"User:     {dto.user_id}")
    click.echo(f"Created:  {dto.created_at:%Y-%m-%d %H:%M UTC}")
    if dto.estimated_delivery is not None:
        click.echo(f"Expected: {dto.estimated_delivery:%Y-%m-%d}")
    if dto.delivered_at is not None:
        click.echo(f"Delivered: {dto.delivered_at:%Y-%m-%d %H:%M UTC}")
    address = dto.delivery_address
    click.echo(f"Deliver to: {address.street}, {address.city}, {address.state} {address.pincode}")
    click.echo(f"Payment:  {dto.payment_method} ({dto.payment_status})")
    click.echo()

    click.echo(f"  {'Product':<20} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*47}")
    for item in dto.items:
        click.echo(
            f"  {item.product_name:<20} {item.quantity:>5} {item.unit_price:>10} {item.line_total:>10}"
        )
    click.echo(f"  {'-'*47}")
    click.echo(f"  {'Subtotal':<27} {dto.subtotal:>20}")
    click.echo(f"  {'Tax':<27} {dto.tax:>20}")
    click.echo(f"  {'Delivery':<27} {dto.delivery_fee:>20}")
    click.echo(f"  {'Order Total':<27} {dto.total_amount:>20}")
    if dto.notes:
        click.echo(f"Notes: {dto.notes}")


@click.command("place")
@click.option("--user", "user_id", required=True, help="Customer placing the order.")
@click.option("--items", required=True, help="Items as 'ProductId:Qty,ProductId:Qty'.")
@click.option("--street", required=True)
@click.option("--city", required=True)
@click.option("--state", required=True)
@click.option("--pincode", required=True, help="6-digit postal code.")
@click.option(
    "--payment",
    default=None,
    type=click.Choice([m.value for m in PaymentMethod]),
    help="Payment method (default cash_on_delivery).",
)
@click.option("--notes", default=None, help="Delivery notes (max 200 characters).")
def order_place(
    user_id: str,
    items: str,
    street: str,
    city: str,
    state: str,
    pincode: str,
    payment: str | None,
    notes: str | None,
) -> None:
    """Place a new order."""
    command = PlaceOrderCommand(
        items=_parse_items(items),
        delivery_address=AddressSpec(street=street, city=city, state=state, pincode=pincode),
        payment_method=payment,
        notes=notes,
    )
    result = validate_place_order(command)
    if not result.ok:
        raise click.ClickException(
            "; ".join(f"{e.field}: {e.message}" for e in result.errors)
        )

    container = build_container()
    handler = PlaceOrderHandler(
        order_repo=container.order_repo,
        product_repo=container.product_repo,
        pricing=container.pricing,
    )

    try:
        dto = handler.handle(command, RequestContext(user_id=user_id))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{dto.id} placed.")
    _display_order(dto)


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
@click.option("--user", "user_id", default=None, help="Show as this customer (default: admin).")
def order_show(order_id: int, user_id: str | None) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(order_repo=build_container().order_repo)
    context = RequestContext(user_id=user_id) if user_id else ADMIN

    try:
        dto = handler.handle(order_id, context)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("list")
@click.option("--user", "user_id", default=None, help="Customer whose orders to list.")
@click.option("--all", "show_all", is_flag=True, default=False, help="List every user's orders.")
@click.option("--status", default=None, type=click.Choice([s.value for s in OrderStatus]))
@click.option("--page", default=1, type=int)
@click.option("--limit", default=10, type=int)
def order_list(
    user_id: str | None,
    show_all: bool,
    status: str | None,
    page: int,
    limit: int,
) -> None:
    """List orders, newest first."""
    if not user_id and not show_all:
        raise click.ClickException("Pass --user or --all")

    repo = build_container().order_repo
    try:
        if show_all:
            result = ListAllOrdersHandler(repo).handle(
                ADMIN, page=page, limit=limit, status=status, user_id=user_id
            )
        else:
            result = ListOrdersHandler(repo).handle(
                RequestContext(user_id=user_id), page=page, limit=limit, status=status
            )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not result.items:
        click.echo("No orders found.")
        return

    click.echo(f"{'ID':<6} {'User':<12} {'Status':<10} {'Items':>5} {'Total':>10}  Created")
    click.echo("-" * 66)
    for o in result.items:
        click.echo(
            f"{o.id:<6} {o.user_id:<12} {o.status:<10} {len(o.items):>5} "
            f"{o.total_amount:>10}  {o.created_at:%Y-%m-%d %H:%M}"
        )
    click.echo(f"Page {result.page}/{result.total_pages} ({result.total} orders)")


@click.command("status")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option(
    "--status", "new_status", required=True, type=click.Choice([s.value for s in OrderStatus])
)
def order_status(order_id: int, new_status: str) -> None:
    """Change the status of an order."""
    handler = UpdateOrderStatusHandler(order_repo=build_container().order_repo)

    try:
        dto = handler.handle(order_id, new_status, ADMIN)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{dto.id} is now {dto.status}.")


@click.command("stats")
def order_stats() -> None:
    """Show order counts and revenue."""
    handler = OrderStatsHandler(order_repo=build_container().order_repo)
    stats = handler.handle(ADMIN)

    click.echo(f"{'Status':<12} {'Orders':>7} {'Amount':>12}")
    click.echo("-" * 33)
    for s in stats.status_stats:
        click.echo(f"{s.status:<12} {s.count:>7} {s.total_amount:>12}")
    click.echo("-" * 33)
    click.echo(f"{'Total orders':<12} {stats.total_orders:>7}")
    click.echo(f"Delivered revenue: ₹{stats.total_revenue}")
    if stats.recent_orders:
        click.echo()
        click.echo("Recent orders:")
        for o in stats.recent_orders:
            click.echo(f"  #{o.id:<5} {o.user_id:<12} {o.status:<10} ₹{o.total_amount}")
