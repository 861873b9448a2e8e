"""CLI commands for the Product aggregate."""

from __future__ import annotations

import click

from grocer.application.add_product import AddProductHandler
from grocer.application.context import RequestContext, Role
from grocer.application.delete_product import DeleteProductHandler
from grocer.application.list_products import ListProductsHandler
from grocer.application.update_product import ProductChanges, UpdateProductHandler
from grocer.domain.exceptions import DomainException
from grocer.domain.model.product import Category, Unit
from grocer.infrastructure.bootstrap import build_container

ADMIN = RequestContext(user_id="cli", role=Role.ADMIN)


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Price (e.g. 45.00).")
@click.option(
    "--category", required=True, type=click.Choice([c.value for c in Category])
)
@click.option("--unit", required=True, type=click.Choice([u.value for u in Unit]))
@click.option("--stock", default=0, type=int, help="Units in stock.")
@click.option("--discount", default="0", help="Discount percentage (0-100).")
@click.option("--description", default="", help="Short description.")
def product_add(
    name: str,
    price: str,
    category: str,
    unit: str,
    stock: int,
    discount: str,
    description: str,
) -> None:
    """Add a new product to the catalog."""
    handler = AddProductHandler(product_repo=build_container().product_repo)

    try:
        dto = handler.handle(
            ADMIN,
            name=name,
            price=price,
            category=category,
            unit=unit,
            stock=stock,
            discount=discount,
            description=description,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product #{dto.id} '{dto.name}' added at ₹{dto.price} ({dto.stock} in stock)")


@click.command("list")
@click.option("--category", default=None, help="Only this category.")
@click.option("--search", default=None, help="Text to look for in name/description.")
@click.option("--all", "show_all", is_flag=True, default=False, help="Include unavailable products.")
@click.option("--page", default=1, type=int)
@click.option("--limit", default=20, type=int)
def product_list(
    category: str | None,
    search: str | None,
    show_all: bool,
    page: int,
    limit: int,
) -> None:
    """List products in the catalog."""
    handler = ListProductsHandler(product_repo=build_container().product_repo)

    try:
        result = handler.handle(
            page=page,
            limit=limit,
            category=category,
            search=search,
            sort_by="name",
            sort_order="asc",
            include_unavailable=show_all,
            context=ADMIN,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not result.items:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Name':<24} {'Price':>10} {'Disc%':>6} {'Sells at':>10} {'Stock':>6}")
    click.echo("-" * 67)
    for p in result.items:
        flag = "" if p.is_available else "  (unavailable)"
        click.echo(
            f"{p.id:<6} {p.name:<24} {p.price:>10} {p.discount:>6} "
            f"{p.discounted_price:>10} {p.stock:>6}{flag}"
        )
    click.echo(f"Page {result.page}/{result.total_pages} ({result.total} products)")


@click.command("update")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--name", default=None, help="New name.")
@click.option("--price", default=None, help="New price (e.g. 29.99).")
@click.option("--discount", default=None, help="New discount percentage.")
@click.option("--stock", default=None, type=int, help="New stock level.")
@click.option("--available/--unavailable", "is_available", default=None)
def product_update(
    product_id: str,
    name: str | None,
    price: str | None,
    discount: str | None,
    stock: int | None,
    is_available: bool | None,
) -> None:
    """Update a product."""
    handler = UpdateProductHandler(product_repo=build_container().product_repo)
    changes = ProductChanges(
        name=name,
        price=price,
        discount=discount,
        stock=stock,
        is_available=is_available,
    )

    try:
        dto = handler.handle(ADMIN, product_id, changes)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product #{dto.id} updated: ₹{dto.discounted_price}, {dto.stock} in stock")


@click.command("delete")
@click.option("--id", "product_id", required=True, help="Product ID.")
def product_delete(product_id: str) -> None:
    """Remove a product from the catalog."""
    handler = DeleteProductHandler(product_repo=build_container().product_repo)

    try:
        handler.handle(ADMIN, product_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product #{product_id} deleted.")
