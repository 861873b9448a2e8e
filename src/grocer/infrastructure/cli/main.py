import click

from grocer.infrastructure.cli.order_commands import (
    order_list,
    order_place,
    order_show,
    order_stats,
    order_status,
)
from grocer.infrastructure.cli.product_commands import (
    product_add,
    product_delete,
    product_list,
    product_update,
)
from grocer.infrastructure.config import Settings, configure_logging


@click.group()
@click.option("--verbose", is_flag=True, default=False, help="Log at INFO level.")
def cli(verbose: bool) -> None:
    """Grocer — grocery ordering backend"""
    configure_logging("INFO" if verbose else "WARNING")


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def product() -> None:
    """Manage products."""


@cli.command("serve")
@click.option("--host", default=None, help="Bind address (default: $HOST or 0.0.0.0).")
@click.option("--port", default=None, type=int, help="Port (default: $PORT or 8000).")
def serve(host: str | None, port: int | None) -> None:
    """Run the REST API server."""
    import uvicorn

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    uvicorn.run(
        "grocer.infrastructure.api.app:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )


# Register subcommands
order.add_command(order_list)
order.add_command(order_place)
order.add_command(order_show)
order.add_command(order_stats)
order.add_command(order_status)
product.add_command(product_add)
product.add_command(product_delete)
product.add_command(product_list)
product.add_command(product_update)
