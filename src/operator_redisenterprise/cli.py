"""Redis Enterprise integration CLI.

Commands:
- collect: Run one collection cycle and print the payload on stdout
- leader: Report whether the polled node is the cluster leader

Connection options go before the command and fall back to REDISENTERPRISE_*
environment variables, e.g.:

    operator-redisenterprise --hostname node1 --password secret collect --pretty

Logs go to stderr; stdout carries only the JSON payload.
"""

import asyncio
import logging

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from operator_redisenterprise.config import Settings
from operator_redisenterprise.exceptions import CollectionError, CycleTimeoutError
from operator_redisenterprise.factory import build_http_client, create_collector
from operator_redisenterprise.integration import Integration

logger = logging.getLogger("operator_redisenterprise")

# Exit status of `leader` when the node is not the leader
NOT_LEADER_EXIT_CODE = 3

app = typer.Typer(
    name="operator-redisenterprise",
    help="Report Redis Enterprise cluster metrics to the infrastructure agent",
    no_args_is_help=True,
)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback()
def main_callback(
    ctx: typer.Context,
    hostname: str = typer.Option(
        None, "--hostname", "-H", help="Hostname or IP of a Redis Enterprise node"
    ),
    port: int = typer.Option(None, "--port", "-p", help="Management API port"),
    username: str = typer.Option(None, "--username", "-u", help="API username"),
    password: str = typer.Option(None, "--password", help="API password"),
    event_time: int = typer.Option(
        None, "--event-time", help="Seconds of history for CRDT stats"
    ),
    verify_tls: bool | None = typer.Option(
        None, "--verify-tls/--no-verify-tls", help="Verify the API TLS certificate"
    ),
    timeout: float = typer.Option(
        None, "--timeout", help="Per-request timeout in seconds"
    ),
    cycle_timeout: float = typer.Option(
        None, "--cycle-timeout", help="Deadline for a whole command in seconds"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """
    Report Redis Enterprise cluster metrics.

    Environment variables:
        REDISENTERPRISE_HOSTNAME, REDISENTERPRISE_PORT,
        REDISENTERPRISE_USERNAME, REDISENTERPRISE_PASSWORD,
        REDISENTERPRISE_EVENT_TIME, REDISENTERPRISE_VERIFY_TLS,
        REDISENTERPRISE_REQUEST_TIMEOUT, REDISENTERPRISE_CYCLE_TIMEOUT
    """
    _setup_logging(verbose)

    overrides = {
        "hostname": hostname,
        "port": port,
        "username": username,
        "password": password,
        "event_time": event_time,
        "verify_tls": verify_tls,
        "request_timeout": timeout,
        "cycle_timeout": cycle_timeout,
    }
    try:
        ctx.obj = Settings(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as e:
        logger.error("Invalid configuration: %s", e)
        raise typer.Exit(2)


async def _collect(settings: Settings) -> Integration | None:
    async with build_http_client(settings) as http:
        collector = create_collector(settings, http)
        return await collector.run(timeout=settings.cycle_timeout)


async def _is_leader(settings: Settings) -> bool:
    async with build_http_client(settings) as http:
        collector = create_collector(settings, http)
        try:
            return await asyncio.wait_for(
                collector.client.is_leader(), timeout=settings.cycle_timeout
            )
        except asyncio.TimeoutError:
            raise CycleTimeoutError(settings.cycle_timeout) from None


@app.command("collect")
def collect(
    ctx: typer.Context,
    metrics: bool = typer.Option(False, "--metrics", help="Report metrics only"),
    inventory: bool = typer.Option(
        False, "--inventory", help="Report inventory only"
    ),
    pretty: bool = typer.Option(False, "--pretty", help="Indent the JSON payload"),
) -> None:
    """
    Run one collection cycle and print the payload.

    Prints nothing and exits 0 when the node is not the cluster leader.
    Exits 1 on any collection failure; nothing is printed in that case.
    """
    settings: Settings = ctx.obj
    updates = {
        name: True
        for name, flag in (
            ("metrics", metrics),
            ("inventory", inventory),
            ("pretty", pretty),
        )
        if flag
    }
    if updates:
        settings = settings.model_copy(update=updates)

    logger.debug("Collecting from %s", settings.base_url)
    try:
        integration = asyncio.run(_collect(settings))
    except CollectionError as e:
        logger.error("Collection failed: %s", e)
        raise typer.Exit(1)

    if integration is None:
        return
    integration.publish(pretty=settings.pretty)


@app.command("leader")
def leader(ctx: typer.Context) -> None:
    """Report whether the polled node is the cluster leader."""
    settings: Settings = ctx.obj
    console = Console()
    try:
        is_leader = asyncio.run(_is_leader(settings))
    except CollectionError as e:
        logger.error("Leadership probe failed: %s", e)
        raise typer.Exit(1)

    if is_leader:
        console.print(f"[green]{settings.hostname} is the cluster leader[/green]")
        return
    console.print(f"[yellow]{settings.hostname} is not the cluster leader[/yellow]")
    raise typer.Exit(NOT_LEADER_EXIT_CODE)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
