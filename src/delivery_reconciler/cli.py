"""delivery-reconciler CLI.

Usage:
    delivery-reconciler serve                 Run the HTTP proxy under uvicorn
    delivery-reconciler reconcile 5512345678  Reconcile one order and print the result
    delivery-reconciler version               Show the installed version
"""

import asyncio
import json
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from delivery_reconciler.config import ReconcilerConfig, load_config
from delivery_reconciler.errors import ReconcilerError
from delivery_reconciler.factory import build_engine
from delivery_reconciler.models import ReconciliationResult

app = typer.Typer(
    name="delivery-reconciler",
    help="Reconcile Shopify fulfillments with FedEx delivery status",
    no_args_is_help=True,
)

console = Console()

_config_path: str | None = None


@app.callback()
def main(
    config: Optional[str] = typer.Option(
        None, "--config", help="Path to a YAML config file"
    ),
):
    """Reconcile Shopify fulfillments with FedEx delivery status."""
    global _config_path
    _config_path = config


@app.command()
def version():
    """Show the installed version."""
    from importlib.metadata import version as pkg_version

    try:
        v = pkg_version("delivery-reconciler")
    except Exception:
        v = "unknown"
    console.print(f"[bold]delivery-reconciler[/bold] v{v}")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
):
    """Run the FedEx status proxy."""
    import os

    import uvicorn

    cfg = _load_or_exit()
    final_host = host or cfg.server.host
    final_port = port or cfg.server.port

    # The API loads its own config on first request; point it at the same file.
    if _config_path:
        os.environ["DELIVERY_RECONCILER_CONFIG_PATH"] = _config_path

    console.print(f"[bold]fedex-proxy listening on :{final_port}[/bold]")
    uvicorn.run(
        "delivery_reconciler.api.main:app",
        host=final_host,
        port=final_port,
        log_level=cfg.server.log_level,
    )


@app.command()
def reconcile(
    order_id: str = typer.Argument(help="Shopify order id or GID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Reconcile one order and print per-fulfillment verdicts."""
    cfg = _load_or_exit()

    try:
        engine = build_engine(cfg)
        result = asyncio.run(engine.reconcile(order_id))
    except ReconcilerError as e:
        console.print(f"[red]{e.code}[/red] {e.message}")
        if e.remediation:
            console.print(f"  Action: {e.remediation}")
        raise typer.Exit(1)

    if json_output:
        console.print_json(json.dumps(result.model_dump(by_alias=True)))
    else:
        console.print(format_result_table(result))


def _load_or_exit() -> ReconcilerConfig:
    try:
        return load_config(config_path=_config_path)
    except ReconcilerError as e:
        console.print(f"[red]{e.code}[/red] {e.message}")
        raise typer.Exit(1)


def format_result_table(result: ReconciliationResult) -> Table:
    """Render one row per tracking leg, plus confirmation outcomes."""
    title = f"{result.order.name or result.order_id}: {result.message}"
    if result.all_delivered:
        title += " [green](all delivered)[/green]"
    table = Table(title=title)
    table.add_column("Fulfillment")
    table.add_column("Status")
    table.add_column("Tracking #")
    table.add_column("Carrier status")
    table.add_column("Delivered")
    table.add_column("Confirmation")

    confirmations = {u.fulfillment_id: u for u in result.updates}
    for fulfillment in result.fulfillments:
        update = confirmations.get(fulfillment.id)
        if update is None:
            confirmation = "-"
        elif update.ok:
            confirmation = "[green]sent[/green]"
        else:
            confirmation = f"[red]{update.error.code if update.error else 'failed'}[/red]"

        if not fulfillment.tracking:
            table.add_row(fulfillment.id, fulfillment.status or "", "-", "", "", confirmation)
            continue
        for leg in fulfillment.tracking:
            verdict = leg.verdict
            table.add_row(
                fulfillment.id,
                fulfillment.status or "",
                leg.number,
                verdict.status_description or verdict.status_code or "unknown",
                "[green]yes[/green]" if verdict.delivered else "no",
                confirmation,
            )
    return table
