import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from solana_node.config import CREDENTIALS_NAME
from solana_node.credentials import check_rpc_endpoint
from solana_node.description import get_node_description
from solana_node.errors import SolanaNodeError
from solana_node.node import SolanaOperationsNode, StaticExecutionContext

from .config import ConfigManager, PRIVATE_KEY_ENV

app = typer.Typer(help="solana-node - run Solana operations from the command line")
console = Console()
config_manager = ConfigManager()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable info logging")):
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def _parse_params(params: List[str]) -> Dict[str, str]:
    """Turn ["key=value", ...] into a dict."""
    parsed = {}
    for param in params:
        if "=" not in param:
            raise typer.BadParameter(f"Expected key=value, got '{param}'")
        key, value = param.split("=", 1)
        parsed[key.strip()] = value
    return parsed


def _load_items(path: Optional[Path]) -> List[Dict]:
    if path is None:
        return [{}]
    with open(path, "r") as f:
        items = json.load(f)
    if isinstance(items, dict):
        items = [items]
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        raise typer.BadParameter("Items file must contain a JSON object or a list of objects")
    return items


@app.command()
def operations(
    operation: Optional[str] = typer.Argument(None, help="Show the parameters of this operation"),
):
    """
    List the available operations, or the parameters of one operation.
    """
    description = get_node_description()
    if operation is None:
        table = Table(title="Solana Operations")
        table.add_column("Operation", style="cyan")
        table.add_column("Name")
        table.add_column("Description")
        for op in description.get_operations():
            table.add_row(op["value"], op["name"], op["description"])
        console.print(table)
        return

    if operation not in description.get_operation_values():
        console.print(f"[red]Unknown operation: {operation}[/red]")
        raise typer.Exit(code=1)

    table = Table(title=f"Parameters for {operation}")
    table.add_column("Parameter", style="cyan")
    table.add_column("Type")
    table.add_column("Default")
    table.add_column("Description")
    for prop in description.parameters_for(operation):
        table.add_row(prop["name"], prop["type"], json.dumps(prop["default"]), prop.get("description", ""))
    console.print(table)


@app.command()
def run(
    operation: str = typer.Argument(..., help="Operation value, e.g. getBalance"),
    items_file: Optional[Path] = typer.Option(None, "--items", "-i", help="JSON file with one parameter object per item"),
    param: List[str] = typer.Option([], "--param", "-p", help="Parameter shared by all items, as key=value"),
    continue_on_fail: Optional[bool] = typer.Option(
        None, "--continue-on-fail/--fail-fast", help="Emit error records instead of aborting on the first failure"
    ),
    rpc_url: Optional[str] = typer.Option(None, "--rpc-url", help="Override the configured RPC endpoint"),
):
    """
    Run one operation over the given items and print the output records.
    """
    credentials = config_manager.get_credentials(rpc_url)
    if credentials is None:
        console.print(f"[red]No private key configured. Set {PRIVATE_KEY_ENV}.[/red]")
        raise typer.Exit(code=1)

    if continue_on_fail is None:
        continue_on_fail = config_manager.get_continue_on_fail()

    parameters = _parse_params(param)
    parameters["operation"] = operation
    context = StaticExecutionContext(
        _load_items(items_file),
        parameters=parameters,
        credentials={CREDENTIALS_NAME: credentials},
        continue_on_fail=continue_on_fail,
    )

    try:
        with console.status(f"[bold green]Running {operation}..."):
            records = SolanaOperationsNode().execute(context)
    except SolanaNodeError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    output = json.dumps([record.to_dict() for record in records], indent=2, default=str)
    failed = sum(1 for record in records if record.is_error)
    border = "yellow" if failed else "blue"
    console.print(Panel(Syntax(output, "json"), title=f"{operation}: {len(records)} item(s), {failed} failed", border_style=border))


@app.command()
def configure(
    rpc_url: Optional[str] = typer.Option(None, "--rpc-url", help="RPC endpoint to save"),
    continue_on_fail: Optional[bool] = typer.Option(None, "--continue-on-fail/--fail-fast", help="Default failure mode"),
):
    """
    Save CLI defaults. The private key is never stored.
    """
    if rpc_url is not None:
        config_manager.set_rpc_url(rpc_url)
        console.print(f"RPC URL set to: [blue]{rpc_url}[/blue]")
    if continue_on_fail is not None:
        config_manager.set_continue_on_fail(continue_on_fail)
        console.print(f"Continue on fail: [bold]{continue_on_fail}[/bold]")


@app.command()
def config():
    """
    Show current configuration.
    """
    key_status = "[green]set[/green]" if config_manager.get_private_key() else "[red]not set[/red]"
    console.print(Panel(
        f"RPC URL: [blue]{config_manager.get_rpc_url()}[/blue]\n"
        f"Continue on fail: [bold]{config_manager.get_continue_on_fail()}[/bold]\n"
        f"{PRIVATE_KEY_ENV}: {key_status}",
        title="Current Configuration",
    ))


@app.command()
def check(rpc_url: Optional[str] = typer.Option(None, "--rpc-url", help="Endpoint to test")):
    """
    Test that the RPC endpoint is reachable and healthy.
    """
    url = rpc_url or config_manager.get_rpc_url()
    with console.status(f"[bold green]Checking {url}..."):
        healthy = check_rpc_endpoint(url)
    if healthy:
        console.print(f"[green]RPC endpoint {url} is healthy[/green]")
    else:
        console.print(f"[red]RPC endpoint {url} is not healthy[/red]")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
