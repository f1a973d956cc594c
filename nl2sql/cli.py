"""
nl2sql CLI

Command-line interface for the NL-to-SQL service.

Usage:
    nl2sql ask "count all contacts"               # Direct mode
    nl2sql ask "who opened cases?" --mode agent   # Reason/act agent
    nl2sql tools list                             # Registered actions
    nl2sql serve --port 3000                      # Run the HTTP API
"""

import asyncio
import logging
import sys
from typing import Any

import click
import uvicorn
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from nl2sql import __version__
from nl2sql.config import get_settings
from nl2sql.connectors.base import ConnectorError
from nl2sql.models.agent import AgentError
from nl2sql.models.api import AgentResult, DirectResult
from nl2sql.pipeline.orchestrator import create_orchestrator
from nl2sql.tools import ToolRegistry, initialize_tools

console = Console()

MAX_DISPLAY_ROWS = 10


def configure_cli_logging() -> None:
    logging.disable(logging.CRITICAL)
    for logger_name in ("nl2sql", "httpx", "openai", "asyncio", "asyncpg"):
        logging.getLogger(logger_name).setLevel(logging.CRITICAL)


def _rows_table(rows: list[dict[str, Any]], limit: int = MAX_DISPLAY_ROWS) -> Table:
    table = Table(
        title=f"Rows ({len(rows)} returned)",
        show_header=True,
        header_style="bold cyan",
    )
    columns = list(rows[0].keys()) if rows else []
    for column in columns:
        table.add_column(str(column))
    for row in rows[:limit]:
        table.add_row(*[str(row.get(column, "")) for column in columns])
    return table


def print_result(result: DirectResult | AgentResult) -> None:
    """Render a query result."""
    if isinstance(result, DirectResult):
        console.print(Panel(result.sql, title="SQL", border_style="cyan"))
    else:
        status = "[green]success[/green]" if result.success else "[red]failed[/red]"
        console.print(
            f"[bold]Agent run:[/bold] {status} "
            f"({result.iterations} iterations, {result.terminal_state})"
        )
        for index, sql in enumerate(result.sql, start=1):
            console.print(Panel(sql, title=f"SQL #{index}", border_style="cyan"))

        if result.reasoning:
            console.print("\n[bold cyan]Reasoning:[/bold cyan]")
            for entry in result.reasoning:
                console.print(f"- {escape(entry)}")
        if result.observations:
            console.print("\n[bold cyan]Observations:[/bold cyan]")
            for observation in result.observations:
                console.print(f"[dim]{escape(observation[:300])}[/dim]")
        if result.final_answer:
            console.print(Panel(result.final_answer, title="[bold green]Answer[/bold green]"))

    if result.rows:
        console.print(_rows_table(result.rows))
    else:
        console.print("[yellow]No rows returned[/yellow]")


@click.group()
@click.version_option(version=__version__, prog_name="nl2sql")
def cli():
    """nl2sql - Natural language to guarded SQL."""
    configure_cli_logging()


@cli.command()
@click.argument("prompt")
@click.option(
    "--mode",
    type=click.Choice(["direct", "agent"]),
    default="direct",
    show_default=True,
    help="Single-shot translation or the reason/act agent.",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Exit non-zero when an agent run stops without a final answer.",
)
def ask(prompt: str, mode: str, strict: bool):
    """Ask a single question and exit."""

    async def run_query() -> None:
        orchestrator = await create_orchestrator()
        try:
            with console.status("[cyan]Processing query...[/cyan]", spinner="dots"):
                result = await orchestrator.process(prompt, mode=mode)
            print_result(result)
            if strict and isinstance(result, AgentResult):
                result.raise_for_state()
        finally:
            await orchestrator.connector.close()

    try:
        asyncio.run(run_query())
    except (AgentError, ConnectorError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)


@cli.command()
@click.option("--host", default=None, help="Bind host (defaults to API_HOST).")
@click.option("--port", default=None, type=int, help="Bind port (defaults to API_PORT).")
def serve(host: str | None, port: int | None):
    """Run the HTTP API server."""
    config = get_settings()
    uvicorn.run(
        "nl2sql.api.main:app",
        host=host or config.api_host,
        port=port or config.api_port,
    )


@cli.group(name="tools")
def tools():
    """Inspect the agent's actions."""
    pass


@tools.command(name="list")
def list_tools():
    """List registered actions and whether policy enables them."""
    initialize_tools(get_settings().tools.policy_path)

    table = Table(title="Actions", show_header=True, header_style="bold cyan")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Enabled")
    table.add_column("Description")
    for definition in ToolRegistry.list_definitions():
        table.add_row(
            definition.name,
            definition.category.value,
            "yes" if definition.policy.enabled else "no",
            definition.description,
        )
    console.print(table)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
