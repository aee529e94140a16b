from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

import typer
from rich import box
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .core.config import AppConfig, ConfigLoadResult, load_config
from .core.console import console, setup_logging
from .core.decorators import handle_exceptions
from .core.result import ArgumentError
from .toolsets.dispatcher import ToolsetDispatcher, build_dispatcher

app = typer.Typer(help="toolsethub: resolve, inspect and call dynamically loaded toolsets.")
logger = logging.getLogger(__name__)


@dataclass
class AppState:
    config: AppConfig
    config_meta: ConfigLoadResult
    logger: logging.Logger
    dispatcher: ToolsetDispatcher


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to a toolsethub config file (TOML or JSON)."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    loaded_config, meta = load_config(config_path=config)
    logger = setup_logging(level=loaded_config.log_level, verbose=verbose)

    ctx.obj = AppState(
        config=loaded_config,
        config_meta=meta,
        logger=logger,
        dispatcher=build_dispatcher(loaded_config),
    )

    if meta.error:
        console.print(
            Panel(
                f"[bold red]Configuration Error - Safe Mode Active[/bold red]\n\n"
                f"Failed to load {meta.path}:\n{meta.error}\n\n"
                f"[yellow]Using default settings.[/yellow]",
                border_style="red",
            )
        )
    else:
        logger.debug(
            "Loaded configuration from %s (env overrides: %s)",
            meta.path,
            sorted(meta.env_overrides),
        )


def _parse_arguments(pairs: list[str]) -> dict[str, str]:
    arguments: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ArgumentError(f"Expected key=value, got: {pair}")
        arguments[key.strip()] = value
    return arguments


@app.command("version")
def show_version() -> None:
    """Print the toolsethub version."""
    console.print(__version__)


@app.command("toolsets")
def show_toolsets(ctx: typer.Context) -> None:
    """Show the allow-list and the toolsets currently cached."""
    state: AppState = ctx.obj
    status = state.dispatcher.status()

    table = Table(title="Toolsets", box=box.SIMPLE_HEAVY, expand=True)
    table.add_column("Toolset", style="cyan", no_wrap=True)
    table.add_column("Allowed", style="white")
    table.add_column("Cached", style="white")

    cached = set(status["registeredToolsets"])
    for toolset_id in sorted(set(status["allowedToolsets"]) | cached):
        allowed = status["allowAll"] or toolset_id in status["allowedToolsets"]
        table.add_row(toolset_id, "yes" if allowed else "no", "yes" if toolset_id in cached else "no")

    console.print(table)
    if status["allowAll"]:
        console.print("[yellow]No allow-list configured: every toolset id is allowed.[/yellow]")
    cache = status["cache"]
    console.print(
        f"Cache: {cache['entries']}/{cache['max_size']} entries, ttl {cache['ttl_seconds']:.0f}s",
        highlight=False,
    )


@app.command("list")
@handle_exceptions
def list_tools(
    ctx: typer.Context,
    toolset: str = typer.Argument(..., help="Toolset id to resolve."),
) -> None:
    """List the tools of a toolset and their parameters."""
    state: AppState = ctx.obj
    resolved = state.dispatcher.resolve_toolset(toolset)

    table = Table(title=f"{resolved.name} ({resolved.toolset_id})", box=box.SIMPLE, expand=True)
    table.add_column("Tool", style="cyan", no_wrap=True)
    table.add_column("Parameters", style="white")
    table.add_column("Description", style="white")

    for definition in resolved.tools:
        params = ", ".join(
            f"{param.name}: {param.kind.value}{'' if param.required else '?'}"
            for param in definition.params
        )
        table.add_row(definition.name, params or "-", definition.description)

    console.print(table)


@app.command("call")
@handle_exceptions
def call_tool(
    ctx: typer.Context,
    toolset: str = typer.Argument(..., help="Toolset id."),
    tool: str = typer.Argument(..., help="Tool name within the toolset."),
    arg: list[str] = typer.Option([], "--arg", "-a", help="Tool argument as key=value."),
) -> None:
    """Call a tool and print its result envelope as JSON."""
    state: AppState = ctx.obj
    result = state.dispatcher.invoke(toolset, tool, _parse_arguments(arg))
    console.print_json(json.dumps(result.to_payload(), default=str))
    if result.is_error:
        raise typer.Exit(code=1)


@app.command("serve")
def serve(ctx: typer.Context) -> None:
    """Run the MCP server on stdio using the loaded configuration."""
    from .mcp.server import create_server

    state: AppState = ctx.obj
    create_server(state.dispatcher).run()


def cli() -> None:
    app()


if __name__ == "__main__":
    cli()
