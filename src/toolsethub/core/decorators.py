from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any, NoReturn, TypeVar

import typer
from rich.markup import escape

from toolsethub.core.config import ConfigError
from toolsethub.core.console import console
from toolsethub.core.result import ToolsetHubError

F = TypeVar("F", bound=Callable[..., Any])


def _handle_exception(exc: Exception) -> NoReturn:
    console.print(f"[red]{type(exc).__name__}: {escape(str(exc))}[/red]", highlight=False)
    raise typer.Exit(code=1)


def handle_exceptions(func: F) -> F:
    """Decorate CLI entrypoints to present friendly errors and exit cleanly."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (ToolsetHubError, ConfigError) as exc:
            _handle_exception(exc)

    return wrapper  # type: ignore[return-value]


__all__ = ["handle_exceptions"]
