from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console
from typer.testing import CliRunner

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from toolsethub.capabilities.context import ToolContext  # noqa: E402
from toolsethub.core.config import LoaderConfig  # noqa: E402
from toolsethub.core.security import AllowListPolicy  # noqa: E402
from toolsethub.toolsets.dispatcher import ToolsetDispatcher  # noqa: E402
from toolsethub.toolsets.loader import ToolsetLoader  # noqa: E402
from toolsethub.toolsets.pool import ToolsetPool  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock for expiry tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def isolate_config(tmp_path: Path, monkeypatch: Any) -> Path:
    """Point config to a temp path so tests don't touch user state."""
    cfg_path = tmp_path / "config.toml"
    monkeypatch.setenv("TOOLSETHUB_CONFIG", str(cfg_path))
    for key in ("TOOLSETHUB_ALLOWED_TOOLSETS", "TOOLSETHUB_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    return cfg_path


@pytest.fixture(autouse=True)
def capture_console(monkeypatch: Any) -> Console:
    """Use an in-memory Rich console during tests."""
    test_console = Console(record=True, width=200)
    import toolsethub.core.console as core_console
    import toolsethub.core.decorators as core_decorators
    import toolsethub.main as hub_main

    monkeypatch.setattr(core_console, "console", test_console)
    monkeypatch.setattr(core_decorators, "console", test_console)
    monkeypatch.setattr(hub_main, "console", test_console)
    return test_console


@pytest.fixture
def make_dispatcher(clock: FakeClock) -> Callable[..., ToolsetDispatcher]:
    """Build a dispatcher from explicit parts; defaults mirror the shipped config."""

    def factory(
        allowed: list[str] | None = None,
        *,
        loader: Any = None,
        max_size: int = 10,
        ttl_seconds: float = 1800.0,
        context: ToolContext | None = None,
    ) -> ToolsetDispatcher:
        shared = context or ToolContext(trace_id="hub-test")
        return ToolsetDispatcher(
            AllowListPolicy.from_ids(allowed if allowed is not None else []),
            loader or ToolsetLoader.from_config(LoaderConfig(plugin_roots=[]), context=shared),
            ToolsetPool(max_size=max_size, ttl_seconds=ttl_seconds, clock=clock),
            context=shared,
        )

    return factory
