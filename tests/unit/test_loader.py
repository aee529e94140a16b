"""Tests for dynamic toolset loading strategies."""

from __future__ import annotations

import sys
import textwrap
from pathlib import Path
from typing import Any

import pytest

from toolsethub.capabilities import ToolContext, tool
from toolsethub.core.config import LoaderConfig, PluginSpec
from toolsethub.core.result import SecurityError, ToolsetLoadError, ToolsetNotFoundError
from toolsethub.toolsets.engine import invoke_tool
from toolsethub.toolsets.loader import (
    BuiltinStrategy,
    NamespaceStrategy,
    PluginStrategy,
    ToolsetLoader,
    assemble_toolset,
    derive_type_name,
)
from toolsethub.tools import ExampleTools

DATACLASS_PLUGIN_SOURCE = textwrap.dedent(
    """
    from __future__ import annotations

    from dataclasses import dataclass

    from toolsethub.capabilities import tool, toolset


    @dataclass
    class Settings:
        greeting: str = "hello"


    @toolset("dc-tools")
    class DcTools:
        def __init__(self) -> None:
            self.settings = Settings()

        @tool(description="Greet someone")
        def greet(self, who: str) -> str:
            return f"{self.settings.greeting} {who}"
    """
)


PLUGIN_SOURCE = textwrap.dedent(
    """
    from toolsethub.capabilities import tool, toolset


    @toolset("order-tools", name="Order Tools")
    class OrderTools:
        @tool(description="Look up an order")
        def lookup(self, order_id: int) -> str:
            return f"order {order_id}: shipped"


    class NotAToolset:
        @tool()
        def sneaky(self) -> str:
            return "should never load"
    """
)


def _write_package(root: Path, package: str, files: dict[str, str]) -> None:
    pkg_dir = root / package
    pkg_dir.mkdir(parents=True)
    (pkg_dir / "__init__.py").write_text(files.pop("__init__", ""), encoding="utf-8")
    for name, source in files.items():
        (pkg_dir / f"{name}.py").write_text(textwrap.dedent(source), encoding="utf-8")


class TestDeriveTypeName:
    @pytest.mark.parametrize(
        ("toolset_id", "expected"),
        [
            ("order-tools", "OrderTools"),
            ("weather-tools", "WeatherTools"),
            ("payment", "Payment"),
            ("a-b-c", "ABC"),
        ],
    )
    def test_derivation(self, toolset_id: str, expected: str) -> None:
        assert derive_type_name(toolset_id) == expected


class TestBuiltinStrategy:
    def test_aliases_resolve_to_same_class(self) -> None:
        strategy = BuiltinStrategy()
        for alias in ("example-tools", "example1", "instance1"):
            providers = strategy.find(alias)
            assert providers is not None
            assert [type(item) for item in providers] == [ExampleTools]

    def test_combined_alias_returns_both_providers(self) -> None:
        providers = BuiltinStrategy().find("all")
        assert providers is not None
        assert [type(item).__name__ for item in providers] == ["ExampleTools", "Example2Tools"]

    def test_unknown_id(self) -> None:
        assert BuiltinStrategy().find("order-tools") is None

    def test_constructor_failure_is_load_error(self) -> None:
        class Exploding:
            def __init__(self) -> None:
                raise RuntimeError("no database")

        strategy = BuiltinStrategy({"boom-tools": (Exploding,)})
        with pytest.raises(ToolsetLoadError, match="Failed to instantiate Exploding"):
            strategy.find("boom-tools")


class TestNamespaceStrategy:
    def test_finds_class_in_submodule(self) -> None:
        providers = NamespaceStrategy(["toolsethub.tools"]).find("text-tools")
        assert providers is not None
        assert type(providers[0]).__name__ == "TextTools"

    def test_finds_class_in_package_root(self, tmp_path: Path, monkeypatch: Any) -> None:
        _write_package(
            tmp_path,
            "ns_root_pkg",
            {
                "__init__": textwrap.dedent(
                    """
                    from toolsethub.capabilities import tool, toolset


                    @toolset("weather-tools")
                    class WeatherTools:
                        @tool()
                        def forecast(self, city: str) -> str:
                            return f"{city}: sunny"
                    """
                )
            },
        )
        monkeypatch.syspath_prepend(str(tmp_path))

        providers = NamespaceStrategy(["ns_root_pkg"]).find("weather-tools")
        assert providers is not None
        assert type(providers[0]).__name__ == "WeatherTools"

    def test_unmarked_class_is_ignored(self, tmp_path: Path, monkeypatch: Any) -> None:
        _write_package(
            tmp_path,
            "ns_unmarked_pkg",
            {
                "payment_tools": """
                class PaymentTools:
                    def charge(self, amount: float) -> str:
                        return "charged"
                """
            },
        )
        monkeypatch.syspath_prepend(str(tmp_path))

        assert NamespaceStrategy(["ns_unmarked_pkg"]).find("payment-tools") is None

    def test_broken_module_is_load_error(self, tmp_path: Path, monkeypatch: Any) -> None:
        _write_package(
            tmp_path,
            "ns_broken_pkg",
            {"broken_tools": "import definitely_not_a_real_module_xyz\n"},
        )
        monkeypatch.syspath_prepend(str(tmp_path))

        with pytest.raises(ToolsetLoadError, match="Failed to import"):
            NamespaceStrategy(["ns_broken_pkg"]).find("broken-tools")

    @pytest.mark.parametrize("toolset_id", ["../etc", "os.path", "Upper-Case", "", "-x"])
    def test_non_derivable_ids_skipped(self, toolset_id: str) -> None:
        assert NamespaceStrategy(["toolsethub.tools"]).find(toolset_id) is None

    def test_missing_namespace_package(self) -> None:
        assert NamespaceStrategy(["no_such_namespace_pkg"]).find("order-tools") is None


class TestPluginStrategy:
    def test_loads_marked_class_under_root(self, tmp_path: Path) -> None:
        root = tmp_path / "plugins"
        root.mkdir()
        plugin = root / "orders.py"
        plugin.write_text(PLUGIN_SOURCE, encoding="utf-8")

        strategy = PluginStrategy({"Order-Tools": PluginSpec(path=plugin, type_name="OrderTools")}, [root])
        providers = strategy.find("order-tools")

        assert providers is not None
        assert type(providers[0]).__name__ == "OrderTools"
        assert not any(name.startswith("_toolsethub_plugin_") for name in sys.modules)

    def test_plugin_defining_dataclass_loads(self, tmp_path: Path) -> None:
        root = tmp_path / "plugins"
        root.mkdir()
        plugin = root / "dc.py"
        plugin.write_text(DATACLASS_PLUGIN_SOURCE, encoding="utf-8")

        strategy = PluginStrategy({"dc-tools": PluginSpec(path=plugin, type_name="DcTools")}, [root])
        providers = strategy.find("dc-tools")

        assert providers is not None
        resolved = assemble_toolset("dc-tools", providers, ToolContext())
        assert invoke_tool(resolved, "greet", {"who": "ada"}).result == "hello ada"
        assert not any(name.startswith("_toolsethub_plugin_") for name in sys.modules)

    def test_unmarked_plugin_class_refused(self, tmp_path: Path) -> None:
        root = tmp_path / "plugins"
        root.mkdir()
        plugin = root / "orders.py"
        plugin.write_text(PLUGIN_SOURCE, encoding="utf-8")

        strategy = PluginStrategy({"order-tools": PluginSpec(path=plugin, type_name="NotAToolset")}, [root])
        with pytest.raises(ToolsetLoadError, match="no @toolset class"):
            strategy.find("order-tools")

    def test_plugin_outside_roots_refused(self, tmp_path: Path) -> None:
        root = tmp_path / "plugins"
        root.mkdir()
        outside = tmp_path / "outside.py"
        outside.write_text(PLUGIN_SOURCE, encoding="utf-8")

        strategy = PluginStrategy({"order-tools": PluginSpec(path=outside, type_name="OrderTools")}, [root])
        with pytest.raises(SecurityError, match="outside the configured plugin roots"):
            strategy.find("order-tools")

    def test_missing_plugin_file(self, tmp_path: Path) -> None:
        root = tmp_path / "plugins"
        root.mkdir()
        strategy = PluginStrategy(
            {"order-tools": PluginSpec(path=root / "gone.py", type_name="OrderTools")}, [root]
        )
        with pytest.raises(ToolsetLoadError, match="not found"):
            strategy.find("order-tools")

    def test_unconfigured_id(self, tmp_path: Path) -> None:
        assert PluginStrategy({}, [tmp_path]).find("order-tools") is None


class TestToolsetLoader:
    def test_builtin_first(self) -> None:
        resolved = ToolsetLoader().load(" Example-Tools ")
        assert resolved.toolset_id == "example-tools"
        assert resolved.name == "Example Tools"
        assert resolved.tool_names() == ["calculator", "greeting", "get_current_time"]

    def test_from_config_uses_all_strategies(self, tmp_path: Path) -> None:
        loader = ToolsetLoader.from_config(LoaderConfig(plugin_roots=[tmp_path]))
        assert [strategy.name for strategy in loader.strategies] == ["builtin", "namespace", "plugin"]
        assert loader.load("text-tools").name == "Text Tools"

    def test_unknown_id_is_not_found(self) -> None:
        loader = ToolsetLoader.from_config(LoaderConfig(plugin_roots=[]))
        with pytest.raises(ToolsetNotFoundError, match="Toolset class not found for: ghost-tools"):
            loader.load("ghost-tools")

    def test_context_hook_receives_shared_context(self) -> None:
        shared = ToolContext(trace_id="hub-shared")
        loader = ToolsetLoader.from_config(LoaderConfig(plugin_roots=[]), context=shared)
        resolved = loader.load("text-tools")
        loaded_by = resolved.find("loaded_by")
        assert loaded_by is not None
        assert loaded_by.func() == "hub-shared"


class TestAssembleToolset:
    def test_duplicate_names_keep_first(self, caplog: pytest.LogCaptureFixture) -> None:
        @tool(name="calculator", description="Shadowing calculator")
        def calculator(operation: str) -> str:
            return "shadow"

        resolved = assemble_toolset("mixed", [ExampleTools(), calculator], ToolContext())

        assert resolved.tool_names().count("calculator") == 1
        assert resolved.find("calculator").description.startswith("Perform basic arithmetic")  # type: ignore[union-attr]
        assert "Duplicate tool name 'calculator'" in caplog.text

    def test_functions_only_use_id_as_name(self) -> None:
        @tool(description="Say hi")
        def hello() -> str:
            return "hi"

        resolved = assemble_toolset("Adhoc", [hello], ToolContext())
        assert resolved.toolset_id == "adhoc"
        assert resolved.name == "adhoc"
        assert resolved.tool_names() == ["hello"]
