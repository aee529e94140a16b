"""Tests for argument coercion and tool invocation."""

from __future__ import annotations

from typing import Annotated

import pytest

from toolsethub.capabilities import Param, ParamKind, ToolContext, build_schema, tool, toolset
from toolsethub.core.result import Err, Ok
from toolsethub.toolsets.engine import ToolResult, bind_arguments, coerce_value, invoke_tool
from toolsethub.toolsets.loader import assemble_toolset
from toolsethub.toolsets.types import ResolvedToolset


@toolset("calc-tools")
class CalcTools:
    @tool(description="Add two integers")
    def add(self, a: int, b: int) -> int:
        return a + b

    @tool(description="Scale a number")
    def scale(self, value: float, factor: Annotated[float | None, Param(required=False)] = 2.0) -> float:
        return value * (factor if factor is not None else 1.0)

    @tool(description="Flag something")
    def flag(self, enabled: bool, note: Annotated[str | None, Param(required=False)]) -> str:
        return f"{enabled}:{note}"

    @tool(description="Always fails")
    def explode(self) -> str:
        raise RuntimeError("kaboom")

    @tool(description="Report request context")
    def where(self, context: ToolContext) -> str:
        return f"{context.trace_id}/{context.toolset_id}"


@pytest.fixture
def calc() -> ResolvedToolset:
    return assemble_toolset("calc-tools", [CalcTools()], ToolContext())


class TestCoerceValue:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(5, 5), ("42", 42), (" 7 ", 7), (3.0, 3), ("3.0", 3), (-2, -2)],
    )
    def test_integer_accepts(self, value: object, expected: int) -> None:
        assert coerce_value(value, ParamKind.INTEGER) == Ok(expected)

    @pytest.mark.parametrize("value", ["abc", "", "3.5", 3.5, True, None, [1]])
    def test_integer_rejects(self, value: object) -> None:
        assert isinstance(coerce_value(value, ParamKind.INTEGER), Err)

    @pytest.mark.parametrize(("value", "expected"), [(1, 1.0), ("2.5", 2.5), (" -1e2 ", -100.0)])
    def test_number_accepts(self, value: object, expected: float) -> None:
        assert coerce_value(value, ParamKind.NUMBER) == Ok(expected)

    @pytest.mark.parametrize("value", ["nan", "inf", "x", False])
    def test_number_rejects(self, value: object) -> None:
        assert isinstance(coerce_value(value, ParamKind.NUMBER), Err)

    @pytest.mark.parametrize(("value", "expected"), [(True, True), ("TRUE", True), ("false", False)])
    def test_boolean_accepts(self, value: object, expected: bool) -> None:
        assert coerce_value(value, ParamKind.BOOLEAN) == Ok(expected)

    @pytest.mark.parametrize("value", ["yes", 1, 0, "1"])
    def test_boolean_rejects(self, value: object) -> None:
        assert isinstance(coerce_value(value, ParamKind.BOOLEAN), Err)

    def test_string_stringifies(self) -> None:
        assert coerce_value(12, ParamKind.STRING) == Ok("12")

    def test_error_names_parameter(self) -> None:
        match coerce_value("abc", ParamKind.INTEGER, param_name="a"):
            case Err(error):
                assert "'a'" in error.message
                assert error.context == {"parameter": "a"}
            case Ok(_):
                pytest.fail("expected coercion to fail")


class TestBindArguments:
    def test_optional_without_default_passed_as_none(self) -> None:
        definition = build_schema(CalcTools())[2]
        assert bind_arguments(definition, {"enabled": "true"}) == Ok({"enabled": True, "note": None})

    def test_optional_with_default_omitted(self) -> None:
        definition = build_schema(CalcTools())[1]
        assert bind_arguments(definition, {"value": "3"}) == Ok({"value": 3.0})

    def test_explicit_none_counts_as_missing(self) -> None:
        definition = build_schema(CalcTools())[0]
        result = bind_arguments(definition, {"a": None, "b": 1})
        assert isinstance(result, Err)
        assert result.error.message == "Required parameter missing: a"

    def test_unknown_arguments_ignored(self) -> None:
        definition = build_schema(CalcTools())[0]
        assert bind_arguments(definition, {"a": 1, "b": 2, "c": 3}) == Ok({"a": 1, "b": 2})


class TestInvokeTool:
    def test_success_with_coercion(self, calc: ResolvedToolset) -> None:
        result = invoke_tool(calc, "add", {"a": "2", "b": 3})
        assert result == ToolResult.success(5)
        assert result.to_payload() == {"isError": False, "result": 5}

    def test_unknown_tool(self, calc: ResolvedToolset) -> None:
        result = invoke_tool(calc, "nope", {})
        assert result.is_error
        assert result.error_type == "ToolNotFoundError"
        assert result.message == "Tool not found: nope"

    def test_missing_required_argument(self, calc: ResolvedToolset) -> None:
        result = invoke_tool(calc, "add", {"a": 1})
        assert result.is_error
        assert result.error_type == "ArgumentError"
        assert result.message == "Required parameter missing: b"

    def test_unparseable_argument(self, calc: ResolvedToolset) -> None:
        result = invoke_tool(calc, "add", {"a": "abc", "b": 1})
        assert result.is_error
        assert result.error_type == "ArgumentError"
        assert "expected integer" in (result.message or "")

    def test_tool_exception_becomes_envelope(self, calc: ResolvedToolset) -> None:
        result = invoke_tool(calc, "explode")
        assert result.to_payload() == {
            "isError": True,
            "message": "Tool execution failed: kaboom",
            "errorType": "ToolInvocationError",
        }

    def test_context_injected(self, calc: ResolvedToolset) -> None:
        context = ToolContext(trace_id="hub-req", toolset_id="calc-tools")
        assert invoke_tool(calc, "where", {}, context).result == "hub-req/calc-tools"

    def test_payload_uses_aliases(self) -> None:
        dumped = ToolResult.success("ok").model_dump(by_alias=True)
        assert dumped["isError"] is False
        assert "errorType" in dumped
