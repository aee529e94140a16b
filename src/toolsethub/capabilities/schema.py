"""Tool schema introspection.

Turns the @tool-marked methods of a provider instance into ToolDefinition
values. Introspection happens once, when a toolset is loaded; each definition
captures its bound callable so invocation is a plain function call.

Parameter kinds follow the JSON-Schema primitive names:

    str   -> "string"
    int   -> "integer"
    float -> "number"
    bool  -> "boolean"
    other -> "string"

A parameter annotated with ToolContext is left out of the schema and filled
in by the invocation engine.
"""

from __future__ import annotations

import inspect
import re
import types
import typing
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Union

from pydantic import BaseModel, ConfigDict, Field

from toolsethub.capabilities.context import ToolContext
from toolsethub.capabilities.registry import Param, ToolMetadata, get_tool_metadata
from toolsethub.core.result import ToolsetLoadError


class ParamKind(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"


# "ToolContext", "capabilities.ToolContext", "ToolContext | None"
_CONTEXT_ANNOTATION = re.compile(r"^(?:[A-Za-z_][\w.]*\.)?ToolContext(?:\s*\|\s*None)?$")

_KIND_BY_TYPE: dict[Any, ParamKind] = {
    str: ParamKind.STRING,
    int: ParamKind.INTEGER,
    float: ParamKind.NUMBER,
    bool: ParamKind.BOOLEAN,
}


@dataclass(frozen=True)
class ToolParam:
    name: str
    kind: ParamKind
    required: bool = True
    description: str | None = None
    has_default: bool = field(default=False, compare=False)


class ToolDescriptor(BaseModel):
    """Outward-facing view of a tool: no callable is exposed."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    description: str
    input_schema: dict[str, Any] = Field(alias="inputSchema")


@dataclass(frozen=True)
class ToolDefinition:
    """A named, schema-described tool bound to its implementation."""

    name: str
    description: str
    params: tuple[ToolParam, ...]
    func: Callable[..., Any] = field(compare=False, repr=False)
    context_param: str | None = None

    def input_schema(self) -> dict[str, Any]:
        properties: dict[str, Any] = {}
        for param in self.params:
            prop: dict[str, Any] = {"type": param.kind.value}
            if param.description:
                prop["description"] = param.description
            properties[param.name] = prop
        return {
            "type": "object",
            "properties": properties,
            "required": [param.name for param in self.params if param.required],
        }

    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema(),
        )


def _strip_optional(annotation: Any) -> Any:
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _split_annotation(annotation: Any) -> tuple[Any, Param | None]:
    """Return the bare type and any Param metadata of an annotation."""
    annotation = _strip_optional(annotation)
    if typing.get_origin(annotation) is Annotated:
        base, *extras = typing.get_args(annotation)
        meta = next((extra for extra in extras if isinstance(extra, Param)), None)
        return _strip_optional(base), meta
    return annotation, None


def _is_context_type(annotation: Any) -> bool:
    return annotation is ToolContext


def kind_for(annotation: Any) -> ParamKind:
    """Map a Python annotation to a ParamKind, defaulting to string."""
    try:
        return _KIND_BY_TYPE.get(annotation, ParamKind.STRING)
    except TypeError:  # unhashable annotation objects
        return ParamKind.STRING


def _annotation_holder(raw: str) -> Callable[[], None]:
    def holder() -> None:
        return None

    holder.__annotations__ = {"value": raw}
    return holder


def _resolve_annotation(raw: Any, globalns: dict[str, Any], owner: str, param_name: str) -> Any:
    if not isinstance(raw, str):
        return raw
    try:
        return typing.get_type_hints(
            _annotation_holder(raw), globalns=globalns, include_extras=True
        )["value"]
    except Exception as exc:
        # Context parameters may name a type imported only for type checking.
        if _CONTEXT_ANNOTATION.match(raw.strip()):
            return ToolContext
        raise ToolsetLoadError(
            f"Cannot resolve annotation {raw!r} of parameter '{param_name}' in {owner}",
            context={"cause": str(exc)},
        ) from exc


def _resolve_hints(func: Callable[..., Any]) -> dict[str, Any]:
    """Resolve parameter annotations, one parameter at a time on failure.

    Raises:
        ToolsetLoadError: If a non-context annotation cannot be resolved.
    """
    target = getattr(func, "__func__", func)
    try:
        return typing.get_type_hints(target, include_extras=True)
    except Exception:
        globalns = getattr(inspect.unwrap(target), "__globals__", {})
    owner = getattr(target, "__qualname__", repr(target))
    return {
        name: _resolve_annotation(raw, globalns, owner, name)
        for name, raw in dict(getattr(target, "__annotations__", {})).items()
        if name != "return"
    }


def definition_from_callable(
    func: Callable[..., Any],
    metadata: ToolMetadata | None = None,
) -> ToolDefinition:
    """Build the ToolDefinition for one callable (bound method or function)."""
    metadata = metadata or get_tool_metadata(func) or ToolMetadata()
    func_name = getattr(func, "__name__", type(func).__name__)
    name = metadata.name or func_name
    doc = inspect.getdoc(func)
    description = metadata.description or (doc.splitlines()[0] if doc else f"Tool: {func_name}")

    hints = _resolve_hints(func)
    params: list[ToolParam] = []
    context_param: str | None = None

    for param_name, parameter in inspect.signature(func).parameters.items():
        if parameter.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        annotation = hints.get(param_name, parameter.annotation)
        base, param_meta = _split_annotation(annotation)
        if _is_context_type(base):
            context_param = param_name
            continue
        params.append(
            ToolParam(
                name=param_name,
                kind=kind_for(base),
                required=param_meta.required if param_meta is not None else True,
                description=param_meta.description if param_meta is not None else None,
                has_default=parameter.default is not inspect.Parameter.empty,
            )
        )

    return ToolDefinition(
        name=name,
        description=description,
        params=tuple(params),
        func=func,
        context_param=context_param,
    )


def _member_names(cls: type) -> list[str]:
    """Public attribute names in definition order, base classes first."""
    seen: dict[str, None] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for attr_name in vars(klass):
            if not attr_name.startswith("_"):
                seen.setdefault(attr_name, None)
    return list(seen)


def build_schema(instance: object) -> list[ToolDefinition]:
    """Return one ToolDefinition per @tool-marked method of ``instance``."""
    definitions: list[ToolDefinition] = []
    for attr_name in _member_names(type(instance)):
        # Static lookup so properties are never evaluated during discovery.
        raw = inspect.getattr_static(instance, attr_name, None)
        if isinstance(raw, (staticmethod, classmethod)):
            raw = raw.__func__
        metadata = get_tool_metadata(raw)
        if metadata is None:
            continue
        definitions.append(definition_from_callable(getattr(instance, attr_name), metadata))
    return definitions


__all__ = [
    "ParamKind",
    "ToolDefinition",
    "ToolDescriptor",
    "ToolParam",
    "build_schema",
    "definition_from_callable",
    "kind_for",
]
