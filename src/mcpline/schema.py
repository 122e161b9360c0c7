"""Type-to-schema mapping — JSON Schema derived from Python signatures.

:func:`function_schema` describes a callable's parameters as the
``inputSchema`` object advertised by ``tools/list``; :func:`type_schema`
maps a single annotation, recursing into sequences and compound types.

Nullability is not expressed: ``Optional[X]`` is described as ``X``.
Nested objects never carry a ``required`` list; required-ness is only
tracked for top-level parameters.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import datetime
import enum
import inspect
import types
import typing
import uuid
from dataclasses import dataclass
from decimal import Decimal
from pathlib import PurePath
from typing import Annotated, Any, Literal, NamedTuple, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from mcpline.decorators import Param

_SEQUENCE_ORIGINS: frozenset[Any] = frozenset(
    {
        list,
        tuple,
        set,
        frozenset,
        collections.abc.Sequence,
        collections.abc.MutableSequence,
        collections.abc.Set,
        collections.abc.MutableSet,
        collections.abc.Collection,
        collections.abc.Iterable,
    }
)

_RAW_JSON_TYPES: frozenset[Any] = frozenset(
    {Any, object, dict, collections.abc.Mapping, collections.abc.MutableMapping}
)

# Serialised as JSON strings by pydantic.
TEXT_LIKE_TYPES: tuple[type, ...] = (str, datetime.date, datetime.time, datetime.timedelta, uuid.UUID, PurePath)

_SKIPPED_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


# ---------------------------------------------------------------------------
# Annotation helpers
# ---------------------------------------------------------------------------


def strip_annotated(tp: Any) -> tuple[Any, tuple[Any, ...]]:
    """Split ``Annotated[X, *meta]`` into ``(X, meta)``."""
    if get_origin(tp) is Annotated:
        base, *meta = get_args(tp)
        return base, tuple(meta)
    return tp, ()


def unwrap_optional(tp: Any) -> tuple[Any, bool]:
    """Return ``(X, True)`` for ``Optional[X]`` / ``X | None``, else ``(tp, False)``."""
    if _is_union(tp):
        args = [a for a in get_args(tp) if a is not type(None)]
        nullable = len(args) != len(get_args(tp))
        if len(args) == 1:
            return args[0], nullable
        if nullable:
            return Union[tuple(args)], True  # noqa: UP007
    return tp, False


def unwrap(tp: Any) -> Any:
    """Strip ``Annotated`` and ``Optional`` wrappers, in any nesting order."""
    while True:
        stripped, _ = strip_annotated(tp)
        stripped, _ = unwrap_optional(stripped)
        if stripped is tp:
            return tp
        tp = stripped


def param_meta(meta: tuple[Any, ...]) -> Param | None:
    for item in meta:
        if isinstance(item, Param):
            return item
    return None


def _is_union(tp: Any) -> bool:
    return get_origin(tp) in (Union, types.UnionType)


def is_enum_type(tp: Any) -> bool:
    return inspect.isclass(tp) and issubclass(tp, enum.Enum)


def is_raw_json_type(tp: Any) -> bool:
    return tp in _RAW_JSON_TYPES or get_origin(tp) in _RAW_JSON_TYPES or tp is inspect.Parameter.empty


def sequence_item_type(tp: Any) -> Any | None:
    """Element type of a sequence annotation, ``Any`` if unparameterised, ``None`` otherwise."""
    if tp in _SEQUENCE_ORIGINS:
        return Any
    origin = get_origin(tp)
    if origin not in _SEQUENCE_ORIGINS:
        return None
    args = [a for a in get_args(tp) if a is not Ellipsis]
    return args[0] if args else Any


# ---------------------------------------------------------------------------
# Compound (record) types
# ---------------------------------------------------------------------------


class FieldSpec(NamedTuple):
    """A public field of a compound type."""

    wire_name: str
    key: str
    annotation: Any
    description: str | None


def compound_fields(cls: type) -> list[FieldSpec]:
    """List the public fields of *cls* with their lowerCamel wire names.

    ``key`` is the name the type accepts on construction: the field alias
    for pydantic models that declare one, otherwise the attribute name.
    """
    if issubclass(cls, BaseModel):
        out: list[FieldSpec] = []
        for name, info in cls.model_fields.items():
            wire = info.alias or to_camel(name)
            out.append(FieldSpec(wire, info.alias or name, info.annotation, info.description))
        return out

    hints = get_type_hints(cls, include_extras=True)
    if dataclasses.is_dataclass(cls):
        names = [f.name for f in dataclasses.fields(cls)]
    else:
        names = list(hints)

    fields: list[FieldSpec] = []
    for name in names:
        if name.startswith("_") or get_origin(hints.get(name)) is typing.ClassVar:
            continue
        annotation = hints.get(name, Any)
        _, meta = strip_annotated(annotation)
        param = param_meta(meta)
        fields.append(
            FieldSpec(to_camel(name), name, annotation, param.description if param else None)
        )

    if not dataclasses.is_dataclass(cls):
        for name, member in inspect.getmembers(cls, lambda m: isinstance(m, property)):
            if name.startswith("_") or name in names:
                continue
            annotation = get_type_hints(member.fget).get("return", Any) if member.fget else Any
            fields.append(FieldSpec(to_camel(name), name, annotation, None))
    return fields


# ---------------------------------------------------------------------------
# Schema generation
# ---------------------------------------------------------------------------


def _literal_json_type(values: list[Any]) -> str | None:
    """JSON type shared by every literal value, or ``None`` for a mixed set."""
    if all(isinstance(v, bool) for v in values):
        return "boolean"
    if any(isinstance(v, bool) for v in values):
        return None
    if all(isinstance(v, int) for v in values):
        return "integer"
    if all(isinstance(v, (int, float)) for v in values):
        return "number"
    if all(isinstance(v, str) for v in values):
        return "string"
    return None


def type_schema(tp: Any, description: str | None = None) -> dict[str, Any]:
    """Map the annotation *tp* to a schema node."""
    tp, meta = strip_annotated(tp)
    param = param_meta(meta)
    if description is None and param is not None:
        description = param.description
    tp = unwrap(tp)

    schema: dict[str, Any] = {}
    if description is not None:
        schema["description"] = description

    if tp is str:
        schema["type"] = "string"
    elif tp is bool:
        schema["type"] = "boolean"
    elif tp is int:
        schema["type"] = "integer"
    elif tp in (float, Decimal):
        schema["type"] = "number"
    elif is_enum_type(tp):
        schema["type"] = "string"
        schema["enum"] = list(tp.__members__)
    elif get_origin(tp) is Literal:
        values = [v.value if isinstance(v, enum.Enum) else v for v in get_args(tp)]
        literal_type = _literal_json_type(values)
        if literal_type is not None:
            schema["type"] = literal_type
        schema["enum"] = values
    elif (item := sequence_item_type(tp)) is not None:
        schema["type"] = "array"
        schema["items"] = type_schema(item)
    elif is_raw_json_type(tp) or _is_union(tp) or not inspect.isclass(tp):
        schema["type"] = "object"
    elif issubclass(tp, TEXT_LIKE_TYPES):
        schema["type"] = "string"
    elif issubclass(tp, (int, float)):
        schema["type"] = "integer" if issubclass(tp, int) else "number"
    else:
        schema["type"] = "object"
        schema["properties"] = {
            field.wire_name: type_schema(field.annotation, field.description)
            for field in compound_fields(tp)
        }
    return schema


@dataclass
class ParameterSpec:
    """One formal parameter of a tool callable."""

    name: str
    annotation: Any
    kind: inspect._ParameterKind
    description: str | None = None
    required: bool = True
    has_default: bool = False
    default: Any = None

    @property
    def nullable(self) -> bool:
        _, optional = unwrap_optional(strip_annotated(self.annotation)[0])
        return optional


def parameter_specs(func: Any) -> list[ParameterSpec]:
    """Derive ordered :class:`ParameterSpec` entries from *func*'s signature."""
    signature = inspect.signature(func)
    hints = get_type_hints(func, include_extras=True)

    specs: list[ParameterSpec] = []
    for param in signature.parameters.values():
        if param.kind in _SKIPPED_KINDS:
            continue
        annotation = hints.get(param.name, Any)
        base, meta = strip_annotated(annotation)
        extra = param_meta(meta)
        has_default = param.default is not inspect.Parameter.empty
        if extra is not None and extra.required is not None:
            required = extra.required
        else:
            required = not has_default
        specs.append(
            ParameterSpec(
                name=param.name,
                annotation=base,
                kind=param.kind,
                description=extra.description if extra else None,
                required=required,
                has_default=has_default,
                default=param.default if has_default else None,
            )
        )
    return specs


def function_schema(func: Any) -> dict[str, Any]:
    """Build the ``inputSchema`` object for *func*."""
    return specs_schema(parameter_specs(func))


def specs_schema(specs: list[ParameterSpec]) -> dict[str, Any]:
    properties = {spec.name: type_schema(spec.annotation, spec.description) for spec in specs}
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    required = [spec.name for spec in specs if spec.required]
    if required:
        schema["required"] = required
    return schema
