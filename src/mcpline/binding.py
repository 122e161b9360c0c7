"""Parameter binding and the tool invocation thunk.

:class:`ToolInvoker` turns a JSON ``arguments`` object into a concrete call
of a Python callable and renders whatever it returns as the tool's text
output.

Binding precedence, per parameter:

1. the argument is present: decode it into the declared type;
2. the parameter declares a default: use it;
3. the type is optional or non-primitive: bind ``None``;
4. otherwise fail with a missing-parameter error.
"""

from __future__ import annotations

import asyncio
import collections.abc
import dataclasses
import enum
import functools
import inspect
import json
import logging
from collections.abc import Callable
from decimal import Decimal
from typing import Any, get_args, get_origin, get_type_hints

from pydantic import BaseModel, PydanticUserError, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticSerializationError, to_jsonable_python

from mcpline.errors import MissingParameterError, ParameterDecodeError
from mcpline.schema import (
    ParameterSpec,
    compound_fields,
    is_enum_type,
    is_raw_json_type,
    parameter_specs,
    sequence_item_type,
    strip_annotated,
    unwrap,
)

logger = logging.getLogger(__name__)

PRIMITIVE_TYPES: tuple[type, ...] = (bool, int, float, Decimal, enum.Enum)

_AWAITABLE_ORIGINS: frozenset[Any] = frozenset(
    {
        collections.abc.Awaitable,
        collections.abc.Coroutine,
        asyncio.Future,
        asyncio.Task,
    }
)

_NO_VALUE = object()


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def is_primitive(tp: Any) -> bool:
    """True for value types that cannot be bound to ``None`` implicitly."""
    return inspect.isclass(tp) and issubclass(tp, PRIMITIVE_TYPES)


@functools.lru_cache(maxsize=256)
def _cached_adapter(tp: Any) -> TypeAdapter[Any]:
    return TypeAdapter(tp)


def _adapter(tp: Any) -> TypeAdapter[Any]:
    try:
        return _cached_adapter(tp)
    except TypeError:
        # unhashable annotation
        return TypeAdapter(tp)


def _is_plain_class(tp: Any) -> bool:
    return (
        inspect.isclass(tp)
        and not issubclass(tp, BaseModel)
        and not dataclasses.is_dataclass(tp)
        and not is_enum_type(tp)
        and not issubclass(tp, (dict, tuple))
        and bool(getattr(tp, "__annotations__", None))
    )


def _is_compound(tp: Any) -> bool:
    return (
        inspect.isclass(tp)
        and not is_raw_json_type(tp)
        and not is_enum_type(tp)
        and (
            issubclass(tp, BaseModel)
            or dataclasses.is_dataclass(tp)
            or _is_plain_class(tp)
            or hasattr(tp, "__required_keys__")  # TypedDict
            or hasattr(tp, "_fields")  # NamedTuple
        )
    )


def _from_wire(value: Any, tp: Any) -> Any:
    """Rename lowerCamel keys of compound values back to field keys, recursively.

    Enum members may be given by name, matching the advertised schema.
    """
    tp = unwrap(tp)
    if value is None:
        return None
    if is_enum_type(tp) and isinstance(value, str) and value in tp.__members__:
        return tp[value]
    item = sequence_item_type(tp)
    if item is not None and isinstance(value, list):
        return [_from_wire(v, item) for v in value]
    if _is_compound(tp) and isinstance(value, dict):
        fields = {f.wire_name: f for f in compound_fields(tp)}
        out: dict[str, Any] = {}
        for key, raw in value.items():
            field = fields.get(key)
            if field is None:
                out[key] = raw
            else:
                out[field.key] = _from_wire(raw, field.annotation)
        return out
    return value


def _build_plain(tp: type, value: Any) -> Any:
    if not isinstance(value, dict):
        msg = f"expected an object for {tp.__name__}"
        raise ValueError(msg)
    kwargs = {}
    for field in compound_fields(tp):
        if field.key in value:
            kwargs[field.key] = decode_value(value[field.key], field.annotation)
    return tp(**kwargs)


def decode_value(value: Any, annotation: Any) -> Any:
    """Convert a decoded JSON value into *annotation*.

    Raises ``ValidationError``, ``TypeError`` or ``ValueError`` on failure.
    """
    base = unwrap(annotation)
    if is_raw_json_type(base):
        return value
    normalized = _from_wire(value, annotation)
    if _is_plain_class(base) and normalized is not None:
        return _build_plain(base, normalized)
    return _adapter(annotation).validate_python(normalized)


def _describe(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        parts = []
        for err in exc.errors():
            loc = ".".join(str(p) for p in err.get("loc", ()))
            parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
        return "; ".join(parts)
    return str(exc)


def bind_arguments(
    arguments: Any, specs: list[ParameterSpec]
) -> tuple[list[Any], dict[str, Any]]:
    """Produce ``(args, kwargs)`` for a call from a JSON ``arguments`` value."""
    provided = arguments if isinstance(arguments, dict) else {}
    args: list[Any] = []
    kwargs: dict[str, Any] = {}

    for spec in specs:
        if spec.name in provided:
            try:
                value = decode_value(provided[spec.name], spec.annotation)
            except (ValidationError, PydanticUserError, TypeError, ValueError) as exc:
                raise ParameterDecodeError(spec.name, _describe(exc)) from exc
        elif spec.has_default:
            value = spec.default
        elif spec.nullable or not is_primitive(unwrap(spec.annotation)):
            value = None
        else:
            raise MissingParameterError(spec.name)

        if spec.kind is inspect.Parameter.POSITIONAL_ONLY:
            args.append(value)
        else:
            kwargs[spec.name] = value
    return args, kwargs


# ---------------------------------------------------------------------------
# Rendering results
# ---------------------------------------------------------------------------


def to_jsonable(obj: Any) -> Any:
    """Convert *obj* to plain JSON data.

    Object fields use lowerCamel names and ``None`` fields are dropped;
    dictionary keys are kept as they are.
    """
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    if isinstance(obj, BaseModel):
        out = {}
        for name, info in type(obj).model_fields.items():
            value = getattr(obj, name)
            if value is not None:
                out[info.alias or to_camel(name)] = to_jsonable(value)
        return out
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            to_camel(f.name): to_jsonable(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
            if getattr(obj, f.name) is not None
        }
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in obj]
    try:
        return to_jsonable_python(obj)
    except PydanticSerializationError:
        if not hasattr(obj, "__dict__"):
            raise
        return {
            to_camel(k): to_jsonable(v)
            for k, v in vars(obj).items()
            if not k.startswith("_") and v is not None
        }


def to_json_text(obj: Any) -> str:
    """Serialise *obj* as compact JSON text."""
    return json.dumps(to_jsonable(obj), ensure_ascii=False, separators=(",", ":"))


def render_result(result: Any, declared: Any = _NO_VALUE) -> str:
    """Render a (non-awaitable) tool result as text."""
    if result is None:
        return "null"
    if declared is str or isinstance(result, str):
        return str(result)
    return to_json_text(result)


class ToolInvoker:
    """Invocation thunk for a callable: ``await invoker(arguments) -> str``."""

    def __init__(self, func: Callable[..., Any]) -> None:
        self.func = func
        self.specs = parameter_specs(func)
        self._declared = self._declared_return(func)
        self._deferred_inner = self._awaited_return(func, self._declared)

    def __repr__(self) -> str:
        return f"ToolInvoker({getattr(self.func, '__qualname__', self.func)!r})"

    async def __call__(self, arguments: Any) -> str:
        args, kwargs = bind_arguments(arguments, self.specs)
        result = self.func(*args, **kwargs)

        if result is None:
            return "null"
        if inspect.isawaitable(result):
            inner = await result
            if self._deferred_inner is None:
                return "success"
            return render_result(inner, self._deferred_inner)
        if self._declared is str:
            return str(result)
        if self._declared is _NO_VALUE:
            return render_result(result)
        return to_json_text(result)

    @staticmethod
    def _declared_return(func: Callable[..., Any]) -> Any:
        try:
            hints = get_type_hints(func)
        except (NameError, TypeError):
            logger.debug("Unresolvable return annotation on %r", func)
            return _NO_VALUE
        if "return" not in hints:
            return _NO_VALUE
        return hints["return"]

    @staticmethod
    def _awaited_return(func: Callable[..., Any], declared: Any) -> Any:
        """Declared type produced by awaiting *func*'s result.

        ``None`` marks a completion-only awaitable (``-> None`` coroutine
        functions, bare ``Awaitable``/``Future``).
        """
        if inspect.iscoroutinefunction(func):
            if declared is type(None):
                return None
            return declared
        base, _ = strip_annotated(declared)
        if base in _AWAITABLE_ORIGINS:
            return None
        if get_origin(base) in _AWAITABLE_ORIGINS:
            inner = get_args(base)[-1] if get_args(base) else None
            return None if inner in (None, type(None)) else inner
        return _NO_VALUE
