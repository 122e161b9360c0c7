"""Tool marking — ``@tool``, ``Param`` and the module scanner.

Functions are marked as tools with :func:`tool`; per-parameter metadata is
attached through ``typing.Annotated``::

    @tool("add", "Add two numbers")
    def add(a: int, b: Annotated[int, Param("second operand")] = 0) -> int:
        return a + b

:func:`scan_tools` collects marked callables so the registry can register
them in bulk.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar, overload

F = TypeVar("F", bound=Callable[..., Any])

TOOL_ATTR = "__mcpline_tool__"


@dataclass(frozen=True)
class Param:
    """Metadata for one tool parameter, used inside ``Annotated[...]``.

    ``required`` overrides the default inference (a parameter is required
    unless it declares a default value).
    """

    description: str | None = None
    required: bool | None = None


@dataclass(frozen=True)
class ToolMeta:
    """Name and description attached to a callable by :func:`tool`."""

    name: str | None = None
    description: str | None = None


@overload
def tool(name: F, description: str | None = None) -> F: ...


@overload
def tool(name: str | None = None, description: str | None = None) -> Callable[[F], F]: ...


def tool(name: Any = None, description: str | None = None) -> Any:
    """Mark a function as a tool.

    Usable bare (``@tool``) or with arguments (``@tool("name", "desc")``).
    The name defaults to the function name and the description to the first
    line of its docstring.
    """
    if callable(name) or isinstance(name, staticmethod):
        return _mark(name, ToolMeta())

    def decorator(func: F) -> F:
        return _mark(func, ToolMeta(name=name, description=description))

    return decorator


def _mark(func: Any, meta: ToolMeta) -> Any:
    target = func.__func__ if isinstance(func, staticmethod) else func
    setattr(target, TOOL_ATTR, meta)
    return func


def tool_meta(func: Callable[..., Any]) -> ToolMeta | None:
    """Return the :class:`ToolMeta` of *func*, or ``None`` if it is unmarked."""
    meta = getattr(func, TOOL_ATTR, None)
    return meta if isinstance(meta, ToolMeta) else None


def tool_name(func: Callable[..., Any]) -> str:
    meta = tool_meta(func)
    if meta is not None and meta.name:
        return meta.name
    return func.__name__


def tool_description(func: Callable[..., Any]) -> str:
    meta = tool_meta(func)
    if meta is not None and meta.description is not None:
        return meta.description
    doc = inspect.getdoc(func)
    return doc.splitlines()[0] if doc else ""


def scan_tools(*targets: Any) -> list[Callable[..., Any]]:
    """Collect ``@tool``-marked callables from modules, classes or objects.

    Module members are visited in definition order; classes found in a
    module are scanned in place for marked static and class methods.
    Instance targets yield bound methods. Each callable appears once.
    """
    found: list[Callable[..., Any]] = []
    seen: set[int] = set()

    def add(func: Callable[..., Any]) -> None:
        key = id(getattr(func, "__func__", func))
        if key not in seen:
            seen.add(key)
            found.append(func)

    for target in targets:
        for func in _scan_one(target):
            add(func)
    return found


def _scan_one(target: Any) -> Iterable[Callable[..., Any]]:
    if inspect.ismodule(target):
        for member in list(vars(target).values()):
            if inspect.isclass(member):
                yield from _scan_class(member)
            elif inspect.isfunction(member) and tool_meta(member) is not None:
                yield member
    elif inspect.isclass(target):
        yield from _scan_class(target)
    elif callable(target) and tool_meta(target) is not None:
        yield target
    else:
        for attr in dir(type(target)):
            if attr.startswith("_"):
                continue
            member = getattr(target, attr)
            if inspect.ismethod(member) and tool_meta(member) is not None:
                yield member


def _scan_class(cls: type) -> Iterable[Callable[..., Any]]:
    for attr, raw in vars(cls).items():
        if isinstance(raw, (staticmethod, classmethod)) and tool_meta(raw.__func__) is not None:
            yield getattr(cls, attr)
