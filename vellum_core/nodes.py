from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, TypeAlias

from .boxes import AbsoluteBox, BoundingBox, UnitBox
from .forms import Form
from .measure import Measure, MeasureOrNumber, h, size_measure, w, x_measure, y_measure
from .properties import Property


@dataclass(frozen=True)
class Empty:
    """Placeholder child; dropped when composed."""


EMPTY = Empty()


@dataclass(frozen=True)
class ContextPromise:
    """Child built lazily once the parent's absolute box is known."""

    build: Callable[[AbsoluteBox, UnitBox], "Node"]


@dataclass(frozen=True)
class Context:
    """Coordinate scope: a box inside the parent, optional units, ordered children.

    `minwidth`/`minheight` are hints for table and stack layout. `order`
    sorts sibling contexts (stable) and `clip` confines descendants to the box.
    """

    box: BoundingBox = BoundingBox()
    units: UnitBox | None = None
    children: tuple["Node", ...] = ()
    minwidth: Measure | None = None
    minheight: Measure | None = None
    order: int = 0
    clip: bool = False

    def __post_init__(self) -> None:
        for child in self.children:
            if not isinstance(child, (Context, Form, Property, ContextPromise)):
                raise TypeError(f"unsupported context child: {type(child).__name__}")
        for label, value in (("minwidth", self.minwidth), ("minheight", self.minheight)):
            if value is not None and not value.is_absolute:
                raise ValueError(f"{label} must be an absolute measure, got `{value}`")


Node: TypeAlias = Context | Form | Property | ContextPromise | Empty


def context(
    x0: MeasureOrNumber = 0.0,
    y0: MeasureOrNumber = 0.0,
    width: MeasureOrNumber = w,
    height: MeasureOrNumber = h,
    *,
    units: UnitBox | None = None,
    minwidth: MeasureOrNumber | None = None,
    minheight: MeasureOrNumber | None = None,
    order: int = 0,
    clip: bool = False,
) -> Context:
    return Context(
        box=BoundingBox(x_measure(x0), y_measure(y0), x_measure(width), y_measure(height)),
        units=units,
        minwidth=None if minwidth is None else size_measure(minwidth),
        minheight=None if minheight is None else size_measure(minheight),
        order=order,
        clip=clip,
    )


def ctxpromise(build: Callable[[AbsoluteBox, UnitBox], Node]) -> ContextPromise:
    return ContextPromise(build)


ComposeArg: TypeAlias = Node | tuple | list


def compose(parent: Context | tuple | list, *children: ComposeArg) -> Context:
    """Return a new context holding `parent`'s children followed by `children`.

    A tuple or list child `(a, b, c)` stands for `compose(a, b, c)`. The
    parent is never modified.
    """

    root = _as_context(parent)
    added = tuple(child for child in (_expand(c) for c in children) if not isinstance(child, Empty))
    if not added:
        return root
    return replace(root, children=root.children + added)


def _as_context(value: Context | tuple | list) -> Context:
    if isinstance(value, (tuple, list)):
        expanded = _expand(value)
        if not isinstance(expanded, Context):
            raise TypeError("the first element of a compose group must be a Context")
        return expanded
    if not isinstance(value, Context):
        raise TypeError(f"can only compose into a Context, got {type(value).__name__}")
    return value


def _expand(value: ComposeArg) -> Node:
    if isinstance(value, (tuple, list)):
        if not value:
            return EMPTY
        head, *rest = value
        return compose(_as_context(head), *rest)
    if not isinstance(value, (Context, Form, Property, ContextPromise, Empty)):
        raise TypeError(f"cannot compose a {type(value).__name__}")
    return value


def set_units(ctx: Context, units: UnitBox | None) -> Context:
    return replace(ctx, units=units)


def minwidth(node: Node) -> Measure | None:
    return node.minwidth if isinstance(node, Context) else None


def minheight(node: Node) -> Measure | None:
    return node.minheight if isinstance(node, Context) else None
