from __future__ import annotations

from dataclasses import replace
from typing import Sequence, overload

from vellum_core.boxes import BoundingBox
from vellum_core.measure import Measure, MeasureOrNumber, h, size_measure, w
from vellum_core.nodes import Context, compose


def _pads(values: tuple[MeasureOrNumber, ...]) -> tuple[Measure, Measure, Measure, Measure]:
    """(left, right, top, bottom) from one value, (x, y), or all four."""

    pads = tuple(size_measure(v) for v in values)
    if len(pads) == 1:
        return (pads[0], pads[0], pads[0], pads[0])
    if len(pads) == 2:
        return (pads[0], pads[0], pads[1], pads[1])
    if len(pads) == 4:
        return pads  # type: ignore[return-value]
    raise TypeError(f"expected 1, 2 or 4 padding values, got {len(pads)}")


def _grow(minimum: Measure | None, extra: Measure) -> Measure | None:
    if minimum is None or not extra.is_absolute:
        return minimum
    return minimum + extra


@overload
def pad_outer(c: Context, *pads: MeasureOrNumber) -> Context: ...


@overload
def pad_outer(c: Sequence[Context], *pads: MeasureOrNumber) -> list[Context]: ...


def pad_outer(c, *pads):
    """Grow the context's box by the padding and draw its content inside the margin."""

    if isinstance(c, (list, tuple)):
        return [pad_outer(item, *pads) for item in c]
    if not isinstance(c, Context):
        raise TypeError(f"can only pad a Context, got {type(c).__name__}")
    left, right, top, bottom = _pads(pads)
    root = Context(
        box=BoundingBox(c.box.x0, c.box.y0, c.box.width + left + right, c.box.height + top + bottom),
        minwidth=_grow(c.minwidth, left + right),
        minheight=_grow(c.minheight, top + bottom),
        order=c.order,
    )
    inner = replace(c, box=BoundingBox(left, top, w - left - right, h - top - bottom), order=0)
    return compose(root, inner)


pad = pad_outer


@overload
def pad_inner(c: Context, *pads: MeasureOrNumber) -> Context: ...


@overload
def pad_inner(c: Sequence[Context], *pads: MeasureOrNumber) -> list[Context]: ...


def pad_inner(c, *pads):
    """Keep the context's box and shrink its content by the padding."""

    if isinstance(c, (list, tuple)):
        return [pad_inner(item, *pads) for item in c]
    if not isinstance(c, Context):
        raise TypeError(f"can only pad a Context, got {type(c).__name__}")
    left, right, top, bottom = _pads(pads)
    root = Context(box=c.box, minwidth=c.minwidth, minheight=c.minheight, order=c.order)
    inner = replace(c, box=BoundingBox(left, top, w - left - right, h - top - bottom), order=0, minwidth=None, minheight=None)
    return compose(root, inner)
