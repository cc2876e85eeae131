from __future__ import annotations

from dataclasses import dataclass, replace
import logging
from typing import Iterator, TypeAlias

from .boxes import AbsoluteBox, UnitBox, resolve_box
from .forms import Form, ResolvedForm
from .nodes import Context, ContextPromise, Empty, Node
from .properties import Clip, FontSize, Property, ResolvedProperty


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PushScope:
    properties: tuple[ResolvedProperty, ...]


@dataclass(frozen=True)
class PopScope:
    pass


@dataclass(frozen=True)
class DrawForm:
    form: ResolvedForm


RenderEvent: TypeAlias = PushScope | PopScope | DrawForm


def resolve_tree(root: Node, root_box: AbsoluteBox, root_units: UnitBox) -> Iterator[RenderEvent]:
    """Depth-first stream of scope and draw events for a scene tree.

    Every PushScope is matched by exactly one PopScope before the enclosing
    context's events end. Nothing is materialised ahead of the consumer.
    """

    if isinstance(root, Context):
        yield from _walk_context(root, root_box, root_units)
    elif isinstance(root, Form):
        yield DrawForm(root.resolve(root_box, root_units))
    elif isinstance(root, ContextPromise):
        built = root.build(root_box, root_units)
        LOGGER.debug("expanded context promise into %s", type(built).__name__)
        yield from resolve_tree(built, root_box, root_units)
    elif isinstance(root, Property):
        LOGGER.debug("ignoring %s property with no content to apply to", root.channel)
    elif isinstance(root, Empty):
        return
    else:
        raise TypeError(f"Unsupported scene node: {type(root)!r}")


def _walk_context(ctx: Context, parent_box: AbsoluteBox, parent_units: UnitBox) -> Iterator[RenderEvent]:
    box = resolve_box(ctx.box, parent_box, parent_units)
    units = _effective_units(ctx.units, parent_units)

    frames: list[tuple[ResolvedProperty, ...]] = []
    if ctx.clip:
        frames.append((ResolvedProperty("clip", (Clip(box.corners()),)),))
    group: list[ResolvedProperty] = []
    others: list[Node] = []
    for child in ctx.children:
        if isinstance(child, Property):
            group.append(child.resolve(box, units))
            continue
        if group:
            frames.append(tuple(group))
            group = []
        others.append(child)
    if group:
        frames.append(tuple(group))

    units = _inherit_font_size(frames, units)
    others.sort(key=lambda node: node.order if isinstance(node, Context) else 0)

    for frame in frames:
        yield PushScope(frame)
    for child in others:
        yield from resolve_tree(child, box, units)
    for _ in frames:
        yield PopScope()


def _effective_units(own: UnitBox | None, inherited: UnitBox) -> UnitBox:
    if own is None:
        return inherited
    if own.font_size is None and inherited.font_size is not None:
        return replace(own, font_size=inherited.font_size)
    return own


def _inherit_font_size(frames: list[tuple[ResolvedProperty, ...]], units: UnitBox) -> UnitBox:
    """A scalar font size declared in a context redefines `em` for what it contains."""

    font_size = None
    for frame in frames:
        for prop in frame:
            if prop.channel == "fontsize" and prop.is_scalar:
                size = prop.primitives[0]
                assert isinstance(size, FontSize)
                font_size = size.value
    if font_size is None:
        return units
    return replace(units, font_size=font_size)
