from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Sequence

from vellum_core.color import Color
from vellum_core.config import RenderConfig
from vellum_core.errors import BatchLengthMismatch
from vellum_core.properties import (
    Clip,
    FillOpacityPrimitive,
    FillPrimitive,
    FontPrimitive,
    FontSize,
    LineCap,
    LineJoin,
    LineWidth,
    ResolvedProperty,
    ResolvedPropertyPrimitive,
    StrokeDash,
    StrokeLineCapPrimitive,
    StrokeLineJoinPrimitive,
    StrokeOpacityPrimitive,
    StrokePrimitive,
    VisiblePrimitive,
)


LOGGER = logging.getLogger(__name__)


@dataclass
class PropertyFrame:
    """Properties pushed together by one group of property children.

    When a channel is declared more than once in the same frame the last
    declaration wins.
    """

    scalars: dict[str, ResolvedProperty] = field(default_factory=dict)
    vectors: dict[str, ResolvedProperty] = field(default_factory=dict)

    def add(self, prop: ResolvedProperty) -> None:
        if prop.channel in self.scalars or prop.channel in self.vectors:
            LOGGER.debug("property channel `%s` declared twice in one frame; keeping the later one", prop.channel)
        self.scalars.pop(prop.channel, None)
        self.vectors.pop(prop.channel, None)
        if prop.is_scalar:
            self.scalars[prop.channel] = prop
        else:
            self.vectors[prop.channel] = prop

    def channels(self) -> list[str]:
        return list(self.scalars) + list(self.vectors)

    def get(self, channel: str) -> ResolvedProperty:
        return self.scalars.get(channel) or self.vectors[channel]


class PropertyStack:
    """LIFO of property frames with a per-channel history.

    The history lets a pop reveal the next-deepest declaration of a channel
    instead of forgetting the channel altogether.
    """

    def __init__(self) -> None:
        self._frames: list[PropertyFrame] = []
        self._history: dict[str, list[ResolvedProperty]] = {}
        self.push_count = 0
        self.pop_count = 0

    def __len__(self) -> int:
        return len(self._frames)

    def __bool__(self) -> bool:
        return bool(self._frames)

    def push(self, properties: Sequence[ResolvedProperty]) -> PropertyFrame:
        frame = PropertyFrame()
        for prop in properties:
            frame.add(prop)
        self._frames.append(frame)
        for channel in frame.channels():
            self._history.setdefault(channel, []).append(frame.get(channel))
        self.push_count += 1
        return frame

    def pop(self) -> PropertyFrame:
        if not self._frames:
            raise RuntimeError("property stack underflow: pop without a matching push")
        frame = self._frames.pop()
        for channel in frame.channels():
            history = self._history[channel]
            history.pop()
            if not history:
                del self._history[channel]
        self.pop_count += 1
        return frame

    def effective(self, channel: str) -> ResolvedProperty | None:
        history = self._history.get(channel)
        return history[-1] if history else None

    def history(self, channel: str) -> tuple[ResolvedProperty, ...]:
        return tuple(self._history.get(channel, ()))

    def vector_properties(self) -> dict[str, ResolvedProperty]:
        """Vector properties currently in effect; a deeper scalar masks a shallower vector."""

        return {channel: h[-1] for channel, h in self._history.items() if not h[-1].is_scalar}

    def masked_vector_clips(self) -> tuple[ResolvedProperty, ...]:
        """Vector clips hidden below a deeper clip; clips intersect, so they still apply."""

        return tuple(prop for prop in self.history("clip")[:-1] if not prop.is_scalar)

    def check_lengths(self, count: int) -> None:
        checked = list(self.vector_properties().items())
        checked.extend(("clip", prop) for prop in self.masked_vector_clips())
        for channel, prop in checked:
            if len(prop) != count:
                raise BatchLengthMismatch(
                    f"Vector form and vector property differ in length: {count} primitives but "
                    f"{len(prop)} `{channel}` values. Can't distribute."
                )

    def value_at(self, channel: str, index: int) -> ResolvedPropertyPrimitive | None:
        prop = self.effective(channel)
        if prop is None:
            return None
        return prop.primitives[0] if prop.is_scalar else prop.primitives[index]

    def style_at(self, index: int, defaults: ResolvedStyle) -> ResolvedStyle:
        """Effective style of primitive `index` for immediate-mode backends."""

        def pick(channel: str):
            return self.value_at(channel, index)

        stroke = pick("stroke")
        fill = pick("fill")
        width = pick("linewidth")
        dash = pick("strokedash")
        cap = pick("strokelinecap")
        join = pick("strokelinejoin")
        fill_opacity = pick("fillopacity")
        stroke_opacity = pick("strokeopacity")
        vis = pick("visible")
        family = pick("font")
        size = pick("fontsize")

        clips: list[Clip] = []
        for prop in self.history("clip"):
            clip_value = prop.primitives[0] if prop.is_scalar else prop.primitives[index]
            assert isinstance(clip_value, Clip)
            clips.append(clip_value)

        return ResolvedStyle(
            stroke=stroke.color if isinstance(stroke, StrokePrimitive) else defaults.stroke,
            fill=fill.color if isinstance(fill, FillPrimitive) else defaults.fill,
            line_width=width.value if isinstance(width, LineWidth) else defaults.line_width,
            dash=dash.value if isinstance(dash, StrokeDash) else defaults.dash,
            linecap=cap.value if isinstance(cap, StrokeLineCapPrimitive) else defaults.linecap,
            linejoin=join.value if isinstance(join, StrokeLineJoinPrimitive) else defaults.linejoin,
            fill_opacity=(
                fill_opacity.value if isinstance(fill_opacity, FillOpacityPrimitive) else defaults.fill_opacity
            ),
            stroke_opacity=(
                stroke_opacity.value
                if isinstance(stroke_opacity, StrokeOpacityPrimitive)
                else defaults.stroke_opacity
            ),
            visible=vis.value if isinstance(vis, VisiblePrimitive) else defaults.visible,
            clips=tuple(clips),
            font_family=family.family if isinstance(family, FontPrimitive) else defaults.font_family,
            font_size=size.value if isinstance(size, FontSize) else defaults.font_size,
        )


@dataclass(frozen=True)
class ResolvedStyle:
    stroke: Color | None
    fill: Color | None
    line_width: float
    dash: tuple[float, ...] = ()
    linecap: LineCap = "butt"
    linejoin: LineJoin = "miter"
    fill_opacity: float = 1.0
    stroke_opacity: float = 1.0
    visible: bool = True
    clips: tuple[Clip, ...] = ()
    font_family: str = "sans"
    font_size: float = 11 * 25.4 / 72.0

    @classmethod
    def from_config(cls, config: RenderConfig) -> ResolvedStyle:
        return cls(
            stroke=config.stroke_color,
            fill=config.fill_color,
            line_width=config.line_width.abs,
            font_family=config.font_family,
            font_size=config.font_size.abs,
        )
