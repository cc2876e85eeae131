from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Literal, Sequence, TypeAlias

from .boxes import AbsoluteBox, Point, UnitBox, resolve, resolve_point
from .color import Color, ColorLike, parse_color
from .forms import XY, _point_batches
from .measure import Measure, MeasureOrNumber, size_measure


LineCap = Literal["butt", "square", "round"]
LineJoin = Literal["miter", "round", "bevel"]

_LINECAPS = ("butt", "square", "round")
_LINEJOINS = ("miter", "round", "bevel")


@dataclass(frozen=True)
class StrokePrimitive:
    channel: ClassVar[str] = "stroke"
    color: Color | None


@dataclass(frozen=True)
class FillPrimitive:
    channel: ClassVar[str] = "fill"
    color: Color | None


@dataclass(frozen=True)
class LineWidthPrimitive:
    channel: ClassVar[str] = "linewidth"
    value: Measure


@dataclass(frozen=True)
class LineWidth:
    channel: ClassVar[str] = "linewidth"
    value: float


@dataclass(frozen=True)
class StrokeDashPrimitive:
    channel: ClassVar[str] = "strokedash"
    value: tuple[Measure, ...]


@dataclass(frozen=True)
class StrokeDash:
    channel: ClassVar[str] = "strokedash"
    value: tuple[float, ...]


@dataclass(frozen=True)
class StrokeLineCapPrimitive:
    channel: ClassVar[str] = "strokelinecap"
    value: LineCap

    def __post_init__(self) -> None:
        if self.value not in _LINECAPS:
            raise ValueError(f"unknown line cap: {self.value}")


@dataclass(frozen=True)
class StrokeLineJoinPrimitive:
    channel: ClassVar[str] = "strokelinejoin"
    value: LineJoin

    def __post_init__(self) -> None:
        if self.value not in _LINEJOINS:
            raise ValueError(f"unknown line join: {self.value}")


@dataclass(frozen=True)
class FillOpacityPrimitive:
    channel: ClassVar[str] = "fillopacity"
    value: float

    def __post_init__(self) -> None:
        if self.value < 0.0 or self.value > 1.0:
            raise ValueError("fill opacity must be in [0, 1]")


@dataclass(frozen=True)
class StrokeOpacityPrimitive:
    channel: ClassVar[str] = "strokeopacity"
    value: float

    def __post_init__(self) -> None:
        if self.value < 0.0 or self.value > 1.0:
            raise ValueError("stroke opacity must be in [0, 1]")


@dataclass(frozen=True)
class VisiblePrimitive:
    channel: ClassVar[str] = "visible"
    value: bool


@dataclass(frozen=True)
class ClipPrimitive:
    channel: ClassVar[str] = "clip"
    points: tuple[Point, ...]


@dataclass(frozen=True)
class Clip:
    """Resolved clip polygon; equal geometry compares and hashes equal."""

    channel: ClassVar[str] = "clip"
    points: tuple[XY, ...]


@dataclass(frozen=True)
class FontPrimitive:
    channel: ClassVar[str] = "font"
    family: str


@dataclass(frozen=True)
class FontSizePrimitive:
    channel: ClassVar[str] = "fontsize"
    value: Measure


@dataclass(frozen=True)
class FontSize:
    channel: ClassVar[str] = "fontsize"
    value: float


@dataclass(frozen=True)
class SVGIDPrimitive:
    channel: ClassVar[str] = "svgid"
    value: str


@dataclass(frozen=True)
class SVGClassPrimitive:
    channel: ClassVar[str] = "svgclass"
    value: str


@dataclass(frozen=True)
class SVGAttributePrimitive:
    channel: ClassVar[str] = "svgattribute"
    attribute: str
    value: str

    def __post_init__(self) -> None:
        if not self.attribute.strip():
            raise ValueError("svg attribute name must be non-empty")


@dataclass(frozen=True)
class JSIncludePrimitive:
    channel: ClassVar[str] = "jsinclude"
    path: str

    def __post_init__(self) -> None:
        if not self.path.strip():
            raise ValueError("jsinclude path must be non-empty")


@dataclass(frozen=True)
class JSCallPrimitive:
    channel: ClassVar[str] = "jscall"
    code: str
    event: str = "onload"

    def __post_init__(self) -> None:
        if not self.event.strip():
            raise ValueError("jscall event must be non-empty")


PropertyPrimitive: TypeAlias = (
    StrokePrimitive
    | FillPrimitive
    | LineWidthPrimitive
    | StrokeDashPrimitive
    | StrokeLineCapPrimitive
    | StrokeLineJoinPrimitive
    | FillOpacityPrimitive
    | StrokeOpacityPrimitive
    | VisiblePrimitive
    | ClipPrimitive
    | FontPrimitive
    | FontSizePrimitive
    | SVGIDPrimitive
    | SVGClassPrimitive
    | SVGAttributePrimitive
    | JSIncludePrimitive
    | JSCallPrimitive
)

ResolvedPropertyPrimitive: TypeAlias = (
    StrokePrimitive
    | FillPrimitive
    | LineWidth
    | StrokeDash
    | StrokeLineCapPrimitive
    | StrokeLineJoinPrimitive
    | FillOpacityPrimitive
    | StrokeOpacityPrimitive
    | VisiblePrimitive
    | Clip
    | FontPrimitive
    | FontSize
    | SVGIDPrimitive
    | SVGClassPrimitive
    | SVGAttributePrimitive
    | JSIncludePrimitive
    | JSCallPrimitive
)


def resolve_property_primitive(
    prim: PropertyPrimitive, box: AbsoluteBox, units: UnitBox
) -> ResolvedPropertyPrimitive:
    if isinstance(prim, LineWidthPrimitive):
        return LineWidth(resolve(prim.value, box, units))
    if isinstance(prim, StrokeDashPrimitive):
        return StrokeDash(tuple(resolve(v, box, units) for v in prim.value))
    if isinstance(prim, FontSizePrimitive):
        return FontSize(resolve(prim.value, box, units))
    if isinstance(prim, ClipPrimitive):
        return Clip(tuple(resolve_point(p, box, units) for p in prim.points))
    return prim


@dataclass(frozen=True)
class ResolvedProperty:
    channel: str
    primitives: tuple[ResolvedPropertyPrimitive, ...]

    @property
    def is_scalar(self) -> bool:
        return len(self.primitives) == 1

    def __len__(self) -> int:
        return len(self.primitives)


@dataclass(frozen=True)
class Property:
    """Batch of style values for one channel.

    One value applies to every primitive of a form (scalar); N values are
    distributed index-by-index over a form of N primitives (vector).
    """

    primitives: tuple[PropertyPrimitive, ...]

    def __post_init__(self) -> None:
        if not self.primitives:
            raise ValueError("a property needs at least one value")
        channel = self.primitives[0].channel
        if any(p.channel != channel for p in self.primitives):
            raise ValueError("a property batch must hold a single style channel")

    @property
    def channel(self) -> str:
        return self.primitives[0].channel

    @property
    def is_scalar(self) -> bool:
        return len(self.primitives) == 1

    def __len__(self) -> int:
        return len(self.primitives)

    def resolve(self, box: AbsoluteBox, units: UnitBox) -> ResolvedProperty:
        return ResolvedProperty(
            self.channel, tuple(resolve_property_primitive(p, box, units) for p in self.primitives)
        )


def _values(value: object) -> list[object]:
    if isinstance(value, list):
        if not value:
            raise ValueError("vector property values must be non-empty")
        return value
    return [value]


def stroke(color: ColorLike | list[ColorLike]) -> Property:
    return Property(tuple(StrokePrimitive(parse_color(c)) for c in _values(color)))  # type: ignore[arg-type]


def fill(color: ColorLike | list[ColorLike]) -> Property:
    return Property(tuple(FillPrimitive(parse_color(c)) for c in _values(color)))  # type: ignore[arg-type]


def linewidth(value: MeasureOrNumber | list[MeasureOrNumber]) -> Property:
    return Property(tuple(LineWidthPrimitive(size_measure(v)) for v in _values(value)))  # type: ignore[arg-type]


def strokedash(values: Sequence[MeasureOrNumber] | list[Sequence[MeasureOrNumber]]) -> Property:
    """`[2mm, 1mm]` is one dash pattern; `[[2mm, 1mm], [1mm]]` is a vector of them."""

    values = list(values)
    if values and all(isinstance(v, (list, tuple)) for v in values):
        batches = values
    else:
        batches = [values]
    return Property(
        tuple(StrokeDashPrimitive(tuple(size_measure(v) for v in batch)) for batch in batches)  # type: ignore[union-attr]
    )


def strokelinecap(value: LineCap | list[LineCap]) -> Property:
    return Property(tuple(StrokeLineCapPrimitive(v) for v in _values(value)))  # type: ignore[arg-type]


def strokelinejoin(value: LineJoin | list[LineJoin]) -> Property:
    return Property(tuple(StrokeLineJoinPrimitive(v) for v in _values(value)))  # type: ignore[arg-type]


def fillopacity(value: float | list[float]) -> Property:
    return Property(tuple(FillOpacityPrimitive(float(v)) for v in _values(value)))  # type: ignore[arg-type]


def strokeopacity(value: float | list[float]) -> Property:
    return Property(tuple(StrokeOpacityPrimitive(float(v)) for v in _values(value)))  # type: ignore[arg-type]


def visible(value: bool | list[bool]) -> Property:
    return Property(tuple(VisiblePrimitive(bool(v)) for v in _values(value)))


def clip(points: Sequence[object]) -> Property:
    """Clip to one polygon `[(x, y), ...]`, or a vector of polygons."""

    return Property(tuple(ClipPrimitive(batch) for batch in _point_batches(points)))


def font(family: str | list[str]) -> Property:
    return Property(tuple(FontPrimitive(str(v)) for v in _values(family)))


def fontsize(value: MeasureOrNumber | list[MeasureOrNumber]) -> Property:
    return Property(tuple(FontSizePrimitive(size_measure(v)) for v in _values(value)))  # type: ignore[arg-type]


def svgid(value: str | list[str]) -> Property:
    return Property(tuple(SVGIDPrimitive(str(v)) for v in _values(value)))


def svgclass(value: str | list[str]) -> Property:
    return Property(tuple(SVGClassPrimitive(str(v)) for v in _values(value)))


def svgattribute(attribute: str, value: str | list[str]) -> Property:
    return Property(tuple(SVGAttributePrimitive(attribute, str(v)) for v in _values(value)))


def jsinclude(path: str) -> Property:
    return Property((JSIncludePrimitive(path),))


def jscall(code: str | list[str], event: str = "onload") -> Property:
    return Property(tuple(JSCallPrimitive(str(c), event) for c in _values(code)))

