from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Literal, Sequence, TypeAlias

from .boxes import AbsoluteBox, Point, UnitBox, point, resolve, resolve_point
from .measure import Measure, MeasureOrNumber, h, w, x_measure, y_measure


HAlign = Literal["left", "center", "right"]
VAlign = Literal["top", "center", "bottom"]

hleft: HAlign = "left"
hcenter: HAlign = "center"
hright: HAlign = "right"
vtop: VAlign = "top"
vcenter: VAlign = "center"
vbottom: VAlign = "bottom"

_HALIGNS = ("left", "center", "right")
_VALIGNS = ("top", "center", "bottom")

XY: TypeAlias = tuple[float, float]


# Resolved primitives: absolute millimetres, ready for a backend.


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class Circle:
    cx: float
    cy: float
    r: float


@dataclass(frozen=True)
class Ellipse:
    cx: float
    cy: float
    rx: float
    ry: float
    angle_deg: float = 0.0


@dataclass(frozen=True)
class Polygon:
    points: tuple[XY, ...]


@dataclass(frozen=True)
class Lines:
    points: tuple[XY, ...]


@dataclass(frozen=True)
class Curve:
    anchor0: XY
    ctrl0: XY
    ctrl1: XY
    anchor1: XY


@dataclass(frozen=True)
class Text:
    x: float
    y: float
    value: str
    halign: HAlign = "left"
    valign: VAlign = "bottom"
    rotation_deg: float = 0.0


@dataclass(frozen=True)
class Bitmap:
    mime: str
    data: bytes
    x: float
    y: float
    width: float
    height: float


ResolvedPrimitive: TypeAlias = Rect | Circle | Ellipse | Polygon | Lines | Curve | Text | Bitmap


# Unresolved primitives: geometry in Measures.


@dataclass(frozen=True)
class RectanglePrimitive:
    corner: Point
    width: Measure
    height: Measure

    def resolve(self, box: AbsoluteBox, units: UnitBox) -> Rect:
        x, y = resolve_point(self.corner, box, units)
        return Rect(x, y, resolve(self.width, box, units), resolve(self.height, box, units))


@dataclass(frozen=True)
class CirclePrimitive:
    center: Point
    radius: Measure

    def resolve(self, box: AbsoluteBox, units: UnitBox) -> Circle:
        x, y = resolve_point(self.center, box, units)
        return Circle(x, y, resolve(self.radius, box, units))


@dataclass(frozen=True)
class EllipsePrimitive:
    center: Point
    x_point: Point
    y_point: Point

    def resolve(self, box: AbsoluteBox, units: UnitBox) -> Ellipse:
        cx, cy = resolve_point(self.center, box, units)
        xx, xy = resolve_point(self.x_point, box, units)
        yx, yy = resolve_point(self.y_point, box, units)
        rx = math.hypot(xx - cx, xy - cy)
        ry = math.hypot(yx - cx, yy - cy)
        angle = math.degrees(math.atan2(xy - cy, xx - cx))
        return Ellipse(cx, cy, rx, ry, angle)


@dataclass(frozen=True)
class PolygonPrimitive:
    points: tuple[Point, ...]

    def resolve(self, box: AbsoluteBox, units: UnitBox) -> Polygon:
        return Polygon(tuple(resolve_point(p, box, units) for p in self.points))


@dataclass(frozen=True)
class LinesPrimitive:
    points: tuple[Point, ...]

    def resolve(self, box: AbsoluteBox, units: UnitBox) -> Lines:
        return Lines(tuple(resolve_point(p, box, units) for p in self.points))


@dataclass(frozen=True)
class CurvePrimitive:
    anchor0: Point
    ctrl0: Point
    ctrl1: Point
    anchor1: Point

    def resolve(self, box: AbsoluteBox, units: UnitBox) -> Curve:
        return Curve(
            resolve_point(self.anchor0, box, units),
            resolve_point(self.ctrl0, box, units),
            resolve_point(self.ctrl1, box, units),
            resolve_point(self.anchor1, box, units),
        )


@dataclass(frozen=True)
class TextPrimitive:
    position: Point
    value: str
    halign: HAlign = "left"
    valign: VAlign = "bottom"
    rotation_deg: float = 0.0

    def __post_init__(self) -> None:
        if self.halign not in _HALIGNS:
            raise ValueError(f"unknown horizontal alignment: {self.halign}")
        if self.valign not in _VALIGNS:
            raise ValueError(f"unknown vertical alignment: {self.valign}")

    def resolve(self, box: AbsoluteBox, units: UnitBox) -> Text:
        x, y = resolve_point(self.position, box, units)
        return Text(x, y, self.value, self.halign, self.valign, self.rotation_deg)


@dataclass(frozen=True)
class BitmapPrimitive:
    mime: str
    data: bytes
    corner: Point
    width: Measure
    height: Measure

    def resolve(self, box: AbsoluteBox, units: UnitBox) -> Bitmap:
        x, y = resolve_point(self.corner, box, units)
        return Bitmap(self.mime, self.data, x, y, resolve(self.width, box, units), resolve(self.height, box, units))


Primitive: TypeAlias = (
    RectanglePrimitive
    | CirclePrimitive
    | EllipsePrimitive
    | PolygonPrimitive
    | LinesPrimitive
    | CurvePrimitive
    | TextPrimitive
    | BitmapPrimitive
)


@dataclass(frozen=True)
class ResolvedForm:
    primitives: tuple[ResolvedPrimitive, ...]

    def __len__(self) -> int:
        return len(self.primitives)


@dataclass(frozen=True)
class Form:
    """Ordered batch of primitives of a single kind, drawn together."""

    primitives: tuple[Primitive, ...]

    def __post_init__(self) -> None:
        if not self.primitives:
            raise ValueError("a form needs at least one primitive")
        kind = type(self.primitives[0])
        if any(type(p) is not kind for p in self.primitives):
            raise ValueError("a form batch must hold a single primitive kind")

    def __len__(self) -> int:
        return len(self.primitives)

    def resolve(self, box: AbsoluteBox, units: UnitBox) -> ResolvedForm:
        return ResolvedForm(tuple(p.resolve(box, units) for p in self.primitives))


def _broadcast(**args: object) -> list[dict[str, object]]:
    """Expand list/tuple arguments so a builder yields one primitive per element."""

    lengths = {len(v) for v in args.values() if isinstance(v, (list, tuple))}
    if len(lengths) > 1:
        raise ValueError(f"vector arguments differ in length: {sorted(lengths)}")
    n = lengths.pop() if lengths else 1
    if n == 0:
        raise ValueError("vector arguments must be non-empty")
    return [
        {key: (value[i] if isinstance(value, (list, tuple)) else value) for key, value in args.items()}
        for i in range(n)
    ]


def _is_point_like(value: object) -> bool:
    return (
        isinstance(value, (tuple, list))
        and len(value) == 2
        and all(isinstance(v, (int, float, Measure)) and not isinstance(v, bool) for v in value)
    )


def _as_points(values: Sequence[object]) -> tuple[Point, ...]:
    points = []
    for value in values:
        if isinstance(value, Point):
            points.append(value)
        elif _is_point_like(value):
            points.append(point(value[0], value[1]))  # type: ignore[index]
        else:
            raise ValueError(f"expected an (x, y) pair, got {value!r}")
    return tuple(points)


def _point_batches(points: Sequence[object]) -> list[tuple[Point, ...]]:
    if not points:
        raise ValueError("point sequences must be non-empty")
    first = points[0]
    if isinstance(first, Point) or _is_point_like(first):
        return [_as_points(points)]
    return [_as_points(batch) for batch in points]  # type: ignore[arg-type]


def rectangle(
    x0: MeasureOrNumber | Sequence[MeasureOrNumber] = 0.0,
    y0: MeasureOrNumber | Sequence[MeasureOrNumber] = 0.0,
    width: MeasureOrNumber | Sequence[MeasureOrNumber] = w,
    height: MeasureOrNumber | Sequence[MeasureOrNumber] = h,
) -> Form:
    return Form(
        tuple(
            RectanglePrimitive(point(a["x0"], a["y0"]), x_measure(a["width"]), y_measure(a["height"]))  # type: ignore[arg-type]
            for a in _broadcast(x0=x0, y0=y0, width=width, height=height)
        )
    )


def circle(
    x: MeasureOrNumber | Sequence[MeasureOrNumber] = 0.5,
    y: MeasureOrNumber | Sequence[MeasureOrNumber] = 0.5,
    r: MeasureOrNumber | Sequence[MeasureOrNumber] = 0.5,
) -> Form:
    return Form(
        tuple(
            CirclePrimitive(point(a["x"], a["y"]), x_measure(a["r"]))  # type: ignore[arg-type]
            for a in _broadcast(x=x, y=y, r=r)
        )
    )


def ellipse(
    x: MeasureOrNumber | Sequence[MeasureOrNumber] = 0.5,
    y: MeasureOrNumber | Sequence[MeasureOrNumber] = 0.5,
    x_radius: MeasureOrNumber | Sequence[MeasureOrNumber] = 0.5,
    y_radius: MeasureOrNumber | Sequence[MeasureOrNumber] = 0.5,
) -> Form:
    prims = []
    for a in _broadcast(x=x, y=y, x_radius=x_radius, y_radius=y_radius):
        cx, cy = x_measure(a["x"]), y_measure(a["y"])  # type: ignore[arg-type]
        prims.append(
            EllipsePrimitive(
                center=Point(cx, cy),
                x_point=Point(cx + x_measure(a["x_radius"]), cy),  # type: ignore[arg-type]
                y_point=Point(cx, cy + y_measure(a["y_radius"])),  # type: ignore[arg-type]
            )
        )
    return Form(tuple(prims))


def polygon(points: Sequence[object]) -> Form:
    """One polygon from `[(x, y), ...]`, or several from a list of such lists."""

    return Form(tuple(PolygonPrimitive(batch) for batch in _point_batches(points)))


def line(points: Sequence[object]) -> Form:
    """Polyline(s); non-finite coordinates lift the pen."""

    return Form(tuple(LinesPrimitive(batch) for batch in _point_batches(points)))


def curve(
    anchor0: object,
    ctrl0: object,
    ctrl1: object,
    anchor1: object,
) -> Form:
    groups = [anchor0, ctrl0, ctrl1, anchor1]
    if all(_is_point_like(g) or isinstance(g, Point) for g in groups):
        batches = [groups]
    else:
        lengths = {len(g) for g in groups}  # type: ignore[arg-type]
        if len(lengths) != 1:
            raise ValueError("curve control point sequences differ in length")
        batches = [list(parts) for parts in zip(*groups)]  # type: ignore[call-overload]
    return Form(tuple(CurvePrimitive(*_as_points(batch)) for batch in batches))


def text(
    x: MeasureOrNumber | Sequence[MeasureOrNumber],
    y: MeasureOrNumber | Sequence[MeasureOrNumber],
    value: str | Sequence[str],
    halign: HAlign = "left",
    valign: VAlign = "bottom",
    rotation_deg: float = 0.0,
) -> Form:
    return Form(
        tuple(
            TextPrimitive(point(a["x"], a["y"]), str(a["value"]), halign, valign, rotation_deg)  # type: ignore[arg-type]
            for a in _broadcast(x=x, y=y, value=value)
        )
    )


def bitmap(
    mime: str,
    data: bytes,
    x0: MeasureOrNumber = 0.0,
    y0: MeasureOrNumber = 0.0,
    width: MeasureOrNumber = w,
    height: MeasureOrNumber = h,
) -> Form:
    if not mime.startswith("image/"):
        raise ValueError(f"bitmap mime type must be an image type, got {mime!r}")
    return Form((BitmapPrimitive(mime, bytes(data), point(x0, y0), x_measure(width), y_measure(height)),))
