from __future__ import annotations

from dataclasses import dataclass
import math

from .errors import UnitResolutionError
from .measure import Measure, MeasureOrNumber, h, size_measure, w, x_measure, y_measure


@dataclass(frozen=True)
class Point:
    x: Measure
    y: Measure


def point(x: MeasureOrNumber, y: MeasureOrNumber) -> Point:
    return Point(x_measure(x), y_measure(y))


@dataclass(frozen=True)
class BoundingBox:
    """Placement of a context inside its parent, expressed in Measures."""

    x0: Measure = Measure()
    y0: Measure = Measure()
    width: Measure = w
    height: Measure = h


def bounding_box(
    x0: MeasureOrNumber = 0.0,
    y0: MeasureOrNumber = 0.0,
    width: MeasureOrNumber = w,
    height: MeasureOrNumber = h,
) -> BoundingBox:
    return BoundingBox(x_measure(x0), y_measure(y0), x_measure(width), y_measure(height))


@dataclass(frozen=True)
class AbsoluteBox:
    """Resolved box in millimetres of the output coordinate space."""

    x0: float
    y0: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"resolved box width/height must be >= 0, got {self.width}x{self.height}")

    @property
    def x1(self) -> float:
        return self.x0 + self.width

    @property
    def y1(self) -> float:
        return self.y0 + self.height

    def corners(self) -> tuple[tuple[float, float], ...]:
        return ((self.x0, self.y0), (self.x1, self.y0), (self.x1, self.y1), (self.x0, self.y1))


@dataclass(frozen=True)
class UnitBox:
    """Defines what one `cx`, one `cy` and one `em` mean for a subtree.

    `font_size` is in millimetres; `None` means no font size is known and any
    `em` component fails to resolve.
    """

    x0: float = 0.0
    y0: float = 0.0
    width: float = 1.0
    height: float = 1.0
    font_size: float | None = None

    def with_font_size(self, font_size: MeasureOrNumber | None) -> UnitBox:
        if font_size is None:
            return UnitBox(self.x0, self.y0, self.width, self.height, None)
        size = size_measure(font_size)
        if not size.is_absolute:
            raise UnitResolutionError(f"unit box font size must be absolute, got `{size}`")
        return UnitBox(self.x0, self.y0, self.width, self.height, size.abs)


def resolve(measure: Measure, box: AbsoluteBox, units: UnitBox) -> float:
    """Resolve a length (no origin offset) against an ambient box.

    Linear in `measure`: resolve(a + b) == resolve(a) + resolve(b).
    """

    total = measure.abs + measure.cw * box.width + measure.ch * box.height
    if measure.cx != 0.0:
        total += measure.cx * box.width / _unit_extent(units.width, "width", measure)
    if measure.cy != 0.0:
        total += measure.cy * box.height / _unit_extent(units.height, "height", measure)
    if measure.em != 0.0:
        if units.font_size is None:
            raise UnitResolutionError(f"measure `{measure}` uses `em` but no font size is known")
        total += measure.em * units.font_size
    return total


def resolve_x(measure: Measure, box: AbsoluteBox, units: UnitBox) -> float:
    origin = 0.0
    if units.x0 != 0.0:
        origin = units.x0 * box.width / _unit_extent(units.width, "width", measure)
    return box.x0 + resolve(measure, box, units) - origin


def resolve_y(measure: Measure, box: AbsoluteBox, units: UnitBox) -> float:
    origin = 0.0
    if units.y0 != 0.0:
        origin = units.y0 * box.height / _unit_extent(units.height, "height", measure)
    return box.y0 + resolve(measure, box, units) - origin


def resolve_point(p: Point, box: AbsoluteBox, units: UnitBox) -> tuple[float, float]:
    return (resolve_x(p.x, box, units), resolve_y(p.y, box, units))


def resolve_box(bbox: BoundingBox, parent: AbsoluteBox, units: UnitBox) -> AbsoluteBox:
    width = resolve(bbox.width, parent, units)
    height = resolve(bbox.height, parent, units)
    if width < 0 or height < 0:
        raise UnitResolutionError(
            f"context box resolved to a negative size ({width:g}x{height:g}mm) inside {parent}"
        )
    return AbsoluteBox(
        x0=resolve_x(bbox.x0, parent, units),
        y0=resolve_y(bbox.y0, parent, units),
        width=width,
        height=height,
    )


def _unit_extent(extent: float, label: str, measure: Measure) -> float:
    if extent == 0.0 or not math.isfinite(extent):
        raise UnitResolutionError(f"measure `{measure}` needs a unit box {label}, but it is {extent!r}")
    return extent
