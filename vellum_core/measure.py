from __future__ import annotations

from dataclasses import dataclass
from numbers import Real
from typing import TypeAlias


_COMPONENT_SUFFIX = {
    "abs": "mm",
    "cx": "cx",
    "cy": "cy",
    "cw": "w",
    "ch": "h",
    "em": "em",
}


@dataclass(frozen=True)
class Measure:
    """Length made of an absolute part (millimetres) and proportional parts.

    `cx`/`cy` count units of the enclosing UnitBox, `cw`/`ch` are fractions of
    the enclosing box width/height and `em` is a multiple of the font size.
    Nothing is resolved until the measure meets a concrete box.
    """

    abs: float = 0.0
    cx: float = 0.0
    cy: float = 0.0
    cw: float = 0.0
    ch: float = 0.0
    em: float = 0.0

    def components(self) -> tuple[float, float, float, float, float, float]:
        return (self.abs, self.cx, self.cy, self.cw, self.ch, self.em)

    def kinds(self) -> frozenset[str]:
        return frozenset(name for name, value in zip(_COMPONENT_SUFFIX, self.components()) if value != 0.0)

    @property
    def is_absolute(self) -> bool:
        return not (self.kinds() - {"abs"})

    def __add__(self, other: object) -> Measure:
        if not isinstance(other, Measure):
            return NotImplemented
        return Measure(*(a + b for a, b in zip(self.components(), other.components())))

    def __sub__(self, other: object) -> Measure:
        if not isinstance(other, Measure):
            return NotImplemented
        return Measure(*(a - b for a, b in zip(self.components(), other.components())))

    def __neg__(self) -> Measure:
        return Measure(*(-a for a in self.components()))

    def __pos__(self) -> Measure:
        return self

    def __mul__(self, factor: object) -> Measure:
        if isinstance(factor, bool) or not isinstance(factor, Real):
            return NotImplemented
        k = float(factor)
        return Measure(*(a * k for a in self.components()))

    __rmul__ = __mul__

    def __truediv__(self, divisor: object) -> Measure:
        if isinstance(divisor, bool) or not isinstance(divisor, Real):
            return NotImplemented
        k = float(divisor)
        return Measure(*(a / k for a in self.components()))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Measure):
            return NotImplemented
        return _signed_difference(self, other) < 0.0

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Measure):
            return NotImplemented
        return _signed_difference(self, other) <= 0.0

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Measure):
            return NotImplemented
        return _signed_difference(self, other) > 0.0

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Measure):
            return NotImplemented
        return _signed_difference(self, other) >= 0.0

    def __str__(self) -> str:
        parts = [
            f"{value:g}{_COMPONENT_SUFFIX[name]}"
            for name, value in zip(_COMPONENT_SUFFIX, self.components())
            if value != 0.0
        ]
        return " + ".join(parts) if parts else "0mm"


MeasureOrNumber: TypeAlias = Measure | float | int


def _signed_difference(a: Measure, b: Measure) -> float:
    diff = a - b
    kinds = diff.kinds()
    if len(kinds) > 1:
        raise TypeError(f"cannot order measures `{a}` and `{b}`: their difference mixes {sorted(kinds)}")
    if not kinds:
        return 0.0
    (kind,) = kinds
    return getattr(diff, kind)


mm = Measure(abs=1.0)
cm = 10.0 * mm
inch = 25.4 * mm
pt = inch / 72.0
px = inch / 96.0
w = Measure(cw=1.0)
h = Measure(ch=1.0)
cx = Measure(cx=1.0)
cy = Measure(cy=1.0)
em = Measure(em=1.0)


def _as_number(value: object, label: str) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise TypeError(f"{label} must be a Measure or a real number, got {type(value).__name__}")
    return float(value)


def x_measure(value: MeasureOrNumber) -> Measure:
    if isinstance(value, Measure):
        return value
    return Measure(cx=_as_number(value, "x coordinate"))


def y_measure(value: MeasureOrNumber) -> Measure:
    if isinstance(value, Measure):
        return value
    return Measure(cy=_as_number(value, "y coordinate"))


def size_measure(value: MeasureOrNumber) -> Measure:
    if isinstance(value, Measure):
        return value
    return Measure(abs=_as_number(value, "size"))


def is_absolute(value: MeasureOrNumber) -> bool:
    return size_measure(value).is_absolute


def measure_max(*values: Measure) -> Measure:
    if not values:
        raise ValueError("measure_max requires at least one measure")
    best = values[0]
    for value in values[1:]:
        if value > best:
            best = value
    return best


def measure_min(*values: Measure) -> Measure:
    if not values:
        raise ValueError("measure_min requires at least one measure")
    best = values[0]
    for value in values[1:]:
        if value < best:
            best = value
    return best
