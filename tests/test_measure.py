from __future__ import annotations

import unittest

from vellum_core.boxes import AbsoluteBox, BoundingBox, UnitBox, resolve, resolve_box, resolve_x, resolve_y
from vellum_core.errors import UnitResolutionError
from vellum_core.measure import (
    Measure,
    cm,
    cx,
    em,
    h,
    inch,
    measure_max,
    measure_min,
    mm,
    pt,
    px,
    size_measure,
    w,
    x_measure,
    y_measure,
)


class MeasureTests(unittest.TestCase):
    def test_absolute_units_are_millimetre_multiples(self) -> None:
        self.assertEqual((1 * cm).abs, 10.0)
        self.assertAlmostEqual(inch.abs, 25.4)
        self.assertAlmostEqual(pt.abs, 25.4 / 72.0)
        self.assertAlmostEqual(px.abs, 25.4 / 96.0)

    def test_arithmetic_keeps_components_apart(self) -> None:
        m = 2 * mm + 0.5 * w - 1 * em
        self.assertEqual(m, Measure(abs=2.0, cw=0.5, em=-1.0))
        self.assertEqual(-m, Measure(abs=-2.0, cw=-0.5, em=1.0))
        self.assertEqual(m / 2, Measure(abs=1.0, cw=0.25, em=-0.5))
        self.assertEqual(str(2 * mm + 0.5 * w), "2mm + 0.5w")
        self.assertEqual(str(Measure()), "0mm")

    def test_bool_is_not_a_scale_factor(self) -> None:
        with self.assertRaises(TypeError):
            _ = mm * True

    def test_ordering_within_one_kind(self) -> None:
        self.assertTrue(1 * mm < 2 * mm)
        self.assertTrue(0.5 * w <= 0.5 * w)
        self.assertTrue(3 * mm + 1 * w > 1 * mm + 1 * w)
        self.assertEqual(measure_max(1 * mm, 3 * mm, 2 * mm), 3 * mm)
        self.assertEqual(measure_min(1 * mm, 3 * mm, 2 * mm), 1 * mm)

    def test_ordering_mixed_kinds_is_rejected(self) -> None:
        with self.assertRaises(TypeError):
            _ = 1 * mm < 1 * w
        with self.assertRaises(TypeError):
            measure_max(1 * cm, 0.5 * h)

    def test_number_coercion_depends_on_role(self) -> None:
        self.assertEqual(x_measure(0.3), Measure(cx=0.3))
        self.assertEqual(y_measure(2), Measure(cy=2.0))
        self.assertEqual(size_measure(2), Measure(abs=2.0))
        self.assertIs(size_measure(cx), cx)
        with self.assertRaises(TypeError):
            size_measure("2mm")  # type: ignore[arg-type]


class ResolutionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.box = AbsoluteBox(10.0, 20.0, 100.0, 50.0)
        self.units = UnitBox(font_size=4.0)

    def test_proportional_measures_scale_with_the_box(self) -> None:
        self.assertAlmostEqual(resolve(0.5 * w + 2 * mm, self.box, self.units), 52.0)
        self.assertAlmostEqual(resolve(0.5 * h, self.box, self.units), 25.0)
        self.assertAlmostEqual(resolve(1.5 * em, self.box, self.units), 6.0)

    def test_resolution_is_linear(self) -> None:
        a = 3 * mm + 0.25 * w + 0.1 * cx
        b = -1 * mm + 0.5 * h + 2 * em
        self.assertAlmostEqual(
            resolve(a + b, self.box, self.units),
            resolve(a, self.box, self.units) + resolve(b, self.box, self.units),
        )

    def test_scaling_a_measure_scales_its_resolution(self) -> None:
        m = 1.5 * mm + 0.2 * w + 0.3 * cx + 0.75 * em
        for k in (2.0, -0.5, 3):
            with self.subTest(k=k):
                self.assertAlmostEqual(resolve(k * m, self.box, self.units), k * resolve(m, self.box, self.units))

    def test_resolution_is_repeatable(self) -> None:
        m = 1.5 * mm + 0.2 * w + 0.3 * cx + 0.75 * em
        first = resolve(m, self.box, self.units)
        self.assertEqual(resolve(m, self.box, self.units), first)
        self.assertEqual(resolve_x(m, self.box, self.units), resolve_x(m, self.box, self.units))
        self.assertEqual(m, 1.5 * mm + 0.2 * w + 0.3 * cx + 0.75 * em)

    def test_positions_are_offset_by_the_box_origin(self) -> None:
        self.assertAlmostEqual(resolve_x(x_measure(0.5), self.box, self.units), 60.0)
        self.assertAlmostEqual(resolve_y(y_measure(1.0), self.box, self.units), 70.0)

    def test_unit_box_rescales_and_shifts_cx(self) -> None:
        units = UnitBox(x0=-1.0, y0=0.0, width=2.0, height=10.0)
        box = AbsoluteBox(0.0, 0.0, 100.0, 50.0)
        self.assertAlmostEqual(resolve_x(x_measure(0.0), box, units), 50.0)
        self.assertAlmostEqual(resolve_x(x_measure(1.0), box, units), 100.0)
        self.assertAlmostEqual(resolve_y(y_measure(5.0), box, units), 25.0)

    def test_em_without_font_size_fails(self) -> None:
        with self.assertRaises(UnitResolutionError):
            resolve(1 * em, self.box, UnitBox())

    def test_degenerate_unit_box_fails_only_when_used(self) -> None:
        units = UnitBox(width=0.0)
        self.assertAlmostEqual(resolve(2 * mm, self.box, units), 2.0)
        with self.assertRaises(UnitResolutionError):
            resolve(1 * cx, self.box, units)

    def test_resolve_box_rejects_negative_sizes(self) -> None:
        resolved = resolve_box(BoundingBox(), self.box, self.units)
        self.assertEqual(resolved, self.box)
        with self.assertRaises(UnitResolutionError):
            resolve_box(BoundingBox(width=-1 * w), self.box, self.units)


if __name__ == "__main__":
    unittest.main()
