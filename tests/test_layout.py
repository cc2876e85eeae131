from __future__ import annotations

import unittest
from unittest import mock

from vellum_core.boxes import AbsoluteBox, UnitBox
from vellum_core.errors import UnitResolutionError
from vellum_core.forms import Rect, rectangle
from vellum_core.measure import em, mm
from vellum_core.nodes import compose, context, minwidth
from vellum_core.traversal import DrawForm, resolve_tree
from vellum_layout import text as text_module
from vellum_layout.pad import pad_inner, pad_outer
from vellum_layout.table import gridstack, hstack, solve_extents, vstack
from vellum_layout.text import FallbackTextMeasurer, PillowTextMeasurer, max_text_extents, text_extents


def _rects(node, width: float, height: float) -> list:
    events = resolve_tree(compose(context(), node), AbsoluteBox(0.0, 0.0, width, height), UnitBox())
    return [p for e in events if isinstance(e, DrawForm) for p in e.form.primitives]


class SolveExtentsTests(unittest.TestCase):
    def test_proportional_split(self) -> None:
        self.assertEqual(solve_extents(100.0, [1, 1, 2], [0, 0, 0]), [25.0, 25.0, 50.0])

    def test_minimums_are_pinned_and_the_rest_reshared(self) -> None:
        self.assertEqual(solve_extents(100.0, [1, 1, 2], [40, 0, 0]), [40.0, 20.0, 40.0])

    def test_overflow_uses_minimums_and_warns(self) -> None:
        with self.assertLogs("vellum_layout.table", level="WARNING"):
            self.assertEqual(solve_extents(50.0, [1, 1], [40, 30]), [40, 30])


class StackTests(unittest.TestCase):
    def test_hstack_splits_width_evenly(self) -> None:
        self.assertEqual(
            _rects(hstack(rectangle(), rectangle()), 100.0, 20.0),
            [Rect(0.0, 0.0, 50.0, 20.0), Rect(50.0, 0.0, 50.0, 20.0)],
        )

    def test_vstack_honours_proportions(self) -> None:
        self.assertEqual(
            _rects(vstack(rectangle(), rectangle(), y_prop=[1, 3]), 10.0, 40.0),
            [Rect(0.0, 0.0, 10.0, 10.0), Rect(0.0, 10.0, 10.0, 30.0)],
        )

    def test_min_width_is_respected(self) -> None:
        wide = compose(context(minwidth=70), rectangle())
        stacked = hstack(wide, rectangle())
        self.assertEqual(
            _rects(stacked, 100.0, 20.0),
            [Rect(0.0, 0.0, 70.0, 20.0), Rect(70.0, 0.0, 30.0, 20.0)],
        )
        self.assertEqual(minwidth(stacked), 70 * mm)

    def test_grid_skips_empty_cells(self) -> None:
        grid = gridstack([[rectangle(), None], [None, rectangle()]])
        self.assertEqual(
            _rects(grid, 20.0, 20.0),
            [Rect(0.0, 0.0, 10.0, 10.0), Rect(10.0, 10.0, 10.0, 10.0)],
        )

    def test_bad_shapes_are_rejected(self) -> None:
        with self.assertRaises(ValueError):
            gridstack([[rectangle()], [rectangle(), rectangle()]])
        with self.assertRaises(ValueError):
            hstack(rectangle(), rectangle(), x_prop=[1])
        with self.assertRaises(ValueError):
            hstack(rectangle(), x_prop=[0])


class PadTests(unittest.TestCase):
    def test_pad_outer_grows_the_box(self) -> None:
        self.assertEqual(_rects(pad_outer(compose(context(), rectangle()), 2), 20.0, 20.0), [Rect(2.0, 2.0, 20.0, 20.0)])

    def test_pad_inner_shrinks_the_content(self) -> None:
        self.assertEqual(_rects(pad_inner(compose(context(), rectangle()), 2), 20.0, 20.0), [Rect(2.0, 2.0, 16.0, 16.0)])

    def test_pad_outer_grows_minimum_sizes(self) -> None:
        padded = pad_outer(context(minwidth=10), 1, 2)
        self.assertEqual(minwidth(padded), 12 * mm)

    def test_lists_are_padded_item_by_item(self) -> None:
        self.assertEqual(len(pad_inner([context(), context()], 1, 1, 1, 1)), 2)

    def test_padding_arity_and_targets(self) -> None:
        with self.assertRaises(TypeError):
            pad_outer(context(), 1, 2, 3)
        with self.assertRaises(TypeError):
            pad_inner(rectangle(), 1)  # type: ignore[call-overload]


class TextExtentTests(unittest.TestCase):
    def test_fallback_widths(self) -> None:
        measurer = FallbackTextMeasurer()
        width, height = measurer.measure("sans", 10.0, "ii")
        self.assertAlmostEqual(width, 4.44)
        self.assertAlmostEqual(height, 10.0)
        _, two_lines = measurer.measure("sans", 10.0, "a\nb")
        self.assertAlmostEqual(two_lines, 20.0)

    def test_extents_are_absolute_measures(self) -> None:
        measurer = FallbackTextMeasurer()
        (extent,) = text_extents("sans", 10 * mm, "ii", measurer=measurer)
        self.assertTrue(extent[0].is_absolute)
        self.assertAlmostEqual(extent[0].abs, 4.44)
        widest, _ = max_text_extents("sans", 10, "i", "mm", measurer=measurer)
        self.assertAlmostEqual(widest.abs, 16.66)

    def test_relative_font_size_is_rejected(self) -> None:
        with self.assertRaises(UnitResolutionError):
            text_extents("sans", 2 * em, "x")

    def test_pillow_measurer_without_fonts_uses_fallback(self) -> None:
        with mock.patch.object(text_module, "resolve_font_path", return_value=None):
            self.assertEqual(
                PillowTextMeasurer().measure("NoSuchFont", 5.0, "Hello"),
                FallbackTextMeasurer().measure("NoSuchFont", 5.0, "Hello"),
            )


if __name__ == "__main__":
    unittest.main()
