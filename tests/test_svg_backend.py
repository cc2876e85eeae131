from __future__ import annotations

import io
import math
from pathlib import Path
import tempfile
import unittest

from vellum_core.boxes import UnitBox
from vellum_core.config import validate_config_overrides
from vellum_core.errors import BatchLengthMismatch, SinkError
from vellum_core.forms import Rect, ResolvedForm, circle, ellipse, line, polygon, rectangle, text
from vellum_core.measure import mm, w
from vellum_core.nodes import compose, context
from vellum_core.properties import clip, fill, jscall, jsinclude, svgattribute, svgclass, svgid, visible
from vellum_render.display import pop_display, push_display
from vellum_render.draw import draw
from vellum_render.svg import SVG, SVGJS, svg_fmt_float


def _render(scene, **kwargs) -> str:
    backend = SVG(None, 10 * mm, 10 * mm, emit_on_finish=False, **kwargs)
    draw(backend, scene)
    return backend.getvalue()


def _body(markup: str) -> list[str]:
    """Document lines after the root element's opening tag."""

    lines = markup.splitlines()
    start = next(i for i, line in enumerate(lines) if line.rstrip().endswith(">") and "font-size=" in line)
    return lines[start + 1 :]


class _NonSeekable(io.StringIO):
    def seekable(self) -> bool:
        return False


class SVGFormatTests(unittest.TestCase):
    def test_numbers_round_to_hundredths(self) -> None:
        self.assertEqual(svg_fmt_float(1.23456), "1.23")
        self.assertEqual(svg_fmt_float(2.0), "2")
        self.assertEqual(svg_fmt_float(0.5), "0.5")
        self.assertEqual(svg_fmt_float(-0.001), "0")
        self.assertEqual(svg_fmt_float(-3.14159), "-3.14")

    def test_image_size_must_be_absolute(self) -> None:
        with self.assertRaises(ValueError):
            SVG(None, 0.5 * w, 10 * mm)
        with self.assertRaises(ValueError):
            SVG(None, 0 * mm, 10 * mm)


class SVGDocumentTests(unittest.TestCase):
    def test_rectangle_without_properties(self) -> None:
        markup = _render(compose(context(), rectangle()))
        self.assertTrue(markup.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<svg'))
        self.assertIn('width="10mm" height="10mm" viewBox="0 0 10 10"', markup)
        self.assertIn('fill="#000000"', markup)
        self.assertEqual(_body(markup), ['<rect x="0" y="0" width="10" height="10"/>', "</svg>"])

    def test_nested_groups_close_in_reverse_order(self) -> None:
        scene = compose(
            context(),
            fill("blue"),
            circle(),
            (context(0.25, 0.25, 0.5, 0.5), fill("red"), circle()),
        )
        self.assertEqual(
            _body(_render(scene)),
            [
                '<g fill="#0000FF">',
                '  <circle cx="5" cy="5" r="5"/>',
                '  <g fill="#FF0000">',
                '    <circle cx="5" cy="5" r="2.5"/>',
                "  </g>",
                "</g>",
                "</svg>",
            ],
        )

    def test_vector_properties_are_written_per_element(self) -> None:
        scene = compose(context(), fill(["red", "blue"]), circle([0.25, 0.75], 0.5, 0.1))
        self.assertEqual(
            _body(_render(scene)),
            [
                '<circle cx="2.5" cy="5" r="1" fill="#FF0000"/>',
                '<circle cx="7.5" cy="5" r="1" fill="#0000FF"/>',
                "</svg>",
            ],
        )

    def test_deeper_scalar_masks_vector(self) -> None:
        scene = compose(
            context(),
            fill(["red", "blue"]),
            (context(), fill("#00FF00"), circle([0.2, 0.5, 0.8], 0.5, 0.1)),
        )
        body = _body(_render(scene))
        self.assertEqual(body[0], '<g fill="#00FF00">')
        self.assertEqual(sum("<circle" in line for line in body), 3)
        self.assertFalse(any("#FF0000" in line for line in body))

    def test_length_mismatch_emits_nothing_for_the_batch(self) -> None:
        backend = SVG(None, 10 * mm, 10 * mm, emit_on_finish=False)
        scene = compose(context(), fill(["red", "blue"]), circle([0.2, 0.5, 0.8], 0.5, 0.1))
        with self.assertRaises(BatchLengthMismatch):
            draw(backend, scene)
        self.assertNotIn("<circle", backend.getvalue())

    def test_same_frame_duplicate_keeps_last(self) -> None:
        body = _body(_render(compose(context(), fill("red"), fill("blue"), circle())))
        self.assertEqual(body[0], '<g fill="#0000FF">')

    def test_pop_restores_enclosing_group(self) -> None:
        scene = compose(context(), fill("red"), (context(), fill("blue"), rectangle()), circle())
        self.assertEqual(
            _body(_render(scene)),
            [
                '<g fill="#FF0000">',
                '  <g fill="#0000FF">',
                '    <rect x="0" y="0" width="10" height="10"/>',
                "  </g>",
                '  <circle cx="5" cy="5" r="5"/>',
                "</g>",
                "</svg>",
            ],
        )

    def test_identical_clips_share_one_definition(self) -> None:
        scene = compose(
            context(),
            (context(clip=True), rectangle()),
            (context(clip=True), circle()),
        )
        markup = _render(scene)
        self.assertEqual(markup.count('clip-path="url(#clippath1)"'), 2)
        self.assertEqual(markup.count("<clipPath "), 1)
        self.assertNotIn("clippath2", markup)
        self.assertIn('<path d="M0,0 L 10 0 10 10 0 10 z" />', markup)
        self.assertLess(markup.index("<defs>"), markup.index("</svg>"))

    def test_vector_clip_under_a_clipped_context_wraps_each_element(self) -> None:
        halves = clip([[(0, 0), (0.5, 0), (0.5, 1), (0, 1)], [(0.5, 0), (1, 0), (1, 1), (0.5, 1)]])
        scene = compose(context(), halves, (context(clip=True), rectangle([0, 0.5], 0, 0.5, 1)))
        markup = _render(scene)
        self.assertEqual(markup.count("<clipPath "), 3)
        self.assertEqual(
            _body(markup)[:8],
            [
                '<g clip-path="url(#clippath1)">',
                '  <g clip-path="url(#clippath2)">',
                '    <rect x="0" y="0" width="5" height="10"/>',
                "  </g>",
                '  <g clip-path="url(#clippath3)">',
                '    <rect x="5" y="0" width="5" height="10"/>',
                "  </g>",
                "</g>",
            ],
        )
        self.assertIn('<path d="M0,0 L 5 0 5 10 0 10 z" />', markup)
        self.assertIn('<path d="M5,0 L 10 0 10 10 5 10 z" />', markup)

    def test_vector_clip_length_is_checked_under_a_clipped_context(self) -> None:
        halves = clip([[(0, 0), (0.5, 0), (0.5, 1)], [(0.5, 0), (1, 0), (1, 1)]])
        backend = SVG(None, 10 * mm, 10 * mm, emit_on_finish=False)
        with self.assertRaises(BatchLengthMismatch):
            draw(backend, compose(context(), halves, (context(clip=True), circle([0.2, 0.5, 0.8], 0.5, 0.1))))

    def test_non_finite_shapes_are_skipped(self) -> None:
        scene = compose(
            context(),
            rectangle(math.nan, 0, 0.5, 0.5),
            circle(0.5, math.inf, 0.1),
            text(math.nan, 0.5, "lost"),
            rectangle(0, 0, 0.5, 0.5),
        )
        self.assertEqual(_body(_render(scene)), ['<rect x="0" y="0" width="5" height="5"/>', "</svg>"])

    def test_paths_split_at_non_finite_points(self) -> None:
        scene = compose(context(), line([(0, 0), (0.1, 0.1), (math.nan, math.nan), (0.2, 0.2), (0.3, 0.3)]))
        self.assertEqual(_body(_render(scene))[0], '<path fill="none" d="M0,0 L 1 1 M2,2 L 3 3"/>')

    def test_single_point_sub_paths_are_dropped(self) -> None:
        scene = compose(context(), polygon([(0, 0), (math.inf, 0), (0.1, 0.1), (0.2, 0.1), (0.2, 0.2)]))
        self.assertEqual(_body(_render(scene))[0], '<path d="M1,1 L 2 1 2 2 z"/>')

    def test_text_alignment_and_escaping(self) -> None:
        scene = compose(context(), text(0.5, 0.5, "a < b & c", halign="center", valign="center"))
        self.assertEqual(
            _body(_render(scene))[0],
            '<text x="5" y="5" text-anchor="middle" dominant-baseline="central">a &lt; b &amp; c</text>',
        )

    def test_axis_aligned_ellipse_has_no_rotation(self) -> None:
        body = _body(_render(compose(context(), ellipse(0.5, 0.5, 0.3, 0.2))))
        self.assertEqual(body[0], '<ellipse cx="5" cy="5" rx="3" ry="2"/>')

    def test_raw_svg_attributes_are_escaped(self) -> None:
        scene = compose(context(), svgid("main"), svgclass("a b"), svgattribute("data-x", '"q"'), visible(False), circle())
        body = _body(_render(scene))
        self.assertEqual(body[0], '<g id="main" class="a b" data-x="&quot;q&quot;" visibility="hidden">')

    def test_root_attributes_follow_configuration(self) -> None:
        config = validate_config_overrides({"stroke_color": "red", "line_width": 0.5 * mm})
        markup = _render(compose(context(), circle()), config=config)
        self.assertIn('stroke="#FF0000"', markup)
        self.assertIn('stroke-width="0.5"', markup)


class SVGScriptTests(unittest.TestCase):
    def test_scripts_are_ignored_without_a_js_mode(self) -> None:
        markup = _render(compose(context(), jscall("alert(1)"), circle()))
        self.assertNotIn("<script", markup)
        self.assertNotIn("onload", markup)

    def test_identical_script_fragments_share_a_name(self) -> None:
        scene = compose(
            context(),
            (context(), jscall("evt.target.focus()"), circle()),
            (context(), jscall("evt.target.focus()", event="onclick"), rectangle()),
        )
        markup = _render(scene, jsmode="embed")
        self.assertIn('onload="js_chunk_1(evt)"', markup)
        self.assertIn('onclick="js_chunk_1(evt)"', markup)
        self.assertEqual(markup.count("function js_chunk_"), 1)
        self.assertIn("function js_chunk_1(evt) {\nevt.target.focus()\n}", markup)

    def test_include_modes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            script = Path(tmp) / "lib.js"
            script.write_text("var answer = 42;", encoding="utf-8")
            scene = compose(context(), jsinclude(str(script)), circle())

            embedded = _render(scene, jsmode="embed")
            self.assertIn("var answer = 42;", embedded)
            linked = _render(scene, jsmode="linkabs")
            self.assertIn(f'xlink:href="{script.resolve()}"', linked)
            self.assertNotIn("var answer", linked)
            excluded = _render(scene, jsmode="exclude")
            self.assertNotIn("lib.js", excluded)

        relative = _render(compose(context(), jsinclude("lib.js"), circle()), jsmode="linkrel")
        self.assertIn('<script xlink:href="lib.js"></script>', relative)

    def test_svgjs_uses_configured_mode(self) -> None:
        config = validate_config_overrides({"jsmode": "linkrel"})
        backend = SVGJS(None, 10 * mm, 10 * mm, emit_on_finish=False, config=config)
        self.assertEqual(backend.jsmode, "linkrel")
        self.assertEqual(SVG(None, 10 * mm, 10 * mm, config=config).jsmode, "none")


class SVGLifecycleTests(unittest.TestCase):
    def test_finish_is_idempotent(self) -> None:
        backend = SVG(None, 10 * mm, 10 * mm, emit_on_finish=False)
        draw(backend, compose(context(), fill("red"), circle()))
        first = backend.getvalue()
        backend.finish()
        self.assertTrue(backend.is_finished())
        self.assertEqual(backend.getvalue(), first)
        with self.assertRaises(RuntimeError):
            backend.draw(ResolvedForm((Rect(0.0, 0.0, 1.0, 1.0),)))

    def test_finish_closes_unbalanced_scopes(self) -> None:
        backend = SVG(None, 10 * mm, 10 * mm, emit_on_finish=False)
        backend.push_property_frame([fill("red").resolve(backend.root_box(), UnitBox())])
        backend.finish()
        self.assertTrue(backend.getvalue().endswith("</g>\n</svg>\n"))

    def test_reset_rewinds_a_caller_stream(self) -> None:
        sink = io.StringIO()
        backend = SVG(sink, 10 * mm, 10 * mm)
        scene = compose(context(), circle())
        draw(backend, scene)
        first = sink.getvalue()
        backend.reset()
        self.assertFalse(backend.is_finished())
        draw(backend, scene)
        self.assertEqual(sink.getvalue(), first)

    def test_reset_reopens_an_owned_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "out.svg"
            backend = SVG(path, 10 * mm, 10 * mm)
            draw(backend, compose(context(), circle()))
            first = path.read_text(encoding="utf-8")
            backend.reset()
            draw(backend, compose(context(), circle()))
            self.assertEqual(path.read_text(encoding="utf-8"), first)
            self.assertIn("<circle", first)

    def test_reset_fails_on_non_seekable_stream(self) -> None:
        backend = SVG(_NonSeekable(), 10 * mm, 10 * mm)
        draw(backend, compose(context(), circle()))
        with self.assertRaises(SinkError):
            backend.reset()

    def test_write_failures_become_sink_errors(self) -> None:
        sink = io.StringIO()
        backend = SVG(sink, 10 * mm, 10 * mm)
        sink.close()
        with self.assertRaises(SinkError):
            draw(backend, compose(context(), circle()))

    def test_in_memory_document_is_emitted_once_on_finish(self) -> None:
        received: list[tuple[str, str | bytes]] = []
        push_display(lambda mime, payload: received.append((mime, payload)))
        try:
            backend = SVG.in_memory(10 * mm, 10 * mm)
            draw(backend, compose(context(), circle()))
            backend.finish()
        finally:
            pop_display()
        self.assertEqual(len(received), 1)
        self.assertEqual(received[0][0], "image/svg+xml")
        self.assertEqual(received[0][1], backend.getvalue())


if __name__ == "__main__":
    unittest.main()
