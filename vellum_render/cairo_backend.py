from __future__ import annotations

import importlib
import importlib.util
import io
import logging
import math
import os
from typing import IO, Any, Sequence

from PIL import Image

from vellum_core.boxes import AbsoluteBox
from vellum_core.color import Color
from vellum_core.config import RenderConfig, current_config
from vellum_core.errors import UnsupportedBackendOperation
from vellum_core.forms import (
    XY,
    Bitmap,
    Circle,
    Curve,
    Ellipse,
    Lines,
    Polygon,
    Rect,
    ResolvedForm,
    ResolvedPrimitive,
    Text,
)
from vellum_core.measure import MeasureOrNumber
from vellum_core.properties import ResolvedProperty

from .backend import Backend, OutputSink, absolute_size, split_subpaths
from .display import display
from .raster import ellipse_points
from .scope import PropertyStack, ResolvedStyle


LOGGER = logging.getLogger(__name__)

PT_PER_MM = 72.0 / 25.4

CAIRO_AVAILABLE = importlib.util.find_spec("cairo") is not None

_MIME_TYPES = {"pdf": "application/pdf", "ps": "application/postscript"}


def detect_print_preflight_issue() -> str | None:
    if not CAIRO_AVAILABLE:
        return (
            "pycairo is required for PDF and PostScript output. Install with:\n"
            "  pip install \"vellum[print]\"\n"
            "or:\n"
            "  pip install pycairo"
        )
    return None


def PDF(out: str | os.PathLike | IO[bytes] | None, width: MeasureOrNumber, height: MeasureOrNumber, **kwargs) -> CairoBackend:
    return _make("pdf", out, width, height, **kwargs)


def PS(out: str | os.PathLike | IO[bytes] | None, width: MeasureOrNumber, height: MeasureOrNumber, **kwargs) -> CairoBackend:
    return _make("ps", out, width, height, **kwargs)


def _make(kind: str, out, width, height, **kwargs) -> CairoBackend:
    issue = detect_print_preflight_issue()
    if issue is not None:
        raise UnsupportedBackendOperation(f"{kind.upper()} output is unavailable. {issue}")
    return CairoBackend(out, width, height, surface_kind=kind, **kwargs)


class CairoBackend(Backend):
    """Vector print output through a pycairo surface; user space is millimetres."""

    def __init__(
        self,
        out: str | os.PathLike | IO[bytes] | None,
        width: MeasureOrNumber,
        height: MeasureOrNumber,
        *,
        surface_kind: str = "pdf",
        emit_on_finish: bool = True,
        config: RenderConfig | None = None,
    ) -> None:
        if surface_kind not in _MIME_TYPES:
            raise ValueError(f"unknown cairo surface kind: {surface_kind}")
        self.width = absolute_size(width, f"{surface_kind.upper()} image width")
        self.height = absolute_size(height, f"{surface_kind.upper()} image height")
        self.config = config or current_config()
        self.mime = _MIME_TYPES[surface_kind]
        self._cairo: Any = importlib.import_module("cairo")
        self._sink = OutputSink(out, binary=True)
        self.emit_on_finish = emit_on_finish and self._sink.in_memory

        w_pt, h_pt = self.width * PT_PER_MM, self.height * PT_PER_MM
        if surface_kind == "pdf":
            self._surface = self._cairo.PDFSurface(self._sink.stream, w_pt, h_pt)
        else:
            self._surface = self._cairo.PSSurface(self._sink.stream, w_pt, h_pt)
        self._ctx = self._cairo.Context(self._surface)
        self._ctx.scale(PT_PER_MM, PT_PER_MM)
        self._stack = PropertyStack()
        self._defaults = ResolvedStyle.from_config(self.config)
        self._finished = False

    def root_box(self) -> AbsoluteBox:
        return AbsoluteBox(0.0, 0.0, self.width, self.height)

    def is_finished(self) -> bool:
        return self._finished

    def push_property_frame(self, properties: Sequence[ResolvedProperty]) -> None:
        self._ensure_open()
        self._stack.push(properties)

    def pop_property_frame(self) -> None:
        self._stack.pop()

    def draw(self, form: ResolvedForm) -> None:
        self._ensure_open()
        if not len(form):
            return
        self._stack.check_lengths(len(form))
        for idx, prim in enumerate(form.primitives):
            style = self._stack.style_at(idx, self._defaults)
            if not style.visible:
                continue
            self._ctx.save()
            try:
                self._apply_clips(style)
                self._draw_primitive(prim, style)
            finally:
                self._ctx.restore()

    def finish(self) -> None:
        if self._finished:
            return
        while self._stack:
            self._stack.pop()
        self._surface.finish()
        self._sink.close()
        self._finished = True
        LOGGER.debug("finished %s document", self.mime)
        if self.emit_on_finish:
            display(self.mime, self._sink.getvalue())

    def _ensure_open(self) -> None:
        if self._finished:
            raise RuntimeError("cannot draw on a finished print backend")

    def _apply_clips(self, style: ResolvedStyle) -> None:
        for clip in style.clips:
            self._ctx.new_path()
            self._trace(split_subpaths(clip.points), closed=True)
            self._ctx.clip()

    def _trace(self, runs: list[list[XY]], *, closed: bool) -> None:
        for run in runs:
            (x0, y0), *rest = run
            self._ctx.move_to(x0, y0)
            for x, y in rest:
                self._ctx.line_to(x, y)
            if closed:
                self._ctx.close_path()

    def _set_color(self, color: Color, opacity: float) -> None:
        r, g, b, a = color
        self._ctx.set_source_rgba(r / 255.0, g / 255.0, b / 255.0, a / 255.0 * opacity)

    def _paint(self, style: ResolvedStyle, *, fillable: bool) -> None:
        cairo = self._cairo
        if fillable and style.fill is not None:
            self._set_color(style.fill, style.fill_opacity)
            self._ctx.fill_preserve()
        if style.stroke is not None and style.line_width > 0:
            self._set_color(style.stroke, style.stroke_opacity)
            self._ctx.set_line_width(style.line_width)
            self._ctx.set_dash(list(style.dash))
            self._ctx.set_line_cap(
                {
                    "butt": cairo.LINE_CAP_BUTT,
                    "round": cairo.LINE_CAP_ROUND,
                    "square": cairo.LINE_CAP_SQUARE,
                }[style.linecap]
            )
            self._ctx.set_line_join(
                {
                    "miter": cairo.LINE_JOIN_MITER,
                    "round": cairo.LINE_JOIN_ROUND,
                    "bevel": cairo.LINE_JOIN_BEVEL,
                }[style.linejoin]
            )
            self._ctx.stroke_preserve()
        self._ctx.new_path()

    def _draw_primitive(self, prim: ResolvedPrimitive, style: ResolvedStyle) -> None:
        ctx = self._ctx
        if isinstance(prim, Rect):
            if not all(math.isfinite(v) for v in (prim.x, prim.y, prim.width, prim.height)):
                return
            ctx.rectangle(prim.x, prim.y, prim.width, prim.height)
            self._paint(style, fillable=True)
        elif isinstance(prim, Circle):
            if not all(math.isfinite(v) for v in (prim.cx, prim.cy, prim.r)):
                return
            ctx.new_sub_path()
            ctx.arc(prim.cx, prim.cy, prim.r, 0.0, 2.0 * math.pi)
            self._paint(style, fillable=True)
        elif isinstance(prim, Ellipse):
            if not all(math.isfinite(v) for v in (prim.cx, prim.cy, prim.rx, prim.ry, prim.angle_deg)):
                return
            self._trace([ellipse_points(prim.cx, prim.cy, prim.rx, prim.ry, prim.angle_deg)], closed=True)
            self._paint(style, fillable=True)
        elif isinstance(prim, Polygon):
            self._trace(split_subpaths(prim.points), closed=True)
            self._paint(style, fillable=True)
        elif isinstance(prim, Lines):
            self._trace(split_subpaths(prim.points), closed=False)
            self._paint(style, fillable=False)
        elif isinstance(prim, Curve):
            ctx.move_to(*prim.anchor0)
            ctx.curve_to(*prim.ctrl0, *prim.ctrl1, *prim.anchor1)
            self._paint(style, fillable=False)
        elif isinstance(prim, Text):
            self._draw_text(prim, style)
        elif isinstance(prim, Bitmap):
            self._draw_bitmap(prim, style)
        else:
            raise TypeError(f"Unsupported primitive: {type(prim)!r}")

    def _draw_text(self, prim: Text, style: ResolvedStyle) -> None:
        if style.fill is None or not prim.value:
            return
        if not all(math.isfinite(v) for v in (prim.x, prim.y, prim.rotation_deg)):
            return
        cairo = self._cairo
        ctx = self._ctx
        family = style.font_family.split(",")[0].strip() or "sans"
        ctx.select_font_face(family, cairo.FONT_SLANT_NORMAL, cairo.FONT_WEIGHT_NORMAL)
        ctx.set_font_size(style.font_size)
        extents = ctx.text_extents(prim.value)
        ascent, descent = ctx.font_extents()[:2]
        dx = {"left": 0.0, "center": -extents.x_advance / 2.0, "right": -extents.x_advance}[prim.halign]
        dy = {"bottom": 0.0, "center": (ascent - descent) / 2.0, "top": ascent}[prim.valign]
        ctx.translate(prim.x, prim.y)
        if prim.rotation_deg:
            ctx.rotate(math.radians(prim.rotation_deg))
        ctx.move_to(dx, dy)
        self._set_color(style.fill, style.fill_opacity)
        ctx.show_text(prim.value)
        ctx.new_path()

    def _draw_bitmap(self, prim: Bitmap, style: ResolvedStyle) -> None:
        if not all(math.isfinite(v) for v in (prim.x, prim.y, prim.width, prim.height)):
            return
        if prim.width == 0 or prim.height == 0:
            return
        try:
            image = Image.open(io.BytesIO(prim.data)).convert("RGBA")
        except OSError as exc:
            raise ValueError(f"cannot decode {prim.mime} bitmap: {exc}") from exc
        png = io.BytesIO()
        image.save(png, format="PNG")
        png.seek(0)
        surface = self._cairo.ImageSurface.create_from_png(png)
        ctx = self._ctx
        ctx.translate(prim.x, prim.y)
        ctx.scale(prim.width / surface.get_width(), prim.height / surface.get_height())
        ctx.set_source_surface(surface, 0, 0)
        ctx.paint_with_alpha(style.fill_opacity)
