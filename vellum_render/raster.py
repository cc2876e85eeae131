from __future__ import annotations

import io
import logging
import math
import os
from typing import IO, Sequence

import numpy as np
from PIL import Image, ImageDraw

from vellum_core.boxes import AbsoluteBox
from vellum_core.color import Color, ColorLike, parse_color
from vellum_core.config import RenderConfig, current_config
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
from vellum_core.properties import Clip, ResolvedProperty
from vellum_layout.text import load_font

from .backend import Backend, OutputSink, absolute_size, split_subpaths
from .canvas import blend_coverage, blend_layer, new_canvas
from .display import display
from .scope import PropertyStack, ResolvedStyle


LOGGER = logging.getLogger(__name__)

_ELLIPSE_SEGMENTS = 72
_CURVE_SEGMENTS = 32
_H_ANCHOR = {"left": "l", "center": "m", "right": "r"}
_V_ANCHOR = {"top": "a", "center": "m", "bottom": "s"}


def ellipse_points(cx: float, cy: float, rx: float, ry: float, angle_deg: float = 0.0) -> list[XY]:
    theta = math.radians(angle_deg)
    cos_t, sin_t = math.cos(theta), math.sin(theta)
    points = []
    for i in range(_ELLIPSE_SEGMENTS):
        t = 2.0 * math.pi * i / _ELLIPSE_SEGMENTS
        ex, ey = rx * math.cos(t), ry * math.sin(t)
        points.append((cx + ex * cos_t - ey * sin_t, cy + ex * sin_t + ey * cos_t))
    return points


def flatten_curve(curve: Curve, segments: int = _CURVE_SEGMENTS) -> list[XY]:
    (x0, y0), (x1, y1), (x2, y2), (x3, y3) = curve.anchor0, curve.ctrl0, curve.ctrl1, curve.anchor1
    points = []
    for i in range(segments + 1):
        t = i / segments
        u = 1.0 - t
        a, b, c, d = u * u * u, 3 * u * u * t, 3 * u * t * t, t * t * t
        points.append((a * x0 + b * x1 + c * x2 + d * x3, a * y0 + b * y1 + c * y2 + d * y3))
    return points


class PNG(Backend):
    """Immediate-mode raster backend: numpy RGBA canvas, Pillow coverage masks."""

    mime = "image/png"

    def __init__(
        self,
        out: str | os.PathLike | IO[bytes] | None,
        width: MeasureOrNumber,
        height: MeasureOrNumber,
        *,
        dpi: float = 96.0,
        background: ColorLike = None,
        emit_on_finish: bool = True,
        config: RenderConfig | None = None,
    ) -> None:
        self.width = absolute_size(width, "PNG image width")
        self.height = absolute_size(height, "PNG image height")
        if dpi <= 0:
            raise ValueError(f"dpi must be > 0, got {dpi}")
        self.dpi = float(dpi)
        self.scale = self.dpi / 25.4
        self.pixel_width = max(1, int(round(self.width * self.scale)))
        self.pixel_height = max(1, int(round(self.height * self.scale)))
        self.config = config or current_config()
        self.background = parse_color(background) or (0, 0, 0, 0)
        self._sink = OutputSink(out, binary=True)
        self.emit_on_finish = emit_on_finish and self._sink.in_memory
        self._init_canvas()

    @classmethod
    def in_memory(cls, width: MeasureOrNumber, height: MeasureOrNumber, **kwargs) -> PNG:
        return cls(None, width, height, **kwargs)

    def _init_canvas(self) -> None:
        self.canvas = new_canvas(self.pixel_width, self.pixel_height, self.background)
        self._stack = PropertyStack()
        self._defaults = ResolvedStyle.from_config(self.config)
        self._clip_masks: dict[Clip, np.ndarray] = {}
        self._warned_dash = False
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
            if style.visible:
                self._draw_primitive(prim, style)

    def finish(self) -> None:
        if self._finished:
            return
        while self._stack:
            self._stack.pop()
        buf = io.BytesIO()
        Image.fromarray(self.canvas).save(buf, format="PNG", dpi=(self.dpi, self.dpi))
        self._sink.write(buf.getvalue())
        self._sink.close()
        self._finished = True
        LOGGER.debug("finished PNG image %dx%d px", self.pixel_width, self.pixel_height)
        if self.emit_on_finish:
            display(self.mime, self.getvalue())

    def reset(self) -> None:
        self._sink.rewind()
        self._init_canvas()

    def getvalue(self) -> bytes:
        value = self._sink.getvalue()
        assert isinstance(value, bytes)
        return value

    def _repr_png_(self) -> bytes | None:
        if self._finished and self._sink.in_memory:
            return self.getvalue()
        return None

    def _ensure_open(self) -> None:
        if self._finished:
            raise RuntimeError("cannot draw on a finished PNG backend; call reset() first")

    # Painting

    def _draw_primitive(self, prim: ResolvedPrimitive, style: ResolvedStyle) -> None:
        if isinstance(prim, Rect):
            if not all(math.isfinite(v) for v in (prim.x, prim.y, prim.width, prim.height)):
                return
            corners = AbsoluteBox(
                min(prim.x, prim.x + prim.width),
                min(prim.y, prim.y + prim.height),
                abs(prim.width),
                abs(prim.height),
            ).corners()
            self._paint_shape([list(corners)], closed=True, style=style)
        elif isinstance(prim, Circle):
            if not all(math.isfinite(v) for v in (prim.cx, prim.cy, prim.r)):
                return
            self._paint_shape([ellipse_points(prim.cx, prim.cy, prim.r, prim.r)], closed=True, style=style)
        elif isinstance(prim, Ellipse):
            if not all(math.isfinite(v) for v in (prim.cx, prim.cy, prim.rx, prim.ry, prim.angle_deg)):
                return
            points = ellipse_points(prim.cx, prim.cy, prim.rx, prim.ry, prim.angle_deg)
            self._paint_shape([points], closed=True, style=style)
        elif isinstance(prim, Polygon):
            self._paint_shape(split_subpaths(prim.points), closed=True, style=style)
        elif isinstance(prim, Lines):
            self._paint_shape(split_subpaths(prim.points), closed=False, style=style)
        elif isinstance(prim, Curve):
            self._paint_shape(split_subpaths(flatten_curve(prim)), closed=False, style=style)
        elif isinstance(prim, Text):
            self._paint_text(prim, style)
        elif isinstance(prim, Bitmap):
            self._paint_bitmap(prim, style)
        else:
            raise TypeError(f"Unsupported primitive: {type(prim)!r}")

    def _px(self, p: XY) -> XY:
        return (p[0] * self.scale, p[1] * self.scale)

    def _new_mask(self) -> Image.Image:
        return Image.new("L", (self.pixel_width, self.pixel_height), 0)

    def _paint_shape(self, runs: list[list[XY]], *, closed: bool, style: ResolvedStyle) -> None:
        if not runs:
            return
        if closed and style.fill is not None:
            mask = self._new_mask()
            draw = ImageDraw.Draw(mask)
            for run in runs:
                draw.polygon([self._px(p) for p in run], fill=255)
            self._composite(mask, style.fill, style.fill_opacity, style)

        if style.stroke is None or style.line_width <= 0:
            return
        if style.dash and not self._warned_dash:
            LOGGER.warning("dash patterns are not supported by the PNG backend; drawing solid strokes")
            self._warned_dash = True
        width_px = max(1, int(round(style.line_width * self.scale)))
        mask = self._new_mask()
        draw = ImageDraw.Draw(mask)
        for run in runs:
            points = [self._px(p) for p in run]
            if closed:
                points.append(points[0])
            draw.line(points, fill=255, width=width_px, joint="curve" if style.linejoin == "round" else None)
        self._composite(mask, style.stroke, style.stroke_opacity, style)

    def _paint_text(self, prim: Text, style: ResolvedStyle) -> None:
        if style.fill is None or not prim.value:
            return
        if not (math.isfinite(prim.x) and math.isfinite(prim.y)):
            return
        font = load_font(style.font_family, style.font_size * self.scale)
        anchor = _H_ANCHOR[prim.halign] + _V_ANCHOR[prim.valign]
        origin = self._px((prim.x, prim.y))
        mask = self._new_mask()
        draw = ImageDraw.Draw(mask)
        if "\n" in prim.value:
            draw.multiline_text(origin, prim.value, fill=255, font=font, anchor=anchor[0] + "a")
        else:
            draw.text(origin, prim.value, fill=255, font=font, anchor=anchor)
        if prim.rotation_deg:
            mask = mask.rotate(-prim.rotation_deg, resample=Image.Resampling.BILINEAR, center=origin)
        self._composite(mask, style.fill, style.fill_opacity, style)

    def _paint_bitmap(self, prim: Bitmap, style: ResolvedStyle) -> None:
        try:
            image = Image.open(io.BytesIO(prim.data)).convert("RGBA")
        except OSError as exc:
            raise ValueError(f"cannot decode {prim.mime} bitmap: {exc}") from exc
        x0, y0 = (int(round(v)) for v in self._px((prim.x, prim.y)))
        width = int(round(abs(prim.width) * self.scale))
        height = int(round(abs(prim.height) * self.scale))
        if width <= 0 or height <= 0:
            return
        image = image.resize((width, height), Image.Resampling.BILINEAR)
        layer = Image.new("RGBA", (self.pixel_width, self.pixel_height), (0, 0, 0, 0))
        layer.paste(image, (x0, y0))
        pixels = np.asarray(layer, dtype=np.float32)
        alpha = pixels[:, :, 3] / 255.0 * style.fill_opacity
        if style.clips:
            alpha = alpha * self._clip_coverage(style.clips)
        blend_layer(self.canvas, pixels[:, :, :3], alpha)

    def _composite(self, mask: Image.Image, color: Color, opacity: float, style: ResolvedStyle) -> None:
        coverage = np.asarray(mask, dtype=np.float32) / 255.0
        if style.clips:
            coverage = coverage * self._clip_coverage(style.clips)
        blend_coverage(self.canvas, coverage, color, opacity)

    def _clip_coverage(self, clips: tuple[Clip, ...]) -> np.ndarray:
        coverage = np.ones((self.pixel_height, self.pixel_width), dtype=np.float32)
        for clip in clips:
            mask = self._clip_masks.get(clip)
            if mask is None:
                image = self._new_mask()
                runs = split_subpaths(clip.points)
                for run in runs:
                    ImageDraw.Draw(image).polygon([self._px(p) for p in run], fill=255)
                mask = np.asarray(image, dtype=np.float32) / 255.0
                self._clip_masks[clip] = mask
            coverage = coverage * mask
        return coverage
