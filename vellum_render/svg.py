from __future__ import annotations

import base64
from html import escape
import logging
import math
import os
from pathlib import Path
from typing import IO, Sequence

from vellum_core.boxes import AbsoluteBox
from vellum_core.color import format_hex
from vellum_core.config import JS_MODES, JSMode, RenderConfig, current_config
from vellum_core.errors import ConfigurationError, SinkError
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
from vellum_core.properties import (
    Clip,
    FillOpacityPrimitive,
    FillPrimitive,
    FontPrimitive,
    FontSize,
    JSCallPrimitive,
    JSIncludePrimitive,
    LineWidth,
    ResolvedProperty,
    ResolvedPropertyPrimitive,
    StrokeDash,
    StrokeLineCapPrimitive,
    StrokeLineJoinPrimitive,
    StrokeOpacityPrimitive,
    StrokePrimitive,
    SVGAttributePrimitive,
    SVGClassPrimitive,
    SVGIDPrimitive,
    VisiblePrimitive,
)

from .backend import Backend, OutputSink, absolute_size, split_subpaths
from .display import display
from .scope import PropertyStack


LOGGER = logging.getLogger(__name__)

_TEXT_ANCHOR = {"center": "middle", "right": "end"}
_BASELINE = {"center": "central", "top": "text-before-edge"}


def svg_fmt_float(x: float) -> str:
    """Format a coordinate to 0.01mm with trailing zeros stripped."""

    a = f"{round(x / 0.01) * 0.01:.8f}"
    a = a.rstrip("0").rstrip(".")
    if a in ("-0", ""):
        return "0"
    return a


def _attr(name: str, value: str) -> str:
    return f' {name}="{escape(value, quote=True)}"'


def _finite(*values: float) -> bool:
    return all(math.isfinite(v) for v in values)


def _path_data(points: Sequence[XY]) -> str:
    head, *rest = points
    parts = [f"M{svg_fmt_float(head[0])},{svg_fmt_float(head[1])} L"]
    parts.extend(f" {svg_fmt_float(x)} {svg_fmt_float(y)}" for x, y in rest)
    return "".join(parts)


class SVG(Backend):
    """Streams an SVG document while the scene is traversed.

    Scalar properties become `<g>` groups; vector properties are written
    inline on each element. Clip paths, script fragments and embedded
    objects are collected and written once at `finish()`.
    """

    mime = "image/svg+xml"

    def __init__(
        self,
        out: str | os.PathLike | IO[str] | None,
        width: MeasureOrNumber,
        height: MeasureOrNumber,
        *,
        emit_on_finish: bool = True,
        jsmode: JSMode | None = None,
        config: RenderConfig | None = None,
    ) -> None:
        self.width = absolute_size(width, "SVG image width")
        self.height = absolute_size(height, "SVG image height")
        self.config = config or current_config()
        self.jsmode = self._default_jsmode() if jsmode is None else jsmode
        if self.jsmode not in JS_MODES:
            raise ConfigurationError(f"{self.jsmode} is not a valid jsmode")
        self._sink = OutputSink(out, binary=False)
        self.emit_on_finish = emit_on_finish and self._sink.in_memory
        self._init_document()

    @classmethod
    def in_memory(cls, width: MeasureOrNumber, height: MeasureOrNumber, **kwargs) -> SVG:
        return cls(None, width, height, **kwargs)

    def _default_jsmode(self) -> JSMode:
        return "none"

    def _init_document(self) -> None:
        self._stack = PropertyStack()
        self._groups: list[bool] = []
        self._indent = 0
        self._clippaths: dict[Clip, int] = {}
        self._scripts: dict[str, str] = {}
        self._embedded: dict[str, None] = {}
        self._finished = False
        self._write_header()

    # Backend protocol

    def root_box(self) -> AbsoluteBox:
        return AbsoluteBox(0.0, 0.0, self.width, self.height)

    def is_finished(self) -> bool:
        return self._finished

    def push_property_frame(self, properties: Sequence[ResolvedProperty]) -> None:
        self._ensure_open()
        frame = self._stack.push(properties)
        for prop in list(frame.scalars.values()) + list(frame.vectors.values()):
            for prim in prop.primitives:
                if isinstance(prim, JSIncludePrimitive):
                    self._include_script(prim.path)

        attrs = "".join(self._property_attrs(prop.primitives[0]) for prop in frame.scalars.values())
        if not attrs:
            self._groups.append(False)
            return
        self._write_indent()
        self._sink.write(f"<g{attrs}>\n")
        self._indent += 1
        self._groups.append(True)

    def pop_property_frame(self) -> None:
        if not self._stack:
            raise RuntimeError("pop_property_frame called with no open property frame")
        self._stack.pop()
        if self._groups.pop():
            self._indent -= 1
            self._write_indent()
            self._sink.write("</g>\n")

    def draw(self, form: ResolvedForm) -> None:
        self._ensure_open()
        if not len(form):
            return
        self._stack.check_lengths(len(form))
        vectors = self._stack.vector_properties()
        # Vector clips under a deeper clip still intersect; each wraps its own element.
        masked = self._stack.masked_vector_clips()
        for idx, prim in enumerate(form.primitives):
            attrs = "".join(self._property_attrs(prop.primitives[idx]) for prop in vectors.values())
            wrappers = [self._property_attrs(prop.primitives[idx]) for prop in masked]
            self._draw_primitive(prim, attrs, "fill" in vectors, wrappers)

    def finish(self) -> None:
        if self._finished:
            return
        while self._stack:
            self.pop_property_frame()

        for obj in self._embedded:
            self._sink.write(obj)
            self._sink.write("\n")

        if self._scripts:
            self._sink.write('<script type="application/ecmascript"><![CDATA[\n')
            for code, name in self._scripts.items():
                self._sink.write(f"function {name}(evt) {{\n{code}\n}}\n\n")
            self._sink.write("]]></script>\n")

        if self._clippaths:
            self._sink.write("<defs>\n")
            for clip, number in self._clippaths.items():
                self._sink.write(f'<clipPath id="clippath{number}">\n')
                self._sink.write(f'  <path d="{_path_data(clip.points)} z" />\n')
                self._sink.write("</clipPath>\n")
            self._sink.write("</defs>\n")

        self._sink.write("</svg>\n")
        self._sink.close()
        self._finished = True
        LOGGER.debug(
            "finished SVG document: %d clip paths, %d script fragments, %d embedded objects",
            len(self._clippaths),
            len(self._scripts),
            len(self._embedded),
        )
        if self.emit_on_finish:
            display(self.mime, self.getvalue())

    def reset(self) -> None:
        self._sink.rewind()
        self._init_document()

    def getvalue(self) -> str:
        value = self._sink.getvalue()
        assert isinstance(value, str)
        return value

    def _repr_svg_(self) -> str | None:
        if self._finished and self._sink.in_memory:
            return self.getvalue()
        return None

    # Document writing

    def _ensure_open(self) -> None:
        if self._finished:
            raise RuntimeError("cannot draw on a finished SVG backend; call reset() first")

    def _write_indent(self) -> None:
        self._sink.write("  " * self._indent)

    def _write_header(self) -> None:
        width = svg_fmt_float(self.width)
        height = svg_fmt_float(self.height)
        self._sink.write('<?xml version="1.0" encoding="UTF-8"?>\n')
        self._sink.write(
            '<svg xmlns="http://www.w3.org/2000/svg"\n'
            '     xmlns:xlink="http://www.w3.org/1999/xlink"\n'
            '     version="1.1"\n'
            f'     width="{width}mm" height="{height}mm" viewBox="0 0 {width} {height}"\n'
            f'     stroke="{format_hex(self.config.stroke_color)}"\n'
            f'     fill="{format_hex(self.config.fill_color)}"\n'
            f'     stroke-width="{svg_fmt_float(self.config.line_width.abs)}"\n'
            f'     font-family="{escape(self.config.font_family, quote=True)}"\n'
            f'     font-size="{svg_fmt_float(self.config.font_size.abs)}">\n'
        )

    def _draw_primitive(
        self, prim: ResolvedPrimitive, attrs: str, has_fill: bool, wrappers: Sequence[str] = ()
    ) -> None:
        no_fill = "" if has_fill else ' fill="none"'
        if isinstance(prim, (Rect, Bitmap)):
            if not _finite(prim.x, prim.y, prim.width, prim.height):
                return
        elif isinstance(prim, Circle):
            if not _finite(prim.cx, prim.cy, prim.r):
                return
        elif isinstance(prim, Text):
            if not _finite(prim.x, prim.y, prim.rotation_deg):
                return

        if isinstance(prim, Rect):
            body = (
                f'<rect x="{svg_fmt_float(prim.x)}" y="{svg_fmt_float(prim.y)}"'
                f' width="{svg_fmt_float(prim.width)}" height="{svg_fmt_float(prim.height)}"{attrs}/>'
            )
        elif isinstance(prim, Circle):
            body = (
                f'<circle cx="{svg_fmt_float(prim.cx)}" cy="{svg_fmt_float(prim.cy)}"'
                f' r="{svg_fmt_float(prim.r)}"{attrs}/>'
            )
        elif isinstance(prim, Ellipse):
            if not _finite(prim.cx, prim.cy, prim.rx, prim.ry, prim.angle_deg):
                return
            cx, cy = svg_fmt_float(prim.cx), svg_fmt_float(prim.cy)
            body = f'<ellipse cx="{cx}" cy="{cy}" rx="{svg_fmt_float(prim.rx)}" ry="{svg_fmt_float(prim.ry)}"'
            if abs(prim.angle_deg) > 1e-4:
                body += f' transform="rotate({svg_fmt_float(prim.angle_deg)} {cx} {cy})"'
            body += f"{attrs}/>"
        elif isinstance(prim, Polygon):
            runs = split_subpaths(prim.points)
            if not runs:
                return
            data = " ".join(f"{_path_data(run)} z" for run in runs)
            body = f'<path d="{data}"{attrs}/>'
        elif isinstance(prim, Lines):
            runs = split_subpaths(prim.points)
            if not runs:
                return
            data = " ".join(_path_data(run) for run in runs)
            body = f'<path{no_fill} d="{data}"{attrs}/>'
        elif isinstance(prim, Curve):
            pts = (prim.anchor0, prim.ctrl0, prim.ctrl1, prim.anchor1)
            if not all(math.isfinite(v) for p in pts for v in p):
                return
            a0, c0, c1, a1 = (f"{svg_fmt_float(x)},{svg_fmt_float(y)}" for x, y in pts)
            body = f'<path{no_fill} d="M{a0} C{c0} {c1} {a1}"{attrs}/>'
        elif isinstance(prim, Text):
            body = self._text_element(prim, attrs)
        elif isinstance(prim, Bitmap):
            encoded = base64.b64encode(prim.data).decode("ascii")
            body = (
                f'<image x="{svg_fmt_float(prim.x)}" y="{svg_fmt_float(prim.y)}"'
                f' width="{svg_fmt_float(prim.width)}" height="{svg_fmt_float(prim.height)}"'
                f' xlink:href="data:{prim.mime};base64,{encoded}"{attrs}/>'
            )
        else:
            raise TypeError(f"Unsupported primitive: {type(prim)!r}")

        for wrapper in wrappers:
            self._write_indent()
            self._sink.write(f"<g{wrapper}>\n")
            self._indent += 1
        self._write_indent()
        self._sink.write(body)
        self._sink.write("\n")
        for _ in wrappers:
            self._indent -= 1
            self._write_indent()
            self._sink.write("</g>\n")

    def _text_element(self, prim: Text, attrs: str) -> str:
        x, y = svg_fmt_float(prim.x), svg_fmt_float(prim.y)
        out = f'<text x="{x}" y="{y}"'
        anchor = _TEXT_ANCHOR.get(prim.halign)
        if anchor:
            out += f' text-anchor="{anchor}"'
        baseline = _BASELINE.get(prim.valign)
        if baseline:
            out += f' dominant-baseline="{baseline}"'
        if prim.rotation_deg != 0:
            out += f' transform="rotate({svg_fmt_float(prim.rotation_deg)} {x} {y})"'
        return f"{out}{attrs}>{escape(prim.value, quote=False)}</text>"

    def _property_attrs(self, prim: ResolvedPropertyPrimitive) -> str:
        if isinstance(prim, StrokePrimitive):
            return _attr("stroke", format_hex(prim.color))
        if isinstance(prim, FillPrimitive):
            return _attr("fill", format_hex(prim.color))
        if isinstance(prim, LineWidth):
            return _attr("stroke-width", svg_fmt_float(prim.value))
        if isinstance(prim, StrokeDash):
            dash = ",".join(svg_fmt_float(v) for v in prim.value) if prim.value else "none"
            return _attr("stroke-dasharray", dash)
        if isinstance(prim, StrokeLineCapPrimitive):
            return _attr("stroke-linecap", prim.value)
        if isinstance(prim, StrokeLineJoinPrimitive):
            return _attr("stroke-linejoin", prim.value)
        if isinstance(prim, FillOpacityPrimitive):
            return _attr("fill-opacity", svg_fmt_float(prim.value))
        if isinstance(prim, StrokeOpacityPrimitive):
            return _attr("stroke-opacity", svg_fmt_float(prim.value))
        if isinstance(prim, VisiblePrimitive):
            return _attr("visibility", "visible" if prim.value else "hidden")
        if isinstance(prim, Clip):
            return _attr("clip-path", f"url(#clippath{self._clippath_number(prim)})")
        if isinstance(prim, FontPrimitive):
            return _attr("font-family", prim.family)
        if isinstance(prim, FontSize):
            return _attr("font-size", svg_fmt_float(prim.value))
        if isinstance(prim, SVGIDPrimitive):
            return _attr("id", prim.value)
        if isinstance(prim, SVGClassPrimitive):
            return _attr("class", prim.value)
        if isinstance(prim, SVGAttributePrimitive):
            return _attr(prim.attribute, prim.value)
        if isinstance(prim, JSIncludePrimitive):
            return ""
        if isinstance(prim, JSCallPrimitive):
            if self.jsmode == "none":
                return ""
            return _attr(prim.event, f"{self._script_name(prim.code)}(evt)")
        raise TypeError(f"Unsupported property primitive: {type(prim)!r}")

    def _clippath_number(self, clip: Clip) -> int:
        number = self._clippaths.get(clip)
        if number is None:
            number = len(self._clippaths) + 1
            self._clippaths[clip] = number
        return number

    def _script_name(self, code: str) -> str:
        name = self._scripts.get(code)
        if name is None:
            name = f"js_chunk_{len(self._scripts) + 1}"
            self._scripts[code] = name
        return name

    def _include_script(self, path: str) -> None:
        if self.jsmode in ("none", "exclude"):
            return
        if self.jsmode == "embed":
            try:
                source = Path(path).read_text(encoding="utf-8")
            except OSError as exc:
                raise SinkError(f"cannot read script to embed {path}: {exc}") from exc
            obj = f'<script type="application/ecmascript"><![CDATA[\n{source}\n]]></script>'
        elif self.jsmode == "linkabs":
            obj = f'<script xlink:href="{escape(str(Path(path).resolve()), quote=True)}"></script>'
        else:
            obj = f'<script xlink:href="{escape(path, quote=True)}"></script>'
        self._embedded.setdefault(obj, None)


class SVGJS(SVG):
    """SVG with scripting enabled according to the configured jsmode."""

    mime = "text/html"

    def _default_jsmode(self) -> JSMode:
        return self.config.jsmode
