from vellum_core.boxes import AbsoluteBox, BoundingBox, Point, UnitBox, bounding_box, point, resolve, resolve_box
from vellum_core.color import Color, format_hex, parse_color
from vellum_core.config import (
    RenderConfig,
    current_config,
    default_mime,
    reset_config,
    set_default_graphic_format,
    set_default_graphic_size,
    set_default_jsmode,
    set_default_style,
    validate_config_overrides,
)
from vellum_core.errors import (
    BatchLengthMismatch,
    ConfigurationError,
    SinkError,
    UnitResolutionError,
    UnsupportedBackendOperation,
    VellumError,
)
from vellum_core.forms import (
    Form,
    bitmap,
    circle,
    curve,
    ellipse,
    hcenter,
    hleft,
    hright,
    line,
    polygon,
    rectangle,
    text,
    vbottom,
    vcenter,
    vtop,
)
from vellum_core.measure import Measure, cm, cx, cy, em, h, inch, measure_max, measure_min, mm, pt, px, w
from vellum_core.nodes import EMPTY, Context, ContextPromise, compose, context, ctxpromise, minheight, minwidth, set_units
from vellum_core.properties import (
    Property,
    clip,
    fill,
    fillopacity,
    font,
    fontsize,
    jscall,
    jsinclude,
    linewidth,
    stroke,
    strokedash,
    strokelinecap,
    strokelinejoin,
    strokeopacity,
    svgattribute,
    svgclass,
    svgid,
    visible,
)
from vellum_core.traversal import DrawForm, PopScope, PushScope, resolve_tree

__all__ = [
    "AbsoluteBox",
    "BatchLengthMismatch",
    "BoundingBox",
    "Color",
    "ConfigurationError",
    "Context",
    "ContextPromise",
    "DrawForm",
    "EMPTY",
    "Form",
    "Measure",
    "Point",
    "PopScope",
    "Property",
    "PushScope",
    "RenderConfig",
    "SinkError",
    "UnitBox",
    "UnitResolutionError",
    "UnsupportedBackendOperation",
    "VellumError",
    "bitmap",
    "bounding_box",
    "circle",
    "clip",
    "cm",
    "compose",
    "context",
    "ctxpromise",
    "current_config",
    "curve",
    "cx",
    "cy",
    "default_mime",
    "ellipse",
    "em",
    "fill",
    "fillopacity",
    "font",
    "fontsize",
    "format_hex",
    "h",
    "hcenter",
    "hleft",
    "hright",
    "inch",
    "jscall",
    "jsinclude",
    "line",
    "linewidth",
    "measure_max",
    "measure_min",
    "minheight",
    "minwidth",
    "mm",
    "parse_color",
    "point",
    "polygon",
    "pt",
    "px",
    "rectangle",
    "reset_config",
    "resolve",
    "resolve_box",
    "resolve_tree",
    "set_default_graphic_format",
    "set_default_graphic_size",
    "set_default_jsmode",
    "set_default_style",
    "set_units",
    "stroke",
    "strokedash",
    "strokelinecap",
    "strokelinejoin",
    "strokeopacity",
    "svgattribute",
    "svgclass",
    "svgid",
    "text",
    "validate_config_overrides",
    "vbottom",
    "vcenter",
    "visible",
    "vtop",
    "w",
]
