from vellum_render.backend import Backend, OutputSink, absolute_size, split_subpaths
from vellum_render.cairo_backend import CAIRO_AVAILABLE, PDF, PS, CairoBackend, detect_print_preflight_issue
from vellum_render.display import display, pop_display, push_display
from vellum_render.draw import default_backend, draw, show
from vellum_render.raster import PNG
from vellum_render.scope import PropertyFrame, PropertyStack, ResolvedStyle
from vellum_render.svg import SVG, SVGJS, svg_fmt_float

__all__ = [
    "Backend",
    "CAIRO_AVAILABLE",
    "CairoBackend",
    "OutputSink",
    "PDF",
    "PNG",
    "PS",
    "PropertyFrame",
    "PropertyStack",
    "ResolvedStyle",
    "SVG",
    "SVGJS",
    "absolute_size",
    "default_backend",
    "detect_print_preflight_issue",
    "display",
    "draw",
    "pop_display",
    "push_display",
    "show",
    "split_subpaths",
    "svg_fmt_float",
]
