from __future__ import annotations

import logging

from vellum_core.boxes import UnitBox
from vellum_core.config import RenderConfig, current_config
from vellum_core.errors import UnsupportedBackendOperation
from vellum_core.nodes import Node
from vellum_core.traversal import DrawForm, PopScope, PushScope, resolve_tree

from .backend import Backend
from .cairo_backend import PDF, PS
from .raster import PNG
from .svg import SVG, SVGJS


LOGGER = logging.getLogger(__name__)


def draw(backend: Backend, root: Node, config: RenderConfig | None = None) -> Backend:
    """Render `root` into `backend` and finish it.

    The configuration snapshot is taken once, before traversal starts.
    """

    config = config or current_config()
    units = UnitBox(font_size=config.font_size.abs)
    frames = 0
    for event in resolve_tree(root, backend.root_box(), units):
        if isinstance(event, PushScope):
            backend.push_property_frame(event.properties)
            frames += 1
        elif isinstance(event, PopScope):
            backend.pop_property_frame()
            frames -= 1
        elif isinstance(event, DrawForm):
            backend.draw(event.form)
        else:
            raise TypeError(f"Unsupported render event: {type(event)!r}")
    if frames != 0:
        raise RuntimeError(f"unbalanced property scopes after traversal: {frames}")
    backend.finish()
    return backend


def default_backend(config: RenderConfig | None = None) -> Backend:
    """In-memory backend for the configured graphic format, emitting on finish."""

    config = config or current_config()
    width, height = config.graphic_width, config.graphic_height
    fmt = config.graphic_format
    if fmt == "svg":
        return SVG(None, width, height, config=config)
    if fmt == "html":
        return SVGJS(None, width, height, config=config)
    if fmt == "png":
        return PNG(None, width, height, config=config)
    if fmt == "pdf":
        return PDF(None, width, height, config=config)
    if fmt == "ps":
        return PS(None, width, height, config=config)
    raise UnsupportedBackendOperation(f"no backend renders the {fmt} graphic format")


def show(root: Node, config: RenderConfig | None = None) -> Backend:
    config = config or current_config()
    backend = default_backend(config)
    LOGGER.debug("showing scene as %s", config.graphic_format)
    return draw(backend, root, config)
