from __future__ import annotations

import dataclasses
import unittest

from vellum_core.config import (
    current_config,
    default_mime,
    reset_config,
    set_default_graphic_format,
    set_default_graphic_size,
    set_default_jsmode,
    set_default_style,
    validate_config_overrides,
)
from vellum_core.errors import ConfigurationError, UnsupportedBackendOperation
from vellum_core.measure import cm, mm, pt, w
from vellum_render.draw import default_backend
from vellum_render.raster import PNG
from vellum_render.svg import SVGJS


class RenderConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        reset_config()

    def tearDown(self) -> None:
        reset_config()

    def test_defaults(self) -> None:
        config = current_config()
        self.assertEqual(config.graphic_width, 12 * cm)
        self.assertEqual(config.graphic_format, "html")
        self.assertEqual(config.jsmode, "embed")
        self.assertEqual(config.font_size, 11 * pt)
        self.assertEqual(default_mime(), "text/html")

    def test_unknown_format_names_the_value(self) -> None:
        with self.assertRaisesRegex(ConfigurationError, "gif"):
            set_default_graphic_format("gif")
        self.assertEqual(current_config().graphic_format, "html")

    def test_unknown_jsmode_names_the_value(self) -> None:
        with self.assertRaisesRegex(ConfigurationError, "inline"):
            set_default_jsmode("inline")

    def test_graphic_size_must_be_absolute(self) -> None:
        with self.assertRaises(ConfigurationError):
            set_default_graphic_size(0.5 * w, 10 * mm)
        with self.assertRaises(ConfigurationError):
            set_default_graphic_size(-1, 10)
        set_default_graphic_size(4 * cm, 30)
        self.assertEqual(current_config().graphic_width, 40 * mm)
        self.assertEqual(current_config().graphic_height, 30 * mm)

    def test_style_overrides_are_validated(self) -> None:
        set_default_style(fill_color="red", line_width=1 * mm)
        self.assertEqual(current_config().fill_color, (255, 0, 0, 255))
        self.assertEqual(current_config().line_width, 1 * mm)
        with self.assertRaisesRegex(ConfigurationError, "Unknown configuration key"):
            set_default_style(colour="red")
        with self.assertRaises(ConfigurationError):
            set_default_style(stroke_color="not-a-color")
        with self.assertRaises(ConfigurationError):
            set_default_style(font_family="  ")

    def test_snapshot_is_immutable(self) -> None:
        snapshot = current_config()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            snapshot.jsmode = "none"  # type: ignore[misc]
        set_default_jsmode("linkrel")
        self.assertEqual(snapshot.jsmode, "embed")
        self.assertEqual(current_config().jsmode, "linkrel")

    def test_default_mime_follows_format(self) -> None:
        for fmt, mime in (("svg", "image/svg+xml"), ("png", "image/png"), ("pdf", "application/pdf")):
            with self.subTest(fmt=fmt):
                set_default_graphic_format(fmt)
                self.assertEqual(default_mime(), mime)


class DefaultBackendTests(unittest.TestCase):
    def test_backend_follows_graphic_format(self) -> None:
        self.assertIsInstance(default_backend(validate_config_overrides({"graphic_format": "html"})), SVGJS)
        self.assertIsInstance(default_backend(validate_config_overrides({"graphic_format": "png"})), PNG)

    def test_pgf_is_not_rendered(self) -> None:
        with self.assertRaises(UnsupportedBackendOperation):
            default_backend(validate_config_overrides({"graphic_format": "pgf"}))


if __name__ == "__main__":
    unittest.main()
