from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Literal, Mapping

from .color import Color, ColorLike, parse_color
from .errors import ConfigurationError
from .measure import Measure, MeasureOrNumber, cm, mm, pt, size_measure


GraphicFormat = Literal["html", "png", "svg", "pdf", "ps", "pgf"]
JSMode = Literal["none", "exclude", "embed", "linkabs", "linkrel"]

GRAPHIC_FORMATS: tuple[str, ...] = ("html", "png", "svg", "pdf", "ps", "pgf")
JS_MODES: tuple[str, ...] = ("none", "exclude", "embed", "linkabs", "linkrel")

_MIME_TYPES = {
    "png": "image/png",
    "svg": "image/svg+xml",
    "html": "text/html",
    "ps": "application/postscript",
    "pdf": "application/pdf",
    "pgf": "application/x-tex",
}


@dataclass(frozen=True)
class RenderConfig:
    """Process-wide defaults, read as an immutable snapshot at render time."""

    graphic_width: Measure = 12 * cm
    graphic_height: Measure = 12 * cm
    graphic_format: GraphicFormat = "html"
    jsmode: JSMode = "embed"
    font_family: str = "Helvetica Neue,Helvetica,Arial,sans"
    font_size: Measure = 11 * pt
    line_width: Measure = 0.3 * mm
    stroke_color: Color | None = None
    fill_color: Color | None = (0, 0, 0, 255)


DEFAULT_CONFIG = RenderConfig()

_current = DEFAULT_CONFIG


def current_config() -> RenderConfig:
    return _current


def reset_config() -> RenderConfig:
    global _current
    _current = DEFAULT_CONFIG
    return _current


def set_default_graphic_size(width: MeasureOrNumber, height: MeasureOrNumber) -> None:
    global _current
    width_m = _absolute_size(width, "graphic width")
    height_m = _absolute_size(height, "graphic height")
    _current = replace(_current, graphic_width=width_m, graphic_height=height_m)


def set_default_graphic_format(fmt: str) -> None:
    global _current
    if fmt not in GRAPHIC_FORMATS:
        raise ConfigurationError(f"{fmt} is not a supported graphic format")
    _current = replace(_current, graphic_format=fmt)  # type: ignore[arg-type]


def set_default_jsmode(mode: str) -> None:
    global _current
    if mode not in JS_MODES:
        raise ConfigurationError(f"{mode} is not a valid jsmode")
    _current = replace(_current, jsmode=mode)  # type: ignore[arg-type]


def set_default_style(**overrides: Any) -> None:
    """Override default font, line width and paint; keys follow RenderConfig."""

    global _current
    _current = validate_config_overrides(overrides, base=_current)


def default_mime() -> str:
    return _MIME_TYPES.get(_current.graphic_format, "")


def validate_config_overrides(
    overrides: Mapping[str, Any] | None = None,
    *,
    base: RenderConfig = DEFAULT_CONFIG,
) -> RenderConfig:
    """Validate and merge overrides against `base`, returning a new snapshot."""

    raw: dict[str, Any] = asdict(base)
    if overrides:
        for key, value in overrides.items():
            if key not in raw:
                raise ConfigurationError(f"Unknown configuration key: {key}")
            raw[key] = value

    if raw["graphic_format"] not in GRAPHIC_FORMATS:
        raise ConfigurationError(f"{raw['graphic_format']} is not a supported graphic format")
    if raw["jsmode"] not in JS_MODES:
        raise ConfigurationError(f"{raw['jsmode']} is not a valid jsmode")
    if not isinstance(raw["font_family"], str) or not raw["font_family"].strip():
        raise ConfigurationError(f"font_family must be a non-empty string, got {raw['font_family']!r}")

    return RenderConfig(
        graphic_width=_absolute_size(_as_measure(raw["graphic_width"]), "graphic width"),
        graphic_height=_absolute_size(_as_measure(raw["graphic_height"]), "graphic height"),
        graphic_format=raw["graphic_format"],
        jsmode=raw["jsmode"],
        font_family=raw["font_family"],
        font_size=_absolute_size(_as_measure(raw["font_size"]), "font size"),
        line_width=_absolute_size(_as_measure(raw["line_width"]), "line width"),
        stroke_color=_color(raw["stroke_color"], "stroke_color"),
        fill_color=_color(raw["fill_color"], "fill_color"),
    )


def _as_measure(value: Any) -> MeasureOrNumber:
    # asdict() flattens Measure fields into plain dicts.
    if isinstance(value, dict):
        return Measure(**value)
    return value


def _absolute_size(value: MeasureOrNumber, label: str) -> Measure:
    try:
        measure = size_measure(value)
    except TypeError as exc:
        raise ConfigurationError(f"{label} must be a measure, got {value!r}") from exc
    if not measure.is_absolute or measure.abs <= 0:
        raise ConfigurationError(f"{label} must be a positive absolute size, got `{measure}`")
    return measure


def _color(value: ColorLike, label: str) -> Color | None:
    if isinstance(value, list):
        value = tuple(value)  # type: ignore[assignment]
    try:
        return parse_color(value)
    except ValueError as exc:
        raise ConfigurationError(f"{label}: {exc}") from exc
