from __future__ import annotations

import re
from typing import TypeAlias


Color: TypeAlias = tuple[int, int, int, int]
ColorLike: TypeAlias = str | tuple[int, int, int] | tuple[int, int, int, int] | None

_HEX_COLOR = re.compile(r"^#([0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")

NAMED_COLORS: dict[str, Color] = {
    "black": (0, 0, 0, 255),
    "white": (255, 255, 255, 255),
    "red": (255, 0, 0, 255),
    "green": (0, 128, 0, 255),
    "lime": (0, 255, 0, 255),
    "blue": (0, 0, 255, 255),
    "yellow": (255, 255, 0, 255),
    "orange": (255, 165, 0, 255),
    "purple": (128, 0, 128, 255),
    "magenta": (255, 0, 255, 255),
    "cyan": (0, 255, 255, 255),
    "gray": (128, 128, 128, 255),
    "grey": (128, 128, 128, 255),
    "lightgray": (211, 211, 211, 255),
    "darkgray": (169, 169, 169, 255),
    "steelblue": (70, 130, 180, 255),
    "bisque": (255, 228, 196, 255),
    "tomato": (255, 99, 71, 255),
}


def parse_color(value: ColorLike) -> Color | None:
    """Turn a hex string, `rgb(...)` string, color name or tuple into RGBA.

    `None` and `"none"` mean "no paint" and come back as `None`.
    """

    if value is None:
        return None
    if isinstance(value, tuple):
        return _coerce_tuple(value)
    if not isinstance(value, str):
        raise ValueError(f"unsupported color value: {value!r}")
    raw = value.strip().lower()
    if raw == "none":
        return None
    if raw in NAMED_COLORS:
        return NAMED_COLORS[raw]
    if _HEX_COLOR.match(raw):
        return _parse_hex(raw[1:])
    if raw.startswith("rgb"):
        numbers = raw[raw.find("(") + 1 : raw.find(")")].split(",")
        if len(numbers) in (3, 4):
            try:
                r, g, b = (int(n) for n in numbers[:3])
                a = int(round(float(numbers[3]) * 255)) if len(numbers) == 4 else 255
            except ValueError as exc:
                raise ValueError(f"malformed rgb color: {value!r}") from exc
            return _coerce_tuple((r, g, b, a))
    raise ValueError(f"unsupported color value: {value!r}")


def _parse_hex(hex_value: str) -> Color:
    if len(hex_value) in (3, 4):
        hex_value = "".join(ch * 2 for ch in hex_value)
    r = int(hex_value[0:2], 16)
    g = int(hex_value[2:4], 16)
    b = int(hex_value[4:6], 16)
    a = int(hex_value[6:8], 16) if len(hex_value) == 8 else 255
    return (r, g, b, a)


def _coerce_tuple(value: tuple[int, ...]) -> Color:
    if len(value) == 3:
        value = (*value, 255)
    if len(value) != 4:
        raise ValueError(f"color tuples need 3 or 4 channels, got {value!r}")
    if any(not isinstance(c, int) or c < 0 or c > 255 for c in value):
        raise ValueError(f"color channels must be ints in [0, 255], got {value!r}")
    return (value[0], value[1], value[2], value[3])


def format_hex(color: Color | None) -> str:
    if color is None:
        return "none"
    r, g, b, _ = color
    return f"#{r:02X}{g:02X}{b:02X}"
