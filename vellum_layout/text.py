from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
import logging
from pathlib import Path
from typing import Protocol

from PIL import ImageFont

from vellum_core.errors import UnitResolutionError
from vellum_core.measure import Measure, MeasureOrNumber, measure_max, mm, size_measure


LOGGER = logging.getLogger(__name__)

GENERIC_FAMILIES = ("sans", "sans-serif", "serif", "monospace", "cursive", "fantasy")
SANS_FONT_FALLBACK_PATTERNS = (
    "helveticaneue",
    "helvetica",
    "arial",
    "dejavusans",
    "liberationsans",
    "freesans",
)

_FONT_DIRS = (
    Path.home() / "Library" / "Fonts",
    Path("/Library/Fonts"),
    Path("/System/Library/Fonts"),
    Path("/System/Library/Fonts/Supplemental"),
    Path("/usr/share/fonts"),
    Path("/usr/local/share/fonts"),
    Path.home() / ".fonts",
)


class TextMeasurer(Protocol):
    def measure(self, family: str, size: float, text: str) -> tuple[float, float]:
        """Width and height of `text` in millimetres at font size `size` (mm)."""


def _glyph_table() -> dict[str, float]:
    # Advance widths in em for a Helvetica-like face.
    table: dict[str, float] = {}
    for chars, width in (
        ("ijl|", 0.222),
        (" !,.:;'`It", 0.278),
        ("frJ-()[]", 0.333),
        ('"*', 0.389),
        ("czsvxyk", 0.5),
        ("abdeghnopquL^_", 0.556),
        ("0123456789$#?", 0.556),
        ("+<=>~", 0.584),
        ("FTZ", 0.611),
        ("ABEKPSVXY&", 0.667),
        ("CDHNRUw", 0.722),
        ("GOQ", 0.778),
        ("mM", 0.833),
        ("%", 0.889),
        ("W@", 0.944),
    ):
        for ch in chars:
            table[ch] = width
    return table


@dataclass(frozen=True)
class FallbackTextMeasurer:
    """Approximate metrics from a built-in glyph width table; needs no font files."""

    default_width: float = 0.556
    line_height: float = 1.0
    widths: dict[str, float] = field(default_factory=_glyph_table, compare=False, repr=False)

    def measure(self, family: str, size: float, text: str) -> tuple[float, float]:
        lines = text.split("\n")
        width = max(sum(self.widths.get(ch, self.default_width) for ch in line) for line in lines)
        return (width * size, len(lines) * self.line_height * size)


@dataclass(frozen=True)
class PillowTextMeasurer:
    """Measures with the first installed font file matching the family list.

    Falls back to `FallbackTextMeasurer` when no matching font file exists.
    """

    design_px: float = 100.0
    fallback: FallbackTextMeasurer = FallbackTextMeasurer()

    def measure(self, family: str, size: float, text: str) -> tuple[float, float]:
        if resolve_font_path(family) is None:
            return self.fallback.measure(family, size, text)
        font = load_font(family, self.design_px)
        lines = text.split("\n")
        width_px = max(font.getlength(line) for line in lines)
        ascent, descent = font.getmetrics()
        scale = size / self.design_px
        return (width_px * scale, len(lines) * (ascent + descent) * scale)


@lru_cache(maxsize=1)
def default_text_measurer() -> TextMeasurer:
    return PillowTextMeasurer()


def text_extents(
    family: str,
    size: MeasureOrNumber,
    *texts: str,
    measurer: TextMeasurer | None = None,
) -> list[tuple[Measure, Measure]]:
    size_m = size_measure(size)
    if not size_m.is_absolute:
        raise UnitResolutionError(f"text extents need an absolute font size, got `{size_m}`")
    measurer = measurer or default_text_measurer()
    extents = []
    for value in texts:
        width, height = measurer.measure(family, size_m.abs, value)
        extents.append((width * mm, height * mm))
    return extents


def max_text_extents(
    family: str,
    size: MeasureOrNumber,
    *texts: str,
    measurer: TextMeasurer | None = None,
) -> tuple[Measure, Measure]:
    extents = text_extents(family, size, *texts, measurer=measurer)
    if not extents:
        return (Measure(), Measure())
    return (measure_max(*(e[0] for e in extents)), measure_max(*(e[1] for e in extents)))


@lru_cache(maxsize=64)
def load_font(family: str, size_px: float) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    size = max(1, int(round(size_px)))
    font_path = resolve_font_path(family)
    if font_path is not None:
        try:
            return ImageFont.truetype(str(font_path), size=size)
        except OSError:
            LOGGER.warning("could not load font file %s; using Pillow's default font", font_path)
    return ImageFont.load_default(size=size)


@lru_cache(maxsize=32)
def resolve_font_path(family: str) -> Path | None:
    wanted = [
        name.strip().lower()
        for name in family.split(",")
        if name.strip() and name.strip().lower() not in GENERIC_FAMILIES
    ]
    patterns = tuple(wanted) + SANS_FONT_FALLBACK_PATTERNS
    candidates = _font_candidates()

    for pattern in patterns:
        p = pattern.replace(" ", "")
        for path in candidates:
            stem = path.stem.lower().replace(" ", "")
            if stem == p or stem.startswith(p + "-") or stem.startswith(p + "_"):
                return path
        for path in candidates:
            if p in path.stem.lower().replace(" ", ""):
                return path
    return None


@lru_cache(maxsize=1)
def _font_candidates() -> tuple[Path, ...]:
    candidates: list[Path] = []
    for base in _FONT_DIRS:
        if not base.exists():
            continue
        for ext in ("*.ttf", "*.otf", "*.ttc"):
            candidates.extend(sorted(base.rglob(ext)))
    LOGGER.debug("found %d font files", len(candidates))
    return tuple(candidates)
