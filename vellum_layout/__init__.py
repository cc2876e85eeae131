from vellum_layout.pad import pad, pad_inner, pad_outer
from vellum_layout.table import gridstack, hstack, solve_extents, table, vstack
from vellum_layout.text import (
    FallbackTextMeasurer,
    PillowTextMeasurer,
    TextMeasurer,
    default_text_measurer,
    max_text_extents,
    text_extents,
)

__all__ = [
    "FallbackTextMeasurer",
    "PillowTextMeasurer",
    "TextMeasurer",
    "default_text_measurer",
    "gridstack",
    "hstack",
    "max_text_extents",
    "pad",
    "pad_inner",
    "pad_outer",
    "solve_extents",
    "table",
    "text_extents",
    "vstack",
]
