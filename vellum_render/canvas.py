from __future__ import annotations

import numpy as np


RGBA = tuple[int, int, int, int]


def new_canvas(width: int, height: int, color: RGBA = (0, 0, 0, 0)) -> np.ndarray:
    canvas = np.zeros((height, width, 4), dtype=np.uint8)
    canvas[:, :, 0] = color[0]
    canvas[:, :, 1] = color[1]
    canvas[:, :, 2] = color[2]
    canvas[:, :, 3] = color[3]
    return canvas


def blend_layer(dst: np.ndarray, rgb: np.ndarray, alpha: np.ndarray) -> None:
    """Source-over composite of a canvas-sized layer onto `dst` in place.

    `rgb` broadcasts against (H, W, 3) and `alpha` is (H, W) in [0, 1].
    """

    if not np.any(alpha > 0):
        return
    dst_rgb = dst[:, :, :3].astype(np.float32)
    dst_alpha = dst[:, :, 3].astype(np.float32) / 255.0

    out_alpha = alpha + dst_alpha * (1.0 - alpha)
    out_rgb_num = rgb * alpha[:, :, None] + dst_rgb * dst_alpha[:, :, None] * (1.0 - alpha[:, :, None])
    safe_alpha = np.where(out_alpha > 1e-6, out_alpha, 1.0)
    out_rgb = out_rgb_num / safe_alpha[:, :, None]

    dst[:, :, :3] = np.clip(out_rgb, 0, 255).astype(np.uint8)
    dst[:, :, 3] = np.clip(out_alpha * 255.0, 0, 255).astype(np.uint8)


def blend_coverage(dst: np.ndarray, coverage: np.ndarray, color: RGBA, opacity: float = 1.0) -> None:
    src_alpha = (color[3] / 255.0) * opacity * coverage
    src_rgb = np.asarray(color[:3], dtype=np.float32).reshape(1, 1, 3)
    blend_layer(dst, src_rgb, src_alpha.astype(np.float32))
