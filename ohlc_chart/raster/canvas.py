from __future__ import annotations

import numpy as np

from ohlc_chart.errors import InvalidDimensions


RGBA = tuple[int, int, int, int]


def rgba(color: int, alpha: int = 255) -> RGBA:
    """Expand a ``0xRRGGBB`` theme colour into an RGBA tuple."""
    if color < 0 or color > 0xFFFFFF:
        raise ValueError(f"colour out of range: {color:#x}")
    return ((color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF, alpha)


def new_canvas(width: int, height: int, color: RGBA = (0, 0, 0, 255)) -> np.ndarray:
    if width <= 0 or height <= 0:
        raise InvalidDimensions(f"canvas must be at least 1x1, got {width}x{height}")
    canvas = np.empty((height, width, 4), dtype=np.uint8)
    canvas[:, :] = np.asarray(color, dtype=np.uint8)
    return canvas


def _paint(view: np.ndarray, color: RGBA) -> None:
    if color[3] == 255:
        view[..., :3] = color[:3]
    else:
        a = color[3] / 255.0
        src = np.asarray(color[:3], dtype=np.float32) * a
        view[..., :3] = (src + view[..., :3].astype(np.float32) * (1.0 - a)).astype(np.uint8)
    view[..., 3] = 255


def draw_pixel(dst: np.ndarray, x: int, y: int, color: RGBA) -> None:
    if y < 0 or y >= dst.shape[0] or x < 0 or x >= dst.shape[1]:
        return
    _paint(dst[y, x], color)


def draw_hline(dst: np.ndarray, x0: int, x1: int, y: int, color: RGBA) -> None:
    if y < 0 or y >= dst.shape[0]:
        return
    xa = max(0, min(x0, x1))
    xb = min(dst.shape[1] - 1, max(x0, x1))
    if xa > xb:
        return
    _paint(dst[y, xa : xb + 1], color)


def draw_vline(dst: np.ndarray, x: int, y0: int, y1: int, color: RGBA) -> None:
    if x < 0 or x >= dst.shape[1]:
        return
    ya = max(0, min(y0, y1))
    yb = min(dst.shape[0] - 1, max(y0, y1))
    if ya > yb:
        return
    _paint(dst[ya : yb + 1, x], color)


def fill_rect(dst: np.ndarray, x0: int, y0: int, x1: int, y1: int, color: RGBA) -> None:
    """Fill the inclusive rectangle spanned by two corners, clipped to the canvas."""
    left = max(0, min(x0, x1))
    right = min(dst.shape[1] - 1, max(x0, x1))
    top = max(0, min(y0, y1))
    bottom = min(dst.shape[0] - 1, max(y0, y1))
    if right < left or bottom < top:
        return
    _paint(dst[top : bottom + 1, left : right + 1], color)
