from __future__ import annotations

import numpy as np

from ohlc_chart.raster.canvas import RGBA, fill_rect


def draw_polyline(dst: np.ndarray, xs: np.ndarray, ys: np.ndarray, color: RGBA, width: int = 1) -> None:
    if xs.size != ys.size:
        raise ValueError(f"xs and ys length mismatch: {xs.size} != {ys.size}")
    if xs.size == 1:
        _stamp(dst, int(xs[0]), int(ys[0]), color, width)
        return
    for i in range(xs.size - 1):
        draw_segment(dst, int(xs[i]), int(ys[i]), int(xs[i + 1]), int(ys[i + 1]), color, width=width)


def clip_segment(
    x0: float,
    y0: float,
    x1: float,
    y1: float,
    xmin: float,
    ymin: float,
    xmax: float,
    ymax: float,
) -> tuple[float, float, float, float] | None:
    """Liang-Barsky clip of a segment to a rectangle; ``None`` when it misses entirely."""
    dx = x1 - x0
    dy = y1 - y0
    t0, t1 = 0.0, 1.0
    for p, q in ((-dx, x0 - xmin), (dx, xmax - x0), (-dy, y0 - ymin), (dy, ymax - y0)):
        if p == 0:
            if q < 0:
                return None
            continue
        t = q / p
        if p < 0:
            if t > t1:
                return None
            t0 = max(t0, t)
        else:
            if t < t0:
                return None
            t1 = min(t1, t)
    return (x0 + t0 * dx, y0 + t0 * dy, x0 + t1 * dx, y0 + t1 * dy)


def draw_segment(dst: np.ndarray, x0: int, y0: int, x1: int, y1: int, color: RGBA, *, width: int = 1) -> None:
    """Bresenham segment with a square brush of ``width`` pixels, clipped to ``dst``.

    Endpoints may lie far outside the canvas; only the visible part is walked.
    """
    pad = max(1, width)
    clipped = clip_segment(x0, y0, x1, y1, -pad, -pad, dst.shape[1] - 1 + pad, dst.shape[0] - 1 + pad)
    if clipped is None:
        return
    x0, y0, x1, y1 = (int(round(v)) for v in clipped)
    dx = abs(x1 - x0)
    sx = 1 if x0 < x1 else -1
    dy = -abs(y1 - y0)
    sy = 1 if y0 < y1 else -1
    err = dx + dy

    while True:
        _stamp(dst, x0, y0, color, width)
        if x0 == x1 and y0 == y1:
            break
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x0 += sx
        if e2 <= dx:
            err += dx
            y0 += sy


def _stamp(dst: np.ndarray, x: int, y: int, color: RGBA, width: int) -> None:
    lo = (max(1, width) - 1) // 2
    hi = max(1, width) - 1 - lo
    fill_rect(dst, x - lo, y - lo, x + hi, y + hi, color)
