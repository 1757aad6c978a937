from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from ohlc_chart.raster.canvas import RGBA


DEFAULT_FONT_FAMILY = "DejaVu Sans Mono"
DEFAULT_FONT_SIZE_PX = 10.0
MONO_FONT_FALLBACK_PATTERNS = (
    "dejavusansmono",
    "dejavu sans mono",
    "liberationmono",
    "menlo",
    "monaco",
    "courier new",
    "courier",
)
FONT_DIRS = (
    Path.home() / "Library" / "Fonts",
    Path("/Library/Fonts"),
    Path("/System/Library/Fonts"),
    Path("/usr/share/fonts"),
    Path("/usr/local/share/fonts"),
)


def draw_text(
    dst: np.ndarray,
    x: int,
    y: int,
    text: str,
    color: RGBA,
    *,
    font_family: str = DEFAULT_FONT_FAMILY,
    font_size_px: float = DEFAULT_FONT_SIZE_PX,
) -> None:
    """Blend ``text`` onto ``dst`` with the text origin (top-left of the line box) at ``(x, y)``."""
    if not text:
        return
    font = _load_font(font_family, font_size_px)
    left, top, _, _ = font.getbbox(text)
    _blend_mask(dst, x + int(left), y + int(top), _render_mask(text, font), color)


def text_size(
    text: str,
    *,
    font_family: str = DEFAULT_FONT_FAMILY,
    font_size_px: float = DEFAULT_FONT_SIZE_PX,
) -> tuple[int, int]:
    font = _load_font(font_family, font_size_px)
    if not text:
        return (0, line_height(font_family=font_family, font_size_px=font_size_px))
    left, top, right, bottom = font.getbbox(text)
    return (max(0, int(right - left)), max(1, int(bottom - top)))


def line_height(*, font_family: str = DEFAULT_FONT_FAMILY, font_size_px: float = DEFAULT_FONT_SIZE_PX) -> int:
    font = _load_font(font_family, font_size_px)
    _, _, _, bottom = font.getbbox("Ag|(")
    return max(1, int(bottom))


def _blend_mask(dst: np.ndarray, x: int, y: int, mask: np.ndarray, color: RGBA) -> None:
    h, w = mask.shape
    x0 = max(0, x)
    y0 = max(0, y)
    x1 = min(dst.shape[1], x + w)
    y1 = min(dst.shape[0], y + h)
    if x1 <= x0 or y1 <= y0:
        return

    cov = mask[y0 - y : y1 - y, x0 - x : x1 - x].astype(np.float32) / 255.0
    alpha = (color[3] / 255.0) * cov
    if not np.any(alpha > 0):
        return
    patch = dst[y0:y1, x0:x1]
    src = np.asarray(color[:3], dtype=np.float32).reshape(1, 1, 3)
    out = src * alpha[:, :, None] + patch[:, :, :3].astype(np.float32) * (1.0 - alpha[:, :, None])
    patch[:, :, :3] = np.clip(np.rint(out), 0, 255).astype(np.uint8)
    patch[:, :, 3] = 255


@lru_cache(maxsize=256)
def _render_mask(text: str, font: ImageFont.FreeTypeFont | ImageFont.ImageFont) -> np.ndarray:
    left, top, right, bottom = font.getbbox(text)
    image = Image.new("L", (max(1, int(right - left)), max(1, int(bottom - top))), 0)
    ImageDraw.Draw(image).text((-left, -top), text, fill=255, font=font)
    mask = np.asarray(image, dtype=np.uint8)
    mask.setflags(write=False)
    return mask


@lru_cache(maxsize=32)
def _load_font(font_family: str, font_size_px: float) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    size = max(1, int(round(font_size_px)))
    font_path = _resolve_font_path(font_family)
    if font_path is None:
        return ImageFont.load_default()
    try:
        return ImageFont.truetype(str(font_path), size=size)
    except OSError:
        return ImageFont.load_default()


def _resolve_font_path(font_family: str) -> Path | None:
    wanted = font_family.strip().lower() or DEFAULT_FONT_FAMILY.lower()
    candidates: list[Path] = []
    for base in FONT_DIRS:
        if not base.exists():
            continue
        for ext in ("*.ttf", "*.otf"):
            candidates.extend(base.rglob(ext))
    candidates.sort()

    for pattern in (wanted,) + MONO_FONT_FALLBACK_PATTERNS:
        p = pattern.replace(" ", "")
        stems = [(path, path.stem.lower().replace(" ", "")) for path in candidates]
        for path, stem in stems:
            if stem == p:
                return path
        for path, stem in stems:
            if p in stem:
                return path
    return None
