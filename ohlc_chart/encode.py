from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Protocol

import numpy as np
from PIL import Image

from ohlc_chart.errors import EncodingFailure


PNG_MIME_TYPE = "image/png"
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@dataclass(frozen=True, eq=False)
class RasterBuffer:
    width: int
    height: int
    pixels: np.ndarray

    def __post_init__(self) -> None:
        if self.pixels.shape != (self.height, self.width, 4) or self.pixels.dtype != np.uint8:
            raise EncodingFailure(
                f"expected a {self.height}x{self.width}x4 uint8 buffer, got {self.pixels.shape} {self.pixels.dtype}"
            )


class ImageEncoder(Protocol):
    mime_type: str

    def encode(self, buffer: RasterBuffer) -> bytes:
        ...


class PngEncoder:
    """Lossless RGB PNG; chart pixels are opaque so alpha is dropped."""

    mime_type = PNG_MIME_TYPE

    def __init__(self, compress_level: int = 9) -> None:
        if not 0 <= compress_level <= 9:
            raise ValueError("compress_level must be in [0, 9]")
        self._compress_level = compress_level

    def encode(self, buffer: RasterBuffer) -> bytes:
        rgb = np.ascontiguousarray(buffer.pixels[:, :, :3])
        out = io.BytesIO()
        try:
            Image.fromarray(rgb).save(out, format="PNG", compress_level=self._compress_level)
        except (OSError, ValueError) as exc:
            raise EncodingFailure(f"PNG encoding failed: {exc}") from exc
        return out.getvalue()
