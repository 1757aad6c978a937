from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np

from ohlc_chart.errors import EmptySeries, IndexOutOfRange, InvalidDimensions
from ohlc_chart.series import Series


MIN_PRICE_SPAN = 1e-6
FLAT_RANGE_RATIO = 0.05
PRICE_MARGIN_RATIO = 0.05
BODY_WIDTH_RATIO = 0.35


@dataclass(frozen=True)
class PlotRegion:
    x: int
    y: int
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise InvalidDimensions(f"plot region must be at least 1x1, got {self.width}x{self.height}")

    @property
    def right(self) -> int:
        return self.x + self.width - 1

    @property
    def bottom(self) -> int:
        return self.y + self.height - 1

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x <= self.right and self.y <= y <= self.bottom

    def overlaps(self, other: "PlotRegion") -> bool:
        return not (
            self.right < other.x or other.right < self.x or self.bottom < other.y or other.bottom < self.y
        )


@dataclass(frozen=True)
class ValueRange:
    min: float
    max: float

    @property
    def span(self) -> float:
        return self.max - self.min

    def contains(self, value: float, *, tolerance: float = 1e-9) -> bool:
        slack = max(tolerance, abs(self.span) * tolerance)
        return self.min - slack <= value <= self.max + slack


def compute_price_range(series: Series, overlays: Iterable[np.ndarray] = ()) -> ValueRange:
    """Lowest low / highest high over the series and every finite overlay value."""
    if series.empty:
        raise EmptySeries("cannot compute a price range without bars")
    lo = float(np.min(series.lows))
    hi = float(np.max(series.highs))
    for values in overlays:
        finite = np.asarray(values, dtype=np.float64)
        finite = finite[np.isfinite(finite)]
        if finite.size:
            lo = min(lo, float(np.min(finite)))
            hi = max(hi, float(np.max(finite)))
    return ValueRange(min=lo, max=hi)


def compute_volume_range(series: Series) -> ValueRange:
    if series.empty:
        raise EmptySeries("cannot compute a volume range without bars")
    return ValueRange(min=0.0, max=float(np.max(series.volumes)))


class CoordinateMapper:
    """Maps bar index, price and volume to canvas pixels.

    The price and volume regions share one horizontal mapping so a candle
    and its volume bar sit in the same pixel column.
    """

    def __init__(
        self,
        *,
        bar_count: int,
        price_region: PlotRegion,
        price_range: ValueRange,
        volume_region: PlotRegion | None = None,
        volume_range: ValueRange | None = None,
        margin_ratio: float = PRICE_MARGIN_RATIO,
    ) -> None:
        if bar_count <= 0:
            raise EmptySeries("coordinate mapping needs at least one bar")
        if bar_count > price_region.width:
            raise InvalidDimensions(
                f"{bar_count} bars do not fit in a {price_region.width}px wide region"
            )
        if volume_region is not None and (
            volume_region.x != price_region.x or volume_region.width != price_region.width
        ):
            raise InvalidDimensions("price and volume regions must share their horizontal extent")
        if not 0.0 <= margin_ratio < 0.5:
            raise ValueError("margin_ratio must be in [0, 0.5)")
        self.bar_count = bar_count
        self.price_region = price_region
        self.volume_region = volume_region
        self.bar_width = price_region.width / bar_count

        lo, hi = price_range.min, price_range.max
        if hi - lo <= 0:
            delta = max(MIN_PRICE_SPAN, abs(lo) * FLAT_RANGE_RATIO)
            lo, hi = lo - delta, hi + delta
        self.price_range = ValueRange(min=lo, max=hi)

        vmax = volume_range.max if volume_range is not None else 0.0
        self.volume_range = ValueRange(min=0.0, max=vmax if vmax > 0 else 1.0)

        margin = int(round(price_region.height * margin_ratio))
        self._band_top = price_region.y + min(margin, (price_region.height - 1) // 2)
        self._band_bottom = price_region.bottom - min(margin, (price_region.height - 1) // 2)
        self._centers = np.floor(
            price_region.x + np.arange(bar_count, dtype=np.float64) * self.bar_width + self.bar_width / 2.0
        ).astype(np.int64)

    def check_index(self, index: int) -> int:
        if index < 0 or index >= self.bar_count:
            raise IndexOutOfRange(f"bar index {index} outside [0, {self.bar_count})")
        return int(index)

    def x_for_index(self, index: int) -> int:
        return int(self._centers[self.check_index(index)])

    def x_for_position(self, position: float) -> int:
        """Pixel column for a fractional bar position; used by trend lines."""
        return int(np.floor(self.price_region.x + position * self.bar_width + self.bar_width / 2.0))

    def index_at(self, x: int) -> int:
        pos = int(np.searchsorted(self._centers, x))
        if pos == 0:
            return 0
        if pos >= self.bar_count:
            return self.bar_count - 1
        left = int(self._centers[pos - 1])
        right = int(self._centers[pos])
        return pos - 1 if x - left <= right - x else pos

    def body_span(self, index: int) -> tuple[int, int]:
        center = self.x_for_index(index)
        half = int((self.bar_width - 1.0) * BODY_WIDTH_RATIO)
        return (center - half, center + half)

    def price_to_y(self, price: float) -> int:
        frac = (price - self.price_range.min) / self.price_range.span
        return int(round(self._band_bottom - frac * (self._band_bottom - self._band_top)))

    def price_at(self, y: float) -> float:
        band = self._band_bottom - self._band_top
        if band <= 0:
            return (self.price_range.min + self.price_range.max) / 2.0
        frac = (self._band_bottom - y) / band
        return self.price_range.min + frac * self.price_range.span

    def volume_rows(self, volume: float) -> int:
        region = self._require_volume_region()
        frac = max(0.0, float(volume)) / self.volume_range.max
        return int(round(frac * (region.height - 1)))

    def volume_to_y(self, volume: float) -> int:
        """Row just above the top of a volume bar; the bar fills the rows below it."""
        return self._require_volume_region().bottom - self.volume_rows(volume)

    def _require_volume_region(self) -> PlotRegion:
        if self.volume_region is None:
            raise InvalidDimensions("chart has no volume region")
        return self.volume_region
