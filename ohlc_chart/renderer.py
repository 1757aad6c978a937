from __future__ import annotations

from enum import Enum
import logging
from typing import Any, Iterable, Union

import numpy as np

from ohlc_chart.encode import ImageEncoder, PngEncoder, RasterBuffer
from ohlc_chart.errors import EmptySeries, IndexOutOfRange, InvalidDimensions, RenderStateError
from ohlc_chart.mapper import (
    CoordinateMapper,
    PlotRegion,
    ValueRange,
    compute_price_range,
    compute_volume_range,
)
from ohlc_chart.raster import (
    draw_hline,
    draw_polyline,
    draw_segment,
    draw_text,
    draw_vline,
    fill_rect,
    line_height,
    new_canvas,
    rgba,
    text_size,
)
from ohlc_chart.raster.draw_text import DEFAULT_FONT_SIZE_PX
from ohlc_chart.scales import format_ticks_for_axis, format_volume, generate_nice_ticks
from ohlc_chart.series import Series
from ohlc_chart.studies import LevelStudy, StudyResult
from ohlc_chart.theme import Theme


LOGGER = logging.getLogger(__name__)

Overlay = Union[StudyResult, LevelStudy]

DEFAULT_VOLUME_HEIGHT = 40
VOLUME_GAP_PX = 2
TICK_SPACING_PX = 40
TICK_MARK_PX = 3
LABEL_PAD_PX = 3
TITLE_PAD_PX = 2
TITLE_LINE_GAP_PX = 1
TREND_COORDINATES = ("bars", "pixels")

_FROM_THEME: Any = object()


class ChartState(Enum):
    INITIALIZED = "initialized"
    TITLES_DRAWN = "titles_drawn"
    PLOTTING = "plotting"
    PRICE_PLOTTED = "price_plotted"
    FINALIZED = "finalized"


_PRE_PLOT = (ChartState.INITIALIZED, ChartState.TITLES_DRAWN)
_DRAWABLE = (ChartState.INITIALIZED, ChartState.TITLES_DRAWN, ChartState.PLOTTING)


def candle_color(open_: float, close: float, up: int, down: int | None) -> int:
    """Rising or flat bars take ``up``; falling bars take ``down`` unless it is unset."""
    if close >= open_ or down is None:
        return up
    return down


def _contiguous_true_runs(mask: np.ndarray) -> list[tuple[int, int]]:
    idx = np.flatnonzero(mask)
    if idx.size == 0:
        return []
    runs: list[tuple[int, int]] = []
    start = int(idx[0])
    prev = int(idx[0])
    for v in idx[1:]:
        iv = int(v)
        if iv == prev + 1:
            prev = iv
            continue
        runs.append((start, prev + 1))
        start = iv
        prev = iv
    runs.append((start, prev + 1))
    return runs


class ChartRenderer:
    """Single-use OHLC chart canvas.

    The canvas is split into a price region, a bottom-anchored volume region
    of ``volume_height`` rows and a right-hand gutter for scale labels. Price
    and volume ranges are fixed before the first plot call and include every
    registered overlay, so studies reaching past the bars are never clipped.

    Call order: any number of :meth:`title`, :meth:`add_overlay` before the
    first plot, then legends/volume/studies/trend in any order, then
    :meth:`plot_price` last and finally :meth:`finalize`.
    """

    def __init__(
        self,
        series: Series,
        theme: Theme,
        width: int,
        height: int,
        *,
        volume_height: int = DEFAULT_VOLUME_HEIGHT,
        overlays: Iterable[Overlay] = (),
        font_size_px: float = DEFAULT_FONT_SIZE_PX,
    ) -> None:
        if width <= 0 or height <= 0:
            raise InvalidDimensions(f"width and height must be > 0, got {width}x{height}")
        if volume_height < 0:
            raise InvalidDimensions(f"volume_height must be >= 0, got {volume_height}")
        if series.empty:
            raise EmptySeries("cannot render a chart without bars")
        self.width = int(width)
        self.height = int(height)
        self.series = series
        self.theme = theme
        self.volume_height = int(volume_height)
        self._font_px = float(font_size_px)
        self._line_h = line_height(font_size_px=self._font_px)
        self._overlays: list[Overlay] = list(overlays)
        self._titles: list[tuple[str, int, bool, int]] = []
        self._title_cursor = TITLE_PAD_PX
        self._state = ChartState.INITIALIZED
        self._layout()
        self._canvas = new_canvas(self.width, self.height, rgba(theme.background))
        LOGGER.debug(
            "chart initialized: %dx%d, %d bars, price %s..%s",
            self.width,
            self.height,
            len(series),
            self.price_range.min,
            self.price_range.max,
        )

    @property
    def state(self) -> ChartState:
        return self._state

    @property
    def mapper(self) -> CoordinateMapper:
        return self._mapper

    @property
    def price_region(self) -> PlotRegion:
        return self._mapper.price_region

    @property
    def volume_region(self) -> PlotRegion | None:
        return self._mapper.volume_region

    @property
    def price_range(self) -> ValueRange:
        """Data range over bars and overlays, before margins are applied."""
        return self._price_range

    @property
    def volume_range(self) -> ValueRange:
        return self._volume_range

    @property
    def low(self) -> float:
        return float(np.min(self.series.lows))

    @property
    def high(self) -> float:
        return float(np.max(self.series.highs))

    @property
    def price_ticks(self) -> np.ndarray:
        return self._ticks.copy()

    def buffer(self) -> RasterBuffer:
        """Copy of the current pixels; not valid once the chart is finalized."""
        self._require("buffer", *_DRAWABLE, ChartState.PRICE_PLOTTED)
        return RasterBuffer(width=self.width, height=self.height, pixels=self._canvas.copy())

    def add_overlay(self, overlay: Overlay) -> None:
        self._require("add_overlay", *_PRE_PLOT)
        self._overlays.append(overlay)
        self._layout()

    def title(self, text: str, color: int, right: bool = False) -> None:
        """Queue one line of the title stack; lines are composited beneath the candles."""
        self._require("title", *_DRAWABLE)
        self._titles.append((text, color, bool(right), self._title_cursor))
        self._title_cursor += self._line_h + TITLE_LINE_GAP_PX
        if self._state is ChartState.INITIALIZED:
            self._transition(ChartState.TITLES_DRAWN)

    def plot_price_legends(
        self,
        border: int | None = None,
        label: int | None = None,
        grid: int | None = None,
        major: bool = True,
        major_grid: int | None = None,
    ) -> None:
        self._begin_plot("plot_price_legends")
        border_c = rgba(self.theme.border if border is None else border)
        label_c = rgba(self.theme.label if label is None else label)
        grid_c = rgba(self.theme.grid if grid is None else grid)
        major_c = rgba(self.theme.major_grid if major_grid is None else major_grid) if major else grid_c
        region = self.price_region
        canvas = self._canvas

        if major and self._ticks.size > 1:
            half = float(self._ticks[1] - self._ticks[0]) / 2.0
            candidates = np.concatenate(([self._ticks[0] - half], self._ticks + half))
            for value in candidates.tolist():
                y = self._mapper.price_to_y(value)
                if region.y < y < region.bottom:
                    draw_hline(canvas, region.x, region.right, y, grid_c)

        gutter_x = region.right + 1
        for value, text in zip(self._ticks.tolist(), self._tick_labels):
            y = self._mapper.price_to_y(value)
            if not region.y <= y <= region.bottom:
                continue
            draw_hline(canvas, region.x, region.right, y, major_c)
            draw_hline(canvas, gutter_x, gutter_x + TICK_MARK_PX, y, border_c)
            draw_text(
                canvas,
                gutter_x + TICK_MARK_PX + LABEL_PAD_PX,
                y - self._line_h // 2,
                text,
                label_c,
                font_size_px=self._font_px,
            )

        zero_y = self._mapper.price_to_y(0.0)
        if region.y <= zero_y <= region.bottom:
            draw_hline(canvas, region.x, region.right, zero_y, border_c)
        draw_hline(canvas, region.x, gutter_x, region.y, border_c)
        draw_hline(canvas, region.x, gutter_x, region.bottom, border_c)
        draw_vline(canvas, gutter_x, region.y, region.bottom, border_c)

    def plot_volume(self, color: int | None = None, border: int | None = None, label: int | None = None) -> None:
        region = self.volume_region
        if region is None:
            raise RenderStateError("chart was created without a volume region")
        self._begin_plot("plot_volume")
        bar_c = rgba(self.theme.volume if color is None else color)
        border_c = rgba(self.theme.border if border is None else border)
        label_c = rgba(self.theme.label if label is None else label)
        canvas = self._canvas
        gutter_x = region.right + 1

        mid_y = self._mapper.volume_to_y(self._mapper.volume_range.max / 2.0)
        if region.y < mid_y < region.bottom:
            draw_hline(canvas, region.x, region.right, mid_y, rgba(self.theme.grid))
        draw_hline(canvas, region.x, gutter_x, region.y, border_c)
        draw_vline(canvas, gutter_x, region.y, region.bottom, border_c)
        draw_text(
            canvas,
            gutter_x + TICK_MARK_PX + LABEL_PAD_PX,
            region.y + 1,
            format_volume(self._volume_range.max),
            label_c,
            font_size_px=self._font_px,
        )

        for i, volume in enumerate(self.series.volumes.tolist()):
            rows = self._mapper.volume_rows(volume)
            if rows <= 0:
                continue
            left, right = self._mapper.body_span(i)
            fill_rect(canvas, left, region.bottom - rows + 1, right, region.bottom, bar_c)

    def plot_price_study(self, result: StudyResult, color: int, line_width: int = 1) -> None:
        self._require("plot_price_study", *_DRAWABLE)
        if result.length != len(self.series) or (
            len(result) and (int(result.indices.min()) < 0 or int(result.indices.max()) >= len(self.series))
        ):
            raise IndexOutOfRange(
                f"study {result.name!r} spans {result.length} bars, chart has {len(self.series)}"
            )
        self._cover(result)
        self._begin_plot("plot_price_study")
        view, region = self._price_view()
        col = rgba(color)
        values = result.aligned()
        for start, stop in _contiguous_true_runs(np.isfinite(values)):
            xs = np.asarray([self._mapper.x_for_index(i) - region.x for i in range(start, stop)], dtype=np.int64)
            ys = np.asarray([self._mapper.price_to_y(v) - region.y for v in values[start:stop].tolist()], dtype=np.int64)
            draw_polyline(view, xs, ys, col, width=line_width)

    def plot_level_study(self, levels: LevelStudy, color: int) -> None:
        self._require("plot_level_study", *_DRAWABLE)
        self._cover(levels)
        self._begin_plot("plot_level_study")
        region = self.price_region
        col = rgba(color)
        for level in levels:
            y = self._mapper.price_to_y(level.price)
            if region.y <= y <= region.bottom:
                draw_hline(self._canvas, region.x, region.right, y, col)

    def plot_trend(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        color: int | None = None,
        *,
        coordinates: str = "bars",
        line_width: int = 1,
    ) -> None:
        """Draw one straight segment inside the price region.

        ``coordinates="bars"`` reads ``x`` as bar index and ``y`` as price;
        ``"pixels"`` reads both as canvas pixel offsets.
        """
        if coordinates not in TREND_COORDINATES:
            raise ValueError(f"coordinates must be one of {TREND_COORDINATES}, got {coordinates!r}")
        if not all(np.isfinite(v) for v in (x1, y1, x2, y2)):
            raise ValueError(f"trend line coordinates must be finite, got {(x1, y1, x2, y2)}")
        self._begin_plot("plot_trend")
        view, region = self._price_view()
        if coordinates == "bars":
            n = len(self.series)
            for x in (x1, x2):
                if not 0 <= x < n:
                    raise IndexOutOfRange(f"trend line bar index {x} outside [0, {n})")
            p0 = (self._mapper.x_for_position(x1), self._mapper.price_to_y(y1))
            p1 = (self._mapper.x_for_position(x2), self._mapper.price_to_y(y2))
        else:
            p0 = (int(round(x1)), int(round(y1)))
            p1 = (int(round(x2)), int(round(y2)))
        col = rgba(self.theme.line if color is None else color)
        draw_segment(
            view,
            p0[0] - region.x,
            p0[1] - region.y,
            p1[0] - region.x,
            p1[1] - region.y,
            col,
            width=line_width,
        )

    def plot_price(self, up: int | None = None, down: int | None = _FROM_THEME) -> None:
        """Draw every bar as a candle; always the last drawing call."""
        self._require("plot_price", *_DRAWABLE)
        up_color = self.theme.up if up is None else up
        down_color = self.theme.down if down is _FROM_THEME else down
        self._composite_titles()
        view, region = self._price_view()
        s = self.series
        for i in range(len(s)):
            o, h, l, c = float(s.opens[i]), float(s.highs[i]), float(s.lows[i]), float(s.closes[i])
            col = rgba(candle_color(o, c, up_color, down_color))
            x = self._mapper.x_for_index(i) - region.x
            y_open = self._mapper.price_to_y(o) - region.y
            y_close = self._mapper.price_to_y(c) - region.y
            draw_vline(view, x, self._mapper.price_to_y(h) - region.y, self._mapper.price_to_y(l) - region.y, col)
            left, right = self._mapper.body_span(i)
            if right > left:
                fill_rect(view, left - region.x, y_open, right - region.x, y_close, col)
            else:
                # Too narrow for a body: open tick left, close tick right.
                draw_hline(view, x - 1, x, y_open, col)
                draw_hline(view, x, x + 1, y_close, col)
        self._transition(ChartState.PRICE_PLOTTED)

    def finalize(self, encoder: ImageEncoder | None = None) -> bytes:
        self._require("finalize", ChartState.PRICE_PLOTTED)
        buffer = RasterBuffer(width=self.width, height=self.height, pixels=self._canvas)
        self._transition(ChartState.FINALIZED)
        return (encoder or PngEncoder()).encode(buffer)

    def _layout(self) -> None:
        n = len(self.series)
        gap = VOLUME_GAP_PX if self.volume_height else 0
        price_h = self.height - self.volume_height - gap
        if price_h < 2:
            raise InvalidDimensions(
                f"height {self.height} leaves no room for prices above a {self.volume_height}px volume region"
            )
        self._price_range = compute_price_range(self.series, (o.range_values() for o in self._overlays))
        self._volume_range = compute_volume_range(self.series)

        probe = CoordinateMapper(
            bar_count=n,
            price_region=PlotRegion(0, 0, max(n, self.width), price_h),
            price_range=self._price_range,
        )
        visible_lo = probe.price_at(price_h - 1)
        visible_hi = probe.price_at(0)
        self._ticks = generate_nice_ticks(visible_lo, visible_hi, max(2, price_h // TICK_SPACING_PX))
        self._tick_labels = format_ticks_for_axis(self._ticks)
        labels = list(self._tick_labels)
        if self.volume_height:
            labels.append(format_volume(self._volume_range.max))
        label_w = max((text_size(t, font_size_px=self._font_px)[0] for t in labels), default=0)
        gutter = 1 + TICK_MARK_PX + LABEL_PAD_PX + label_w + LABEL_PAD_PX
        plot_w = self.width - gutter
        if plot_w < n:
            raise InvalidDimensions(f"width {self.width} cannot fit {n} bars beside a {gutter}px scale")

        volume_region = None
        if self.volume_height:
            volume_region = PlotRegion(0, self.height - self.volume_height, plot_w, self.volume_height)
        self._mapper = CoordinateMapper(
            bar_count=n,
            price_region=PlotRegion(0, 0, plot_w, price_h),
            price_range=self._price_range,
            volume_region=volume_region,
            volume_range=self._volume_range,
        )

    def _price_view(self) -> tuple[np.ndarray, PlotRegion]:
        region = self.price_region
        return self._canvas[region.y : region.bottom + 1, region.x : region.right + 1], region

    def _cover(self, overlay: Overlay) -> None:
        """Widen the price range for an unregistered overlay, or fail once plotting began."""
        values = np.asarray(overlay.range_values(), dtype=np.float64)
        values = values[np.isfinite(values)]
        if values.size == 0:
            return
        lo, hi = float(values.min()), float(values.max())
        if self._price_range.contains(lo) and self._price_range.contains(hi):
            return
        if self._state in _PRE_PLOT:
            self.add_overlay(overlay)
            return
        raise RenderStateError(
            f"overlay {overlay.name!r} spans {lo}..{hi}, outside the fixed price range "
            f"{self._price_range.min}..{self._price_range.max}; register it with add_overlay before plotting"
        )

    def _composite_titles(self) -> None:
        region = self.price_region
        for text, color, right, y in self._titles:
            x = TITLE_PAD_PX
            if right:
                x = region.right - TITLE_PAD_PX - text_size(text, font_size_px=self._font_px)[0]
            draw_text(self._canvas, x, y, text, rgba(color), font_size_px=self._font_px)

    def _begin_plot(self, op: str) -> None:
        self._require(op, *_DRAWABLE)
        if self._state is not ChartState.PLOTTING:
            self._transition(ChartState.PLOTTING)

    def _require(self, op: str, *allowed: ChartState) -> None:
        if self._state not in allowed:
            raise RenderStateError(f"{op} is not valid once the chart is {self._state.value}")

    def _transition(self, state: ChartState) -> None:
        LOGGER.debug("chart state %s -> %s", self._state.value, state.value)
        self._state = state
