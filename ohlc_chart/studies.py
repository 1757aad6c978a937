"""Technical studies computed from a :class:`~ohlc_chart.series.Series`.

Every study is a pure function of the series. Index-aligned studies return a
:class:`StudyResult` holding only the defined points; level studies return a
:class:`LevelStudy` of horizontal price levels. Standard deviations are
population deviations (divide by N).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Union

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from ohlc_chart.errors import StudyParameterError
from ohlc_chart.series import Series


# Cap on candidate levels scanned by a single pivot study.
MAX_PIVOT_LEVELS = 10_000


@dataclass(frozen=True, eq=False)
class StudyResult:
    """Defined ``(index, value)`` points of a study over a series of ``length`` bars."""

    name: str
    length: int
    indices: np.ndarray
    values: np.ndarray

    def __post_init__(self) -> None:
        if self.indices.shape != self.values.shape:
            raise StudyParameterError("indices and values must have the same shape")
        self.indices.setflags(write=False)
        self.values.setflags(write=False)

    def __len__(self) -> int:
        return int(self.indices.size)

    def points(self) -> Iterator[tuple[int, float]]:
        for i, v in zip(self.indices.tolist(), self.values.tolist()):
            yield int(i), float(v)

    def aligned(self) -> np.ndarray:
        """Values spread over all ``length`` indices, NaN where undefined."""
        out = np.full(self.length, np.nan, dtype=np.float64)
        out[self.indices] = self.values
        return out

    def value_at(self, index: int) -> float | None:
        if index < 0 or index >= self.length:
            raise IndexError(f"index {index} outside [0, {self.length})")
        v = self.aligned()[index]
        return None if np.isnan(v) else float(v)

    def range_values(self) -> np.ndarray:
        return self.values


@dataclass(frozen=True)
class PivotLevel:
    price: float
    strength: int


@dataclass(frozen=True)
class LevelStudy:
    name: str
    levels: tuple[PivotLevel, ...]

    def __len__(self) -> int:
        return len(self.levels)

    def __iter__(self) -> Iterator[PivotLevel]:
        return iter(self.levels)

    @property
    def prices(self) -> list[float]:
        return [level.price for level in self.levels]

    def range_values(self) -> np.ndarray:
        return np.asarray(self.prices, dtype=np.float64)


def moving_average(series: Series, period: int) -> StudyResult:
    windows = _close_windows(series, period)
    means = windows.mean(axis=1) if windows.size else np.empty(0, dtype=np.float64)
    return _result(f"MA({period})", series, period, means)


def bollinger_bands(series: Series, period: int, num_std: float) -> tuple[StudyResult, StudyResult, StudyResult]:
    """Lower, middle and upper bands around a ``period`` moving average."""
    if num_std < 0:
        raise StudyParameterError(f"num_std must be >= 0, got {num_std}")
    windows = _close_windows(series, period)
    if windows.size:
        middle = windows.mean(axis=1)
        deviation = windows.std(axis=1, ddof=0) * float(num_std)
    else:
        middle = deviation = np.empty(0, dtype=np.float64)
    label = f"BB({period},{_number_label(num_std)})"
    return (
        _result(f"{label} lower", series, period, middle - deviation),
        _result(f"{label} middle", series, period, middle),
        _result(f"{label} upper", series, period, middle + deviation),
    )


def pivots(
    series: Series,
    threshold: int,
    low_bound: float,
    high_bound: float,
    increment: float,
) -> LevelStudy:
    """Round price levels touched by more than ``threshold`` bars.

    Levels are the multiples of ``increment`` inside ``[low_bound, high_bound]``;
    a bar touches a level when the level lies within its ``[low, high]``.
    """
    if increment <= 0 or not np.isfinite(increment):
        raise StudyParameterError(f"increment must be a positive number, got {increment}")
    if low_bound > high_bound:
        raise StudyParameterError(f"low_bound {low_bound} is above high_bound {high_bound}")
    name = f"P({threshold},{_number_label(increment)})"
    lo_step = float(np.ceil(low_bound / increment - 1e-9))
    hi_step = float(np.floor(high_bound / increment + 1e-9))
    if not (np.isfinite(lo_step) and np.isfinite(hi_step)) or hi_step - lo_step + 1 > MAX_PIVOT_LEVELS:
        raise StudyParameterError(
            f"increment {increment} gives more than {MAX_PIVOT_LEVELS} levels over [{low_bound}, {high_bound}]"
        )
    first = int(lo_step)
    last = int(hi_step)
    if last < first or series.empty:
        return LevelStudy(name=name, levels=())
    levels = np.arange(first, last + 1, dtype=np.float64) * increment
    touched = (levels[:, None] >= series.lows[None, :]) & (levels[:, None] <= series.highs[None, :])
    counts = touched.sum(axis=1)
    keep = counts > threshold
    return LevelStudy(
        name=name,
        levels=tuple(
            PivotLevel(price=float(price), strength=int(count))
            for price, count in zip(levels[keep].tolist(), counts[keep].tolist())
        ),
    )


def _close_windows(series: Series, period: int) -> np.ndarray:
    if int(period) != period or period < 1:
        raise StudyParameterError(f"period must be a positive integer, got {period}")
    if len(series) < period:
        return np.empty((0, int(period)), dtype=np.float64)
    return sliding_window_view(series.closes, int(period))


def _result(name: str, series: Series, period: int, values: np.ndarray) -> StudyResult:
    start = int(period) - 1
    return StudyResult(
        name=name,
        length=len(series),
        indices=np.arange(start, start + values.size, dtype=np.int64),
        values=np.asarray(values, dtype=np.float64),
    )


def _number_label(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))


# Study variants selected by the caller; each knows its label, how to compute
# itself and how the renderer should draw it.


@dataclass(frozen=True)
class MovingAverage:
    period: int
    color: int
    line_width: int = 1

    @property
    def label(self) -> str:
        return f"MA({self.period})"

    def compute(self, series: Series) -> tuple[StudyResult, ...]:
        return (moving_average(series, self.period),)


@dataclass(frozen=True)
class BollingerBands:
    period: int
    num_std: float
    color: int
    line_width: int = 2

    @property
    def label(self) -> str:
        return f"BB({self.period},{_number_label(self.num_std)})"

    def compute(self, series: Series) -> tuple[StudyResult, ...]:
        lower, _, upper = bollinger_bands(series, self.period, self.num_std)
        return (lower, upper)


@dataclass(frozen=True)
class Pivots:
    threshold: int
    increment: float
    color: int

    @property
    def label(self) -> str:
        return f"P({self.threshold},{_number_label(self.increment)})"

    def compute(self, series: Series) -> LevelStudy:
        if series.empty:
            return LevelStudy(name=self.label, levels=())
        low = float(np.min(series.lows))
        high = float(np.max(series.highs))
        return pivots(series, self.threshold, low, high, self.increment)


Study = Union[MovingAverage, BollingerBands, Pivots]

DEFAULT_STUDY_COLORS = {
    "MA": 0x2020D0,
    "BB": 0xB0B0B0,
    "P": 0xFF00FF,
}

_STUDY_TOKEN = re.compile(r"^\s*(MA|BB|P)\s*\(\s*([^)]*)\)\s*$", re.IGNORECASE)


def parse_studies(text: str, *, colors: dict[str, int] | None = None) -> tuple[Study, ...]:
    """Parse a list such as ``"MA(10),BB(20,2),P(10,5)"`` into study variants."""
    palette = dict(DEFAULT_STUDY_COLORS)
    if colors:
        palette.update(colors)
    tokens = re.findall(r"[A-Za-z]+\s*\([^)]*\)", text)
    leftover = re.sub(r"[A-Za-z]+\s*\([^)]*\)", "", text).replace(",", "").strip()
    if leftover:
        raise StudyParameterError(f"cannot parse study list: {text!r}")
    studies: list[Study] = []
    for token in tokens:
        match = _STUDY_TOKEN.match(token)
        if match is None:
            raise StudyParameterError(f"unknown study: {token!r}")
        kind = match.group(1).upper()
        args = [a.strip() for a in match.group(2).split(",") if a.strip()]
        try:
            if kind == "MA" and len(args) == 1:
                studies.append(MovingAverage(period=int(args[0]), color=palette["MA"]))
            elif kind == "BB" and len(args) == 2:
                studies.append(BollingerBands(period=int(args[0]), num_std=float(args[1]), color=palette["BB"]))
            elif kind == "P" and len(args) == 2:
                studies.append(Pivots(threshold=int(args[0]), increment=float(args[1]), color=palette["P"]))
            else:
                raise StudyParameterError(f"wrong number of arguments for {kind}: {token!r}")
        except StudyParameterError:
            raise
        except ValueError as exc:
            raise StudyParameterError(f"invalid study arguments in {token!r}") from exc
    return tuple(studies)
