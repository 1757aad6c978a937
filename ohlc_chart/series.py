from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator

import numpy as np

from ohlc_chart.errors import InvalidSeries


@dataclass(frozen=True)
class Bar:
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: int = 0

    def __post_init__(self) -> None:
        for name in ("open", "high", "low", "close"):
            value = getattr(self, name)
            if not np.isfinite(value) or value <= 0:
                raise InvalidSeries(f"bar {self.timestamp}: {name} must be a positive number, got {value!r}")
        if self.volume < 0:
            raise InvalidSeries(f"bar {self.timestamp}: volume must be >= 0, got {self.volume!r}")
        body_lo = min(self.open, self.close)
        body_hi = max(self.open, self.close)
        if not (self.low <= body_lo and body_hi <= self.high):
            raise InvalidSeries(
                f"bar {self.timestamp}: expected low <= open/close <= high, "
                f"got o={self.open} h={self.high} l={self.low} c={self.close}"
            )

    @property
    def rising(self) -> bool:
        return self.close >= self.open


@dataclass(frozen=True)
class Series:
    """Ordered, read-only run of OHLCV bars, oldest first.

    Column arrays are built once at construction and flagged read-only so
    studies and the renderer can share them without copying.
    """

    bars: tuple[Bar, ...] = ()
    timestamps: np.ndarray = field(init=False, repr=False, compare=False)
    opens: np.ndarray = field(init=False, repr=False, compare=False)
    highs: np.ndarray = field(init=False, repr=False, compare=False)
    lows: np.ndarray = field(init=False, repr=False, compare=False)
    closes: np.ndarray = field(init=False, repr=False, compare=False)
    volumes: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        bars = tuple(self.bars)
        object.__setattr__(self, "bars", bars)
        for prev, cur in zip(bars, bars[1:]):
            if cur.timestamp <= prev.timestamp:
                raise InvalidSeries(
                    f"timestamps must be strictly increasing: {prev.timestamp} followed by {cur.timestamp}"
                )
        columns = {
            "timestamps": np.asarray([b.timestamp for b in bars], dtype=np.int64),
            "opens": np.asarray([b.open for b in bars], dtype=np.float64),
            "highs": np.asarray([b.high for b in bars], dtype=np.float64),
            "lows": np.asarray([b.low for b in bars], dtype=np.float64),
            "closes": np.asarray([b.close for b in bars], dtype=np.float64),
            "volumes": np.asarray([b.volume for b in bars], dtype=np.int64),
        }
        for name, arr in columns.items():
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)

    @classmethod
    def of(cls, bars: Iterable[Bar]) -> "Series":
        return cls(bars=tuple(bars))

    def __len__(self) -> int:
        return len(self.bars)

    def __iter__(self) -> Iterator[Bar]:
        return iter(self.bars)

    def __getitem__(self, index: int) -> Bar:
        return self.bars[index]

    @property
    def empty(self) -> bool:
        return not self.bars

    @property
    def last(self) -> Bar:
        return self.bars[-1]

    def tail(self, count: int) -> "Series":
        if count <= 0:
            return Series()
        if count >= len(self.bars):
            return self
        return Series(bars=self.bars[-count:])
