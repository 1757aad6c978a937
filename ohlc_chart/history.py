from __future__ import annotations

import csv
import logging
from pathlib import Path
import re
from typing import Mapping, Protocol

from ohlc_chart.adapters.normalize import OHLCV_FIELDS, series_from_rows
from ohlc_chart.errors import DataUnavailable
from ohlc_chart.series import Series


LOGGER = logging.getLogger(__name__)

INTERVALS = ("daily", "weekly", "monthly")
_SYMBOL = re.compile(r"^[A-Za-z0-9.^_-]{1,32}$")


class HistoryProvider(Protocol):
    def fetch_history(self, symbol: str, interval: str, count: int) -> Series:
        """Return at most ``count`` bars, newest last, or raise DataUnavailable."""
        ...


def _check_request(symbol: str, interval: str, count: int) -> None:
    if count <= 0:
        raise ValueError(f"count must be > 0, got {count}")
    if interval not in INTERVALS:
        raise DataUnavailable(f"unknown interval {interval!r}")
    if not _SYMBOL.match(symbol):
        raise DataUnavailable(f"unknown symbol {symbol!r}")


class InMemoryHistory:
    """Provider over prebuilt series keyed by ``(symbol, interval)``."""

    def __init__(self, data: Mapping[tuple[str, str], Series]) -> None:
        self._data = {(symbol.upper(), interval): series for (symbol, interval), series in data.items()}

    def fetch_history(self, symbol: str, interval: str, count: int) -> Series:
        _check_request(symbol, interval, count)
        series = self._data.get((symbol.upper(), interval))
        if series is None or series.empty:
            raise DataUnavailable(f"no {interval} history for {symbol}")
        return series.tail(count)


class CsvHistory:
    """Provider reading ``<root>/<SYMBOL>_<interval>.csv`` files.

    Files carry a ``timestamp,open,high,low,close,volume`` header and rows in
    ascending time order; timestamps are epoch seconds or ISO-8601 strings.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    def path_for(self, symbol: str, interval: str) -> Path:
        return self._root / f"{symbol.upper()}_{interval}.csv"

    def fetch_history(self, symbol: str, interval: str, count: int) -> Series:
        _check_request(symbol, interval, count)
        path = self.path_for(symbol, interval)
        if not path.is_file():
            raise DataUnavailable(f"no {interval} history for {symbol}: {path} not found")
        with path.open("r", encoding="utf-8", newline="") as f:
            reader = csv.DictReader(f)
            fields = [name.strip().lower() for name in (reader.fieldnames or [])]
            missing = [name for name in OHLCV_FIELDS if name not in fields]
            if missing:
                raise DataUnavailable(f"{path} is missing columns: {', '.join(missing)}")
            rows = [{key.strip().lower(): value for key, value in row.items() if key is not None} for row in reader]
        if not rows:
            raise DataUnavailable(f"no {interval} history for {symbol}: {path} is empty")
        series = series_from_rows(rows[-count:])
        LOGGER.info("loaded %d %s bars for %s from %s", len(series), interval, symbol.upper(), path)
        return series
