from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

import numpy as np

from ohlc_chart.errors import InvalidSeries
from ohlc_chart.series import Bar, Series


try:
    import pandas as pd
except Exception:  # pragma: no cover - optional dependency
    pd = None  # type: ignore[assignment]


OHLCV_FIELDS = ("timestamp", "open", "high", "low", "close", "volume")


def series_from_rows(rows: Sequence[Any]) -> Series:
    """Build a Series from mappings or 6-tuples ``(ts, o, h, l, c, v)``."""
    bars: list[Bar] = []
    for i, row in enumerate(rows):
        if isinstance(row, Mapping):
            try:
                raw = [row[key] for key in OHLCV_FIELDS]
            except KeyError as exc:
                raise InvalidSeries(f"row {i} is missing field {exc.args[0]!r}") from exc
        elif isinstance(row, Sequence) and not isinstance(row, (str, bytes, bytearray)):
            if len(row) != len(OHLCV_FIELDS):
                raise InvalidSeries(f"row {i} must have {len(OHLCV_FIELDS)} fields, got {len(row)}")
            raw = list(row)
        else:
            raise InvalidSeries(f"unsupported row type at index {i}: {type(row)!r}")
        bars.append(_bar_from_values(raw, index=i))
    return Series.of(bars)


def series_from_arrays(
    timestamps: Any,
    opens: Any,
    highs: Any,
    lows: Any,
    closes: Any,
    volumes: Any,
) -> Series:
    ts = _coerce_1d(timestamps, label="timestamps")
    if ts.dtype.kind == "M":
        ts = ts.astype("datetime64[s]").astype(np.int64)
    columns = [_coerce_1d(v, label=label) for v, label in (
        (opens, "opens"),
        (highs, "highs"),
        (lows, "lows"),
        (closes, "closes"),
        (volumes, "volumes"),
    )]
    for arr, label in zip(columns, ("opens", "highs", "lows", "closes", "volumes")):
        if arr.shape != ts.shape:
            raise InvalidSeries(f"timestamps and {label} length mismatch: {ts.size} != {arr.size}")
    rows = zip(ts.tolist(), *(c.tolist() for c in columns))
    return Series.of(_bar_from_values(list(row), index=i) for i, row in enumerate(rows))


def series_from_frame(frame: Any) -> Series:
    """Build a Series from a pandas DataFrame.

    Column names are matched case-insensitively. Timestamps come from a
    ``timestamp`` column when present, otherwise from a DatetimeIndex.
    """
    if pd is None:
        raise InvalidSeries("pandas is required to adapt a DataFrame")
    if not isinstance(frame, pd.DataFrame):
        raise InvalidSeries("`frame` must be a pandas DataFrame")
    lookup = {str(c).lower(): c for c in frame.columns}
    missing = [name for name in OHLCV_FIELDS[1:] if name not in lookup]
    if missing:
        raise InvalidSeries(f"frame is missing columns: {', '.join(missing)}")
    if "timestamp" in lookup:
        ts = frame[lookup["timestamp"]].to_numpy()
    elif isinstance(frame.index, pd.DatetimeIndex):
        index = frame.index
        if index.tz is None:
            index = index.tz_localize("UTC")
        ts = np.asarray([int(stamp.timestamp()) for stamp in index], dtype=np.int64)
    else:
        raise InvalidSeries("frame needs a `timestamp` column or a DatetimeIndex")
    return series_from_arrays(ts, *(frame[lookup[name]].to_numpy() for name in OHLCV_FIELDS[1:]))


def _bar_from_values(raw: list[Any], *, index: int) -> Bar:
    ts, o, h, l, c, v = raw
    try:
        volume = float(v)
        if not np.isfinite(volume) or volume != int(volume):
            raise ValueError(f"non-integral volume {v!r}")
        return Bar(
            timestamp=_coerce_timestamp(ts),
            open=_coerce_float(o),
            high=_coerce_float(h),
            low=_coerce_float(l),
            close=_coerce_float(c),
            volume=int(volume),
        )
    except InvalidSeries:
        raise
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidSeries(f"row {index} is not a valid bar: {exc}") from exc


def _coerce_timestamp(value: Any) -> int:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp())
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return int(text)
        return _coerce_timestamp(datetime.fromisoformat(text))
    if isinstance(value, np.datetime64):
        return int(value.astype("datetime64[s]").astype(np.int64))
    return int(value)


def _coerce_float(value: Any) -> float:
    if isinstance(value, str):
        value = value.strip()
    return float(value)


def _coerce_1d(value: Any, *, label: str) -> np.ndarray:
    if pd is not None and isinstance(value, pd.Series):
        value = value.to_numpy()
    if isinstance(value, np.ndarray):
        if value.ndim != 1:
            raise InvalidSeries(f"{label} must be 1-D")
        return value
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return np.asarray(value, dtype=object)
    raise InvalidSeries(f"unsupported {label} input type: {type(value)!r}")
