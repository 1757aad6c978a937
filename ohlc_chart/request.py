from __future__ import annotations

from dataclasses import dataclass, field
import math
import re
from typing import Any, Mapping

from ohlc_chart.errors import InvalidDimensions, RequestError, StudyParameterError
from ohlc_chart.studies import MovingAverage, Study, parse_studies
from ohlc_chart.theme import THEMES


DEFAULT_SYMBOL = "AAPL"
DEFAULT_INTERVAL = "daily"
DEFAULT_WIDTH = 600
DEFAULT_HEIGHT = 300
DEFAULT_THEME = "black"
PIXELS_PER_BAR = 4

# Studies drawn when a request does not name any.
THEME_DEFAULT_STUDIES: dict[str, tuple[Study, ...]] = {
    "black": (
        MovingAverage(period=10, color=0x2020D0),
        MovingAverage(period=20, color=0xC0C000),
    ),
    "white": (),
}

_NUMBER = r"(\d+(?:\.\d+)?)"
_TREND_LINE = re.compile(rf"^\s*{_NUMBER}x{_NUMBER}-{_NUMBER}x{_NUMBER}\s*$")


@dataclass(frozen=True)
class TrendLine:
    x1: float
    y1: float
    x2: float
    y2: float
    coordinates: str = "bars"

    @classmethod
    def parse(cls, text: str, *, coordinates: str = "bars") -> "TrendLine":
        """Parse ``"X1xY1-X2xY2"``, e.g. ``"10x182.5-140x240"``."""
        match = _TREND_LINE.match(text)
        if match is None:
            raise RequestError(f"trend line must look like X1xY1-X2xY2, got {text!r}")
        x1, y1, x2, y2 = (float(g) for g in match.groups())
        if not all(math.isfinite(v) for v in (x1, y1, x2, y2)):
            raise RequestError(f"trend line coordinates must be finite, got {text!r}")
        return cls(x1=x1, y1=y1, x2=x2, y2=y2, coordinates=coordinates)


@dataclass(frozen=True)
class ChartRequest:
    symbol: str = DEFAULT_SYMBOL
    interval: str = DEFAULT_INTERVAL
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    theme: str = DEFAULT_THEME
    trend_line: TrendLine | None = None
    studies: tuple[Study, ...] | None = field(default=None)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise InvalidDimensions(f"width and height must be > 0, got {self.width}x{self.height}")
        if not self.symbol:
            raise RequestError("symbol must not be empty")
        if self.theme not in THEMES:
            raise RequestError(f"unknown theme {self.theme!r}; expected one of {', '.join(sorted(THEMES))}")

    @property
    def bar_count(self) -> int:
        return math.ceil(self.width / PIXELS_PER_BAR)

    def resolved_studies(self) -> tuple[Study, ...]:
        if self.studies is not None:
            return self.studies
        return THEME_DEFAULT_STUDIES.get(self.theme, ())

    @classmethod
    def from_params(cls, params: Mapping[str, Any], *, defaults: "ChartRequest | None" = None) -> "ChartRequest":
        """Build a request from query-style keys ``s, i, w, h, t, tl, st``.

        Missing keys fall back to ``defaults`` (or the module defaults).
        """
        base = defaults or cls()
        trend_text = _text(params, "tl")
        study_text = _text(params, "st")
        studies = base.studies
        if study_text is not None:
            try:
                studies = parse_studies(study_text)
            except StudyParameterError as exc:
                raise RequestError(str(exc)) from exc
        return cls(
            symbol=_text(params, "s") or base.symbol,
            interval=_text(params, "i") or base.interval,
            width=_dimension(params, "w", base.width),
            height=_dimension(params, "h", base.height),
            theme=_text(params, "t") or base.theme,
            trend_line=TrendLine.parse(trend_text) if trend_text else base.trend_line,
            studies=studies,
        )


def _text(params: Mapping[str, Any], key: str) -> str | None:
    value = params.get(key)
    if value is None:
        return None
    return str(value).strip()


def _dimension(params: Mapping[str, Any], key: str, default: int) -> int:
    raw = _text(params, key)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise InvalidDimensions(f"{key} must be a positive integer, got {raw!r}") from None
    if value <= 0:
        raise InvalidDimensions(f"{key} must be a positive integer, got {raw!r}")
    return value
