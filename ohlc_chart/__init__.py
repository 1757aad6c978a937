from ohlc_chart.encode import ImageEncoder, PngEncoder, RasterBuffer
from ohlc_chart.errors import (
    ChartError,
    DataUnavailable,
    EmptySeries,
    EncodingFailure,
    IndexOutOfRange,
    InvalidDimensions,
    InvalidSeries,
    RenderStateError,
    RequestError,
    StudyParameterError,
)
from ohlc_chart.history import CsvHistory, HistoryProvider, InMemoryHistory
from ohlc_chart.mapper import CoordinateMapper, PlotRegion, ValueRange
from ohlc_chart.pipeline import render_chart
from ohlc_chart.renderer import ChartRenderer, ChartState, candle_color
from ohlc_chart.request import ChartRequest, TrendLine
from ohlc_chart.series import Bar, Series
from ohlc_chart.studies import (
    BollingerBands,
    LevelStudy,
    MovingAverage,
    PivotLevel,
    Pivots,
    StudyResult,
    bollinger_bands,
    moving_average,
    parse_studies,
    pivots,
)
from ohlc_chart.theme import BLACK, WHITE, Theme, get_theme

__all__ = [
    "BLACK",
    "Bar",
    "BollingerBands",
    "ChartError",
    "ChartRenderer",
    "ChartRequest",
    "ChartState",
    "CoordinateMapper",
    "CsvHistory",
    "DataUnavailable",
    "EmptySeries",
    "EncodingFailure",
    "HistoryProvider",
    "ImageEncoder",
    "InMemoryHistory",
    "IndexOutOfRange",
    "InvalidDimensions",
    "InvalidSeries",
    "LevelStudy",
    "MovingAverage",
    "PivotLevel",
    "Pivots",
    "PlotRegion",
    "PngEncoder",
    "RasterBuffer",
    "RenderStateError",
    "RequestError",
    "Series",
    "StudyParameterError",
    "StudyResult",
    "Theme",
    "TrendLine",
    "ValueRange",
    "WHITE",
    "bollinger_bands",
    "candle_color",
    "get_theme",
    "moving_average",
    "parse_studies",
    "pivots",
    "render_chart",
]
