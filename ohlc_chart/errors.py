from __future__ import annotations


class ChartError(Exception):
    """Base class for every failure surfaced by a chart render."""


class DataUnavailable(ChartError, LookupError):
    """The history provider has no bars for the requested symbol/interval."""


class InvalidDimensions(ChartError, ValueError):
    """Canvas or region dimensions cannot hold a chart."""


class EmptySeries(ChartError, ValueError):
    """A render was attempted on a series with no bars."""


class IndexOutOfRange(ChartError, IndexError):
    """A draw call referenced a bar index outside the series."""


class EncodingFailure(ChartError, RuntimeError):
    """The image encoder could not serialize the raster buffer."""


class InvalidSeries(ChartError, ValueError):
    """Bars violate OHLC or ordering invariants."""


class StudyParameterError(ChartError, ValueError):
    pass


class RenderStateError(ChartError, RuntimeError):
    """An operation is not valid in the renderer's current state."""


class RequestError(ChartError, ValueError):
    pass
