from __future__ import annotations

from datetime import date, datetime, timezone
import logging

from ohlc_chart.config import ChartConfig
from ohlc_chart.encode import ImageEncoder, PngEncoder
from ohlc_chart.errors import EmptySeries
from ohlc_chart.history import HistoryProvider
from ohlc_chart.renderer import ChartRenderer, Overlay
from ohlc_chart.request import ChartRequest
from ohlc_chart.studies import BollingerBands, LevelStudy, MovingAverage, Study


LOGGER = logging.getLogger(__name__)

REDISTRIBUTABLE_NOTE = " but freely redistributable"


def copyright_line(owner: str, theme_name: str, today: date) -> str:
    text = f"(C) {today.year} {owner}"
    if theme_name == "white":
        text += REDISTRIBUTABLE_NOTE
    return text


def render_chart(
    request: ChartRequest,
    history: HistoryProvider,
    *,
    config: ChartConfig | None = None,
    today: date | None = None,
    encoder: ImageEncoder | None = None,
) -> bytes:
    """Fetch history for ``request`` and return the encoded chart image.

    Failures propagate as :class:`~ohlc_chart.errors.ChartError` subclasses;
    nothing is returned for a failed render.
    """
    cfg = config or ChartConfig()
    theme = cfg.theme(request.theme)
    today = today or datetime.now(timezone.utc).date()

    series = history.fetch_history(request.symbol, request.interval, request.bar_count)
    if series.empty:
        raise EmptySeries(f"history provider returned no bars for {request.symbol}")

    studies = request.resolved_studies()
    computed: list[tuple[Study, tuple[Overlay, ...]]] = []
    for study in studies:
        result = study.compute(series)
        computed.append((study, (result,) if isinstance(result, LevelStudy) else tuple(result)))

    chart = ChartRenderer(
        series,
        theme,
        request.width,
        request.height,
        volume_height=cfg.volume_height,
        overlays=[overlay for _, overlays in computed for overlay in overlays],
    )
    last_day = datetime.fromtimestamp(series.last.timestamp, tz=timezone.utc)
    chart.title(f"{request.symbol} - {request.interval} - {last_day:%Y/%m/%d}", theme.title)
    chart.title(copyright_line(cfg.copyright_owner, theme.name, today), theme.major_grid, right=True)
    if cfg.volume_height:
        chart.plot_volume(theme.volume, theme.border, theme.label)
    chart.plot_price_legends(theme.border, theme.label, theme.grid, True, theme.major_grid)

    for study, overlays in computed:
        chart.title(study.label, study.color)
        for overlay in overlays:
            if isinstance(overlay, LevelStudy):
                chart.plot_level_study(overlay, study.color)
            elif isinstance(study, (MovingAverage, BollingerBands)):
                chart.plot_price_study(overlay, study.color, study.line_width)
            else:
                raise TypeError(f"{study.label} produced an index-aligned overlay it cannot draw")

    trend = request.trend_line
    if trend is not None:
        chart.plot_trend(trend.x1, trend.y1, trend.x2, trend.y2, theme.line, coordinates=trend.coordinates)

    chart.plot_price(theme.up, theme.down)
    payload = chart.finalize(encoder or PngEncoder())
    LOGGER.info(
        "rendered %s %s chart: %d bars, %dx%d, %d bytes",
        request.symbol,
        request.interval,
        len(series),
        request.width,
        request.height,
        len(payload),
    )
    return payload
