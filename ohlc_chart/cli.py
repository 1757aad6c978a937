from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import Sequence

from ohlc_chart.config import ChartConfig, load_config
from ohlc_chart.errors import ChartError
from ohlc_chart.history import CsvHistory
from ohlc_chart.pipeline import render_chart
from ohlc_chart.request import ChartRequest


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ohlc_chart", description="Render an OHLC chart PNG from CSV history.")
    p.add_argument("--data-dir", required=True, help="directory holding <SYMBOL>_<interval>.csv files")
    p.add_argument("--out", required=True, help="PNG file to write")
    p.add_argument("--config", default=None, help="optional TOML config file")
    p.add_argument("--symbol", "-s", default=None)
    p.add_argument("--interval", "-i", default=None)
    p.add_argument("--width", "-w", default=None)
    p.add_argument("--height", default=None)
    p.add_argument("--theme", "-t", default=None)
    p.add_argument("--trend-line", default=None, help="X1xY1-X2xY2 in bar index / price")
    p.add_argument("--studies", default=None, help='e.g. "MA(10),BB(20,2),P(10,5)"')
    p.add_argument("--verbose", "-v", action="store_true")
    return p


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    params = {
        key: value
        for key, value in (
            ("s", args.symbol),
            ("i", args.interval),
            ("w", args.width),
            ("h", args.height),
            ("t", args.theme),
            ("tl", args.trend_line),
            ("st", args.studies),
        )
        if value is not None
    }
    try:
        config = load_config(args.config) if args.config else ChartConfig()
        request = ChartRequest.from_params(params, defaults=config.defaults)
        payload = render_chart(request, CsvHistory(args.data_dir), config=config)
    except (ChartError, ValueError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(payload)
    print(f"wrote {out_path}")
    return 0
