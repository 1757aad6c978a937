import unittest

from ohlc_chart.errors import InvalidDimensions, RequestError
from ohlc_chart.request import ChartRequest, TrendLine
from ohlc_chart.studies import BollingerBands, MovingAverage


class TrendLineTests(unittest.TestCase):
    def test_parse(self) -> None:
        line = TrendLine.parse("10x182.5-140x240")
        self.assertEqual((line.x1, line.y1, line.x2, line.y2), (10.0, 182.5, 140.0, 240.0))
        self.assertEqual(line.coordinates, "bars")

    def test_parse_rejects_non_finite_values(self) -> None:
        with self.assertRaisesRegex(RequestError, "finite"):
            TrendLine.parse("0x10-2x" + "9" * 400)

    def test_parse_accepts_far_away_prices(self) -> None:
        self.assertEqual(TrendLine.parse("0x10-2x100000").y2, 100000.0)

    def test_parse_rejects_malformed_text(self) -> None:
        for text in ("", "10x20", "10x20-30", "ax1-2x3"):
            with self.subTest(text=text):
                with self.assertRaises(RequestError):
                    TrendLine.parse(text)


class ChartRequestTests(unittest.TestCase):
    def test_defaults(self) -> None:
        request = ChartRequest()
        self.assertEqual((request.symbol, request.interval), ("AAPL", "daily"))
        self.assertEqual((request.width, request.height, request.theme), (600, 300, "black"))
        self.assertEqual(request.bar_count, 150)

    def test_bar_count_rounds_up(self) -> None:
        self.assertEqual(ChartRequest(width=401).bar_count, 101)

    def test_theme_default_studies(self) -> None:
        self.assertEqual(
            ChartRequest().resolved_studies(),
            (MovingAverage(10, 0x2020D0), MovingAverage(20, 0xC0C000)),
        )
        self.assertEqual(ChartRequest(theme="white").resolved_studies(), ())
        self.assertEqual(ChartRequest(studies=()).resolved_studies(), ())

    def test_from_params(self) -> None:
        request = ChartRequest.from_params(
            {"s": "MSFT", "i": "weekly", "w": "400", "h": "200", "t": "white", "tl": "1x10-5x12", "st": "BB(20,2)"}
        )
        self.assertEqual(request.symbol, "MSFT")
        self.assertEqual(request.interval, "weekly")
        self.assertEqual((request.width, request.height), (400, 200))
        self.assertEqual(request.theme, "white")
        self.assertEqual(request.trend_line, TrendLine(1.0, 10.0, 5.0, 12.0))
        self.assertEqual(request.studies, (BollingerBands(20, 2.0, 0xB0B0B0),))

    def test_from_params_falls_back_to_defaults(self) -> None:
        base = ChartRequest(symbol="IBM", width=300)
        request = ChartRequest.from_params({"h": ""}, defaults=base)
        self.assertEqual(request, base)

    def test_invalid_dimensions(self) -> None:
        for value in ("0", "-5", "wide", "1.5"):
            with self.subTest(value=value):
                with self.assertRaises(InvalidDimensions):
                    ChartRequest.from_params({"w": value})
        with self.assertRaises(InvalidDimensions):
            ChartRequest(height=0)

    def test_request_errors(self) -> None:
        for params in ({"t": "pink"}, {"tl": "bogus"}, {"st": "ZZ(1)"}):
            with self.subTest(params=params):
                with self.assertRaises(RequestError):
                    ChartRequest.from_params(params)


if __name__ == "__main__":
    unittest.main()
