from pathlib import Path
import tempfile
import unittest

from ohlc_chart.errors import DataUnavailable
from ohlc_chart.history import CsvHistory, InMemoryHistory
from ohlc_chart.series import Bar, Series

CSV_ROWS = """timestamp,open,high,low,close,volume
2024-01-02,10,12,9,11,100
2024-01-03,11,13,10,12,150
2024-01-04,12,15,11,14,200
"""


def _series(count: int) -> Series:
    return Series.of(
        Bar(timestamp=(i + 1) * 86400, open=10.0, high=11.0, low=9.0, close=10.5, volume=i) for i in range(count)
    )


class InMemoryHistoryTests(unittest.TestCase):
    def test_returns_newest_bars(self) -> None:
        history = InMemoryHistory({("aapl", "daily"): _series(10)})
        series = history.fetch_history("AAPL", "daily", 4)
        self.assertEqual(series.volumes.tolist(), [6, 7, 8, 9])

    def test_unknown_symbol_or_interval(self) -> None:
        history = InMemoryHistory({("AAPL", "daily"): _series(3)})
        with self.assertRaises(DataUnavailable):
            history.fetch_history("MSFT", "daily", 3)
        with self.assertRaisesRegex(DataUnavailable, "interval"):
            history.fetch_history("AAPL", "hourly", 3)
        with self.assertRaisesRegex(DataUnavailable, "symbol"):
            history.fetch_history("AA PL", "daily", 3)

    def test_empty_history_is_unavailable(self) -> None:
        history = InMemoryHistory({("AAPL", "daily"): Series()})
        with self.assertRaises(DataUnavailable):
            history.fetch_history("AAPL", "daily", 3)

    def test_count_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            InMemoryHistory({}).fetch_history("AAPL", "daily", 0)

    def test_data_unavailable_is_a_lookup_error(self) -> None:
        with self.assertRaises(LookupError):
            InMemoryHistory({}).fetch_history("AAPL", "daily", 1)


class CsvHistoryTests(unittest.TestCase):
    def test_reads_last_rows(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            Path(td, "AAPL_daily.csv").write_text(CSV_ROWS, encoding="utf-8")
            history = CsvHistory(td)
            series = history.fetch_history("aapl", "daily", 2)
        self.assertEqual(series.closes.tolist(), [12.0, 14.0])
        self.assertEqual(series.timestamps.tolist(), [1704240000, 1704326400])

    def test_header_is_case_insensitive(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            Path(td, "AAPL_weekly.csv").write_text(CSV_ROWS.replace("timestamp,open", "Timestamp,Open"), encoding="utf-8")
            series = CsvHistory(td).fetch_history("AAPL", "weekly", 10)
        self.assertEqual(len(series), 3)

    def test_missing_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            with self.assertRaisesRegex(DataUnavailable, "not found"):
                CsvHistory(td).fetch_history("AAPL", "daily", 10)

    def test_missing_columns(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            Path(td, "AAPL_daily.csv").write_text("timestamp,open,high\n1,2,3\n", encoding="utf-8")
            with self.assertRaisesRegex(DataUnavailable, "low, close, volume"):
                CsvHistory(td).fetch_history("AAPL", "daily", 10)

    def test_header_only_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            Path(td, "AAPL_daily.csv").write_text(CSV_ROWS.splitlines()[0] + "\n", encoding="utf-8")
            with self.assertRaisesRegex(DataUnavailable, "empty"):
                CsvHistory(td).fetch_history("AAPL", "daily", 10)

    def test_path_for_upper_cases_symbol(self) -> None:
        self.assertEqual(CsvHistory("/data").path_for("ibm", "monthly"), Path("/data/IBM_monthly.csv"))


if __name__ == "__main__":
    unittest.main()
