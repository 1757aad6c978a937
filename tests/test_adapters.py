from datetime import datetime, timezone
import importlib.util
import unittest

import numpy as np

from ohlc_chart.adapters import series_from_arrays, series_from_frame, series_from_rows
from ohlc_chart.errors import InvalidSeries


class SeriesAdapterTests(unittest.TestCase):
    def test_rows_accept_mappings_with_iso_timestamps(self) -> None:
        series = series_from_rows(
            [
                {"timestamp": "2024-01-02", "open": "10", "high": "12", "low": "9", "close": "11", "volume": "100"},
                {"timestamp": "2024-01-03", "open": "11", "high": "13", "low": "10", "close": "12", "volume": "150"},
            ]
        )
        self.assertEqual(series.timestamps.tolist(), [1704153600, 1704240000])
        self.assertEqual(series.highs.tolist(), [12.0, 13.0])

    def test_rows_accept_tuples_and_datetimes(self) -> None:
        ts = datetime(2024, 1, 2, tzinfo=timezone.utc)
        series = series_from_rows([(ts, 10, 12, 9, 11, 100)])
        self.assertEqual(series.timestamps.tolist(), [1704153600])

    def test_rows_missing_field_raise(self) -> None:
        with self.assertRaisesRegex(InvalidSeries, "missing field 'volume'"):
            series_from_rows([{"timestamp": 1, "open": 1, "high": 1, "low": 1, "close": 1}])

    def test_rows_wrong_arity_raise(self) -> None:
        with self.assertRaisesRegex(InvalidSeries, "6 fields"):
            series_from_rows([(1, 10, 12, 9, 11)])

    def test_rows_non_integral_volume_raise(self) -> None:
        with self.assertRaisesRegex(InvalidSeries, "row 0"):
            series_from_rows([(1, 10, 12, 9, 11, 1.5)])

    def test_rows_keep_bar_invariant_errors(self) -> None:
        with self.assertRaisesRegex(InvalidSeries, "low <= open/close <= high"):
            series_from_rows([(1, 10, 10.5, 9, 11, 1)])

    def test_arrays_accept_datetime64(self) -> None:
        ts = np.asarray(["2024-01-02", "2024-01-03"], dtype="datetime64[D]")
        series = series_from_arrays(ts, [10, 11], [12, 13], [9, 10], [11, 12], [100, 150])
        self.assertEqual(series.timestamps.tolist(), [1704153600, 1704240000])

    def test_arrays_length_mismatch_raise(self) -> None:
        with self.assertRaisesRegex(InvalidSeries, "length mismatch"):
            series_from_arrays([1, 2], [10], [12, 13], [9, 10], [11, 12], [100, 150])

    def test_arrays_reject_2d_input(self) -> None:
        with self.assertRaisesRegex(InvalidSeries, "1-D"):
            series_from_arrays(np.zeros((2, 2)), [10, 11], [12, 13], [9, 10], [11, 12], [100, 150])

    @unittest.skipUnless(importlib.util.find_spec("pandas") is not None, "pandas not installed")
    def test_frame_with_datetime_index(self) -> None:
        import pandas as pd

        frame = pd.DataFrame(
            {
                "Open": [10.0, 11.0],
                "High": [12.0, 13.0],
                "Low": [9.0, 10.0],
                "Close": [11.0, 12.0],
                "Volume": [100, 150],
            },
            index=pd.to_datetime(["2024-01-02", "2024-01-03"]),
        )
        series = series_from_frame(frame)
        self.assertEqual(series.timestamps.tolist(), [1704153600, 1704240000])
        self.assertEqual(series.volumes.tolist(), [100, 150])

    @unittest.skipUnless(importlib.util.find_spec("pandas") is not None, "pandas not installed")
    def test_frame_missing_column_raise(self) -> None:
        import pandas as pd

        frame = pd.DataFrame({"timestamp": [1], "open": [1.0], "high": [1.0], "low": [1.0]})
        with self.assertRaisesRegex(InvalidSeries, "close, volume"):
            series_from_frame(frame)

    def test_frame_rejects_non_frames(self) -> None:
        with self.assertRaises(InvalidSeries):
            series_from_frame({"open": [1.0]})


if __name__ == "__main__":
    unittest.main()
