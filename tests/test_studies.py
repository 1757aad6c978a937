import math
import unittest

import numpy as np

from ohlc_chart.errors import StudyParameterError
from ohlc_chart.series import Bar, Series
from ohlc_chart.studies import (
    MAX_PIVOT_LEVELS,
    BollingerBands,
    MovingAverage,
    PivotLevel,
    Pivots,
    bollinger_bands,
    moving_average,
    parse_studies,
    pivots,
)


def _closes(*values: float) -> Series:
    return Series.of(
        Bar(timestamp=i + 1, open=v, high=v, low=v, close=v, volume=1) for i, v in enumerate(values)
    )


def _ranges(*hl: tuple[float, float]) -> Series:
    return Series.of(
        Bar(timestamp=i + 1, open=lo, high=hi, low=lo, close=lo, volume=1) for i, (lo, hi) in enumerate(hl)
    )


class MovingAverageTests(unittest.TestCase):
    def test_two_period_average(self) -> None:
        result = moving_average(_closes(10, 12, 14, 16), 2)
        self.assertEqual(result.indices.tolist(), [1, 2, 3])
        self.assertEqual(result.values.tolist(), [11.0, 13.0, 15.0])
        self.assertIsNone(result.value_at(0))
        self.assertEqual(result.value_at(3), 15.0)

    def test_aligned_fills_leading_gap(self) -> None:
        aligned = moving_average(_closes(10, 12, 14, 16), 2).aligned()
        self.assertTrue(math.isnan(aligned[0]))
        self.assertEqual(aligned[1:].tolist(), [11.0, 13.0, 15.0])

    def test_period_longer_than_series_is_empty(self) -> None:
        result = moving_average(_closes(10, 12), 5)
        self.assertEqual(len(result), 0)
        self.assertEqual(result.length, 2)

    def test_rejects_bad_period(self) -> None:
        with self.assertRaises(StudyParameterError):
            moving_average(_closes(1, 2), 0)
        with self.assertRaises(StudyParameterError):
            moving_average(_closes(1, 2), 1.5)

    def test_value_at_outside_series(self) -> None:
        with self.assertRaises(IndexError):
            moving_average(_closes(1, 2), 1).value_at(2)


class BollingerBandTests(unittest.TestCase):
    def test_uses_population_standard_deviation(self) -> None:
        lower, middle, upper = bollinger_bands(_closes(1, 2, 3, 4, 5), 5, 2)
        self.assertEqual(middle.values.tolist(), [3.0])
        self.assertAlmostEqual(upper.values[0], 3.0 + 2.0 * math.sqrt(2.0))
        self.assertAlmostEqual(lower.values[0], 3.0 - 2.0 * math.sqrt(2.0))
        self.assertNotAlmostEqual(upper.values[0], 3.0 + 2.0 * math.sqrt(2.5))

    def test_bands_are_symmetric_and_aligned(self) -> None:
        lower, middle, upper = bollinger_bands(_closes(5, 7, 6, 9, 8, 10), 3, 1.5)
        self.assertEqual(lower.indices.tolist(), [2, 3, 4, 5])
        np.testing.assert_allclose(upper.values - middle.values, middle.values - lower.values)
        self.assertEqual(middle.values.tolist(), moving_average(_closes(5, 7, 6, 9, 8, 10), 3).values.tolist())

    def test_rejects_negative_width(self) -> None:
        with self.assertRaises(StudyParameterError):
            bollinger_bands(_closes(1, 2, 3), 2, -1)


class PivotTests(unittest.TestCase):
    def test_counts_bars_touching_each_level(self) -> None:
        study = pivots(_ranges((9, 11), (10, 12), (11, 13)), 1, 9, 13, 1)
        self.assertEqual(
            study.levels,
            (PivotLevel(10.0, 2), PivotLevel(11.0, 3), PivotLevel(12.0, 2)),
        )
        self.assertEqual(study.prices, [10.0, 11.0, 12.0])

    def test_levels_are_multiples_of_increment(self) -> None:
        study = pivots(_ranges((101, 119), (103, 117)), 0, 101, 119, 5)
        self.assertEqual(study.prices, [105.0, 110.0, 115.0])

    def test_threshold_is_strict(self) -> None:
        study = pivots(_ranges((9, 11), (10, 12)), 2, 9, 12, 1)
        self.assertEqual(len(study), 0)

    def test_level_count_is_capped(self) -> None:
        series = _ranges((9, 11), (10, 12), (11, 14))
        with self.assertRaisesRegex(StudyParameterError, "levels"):
            pivots(series, 0, 9, 14, 1e-9)
        with self.assertRaisesRegex(StudyParameterError, "levels"):
            pivots(series, 0, 9, 14, 1e-320)
        with self.assertRaises(StudyParameterError):
            Pivots(0, 1e-9, 0xFF00FF).compute(series)
        study = pivots(series, 0, 0, MAX_PIVOT_LEVELS - 1, 1)
        self.assertEqual(study.prices[0], 9.0)

    def test_rejects_bad_parameters(self) -> None:
        series = _ranges((9, 11))
        with self.assertRaises(StudyParameterError):
            pivots(series, 1, 9, 11, 0)
        with self.assertRaises(StudyParameterError):
            pivots(series, 1, 12, 11, 1)


class StudyVariantTests(unittest.TestCase):
    def test_labels(self) -> None:
        self.assertEqual(MovingAverage(10, 0x2020D0).label, "MA(10)")
        self.assertEqual(BollingerBands(20, 2, 0xB0B0B0).label, "BB(20,2)")
        self.assertEqual(BollingerBands(20, 2.5, 0xB0B0B0).label, "BB(20,2.5)")
        self.assertEqual(Pivots(10, 5, 0xFF00FF).label, "P(10,5)")

    def test_bollinger_variant_draws_outer_bands(self) -> None:
        lower, upper = BollingerBands(3, 2, 0xB0B0B0).compute(_closes(5, 7, 6, 9))
        self.assertTrue(np.all(lower.values < upper.values))

    def test_pivot_variant_uses_series_extrema(self) -> None:
        study = Pivots(0, 1, 0xFF00FF).compute(_ranges((9, 11), (10, 12)))
        self.assertEqual(study.prices, [9.0, 10.0, 11.0, 12.0])

    def test_parse_study_list(self) -> None:
        studies = parse_studies("MA(10), bb(20,2),P(10,5)")
        self.assertEqual(
            studies,
            (
                MovingAverage(10, 0x2020D0),
                BollingerBands(20, 2.0, 0xB0B0B0),
                Pivots(10, 5.0, 0xFF00FF),
            ),
        )
        self.assertEqual(parse_studies(""), ())

    def test_parse_rejects_unknown_or_malformed(self) -> None:
        for text in ("XX(1)", "MA(a)", "MA(1,2)", "MA(10) junk"):
            with self.subTest(text=text):
                with self.assertRaises(StudyParameterError):
                    parse_studies(text)


if __name__ == "__main__":
    unittest.main()
