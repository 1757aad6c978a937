import unittest

import numpy as np

from ohlc_chart.scales import (
    format_tick,
    format_ticks_for_axis,
    format_volume,
    generate_nice_ticks,
    nice_step,
)


class NiceTickTests(unittest.TestCase):
    def test_nice_step_uses_one_two_five_mantissa(self) -> None:
        self.assertEqual(nice_step(10.0, 5), 2.0)
        self.assertEqual(nice_step(100.0, 3), 50.0)
        for span in (0.37, 3.7, 42.0, 813.0, 12345.0):
            step = nice_step(span, 6)
            mantissa = step / 10 ** np.floor(np.log10(step))
            self.assertIn(round(float(mantissa), 9), (1.0, 2.0, 5.0, 10.0))

    def test_nice_step_rejects_bad_input(self) -> None:
        with self.assertRaises(ValueError):
            nice_step(0.0, 5)
        with self.assertRaises(ValueError):
            nice_step(10.0, 0)

    def test_ticks_are_multiples_inside_range(self) -> None:
        ticks = generate_nice_ticks(0.0, 10.0, 5)
        self.assertEqual(ticks.tolist(), [0.0, 2.0, 4.0, 6.0, 8.0, 10.0])
        ticks = generate_nice_ticks(181.3, 197.9, 4)
        self.assertTrue(np.all(ticks >= 181.3))
        self.assertTrue(np.all(ticks <= 197.9))
        self.assertTrue(np.all(np.diff(ticks) > 0))

    def test_ticks_snap_near_zero(self) -> None:
        ticks = generate_nice_ticks(-0.3, 0.3, 6)
        self.assertIn(0.0, ticks.tolist())

    def test_degenerate_range_is_single_tick(self) -> None:
        self.assertEqual(generate_nice_ticks(5.0, 5.0, 4).tolist(), [5.0])


class TickFormatTests(unittest.TestCase):
    def test_decimals_follow_step(self) -> None:
        self.assertEqual(format_ticks_for_axis(np.asarray([1.5, 2.0, 2.5])), ["1.5", "2", "2.5"])

    def test_integer_zeros_are_kept(self) -> None:
        self.assertEqual(format_ticks_for_axis(np.asarray([180.0, 190.0, 200.0])), ["180", "190", "200"])

    def test_negative_zero_is_zero(self) -> None:
        self.assertEqual(format_tick(-1e-17, step=0.5), "0")

    def test_volume_labels_are_compact(self) -> None:
        self.assertEqual(format_volume(950), "950")
        self.assertEqual(format_volume(12_500), "12.5K")
        self.assertEqual(format_volume(2_000), "2K")
        self.assertEqual(format_volume(3_240_000), "3.2M")
        self.assertEqual(format_volume(1_100_000_000), "1.1B")


if __name__ == "__main__":
    unittest.main()
