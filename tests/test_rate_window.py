import unittest

from lantop.rate_window import HostRateWindow


class HostRateWindowTest(unittest.TestCase):
    def test_running_sum_matches_samples_across_evictions(self) -> None:
        window = HostRateWindow(capacity=3, tick_seconds=0.5)
        for delta in [5, 0, 12, 7, 0, 0, 3, 100, 1]:
            window.update(delta)
            self.assertEqual(window.running_sum, sum(window.samples))
            self.assertLessEqual(len(window), 3)
        self.assertEqual(window.samples, (3, 100, 1))

    def test_partial_window_averages_over_samples_held(self) -> None:
        window = HostRateWindow(capacity=10, tick_seconds=1.0)
        self.assertEqual(window.update(100), 100.0)
        self.assertEqual(window.update(300), 200.0)
        self.assertEqual(len(window), 2)

    def test_constant_delta_converges_to_delta_per_second(self) -> None:
        window = HostRateWindow(capacity=120, tick_seconds=0.5)
        rate = 0.0
        for _ in range(250):
            rate = window.update(1_000)
        self.assertEqual(rate, 2_000.0)
        self.assertEqual(window.running_sum, 120_000)

    def test_shrinking_average_after_traffic_stops(self) -> None:
        window = HostRateWindow(capacity=4, tick_seconds=1.0)
        rates = [window.update(delta) for delta in [100, 100, 100, 100, 0, 0, 0, 0]]
        self.assertEqual(rates, [100.0, 100.0, 100.0, 100.0, 75.0, 50.0, 25.0, 0.0])
        self.assertEqual(window.running_sum, 0)
        self.assertEqual(len(window), 4)

    def test_empty_window_has_zero_rate(self) -> None:
        window = HostRateWindow(capacity=4, tick_seconds=1.0)
        self.assertEqual(window.average_rate, 0.0)
        self.assertEqual(window.capacity, 4)

    def test_invalid_arguments_are_rejected(self) -> None:
        with self.assertRaises(ValueError):
            HostRateWindow(capacity=0, tick_seconds=1.0)
        with self.assertRaises(ValueError):
            HostRateWindow(capacity=4, tick_seconds=0)


if __name__ == "__main__":  # pragma: no cover - convenience
    unittest.main()
