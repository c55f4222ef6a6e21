import unittest
from datetime import timezone

from listbatch.util.time import now_epoch_millis, now_utc


class TestUtilTime(unittest.TestCase):
    def test_now_utc_is_tz_aware(self) -> None:
        self.assertEqual(now_utc().tzinfo, timezone.utc)

    def test_now_epoch_millis_is_monotonic_enough(self) -> None:
        first = now_epoch_millis()
        second = now_epoch_millis()
        self.assertGreater(first, 1_600_000_000_000)
        self.assertGreaterEqual(second, first)
