"""Unit tests for the per-client token-bucket limiter."""

import unittest

from corpgate.core.rate_limit import MAX_TRACKED_KEYS, RateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestRateLimiter(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.limiter = RateLimiter(3, 60, clock=self.clock)

    def test_budget_then_refusal(self) -> None:
        results = [self.limiter.hit("10.0.0.1") for _ in range(4)]
        self.assertEqual([r.allowed for r in results], [True, True, True, False])
        self.assertEqual([r.remaining for r in results[:3]], [2, 1, 0])
        refused = results[3]
        self.assertEqual(refused.headers()["Retry-After"], "20")
        self.assertEqual(refused.headers()["X-RateLimit-Limit"], "3")

    def test_clients_are_independent(self) -> None:
        for _ in range(3):
            self.limiter.hit("10.0.0.1")
        self.assertFalse(self.limiter.hit("10.0.0.1").allowed)
        self.assertTrue(self.limiter.hit("10.0.0.2").allowed)

    def test_tokens_refill_over_time(self) -> None:
        for _ in range(3):
            self.limiter.hit("10.0.0.1")
        self.clock.now += 20
        self.assertTrue(self.limiter.hit("10.0.0.1").allowed)
        self.assertFalse(self.limiter.hit("10.0.0.1").allowed)
        self.clock.now += 60
        self.assertEqual(self.limiter.hit("10.0.0.1").remaining, 2)

    def test_allowed_results_carry_no_retry_after(self) -> None:
        self.assertNotIn("Retry-After", self.limiter.hit("10.0.0.1").headers())

    def test_reset_clears_all_clients(self) -> None:
        for _ in range(3):
            self.limiter.hit("10.0.0.1")
        self.limiter.reset()
        self.assertTrue(self.limiter.hit("10.0.0.1").allowed)

    def test_full_buckets_pruned_past_key_cap(self) -> None:
        limiter = RateLimiter(1, 1, clock=self.clock)
        for i in range(MAX_TRACKED_KEYS):
            limiter.hit(f"client-{i}")
        self.clock.now += 5
        limiter.hit("latecomer")
        self.assertLessEqual(len(limiter._buckets), 1)

    def test_rejects_bad_configuration(self) -> None:
        with self.assertRaises(ValueError):
            RateLimiter(0, 60)
        with self.assertRaises(ValueError):
            RateLimiter(5, 0)


if __name__ == "__main__":
    unittest.main()
