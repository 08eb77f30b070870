"""Unit tests for app.services.rate_limiter and the rate-limit middleware on /api and /api/auth."""

import unittest

from app.services.rate_limiter import RateLimiter

from tests.support import FakeClock, make_client


class TestRateLimiterWindow(unittest.TestCase):
    """Counting, rejection and reset within a single client's window."""

    def setUp(self) -> None:
        self.clock = FakeClock()
        self.limiter = RateLimiter(window_seconds=900, max_requests=5, clock=self.clock)

    def test_allows_up_to_max_then_rejects(self) -> None:
        decisions = [self.limiter.hit("1.2.3.4") for _ in range(5)]
        self.assertTrue(all(d.allowed for d in decisions))
        self.assertEqual([d.remaining for d in decisions], [4, 3, 2, 1, 0])

        rejected = self.limiter.hit("1.2.3.4")
        self.assertFalse(rejected.allowed)
        self.assertEqual(rejected.remaining, 0)
        self.assertEqual(rejected.retry_after, 900)

    def test_rejection_does_not_extend_the_window(self) -> None:
        for _ in range(5):
            self.limiter.hit("c")
        self.clock.advance(seconds=600)
        for _ in range(3):
            self.assertFalse(self.limiter.hit("c").allowed)
        self.assertEqual(self.limiter.hit("c").retry_after, 300)

    def test_counter_restarts_after_window(self) -> None:
        for _ in range(6):
            self.limiter.hit("c")
        self.clock.advance(seconds=901)
        decision = self.limiter.hit("c")
        self.assertTrue(decision.allowed)
        self.assertEqual(decision.remaining, 4)

    def test_still_limited_exactly_at_reset_time(self) -> None:
        for _ in range(5):
            self.limiter.hit("c")
        self.clock.advance(seconds=900)
        self.assertFalse(self.limiter.hit("c").allowed)

    def test_clients_are_counted_independently(self) -> None:
        for _ in range(5):
            self.limiter.hit("a")
        self.assertFalse(self.limiter.hit("a").allowed)
        self.assertTrue(self.limiter.hit("b").allowed)

    def test_stale_entries_are_evicted(self) -> None:
        self.limiter.hit("one-off")
        self.assertEqual(len(self.limiter), 1)
        self.clock.advance(seconds=2 * 900 + 1)
        self.limiter.hit("other")
        self.assertEqual(len(self.limiter), 1)

    def test_headers(self) -> None:
        decision = self.limiter.hit("c")
        headers = decision.headers()
        self.assertEqual(headers["X-RateLimit-Limit"], "5")
        self.assertEqual(headers["X-RateLimit-Remaining"], "4")
        self.assertEqual(headers["X-RateLimit-Reset"], "2026-01-01T12:15:00Z")
        self.assertNotIn("Retry-After", headers)

        for _ in range(4):
            self.limiter.hit("c")
        self.assertEqual(self.limiter.hit("c").headers()["Retry-After"], "900")


class TestAuthRouteRateLimit(unittest.TestCase):
    """Strict limiter (5 per 15 minutes) in front of /api/auth."""

    def setUp(self) -> None:
        self.client, self.ctx, self.clock = make_client(
            AUTH_RATE_LIMIT_MAX=5, AUTH_RATE_LIMIT_WINDOW_SEC=900
        )

    def test_sixth_request_gets_429_then_window_resets(self) -> None:
        for i in range(5):
            response = self.client.post("/api/auth/login", json={})
            self.assertEqual(response.status_code, 400)
            self.assertEqual(response.headers["X-RateLimit-Limit"], "5")
            self.assertEqual(response.headers["X-RateLimit-Remaining"], str(4 - i))

        throttled = self.client.post("/api/auth/login", json={})
        self.assertEqual(throttled.status_code, 429)
        self.assertEqual(throttled.headers["Retry-After"], "900")
        self.assertEqual(throttled.headers["X-RateLimit-Remaining"], "0")
        self.assertEqual(
            throttled.json(),
            {
                "success": False,
                "message": "Too many requests. Please try again later.",
                "retryAfter": 900,
            },
        )
        # Security headers still apply to throttled responses.
        self.assertEqual(throttled.headers["X-Frame-Options"], "DENY")

        self.clock.advance(seconds=901)
        response = self.client.post("/api/auth/login", json={})
        self.assertEqual(response.status_code, 400)

    def test_auth_limit_does_not_apply_to_other_api_routes(self) -> None:
        for _ in range(6):
            self.client.post("/api/auth/logout")
        response = self.client.get("/api/announcements")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["X-RateLimit-Limit"], "1000")


class TestApiRouteRateLimit(unittest.TestCase):
    """Loose limiter on the rest of /api."""

    def test_general_limit(self) -> None:
        client, _, clock = make_client(API_RATE_LIMIT_MAX=3, API_RATE_LIMIT_WINDOW_SEC=60)
        for _ in range(3):
            self.assertEqual(client.get("/api/ping").status_code, 200)
        response = client.get("/api/ping")
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.headers["Retry-After"], "60")
        clock.advance(seconds=61)
        self.assertEqual(client.get("/api/ping").status_code, 200)

    def test_non_api_paths_are_not_limited(self) -> None:
        client, _, _ = make_client(API_RATE_LIMIT_MAX=1)
        for _ in range(3):
            response = client.get("/")
            self.assertEqual(response.status_code, 200)
            self.assertNotIn("X-RateLimit-Limit", response.headers)


if __name__ == "__main__":
    unittest.main()
