from qbuilder.core.rate_limit import FixedWindowRateLimiter


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_allows_up_to_points_then_blocks():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(points=3, duration_seconds=900, clock=clock)

    assert [limiter.consume("10.0.0.1") for _ in range(3)] == [None, None, None]

    clock.now = 100
    assert limiter.consume("10.0.0.1") == 800


def test_keys_are_independent():
    limiter = FixedWindowRateLimiter(points=1, duration_seconds=60, clock=FakeClock())

    assert limiter.consume("a") is None
    assert limiter.consume("a") is not None
    assert limiter.consume("b") is None


def test_window_resets():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(points=1, duration_seconds=60, clock=clock)

    assert limiter.consume("a") is None
    assert limiter.consume("a") is not None

    clock.now = 60
    assert limiter.consume("a") is None


def test_purge_and_reset():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(points=5, duration_seconds=60, clock=clock)
    limiter.consume("a")
    clock.now = 30
    limiter.consume("b")

    clock.now = 70
    assert limiter.purge_expired() == 1

    limiter.reset()
    assert limiter.purge_expired() == 0
