import asyncio

from ytzip.web.rate_limiter import FixedWindowRateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_fixed_window_quota():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(max_requests=5, window=600, clock=clock)

    async def scenario():
        allowed = [await limiter.acquire("10.0.0.1") for _ in range(5)]
        clock.now += 100
        blocked = await limiter.acquire("10.0.0.1")
        other = await limiter.acquire("10.0.0.2")
        clock.now += 500
        reset = await limiter.acquire("10.0.0.1")
        return allowed, blocked, other, reset

    allowed, blocked, other, reset = asyncio.run(scenario())
    assert allowed == [0.0] * 5
    assert blocked == 500
    assert other == 0.0
    assert reset == 0.0
