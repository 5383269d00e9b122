import pytest

from govee_mcp_gateway.limiter import TokenBucketLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.mark.asyncio
async def test_burst_up_to_rps_is_immediate_then_waits_for_refill() -> None:
    clock = FakeClock()
    limiter = TokenBucketLimiter(5, clock=clock, sleep=clock.sleep)

    for _ in range(5):
        await limiter.admit()
    assert clock.now == 0.0
    assert clock.sleeps == []

    await limiter.admit()

    # one token refills after 1/rps = 200ms; polling happens every 50ms
    assert 0.2 - 1e-9 <= clock.now <= 0.25 + 1e-9
    assert all(delay == pytest.approx(0.05) for delay in clock.sleeps)


@pytest.mark.asyncio
async def test_capacity_is_at_least_one_token() -> None:
    clock = FakeClock()
    limiter = TokenBucketLimiter(0.5, clock=clock, sleep=clock.sleep)
    assert limiter.capacity == 1.0

    await limiter.admit()
    assert clock.now == 0.0

    await limiter.admit()
    assert clock.now >= 2.0 - 1e-9


@pytest.mark.asyncio
async def test_refill_never_exceeds_capacity() -> None:
    clock = FakeClock()
    limiter = TokenBucketLimiter(2, clock=clock, sleep=clock.sleep)
    await limiter.admit()
    await limiter.admit()

    clock.now += 100.0
    await limiter.admit()
    await limiter.admit()
    assert clock.sleeps == []
    assert limiter.tokens == pytest.approx(0.0)

    await limiter.admit()
    assert clock.sleeps


def test_rejects_non_positive_rate() -> None:
    with pytest.raises(ValueError, match="rps"):
        TokenBucketLimiter(0)
