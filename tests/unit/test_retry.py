import pytest

from claimflow.utils.retry import compute_backoff, schedule_retry


@pytest.mark.parametrize(
    "attempt,backoff_ms,strategy,expected",
    [
        (1, 1000, "linear", 1.0),
        (3, 1000, "linear", 3.0),
        (1, 500, "exponential", 0.5),
        (3, 500, "exponential", 2.0),
        (2, 0, "linear", 0.0),
        (0, 1000, "linear", 0.0),
    ],
)
def test_compute_backoff(attempt, backoff_ms, strategy, expected):
    assert compute_backoff(attempt, backoff_ms, strategy) == pytest.approx(expected)


@pytest.mark.asyncio
async def test_schedule_retry_sleeps(monkeypatch):
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr("claimflow.utils.retry.asyncio.sleep", fake_sleep)

    await schedule_retry(2, 250, "linear")
    await schedule_retry(1, 0)

    assert delays == [0.5]
