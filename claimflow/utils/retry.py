from __future__ import annotations

import asyncio
from typing import Literal


def compute_backoff(
    attempt: int,
    backoff_ms: float,
    strategy: Literal["linear", "exponential"] = "linear",
) -> float:
    """Return the delay in seconds before retry number ``attempt`` (1-based)."""
    if attempt < 1 or backoff_ms <= 0:
        return 0.0
    if strategy == "exponential":
        delay_ms = backoff_ms * 2 ** (attempt - 1)
    else:
        delay_ms = backoff_ms * attempt
    return delay_ms / 1000


async def schedule_retry(
    attempt: int,
    backoff_ms: float,
    strategy: Literal["linear", "exponential"] = "linear",
) -> None:
    """Sleep for computed backoff delay before retrying."""
    delay = compute_backoff(attempt, backoff_ms, strategy)
    if delay:
        await asyncio.sleep(delay)
