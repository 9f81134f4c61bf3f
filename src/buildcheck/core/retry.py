"""Capped exponential backoff with jitter."""

from __future__ import annotations

import random
from collections.abc import Callable, Iterator


def backoff_delays(
    retries: int,
    base_delay: float,
    max_delay: float,
    jitter: Callable[[], float] = random.random,
) -> Iterator[float]:
    """Yield one delay per retry.

    Delay n is ``min(max_delay, base_delay * 2**n)`` scaled into
    ``[50%, 100%]`` of that value by the jitter source.
    """
    for attempt in range(retries):
        ceiling = min(max_delay, base_delay * (2**attempt))
        yield ceiling * (0.5 + jitter() / 2)
