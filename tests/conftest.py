from __future__ import annotations

from collections.abc import Callable

import numpy as np
import pytest


def _paced_rr(
    duration_sec: float,
    breathing_hz: float,
    mean_rr: float = 0.85,
    depth: float = 0.05,
) -> tuple[list[float], list[float]]:
    times: list[float] = []
    intervals: list[float] = []
    elapsed = 0.0
    while elapsed < duration_sec:
        rr = mean_rr + depth * float(np.sin(2 * np.pi * breathing_hz * elapsed))
        elapsed += rr
        times.append(elapsed)
        intervals.append(rr)
    return times, intervals


@pytest.fixture
def paced_rr() -> Callable[..., tuple[list[float], list[float]]]:
    """RR series whose intervals oscillate at a fixed breathing frequency."""
    return _paced_rr


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
