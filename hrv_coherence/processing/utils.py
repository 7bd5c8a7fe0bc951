from __future__ import annotations

import numpy as np


def mad(data: np.ndarray) -> float:
    median = np.median(data)
    return float(np.median(np.abs(data - median)))


def clip(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))
