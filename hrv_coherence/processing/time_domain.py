from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from hrv_coherence.models import TimeDomainMetrics

NN50_THRESHOLD_SEC = 0.05


def compute_time_domain(rr_intervals: Sequence[float] | np.ndarray) -> TimeDomainMetrics:
    values = np.asarray(rr_intervals, dtype=float)
    if values.size == 0:
        return TimeDomainMetrics()

    mean_rr = float(np.mean(values))
    mean_hr = 60.0 / mean_rr if mean_rr > 0 else 0.0
    sdnn = float(np.std(values, ddof=1)) if values.size >= 2 else 0.0

    diffs = np.diff(values)
    if diffs.size == 0:
        return TimeDomainMetrics(mean_hr=mean_hr, mean_rr=mean_rr, sdnn=sdnn)

    rmssd = float(np.sqrt(np.mean(diffs**2)))
    nn50 = int(np.sum(np.abs(diffs) > NN50_THRESHOLD_SEC))
    pnn50 = nn50 / diffs.size * 100.0
    return TimeDomainMetrics(
        mean_hr=mean_hr,
        mean_rr=mean_rr,
        rmssd=rmssd,
        sdnn=sdnn,
        pnn50=pnn50,
    )
