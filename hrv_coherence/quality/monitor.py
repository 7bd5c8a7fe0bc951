"""Live signal-quality scoring over a short rolling window of raw RR intervals.

This path is independent of the batch pipeline: it sees every interval the
sensor delivers, including ones the artifact filter would reject, and must
always produce a score and a label.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Callable, Iterable, Sequence

import numpy as np

from hrv_coherence.config import ArtifactConfig, QualityConfig
from hrv_coherence.constants import MAD_SCALE
from hrv_coherence.core.metrics import SIGNAL_QUALITY_SCORE
from hrv_coherence.models import SignalQualityLabel, SignalQualityState
from hrv_coherence.processing.utils import clip

logger = logging.getLogger(__name__)


def _idle_label(stale_sec: float, config: QualityConfig) -> SignalQualityLabel:
    if stale_sec > config.stale_after_sec:
        return SignalQualityLabel.NO_SIGNAL
    return SignalQualityLabel.SEARCHING


def compute_signal_quality(
    intervals: Sequence[float] | np.ndarray,
    stale_sec: float,
    config: QualityConfig | None = None,
    limits: ArtifactConfig | None = None,
) -> SignalQualityState:
    config = config or QualityConfig()
    limits = limits or ArtifactConfig()
    window = np.asarray(intervals, dtype=float)
    if window.size < config.min_samples:
        return SignalQualityState(score=0, label=_idle_label(stale_sec, config))

    in_range = window[(window >= limits.min_rr_sec) & (window <= limits.max_rr_sec)]
    if in_range.size == 0:
        return SignalQualityState(score=0, label=SignalQualityLabel.POOR)

    # one global median over the whole window, unlike the local Hampel pass
    median = float(np.median(in_range))
    deviations = np.abs(in_range - median)
    window_mad = float(np.median(deviations))
    if window_mad > 0:
        threshold = limits.sigma * MAD_SCALE * window_mad
    else:
        threshold = config.mad_fallback_sec
    outlier_ratio = float(np.sum(deviations > threshold)) / in_range.size

    valid_ratio = in_range.size / window.size
    mean = float(np.mean(in_range))
    cv = float(np.std(in_range)) / mean if mean > 0 else 1.0
    stability = clip(1.0 - cv / config.cv_reference, 0.0, 1.0)
    freshness = clip(1.0 - stale_sec / config.freshness_horizon_sec, 0.0, 1.0)

    weights = config.weights
    raw_score = 100.0 * (
        weights["valid"] * valid_ratio
        + weights["inlier"] * (1.0 - outlier_ratio)
        + weights["stability"] * stability
        + weights["freshness"] * freshness
    )
    if stale_sec > config.stale_after_sec:
        score = 0
    else:
        score = int(round(clip(raw_score, 0.0, 100.0)))
    return SignalQualityState(score=score, label=label_for_score(score, stale_sec, config))


def label_for_score(score: int, stale_sec: float, config: QualityConfig) -> SignalQualityLabel:
    if score >= config.label_thresholds["excellent"]:
        return SignalQualityLabel.EXCELLENT
    if score >= config.label_thresholds["good"]:
        return SignalQualityLabel.GOOD
    if score >= config.label_thresholds["fair"]:
        return SignalQualityLabel.FAIR
    if score > 0:
        return SignalQualityLabel.POOR
    return _idle_label(stale_sec, config)


class SignalQualityMonitor:
    """Owns the rolling interval window and the last-arrival time.

    ``push`` (ingestion) and ``tick`` (timer) both funnel into ``recompute``,
    which runs under one lock so the prune-then-score step is never interleaved.
    """

    def __init__(
        self,
        config: QualityConfig | None = None,
        limits: ArtifactConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or QualityConfig()
        self._limits = limits or ArtifactConfig()
        self._clock = clock
        self._lock = threading.Lock()
        self._samples: deque[tuple[float, float]] = deque()
        self._last_arrival: float | None = None
        self._state = SignalQualityState()

    @property
    def state(self) -> SignalQualityState:
        with self._lock:
            return self._state

    @property
    def window_size(self) -> int:
        with self._lock:
            return len(self._samples)

    def push(
        self, intervals: Iterable[float], arrival_time: float | None = None
    ) -> SignalQualityState:
        values = [float(value) for value in intervals]
        with self._lock:
            now = self._clock()
            if values:
                stamp = self._arrival_locked(arrival_time, now)
                for value in values:
                    self._samples.append((stamp, value))
                self._last_arrival = stamp
            return self._recompute_locked(now)

    def tick(self, now: float | None = None) -> SignalQualityState:
        return self.recompute(now)

    def recompute(self, now: float | None = None) -> SignalQualityState:
        with self._lock:
            return self._recompute_locked(self._clock() if now is None else float(now))

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()
            self._last_arrival = None
            self._set_state_locked(SignalQualityState())

    def mark_disconnected(self) -> None:
        with self._lock:
            self._set_state_locked(SignalQualityState(label=SignalQualityLabel.NO_SIGNAL))

    def _arrival_locked(self, arrival_time: float | None, now: float) -> float:
        # samples stay ordered on the monitor clock: never ahead of it, never
        # behind the previous arrival
        if arrival_time is None:
            return now
        stamp = min(float(arrival_time), now)
        if self._last_arrival is not None:
            stamp = max(stamp, self._last_arrival)
        return stamp

    def _recompute_locked(self, now: float) -> SignalQualityState:
        window_sec = self._config.window_sec
        while self._samples and now - self._samples[0][0] > window_sec:
            self._samples.popleft()
        if self._last_arrival is None:
            stale_sec = window_sec
        else:
            stale_sec = max(0.0, now - self._last_arrival)
        state = compute_signal_quality(
            [value for _, value in self._samples],
            stale_sec,
            self._config,
            self._limits,
        )
        self._set_state_locked(state)
        return state

    def _set_state_locked(self, state: SignalQualityState) -> None:
        if state != self._state:
            logger.debug(
                "signal_quality_changed",
                extra={"score": state.score, "label": state.label.value},
            )
        self._state = state
        SIGNAL_QUALITY_SCORE.set(state.score)


class SignalQualityTicker(threading.Thread):
    def __init__(self, monitor: SignalQualityMonitor, interval_sec: float = 1.0) -> None:
        super().__init__(name="signal-quality-ticker", daemon=True)
        self._monitor = monitor
        self._interval_sec = interval_sec
        self._stopped = threading.Event()

    def run(self) -> None:
        while not self._stopped.wait(self._interval_sec):
            self._monitor.tick()

    def stop(self, timeout: float | None = None) -> None:
        self._stopped.set()
        if self.is_alive():
            self.join(timeout)
