from __future__ import annotations

import pytest

from hrv_coherence.errors import ComputationFailure, InputShapeError
from hrv_coherence.pipeline import analyze


def test_analyze_paced_breathing(paced_rr) -> None:
    times, intervals = paced_rr(300.0, 0.1)
    result = analyze(times, intervals, target_hz=0.1)
    metrics = result.metrics
    assert metrics.coherence_score > 0.5
    assert abs(metrics.peak_frequency_hz - 0.1) <= 4.0 / 256
    assert metrics.mean_hr == pytest.approx(60.0 / 0.85, rel=0.02)
    assert metrics.rmssd > 0
    assert metrics.lf_power > metrics.hf_power
    assert metrics.total_power >= metrics.target_band_power > 0
    assert not result.psd.is_empty
    assert len(result.cleaned) >= 0.95 * len(intervals)


def test_analyze_sparse_input_yields_zero_spectrum() -> None:
    times = [0.8, 1.6, 2.4, 3.2, 4.0]
    intervals = [0.8, 0.8, 0.8, 0.8, 0.8]
    result = analyze(times, intervals, target_hz=0.1)
    assert result.psd.is_empty
    assert result.metrics.mean_rr == pytest.approx(0.8)
    assert result.metrics.coherence_score == 0.0
    assert result.metrics.total_power == 0.0
    assert result.metrics.peak_frequency_hz == 0.0


def test_analyze_empty_input() -> None:
    result = analyze([], [], target_hz=0.1)
    assert result.metrics.mean_hr == 0.0
    assert len(result.cleaned) == 0


def test_analyze_rejects_length_mismatch() -> None:
    with pytest.raises(InputShapeError) as excinfo:
        analyze([1.0, 2.0, 3.0], [0.8, 0.9], target_hz=0.1)
    assert excinfo.value.code == "length_mismatch"


def test_analyze_wraps_unexpected_errors(monkeypatch, paced_rr) -> None:
    def _boom(*args, **kwargs):
        raise RuntimeError("fft exploded")

    monkeypatch.setattr("hrv_coherence.pipeline.welch_psd", _boom)
    times, intervals = paced_rr(60.0, 0.1)
    with pytest.raises(ComputationFailure) as excinfo:
        analyze(times, intervals, target_hz=0.1)
    assert excinfo.value.code == "computation_failed"
    assert excinfo.value.details["exception_type"] == "RuntimeError"
    assert isinstance(excinfo.value.__cause__, RuntimeError)
