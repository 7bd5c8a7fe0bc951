"""HRV time-domain metrics, spectral coherence and resonance calibration."""

from hrv_coherence.calibration import scan_calibration
from hrv_coherence.config import DEFAULT_CONFIG, AnalysisConfig, load_config
from hrv_coherence.models import (
    AnalysisMetrics,
    AnalysisResult,
    CalibrationPoint,
    CalibrationSummary,
    SignalQualityLabel,
    SignalQualityState,
)
from hrv_coherence.pipeline import analyze
from hrv_coherence.quality import SignalQualityMonitor, compute_signal_quality
from hrv_coherence.worker import AnalysisWorker

__all__ = [
    "DEFAULT_CONFIG",
    "AnalysisConfig",
    "AnalysisMetrics",
    "AnalysisResult",
    "AnalysisWorker",
    "CalibrationPoint",
    "CalibrationSummary",
    "SignalQualityLabel",
    "SignalQualityMonitor",
    "SignalQualityState",
    "analyze",
    "compute_signal_quality",
    "load_config",
    "scan_calibration",
]
