from hrv_coherence.quality.monitor import (
    SignalQualityMonitor,
    SignalQualityTicker,
    compute_signal_quality,
)

__all__ = ["SignalQualityMonitor", "SignalQualityTicker", "compute_signal_quality"]
