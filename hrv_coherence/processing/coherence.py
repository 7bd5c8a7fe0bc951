from __future__ import annotations

from hrv_coherence.config import BandConfig
from hrv_coherence.models import CoherenceMetrics, PsdSeries
from hrv_coherence.processing.spectral import integrate_band


def find_peak(psd: PsdSeries, low_hz: float, high_hz: float) -> tuple[float, float]:
    """Strict maximum inside the band, first occurrence wins; ``(0, 0)`` when empty."""
    freqs, power = psd.as_arrays()
    peak_frequency = 0.0
    peak_power = 0.0
    for frequency, value in zip(freqs, power):
        if frequency < low_hz or frequency > high_hz:
            continue
        if value > peak_power:
            peak_power = float(value)
            peak_frequency = float(frequency)
    return peak_frequency, peak_power


def compute_coherence(
    psd: PsdSeries,
    target_hz: float,
    bands: BandConfig | None = None,
) -> CoherenceMetrics:
    bands = bands or BandConfig()
    total_low, total_high = bands.total_hz
    total_power = integrate_band(psd, total_low, total_high)

    target_low = max(total_low, target_hz - bands.target_half_band_hz)
    target_high = min(total_high, target_hz + bands.target_half_band_hz)
    target_band_power = integrate_band(psd, target_low, target_high)

    peak_frequency, peak_power = find_peak(psd, total_low, total_high)
    return CoherenceMetrics(
        coherence_score=target_band_power / total_power if total_power > 0 else 0.0,
        peak_frequency_hz=peak_frequency,
        peak_power=peak_power,
        target_band_power=target_band_power,
    )
