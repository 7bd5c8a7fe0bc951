from hrv_coherence.processing.artifact import clean_rr_series
from hrv_coherence.processing.coherence import compute_coherence, find_peak
from hrv_coherence.processing.spectral import integrate_band, resample_to_uniform, welch_psd
from hrv_coherence.processing.time_domain import compute_time_domain

__all__ = [
    "clean_rr_series",
    "compute_coherence",
    "compute_time_domain",
    "find_peak",
    "integrate_band",
    "resample_to_uniform",
    "welch_psd",
]
