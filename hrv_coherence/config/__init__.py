from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from hrv_coherence import constants

CONFIG_VERSION = "hrv-coherence/v1"


@dataclass(frozen=True)
class ArtifactConfig:
    min_rr_sec: float = constants.MIN_RR_SEC
    max_rr_sec: float = constants.MAX_RR_SEC
    window_size: int = constants.HAMPEL_WINDOW_SIZE
    sigma: float = constants.HAMPEL_SIGMA


@dataclass(frozen=True)
class SpectralConfig:
    resample_hz: float = constants.RESAMPLE_HZ
    segment_length: int = constants.WELCH_SEGMENT_LENGTH
    overlap: float = constants.WELCH_OVERLAP
    min_segment_length: int = constants.WELCH_MIN_SEGMENT_LENGTH


@dataclass(frozen=True)
class BandConfig:
    lf_hz: tuple[float, float] = constants.LF_BAND_HZ
    hf_hz: tuple[float, float] = constants.HF_BAND_HZ
    total_hz: tuple[float, float] = constants.TOTAL_BAND_HZ
    target_half_band_hz: float = constants.TARGET_HALF_BAND_HZ


@dataclass(frozen=True)
class CalibrationConfig:
    frequencies_hz: tuple[float, ...] = constants.CALIBRATION_FREQUENCIES_HZ
    step_sec: float = constants.CALIBRATION_STEP_SEC
    min_samples: int = constants.CALIBRATION_MIN_SAMPLES


@dataclass(frozen=True)
class QualityConfig:
    window_sec: float = constants.QUALITY_WINDOW_SEC
    min_samples: int = constants.QUALITY_MIN_SAMPLES
    stale_after_sec: float = constants.QUALITY_STALE_AFTER_SEC
    freshness_horizon_sec: float = constants.QUALITY_FRESHNESS_HORIZON_SEC
    cv_reference: float = constants.QUALITY_CV_REFERENCE
    mad_fallback_sec: float = constants.QUALITY_MAD_FALLBACK_SEC
    tick_sec: float = constants.QUALITY_TICK_SEC
    weights: dict[str, float] = field(default_factory=lambda: dict(constants.QUALITY_WEIGHTS))
    label_thresholds: dict[str, int] = field(
        default_factory=lambda: dict(constants.QUALITY_LABEL_THRESHOLDS)
    )


@dataclass(frozen=True)
class AnalysisConfig:
    config_version: str = CONFIG_VERSION
    artifact: ArtifactConfig = field(default_factory=ArtifactConfig)
    spectral: SpectralConfig = field(default_factory=SpectralConfig)
    bands: BandConfig = field(default_factory=BandConfig)
    calibration: CalibrationConfig = field(default_factory=CalibrationConfig)
    quality: QualityConfig = field(default_factory=QualityConfig)
    session_min_intervals: int = constants.SESSION_MIN_INTERVALS

    def to_hash(self) -> str:
        payload = json.dumps(as_dict(self), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()


DEFAULT_CONFIG = AnalysisConfig()


def load_config(path: str | Path | None = None) -> AnalysisConfig:
    if path is None:
        path = Path(__file__).with_name("defaults.yaml")
    else:
        path = Path(path)
    with path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    return parse_config(raw)


def parse_config(raw: dict[str, Any]) -> AnalysisConfig:
    artifact = raw.get("artifact", {})
    spectral = raw.get("spectral", {})
    bands = raw.get("bands", {})
    calibration = raw.get("calibration", {})
    quality = raw.get("quality", {})
    session = raw.get("session", {})
    return AnalysisConfig(
        config_version=str(raw.get("config_version", CONFIG_VERSION)),
        artifact=ArtifactConfig(
            min_rr_sec=float(artifact.get("min_rr_sec", constants.MIN_RR_SEC)),
            max_rr_sec=float(artifact.get("max_rr_sec", constants.MAX_RR_SEC)),
            window_size=int(artifact.get("window_size", constants.HAMPEL_WINDOW_SIZE)),
            sigma=float(artifact.get("sigma", constants.HAMPEL_SIGMA)),
        ),
        spectral=SpectralConfig(
            resample_hz=float(spectral.get("resample_hz", constants.RESAMPLE_HZ)),
            segment_length=int(spectral.get("segment_length", constants.WELCH_SEGMENT_LENGTH)),
            overlap=float(spectral.get("overlap", constants.WELCH_OVERLAP)),
            min_segment_length=int(
                spectral.get("min_segment_length", constants.WELCH_MIN_SEGMENT_LENGTH)
            ),
        ),
        bands=BandConfig(
            lf_hz=_band(bands.get("lf_hz", constants.LF_BAND_HZ)),
            hf_hz=_band(bands.get("hf_hz", constants.HF_BAND_HZ)),
            total_hz=_band(bands.get("total_hz", constants.TOTAL_BAND_HZ)),
            target_half_band_hz=float(
                bands.get("target_half_band_hz", constants.TARGET_HALF_BAND_HZ)
            ),
        ),
        calibration=CalibrationConfig(
            frequencies_hz=tuple(
                float(v)
                for v in calibration.get("frequencies_hz", constants.CALIBRATION_FREQUENCIES_HZ)
            ),
            step_sec=float(calibration.get("step_sec", constants.CALIBRATION_STEP_SEC)),
            min_samples=int(calibration.get("min_samples", constants.CALIBRATION_MIN_SAMPLES)),
        ),
        quality=QualityConfig(
            window_sec=float(quality.get("window_sec", constants.QUALITY_WINDOW_SEC)),
            min_samples=int(quality.get("min_samples", constants.QUALITY_MIN_SAMPLES)),
            stale_after_sec=float(
                quality.get("stale_after_sec", constants.QUALITY_STALE_AFTER_SEC)
            ),
            freshness_horizon_sec=float(
                quality.get("freshness_horizon_sec", constants.QUALITY_FRESHNESS_HORIZON_SEC)
            ),
            cv_reference=float(quality.get("cv_reference", constants.QUALITY_CV_REFERENCE)),
            mad_fallback_sec=float(
                quality.get("mad_fallback_sec", constants.QUALITY_MAD_FALLBACK_SEC)
            ),
            tick_sec=float(quality.get("tick_sec", constants.QUALITY_TICK_SEC)),
            weights={
                key: float(value)
                for key, value in quality.get("weights", constants.QUALITY_WEIGHTS).items()
            },
            label_thresholds={
                key: int(value)
                for key, value in quality.get(
                    "label_thresholds", constants.QUALITY_LABEL_THRESHOLDS
                ).items()
            },
        ),
        session_min_intervals=int(
            session.get("min_intervals", constants.SESSION_MIN_INTERVALS)
        ),
    )


def as_dict(config: AnalysisConfig) -> dict[str, Any]:
    return {
        "config_version": config.config_version,
        "artifact": {
            "min_rr_sec": config.artifact.min_rr_sec,
            "max_rr_sec": config.artifact.max_rr_sec,
            "window_size": config.artifact.window_size,
            "sigma": config.artifact.sigma,
        },
        "spectral": {
            "resample_hz": config.spectral.resample_hz,
            "segment_length": config.spectral.segment_length,
            "overlap": config.spectral.overlap,
            "min_segment_length": config.spectral.min_segment_length,
        },
        "bands": {
            "lf_hz": list(config.bands.lf_hz),
            "hf_hz": list(config.bands.hf_hz),
            "total_hz": list(config.bands.total_hz),
            "target_half_band_hz": config.bands.target_half_band_hz,
        },
        "calibration": {
            "frequencies_hz": list(config.calibration.frequencies_hz),
            "step_sec": config.calibration.step_sec,
            "min_samples": config.calibration.min_samples,
        },
        "quality": {
            "window_sec": config.quality.window_sec,
            "min_samples": config.quality.min_samples,
            "stale_after_sec": config.quality.stale_after_sec,
            "freshness_horizon_sec": config.quality.freshness_horizon_sec,
            "cv_reference": config.quality.cv_reference,
            "mad_fallback_sec": config.quality.mad_fallback_sec,
            "tick_sec": config.quality.tick_sec,
            "weights": dict(config.quality.weights),
            "label_thresholds": dict(config.quality.label_thresholds),
        },
        "session": {"min_intervals": config.session_min_intervals},
    }


def _band(value: Any) -> tuple[float, float]:
    low, high = value
    return float(low), float(high)
