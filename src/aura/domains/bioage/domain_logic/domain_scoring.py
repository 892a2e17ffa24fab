"""Per-domain age-gap and quality functions.

Each gap function takes WearableFeatures and returns years (negative means the
domain acts younger) or ``None`` when the domain has no data at all. ``None``
is the no-opinion signal and is distinct from a zero gap. Every computed gap
is clamped to +/- ``config.domain_clamp_years``.

Each quality function returns a confidence in [0, 1] that depends only on
how much data backs the domain, never on the gap itself.

All formulas are deterministic and side-effect free.
"""

from __future__ import annotations

import math
from typing import Callable

from aura.domains.bioage.domain_logic.bioage_models import (
    DEFAULT_BIO_AGE_CONFIG,
    BioAgeConfig,
    WearableFeatures,
)

GapFn = Callable[[WearableFeatures, BioAgeConfig], "float | None"]
QualityFn = Callable[[WearableFeatures, BioAgeConfig], float]


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    """Clamp a value to [lo, hi]."""
    return max(lo, min(hi, value))


def _clamp_gap(gap: float, config: BioAgeConfig) -> float:
    limit = config.domain_clamp_years
    return _clamp(gap, -limit, limit)


def z_score(value: float, reference: float, scale: float) -> float:
    """Linear standardization (value - reference) / scale; 0 when scale <= 0."""
    if scale <= 0:
        return 0.0
    return (value - reference) / scale


# ---------------------------------------------------------------------------
# Fitness
# ---------------------------------------------------------------------------

def gap_fitness(
    features: WearableFeatures, config: BioAgeConfig = DEFAULT_BIO_AGE_CONFIG
) -> float | None:
    """Higher VO2 max reads younger."""
    if features.vo2max is None:
        return None
    z = z_score(features.vo2max, config.vo2max_reference, config.vo2max_scale)
    return _clamp_gap(-config.vo2max_years_per_z * z, config)


def quality_fitness(
    features: WearableFeatures, config: BioAgeConfig = DEFAULT_BIO_AGE_CONFIG
) -> float:
    if features.vo2max is None:
        return 0.0
    samples = features.vo2max_samples if features.vo2max_samples is not None else 1
    return _clamp(samples / config.vo2max_full_quality_samples)


# ---------------------------------------------------------------------------
# Autonomic
# ---------------------------------------------------------------------------

def gap_autonomic(
    features: WearableFeatures, config: BioAgeConfig = DEFAULT_BIO_AGE_CONFIG
) -> float | None:
    """Sum of resting HR, log-HRV and HRV variability contributions.

    Sub-signals:
        Resting HR: higher reads older.
        HRV (SDNN, log scale): higher reads younger; only when hrv > 0.
        HRV coefficient of variation: higher reads older.
    """
    if features.resting_hr is None and features.hrv_sdnn is None and features.hrv_cv is None:
        return None

    gap = 0.0
    if features.resting_hr is not None:
        gap += config.resting_hr_years_per_z * z_score(
            features.resting_hr, config.resting_hr_reference, config.resting_hr_scale
        )
    if features.hrv_sdnn is not None and features.hrv_sdnn > 0:
        gap -= config.hrv_years_per_z * z_score(
            math.log(features.hrv_sdnn), math.log(config.hrv_reference_ms), config.hrv_log_scale
        )
    if features.hrv_cv is not None:
        gap += config.hrv_cv_years_per_z * z_score(
            features.hrv_cv, config.hrv_cv_reference, config.hrv_cv_scale
        )
    return _clamp_gap(gap, config)


def quality_autonomic(
    features: WearableFeatures, config: BioAgeConfig = DEFAULT_BIO_AGE_CONFIG
) -> float:
    # RHR and HRV count fully, HRV variability counts half
    present = 0.0
    if features.resting_hr is not None:
        present += 1.0
    if features.hrv_sdnn is not None:
        present += 1.0
    if features.hrv_cv is not None:
        present += 0.5
    return _clamp(present / 2.5)


# ---------------------------------------------------------------------------
# Sleep
# ---------------------------------------------------------------------------

def gap_sleep(
    features: WearableFeatures, config: BioAgeConfig = DEFAULT_BIO_AGE_CONFIG
) -> float | None:
    """Duration deficit, low efficiency and irregular timing read older."""
    if features.sleep_avg_hours is None:
        return None

    gap = -config.sleep_years_per_hour * (features.sleep_avg_hours - config.sleep_reference_hours)
    if features.sleep_efficiency_pct is not None:
        gap -= config.sleep_years_per_efficiency_pct * (
            features.sleep_efficiency_pct - config.sleep_efficiency_reference_pct
        )
    if features.sleep_midpoint_std is not None:
        gap += config.sleep_years_per_midpoint_std_hour * (
            features.sleep_midpoint_std - config.sleep_midpoint_std_reference_hours
        )
    return _clamp_gap(gap, config)


def quality_sleep(
    features: WearableFeatures, config: BioAgeConfig = DEFAULT_BIO_AGE_CONFIG
) -> float:
    if features.sleep_avg_hours is None:
        return 0.0
    nights = features.sleep_nights if features.sleep_nights is not None else config.default_sleep_nights
    return _clamp(nights / config.sleep_full_quality_nights)


# ---------------------------------------------------------------------------
# Mobility
# ---------------------------------------------------------------------------

def gap_mobility(
    features: WearableFeatures, config: BioAgeConfig = DEFAULT_BIO_AGE_CONFIG
) -> float | None:
    """Faster habitual walking reads younger."""
    if features.walking_speed is None:
        return None
    z = z_score(features.walking_speed, config.walking_speed_reference, config.walking_speed_scale)
    return _clamp_gap(-config.walking_speed_years_per_z * z, config)


def quality_mobility(
    features: WearableFeatures, config: BioAgeConfig = DEFAULT_BIO_AGE_CONFIG
) -> float:
    return 1.0 if features.walking_speed is not None else 0.0


# ---------------------------------------------------------------------------
# Circadian
# ---------------------------------------------------------------------------

def circadian_composite(features: WearableFeatures) -> float | None:
    """Rhythm strength in [0, 1]: 45% RA, 35% IS, 20% fragmentation (IV)."""
    bundle = features.circadian
    if bundle is None:
        return None
    iv_term = 1.0 / (1.0 + max(0.0, bundle.intradaily_variability))
    return (
        0.45 * _clamp(bundle.relative_amplitude)
        + 0.35 * _clamp(bundle.interdaily_stability)
        + 0.20 * _clamp(iv_term)
    )


def gap_circadian(
    features: WearableFeatures, config: BioAgeConfig = DEFAULT_BIO_AGE_CONFIG
) -> float | None:
    """A rhythm weaker than the target score reads older."""
    score = circadian_composite(features)
    if score is None:
        return None
    gap = (config.circadian_target_score - score) * config.circadian_years_per_score_point
    return _clamp_gap(gap, config)


def quality_circadian(
    features: WearableFeatures, config: BioAgeConfig = DEFAULT_BIO_AGE_CONFIG
) -> float:
    if features.circadian is None:
        return 0.0
    return _clamp(features.circadian.steps_coverage)


# ---------------------------------------------------------------------------
# Dispatch table
# ---------------------------------------------------------------------------

DOMAIN_SCORERS: dict[str, tuple[GapFn, QualityFn]] = {
    "fitness": (gap_fitness, quality_fitness),
    "circadian": (gap_circadian, quality_circadian),
    "autonomic": (gap_autonomic, quality_autonomic),
    "sleep": (gap_sleep, quality_sleep),
    "mobility": (gap_mobility, quality_mobility),
}


def score_domains(
    features: WearableFeatures, config: BioAgeConfig = DEFAULT_BIO_AGE_CONFIG
) -> tuple[dict[str, float | None], dict[str, float]]:
    """Run every domain's gap and quality function.

    Returns:
        (gaps by domain, qualities by domain); absent domains map to None / 0.0.
    """
    gaps: dict[str, float | None] = {}
    qualities: dict[str, float] = {}
    for domain, (gap_fn, quality_fn) in DOMAIN_SCORERS.items():
        gaps[domain] = gap_fn(features, config)
        qualities[domain] = quality_fn(features, config)
    return gaps, qualities
