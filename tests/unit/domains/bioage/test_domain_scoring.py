"""Unit tests for the per-domain gap and quality functions.

Tests cover every domain's gap formula, monotonicity, clamping, the
no-data signal, and the quality estimators.
"""

from __future__ import annotations

import pytest

from aura.domains.bioage.domain_logic.bioage_models import (
    DEFAULT_BIO_AGE_CONFIG,
    DOMAIN_NAMES,
    CircadianFeatures,
    WearableFeatures,
)
from aura.domains.bioage.domain_logic.domain_scoring import (
    DOMAIN_SCORERS,
    circadian_composite,
    gap_autonomic,
    gap_circadian,
    gap_fitness,
    gap_mobility,
    gap_sleep,
    quality_autonomic,
    quality_circadian,
    quality_fitness,
    quality_mobility,
    quality_sleep,
    score_domains,
    z_score,
)

CLAMP = DEFAULT_BIO_AGE_CONFIG.domain_clamp_years


def _bundle(ra=0.9, is_=0.7, iv=0.5, coverage=0.8):
    return CircadianFeatures(
        relative_amplitude=ra,
        interdaily_stability=is_,
        intradaily_variability=iv,
        steps_coverage=coverage,
    )


# ===========================================================================
# Test: z-score
# ===========================================================================

class TestZScore:
    def test_standardizes_linearly(self):
        assert z_score(76, 60, 8) == 2.0
        assert z_score(52, 60, 8) == -1.0

    def test_non_positive_scale_gives_zero(self):
        assert z_score(76, 60, 0) == 0.0
        assert z_score(76, 60, -3) == 0.0


# ===========================================================================
# Test: Fitness
# ===========================================================================

class TestFitness:
    def test_absent_vo2max_is_no_opinion(self):
        assert gap_fitness(WearableFeatures()) is None

    def test_reference_vo2max_gives_zero_gap(self):
        assert gap_fitness(WearableFeatures(vo2max=40)) == 0.0

    def test_one_scale_above_reference_reads_younger(self):
        assert gap_fitness(WearableFeatures(vo2max=47)) == pytest.approx(-3.0)

    def test_monotonicity_vo2max(self):
        gaps = [gap_fitness(WearableFeatures(vo2max=v)) for v in [30, 36, 40, 44, 50]]
        assert gaps == sorted(gaps, reverse=True)
        assert len(set(gaps)) == len(gaps)

    def test_slope_alone_does_not_open_the_domain(self):
        assert gap_fitness(WearableFeatures(vo2max_slope=-1.0)) is None

    def test_quality_scales_with_samples(self):
        assert quality_fitness(WearableFeatures(vo2max=44)) == pytest.approx(1 / 3)
        assert quality_fitness(WearableFeatures(vo2max=44, vo2max_samples=2)) == pytest.approx(2 / 3)
        assert quality_fitness(WearableFeatures(vo2max=44, vo2max_samples=10)) == 1.0

    def test_quality_zero_without_vo2max(self):
        assert quality_fitness(WearableFeatures(vo2max_samples=3)) == 0.0


# ===========================================================================
# Test: Autonomic
# ===========================================================================

class TestAutonomic:
    def test_all_absent_is_no_opinion(self):
        assert gap_autonomic(WearableFeatures()) is None

    def test_elevated_resting_hr_reads_older(self):
        assert gap_autonomic(WearableFeatures(resting_hr=76)) == pytest.approx(5.0)

    def test_monotonicity_resting_hr(self):
        gaps = [gap_autonomic(WearableFeatures(resting_hr=hr)) for hr in [48, 55, 60, 68, 80]]
        assert gaps == sorted(gaps)
        assert len(set(gaps)) == len(gaps)

    def test_reference_hrv_gives_zero_gap(self):
        assert gap_autonomic(WearableFeatures(hrv_sdnn=45)) == pytest.approx(0.0)

    def test_higher_hrv_reads_younger(self):
        low = gap_autonomic(WearableFeatures(hrv_sdnn=25))
        high = gap_autonomic(WearableFeatures(hrv_sdnn=80))
        assert high < 0 < low

    def test_non_positive_hrv_contributes_nothing(self):
        assert gap_autonomic(WearableFeatures(hrv_sdnn=0)) == 0.0
        assert gap_autonomic(WearableFeatures(resting_hr=76, hrv_sdnn=-5)) == pytest.approx(5.0)

    def test_higher_hrv_cv_reads_older(self):
        assert gap_autonomic(WearableFeatures(hrv_cv=0.28)) == pytest.approx(1.0)

    def test_sub_signals_sum(self):
        combined = gap_autonomic(WearableFeatures(resting_hr=68, hrv_cv=0.28))
        assert combined == pytest.approx(2.5 + 1.0)

    def test_quality_weights_sub_features(self):
        assert quality_autonomic(WearableFeatures()) == 0.0
        assert quality_autonomic(WearableFeatures(resting_hr=60)) == pytest.approx(0.4)
        assert quality_autonomic(WearableFeatures(hrv_sdnn=50, hrv_cv=0.2)) == pytest.approx(0.6)
        assert quality_autonomic(WearableFeatures(resting_hr=60, hrv_sdnn=50, hrv_cv=0.2)) == 1.0


# ===========================================================================
# Test: Sleep
# ===========================================================================

class TestSleep:
    def test_absent_duration_is_no_opinion(self):
        assert gap_sleep(WearableFeatures(sleep_efficiency_pct=90)) is None

    def test_deficit_reads_older_surplus_younger(self):
        assert gap_sleep(WearableFeatures(sleep_avg_hours=6.5)) == pytest.approx(1.5)
        assert gap_sleep(WearableFeatures(sleep_avg_hours=8.5)) == pytest.approx(-1.5)

    def test_low_efficiency_reads_older(self):
        gap = gap_sleep(WearableFeatures(sleep_avg_hours=7.5, sleep_efficiency_pct=78))
        assert gap == pytest.approx(1.0)

    def test_irregular_timing_reads_older(self):
        gap = gap_sleep(WearableFeatures(sleep_avg_hours=7.5, sleep_midpoint_std=1.5))
        assert gap == pytest.approx(2.0)

    def test_components_add(self):
        gap = gap_sleep(WearableFeatures(
            sleep_avg_hours=6.5, sleep_efficiency_pct=78, sleep_midpoint_std=1.5,
        ))
        assert gap == pytest.approx(4.5)

    def test_quality_uses_nights(self):
        assert quality_sleep(WearableFeatures(sleep_avg_hours=7, sleep_nights=7)) == pytest.approx(0.5)
        assert quality_sleep(WearableFeatures(sleep_avg_hours=7, sleep_nights=30)) == 1.0

    def test_quality_defaults_to_configured_nights(self):
        assert quality_sleep(WearableFeatures(sleep_avg_hours=7)) == 1.0
        config = DEFAULT_BIO_AGE_CONFIG.with_overrides(default_sleep_nights=7)
        assert quality_sleep(WearableFeatures(sleep_avg_hours=7), config) == pytest.approx(0.5)

    def test_quality_zero_without_duration(self):
        assert quality_sleep(WearableFeatures(sleep_nights=14)) == 0.0


# ===========================================================================
# Test: Mobility
# ===========================================================================

class TestMobility:
    def test_absent_speed_is_no_opinion(self):
        assert gap_mobility(WearableFeatures()) is None

    def test_faster_walking_reads_younger(self):
        assert gap_mobility(WearableFeatures(walking_speed=1.5)) == pytest.approx(-2.0)
        assert gap_mobility(WearableFeatures(walking_speed=1.1)) == pytest.approx(2.0)

    def test_quality_is_binary(self):
        assert quality_mobility(WearableFeatures(walking_speed=1.2)) == 1.0
        assert quality_mobility(WearableFeatures()) == 0.0


# ===========================================================================
# Test: Circadian
# ===========================================================================

class TestCircadian:
    def test_absent_bundle_is_no_opinion(self):
        assert gap_circadian(WearableFeatures()) is None
        assert circadian_composite(WearableFeatures()) is None

    def test_composite_formula(self):
        score = circadian_composite(WearableFeatures(circadian=_bundle()))
        assert score == pytest.approx(0.45 * 0.9 + 0.35 * 0.7 + 0.20 / 1.5)

    def test_components_are_clamped(self):
        score = circadian_composite(WearableFeatures(circadian=_bundle(ra=1.6, is_=-0.2, iv=-1.0)))
        assert score == pytest.approx(0.45 + 0.0 + 0.20)

    def test_strong_rhythm_reads_younger(self):
        gap = gap_circadian(WearableFeatures(circadian=_bundle()))
        assert gap == pytest.approx((0.75 - (0.405 + 0.245 + 0.2 / 1.5)) * 10)
        assert gap < 0

    def test_weak_rhythm_reads_older(self):
        gap = gap_circadian(WearableFeatures(circadian=_bundle(ra=0.3, is_=0.3, iv=1.5)))
        assert gap > 0

    def test_quality_is_coverage(self):
        assert quality_circadian(WearableFeatures(circadian=_bundle(coverage=0.6))) == pytest.approx(0.6)
        assert quality_circadian(WearableFeatures(circadian=_bundle(coverage=1.4))) == 1.0
        assert quality_circadian(WearableFeatures()) == 0.0


# ===========================================================================
# Test: clamping and dispatch
# ===========================================================================

_EXTREME = WearableFeatures(
    resting_hr=1e9,
    hrv_sdnn=1e-9,
    hrv_cv=1e9,
    vo2max=-1e9,
    sleep_avg_hours=-1e9,
    sleep_efficiency_pct=-1e9,
    sleep_midpoint_std=1e9,
    walking_speed=-1e9,
    circadian=_bundle(ra=0.0, is_=0.0, iv=1e9),
)

_EXTREME_YOUNG = WearableFeatures(
    resting_hr=-1e9,
    hrv_sdnn=1e300,
    vo2max=1e12,
    sleep_avg_hours=1e12,
    walking_speed=1e12,
)


class TestClampAndDispatch:
    @pytest.mark.parametrize("features", [_EXTREME, _EXTREME_YOUNG])
    def test_no_domain_gap_exceeds_clamp(self, features):
        gaps, _ = score_domains(features)
        for domain, gap in gaps.items():
            if gap is not None:
                assert abs(gap) <= CLAMP, f"{domain} gap {gap} exceeds clamp"

    def test_extreme_values_hit_the_clamp(self):
        gaps, _ = score_domains(_EXTREME)
        assert gaps["fitness"] == CLAMP
        assert gaps["autonomic"] == CLAMP
        assert gaps["sleep"] == CLAMP
        assert gaps["mobility"] == CLAMP

    def test_custom_clamp_is_respected(self):
        config = DEFAULT_BIO_AGE_CONFIG.with_overrides(domain_clamp_years=4.0)
        assert gap_fitness(WearableFeatures(vo2max=10), config) == 4.0

    def test_table_covers_every_domain(self):
        assert set(DOMAIN_SCORERS) == set(DOMAIN_NAMES)

    def test_qualities_always_in_unit_interval(self):
        for features in [WearableFeatures(), _EXTREME, _EXTREME_YOUNG]:
            _, qualities = score_domains(features)
            for quality in qualities.values():
                assert 0.0 <= quality <= 1.0

    def test_empty_features_score_nothing(self):
        gaps, qualities = score_domains(WearableFeatures())
        assert all(g is None for g in gaps.values())
        assert all(q == 0.0 for q in qualities.values())
