"""Bio-age data model, metric catalog and tunable engine configuration."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, replace
from collections.abc import Mapping
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any


# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

# Ordered by default base weight (heaviest first).
DOMAIN_NAMES = [
    "fitness",
    "circadian",
    "autonomic",
    "sleep",
    "mobility",
]

DOMAIN_LABELS = {
    "fitness": "Cardiorespiratory Fitness",
    "circadian": "Circadian Rhythm",
    "autonomic": "Autonomic Balance",
    "sleep": "Sleep",
    "mobility": "Mobility",
}


@dataclass(frozen=True)
class MetricSpec:
    """Catalog entry for one known metric key."""

    key: str
    feature: str       # WearableFeatures field the value lands in
    domain: str
    label: str
    unit: str


METRIC_CATALOG: dict[str, MetricSpec] = {
    spec.key: spec
    for spec in [
        MetricSpec("resting_hr", "resting_hr", "autonomic", "Resting HR", "bpm"),
        MetricSpec("hrv", "hrv_sdnn", "autonomic", "HRV (SDNN)", "ms"),
        MetricSpec("hrv_cv", "hrv_cv", "autonomic", "HRV Variability", "ratio"),
        MetricSpec("vo2_max", "vo2max", "fitness", "VO2 Max", "ml/kg/min"),
        MetricSpec("vo2_max_slope", "vo2max_slope", "fitness", "VO2 Max Trend", "ml/kg/min/yr"),
        MetricSpec("sleep_duration", "sleep_avg_hours", "sleep", "Sleep Duration", "hrs"),
        MetricSpec("sleep_efficiency", "sleep_efficiency_pct", "sleep", "Sleep Efficiency", "%"),
        MetricSpec("sleep_midpoint_std", "sleep_midpoint_std", "sleep", "Sleep Timing Variability", "hrs"),
        MetricSpec("walking_speed", "walking_speed", "mobility", "Walking Speed", "m/s"),
    ]
}

ALL_METRIC_KEYS = list(METRIC_CATALOG)


def metric_catalog() -> dict[str, Any]:
    """Known metric keys and domains with their display labels."""
    return {
        "metrics": [
            {"key": s.key, "label": s.label, "unit": s.unit, "domain": s.domain}
            for s in METRIC_CATALOG.values()
        ],
        "domains": [{"name": d, "label": DOMAIN_LABELS[d]} for d in DOMAIN_NAMES],
    }


class InvalidChronologicalAgeError(ValueError):
    """Raised when the chronological age cannot anchor a bio-age computation."""


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

def parse_timestamp(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, str) and raw:
        # fromisoformat() rejects a trailing "Z" on older interpreters
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    raise ValueError(f"recorded_at must be a datetime or ISO 8601 string, got {raw!r}")


def parse_sample_count(raw: Any) -> int | None:
    """Return a usable sample count (>= 1), or None for a missing or bad hint."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        count = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(count) or count < 1:
        return None
    return int(count)


def as_utc(ts: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to be UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


@dataclass(frozen=True)
class MetricReading:
    """A single timestamped observation of one metric."""

    metric_key: str
    value: float
    unit: str
    recorded_at: datetime
    is_override: bool = False      # manually entered or lab-verified
    sample_count: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MetricReading:
        """Parse the wire shape (snake_case or camelCase keys)."""
        key = data.get("metric_key", data.get("metricKey"))
        if not key:
            raise ValueError("metric reading is missing metric_key")
        spec = METRIC_CATALOG.get(key)
        sample_count = parse_sample_count(data.get("sample_count", data.get("sampleCount")))
        return cls(
            metric_key=key,
            value=data.get("value"),
            unit=data.get("unit") or (spec.unit if spec else ""),
            recorded_at=parse_timestamp(data.get("recorded_at", data.get("recordedAt"))),
            is_override=bool(data.get("is_override", data.get("isOverride", False))),
            sample_count=sample_count,
        )


@dataclass(frozen=True)
class CircadianFeatures:
    """Pre-computed rest-activity rhythm bundle."""

    relative_amplitude: float
    interdaily_stability: float
    intradaily_variability: float
    steps_coverage: float
    mesor: float | None = None
    amplitude: float | None = None
    acrophase_hour: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CircadianFeatures:
        def _opt(name: str) -> float | None:
            v = data.get(name)
            return float(v) if v is not None else None

        return cls(
            relative_amplitude=float(data["relative_amplitude"]),
            interdaily_stability=float(data["interdaily_stability"]),
            intradaily_variability=float(data["intradaily_variability"]),
            steps_coverage=float(data.get("steps_coverage", 0.0)),
            mesor=_opt("mesor"),
            amplitude=_opt("amplitude"),
            acrophase_hour=_opt("acrophase_hour"),
        )

    def is_finite(self) -> bool:
        return all(
            math.isfinite(v)
            for v in (
                self.relative_amplitude,
                self.interdaily_stability,
                self.intradaily_variability,
                self.steps_coverage,
            )
        )


@dataclass(frozen=True)
class WearableFeatures:
    """Sparse physiological features. ``None`` means no data, never zero."""

    resting_hr: float | None = None
    hrv_sdnn: float | None = None
    hrv_cv: float | None = None
    vo2max: float | None = None
    vo2max_slope: float | None = None
    vo2max_samples: int | None = None
    sleep_avg_hours: float | None = None
    sleep_efficiency_pct: float | None = None
    sleep_midpoint_std: float | None = None
    sleep_nights: int | None = None
    walking_speed: float | None = None
    circadian: CircadianFeatures | None = None
    sources: dict[str, MetricReading] = field(default_factory=dict, compare=False)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def _default_domain_weights() -> dict[str, float]:
    # fitness (0.30) is the strongest single mortality predictor; mobility
    # (0.10) is a single coarse metric.
    return {
        "fitness": 0.30,
        "circadian": 0.25,
        "autonomic": 0.20,
        "sleep": 0.15,
        "mobility": 0.10,
    }


@dataclass(frozen=True)
class BioAgeConfig:
    """Every tunable constant of the engine. Bump ``version`` on retuning."""

    version: str = "2026.1"

    # Stored read-only; excluded from hash since mappings are unhashable.
    domain_weights: Mapping[str, float] = field(default_factory=_default_domain_weights, hash=False)
    shrinkage: float = 0.70
    domain_clamp_years: float = 12.0

    # Fitness
    vo2max_reference: float = 40.0
    vo2max_scale: float = 7.0
    vo2max_years_per_z: float = 3.0
    vo2max_full_quality_samples: int = 3

    # Autonomic
    resting_hr_reference: float = 60.0
    resting_hr_scale: float = 8.0
    resting_hr_years_per_z: float = 2.5
    hrv_reference_ms: float = 45.0
    hrv_log_scale: float = 0.35
    hrv_years_per_z: float = 2.0
    hrv_cv_reference: float = 0.20
    hrv_cv_scale: float = 0.08
    hrv_cv_years_per_z: float = 1.0

    # Sleep
    sleep_reference_hours: float = 7.5
    sleep_years_per_hour: float = 1.5
    sleep_efficiency_reference_pct: float = 88.0
    sleep_years_per_efficiency_pct: float = 0.1
    sleep_midpoint_std_reference_hours: float = 0.5
    sleep_years_per_midpoint_std_hour: float = 2.0
    sleep_full_quality_nights: int = 14
    default_sleep_nights: int = 14

    # Mobility
    walking_speed_reference: float = 1.3
    walking_speed_scale: float = 0.2
    walking_speed_years_per_z: float = 2.0

    # Circadian
    circadian_target_score: float = 0.75
    circadian_years_per_score_point: float = 10.0

    # Freshness annotation
    stale_hours: float = 48.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "domain_weights", MappingProxyType(dict(self.domain_weights)))
        unknown = set(self.domain_weights) - set(DOMAIN_NAMES)
        if unknown:
            raise ValueError(f"Unknown domains in domain_weights: {sorted(unknown)}")
        if any(w < 0 or not math.isfinite(w) for w in self.domain_weights.values()):
            raise ValueError("domain_weights must be finite and non-negative")
        if sum(self.domain_weights.values()) <= 0:
            raise ValueError("domain_weights must not all be zero")
        if not 0.0 <= self.shrinkage <= 1.0:
            raise ValueError(f"shrinkage must be in [0, 1], got {self.shrinkage}")
        if not self.domain_clamp_years > 0:
            raise ValueError(f"domain_clamp_years must be positive, got {self.domain_clamp_years}")
        if self.vo2max_full_quality_samples < 1 or self.sleep_full_quality_nights < 1:
            raise ValueError("quality denominators must be at least 1")
        if not self.hrv_reference_ms > 0:
            raise ValueError(f"hrv_reference_ms must be positive, got {self.hrv_reference_ms}")

    def weight_for(self, domain: str) -> float:
        return self.domain_weights.get(domain, 0.0)

    def with_overrides(self, **changes: Any) -> BioAgeConfig:
        """Return a copy with the given fields replaced (and re-validated)."""
        return replace(self, **changes)


DEFAULT_BIO_AGE_CONFIG = BioAgeConfig()


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass
class MetricContribution:
    """A metric that fed a domain, annotated for display."""

    key: str
    label: str
    value: float
    unit: str
    fresh: bool
    is_override: bool


@dataclass
class DomainResult:
    """One domain's share of the blended age gap."""

    domain: str
    label: str
    gap: float          # raw gap x normalized weight x shrinkage
    weight: float       # normalized blend weight
    quality: float
    metrics: list[MetricContribution] = field(default_factory=list)


@dataclass
class BioAgeResult:
    """Snapshot of one bio-age computation."""

    bio_age: float
    chronological_age: float
    pace_of_aging: float
    age_gap: float
    domains: list[DomainResult] = field(default_factory=list)
    config_version: str = DEFAULT_BIO_AGE_CONFIG.version

    @property
    def total_impact(self) -> float:
        return self.age_gap

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["total_impact"] = self.total_impact
        return data
