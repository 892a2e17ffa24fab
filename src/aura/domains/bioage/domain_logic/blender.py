"""Blend per-domain age gaps into a single bio-age estimate.

Domains without data drop out entirely. The rest are weighted by
``base_weight x quality``, renormalized to sum to 1, averaged, and then pulled
toward chronological age by the global shrinkage factor. Each reported domain
gap is its share of the blended gap, so the reported gaps sum to ``age_gap``.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from datetime import datetime, timezone

from aura.domains.bioage.domain_logic.bioage_models import (
    DEFAULT_BIO_AGE_CONFIG,
    DOMAIN_LABELS,
    DOMAIN_NAMES,
    METRIC_CATALOG,
    BioAgeConfig,
    BioAgeResult,
    CircadianFeatures,
    DomainResult,
    InvalidChronologicalAgeError,
    MetricContribution,
    MetricReading,
    WearableFeatures,
    as_utc,
)
from aura.domains.bioage.domain_logic.domain_scoring import score_domains
from aura.domains.bioage.domain_logic.feature_extractor import extract_features

logger = logging.getLogger(__name__)


def blend_domains(
    gaps: dict[str, float | None],
    qualities: dict[str, float],
    config: BioAgeConfig = DEFAULT_BIO_AGE_CONFIG,
) -> tuple[float, dict[str, float]]:
    """Quality-gated, renormalized, shrunk average of the domain gaps.

    Args:
        gaps: Domain -> gap in years, or None for "no data".
        qualities: Domain -> confidence in [0, 1].
        config: Base weights and shrinkage.

    Returns:
        (blended gap in years, normalized weight per present domain). When no
        present domain carries any weight the gap is 0.0 and every weight 0.0.
    """
    gated: dict[str, float] = {}
    for domain, gap in gaps.items():
        if gap is None:
            continue
        quality = max(0.0, min(1.0, qualities.get(domain, 0.0)))
        gated[domain] = config.weight_for(domain) * quality

    total = sum(gated.values())
    if total <= 0:
        return 0.0, {domain: 0.0 for domain in gated}

    weights = {domain: w / total for domain, w in gated.items()}
    blended = sum(weights[d] * gaps[d] for d in weights) * config.shrinkage
    return blended, weights


def _validate_age(chronological_age) -> float:
    if isinstance(chronological_age, bool):
        raise InvalidChronologicalAgeError("chronological_age must be a number")
    try:
        age = float(chronological_age)
    except (TypeError, ValueError) as exc:
        raise InvalidChronologicalAgeError(
            f"chronological_age must be a number, got {chronological_age!r}"
        ) from exc
    if not math.isfinite(age) or age <= 0:
        raise InvalidChronologicalAgeError(
            f"chronological_age must be a finite number > 0, got {chronological_age!r}"
        )
    return age


def _is_fresh(reading: MetricReading, now: datetime, stale_hours: float) -> bool:
    # overrides are lab-verified or hand-entered and never go stale
    if reading.is_override:
        return True
    hours = (now - as_utc(reading.recorded_at)).total_seconds() / 3600
    return hours < stale_hours


def _domain_metrics(
    domain: str,
    features: WearableFeatures,
    now: datetime,
    config: BioAgeConfig,
) -> list[MetricContribution]:
    contributions = []
    for key, spec in METRIC_CATALOG.items():
        reading = features.sources.get(key)
        if reading is None or spec.domain != domain:
            continue
        contributions.append(MetricContribution(
            key=key,
            label=spec.label,
            value=float(reading.value),
            unit=reading.unit or spec.unit,
            fresh=_is_fresh(reading, now, config.stale_hours),
            is_override=reading.is_override,
        ))
    return contributions


def calculate_bio_age(
    chronological_age: float,
    metrics: Iterable[MetricReading],
    config: BioAgeConfig | None = None,
    *,
    circadian: CircadianFeatures | None = None,
    now: datetime | None = None,
) -> BioAgeResult:
    """Compute biological age, its domain breakdown and the pace of aging.

    Missing data never raises: absent domains are simply left out, and with
    no usable data at all the result is bio_age == chronological_age with a
    pace of exactly 1.0.

    Args:
        chronological_age: Age in years; must be finite and > 0.
        metrics: Metric readings in any order, duplicates allowed.
        config: Tunables; defaults to ``DEFAULT_BIO_AGE_CONFIG``.
        circadian: Optional pre-computed rest-activity rhythm bundle.
        now: Reference time for the freshness annotation (default: now, UTC).

    Raises:
        InvalidChronologicalAgeError: If chronological_age is unusable.
    """
    age = _validate_age(chronological_age)
    config = config or DEFAULT_BIO_AGE_CONFIG
    now = as_utc(now) if now is not None else datetime.now(timezone.utc)

    features = extract_features(metrics, circadian=circadian)
    gaps, qualities = score_domains(features, config)
    blended, weights = blend_domains(gaps, qualities, config)

    domains: list[DomainResult] = []
    for domain in DOMAIN_NAMES:
        if gaps[domain] is None:
            continue
        weight = weights[domain]
        domains.append(DomainResult(
            domain=domain,
            label=DOMAIN_LABELS[domain],
            gap=round(gaps[domain] * weight * config.shrinkage, 2),
            weight=weight,
            quality=qualities[domain],
            metrics=_domain_metrics(domain, features, now, config),
        ))

    if domains:
        bio_age = round(age + blended, 1)
        pace = round(bio_age / age, 2)
    else:
        bio_age, pace = age, 1.0

    logger.debug(
        "Bio-age %.1f (chronological %.1f, gap %+.2f) from %d domains, config %s",
        bio_age,
        age,
        blended,
        len(domains),
        config.version,
    )
    return BioAgeResult(
        bio_age=bio_age,
        chronological_age=age,
        pace_of_aging=pace,
        age_gap=round(blended, 2),
        domains=domains,
        config_version=config.version,
    )
