"""Map raw metric readings onto the sparse WearableFeatures record.

The latest reading per metric key wins. On an exact timestamp tie the reading
that appears later in the input wins, so the outcome never depends on sort
stability. Unknown keys and non-finite values are skipped, not raised.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable

from aura.domains.bioage.domain_logic.bioage_models import (
    METRIC_CATALOG,
    CircadianFeatures,
    MetricReading,
    WearableFeatures,
    as_utc,
    parse_sample_count,
)

logger = logging.getLogger(__name__)

# Metric key -> WearableFeatures field that receives the reading's sample_count.
_SAMPLE_COUNT_FIELDS = {
    "vo2_max": "vo2max_samples",
    "sleep_duration": "sleep_nights",
}


def _finite_value(value) -> float | None:
    """Return the value as a finite float, or None if unusable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def latest_readings(readings: Iterable[MetricReading]) -> dict[str, MetricReading]:
    """Pick the most recent usable reading for each known metric key."""
    latest: dict[str, MetricReading] = {}
    for reading in readings:
        spec = METRIC_CATALOG.get(reading.metric_key)
        if spec is None:
            logger.debug("Ignoring unknown metric key %r", reading.metric_key)
            continue
        if _finite_value(reading.value) is None:
            logger.debug("Dropping %s reading with unusable value %r", reading.metric_key, reading.value)
            continue

        current = latest.get(reading.metric_key)
        # >= keeps the later input on a tie
        if current is None or as_utc(reading.recorded_at) >= as_utc(current.recorded_at):
            latest[reading.metric_key] = reading
    return latest


def extract_features(
    readings: Iterable[MetricReading],
    circadian: CircadianFeatures | None = None,
) -> WearableFeatures:
    """Build WearableFeatures from readings plus an optional circadian bundle."""
    chosen = latest_readings(readings)

    values: dict = {}
    for key, reading in chosen.items():
        values[METRIC_CATALOG[key].feature] = _finite_value(reading.value)

        count_field = _SAMPLE_COUNT_FIELDS.get(key)
        if count_field and reading.sample_count is not None:
            count = parse_sample_count(reading.sample_count)
            if count is not None:
                values[count_field] = count
            else:
                logger.debug("Ignoring sample_count %r on %s", reading.sample_count, key)

    if circadian is not None and not circadian.is_finite():
        logger.debug("Dropping circadian bundle with non-finite fields")
        circadian = None

    features = WearableFeatures(circadian=circadian, sources=chosen, **values)
    logger.debug(
        "Extracted %d features from %d metric keys (circadian=%s)",
        len(values),
        len(chosen),
        circadian is not None,
    )
    return features
