"""MCP tools exposing the bio-age scoring engine.

The engine is pure; these tools only parse the wire payload, call it, and
serialize the result. Storage of snapshots is left to the caller.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastmcp import FastMCP

from aura.domains.bioage.domain_logic.bioage_models import (
    BioAgeConfig,
    CircadianFeatures,
    InvalidChronologicalAgeError,
    MetricReading,
    metric_catalog,
    parse_timestamp,
)
from aura.domains.bioage.domain_logic.blender import calculate_bio_age

logger = logging.getLogger(__name__)


def _parse_readings(raw_metrics: list[dict[str, Any]]) -> tuple[list[MetricReading], list[dict[str, Any]]]:
    """Parse readings; unparseable entries are returned as rejections."""
    readings: list[MetricReading] = []
    rejected: list[dict[str, Any]] = []
    for index, raw in enumerate(raw_metrics):
        try:
            readings.append(MetricReading.from_dict(raw))
        except (TypeError, ValueError, OverflowError) as exc:
            rejected.append({"index": index, "reason": str(exc)})
    return readings, rejected


def register_bio_age_tools(mcp: FastMCP, config: BioAgeConfig) -> None:
    """Register bio-age tools on the MCP server."""

    @mcp.tool(name="calculate_bio_age")
    def calculate_bio_age_tool(
        chronological_age: float,
        metrics: list[dict[str, Any]],
        circadian: dict[str, Any] | None = None,
        now: str | None = None,
    ) -> str:
        """Estimate biological age from wearable metrics.

        Args:
            chronological_age: The user's age in years (must be > 0).
            metrics: Readings, each with metric_key, value, unit, recorded_at
                (ISO 8601), optional is_override and sample_count.
            circadian: Optional rest-activity rhythm bundle with
                relative_amplitude, interdaily_stability, intradaily_variability
                and steps_coverage.
            now: Optional ISO 8601 reference time for freshness flags.
        """
        readings, rejected = _parse_readings(metrics)
        if rejected:
            logger.info("Rejected %d unparseable metric readings", len(rejected))

        try:
            bundle = CircadianFeatures.from_dict(circadian) if circadian else None
        except (KeyError, TypeError, ValueError) as exc:
            return json.dumps({"status": "error", "message": f"Invalid circadian bundle: {exc}"})

        try:
            reference = parse_timestamp(now) if now else None
        except ValueError as exc:
            return json.dumps({"status": "error", "message": f"Invalid reference time: {exc}"})

        try:
            result = calculate_bio_age(
                chronological_age, readings, config, circadian=bundle, now=reference
            )
        except InvalidChronologicalAgeError as exc:
            return json.dumps({"status": "error", "message": str(exc)})

        payload: dict[str, Any] = {"status": "ok", **result.as_dict()}
        if rejected:
            payload["rejected_metrics"] = rejected
        return json.dumps(payload)

    @mcp.tool
    def bio_age_metric_catalog() -> str:
        """List the metric keys and domains the bio-age engine understands."""
        return json.dumps(
            {"config_version": config.version, **metric_catalog()},
            indent=2,
        )
