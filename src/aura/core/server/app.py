"""Aura Bio-Age MCP Server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from aura.core.config.settings import get_settings
from aura.domains.bioage.domain_logic.bioage_models import ALL_METRIC_KEYS, BioAgeConfig
from aura.domains.bioage.tools.bio_age_tools import register_bio_age_tools

logger = logging.getLogger(__name__)


def create_app(*, config_override: BioAgeConfig | None = None) -> FastMCP:
    """Create and configure the Aura bio-age MCP server.

    The engine config comes from ``config_override`` when given, otherwise
    from environment settings layered over the packaged default.
    """
    settings = get_settings()
    config = config_override if config_override is not None else settings.bio_age_config()

    server = FastMCP(
        "Aura Bio-Age",
        instructions=(
            "Biological age estimation from wearable health metrics. "
            "Provides a deterministic bio-age score, a per-domain breakdown "
            "and the pace of aging."
        ),
    )
    logger.info("Bio-age engine config %s (shrinkage %.2f)", config.version, config.shrinkage)

    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": "Aura Bio-Age",
            "version": "0.1.0",
            "config_version": config.version,
            "metric_keys": len(ALL_METRIC_KEYS),
        }

    register_bio_age_tools(server, config)
    logger.info("Bio-age tools registered")

    return server


# Module-level instance for FastMCP discovery ("...app.py:mcp").
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
