"""Aura server entry point: ``python -m aura.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from aura.core.config.settings import get_settings
from aura.core.server.app import create_app
from aura.domains.bioage.domain_logic.bioage_models import ALL_METRIC_KEYS


def _is_loopback_host(host: str) -> bool:
    if host in {"localhost"}:
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def run() -> None:
    """Start the Aura MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.aura_log_level.upper(), logging.INFO))

    logger = logging.getLogger(__name__)
    if not settings.aura_allow_insecure_bind and not _is_loopback_host(settings.aura_host):
        raise RuntimeError(
            "Refusing to bind Aura server to a non-loopback host without an auth layer. "
            "Set AURA_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    config = settings.bio_age_config()
    logger.info(
        "Starting Aura Bio-Age server on %s:%d (engine config %s, %d metric keys)",
        settings.aura_host,
        settings.aura_port,
        config.version,
        len(ALL_METRIC_KEYS),
    )

    mcp = create_app(config_override=config)
    mcp.run(
        transport="streamable-http",
        host=settings.aura_host,
        port=settings.aura_port,
    )


if __name__ == "__main__":
    run()
