"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings

from aura.domains.bioage.domain_logic.bioage_models import (
    DEFAULT_BIO_AGE_CONFIG,
    BioAgeConfig,
)


class Settings(BaseSettings):
    """Aura bio-age server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Default to loopback; there is no auth layer in front of the tools.
    aura_host: str = "127.0.0.1"
    aura_port: int = 8001
    aura_log_level: str = "info"
    aura_allow_insecure_bind: bool = False

    # Bio-age engine overrides (unset keeps the packaged default)
    bioage_shrinkage: float | None = None
    bioage_domain_clamp_years: float | None = None
    bioage_stale_hours: float | None = None
    bioage_default_sleep_nights: int | None = None

    def bio_age_config(self) -> BioAgeConfig:
        """Build the engine config, applying any environment overrides."""
        overrides = {
            "shrinkage": self.bioage_shrinkage,
            "domain_clamp_years": self.bioage_domain_clamp_years,
            "stale_hours": self.bioage_stale_hours,
            "default_sleep_nights": self.bioage_default_sleep_nights,
        }
        overrides = {k: v for k, v in overrides.items() if v is not None}
        if not overrides:
            return DEFAULT_BIO_AGE_CONFIG
        return DEFAULT_BIO_AGE_CONFIG.with_overrides(**overrides)


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
