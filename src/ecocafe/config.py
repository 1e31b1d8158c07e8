"""Runtime settings using Pydantic Settings.

Every value can be overridden through an ``ECOCAFE_``-prefixed environment
variable, e.g. ``ECOCAFE_CATALOG_PATH=/etc/ecocafe/catalog.yaml``.
"""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class EcocafeSettings(BaseSettings):
    """Survey and map overview configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ECOCAFE_",
        extra="ignore",
    )

    catalog_path: Optional[str] = Field(
        default=None,
        description="YAML catalog to load instead of the built-in checklist",
    )

    # Map centre used when a stored result carries no usable coordinates (Seoul City Hall)
    default_lat: float = Field(default=37.5665, description="Fallback latitude")
    default_lng: float = Field(default=126.978, description="Fallback longitude")

    log_level: str = Field(default="INFO", description="Root log level for scripts")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return level


@lru_cache
def get_settings() -> EcocafeSettings:
    """Get cached settings instance."""
    return EcocafeSettings()


def configure_logging(level: Optional[str] = None) -> None:
    """Install a basic root handler. Intended for scripts, not library use."""
    level = level or get_settings().log_level
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logger.debug("Logging configured at %s", level)
