"""Defaults for roster import runs."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import env_float
from .errors import ConfigurationError

DEFAULT_ENRICHMENT_INTERVAL_SECONDS = 1.0
DEFAULT_ENRICHMENT_TIMEOUT_SECONDS = 30.0
DEFAULT_AVATAR_TIMEOUT_SECONDS = 20.0
DEFAULT_TIER = "C"


@dataclass(frozen=True, slots=True)
class ImportConfig:
    enrichment_interval_seconds: float = DEFAULT_ENRICHMENT_INTERVAL_SECONDS
    enrichment_timeout_seconds: float = DEFAULT_ENRICHMENT_TIMEOUT_SECONDS
    avatar_timeout_seconds: float = DEFAULT_AVATAR_TIMEOUT_SECONDS
    default_tier: str = DEFAULT_TIER
    skip_declined: bool = False


def _positive_env_float(name: str, default: float) -> float:
    value = env_float(name, default)
    if value <= 0:
        raise ConfigurationError(f"{name} must be greater than zero, got {value}")
    return value


def get_import_config() -> ImportConfig:
    return ImportConfig(
        enrichment_interval_seconds=_positive_env_float(
            "CREATORSYNC_ENRICHMENT_INTERVAL", DEFAULT_ENRICHMENT_INTERVAL_SECONDS
        ),
        enrichment_timeout_seconds=_positive_env_float(
            "CREATORSYNC_ENRICHMENT_TIMEOUT", DEFAULT_ENRICHMENT_TIMEOUT_SECONDS
        ),
        avatar_timeout_seconds=_positive_env_float(
            "CREATORSYNC_AVATAR_TIMEOUT", DEFAULT_AVATAR_TIMEOUT_SECONDS
        ),
        default_tier=(os.getenv("CREATORSYNC_DEFAULT_TIER") or DEFAULT_TIER).strip().upper(),
        skip_declined=os.getenv("CREATORSYNC_SKIP_DECLINED", "").strip().lower()
        in {"1", "true", "yes"},
    )
