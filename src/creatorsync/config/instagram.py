"""Instagram profile lookup configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import require_env_var
from .http_resilience import CacheConfig, ResilienceConfig, RetryPolicy, ShouldCacheHook

DEFAULT_RAPIDAPI_HOST = "instagram-scraper-stable-api.p.rapidapi.com"
INSTAGRAM_TIMEOUT_SECONDS = 15.0
PROFILE_CACHE_TTL_SECONDS = 24 * 60 * 60.0


@dataclass(frozen=True, slots=True)
class InstagramConfig:
    """Holds RapidAPI credentials and HTTP behaviour for profile lookups."""

    api_key: str
    api_host: str
    resilience: ResilienceConfig


def get_instagram_config(
    *,
    resilience: ResilienceConfig | None = None,
    cache_predicate: ShouldCacheHook | None = None,
) -> InstagramConfig:
    api_key = require_env_var("RAPIDAPI_KEY")
    api_host = os.getenv("RAPIDAPI_HOST") or DEFAULT_RAPIDAPI_HOST
    return InstagramConfig(
        api_key=api_key,
        api_host=api_host,
        resilience=resilience
        or ResilienceConfig(
            name="instagram",
            base_url=f"https://{api_host}",
            timeout_seconds=INSTAGRAM_TIMEOUT_SECONDS,
            retry=RetryPolicy(total=3),
            cache=CacheConfig(
                backend="memory",
                default_ttl_seconds=PROFILE_CACHE_TTL_SECONDS,
                should_cache=cache_predicate,
            ),
            default_headers={
                "x-rapidapi-key": api_key,
                "x-rapidapi-host": api_host,
            },
        ),
    )
