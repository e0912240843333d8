"""Cache configuration settings."""

import os
from typing import Any

from pydantic import BaseModel
from pydantic import Field

from catalog_cachex.types import CACHE_KEY_PREFIX
from catalog_cachex.types import DAY_MS
from catalog_cachex.types import MINUTE_MS

ENV_PREFIX = "CATALOG_CACHE_"


class CacheSettings(BaseModel):
    """Cache configuration settings.

    Every TTL is expressed in milliseconds.
    """

    # Namespace
    key_prefix: str = Field(
        default=CACHE_KEY_PREFIX,
        min_length=1,
        description="Prefix prepended to every cache key in storage",
    )

    # Lifetimes
    default_ttl: int = Field(
        default=7 * DAY_MS,
        ge=0,
        description="TTL used when a caller does not pick one (default: 7 days)",
    )
    lookup_ttl: int = Field(
        default=DAY_MS,
        ge=0,
        description="TTL for filter lookups such as photographers or locations (default: 1 day)",
    )
    static_lookup_ttl: int = Field(
        default=7 * DAY_MS,
        ge=0,
        description="TTL for lookups that almost never change: countries, builders (default: 7 days)",
    )
    catalog_page_ttl: int = Field(
        default=60 * MINUTE_MS,
        ge=0,
        description="TTL for paginated catalog and category listings (default: 60 minutes)",
    )
    search_ttl: int = Field(
        default=15 * MINUTE_MS,
        ge=0,
        description="TTL for search result pages (default: 15 minutes)",
    )
    photo_ttl: int = Field(
        default=180 * MINUTE_MS,
        ge=0,
        description="TTL for a single photo record (default: 3 hours)",
    )

    # Photo decoration
    storage_base_url: str = Field(
        default="https://storage.example.com/storage/v1/object/public",
        description="Public object storage URL photo links are built from",
    )
    image_bucket: str = Field(
        default="picaloco",
        description="Bucket holding full-size images and thumbnails",
    )
    default_price: float = Field(
        default=49.99,
        ge=0,
        description="Price attached to catalog photos that carry none",
    )

    @classmethod
    def from_env(
        cls, prefix: str = ENV_PREFIX, environ: dict[str, str] | None = None
    ) -> "CacheSettings":
        """Build settings from environment variables.

        A field named ``lookup_ttl`` is read from ``CATALOG_CACHE_LOOKUP_TTL``.
        Variables that are not set keep their defaults.
        """
        environ = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for name in cls.model_fields:
            env_name = f"{prefix}{name.upper()}"
            if env_name in environ:
                values[name] = environ[env_name]
        return cls(**values)
