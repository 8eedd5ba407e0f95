"""Configuration management for sparqlmap.

Loads settings from environment variables with sensible defaults.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field

from sparqlmap.runtime.cache import DEFAULT_CACHE_SIZE


@dataclass
class StoreConfig:
    """Graph store configuration."""
    backend: str = "memory"  # "memory", "endpoint"
    query_url: str = ""
    update_url: str = ""  # empty = same as query_url
    timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "StoreConfig":
        return cls(
            backend=os.getenv("SPARQLMAP_BACKEND", "memory"),
            query_url=os.getenv("SPARQLMAP_QUERY_URL", ""),
            update_url=os.getenv("SPARQLMAP_UPDATE_URL", ""),
            timeout=float(os.getenv("SPARQLMAP_TIMEOUT", "30")),
        )


@dataclass
class RuntimeConfig:
    """Session configuration."""
    cache_size: int = DEFAULT_CACHE_SIZE

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        return cls(
            cache_size=int(os.getenv("SPARQLMAP_CACHE_SIZE", str(DEFAULT_CACHE_SIZE))),
        )


@dataclass
class AppConfig:
    """Top-level application configuration."""
    store: StoreConfig = field(default_factory=StoreConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AppConfig":
        return cls(
            store=StoreConfig.from_env(),
            runtime=RuntimeConfig.from_env(),
            log_level=os.getenv("SPARQLMAP_LOG_LEVEL", "INFO").upper(),
        )
