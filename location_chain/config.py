"""Runtime configuration for location_chain."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class SourceConfig:
    """Settings for the HTTP-backed location source."""

    http_url: str = ""
    http_provider: str = "network"
    http_timeout: float = 10.0  # seconds


@dataclass(frozen=True)
class ApiConfig:
    """Settings for the Flask host adapter."""

    chain_wait_seconds: float = 60.0
    max_content_kb: int = 64

    @property
    def max_content_bytes(self) -> int:
        """Maximum request payload in bytes."""
        return self.max_content_kb * 1024


SOURCE_CONFIG = SourceConfig(
    http_url=os.environ.get("LOCATION_CHAIN_HTTP_URL", SourceConfig.http_url),
    http_provider=os.environ.get("LOCATION_CHAIN_HTTP_PROVIDER", SourceConfig.http_provider),
    http_timeout=float(os.environ.get("LOCATION_CHAIN_HTTP_TIMEOUT", SourceConfig.http_timeout)),
)
API_CONFIG = ApiConfig(
    chain_wait_seconds=float(
        os.environ.get("LOCATION_CHAIN_API_WAIT", ApiConfig.chain_wait_seconds)
    ),
    max_content_kb=int(os.environ.get("LOCATION_CHAIN_MAX_CONTENT_KB", ApiConfig.max_content_kb)),
)
