"""Configuration objects and constants for asset transfers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

KNOWN_HOST_DOMAIN = "linear.app"
CACHE_CONTROL = "public, max-age=31536000"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
MAX_NAME_LENGTH = 200
DOWNLOAD_CHUNK_SIZE = 64 * 1024

AUTH_TOKEN_ENV = "LINEAR_API_KEY"
KNOWN_HOST_ENV = "LINEAR_ASSET_HOST"


@dataclass
class AssetConfig:
    """Settings shared by the command-line commands."""

    output_root: Path
    auth_token: Optional[str] = None
    known_host: str = KNOWN_HOST_DOMAIN
    timeout: Optional[float] = None

    @classmethod
    def from_env(cls, output_root: Path, timeout: Optional[float] = None) -> "AssetConfig":
        """Build a config, picking up the token and host override from the environment."""
        return cls(
            output_root=output_root,
            auth_token=os.getenv(AUTH_TOKEN_ENV) or None,
            known_host=os.getenv(KNOWN_HOST_ENV) or KNOWN_HOST_DOMAIN,
            timeout=timeout,
        )
