"""Data models passed between extraction, transfer and document helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from .config import DEFAULT_CONTENT_TYPE


@dataclass(frozen=True)
class ImageReference:
    """Image reference discovered while scanning document text."""

    url: str
    alt_text: str
    is_from_known_host: bool


@dataclass(frozen=True)
class FileMetadata:
    """Size and content type of a local file."""

    size: int
    content_type: str


@dataclass(frozen=True)
class UploadTarget:
    """One-time upload destination handed out by the asset service."""

    upload_url: str
    asset_url: str
    headers: Dict[str, str] = field(default_factory=dict)
    content_type: str = DEFAULT_CONTENT_TYPE
    size: int = 0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], size: int) -> "UploadTarget":
        """Build a target from an upload-permission response.

        The service returns headers as a list of ``{"key": ..., "value": ...}``
        objects; they are collapsed into a mapping, later entries winning.
        """
        headers: Dict[str, str] = {}
        for entry in payload.get("headers") or []:
            headers[entry["key"]] = entry["value"]
        return cls(
            upload_url=payload["uploadUrl"],
            asset_url=payload["assetUrl"],
            headers=headers,
            content_type=payload.get("contentType") or DEFAULT_CONTENT_TYPE,
            size=size,
        )
