"""Exceptions raised by asset extraction, transfer and metadata helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class AssetError(Exception):
    """Base class for every failure surfaced by this package."""

    reason = "error"

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(message)
        self.operation = operation


class RequestConstructionError(AssetError):
    """The request could not be built (malformed URL or header)."""

    reason = "request"

    def __init__(self, operation: str, url: str, message: str) -> None:
        super().__init__(operation, f"{operation} of {url!r} could not be prepared: {message}")
        self.url = url


class NetworkError(AssetError):
    """Transport failure; no complete response was received."""

    reason = "network"

    def __init__(self, operation: str, url: str, message: str) -> None:
        super().__init__(operation, f"{operation} of {url} failed: {message}")
        self.url = url


class TransferCancelled(NetworkError):
    """The transfer context was cancelled or ran past its deadline."""


class StatusError(AssetError):
    """A response arrived with a status code outside the accepted set."""

    reason = "status"

    def __init__(
        self,
        operation: str,
        url: str,
        status_code: int,
        status_text: str = "",
        body: str = "",
    ) -> None:
        status = f"{status_code} {status_text}".strip()
        message = f"{operation} failed with status {status}"
        if body:
            message = f"{message}: {body}"
        super().__init__(operation, message)
        self.url = url
        self.status_code = status_code
        self.body = body


class FilesystemError(AssetError):
    """stat, read, write or mkdir failure on a local path."""

    reason = "io"

    def __init__(
        self,
        operation: str,
        path: Union[str, Path],
        message: str,
        errno: Optional[int] = None,
    ) -> None:
        super().__init__(operation, f"failed to {operation} {path}: {message}")
        self.path = Path(path)
        self.errno = errno
