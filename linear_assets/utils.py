"""Utility helpers for filesystem-safe names."""

from __future__ import annotations

import re

from .config import MAX_NAME_LENGTH

UNSAFE_NAME_PATTERN = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_name(raw: str, max_length: int = MAX_NAME_LENGTH) -> str:
    """Replace characters outside ``[A-Za-z0-9._-]`` with ``_`` and cap the length."""
    return UNSAFE_NAME_PATTERN.sub("_", raw)[:max_length]
