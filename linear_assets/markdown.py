"""Helpers that rewrite Markdown documents around hosted assets."""

from __future__ import annotations

from typing import Mapping

# Unicode White_Space characters, without the \x1c-\x1f separators str.isspace accepts.
BLANK_CHARACTERS = (
    "\t\n\v\f\r \x85\xa0\u1680\u2000\u2001\u2002\u2003\u2004\u2005\u2006"
    "\u2007\u2008\u2009\u200a\u2028\u2029\u202f\u205f\u3000"
)


def format_image(asset_url: str, alt_text: str = "") -> str:
    """Render a Markdown image reference, defaulting the alt text to ``image``."""
    return f"![{alt_text or 'image'}]({asset_url})"


def append_image(document: str, asset_url: str, alt_text: str = "") -> str:
    """Append an image reference after the existing document body.

    A blank document is replaced by the reference alone; otherwise the
    original text is kept as-is and the reference follows a blank line.
    """
    image_markdown = format_image(asset_url, alt_text)
    if not document.strip(BLANK_CHARACTERS):
        return image_markdown
    return document + "\n\n" + image_markdown


def replace_image_links(document: str, replacements: Mapping[str, str]) -> str:
    """Swap remote image URLs with local paths."""
    if not replacements:
        return document
    updated = document
    for remote_url, local_path in replacements.items():
        updated = updated.replace(remote_url, local_path)
    return updated
