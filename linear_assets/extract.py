"""Discovery of embedded image references in Markdown text."""

from __future__ import annotations

import re
from typing import List

from .config import KNOWN_HOST_DOMAIN
from .models import ImageReference

MARKDOWN_IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
HTML_IMAGE_PATTERN = re.compile(r'<img[^>]+src="([^"]+)"')


def extract_images(document: str, known_host: str = KNOWN_HOST_DOMAIN) -> List[ImageReference]:
    """Return image references found in ``document``.

    Markdown ``![alt](url)`` references come first, in order of appearance,
    followed by ``<img src="...">`` tags in order of appearance. The two
    forms are not interleaved by position.
    """
    images: List[ImageReference] = []

    for match in MARKDOWN_IMAGE_PATTERN.finditer(document):
        url = match.group(2)
        images.append(ImageReference(url, match.group(1), known_host in url))

    for match in HTML_IMAGE_PATTERN.finditer(document):
        url = match.group(1)
        images.append(ImageReference(url, "", known_host in url))

    return images
