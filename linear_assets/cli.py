"""Command-line entry point for moving images in and out of Markdown documents."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from posixpath import basename
from typing import Dict, List, Optional, Sequence
from urllib.parse import urlparse

from .config import AssetConfig
from .errors import AssetError
from .extract import extract_images
from .markdown import append_image, replace_image_links
from .metadata import resolve_metadata
from .models import ImageReference
from .transfer import TransferContext, download
from .utils import sanitize_name

logger = logging.getLogger("linear_assets.cli")


def _add_verbose(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Extract, download and attach images referenced by Markdown documents.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract_parser = subparsers.add_parser(
        "extract", help="List image references found in a document"
    )
    extract_parser.add_argument("document", type=Path, help="Markdown file to scan")
    _add_verbose(extract_parser)

    fetch_parser = subparsers.add_parser(
        "fetch", help="Download every image referenced by a document"
    )
    fetch_parser.add_argument("document", type=Path, help="Markdown file to scan")
    fetch_parser.add_argument(
        "--output",
        default="output",
        type=Path,
        help="Directory where images (and the rewritten document) are written",
    )
    fetch_parser.add_argument(
        "--rewrite",
        action="store_true",
        help="Also write a copy of the document pointing at the downloaded files",
    )
    fetch_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Give up on each download after this many seconds",
    )
    _add_verbose(fetch_parser)

    attach_parser = subparsers.add_parser(
        "attach", help="Append a hosted image reference to a document"
    )
    attach_parser.add_argument("document", type=Path, help="Markdown file to extend")
    attach_parser.add_argument("url", help="Hosted asset URL")
    attach_parser.add_argument("--alt", default="", help="Alt text for the image")
    attach_parser.add_argument(
        "--in-place",
        action="store_true",
        help="Rewrite the document instead of printing the result",
    )
    _add_verbose(attach_parser)

    info_parser = subparsers.add_parser(
        "info", help="Show the size and content type used when uploading a file"
    )
    info_parser.add_argument("path", type=Path, help="File to inspect")
    _add_verbose(info_parser)

    return parser.parse_args(argv)


def image_filename(image: ImageReference, index: int) -> str:
    """Pick a local file name for a downloaded image."""
    name = sanitize_name(basename(urlparse(image.url).path))
    if not name.strip("._"):
        name = "image"
    return sanitize_name(f"image-{index:02d}-{name}")


def _read_document(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _run_extract(args: argparse.Namespace) -> int:
    config = AssetConfig.from_env(Path.cwd())
    for image in extract_images(_read_document(args.document), config.known_host):
        sys.stdout.write(f"{image.url}\t{image.alt_text}\t{str(image.is_from_known_host).lower()}\n")
    return 0


def _run_fetch(args: argparse.Namespace) -> int:
    config = AssetConfig.from_env(Path(args.output).resolve(), timeout=args.timeout)
    document = _read_document(args.document)
    images = extract_images(document, config.known_host)
    if not images:
        logger.info("No images found in %s", args.document)
        return 0

    image_dir = config.output_root / "images"
    replacements: Dict[str, str] = {}
    failures: List[str] = []
    for index, image in enumerate(images, start=1):
        if image.url in replacements or image.url in failures:
            continue
        filename = image_filename(image, index)
        auth_header = config.auth_token if image.is_from_known_host else None
        try:
            download(
                image.url,
                image_dir / filename,
                auth_header=auth_header,
                ctx=TransferContext(timeout=config.timeout),
            )
        except AssetError as exc:
            logger.error("Failed to fetch %s: %s", image.url, exc)
            failures.append(image.url)
            continue
        logger.info("Saved %s to %s", image.url, image_dir / filename)
        replacements[image.url] = str(Path("images") / filename)

    if args.rewrite:
        output_path = config.output_root / args.document.name
        output_path.write_text(replace_image_links(document, replacements), encoding="utf-8")
        logger.info("Saved Markdown to %s", output_path)

    logger.info(
        "Fetched %d/%d images (%d failed)",
        len(replacements),
        len(replacements) + len(failures),
        len(failures),
    )
    return 1 if failures else 0


def _run_attach(args: argparse.Namespace) -> int:
    document = _read_document(args.document) if args.document.exists() else ""
    updated = append_image(document, args.url, args.alt)
    if args.in_place:
        args.document.write_text(updated, encoding="utf-8")
        logger.info("Appended %s to %s", args.url, args.document)
    else:
        sys.stdout.write(updated if updated.endswith("\n") else updated + "\n")
    return 0


def _run_info(args: argparse.Namespace) -> int:
    metadata = resolve_metadata(args.path)
    sys.stdout.write(f"{metadata.size}\t{metadata.content_type}\n")
    return 0


_COMMANDS = {
    "extract": _run_extract,
    "fetch": _run_fetch,
    "attach": _run_attach,
    "info": _run_info,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    try:
        return _COMMANDS[args.command](args)
    except AssetError as exc:
        logger.error("%s", exc)
        return 1
    except OSError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
