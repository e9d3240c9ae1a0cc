"""Filename utilities for downloaded files."""

import re
from pathlib import Path
from typing import Iterable
from urllib.parse import unquote, urlparse

DEFAULT_FILENAME = "download"


def sanitize_filename(filename: str) -> str:
    """Sanitize a filename for filesystem safety.

    Args:
        filename: Original filename

    Returns:
        Sanitized filename
    """
    if not filename:
        return ""

    # Remove invalid filename characters
    sanitized = re.sub(r'[<>:"/\\|?*\x00-\x1f]', '', filename)
    # Replace multiple whitespace with single space
    sanitized = re.sub(r'\s+', ' ', sanitized)
    # Remove leading/trailing whitespace and dots
    sanitized = sanitized.strip(' .')

    return sanitized


def filename_from_url(url: str) -> str:
    """Derive a local filename from the last path segment of a URL.

    Args:
        url: Download URL

    Returns:
        Safe filename, ``"download"`` when the URL has no usable path
    """
    path = unquote(urlparse(url).path)
    name = sanitize_filename(path.rstrip("/").rsplit("/", 1)[-1])
    return name or DEFAULT_FILENAME


def unique_paths(output_dir: Path, urls: Iterable[str]) -> list:
    """Map URLs to output paths, suffixing duplicates as ``name (1).ext``.

    Args:
        output_dir: Directory the files are written to
        urls: Download URLs in order

    Returns:
        List of paths, one per URL
    """
    seen = set()
    paths = []
    for url in urls:
        name = filename_from_url(url)
        stem, suffix = Path(name).stem, Path(name).suffix
        candidate = name
        counter = 1
        while candidate in seen:
            candidate = f"{stem} ({counter}){suffix}"
            counter += 1
        seen.add(candidate)
        paths.append(output_dir / candidate)
    return paths
