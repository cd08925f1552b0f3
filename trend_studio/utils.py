"""Utility functions for TrendStudio."""

import uuid
from datetime import datetime
from typing import Iterable, List

from slugify import slugify as python_slugify


def slugify(text: str, max_length: int = 100) -> str:
    """Convert text to a URL-friendly slug.

    Args:
        text: The text to convert to a slug.
        max_length: Maximum length of the slug (default: 100).

    Returns:
        A URL-friendly slug version of the text.
    """
    return python_slugify(text, max_length=max_length)


def generate_id() -> str:
    """Generate a short random identifier for topics and drafts."""
    return uuid.uuid4().hex[:9]


def get_date_string() -> str:
    """Get the current date as a string for filenames.

    Returns:
        Current date in YYYY-MM-DD format.
    """
    return datetime.now().strftime("%Y-%m-%d")


def get_long_date() -> str:
    """Get today's date spelled out, e.g. 'Monday, October 19, 2026'."""
    return datetime.now().strftime("%A, %B %d, %Y")


def generate_filename(title: str, extension: str = "html") -> str:
    """Generate a filename for an exported post.

    Args:
        title: The title of the blog post.
        extension: File extension without the dot.

    Returns:
        A filename in the format 'YYYY-MM-DD-slug.<extension>'.
    """
    return f"{get_date_string()}-{slugify(title)}.{extension}"


def word_count(text: str) -> int:
    """Count whitespace-delimited tokens."""
    return len(text.split())


def merge_references(existing: Iterable[str], new: Iterable[str]) -> List[str]:
    """Append new reference URLs to an existing list, skipping duplicates.

    Order of first appearance is preserved and blank entries are dropped.
    """
    merged: List[str] = []
    seen = set()
    for url in list(existing) + list(new):
        url = (url or "").strip()
        if not url or url in seen:
            continue
        seen.add(url)
        merged.append(url)
    return merged
