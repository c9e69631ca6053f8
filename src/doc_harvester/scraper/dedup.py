"""
Session-scoped deduplication of pages.

Items are skipped before navigation when their URL or title has been seen;
extracted content is rejected after extraction when its fingerprint
matches a page already kept.
"""

import hashlib
import re

from doc_harvester.core.types import NavigableItem
from doc_harvester.utils.urls import normalize_url

_WHITESPACE = re.compile(r"\s+")


def fingerprint(content: str, chars: int = 500) -> str:
    """
    Short content hash over the start of the normalized text.

    Args:
        content: Extracted page text
        chars: Number of leading characters to hash

    Returns:
        16 hex characters of SHA-256
    """
    normalized = _WHITESPACE.sub(" ", content).strip().lower()[:chars]
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:16]


def normalize_title(title: str) -> str:
    return _WHITESPACE.sub(" ", title).strip().lower()


class Deduplicator:
    """
    Tracks visited URLs, titles and content fingerprints.

    Example:
        >>> dedup = Deduplicator()
        >>> dedup.should_skip(item)
        False
        >>> dedup.mark_visited(item)
        >>> dedup.should_skip(item)
        True
    """

    def __init__(self, fingerprint_chars: int = 500) -> None:
        self.fingerprint_chars = fingerprint_chars
        self._urls: set[str] = set()
        self._titles: set[str] = set()
        self._fingerprints: set[str] = set()

    def should_skip(self, item: NavigableItem) -> bool:
        if item.url and normalize_url(item.url) in self._urls:
            return True
        return bool(item.title) and normalize_title(item.title) in self._titles

    def mark_visited(self, item: NavigableItem) -> None:
        if item.url:
            self._urls.add(normalize_url(item.url))
        if item.title:
            self._titles.add(normalize_title(item.title))

    def is_duplicate_content(self, content: str) -> bool:
        return fingerprint(content, self.fingerprint_chars) in self._fingerprints

    def record_content(self, content: str) -> str:
        """Remember a kept page's fingerprint and return it."""
        digest = fingerprint(content, self.fingerprint_chars)
        self._fingerprints.add(digest)
        return digest

    @property
    def visited_count(self) -> int:
        return len(self._urls)

    @property
    def fingerprint_count(self) -> int:
        return len(self._fingerprints)
