"""
URL helpers shared by discovery, navigation and deduplication.
"""

from urllib.parse import parse_qsl, urlencode, urljoin, urlparse, urlunparse

SPECIAL_SCHEMES = ("mailto:", "tel:", "javascript:", "data:")


def resolve_href(base_url: str, href: str) -> str:
    """Resolve a raw href against the page URL."""
    return urljoin(base_url, href.strip())


def normalize_url(url: str, keep_fragment: bool = True) -> str:
    """
    Normalize a URL for comparison.

    Lowercases scheme and host, drops a trailing slash from non-root paths
    and sorts query parameters. Fragments are kept by default because
    hash-routed sites use them to address pages.
    """
    parsed = urlparse(url.strip())

    path = parsed.path or "/"
    if len(path) > 1 and path.endswith("/"):
        path = path.rstrip("/")

    query = urlencode(sorted(parse_qsl(parsed.query, keep_blank_values=True)))
    fragment = parsed.fragment if keep_fragment else ""

    return urlunparse((
        parsed.scheme.lower(),
        parsed.netloc.lower(),
        path,
        parsed.params,
        query,
        fragment,
    ))


def strip_fragment(url: str) -> str:
    return url.split("#", 1)[0]


def hostname_of(url: str) -> str:
    return (urlparse(url).hostname or "").lower()


def path_of(url: str) -> str:
    return urlparse(url).path or "/"


def is_special_href(href: str) -> bool:
    """True for mailto:, tel:, javascript: and data: targets."""
    return href.strip().lower().startswith(SPECIAL_SCHEMES)
