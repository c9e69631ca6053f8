"""
Link classification for documentation discovery.

Pure predicates over (text, href) pairs decide which links lead to
content pages, how deep in the navigation tree they sit, and in which
order they should be visited. Deny lists match whole words, so "Home"
is rejected while "Homepage builder API" is not.
"""

import re
from dataclasses import dataclass
from urllib.parse import urlparse

from doc_harvester.browser.environment import ElementRef, Environment
from doc_harvester.utils.urls import hostname_of, is_special_href, path_of


def _word_pattern(words: list[str]) -> re.Pattern:
    return re.compile(
        r"\b(" + "|".join(re.escape(w) for w in words) + r")\b", re.I)


# Path fragments that mark documentation
DOC_PATH_PATTERNS = ("/docs", "/api", "/reference", "/guide", "/tutorial")

# Navigation chrome that never leads to a content page
_MEANINGFUL_DENY = _word_pattern([
    "home", "search", "login", "signup", "settings", "profile", "logout",
    "back", "next", "previous", "edit", "toggle", "menu", "close", "open",
])

_MEANINGFUL_ALLOW = _word_pattern([
    "api", "endpoint", "reference", "guide", "tutorial",
    "get", "post", "put", "delete", "patch",
    "create", "update", "fetch", "list", "retrieve",
])

_BOILERPLATE = _word_pattern([
    "login", "logout", "sign in", "sign up", "register",
    "home", "back", "next", "previous", "search",
    "github", "twitter", "discord", "contact", "support",
    "privacy", "terms", "legal", "about",
])

# Exact titles of generic pages on endpoint-style reference sites
_GENERIC_TITLES = frozenset({
    "api reference", "documentation", "overview", "introduction",
    "getting started", "authentication", "guides", "home",
})

_NUMERIC_ONLY = re.compile(r"^[\d\s\-_.]+$")
_HTTP_METHOD = re.compile(r"\b(get|post|put|delete|patch)\b", re.I)
_VERB_LED = re.compile(
    r"^(get|post|put|delete|patch|create|update|list|fetch|retrieve)\s", re.I)
_ACTION_LED = re.compile(
    r"^(Get|Create|Update|Delete|Add|Remove|Set|Fetch|Generate|Send|Mark|Apply|List|Retrieve)\s")
_CAPITALIZED_PHRASE = re.compile(r"^[A-Z][a-z]+ .+")
_TITLE_THEN_LOWER = re.compile(r"^[A-Z][a-z]+\s[a-z]")
_SECTION_HEADER = re.compile(r"^[A-Z][a-zA-Z\s]*$")
_ACTION_SHAPE = re.compile(r"^[a-z]+\s[a-z]")


def is_external(href: str, hostname: str) -> bool:
    """
    True if ``href`` points off-site.

    Relative hrefs are internal. Absolute ones are internal when their host
    is the page host or a subdomain of it.
    """
    parsed = urlparse(href.strip())
    if not parsed.scheme and not parsed.netloc:
        return False
    if parsed.scheme and parsed.scheme not in ("http", "https"):
        return True

    host = (parsed.hostname or "").lower()
    hostname = hostname.lower()
    return not (host == hostname or host.endswith("." + hostname))


def is_documentation_link(href: str, current_path: str) -> bool:
    """Documentation-like href, or any internal path while already on a docs path."""
    if not href or href == "#" or is_special_href(href):
        return False

    if any(p in href or p in current_path for p in DOC_PATH_PATTERNS):
        return True

    return href.startswith("/") and "/docs" in current_path


def is_meaningful_link(text: str, href: str) -> bool:
    """Link text that names a content page rather than a UI control."""
    text = text.strip()
    if _MEANINGFUL_DENY.search(text):
        return False
    if len(text) < 2 or _NUMERIC_ONLY.match(text):
        return False

    href_lower = href.lower()
    if "/reference/" in href_lower or "/api/" in href_lower:
        return True

    has_good_pattern = bool(_MEANINGFUL_ALLOW.search(text)) or any(
        p in href_lower for p in ("api", "endpoint", "reference", "guide", "tutorial")
    )
    return has_good_pattern or len(text) > 5


def is_valid_documentation_link(text: str, href: str, hostname: str) -> bool:
    """General-purpose gate used by the sidebar and comprehensive strategies."""
    text = text.strip()
    if not href or not text or len(text) < 3 or len(text) > 200:
        return False
    if is_special_href(href):
        return False
    if _BOILERPLATE.search(text) or _BOILERPLATE.search(href):
        return False
    return not is_external(href, hostname)


def looks_like_endpoint(text: str) -> bool:
    """Text shaped like an API operation: an HTTP method, an action verb, or 'Verb object'."""
    return bool(
        _HTTP_METHOD.search(text)
        or _ACTION_LED.match(text)
        or _CAPITALIZED_PHRASE.match(text)
    )


def is_valid_endpoint(text: str, href: str) -> bool:
    """Endpoint page on an endpoint-per-page reference site."""
    text = text.strip()
    if "/reference/" not in href:
        return False
    if len(text) < 5 or len(text) > 100:
        return False
    if text.lower() in _GENERIC_TITLES:
        return False
    return looks_like_endpoint(text)


@dataclass
class LinkStructure:
    """Where a link sits in the navigation tree."""

    list_depth: int = 0
    expanded_ancestor: bool = False
    nested_class_ancestor: bool = False
    deep_sidebar: bool = False

    @property
    def nested(self) -> bool:
        return self.expanded_ancestor or self.nested_class_ancestor or self.deep_sidebar


async def gather_link_structure(element: ElementRef) -> LinkStructure:
    """Read the structural nesting signals of a live link."""
    return LinkStructure(
        list_depth=await element.list_depth(),
        expanded_ancestor=await element.closest('[aria-expanded="true"]') is not None,
        nested_class_ancestor=await element.closest(
            '[class*="nested"], [class*="sub"], [class*="child"]') is not None,
        deep_sidebar=await element.closest(".sidebar > div > div > div") is not None,
    )


def nesting_level(structure: LinkStructure, text: str) -> int:
    """
    Advisory 0-3 depth score.

    Starts from the number of enclosing lists. Nested containers and
    endpoint-shaped text raise it to at least 2; a short capitalized
    header shape sets shallow links to 1.
    """
    text = text.strip()
    level = structure.list_depth

    if structure.nested:
        level = max(level, 2)

    endpoint_text = (
        bool(_VERB_LED.match(text))
        or "API" in text
        or "endpoint" in text
        or bool(_TITLE_THEN_LOWER.match(text))
    )
    if endpoint_text:
        level = max(level, 2)

    if level < 2 and len(text) < 20 and _SECTION_HEADER.match(text):
        level = 1

    return min(level, 3)


def importance_score(title: str, href: str) -> int:
    """Ordering score: API/reference pages first, then verb-led titles, then guides."""
    text = title.lower()
    href = href.lower()
    score = 0

    if "/reference/" in href or "/api/" in href:
        score += 100
    if _VERB_LED.match(title):
        score += 50
    if "/docs/" in href or "/guide" in href:
        score += 30
    if "api" in text or "endpoint" in text:
        score += 20
    if _ACTION_SHAPE.match(text):
        score += 10

    return score


class LinkClassifier:
    """
    Composite link gate bound to the page's host and path.

    A link passes when it is internal, its text is not UI chrome, and it
    either carries an allow signal or lives under a documentation path.

    This is the diagnostic gate behind the ``analyze`` link count. Discovery
    strategies keep their own narrower predicates
    (``is_valid_documentation_link``, ``is_valid_endpoint`` and
    ``is_documentation_link`` with ``is_meaningful_link``).

    Example:
        >>> classifier = LinkClassifier("docs.example.com", "/docs")
        >>> classifier.accepts("Get Invoice", "/reference/get-invoice")
        True
        >>> classifier.accepts("Home", "/")
        False
    """

    def __init__(self, hostname: str, current_path: str = "/") -> None:
        self.hostname = hostname.lower()
        self.current_path = current_path

    def is_external(self, href: str) -> bool:
        return is_external(href, self.hostname)

    def is_boilerplate(self, text: str) -> bool:
        text = text.strip()
        return (
            len(text) < 2
            or bool(_NUMERIC_ONLY.match(text))
            or bool(_MEANINGFUL_DENY.search(text))
            or bool(_BOILERPLATE.search(text))
        )

    def has_allow_signal(self, text: str, href: str) -> bool:
        href_lower = href.lower()
        return (
            bool(_VERB_LED.match(text.strip()))
            or bool(_ACTION_LED.match(text.strip()))
            or "/reference/" in href_lower
            or "/api/" in href_lower
            or bool(re.search(r"\b(api|endpoint)\b", text, re.I))
        )

    def accepts(self, text: str, href: str) -> bool:
        if not text or not text.strip() or not href or is_special_href(href):
            return False
        if self.is_external(href):
            return False
        if self.is_boilerplate(text):
            return False
        if self.has_allow_signal(text, href):
            return True
        return any(p in href.lower() for p in DOC_PATH_PATTERNS)


async def count_documentation_links(env: Environment) -> int:
    """Number of anchors on the current page that LinkClassifier accepts."""
    location = await env.location()
    classifier = LinkClassifier(hostname_of(location), path_of(location))

    count = 0
    for link in await env.query_all("a[href]"):
        text = (await link.text()).strip()
        href = await link.get_attribute("href") or ""
        if classifier.accepts(text, href):
            count += 1
    return count
