"""
Site structure analysis.

Classifies the current page's documentation generator, navigation idiom
and content organization by running fixed batteries of selector counts
and metadata tests. Classification is read-only and never raises: a check
that fails counts as "no signal", and a battery with no signal reports
"unknown".
"""

import re
from collections import defaultdict
from dataclasses import replace
from typing import Awaitable, Callable

from doc_harvester.browser.environment import Environment
from doc_harvester.core.types import (
    ExpandableDescriptor,
    LinkPattern,
    NavigationArea,
    SelectorMatch,
    SiteProfile,
)
from doc_harvester.utils.logging import get_logger
from doc_harvester.utils.urls import hostname_of, path_of

logger = get_logger(__name__)


UNKNOWN = "unknown"

# Hosts handled by a dedicated discovery strategy
KNOWN_SITES = {
    "subskribe": "subskribe",
}

# (style, selector, threshold): a style matches when its count exceeds the threshold
NAVIGATION_STYLE_TESTS = [
    ("sidebar-expandable", ".sidebar [aria-expanded], nav [aria-expanded]", 3),
    ("sidebar-static", ".sidebar ul li, nav ul li", 10),
    ("top-nav-dropdown", "header .dropdown, .top-nav .dropdown", 2),
    ("accordion", "details, .accordion, [data-accordion]", 3),
    ("tree-nav", '.tree, [role="tree"], .nav-tree', 0),
    ("tabbed", '[role="tab"], .tabs, .tab-nav', 3),
    ("mega-menu", ".mega-menu, .large-nav", 0),
    ("simple-list", "nav ul, .nav ul", 0),
]

# (pattern, selector, threshold), checked in order after the SPA test
CONTENT_PATTERN_TESTS = [
    ("multi-page-static", 'a[href^="/"], a[href*="html"]', 10),
    ("hash-routing", 'a[href^="#"]', 5),
    ("api-reference", 'a[href*="/reference/"], a[href*="/api/"]', 5),
    ("guide-based", 'a[href*="/guide"], a[href*="/tutorial"]', 3),
    ("wiki-style", 'a[href*="/wiki/"], .wiki', 0),
]

NAVIGATION_AREA_SELECTORS = [
    "nav", ".navigation", ".nav", ".sidebar", ".side-nav",
    ".docs-nav", ".menu", ".toc", ".table-of-contents",
    "aside", ".aside", '[role="navigation"]', ".nav-menu",
]

EXPANDABLE_SELECTORS = [
    "details",
    '[aria-expanded="false"]',
    ".expandable",
    ".collapsible",
    ".accordion-item",
    "button[aria-expanded]",
    ".dropdown-toggle",
    ".nav-toggle",
]

SPECIAL_SELECTOR_TESTS = {
    "mainNavigation": ["nav", ".sidebar", ".navigation", ".docs-nav", ".menu"],
    "sectionHeaders": ["h1", "h2", ".section-header", ".nav-header", ".category-header"],
    "apiEndpoints": ['a[href*="/api/"]', 'a[href*="/reference/"]', ".endpoint", ".api-method"],
    "contentArea": ["main", ".content", ".main-content", ".docs-content", '[role="main"]'],
    "expandButtons": ["[aria-expanded]", "details summary", ".expand-btn", ".toggle"],
}

SPA_ROOT_SELECTOR = "[data-react-root], [data-reactroot], #root, #app"
SPA_SCRIPT_SELECTOR = 'script[src*="react"], script[src*="vue"], script[src*="angular"]'

_LAST_SEGMENT = re.compile(r"/[^/]*$")
_DIGITS = re.compile(r"\d+")


class SiteStructureAnalyzer:
    """
    Builds a SiteProfile for the page an Environment is showing.

    Example:
        >>> profile = await SiteStructureAnalyzer(env).analyze()
        >>> profile.navigation_style
        'sidebar-expandable'
    """

    def __init__(self, env: Environment) -> None:
        self.env = env

    async def analyze(self) -> SiteProfile:
        """Run every battery and assemble the profile."""
        site_type = await self._safe(self.detect_site_type, UNKNOWN)
        navigation_style = await self._safe(self.detect_navigation_style, UNKNOWN)
        content_pattern = await self._safe(self.detect_content_pattern, UNKNOWN)
        areas = await self._safe(self.find_navigation_areas, [])
        expandables = await self._safe(self.find_expandable_elements, [])
        link_patterns = await self._safe(self.analyze_link_patterns, [])
        special = await self._safe(self.find_special_selectors, [])

        profile = SiteProfile(
            site_type=site_type,
            navigation_style=navigation_style,
            content_pattern=content_pattern,
            navigation_areas=tuple(areas),
            expandable_elements=tuple(expandables),
            link_patterns=tuple(link_patterns),
            special_selectors=tuple(special),
        )
        profile = _with_confidence(profile)

        logger.info(
            f"Site analysis: type={profile.site_type} "
            f"navigation={profile.navigation_style} "
            f"content={profile.content_pattern} "
            f"confidence={profile.confidence}%"
        )
        return profile

    async def _safe(self, check: Callable[[], Awaitable], default):
        try:
            return await check()
        except Exception as e:
            logger.debug(f"Analysis check {check.__name__} failed: {e}")
            return default

    async def _count(self, selector: str) -> int:
        try:
            return await self.env.count(selector)
        except Exception as e:
            logger.debug(f"Count of {selector!r} failed: {e}")
            return 0

    async def detect_site_type(self) -> str:
        url = await self.env.location()
        hostname = hostname_of(url)
        pathname = path_of(url).lower()
        title = (await self.env.title() or "").lower()

        body = await self.env.body()
        body_classes = ((await body.get_attribute("class")) or "").lower() if body else ""

        for marker, site in KNOWN_SITES.items():
            if marker in hostname:
                return site

        # (site type, metadata match, marker element selector)
        tests = [
            ("gitbook", "gitbook" in hostname or "gitbook" in body_classes, None),
            ("notion", "notion" in hostname or "notion" in body_classes, None),
            ("confluence", "confluence" in hostname or "confluence" in body_classes, None),
            ("gitiles", "gitiles" in hostname or "gitiles" in pathname, None),
            ("sphinx", "sphinx" in body_classes, ".sphinxsidebar"),
            ("mkdocs", "mkdocs" in body_classes, ".md-nav"),
            ("docusaurus", "docusaurus" in body_classes, "[data-theme]"),
            ("readme", "readme." in hostname or "readme" in body_classes, None),
            ("intercom", "intercom" in hostname or "intercom" in body_classes, None),
            ("zendesk", "zendesk" in hostname or "zendesk" in body_classes, None),
            ("slate", "slate" in body_classes, ".slate"),
            ("swagger", "swagger" in title, ".swagger-ui"),
            ("redoc", "redoc" in body_classes, "redoc"),
            ("postman", "postman" in hostname or "postman" in body_classes, None),
            ("custom-docs", any(p in pathname for p in ("/docs", "/reference", "/api")), None),
        ]

        for site_type, matched, marker in tests:
            if matched or (marker and await self._count(marker) > 0):
                return site_type

        if any(word in title for word in ("docs", "documentation", "api")):
            return "generic-docs"

        return UNKNOWN

    async def detect_navigation_style(self) -> str:
        """Highest-count style among those over their threshold."""
        best_style = UNKNOWN
        best_count = 0

        for style, selector, threshold in NAVIGATION_STYLE_TESTS:
            count = await self._count(selector)
            if count > threshold and count > best_count:
                best_style = style
                best_count = count

        return best_style

    async def is_single_page_app(self) -> bool:
        """At least two of five client-side routing indicators."""
        markers = await self.env.framework_markers()
        path = path_of(await self.env.location())

        indicators = [
            "history" in markers,
            await self._count(SPA_ROOT_SELECTOR) > 0,
            bool(markers & {"React", "Vue", "Angular"}),
            await self._count(SPA_SCRIPT_SELECTOR) > 0,
            "/docs" in path and await self._count('a[href^="#"]') > 5,
        ]
        detected = sum(indicators)
        logger.debug(f"SPA detection: {detected}/5 indicators")
        return detected >= 2

    async def detect_content_pattern(self) -> str:
        if await self.is_single_page_app():
            return "single-page-app"

        for pattern, selector, threshold in CONTENT_PATTERN_TESTS:
            if await self._count(selector) > threshold:
                return pattern

        return UNKNOWN

    async def find_navigation_areas(self) -> list[NavigationArea]:
        areas = []
        for selector in NAVIGATION_AREA_SELECTORS:
            for index, element in enumerate(await self.env.query_all(selector)):
                link_count = len(await element.query_all("a"))
                if link_count > 3:
                    expandable_count = len(await element.query_all(
                        "[aria-expanded], details, .expandable"))
                    areas.append(NavigationArea(
                        selector=selector,
                        index=index,
                        link_count=link_count,
                        expandable_count=expandable_count,
                    ))

        areas.sort(key=lambda a: a.link_count, reverse=True)
        return areas

    async def find_expandable_elements(self) -> list[ExpandableDescriptor]:
        expandables = []
        for selector in EXPANDABLE_SELECTORS:
            for index, element in enumerate(await self.env.query_all(selector)):
                text = (await element.text()).strip()
                if 0 < len(text) < 100:
                    expandables.append(ExpandableDescriptor(
                        selector=selector,
                        index=index,
                        text=text,
                        tag=await element.tag_name(),
                    ))
        return expandables

    async def analyze_link_patterns(self) -> list[LinkPattern]:
        """Group hrefs by directory with digits generalized to ID; keep groups over 2."""
        groups: dict[str, list[str]] = defaultdict(list)

        for link in await self.env.query_all("a[href]"):
            href = await link.get_attribute("href")
            text = (await link.text()).strip()
            if href and text:
                pattern = _DIGITS.sub("ID", _LAST_SEGMENT.sub("/", href))
                groups[pattern].append(href)

        patterns = [
            LinkPattern(pattern=p, count=len(hrefs), examples=tuple(hrefs[:3]))
            for p, hrefs in groups.items()
            if len(hrefs) > 2
        ]
        patterns.sort(key=lambda p: p.count, reverse=True)
        return patterns

    async def find_special_selectors(self) -> list[SelectorMatch]:
        matches = []
        for role, candidates in SPECIAL_SELECTOR_TESTS.items():
            best_selector = None
            best_count = 0
            for selector in candidates:
                count = await self._count(selector)
                if count > best_count:
                    best_selector = selector
                    best_count = count
            if best_selector is not None:
                matches.append(SelectorMatch(role=role, selector=best_selector, count=best_count))
        return matches


def _with_confidence(profile: SiteProfile) -> SiteProfile:
    confidence = 0
    if profile.site_type != UNKNOWN:
        confidence += 25
    if profile.navigation_style != UNKNOWN:
        confidence += 25
    if profile.content_pattern != UNKNOWN:
        confidence += 20
    if profile.navigation_areas:
        confidence += 15
    if profile.expandable_elements:
        confidence += 10
    if profile.link_patterns:
        confidence += 5

    return replace(profile, confidence=confidence)

