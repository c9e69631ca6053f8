"""
Page discovery strategies.

Each strategy turns the current page plus its SiteProfile into an ordered
list of navigable items. Strategies differ in where they look for links
and how strictly they filter them; all of them resolve hrefs against the
page URL, drop duplicate URLs and order the result by importance.
"""

from abc import ABC, abstractmethod
from typing import Callable, Iterable

from doc_harvester.browser.environment import ElementRef, Environment
from doc_harvester.core.channels import DetailedProgress, LoggingChannel, ProgressChannel
from doc_harvester.core.types import DiscoveredLink, NavigableItem, SiteProfile
from doc_harvester.discovery.analyzer import KNOWN_SITES
from doc_harvester.discovery.classifier import (
    gather_link_structure,
    importance_score,
    is_documentation_link,
    is_external,
    is_meaningful_link,
    is_valid_documentation_link,
    is_valid_endpoint,
    nesting_level,
)
from doc_harvester.discovery.expansion import ExpansionEngine
from doc_harvester.utils.logging import get_logger
from doc_harvester.utils.urls import (
    hostname_of,
    is_special_href,
    normalize_url,
    path_of,
    resolve_href,
)

logger = get_logger(__name__)


LinkFilter = Callable[[str, str], bool]


def finalize_items(items: Iterable[NavigableItem]) -> list[NavigableItem]:
    """Drop repeated URLs (first occurrence wins) and stable-sort by importance."""
    seen: set[str] = set()
    unique = []
    for item in items:
        key = normalize_url(item.url)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)

    return sorted(unique, key=lambda i: -importance_score(i.title, i.href))


class DiscoveryStrategy(ABC):
    """
    Base class for discovery strategies.

    Subclasses implement ``collect``; ``discover`` wraps it with
    deduplication, ordering and progress reporting.
    """

    name = "base"

    def __init__(
        self,
        env: Environment,
        profile: SiteProfile,
        expansion: ExpansionEngine,
        channel: ProgressChannel | None = None,
    ) -> None:
        self.env = env
        self.profile = profile
        self.expansion = expansion
        self.channel = channel or LoggingChannel()

    @abstractmethod
    async def collect(self) -> list[NavigableItem]:
        """Gather candidate items in discovery order."""

    async def discover(self) -> list[NavigableItem]:
        items = finalize_items(await self.collect())

        logger.info(f"{self.name} strategy found {len(items)} pages")
        self.channel.detailed(DetailedProgress(
            found_links=len(items),
            current_action=f"Discovery complete: {len(items)} pages",
            action=f"Found {len(items)} total pages",
            action_type="success" if items else "warning",
        ))
        return items

    async def harvest(
        self,
        links: Iterable[ElementRef],
        accept: LinkFilter,
        selector: str = "",
    ) -> list[DiscoveredLink]:
        """Turn live anchors that pass ``accept(text, href)`` into items."""
        base_url = await self.env.location()
        found = []
        for link in links:
            href = (await link.get_attribute("href") or "").strip()
            text = (await link.text()).strip()
            if not href or not text or not accept(text, href):
                continue
            found.append(DiscoveredLink(
                title=text,
                url=resolve_href(base_url, href),
                href=href,
                element=link,
                selector=selector,
            ))
        return found

    async def hostname(self) -> str:
        return hostname_of(await self.env.location())


class ComprehensiveStrategy(DiscoveryStrategy):
    """Expand everything, then accept any valid internal documentation link."""

    name = "comprehensive"

    async def collect(self) -> list[NavigableItem]:
        await self.expansion.expand()
        hostname = await self.hostname()

        selectors = ["a"]
        api_selector = self.profile.selector_for("apiEndpoints")
        if api_selector:
            selectors.insert(0, api_selector)

        items: list[NavigableItem] = []
        seen_titles: set[str] = set()
        for selector in selectors:
            links = await self.harvest(
                await self.env.query_all(selector),
                lambda text, href: is_valid_documentation_link(text, href, hostname),
                selector,
            )
            for link in links:
                if link.title in seen_titles:
                    continue
                seen_titles.add(link.title)
                items.append(link)
        return items


class ExpandableSidebarStrategy(DiscoveryStrategy):
    """Expand the profiled disclosure controls and read the primary navigation area."""

    name = "expandable-sidebar"

    async def collect(self) -> list[NavigableItem]:
        navigation = await self._primary_navigation()
        if navigation is None:
            logger.warning("No primary navigation found, falling back to comprehensive")
            return await ComprehensiveStrategy(
                self.env, self.profile, self.expansion, self.channel).collect()

        await self.expansion.expand_descriptors(self.profile.expandable_elements)
        await self.expansion.expand(scope=navigation)

        hostname = await self.hostname()
        return await self.harvest(
            await navigation.query_all("a[href]"),
            lambda text, href: is_valid_documentation_link(text, href, hostname),
            self.profile.navigation_areas[0].selector,
        )

    async def _primary_navigation(self) -> ElementRef | None:
        if not self.profile.navigation_areas:
            return None
        area = self.profile.navigation_areas[0]
        elements = await self.env.query_all(area.selector)
        if area.index >= len(elements):
            return None
        return elements[area.index]


class ApiReferenceStrategy(DiscoveryStrategy):
    """Collect links matching API-specific href and container patterns."""

    name = "api-reference"

    SELECTORS = [
        'a[href*="/api/"]',
        'a[href*="/reference/"]',
        'a[href*="/endpoint"]',
        ".api-method a",
        ".endpoint a",
    ]

    async def collect(self) -> list[NavigableItem]:
        await self.expansion.expand()
        hostname = await self.hostname()

        def accept(text: str, href: str) -> bool:
            return not is_special_href(href) and not is_external(href, hostname)

        items: list[NavigableItem] = []
        for selector in self.SELECTORS:
            items.extend(await self.harvest(await self.env.query_all(selector), accept, selector))
        return items


# Navigation containers whose anchors may lead to documentation pages
NAVIGATION_LINK_SELECTORS = [
    "nav a[href]",
    ".sidebar a[href]",
    "aside a[href]",
    "ul ul a[href]",
    "li li a[href]",
    ".sidebar ul li a[href]",
    "nav ul li a[href]",
    '[aria-expanded="true"] + * a[href]',
    '[aria-expanded="true"] ~ * a[href]',
    ".nav-item a[href]",
    ".docs-nav a[href]",
    ".menu-item a[href]",
    '[class*="sidebar"] a[href]',
    '[class*="nav"] a[href]',
    '[class*="endpoint"] a[href]',
    '[class*="api"] a[href]',
    '[class*="method"] a[href]',
]


async def _navigation_links(strategy: DiscoveryStrategy) -> list[DiscoveredLink]:
    """
    Documentation links from navigation containers, with their nesting level.

    The selectors overlap; each URL is reported once, for the first
    selector that matched it.
    """
    current_path = path_of(await strategy.env.location())

    def accept(text: str, href: str) -> bool:
        return is_documentation_link(href, current_path) and is_meaningful_link(text, href)

    found = []
    seen: set[str] = set()
    for selector in NAVIGATION_LINK_SELECTORS:
        elements = await strategy.env.query_all(selector)
        for link in await strategy.harvest(elements, accept, selector):
            key = normalize_url(link.url)
            if key in seen:
                continue
            seen.add(key)
            structure = await gather_link_structure(link.element)
            link.nesting_level = nesting_level(structure, link.title)
            found.append(link)
    return found


class SinglePageAppStrategy(DiscoveryStrategy):
    """Expand everything and read every navigation container, hash links included."""

    name = "single-page-app"

    async def collect(self) -> list[NavigableItem]:
        await self.expansion.expand()
        return list(await _navigation_links(self))


class LegacyDiscovery(DiscoveryStrategy):
    """
    Strategy-agnostic fallback.

    Runs fixpoint expansion, then harvests navigation links bucketed by
    nesting level. Deep links (level 2 and up) are the content pages on
    most reference sites; section-level links are added only when fewer
    than ``MIN_DEEP_LINKS`` deep links turned up.
    """

    name = "legacy"

    MIN_DEEP_LINKS = 5

    async def collect(self) -> list[NavigableItem]:
        await self.expansion.expand()
        links = await _navigation_links(self)

        deep = [link for link in links if link.nesting_level >= 2]
        sections = [link for link in links if link.nesting_level == 1]
        other = len(links) - len(deep) - len(sections)
        logger.info(
            f"Link levels: {len(sections)} section, {len(deep)} deep, {other} other")

        items: list[NavigableItem] = list(deep)
        if len(deep) < self.MIN_DEEP_LINKS:
            items.extend(sections)
        return items


# Known sites: (link selector, endpoint filter)
SITE_RULES: dict[str, tuple[str, LinkFilter]] = {
    "subskribe": ('a[href*="/reference/"]', is_valid_endpoint),
}


class SiteSpecificStrategy(DiscoveryStrategy):
    """Tuned discovery for sites with a known navigation layout."""

    name = "site-specific"

    async def collect(self) -> list[NavigableItem]:
        selector, accept = SITE_RULES[self.profile.site_type]

        self.channel.detailed(DetailedProgress(
            current_action=f"{self.profile.site_type}-optimized discovery starting...",
        ))
        await self.expansion.expand()

        items: list[NavigableItem] = []
        seen_titles: set[str] = set()
        for link in await self.harvest(await self.env.query_all(selector), accept, selector):
            key = link.title.lower()
            if key in seen_titles:
                continue
            seen_titles.add(key)
            items.append(link)
        return items


def select_strategy(
    profile: SiteProfile,
    env: Environment,
    expansion: ExpansionEngine,
    channel: ProgressChannel | None = None,
) -> DiscoveryStrategy:
    """
    Pick the discovery strategy for a profile. First matching rule wins:
    known site, expandable sidebar, API reference, single-page app, then
    the comprehensive catch-all.
    """
    if profile.site_type in KNOWN_SITES.values() and profile.site_type in SITE_RULES:
        strategy_class: type[DiscoveryStrategy] = SiteSpecificStrategy
    elif profile.navigation_style == "sidebar-expandable":
        strategy_class = ExpandableSidebarStrategy
    elif profile.content_pattern == "api-reference":
        strategy_class = ApiReferenceStrategy
    elif profile.content_pattern == "single-page-app":
        strategy_class = SinglePageAppStrategy
    else:
        strategy_class = ComprehensiveStrategy

    logger.info(f"Using {strategy_class.name} discovery strategy")
    return strategy_class(env, profile, expansion, channel)
