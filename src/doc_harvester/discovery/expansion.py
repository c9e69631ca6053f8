"""
Disclosure expansion.

Reveals collapsed navigation before link discovery by activating every
control that looks like a disclosure toggle, in rounds, until a round
activates nothing or the round budget runs out. Activated controls are
stamped so a second pass over the same tree does nothing.
"""

import re

from doc_harvester.browser.environment import EXPANDED_MARKER, ElementRef, Environment
from doc_harvester.config.settings import TimingSettings
from doc_harvester.core.channels import DetailedProgress, LoggingChannel, ProgressChannel
from doc_harvester.core.exceptions import TransientActivationFailure
from doc_harvester.core.types import ExpandableDescriptor
from doc_harvester.utils.logging import get_logger
from doc_harvester.utils.metrics import ACTIVATION_FAILURES, ELEMENTS_EXPANDED, Metrics

logger = get_logger(__name__)


_SECTION_HEADER = re.compile(r"^[A-Z][a-zA-Z\s]+$")

# Markup fragments that indicate a disclosure icon
_ICON_MARKERS = ("▶", "▸", "►", "›", "chevron", "arrow", "caret", "plus", "+")

_HIDDEN_CHILDREN = (
    'ul[style*="display: none"], ul[style*="display:none"], ul[hidden], '
    '.hidden, [aria-hidden="true"]'
)


class ExpansionEngine:
    """
    Activates disclosure controls until the navigation tree stops changing.

    Example:
        >>> engine = ExpansionEngine(env, settings.timing)
        >>> revealed = await engine.expand()
    """

    DISCLOSURE_SELECTORS = [
        'button[aria-expanded="false"]',
        '[aria-expanded="false"]',
        "details:not([open]) > summary",
        '[data-testid="sidebar-item"] button',
        ".sidebar button",
        ".navigation button",
        ".docs-nav button",
        ".menu button",
        "nav li button",
        ".nav-item button",
        "li > button",
        'li > a[href="#"]',
        ".expandable",
        ".collapsible",
        ".accordion-header",
        ".dropdown-toggle",
        '[class*="expand"]',
        '[class*="collapse"]',
        '[class*="toggle"]',
        'nav [role="button"]',
        '.sidebar [role="button"]',
        '[class*="sidebar"] li [role="button"]',
    ]

    MAX_TEXT_LENGTH = 50

    def __init__(
        self,
        env: Environment,
        timing: TimingSettings | None = None,
        channel: ProgressChannel | None = None,
    ) -> None:
        self.env = env
        self.timing = timing or TimingSettings()
        self.channel = channel or LoggingChannel()
        self.total_expanded = 0

    async def expand(self, scope: ElementRef | None = None) -> int:
        """
        Run expansion rounds.

        Args:
            scope: Restrict the search to this subtree. None searches the page.

        Returns:
            Number of controls activated by this call
        """
        rounds = self.timing.expansion_rounds
        expanded = 0

        self.channel.detailed(DetailedProgress(
            current_action="Expanding navigation sections...",
            expanded_count=self.total_expanded,
        ))

        for round_number in range(1, rounds + 1):
            self.channel.detailed(DetailedProgress(
                current_action=f"Round {round_number}/{rounds}: finding expandable sections...",
            ))

            activated = 0
            for selector in self.DISCLOSURE_SELECTORS:
                elements = (
                    await scope.query_all(selector) if scope is not None
                    else await self.env.query_all(selector)
                )
                for element in elements:
                    if await self._try_expand(element):
                        activated += 1

            expanded += activated
            logger.info(f"Expansion round {round_number}/{rounds}: {activated} activated")
            self.channel.detailed(DetailedProgress(
                action=f"Round {round_number}: expanded {activated} elements",
                action_type="success" if activated else "warning",
            ))

            if activated == 0:
                break
            if round_number < rounds:
                await self.env.wait(self.timing.expansion_round_pause_ms)

        await self.env.wait(self.timing.expansion_final_settle_ms)
        self.channel.detailed(DetailedProgress(
            current_action="Expansion complete, discovering links...",
            expanded_count=self.total_expanded,
        ))
        return expanded

    async def expand_descriptors(self, descriptors: tuple[ExpandableDescriptor, ...]) -> int:
        """Activate controls recorded during site analysis, re-resolved by selector and index."""
        expanded = 0
        for descriptor in descriptors:
            elements = await self.env.query_all(descriptor.selector)
            if descriptor.index >= len(elements):
                continue
            if await self._try_expand(elements[descriptor.index]):
                expanded += 1

        if expanded:
            await self.env.wait(self.timing.expansion_final_settle_ms)
        return expanded

    async def _try_expand(self, element: ElementRef) -> bool:
        try:
            if not await self.should_activate(element):
                return False
            await self._activate(element)
        except TransientActivationFailure as e:
            Metrics.get().increment(ACTIVATION_FAILURES)
            logger.debug(f"Activation skipped: {e}")
            return False
        except Exception as e:
            # Detached or replaced nodes fail any read
            Metrics.get().increment(ACTIVATION_FAILURES)
            logger.debug(f"Element no longer usable: {e}")
            return False
        return True

    async def should_activate(self, element: ElementRef) -> bool:
        """
        A control is activated when it is not yet expanded, has short text,
        is not a real link, and shows a disclosure signature.
        """
        if not await element.is_connected():
            return False
        if await element.get_attribute(EXPANDED_MARKER) is not None:
            return False

        aria_expanded = await element.get_attribute("aria-expanded")
        if aria_expanded == "true":
            return False

        tag = await element.tag_name()
        if tag == "summary":
            details = await element.closest("details")
            if details is not None and await details.get_attribute("open") is not None:
                return False

        text = (await element.text()).strip()
        if not 0 < len(text) < self.MAX_TEXT_LENGTH:
            return False

        if tag == "a":
            href = (await element.get_attribute("href") or "").strip()
            if href and href != "#" and not href.lower().startswith("javascript:"):
                return False

        return await self._has_disclosure_signature(element, tag, text, aria_expanded)

    async def _has_disclosure_signature(
        self,
        element: ElementRef,
        tag: str,
        text: str,
        aria_expanded: str | None,
    ) -> bool:
        if aria_expanded == "false" or tag in ("summary", "details"):
            return True

        classes = (await element.get_attribute("class") or "").lower().split()
        if "collapsed" in classes:
            return True

        markup = (await element.inner_html()).lower()
        if any(marker in markup for marker in _ICON_MARKERS):
            return True

        item = await element.closest("li")
        if item is not None and await item.query_all(_HIDDEN_CHILDREN):
            return True

        return 3 < len(text) < 30 and bool(_SECTION_HEADER.match(text))

    async def _activate(self, element: ElementRef) -> None:
        text = (await element.text()).strip()

        await element.scroll_into_view()
        await self.env.wait(self.timing.expansion_scroll_settle_ms)
        await element.activate()
        await element.set_attribute(EXPANDED_MARKER, "true")

        self.total_expanded += 1
        Metrics.get().increment(ELEMENTS_EXPANDED)
        logger.debug(f"Expanded {text[:30]!r}")
        self.channel.detailed(DetailedProgress(
            action=f"Expanding: {text[:20]}",
            current_action=f"Expanding section: {text[:25]}...",
            expanded_count=self.total_expanded,
        ))

        await self.env.wait(self.timing.expansion_animation_ms)
