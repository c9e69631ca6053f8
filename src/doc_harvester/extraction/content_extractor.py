"""
Main content extraction.

Finds the content-bearing regions of the current page, walks each one in
document order, and turns it into lightly formatted plain text: markdown
style headings and list markers, blank lines between blocks, and optional
inline links. Navigation chrome, scripts and hidden nodes are skipped.
"""

import re

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import CData, Comment, Declaration, Doctype, ProcessingInstruction

from doc_harvester.browser.environment import HIDDEN_MARKER, ElementRef, Environment
from doc_harvester.config.settings import ScrapeOptions
from doc_harvester.core.exceptions import CrossOriginAccessDenied, ExtractionError
from doc_harvester.core.types import ExtractedPage, count_words
from doc_harvester.utils.logging import get_logger

logger = get_logger(__name__)


_INLINE_SPACE = re.compile(r"[ \t\f\v\r\u00a0]+")
_SPACE_AROUND_NEWLINE = re.compile(r" *\n *")
_EXTRA_BLANK_LINES = re.compile(r"\n{3,}")
_HIDDEN_STYLE = re.compile(r"(display\s*:\s*none|visibility\s*:\s*hidden)", re.I)
_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")

_NON_TEXT_STRINGS = (Comment, CData, Declaration, Doctype, ProcessingInstruction)


def normalize_text(text: str) -> str:
    """
    Collapse whitespace runs, strip spaces around line breaks, cap blank
    lines at one, and trim. Idempotent.
    """
    text = _INLINE_SPACE.sub(" ", text)
    text = _SPACE_AROUND_NEWLINE.sub("\n", text)
    text = _EXTRA_BLANK_LINES.sub("\n\n", text)
    return text.strip()


def is_hidden(tag: Tag) -> bool:
    """True if the node was computed invisible or is hidden by markup."""
    if tag.has_attr(HIDDEN_MARKER) or tag.has_attr("hidden"):
        return True
    style = tag.get("style")
    return bool(style and _HIDDEN_STYLE.search(style))


class _TextWalker:
    """Accumulates formatted text for one subtree."""

    SKIP_TAGS = frozenset({"script", "style", "noscript", "iframe", "object", "embed"})
    BLOCK_TAGS = frozenset({"p", "div", "section", "article"})
    HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})

    def __init__(self, include_links: bool) -> None:
        self.include_links = include_links
        self.parts: list[str] = []
        self.last_tag = ""

    def walk(self, node: Tag) -> None:
        for child in node.children:
            if isinstance(child, Tag):
                self._visit(child)
            elif isinstance(child, NavigableString) and not isinstance(child, _NON_TEXT_STRINGS):
                text = child.strip()
                if text:
                    self.parts.append(text + " ")

    def _visit(self, tag: Tag) -> None:
        name = tag.name.lower()
        if name in self.SKIP_TAGS or is_hidden(tag):
            return

        if name in self.HEADING_TAGS:
            self.parts.append("\n\n" + "#" * int(name[1]) + " ")
        elif name in self.BLOCK_TAGS and self.last_tag != name:
            self.parts.append("\n\n")
        elif name == "br":
            self.parts.append("\n")
        elif name == "li":
            self.parts.append("\n- ")

        self.last_tag = name

        if name == "a" and self.include_links and self._render_link(tag):
            return

        self.walk(tag)

    def _render_link(self, tag: Tag) -> bool:
        # Only absolute targets render; relative ones keep their text
        href = (tag.get("href") or "").strip()
        if not href.startswith(("http://", "https://")):
            return False

        link_text = " ".join(tag.get_text(" ").split())
        if not link_text:
            return False

        self.parts.append(f"[{link_text}]({href}) ")
        return True

    def result(self) -> str:
        return normalize_text("".join(self.parts))


class ContentExtractor:
    """
    Extracts page text through an Environment.

    Example:
        >>> extractor = ContentExtractor()
        >>> page = await extractor.extract_page(env, ScrapeOptions())
        >>> print(page.title, page.word_count)
    """

    # Candidate content regions, most specific first
    CONTENT_SELECTORS = [
        "main",
        '[role="main"]',
        ".main-content",
        ".content",
        ".post-content",
        ".entry-content",
        ".article-content",
        "article",
        ".documentation",
        ".docs",
        "#content",
        "#main",
        ".container",
        ".wrapper",
    ]

    # Tag, class or id tokens that mark site chrome
    CHROME_KEYWORDS = frozenset({
        "nav", "header", "footer", "sidebar", "menu",
        "advertisement", "ad", "banner", "popup",
    })

    MIN_REGION_LENGTH = 100

    def extract_text(
        self,
        html: str,
        include_links: bool = True,
    ) -> str:
        """
        Convert the children of a serialized subtree into formatted text.

        Args:
            html: Outer HTML of the subtree root
            include_links: Render anchors whose raw href is absolute http(s)
                as [text](href)

        Returns:
            Normalized text
        """
        soup = BeautifulSoup(html, "html.parser")
        root = next((c for c in soup.children if isinstance(c, Tag)), None)
        if root is None:
            return normalize_text(soup.get_text(" "))

        walker = _TextWalker(include_links)
        walker.walk(root)
        return walker.result()

    async def extract_title(self, env: Environment) -> str:
        """Document title, then first h1, then og:title, then a placeholder."""
        title = (await env.title() or "").strip()
        if title:
            return title

        h1 = await env.query("h1")
        if h1 is not None:
            text = (await h1.text()).strip()
            if text:
                return text

        meta = await env.query('meta[property="og:title"]')
        if meta is not None:
            content = await meta.get_attribute("content")
            if content and content.strip():
                return content.strip()

        return "Untitled Page"

    async def is_content_region(self, element: ElementRef) -> bool:
        """Enough text, and no chrome keyword among its tag, class or id tokens."""
        if len((await element.text()).strip()) < self.MIN_REGION_LENGTH:
            return False

        descriptor = " ".join([
            await element.tag_name(),
            await element.get_attribute("class") or "",
            await element.get_attribute("id") or "",
        ]).lower()
        tokens = set(_TOKEN_SPLIT.split(descriptor))
        return not (tokens & self.CHROME_KEYWORDS)

    async def find_main_regions(self, env: Environment) -> list[ElementRef]:
        """
        Content regions of the page, falling back to the body.

        Where matches nest, only the smaller (more specific) one is kept.
        """
        candidates: list[ElementRef] = []
        for selector in self.CONTENT_SELECTORS:
            for element in await env.query_all(selector):
                if await self.is_content_region(element):
                    candidates.append(element)

        if not candidates:
            body = await env.body()
            return [body] if body is not None else []

        return await self._drop_nested(candidates)

    async def _drop_nested(self, elements: list[ElementRef]) -> list[ElementRef]:
        result: list[ElementRef] = []
        lengths: list[int] = []

        for element in elements:
            length = len(await element.text())
            for i, existing in enumerate(result):
                if await existing.contains(element) or await element.contains(existing):
                    if length < lengths[i]:
                        result[i] = element
                        lengths[i] = length
                    break
            else:
                result.append(element)
                lengths.append(length)

        return result

    async def extract_embedded(self, env: Environment, include_links: bool = True) -> str:
        """
        Text of embedded frames.

        Readable frames contribute their text; restricted ones a placeholder.
        """
        sections = []
        for frame in await env.frames():
            try:
                if not frame.accessible:
                    raise CrossOriginAccessDenied("Frame is cross-origin", src=frame.src)
                text = self.extract_text(frame.html, include_links)
                if text:
                    sections.append(f"### Embedded Frame: {frame.src or 'Unknown'}\n\n{text}")
            except CrossOriginAccessDenied as e:
                logger.debug(str(e))
                if frame.src:
                    sections.append(f"### Embedded Frame (Restricted Access): {frame.src}")

        return "\n\n".join(sections)

    async def extract_page(
        self,
        env: Environment,
        options: ScrapeOptions | None = None,
    ) -> ExtractedPage:
        """
        Extract the current page.

        Args:
            env: The live page
            options: Link and embedded-frame inclusion

        Returns:
            ExtractedPage with normalized content

        Raises:
            ExtractionError: If the page has neither a content region nor a body
        """
        options = options or ScrapeOptions()
        url = await env.location()
        title = await self.extract_title(env)

        regions = await self.find_main_regions(env)
        if not regions:
            raise ExtractionError("Page has no readable body", url=url)

        blocks = []
        for region in regions:
            text = self.extract_text(
                await region.snapshot_html(), options.include_links)
            if text:
                blocks.append(text)

        if options.include_embedded:
            embedded = await self.extract_embedded(env, options.include_links)
            if embedded:
                blocks.append(f"## Embedded Content\n\n{embedded}")

        content = normalize_text("\n\n".join(blocks))
        logger.debug(f"Extracted {len(content)} chars from {url} ({len(blocks)} blocks)")

        return ExtractedPage(
            url=url,
            title=title,
            content=content,
            word_count=count_words(content),
            sections_count=len(blocks),
        )
