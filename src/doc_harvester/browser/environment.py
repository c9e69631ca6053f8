"""
Capability surface the scraping core needs from a live page.

The core never touches Playwright directly. It talks to an ``Environment``
and the ``ElementRef`` handles it hands out, so discovery, navigation and
extraction can be exercised against an in-memory page in tests.

Element handles are short-lived: they are valid until the page mutates
and must not be stored beyond the current navigation attempt.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

# Attribute set on a cloned subtree for nodes whose computed style hides them
HIDDEN_MARKER = "data-harvester-hidden"

# Attribute stamped on disclosure controls once they have been activated
EXPANDED_MARKER = "data-harvester-expanded"


@dataclass
class FrameContent:
    """An embedded frame. ``html`` is None when the frame is not readable."""

    src: str
    html: str | None

    @property
    def accessible(self) -> bool:
        return self.html is not None


@dataclass
class ScrollMetrics:
    """Document height, viewport height and current vertical offset."""

    scroll_height: int
    viewport_height: int
    scroll_y: int = 0


@runtime_checkable
class ElementRef(Protocol):
    """Handle to one element of the live page."""

    async def text(self) -> str:
        """Raw text content of the element and its descendants."""
        ...

    async def tag_name(self) -> str:
        """Lower-cased tag name."""
        ...

    async def get_attribute(self, name: str) -> str | None:
        ...

    async def set_attribute(self, name: str, value: str) -> None:
        ...

    async def inner_html(self) -> str:
        ...

    async def snapshot_html(self) -> str:
        """Outer HTML with computed-invisible nodes carrying HIDDEN_MARKER."""
        ...

    async def is_visible(self) -> bool:
        ...

    async def is_connected(self) -> bool:
        """False once the element has been removed from the document."""
        ...

    async def scroll_into_view(self) -> None:
        ...

    async def activate(self) -> None:
        """Click the element."""
        ...

    async def dispatch_event(self, event_type: str) -> None:
        """Dispatch a bubbling synthetic event such as 'mousedown' or 'pointerup'."""
        ...

    async def press_key(self, key: str) -> None:
        """Focus the element and dispatch a keydown for ``key``."""
        ...

    async def closest(self, selector: str) -> "ElementRef | None":
        """Nearest ancestor-or-self matching ``selector``."""
        ...

    async def query_all(self, selector: str) -> "list[ElementRef]":
        """Descendants matching ``selector``, in document order."""
        ...

    async def contains(self, other: "ElementRef") -> bool:
        """True if ``other`` is this element or one of its descendants."""
        ...

    async def list_depth(self) -> int:
        """Number of enclosing ul/ol elements."""
        ...


@runtime_checkable
class Environment(Protocol):
    """The live page: location, document, frames and time."""

    async def location(self) -> str:
        """Current absolute URL."""
        ...

    async def title(self) -> str:
        """Document title, possibly empty."""
        ...

    def navigation_count(self) -> int:
        """Number of main-frame navigations observed so far."""
        ...

    async def query(self, selector: str) -> ElementRef | None:
        ...

    async def query_all(self, selector: str) -> list[ElementRef]:
        ...

    async def count(self, selector: str) -> int:
        """Number of matches; 0 for selectors the engine cannot parse."""
        ...

    async def body(self) -> ElementRef | None:
        ...

    async def push_location(self, url: str) -> None:
        """Push a history entry and notify listeners with a popstate event."""
        ...

    async def set_hash(self, fragment: str) -> None:
        """Set the location fragment, firing hashchange."""
        ...

    async def scroll_metrics(self) -> ScrollMetrics:
        ...

    async def scroll_to(self, y: int) -> None:
        ...

    async def framework_markers(self) -> set[str]:
        """
        Client-side routing signals present on the page.

        Any of "history" (history.pushState exists), "React", "Vue" and
        "Angular" (the framework global is defined).
        """
        ...

    async def frames(self) -> list[FrameContent]:
        """Embedded frames of the page, in document order."""
        ...

    async def wait(self, ms: int) -> None:
        """Suspend for ``ms`` milliseconds, yielding to the event loop."""
        ...
