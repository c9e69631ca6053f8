"""
Navigation module for doc-harvester.

Moves the live page to discovered items and waits for late content.
"""

from doc_harvester.navigation.engine import (
    NavigationEngine,
    PageState,
    main_content_snapshot,
)

__all__ = [
    "NavigationEngine",
    "PageState",
    "main_content_snapshot",
]
