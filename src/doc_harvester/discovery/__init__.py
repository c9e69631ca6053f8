"""
Discovery module for doc-harvester.

Finds the pages of a documentation site:
- Site structure analysis
- Disclosure expansion
- Link classification
- Adaptive discovery strategies
"""

from doc_harvester.discovery.analyzer import SiteStructureAnalyzer
from doc_harvester.discovery.classifier import (
    LinkClassifier,
    LinkStructure,
    count_documentation_links,
    gather_link_structure,
    importance_score,
    is_documentation_link,
    is_external,
    is_meaningful_link,
    is_valid_documentation_link,
    is_valid_endpoint,
    looks_like_endpoint,
    nesting_level,
)
from doc_harvester.discovery.expansion import ExpansionEngine
from doc_harvester.discovery.strategies import (
    DiscoveryStrategy,
    ComprehensiveStrategy,
    ExpandableSidebarStrategy,
    ApiReferenceStrategy,
    SinglePageAppStrategy,
    SiteSpecificStrategy,
    LegacyDiscovery,
    finalize_items,
    select_strategy,
)

__all__ = [
    # Analysis
    "SiteStructureAnalyzer",
    # Classification
    "LinkClassifier",
    "LinkStructure",
    "count_documentation_links",
    "gather_link_structure",
    "importance_score",
    "is_documentation_link",
    "is_external",
    "is_meaningful_link",
    "is_valid_documentation_link",
    "is_valid_endpoint",
    "looks_like_endpoint",
    "nesting_level",
    # Expansion
    "ExpansionEngine",
    # Strategies
    "DiscoveryStrategy",
    "ComprehensiveStrategy",
    "ExpandableSidebarStrategy",
    "ApiReferenceStrategy",
    "SinglePageAppStrategy",
    "SiteSpecificStrategy",
    "LegacyDiscovery",
    "finalize_items",
    "select_strategy",
]
