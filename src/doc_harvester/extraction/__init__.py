"""
Content extraction module for doc-harvester.

Turns the content regions of a live page into normalized text, and
post-processes scraped text for LLM consumption.
"""

from doc_harvester.extraction.content_extractor import (
    ContentExtractor,
    is_hidden,
    normalize_text,
)
from doc_harvester.extraction.text_processor import (
    ContentAnalysis,
    analyze_content,
    extract_key_terms,
    generate_summary,
    optimize_for_llm,
)

__all__ = [
    "ContentExtractor",
    "is_hidden",
    "normalize_text",
    "ContentAnalysis",
    "analyze_content",
    "extract_key_terms",
    "generate_summary",
    "optimize_for_llm",
]
