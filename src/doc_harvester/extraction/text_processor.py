"""
Post-processing of scraped text for LLM consumption.
"""

import math
import re
from collections import Counter
from dataclasses import dataclass

_TYPOGRAPHY = [
    ("\u00a0", " "),
    ("\u2018", "'"),
    ("\u2019", "'"),
    ("\u201c", '"'),
    ("\u201d", '"'),
    ("\u2013", "-"),
    ("\u2014", "-"),
    ("\u2026", "..."),
]

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")
_NON_WORD = re.compile(r"[^\w\s]")

WORDS_PER_MINUTE = 200


@dataclass
class ContentAnalysis:
    """Size and readability figures for a block of text."""

    word_count: int
    sentence_count: int
    paragraph_count: int
    reading_time_minutes: int
    complexity: str

    def to_dict(self) -> dict:
        return {
            "word_count": self.word_count,
            "sentence_count": self.sentence_count,
            "paragraph_count": self.paragraph_count,
            "reading_time_minutes": self.reading_time_minutes,
            "complexity": self.complexity,
        }


def optimize_for_llm(text: str) -> str:
    """
    Normalize typography and spacing.

    Smart quotes, dashes, ellipses and non-breaking spaces become ASCII,
    line endings are unified, runs of more than three newlines are capped
    and every line is trimmed. Paragraph breaks survive.
    """
    text = re.sub(r"\r\n?", "\n", text)
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{4,}", "\n\n\n", text)

    for source, target in _TYPOGRAPHY:
        text = text.replace(source, target)

    return "\n".join(line.strip() for line in text.split("\n")).strip()


def _sentences(text: str) -> list[str]:
    return [s for s in _SENTENCE_SPLIT.split(text) if s.strip()]


def estimate_complexity(words: list[str], sentences: list[str]) -> str:
    """Classify as low, medium or high from sentence length and long-word ratio."""
    if not sentences or not words:
        return "low"

    avg_words_per_sentence = len(words) / len(sentences)
    long_word_ratio = sum(1 for w in words if len(w) > 6) / len(words)

    if avg_words_per_sentence > 20 or long_word_ratio > 0.3:
        return "high"
    if avg_words_per_sentence > 15 or long_word_ratio > 0.2:
        return "medium"
    return "low"


def analyze_content(text: str) -> ContentAnalysis:
    """Word, sentence and paragraph counts plus reading time at 200 wpm."""
    words = text.split()
    sentences = _sentences(text)
    paragraphs = [p for p in _PARAGRAPH_SPLIT.split(text) if p.strip()]

    return ContentAnalysis(
        word_count=len(words),
        sentence_count=len(sentences),
        paragraph_count=len(paragraphs),
        reading_time_minutes=math.ceil(len(words) / WORDS_PER_MINUTE),
        complexity=estimate_complexity(words, sentences),
    )


def generate_summary(text: str, max_length: int = 200) -> str:
    """Leading sentences of the text, up to roughly ``max_length`` characters."""
    sentences = _sentences(text)
    if not sentences:
        return ""

    summary = sentences[0].strip()
    for sentence in sentences[1:]:
        if len(summary) >= max_length:
            break
        sentence = sentence.strip()
        if len(summary) + len(sentence) + 2 > max_length:
            break
        summary += ". " + sentence

    return summary + ("." if len(sentences) > 1 else "")


def extract_key_terms(text: str, limit: int = 10) -> list[tuple[str, int]]:
    """Most frequent words longer than three characters."""
    words = [w for w in _NON_WORD.sub(" ", text.lower()).split() if len(w) > 3]
    return Counter(words).most_common(limit)
