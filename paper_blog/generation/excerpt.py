from __future__ import annotations

import re
from typing import List

from .blocks import HORIZONTAL_RULES

DEFAULT_MAX_LENGTH = 500
MIN_EXCERPT_LENGTH = 100
SENTENCE_WINDOW = 10
SENTENCE_CUTOFF_RATIO = 0.6
ELLIPSIS = "..."

_BOLD_RE = re.compile(r"\*\*([^*]+)\*\*")
_ITALIC_RE = re.compile(r"\*([^*]+)\*")
_CODE_RE = re.compile(r"`([^`]+)`")
_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_BULLET_RE = re.compile(r"^[-*]\s+")
_ORDERED_RE = re.compile(r"^\d+\.\s+")


def _clean_line(line: str) -> str:
    cleaned = line
    if cleaned.startswith("- ") or cleaned.startswith("* ") or _ORDERED_RE.match(cleaned):
        cleaned = _ORDERED_RE.sub("", _BULLET_RE.sub("", cleaned))
    cleaned = _BOLD_RE.sub(r"\1", cleaned)
    cleaned = _ITALIC_RE.sub(r"\1", cleaned)
    cleaned = _CODE_RE.sub(r"\1", cleaned)
    cleaned = _LINK_RE.sub(r"\1", cleaned)
    return cleaned


def plain_paragraphs(markdown: str) -> List[str]:
    """
    Markup-free paragraphs. Headings, rules and blockquotes are dropped
    without ending the paragraph they sit in.
    """
    paragraphs: List[str] = []
    current: List[str] = []
    for raw in markdown.split("\n"):
        line = raw.strip()
        if not line:
            if current:
                paragraphs.append(" ".join(current))
                current = []
            continue
        if line.startswith("#") or line in HORIZONTAL_RULES or line.startswith(">"):
            continue
        current.append(_clean_line(line))
    if current:
        paragraphs.append(" ".join(current))
    return paragraphs


def _fit_sentence(excerpt: str, max_length: int) -> str:
    last_period = excerpt.rfind(". ")
    if last_period > max_length * SENTENCE_CUTOFF_RATIO:
        return excerpt[: last_period + 1]
    if max_length <= len(ELLIPSIS):
        return excerpt[:max_length]
    return excerpt[: max_length - len(ELLIPSIS)].strip() + ELLIPSIS


def extract_excerpt(markdown: str, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """
    Build a plain-text summary of at most `max_length` characters.

    Whole paragraphs are preferred. Once the excerpt is past
    MIN_EXCERPT_LENGTH an overflowing paragraph is dropped instead of cut.
    Near the budget the text is cut at a sentence end when one lies past 60%
    of the budget, otherwise it is hard-truncated with an ellipsis.
    """
    if max_length <= 0:
        return ""

    excerpt = ""
    for paragraph in plain_paragraphs(markdown):
        if not paragraph.strip():
            continue
        if len(excerpt) + len(paragraph) + 1 > max_length:
            if len(excerpt) > MIN_EXCERPT_LENGTH:
                break
            remaining = max_length - len(excerpt) - 1
            if remaining > 0:
                excerpt += (" " if excerpt else "") + paragraph[:remaining].strip()
            break
        excerpt += (" " if excerpt else "") + paragraph

    excerpt = excerpt.strip()
    if len(excerpt) >= max_length - SENTENCE_WINDOW:
        excerpt = _fit_sentence(excerpt, max_length)
    return excerpt
