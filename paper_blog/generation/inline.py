from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

from .models import InlineSpan, LinkTarget

SPECIAL_CHARS = frozenset("*[")


@dataclass(frozen=True)
class PlainToken:
    text: str

    def to_span(self) -> InlineSpan:
        return InlineSpan(text=self.text)


@dataclass(frozen=True)
class BoldToken:
    text: str

    def to_span(self) -> InlineSpan:
        return InlineSpan(text=self.text, bold=True)


@dataclass(frozen=True)
class ItalicToken:
    text: str

    def to_span(self) -> InlineSpan:
        return InlineSpan(text=self.text, italic=True)


@dataclass(frozen=True)
class LinkToken:
    text: str
    url: str

    def to_span(self) -> InlineSpan:
        return InlineSpan(text=self.text, link=LinkTarget(url=self.url))


InlineToken = Union[PlainToken, BoldToken, ItalicToken, LinkToken]
Match = Optional[Tuple[InlineToken, int]]


def _match_bold(text: str, pos: int) -> Match:
    if not text.startswith("**", pos):
        return None
    end = text.find("*", pos + 2)
    if end <= pos + 2 or not text.startswith("**", end):
        return None
    return BoldToken(text[pos + 2 : end]), end + 2


def _match_italic(text: str, pos: int) -> Match:
    if not text.startswith("*", pos):
        return None
    end = text.find("*", pos + 1)
    if end <= pos + 1:
        return None
    return ItalicToken(text[pos + 1 : end]), end + 1


def _match_link(text: str, pos: int) -> Match:
    if not text.startswith("[", pos):
        return None
    label_end = text.find("]", pos + 1)
    if label_end <= pos + 1 or not text.startswith("(", label_end + 1):
        return None
    url_start = label_end + 2
    url_end = text.find(")", url_start)
    if url_end <= url_start:
        return None
    return LinkToken(text[pos + 1 : label_end], text[url_start:url_end]), url_end + 1


# Precedence is the order of this tuple: bold must be tried before italic.
MATCHERS: Tuple[Callable[[str, int], Match], ...] = (_match_bold, _match_italic, _match_link)


class InlineTokenizer:
    """
    Cursor over a single line. Each step tries the structured matchers at the
    current position, then falls back to a plain run up to the next special
    character. An unmatched special character is emitted on its own.
    """

    def __init__(self, text: str):
        self._text = text
        self._pos = 0

    @property
    def position(self) -> int:
        return self._pos

    def at_end(self) -> bool:
        return self._pos >= len(self._text)

    def next_token(self) -> InlineToken:
        for matcher in MATCHERS:
            matched = matcher(self._text, self._pos)
            if matched is not None:
                token, self._pos = matched
                return token

        start = self._pos
        if self._text[start] in SPECIAL_CHARS:
            self._pos = start + 1
            return PlainToken(self._text[start])

        end = start
        while end < len(self._text) and self._text[end] not in SPECIAL_CHARS:
            end += 1
        self._pos = end
        return PlainToken(self._text[start:end])

    def tokens(self) -> List[InlineToken]:
        result: List[InlineToken] = []
        while not self.at_end():
            result.append(self.next_token())
        return result


def tokenize(text: str) -> List[InlineToken]:
    return InlineTokenizer(text).tokens()


def format_inline(text: str) -> List[InlineSpan]:
    """Split one line into ordered spans. Never returns an empty list."""
    spans = [token.to_span() for token in tokenize(text)]
    return spans or [InlineSpan(text="")]
