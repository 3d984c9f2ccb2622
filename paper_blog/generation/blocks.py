from __future__ import annotations

import re
from typing import List, Optional, Sequence

from .inline import format_inline
from .models import BlockNode, Heading, HorizontalRule, ListBlock, Paragraph, StructuredDocument

HORIZONTAL_RULES = frozenset({"---", "***", "___"})
HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")
ORDERED_START_RE = re.compile(r"^\d+\.\s")
ORDERED_ITEM_RE = re.compile(r"^\d+\.\s+(.+)$")
UNORDERED_ITEM_RE = re.compile(r"^[-*]\s+(.+)$")


def is_list_start(line: str) -> bool:
    return line.startswith("- ") or line.startswith("* ") or bool(ORDERED_START_RE.match(line))


class BlockParser:
    """
    Line-oriented parser for the markdown subset produced by the blog prompt.

    Every non-blank, non-list line becomes its own block. Lists are greedy and
    only continue over lines of the same marker family (ordered vs bullet).
    """

    def __init__(self, markdown: str):
        self._lines: Sequence[str] = markdown.split("\n")
        self._index = 0

    def parse(self) -> StructuredDocument:
        blocks: List[BlockNode] = []
        while self._index < len(self._lines):
            block = self._next_block()
            if block is not None:
                blocks.append(block)
        return StructuredDocument(blocks=blocks)

    def _current(self) -> str:
        return self._lines[self._index].strip()

    def _next_block(self) -> Optional[BlockNode]:
        line = self._current()
        if not line:
            self._index += 1
            return None

        if line in HORIZONTAL_RULES:
            self._index += 1
            return HorizontalRule()

        heading = HEADING_RE.match(line)
        if heading:
            self._index += 1
            return Heading(level=len(heading.group(1)), text=heading.group(2))

        if is_list_start(line):
            block = self._consume_list(ordered=bool(ORDERED_START_RE.match(line)))
            if block.items:
                return block

        self._index += 1
        return Paragraph(spans=format_inline(line))

    def _consume_list(self, ordered: bool) -> ListBlock:
        item_re = ORDERED_ITEM_RE if ordered else UNORDERED_ITEM_RE
        block = ListBlock(ordered=ordered)
        while self._index < len(self._lines):
            match = item_re.match(self._current())
            if not match:
                break
            block.items.append(Paragraph(spans=format_inline(match.group(1))))
            self._index += 1
        return block


def parse_document(markdown: str) -> StructuredDocument:
    return BlockParser(markdown).parse()
