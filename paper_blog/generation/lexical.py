"""
Lexical editor JSON for the CMS.

Only the node types the block parser can produce are emitted. Text format is
Lexical's bit field: 1 = bold, 2 = italic.
"""

from __future__ import annotations

from typing import Any, Dict, List

from .models import Heading, HorizontalRule, InlineSpan, ListBlock, Paragraph, StructuredDocument

FORMAT_BOLD = 1
FORMAT_ITALIC = 2


def _text_node(text: str, fmt: int = 0) -> Dict[str, Any]:
    return {
        "type": "text",
        "text": text,
        "format": fmt,
        "detail": 0,
        "mode": "normal",
        "style": "",
        "version": 1,
    }


def _span_node(span: InlineSpan) -> Dict[str, Any]:
    fmt = (FORMAT_BOLD if span.bold else 0) | (FORMAT_ITALIC if span.italic else 0)
    if span.link is None:
        return _text_node(span.text, fmt)
    return {
        "type": "link",
        "version": 3,
        "direction": "ltr",
        "format": "",
        "indent": 0,
        "fields": {"url": span.link.url, "newTab": False, "linkType": "custom"},
        "children": [_text_node(span.text, fmt)],
    }


def _paragraph_node(paragraph: Paragraph) -> Dict[str, Any]:
    return {
        "type": "paragraph",
        "version": 1,
        "indent": 0,
        "children": [_span_node(span) for span in paragraph.spans],
    }


def _heading_node(heading: Heading) -> Dict[str, Any]:
    return {
        "type": "heading",
        "tag": f"h{heading.level}",
        "version": 1,
        "indent": 0,
        "children": [_text_node(heading.text)],
    }


def _list_node(block: ListBlock) -> Dict[str, Any]:
    return {
        "type": "list",
        "listType": "number" if block.ordered else "bullet",
        "tag": "ol" if block.ordered else "ul",
        "start": 1,
        "version": 1,
        "children": [
            {
                "type": "listitem",
                "value": position,
                "version": 1,
                "indent": 0,
                "children": [_paragraph_node(item)],
            }
            for position, item in enumerate(block.items, start=1)
        ],
    }


def to_lexical(document: StructuredDocument) -> Dict[str, Any]:
    children: List[Dict[str, Any]] = []
    for block in document.blocks:
        if isinstance(block, Heading):
            children.append(_heading_node(block))
        elif isinstance(block, Paragraph):
            children.append(_paragraph_node(block))
        elif isinstance(block, ListBlock):
            children.append(_list_node(block))
        elif isinstance(block, HorizontalRule):
            children.append({"type": "horizontalrule", "version": 1})
        else:
            raise TypeError(f"Unsupported block node: {type(block).__name__}")
    return {"root": {"type": "root", "version": 1, "children": children}}
