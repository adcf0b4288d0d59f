# utils/text_utils.py
# ---------------------------------------------------------------
# Whitespace normalization and innerText approximation for
# BeautifulSoup elements. Every extraction stage reads block text
# through these helpers.
# ---------------------------------------------------------------

import re
from typing import List, Optional

from bs4 import Comment, NavigableString, Tag

_WS_RE = re.compile(r"\s+")

SKIP_TEXT_TAGS = {"script", "style", "noscript", "template", "head", "title"}

BLOCK_TAGS = {
    "address", "article", "aside", "blockquote", "dd", "details", "dialog", "div", "dl", "dt",
    "fieldset", "figcaption", "figure", "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6",
    "header", "hr", "li", "main", "nav", "ol", "p", "pre", "section", "summary", "table",
    "tbody", "thead", "tfoot", "tr", "td", "th", "ul", "caption",
}

_BREAK = object()


def clean_text(value) -> str:
    """
    Collapse every whitespace run to a single space and strip the ends.
    None and non-string input are accepted; None yields "".
    """
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)
    return _WS_RE.sub(" ", value).strip()


def split_lines(text, limit: Optional[int] = None) -> List[str]:
    """Cleaned, non-empty lines of text, optionally only the first `limit`."""
    if not text:
        return []
    lines = [clean_text(line) for line in str(text).splitlines()]
    lines = [line for line in lines if line]
    if limit is not None:
        return lines[:limit]
    return lines


def inner_text(element) -> str:
    """
    Approximates the browser's innerText for a BeautifulSoup element.

    Text nodes are whitespace-collapsed, block-level elements and <br>
    start and end a line, scripts/styles and comments contribute nothing.
    """
    if element is None:
        return ""
    if isinstance(element, NavigableString):
        return clean_text(element)

    parts = []
    stack = [element]
    while stack:
        node = stack.pop()
        if node is _BREAK:
            parts.append("\n")
            continue
        if isinstance(node, Comment):
            continue
        if isinstance(node, NavigableString):
            if type(node) is not NavigableString:
                # CData, ProcessingInstruction, Doctype...
                continue
            parts.append(_WS_RE.sub(" ", str(node)))
            continue
        if not isinstance(node, Tag):
            continue
        name = (node.name or "").lower()
        if name in SKIP_TEXT_TAGS:
            continue
        if name == "br":
            parts.append("\n")
            continue
        is_block = name in BLOCK_TAGS
        if is_block:
            parts.append("\n")
            stack.append(_BREAK)
        stack.extend(reversed(node.contents))

    lines = (line.strip() for line in "".join(parts).split("\n"))
    return "\n".join(line for line in lines if line)
