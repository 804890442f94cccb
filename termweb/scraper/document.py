"""Explicit document tree built from BeautifulSoup's parse.

The extractor only needs to know what *kind* of node it is looking at, so the
parse tree is converted once into :class:`DocumentNode` objects and the
traversal never touches BeautifulSoup directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from termweb.errors import MarkupParseError

_HIDDEN_TAGS = {"script", "style"}


class NodeKind(str, Enum):
    TEXT = "text"
    ANCHOR = "anchor"
    IMAGE = "image"
    HIDDEN = "hidden"
    ELEMENT = "element"


@dataclass
class DocumentNode:
    kind: NodeKind
    tag: str = ""
    attrs: Dict[str, str] = field(default_factory=dict)
    text: str = ""
    children: List["DocumentNode"] = field(default_factory=list)

    def attr(self, name: str) -> str:
        return self.attrs.get(name, "")


def _kind_for(tag: str) -> NodeKind:
    if tag in _HIDDEN_TAGS:
        return NodeKind.HIDDEN
    if tag == "a":
        return NodeKind.ANCHOR
    if tag == "img":
        return NodeKind.IMAGE
    return NodeKind.ELEMENT


def _flatten_attrs(tag: Tag) -> Dict[str, str]:
    """bs4 returns multi-valued attributes (``class``, ``rel``) as lists."""
    attrs: Dict[str, str] = {}
    for key, value in tag.attrs.items():
        attrs[key] = " ".join(value) if isinstance(value, list) else (value or "")
    return attrs


def _convert(element) -> Optional[DocumentNode]:
    if isinstance(element, NavigableString):
        # Comments, doctypes, CDATA and processing instructions are not text.
        if isinstance(element, PreformattedString):
            return None
        return DocumentNode(kind=NodeKind.TEXT, text=str(element))

    if not isinstance(element, Tag):
        return None

    name = element.name.lower()
    node = DocumentNode(kind=_kind_for(name), tag=name, attrs=_flatten_attrs(element))
    if node.kind is NodeKind.HIDDEN:
        return node
    for child in element.children:
        converted = _convert(child)
        if converted is not None:
            node.children.append(converted)
    return node


def parse_document(html: str) -> DocumentNode:
    """Parse *html* into a :class:`DocumentNode` tree rooted at the document.

    lxml fills in the implied ``<html>`` and ``<body>`` elements, so markup
    that omits the body tag still has one.

    Raises:
        MarkupParseError: If the parser rejects the markup.
    """
    try:
        soup = BeautifulSoup(html, "lxml")
    except Exception as exc:
        raise MarkupParseError(f"error parsing HTML: {exc}") from exc

    root = DocumentNode(kind=NodeKind.ELEMENT, tag="#document")
    for child in soup.children:
        converted = _convert(child)
        if converted is not None:
            root.children.append(converted)
    return root


def find_body(node: DocumentNode) -> Optional[DocumentNode]:
    """Return the first ``<body>`` element in pre-order, or ``None``."""
    if node.tag == "body" and node.kind is NodeKind.ELEMENT:
        return node
    for child in node.children:
        found = find_body(child)
        if found is not None:
            return found
    return None
