"""Content extraction: turns a document tree into an :class:`ExtractionResult`.

The walk flattens the body into newline-delimited rows.  Every non-empty text
node becomes its own row and advances a line counter; anchors and images are
rendered inline.  A link remembers the counter value at the moment the walk
reached its anchor.  That value is a count of text nodes, not a terminal row,
so it drifts once the display word-wraps long rows.  Click mapping relies on
exactly this counting, so it is kept as is.
"""

from __future__ import annotations

from typing import Tuple

from termweb.scraper.document import DocumentNode, NodeKind, find_body, parse_document
from termweb.scraper.models import ExtractionResult, ImageRef, Link
from termweb.scraper.urls import resolve


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _walk(node: DocumentNode, base_url: str, line: int) -> Tuple[ExtractionResult, int]:
    """Extract *node* with the counter at *line*; return the result and new counter."""
    if node.kind is NodeKind.HIDDEN:
        return ExtractionResult(), line

    if node.kind is NodeKind.TEXT:
        text = node.text.strip()
        if not text:
            return ExtractionResult(), line
        return ExtractionResult(text=text + "\n"), line + 1

    if node.kind is NodeKind.ANCHOR:
        return _walk_anchor(node, base_url, line)

    if node.kind is NodeKind.IMAGE:
        src = node.attr("src")
        if not src:
            return ExtractionResult(), line
        alt = node.attr("alt")
        image = ImageRef(src=resolve(base_url, src), alt=alt)
        return ExtractionResult(text=alt + " ", images=[image]), line

    return _walk_children(node, base_url, line)


def _walk_children(node: DocumentNode, base_url: str, line: int) -> Tuple[ExtractionResult, int]:
    result = ExtractionResult()
    parts = []
    for child in node.children:
        child_result, line = _walk(child, base_url, line)
        parts.append(child_result.text)
        result.links.extend(child_result.links)
        result.images.extend(child_result.images)
    result.text = "".join(parts)
    return result, line


def _walk_anchor(node: DocumentNode, base_url: str, line: int) -> Tuple[ExtractionResult, int]:
    """Render an anchor inline.

    Only the text of the descendants is kept; links and images nested in the
    anchor are dropped.  An anchor missing either text or ``href`` is not a
    link: its children are walked again as an ordinary container, starting
    from the counter the text walk left behind.
    """
    arrived_at = line
    parts = []
    for child in node.children:
        child_result, line = _walk(child, base_url, line)
        parts.append(child_result.text)

    text = "".join(parts).strip()
    href = node.attr("href")
    if not text or not href:
        return _walk_children(node, base_url, line)

    link = Link(text=text, href=resolve(base_url, href), line=arrived_at)
    return ExtractionResult(text=text + " ", links=[link]), line


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract(root: DocumentNode, base_url: str) -> ExtractionResult:
    """Extract text, links and images from the subtree rooted at *root*."""
    result, _ = _walk(root, base_url, 0)
    return result


def extract_page(html: str, base_url: str) -> ExtractionResult:
    """Parse *html* and extract its ``<body>``.

    A document the parser leaves without a body yields an empty result.

    Raises:
        MarkupParseError: If the markup cannot be parsed.
    """
    body = find_body(parse_document(html))
    if body is None:
        return ExtractionResult()
    return extract(body, base_url)
