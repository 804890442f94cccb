"""Data models for the fetch / extract pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass
class RawPage:
    """The raw HTTP response for a single URL fetch."""

    url: str
    html: str
    status_code: int


@dataclass(frozen=True)
class Link:
    """A clickable link and the text row it was counted on."""

    text: str
    href: str
    line: int


@dataclass(frozen=True)
class ImageRef:
    """An image found in the page body."""

    src: str
    alt: str = ""


@dataclass
class ExtractionResult:
    """Readable text, links and images extracted from one document."""

    text: str = ""
    links: List[Link] = field(default_factory=list)
    images: List[ImageRef] = field(default_factory=list)

    @property
    def rows(self) -> List[str]:
        """Text rows, without the empty row after the final newline."""
        rows = self.text.split("\n")
        if rows and rows[-1] == "":
            rows.pop()
        return rows
