"""Error kinds raised by the termweb library layer.

Every error is recoverable where it surfaces: the navigation controller turns
them into an inline message and the CLI prints them before exiting.
"""

from __future__ import annotations


class BrowserError(Exception):
    """Base class for all termweb errors."""


class URLParseError(BrowserError):
    """A URL could not be parsed."""


class NetworkError(BrowserError):
    """A request failed at the transport level or returned a non-200 status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MarkupParseError(BrowserError):
    """The fetched document could not be parsed as HTML."""


class ImageDecodeError(BrowserError):
    """Image bytes are corrupt or in an unsupported format."""


class FileIOError(BrowserError):
    """Reading or writing a downloaded file failed."""
