"""URL resolution and normalisation."""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlsplit

from termweb.config import settings
from termweb.errors import URLParseError

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
# A "%" not followed by two hex digits.  Queries are left unchecked.
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def _parses(url: str) -> bool:
    """Return ``True`` if *url* is a syntactically usable URL or reference."""
    if _CONTROL_CHARS.search(url):
        return False
    try:
        parts = urlsplit(url)
        # ``port`` is validated lazily by urllib, touch it to surface errors.
        parts.port
        if any(_BAD_ESCAPE.search(part) for part in (parts.netloc, parts.path, parts.fragment)):
            return False
    except ValueError:
        return False
    return True


def resolve(base: str, ref: str) -> str:
    """Resolve *ref* against *base* following RFC 3986.

    Never raises: when either argument fails to parse, *ref* is returned
    unchanged so rendering can carry on with the raw value.
    """
    if not _parses(base) or not _parses(ref):
        return ref
    return urljoin(base, ref)


def normalise_url(url: str) -> str:
    """Strip *url* and give it ``settings.default_scheme`` if it has none.

    Raises:
        URLParseError: If *url* is empty or cannot be parsed.
    """
    url = url.strip()
    if not url or not _parses(url):
        raise URLParseError(f"error parsing URL: {url!r}")

    if not urlsplit(url).scheme:
        # "example.com/path" carries no "//", so add it with the scheme.
        url = f"{settings.default_scheme}://{url.lstrip('/')}"
        if not _parses(url):
            raise URLParseError(f"error parsing URL: {url!r}")
    return url
