"""Blocking HTTP fetcher built on ``httpx``."""

from __future__ import annotations

import logging

import httpx

from termweb.config import settings
from termweb.errors import NetworkError, URLParseError
from termweb.scraper.models import RawPage

logger = logging.getLogger(__name__)


def _get(url: str) -> httpx.Response:
    """GET *url* and return the response, translating ``httpx`` failures.

    Raises:
        URLParseError: If ``httpx`` rejects the URL.
        NetworkError: On transport errors or any status other than 200.
    """
    logger.debug("GET %s", url)
    try:
        with httpx.Client(
            headers={"User-Agent": settings.user_agent},
            timeout=settings.request_timeout,
            follow_redirects=True,
        ) as client:
            response = client.get(url)
    except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
        raise URLParseError(f"error parsing URL: {exc}") from exc
    except httpx.HTTPError as exc:
        raise NetworkError(f"error fetching URL: {exc}") from exc

    if response.status_code != httpx.codes.OK:
        raise NetworkError(
            f"bad status: {response.status_code} {response.reason_phrase}",
            status_code=response.status_code,
        )
    return response


def fetch_url(url: str) -> RawPage:
    """Fetch *url* and return a :class:`RawPage` holding the decoded body."""
    response = _get(url)
    return RawPage(url=url, html=response.text, status_code=response.status_code)


def fetch_bytes(url: str) -> bytes:
    """Fetch *url* and return the raw body (used for images)."""
    return _get(url).content
