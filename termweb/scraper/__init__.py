"""Scraper package: web fetch, URL resolution & content extraction."""

from termweb.scraper.extractor import extract, extract_page
from termweb.scraper.fetcher import fetch_bytes, fetch_url
from termweb.scraper.models import ExtractionResult, ImageRef, Link, RawPage
from termweb.scraper.urls import normalise_url, resolve

__all__ = [
    "fetch_url",
    "fetch_bytes",
    "extract",
    "extract_page",
    "resolve",
    "normalise_url",
    "RawPage",
    "Link",
    "ImageRef",
    "ExtractionResult",
]
