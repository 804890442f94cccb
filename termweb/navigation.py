"""Navigation state and the fetch / extract cycle behind it.

The display thread owns a :class:`NavigationController`.  Every navigation
runs ``loader(url)`` on a worker thread and posts the outcome to a queue; the
display thread drains that queue with :meth:`NavigationController.apply_pending`
between input events, so the page is only ever replaced from one thread.

Each navigation is stamped with a generation number.  When several are in
flight, only the most recently issued one is applied and older outcomes are
dropped on arrival.
"""

from __future__ import annotations

import logging
import queue
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Callable, List, Optional, Sequence, Tuple

from termweb.config import settings
from termweb.errors import BrowserError, MarkupParseError
from termweb.imaging.rasterizer import rasterize_file
from termweb.imaging.storage import DownloadStore
from termweb.scraper.extractor import extract_page
from termweb.scraper.fetcher import fetch_bytes, fetch_url
from termweb.scraper.models import ExtractionResult, ImageRef, Link
from termweb.scraper.urls import normalise_url

logger = logging.getLogger(__name__)

PageLoader = Callable[[str], ExtractionResult]
ImageLoader = Callable[[Sequence[ImageRef]], ExtractionResult]


# ---------------------------------------------------------------------------
# Loaders (run on worker threads)
# ---------------------------------------------------------------------------

def load_page(url: str) -> ExtractionResult:
    """Fetch *url* and extract its body, resolving links against *url*."""
    raw = fetch_url(url)
    return extract_page(raw.html, raw.url)


def load_images(
    images: Sequence[ImageRef],
    store: DownloadStore,
    width: int | None = None,
) -> ExtractionResult:
    """Download and rasterize *images* into one link-less text page.

    A failing image is reported in place of its art; the others still render.
    """
    width = width or settings.ascii_width
    if not images:
        return ExtractionResult(text="No images on this page.\n")

    parts: List[str] = []
    for image in images:
        parts.append(f"{image.alt or image.src}\n")
        try:
            path = store.save(image.src, fetch_bytes(image.src))
            parts.append(rasterize_file(path, width))
        except BrowserError as exc:
            logger.warning("Image %s failed: %s", image.src, exc)
            parts.append(f"[{exc}]\n")
        parts.append("\n")
    return ExtractionResult(text="".join(parts), images=list(images))


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"


@dataclass(frozen=True)
class PageView:
    """What the display shows.  Text and links always change together."""

    url: str = ""
    text: str = ""
    links: Tuple[Link, ...] = ()
    images: Tuple[ImageRef, ...] = ()
    error: Optional[str] = None

    def link_at(self, row: int) -> Optional[Link]:
        for link in self.links:
            if link.line == row:
                return link
        return None


@dataclass
class _Outcome:
    generation: int
    url: str
    kind: str
    result: Optional[ExtractionResult] = None
    error: Optional[str] = None
    record: bool = True


def _error_text(exc: BrowserError) -> str:
    if isinstance(exc, MarkupParseError):
        return f"Error rendering HTML: {exc}"
    return f"Error fetching URL: {exc}"


class NavigationController:
    """Owns the current URL and link list; serializes page replacement."""

    def __init__(
        self,
        loader: PageLoader = load_page,
        image_loader: Optional[ImageLoader] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self._loader = loader
        self._image_loader = image_loader
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=settings.max_workers, thread_name_prefix="termweb-fetch"
        )
        self._outcomes: "queue.Queue[_Outcome]" = queue.Queue()
        self._generation = 0
        self._applied = 0
        self._requested_url = ""
        self.history: List[str] = []
        self.page = PageView()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    @property
    def state(self) -> LoadState:
        return LoadState.LOADING if self._applied < self._generation else LoadState.IDLE

    @property
    def current_url(self) -> str:
        return self.page.url

    @property
    def current_links(self) -> Tuple[Link, ...]:
        return self.page.links

    # ------------------------------------------------------------------
    # Commands (display thread)
    # ------------------------------------------------------------------
    def navigate(self, url: str, record: bool = True) -> None:
        """Start loading *url* in the background.  Never blocks."""
        self._load(url, "page", record)

    def click(self, column: int, row: int) -> Optional[Link]:
        """Follow the first link counted on *row*.  *column* is not used."""
        link = self.page.link_at(row)
        if link is not None:
            logger.info("Click at (%d, %d) -> %s", column, row, link.href)
            self.navigate(link.href)
        return link

    def reload(self) -> None:
        if self._requested_url:
            self.navigate(self._requested_url, record=False)

    def back(self) -> bool:
        """Return to the previously loaded page; ``False`` if there is none.

        History only shrinks once the previous page has loaded.
        """
        if len(self.history) < 2:
            return False
        self._load(self.history[-2], "back", False)
        return True

    def show_images(self) -> None:
        """Replace the view with ASCII renderings of the current page's images."""
        if self._image_loader is None:
            return
        self._generation += 1
        job = partial(self._image_loader, self.page.images)
        self._executor.submit(self._run, self._generation, self.page.url, "images", False, job)

    def apply_pending(self) -> bool:
        """Apply finished loads.  Returns ``True`` if the page changed."""
        changed = False
        while True:
            try:
                outcome = self._outcomes.get_nowait()
            except queue.Empty:
                return changed
            if outcome.generation != self._generation:
                logger.info("Discarding stale result for %s", outcome.url)
                continue
            self._apply(outcome)
            changed = True

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _load(self, url: str, kind: str, record: bool) -> None:
        self._generation += 1
        generation = self._generation
        try:
            url = normalise_url(url)
        except BrowserError as exc:
            self._outcomes.put(
                _Outcome(generation, url, kind, error=_error_text(exc), record=record)
            )
            return
        self._requested_url = url
        job = partial(self._loader, url)
        self._executor.submit(self._run, generation, url, kind, record, job)

    def _run(
        self,
        generation: int,
        url: str,
        kind: str,
        record: bool,
        job: Callable[[], ExtractionResult],
    ) -> None:
        """Worker body: load and hand the outcome to the display thread."""
        try:
            result = job()
            outcome = _Outcome(generation, url, kind, result=result, record=record)
        except BrowserError as exc:
            logger.warning("Loading %s failed: %s", url, exc)
            outcome = _Outcome(generation, url, kind, error=_error_text(exc), record=record)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected failure loading %s", url)
            outcome = _Outcome(generation, url, kind, error=f"Error: {exc}", record=record)
        self._outcomes.put(outcome)

    def _apply(self, outcome: _Outcome) -> None:
        self._applied = outcome.generation
        if outcome.error is not None:
            # Links stay as they were; the rows they point at are no longer shown.
            self.page = PageView(
                url=self.page.url,
                text=outcome.error,
                links=self.page.links,
                images=self.page.images,
                error=outcome.error,
            )
            return

        result = outcome.result
        if outcome.kind == "images":
            self.page = PageView(url=self.page.url, text=result.text, images=self.page.images)
            return

        self.page = PageView(
            url=outcome.url,
            text=result.text,
            links=tuple(result.links),
            images=tuple(result.images),
        )
        if outcome.record and (not self.history or self.history[-1] != outcome.url):
            self.history.append(outcome.url)
        elif outcome.kind == "back":
            self.history.pop()
