"""Tests for the navigation controller and page loaders.

Mocking strategy:
- Loaders are plain callables, so most tests pass fakes instead of fetching.
- ``_InlineExecutor`` runs submitted work immediately on the calling thread;
  ``_DeferredExecutor`` holds it so tests can finish loads in any order.
- ``respx`` covers the real ``load_page`` path end to end.
"""

from __future__ import annotations

import io
from concurrent.futures import Executor, Future

import httpx
import pytest
import respx
from PIL import Image

from termweb.errors import MarkupParseError, NetworkError
from termweb.imaging.storage import DownloadStore
from termweb.navigation import LoadState, NavigationController, load_images, load_page
from termweb.scraper.models import ExtractionResult, ImageRef, Link


class _InlineExecutor(Executor):
    def submit(self, fn, *args, **kwargs):
        future: Future = Future()
        future.set_result(fn(*args, **kwargs))
        return future


class _DeferredExecutor(Executor):
    def __init__(self) -> None:
        self.jobs = []

    def submit(self, fn, *args, **kwargs):
        self.jobs.append((fn, args, kwargs))
        return Future()

    def run(self, index: int) -> None:
        fn, args, kwargs = self.jobs[index]
        fn(*args, **kwargs)


def _page(url: str) -> ExtractionResult:
    return ExtractionResult(
        text=f"Title of {url}\nmore text\n",
        links=[Link(text="next", href=f"{url}/next", line=1)],
        images=[ImageRef(src=f"{url}/pic.png", alt="pic")],
    )


class _Loader:
    """Records requested URLs; fails for URLs listed in ``errors``."""

    def __init__(self, errors=None) -> None:
        self.calls = []
        self.errors = errors or {}

    def __call__(self, url: str) -> ExtractionResult:
        self.calls.append(url)
        if url in self.errors:
            raise self.errors[url]
        return _page(url)


@pytest.fixture
def loader() -> _Loader:
    return _Loader()


@pytest.fixture
def controller(loader) -> NavigationController:
    return NavigationController(loader=loader, executor=_InlineExecutor())


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------

class TestNavigate:
    def test_starts_idle(self, controller) -> None:
        assert controller.state is LoadState.IDLE
        assert controller.page.text == ""

    def test_result_applied_on_display_side(self, controller) -> None:
        controller.navigate("https://e.com")
        assert controller.state is LoadState.LOADING
        assert controller.page.text == ""

        assert controller.apply_pending() is True
        assert controller.state is LoadState.IDLE
        assert controller.current_url == "https://e.com"
        assert controller.page.text.startswith("Title of https://e.com")
        assert controller.current_links == (Link("next", "https://e.com/next", 1),)

    def test_apply_without_results_changes_nothing(self, controller) -> None:
        assert controller.apply_pending() is False

    def test_scheme_added(self, controller, loader) -> None:
        controller.navigate("e.com/start")
        assert loader.calls == ["https://e.com/start"]

    def test_invalid_url_becomes_error_page(self, controller, loader) -> None:
        controller.navigate("   ")
        controller.apply_pending()

        assert loader.calls == []
        assert controller.page.text.startswith("Error fetching URL:")
        assert controller.state is LoadState.IDLE

    def test_text_and_links_replaced_together(self, controller) -> None:
        controller.navigate("https://a.com")
        controller.apply_pending()
        before = controller.page

        controller.navigate("https://b.com")
        controller.apply_pending()

        assert before.url == "https://a.com"
        assert before.links[0].href == "https://a.com/next"
        assert controller.page.url == "https://b.com"
        assert controller.page.links[0].href == "https://b.com/next"


class TestErrors:
    def test_http_error_keeps_previous_links(self) -> None:
        loader = _Loader(
            errors={
                "https://e.com/missing": NetworkError("bad status: 404 Not Found", status_code=404)
            }
        )
        controller = NavigationController(loader=loader, executor=_InlineExecutor())
        controller.navigate("https://e.com")
        controller.apply_pending()
        links_before = controller.current_links

        controller.navigate("https://e.com/missing")
        controller.apply_pending()

        assert "404" in controller.page.text
        assert controller.page.text.startswith("Error fetching URL:")
        assert controller.page.error == controller.page.text
        assert controller.current_links == links_before
        assert controller.current_url == "https://e.com"

    def test_markup_error_reported_as_render_error(self) -> None:
        loader = _Loader(errors={"https://e.com": MarkupParseError("error parsing HTML: bad")})
        controller = NavigationController(loader=loader, executor=_InlineExecutor())
        controller.navigate("https://e.com")
        controller.apply_pending()

        assert controller.page.text.startswith("Error rendering HTML:")

    def test_unexpected_error_does_not_leave_controller_loading(self) -> None:
        loader = _Loader(errors={"https://e.com": RuntimeError("boom")})
        controller = NavigationController(loader=loader, executor=_InlineExecutor())
        controller.navigate("https://e.com")
        controller.apply_pending()

        assert controller.state is LoadState.IDLE
        assert "boom" in controller.page.text


class TestOrdering:
    def test_latest_navigation_wins(self, loader) -> None:
        executor = _DeferredExecutor()
        controller = NavigationController(loader=loader, executor=executor)

        controller.navigate("https://first.com")
        controller.navigate("https://second.com")
        executor.run(1)
        executor.run(0)
        controller.apply_pending()

        assert controller.current_url == "https://second.com"
        assert controller.state is LoadState.IDLE

    def test_stale_result_arriving_later_is_dropped(self, loader) -> None:
        executor = _DeferredExecutor()
        controller = NavigationController(loader=loader, executor=executor)

        controller.navigate("https://first.com")
        controller.navigate("https://second.com")
        executor.run(1)
        controller.apply_pending()
        executor.run(0)

        assert controller.apply_pending() is False
        assert controller.current_url == "https://second.com"

    def test_loading_until_latest_arrives(self, loader) -> None:
        executor = _DeferredExecutor()
        controller = NavigationController(loader=loader, executor=executor)

        controller.navigate("https://first.com")
        controller.navigate("https://second.com")
        executor.run(0)
        controller.apply_pending()

        assert controller.state is LoadState.LOADING
        assert controller.page.text == ""


class TestClick:
    def test_click_follows_link_on_row(self, controller, loader) -> None:
        controller.navigate("https://e.com")
        controller.apply_pending()

        link = controller.click(3, 1)
        controller.apply_pending()

        assert link.href == "https://e.com/next"
        assert loader.calls[-1] == "https://e.com/next"
        assert controller.current_url == "https://e.com/next"

    def test_click_on_plain_row_is_ignored(self, controller, loader) -> None:
        controller.navigate("https://e.com")
        controller.apply_pending()

        assert controller.click(0, 0) is None
        assert loader.calls == ["https://e.com"]

    def test_first_link_on_row_wins(self) -> None:
        def two_links(url: str) -> ExtractionResult:
            return ExtractionResult(
                text="a b \n",
                links=[Link("a", "https://e.com/a", 0), Link("b", "https://e.com/b", 0)],
            )

        controller = NavigationController(loader=two_links, executor=_InlineExecutor())
        controller.navigate("https://e.com")
        controller.apply_pending()

        assert controller.click(2, 0).href == "https://e.com/a"


class TestHistory:
    def test_back_returns_to_previous_page(self, controller, loader) -> None:
        controller.navigate("https://a.com")
        controller.apply_pending()
        controller.navigate("https://b.com")
        controller.apply_pending()

        assert controller.back() is True
        controller.apply_pending()

        assert controller.current_url == "https://a.com"
        assert controller.history == ["https://a.com"]

    def test_failed_back_keeps_history(self, controller, loader) -> None:
        controller.navigate("https://a.com")
        controller.apply_pending()
        controller.navigate("https://b.com")
        controller.apply_pending()

        loader.errors["https://a.com"] = NetworkError("bad status: 503 Service Unavailable")
        controller.back()
        controller.apply_pending()

        assert controller.page.error.startswith("Error fetching URL: bad status: 503")
        assert controller.current_url == "https://b.com"
        assert controller.history == ["https://a.com", "https://b.com"]

        del loader.errors["https://a.com"]
        assert controller.back() is True
        controller.apply_pending()

        assert controller.current_url == "https://a.com"
        assert controller.history == ["https://a.com"]

    def test_back_without_history(self, controller) -> None:
        controller.navigate("https://a.com")
        controller.apply_pending()
        assert controller.back() is False

    def test_reload_refetches_without_new_history(self, controller, loader) -> None:
        controller.navigate("https://a.com")
        controller.apply_pending()
        controller.reload()
        controller.apply_pending()

        assert loader.calls == ["https://a.com", "https://a.com"]
        assert controller.history == ["https://a.com"]


class TestShowImages:
    def test_images_view_has_no_links(self, loader) -> None:
        received = []

        def image_loader(images):
            received.append(list(images))
            return ExtractionResult(text="pic\n@@\n")

        controller = NavigationController(
            loader=loader, image_loader=image_loader, executor=_InlineExecutor()
        )
        controller.navigate("https://e.com")
        controller.apply_pending()
        controller.show_images()
        controller.apply_pending()

        assert received == [[ImageRef("https://e.com/pic.png", "pic")]]
        assert controller.page.text == "pic\n@@\n"
        assert controller.current_links == ()
        assert controller.current_url == "https://e.com"

    def test_without_image_loader_is_noop(self, controller) -> None:
        controller.show_images()
        assert controller.state is LoadState.IDLE


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------

def _png() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (4, 2), (255, 255, 255)).save(buf, format="PNG")
    return buf.getvalue()


class TestLoadImages:
    def test_renders_each_image(self, tmp_path, monkeypatch) -> None:
        store = DownloadStore(tmp_path)
        monkeypatch.setattr("termweb.navigation.fetch_bytes", lambda url: _png())

        result = load_images([ImageRef("https://e.com/a.png", "Alpha")], store, width=4)

        assert result.text == "Alpha\n@@@@\n@@@@\n\n"
        assert result.links == []
        assert len(list(tmp_path.iterdir())) == 1

    def test_failed_image_reported_inline(self, tmp_path, monkeypatch) -> None:
        def _fail(url: str) -> bytes:
            raise NetworkError("bad status: 404 Not Found", status_code=404)

        monkeypatch.setattr("termweb.navigation.fetch_bytes", _fail)
        result = load_images([ImageRef("https://e.com/a.png", "")], DownloadStore(tmp_path))

        assert result.text.startswith("https://e.com/a.png\n[bad status: 404")

    def test_no_images(self, tmp_path) -> None:
        assert load_images([], DownloadStore(tmp_path)).text == "No images on this page.\n"


class TestLoadPage:
    def test_fetches_and_extracts(self) -> None:
        html = '<body><p>Hello</p><a href="/x">link</a><img src="i.png" alt="pic"></body>'
        with respx.mock:
            respx.get("https://e.com/page").mock(return_value=httpx.Response(200, text=html))
            result = load_page("https://e.com/page")

        assert result.links == [Link("link", "https://e.com/x", 1)]
        assert result.images == [ImageRef("https://e.com/i.png", "pic")]

    def test_404_end_to_end(self) -> None:
        controller = NavigationController(executor=_InlineExecutor())
        with respx.mock:
            respx.get("https://e.com/gone").mock(return_value=httpx.Response(404))
            controller.navigate("https://e.com/gone")
        controller.apply_pending()

        assert "bad status: 404" in controller.page.text
