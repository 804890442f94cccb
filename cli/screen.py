"""curses display surface for the interactive browser.

The screen runs on the main thread.  ``getch`` wakes every 100 ms so finished
page loads are picked up from the controller between input events.
"""

from __future__ import annotations

import curses
import textwrap
from typing import Dict, List, Sequence, Tuple

from termweb.navigation import LoadState, NavigationController
from termweb.scraper.models import Link

_POLL_MS = 100
_STATUS_HEIGHT = 1
_HELP = "q quit | j/k scroll | click link | b back | r reload | i images"


def layout_rows(text: str, width: int, wrap: bool = True) -> List[str]:
    """Split *text* into display rows, word-wrapping to *width* when asked."""
    rows = text.split("\n")
    if rows and rows[-1] == "":
        rows.pop()
    if not wrap or width <= 0:
        return rows

    wrapped: List[str] = []
    for row in rows:
        wrapped.extend(textwrap.wrap(row, width=width) or [""])
    return wrapped


def link_spans(rows: Sequence[str], links: Sequence[Link]) -> Dict[int, List[Tuple[int, int]]]:
    """Map row index to the column spans to highlight as links.

    A link is highlighted where its text appears on the row it was counted
    on; when wrapping moved it elsewhere it is simply not highlighted.
    """
    spans: Dict[int, List[Tuple[int, int]]] = {}
    for link in links:
        if not 0 <= link.line < len(rows):
            continue
        needle = link.text.split("\n", 1)[0]
        start = rows[link.line].find(needle)
        if start >= 0:
            spans.setdefault(link.line, []).append((start, start + len(needle)))
    return spans


class BrowserScreen:
    """Draws the current page and turns keys and clicks into commands."""

    def __init__(self, controller: NavigationController, wrap: bool = True) -> None:
        self.controller = controller
        self.wrap = wrap
        self.scroll = 0
        self.stdscr = None
        self.color_link = curses.A_UNDERLINE
        self.color_status = curses.A_REVERSE
        self._rows: List[str] = []
        self._rows_for: Tuple[str, int] | None = None

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------
    def setup_curses(self) -> None:
        try:
            curses.curs_set(0)
        except curses.error:
            pass  # terminal cannot hide the cursor
        self.stdscr.keypad(True)
        self.stdscr.timeout(_POLL_MS)
        curses.mousemask(curses.ALL_MOUSE_EVENTS | curses.REPORT_MOUSE_POSITION)
        if curses.has_colors():
            curses.start_color()
            curses.use_default_colors()
            curses.init_pair(1, curses.COLOR_BLUE, -1)
            curses.init_pair(2, curses.COLOR_BLACK, curses.COLOR_WHITE)
            self.color_link = curses.color_pair(1) | curses.A_UNDERLINE
            self.color_status = curses.color_pair(2) | curses.A_BOLD

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    @property
    def content_height(self) -> int:
        max_y, _ = self.stdscr.getmaxyx()
        return max(1, max_y - _STATUS_HEIGHT)

    @property
    def text_width(self) -> int:
        _, max_x = self.stdscr.getmaxyx()
        return max(1, max_x - 1)

    def rows(self, width: int) -> List[str]:
        key = (self.controller.page.text, width)
        if self._rows_for != key:
            self._rows = layout_rows(self.controller.page.text, width, self.wrap)
            self._rows_for = key
        return self._rows

    def max_scroll(self, width: int) -> int:
        return max(0, len(self.rows(width)) - self.content_height)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------
    def draw(self) -> None:
        self.stdscr.erase()
        max_y, max_x = self.stdscr.getmaxyx()
        rows = self.rows(self.text_width)
        spans = link_spans(rows, self.controller.page.links)

        for screen_y in range(min(self.content_height, max(0, len(rows) - self.scroll))):
            row_index = self.scroll + screen_y
            row = rows[row_index][: self.text_width]
            self._put(screen_y, 0, row, curses.A_NORMAL)
            for start, end in spans.get(row_index, []):
                if start < len(row):
                    self._put(screen_y, start, row[start:end], self.color_link)

        page = self.controller.page
        state = "loading" if self.controller.state is LoadState.LOADING else page.url
        status = f" {state} | {_HELP} "
        self._put(max_y - 1, 0, status[: max_x - 1].ljust(max_x - 1), self.color_status)
        self.stdscr.refresh()

    def _put(self, y: int, x: int, text: str, attr: int) -> None:
        try:
            self.stdscr.addstr(y, x, text, attr)
        except curses.error:
            pass  # writing the bottom-right cell always errors in curses

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------
    def handle_click(self, column: int, screen_row: int) -> Link | None:
        """Follow the link on the clicked row, adjusted for scrolling."""
        if screen_row >= self.content_height:
            return None
        return self.controller.click(column, screen_row + self.scroll)

    def handle_key(self, key: int) -> bool:
        """Dispatch *key*.  Returns ``False`` when the browser should exit."""
        max_scroll = self.max_scroll(self.text_width)

        if key in (ord("q"), 27):
            return False
        if key in (ord("j"), curses.KEY_DOWN):
            self.scroll = min(max_scroll, self.scroll + 1)
        elif key in (ord("k"), curses.KEY_UP):
            self.scroll = max(0, self.scroll - 1)
        elif key == curses.KEY_NPAGE:
            self.scroll = min(max_scroll, self.scroll + self.content_height)
        elif key == curses.KEY_PPAGE:
            self.scroll = max(0, self.scroll - self.content_height)
        elif key in (ord("g"), curses.KEY_HOME):
            self.scroll = 0
        elif key in (ord("G"), curses.KEY_END):
            self.scroll = max_scroll
        elif key == ord("r"):
            self.controller.reload()
        elif key == ord("b"):
            self.controller.back()
        elif key == ord("i"):
            self.controller.show_images()
        elif key == curses.KEY_MOUSE:
            try:
                _, x, y, _, bstate = curses.getmouse()
            except curses.error:
                return True
            if bstate & (curses.BUTTON1_CLICKED | curses.BUTTON1_PRESSED):
                self.handle_click(x, y)
        return True

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    def run(self, stdscr) -> None:
        """Event loop; pass to :func:`curses.wrapper`."""
        self.stdscr = stdscr
        self.setup_curses()
        while True:
            if self.controller.apply_pending():
                self.scroll = 0
            self.draw()
            key = self.stdscr.getch()
            if key in (-1, curses.KEY_RESIZE):
                continue
            if not self.handle_key(key):
                break
