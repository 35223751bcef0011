"""
Log Session Module - Coordinates store, filters, transform and view state

Handles:
- Key handling for every UI mode
- Filter mutations with re-anchoring of the selection
- Lazy-load trigger policy and load completion
- Tail-follow, including the load-to-end it may require
- Status messages for rejected input

The session never performs background I/O itself. Methods that need a
background read return a Request; the view runs it in a worker and hands the
result back through on_load_more, on_load_to_end_batch or on_tail_result.
"""
import logging
from enum import Enum
from typing import Iterable, List, Optional

from SIFT.config import ViewerSettings
from SIFT.errors import ExpressionError

from .filter_engine import FilterEngine
from .log_parser import LogLine
from .log_reader import LineStore, LoadResult, LogFileReader
from .tail_monitor import TailMonitor, TailResult
from .view_state import (
    FAST_SCROLL_STEP,
    INPUT_MODES,
    DetailMode,
    FilterEditMode,
    FilterEntryMode,
    FilterManageMode,
    HelpMode,
    InputBuffer,
    NormalMode,
    ViewEntryMode,
    ViewState,
)
from .view_transform import ViewTransformer

logger = logging.getLogger(__name__)


class Request(Enum):
    """Work the view must carry out on behalf of the session"""
    LOAD_MORE = "load_more"
    LOAD_TO_END = "load_to_end"
    QUIT = "quit"


def key_name(key: str, character: Optional[str] = None) -> str:
    """Printable single characters are matched by character, the rest by key"""
    if character and len(character) == 1 and character.isprintable() and not character.isspace():
        return character
    return key


class LogSession:
    """
    State of one viewing session over one file

    All methods run on the event loop. Only on_load_more,
    on_load_to_end_batch and on_tail_result append to the store.
    """

    def __init__(self, reader: LogFileReader, settings: Optional[ViewerSettings] = None,
                 estimated_total: Optional[int] = None):
        self.reader = reader
        self.settings = settings or ViewerSettings()
        self.filters = FilterEngine()
        self.transformer = ViewTransformer()
        self.view = ViewState()
        self.tail = TailMonitor(reader.file_path, reader.parser)

        self.visible: List[LogLine] = []
        self.estimated_total = estimated_total if estimated_total is not None else len(reader.store)

        # Background load bookkeeping; at most one load in flight
        self.loading_more = False
        self.loading_to_end = False
        self.follow_after_load = False
        self._queued_load_to_end = False
        self.spinner_frame = 0

        self.message = ""

        self.recompute()
        self._start_tail_if_ready()

    @property
    def store(self) -> LineStore:
        return self.reader.store

    @property
    def file_name(self) -> str:
        return str(self.reader.file_path)

    @property
    def selected_line(self) -> Optional[LogLine]:
        if 0 <= self.view.cursor < len(self.visible):
            return self.visible[self.view.cursor]
        return None

    @property
    def selected_line_number(self) -> int:
        line = self.selected_line
        return line.line_number if line else 0

    def display_text(self, line: LogLine) -> str:
        return self.transformer.display_text(line)

    def recompute(self) -> None:
        """Derive the visible lines from the store and filters"""
        self.visible = self.filters.apply(self.store)

    def _refresh(self, anchor: int) -> None:
        self.recompute()
        self.view.reanchor(anchor, self.visible)

    def _report(self, message: str) -> None:
        self.message = message
        logger.info(message)

    def configure(self, filters: Iterable[str] = (), view_expression: Optional[str] = None,
                  tail: bool = False) -> None:
        """
        Apply startup filters, transform and tail mode

        Raises:
            ExpressionError: If any expression fails to compile
        """
        for expression in filters:
            self.filters.add(expression)
        if view_expression:
            self.transformer.set(view_expression)
        self.recompute()
        self.view.clamp(len(self.visible))
        if tail:
            self.view.tail_mode = True
            self.view.request_tail_jump(len(self.visible))

    # Filter mutations

    def add_filter(self, expression: str) -> bool:
        anchor = self.selected_line_number
        try:
            self.filters.add(expression)
        except ExpressionError as e:
            self._report(f"Invalid filter: {e.message}")
            return False
        self._refresh(anchor)
        return True

    def edit_filter(self, index: int, expression: str) -> bool:
        anchor = self.selected_line_number
        try:
            self.filters.edit(index, expression)
        except ExpressionError as e:
            self._report(f"Invalid filter: {e.message}")
            return False
        self._refresh(anchor)
        return True

    def toggle_filter(self, index: int) -> None:
        anchor = self.selected_line_number
        self.filters.toggle(index)
        self._refresh(anchor)

    def delete_filter(self, index: int) -> None:
        anchor = self.selected_line_number
        self.filters.delete(index)
        self._refresh(anchor)

    def set_view_transform(self, text: str) -> bool:
        try:
            self.transformer.set(text)
        except ExpressionError as e:
            self._report(f"Invalid view: {e.message}")
            return False
        return True

    # Loading

    def _start_tail_if_ready(self) -> None:
        if self.reader.is_fully_loaded and not self.tail.active:
            self.tail.start(*self.reader.tail_start)

    def maybe_request_load_more(self) -> Optional[Request]:
        """Ask for more lines once the cursor nears the end of what is loaded"""
        if self.reader.is_fully_loaded or not self.reader.has_handle:
            return None
        if self.loading_more or self.loading_to_end:
            return None
        remaining = len(self.visible) - self.view.cursor
        if remaining > self.settings.load_trigger_threshold:
            return None
        self.loading_more = True
        return Request.LOAD_MORE

    def on_load_more(self, result: LoadResult) -> Optional[Request]:
        """Merge a finished load_more; may start a queued load-to-end"""
        self.loading_more = False
        anchor = self.selected_line_number
        self.reader.apply(result)
        self._refresh(anchor)
        self._start_tail_if_ready()

        if self._queued_load_to_end:
            self._queued_load_to_end = False
            return self.begin_load_to_end(follow=self.follow_after_load)
        return None

    def begin_load_to_end(self, follow: bool = False) -> Optional[Request]:
        """
        Load the rest of the file, then select the last line

        Args:
            follow: Enable tail-follow once everything is loaded
        """
        if self.reader.is_fully_loaded:
            self.view.jump_to_bottom(len(self.visible))
            if follow:
                self.view.tail_mode = True
            return None

        self.follow_after_load = self.follow_after_load or follow
        if self.loading_to_end:
            return None
        if self.loading_more:
            self._queued_load_to_end = True
            return None

        self.loading_to_end = True
        self.spinner_frame = 0
        return Request.LOAD_TO_END

    def on_load_to_end_batch(self, result: LoadResult) -> None:
        """Merge one batch of a load-to-end"""
        self.reader.apply(result)
        if not result.complete:
            return

        self.loading_to_end = False
        self.recompute()
        self.view.jump_to_bottom(len(self.visible))
        if self.follow_after_load:
            self.follow_after_load = False
            self.view.tail_mode = True
        self._start_tail_if_ready()

    def advance_spinner(self) -> None:
        if self.loading_to_end:
            self.spinner_frame += 1

    # Tailing

    def on_tail_result(self, result: Optional[TailResult]) -> None:
        """Append lines found by the tail monitor"""
        if result is None or result.failed or not result.lines:
            return

        before = len(self.visible)
        anchor = self.selected_line_number
        self.reader.append_tail(result.lines)
        self.tail.commit(result)
        self.recompute()

        # Lines removed by filters must not move the cursor
        if self.view.tail_mode and len(self.visible) > before:
            self.view.request_tail_jump(len(self.visible))
        else:
            self.view.reanchor(anchor, self.visible)

    def poll_tail(self) -> None:
        """Synchronous poll, for callers without a worker pool"""
        self.on_tail_result(self.tail.check())

    def toggle_tail(self) -> Optional[Request]:
        if self.view.tail_mode or self.follow_after_load:
            self.view.tail_mode = False
            self.follow_after_load = False
            return None
        return self.begin_load_to_end(follow=True)

    def resize(self, width: int, height: int) -> None:
        self.view.resize(width, height, len(self.visible))

    # Input

    def handle_paste(self, text: str) -> None:
        """Insert the first line of pasted text into the active input"""
        mode = self.view.mode
        if isinstance(mode, INPUT_MODES) and text.strip():
            mode.buffer.insert(text.strip().splitlines()[0])

    def handle_key(self, key: str, character: Optional[str] = None) -> Optional[Request]:
        """
        React to one key press

        Args:
            key: Textual key name ("up", "ctrl+w", "f", ...)
            character: Printable character for the key, if any

        Returns:
            A Request for the view to carry out, or None
        """
        self.message = ""
        mode = self.view.mode
        if isinstance(mode, INPUT_MODES):
            self._handle_input_key(mode, key, character)
            return None
        if isinstance(mode, FilterManageMode):
            return self._handle_manage_key(key_name(key, character))
        if isinstance(mode, (DetailMode, HelpMode)):
            return self._handle_overlay_key(mode, key_name(key, character))
        return self._handle_normal_key(key_name(key, character))

    def _handle_normal_key(self, name: str) -> Optional[Request]:
        view = self.view
        count = len(self.visible)

        if name in ("q", "ctrl+c", "escape"):
            return Request.QUIT
        if name in ("up", "k"):
            view.move_up()
        elif name in ("down", "j"):
            view.move_down(count)
            return self.maybe_request_load_more()
        elif name == "pageup":
            view.page_up(count)
        elif name == "pagedown":
            view.page_down(count)
            return self.maybe_request_load_more()
        elif name == "home":
            view.jump_to_top()
        elif name == "end":
            return self.begin_load_to_end()
        elif name in ("left", "ctrl+left"):
            view.scroll_left(FAST_SCROLL_STEP if name == "ctrl+left" else 1)
        elif name in ("right", "ctrl+right"):
            line = self.selected_line
            if line is not None:
                step = FAST_SCROLL_STEP if name == "ctrl+right" else 1
                view.scroll_right(len(self.display_text(line)), step)
        elif name in ("enter", "space"):
            line = self.selected_line
            if line is not None:
                view.transition(DetailMode(line))
        elif name == "f":
            view.transition(FilterEntryMode())
        elif name == "F":
            self.filters.cursor = 0
            view.transition(FilterManageMode())
        elif name in ("v", "V"):
            view.transition(ViewEntryMode(InputBuffer(self.transformer.expression)))
        elif name == "t":
            return self.toggle_tail()
        elif name == "h":
            view.transition(HelpMode())
        return None

    def _handle_input_key(self, mode, key: str, character: Optional[str]) -> None:
        if key == "escape":
            self.view.transition(FilterManageMode() if isinstance(mode, FilterEditMode) else NormalMode())
            return
        if key != "enter":
            mode.buffer.handle_key(key, character)
            return

        text = mode.buffer.text
        if isinstance(mode, FilterEntryMode):
            if text:
                self.add_filter(text)
            self.view.transition(NormalMode())
        elif isinstance(mode, FilterEditMode):
            if text:
                self.edit_filter(mode.index, text)
            self.view.transition(FilterManageMode())
        else:
            self.set_view_transform(text)
            self.view.transition(NormalMode())

    def _handle_manage_key(self, name: str) -> Optional[Request]:
        filters = self.filters
        if name in ("escape", "F"):
            filters.cursor = 0
            self.view.transition(NormalMode())
        elif name in ("up", "k"):
            filters.move_cursor(-1)
        elif name in ("down", "j"):
            filters.move_cursor(1)
        elif not filters.filters:
            return None
        elif name in ("enter", "space"):
            self.toggle_filter(filters.cursor)
        elif name in ("d", "x"):
            self.delete_filter(filters.cursor)
        elif name == "e":
            current = filters.filters[filters.cursor]
            self.view.transition(FilterEditMode(filters.cursor, InputBuffer(current.expression)))
        return None

    def _handle_overlay_key(self, mode, name: str) -> Optional[Request]:
        view = self.view
        if name in ("q", "ctrl+c"):
            return Request.QUIT
        if name == "escape" or (name == "h" and isinstance(mode, HelpMode)) or \
                (name in ("enter", "space") and isinstance(mode, DetailMode)):
            view.transition(NormalMode())
        elif name in ("up", "k"):
            view.overlay_scroll_to(mode.scroll - 1)
        elif name in ("down", "j"):
            view.overlay_scroll_to(mode.scroll + 1)
        elif name == "pageup":
            view.overlay_scroll_to(mode.scroll - view.page_size)
        elif name == "pagedown":
            view.overlay_scroll_to(mode.scroll + view.page_size)
        return None
