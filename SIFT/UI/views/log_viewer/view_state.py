"""
View State Module - Cursor, scroll and UI mode bookkeeping

Handles:
- The current UI mode as one tagged value with its own payload
- Selection index and vertical window over the visible lines
- Horizontal scroll of the selected line
- Re-anchoring the selection after the visible lines change shape
- Deferred jump to the bottom until the terminal size is known
"""
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

from .log_parser import LogLine

# Columns taken by the cursor marker and the reserved rightmost column
LINE_MARGIN = 3
FAST_SCROLL_STEP = 5


class InputBuffer:
    """Single-line text input with a movable cursor"""

    def __init__(self, text: str = ""):
        self.text = text
        self.cursor = len(text)

    def insert(self, chars: str) -> None:
        self.text = self.text[:self.cursor] + chars + self.text[self.cursor:]
        self.cursor += len(chars)

    def backspace(self) -> None:
        if self.cursor > 0:
            self.text = self.text[:self.cursor - 1] + self.text[self.cursor:]
            self.cursor -= 1

    def delete(self) -> None:
        if self.cursor < len(self.text):
            self.text = self.text[:self.cursor] + self.text[self.cursor + 1:]

    def delete_word(self) -> None:
        """Delete any spaces before the cursor, then the word before them"""
        start = self.cursor
        while start > 0 and self.text[start - 1] == " ":
            start -= 1
        while start > 0 and self.text[start - 1] != " ":
            start -= 1
        self.text = self.text[:start] + self.text[self.cursor:]
        self.cursor = start

    def kill_to_end(self) -> None:
        self.text = self.text[:self.cursor]

    def handle_key(self, key: str, character: Optional[str] = None) -> bool:
        """
        Apply an editing key

        Returns:
            True if the key was consumed
        """
        if key == "left":
            self.cursor = max(0, self.cursor - 1)
        elif key == "right":
            self.cursor = min(len(self.text), self.cursor + 1)
        elif key in ("home", "ctrl+a"):
            self.cursor = 0
        elif key in ("end", "ctrl+e"):
            self.cursor = len(self.text)
        elif key == "backspace":
            self.backspace()
        elif key in ("delete", "ctrl+d"):
            self.delete()
        elif key == "ctrl+w":
            self.delete_word()
        elif key == "ctrl+k":
            self.kill_to_end()
        elif character and len(character) == 1 and character.isprintable():
            self.insert(character)
        else:
            return False
        return True


@dataclass
class NormalMode:
    """Browsing the log lines"""


@dataclass
class FilterEntryMode:
    """Typing a new filter expression"""
    buffer: InputBuffer = field(default_factory=InputBuffer)


@dataclass
class FilterManageMode:
    """Listing filters; the cursor lives in the FilterEngine"""


@dataclass
class FilterEditMode:
    """Editing the filter at index"""
    index: int
    buffer: InputBuffer = field(default_factory=InputBuffer)


@dataclass
class ViewEntryMode:
    """Typing the view transform expression"""
    buffer: InputBuffer = field(default_factory=InputBuffer)


@dataclass
class DetailMode:
    """Expanded view of one line"""
    line: LogLine
    scroll: int = 0


@dataclass
class HelpMode:
    """Help overlay"""
    scroll: int = 0


Mode = Union[NormalMode, FilterEntryMode, FilterManageMode, FilterEditMode,
             ViewEntryMode, DetailMode, HelpMode]

INPUT_MODES = (FilterEntryMode, FilterEditMode, ViewEntryMode)
OVERLAY_MODES = (DetailMode, HelpMode)


class ViewState:
    """
    Selection and scrolling over the visible lines

    Every method taking a count expects the current length of the visible
    sequence and leaves cursor and viewport consistent with it.
    """

    def __init__(self, width: int = 80, height: int = 24):
        self.width = width
        self.height = height
        self.size_known = False

        self.cursor = 0
        self.viewport = 0
        self.line_scroll = 0

        self.tail_mode = False
        self.pending_tail_jump = False

        self.mode: Mode = NormalMode()
        # Number of rendered lines in the Detail/Help overlay
        self.overlay_length = 0

    @property
    def page_size(self) -> int:
        """Rows available for lines above the status bar"""
        return max(1, self.height - 1)

    @property
    def line_width(self) -> int:
        return self.width - LINE_MARGIN

    def transition(self, mode: Mode) -> None:
        """Enter a new mode; horizontal scroll never survives a mode change"""
        self.mode = mode
        self.line_scroll = 0
        self.overlay_length = 0

    def _ensure_visible(self) -> None:
        if self.cursor < self.viewport:
            self.viewport = self.cursor
        elif self.cursor >= self.viewport + self.page_size:
            self.viewport = self.cursor - self.page_size + 1
        self.viewport = max(0, self.viewport)

    def clamp(self, count: int) -> None:
        """Bring cursor and viewport back inside a sequence of count lines"""
        if count <= 0:
            self.cursor = 0
            self.viewport = 0
            return
        self.cursor = min(max(0, self.cursor), count - 1)
        self.viewport = min(self.viewport, self.cursor)
        self._ensure_visible()

    def move_up(self) -> None:
        if self.cursor > 0:
            self.cursor -= 1
            self._ensure_visible()
        self.line_scroll = 0

    def move_down(self, count: int) -> None:
        if self.cursor < count - 1:
            self.cursor += 1
            self._ensure_visible()
        self.line_scroll = 0

    def page_up(self, count: int) -> None:
        if count > 0:
            self.cursor = max(0, self.cursor - self.page_size)
            self._ensure_visible()
        self.line_scroll = 0

    def page_down(self, count: int) -> None:
        if count > 0:
            self.cursor = min(count - 1, self.cursor + self.page_size)
            self._ensure_visible()
        self.line_scroll = 0

    def jump_to_top(self) -> None:
        self.cursor = 0
        self.viewport = 0
        self.line_scroll = 0

    def jump_to_bottom(self, count: int) -> None:
        """Select the last line and show it just above the status bar"""
        if count <= 0:
            self.cursor = 0
            self.viewport = 0
        else:
            self.cursor = count - 1
            self.viewport = max(0, count - self.page_size)
        self.line_scroll = 0

    def scroll_left(self, step: int = 1) -> None:
        self.line_scroll = max(0, self.line_scroll - step)

    def scroll_right(self, line_length: int, step: int = 1) -> None:
        """Scroll the selected line, stopping when its end is in view"""
        max_scroll = line_length - self.line_width
        if max_scroll <= 0:
            return
        self.line_scroll = min(max_scroll, self.line_scroll + step)

    def reanchor(self, line_number: int, visible: Sequence[LogLine]) -> None:
        """
        Select line_number again, or the nearest line before it

        Falls back to the first line when nothing at or before line_number
        survived.
        """
        best = 0
        for i, line in enumerate(visible):
            if line.line_number > line_number:
                break
            best = i
            if line.line_number == line_number:
                break
        self.cursor = best
        self.clamp(len(visible))
        self.line_scroll = 0

    def request_tail_jump(self, count: int) -> None:
        """Jump to the bottom now, or as soon as the size is known"""
        if self.size_known:
            self.jump_to_bottom(count)
        else:
            self.pending_tail_jump = True

    def resize(self, width: int, height: int, count: int) -> None:
        self.width = width
        self.height = height
        self.size_known = True
        if self.pending_tail_jump:
            self.pending_tail_jump = False
            self.jump_to_bottom(count)
        else:
            self.clamp(count)
        self.overlay_scroll_to(self.overlay_scroll)

    @property
    def overlay_scroll(self) -> int:
        if isinstance(self.mode, OVERLAY_MODES):
            return self.mode.scroll
        return 0

    @property
    def overlay_max_scroll(self) -> int:
        return max(0, self.overlay_length - self.page_size)

    def overlay_scroll_to(self, position: int) -> None:
        if isinstance(self.mode, OVERLAY_MODES):
            self.mode.scroll = min(max(0, position), self.overlay_max_scroll)
