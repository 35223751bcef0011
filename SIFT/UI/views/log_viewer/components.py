"""
Log Viewer Components Module - Rendering of the log pane and status bar

Handles:
- Log line rows with selection, truncation and horizontal scroll
- Detail (pretty JSON) and help overlays
- Filter management list
- Status bar text and input prompts with a visible cursor
"""
import json
from typing import List

from rich.highlighter import JSONHighlighter
from rich.text import Text
from textual.widget import Widget

from .log_parser import LogLine
from .session import LogSession
from .view_state import (
    DetailMode,
    FilterEditMode,
    FilterEntryMode,
    FilterManageMode,
    HelpMode,
    InputBuffer,
    ViewEntryMode,
)

LINE_STYLE = ""
INVALID_LINE_STYLE = "#666666"
SELECTED_LINE_STYLE = "bold #ffffff on #004499"
STATUS_STYLE = "#ffffff on #0066cc"

PROMPT_STYLES = {
    FilterEntryMode: ("Filter: ", "#000000 on #ffd700"),
    FilterEditMode: ("Edit Filter: ", "#ffffff on #ff6600"),
    ViewEntryMode: ("View: ", "#ffffff on #9966cc"),
}

SPINNER_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"

HELP_LINES = [
    "SIFT - Interactive Log Viewer",
    "",
    "NAVIGATION:",
    "  ↑/↓, k/j        Navigate up/down through log lines",
    "  ←/→             Scroll selected line horizontally",
    "  Ctrl+←/→        Fast horizontal scroll (5 characters)",
    "  PgUp/PgDn       Page up/down through logs",
    "  Home            Jump to first line",
    "  End             Jump to last line (loads entire file if needed)",
    "  Space/Enter     Open pretty-print view for selected line",
    "",
    "FILTERING:",
    "  f               Add a new jq filter",
    "  F               Open filter management",
    "    ↑/↓           Navigate between filters",
    "    Space/Enter   Toggle filter on/off",
    "    e             Edit filter expression",
    "    d/x           Delete filter",
    "    F/Esc         Exit management",
    "",
    "VIEW TRANSFORMATIONS:",
    "  v/V             Enter view mode to transform display",
    "                  (use jq expressions to format output)",
    "",
    "TAIL MODE:",
    "  t               Toggle tail mode (auto-jump to bottom on new lines)",
    "                  Shows T=on/T=off in status bar",
    "",
    "OTHER:",
    "  h               Show/hide this help screen",
    "  q/Ctrl+C        Quit application",
    "  Esc             Close help/pretty-print view or quit",
    "",
    "COMMAND LINE:",
    "  -f <filter>     Apply jq filter on startup (repeatable)",
    "  -V <view>       Apply view transformation on startup",
    "  -t              Start with tail mode enabled",
    "",
    "Press 'h' or 'Esc' to close this help screen",
]

_json_highlighter = JSONHighlighter()


def format_count(value: int) -> str:
    return f"{value:,}"


def total_indicator(session: LogSession) -> str:
    """Exact count once loaded, otherwise an estimate or a lower bound"""
    if session.reader.is_fully_loaded:
        return format_count(len(session.visible))
    loaded = len(session.store)
    if session.estimated_total > loaded:
        return f"~{format_count(session.estimated_total)}"
    return f"{format_count(loaded)}+"


def spinner_char(frame: int) -> str:
    return SPINNER_FRAMES[frame % len(SPINNER_FRAMES)]


def wrap_line(text: str, width: int) -> List[str]:
    """Hard-wrap text into chunks of at most width characters"""
    width = max(1, width)
    if len(text) <= width:
        return [text]
    return [text[i:i + width] for i in range(0, len(text), width)]


def detail_lines(line: LogLine, width: int) -> List[str]:
    """Content of the detail overlay, wrapped to width"""
    if line.is_valid:
        pretty = json.dumps(line.json_data, indent=2, ensure_ascii=False)
        source = pretty.split("\n")
    else:
        source = ["Invalid JSON:", line.raw_line]

    lines = []
    for text in source:
        lines.extend(wrap_line(text, width - 2))
    return lines


def overlay_lines(session: LogSession) -> List[str]:
    mode = session.view.mode
    if isinstance(mode, DetailMode):
        return detail_lines(mode.line, session.view.width)
    if isinstance(mode, HelpMode):
        return HELP_LINES
    return []


def measure_overlay(session: LogSession) -> None:
    """Report overlay length to the view state so scrolling stays bounded"""
    view = session.view
    view.overlay_length = len(overlay_lines(session))
    view.overlay_scroll_to(view.overlay_scroll)


def clip(text: str, width: int) -> str:
    if width > 15 and len(text) > width and width > 3:
        return text[:width - 3] + "..."
    return text


def log_rows(session: LogSession) -> List[Text]:
    view = session.view
    rows: List[Text] = []

    if not session.visible:
        if len(session.store) > 0:
            rows.append(Text("All lines filtered out by active filters"))
        return rows

    end = min(len(session.visible), view.viewport + view.page_size)
    for index in range(view.viewport, end):
        line = session.visible[index]
        selected = index == view.cursor
        display = session.display_text(line)
        if selected and view.line_scroll > 0 and len(display) > view.line_scroll:
            display = display[view.line_scroll:]

        text = ("> " if selected else "  ") + clip(display, view.line_width)
        if not line.is_valid:
            text += " [INVALID JSON]"

        if selected:
            style = SELECTED_LINE_STYLE
        elif not line.is_valid:
            style = INVALID_LINE_STYLE
        else:
            style = LINE_STYLE
        rows.append(Text(text, style=style, no_wrap=True))
    return rows


def filter_manage_rows(session: LogSession) -> List[Text]:
    filters = session.filters
    width = session.view.width
    if not filters.filters:
        return [Text("No filters defined.")]

    rows = [
        Text("Filter Management (ENTER/SPACE to toggle, e to edit, d/x to delete, ESC to exit):"),
        Text(""),
    ]
    for i, item in enumerate(filters.filters):
        selected = i == filters.cursor
        marker = "[✓]" if item.enabled else "[ ]"
        text = f"{'> ' if selected else '  '}{marker} {item.expression}"
        if len(text) > width - 2:
            text = text[:max(0, width - 5)] + "..."
        rows.append(Text(text, style=SELECTED_LINE_STYLE if selected else LINE_STYLE, no_wrap=True))
    return rows


def content_rows(session: LogSession) -> List[Text]:
    """Rows above the status bar for the current mode"""
    view = session.view
    mode = view.mode
    if isinstance(mode, DetailMode):
        lines = overlay_lines(session)
        window = lines[mode.scroll:mode.scroll + view.page_size]
        return [_json_highlighter(Text(text, no_wrap=True)) for text in window]
    if isinstance(mode, HelpMode):
        window = HELP_LINES[mode.scroll:mode.scroll + view.page_size]
        return [Text(text, no_wrap=True) for text in window]
    if isinstance(mode, (FilterManageMode, FilterEditMode)):
        return filter_manage_rows(session)[:view.page_size]
    return log_rows(session)


def prompt_text(prefix: str, buffer: InputBuffer, style: str, width: int) -> Text:
    """Input line with the character under the cursor shown in reverse"""
    text = Text(prefix, style=style, no_wrap=True)
    text.append(buffer.text[:buffer.cursor], style=style)
    under_cursor = buffer.text[buffer.cursor:buffer.cursor + 1] or " "
    text.append(under_cursor, style=f"reverse {style}")
    text.append(buffer.text[buffer.cursor + 1:], style=style)
    padding = width - 1 - text.cell_len
    if padding > 0:
        text.append(" " * padding, style=style)
    return text


def status_text(session: LogSession) -> Text:
    view = session.view
    mode = view.mode
    width = view.width

    prompt = PROMPT_STYLES.get(type(mode))
    if prompt is not None:
        prefix, style = prompt
        return prompt_text(prefix, mode.buffer, style, width)

    if isinstance(mode, FilterManageMode):
        if not session.filters.filters:
            message = "Filter Management | No filters defined | F/ESC=exit to main view"
        else:
            message = (
                f"Filter Management | {session.filters.enabled_count}/{len(session.filters)} "
                f"filters enabled | ENTER/SPACE=toggle | e=edit | d/x=delete | F/ESC=exit"
            )
    elif isinstance(mode, HelpMode):
        scroll_info = ""
        if view.overlay_max_scroll > 0:
            scroll_info = f" ({mode.scroll + 1}/{view.overlay_max_scroll + 1})"
        message = f"{session.file_name} | Help Screen{scroll_info} | h/ESC=Close"
    elif isinstance(mode, DetailMode):
        message = (
            f"{session.file_name} | Line {format_count(mode.line.line_number)} | "
            f"ESC/ENTER/SPACE=Close"
        )
    else:
        line_number = session.selected_line_number or view.cursor + 1
        tail = "T=on" if view.tail_mode else "T=off"
        message = (
            f"{session.file_name} | Line {format_count(line_number)}/"
            f"{total_indicator(session)} | h=Help | {tail}"
        )

    if session.message:
        message = f"{message} | {session.message}"

    text = Text(message, style=STATUS_STYLE, no_wrap=True)
    if session.loading_to_end:
        text.truncate(max(0, width - 3), pad=True)
        text.append(f"{spinner_char(session.spinner_frame)} ", style=STATUS_STYLE)
    else:
        text.truncate(max(0, width - 1), pad=True)
    return text


class LogPane(Widget):
    """Rows of the current mode above the status bar"""

    def __init__(self, session: LogSession, **kwargs):
        super().__init__(**kwargs)
        self.session = session

    def render(self) -> Text:
        return Text("\n").join(content_rows(self.session))


class StatusBar(Widget):
    """Single-row status bar or input prompt"""

    def __init__(self, session: LogSession, **kwargs):
        super().__init__(**kwargs)
        self.session = session

    def render(self) -> Text:
        return status_text(self.session)
