"""
Log Viewer Package - Interactive viewing of JSON-per-line log files

This package provides a keyboard-driven log viewer with:
- Incremental loading with a retained file handle
- jq filters that can be toggled, edited and deleted
- jq view transforms reshaping the displayed text
- Tail-follow of appended lines
- Pretty-printed detail view of a single line

Package Structure:
- view: Textual view and background workers (LogViewerView)
- components: Rendering of the log pane and status bar (LogPane, StatusBar)
- session: Coordination of everything below (LogSession)
- view_state: Cursor, scrolling and UI modes (ViewState)
- filter_engine: jq filters (FilterEngine, Filter)
- view_transform: jq display transform (ViewTransformer)
- log_reader: File loading (LogFileReader, LineStore)
- tail_monitor: Appended-line detection (TailMonitor)
- log_parser: Line parsing (LogParser, LogLine)
"""

from .view import LogViewerView

from .components import LogPane, StatusBar
from .session import LogSession, Request
from .view_state import ViewState
from .filter_engine import Filter, FilterEngine
from .view_transform import ViewTransformer
from .log_reader import LineStore, LoadResult, LogFileReader
from .tail_monitor import TailMonitor, TailResult
from .log_parser import LogLine, LogParser

__all__ = [
    # Main view
    'LogViewerView',

    # UI components
    'LogPane',
    'StatusBar',

    # Core components
    'LogSession',
    'Request',
    'ViewState',
    'FilterEngine',
    'ViewTransformer',
    'LogFileReader',
    'TailMonitor',
    'LogParser',

    # Data models
    'Filter',
    'LineStore',
    'LoadResult',
    'TailResult',
    'LogLine',
]
