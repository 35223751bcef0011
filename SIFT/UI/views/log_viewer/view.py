"""
Log Viewer View Module - Textual front end of a LogSession

Handles:
- Composition of the log pane and status bar
- Forwarding keys, paste and resize events to the session
- Background reads for load-more, load-to-end and tail checks
- Tail polling and spinner timers
- Change notifications from the file watcher
"""
import logging
from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.message import Message
from textual.timer import Timer

from SIFT.config import ViewerSettings
from SIFT.filemon.file_watch import FileWatcher

from .components import LogPane, StatusBar, measure_overlay
from .log_reader import LoadResult
from .session import LogSession, Request
from .tail_monitor import TailResult

logger = logging.getLogger(__name__)


class LinesLoaded(Message):
    """A load-more read finished"""

    def __init__(self, result: LoadResult) -> None:
        super().__init__()
        self.result = result


class LoadToEndBatch(Message):
    """One batch of a load-to-end read"""

    def __init__(self, result: LoadResult) -> None:
        super().__init__()
        self.result = result


class TailLines(Message):
    """A tail check finished; result is None when nothing was appended"""

    def __init__(self, result: Optional[TailResult]) -> None:
        super().__init__()
        self.result = result


class FileChanged(Message):
    """The watcher saw the source file change"""

    def __init__(self, event_type: str) -> None:
        super().__init__()
        self.event_type = event_type


class LogViewerView(Vertical, can_focus=True):
    """
    Full-screen viewer over one JSON-per-line file

    Worker threads only read from the file and post messages; every change
    to the session happens in the message handlers on the event loop.
    """

    def __init__(self, session: LogSession, settings: Optional[ViewerSettings] = None, **kwargs):
        super().__init__(**kwargs)
        self.session = session
        self.settings = settings or session.settings

        self.tail_timer: Optional[Timer] = None
        self.spinner_timer: Optional[Timer] = None
        self.watcher: Optional[FileWatcher] = None
        self._tail_check_pending = False

    def compose(self) -> ComposeResult:
        yield LogPane(self.session, id="log-pane")
        yield StatusBar(self.session, id="status-bar")

    def on_mount(self) -> None:
        self.focus()
        self.tail_timer = self.set_interval(self.settings.tail_poll_interval, self.check_tail)
        self.spinner_timer = self.set_interval(self.settings.spinner_interval, self._tick_spinner)

        if self.settings.watch_events:
            self.watcher = FileWatcher(self.session.reader.file_path, self._on_file_event)
            self.watcher.start()

        self._sync()

    def on_unmount(self) -> None:
        if self.tail_timer:
            self.tail_timer.stop()
            self.tail_timer = None
        if self.spinner_timer:
            self.spinner_timer.stop()
            self.spinner_timer = None
        if self.watcher:
            self.watcher.stop()
            self.watcher = None
        self.session.reader.close()

    def _sync(self) -> None:
        """Push session state to the widgets"""
        measure_overlay(self.session)
        self.query_one("#log-pane", LogPane).refresh()
        self.query_one("#status-bar", StatusBar).refresh()

    def dispatch_request(self, request: Optional[Request]) -> None:
        if request is Request.LOAD_MORE:
            self._load_more()
        elif request is Request.LOAD_TO_END:
            self._load_to_end()
        elif request is Request.QUIT:
            self.app.exit(0)

    # Input

    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        request = self.session.handle_key(event.key, event.character)
        self.dispatch_request(request)
        self._sync()

    def on_paste(self, event: events.Paste) -> None:
        event.stop()
        self.session.handle_paste(event.text)
        self._sync()

    def on_resize(self, event: events.Resize) -> None:
        self.session.resize(event.size.width, event.size.height)
        self._sync()

    # Background reads

    @work(exclusive=True, thread=True, group="loader")
    def _load_more(self) -> None:
        """Read the next chunk without touching the store"""
        result = self.session.reader.read_more(self.settings.load_more_chunk_size)
        self.post_message(LinesLoaded(result))

    @work(exclusive=True, thread=True, group="loader")
    def _load_to_end(self) -> None:
        """Read the rest of the file batch by batch"""
        for result in self.session.reader.iter_to_end(self.settings.load_to_end_batch_size):
            self.post_message(LoadToEndBatch(result))

    @work(exclusive=True, thread=True, group="tail")
    def _check_tail(self) -> None:
        self.post_message(TailLines(self.session.tail.check()))

    def check_tail(self) -> None:
        """Start a tail check unless one is still running"""
        if not self.session.tail.active or self._tail_check_pending:
            return
        self._tail_check_pending = True
        self._check_tail()

    def _tick_spinner(self) -> None:
        if self.session.loading_to_end:
            self.session.advance_spinner()
            self.query_one("#status-bar", StatusBar).refresh()

    def _on_file_event(self, event_type: str, path: str) -> None:
        # Runs on the watchdog observer thread
        self.post_message(FileChanged(event_type))

    # Results

    @on(LinesLoaded)
    def handle_lines_loaded(self, message: LinesLoaded) -> None:
        self.dispatch_request(self.session.on_load_more(message.result))
        self._sync()

    @on(LoadToEndBatch)
    def handle_load_to_end_batch(self, message: LoadToEndBatch) -> None:
        self.session.on_load_to_end_batch(message.result)
        if message.result.complete:
            self._sync()
        else:
            self.query_one("#status-bar", StatusBar).refresh()

    @on(TailLines)
    def handle_tail_lines(self, message: TailLines) -> None:
        self._tail_check_pending = False
        if message.result is None:
            return
        self.session.on_tail_result(message.result)
        self._sync()

    @on(FileChanged)
    def handle_file_changed(self, message: FileChanged) -> None:
        logger.debug("Source file %s", message.event_type)
        self.check_tail()
