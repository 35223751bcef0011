"""
SIFT Main Application - Full-screen log viewer using Textual
"""
from typing import Optional

from textual.app import App, ComposeResult
from textual.binding import Binding

from SIFT.config import ViewerSettings
from SIFT.UI.views.log_viewer import LogSession, LogViewerView


class SiftApp(App):
    """Interactive viewer for JSON-per-line log files"""

    TITLE = "SIFT - Log Viewer"
    CSS_PATH = "sift.tcss"

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
    ]

    def __init__(self, session: LogSession, settings: Optional[ViewerSettings] = None, **kwargs):
        super().__init__(**kwargs)
        self.session = session
        self.settings = settings or session.settings
        self.sub_title = session.file_name

    def compose(self) -> ComposeResult:
        """Compose the main UI layout"""
        yield LogViewerView(self.session, self.settings, id="log-viewer-view")


def run_app(session: LogSession, settings: Optional[ViewerSettings] = None) -> int:
    """Run the viewer until the user quits and return the exit code"""
    app = SiftApp(session, settings)
    result = app.run()
    return result if isinstance(result, int) else 0
