import logging
import os

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)


class SourceFileEventHandler(FileSystemEventHandler):
    """Forwards events that concern one file to a callback."""

    def __init__(self, file_path, callback=None):
        super().__init__()
        self.file_path = os.path.abspath(file_path)
        self.callback = callback

    def _process_event(self, event_type, event):
        if event.is_directory:
            return
        src = os.path.abspath(event.src_path)
        dest = getattr(event, "dest_path", "")
        if src != self.file_path and (not dest or os.path.abspath(dest) != self.file_path):
            return
        if self.callback:
            self.callback(event_type, src)

    def on_created(self, event):
        self._process_event("created", event)

    def on_modified(self, event):
        self._process_event("modified", event)

    def on_deleted(self, event):
        self._process_event("deleted", event)

    def on_moved(self, event):
        self._process_event("moved", event)


class FileWatcher:
    """
    Watches the directory holding the source file

    Callbacks run on the observer thread; callers hand them over to their
    own event loop.
    """

    def __init__(self, file_path, callback=None):
        self.file_path = os.path.abspath(file_path)
        self.observer = Observer()
        self.event_handler = SourceFileEventHandler(self.file_path, callback)
        self.schedule_object = None

    def start(self):
        if self.schedule_object is not None:
            logger.debug("Already watching %s", self.file_path)
            return False

        directory = os.path.dirname(self.file_path)
        if not os.path.isdir(directory):
            logger.warning("Directory not found: %s", directory)
            return False

        try:
            self.schedule_object = self.observer.schedule(self.event_handler, directory, recursive=False)
            if not self.observer.is_alive():
                self.observer.start()
        except OSError as e:
            # Polling still works without change notifications
            logger.warning("Could not watch %s: %s", directory, e)
            self.schedule_object = None
            return False

        logger.info("Watching %s for changes", self.file_path)
        return True

    def stop(self):
        if self.schedule_object is not None:
            self.observer.unschedule(self.schedule_object)
            self.schedule_object = None
        if self.observer.is_alive():
            self.observer.stop()
            self.observer.join()
            logger.info("Stopped watching %s", self.file_path)
