import os
import time
from unittest.mock import MagicMock

import pytest
from watchdog.events import (
    DirModifiedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from SIFT.filemon.file_watch import FileWatcher, SourceFileEventHandler


@pytest.fixture
def watched_file(temp_dir_manager):
    path = os.path.join(temp_dir_manager, "app.log")
    with open(path, "w") as f:
        f.write('{"n":1}\n')
    return path


@pytest.fixture
def callback():
    return MagicMock()


class TestSourceFileEventHandler:

    def test_modified_source_file(self, watched_file, callback):
        handler = SourceFileEventHandler(watched_file, callback)
        handler.dispatch(FileModifiedEvent(watched_file))
        callback.assert_called_once_with("modified", os.path.abspath(watched_file))

    def test_created_and_deleted(self, watched_file, callback):
        handler = SourceFileEventHandler(watched_file, callback)
        handler.dispatch(FileCreatedEvent(watched_file))
        handler.dispatch(FileDeletedEvent(watched_file))
        assert [c.args[0] for c in callback.call_args_list] == ["created", "deleted"]

    def test_other_files_are_ignored(self, watched_file, callback, temp_dir_manager):
        handler = SourceFileEventHandler(watched_file, callback)
        handler.dispatch(FileModifiedEvent(os.path.join(temp_dir_manager, "other.log")))
        callback.assert_not_called()

    def test_directory_events_are_ignored(self, watched_file, callback, temp_dir_manager):
        handler = SourceFileEventHandler(watched_file, callback)
        handler.dispatch(DirModifiedEvent(temp_dir_manager))
        callback.assert_not_called()

    def test_rotation_into_place(self, watched_file, callback, temp_dir_manager):
        handler = SourceFileEventHandler(watched_file, callback)
        handler.dispatch(FileMovedEvent(os.path.join(temp_dir_manager, "app.log.tmp"), watched_file))
        assert callback.call_args.args[0] == "moved"


class TestFileWatcher:

    def test_notifies_on_append(self, watched_file, callback):
        watcher = FileWatcher(watched_file, callback)
        assert watcher.start()
        try:
            time.sleep(0.1)
            with open(watched_file, "a") as f:
                f.write('{"n":2}\n')

            deadline = time.time() + 3
            while not callback.called and time.time() < deadline:
                time.sleep(0.05)
            assert callback.called
        finally:
            watcher.stop()

    def test_start_twice_is_refused(self, watched_file, callback):
        watcher = FileWatcher(watched_file, callback)
        try:
            assert watcher.start()
            assert not watcher.start()
        finally:
            watcher.stop()

    def test_missing_directory(self, temp_dir_manager, callback):
        watcher = FileWatcher(os.path.join(temp_dir_manager, "gone", "app.log"), callback)
        assert not watcher.start()
        watcher.stop()
