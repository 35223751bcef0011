import json
import os
import shutil
import tempfile

import pytest


@pytest.fixture
def temp_dir_manager(request):
    temp_dir = tempfile.mkdtemp(prefix="sift_test_")

    def cleanup_dir():
        if os.path.exists(temp_dir):
            shutil.rmtree(temp_dir)

    request.addfinalizer(cleanup_dir)
    return temp_dir


@pytest.fixture
def write_log(temp_dir_manager):
    """Write lines (dicts are JSON-encoded) to a file and return its path"""

    def _write(lines, name="app.log", terminate_last=True):
        path = os.path.join(temp_dir_manager, name)
        encoded = [json.dumps(line) if isinstance(line, dict) else line for line in lines]
        content = "\n".join(encoded)
        if encoded and terminate_last:
            content += "\n"
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return path

    return _write


@pytest.fixture
def append_log():
    """Append terminated lines to an existing log file"""

    def _append(path, lines):
        with open(path, "a", encoding="utf-8") as f:
            for line in lines:
                f.write((json.dumps(line) if isinstance(line, dict) else line) + "\n")

    return _append
