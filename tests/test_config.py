from pathlib import Path

import pytest
from pydantic import ValidationError

from SIFT.config import StartupOptions, ViewerSettings


class TestViewerSettings:

    def test_defaults(self):
        settings = ViewerSettings()
        assert settings.initial_chunk_size == 1000
        assert settings.load_more_chunk_size == 500
        assert settings.load_trigger_threshold == 100
        assert settings.estimate_sample_size == 100
        assert settings.tail_poll_interval == pytest.approx(0.2)
        assert settings.log_level == "INFO"

    def test_from_env_overrides(self):
        settings = ViewerSettings.from_env({
            "SIFT_INITIAL_CHUNK_SIZE": "50",
            "SIFT_WATCH_EVENTS": "false",
            "SIFT_LOG_LEVEL": "debug",
            "SIFT_LOG_DIR": "/tmp/sift-logs",
            "UNRELATED": "x",
        })
        assert settings.initial_chunk_size == 50
        assert settings.watch_events is False
        assert settings.log_level == "DEBUG"
        assert settings.log_dir == Path("/tmp/sift-logs")

    def test_invalid_values_rejected(self):
        with pytest.raises(ValidationError):
            ViewerSettings.from_env({"SIFT_INITIAL_CHUNK_SIZE": "0"})
        with pytest.raises(ValidationError):
            ViewerSettings(log_level="LOUD")


class TestStartupOptions:

    def test_defaults(self):
        options = StartupOptions(path="app.log")
        assert options.path == Path("app.log")
        assert options.filters == []
        assert options.view_expression is None
        assert not options.tail
