"""
Viewer configuration

Tunables for loading, tailing and logging, plus the parsed startup options.
Values can be overridden through SIFT_* environment variables.
"""
import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


ENV_PREFIX = "SIFT_"


class ViewerSettings(BaseModel):
    """Runtime tunables for the viewer"""

    initial_chunk_size: int = Field(1000, gt=0)
    load_more_chunk_size: int = Field(500, gt=0)
    load_to_end_batch_size: int = Field(1000, gt=0)
    estimate_sample_size: int = Field(100, gt=0)
    load_trigger_threshold: int = Field(100, ge=0)
    tail_poll_interval: float = Field(0.2, gt=0)
    spinner_interval: float = Field(0.15, gt=0)
    watch_events: bool = True
    log_dir: Path = Path("app_log")
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        value = value.strip().upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {value}")
        return value

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "ViewerSettings":
        """
        Build settings from SIFT_* environment variables

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            Validated ViewerSettings
        """
        environ = os.environ if environ is None else environ
        overrides = {}
        for name in cls.model_fields:
            key = ENV_PREFIX + name.upper()
            if key in environ:
                overrides[name] = environ[key]
        return cls(**overrides)


class StartupOptions(BaseModel):
    """Startup parameters parsed from the command line"""

    path: Path
    filters: List[str] = Field(default_factory=list)
    view_expression: Optional[str] = None
    tail: bool = False
