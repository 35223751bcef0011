import logging
import os

LOG_FILE_NAME = "sift.log"

# The TUI owns the terminal, so records only ever go to a file
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(log_dir="app_log", level="INFO"):
    """Send all SIFT log records to <log_dir>/sift.log and return its path."""
    log_dir = str(log_dir)
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    log_path = os.path.join(log_dir, LOG_FILE_NAME)
    logging.basicConfig(
        filename=log_path,
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )
    logging.getLogger(__name__).debug("Logging configured at level %s", level)
    return log_path
