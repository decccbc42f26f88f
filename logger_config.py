import logging
import logging.handlers
import os
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Configure root logging for an entry point.

    Level comes from the argument, then STORYWEAVER_LOG_LEVEL, then WARNING.
    A rotating file handler is added when a log file is given or
    STORYWEAVER_LOG_FILE is set.
    """
    formatter = logging.Formatter(LOG_FORMAT)

    # avoid duplicate output when called more than once (e.g. Streamlit reruns)
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
        handler.close()

    logging.root.setLevel((level or os.getenv("STORYWEAVER_LOG_LEVEL", "WARNING")).upper())

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logging.root.addHandler(console_handler)

    log_file = log_file or os.getenv("STORYWEAVER_LOG_FILE")
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        logging.root.addHandler(file_handler)

    logging.captureWarnings(True)
