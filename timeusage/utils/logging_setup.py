# ========================
# timeusage/utils/logging_setup.py
# ========================

"""
Logging Configuration

Logging setup shared by the CLI, the API server and the scale-test script.
Pipeline stages log through module loggers; warnings raised by the grouping
stage (missing demographic groups) are captured into the same handlers.
"""

import logging
import sys
from pathlib import Path
from typing import Optional


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at INFO for pipeline runs
NOISY_LOGGERS = ("uvicorn.access", "multipart", "python_multipart")


def setup_logging(log_level: str = "INFO",
                  log_file: Optional[str] = None,
                  log_dir: str = "logs",
                  capture_warnings: bool = True) -> Optional[Path]:
    """
    Set up logging for a pipeline run or the API server.

    Args:
        log_level (str): Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file (str): Optional log file name; the file gets every record
        log_dir (str): Directory for log files
        capture_warnings (bool): Route ``warnings.warn`` calls, such as the
            empty demographic group warning, through the "py.warnings" logger

    Returns:
        Path: The log file path, or None when logging to the console only
    """
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    level = getattr(logging, log_level.upper())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    file_path = None
    if log_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_path = log_path / log_file
        file_handler = logging.FileHandler(file_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # The root logger passes everything the file handler may want
    root_logger.setLevel(logging.DEBUG if file_path else level)

    logging.captureWarnings(capture_warnings)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(f"Logging initialized - Level: {log_level}"
                 + (f", file: {file_path}" if file_path else ""))
    return file_path
