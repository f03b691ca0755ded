"""
Logging configuration for applications embedding the generator.

Library modules only create module-level loggers; handlers are attached here,
once, by whoever drives a run (a script, a notebook, a tuning harness).
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

PACKAGE_LOGGER = "crossword_evolver"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    verbose: bool = False,
    log_file: Optional[Union[str, Path]] = None,
    logger_name: str = PACKAGE_LOGGER,
) -> logging.Logger:
    """
    Attach console and optional file handlers to the package logger.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        verbose: DEBUG on the console instead of INFO
        log_file: Optional trace file, always written at DEBUG level
        logger_name: Logger to configure

    Returns:
        The configured logger
    """
    level = logging.DEBUG if verbose else logging.INFO
    formatter = logging.Formatter(LOG_FORMAT)

    package_logger = logging.getLogger(logger_name)
    package_logger.setLevel(logging.DEBUG if log_file else level)

    for handler in package_logger.handlers[:]:
        if getattr(handler, "_crossword_evolver", False):
            package_logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    console_handler._crossword_evolver = True
    package_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        file_handler._crossword_evolver = True
        package_logger.addHandler(file_handler)

        package_logger.info("=== CROSSWORD-EVOLVER TRACE ===")
        package_logger.info(f"Start time: {datetime.now().isoformat()}")
        package_logger.info(f"Log file: {log_path}")
        package_logger.info(f"Verbose mode: {verbose}")

    return package_logger
