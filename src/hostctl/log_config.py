from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union


def setup_logging(
    verbose: bool = False,
    log_file: Optional[Union[str, Path]] = None,
    level: str = "INFO",
) -> None:
    """Configure logging for the entire application.

    The console only shows warnings unless *verbose* is set, so regular
    command output stays readable; the log file records *level* and above.
    """
    root_logger = logging.getLogger()

    # Remove any existing handlers to avoid duplication
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    file_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)
    console_level = logging.DEBUG if verbose else logging.WARNING
    root_logger.setLevel(min(file_level, console_level))

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(console_level)
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if log_file is not None:
        log_path = Path(log_file)
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
        except OSError as e:
            logging.getLogger("hostctl").warning(f"Cannot write log file {log_path}: {e}")
        else:
            file_handler.setLevel(file_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

    logger = logging.getLogger("hostctl")
    logger.setLevel(min(file_level, console_level))

    if verbose:
        logger.debug("🔍 Verbose logging enabled")
