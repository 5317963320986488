# core/logging_setup.py
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


def setup_logging(debug: bool = False, log_dir: Optional[Path] = None) -> Path:
    """
    Configure application-wide logging.

    - Logs to ~/.skin_market_watch/app.log (rotating, max ~1 MB, 3 backups)
    - Also logs to console (stderr) for interactive runs
    - urllib3 connection chatter is capped at WARNING

    Returns:
        Path of the log file.
    """
    log_dir = log_dir or (Path.home() / ".skin_market_watch")
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "app.log"

    level = logging.DEBUG if debug else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear existing handlers (useful if re-running in dev/REPL)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=1_000_000,  # ~1 MB
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)s] %(threadName)s %(name)s - %(message)s")
    )
    file_handler.setLevel(level)
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s - %(message)s"))
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)

    root_logger.info("Logging initialized")
    root_logger.info(f"Log file: {log_file}")
    return log_file
