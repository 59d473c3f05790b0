from __future__ import annotations

import logging
import os
import time
from collections import deque
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "ocstalker.log"


def resolve_log_file() -> Path:
    override_dir = os.getenv("OCSTALKER_LOG_DIR")
    if override_dir:
        return Path(override_dir) / LOG_FILE_NAME
    return Path.cwd() / "logs" / LOG_FILE_NAME


def _rotating_handler(log_file: Path) -> RotatingFileHandler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=5, encoding="utf-8")


def configure_rotating_logger(
    logger_name: str,
    preferred_log_file: Path,
    fallback_log_file: Path,
    level: int = logging.INFO,
) -> tuple[logging.Logger, Path]:
    """Attach a rotating file handler and a console handler to `logger_name`.

    Child loggers ("ocstalker.crimes", ...) propagate into it. Calling this
    twice is harmless; the second call keeps the existing handlers.
    """
    logger = logging.getLogger(logger_name)
    if logger.handlers:
        return logger, preferred_log_file

    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)

    try:
        file_handler = _rotating_handler(preferred_log_file)
        effective_log_file = preferred_log_file
    except OSError:
        file_handler = _rotating_handler(fallback_log_file)
        effective_log_file = fallback_log_file

    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    logger.propagate = False
    return logger, effective_log_file


def tail_logs(
    log_file: Path,
    lines: int = 100,
    follow: bool = True,
    poll_interval: float = 0.5,
) -> int:
    """Print the last `lines` of the run log, then keep following it unless told not to."""
    if lines < 0:
        print("--tail-lines must be >= 0")
        return 2

    if not log_file.exists():
        print(f"No log file yet at {log_file}")
        return 1

    try:
        with log_file.open("r", encoding="utf-8", errors="replace") as handle:
            if lines:
                print("".join(deque(handle, maxlen=lines)), end="")
            else:
                handle.seek(0, os.SEEK_END)

            while follow:
                line = handle.readline()
                if not line:
                    time.sleep(poll_interval)
                    continue
                print(line, end="", flush=True)
    except KeyboardInterrupt:
        pass
    return 0
