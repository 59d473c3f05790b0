"""Append-only API error log, kept next to the data so failures survive between runs."""

import logging
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger("ocstalker.errors")

ERROR_LOG_FILE = "api_error_log.txt"


class ErrorLog:
    def __init__(self, log_path: Path = Path(ERROR_LOG_FILE)):
        self.log_path = Path(log_path)

    @staticmethod
    def format_entry(message, code=None, timestamp: datetime = None) -> str:
        timestamp = timestamp or datetime.now(timezone.utc)
        return f"{timestamp.isoformat()} | Code: {code} | Error: {message}\n"

    def log_error(self, message, code=None) -> None:
        """Record one failure. Problems writing the file are logged, never raised."""
        entry = self.format_entry(message, code)
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(entry)
        except OSError as e:
            logger.error("Failed to write to error log %s: %s", self.log_path, e)
        logger.error("Logged error: %s (code: %s)", message, code)
