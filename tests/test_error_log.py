# tests/test_error_log.py

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from stalker.error_log import ErrorLog


def test_format_entry() -> None:
    stamp = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert ErrorLog.format_entry("Incorrect key", 2, stamp) == "2024-05-01T12:00:00+00:00 | Code: 2 | Error: Incorrect key\n"
    assert ErrorLog.format_entry("boom", timestamp=stamp).endswith("| Code: None | Error: boom\n")


def test_log_error_appends_lines(error_log: ErrorLog) -> None:
    error_log.log_error("first", 1)
    error_log.log_error("second")

    lines = error_log.log_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert lines[0].endswith("| Code: 1 | Error: first")
    assert lines[1].endswith("| Code: None | Error: second")


def test_log_error_never_raises(tmp_path: Path) -> None:
    target = tmp_path / "is_a_directory"
    target.mkdir()

    ErrorLog(target).log_error("cannot be written", 500)

    assert target.is_dir()
