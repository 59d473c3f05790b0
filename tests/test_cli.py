# tests/test_cli.py

from __future__ import annotations

from pathlib import Path

import pytest

from stalker import stalker
from stalker.cli import build_cli_parser, settings_from_cli
from stalker.config import Settings


def _parse(*argv: str):
    return build_cli_parser().parse_args(list(argv))


def test_flags_override_environment(settings: Settings, tmp_path: Path) -> None:
    base = settings.with_overrides(local=False, max_start_delay=5.0)

    result = settings_from_cli(base, _parse("--local", "--data-dir", str(tmp_path / "data"), "--max-delay", "2", "--crime-update-interval", "1800", "--dry-run"))

    assert result.local is True
    assert result.data_dir == tmp_path / "data"
    assert result.max_start_delay == 2.0
    assert result.crime_update_interval == 1800
    assert result.dry_run is True


def test_missing_flags_keep_environment_values(settings: Settings) -> None:
    base = settings.with_overrides(max_start_delay=3.0, crime_update_interval=600)

    result = settings_from_cli(base, _parse())

    assert result == base


def test_no_delay_wins_over_max_delay(settings: Settings) -> None:
    result = settings_from_cli(settings.with_overrides(max_start_delay=5.0), _parse("--no-delay", "--max-delay", "9"))
    assert result.max_start_delay == 0.0


def test_negative_delay_is_rejected(settings: Settings) -> None:
    with pytest.raises(SystemExit):
        settings_from_cli(settings, _parse("--max-delay", "-1"))


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("API_KEY", "plain-key")
    monkeypatch.setenv("OCSTALKER_API_KEY", "prefixed-key")
    monkeypatch.setenv("GITHUB_TOKEN", "gh")
    monkeypatch.setenv("OCSTALKER_LOCAL", "yes")
    monkeypatch.setenv("OCSTALKER_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("OCSTALKER_CRIME_UPDATE_INTERVAL", "not a number")

    settings = Settings.from_env()

    assert settings.api_key == "prefixed-key"
    assert settings.github_token == "gh"
    assert settings.local is True
    assert settings.data_dir == tmp_path
    assert settings.crime_update_interval == 0


def test_tail_logs_without_log_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    monkeypatch.setenv("OCSTALKER_LOG_DIR", str(tmp_path))

    assert stalker.main(["--tail-logs", "--no-follow"]) == 1
    assert "No log file yet" in capsys.readouterr().out


def test_tail_logs_prints_last_lines(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    monkeypatch.setenv("OCSTALKER_LOG_DIR", str(tmp_path))
    (tmp_path / "ocstalker.log").write_text("one\ntwo\nthree\n", encoding="utf-8")

    assert stalker.main(["--tail-logs", "--no-follow", "--tail-lines", "2"]) == 0
    assert capsys.readouterr().out == "two\nthree\n"
