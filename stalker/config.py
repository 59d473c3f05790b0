"""Settings for a stalker run, loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from tornapi import tornapi

ENV_PREFIX = "OCSTALKER"

defaults = {
    "faction_id": tornapi.defaults["faction_id"],
    "api_comment": tornapi.defaults["comment"],
    "github_owner": "Jeyn-O",
    "github_repo": "OC_Stalker",
    "github_branch": "main",
    "data_dir": Path("."),                  #Where the local JSON stores and the error log live.
    "max_start_delay": 5.0,                 #Upper bound (seconds) of the random delay before a run.
    "crime_update_interval": 0,             #Skip crime/naughty updates if the crime store is younger than this. 0 = always update.
}


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _first_env(*names: str, default: Optional[str] = None) -> Optional[str]:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str]
    github_token: Optional[str]
    faction_id: int
    api_comment: str
    github_owner: str
    github_repo: str
    github_branch: str
    local: bool
    data_dir: Path
    max_start_delay: float
    crime_update_interval: int
    dry_run: bool = False

    @staticmethod
    def from_env() -> "Settings":
        data_dir = _first_env(_k("DATA_DIR"))
        return Settings(
            api_key=_first_env(_k("API_KEY"), "API_KEY"),
            github_token=_first_env(_k("GITHUB_TOKEN"), "GITHUB_TOKEN"),
            faction_id=_env_int(_k("FACTION_ID"), defaults["faction_id"]),
            api_comment=_first_env(_k("API_COMMENT"), default=defaults["api_comment"]),
            github_owner=_first_env(_k("GITHUB_OWNER"), default=defaults["github_owner"]),
            github_repo=_first_env(_k("GITHUB_REPO"), default=defaults["github_repo"]),
            github_branch=_first_env(_k("GITHUB_BRANCH"), default=defaults["github_branch"]),
            local=_env_bool(_k("LOCAL"), False),
            data_dir=Path(data_dir).expanduser() if data_dir else defaults["data_dir"],
            max_start_delay=_env_float(_k("MAX_START_DELAY"), defaults["max_start_delay"]),
            crime_update_interval=_env_int(_k("CRIME_UPDATE_INTERVAL"), defaults["crime_update_interval"]),
        )

    def with_overrides(self, **overrides) -> "Settings":
        """Copy with every override that is not None applied (CLI flags win over env)."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
