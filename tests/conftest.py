# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from stalker.config import Settings
from stalker.error_log import ErrorLog
from stalker.storage import LocalJsonStore


def make_member(member_id, name=None, state="Okay", description="Okay", details=None, revive_setting="Everyone") -> dict:
    """Member payload shaped like the members endpoint."""
    return {
        "id": member_id,
        "name": name or f"member{member_id}",
        "revive_setting": revive_setting,
        "status": {"description": description, "details": details, "state": state},
    }


def make_slot(position_id, user_id=None, position="Muscle", position_number=1, pass_rate=60, item_available=True) -> dict:
    return {
        "position": position,
        "position_id": position_id,
        "position_number": position_number,
        "user": {"id": user_id} if user_id is not None else None,
        "checkpoint_pass_rate": pass_rate,
        "item_requirement": {"is_available": item_available},
    }


def make_crime(crime_id, status="Recruiting", slots=None, ready_at=None, executed_at=None, name="Mob Mentality") -> dict:
    """Crime payload shaped like the crimes endpoint."""
    return {
        "id": crime_id,
        "name": name,
        "status": status,
        "ready_at": ready_at,
        "executed_at": executed_at,
        "expired_at": None,
        "difficulty": 3,
        "previous_crime_id": None,
        "slots": slots or [],
    }


def interval(status, start, end=None) -> dict:
    return {"status": status, "start": start, "end": end}


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Local-store settings with no startup delay, rooted in a temp directory."""
    return Settings(
        api_key="test-key",
        github_token=None,
        faction_id=1,
        api_comment="tests",
        github_owner="owner",
        github_repo="repo",
        github_branch="main",
        local=True,
        data_dir=tmp_path,
        max_start_delay=0,
        crime_update_interval=0,
    )


@pytest.fixture()
def store(tmp_path: Path) -> LocalJsonStore:
    return LocalJsonStore(tmp_path)


@pytest.fixture()
def error_log(tmp_path: Path) -> ErrorLog:
    return ErrorLog(tmp_path / "api_error_log.txt")
