"""Per-member activity timelines built from successive roster polls."""

import copy
from typing import Iterable, Optional

from faction.status import default_resolver, reduce_member_status


def new_interval(status: str, start: int) -> dict:
    return {"status": status, "start": start, "end": None}


def update_activity_database(user_db: dict, members: Iterable[dict], timestamp: int, resolver=default_resolver) -> dict:
    '''
    Folds one poll of the faction roster into the user activity database.

    Each user record holds an ordered list of intervals; only the last one is
    open (end is None). A changed status closes it at the poll time and opens a
    new one, so consecutive intervals always share their boundary.
    Returns a new database; the one passed in is left untouched.

    :param user_db: Mapping of user id (str) to {"name", "activities"}.
    :param members: Member payloads from the members endpoint.
    :param timestamp: Poll time in unix seconds.
    '''
    updated = copy.deepcopy(user_db)
    for member in members:
        user_id = member.get("id")
        if user_id is None:
            continue
        key = str(user_id)
        status = reduce_member_status(member, resolver=resolver)

        record = updated.get(key)
        if not record or not record.get("activities"):
            updated[key] = {
                "name": member.get("name"),
                "activities": [new_interval(status, timestamp)],
            }
            continue

        if member.get("name"):
            record["name"] = member["name"]
        activities = record["activities"]
        last = activities[-1]
        if last["status"] == status:
            # Still the same status, keep the interval open.
            last["end"] = None
        else:
            last["end"] = timestamp
            activities.append(new_interval(status, timestamp))
    return updated


def intervals_overlapping(activities: Iterable[dict], start: int, end: int) -> list:
    """Intervals that touch [start, end]; an open interval runs until `end`."""
    return [
        act for act in activities
        if (act.get("end") if act.get("end") is not None else end) >= start and act["start"] <= end
    ]


def interval_at(activities: Iterable[dict], instant: int) -> Optional[dict]:
    """The first interval covering `instant`. Bounds are inclusive, so on a
    boundary the earlier interval wins."""
    return next(
        (
            act for act in activities
            if act["start"] <= instant and (act.get("end") is None or act["end"] >= instant)
        ),
        None,
    )


def status_at(activities: Iterable[dict], instant: int) -> Optional[str]:
    act = interval_at(activities, instant)
    return act["status"] if act else None
