"""Compliance scan over organized crimes: who held the crime up, and for how long.

For every crime that sat ready for at least five minutes, the participants'
activity timelines are replayed minute by minute across the window between
ready_at and execution. A participant who was unavailable when the crime
became ready is a slacker. A participant who went unavailable during the
window and came back is cleared if others were also unavailable at that
moment, and promoted to slacker if they were the only one holding things up.

NOTE: the promoted/cleared rule has no recorded rationale. Confirm it with the
faction before changing it.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Optional

from faction.status import is_available
from faction.timeline import interval_at, intervals_overlapping, status_at

logger = logging.getLogger("ocstalker.naughty")

MIN_DELAY_SECONDS = 60 * 5
SCAN_INTERVAL_SECONDS = 60


@dataclass
class ScanResult:
    slackers: set = field(default_factory=set)
    suspicious: set = field(default_factory=set)
    cleared: set = field(default_factory=set)
    promoted: set = field(default_factory=set)

    @property
    def naughty(self) -> set:
        return self.slackers | self.promoted


def participant_ids(slots: dict) -> list:
    """User ids (as strings) of the occupied slots, in slot order, without duplicates."""
    return list(dict.fromkeys(str(slot["user_id"]) for slot in slots.values() if slot and slot.get("user_id") is not None))


def extract_timelines(participants, user_db: dict, start: int, end: int) -> dict:
    timelines = {}
    for uid in participants:
        activities = (user_db.get(uid) or {}).get("activities") or []
        timelines[uid] = intervals_overlapping(activities, start, end)
    return timelines


def scan_timelines(timelines: dict, start: int, end: int, interval: int = SCAN_INTERVAL_SECONDS) -> ScanResult:
    '''
    Classifies every participant over the window [start, end].

    :param timelines: Mapping of user id to the activity intervals overlapping the window.
    :param start: When the crime became ready.
    :param end: When it was executed (or now, if still pending).
    :param interval: Step between sampled instants, in seconds.
    '''
    result = ScanResult()

    for uid, acts in timelines.items():
        act = interval_at(acts, start)
        if act and not is_available(act["status"]):
            result.slackers.add(uid)

    t = start
    while t <= end:
        available_now = {uid: is_available(status_at(acts, t)) for uid, acts in timelines.items()}
        for uid, available in available_now.items():
            if not available:
                if uid not in result.slackers and uid not in result.cleared:
                    result.suspicious.add(uid)
            elif uid in result.suspicious:
                others_available = all(other_ok for other, other_ok in available_now.items() if other != uid)
                if others_available:
                    result.promoted.add(uid)
                else:
                    result.cleared.add(uid)
                result.suspicious.discard(uid)
        t += interval

    return result


def _pending_review() -> dict:
    return {"status": "pending", "handled_by": None, "notes": []}


def _participant_order(participants: dict):
    order = {uid: index for index, uid in enumerate(participant_ids(participants))}
    return lambda uid: order.get(uid, len(order))


def _crime_id_value(crime_id: str):
    return int(crime_id) if crime_id.isdigit() else crime_id


def score_crime(crime_id: str, crime: dict, user_db: dict, now: int) -> Optional[dict]:
    """Build the naughty list record for one crime, or None if it does not qualify."""
    start = crime.get("ready_at")
    executed_at = crime.get("executed_at")
    end = executed_at if executed_at is not None else now
    if not start or end - start < MIN_DELAY_SECONDS:
        return None

    participants = crime.get("slots") or {}
    if not participants:
        return None

    timelines = extract_timelines(participant_ids(participants), user_db, start, end)
    result = scan_timelines(timelines, start, end)

    return {
        "crime_id": _crime_id_value(crime_id),
        "crime_name": crime.get("name") or f"OC {crime_id}",
        "ready_at": start,
        "executed_at": end,
        "crime_participants": copy.deepcopy(participants),
        "slackers": {uid: _pending_review() for uid in sorted(result.naughty, key=_participant_order(participants))},
        "delay_time": end - start,
    }


def scored_crime_ids(naughty_db: dict) -> set:
    """Index of crime ids that already have a naughty list record."""
    return {str(entry.get("crime_id")) for entry in naughty_db.values() if isinstance(entry, dict)}


def _record_key(naughty_db: dict, now: int, crime_id: str) -> str:
    key = str(now)
    if key in naughty_db:
        key = f"{now}_{crime_id}"
    return key


def update_naughty_list(naughty_db: dict, crimes_db: dict, user_db: dict, now: int) -> dict:
    '''
    Appends one record per newly qualifying crime and returns the new naughty list.

    Crimes that already have a record are never scored again. Neither the crime
    nor the user database is modified.
    '''
    updated = dict(naughty_db)
    scored = scored_crime_ids(naughty_db)

    for crime_id, crime in crimes_db.items():
        if str(crime_id) in scored:
            continue
        record = score_crime(str(crime_id), crime, user_db, now)
        if record is None:
            continue
        key = _record_key(updated, now, str(crime_id))
        updated[key] = record
        scored.add(str(crime_id))
        logger.info(
            "Crime %s (%s) delayed %ss, %s flagged.",
            crime_id, record["crime_name"], record["delay_time"], len(record["slackers"]),
        )
    return updated
