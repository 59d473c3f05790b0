"""Slot occupancy diffing for organized crimes."""

from typing import Optional


def _occupant(slot: Optional[dict]):
    return slot.get("user_id") if slot else None


def _log_entry(timestamp: int, action: str, slot_id: str, snapshot: dict) -> dict:
    return {"timestamp": timestamp, "action": action, "slot": slot_id, **snapshot}


def diff_slots(previous: Optional[dict], current: Optional[dict], timestamp: int) -> list:
    '''
    Compares two slot maps (position id -> slot snapshot) and returns the
    join/leave events between them, in emission order.

    A slot that changes hands produces "left" for the old occupant followed by
    "joined" for the new one, both with the same timestamp. Slots whose
    occupant stays the same produce nothing, even if their pass rate or item
    flag moved.

    :param previous: Slot map stored by the last run (may be None).
    :param current: Slot map observed now (may be None).
    :param timestamp: Time stamped on every emitted event.
    '''
    previous = previous or {}
    current = current or {}
    events = []
    # Previous slots first, then the newly seen ones, both in their own order.
    for slot_id in dict.fromkeys(list(previous) + list(current)):
        prev = previous.get(slot_id)
        curr = current.get(slot_id)
        if curr and not prev:
            events.append(_log_entry(timestamp, "joined", slot_id, curr))
        elif prev and not curr:
            events.append(_log_entry(timestamp, "left", slot_id, prev))
        elif prev and curr and _occupant(prev) != _occupant(curr):
            events.append(_log_entry(timestamp, "left", slot_id, prev))
            events.append(_log_entry(timestamp, "joined", slot_id, curr))
    return events


def update_crime_slots_and_actions(existing: Optional[dict], incoming: dict, timestamp: int) -> dict:
    '''
    Merges a freshly observed crime into its stored record.

    Metadata prefers the new value and falls back to the stored one when the
    API leaves it empty. The action log is extended with the slot diff and the
    slots are replaced wholesale by the observed ones.
    '''
    existing = existing or {}
    updated = {"name": incoming.get("name"), "status": incoming.get("status")}
    for key in ("ready_at", "executed_at", "previous_crime_id", "expired_at", "difficulty", "slot_amount"):
        value = incoming.get(key)
        updated[key] = value if value is not None else existing.get(key)

    new_slots = incoming.get("slots") or {}
    updated["slots"] = {slot_id: dict(slot) for slot_id, slot in new_slots.items() if slot}
    updated["action_log"] = list(existing.get("action_log") or []) + diff_slots(
        existing.get("slots"), new_slots, timestamp
    )
    return updated
