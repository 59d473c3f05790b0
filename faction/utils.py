"""Small shared helpers for reading faction member and crime payloads."""

from typing import Optional

ACTIVE_CRIME_STATUSES = ("planning", "recruiting")


def crime_key(crime: dict) -> Optional[str]:
    crime_id = crime.get("id")
    if crime_id is None or crime_id == "":
        return None
    return str(crime_id)


def is_active_status(status) -> bool:
    return str(status or "").lower() in ACTIVE_CRIME_STATUSES


def index_members(members) -> dict:
    """Index member payloads by id (as a string)."""
    return {str(member["id"]): member for member in members if member.get("id") is not None}


def normalize_slot(slot: dict, members_by_id: dict) -> Optional[dict]:
    """Convert one API slot into its stored form, or None when the slot is vacant."""
    user = slot.get("user")
    if not user or user.get("id") is None:
        return None
    member = members_by_id.get(str(user["id"])) or {}
    item_requirement = slot.get("item_requirement") or {}
    return {
        "user_id": user["id"],
        "user_name": member.get("name") or "Unknown",
        "checkpoint_pass_rate": slot.get("checkpoint_pass_rate"),
        "position": slot.get("position"),
        "position_number": slot.get("position_number"),
        "item_available": item_requirement.get("is_available"),
    }


def normalize_crime(crime: dict, members_by_id: dict) -> dict:
    """Extract the fields we keep from a crimes endpoint entry."""
    raw_slots = crime.get("slots") or []
    slots = {}
    for slot in raw_slots:
        normalized = normalize_slot(slot, members_by_id)
        if normalized is None:
            continue
        slots[str(slot.get("position_id"))] = normalized
    return {
        "name": crime.get("name"),
        "status": crime.get("status"),
        "ready_at": crime.get("ready_at"),
        "executed_at": crime.get("executed_at"),
        "previous_crime_id": crime.get("previous_crime_id"),
        "expired_at": crime.get("expired_at"),
        "difficulty": crime.get("difficulty"),
        "slot_amount": len(raw_slots),
        "slots": slots,
    }
