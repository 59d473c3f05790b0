"""Reduce a member's free-text Torn status into one canonical status token."""

import re
from dataclasses import dataclass, field
from typing import Optional


# Demonyms and short names seen in Torn status descriptions, mapped to the country name.
# Order matters: the first alias found in a description wins.
COUNTRY_ALIASES = {
    "mexican": "Mexico",
    "cayman": "Cayman Islands",
    "caymanian": "Cayman Islands",
    "canadian": "Canada",
    "hawaiian": "Hawaii",
    "british": "United Kingdom",
    "uk": "United Kingdom",
    "argentinian": "Argentina",
    "argentine": "Argentina",
    "swiss": "Switzerland",
    "japanese": "Japan",
    "chinese": "China",
    "emirati": "United Arab Emirates",
    "uae": "United Arab Emirates",
    "southafrican": "South Africa",
    "sa": "South Africa",
}

HOSPITAL_PATTERN = re.compile(r"in (a |an )?([a-z\s]+) hospital", re.IGNORECASE)
LOCATION_PATTERNS = (
    re.compile(r"(?:Traveling to|Returning to Torn from|Hiding out in|In) ([a-z\s]+)", re.IGNORECASE),
)

# Checked in order against the hospital details; the first hit names the cause.
HOSPITAL_CAUSES = (
    ("Mugged", "Mugged"),
    ("Attacked", "Attacked"),
    ("Hospitalized", "Hospitalized"),
    ("Lost to", "Lost"),
)

REVIVE_SUFFIXES = {
    "Everyone": "Revives: ALL",
    "No one": "Revives: OFF",
}

AVAILABLE = "Available"


def capitalize_words(text: str) -> str:
    """Upper-case the first letter of every word, leaving the rest alone."""
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), text)


def _alias_key(words: str) -> str:
    return re.sub(r"\s+", "", words.strip().lower())


@dataclass(frozen=True)
class LocationResolver:
    """Alias lookup plus an ordered list of fallback patterns.

    The table and the patterns are plain data so a different heuristic can be
    swapped in without touching the timeline or compliance code.
    """
    aliases: dict = field(default_factory=lambda: dict(COUNTRY_ALIASES))
    hospital_pattern: re.Pattern = HOSPITAL_PATTERN
    patterns: tuple = LOCATION_PATTERNS

    def lookup(self, words: str) -> str:
        """Map matched words to a country, title-casing anything unknown."""
        return self.aliases.get(_alias_key(words)) or capitalize_words(words.strip())

    def resolve(self, description: str) -> Optional[str]:
        """Return the location named by a status description, or None."""
        description = description or ""
        lowered = description.lower()

        if "hospital" in lowered:
            match = self.hospital_pattern.search(description)
            if match:
                return self.lookup(match.group(2))
            return "Hospital"

        for alias, country in self.aliases.items():
            if alias in lowered:
                return country

        for pattern in self.patterns:
            match = pattern.search(description)
            if match:
                return self.lookup(match.group(1))
        return None


default_resolver = LocationResolver()


def _hospital_cause(details: Optional[str]) -> str:
    details = details or ""
    for needle, cause in HOSPITAL_CAUSES:
        if needle in details:
            return cause
    return "Event"


def reduce_status(
    description: Optional[str],
    details: Optional[str],
    revive_setting: Optional[str],
    state: Optional[str],
    resolver: LocationResolver = default_resolver,
) -> str:
    '''
    Reduces a raw member status to a canonical token such as "[Mexico] - Going",
    "[Hospital] Mugged - Revives: ALL", "Jail" or "Available".

    Pure function: the same inputs always produce the same token, which is what
    lets the timeline builder detect "no change" by string equality.

    :param description: Free-text status description, e.g. "Traveling to Mexico".
    :param details: Optional free-text details, e.g. "Mugged by someone".
    :param revive_setting: Member revive policy ("Everyone", "No one", anything else is partial).
    :param state: Discrete Torn state (Traveling, Abroad, Hospital, Jail, Okay, ...).
    '''
    description = description or ""
    country = resolver.resolve(description)

    match state:
        case "Traveling":
            direction = "Returning" if description.startswith("Returning") else "Going"
            status = f"[{country or 'Traveling'}] - {direction}"
        case "Abroad":
            status = f"[{country or 'Abroad'}] - Idle"
        case "Hospital":
            status = f"[{country or 'Hospital'}] {_hospital_cause(details)}"
        case "Jail":
            status = "Jail"
        case "Okay":
            status = AVAILABLE
        case _:
            status = "Fedded" if "federal jail" in description.lower() else "Unknown"

    if state == "Hospital":
        status += " - " + REVIVE_SUFFIXES.get(revive_setting, "Revives: Partial")

    return status


def reduce_member_status(member: dict, resolver: LocationResolver = default_resolver) -> str:
    """Reduce the status block of one member payload from the members endpoint."""
    status = member.get("status") or {}
    return reduce_status(
        status.get("description"),
        status.get("details"),
        member.get("revive_setting"),
        status.get("state"),
        resolver=resolver,
    )


def is_available(status: Optional[str]) -> bool:
    return status == AVAILABLE
