import logging

from faction.roster import update_crime_slots_and_actions
from faction.utils import crime_key, is_active_status, normalize_crime

logger = logging.getLogger("ocstalker.crimes")


class CrimeBook:
    """Stored organized crimes, keyed by crime id (as a string)."""

    def __init__(self, crimes=None):
        self._crimes = dict(crimes or {})

    def __iter__(self):
        return iter(self._crimes)

    def __len__(self):
        return len(self._crimes)

    def __getitem__(self, crime_id):
        return self._crimes[str(crime_id)]

    def __contains__(self, crime_id):
        return str(crime_id) in self._crimes

    def items(self):
        return self._crimes.items()

    def get(self, crime_id, default=None):
        return self._crimes.get(str(crime_id), default)

    def to_dict(self) -> dict:
        return dict(self._crimes)

    def should_track(self, crime: dict) -> bool:
        """Track crimes still being filled, plus the one poll where a crime leaves planning.

        The second case makes sure the roster right before execution is recorded.
        """
        if is_active_status(crime.get("status")):
            return True
        previous = self.get(crime_key(crime)) or {}
        return str(previous.get("status") or "").lower() == "planning"

    def update(self, crimes, members_by_id: dict, timestamp: int) -> list:
        """Apply one poll of the crimes endpoint. Returns the ids that were processed."""
        processed = []
        for crime in crimes:
            crime_id = crime_key(crime)
            if crime_id is None:
                continue
            if not self.should_track(crime):
                continue
            incoming = normalize_crime(crime, members_by_id)
            self._crimes[crime_id] = update_crime_slots_and_actions(
                self._crimes.get(crime_id), incoming, timestamp
            )
            processed.append(crime_id)
        logger.info("Processed %s of %s crimes.", len(processed), len(crimes))
        return processed

