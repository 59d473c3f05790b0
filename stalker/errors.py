from tornapi.tornapi import TornApiError


class StalkerError(Exception):
    """Base class for failures of a stalker run."""


class StoreReadError(StalkerError):
    def __init__(self, key, message, code=None):
        super().__init__(f"Could not read '{key}': {message}")
        self.key = key
        self.code = code


class StoreWriteError(StalkerError):
    def __init__(self, key, message, code=None):
        super().__init__(f"Could not write '{key}': {message}")
        self.key = key
        self.code = code


__all__ = ["StalkerError", "StoreReadError", "StoreWriteError", "TornApiError"]
