"""Faction derivations for the OC stalker.

Turns raw member and organized crime payloads into derived records: canonical
status tokens (`status`), per-member activity timelines (`timeline`), slot
join/leave logs (`roster`, `crime_book`) and the compliance scan behind the
naughty list (`naughty_list`). Nothing here does I/O.
"""
