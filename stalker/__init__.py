"""Stalker package: the scheduled polling run for the OC stalker.

This module group wires the Torn API client to the faction derivations, loads
and persists the user, crime and naughty list stores (locally or in a GitHub
repository), records API failures in the error log, and provides the CLI entry
point used by the scheduler in `stalker.stalker`.
"""
