"""Main runtime for one OC stalker poll.

Fetches the faction roster and crime list, folds them into the activity,
crime and naughty list databases, and persists whatever changed. Each run is
a short batch job started by an external scheduler.
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from pathlib import Path

from faction.crime_book import CrimeBook
from faction.naughty_list import update_naughty_list
from faction.timeline import update_activity_database
from faction.utils import index_members
from stalker.cli import build_cli_parser, settings_from_cli
from stalker.config import Settings
from stalker.error_log import ERROR_LOG_FILE, ErrorLog
from stalker.errors import StalkerError, StoreReadError, StoreWriteError, TornApiError
from stalker.logging_utils import configure_rotating_logger, resolve_log_file, tail_logs
from stalker.storage import STORE_KEYS, build_store
from tornapi import tornapi

logger = logging.getLogger("ocstalker.run")


@dataclass
class RunSummary:
    members: int = 0
    crimes_fetched: int = 0
    crimes_processed: int = 0
    new_naughty_records: int = 0
    crimes_skipped: bool = False
    saved: list = field(default_factory=list)
    failed: list = field(default_factory=list)


def fetch_from_api(settings: Settings) -> dict:
    """Fetch members and crimes together from the Torn API."""
    return asyncio.run(
        tornapi.fetch_faction_data(
            settings.api_key,
            faction_id=settings.faction_id,
            comment=settings.api_comment,
        )
    )


def startup_delay(max_delay: float, sleep=time.sleep, uniform=random.uniform) -> float:
    """Sleep for a random moment so scheduled runs of separate deployments do not line up."""
    if max_delay <= 0:
        return 0.0
    delay = uniform(0, max_delay)
    logger.info("Delay: %.3fs", delay)
    sleep(delay)
    return delay


def crimes_due(store, interval: int, now: int) -> bool:
    if interval <= 0:
        return True
    last_update = store.last_modified("crimesDb")
    return now - last_update >= interval


def _load_all(store, error_log: ErrorLog) -> dict:
    documents = {}
    for key in STORE_KEYS:
        try:
            documents[key] = store.load(key)
        except StoreReadError as e:
            error_log.log_error(str(e), e.code)
            raise
    return documents


def _persist(store, documents: dict, error_log: ErrorLog, summary: RunSummary) -> None:
    # Later stages already ran on the in-memory documents, so a failed write
    # only loses that one store's update for this run.
    for key, document in documents.items():
        try:
            if store.save(key, document):
                summary.saved.append(key)
        except (StoreWriteError, StoreReadError) as e:
            error_log.log_error(str(e), e.code)
            summary.failed.append(key)


def run_once(settings: Settings, store, error_log: ErrorLog, fetch=fetch_from_api, now: int = None, sleep=time.sleep) -> RunSummary:
    '''
    Runs one poll end to end.

    Order matters: fetch, load every store, update activity, update crimes,
    update the naughty list, then persist. A failed fetch or read raises
    before anything is written.

    :param fetch: Callable taking the settings and returning {"members", "crimes"}.
    :param now: Poll time in unix seconds; defaults to the time after the startup delay.
    '''
    startup_delay(settings.max_start_delay, sleep=sleep)
    summary = RunSummary()

    try:
        data = fetch(settings)
    except TornApiError as e:
        error_log.log_error(f"{e.endpoint_name or 'torn'}: {e.message}", e.code)
        raise

    members = data.get("members") or []
    crimes = data.get("crimes") or []
    summary.members = len(members)
    summary.crimes_fetched = len(crimes)
    logger.info("Fetched %s members and %s crimes.", len(members), len(crimes))

    documents = _load_all(store, error_log)
    now = int(time.time()) if now is None else now

    updated = {"userDb": update_activity_database(documents["userDb"], members, now)}

    if crimes_due(store, settings.crime_update_interval, now):
        book = CrimeBook(documents["crimesDb"])
        summary.crimes_processed = len(book.update(crimes, index_members(members), now))
        crimes_db = book.to_dict()
        naughty_db = update_naughty_list(documents["naughtyDb"], crimes_db, updated["userDb"], now)
        summary.new_naughty_records = len(naughty_db) - len(documents["naughtyDb"])
        updated["crimesDb"] = crimes_db
        updated["naughtyDb"] = naughty_db
    else:
        summary.crimes_skipped = True
        logger.info("Skipping crimes and naughty updates, crime store updated less than %ss ago.", settings.crime_update_interval)

    if settings.dry_run:
        logger.info("Dry run, nothing persisted.")
        return summary

    _persist(store, updated, error_log, summary)
    return summary


def main(argv=None) -> int:
    """Program entry point: parse the CLI, configure logging, run one poll."""
    cli_args = build_cli_parser().parse_args(argv)
    log_file = resolve_log_file()

    if cli_args.tail_logs:
        return tail_logs(log_file=log_file, lines=cli_args.tail_lines, follow=not cli_args.no_follow)

    settings = settings_from_cli(Settings.from_env(), cli_args)
    _, log_file = configure_rotating_logger(
        logger_name="ocstalker",
        preferred_log_file=log_file,
        fallback_log_file=Path(settings.data_dir) / "logs" / log_file.name,
    )
    error_log = ErrorLog(Path(settings.data_dir) / ERROR_LOG_FILE)
    logger.info("Running at %s. Log file: %s", time.ctime(time.time()), log_file)

    try:
        store = build_store(settings)
        summary = run_once(settings, store, error_log)
    except StalkerError as e:
        logger.error("Run aborted: %s", e)
        return 1
    except TornApiError as e:
        logger.error("Run aborted, Torn API failure: %s (code: %s)", e.message, e.code)
        return 1

    logger.info(
        "Run finished: %s members, %s crimes processed, %s new naughty records, saved %s, failed %s.",
        summary.members, summary.crimes_processed, summary.new_naughty_records,
        summary.saved or "nothing", summary.failed or "nothing",
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
