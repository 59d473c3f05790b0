"""Whole-document JSON stores for the user, crime and naughty list databases.

Two backends share one interface:
- LocalJsonStore keeps one JSON file per key on disk (for local testing).
- GitHubContentStore keeps them as files in a GitHub repository, committed
  through the contents API.

Every document is read and written as a whole. Nothing guards against two runs
writing at the same time: only one run may be active per store, which the
scheduler has to guarantee.
"""

import base64
import json
import logging
from datetime import datetime, timezone
from pathlib import Path

import requests

from stalker.errors import StoreReadError, StoreWriteError

logger = logging.getLogger("ocstalker.storage")

STORE_KEYS = ("userDb", "crimesDb", "naughtyDb")

LOCAL_PATHS = {
    "userDb": "local-oc-data.json",
    "crimesDb": "local-crimes-data.json",
    "naughtyDb": "local-naughty-list.json",
}

GITHUB_PATHS = {
    "userDb": "BC_cron.JSON",
    "crimesDb": "BC_OC.JSON",
    "naughtyDb": "BC_naughty.JSON",
}

GITHUB_API_URL = "https://api.github.com"


def dump_document(document) -> str:
    return json.dumps(document, indent=2)


class JsonStore:
    """Remembers what was last read for each key, so unchanged documents are not rewritten."""

    def __init__(self, paths: dict):
        self.paths = dict(paths)
        self._last_read = {}

    def path_for(self, key: str) -> str:
        if key not in self.paths:
            raise KeyError(f"Unknown store key: '{key}'. Valid keys are: {list(self.paths)}")
        return self.paths[key]

    def has_changed(self, key: str, document) -> bool:
        """True unless `document` serializes exactly like the last read copy of `key`."""
        if key not in self._last_read:
            return True
        return dump_document(document) != self._last_read[key]

    def _remember(self, key: str, document) -> None:
        self._last_read[key] = dump_document(document)

    def load(self, key: str) -> dict:
        raise NotImplementedError

    def save(self, key: str, document) -> bool:
        raise NotImplementedError

    def last_modified(self, key: str) -> int:
        raise NotImplementedError


class LocalJsonStore(JsonStore):
    def __init__(self, data_dir: Path = Path("."), paths: dict = LOCAL_PATHS):
        super().__init__(paths)
        self.data_dir = Path(data_dir)

    def file_for(self, key: str) -> Path:
        return self.data_dir / self.path_for(key)

    def load(self, key: str) -> dict:
        path = self.file_for(key)
        if not path.exists():
            document = {}
        else:
            try:
                with open(path, "r", encoding="utf-8") as f:
                    document = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise StoreReadError(key, str(e)) from e
        if document is None:
            document = {}
        if not isinstance(document, dict):
            raise StoreReadError(key, "document is not a JSON object")
        self._remember(key, document)
        return document

    def save(self, key: str, document) -> bool:
        if not self.has_changed(key, document):
            logger.info("No changes detected in %s, skipping save.", key)
            return False
        path = self.file_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(dump_document(document))
        except OSError as e:
            raise StoreWriteError(key, str(e)) from e
        self._remember(key, document)
        logger.info("Saved %s locally to %s", key, path)
        return True

    def last_modified(self, key: str) -> int:
        path = self.file_for(key)
        if not path.exists():
            return 0
        return int(path.stat().st_mtime)


class GitHubContentStore(JsonStore):
    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        branch: str = "main",
        paths: dict = GITHUB_PATHS,
        session: requests.Session = None,
        timeout: float = 30,
    ):
        super().__init__(paths)
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"token {token}",
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": "ocstalker",
        })
        self._shas = {}

    def contents_url(self, key: str) -> str:
        return f"{GITHUB_API_URL}/repos/{self.owner}/{self.repo}/contents/{self.path_for(key)}"

    def _fetch(self, key: str):
        '''
        Reads the current file for `key` from GitHub.

        :return: (sha, document). A missing file is (None, {}).
        '''
        try:
            response = self.session.get(self.contents_url(key), params={"ref": self.branch}, timeout=self.timeout)
        except requests.RequestException as e:
            raise StoreReadError(key, str(e)) from e
        if response.status_code == 404:
            return None, {}
        if not response.ok:
            raise StoreReadError(key, f"{response.status_code} {response.reason}", code=response.status_code)
        try:
            data = response.json()
            raw = base64.b64decode(data.get("content") or "").decode("utf-8")
            document = json.loads(raw) if raw.strip() else {}
        except (ValueError, UnicodeDecodeError) as e:
            raise StoreReadError(key, f"undecodable content: {e}") from e
        if not isinstance(document, dict):
            raise StoreReadError(key, "document is not a JSON object")
        return data.get("sha"), document

    def load(self, key: str) -> dict:
        sha, document = self._fetch(key)
        self._shas[key] = sha
        self._remember(key, document)
        return document

    def save(self, key: str, document) -> bool:
        if key not in self._shas:
            # Never read in this run; pick up the sha and content to compare against.
            self.load(key)
        if not self.has_changed(key, document):
            logger.info("No changes detected in %s, skipping upload.", self.path_for(key))
            return False

        path = self.path_for(key)
        content = dump_document(document)
        body = {
            "message": f"Update {path} at {datetime.now(timezone.utc).isoformat()}",
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": self.branch,
        }
        if self._shas.get(key):
            body["sha"] = self._shas[key]

        try:
            response = self.session.put(self.contents_url(key), json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise StoreWriteError(key, str(e)) from e
        if not response.ok:
            raise StoreWriteError(key, f"{response.status_code} {response.reason}", code=response.status_code)

        try:
            result = response.json() or {}
        except ValueError as e:
            raise StoreWriteError(key, f"undecodable upload response: {e}") from e
        self._shas[key] = (result.get("content") or {}).get("sha")
        self._remember(key, document)
        logger.info("Uploaded %s successfully.", path)
        return True

    def last_modified(self, key: str) -> int:
        """Unix time of the latest commit touching the file for `key`, or 0 if unknown."""
        url = f"{GITHUB_API_URL}/repos/{self.owner}/{self.repo}/commits"
        params = {"path": self.path_for(key), "sha": self.branch, "per_page": 1}
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Could not fetch last commit time for %s: %s", self.path_for(key), e)
            return 0
        if not response.ok:
            logger.warning("Could not fetch last commit time for %s, assuming update is needed.", self.path_for(key))
            return 0
        try:
            commits = response.json() or []
            committed = commits[0]["commit"]["committer"]["date"]
        except (ValueError, IndexError, KeyError, TypeError):
            return 0
        return int(datetime.fromisoformat(committed.replace("Z", "+00:00")).timestamp())


def build_store(settings) -> JsonStore:
    """Pick the store backend the settings ask for."""
    if settings.local:
        return LocalJsonStore(settings.data_dir)
    if not settings.github_token:
        raise StoreReadError("github", "No GitHub token configured; set GITHUB_TOKEN or use --local.")
    return GitHubContentStore(
        token=settings.github_token,
        owner=settings.github_owner,
        repo=settings.github_repo,
        branch=settings.github_branch,
    )
