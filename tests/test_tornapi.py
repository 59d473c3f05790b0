# tests/test_tornapi.py

from __future__ import annotations

import asyncio

import pytest
import requests

from tornapi import tornapi
from tornapi.tornapi import TornApiError, build_url, fetch_endpoint, fetch_faction_data, parse_payload

from .fakes import FakeResponse


def test_build_url_fills_template() -> None:
    url = build_url("members", "secret", faction_id=123, comment="tests")
    assert url == "https://api.torn.com/v2/faction/123/members?striptags=true&comment=tests&key=secret"

    url = build_url("crimes", "secret", comment="tests")
    assert url == "https://api.torn.com/v2/faction/crimes?offset=0&sort=DESC&comment=tests&key=secret"


def test_build_url_rejects_unknown_endpoint_and_missing_key() -> None:
    with pytest.raises(TornApiError):
        build_url("armory", "secret")
    with pytest.raises(TornApiError):
        build_url("members", None)


def test_parse_payload_returns_result_list() -> None:
    assert parse_payload("members", 200, {"members": [{"id": 1}]}) == [{"id": 1}]
    assert parse_payload("crimes", 200, {"crimes": None}) == []


def test_parse_payload_raises_on_api_error() -> None:
    with pytest.raises(TornApiError) as excinfo:
        parse_payload("crimes", 200, {"error": {"code": 2, "error": "Incorrect key"}})
    assert excinfo.value.code == 2
    assert excinfo.value.message == "Incorrect key"
    assert excinfo.value.endpoint_name == "crimes"


def test_parse_payload_raises_on_http_error_and_bad_shape() -> None:
    with pytest.raises(TornApiError) as excinfo:
        parse_payload("members", 502, None)
    assert excinfo.value.code == 502
    with pytest.raises(TornApiError):
        parse_payload("members", 200, ["not", "a", "dict"])


def test_fetch_endpoint_uses_requests(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []

    def fake_request(method, url, headers=None, timeout=None):
        calls.append((method, url))
        return FakeResponse(200, {"members": [{"id": 7}]})

    monkeypatch.setattr(tornapi.requests, "request", fake_request)

    assert fetch_endpoint("members", "secret", faction_id=9) == [{"id": 7}]
    assert calls == [("GET", build_url("members", "secret", faction_id=9))]


def test_fetch_endpoint_wraps_transport_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_request(method, url, headers=None, timeout=None):
        raise requests.ConnectionError("boom")

    monkeypatch.setattr(tornapi.requests, "request", fake_request)

    with pytest.raises(TornApiError):
        fetch_endpoint("crimes", "secret")


def test_fetch_endpoint_wraps_invalid_json(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(tornapi.requests, "request", lambda *a, **k: FakeResponse(200, ValueError("no json")))

    with pytest.raises(TornApiError):
        fetch_endpoint("crimes", "secret")


def test_fetch_faction_data_fetches_both_rosters(monkeypatch: pytest.MonkeyPatch) -> None:
    seen = []

    async def fake_fetch_json(session, endpoint_name, url):
        seen.append(endpoint_name)
        return [{"endpoint": endpoint_name}]

    monkeypatch.setattr(tornapi, "_fetch_json", fake_fetch_json)

    result = asyncio.run(fetch_faction_data("secret", faction_id=1))

    assert result == {"members": [{"endpoint": "members"}], "crimes": [{"endpoint": "crimes"}]}
    assert sorted(seen) == ["crimes", "members"]


def test_fetch_faction_data_propagates_failures(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_fetch_json(session, endpoint_name, url):
        if endpoint_name == "crimes":
            raise TornApiError("Too many requests", code=5, endpoint_name="crimes")
        return []

    monkeypatch.setattr(tornapi, "_fetch_json", fake_fetch_json)

    with pytest.raises(TornApiError) as excinfo:
        asyncio.run(fetch_faction_data("secret"))
    assert excinfo.value.code == 5


def test_main_prints_endpoint(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    monkeypatch.setattr(tornapi, "fetch_endpoint", lambda *a, **k: [{"id": 1}])

    assert tornapi.main(["members", "--key", "secret"]) == 0
    assert '"id": 1' in capsys.readouterr().out


def test_main_reports_failure(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    def failing(*args, **kwargs):
        raise TornApiError("Incorrect key", code=2)

    monkeypatch.setattr(tornapi, "fetch_endpoint", failing)

    assert tornapi.main(["crimes", "-k", "bad"]) == 1
    assert "Incorrect key" in capsys.readouterr().out


class _TimingOutSession:
    def get(self, url):
        raise asyncio.TimeoutError()


def test_fetch_json_wraps_timeouts() -> None:
    with pytest.raises(TornApiError) as excinfo:
        asyncio.run(tornapi._fetch_json(_TimingOutSession(), "members", "https://example.invalid"))
    assert excinfo.value.endpoint_name == "members"
    assert "timed out" in excinfo.value.message


def test_fetch_faction_data_cancels_sibling_request(monkeypatch: pytest.MonkeyPatch) -> None:
    cancelled = []

    async def fake_fetch_json(session, endpoint_name, url):
        if endpoint_name == "members":
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                cancelled.append(endpoint_name)
                raise
        raise TornApiError("Incorrect key", code=2, endpoint_name=endpoint_name)

    monkeypatch.setattr(tornapi, "_fetch_json", fake_fetch_json)

    with pytest.raises(TornApiError):
        asyncio.run(fetch_faction_data("secret"))
    assert cancelled == ["members"]
