"""Tests for the shared requests wrapper."""

from __future__ import annotations

import json
import time
from typing import Any, Dict, Tuple
from urllib.parse import urlparse

import pytest
import requests

from multitool.core.errors import OperationTimedOut, RemoteServiceError
from multitool.services.http import HttpClient, effective_timeout


def _requests_response(status_code: int, payload: Any, url: str = "https://api.example.test") -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    if isinstance(payload, (dict, list)):
        raw = json.dumps(payload).encode("utf-8")
    else:
        raw = str(payload).encode("utf-8")
    response._content = raw
    response.url = url
    response.reason = "Bad Request" if status_code >= 400 else "OK"
    response.headers["Content-Type"] = "application/json"
    return response


class _StubSession:
    def __init__(self, mapping: Dict[Tuple[str, str], Any]):
        self.mapping = mapping
        self.calls = []
        self.closed = False

    def request(self, *, method, url, params, json, data, headers, timeout):
        path = urlparse(url).path
        self.calls.append(
            {"method": method, "path": path, "params": params, "json": json, "headers": headers, "timeout": timeout}
        )
        result = self.mapping[(method, path)]
        if isinstance(result, Exception):
            raise result
        return result

    def close(self) -> None:
        self.closed = True


def test_request_json_merges_headers_and_passes_timeout():
    stub = _StubSession({("GET", "/thing"): _requests_response(200, {"ok": True})})
    client = HttpClient("Example", session=stub, timeout=7.0, headers={"X-Base": "1"})

    assert client.request_json("GET", "https://api.example.test/thing", headers={"X-Extra": "2"}) == {"ok": True}
    call = stub.calls[0]
    assert call["headers"] == {"X-Base": "1", "X-Extra": "2"}
    assert call["timeout"] == 7.0


def test_http_error_status_carries_body():
    stub = _StubSession({("GET", "/thing"): _requests_response(422, {"error": "bad"})})
    client = HttpClient("Example", session=stub)
    with pytest.raises(RemoteServiceError) as excinfo:
        client.request("GET", "https://api.example.test/thing")
    err = excinfo.value
    assert err.status_code == 422
    assert err.service == "Example"
    assert str(err).startswith("Example API error: 422 Bad Request")
    assert '"error": "bad"' in str(err)


def test_timeout_maps_to_operation_timed_out():
    stub = _StubSession({("GET", "/slow"): requests.Timeout("read timed out")})
    client = HttpClient("Example", session=stub)
    with pytest.raises(OperationTimedOut):
        client.request("GET", "https://api.example.test/slow")


def test_connection_error_maps_to_remote_service_error():
    stub = _StubSession({("GET", "/down"): requests.ConnectionError("refused")})
    client = HttpClient("Example", session=stub)
    with pytest.raises(RemoteServiceError, match="Unable to reach Example"):
        client.request("GET", "https://api.example.test/down")


def test_non_json_body():
    stub = _StubSession({("GET", "/html"): _requests_response(200, "<html>")})
    client = HttpClient("Example", session=stub)
    with pytest.raises(RemoteServiceError, match="non-JSON"):
        client.request_json("GET", "https://api.example.test/html")


def test_expired_deadline_skips_request():
    stub = _StubSession({})
    client = HttpClient("Example", session=stub)
    with pytest.raises(OperationTimedOut):
        client.request("GET", "https://api.example.test/thing", deadline=time.monotonic() - 1)
    assert stub.calls == []


def test_effective_timeout_is_clamped_to_deadline():
    assert effective_timeout(15.0, None, "x") == 15.0
    clamped = effective_timeout(15.0, time.monotonic() + 2.0, "x")
    assert 0 < clamped <= 2.0


def test_close_only_closes_owned_session():
    stub = _StubSession({})
    HttpClient("Example", session=stub).close()
    assert stub.closed is False
