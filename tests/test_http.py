import pytest
import requests

from rankrent import http as http_module
from rankrent.http import ApiClient, ApiError, unwrap_data


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str | None = None, reason: str = "OK"):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ("" if payload is None else "json")
        self.reason = reason
        self.url = "http://api.test"

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch) -> None:
    monkeypatch.setattr(http_module.time, "sleep", lambda seconds: None)


def _record(monkeypatch, responses):
    calls = []

    def fake_request(method, url, headers=None, timeout=None, **kwargs):
        calls.append({"method": method, "url": url, "headers": headers, **kwargs})
        result = responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(requests, "request", fake_request)
    return calls


def test_headers_include_auth_only_when_stored(storage) -> None:
    client = ApiClient(base_url="http://api.test", storage=storage)
    assert "Authorization" not in client.headers()
    assert "X-User-ID" not in client.headers()

    storage.set_item("token", "tok")
    storage.set_json("user", {"id": 9})
    headers = client.headers()
    assert headers["Authorization"] == "Bearer tok"
    assert headers["X-User-ID"] == "9"
    assert headers["Accept"] == "application/json"


def test_get_json_builds_url(monkeypatch, storage) -> None:
    calls = _record(monkeypatch, [FakeResponse(payload={"data": [{"id": 1}]})])
    client = ApiClient(base_url="http://api.test/", storage=storage)

    assert unwrap_data(client.get_json("api/leads")) == [{"id": 1}]
    assert calls[0]["url"] == "http://api.test/api/leads"


def test_error_status_raises_api_error(monkeypatch, storage) -> None:
    _record(monkeypatch, [FakeResponse(status_code=422, payload={"message": "invalid"}, reason="Unprocessable Entity")])
    client = ApiClient(base_url="http://api.test", storage=storage)

    with pytest.raises(ApiError) as excinfo:
        client.put_json("/api/leads/1", {"contacted": True})
    assert str(excinfo.value) == "API Error: 422 Unprocessable Entity"
    assert excinfo.value.status_code == 422


def test_get_retries_on_server_error(monkeypatch, storage) -> None:
    calls = _record(
        monkeypatch,
        [FakeResponse(status_code=503, reason="Service Unavailable"), FakeResponse(payload={"data": []})],
    )
    client = ApiClient(base_url="http://api.test", storage=storage)

    assert client.get_json("/api/leads") == {"data": []}
    assert len(calls) == 2


def test_post_is_never_retried(monkeypatch, storage) -> None:
    calls = _record(monkeypatch, [FakeResponse(status_code=503, reason="Service Unavailable")])
    client = ApiClient(base_url="http://api.test", storage=storage)

    with pytest.raises(ApiError):
        client.post_json("/api/leads", {"name": "x"})
    assert len(calls) == 1


def test_transport_error_becomes_api_error(monkeypatch, storage) -> None:
    _record(monkeypatch, [requests.ConnectionError("refused")])
    client = ApiClient(base_url="http://api.test", storage=storage, max_retries=1)

    with pytest.raises(ApiError, match="refused"):
        client.delete("/api/leads/1")


def test_empty_body_decodes_to_empty_dict(monkeypatch, storage) -> None:
    _record(monkeypatch, [FakeResponse(status_code=204, text="")])
    client = ApiClient(base_url="http://api.test", storage=storage)
    assert client.put_json("/api/leads/1", {"notes": "x"}) == {}


def test_exhausted_retries_raise_last_status(monkeypatch, storage) -> None:
    calls = _record(
        monkeypatch,
        [
            requests.ConnectionError("refused"),
            FakeResponse(status_code=502, reason="Bad Gateway"),
        ],
    )
    client = ApiClient(base_url="http://api.test", storage=storage, max_retries=2)

    with pytest.raises(ApiError) as excinfo:
        client.get_json("/api/leads")
    assert excinfo.value.status_code == 502
    assert len(calls) == 2
