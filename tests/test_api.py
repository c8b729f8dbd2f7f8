import json

import httpx
import pytest

from eventboard.api import ApiClient, ApiError


def _client(handler, token: str = "secret") -> ApiClient:
    return ApiClient("http://zbx.test/api_jsonrpc.php", token=token, transport=httpx.MockTransport(handler))


def test_get_sends_jsonrpc_request_with_auth() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"jsonrpc": "2.0", "result": [{"eventid": "1"}], "id": 1})

    with _client(handler) as api:
        records = api.get("event", output=["eventid"], limit=5)

    assert records == [{"eventid": "1"}]
    body = seen[0]
    assert body["method"] == "event.get"
    assert body["params"] == {"output": ["eventid"], "limit": 5}
    assert body["auth"] == "secret"
    assert body["jsonrpc"] == "2.0"


def test_preserved_keys_are_flattened_or_keyed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"jsonrpc": "2.0", "result": {"7": {"clock": "100"}}, "id": 1})

    with _client(handler) as api:
        assert api.get("event", eventids=[7], preservekeys=True) == [{"clock": "100"}]
        assert api.get_by_id("event", "eventid", eventids=[7]) == {7: {"eventid": "7", "clock": "100"}}


def test_count_sets_count_output() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"jsonrpc": "2.0", "result": "12", "id": 1})

    with _client(handler) as api:
        assert api.count("event", objectids=[1]) == 12
    assert seen[0]["params"]["countOutput"] is True


def test_error_payload_raises_api_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "jsonrpc": "2.0",
                "error": {"code": -32602, "message": "Invalid params.", "data": "No permissions."},
                "id": 1,
            },
        )

    with _client(handler) as api:
        with pytest.raises(ApiError) as excinfo:
            api.get("event")

    assert excinfo.value.code == -32602
    assert excinfo.value.method == "event.get"
    assert "No permissions." in str(excinfo.value)


def test_http_failure_is_not_retried() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(503)

    with _client(handler) as api:
        with pytest.raises(httpx.HTTPStatusError):
            api.get("event")
    assert len(calls) == 1


def test_check_authentication_is_sent_without_auth() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"jsonrpc": "2.0", "result": {"userid": "1", "alias": "Admin"}, "id": 1})

    with _client(handler, token="sess") as api:
        assert api.check_authentication() == {"userid": "1", "alias": "Admin"}

    assert "auth" not in seen[0]
    assert seen[0]["params"] == {"sessionid": "sess"}
