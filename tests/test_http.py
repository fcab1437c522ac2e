"""HTTP transport and MessagesAPI against httpx.MockTransport."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from treetracker_messaging.errors import MalformedResponseError, TransportError
from treetracker_messaging.messages_api import MessagesAPI
from treetracker_messaging.store import messages as store
from treetracker_messaging.transport.http import HttpClient

MESSAGE = {
    "id": "m1",
    "from": "admin",
    "to": "joe",
    "body": "Welcome",
    "type": "message",
    "composed_at": "2023-04-03T10:00:00.000Z",
}


def _api(handler) -> MessagesAPI:
    return MessagesAPI(HttpClient(base_url="https://api.test/", transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_fetch_messages_query():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"messages": [MESSAGE], "links": {"prev": None, "next": "message?offset=1"}})

    api = _api(handler)
    page = await api.fetch_messages("joe", datetime(2023, 4, 1, tzinfo=timezone.utc), 50)

    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/messaging/message"
    assert request.url.params["handle"] == "joe"
    assert request.url.params["since"] == "2023-04-01T00:00:00.000Z"
    assert request.url.params["limit"] == "50"
    assert [m.message_id for m in page.messages] == ["m1"]
    assert page.next == "message?offset=1"


@pytest.mark.asyncio
async def test_fetch_without_limit_omits_param():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"messages": []})

    await _api(handler).fetch_messages("joe", datetime(2023, 4, 1, tzinfo=timezone.utc))
    assert "limit" not in seen[0].url.params


@pytest.mark.asyncio
async def test_fetch_next_messages_path():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"messages": [], "links": {"next": None}})

    page = await _api(handler).fetch_next_messages("message?handle=joe&offset=50")

    assert seen[0].url.path == "/messaging/message"
    assert seen[0].url.params["offset"] == "50"
    assert page.next is None


@pytest.mark.asyncio
async def test_post_message_body(make_message):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    record = store.build_record(make_message("c1", sender="joe"), "planter-1", uploaded=False, unread=False)
    await _api(handler).post_message(record, "joe")

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/messaging/message"
    assert request.headers["content-type"] == "application/json"
    body = json.loads(request.content)
    assert body["id"] == "c1"
    assert body["author_handle"] == "joe"
    assert body["composed_at"] == "2023-04-03T10:00:00.000Z"
    assert body["survey_id"] is None


@pytest.mark.asyncio
async def test_http_error_status():
    api = _api(lambda request: httpx.Response(503, text="maintenance"))

    with pytest.raises(TransportError) as excinfo:
        await api.fetch_next_messages("message?offset=50")
    assert excinfo.value.status_code == 503
    assert "maintenance" in str(excinfo.value)


@pytest.mark.asyncio
async def test_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("no route to host", request=request)

    with pytest.raises(TransportError) as excinfo:
        await _api(handler).fetch_next_messages("message")
    assert not isinstance(excinfo.value, MalformedResponseError)
    assert excinfo.value.status_code is None


@pytest.mark.asyncio
async def test_invalid_json_is_malformed():
    api = _api(lambda request: httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(MalformedResponseError):
        await api.fetch_next_messages("message")


@pytest.mark.asyncio
async def test_unexpected_shape_is_malformed():
    api = _api(lambda request: httpx.Response(200, json={"messages": [{"id": "m1"}]}))

    with pytest.raises(MalformedResponseError) as excinfo:
        await api.fetch_next_messages("message")
    assert excinfo.value.code == "malformed_response"
