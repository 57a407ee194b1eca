"""Integration tests for the httpx transport using httpx.MockTransport."""

import httpx
import pytest

from dropbox_transport.config.settings import RequestConfig
from dropbox_transport.exceptions import NetworkIOError
from dropbox_transport.http import (
    HttpxTransport,
    RequestDispatcher,
    TransportError,
    create_timeout,
    read_json_from_response,
)
from dropbox_transport.http.headers import Header
from dropbox_transport.json_reader import RawJsonReader

pytestmark = pytest.mark.integration


class BrokenStream(httpx.SyncByteStream):
    def __iter__(self):
        yield b"partial"
        raise httpx.ReadError("connection dropped")


def make_transport(handler):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpxTransport(client=client), client


def test_create_timeout_defaults():
    timeout = create_timeout()
    assert timeout.connect == 20.0
    assert timeout.read == 120.0
    assert timeout.write == 120.0
    assert timeout.pool == 20.0


def test_get_streams_body_and_keeps_repeated_headers():
    seen = {}

    def handler(request):
        seen["request"] = request
        return httpx.Response(
            200,
            headers=[("X-Dup", "a"), ("X-Dup", "b"), ("X-Dropbox-Request-Id", "rid")],
            content=b"0123456789" * 1000,
        )

    transport, _ = make_transport(handler)
    response = transport.do_get(
        "https://api.example/2/x?locale=en", [Header("User-Agent", "ua"), Header("X-A", "1")]
    )
    try:
        assert response.status_code == 200
        assert response.get_header_values("X-Dup") == ["a", "b"]
        assert response.get_header_values("x-dropbox-request-id") == ["rid"]
        assert response.body.read(5) == b"01234"
        assert len(response.body.read()) == 9995
    finally:
        response.body.close()
    response.body.close()

    request = seen["request"]
    assert request.url.query == b"locale=en"
    assert request.headers["User-Agent"] == "ua"
    assert request.headers["X-A"] == "1"


def test_post_upload_sends_content_length_without_chunking():
    seen = {}

    def handler(request):
        seen["headers"] = request.headers
        seen["content"] = request.content
        return httpx.Response(200, content=b'{"ok": 1}')

    transport, _ = make_transport(handler)
    payload = b"x" * 200_000
    uploader = transport.start_post(
        "https://content.example/2/upload", [Header("Content-Length", str(len(payload)))]
    )
    with uploader:
        uploader.body.write(payload)
        response = uploader.finish()
    with response.body:
        assert response.body.read() == b'{"ok": 1}'

    assert seen["content"] == payload
    assert seen["headers"]["Content-Length"] == "200000"
    assert "Transfer-Encoding" not in seen["headers"]


def test_finish_twice_rejected():
    transport, _ = make_transport(lambda request: httpx.Response(200))
    uploader = transport.start_put("https://h.example/p", [])
    uploader.body.write(b"data")
    uploader.finish().body.close()
    with pytest.raises(TransportError):
        uploader.finish()
    uploader.close()
    uploader.close()


def test_finish_after_abort_rejected():
    transport, _ = make_transport(lambda request: httpx.Response(200))
    uploader = transport.start_put("https://h.example/p", [])
    uploader.abort()
    with pytest.raises(TransportError):
        uploader.finish()


def test_connect_error_becomes_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    transport, _ = make_transport(handler)
    with pytest.raises(TransportError) as exc_info:
        transport.do_get("https://h.example/p", [])
    assert isinstance(exc_info.value, OSError)
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


def test_body_read_error_becomes_transport_error():
    transport, _ = make_transport(lambda request: httpx.Response(200, stream=BrokenStream()))
    response = transport.do_get("https://h.example/p", [])
    with pytest.raises(TransportError):
        response.body.read()
    response.body.close()


def test_borrowed_client_left_open():
    transport, client = make_transport(lambda request: httpx.Response(200))
    with transport:
        pass
    assert not client.is_closed


def test_owned_client_closed():
    transport = HttpxTransport.from_config(
        RequestConfig(client_identifier="app", connect_timeout=5, read_timeout=30)
    )
    assert transport.client.timeout.read == 30
    transport.close()
    assert transport.client.is_closed


def test_dispatcher_end_to_end():
    def handler(request):
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.headers["User-Agent"] == "app/1 SDK/0.0.1"
        return httpx.Response(200, json={"name": "me"})

    transport, _ = make_transport(handler)
    config = RequestConfig(client_identifier="app/1", sdk_version="0.0.1")
    dispatcher = RequestDispatcher(config, transport, "SDK")
    result = dispatcher.do_get(
        "tok", "api.example", "2/users/get_current_account", None, None,
        lambda r: read_json_from_response(RawJsonReader(), r),
    )
    assert result == {"name": "me"}


def test_dispatcher_reports_network_failure():
    def handler(request):
        raise httpx.ReadTimeout("timed out")

    transport, _ = make_transport(handler)
    dispatcher = RequestDispatcher(RequestConfig(client_identifier="app"), transport, "SDK")
    with pytest.raises(NetworkIOError):
        dispatcher.start_post_raw("h.example", "p", b"body", None)
