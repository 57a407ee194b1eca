"""Unit tests for response body helpers."""

import io

import pytest
from pydantic import BaseModel

from dropbox_transport.exceptions import BadResponseError, NetworkIOError
from dropbox_transport.http.body import (
    MAX_ERROR_BODY_BYTES,
    finish_response,
    get_request_id,
    load_error_body,
    parse_error_body,
    read_json_from_response,
)
from dropbox_transport.http.transport import Response
from dropbox_transport.json_reader import ModelReader, RawJsonReader


class FailingStream(io.RawIOBase):
    def readable(self):
        return True

    def readinto(self, buffer):
        raise ConnectionResetError("connection reset by peer")


class Account(BaseModel):
    account_id: str
    email: str


class TestLoadErrorBody:
    def test_short_body_read_completely(self, response_factory):
        response = response_factory(400, b"bad things")
        assert load_error_body(response) == b"bad things"

    def test_body_capped_at_limit(self, response_factory):
        data = b"x" * (MAX_ERROR_BODY_BYTES + 100)
        response = response_factory(500, data)
        assert load_error_body(response) == b"x" * MAX_ERROR_BODY_BYTES
        # excess is left in the stream
        assert response.body.read() == b"x" * 100

    def test_io_failure_becomes_network_error(self):
        response = Response(status_code=500, body=FailingStream())
        with pytest.raises(NetworkIOError) as exc_info:
            load_error_body(response)
        assert isinstance(exc_info.value.__cause__, ConnectionResetError)


class TestParseErrorBody:
    def test_utf8_decoded(self):
        assert parse_error_body("rid", 400, "héllo".encode("utf-8")) == "héllo"

    def test_invalid_utf8(self):
        with pytest.raises(BadResponseError) as exc_info:
            parse_error_body("rid-1", 502, b"\xff\xfe")
        assert exc_info.value.request_id == "rid-1"
        assert "Got non-UTF8 response body: 502" in exc_info.value.message


class TestGetRequestId:
    def test_present(self, response_factory):
        response = response_factory(200, headers={"X-Dropbox-Request-Id": ["abc"]})
        assert get_request_id(response) == "abc"

    def test_lowercase_name_matches(self, response_factory):
        response = response_factory(200, headers={"x-dropbox-request-id": ["abc"]})
        assert get_request_id(response) == "abc"

    def test_absent(self, response_factory):
        assert get_request_id(response_factory(200)) is None


class TestReadJsonFromResponse:
    def test_decodes_model(self, response_factory):
        response = response_factory(200, b'{"account_id": "a1", "email": "e@x.com"}')
        account = read_json_from_response(ModelReader(Account), response)
        assert account == Account(account_id="a1", email="e@x.com")

    def test_invalid_json_is_bad_response(self, response_factory):
        response = response_factory(
            200, b"{not json", headers={"X-Dropbox-Request-Id": ["rid"]}
        )
        with pytest.raises(BadResponseError) as exc_info:
            read_json_from_response(RawJsonReader(), response)
        assert exc_info.value.request_id == "rid"
        assert exc_info.value.message.startswith("error in response JSON: ")

    def test_schema_mismatch_includes_location(self, response_factory):
        response = response_factory(200, b'{"account_id": "a1"}')
        with pytest.raises(BadResponseError, match="email"):
            read_json_from_response(ModelReader(Account), response)

    def test_io_failure_becomes_network_error(self):
        response = Response(status_code=200, body=FailingStream())
        with pytest.raises(NetworkIOError):
            read_json_from_response(RawJsonReader(), response)


class TestFinishResponse:
    def test_returns_handler_value_and_closes(self, response_factory):
        response = response_factory(200, b"ok")
        assert finish_response(response, lambda r: r.body.read()) == b"ok"
        assert response.body.close_calls == 1

    def test_closes_when_handler_raises(self, response_factory):
        response = response_factory(200, b"ok")

        def handler(r):
            raise KeyError("boom")

        with pytest.raises(KeyError):
            finish_response(response, handler)
        assert response.body.close_calls == 1
