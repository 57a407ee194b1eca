import io
import os
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dropbox_transport.config.settings import RequestConfig  # noqa: E402
from dropbox_transport.http.metrics import metrics  # noqa: E402
from dropbox_transport.http.transport import Response, Transport, Uploader  # noqa: E402


def pytest_configure(config):
    # Add custom markers for test organization
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep DBX_* variables from the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.upper().startswith("DBX_"):
            monkeypatch.delenv(name, raising=False)
    metrics.reset()
    yield


class TrackingBody(io.BytesIO):
    """Response body that counts close() calls.

    Set ``close_error`` to make close() raise it.
    """

    def __init__(self, data: bytes = b""):
        super().__init__(data)
        self.close_calls = 0
        self.close_error = None

    def close(self):
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error
        super().close()


class FakeUploader(Uploader):
    """Uploader that records what was written and how it was finalized."""

    def __init__(self, response=None, finish_error=None):
        self._body = io.BytesIO()
        self.written = b""
        self.response = response
        self.finish_error = finish_error
        self.close_calls = 0
        self.aborted = False

    @property
    def body(self):
        return self._body

    def finish(self):
        self.written = self._body.getvalue()
        if self.finish_error is not None:
            raise self.finish_error
        return self.response

    def abort(self):
        self.aborted = True

    def close(self):
        self.close_calls += 1


class FakeTransport(Transport):
    """Transport returning queued responses and recording every call."""

    def __init__(self, responses=None, uploader_factory=None):
        self.responses = list(responses or [])
        self.calls = []
        self.uploaders = []
        self.uploader_factory = uploader_factory

    def _next_response(self):
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def do_get(self, url, headers):
        self.calls.append(("GET", url, list(headers)))
        return self._next_response()

    def _start(self, method, url, headers):
        self.calls.append((method, url, list(headers)))
        if self.uploader_factory is not None:
            uploader = self.uploader_factory()
        else:
            uploader = FakeUploader(response=self._next_response())
        self.uploaders.append(uploader)
        return uploader

    def start_post(self, url, headers):
        return self._start("POST", url, headers)

    def start_put(self, url, headers):
        return self._start("PUT", url, headers)


def make_response(status=200, body=b"", headers=None):
    """Build a Response with a TrackingBody."""
    return Response(
        status_code=status,
        body=TrackingBody(body),
        headers={k: list(v) for k, v in (headers or {}).items()},
    )


@pytest.fixture
def request_config():
    """Config with a fixed SDK version and no retries."""
    return RequestConfig(client_identifier="test-app/1.0", sdk_version="9.9.9")


@pytest.fixture
def response_factory():
    """Factory for responses whose bodies count close() calls."""
    return make_response


@pytest.fixture
def transport_factory():
    """Factory for fake transports: transport_factory(responses, uploader_factory=None)."""
    return FakeTransport


@pytest.fixture
def uploader_factory():
    """Factory for fake uploaders: uploader_factory(response=None, finish_error=None)."""
    return FakeUploader
