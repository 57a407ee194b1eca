"""Default transport built on a synchronous ``httpx.Client``.

Responses are always streamed: the body handed to the dispatcher is a
file-like wrapper that pulls bytes from the connection as they are
read. Upload bodies are spooled (in memory up to
:data:`SPOOL_MAX_BYTES`, then on disk) and streamed to the server in
chunks when :meth:`HttpxUploader.finish` is called.

httpx failures are re-raised as :class:`TransportError`, an ``OSError``
subclass, which the dispatcher reports as a network I/O failure.
"""

import io
import logging
import tempfile
from typing import TYPE_CHECKING, BinaryIO, Dict, Iterator, List, Optional, Sequence

import httpx

from .headers import Header
from .transport import Response, Transport, Uploader

if TYPE_CHECKING:
    from ..config.settings import RequestConfig

logger = logging.getLogger(__name__)

SPOOL_MAX_BYTES = 1024 * 1024
UPLOAD_CHUNK_BYTES = 64 * 1024


class TransportError(OSError):
    """An httpx failure surfaced as an I/O error."""


def create_timeout(
    connect: float = 20.0,
    read: float = 120.0,
    write: Optional[float] = None,
    pool: Optional[float] = None,
) -> httpx.Timeout:
    """Create a timeout configuration object.

    :param connect: Connection timeout in seconds
    :type connect: float
    :param read: Read timeout in seconds
    :type read: float
    :param write: Write timeout in seconds, defaults to ``read``
    :type write: Optional[float]
    :param pool: Pool timeout in seconds, defaults to ``connect``
    :type pool: Optional[float]
    :return: Configured timeout object
    :rtype: httpx.Timeout
    """
    return httpx.Timeout(
        connect=connect,
        read=read,
        write=read if write is None else write,
        pool=connect if pool is None else pool,
    )


def _header_multimap(response: httpx.Response) -> Dict[str, List[str]]:
    headers: Dict[str, List[str]] = {}
    for raw_name, raw_value in response.headers.raw:
        name = raw_name.decode("latin-1")
        headers.setdefault(name, []).append(raw_value.decode("latin-1"))
    return headers


class _StreamingBody(io.RawIOBase):
    """Read-once file object over a streamed ``httpx.Response``."""

    def __init__(self, response: httpx.Response):
        super().__init__()
        self._response = response
        self._chunks = response.iter_bytes()
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        while not self._pending:
            try:
                chunk = next(self._chunks, None)
            except (httpx.HTTPError, httpx.StreamError) as e:
                raise TransportError(f"error reading response body: {e}") from e
            if chunk is None:
                return 0
            self._pending = chunk
        n = min(len(buffer), len(self._pending))
        buffer[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        return n

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._response.close()
        finally:
            super().close()


class HttpxUploader(Uploader):
    """Upload handle that spools the body and sends it on :meth:`finish`."""

    def __init__(
        self,
        transport: "HttpxTransport",
        method: str,
        url: str,
        headers: Sequence[Header],
    ):
        self._transport = transport
        self._method = method
        self._url = url
        self._headers = [tuple(h) for h in headers]
        self._body = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_BYTES)
        self._finished = False

    @property
    def body(self) -> BinaryIO:
        return self._body

    def _iter_body(self) -> Iterator[bytes]:
        while True:
            chunk = self._body.read(UPLOAD_CHUNK_BYTES)
            if not chunk:
                break
            yield chunk

    def finish(self) -> Response:
        if self._body.closed:
            raise TransportError("upload has already been closed")
        if self._finished:
            raise TransportError("finish() has already been called")
        self._finished = True
        self._body.seek(0)
        request = self._transport.client.build_request(
            self._method, self._url, headers=self._headers, content=self._iter_body()
        )
        return self._transport.send(request)

    def abort(self) -> None:
        if not self._finished:
            logger.debug(f"Aborting {self._method} upload to {self._url}")
        self.close()

    def close(self) -> None:
        if not self._body.closed:
            self._body.close()


class HttpxTransport(Transport):
    """Transport backed by ``httpx.Client``.

    :param client: Existing client to use; the caller keeps ownership
    :type client: Optional[httpx.Client]
    :param timeout: Timeout for a client created by this transport
    :type timeout: Optional[httpx.Timeout]
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        timeout: Optional[httpx.Timeout] = None,
    ):
        self._owns_client = client is None
        if client is None:
            client = httpx.Client(
                timeout=timeout or create_timeout(), follow_redirects=False
            )
        self.client = client

    @classmethod
    def from_config(cls, config: "RequestConfig") -> "HttpxTransport":
        """Create a transport using the timeouts from ``config``."""
        return cls(
            timeout=create_timeout(
                connect=config.connect_timeout, read=config.read_timeout
            )
        )

    def send(self, request: httpx.Request) -> Response:
        """Send ``request`` and return the response with a streaming body."""
        try:
            response = self.client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise TransportError(f"{request.method} {request.url.path}: {e}") from e
        logger.debug(
            "%s %s -> %d", request.method, request.url.path, response.status_code
        )
        return Response(
            status_code=response.status_code,
            body=_StreamingBody(response),
            headers=_header_multimap(response),
        )

    def do_get(self, url: str, headers: Sequence[Header]) -> Response:
        request = self.client.build_request(
            "GET", url, headers=[tuple(h) for h in headers]
        )
        return self.send(request)

    def start_post(self, url: str, headers: Sequence[Header]) -> Uploader:
        return HttpxUploader(self, "POST", url, headers)

    def start_put(self, url: str, headers: Sequence[Header]) -> Uploader:
        return HttpxUploader(self, "PUT", url, headers)

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "HttpxTransport":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
