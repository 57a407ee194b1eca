"""Define the transport abstraction consumed by the request dispatcher.

The dispatcher never touches sockets itself. It talks to a
:class:`Transport` that performs GET requests and opens streaming
uploads for PUT and POST. Implementations signal I/O failures by
raising ``OSError`` (or a subclass); the dispatcher converts those to
:class:`~dropbox_transport.exceptions.NetworkIOError`.

See :mod:`dropbox_transport.http.httpx_transport` for the default
implementation.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import BinaryIO, Dict, List, Optional, Sequence

from .headers import Header

logger = logging.getLogger(__name__)


@dataclass
class Response:
    """An HTTP response whose body has not been read yet.

    The body is a single-consumption binary stream. Whoever receives a
    response owns it and must close the body exactly once.

    :param status_code: HTTP status code
    :param body: Readable binary stream of the response body
    :param headers: Header name to ordered list of values
    """

    status_code: int
    body: BinaryIO
    headers: Dict[str, List[str]] = field(default_factory=dict)

    def get_header_values(self, name: str) -> List[str]:
        """Return all values for header ``name``.

        An exact name match wins; otherwise the lookup falls back to a
        case-insensitive match since many HTTP stacks normalize names.
        """
        values = self.headers.get(name)
        if values is not None:
            return list(values)
        lowered = name.lower()
        for key, vals in self.headers.items():
            if key.lower() == lowered:
                return list(vals)
        return []

    def is_success(self) -> bool:
        """Return True for 2xx status codes."""
        return 200 <= self.status_code < 300


class Uploader(ABC):
    """A one-shot writable request body bound to an in-flight request.

    Write the body to :attr:`body`, then call :meth:`finish` to obtain
    the response. :meth:`close` releases the upload and may be called
    any number of times; it is safe to call whether or not
    :meth:`finish` succeeded.
    """

    @property
    @abstractmethod
    def body(self) -> BinaryIO:
        """Return the writable request body sink."""
        pass

    @abstractmethod
    def finish(self) -> Response:
        """Complete the request and return the server's response."""
        pass

    @abstractmethod
    def abort(self) -> None:
        """Abandon the request without sending the remainder."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the upload. Idempotent."""
        pass

    def __enter__(self) -> "Uploader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class Transport(ABC):
    """Perform the HTTP exchanges requested by the dispatcher."""

    @abstractmethod
    def do_get(self, url: str, headers: Sequence[Header]) -> Response:
        """Send a GET request and return the streaming response.

        :param url: Absolute request URL including the query string
        :param headers: Ordered request headers
        :raises OSError: On network failure
        """
        pass

    @abstractmethod
    def start_post(self, url: str, headers: Sequence[Header]) -> Uploader:
        """Begin a POST request whose body the caller writes.

        :raises OSError: On network failure
        """
        pass

    @abstractmethod
    def start_put(self, url: str, headers: Sequence[Header]) -> Uploader:
        """Begin a PUT request whose body the caller writes.

        :raises OSError: On network failure
        """
        pass

    def close(self) -> None:
        """Release resources held by the transport."""
        return None


def close_quietly(stream: Optional[BinaryIO]) -> None:
    """Close ``stream`` ignoring ``OSError``, for cleanup after another failure."""
    if stream is None:
        return
    try:
        stream.close()
    except OSError as e:
        logger.debug("Ignoring error while closing response body: %s", e)
