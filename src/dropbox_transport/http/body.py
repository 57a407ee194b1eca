"""Response body helpers.

Error responses are read with a hard size cap since their bodies are
short diagnostics; success responses are handed to a schema-specific
reader that consumes the whole stream.
"""

import logging
from typing import TYPE_CHECKING, Callable, Optional, TypeVar

from ..exceptions import BadResponseError, NetworkIOError
from ..json_reader import JsonReadError
from .transport import Response, close_quietly

if TYPE_CHECKING:
    from ..json_reader import JsonReader

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Anything past this is unlikely to be a useful error message
MAX_ERROR_BODY_BYTES = 4096

REQUEST_ID_HEADER = "X-Dropbox-Request-Id"


def slurp(stream, limit: int) -> bytes:
    """Read up to ``limit`` bytes from ``stream``, stopping early at EOF."""
    chunks = []
    remaining = limit
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def load_error_body(response: Response) -> bytes:
    """Read at most :data:`MAX_ERROR_BODY_BYTES` from the response body.

    Bytes past the cap are left unread.

    :raises NetworkIOError: If reading the body fails
    """
    try:
        return slurp(response.body, MAX_ERROR_BODY_BYTES)
    except OSError as e:
        raise NetworkIOError(e) from e


def parse_error_body(request_id: Optional[str], status_code: int, body: bytes) -> str:
    """Decode an error body as UTF-8 text.

    :raises BadResponseError: If ``body`` is not valid UTF-8
    """
    # TODO: honor the charset parameter of the Content-Type header
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise BadResponseError(
            request_id, f"Got non-UTF8 response body: {status_code}: {e}"
        ) from e


def get_request_id(response: Response) -> Optional[str]:
    """Return the first ``X-Dropbox-Request-Id`` value, or None."""
    values = response.get_header_values(REQUEST_ID_HEADER)
    return values[0] if values else None


def read_json_from_response(reader: "JsonReader[T]", response: Response) -> T:
    """Decode the full response body with ``reader``.

    :raises BadResponseError: If the reader rejects the body
    :raises NetworkIOError: If reading the body fails
    """
    try:
        return reader.read_fully(response.body)
    except JsonReadError as e:
        request_id = get_request_id(response)
        logger.debug("Undecodable response body (request id %s): %s", request_id, e)
        raise BadResponseError(request_id, f"error in response JSON: {e}") from e
    except OSError as e:
        raise NetworkIOError(e) from e


def finish_response(response: Response, handler: Callable[[Response], T]) -> T:
    """Run ``handler`` on ``response`` and close the body afterwards."""
    try:
        return handler(response)
    finally:
        close_quietly(response.body)
