"""Classification of unsuccessful HTTP responses.

Maps a non-2xx response to the matching exception from
:mod:`dropbox_transport.exceptions`:

- 400 -> BadRequestError
- 401 -> InvalidAccessTokenError
- 429 -> RateLimitError, backoff taken from ``Retry-After``
- 500 -> ServerError
- 503 -> RetryError with zero backoff
- anything else -> BadResponseCodeError

Only RetryError (and its RateLimitError subclass) and ServerError are
retried by :func:`~dropbox_transport.http.retry.run_and_retry`.
"""

import logging
from typing import Optional

from ..exceptions import (
    BadRequestError,
    BadResponseCodeError,
    BadResponseError,
    DbxError,
    InvalidAccessTokenError,
    RateLimitError,
    RetryError,
    ServerError,
)
from .body import get_request_id, load_error_body, parse_error_body
from .transport import Response

logger = logging.getLogger(__name__)

RETRY_AFTER_HEADER = "Retry-After"

# Largest delta-seconds value accepted (signed 32-bit)
MAX_RETRY_AFTER_SECONDS = 2**31 - 1


def get_first_header_maybe(response: Response, name: str) -> Optional[str]:
    """Return the first value of header ``name``, or None when absent."""
    values = response.get_header_values(name)
    return values[0] if values else None


def get_first_header(response: Response, name: str) -> str:
    """Return the first value of header ``name``.

    :raises BadResponseError: If the header is missing
    """
    value = get_first_header_maybe(response, name)
    if value is None:
        raise BadResponseError(
            get_request_id(response), f'missing HTTP header "{name}"'
        )
    return value


def parse_retry_after(response: Response) -> Optional[int]:
    """Parse ``Retry-After`` as a whole, non-negative number of seconds.

    Only the delta-seconds form is accepted; HTTP-dates are not sent by
    the API.

    :return: Seconds to wait, or None if the header is absent, malformed
        or larger than :data:`MAX_RETRY_AFTER_SECONDS`
    """
    raw = get_first_header_maybe(response, RETRY_AFTER_HEADER)
    if raw is None:
        return None
    raw = raw.strip()
    if not raw.isascii() or not raw.isdigit():
        logger.warning(f"Failed to parse Retry-After header '{raw}'")
        return None
    seconds = int(raw)
    if seconds > MAX_RETRY_AFTER_SECONDS:
        logger.warning(f"Retry-After header out of range: {raw}")
        return None
    return seconds


def unexpected_status(response: Response) -> DbxError:
    """Build the exception describing an unsuccessful response.

    Reads (at most 4 KiB of) the response body for the message. The
    exception is returned, not raised, so handlers can write
    ``raise unexpected_status(response)``.

    :raises NetworkIOError: If reading the error body fails
    :raises BadResponseError: If the error body is not UTF-8
    """
    request_id = get_request_id(response)
    body = load_error_body(response)
    message = parse_error_body(request_id, response.status_code, body)
    status = response.status_code

    logger.debug(
        "Classifying HTTP %d response (request id %s)", status, request_id
    )

    if status == 400:
        return BadRequestError(request_id, message)
    if status == 401:
        return InvalidAccessTokenError(request_id, message)
    if status == 429:
        backoff = parse_retry_after(response)
        if backoff is None:
            return BadResponseError(
                request_id, f'Invalid value for HTTP header: "{RETRY_AFTER_HEADER}"'
            )
        return RateLimitError(request_id, message, backoff)
    if status == 500:
        return ServerError(request_id, message)
    if status == 503:
        return RetryError(request_id, message)
    return BadResponseCodeError(
        request_id, f"unexpected HTTP status code: {status}: {message}", status
    )
