"""Authenticated request dispatch for the Dropbox API.

:class:`RequestDispatcher` composes URLs and headers, hands the request
to a :class:`~dropbox_transport.http.transport.Transport` and passes
the response to a caller-supplied handler.

Retry policy per entry point:

- ``do_get``, ``do_post`` and ``do_post_no_auth`` retry the whole
  attempt (request + handler) via :func:`run_and_retry`;
- ``start_put`` and ``start_post_raw`` are single attempts because a
  consumed request body cannot be replayed.

Handlers are plain callables taking a :class:`Response`. A handler
typically checks the status code, decodes the body on success and
raises :func:`~dropbox_transport.http.errors.unexpected_status`
otherwise.

Examples:
    >>> config = RequestConfig(client_identifier="example-app/1.0")
    >>> with HttpxTransport.from_config(config) as transport:
    ...     dispatcher = RequestDispatcher(config, transport, "OfficialDropboxPythonSDK")
    ...     dispatcher.do_get(token, "api.dropboxapi.com", "2/users/get_current_account",
    ...                       None, None, handler)
"""

import logging
import threading
from typing import Callable, Optional, Sequence, TypeVar

from ..config.settings import RequestConfig
from ..exceptions import NetworkIOError
from ..logging_setup import sanitize_headers
from .body import finish_response
from .headers import (
    CONTENT_LENGTH,
    CONTENT_TYPE,
    Header,
    add_auth_header,
    add_header,
    add_user_agent_header,
)
from .retry import run_and_retry
from .transport import Response, Transport, Uploader
from .url import Params, build_uri, build_url_with_params, encode_url_params

logger = logging.getLogger(__name__)

T = TypeVar("T")

Headers = Optional[Sequence[Header]]
ResponseHandler = Callable[[Response], T]

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=utf-8"


class RequestDispatcher:
    """Dispatch requests through a transport with retries.

    :param config: Request configuration (client identifier, locale, retries)
    :type config: RequestConfig
    :param transport: Transport performing the HTTP exchanges
    :type transport: Transport
    :param sdk_user_agent_identifier: SDK name placed in the User-Agent header
    :type sdk_user_agent_identifier: str
    :param cancel_event: Optional event that interrupts retry backoff waits
    :type cancel_event: Optional[threading.Event]
    """

    def __init__(
        self,
        config: RequestConfig,
        transport: Transport,
        sdk_user_agent_identifier: str,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.config = config
        self.transport = transport
        self.sdk_user_agent_identifier = sdk_user_agent_identifier
        self.cancel_event = cancel_event

    def _base_headers(self, headers: Headers) -> list:
        return add_user_agent_header(
            headers, self.config, self.sdk_user_agent_identifier
        )

    def start_get(
        self,
        access_token: str,
        host: str,
        path: str,
        params: Params,
        headers: Headers,
    ) -> Response:
        """Send a single authenticated GET and return the unread response.

        :raises NetworkIOError: If the transport fails
        """
        headers = add_auth_header(self._base_headers(headers), access_token)
        url = build_url_with_params(self.config.user_locale, host, path, params)
        logger.debug("GET %s headers=%s", path, sanitize_headers(headers))
        try:
            return self.transport.do_get(url, headers)
        except OSError as e:
            raise NetworkIOError(e) from e

    def start_put(
        self,
        access_token: str,
        host: str,
        path: str,
        params: Params,
        headers: Headers,
    ) -> Uploader:
        """Open an authenticated streaming PUT and return its upload handle.

        The caller owns the handle: write the body, call ``finish()`` and
        always ``close()`` it. Not retried.

        :raises NetworkIOError: If the transport fails
        """
        headers = add_auth_header(self._base_headers(headers), access_token)
        url = build_url_with_params(self.config.user_locale, host, path, params)
        logger.debug("PUT %s headers=%s", path, sanitize_headers(headers))
        try:
            return self.transport.start_put(url, headers)
        except OSError as e:
            raise NetworkIOError(e) from e

    def start_post_no_auth(
        self,
        host: str,
        path: str,
        params: Params,
        headers: Headers,
    ) -> Response:
        """Send a single form-encoded POST and return the unread response."""
        body = encode_url_params(self.config.user_locale, params).encode("utf-8")
        headers = add_header(headers, CONTENT_TYPE, FORM_CONTENT_TYPE)
        return self.start_post_raw(host, path, body, headers)

    def start_post_raw(
        self,
        host: str,
        path: str,
        body: bytes,
        headers: Headers,
    ) -> Response:
        """Send a single POST with a raw body and return the unread response.

        The upload handle is closed on every exit path.

        :raises NetworkIOError: If the transport fails
        """
        uri = build_uri(host, path)
        headers = add_header(self._base_headers(headers), CONTENT_LENGTH, str(len(body)))
        logger.debug("POST %s headers=%s", path, sanitize_headers(headers))
        try:
            uploader = self.transport.start_post(uri, headers)
            try:
                uploader.body.write(body)
                return uploader.finish()
            finally:
                uploader.close()
        except OSError as e:
            raise NetworkIOError(e) from e

    def do_get(
        self,
        access_token: str,
        host: str,
        path: str,
        params: Params,
        headers: Headers,
        handler: ResponseHandler,
    ) -> T:
        """Perform an authenticated GET with retries and handle the response.

        The response body is closed after every attempt, whether the
        handler returned or raised.

        :raises NetworkIOError: If the transport fails or the body cannot be closed
        """

        def attempt() -> T:
            response = self.start_get(access_token, host, path, params, headers)
            try:
                return handler(response)
            finally:
                try:
                    response.body.close()
                except OSError as e:
                    raise NetworkIOError(e) from e

        return run_and_retry(
            self.config.max_retries,
            attempt,
            cancel_event=self.cancel_event,
            label=f"GET {path}",
        )

    def do_post(
        self,
        access_token: str,
        host: str,
        path: str,
        params: Params,
        headers: Headers,
        handler: ResponseHandler,
    ) -> T:
        """Perform an authenticated form-encoded POST with retries."""
        headers = add_auth_header(headers, access_token)
        return self.do_post_no_auth(host, path, params, headers, handler)

    def do_post_no_auth(
        self,
        host: str,
        path: str,
        params: Params,
        headers: Headers,
        handler: ResponseHandler,
    ) -> T:
        """Perform an unauthenticated form-encoded POST with retries."""

        def attempt() -> T:
            response = self.start_post_no_auth(host, path, params, headers)
            return finish_response(response, handler)

        return run_and_retry(
            self.config.max_retries,
            attempt,
            cancel_event=self.cancel_event,
            label=f"POST {path}",
        )
