"""HTTP transport core public API (barrel module).

This package provides:
- URL and query string encoding
- Request header composition
- The transport abstraction and an httpx-based implementation
- Response body helpers and error classification
- The retry loop and the request dispatcher

Recommended import pattern for consumers:
    from dropbox_transport.http import RequestDispatcher, HttpxTransport
    from dropbox_transport.http import unexpected_status, read_json_from_response

This keeps call sites stable even if internal modules are reorganized.
"""

from .body import (
    MAX_ERROR_BODY_BYTES,
    finish_response,
    get_request_id,
    load_error_body,
    parse_error_body,
    read_json_from_response,
)
from .dispatcher import FORM_CONTENT_TYPE, RequestDispatcher
from .errors import (
    get_first_header,
    get_first_header_maybe,
    parse_retry_after,
    unexpected_status,
)
from .headers import (
    Header,
    add_header,
    add_auth_header,
    add_select_user_header,
    add_user_agent_header,
    build_user_agent_header,
    copy_headers,
)
from .httpx_transport import HttpxTransport, HttpxUploader, TransportError, create_timeout
from .metrics import MetricsCollector, metrics
from .retry import backoff_wait, dbx_retry, run_and_retry
from .transport import Response, Transport, Uploader
from .url import build_uri, build_url_with_params, encode_url_param, encode_url_params

__all__ = [
    "Header",
    "copy_headers",
    "add_header",
    "add_auth_header",
    "add_select_user_header",
    "add_user_agent_header",
    "build_user_agent_header",
    "encode_url_param",
    "encode_url_params",
    "build_uri",
    "build_url_with_params",
    "Response",
    "Transport",
    "Uploader",
    "HttpxTransport",
    "HttpxUploader",
    "TransportError",
    "create_timeout",
    "MAX_ERROR_BODY_BYTES",
    "load_error_body",
    "parse_error_body",
    "read_json_from_response",
    "finish_response",
    "get_request_id",
    "get_first_header",
    "get_first_header_maybe",
    "parse_retry_after",
    "unexpected_status",
    "run_and_retry",
    "dbx_retry",
    "backoff_wait",
    "MetricsCollector",
    "metrics",
    "RequestDispatcher",
    "FORM_CONTENT_TYPE",
]
