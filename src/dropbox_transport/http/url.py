"""URL and query string encoding.

Parameters are passed as a flattened ``[key1, value1, key2, value2, ...]``
sequence. A ``None`` value means "do not send this parameter"; the pair
is dropped from the query string. Keys and values are form-encoded
(UTF-8, space as ``+``).
"""

import re
from typing import Optional, Sequence
from urllib.parse import quote, quote_plus

# Characters that cannot appear in a bare host[:port] authority
_INVALID_HOST = re.compile(r"[/?#@\s\\]")

# Sub-delims and ":" "@" are legal in a path segment and stay literal
_PATH_SAFE = "/:@!$&'()*+,;="

Params = Optional[Sequence[Optional[str]]]


def encode_url_param(s: str) -> str:
    """Form-encode a single query string key or value."""
    return quote_plus(s, safe="*", encoding="utf-8")


def build_uri(host: str, path: str) -> str:
    """Build ``https://{host}/{path}`` with the path percent-escaped.

    :raises ValueError: If ``host`` cannot form a valid URI authority.
        This indicates a programming error in the caller.
    """
    if not host or _INVALID_HOST.search(host):
        raise ValueError(f"URI creation failed, host={host!r}, path={path!r}")
    return f"https://{host}/{quote(path, safe=_PATH_SAFE, encoding='utf-8')}"


def encode_url_params(user_locale: Optional[str], params: Params) -> str:
    """Encode a locale and flattened key/value sequence as a query string.

    The locale, when given, comes first as ``locale=<value>`` and is not
    escaped.

    :param user_locale: Optional locale to send first
    :param params: Flattened ``key, value`` sequence; may be ``None``
    :return: Query string without the leading ``?``
    :raises ValueError: If ``params`` has odd length or contains a ``None`` key
    """
    parts = []
    if user_locale is not None:
        parts.append(f"locale={user_locale}")

    if params is not None:
        if len(params) % 2 != 0:
            raise ValueError(
                f"'params' length is {len(params)}; expecting a multiple of two"
            )
        for i in range(0, len(params), 2):
            key, value = params[i], params[i + 1]
            if key is None:
                raise ValueError(f"params[{i}] is None")
            if value is not None:
                parts.append(f"{encode_url_param(key)}={encode_url_param(value)}")

    return "&".join(parts)


def build_url_with_params(
    user_locale: Optional[str], host: str, path: str, params: Params
) -> str:
    """Build the full request URL including the query string."""
    return build_uri(host, path) + "?" + encode_url_params(user_locale, params)
