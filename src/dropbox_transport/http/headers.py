"""Request header composition.

Headers are kept as an ordered list of ``(name, value)`` pairs because
HTTP allows the same name to appear more than once and the order the
headers were added in is the order they are sent in. Every composer
takes the caller's list (or ``None``) and returns a new list; the
caller's list is never mutated.
"""

from typing import TYPE_CHECKING, List, NamedTuple, Optional, Sequence

if TYPE_CHECKING:
    from ..config.settings import RequestConfig


class Header(NamedTuple):
    """A single HTTP header. The value is sent as-is, never re-encoded."""

    name: str
    value: str


HeaderList = List[Header]

AUTHORIZATION = "Authorization"
SELECT_USER = "Dropbox-API-Select-User"
USER_AGENT = "User-Agent"
CONTENT_TYPE = "Content-Type"
CONTENT_LENGTH = "Content-Length"


def copy_headers(headers: Optional[Sequence[Header]]) -> HeaderList:
    """Return a new list holding ``headers`` (empty when ``None``)."""
    if headers is None:
        return []
    return [Header(*h) for h in headers]


def add_header(headers: Optional[Sequence[Header]], name: str, value: str) -> HeaderList:
    """Return a copy of ``headers`` with ``name: value`` appended."""
    result = copy_headers(headers)
    result.append(Header(name, value))
    return result


def add_auth_header(headers: Optional[Sequence[Header]], access_token: str) -> HeaderList:
    """Append ``Authorization: Bearer <access_token>``."""
    return add_header(headers, AUTHORIZATION, f"Bearer {access_token}")


def add_select_user_header(
    headers: Optional[Sequence[Header]], member_id: Optional[str]
) -> HeaderList:
    """Append ``Dropbox-API-Select-User: <member_id>``.

    :raises ValueError: If ``member_id`` is ``None``
    """
    if member_id is None:
        raise ValueError("'member_id' is None")
    return add_header(headers, SELECT_USER, member_id)


def build_user_agent_header(
    config: "RequestConfig", sdk_user_agent_identifier: str
) -> Header:
    """Build ``User-Agent: <client_identifier> <sdk_identifier>/<sdk_version>``."""
    return Header(
        USER_AGENT,
        f"{config.client_identifier} {sdk_user_agent_identifier}/{config.sdk_version}",
    )


def add_user_agent_header(
    headers: Optional[Sequence[Header]],
    config: "RequestConfig",
    sdk_user_agent_identifier: str,
) -> HeaderList:
    """Append the User-Agent header built from ``config``."""
    result = copy_headers(headers)
    result.append(build_user_agent_header(config, sdk_user_agent_identifier))
    return result
