"""Request configuration for the Dropbox transport core.

This module defines the settings every dispatched request reads: the
client identifier sent in the User-Agent, the user locale, the retry
bound and the default transport timeouts. Settings can be passed
explicitly or loaded from ``DBX_``-prefixed environment variables and
``.env`` files.
"""

import re
from typing import Any, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .. import __version__

_LOCALE_PAT = re.compile(r"^[A-Za-z0-9_-]+$")


class RequestConfig(BaseSettings):
    """Settings shared by all requests made through a dispatcher.

    :param client_identifier: Identifies the calling application in the
                              User-Agent header, e.g. ``"MyApp/1.0"``
    :type client_identifier: str
    :param user_locale: Locale sent as the ``locale`` query parameter
    :type user_locale: Optional[str]
    :param max_retries: Retries after the first attempt for retryable failures
    :type max_retries: int
    :param sdk_version: Version reported after the SDK identifier
    :type sdk_version: str
    :param connect_timeout: Default transport connect timeout in seconds
    :type connect_timeout: float
    :param read_timeout: Default transport read timeout in seconds
    :type read_timeout: float
    :param log_level: Logging level applied by
                      :func:`~dropbox_transport.logging_setup.configure_logging`
    :type log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    """

    model_config = SettingsConfigDict(
        env_prefix="DBX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    client_identifier: str = Field(
        ..., min_length=1, description="Client identifier for the User-Agent header"
    )
    user_locale: Optional[str] = Field(
        None, description="Locale sent with every request, e.g. 'en_US'"
    )
    max_retries: int = Field(
        0, ge=0, description="Maximum number of retries for retryable failures"
    )
    sdk_version: str = Field(__version__, description="SDK version for User-Agent")

    # Transport defaults
    connect_timeout: float = Field(20.0, gt=0, description="Connect timeout (s)")
    read_timeout: float = Field(120.0, gt=0, description="Read timeout (s)")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", description="Logging level"
    )

    @field_validator("user_locale")
    @classmethod
    def validate_user_locale(cls, v: Optional[str]) -> Optional[str]:
        """Reject locales that are not URL-safe tokens.

        The locale is placed in the query string without escaping, so
        only letters, digits, ``-`` and ``_`` are accepted.

        :param v: The configured locale
        :type v: Optional[str]
        :return: The locale unchanged
        :rtype: Optional[str]
        :raises ValueError: If the locale contains other characters
        """
        if v is not None and not _LOCALE_PAT.match(v):
            raise ValueError(f"user_locale must be a URL-safe token, got {v!r}")
        return v

    @classmethod
    def for_client(cls, client_identifier: str, **overrides: Any) -> "RequestConfig":
        """Create a config for ``client_identifier`` with optional overrides.

        :param client_identifier: Client identifier for the User-Agent header
        :type client_identifier: str
        :return: New configuration instance
        :rtype: RequestConfig
        """
        return cls(client_identifier=client_identifier, **overrides)
