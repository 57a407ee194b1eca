"""Error envelope returned by the API alongside 409-style route errors.

An error response body looks like::

    {"error": {...}, "user_message": {"text": "...", "locale": "en"}}

``error`` is route-specific and decoded by a caller-supplied reader;
``user_message`` is optional localized text meant for end users. Any
other fields are ignored.
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .http.body import get_request_id
from .http.transport import Response
from .json_reader import JsonReader, JsonReadError, RawJsonReader

T = TypeVar("T")


class LocalizedText(BaseModel):
    """Text meant for display to end users, with its locale if known."""

    text: str = Field(..., description="Message text")
    locale: Optional[str] = Field(None, description="Locale of the text")

    def __str__(self) -> str:
        return self.text


class ErrorWrapper(Exception, Generic[T]):
    """A decoded error envelope raised by response handlers.

    :param error_value: The route-specific error decoded from ``error``
    :param request_id: Request id reported by the server, if any
    :param user_message: Optional localized message for end users
    """

    def __init__(
        self,
        error_value: T,
        request_id: Optional[str],
        user_message: Optional[LocalizedText] = None,
    ):
        super().__init__(str(user_message) if user_message else repr(error_value))
        self.error_value = error_value
        self.request_id = request_id
        self.user_message = user_message

    @classmethod
    def from_value(
        cls,
        reader: JsonReader[T],
        value: Any,
        request_id: Optional[str] = None,
    ) -> "ErrorWrapper[T]":
        """Decode an already-parsed envelope.

        :raises JsonReadError: If the envelope is malformed
        """
        if not isinstance(value, dict):
            raise JsonReadError("expecting the start of an object")
        if value.get("error") is None:
            raise JsonReadError('Required field "error" is missing.', "error")
        error_value = reader.read(value["error"])

        user_message = None
        raw_message = value.get("user_message")
        if raw_message is not None:
            try:
                user_message = LocalizedText.model_validate(raw_message)
            except PydanticValidationError as e:
                first = e.errors()[0]
                location = ".".join(["user_message", *(str(p) for p in first["loc"])])
                if first["type"] == "missing":
                    message = f'Required field "{first["loc"][-1]}" is missing.'
                else:
                    message = first["msg"]
                raise JsonReadError(message, location) from e

        return cls(error_value, request_id, user_message)

    @classmethod
    def from_response(cls, reader: JsonReader[T], response: Response) -> "ErrorWrapper[T]":
        """Read and decode the envelope from ``response``'s body.

        :raises JsonReadError: If the body is not a valid envelope
        :raises OSError: If reading the body fails
        """
        value = RawJsonReader().read_fully(response.body)
        return cls.from_value(reader, value, get_request_id(response))

