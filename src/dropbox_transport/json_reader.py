"""JSON readers that decode response bodies into typed values.

A reader is the schema-specific decoder the transport core hands a
response body to. The core only needs :meth:`JsonReader.read_fully`
and the :class:`JsonReadError` it raises; what the decoded value looks
like is up to the reader.

The module provides:
- ``JsonReader``: base class, parses JSON then delegates to ``read``
- ``ModelReader``: validates against a pydantic model or type
- ``RawJsonReader``: returns the parsed JSON unchanged
"""

import json
from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Generic, Optional, Type, TypeVar

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

T = TypeVar("T")


class JsonReadError(Exception):
    """Raised when a JSON document does not match what a reader expects.

    :param message: Diagnostic describing the problem
    :param location: Where in the document the problem was found, e.g.
                     ``"line 1, column 7"`` or ``"user_message.text"``
    """

    def __init__(self, message: str, location: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


class JsonReader(ABC, Generic[T]):
    """Decode JSON documents into values of type ``T``."""

    @abstractmethod
    def read(self, value: Any) -> T:
        """Decode an already-parsed JSON value.

        :raises JsonReadError: If ``value`` does not have the expected shape
        """
        pass

    def read_fully(self, stream: BinaryIO) -> T:
        """Consume ``stream`` completely and decode it.

        :raises JsonReadError: If the bytes are not valid JSON or do not
            decode to ``T``
        :raises OSError: If reading the stream fails
        """
        data = stream.read()
        return self.read_bytes(data)

    def read_bytes(self, data: bytes) -> T:
        """Decode a complete JSON document held in memory."""
        try:
            value = json.loads(data)
        except UnicodeDecodeError as e:
            raise JsonReadError(f"invalid UTF-8: {e.reason}", f"byte {e.start}") from e
        except json.JSONDecodeError as e:
            raise JsonReadError(e.msg, f"line {e.lineno}, column {e.colno}") from e
        return self.read(value)


class RawJsonReader(JsonReader[Any]):
    """Return parsed JSON values without further decoding."""

    def read(self, value: Any) -> Any:
        return value


class ModelReader(JsonReader[T]):
    """Decode JSON with a pydantic ``TypeAdapter``.

    Works for pydantic models as well as plain annotated types such as
    ``List[str]`` or ``Dict[str, int]``.

    :param target: Model class or type annotation to validate against
    """

    def __init__(self, target: Type[T]):
        self.target = target
        self._adapter = TypeAdapter(target)

    def read(self, value: Any) -> T:
        try:
            return self._adapter.validate_python(value)
        except PydanticValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(p) for p in first["loc"]) or None
            raise JsonReadError(first["msg"], location) from e
