"""Byte-to-value converters shared by every dispatch style.

A converter takes the raw response body and returns the value handed to the
caller. Converters signal interpretation failures with the matching
:class:`~fetchkit.exceptions.NetworkError` variant:

* :func:`to_data` -- the bytes unchanged; never fails.
* :func:`to_text` -- UTF-8 text, invalid sequences replaced; never fails.
* :func:`to_json` -- any JSON value; raises
  :class:`~fetchkit.exceptions.InvalidJSONResponse`.
* :func:`to_model` -- builds a converter validating the JSON against a type
  with a pydantic :class:`~pydantic.TypeAdapter`; raises
  :class:`~fetchkit.exceptions.DecodeFailure`.
"""

from __future__ import annotations

import json
from typing import Any, Callable, TypeVar

from pydantic import TypeAdapter, ValidationError

from fetchkit.exceptions import DecodeFailure, InvalidJSONResponse

T = TypeVar("T")

Converter = Callable[[bytes], T]


def to_data(data: bytes) -> bytes:
    return data


def to_text(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def to_json(data: bytes) -> Any:
    try:
        return json.loads(data)
    except ValueError as exc:
        raise InvalidJSONResponse(exc) from exc


def to_model(model: type[T]) -> Converter[T]:
    """Return a converter decoding JSON bodies into *model*.

    *model* can be anything pydantic validates: a ``BaseModel`` subclass, a
    dataclass, a ``TypedDict`` or a generic such as ``list[User]``.

    Example::

        convert = to_model(list[User])
        users = convert(b'[{"username": "quan", "email": "q@example.com"}]')
    """
    adapter = TypeAdapter(model)

    def convert(data: bytes) -> T:
        try:
            return adapter.validate_json(data)
        except ValidationError as exc:
            raise DecodeFailure(exc) from exc

    return convert
