"""Body encoding -- turns a :data:`~fetchkit.models.RequestBody` into bytes.

:func:`encode_body` resolves each body variant to an :class:`EncodedBody`
holding the payload and the content type it implies:

* ``JSONBody(None)`` -- no body, no content type.
* ``JSONBody(mapping)`` -- ``json.dumps(mapping)``, ``application/json``.
* ``DataBody`` -- the bytes unchanged, no content type.
* ``FormBody`` -- the multipart payload, ``multipart/form-data; boundary=...``.
* ``GraphQLBody`` -- ``{"query": ..., "variables": ...}``, ``application/json``.

GraphQL variables are serialised to a JSON *string* and embedded as the
value of the ``variables`` field, not as a nested object. Backends speaking
this dialect of GraphQL-over-HTTP expect exactly that shape.

Encoding errors are raised as-is (``TypeError``/``ValueError`` for values
JSON cannot represent, ``OSError`` for unreadable files). The request builder
wraps them in :class:`~fetchkit.exceptions.InvalidBody`.
"""

from __future__ import annotations

import json
from typing import Any, NamedTuple, Optional

from fetchkit.models import DataBody, FormBody, GraphQLBody, JSONBody, RequestBody
from fetchkit.multipart import encode_form

JSON_CONTENT_TYPE = "application/json"


class EncodedBody(NamedTuple):
    content: Optional[bytes]
    content_type: Optional[str] = None


def dump_json(value: Any) -> str:
    """Serialise *value* as compact JSON, rejecting NaN and infinities."""
    return json.dumps(value, ensure_ascii=False, allow_nan=False, separators=(",", ":"))


def encode_graphql(query: str, variables: Optional[dict[str, Any]]) -> bytes:
    """Build the GraphQL envelope. ``variables`` is omitted when ``None``."""
    envelope: dict[str, str] = {"query": query}
    if variables is not None:
        envelope["variables"] = dump_json(variables)
    return dump_json(envelope).encode("utf-8")


def encode_body(body: RequestBody) -> EncodedBody:
    """Resolve *body* to its payload and content type.

    Raises:
        TypeError: If a JSON payload holds a value JSON cannot represent.
        ValueError: If a JSON payload is circular or holds NaN/infinity.
        OSError: If a multipart file part cannot be read.
    """
    if isinstance(body, JSONBody):
        if body.payload is None:
            return EncodedBody(None)
        return EncodedBody(dump_json(body.payload).encode("utf-8"), JSON_CONTENT_TYPE)
    if isinstance(body, DataBody):
        return EncodedBody(body.content)
    if isinstance(body, FormBody):
        encoded = encode_form(body.form)
        return EncodedBody(encoded.content, encoded.content_type)
    if isinstance(body, GraphQLBody):
        return EncodedBody(encode_graphql(body.query, body.variables), JSON_CONTENT_TYPE)
    raise TypeError(f"Unsupported request body: {type(body).__name__}")
