"""Request construction -- URL, headers and body resolved into a descriptor.

:func:`build_request` is the only place a
:class:`~fetchkit.models.RequestDescriptor` is created. It returns either a
descriptor or a :class:`~fetchkit.models.ConstructionFailure`, never both:

* A URL that does not parse (or is not an absolute ``http``/``https`` URL)
  yields :class:`~fetchkit.exceptions.InvalidUrl` with no request content.
* A body that cannot be encoded yields
  :class:`~fetchkit.exceptions.InvalidBody`, together with the partially
  built request (URL, method, headers, timeout) so that callers can still
  inspect what would have been sent.
* A header name or value that HTTP cannot carry (not a string, or not
  ASCII) also yields :class:`~fetchkit.exceptions.InvalidBody`, with no
  request content.

Construction never performs network I/O.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

import httpx
from pydantic import TypeAdapter

from fetchkit.config import get_config
from fetchkit.encoding import encode_body
from fetchkit.exceptions import InvalidBody, InvalidUrl
from fetchkit.models import (
    ClientConfig,
    ConstructionFailure,
    DataBody,
    HTTPMethod,
    JSONBody,
    RequestBody,
    RequestDescriptor,
)

_ALLOWED_SCHEMES = ("http", "https")
_CONTENT_TYPE = "content-type"

_body_adapter: TypeAdapter[Any] = TypeAdapter(RequestBody)

BodyLike = Union[RequestBody, Mapping[str, Any], bytes, None]


def compose_url(url: str, parameters: Optional[Mapping[str, str]] = None) -> str:
    """Return *url* with *parameters* merged into its query string.

    Parameters replace query items of the same name already present on the
    URL.

    Raises:
        InvalidUrl: If *url* contains whitespace, is not an absolute
            ``http``/``https`` URL, or the parameters cannot be encoded
            into it.
    """
    if not isinstance(url, str) or any(char.isspace() for char in url):
        raise InvalidUrl(str(url))
    try:
        parsed = httpx.URL(url)
        if parameters:
            parsed = parsed.copy_merge_params(dict(parameters))
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        raise InvalidUrl(url) from exc
    if parsed.scheme not in _ALLOWED_SCHEMES or not parsed.host:
        raise InvalidUrl(url)
    return str(parsed)


def merge_headers(
    defaults: Mapping[str, str], overrides: Optional[Mapping[str, str]] = None
) -> dict[str, str]:
    """Merge call-site *overrides* over *defaults*.

    Header names compare case-insensitively. An override replaces the
    default of the same name and keeps the override's spelling, so no name
    ever appears twice.
    """
    merged: dict[str, str] = {}
    names: dict[str, str] = {}
    for source in (defaults, overrides or {}):
        for name, value in source.items():
            existing = names.get(name.lower())
            if existing is not None:
                del merged[existing]
            names[name.lower()] = name
            merged[name] = value
    return merged


def coerce_body(body: BodyLike) -> RequestBody:
    """Accept the shorthand body forms of the public API.

    ``None`` and mappings become :class:`~fetchkit.models.JSONBody`, bytes
    become :class:`~fetchkit.models.DataBody`, and body models pass through.

    Raises:
        pydantic.ValidationError: If a mapping is not a valid JSON object
            (for example it has non-string keys).
    """
    if body is None:
        return JSONBody()
    if isinstance(body, (bytes, bytearray)):
        return DataBody(content=bytes(body))
    if isinstance(body, Mapping):
        return JSONBody(payload=dict(body))
    return _body_adapter.validate_python(body)


def _apply_content_type(headers: dict[str, str], content_type: Optional[str]) -> dict[str, str]:
    if content_type is None:
        return headers
    has_header = any(name.lower() == _CONTENT_TYPE for name in headers)
    if has_header and not content_type.startswith("multipart/"):
        return headers
    return merge_headers(headers, {"Content-Type": content_type})


def build_request(
    url: str,
    method: Union[HTTPMethod, str] = HTTPMethod.GET,
    parameters: Optional[Mapping[str, str]] = None,
    body: BodyLike = None,
    headers: Optional[Mapping[str, str]] = None,
    config: Optional[ClientConfig] = None,
) -> Union[RequestDescriptor, ConstructionFailure]:
    """Build a request descriptor, or the reason one cannot be built.

    Args:
        url: Absolute ``http``/``https`` URL.
        method: HTTP method, as an enum member or a string in any case.
        parameters: Query items merged into the URL. Being a mapping, each
            name appears once.
        body: The request body. See :func:`coerce_body` for shorthands.
        headers: Call-site headers, merged over ``config.headers``.
        config: Timeout and default headers. Defaults to the process-wide
            snapshot from :func:`fetchkit.config.get_config`.

    Returns:
        A :class:`~fetchkit.models.RequestDescriptor`, or a
        :class:`~fetchkit.models.ConstructionFailure` carrying
        :class:`~fetchkit.exceptions.InvalidUrl` or
        :class:`~fetchkit.exceptions.InvalidBody`.

    Raises:
        ValueError: If *method* names no known HTTP method.
    """
    if config is None:
        config = get_config()

    http_method = HTTPMethod.coerce(method)

    try:
        target = compose_url(url, parameters)
    except InvalidUrl as exc:
        return ConstructionFailure(exc)

    try:
        merged = merge_headers(config.headers, headers)
        httpx.Headers(merged)
    except (AttributeError, TypeError, ValueError) as exc:
        return ConstructionFailure(InvalidBody(exc))

    partial = RequestDescriptor(
        url=target, method=http_method, headers=merged, timeout=config.timeout
    )

    try:
        encoded = encode_body(coerce_body(body))
    except (TypeError, ValueError, OSError) as exc:
        return ConstructionFailure(InvalidBody(exc), partial)

    return partial.model_copy(
        update={
            "headers": _apply_content_type(merged, encoded.content_type),
            "body": encoded.content,
        }
    )
