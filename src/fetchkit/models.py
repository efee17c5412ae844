"""Canonical Pydantic models shared across all fetchkit modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Configuration** -- :class:`ClientConfig`, the timeout and default headers
applied when a request is built. Persisted as JSON by :mod:`fetchkit.config`.

**Request bodies** -- :data:`RequestBody`, a discriminated union of
:class:`JSONBody`, :class:`DataBody`, :class:`FormBody` and
:class:`GraphQLBody`, plus the multipart :class:`FormData` container and its
:class:`FormString` / :class:`FormFile` parts. Exactly one variant is ever
populated; the ``kind`` field is the discriminator.

**Built requests** -- :class:`RequestDescriptor`, the immutable ready-to-send
request, and :class:`ConstructionFailure`, the value produced instead of a
descriptor when a request cannot be built.
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from typing import Annotated, Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fetchkit.exceptions import NetworkError


# --- HTTP method ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods a request can be built with."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    CONNECT = "CONNECT"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    PATCH = "PATCH"
    TRACE = "TRACE"

    @classmethod
    def coerce(cls, value: Union[str, HTTPMethod]) -> HTTPMethod:
        """Return *value* as an :class:`HTTPMethod`, accepting any letter case.

        Raises:
            ValueError: If *value* names no known method.
        """
        if isinstance(value, cls):
            return value
        return cls(str(value).upper())


# --- Configuration ---


DEFAULT_TIMEOUT = 60.0
DEFAULT_HEADERS: dict[str, str] = {"Content-Type": "application/json"}


class ClientConfig(BaseModel):
    """Defaults applied to every request at construction time.

    Instances are frozen: changing the process-wide defaults replaces the
    whole object (see :func:`fetchkit.config.update_config`), so a request
    being built always sees one consistent snapshot.

    Example::

        ClientConfig(timeout=10, headers={"Accept": "application/json"})
    """

    model_config = ConfigDict(frozen=True)

    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Request timeout in seconds")
    headers: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_HEADERS),
        description="Headers sent with every request unless overridden at the call site",
    )


# --- Multipart form data ---


class FormString(BaseModel):
    """A plain text form field."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["string"] = "string"
    value: str


class FormFile(BaseModel):
    """A form field whose content is read from a file when the form is encoded.

    The file is not touched when the field is created; a missing or
    unreadable file only fails at encode time.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["file"] = "file"
    path: str

    @field_validator("path", mode="before")
    @classmethod
    def _fspath(cls, value: Any) -> Any:
        if isinstance(value, os.PathLike):
            return os.fspath(value)
        return value

    @property
    def filename(self) -> str:
        """Base name of the file, or the full reference when it has none."""
        return os.path.basename(self.path) or self.path


FormValue = Annotated[Union[FormString, FormFile], Field(discriminator="kind")]


class FormData(BaseModel):
    """Mapping of field name to string or file value for a multipart body.

    Field names are unique: appending an existing name replaces its value.

    Example::

        form = FormData()
        form.append("name", "quan")
        form.append_file("avatar", "/tmp/avatar.png")
    """

    parts: dict[str, FormValue] = Field(default_factory=dict)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Union[str, os.PathLike]]) -> FormData:
        """Build a form from plain values.

        ``str`` values become text fields and path-like values become file
        fields.
        """
        form = cls()
        for key, value in values.items():
            if isinstance(value, os.PathLike):
                form.append_file(key, value)
            else:
                form.append(key, value)
        return form

    def append(self, key: str, value: str) -> None:
        """Set a text field."""
        self.parts[key] = FormString(value=value)

    def append_file(self, key: str, path: Union[str, os.PathLike]) -> None:
        """Set a file field, read lazily when the form is encoded."""
        self.parts[key] = FormFile(path=path)

    def __len__(self) -> int:
        return len(self.parts)


# --- Request bodies ---


class JSONBody(BaseModel):
    """A JSON object body. ``payload=None`` sends no body at all."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["json"] = "json"
    payload: Optional[dict[str, Any]] = None


class DataBody(BaseModel):
    """Raw bytes sent as-is."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["data"] = "data"
    content: bytes


class FormBody(BaseModel):
    """A multipart/form-data body."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["form"] = "form"
    form: FormData


class GraphQLBody(BaseModel):
    """A GraphQL query with optional variables, sent as a JSON envelope."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["graphql"] = "graphql"
    query: str
    variables: Optional[dict[str, Any]] = None


RequestBody = Annotated[
    Union[JSONBody, DataBody, FormBody, GraphQLBody], Field(discriminator="kind")
]


# --- Built requests ---


class RequestDescriptor(BaseModel):
    """A fully resolved request, ready to hand to the transport."""

    model_config = ConfigDict(frozen=True)

    url: str
    method: HTTPMethod
    headers: dict[str, str] = Field(default_factory=dict)
    body: Optional[bytes] = None
    timeout: float = DEFAULT_TIMEOUT


@dataclass(frozen=True)
class ConstructionFailure:
    """Produced instead of a :class:`RequestDescriptor` when building fails.

    Attributes:
        error: Either :class:`~fetchkit.exceptions.InvalidUrl` or
            :class:`~fetchkit.exceptions.InvalidBody`.
        partial: For an unencodable body, the request as built so far
            (URL, method, headers and timeout set, no body). ``None`` when
            the URL itself was invalid.
    """

    error: NetworkError
    partial: Optional[RequestDescriptor] = None
