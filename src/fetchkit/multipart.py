"""multipart/form-data encoding for :class:`~fetchkit.models.FormData`."""

from __future__ import annotations

import mimetypes
import uuid
from typing import NamedTuple

from fetchkit.models import FormData, FormFile, FormString

CRLF = b"\r\n"
DEFAULT_FILE_CONTENT_TYPE = "application/octet-stream"


class EncodedForm(NamedTuple):
    content: bytes
    boundary: str

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"


def make_boundary() -> str:
    return f"Boundary-{str(uuid.uuid4()).upper()}"


def encode_form(form: FormData) -> EncodedForm:
    """Encode *form* as a multipart/form-data payload.

    A fresh boundary is drawn for every call. Parts are written in the
    form's iteration order, each followed by CRLF, and the payload ends with
    the closing ``--<boundary>--`` marker. File parts are read at this point
    and written byte for byte.

    Raises:
        OSError: If a file part cannot be read.
    """
    boundary = make_boundary()
    delimiter = f"--{boundary}".encode()
    chunks: list[bytes] = []

    for key, value in form.parts.items():
        chunks.append(delimiter + CRLF)
        disposition = f'Content-Disposition:form-data; name="{key}"'
        if isinstance(value, FormString):
            chunks.append(disposition.encode() + CRLF + CRLF)
            chunks.append(value.value.encode() + CRLF)
        elif isinstance(value, FormFile):
            with open(value.path, "rb") as f:
                content = f.read()
            content_type = mimetypes.guess_type(value.filename)[0] or DEFAULT_FILE_CONTENT_TYPE
            chunks.append(f'{disposition}; filename="{value.filename}"'.encode() + CRLF)
            chunks.append(f"Content-Type: {content_type}".encode() + CRLF + CRLF)
            chunks.append(content + CRLF)

    chunks.append(delimiter + b"--" + CRLF)
    return EncodedForm(b"".join(chunks), boundary)
