"""Conversion between in-memory image uploads and data-URI strings.

Encoded images look like ``data:image/png;base64,<payload>`` so they can be
stored in session state and rebuilt byte-for-byte later. Both directions are
pure functions.
"""

from __future__ import annotations

import binascii
import re
from base64 import b64decode, b64encode
from dataclasses import dataclass
from typing import Any, Final

from core.errors import MalformedImageEncoding, UnsupportedImageInput

EncodedImage = str

_DATA_URI_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.+)$",
    re.DOTALL,
)
_DEFAULT_MIME_TYPE: Final[str] = "application/octet-stream"
_EXTENSIONS: Final[dict[str, str]] = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


@dataclass(frozen=True)
class BinaryImage:
    """Binary image handle exposing the same surface as Streamlit uploads."""

    name: str
    mime_type: str
    data: bytes

    @property
    def type(self) -> str:
        return self.mime_type

    @property
    def size(self) -> int:
        return len(self.data)

    def getvalue(self) -> bytes:
        return self.data


def is_binary_handle(value: object) -> bool:
    """Return ``True`` for :class:`BinaryImage` or upload objects with ``getvalue``."""

    if isinstance(value, BinaryImage):
        return True
    return callable(getattr(value, "getvalue", None)) and hasattr(value, "type")


def as_binary_image(value: Any) -> BinaryImage:
    """Return ``value`` as a :class:`BinaryImage`, copying upload payloads."""

    if isinstance(value, BinaryImage):
        return value
    if not is_binary_handle(value):
        raise UnsupportedImageInput(f"Unsupported image input: {type(value).__name__}")
    data = value.getvalue()
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise UnsupportedImageInput("Upload payload is not binary data")
    mime = str(getattr(value, "type", "") or "").strip().lower() or _DEFAULT_MIME_TYPE
    name = str(getattr(value, "name", "") or "image")
    return BinaryImage(name=name, mime_type=mime, data=bytes(data))


def extension_for(mime_type: str | None) -> str:
    """Return the file extension used for synthetic names of ``mime_type``."""

    if not mime_type:
        return "bin"
    return _EXTENSIONS.get(mime_type.lower(), mime_type.rsplit("/", 1)[-1] or "bin")


def encode(handle: Any) -> EncodedImage | None:
    """Encode ``handle`` as a data URI.

    ``None`` yields ``None`` so empty slots need no special casing, and an
    already-encoded string is returned unchanged.

    Raises:
        UnsupportedImageInput: if ``handle`` is neither a binary handle nor a string.
    """

    if handle is None:
        return None
    if isinstance(handle, str):
        return handle
    image = as_binary_image(handle)
    payload = b64encode(image.data).decode("ascii")
    return f"data:{image.mime_type};base64,{payload}"


def mime_type_of(encoded: object) -> str | None:
    """Return the MIME marker of ``encoded`` or ``None`` when absent."""

    if not isinstance(encoded, str):
        return None
    match = _DATA_URI_PATTERN.match(encoded)
    if match is None:
        return None
    return match.group("mime").lower()


def decode(encoded: EncodedImage, name: str = "image.jpg") -> BinaryImage:
    """Rebuild a :class:`BinaryImage` named ``name`` from ``encoded``.

    Raises:
        MalformedImageEncoding: if the type marker is missing or not an image
            type, or the payload is not valid base64.
    """

    if not isinstance(encoded, str):
        raise MalformedImageEncoding("Encoded image must be a string")
    match = _DATA_URI_PATTERN.match(encoded.strip())
    if match is None:
        raise MalformedImageEncoding("Encoded image lacks a data URI type marker")
    mime = match.group("mime").lower()
    if not mime.startswith("image/"):
        raise MalformedImageEncoding(f"Encoded data is not an image: {mime}")
    try:
        data = b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedImageEncoding("Encoded image payload is not valid base64") from exc
    return BinaryImage(name=name, mime_type=mime, data=data)


__all__ = [
    "BinaryImage",
    "EncodedImage",
    "as_binary_image",
    "decode",
    "encode",
    "extension_for",
    "is_binary_handle",
    "mime_type_of",
]
