"""Conversion of image resources into the inline form the service expects.

The service takes an image as a ``(mime type, base64 payload)`` pair. The
encoder reads a resource once, renders it as a self-describing data URI and
splits that URI back into its two halves, so the same parser also validates
data URIs handed in from elsewhere (for example an edited image fed back in
for the next edit).

Usage
-----
::

    resource = ImageResource.from_path("photo.jpg")
    encoded = await encode_image(resource)
    encoded.mime_type   # "image/jpeg"
    encoded.data        # base64 text
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import mimetypes
import re
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from retoucher.core.errors import EncodingError

logger = logging.getLogger(__name__)

_MIME_PATTERN = re.compile(r"^data:([^;,]+);")


@dataclass(frozen=True)
class ImageResource:
    """An image supplied by the caller.

    Exactly one of ``data`` or ``path`` is set. Path-backed resources are read
    lazily, when the image is encoded.

    Attributes:
        data: Raw image bytes.
        path: File to read the image from.
        mime_type: Declared mime type; sniffed from the bytes when omitted.
        name: Original filename, used as a last resort for the mime type.
    """

    data: bytes | None = None
    path: Path | None = None
    mime_type: str | None = None
    name: str | None = None

    @classmethod
    def from_bytes(
        cls, data: bytes, mime_type: str | None = None, name: str | None = None
    ) -> ImageResource:
        return cls(data=data, mime_type=mime_type, name=name)

    @classmethod
    def from_path(cls, path: str | Path, mime_type: str | None = None) -> ImageResource:
        path = Path(path)
        return cls(path=path, mime_type=mime_type, name=path.name)

    @classmethod
    def from_data_uri(cls, uri: str) -> ImageResource:
        """Wrap a data URI (such as a previous edit's result) as a resource."""
        encoded = parse_data_uri(uri)
        return cls(data=encoded.to_bytes(), mime_type=encoded.mime_type)

    async def read(self) -> bytes:
        """Read the full image into memory.

        Raises:
            EncodingError: If the resource has no content or the file cannot be read.
        """
        if self.data is not None:
            return self.data
        if self.path is None:
            raise EncodingError("Image resource has neither data nor a path to read from.")
        try:
            return await asyncio.to_thread(self.path.read_bytes)
        except OSError as e:
            raise EncodingError(f"Could not read image file {self.path}: {e}") from e


@dataclass(frozen=True)
class EncodedImage:
    """Inline image ready for transport: mime type plus base64 payload."""

    mime_type: str
    data: str

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)


def build_data_uri(mime_type: str, content: bytes) -> str:
    """Render bytes as a ``data:<mime>;base64,<payload>`` URI."""
    payload = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


def parse_data_uri(uri: str) -> EncodedImage:
    """Split a data URI into its mime type and base64 payload.

    Raises:
        EncodingError: If the comma separator is missing, the mime segment
            cannot be parsed, or the payload is not valid base64.
    """
    header, separator, payload = uri.partition(",")
    if not separator:
        raise EncodingError("Invalid data URL: missing ',' separator.")

    match = _MIME_PATTERN.match(header)
    if not match:
        raise EncodingError("Could not parse MIME type from data URL.")

    if not payload:
        raise EncodingError("Invalid data URL: empty payload.")
    try:
        base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncodingError(f"Invalid data URL: payload is not base64 ({e}).") from e

    return EncodedImage(mime_type=match.group(1).strip(), data=payload)


def sniff_mime_type(content: bytes) -> str | None:
    """Identify an image's mime type from its header bytes.

    Pillow only parses the header here; no pixel data is decoded.
    """
    try:
        with Image.open(BytesIO(content)) as image:
            image_format = image.format
    except (UnidentifiedImageError, OSError):
        return None
    if image_format is None:
        return None
    return Image.MIME.get(image_format)


def _resolve_mime_type(resource: ImageResource, content: bytes) -> str:
    if resource.mime_type:
        return resource.mime_type

    sniffed = sniff_mime_type(content)
    if sniffed:
        return sniffed

    if resource.name:
        guessed, _ = mimetypes.guess_type(resource.name)
        if guessed and guessed.startswith("image/"):
            return guessed

    raise EncodingError("Could not determine the image's MIME type.")


async def encode_image(resource: ImageResource) -> EncodedImage:
    """Read an image resource and encode it for transport.

    Args:
        resource: The image to encode. It is read exactly once.

    Returns:
        The mime type and base64 payload of the image.

    Raises:
        EncodingError: If the resource cannot be read, is empty, or does not
            produce a well-formed data URI.
    """
    content = await resource.read()
    if not content:
        raise EncodingError("Image resource is empty.")

    mime_type = _resolve_mime_type(resource, content)
    encoded = parse_data_uri(build_data_uri(mime_type, content))
    logger.debug(f"Encoded image ({encoded.mime_type}, {len(content)} bytes)")
    return encoded
