"""Decoding of submitted images and naming of their storage keys."""

import base64
import binascii
import hashlib
import re
from dataclasses import dataclass

DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>[^;,]+);base64,(?P<data>.+)$", re.DOTALL)

EXTENSION_BY_MIME = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/bmp": ".bmp",
    "image/tiff": ".tiff",
    "image/webp": ".webp",
    "image/heic": ".heic",
    "image/heif": ".heif",
}


class InvalidImagePayload(ValueError):
    """The submitted string is not a base64 data URL."""


@dataclass(frozen=True)
class ImagePayload:
    """A submitted image: the original string plus its decoded bytes."""

    encoded: str
    data: bytes
    mime_type: str

    @property
    def extension(self) -> str:
        return EXTENSION_BY_MIME.get(self.mime_type.lower(), ".bin")

    @property
    def content_hash(self) -> str:
        return hashlib.sha256(self.data).hexdigest()[:16]


def decode_image(encoded: str) -> ImagePayload:
    match = DATA_URL_PATTERN.match(encoded.strip())
    if not match:
        raise InvalidImagePayload("Invalid base64 string")

    mime_type = match.group("mime").strip()
    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImagePayload(f"Invalid base64 structure: {e}") from e

    if not data:
        raise InvalidImagePayload("Empty image data")
    return ImagePayload(encoded=encoded, data=data, mime_type=mime_type)


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", value.lower()).strip("_")
    return slug or "unnamed"
