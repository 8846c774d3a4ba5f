# src/api/codec.py — v1
"""Base64 transport encoding for images."""

from __future__ import annotations

import base64
import binascii
import io
import re

from PIL import Image

from vismatch.cache.hash_cache import IMAGE_DECODE_ERRORS
from vismatch.core.errors import ImageDecodeError

_DATA_URL_PREFIX = re.compile(r"^data:[\w/+.-]*;base64,", re.IGNORECASE)


def base64_to_image(data: str) -> Image.Image:
    """Decode a base64 string (optionally a data: URL) into a loaded image.

    Raises:
        ImageDecodeError: If the string is not base64 or not an image.
    """
    payload = _DATA_URL_PREFIX.sub("", data.strip(), count=1)
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"cannot create image from b64: {e}") from e
    if not raw:
        raise ImageDecodeError("cannot create image from b64: empty payload")

    try:
        with Image.open(io.BytesIO(raw)) as img:
            img.load()
            return img.copy()
    except IMAGE_DECODE_ERRORS as e:
        raise ImageDecodeError(f"cannot create image from b64: {e}") from e


def bytes_to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")
