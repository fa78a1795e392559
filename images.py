# images.py
from __future__ import annotations

import base64
import binascii
import io
import re
from typing import Optional

from PIL import Image, UnidentifiedImageError
from svglib.svglib import svg2rlg

from config import Config
from invoice import EmbeddedImage


class ImageRejected(ValueError):
    """Upload refused before it reaches the invoice. The message is user-facing."""


# Pillow format name -> canonical MIME type
_PIL_FORMATS = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
}

ACCEPTED_MIME_TYPES = {
    "image/png": "image/png",
    "image/jpeg": "image/jpeg",
    "image/jpg": "image/jpeg",
    "image/webp": "image/webp",
    "image/svg+xml": "image/svg+xml",
}

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


def _sniff_svg(data: bytes) -> Optional[str]:
    if b"<svg" not in data[:4096].lower():
        return None
    try:
        drawing = svg2rlg(io.BytesIO(data))
    except Exception:
        return None
    if drawing is None or drawing.width <= 0 or drawing.height <= 0:
        return None
    return "image/svg+xml"


def _sniff_mime(data: bytes) -> Optional[str]:
    """Returns the MIME type detected from the bytes, or None if they are not an accepted image."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = (img.format or "").upper()
            img.verify()
        # verify() skips pixel data; a full decode catches truncated files
        with Image.open(io.BytesIO(data)) as img:
            img.load()
    except UnidentifiedImageError:
        return _sniff_svg(data)
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError):
        return None
    return _PIL_FORMATS.get(fmt)


def _size_label(limit: int) -> str:
    mb = 1024 * 1024
    if limit >= mb and limit % mb == 0:
        return f"{limit // mb}MB"
    return f"{limit} bytes"


def validate_image_upload(data: bytes, mime_type: str, max_bytes: Optional[int] = None) -> EmbeddedImage:
    limit = Config.MAX_IMAGE_BYTES if max_bytes is None else max_bytes
    if data is None or len(data) == 0:
        raise ImageRejected("Please choose an image file.")
    if len(data) > limit:
        raise ImageRejected(f"Please choose a file smaller than {_size_label(limit)}")

    declared = ACCEPTED_MIME_TYPES.get((mime_type or "").strip().lower())
    if not declared:
        raise ImageRejected("Please choose a PNG, JPG, SVG, or WebP image file")

    detected = _sniff_mime(data)
    if detected is None:
        raise ImageRejected("Error reading file. Please try a different image.")

    # Trust the bytes over the browser's label.
    return EmbeddedImage(mime_type=detected, data=bytes(data))


def parse_data_url(text) -> Optional[EmbeddedImage]:
    """
    Tolerant decoder for persisted ``data:<mime>;base64,...`` strings.
    Anything that doesn't decode to an accepted image yields None.
    """
    if not isinstance(text, str):
        return None
    m = _DATA_URL_RE.match(text.strip())
    if not m or m.group("mime").lower() not in ACCEPTED_MIME_TYPES:
        return None
    try:
        data = base64.b64decode(m.group("data"), validate=True)
    except (binascii.Error, ValueError):
        return None
    if len(data) > Config.MAX_IMAGE_BYTES:
        return None

    detected = _sniff_mime(data)
    if detected is None:
        return None
    return EmbeddedImage(mime_type=detected, data=data)
