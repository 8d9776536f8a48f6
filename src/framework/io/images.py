from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass


logger = logging.getLogger(__name__)

_DATA_URL_RE = re.compile(r"^data:(image/[\w.+-]+);base64,(.*)$", flags=re.IGNORECASE | re.DOTALL)


class ImageDecodeError(ValueError):
    pass


@dataclass(frozen=True)
class InlineImage:
    mime_type: str
    data: bytes


def decode_image_data_url(value: str) -> InlineImage:
    """Decode a ``data:image/...;base64,`` URL or bare base64 into bytes.

    Bare base64 is assumed to be JPEG. Resizing and transcoding happen
    upstream; the bytes are passed to the model as-is.
    """
    text = (value or "").strip()
    mime_type = "image/jpeg"
    payload = text
    match = _DATA_URL_RE.match(text)
    if match:
        mime_type = match.group(1).lower()
        payload = match.group(2)
    elif text.startswith("data:"):
        raise ImageDecodeError("Image data URL is not base64 encoded.")

    payload = re.sub(r"\s", "", payload)
    if not payload:
        raise ImageDecodeError("Image data is empty after stripping.")
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeError("Image data is not valid base64.") from exc
    if not data:
        raise ImageDecodeError("Image data is empty after decoding.")

    logger.debug("Decoded inline image: %s, %d bytes", mime_type, len(data))
    return InlineImage(mime_type=mime_type, data=data)
