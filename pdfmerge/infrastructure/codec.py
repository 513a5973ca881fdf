from __future__ import annotations

import base64
import binascii

from pdfmerge.domain.errors import MalformedEncodingError


def encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode(text: str) -> bytes:
    try:
        raw = text.encode("ascii")
    except UnicodeEncodeError as exc:
        raise MalformedEncodingError(
            f"Non-ASCII character at position {exc.start} in encoded text"
        ) from exc
    if len(raw) % 4:
        raise MalformedEncodingError(
            f"Encoded text length {len(raw)} is not a multiple of 4"
        )
    try:
        return base64.b64decode(raw, validate=True)
    except binascii.Error as exc:
        raise MalformedEncodingError(f"Invalid base64 text: {exc}") from exc
