"""Base64 text helpers shared by the key and ciphertext wire formats."""

from __future__ import annotations

import base64
import binascii


def b64e(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64d(text: str) -> bytes:
    """Decode canonical standard base64.

    Raises :class:`ValueError` for characters outside the alphabet, bad padding,
    and for encodings whose unused trailing bits are set (the decoded bytes
    would not re-encode to ``text``).
    """

    try:
        raw = base64.b64decode(text.encode("ascii"), validate=True)
    except (UnicodeEncodeError, binascii.Error) as e:
        raise ValueError("invalid base64 text") from e
    if b64e(raw) != text:
        raise ValueError("non-canonical base64 text")
    return raw
