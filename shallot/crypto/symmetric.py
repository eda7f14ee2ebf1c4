"""ChaCha20-Poly1305 sealing of layer bodies."""

from __future__ import annotations

import secrets
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305

from .encoding import b64d, b64e
from .errors import DecryptionError, InvalidKeyError

KEY_LENGTH = 32
NONCE_LENGTH = 12


@dataclass(frozen=True, slots=True)
class AeadCiphertext:
    """A serialized ChaCha20-Poly1305 ciphertext."""

    nonce: bytes
    data: bytes

    def to_bytes(self) -> bytes:
        """Serialize as ``nonce || data``."""

        return self.nonce + self.data

    @classmethod
    def from_bytes(cls, blob: bytes) -> "AeadCiphertext":
        """Parse a serialized ciphertext produced by :meth:`to_bytes`."""

        if len(blob) < NONCE_LENGTH:
            raise ValueError("ciphertext too short")
        return cls(nonce=blob[:NONCE_LENGTH], data=blob[NONCE_LENGTH:])


def new_symmetric_key() -> bytes:
    """Return a fresh random 32-byte key. Callers must not reuse it."""

    return secrets.token_bytes(KEY_LENGTH)


def export_symmetric_key(key: bytes) -> str:
    return b64e(key)


def import_symmetric_key(text: str) -> bytes:
    try:
        key = b64d(text)
    except ValueError as e:
        raise InvalidKeyError("invalid symmetric key encoding") from e
    if len(key) != KEY_LENGTH:
        raise InvalidKeyError("symmetric key must be 32 bytes")
    return key


def seal(key: bytes, plaintext: bytes) -> str:
    """Encrypt ``plaintext`` under ``key`` with a random nonce.

    Returns base64 text of ``nonce || ciphertext || tag``.
    """

    if len(key) != KEY_LENGTH:
        raise ValueError("ChaCha20-Poly1305 key must be 32 bytes")

    nonce = secrets.token_bytes(NONCE_LENGTH)
    ct = ChaCha20Poly1305(key).encrypt(nonce, plaintext, None)
    return b64e(AeadCiphertext(nonce=nonce, data=ct).to_bytes())


def open_sealed(key: bytes, sealed: str) -> bytes:
    """Decrypt and authenticate a body produced by :func:`seal`.

    Raises:
        DecryptionError: wrong key, or the sealed text was altered or truncated.
    """

    if len(key) != KEY_LENGTH:
        raise DecryptionError("unwrapped key has the wrong length")
    try:
        ciphertext = AeadCiphertext.from_bytes(b64d(sealed))
    except ValueError as e:
        raise DecryptionError("malformed sealed body") from e

    try:
        return ChaCha20Poly1305(key).decrypt(ciphertext.nonce, ciphertext.data, None)
    except InvalidTag as e:
        raise DecryptionError("ciphertext authentication failed") from e
