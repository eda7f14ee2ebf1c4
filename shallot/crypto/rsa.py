"""RSA-OAEP key wrapping.

Relays hold a long-lived RSA key pair. Senders use the published half to wrap
the small per-layer symmetric key; bulk payloads never go through RSA.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .encoding import b64d, b64e
from .errors import DecryptionError, InvalidKeyError

DEFAULT_KEY_SIZE = 2048
DEFAULT_PUBLIC_EXPONENT = 65537


def _oaep() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


def wrapped_key_length(key_size: int = DEFAULT_KEY_SIZE) -> int:
    """Length in characters of a base64 RSA ciphertext for ``key_size`` bits.

    RSA output is always exactly the modulus size, so this is fixed for a given
    key size: 344 characters for RSA-2048.
    """

    if key_size <= 0 or key_size % 8:
        raise ValueError("key_size must be a positive multiple of 8")
    return 4 * math.ceil((key_size // 8) / 3)


@dataclass(frozen=True, slots=True)
class RsaKeyPair:
    """An RSA key pair owned by a single relay."""

    private: rsa.RSAPrivateKey
    public: rsa.RSAPublicKey

    @property
    def key_size(self) -> int:
        return self.private.key_size

    def export_public(self) -> str:
        """Return the public half in the directory's text format."""

        return export_public_key(self.public)

    def export_private(self) -> str:
        return export_private_key(self.private)


def rsa_generate_keypair(
    key_size: int = DEFAULT_KEY_SIZE, public_exponent: int = DEFAULT_PUBLIC_EXPONENT
) -> RsaKeyPair:
    """Generate an RSA key pair."""

    private = rsa.generate_private_key(public_exponent=public_exponent, key_size=key_size)
    return RsaKeyPair(private=private, public=private.public_key())


def export_public_key(key: rsa.RSAPublicKey) -> str:
    """Serialize as base64 DER SubjectPublicKeyInfo."""

    der = key.public_bytes(
        serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
    )
    return b64e(der)


def export_private_key(key: rsa.RSAPrivateKey) -> str:
    """Serialize as base64 DER PKCS#8 (unencrypted)."""

    der = key.private_bytes(
        serialization.Encoding.DER,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    return b64e(der)


def import_public_key(text: str) -> rsa.RSAPublicKey:
    """Parse a public key produced by :func:`export_public_key`."""

    try:
        key = serialization.load_der_public_key(b64d(text))
    except (TypeError, ValueError) as e:
        raise InvalidKeyError("invalid RSA public key") from e
    if not isinstance(key, rsa.RSAPublicKey):
        raise InvalidKeyError("public key is not an RSA key")
    return key


def import_private_key(text: str) -> rsa.RSAPrivateKey:
    """Parse a private key produced by :func:`export_private_key`."""

    try:
        key = serialization.load_der_private_key(b64d(text), password=None)
    except (TypeError, ValueError) as e:
        raise InvalidKeyError("invalid RSA private key") from e
    if not isinstance(key, rsa.RSAPrivateKey):
        raise InvalidKeyError("private key is not an RSA key")
    return key


def rsa_wrap(data: bytes, public_key: rsa.RSAPublicKey) -> str:
    """Encrypt ``data`` with RSA-OAEP(SHA-256) and return base64 text.

    The result is always :func:`wrapped_key_length` characters long.
    """

    return b64e(public_key.encrypt(data, _oaep()))


def rsa_unwrap(wrapped: str, private_key: rsa.RSAPrivateKey) -> bytes:
    """Decrypt a value produced by :func:`rsa_wrap`.

    Raises:
        DecryptionError: wrong key, altered or truncated ciphertext.
    """

    if len(wrapped) != wrapped_key_length(private_key.key_size):
        raise DecryptionError("wrapped key has the wrong length")
    try:
        ciphertext = b64d(wrapped)
    except ValueError as e:
        raise DecryptionError("wrapped key is not valid base64") from e
    try:
        return private_key.decrypt(ciphertext, _oaep())
    except ValueError as e:
        raise DecryptionError("key unwrap failed") from e
