"""Onion layer wire format.

An envelope is one text blob::

    wrapped_key (exactly L chars) || sealed_body (any length)

``wrapped_key`` is the RSA-OAEP wrapped symmetric key in base64, so its length
is fixed by the RSA key size and there is no length header. ``sealed_body``
decrypts to::

    next_hop (10 decimal digits, zero padded) || payload

where ``payload`` is either the next envelope or the final plaintext.
"""

from __future__ import annotations

from dataclasses import dataclass

from cryptography.hazmat.primitives.asymmetric import rsa

from shallot.config import ADDRESS_WIDTH, WRAPPED_KEY_LENGTH
from shallot.crypto import new_symmetric_key, open_sealed, rsa_unwrap, rsa_wrap, seal
from shallot.errors import AddressError, MalformedEnvelopeError


def encode_address(address: int, *, width: int = ADDRESS_WIDTH) -> str:
    """Render ``address`` as a fixed-width, zero-padded decimal string."""

    if address < 0:
        raise AddressError("address must be non-negative")
    text = str(address).zfill(width)
    if len(text) != width:
        raise AddressError(f"address {address} does not fit in {width} digits")
    return text


def decode_address(text: str) -> int:
    if not text or not (text.isascii() and text.isdigit()):
        raise MalformedEnvelopeError("next-hop address is not decimal")
    return int(text)


def join_body(address: int, payload: str, *, width: int = ADDRESS_WIDTH) -> str:
    return encode_address(address, width=width) + payload


def split_body(body: str, *, width: int = ADDRESS_WIDTH) -> tuple[int, str]:
    """Split a decrypted body into ``(next_hop, payload)``."""

    if len(body) < width:
        raise MalformedEnvelopeError("decrypted body shorter than the address field")
    return decode_address(body[:width]), body[width:]


@dataclass(frozen=True)
class Envelope:
    wrapped_key: str
    sealed_body: str

    def encode(self) -> str:
        return self.wrapped_key + self.sealed_body

    @classmethod
    def decode(cls, blob: str, *, wrapped_key_length: int = WRAPPED_KEY_LENGTH) -> "Envelope":
        """Split ``blob`` at the fixed offset. Contents are not validated here."""

        if len(blob) < wrapped_key_length:
            raise MalformedEnvelopeError(
                f"envelope shorter than the {wrapped_key_length}-char wrapped key"
            )
        return cls(blob[:wrapped_key_length], blob[wrapped_key_length:])


def encode(wrapped_key: str, sealed_body: str, *, wrapped_key_length: int = WRAPPED_KEY_LENGTH) -> str:
    if len(wrapped_key) != wrapped_key_length:
        raise ValueError(f"wrapped key must be exactly {wrapped_key_length} chars")
    return Envelope(wrapped_key, sealed_body).encode()


def decode(blob: str, *, wrapped_key_length: int = WRAPPED_KEY_LENGTH) -> tuple[str, str]:
    env = Envelope.decode(blob, wrapped_key_length=wrapped_key_length)
    return env.wrapped_key, env.sealed_body


@dataclass(frozen=True)
class PeeledLayer:
    """Result of removing one layer: where to send ``payload`` next."""

    destination: int
    payload: str
    body: str


def wrap_layer(
    public_key: rsa.RSAPublicKey,
    next_hop: int,
    payload: str,
    *,
    address_width: int = ADDRESS_WIDTH,
) -> str:
    """Build one envelope readable only by the holder of ``public_key``.

    A fresh symmetric key is generated for every call.
    """

    key = new_symmetric_key()
    body = join_body(next_hop, payload, width=address_width)
    sealed_body = seal(key, body.encode("utf-8"))
    wrapped_key = rsa_wrap(key, public_key)
    return Envelope(wrapped_key, sealed_body).encode()


def peel_layer(
    blob: str,
    private_key: rsa.RSAPrivateKey,
    *,
    wrapped_key_length: int = WRAPPED_KEY_LENGTH,
    address_width: int = ADDRESS_WIDTH,
) -> PeeledLayer:
    """Remove the outer layer of ``blob`` with a relay's private key.

    Raises:
        DecryptionError: the envelope is malformed, not addressed to this key,
            or was altered in transit.
    """

    wrapped_key, sealed_body = decode(blob, wrapped_key_length=wrapped_key_length)
    key = rsa_unwrap(wrapped_key, private_key)
    plaintext = open_sealed(key, sealed_body)
    try:
        body = plaintext.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedEnvelopeError("decrypted body is not UTF-8 text") from e
    destination, payload = split_body(body, width=address_width)
    return PeeledLayer(destination=destination, payload=payload, body=body)
