"""Key provider for the onion layers.

Thin wrappers around :pypi:`cryptography`: RSA-OAEP wraps the per-layer key,
ChaCha20-Poly1305 seals the layer body.
"""

from __future__ import annotations

from .errors import CryptoError, DecryptionError, InvalidKeyError
from .rsa import (
    RsaKeyPair,
    export_private_key,
    export_public_key,
    import_private_key,
    import_public_key,
    rsa_generate_keypair,
    rsa_unwrap,
    rsa_wrap,
    wrapped_key_length,
)
from .symmetric import (
    AeadCiphertext,
    export_symmetric_key,
    import_symmetric_key,
    new_symmetric_key,
    open_sealed,
    seal,
)

__all__ = [
    "AeadCiphertext",
    "CryptoError",
    "DecryptionError",
    "InvalidKeyError",
    "RsaKeyPair",
    "export_private_key",
    "export_public_key",
    "export_symmetric_key",
    "import_private_key",
    "import_public_key",
    "import_symmetric_key",
    "new_symmetric_key",
    "open_sealed",
    "rsa_generate_keypair",
    "rsa_unwrap",
    "rsa_wrap",
    "seal",
    "wrapped_key_length",
]
