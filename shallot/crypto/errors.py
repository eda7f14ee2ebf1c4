"""Failures raised while wrapping or peeling onion layers.

Errors from :pypi:`cryptography` are re-raised as one of these so callers only
deal with key problems and layers that cannot be opened.
"""

from __future__ import annotations


class CryptoError(Exception):
    """Base error for the key provider."""


class InvalidKeyError(CryptoError):
    """A published or exported key could not be parsed or has the wrong size."""


class DecryptionError(CryptoError):
    """A layer was not addressed to this key, or was truncated or altered."""
