"""Unit tests for shallot.crypto module."""

import pytest

from shallot.crypto import (
    DecryptionError,
    InvalidKeyError,
    export_private_key,
    export_symmetric_key,
    import_private_key,
    import_public_key,
    import_symmetric_key,
    new_symmetric_key,
    open_sealed,
    rsa_unwrap,
    rsa_wrap,
    seal,
    wrapped_key_length,
)
from shallot.crypto.encoding import b64d, b64e


class TestKeyExport:
    """Test RSA key serialization."""

    def test_public_key_roundtrip(self, keypairs):
        kp = keypairs[0]
        text = kp.export_public()

        imported = import_public_key(text)

        assert imported.public_numbers() == kp.public.public_numbers()

    def test_imported_public_key_wraps_for_original_private_key(self, keypairs):
        kp = keypairs[0]
        key = new_symmetric_key()

        wrapped = rsa_wrap(key, import_public_key(kp.export_public()))

        assert rsa_unwrap(wrapped, kp.private) == key

    def test_private_key_roundtrip(self, keypairs):
        kp = keypairs[1]
        imported = import_private_key(export_private_key(kp.private))

        wrapped = rsa_wrap(b"k" * 32, kp.public)
        assert rsa_unwrap(wrapped, imported) == b"k" * 32

    def test_invalid_public_key(self):
        with pytest.raises(InvalidKeyError):
            import_public_key("not a key")

    def test_public_key_text_is_not_private_key(self, keypairs):
        with pytest.raises(InvalidKeyError):
            import_private_key(keypairs[0].export_public())


class TestWrap:
    """Test RSA-OAEP key wrapping."""

    def test_wrapped_key_length_is_fixed(self, keypairs):
        lengths = {len(rsa_wrap(new_symmetric_key(), keypairs[0].public)) for _ in range(5)}
        assert lengths == {344}
        assert wrapped_key_length(2048) == 344
        assert wrapped_key_length(4096) == 684

    def test_wrapped_key_length_rejects_odd_sizes(self):
        with pytest.raises(ValueError):
            wrapped_key_length(2047)

    def test_unwrap_with_wrong_key(self, keypairs):
        wrapped = rsa_wrap(new_symmetric_key(), keypairs[0].public)
        with pytest.raises(DecryptionError):
            rsa_unwrap(wrapped, keypairs[1].private)

    def test_unwrap_truncated(self, keypairs):
        wrapped = rsa_wrap(new_symmetric_key(), keypairs[0].public)
        with pytest.raises(DecryptionError):
            rsa_unwrap(wrapped[:-4], keypairs[0].private)

    def test_unwrap_rejects_non_base64(self, keypairs):
        wrapped = rsa_wrap(new_symmetric_key(), keypairs[0].public)
        with pytest.raises(DecryptionError):
            rsa_unwrap("!" + wrapped[1:], keypairs[0].private)


class TestSymmetric:
    """Test ChaCha20-Poly1305 sealing."""

    def test_new_keys_are_fresh(self):
        keys = {new_symmetric_key() for _ in range(16)}
        assert len(keys) == 16
        assert all(len(k) == 32 for k in keys)

    def test_seal_open_roundtrip(self):
        key = new_symmetric_key()
        sealed = seal(key, "0000009050hello".encode())
        assert open_sealed(key, sealed) == b"0000009050hello"

    def test_seal_uses_fresh_nonce(self):
        key = new_symmetric_key()
        first, second = b64d(seal(key, b"same")), b64d(seal(key, b"same"))
        # nonce || ciphertext || 16-byte tag
        assert len(first) == 12 + len(b"same") + 16
        assert first[:12] != second[:12]

    def test_open_with_wrong_key(self):
        sealed = seal(new_symmetric_key(), b"payload")
        with pytest.raises(DecryptionError):
            open_sealed(new_symmetric_key(), sealed)

    def test_open_tampered(self):
        key = new_symmetric_key()
        sealed = seal(key, b"payload that is long enough")
        i = len(sealed) // 2
        tampered = sealed[:i] + ("A" if sealed[i] != "A" else "B") + sealed[i + 1 :]
        with pytest.raises(DecryptionError):
            open_sealed(key, tampered)

    def test_open_too_short(self):
        with pytest.raises(DecryptionError):
            open_sealed(new_symmetric_key(), "AAAA")

    def test_seal_rejects_bad_key_length(self):
        with pytest.raises(ValueError):
            seal(b"short", b"data")

    def test_symmetric_key_export_roundtrip(self):
        key = new_symmetric_key()
        assert import_symmetric_key(export_symmetric_key(key)) == key

    def test_symmetric_key_import_rejects_wrong_length(self):
        with pytest.raises(InvalidKeyError):
            import_symmetric_key(b64e(b"x" * 16))


class TestBase64:
    def test_canonical_roundtrip(self):
        assert b64d(b64e(b"\x00\x01\xff")) == b"\x00\x01\xff"

    def test_rejects_non_canonical_trailing_bits(self):
        # "AB==" decodes to the same byte as "AA==" but is not canonical.
        with pytest.raises(ValueError):
            b64d("AB==")

    def test_rejects_non_ascii(self):
        with pytest.raises(ValueError):
            b64d("é")
