"""Unit tests for P-256 derivation and signing helpers."""

import pytest

from shieldpool.crypto.constants import P256_HALF_ORDER, P256_ORDER
from shieldpool.crypto.p256 import (
    derive_p256_keypair_from_seed,
    hash_to_scalar,
    is_uncompressed_point,
    sha256,
    sign_digest,
    sign_payload,
    verify_payload,
)


class TestDeriveKeypair:
    """Test derive_p256_keypair_from_seed."""

    def test_same_seed_same_keypair(self) -> None:
        seed = sha256(b"seed")
        assert (
            derive_p256_keypair_from_seed(seed).public_key
            == derive_p256_keypair_from_seed(seed).public_key
        )

    def test_different_seed_different_keypair(self) -> None:
        a = derive_p256_keypair_from_seed(sha256(b"seed-a"))
        b = derive_p256_keypair_from_seed(sha256(b"seed-b"))
        assert a.public_key != b.public_key

    def test_public_key_is_uncompressed_point(self) -> None:
        keypair = derive_p256_keypair_from_seed(sha256(b"seed"))
        assert len(keypair.public_key) == 65
        assert keypair.public_key[0] == 0x04
        assert is_uncompressed_point(keypair.public_key)


class TestHashToScalar:
    def test_scalar_in_range(self) -> None:
        for material in (b"\x00" * 48, b"\xff" * 48, sha256(b"x") + b"\x01" * 16):
            scalar = hash_to_scalar(material)
            assert 1 <= scalar <= P256_ORDER - 1

    def test_zero_material_maps_to_one(self) -> None:
        assert hash_to_scalar(b"\x00" * 48) == 1


class TestSignatures:
    """Test low-S signing and verification."""

    @pytest.fixture
    def keypair(self):
        return derive_p256_keypair_from_seed(sha256(b"signer"))

    def test_signature_is_64_bytes_low_s(self, keypair) -> None:
        for i in range(20):
            sig = sign_payload(keypair.private_key, f"payload-{i}".encode())
            assert len(sig) == 64
            assert int.from_bytes(sig[32:], "big") <= P256_HALF_ORDER

    def test_signature_verifies(self, keypair) -> None:
        sig = sign_payload(keypair.private_key, b"payload")
        assert verify_payload(keypair.public_key, b"payload", sig)

    def test_tampered_payload_does_not_verify(self, keypair) -> None:
        sig = sign_payload(keypair.private_key, b"payload")
        assert not verify_payload(keypair.public_key, b"payload!", sig)

    def test_digest_signature_verifies_against_preimage(self, keypair) -> None:
        sig = sign_digest(keypair.private_key, sha256(b"payload"))
        assert verify_payload(keypair.public_key, b"payload", sig)

    def test_digest_must_be_32_bytes(self, keypair) -> None:
        with pytest.raises(ValueError, match="32 bytes"):
            sign_digest(keypair.private_key, b"short")

    def test_wrong_length_signature_rejected(self, keypair) -> None:
        assert not verify_payload(keypair.public_key, b"payload", b"\x01" * 63)
