"""P-256 helpers: seed-based key derivation and low-S ECDSA signatures."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    Prehashed,
    decode_dss_signature,
    encode_dss_signature,
)
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from .constants import (
    HKDF_INFO,
    HKDF_OUTPUT_BYTES,
    P256_HALF_ORDER,
    P256_ORDER,
    P256_SCALAR_BYTES,
    P256_SIGNATURE_BYTES,
    P256_UNCOMPRESSED_POINT_BYTES,
    P256_UNCOMPRESSED_PREFIX,
    SHA256_DIGEST_BYTES,
)


@dataclass(frozen=True)
class P256KeyPair:
    private_key: ec.EllipticCurvePrivateKey
    public_key: bytes


def sha256(data: bytes) -> bytes:
    """Hash bytes with SHA-256."""
    return hashlib.sha256(data).digest()


def hash_to_scalar(material: bytes) -> int:
    """Reduce uniform bytes to a scalar in [1, n - 1]."""
    return int.from_bytes(material, "big") % (P256_ORDER - 1) + 1


def encode_public_key(public_key: ec.EllipticCurvePublicKey) -> bytes:
    """Encode a public key as a 65-byte uncompressed SEC1 point."""
    return public_key.public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )


def decode_public_key(point: bytes) -> ec.EllipticCurvePublicKey:
    """Load a public key from a 65-byte uncompressed SEC1 point."""
    return ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), point)


def is_uncompressed_point(data: bytes) -> bool:
    return (
        len(data) == P256_UNCOMPRESSED_POINT_BYTES
        and data[0] == P256_UNCOMPRESSED_PREFIX
    )


def derive_p256_keypair_from_seed(seed: bytes) -> P256KeyPair:
    """Derive a P-256 key pair from a 32-byte seed.

    The seed is expanded with HKDF-SHA256 (no salt, ``info=b"application"``)
    to 48 bytes, then reduced into the scalar field. The same seed always
    yields the same key pair.
    """
    expanded = HKDF(
        algorithm=hashes.SHA256(),
        length=HKDF_OUTPUT_BYTES,
        salt=None,
        info=HKDF_INFO,
    ).derive(seed)
    private_key = ec.derive_private_key(hash_to_scalar(expanded), ec.SECP256R1())
    return P256KeyPair(
        private_key=private_key,
        public_key=encode_public_key(private_key.public_key()),
    )


def normalize_signature(der_signature: bytes) -> bytes:
    """Convert a DER ECDSA signature to raw low-S ``r || s`` (64 bytes)."""
    r, s = decode_dss_signature(der_signature)
    if s > P256_HALF_ORDER:
        s = P256_ORDER - s
    return r.to_bytes(P256_SCALAR_BYTES, "big") + s.to_bytes(P256_SCALAR_BYTES, "big")


def sign_payload(private_key: ec.EllipticCurvePrivateKey, payload: bytes) -> bytes:
    """Sign ``payload`` with ECDSA P-256 / SHA-256 and return raw low-S bytes."""
    der = private_key.sign(payload, ec.ECDSA(hashes.SHA256()))
    return normalize_signature(der)


def sign_digest(private_key: ec.EllipticCurvePrivateKey, digest: bytes) -> bytes:
    """Sign an already computed SHA-256 digest; equivalent to signing its preimage."""
    if len(digest) != SHA256_DIGEST_BYTES:
        raise ValueError(f"digest must be {SHA256_DIGEST_BYTES} bytes")
    der = private_key.sign(digest, ec.ECDSA(Prehashed(hashes.SHA256())))
    return normalize_signature(der)


def verify_payload(public_key: bytes, payload: bytes, signature: bytes) -> bool:
    """Check a raw ``r || s`` signature over ``payload``."""
    if len(signature) != P256_SIGNATURE_BYTES:
        return False
    r = int.from_bytes(signature[:P256_SCALAR_BYTES], "big")
    s = int.from_bytes(signature[P256_SCALAR_BYTES:], "big")
    try:
        decode_public_key(public_key).verify(
            encode_dss_signature(r, s), payload, ec.ECDSA(hashes.SHA256())
        )
    except (InvalidSignature, ValueError):
        return False
    return True
