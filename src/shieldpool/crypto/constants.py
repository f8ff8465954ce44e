"""Curve and derivation constants shared by key derivation and signing."""

from __future__ import annotations

from typing import Final

# Order of the NIST P-256 (secp256r1) group.
P256_ORDER: Final[int] = (
    0xFFFFFFFF00000000FFFFFFFFFFFFFFFFBCE6FAADA7179E84F3B9CAC2FC632551
)
P256_HALF_ORDER: Final[int] = P256_ORDER // 2

P256_SCALAR_BYTES: Final[int] = 32
P256_SIGNATURE_BYTES: Final[int] = 2 * P256_SCALAR_BYTES
P256_UNCOMPRESSED_POINT_BYTES: Final[int] = 65
P256_UNCOMPRESSED_PREFIX: Final[int] = 0x04

# HKDF expansion used to map a 32-byte seed to a P-256 scalar. 48 bytes keeps
# the modular bias of the reduction below 2**-128.
HKDF_INFO: Final[bytes] = b"application"
HKDF_OUTPUT_BYTES: Final[int] = 48

SHA256_DIGEST_BYTES: Final[int] = 32
