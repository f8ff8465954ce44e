"""Signature protocol: payloads, authorization entries and signature maps."""

from .entries import (
    build_bundle_auth_entry,
    build_deposit_auth_entry,
    build_operation_auth_entry_hash,
    generate_nonce,
)
from .payload import build_auth_payload, build_auth_payload_hash
from .signatures import (
    ProviderInnerSignature,
    SpendInnerSignature,
    build_signatures_scval,
    build_signatures_xdr,
    order_spend_by_utxo,
)

__all__ = [
    "build_auth_payload",
    "build_auth_payload_hash",
    "build_bundle_auth_entry",
    "build_deposit_auth_entry",
    "build_operation_auth_entry_hash",
    "generate_nonce",
    "ProviderInnerSignature",
    "SpendInnerSignature",
    "build_signatures_scval",
    "build_signatures_xdr",
    "order_spend_by_utxo",
]
