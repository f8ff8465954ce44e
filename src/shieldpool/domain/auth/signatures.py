"""Aggregated signature map placed in the bundle auth entry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, TypeVar

from stellar_sdk import StrKey, scval
from stellar_sdk import xdr as stellar_xdr

from ...encoding.scval import map_val

P256_TAG = "P256"
PROVIDER_TAG = "Provider"
ED25519_TAG = "Ed25519"


@dataclass(frozen=True)
class SpendInnerSignature:
    utxo: bytes
    sig: bytes
    exp: int


@dataclass(frozen=True)
class ProviderInnerSignature:
    public_key: str
    sig: bytes
    exp: int


_HasUtxo = TypeVar("_HasUtxo")


def order_spend_by_utxo(spends: Sequence[_HasUtxo]) -> list[_HasUtxo]:
    """Sort anything exposing ``utxo`` bytes by those bytes."""
    return sorted(spends, key=lambda s: bytes(s.utxo))  # type: ignore[attr-defined]


def _signature_value(tag: str, sig: bytes, exp: int) -> stellar_xdr.SCVal:
    return scval.to_vec(
        [scval.to_vec([scval.to_symbol(tag), scval.to_bytes(sig)]), scval.to_uint32(exp)]
    )


def build_signatures_scval(
    spend_signatures: Sequence[SpendInnerSignature],
    provider_signatures: Sequence[ProviderInnerSignature],
) -> stellar_xdr.SCVal:
    """``vec[map]``: spend entries by UTXO bytes, then providers by address."""
    entries: list[tuple[stellar_xdr.SCVal, stellar_xdr.SCVal]] = []
    for spend in order_spend_by_utxo(spend_signatures):
        key = scval.to_vec([scval.to_symbol(P256_TAG), scval.to_bytes(spend.utxo)])
        entries.append((key, _signature_value(P256_TAG, spend.sig, spend.exp)))
    for provider in sorted(provider_signatures, key=lambda p: p.public_key):
        raw = StrKey.decode_ed25519_public_key(provider.public_key)
        key = scval.to_vec([scval.to_symbol(PROVIDER_TAG), scval.to_bytes(raw)])
        entries.append((key, _signature_value(ED25519_TAG, provider.sig, provider.exp)))
    return scval.to_vec([map_val(entries)])


def build_signatures_xdr(
    spend_signatures: Sequence[SpendInnerSignature],
    provider_signatures: Sequence[ProviderInnerSignature],
) -> str:
    return build_signatures_scval(spend_signatures, provider_signatures).to_xdr()
