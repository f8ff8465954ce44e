"""Canonical payload signed by UTXO owners to authorize a spend.

Layout, all concatenated:

* UTF-8 bytes of the channel contract id
* every Create condition: UTXO public key || amount (16 bytes, little endian)
* every Deposit condition: UTF-8 address || amount (16 bytes, little endian)
* every Withdraw condition: UTF-8 address || amount (16 bytes, little endian)
* the signature expiration ledger (4 bytes, little endian)

Conditions are grouped by kind, so two lists that differ only in the relative
order of kinds produce the same payload.
"""

from __future__ import annotations

from typing import Sequence

from ...crypto.p256 import sha256
from ..conditions import AnyCondition, CreateCondition, DepositCondition, WithdrawCondition

AMOUNT_BYTES = 16
LEDGER_BYTES = 4


def int_to_le(value: int, length: int) -> bytes:
    """Encode an integer as ``length`` little-endian two's-complement bytes."""
    return value.to_bytes(length, "little", signed=value < 0)


def build_auth_payload(
    contract_id: str,
    conditions: Sequence[AnyCondition],
    live_until_ledger: int,
) -> bytes:
    creates = [c for c in conditions if isinstance(c, CreateCondition)]
    deposits = [c for c in conditions if isinstance(c, DepositCondition)]
    withdraws = [c for c in conditions if isinstance(c, WithdrawCondition)]

    parts: list[bytes] = [contract_id.encode("utf-8")]
    for create in creates:
        parts.append(create.utxo)
        parts.append(int_to_le(create.amount, AMOUNT_BYTES))
    for ext in (*deposits, *withdraws):
        parts.append(ext.public_key.encode("utf-8"))
        parts.append(int_to_le(ext.amount, AMOUNT_BYTES))
    parts.append(int_to_le(live_until_ledger, LEDGER_BYTES))
    return b"".join(parts)


def build_auth_payload_hash(
    contract_id: str,
    conditions: Sequence[AnyCondition],
    live_until_ledger: int,
) -> bytes:
    """SHA-256 digest of :func:`build_auth_payload`; this is what a UTXO signs."""
    return sha256(build_auth_payload(contract_id, conditions, live_until_ledger))
