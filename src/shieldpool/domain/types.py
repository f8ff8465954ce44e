"""Value types shared by conditions, operations and the signature protocol."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class UTXOOperationType(str, Enum):
    """Operation kinds as they appear on the wire (contract symbols)."""

    CREATE = "Create"
    DEPOSIT = "ExtDeposit"
    WITHDRAW = "ExtWithdraw"
    SPEND = "Spend"


@dataclass(frozen=True)
class UTXOSignature:
    """P-256 signature of a UTXO owner over a spend payload."""

    sig: bytes
    exp: int


@dataclass(frozen=True)
class ProviderSignature:
    """Ed25519 signature of a channel provider over the bundle auth entry."""

    sig: bytes
    exp: int
    nonce: int
