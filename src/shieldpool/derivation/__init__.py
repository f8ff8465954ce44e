"""Deterministic UTXO key derivation."""

from .base import BaseDerivator, generate_plain_text_seed, hash_seed
from .stellar import (
    StellarDerivator,
    StellarNetworkId,
    assemble_network_context,
    create_for_account,
)

__all__ = [
    "BaseDerivator",
    "generate_plain_text_seed",
    "hash_seed",
    "StellarDerivator",
    "StellarNetworkId",
    "assemble_network_context",
    "create_for_account",
]
