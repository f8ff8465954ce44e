"""Derivator bound to a Stellar network, a channel contract and an account secret."""

from __future__ import annotations

from enum import Enum
from typing import Union

from stellar_sdk import Network

from .base import BaseDerivator


class StellarNetworkId(str, Enum):
    MAINNET = Network.PUBLIC_NETWORK_PASSPHRASE
    TESTNET = Network.TESTNET_NETWORK_PASSPHRASE
    FUTURENET = Network.FUTURENET_NETWORK_PASSPHRASE


NetworkId = Union[StellarNetworkId, str]


def _passphrase(network: NetworkId) -> str:
    return network.value if isinstance(network, StellarNetworkId) else network


def assemble_network_context(network: NetworkId, contract_id: str) -> str:
    """Return the derivation context: network passphrase followed by contract id."""
    return f"{_passphrase(network)}{contract_id}"


class StellarDerivator(BaseDerivator):
    def with_network_and_contract(
        self, network: NetworkId, contract_id: str
    ) -> "StellarDerivator":
        self.with_context(assemble_network_context(network, contract_id))
        return self

    def with_secret_key(self, secret_key: str) -> "StellarDerivator":
        self.with_root(secret_key)
        return self


def create_for_account(
    network: NetworkId, contract_id: str, secret_key: str
) -> StellarDerivator:
    """Build a derivator ready to derive UTXOs for one account on one channel."""
    return (
        StellarDerivator()
        .with_network_and_contract(network, contract_id)
        .with_secret_key(secret_key)
    )
