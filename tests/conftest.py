"""Shared pytest fixtures for shieldpool tests."""

from __future__ import annotations

import pytest
from stellar_sdk import Keypair

from shieldpool.application.transaction_builder import TransactionBuilder
from shieldpool.derivation import StellarDerivator
from shieldpool.domain.utxo_keypair import UTXOKeypair

from tests.fixtures import FakeContractClient, InMemoryBalances
from tests.fixtures.constants import ASSET_ID, AUTH_ID, CHANNEL_ID, NETWORK, ROOT_SECRET


@pytest.fixture
def derivator() -> StellarDerivator:
    """Derivator for the test channel with a fixed root."""
    return StellarDerivator().with_network_and_contract(NETWORK, CHANNEL_ID).with_secret_key(
        ROOT_SECRET
    )


@pytest.fixture
def utxo_keypairs(derivator: StellarDerivator) -> list[UTXOKeypair]:
    """Three consecutive UTXO key pairs (indices 1..3)."""
    return UTXOKeypair.derive_sequence(derivator, 1, 3)


@pytest.fixture
def builder() -> TransactionBuilder:
    return TransactionBuilder(
        channel_id=CHANNEL_ID,
        auth_id=AUTH_ID,
        asset_id=ASSET_ID,
        network=NETWORK,
    )


@pytest.fixture
def depositor() -> Keypair:
    return Keypair.random()


@pytest.fixture
def provider() -> Keypair:
    return Keypair.random()


@pytest.fixture
def balances() -> InMemoryBalances:
    return InMemoryBalances()


@pytest.fixture
def channel_client() -> FakeContractClient:
    return FakeContractClient(CHANNEL_ID)
