"""Test fixtures for in-memory implementations."""

from .fake_contract_client import FakeContractClient
from .in_memory_balances import InMemoryBalances
from .fake_signer import FakeTransactionSigner

__all__ = [
    "FakeContractClient",
    "FakeTransactionSigner",
    "InMemoryBalances",
]
