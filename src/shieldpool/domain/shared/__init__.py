"""Shared domain interfaces.

This package is domain-accessible and should not depend on application code.
"""

from .balance_fetcher_protocol import BalanceFetcher, BatchBalanceFetcher
from .contract_client_protocol import ContractClientProtocol
from .signer_protocol import Ed25519Signer, TransactionSigner

__all__ = [
    "BalanceFetcher",
    "BatchBalanceFetcher",
    "ContractClientProtocol",
    "Ed25519Signer",
    "TransactionSigner",
]
