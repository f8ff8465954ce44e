"""Protocol interface for external Ed25519 signers (wallets, HSMs...)."""

from __future__ import annotations

from typing import Protocol, Union

from stellar_sdk import Keypair
from stellar_sdk import xdr as stellar_xdr


class TransactionSigner(Protocol):
    @property
    def public_key(self) -> str:
        """Strkey (``G...``) of the signing account."""
        ...

    async def sign(self, data: bytes) -> bytes:
        """Return the raw Ed25519 signature over ``data``."""
        ...

    async def sign_soroban_auth_entry(
        self,
        entry: stellar_xdr.SorobanAuthorizationEntry,
        valid_until_ledger_sequence: int,
        network_passphrase: str,
    ) -> stellar_xdr.SorobanAuthorizationEntry:
        """Return a copy of ``entry`` carrying the account's signature."""
        ...


# A local keypair or any object satisfying the signer protocol.
Ed25519Signer = Union[Keypair, TransactionSigner]
