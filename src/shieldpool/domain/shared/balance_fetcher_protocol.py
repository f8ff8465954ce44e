"""Protocol interfaces for reading UTXO balances from the ledger."""

from __future__ import annotations

from typing import Awaitable, Callable, Protocol, Sequence


class BalanceFetcher(Protocol):
    async def fetch_balance(self, public_key: bytes) -> int:
        """Return the on-ledger balance of one UTXO public key."""
        ...


# Takes a batch of UTXO public keys and returns their balances in the same order.
BatchBalanceFetcher = Callable[[Sequence[bytes]], Awaitable[Sequence[int]]]
