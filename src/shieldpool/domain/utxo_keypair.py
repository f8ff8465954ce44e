"""UTXO key pairs and their observed ledger state."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Optional

from cryptography.hazmat.primitives.asymmetric import ec

from ..crypto import p256
from ..derivation.base import BaseDerivator, Index
from .errors import (
    KeypairDerivatorNotConfiguredError,
    MissingBalanceFetcherError,
    ShieldpoolError,
    UTXOKeypairUnexpectedError,
)
from .shared.balance_fetcher_protocol import BalanceFetcher

logger = logging.getLogger(__name__)

DEFAULT_DECIMALS = 7


class UTXOStatus(str, Enum):
    UNLOADED = "unloaded"
    FREE = "free"
    UNSPENT = "unspent"
    SPENT = "spent"


def status_for_balance(balance: int) -> UTXOStatus:
    """Map an observed balance to a status: >0 unspent, 0 free, <0 spent."""
    if balance > 0:
        return UTXOStatus.UNSPENT
    if balance == 0:
        return UTXOStatus.FREE
    return UTXOStatus.SPENT


def now_ms() -> int:
    return int(time.time() * 1000)


class UTXOKeypairBase:
    """A P-256 key pair whose public key identifies a UTXO on the channel."""

    def __init__(self, private_key: ec.EllipticCurvePrivateKey, public_key: bytes) -> None:
        self.private_key = private_key
        self.public_key = public_key

    def sign_payload(self, payload: bytes) -> bytes:
        """Sign with ECDSA P-256 / SHA-256; returns 64 raw low-S bytes."""
        return p256.sign_payload(self.private_key, payload)

    def sign_digest(self, digest: bytes) -> bytes:
        """Sign a 32-byte SHA-256 digest (same result as signing its preimage)."""
        return p256.sign_digest(self.private_key, digest)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(public_key={self.public_key.hex()})"


class UTXOKeypair(UTXOKeypairBase):
    """Derived UTXO key pair that tracks the last balance seen on the ledger."""

    def __init__(
        self,
        *,
        context: str,
        index: Index,
        private_key: ec.EllipticCurvePrivateKey,
        public_key: bytes,
        decimals: int = DEFAULT_DECIMALS,
        balance_fetcher: Optional[BalanceFetcher] = None,
    ) -> None:
        super().__init__(private_key, public_key)
        self.context = context
        self.index = index
        self.decimals = decimals
        self.status = UTXOStatus.UNLOADED
        self.balance = 0
        self.last_updated = 0
        self._balance_fetcher = balance_fetcher

    @classmethod
    def from_derivator(
        cls,
        derivator: BaseDerivator,
        index: Index,
        *,
        decimals: int = DEFAULT_DECIMALS,
        balance_fetcher: Optional[BalanceFetcher] = None,
    ) -> "UTXOKeypair":
        if not derivator.is_configured():
            raise KeypairDerivatorNotConfiguredError()
        keypair = derivator.derive_keypair(index)
        return cls(
            context=derivator.get_context(),
            index=index,
            private_key=keypair.private_key,
            public_key=keypair.public_key,
            decimals=decimals,
            balance_fetcher=balance_fetcher,
        )

    @classmethod
    def derive_sequence(
        cls,
        derivator: BaseDerivator,
        start_index: int,
        count: int,
        *,
        decimals: int = DEFAULT_DECIMALS,
        balance_fetcher: Optional[BalanceFetcher] = None,
    ) -> list["UTXOKeypair"]:
        """Derive ``count`` consecutive key pairs starting at ``start_index``."""
        if not derivator.is_configured():
            raise KeypairDerivatorNotConfiguredError()
        return [
            cls.from_derivator(
                derivator,
                start_index + offset,
                decimals=decimals,
                balance_fetcher=balance_fetcher,
            )
            for offset in range(count)
        ]

    def set_balance_fetcher(self, fetcher: BalanceFetcher) -> None:
        self._balance_fetcher = fetcher

    def update_state(self, balance: int) -> None:
        self.balance = balance
        self.last_updated = now_ms()
        self.status = status_for_balance(balance)

    async def load(self) -> None:
        """Fetch the current balance and update the status from it."""
        if self._balance_fetcher is None:
            raise MissingBalanceFetcherError()
        try:
            balance = await self._balance_fetcher.fetch_balance(self.public_key)
        except ShieldpoolError:
            logger.exception("Failed to load UTXO state for index %s", self.index)
            raise
        except Exception as e:
            logger.exception("Failed to load UTXO state for index %s", self.index)
            raise UTXOKeypairUnexpectedError.unexpected(
                "Failed to load UTXO state", cause=e, data={"index": self.index}
            ) from e
        self.update_state(balance)

    def is_unspent(self) -> bool:
        return self.status == UTXOStatus.UNSPENT

    def is_spent(self) -> bool:
        return self.status == UTXOStatus.SPENT

    def is_free(self) -> bool:
        return self.status == UTXOStatus.FREE

    def is_unloaded(self) -> bool:
        return self.status == UTXOStatus.UNLOADED
