"""Pool of sequentially derived UTXOs belonging to one account."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional

from ..derivation.base import BaseDerivator
from ..domain.errors import (
    MissingBatchFetchFunctionError,
    MissingUTXOForIndexError,
    NegativeIndexError,
    ShieldpoolError,
    UTXOAccountUnexpectedError,
    UTXOToDeriveTooLowError,
    UTXOToReserveTooLowError,
)
from ..domain.shared.balance_fetcher_protocol import BatchBalanceFetcher
from ..domain.utxo_keypair import DEFAULT_DECIMALS, UTXOKeypair, UTXOStatus, now_ms
from .selection import StrategyLike, UTXOSelectionStrategy, resolve_strategy

if TYPE_CHECKING:
    from ..infrastructure.privacy_channel import PrivacyChannel

logger = logging.getLogger(__name__)

DEFAULT_START_INDEX = 1
DEFAULT_BATCH_SIZE = 50
DEFAULT_MAX_RESERVATION_AGE_MS = 300_000


@dataclass(frozen=True)
class UTXOSelectionResult:
    selected_utxos: list[UTXOKeypair]
    total_amount: int
    change_amount: int


class UtxoBasedAccount:
    """Derives, tracks, reserves and selects the UTXOs of one account.

    The account owns the derivator's root: it is set once here and every UTXO
    is derived from (context, root, index) with a monotonically increasing
    index.
    """

    def __init__(
        self,
        *,
        derivator: BaseDerivator,
        root: str,
        batch_size: int = DEFAULT_BATCH_SIZE,
        fetch_balances: Optional[BatchBalanceFetcher] = None,
        start_index: int = DEFAULT_START_INDEX,
        max_reservation_age_ms: int = DEFAULT_MAX_RESERVATION_AGE_MS,
        decimals: int = DEFAULT_DECIMALS,
    ) -> None:
        derivator.with_root(root)
        self._derivator = derivator
        self._batch_size = batch_size
        self._fetch_balances = fetch_balances
        self._next_index = start_index
        self._max_reservation_age_ms = max_reservation_age_ms
        self._decimals = decimals
        self._utxos: dict[int, UTXOKeypair] = {}
        self._reservations: dict[int, int] = {}
        self._reservation_lock = threading.Lock()

    @classmethod
    def from_privacy_channel(
        cls,
        channel: "PrivacyChannel",
        root: str,
        **options: object,
    ) -> "UtxoBasedAccount":
        """Account whose derivator and batch fetcher come from ``channel``."""
        return cls(
            derivator=channel.get_derivator(),
            root=root,
            fetch_balances=channel.get_balances_fetcher(),
            **options,  # type: ignore[arg-type]
        )

    # Derivation and loading

    def derive_batch(
        self, start_index: Optional[int] = None, count: Optional[int] = None
    ) -> list[int]:
        """Derive ``count`` UTXOs from ``start_index`` and return their indices.

        Indices that are already tracked keep their keypair and observed state.
        """
        start = self._next_index if start_index is None else start_index
        amount = self._batch_size if count is None else count
        if start < 0:
            raise NegativeIndexError(start)
        if amount < 1:
            raise UTXOToDeriveTooLowError(amount)

        derived: list[int] = []
        for index in range(start, start + amount):
            derived.append(index)
            if index in self._utxos:
                continue
            utxo = UTXOKeypair.from_derivator(self._derivator, index, decimals=self._decimals)
            # Freshly derived outputs have never been observed on the ledger.
            utxo.status = UTXOStatus.FREE
            self._utxos[index] = utxo

        self._next_index = max(self._next_index, start + amount)
        logger.debug("Derived UTXOs %s..%s", start, start + amount - 1)
        return derived

    async def batch_load(
        self,
        states: Optional[Iterable[UTXOStatus]] = None,
        indices: Optional[Iterable[int]] = None,
    ) -> None:
        """Refresh balances of tracked UTXOs, optionally filtered by state or index."""
        fetch_balances = self._fetch_balances
        if fetch_balances is None:
            raise MissingBatchFetchFunctionError()

        state_filter = set(states) if states is not None else None
        index_filter = set(indices) if indices is not None else None
        targets = [
            (index, utxo)
            for index, utxo in sorted(self._utxos.items())
            if (state_filter is None or utxo.status in state_filter)
            and (index_filter is None or index in index_filter)
        ]

        for offset in range(0, len(targets), self._batch_size):
            batch = targets[offset : offset + self._batch_size]
            public_keys = [utxo.public_key for _, utxo in batch]
            balances = await self._fetch_batch(fetch_balances, public_keys)
            if len(balances) != len(batch):
                raise UTXOAccountUnexpectedError.unexpected(
                    "Balance fetcher returned a mismatched number of balances",
                    data={"expected": len(batch), "received": len(balances)},
                )
            for (index, utxo), balance in zip(batch, balances):
                utxo.update_state(balance)
                if balance > 0:
                    self._unreserve(index)

    async def _fetch_batch(
        self, fetch_balances: BatchBalanceFetcher, public_keys: list[bytes]
    ) -> list[int]:
        try:
            return list(await fetch_balances(public_keys))
        except ShieldpoolError:
            logger.exception("Failed to fetch UTXO balances")
            raise
        except Exception as e:
            logger.exception("Failed to fetch UTXO balances")
            raise UTXOAccountUnexpectedError.unexpected(
                "Failed to fetch UTXO balances", cause=e
            ) from e

    def update_utxo_state(
        self, index: int, status: UTXOStatus, balance: Optional[int] = None
    ) -> None:
        utxo = self._utxos.get(index)
        if utxo is None:
            raise MissingUTXOForIndexError(index)
        if balance is not None:
            utxo.balance = balance
        utxo.status = status
        utxo.last_updated = now_ms()
        if status == UTXOStatus.UNSPENT:
            self._unreserve(index)

    # Queries

    def get_utxos_by_state(self, status: UTXOStatus) -> list[UTXOKeypair]:
        return [utxo for _, utxo in sorted(self._utxos.items()) if utxo.status == status]

    def get_utxo(self, index: int) -> Optional[UTXOKeypair]:
        return self._utxos.get(index)

    def get_all_utxos(self) -> list[UTXOKeypair]:
        return [utxo for _, utxo in sorted(self._utxos.items())]

    def get_reserved_utxos(self) -> list[UTXOKeypair]:
        return [self._utxos[i] for i in sorted(self._reservations) if i in self._utxos]

    def get_next_index(self) -> int:
        return self._next_index

    def get_total_balance(self) -> int:
        return sum(utxo.balance for utxo in self.get_utxos_by_state(UTXOStatus.UNSPENT))

    def is_reserved(self, index: int) -> bool:
        return index in self._reservations

    # Reservations

    def reserve_utxos(self, count: int) -> Optional[list[UTXOKeypair]]:
        """Reserve ``count`` unreserved FREE or UNSPENT UTXOs, or return None."""
        if count < 1:
            raise UTXOToReserveTooLowError(count)
        with self._reservation_lock:
            candidates = [
                utxo
                for index, utxo in sorted(self._utxos.items())
                if utxo.status in (UTXOStatus.FREE, UTXOStatus.UNSPENT)
                and index not in self._reservations
            ]
            if len(candidates) < count:
                return None
            selected = candidates[:count]
            now = now_ms()
            for utxo in selected:
                self._reservations[int(utxo.index)] = now
            return selected

    def release_stale_reservations(self, max_age_ms: Optional[int] = None) -> int:
        """Release reservations older than ``max_age_ms``; 0 releases all of them."""
        max_age = self._max_reservation_age_ms if max_age_ms is None else max_age_ms
        with self._reservation_lock:
            now = now_ms()
            stale = [
                index
                for index, reserved_at in self._reservations.items()
                if max_age == 0 or now - reserved_at > max_age
            ]
            for index in stale:
                del self._reservations[index]
        if stale:
            logger.debug("Released %d stale reservations", len(stale))
        return len(stale)

    def _unreserve(self, index: int) -> None:
        with self._reservation_lock:
            self._reservations.pop(index, None)

    # Coin selection

    def select_utxos_for_transfer(
        self,
        amount: int,
        strategy: StrategyLike = UTXOSelectionStrategy.SEQUENTIAL,
    ) -> Optional[UTXOSelectionResult]:
        """Pick UNSPENT UTXOs until their total covers ``amount``; None if it never does."""
        ordered = resolve_strategy(strategy).order(self.get_utxos_by_state(UTXOStatus.UNSPENT))

        selected: list[UTXOKeypair] = []
        total = 0
        for utxo in ordered:
            if total >= amount:
                break
            selected.append(utxo)
            total += utxo.balance

        if total < amount:
            return None
        return UTXOSelectionResult(
            selected_utxos=selected,
            total_amount=total,
            change_amount=total - amount,
        )
