"""Ordering strategies for coin selection."""

from __future__ import annotations

import random
import secrets
from enum import Enum
from typing import Optional, Protocol, Sequence, Union

from ..domain.utxo_keypair import UTXOKeypair


class SelectionStrategy(Protocol):
    def order(self, utxos: Sequence[UTXOKeypair]) -> list[UTXOKeypair]:
        """Return the candidates in the order they should be consumed."""
        ...


class UTXOSelectionStrategy(str, Enum):
    SEQUENTIAL = "sequential"
    RANDOM = "random"


class SequentialSelection:
    def order(self, utxos: Sequence[UTXOKeypair]) -> list[UTXOKeypair]:
        return sorted(utxos, key=lambda u: int(u.index))


class RandomSelection:
    """Shuffle candidates so spends do not reveal derivation order."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng if rng is not None else secrets.SystemRandom()

    def order(self, utxos: Sequence[UTXOKeypair]) -> list[UTXOKeypair]:
        shuffled = list(utxos)
        self._rng.shuffle(shuffled)
        return shuffled


StrategyLike = Union[UTXOSelectionStrategy, str, SelectionStrategy]


def resolve_strategy(strategy: StrategyLike) -> SelectionStrategy:
    if isinstance(strategy, (UTXOSelectionStrategy, str)):
        kind = UTXOSelectionStrategy(strategy)
        if kind == UTXOSelectionStrategy.RANDOM:
            return RandomSelection()
        return SequentialSelection()
    return strategy
