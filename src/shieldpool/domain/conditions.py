"""Conditions: the outputs a spend or an external operation commits to.

A condition is immutable once built. Its wire form is the ledger vector
``[Symbol(kind), target, i128 amount]`` where ``target`` is the UTXO public
key bytes for ``Create`` and an account address for deposits and withdrawals.
"""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, field_validator
from stellar_sdk import StrKey, scval
from stellar_sdk import xdr as stellar_xdr

from ..crypto.p256 import is_uncompressed_point
from ..encoding.scval import expect_address, expect_bytes, expect_i128, expect_symbol, expect_vec
from .errors import (
    AmountTooLowError,
    InvalidEd25519PublicKeyError,
    InvalidUTXOPublicKeyError,
    UnsupportedOperationTypeError,
)
from .types import UTXOOperationType


def validate_amount(amount: int) -> int:
    if amount <= 0:
        raise AmountTooLowError(amount)
    return amount


def validate_ed25519_public_key(public_key: str) -> str:
    if not isinstance(public_key, str) or not StrKey.is_valid_ed25519_public_key(public_key):
        raise InvalidEd25519PublicKeyError(public_key)
    return public_key


def validate_utxo_public_key(utxo: bytes) -> bytes:
    if not is_uncompressed_point(utxo):
        raise InvalidUTXOPublicKeyError(len(utxo))
    return utxo


class _BaseCondition(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: UTXOOperationType
    amount: int

    @field_validator("amount")
    @classmethod
    def check_amount(cls, v: int) -> int:
        return validate_amount(v)

    def _target_value(self) -> stellar_xdr.SCVal:
        raise NotImplementedError

    def to_wire_value(self) -> stellar_xdr.SCVal:
        return scval.to_vec(
            [
                scval.to_symbol(self.kind.value),
                self._target_value(),
                scval.to_int128(self.amount),
            ]
        )

    def to_xdr(self) -> str:
        """Base64 XDR of the wire value."""
        return self.to_wire_value().to_xdr()

    def to_mlxdr(self) -> str:
        from ..encoding import mlxdr

        return mlxdr.from_condition(self)  # type: ignore[arg-type]

    def is_create(self) -> bool:
        return self.kind == UTXOOperationType.CREATE

    def is_deposit(self) -> bool:
        return self.kind == UTXOOperationType.DEPOSIT

    def is_withdraw(self) -> bool:
        return self.kind == UTXOOperationType.WITHDRAW


class CreateCondition(_BaseCondition):
    kind: Literal[UTXOOperationType.CREATE] = UTXOOperationType.CREATE
    utxo: bytes

    @field_validator("utxo")
    @classmethod
    def check_utxo(cls, v: bytes) -> bytes:
        return validate_utxo_public_key(v)

    def _target_value(self) -> stellar_xdr.SCVal:
        return scval.to_bytes(self.utxo)


class DepositCondition(_BaseCondition):
    kind: Literal[UTXOOperationType.DEPOSIT] = UTXOOperationType.DEPOSIT
    public_key: str

    @field_validator("public_key", mode="before")
    @classmethod
    def check_public_key(cls, v: str) -> str:
        return validate_ed25519_public_key(v)

    def _target_value(self) -> stellar_xdr.SCVal:
        return scval.to_address(self.public_key)


class WithdrawCondition(_BaseCondition):
    kind: Literal[UTXOOperationType.WITHDRAW] = UTXOOperationType.WITHDRAW
    public_key: str

    @field_validator("public_key", mode="before")
    @classmethod
    def check_public_key(cls, v: str) -> str:
        return validate_ed25519_public_key(v)

    def _target_value(self) -> stellar_xdr.SCVal:
        return scval.to_address(self.public_key)


AnyCondition = Union[CreateCondition, DepositCondition, WithdrawCondition]


class Condition:
    """Factories for the three condition kinds."""

    @staticmethod
    def create(utxo: bytes, amount: int) -> CreateCondition:
        return CreateCondition(utxo=utxo, amount=amount)

    @staticmethod
    def deposit(public_key: str, amount: int) -> DepositCondition:
        return DepositCondition(public_key=public_key, amount=amount)

    @staticmethod
    def withdraw(public_key: str, amount: int) -> WithdrawCondition:
        return WithdrawCondition(public_key=public_key, amount=amount)

    @staticmethod
    def from_wire_value(value: stellar_xdr.SCVal) -> AnyCondition:
        kind_val, target_val, amount_val = expect_vec(value, "condition", length=3)
        kind = expect_symbol(kind_val, "condition kind")
        amount = expect_i128(amount_val, "condition amount")
        if kind == UTXOOperationType.CREATE.value:
            return Condition.create(expect_bytes(target_val, "condition utxo"), amount)
        if kind == UTXOOperationType.DEPOSIT.value:
            return Condition.deposit(expect_address(target_val, "condition address"), amount)
        if kind == UTXOOperationType.WITHDRAW.value:
            return Condition.withdraw(expect_address(target_val, "condition address"), amount)
        raise UnsupportedOperationTypeError(kind)

    @staticmethod
    def from_xdr(xdr: str) -> AnyCondition:
        return Condition.from_wire_value(stellar_xdr.SCVal.from_xdr(xdr))

    @staticmethod
    def from_mlxdr(data: str) -> AnyCondition:
        from ..encoding import mlxdr

        return mlxdr.to_condition(data)
