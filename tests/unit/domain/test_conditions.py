"""Unit tests for conditions."""

import pytest
from pydantic import ValidationError
from stellar_sdk import Keypair, scval

from shieldpool.domain.conditions import (
    Condition,
    CreateCondition,
    DepositCondition,
    validate_amount,
    validate_ed25519_public_key,
)
from shieldpool.domain.errors import (
    AmountTooLowError,
    InvalidEd25519PublicKeyError,
    InvalidUTXOPublicKeyError,
    InvalidWireValueError,
    UnsupportedOperationTypeError,
)
from shieldpool.domain.types import UTXOOperationType
from shieldpool.domain.utxo_keypair import UTXOKeypair


class TestConditionValidators:
    """Test the pure validators used by conditions and operations."""

    def test_amount_must_be_positive(self) -> None:
        with pytest.raises(AmountTooLowError, match="greater than zero"):
            validate_amount(0)

    def test_amount_ok(self) -> None:
        assert validate_amount(1) == 1

    def test_ed25519_key_rejects_contract(self) -> None:
        with pytest.raises(InvalidEd25519PublicKeyError):
            validate_ed25519_public_key("CAAAA")

    def test_ed25519_key_ok(self) -> None:
        pk = Keypair.random().public_key
        assert validate_ed25519_public_key(pk) == pk


class TestConditionFactories:
    def test_create(self, utxo_keypairs: list[UTXOKeypair]) -> None:
        condition = Condition.create(utxo_keypairs[0].public_key, 100)
        assert isinstance(condition, CreateCondition)
        assert condition.is_create()
        assert condition.kind == UTXOOperationType.CREATE

    def test_deposit(self) -> None:
        pk = Keypair.random().public_key
        condition = Condition.deposit(pk, 5)
        assert isinstance(condition, DepositCondition)
        assert condition.is_deposit()
        assert not condition.is_withdraw()

    def test_zero_amount_rejected(self, utxo_keypairs: list[UTXOKeypair]) -> None:
        with pytest.raises(AmountTooLowError):
            Condition.create(utxo_keypairs[0].public_key, 0)

    def test_bad_utxo_rejected(self) -> None:
        with pytest.raises(InvalidUTXOPublicKeyError):
            Condition.create(b"\x04" * 33, 10)

    def test_bad_address_rejected(self) -> None:
        with pytest.raises(InvalidEd25519PublicKeyError):
            Condition.withdraw("not-a-key", 10)

    def test_conditions_are_frozen(self, utxo_keypairs: list[UTXOKeypair]) -> None:
        condition = Condition.create(utxo_keypairs[0].public_key, 100)
        with pytest.raises(ValidationError):
            condition.amount = 200  # type: ignore[misc]


class TestConditionWireForm:
    """Test ledger value encoding and decoding."""

    def test_create_wire_layout(self, utxo_keypairs: list[UTXOKeypair]) -> None:
        utxo = utxo_keypairs[0].public_key
        items = Condition.create(utxo, 100).to_wire_value().vec.sc_vec
        assert scval.from_symbol(items[0]) == "Create"
        assert scval.from_bytes(items[1]) == utxo
        assert scval.from_int128(items[2]) == 100

    def test_withdraw_xdr_round_trip(self) -> None:
        condition = Condition.withdraw(Keypair.random().public_key, 42)
        assert Condition.from_xdr(condition.to_xdr()) == condition

    def test_unknown_kind_rejected(self, utxo_keypairs: list[UTXOKeypair]) -> None:
        value = scval.to_vec(
            [
                scval.to_symbol("Burn"),
                scval.to_bytes(utxo_keypairs[0].public_key),
                scval.to_int128(1),
            ]
        )
        with pytest.raises(UnsupportedOperationTypeError):
            Condition.from_wire_value(value)

    def test_wrong_arity_rejected(self) -> None:
        with pytest.raises(InvalidWireValueError, match="expected 3 elements"):
            Condition.from_wire_value(scval.to_vec([scval.to_symbol("Create")]))
