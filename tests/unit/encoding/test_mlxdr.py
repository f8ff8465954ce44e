"""Unit tests for the MLXDR transport encoding."""

import base64

import pytest
from stellar_sdk import Keypair, scval

from shieldpool.domain.conditions import Condition
from shieldpool.domain.errors import (
    InvalidMLXDRError,
    InvalidWireValueError,
    UnexpectedMLXDRTypeError,
)
from shieldpool.domain.operations import Operation
from shieldpool.domain.utxo_keypair import UTXOKeypair
from shieldpool.encoding import mlxdr
from shieldpool.encoding.mlxdr import MLXDRTypeByte

from tests.fixtures.constants import ASSET_ID, CHANNEL_ID, NETWORK


def _raw(data: str) -> bytes:
    return base64.b64decode(data)


class TestTypeDetection:
    """Test prefix and type byte inspection."""

    def test_condition_header(self, utxo_keypairs: list[UTXOKeypair]) -> None:
        data = Condition.create(utxo_keypairs[0].public_key, 10).to_mlxdr()
        raw = _raw(data)
        assert raw[:2] == b"\x30\xb0"
        assert raw[2] == 0x01
        assert mlxdr.is_mlxdr(data)
        assert mlxdr.is_condition(data)
        assert not mlxdr.is_operation(data)
        assert mlxdr.get_xdr_type(data) == MLXDRTypeByte.CREATE_CONDITION

    def test_operation_type_bytes(self, utxo_keypairs: list[UTXOKeypair]) -> None:
        pk = Keypair.random().public_key
        cases = [
            (Operation.create(utxo_keypairs[0].public_key, 1), MLXDRTypeByte.CREATE_OPERATION),
            (Operation.spend(utxo_keypairs[0].public_key), MLXDRTypeByte.SPEND_OPERATION),
            (Operation.deposit(pk, 1), MLXDRTypeByte.DEPOSIT_OPERATION),
            (Operation.withdraw(pk, 1), MLXDRTypeByte.WITHDRAW_OPERATION),
        ]
        for op, expected in cases:
            data = op.to_mlxdr()
            assert mlxdr.is_operation(data)
            assert mlxdr.get_xdr_type(data) == expected

    def test_plain_xdr_is_not_mlxdr(self, utxo_keypairs: list[UTXOKeypair]) -> None:
        data = Condition.create(utxo_keypairs[0].public_key, 10).to_xdr()
        assert not mlxdr.is_mlxdr(data)
        with pytest.raises(InvalidMLXDRError, match="missing MLXDR prefix"):
            mlxdr.get_xdr_type(data)

    def test_not_base64(self) -> None:
        assert not mlxdr.is_mlxdr("%%%")
        with pytest.raises(InvalidMLXDRError, match="not base64"):
            mlxdr.get_xdr_type("%%%")

    def test_unknown_type_byte(self) -> None:
        data = base64.b64encode(b"\x30\xb0\x7f" + scval.to_void().to_xdr_bytes()).decode()
        assert mlxdr.get_xdr_type(data) is None
        assert not mlxdr.is_condition(data)
        with pytest.raises(InvalidMLXDRError, match="unknown type byte"):
            mlxdr.to_condition(data)


class TestConditions:
    def test_deposit_condition_round_trip(self) -> None:
        condition = Condition.deposit(Keypair.random().public_key, 33)
        assert Condition.from_mlxdr(condition.to_mlxdr()) == condition

    def test_operation_is_not_a_condition(self, utxo_keypairs: list[UTXOKeypair]) -> None:
        data = Operation.create(utxo_keypairs[0].public_key, 1).to_mlxdr()
        with pytest.raises(UnexpectedMLXDRTypeError):
            mlxdr.to_condition(data)

    def test_type_byte_must_match_kind(self) -> None:
        condition = Condition.withdraw(Keypair.random().public_key, 5)
        raw = bytearray(_raw(condition.to_mlxdr()))
        raw[2] = MLXDRTypeByte.DEPOSIT_CONDITION
        with pytest.raises(UnexpectedMLXDRTypeError):
            mlxdr.to_condition(base64.b64encode(bytes(raw)).decode())


class TestOperations:
    """Test operation envelopes, signed and unsigned."""

    def test_condition_is_not_an_operation(self, utxo_keypairs: list[UTXOKeypair]) -> None:
        data = Condition.create(utxo_keypairs[0].public_key, 10).to_mlxdr()
        with pytest.raises(UnexpectedMLXDRTypeError):
            Operation.from_mlxdr(data)

    def test_unsigned_spend_round_trip(self, utxo_keypairs: list[UTXOKeypair]) -> None:
        spend = Operation.spend(utxo_keypairs[0].public_key)
        spend.add_condition(Condition.create(utxo_keypairs[1].public_key, 10))
        decoded = Operation.from_mlxdr(spend.to_mlxdr())
        assert decoded.is_spend()
        assert decoded.get_conditions() == spend.get_conditions()
        assert not decoded.is_signed_by_utxo()

    @pytest.mark.asyncio
    async def test_signed_spend_keeps_signature(self, utxo_keypairs: list[UTXOKeypair]) -> None:
        spend = Operation.spend(utxo_keypairs[0].public_key)
        spend.add_condition(Condition.create(utxo_keypairs[1].public_key, 10))
        await spend.sign_with_utxo(utxo_keypairs[0], CHANNEL_ID, 700)
        decoded = Operation.from_mlxdr(spend.to_mlxdr())
        assert decoded.get_utxo_signature() == spend.get_utxo_signature()

    @pytest.mark.asyncio
    async def test_signed_deposit_keeps_entry(self, depositor: Keypair) -> None:
        deposit = Operation.deposit(depositor.public_key, 10)
        await deposit.sign_with_ed25519(depositor, 700, CHANNEL_ID, ASSET_ID, NETWORK, nonce=5)
        decoded = Operation.from_mlxdr(deposit.to_mlxdr())
        assert decoded.is_signed_by_ed25519()
        assert (
            decoded.get_ed25519_signature().to_xdr()
            == deposit.get_ed25519_signature().to_xdr()
        )

    def test_malformed_envelope(self) -> None:
        payload = scval.to_vec([scval.to_void()]).to_xdr_bytes()
        data = base64.b64encode(b"\x30\xb0\x04" + payload).decode()
        with pytest.raises(InvalidWireValueError, match="expected 2 elements"):
            mlxdr.to_operation(data)


class TestBundles:
    def test_bundle_round_trip(self, utxo_keypairs: list[UTXOKeypair]) -> None:
        pk = Keypair.random().public_key
        ops = [
            Operation.create(utxo_keypairs[1].public_key, 10),
            Operation.withdraw(pk, 5),
        ]
        data = mlxdr.from_operations_bundle(ops)
        assert mlxdr.is_operations_bundle(data)
        assert not mlxdr.is_transaction_bundle(data)
        decoded = mlxdr.to_operations_bundle(data)
        assert [op.kind for op in decoded] == [op.kind for op in ops]
        assert decoded[1].public_key == pk

    def test_non_bundle_rejected(self, utxo_keypairs: list[UTXOKeypair]) -> None:
        data = Operation.create(utxo_keypairs[0].public_key, 1).to_mlxdr()
        with pytest.raises(UnexpectedMLXDRTypeError):
            mlxdr.to_operations_bundle(data)
