"""Unit tests for the spend payload, aggregated signatures and auth entries."""

import hashlib

from stellar_sdk import Keypair, StrKey, scval
from stellar_sdk import xdr as stellar_xdr

from shieldpool.domain.auth import (
    ProviderInnerSignature,
    SpendInnerSignature,
    build_auth_payload,
    build_auth_payload_hash,
    build_signatures_scval,
    generate_nonce,
)
from shieldpool.domain.auth.entries import INT64_MAX
from shieldpool.domain.auth.payload import int_to_le
from shieldpool.domain.conditions import Condition
from shieldpool.domain.utxo_keypair import UTXOKeypair

from tests.fixtures.constants import CHANNEL_ID


class TestAuthPayload:
    """Test the canonical payload signed by UTXO owners."""

    def test_layout(self, utxo_keypairs: list[UTXOKeypair]) -> None:
        utxo = utxo_keypairs[0].public_key
        withdraw_to = Keypair.random().public_key
        payload = build_auth_payload(
            CHANNEL_ID,
            [Condition.withdraw(withdraw_to, 5), Condition.create(utxo, 10)],
            1000,
        )
        expected = (
            CHANNEL_ID.encode()
            + utxo
            + (10).to_bytes(16, "little")
            + withdraw_to.encode()
            + (5).to_bytes(16, "little")
            + (1000).to_bytes(4, "little")
        )
        assert payload == expected

    def test_hash_independent_of_kind_order(self, utxo_keypairs: list[UTXOKeypair]) -> None:
        create = Condition.create(utxo_keypairs[0].public_key, 10)
        deposit = Condition.deposit(Keypair.random().public_key, 3)
        withdraw = Condition.withdraw(Keypair.random().public_key, 7)
        a = build_auth_payload_hash(CHANNEL_ID, [withdraw, create, deposit], 50)
        b = build_auth_payload_hash(CHANNEL_ID, [create, deposit, withdraw], 50)
        assert a == b

    def test_hash_depends_on_expiration(self, utxo_keypairs: list[UTXOKeypair]) -> None:
        conditions = [Condition.create(utxo_keypairs[0].public_key, 10)]
        assert build_auth_payload_hash(CHANNEL_ID, conditions, 1) != build_auth_payload_hash(
            CHANNEL_ID, conditions, 2
        )

    def test_hash_is_sha256(self, utxo_keypairs: list[UTXOKeypair]) -> None:
        conditions = [Condition.create(utxo_keypairs[0].public_key, 10)]
        payload = build_auth_payload(CHANNEL_ID, conditions, 9)
        assert build_auth_payload_hash(CHANNEL_ID, conditions, 9) == hashlib.sha256(payload).digest()

    def test_int_to_le(self) -> None:
        assert int_to_le(1, 4) == b"\x01\x00\x00\x00"


class TestSignaturesScval:
    """Test the aggregated signature map."""

    def test_spend_entries_sorted_then_providers(self, utxo_keypairs: list[UTXOKeypair]) -> None:
        utxos = sorted(u.public_key for u in utxo_keypairs[:2])
        provider = Keypair.random()
        value = build_signatures_scval(
            [
                SpendInnerSignature(utxo=utxos[1], sig=b"\x02" * 64, exp=10),
                SpendInnerSignature(utxo=utxos[0], sig=b"\x01" * 64, exp=10),
            ],
            [ProviderInnerSignature(public_key=provider.public_key, sig=b"\x03" * 64, exp=11)],
        )
        (sig_map,) = value.vec.sc_vec
        entries = sig_map.map.sc_map
        assert len(entries) == 3

        first_key = entries[0].key.vec.sc_vec
        assert scval.from_symbol(first_key[0]) == "P256"
        assert scval.from_bytes(first_key[1]) == utxos[0]
        assert scval.from_bytes(entries[1].key.vec.sc_vec[1]) == utxos[1]

        provider_key = entries[2].key.vec.sc_vec
        assert scval.from_symbol(provider_key[0]) == "Provider"
        assert scval.from_bytes(provider_key[1]) == StrKey.decode_ed25519_public_key(
            provider.public_key
        )
        sig_val, exp_val = entries[2].val.vec.sc_vec
        assert scval.from_symbol(sig_val.vec.sc_vec[0]) == "Ed25519"
        assert scval.from_uint32(exp_val) == 11

    def test_empty_map(self) -> None:
        value = build_signatures_scval([], [])
        assert value.vec.sc_vec[0].type == stellar_xdr.SCValType.SCV_MAP


class TestNonce:
    def test_nonce_is_non_negative_int64(self) -> None:
        for _ in range(50):
            assert 0 <= generate_nonce() <= INT64_MAX
