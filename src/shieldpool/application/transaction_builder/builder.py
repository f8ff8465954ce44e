"""Assembles operations and signatures into a privacy channel ``transact`` call."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Awaitable, Optional, TypeVar

from stellar_sdk import Address, InvokeHostFunction, Keypair, scval
from stellar_sdk import xdr as stellar_xdr

from ...domain.auth.entries import (
    TRANSACT_FN,
    build_bundle_auth_entry,
    build_operation_auth_entry_hash,
    generate_nonce,
)
from ...domain.auth.payload import build_auth_payload_hash
from ...domain.auth.signatures import (
    P256_TAG,
    ProviderInnerSignature,
    SpendInnerSignature,
    build_signatures_xdr,
    order_spend_by_utxo,
)
from ...domain.errors import (
    BuilderPropertyNotSetError,
    MissingProviderSignatureError,
    NoConditionsForSpendOperationError,
    NoDepositOperationError,
    ShieldpoolError,
    TransactionBuilderUnexpectedError,
)
from ...domain.operations import (
    AnyOperation,
    CreateOperation,
    DepositOperation,
    SpendOperation,
    WithdrawOperation,
    conditions_value,
    sign_auth_entry,
)
from ...domain.shared.signer_protocol import Ed25519Signer
from ...domain.types import ProviderSignature, UTXOSignature
from ...domain.utxo_keypair import UTXOKeypairBase
from ...encoding import mlxdr
from ...encoding.scval import map_val
from . import validators

if TYPE_CHECKING:
    from ...env import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TransactionBuilder:
    """Collects the operations of one bundle and the signatures that authorize it.

    Three kinds of signers take part:

    * each spent UTXO signs the payload hash of its own conditions (P-256);
    * one or more channel providers sign the bundle auth entry (Ed25519);
    * each depositor signs an auth entry allowing the asset transfer (Ed25519).
    """

    def __init__(
        self,
        *,
        channel_id: str,
        auth_id: str,
        asset_id: str,
        network: str,
    ) -> None:
        for name, value in (
            ("channel_id", channel_id),
            ("auth_id", auth_id),
            ("asset_id", asset_id),
            ("network", network),
        ):
            if not value:
                raise BuilderPropertyNotSetError(name)
        self._channel_id = channel_id
        self._auth_id = auth_id
        self._asset_id = asset_id
        self._network = network

        self._create: list[CreateOperation] = []
        self._spend: list[SpendOperation] = []
        self._deposit: list[DepositOperation] = []
        self._withdraw: list[WithdrawOperation] = []

        self._inner_signatures: dict[bytes, UTXOSignature] = {}
        self._provider_inner_signatures: dict[str, ProviderSignature] = {}
        self._ext_signatures: dict[str, stellar_xdr.SorobanAuthorizationEntry] = {}

    @classmethod
    def from_settings(cls, settings: "Settings") -> "TransactionBuilder":
        return cls(
            channel_id=settings.channel_contract_id,
            auth_id=settings.auth_contract_id,
            asset_id=settings.asset_contract_id,
            network=settings.network_passphrase,
        )

    # Identity

    @property
    def channel_id(self) -> str:
        return self._channel_id

    @property
    def auth_id(self) -> str:
        return self._auth_id

    @property
    def asset_id(self) -> str:
        return self._asset_id

    @property
    def network(self) -> str:
        return self._network

    # Operations

    def get_create_operations(self) -> list[CreateOperation]:
        return list(self._create)

    def get_spend_operations(self) -> list[SpendOperation]:
        return list(self._spend)

    def get_deposit_operations(self) -> list[DepositOperation]:
        return list(self._deposit)

    def get_withdraw_operations(self) -> list[WithdrawOperation]:
        return list(self._withdraw)

    def get_operations(self) -> list[AnyOperation]:
        return [*self._create, *self._spend, *self._deposit, *self._withdraw]

    def add_operation(self, op: AnyOperation) -> "TransactionBuilder":
        validators.assert_can_add(op, self._create, self._spend, self._deposit, self._withdraw)
        self._insert(op)
        return self

    def add_operations(self, ops: list[AnyOperation]) -> "TransactionBuilder":
        """Add a batch of operations; nothing is added if any of them is rejected."""
        validators.assert_can_add_all(ops, self._create, self._spend, self._deposit, self._withdraw)
        for op in ops:
            self._insert(op)
        return self

    def _insert(self, op: AnyOperation) -> None:
        if isinstance(op, CreateOperation):
            self._create.append(op)
        elif isinstance(op, SpendOperation):
            self._spend.append(op)
            if op.utxo_signature is not None:
                self._inner_signatures[op.utxo] = op.utxo_signature
        elif isinstance(op, DepositOperation):
            self._deposit.append(op)
            if op.ed25519_signature is not None:
                self._ext_signatures[op.public_key] = op.ed25519_signature
        else:
            self._withdraw.append(op)

    def get_deposit_operation(self, public_key: str) -> Optional[DepositOperation]:
        return next((d for d in self._deposit if d.public_key == public_key), None)

    def get_withdraw_operation(self, public_key: str) -> Optional[WithdrawOperation]:
        return next((w for w in self._withdraw if w.public_key == public_key), None)

    # Signatures

    def add_inner_signature(
        self, utxo: bytes, signature: bytes, expiration_ledger: int
    ) -> "TransactionBuilder":
        spend = validators.assert_spend_exists(self._spend, utxo)
        sig = UTXOSignature(sig=signature, exp=expiration_ledger)
        self._inner_signatures[utxo] = sig
        spend.utxo_signature = sig
        return self

    def add_provider_inner_signature(
        self,
        public_key: str,
        signature: bytes,
        expiration_ledger: int,
        nonce: int,
    ) -> "TransactionBuilder":
        self._provider_inner_signatures[public_key] = ProviderSignature(
            sig=signature, exp=expiration_ledger, nonce=nonce
        )
        return self

    def add_ext_signed_entry(
        self, public_key: str, entry: stellar_xdr.SorobanAuthorizationEntry
    ) -> "TransactionBuilder":
        validators.assert_ext_operation_exists(self._deposit, self._withdraw, public_key)
        self._ext_signatures[public_key] = entry
        deposit = self.get_deposit_operation(public_key)
        if deposit is not None:
            deposit.ed25519_signature = entry
        return self

    def get_inner_signatures(self) -> dict[bytes, UTXOSignature]:
        return dict(self._inner_signatures)

    def get_provider_inner_signatures(self) -> dict[str, ProviderSignature]:
        return dict(self._provider_inner_signatures)

    def get_ext_signatures(self) -> dict[str, stellar_xdr.SorobanAuthorizationEntry]:
        return dict(self._ext_signatures)

    # Authorization entries

    def get_ext_auth_entry(
        self, public_key: str, nonce: int, expiration_ledger: int
    ) -> stellar_xdr.SorobanAuthorizationEntry:
        deposit = self.get_deposit_operation(public_key)
        if deposit is None:
            raise NoDepositOperationError(public_key)
        return deposit.get_auth_entry(
            channel_id=self._channel_id,
            asset_id=self._asset_id,
            nonce=nonce,
            expiration_ledger=expiration_ledger,
        )

    def get_auth_requirement_args(self) -> list[stellar_xdr.SCVal]:
        """Arguments the auth contract checks: each spent UTXO with its conditions."""
        if not self._spend:
            return []
        entries = [
            (
                scval.to_vec([scval.to_symbol(P256_TAG), scval.to_bytes(spend.utxo)]),
                conditions_value(spend.conditions),
            )
            for spend in order_spend_by_utxo(self._spend)
        ]
        return [scval.to_vec([map_val(entries)])]

    def get_operation_auth_entry(
        self, nonce: int, expiration_ledger: int, signed: bool = False
    ) -> stellar_xdr.SorobanAuthorizationEntry:
        return build_bundle_auth_entry(
            channel_id=self._channel_id,
            auth_id=self._auth_id,
            args=self.get_auth_requirement_args(),
            nonce=nonce,
            signature_expiration_ledger=expiration_ledger,
            signatures_xdr=self.signatures_xdr() if signed else None,
        )

    def get_signed_operation_auth_entry(self) -> stellar_xdr.SorobanAuthorizationEntry:
        """Bundle entry carrying all signatures; nonce and expiry come from the first provider."""
        if not self._provider_inner_signatures:
            raise MissingProviderSignatureError()
        first = next(iter(self._provider_inner_signatures.values()))
        return self.get_operation_auth_entry(first.nonce, first.exp, signed=True)

    def get_operation_auth_entry_hash(self, nonce: int, expiration_ledger: int) -> bytes:
        entry = self.get_operation_auth_entry(nonce, expiration_ledger)
        return build_operation_auth_entry_hash(
            network=self._network,
            root_invocation=entry.root_invocation,
            nonce=nonce,
            signature_expiration_ledger=expiration_ledger,
        )

    def signatures_xdr(self) -> str:
        if not self._provider_inner_signatures:
            raise MissingProviderSignatureError()
        return build_signatures_xdr(
            [
                SpendInnerSignature(utxo=utxo, sig=s.sig, exp=s.exp)
                for utxo, s in self._inner_signatures.items()
            ],
            [
                ProviderInnerSignature(public_key=pk, sig=s.sig, exp=s.exp)
                for pk, s in self._provider_inner_signatures.items()
            ],
        )

    # Signing

    async def sign_with_provider(
        self,
        signer: Ed25519Signer,
        expiration_ledger: int,
        nonce: Optional[int] = None,
    ) -> "TransactionBuilder":
        """Sign the bundle auth entry hash as a channel provider."""
        if nonce is None:
            nonce = generate_nonce()
        auth_hash = self.get_operation_auth_entry_hash(nonce, expiration_ledger)
        if isinstance(signer, Keypair):
            signature = signer.sign(auth_hash)
        else:
            signature = await self._external_call(signer.sign(auth_hash), "provider signing")
        return self.add_provider_inner_signature(
            signer.public_key, signature, expiration_ledger, nonce
        )

    async def sign_with_spend_utxo(
        self, utxo: UTXOKeypairBase, expiration_ledger: int
    ) -> "TransactionBuilder":
        spend = validators.assert_spend_exists(self._spend, utxo.public_key)
        if not spend.has_conditions():
            raise NoConditionsForSpendOperationError(utxo.public_key)
        digest = build_auth_payload_hash(self._channel_id, spend.conditions, expiration_ledger)
        return self.add_inner_signature(
            utxo.public_key, utxo.sign_digest(digest), expiration_ledger
        )

    async def sign_ext_with_ed25519(
        self,
        signer: Ed25519Signer,
        expiration_ledger: int,
        nonce: Optional[int] = None,
    ) -> "TransactionBuilder":
        """Sign the deposit auth entry of ``signer``'s deposit operation."""
        if nonce is None:
            nonce = generate_nonce()
        entry = self.get_ext_auth_entry(signer.public_key, nonce, expiration_ledger)
        signed = await self._external_call(
            sign_auth_entry(signer, entry, expiration_ledger, self._network),
            "deposit signing",
        )
        return self.add_ext_signed_entry(signer.public_key, signed)

    async def _external_call(self, awaitable: Awaitable[T], what: str) -> T:
        try:
            return await awaitable
        except ShieldpoolError:
            raise
        except Exception as e:
            logger.exception("External signer failed during %s", what)
            raise TransactionBuilderUnexpectedError.unexpected(
                f"External signer failed during {what}", cause=e
            ) from e

    # Output

    def get_signed_auth_entries(self) -> list[stellar_xdr.SorobanAuthorizationEntry]:
        return [*self._ext_signatures.values(), self.get_signed_operation_auth_entry()]

    def build_xdr(self) -> stellar_xdr.SCVal:
        """The ``transact`` argument: a map of operation lists keyed by kind."""
        return map_val(
            [
                (scval.to_symbol("create"), scval.to_vec([op.to_wire_value() for op in self._create])),
                (scval.to_symbol("deposit"), scval.to_vec([op.to_wire_value() for op in self._deposit])),
                (scval.to_symbol("spend"), scval.to_vec([op.to_wire_value() for op in self._spend])),
                (scval.to_symbol("withdraw"), scval.to_vec([op.to_wire_value() for op in self._withdraw])),
            ]
        )

    def get_invoke_operation(self) -> InvokeHostFunction:
        host_function = stellar_xdr.HostFunction(
            stellar_xdr.HostFunctionType.HOST_FUNCTION_TYPE_INVOKE_CONTRACT,
            invoke_contract=stellar_xdr.InvokeContractArgs(
                contract_address=Address(self._channel_id).to_xdr_sc_address(),
                function_name=stellar_xdr.SCSymbol(TRANSACT_FN.encode("utf-8")),
                args=[self.build_xdr()],
            ),
        )
        return InvokeHostFunction(host_function=host_function, auth=self.get_signed_auth_entries())

    # Transport

    def to_mlxdr(self) -> str:
        """Encode every operation, with the signatures attached so far, as one bundle."""
        return mlxdr.from_operations_bundle(self.get_operations())

    def add_operations_from_mlxdr(self, data: str) -> "TransactionBuilder":
        return self.add_operations(mlxdr.to_operations_bundle(data))

