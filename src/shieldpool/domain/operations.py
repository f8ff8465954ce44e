"""Operations executed by a privacy channel ``transact`` call.

* ``Create`` mints a new UTXO with an amount.
* ``Spend`` consumes a UTXO; its owner signs the conditions it commits to.
* ``ExtDeposit`` pulls funds from an external account into the channel; the
  depositor signs a Soroban authorization entry.
* ``ExtWithdraw`` pays funds out to an external account.
"""

from __future__ import annotations

import logging
from typing import Annotated, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from stellar_sdk import Keypair, scval
from stellar_sdk import xdr as stellar_xdr
from stellar_sdk.auth import authorize_entry

from .auth.entries import build_deposit_auth_entry, generate_nonce
from .auth.payload import build_auth_payload_hash
from .conditions import (
    AnyCondition,
    Condition,
    CreateCondition,
    DepositCondition,
    WithdrawCondition,
    validate_amount,
    validate_ed25519_public_key,
    validate_utxo_public_key,
)
from ..encoding.scval import expect_address, expect_bytes, expect_i128, expect_vec
from .errors import (
    CannotConvertSpendOperationError,
    OperationAlreadySignedError,
    OperationNotSignedError,
    SignerMismatchError,
    UnsupportedOperationTypeError,
)
from .shared.signer_protocol import Ed25519Signer
from .types import UTXOOperationType, UTXOSignature
from .utxo_keypair import UTXOKeypairBase

logger = logging.getLogger(__name__)

ConditionField = Annotated[AnyCondition, Field(discriminator="kind")]


def conditions_value(conditions: Sequence[AnyCondition]) -> stellar_xdr.SCVal:
    return scval.to_vec([c.to_wire_value() for c in conditions])


def conditions_from_value(value: stellar_xdr.SCVal) -> list[AnyCondition]:
    return [Condition.from_wire_value(v) for v in expect_vec(value, "conditions")]


class _BaseOperation(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    kind: UTXOOperationType

    def to_wire_value(self) -> stellar_xdr.SCVal:
        raise NotImplementedError

    def to_xdr(self) -> str:
        return self.to_wire_value().to_xdr()

    def to_mlxdr(self) -> str:
        from ..encoding import mlxdr

        return mlxdr.from_operation(self)  # type: ignore[arg-type]

    def is_create(self) -> bool:
        return self.kind == UTXOOperationType.CREATE

    def is_spend(self) -> bool:
        return self.kind == UTXOOperationType.SPEND

    def is_deposit(self) -> bool:
        return self.kind == UTXOOperationType.DEPOSIT

    def is_withdraw(self) -> bool:
        return self.kind == UTXOOperationType.WITHDRAW


class _ConditionedOperation(_BaseOperation):
    conditions: list[ConditionField] = Field(default_factory=list)

    def get_conditions(self) -> list[AnyCondition]:
        return list(self.conditions)

    def add_condition(self, condition: AnyCondition) -> "_ConditionedOperation":
        self.conditions.append(condition)
        return self

    def add_conditions(self, conditions: Sequence[AnyCondition]) -> "_ConditionedOperation":
        self.conditions.extend(conditions)
        return self

    def has_conditions(self) -> bool:
        return len(self.conditions) > 0


class CreateOperation(_BaseOperation):
    kind: Literal[UTXOOperationType.CREATE] = UTXOOperationType.CREATE
    utxo: bytes
    amount: int

    @field_validator("utxo")
    @classmethod
    def check_utxo(cls, v: bytes) -> bytes:
        return validate_utxo_public_key(v)

    @field_validator("amount")
    @classmethod
    def check_amount(cls, v: int) -> int:
        return validate_amount(v)

    def to_condition(self) -> CreateCondition:
        return Condition.create(self.utxo, self.amount)

    def to_wire_value(self) -> stellar_xdr.SCVal:
        return scval.to_vec([scval.to_bytes(self.utxo), scval.to_int128(self.amount)])


class SpendOperation(_ConditionedOperation):
    kind: Literal[UTXOOperationType.SPEND] = UTXOOperationType.SPEND
    utxo: bytes
    utxo_signature: Optional[UTXOSignature] = None

    @field_validator("utxo")
    @classmethod
    def check_utxo(cls, v: bytes) -> bytes:
        return validate_utxo_public_key(v)

    def to_condition(self) -> AnyCondition:
        raise CannotConvertSpendOperationError()

    def to_wire_value(self) -> stellar_xdr.SCVal:
        return scval.to_vec([scval.to_bytes(self.utxo), conditions_value(self.conditions)])

    def is_signed_by_utxo(self) -> bool:
        return self.utxo_signature is not None

    def get_utxo_signature(self) -> UTXOSignature:
        if self.utxo_signature is None:
            raise OperationNotSignedError(self.kind.value)
        return self.utxo_signature

    def attach_utxo_signature(self, signature: UTXOSignature) -> "SpendOperation":
        if self.utxo_signature is not None:
            raise OperationAlreadySignedError(self.kind.value)
        self.utxo_signature = signature
        return self

    async def sign_with_utxo(
        self,
        keypair: UTXOKeypairBase,
        channel_id: str,
        expiration_ledger: int,
    ) -> "SpendOperation":
        """Sign this spend's conditions with the UTXO's own key."""
        if self.utxo_signature is not None:
            raise OperationAlreadySignedError(self.kind.value)
        if keypair.public_key != self.utxo:
            raise SignerMismatchError(self.utxo.hex(), keypair.public_key.hex())
        digest = build_auth_payload_hash(channel_id, self.conditions, expiration_ledger)
        return self.attach_utxo_signature(
            UTXOSignature(sig=keypair.sign_digest(digest), exp=expiration_ledger)
        )


class _ExternalOperation(_ConditionedOperation):
    public_key: str
    amount: int

    @field_validator("public_key", mode="before")
    @classmethod
    def check_public_key(cls, v: str) -> str:
        return validate_ed25519_public_key(v)

    @field_validator("amount")
    @classmethod
    def check_amount(cls, v: int) -> int:
        return validate_amount(v)

    def to_wire_value(self) -> stellar_xdr.SCVal:
        return scval.to_vec(
            [
                scval.to_address(self.public_key),
                scval.to_int128(self.amount),
                conditions_value(self.conditions),
            ]
        )


class DepositOperation(_ExternalOperation):
    kind: Literal[UTXOOperationType.DEPOSIT] = UTXOOperationType.DEPOSIT
    ed25519_signature: Optional[stellar_xdr.SorobanAuthorizationEntry] = None

    def to_condition(self) -> DepositCondition:
        return Condition.deposit(self.public_key, self.amount)

    def is_signed_by_ed25519(self) -> bool:
        return self.ed25519_signature is not None

    def get_ed25519_signature(self) -> stellar_xdr.SorobanAuthorizationEntry:
        if self.ed25519_signature is None:
            raise OperationNotSignedError(self.kind.value)
        return self.ed25519_signature

    def attach_ed25519_signature(
        self, entry: stellar_xdr.SorobanAuthorizationEntry
    ) -> "DepositOperation":
        if self.ed25519_signature is not None:
            raise OperationAlreadySignedError(self.kind.value)
        self.ed25519_signature = entry
        return self

    def get_auth_entry(
        self,
        *,
        channel_id: str,
        asset_id: str,
        nonce: int,
        expiration_ledger: int,
    ) -> stellar_xdr.SorobanAuthorizationEntry:
        """Unsigned authorization entry the depositor has to sign."""
        return build_deposit_auth_entry(
            channel_id=channel_id,
            asset_id=asset_id,
            depositor=self.public_key,
            amount=self.amount,
            conditions=[conditions_value(self.conditions)],
            nonce=nonce,
            signature_expiration_ledger=expiration_ledger,
        )

    async def sign_with_ed25519(
        self,
        signer: Ed25519Signer,
        expiration_ledger: int,
        channel_id: str,
        asset_id: str,
        network: str,
        nonce: Optional[int] = None,
    ) -> "DepositOperation":
        if self.ed25519_signature is not None:
            raise OperationAlreadySignedError(self.kind.value)
        if signer.public_key != self.public_key:
            raise SignerMismatchError(self.public_key, signer.public_key)
        entry = self.get_auth_entry(
            channel_id=channel_id,
            asset_id=asset_id,
            nonce=generate_nonce() if nonce is None else nonce,
            expiration_ledger=expiration_ledger,
        )
        signed = await sign_auth_entry(signer, entry, expiration_ledger, network)
        logger.debug("Deposit from %s signed until ledger %s", self.public_key, expiration_ledger)
        return self.attach_ed25519_signature(signed)


class WithdrawOperation(_ExternalOperation):
    kind: Literal[UTXOOperationType.WITHDRAW] = UTXOOperationType.WITHDRAW

    def to_condition(self) -> WithdrawCondition:
        return Condition.withdraw(self.public_key, self.amount)


AnyOperation = Union[CreateOperation, SpendOperation, DepositOperation, WithdrawOperation]


async def sign_auth_entry(
    signer: Ed25519Signer,
    entry: stellar_xdr.SorobanAuthorizationEntry,
    expiration_ledger: int,
    network: str,
) -> stellar_xdr.SorobanAuthorizationEntry:
    """Sign an address-credential entry with a local keypair or an external signer."""
    if isinstance(signer, Keypair):
        return authorize_entry(entry, signer, expiration_ledger, network)
    return await signer.sign_soroban_auth_entry(entry, expiration_ledger, network)


class Operation:
    """Factories for the four operation kinds."""

    @staticmethod
    def create(utxo: bytes, amount: int) -> CreateOperation:
        return CreateOperation(utxo=utxo, amount=amount)

    @staticmethod
    def spend(utxo: bytes) -> SpendOperation:
        return SpendOperation(utxo=utxo)

    @staticmethod
    def deposit(public_key: str, amount: int) -> DepositOperation:
        return DepositOperation(public_key=public_key, amount=amount)

    @staticmethod
    def withdraw(public_key: str, amount: int) -> WithdrawOperation:
        return WithdrawOperation(public_key=public_key, amount=amount)

    @staticmethod
    def from_wire_value(
        kind: UTXOOperationType, value: stellar_xdr.SCVal
    ) -> AnyOperation:
        """Decode a raw operation value; the kind is not part of the value itself."""
        if kind == UTXOOperationType.CREATE:
            utxo_val, amount_val = expect_vec(value, "create operation", length=2)
            return Operation.create(
                expect_bytes(utxo_val, "create utxo"),
                expect_i128(amount_val, "create amount"),
            )
        if kind == UTXOOperationType.SPEND:
            utxo_val, conditions_val = expect_vec(value, "spend operation", length=2)
            spend = Operation.spend(expect_bytes(utxo_val, "spend utxo"))
            spend.add_conditions(conditions_from_value(conditions_val))
            return spend
        if kind in (UTXOOperationType.DEPOSIT, UTXOOperationType.WITHDRAW):
            address_val, amount_val, conditions_val = expect_vec(
                value, f"{kind.value} operation", length=3
            )
            factory = Operation.deposit if kind == UTXOOperationType.DEPOSIT else Operation.withdraw
            op = factory(
                expect_address(address_val, "operation address"),
                expect_i128(amount_val, "operation amount"),
            )
            op.add_conditions(conditions_from_value(conditions_val))
            return op
        raise UnsupportedOperationTypeError(kind)

    @staticmethod
    def from_mlxdr(data: str) -> AnyOperation:
        from ..encoding import mlxdr

        return mlxdr.to_operation(data)
