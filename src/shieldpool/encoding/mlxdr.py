"""MLXDR: self-describing transport encoding for conditions and operations.

An MLXDR string is base64 of ``0x30 0xB0 || type byte || ScVal XDR``. The type
byte tells the reader what the value is without trying to parse it:

====  =====================
0x01  create condition
0x02  deposit condition
0x03  withdraw condition
0x04  create operation
0x05  spend operation
0x06  deposit operation
0x07  withdraw operation
0x08  operations bundle
0x09  transaction bundle
====  =====================

Operations travel as ``vec[raw operation value, signature]`` so that a
partially signed operation can be handed from one party to another. The
signature is ``void`` when absent, ``vec[bytes sig, u32 exp]`` for a spend and
the XDR bytes of the signed authorization entry for a deposit. A bundle is a
vector of operation envelopes, each stored as bytes.
"""

from __future__ import annotations

import base64
import binascii
from enum import IntEnum
from typing import Final, Optional, Sequence

from stellar_sdk import scval
from stellar_sdk import xdr as stellar_xdr

from ..domain.conditions import AnyCondition, Condition
from ..domain.errors import InvalidMLXDRError, ShieldpoolError, UnexpectedMLXDRTypeError
from ..domain.operations import AnyOperation, DepositOperation, Operation, SpendOperation
from ..domain.types import UTXOOperationType, UTXOSignature
from .scval import expect_bytes, expect_u32, expect_vec, is_void

MLXDR_PREFIX: Final[bytes] = bytes([0x30, 0xB0])
HEADER_BYTES: Final[int] = len(MLXDR_PREFIX) + 1


class MLXDRTypeByte(IntEnum):
    CREATE_CONDITION = 0x01
    DEPOSIT_CONDITION = 0x02
    WITHDRAW_CONDITION = 0x03
    CREATE_OPERATION = 0x04
    SPEND_OPERATION = 0x05
    DEPOSIT_OPERATION = 0x06
    WITHDRAW_OPERATION = 0x07
    OPERATIONS_BUNDLE = 0x08
    TRANSACTION_BUNDLE = 0x09


CONDITION_TYPES: Final[dict[UTXOOperationType, MLXDRTypeByte]] = {
    UTXOOperationType.CREATE: MLXDRTypeByte.CREATE_CONDITION,
    UTXOOperationType.DEPOSIT: MLXDRTypeByte.DEPOSIT_CONDITION,
    UTXOOperationType.WITHDRAW: MLXDRTypeByte.WITHDRAW_CONDITION,
}

OPERATION_TYPES: Final[dict[UTXOOperationType, MLXDRTypeByte]] = {
    UTXOOperationType.CREATE: MLXDRTypeByte.CREATE_OPERATION,
    UTXOOperationType.SPEND: MLXDRTypeByte.SPEND_OPERATION,
    UTXOOperationType.DEPOSIT: MLXDRTypeByte.DEPOSIT_OPERATION,
    UTXOOperationType.WITHDRAW: MLXDRTypeByte.WITHDRAW_OPERATION,
}
OPERATION_KINDS: Final[dict[MLXDRTypeByte, UTXOOperationType]] = {
    v: k for k, v in OPERATION_TYPES.items()
}


def _b64decode(data: str) -> Optional[bytes]:
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError, TypeError):
        return None


def _encode(type_byte: MLXDRTypeByte, value: stellar_xdr.SCVal) -> bytes:
    return MLXDR_PREFIX + bytes([type_byte]) + value.to_xdr_bytes()


def _to_text(raw: bytes) -> str:
    return base64.b64encode(raw).decode("utf-8")


def _decode_raw(raw: bytes) -> tuple[MLXDRTypeByte, stellar_xdr.SCVal]:
    if len(raw) < HEADER_BYTES or raw[: len(MLXDR_PREFIX)] != MLXDR_PREFIX:
        raise InvalidMLXDRError("missing MLXDR prefix")
    try:
        type_byte = MLXDRTypeByte(raw[len(MLXDR_PREFIX)])
    except ValueError as e:
        raise InvalidMLXDRError(f"unknown type byte {raw[len(MLXDR_PREFIX)]:#04x}", e) from e
    try:
        value = stellar_xdr.SCVal.from_xdr_bytes(raw[HEADER_BYTES:])
    except Exception as e:
        raise InvalidMLXDRError("payload is not a ledger value", e) from e
    return type_byte, value


def _decode(data: str) -> tuple[MLXDRTypeByte, stellar_xdr.SCVal]:
    raw = _b64decode(data)
    if raw is None:
        raise InvalidMLXDRError("not base64")
    return _decode_raw(raw)


def is_mlxdr(data: str) -> bool:
    raw = _b64decode(data)
    return raw is not None and len(raw) >= HEADER_BYTES and raw.startswith(MLXDR_PREFIX)


def get_xdr_type(data: str) -> Optional[MLXDRTypeByte]:
    """Return the type byte of an MLXDR string, or None if it is not one we know."""
    raw = _b64decode(data)
    if raw is None:
        raise InvalidMLXDRError("not base64")
    if len(raw) < HEADER_BYTES or not raw.startswith(MLXDR_PREFIX):
        raise InvalidMLXDRError("missing MLXDR prefix")
    try:
        return MLXDRTypeByte(raw[len(MLXDR_PREFIX)])
    except ValueError:
        return None


def _type_of(data: str) -> Optional[MLXDRTypeByte]:
    return get_xdr_type(data) if is_mlxdr(data) else None


def is_condition(data: str) -> bool:
    return _type_of(data) in CONDITION_TYPES.values()


def is_operation(data: str) -> bool:
    return _type_of(data) in OPERATION_TYPES.values()


def is_operations_bundle(data: str) -> bool:
    return _type_of(data) == MLXDRTypeByte.OPERATIONS_BUNDLE


def is_transaction_bundle(data: str) -> bool:
    return _type_of(data) == MLXDRTypeByte.TRANSACTION_BUNDLE


# Conditions


def from_condition(condition: AnyCondition) -> str:
    return _to_text(_encode(CONDITION_TYPES[condition.kind], condition.to_wire_value()))


def to_condition(data: str) -> AnyCondition:
    type_byte, value = _decode(data)
    if type_byte not in CONDITION_TYPES.values():
        raise UnexpectedMLXDRTypeError("condition", type_byte.name)
    condition = Condition.from_wire_value(value)
    if CONDITION_TYPES[condition.kind] != type_byte:
        raise UnexpectedMLXDRTypeError(type_byte.name, condition.kind.value)
    return condition


# Operations


def _signature_value(operation: AnyOperation) -> stellar_xdr.SCVal:
    if isinstance(operation, SpendOperation) and operation.utxo_signature is not None:
        sig = operation.utxo_signature
        return scval.to_vec([scval.to_bytes(sig.sig), scval.to_uint32(sig.exp)])
    if isinstance(operation, DepositOperation) and operation.ed25519_signature is not None:
        return scval.to_bytes(operation.ed25519_signature.to_xdr_bytes())
    return scval.to_void()


def _attach_signature(operation: AnyOperation, value: stellar_xdr.SCVal) -> None:
    if is_void(value):
        return
    if isinstance(operation, SpendOperation):
        sig_val, exp_val = expect_vec(value, "spend signature", length=2)
        operation.attach_utxo_signature(
            UTXOSignature(
                sig=expect_bytes(sig_val, "spend signature"),
                exp=expect_u32(exp_val, "spend signature expiration"),
            )
        )
        return
    if isinstance(operation, DepositOperation):
        entry = stellar_xdr.SorobanAuthorizationEntry.from_xdr_bytes(
            expect_bytes(value, "deposit signature")
        )
        operation.attach_ed25519_signature(entry)
        return
    raise InvalidMLXDRError(f"{operation.kind.value} operations carry no signature")


def _operation_bytes(operation: AnyOperation) -> bytes:
    envelope = scval.to_vec([operation.to_wire_value(), _signature_value(operation)])
    return _encode(OPERATION_TYPES[operation.kind], envelope)


def _operation_from_raw(raw: bytes) -> AnyOperation:
    type_byte, value = _decode_raw(raw)
    kind = OPERATION_KINDS.get(type_byte)
    if kind is None:
        raise UnexpectedMLXDRTypeError("operation", type_byte.name)
    try:
        op_val, sig_val = expect_vec(value, "operation envelope", length=2)
        operation = Operation.from_wire_value(kind, op_val)
        _attach_signature(operation, sig_val)
    except ShieldpoolError:
        raise
    except Exception as e:
        raise InvalidMLXDRError(f"malformed {kind.value} operation", e) from e
    return operation


def from_operation(operation: AnyOperation) -> str:
    return _to_text(_operation_bytes(operation))


def to_operation(data: str) -> AnyOperation:
    raw = _b64decode(data)
    if raw is None:
        raise InvalidMLXDRError("not base64")
    return _operation_from_raw(raw)


# Bundles


def from_operations_bundle(operations: Sequence[AnyOperation]) -> str:
    value = scval.to_vec([scval.to_bytes(_operation_bytes(op)) for op in operations])
    return _to_text(_encode(MLXDRTypeByte.OPERATIONS_BUNDLE, value))


def to_operations_bundle(data: str) -> list[AnyOperation]:
    type_byte, value = _decode(data)
    if type_byte != MLXDRTypeByte.OPERATIONS_BUNDLE:
        raise UnexpectedMLXDRTypeError(MLXDRTypeByte.OPERATIONS_BUNDLE.name, type_byte.name)
    return [
        _operation_from_raw(expect_bytes(item, "bundled operation"))
        for item in expect_vec(value, "operations bundle")
    ]
