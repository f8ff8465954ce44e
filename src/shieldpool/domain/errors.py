"""Domain-specific exceptions.

Every error raised by the library derives from :class:`ShieldpoolError` and
carries a stable code (``DER_001``, ``TBU_008``...) so callers can branch on
the failure without parsing messages. The classes inherit from ``Exception``
rather than ``ValueError`` so they propagate untouched out of pydantic
validators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class Diagnostic:
    """Human-oriented hints attached to an error."""

    root_cause: str
    suggestion: str
    materials: list[str] = field(default_factory=list)


class ShieldpoolError(Exception):
    """Base error with code, domain and structured context."""

    domain: str = "general"
    source: str = "shieldpool"
    code: str = "GEN_000"

    def __init__(
        self,
        message: str,
        *,
        details: str = "",
        diagnostic: Optional[Diagnostic] = None,
        data: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
        code: Optional[str] = None,
        domain: Optional[str] = None,
        source: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.diagnostic = diagnostic
        self.data = data or {}
        self.cause = cause
        if code is not None:
            self.code = code
        if domain is not None:
            self.domain = domain
        if source is not None:
            self.source = source
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "domain": self.domain,
            "source": self.source,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "data": self.data,
        }
        if self.diagnostic is not None:
            out["diagnostic"] = {
                "root_cause": self.diagnostic.root_cause,
                "suggestion": self.diagnostic.suggestion,
                "materials": list(self.diagnostic.materials),
            }
        if self.cause is not None:
            out["cause"] = {"type": type(self.cause).__name__, "message": str(self.cause)}
        return out

    @staticmethod
    def is_error(value: object) -> bool:
        return isinstance(value, ShieldpoolError)

    @classmethod
    def unexpected(
        cls,
        message: str = "Unexpected error",
        *,
        details: str = "An unexpected error occurred",
        cause: Optional[BaseException] = None,
        data: Optional[dict[str, Any]] = None,
    ) -> "ShieldpoolError":
        """Build an error of the ``*_000`` code for this class's domain."""
        prefix = cls.code.split("_", 1)[0]
        return cls(
            message,
            details=details,
            cause=cause,
            data=data,
            code=f"{prefix}_000",
        )

    @classmethod
    def from_unknown(
        cls, error: BaseException, *, context: str = ""
    ) -> "ShieldpoolError":
        """Return ``error`` if it already is a library error, else wrap it."""
        if isinstance(error, ShieldpoolError):
            return error
        message = f"{context}: {error}" if context else str(error)
        return cls.unexpected(message, cause=error)


# Derivation


class DerivationError(ShieldpoolError):
    domain = "derivation"
    source = "shieldpool/derivation"
    code = "DER_000"


class PropertyAlreadySetError(DerivationError):
    """Raised when a derivator property is configured a second time."""

    code = "DER_001"

    def __init__(self, prop: str, value: object = None) -> None:
        super().__init__(
            f"Property already set: {prop}",
            details=f"The property '{prop}' can only be set once per derivator.",
            diagnostic=Diagnostic(
                root_cause="The derivator was configured twice.",
                suggestion="Create a new derivator instead of reconfiguring one.",
            ),
            data={"property": prop, "value": value},
        )


class PropertyNotSetError(DerivationError):
    code = "DER_002"

    def __init__(self, prop: str) -> None:
        super().__init__(
            f"Property not set: {prop}",
            details=f"The property '{prop}' must be set before it can be read.",
            data={"property": prop},
        )


class DerivatorNotConfiguredError(DerivationError):
    """Raised when deriving before both context and root are set."""

    code = "DER_003"

    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            "Derivator is not configured",
            details=f"Missing properties: {', '.join(missing)}",
            diagnostic=Diagnostic(
                root_cause="Context and root must both be set before deriving.",
                suggestion="Call with_context() and with_root() first.",
            ),
            data={"missing": missing},
        )


# UTXO keypair


class UTXOKeypairError(ShieldpoolError):
    domain = "utxo-keypair"
    source = "shieldpool/utxo-keypair"
    code = "UKP_000"


class UTXOKeypairUnexpectedError(UTXOKeypairError):
    code = "UKP_000"


class KeypairDerivatorNotConfiguredError(UTXOKeypairError):
    code = "UKP_001"

    def __init__(self) -> None:
        super().__init__(
            "Derivator is not configured",
            details="A UTXO keypair can only be derived from a fully configured derivator.",
        )


class MissingBalanceFetcherError(UTXOKeypairError):
    code = "UKP_002"

    def __init__(self) -> None:
        super().__init__(
            "Missing balance fetcher",
            details="load() requires a balance fetcher to be injected.",
        )


# Operations and conditions


class OperationError(ShieldpoolError):
    domain = "operation"
    source = "shieldpool/operation"
    code = "OPR_000"


class OperationUnexpectedError(OperationError):
    code = "OPR_000"


class AmountTooLowError(OperationError):
    code = "OPR_002"

    def __init__(self, amount: int) -> None:
        super().__init__(
            f"Amount too low: amount must be greater than zero, got {amount}",
            data={"amount": amount},
        )


class InvalidEd25519PublicKeyError(OperationError):
    code = "OPR_003"

    def __init__(self, public_key: object) -> None:
        super().__init__(
            f"invalid Ed25519 public key: {public_key!r}",
            data={"public_key": public_key},
        )


class CannotConvertSpendOperationError(OperationError):
    code = "OPR_004"

    def __init__(self) -> None:
        super().__init__(
            "Cannot convert a spend operation to a condition",
            details="Only create, deposit and withdraw operations map to conditions.",
        )


class UnsupportedOperationTypeError(OperationError):
    code = "OPR_005"

    def __init__(self, kind: object) -> None:
        super().__init__(f"Unsupported operation type: {kind}", data={"kind": kind})


class OperationAlreadySignedError(OperationError):
    code = "OPR_010"

    def __init__(self, kind: str) -> None:
        super().__init__(
            f"{kind} operation is already signed",
            details="A signature slot can only be filled once.",
            data={"kind": kind},
        )


class OperationNotSignedError(OperationError):
    code = "OPR_011"

    def __init__(self, kind: str) -> None:
        super().__init__(f"{kind} operation is not signed", data={"kind": kind})


class InvalidUTXOPublicKeyError(OperationError):
    code = "OPR_012"

    def __init__(self, length: int) -> None:
        super().__init__(
            "invalid UTXO public key: expected a 65-byte uncompressed P-256 point",
            data={"length": length},
        )


class InvalidWireValueError(OperationError):
    """Raised when a ledger value does not have the expected structure."""

    code = "OPR_013"

    def __init__(self, what: str, reason: str) -> None:
        super().__init__(f"Invalid {what} value: {reason}", data={"what": what})


class SignerMismatchError(OperationError):
    code = "OPR_014"

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(
            "Signer does not own this operation",
            data={"expected": expected, "actual": actual},
        )


# MLXDR


class MLXDRError(ShieldpoolError):
    domain = "mlxdr"
    source = "shieldpool/mlxdr"
    code = "MLX_000"


class InvalidMLXDRError(MLXDRError):
    code = "MLX_001"

    def __init__(self, reason: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Data is not valid MLXDR: {reason}", cause=cause)


class UnexpectedMLXDRTypeError(MLXDRError):
    code = "MLX_002"

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(
            f"Unexpected MLXDR type: expected {expected}, got {actual}",
            data={"expected": expected, "actual": actual},
        )


# Transaction builder


class TransactionBuilderError(ShieldpoolError):
    domain = "transaction-builder"
    source = "shieldpool/transaction-builder"
    code = "TBU_000"


class TransactionBuilderUnexpectedError(TransactionBuilderError):
    code = "TBU_000"


class BuilderPropertyNotSetError(TransactionBuilderError):
    code = "TBU_001"

    def __init__(self, prop: str) -> None:
        super().__init__(f"Property not set: {prop}", data={"property": prop})


class BuilderUnsupportedOperationTypeError(TransactionBuilderError):
    code = "TBU_002"

    def __init__(self, kind: object) -> None:
        super().__init__(f"Unsupported operation type: {kind}", data={"kind": kind})


class DuplicateCreateOperationError(TransactionBuilderError):
    code = "TBU_003"

    def __init__(self, utxo: bytes) -> None:
        super().__init__(
            "Create operation for this UTXO already exists",
            data={"utxo": utxo.hex()},
        )


class DuplicateSpendOperationError(TransactionBuilderError):
    code = "TBU_004"

    def __init__(self, utxo: bytes) -> None:
        super().__init__(
            "Spend operation for this UTXO already exists",
            data={"utxo": utxo.hex()},
        )


class DuplicateDepositOperationError(TransactionBuilderError):
    code = "TBU_005"

    def __init__(self, public_key: str) -> None:
        super().__init__(
            "Deposit operation for this public key already exists",
            data={"public_key": public_key},
        )


class DuplicateWithdrawOperationError(TransactionBuilderError):
    code = "TBU_006"

    def __init__(self, public_key: str) -> None:
        super().__init__(
            "Withdraw operation for this public key already exists",
            data={"public_key": public_key},
        )


class BuilderAmountTooLowError(TransactionBuilderError):
    code = "TBU_007"

    def __init__(self, amount: int) -> None:
        super().__init__(
            f"Amount too low: amount must be greater than zero, got {amount}",
            data={"amount": amount},
        )


class NoSpendOperationError(TransactionBuilderError):
    code = "TBU_008"

    def __init__(self, utxo: bytes) -> None:
        super().__init__(
            "No spend operation for this UTXO",
            data={"utxo": utxo.hex()},
        )


class NoDepositOperationError(TransactionBuilderError):
    code = "TBU_009"

    def __init__(self, public_key: str) -> None:
        super().__init__(
            "No deposit operation for this public key",
            data={"public_key": public_key},
        )


class NoExtOperationError(TransactionBuilderError):
    code = "TBU_011"

    def __init__(self, public_key: str) -> None:
        super().__init__(
            "No deposit or withdraw operation for this public key",
            data={"public_key": public_key},
        )


class MissingProviderSignatureError(TransactionBuilderError):
    code = "TBU_012"

    def __init__(self) -> None:
        super().__init__(
            "Missing provider signature",
            details="At least one provider must sign the bundle before it is submitted.",
        )


class NoConditionsForSpendOperationError(TransactionBuilderError):
    code = "TBU_013"

    def __init__(self, utxo: bytes) -> None:
        super().__init__(
            "Spend operation has no conditions",
            data={"utxo": utxo.hex()},
        )


# UTXO based account


class UTXOAccountError(ShieldpoolError):
    domain = "utxo-account"
    source = "shieldpool/utxo-account"
    code = "UBA_000"


class UTXOAccountUnexpectedError(UTXOAccountError):
    code = "UBA_000"


class NegativeIndexError(UTXOAccountError):
    code = "UBA_001"

    def __init__(self, index: int) -> None:
        super().__init__(
            f"Start index must be non-negative, got {index}",
            data={"index": index},
        )


class UTXOToDeriveTooLowError(UTXOAccountError):
    code = "UBA_002"

    def __init__(self, count: int) -> None:
        super().__init__(
            f"Number of UTXOs to derive must be at least 1, got {count}",
            data={"count": count},
        )


class MissingBatchFetchFunctionError(UTXOAccountError):
    code = "UBA_003"

    def __init__(self) -> None:
        super().__init__(
            "Missing batch balance fetcher",
            details="batch_load() requires a batch balance fetcher to be injected.",
        )


class MissingUTXOForIndexError(UTXOAccountError):
    code = "UBA_004"

    def __init__(self, index: int) -> None:
        super().__init__(f"No UTXO tracked at index {index}", data={"index": index})


class UTXOToReserveTooLowError(UTXOAccountError):
    code = "UBA_005"

    def __init__(self, count: int) -> None:
        super().__init__(
            f"Number of UTXOs to reserve must be at least 1, got {count}",
            data={"count": count},
        )


# Privacy channel


class PrivacyChannelError(ShieldpoolError):
    domain = "privacy-channel"
    source = "shieldpool/privacy-channel"
    code = "PCH_000"


class PrivacyChannelUnexpectedError(PrivacyChannelError):
    code = "PCH_000"


class InvalidContractIdError(PrivacyChannelError):
    code = "PCH_001"

    def __init__(self, contract_id: str) -> None:
        super().__init__(
            f"Invalid contract id: {contract_id}",
            data={"contract_id": contract_id},
        )


ERRORS: dict[str, type[ShieldpoolError]] = {
    cls.code: cls
    for cls in (
        PropertyAlreadySetError,
        PropertyNotSetError,
        DerivatorNotConfiguredError,
        UTXOKeypairUnexpectedError,
        KeypairDerivatorNotConfiguredError,
        MissingBalanceFetcherError,
        OperationUnexpectedError,
        AmountTooLowError,
        InvalidEd25519PublicKeyError,
        CannotConvertSpendOperationError,
        UnsupportedOperationTypeError,
        OperationAlreadySignedError,
        OperationNotSignedError,
        InvalidUTXOPublicKeyError,
        InvalidWireValueError,
        SignerMismatchError,
        InvalidMLXDRError,
        UnexpectedMLXDRTypeError,
        TransactionBuilderUnexpectedError,
        BuilderPropertyNotSetError,
        BuilderUnsupportedOperationTypeError,
        DuplicateCreateOperationError,
        DuplicateSpendOperationError,
        DuplicateDepositOperationError,
        DuplicateWithdrawOperationError,
        BuilderAmountTooLowError,
        NoSpendOperationError,
        NoDepositOperationError,
        NoExtOperationError,
        MissingProviderSignatureError,
        NoConditionsForSpendOperationError,
        UTXOAccountUnexpectedError,
        NegativeIndexError,
        UTXOToDeriveTooLowError,
        MissingBatchFetchFunctionError,
        MissingUTXOForIndexError,
        UTXOToReserveTooLowError,
        PrivacyChannelUnexpectedError,
        InvalidContractIdError,
    )
}
