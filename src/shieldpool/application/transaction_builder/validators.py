"""Pure validation functions for transaction building.

These functions contain the insertion rules of the builder and can be tested
in isolation without building signatures or ledger values.
"""

from __future__ import annotations

from typing import Optional, Sequence

from ...domain.errors import (
    BuilderAmountTooLowError,
    BuilderUnsupportedOperationTypeError,
    DuplicateCreateOperationError,
    DuplicateDepositOperationError,
    DuplicateSpendOperationError,
    DuplicateWithdrawOperationError,
    NoExtOperationError,
    NoSpendOperationError,
)
from ...domain.operations import (
    AnyOperation,
    CreateOperation,
    DepositOperation,
    SpendOperation,
    WithdrawOperation,
)


def assert_no_duplicate_create(
    existing: Sequence[CreateOperation], op: CreateOperation
) -> None:
    """A UTXO may be created at most once per bundle.

    Raises:
        DuplicateCreateOperationError: If a create for the same UTXO exists.
    """
    if any(c.utxo == op.utxo for c in existing):
        raise DuplicateCreateOperationError(op.utxo)


def assert_no_duplicate_spend(
    existing: Sequence[SpendOperation], op: SpendOperation
) -> None:
    """A UTXO may be spent at most once per bundle.

    Raises:
        DuplicateSpendOperationError: If a spend for the same UTXO exists.
    """
    if any(s.utxo == op.utxo for s in existing):
        raise DuplicateSpendOperationError(op.utxo)


def assert_no_duplicate_deposit(
    existing: Sequence[DepositOperation], op: DepositOperation
) -> None:
    if any(d.public_key == op.public_key for d in existing):
        raise DuplicateDepositOperationError(op.public_key)


def assert_no_duplicate_withdraw(
    existing: Sequence[WithdrawOperation], op: WithdrawOperation
) -> None:
    if any(w.public_key == op.public_key for w in existing):
        raise DuplicateWithdrawOperationError(op.public_key)


def assert_positive_amount(amount: int) -> None:
    """Raises:
    BuilderAmountTooLowError: If ``amount`` is zero or negative.
    """
    if amount <= 0:
        raise BuilderAmountTooLowError(amount)


def find_spend(spends: Sequence[SpendOperation], utxo: bytes) -> Optional[SpendOperation]:
    return next((s for s in spends if s.utxo == utxo), None)


def assert_spend_exists(spends: Sequence[SpendOperation], utxo: bytes) -> SpendOperation:
    """Return the spend for ``utxo``.

    Raises:
        NoSpendOperationError: If no spend for ``utxo`` was added.
    """
    spend = find_spend(spends, utxo)
    if spend is None:
        raise NoSpendOperationError(utxo)
    return spend


def assert_ext_operation_exists(
    deposits: Sequence[DepositOperation],
    withdraws: Sequence[WithdrawOperation],
    public_key: str,
) -> None:
    """Raises:
    NoExtOperationError: If neither a deposit nor a withdraw targets ``public_key``.
    """
    if not any(d.public_key == public_key for d in deposits) and not any(
        w.public_key == public_key for w in withdraws
    ):
        raise NoExtOperationError(public_key)


def assert_can_add(
    op: AnyOperation,
    creates: Sequence[CreateOperation],
    spends: Sequence[SpendOperation],
    deposits: Sequence[DepositOperation],
    withdraws: Sequence[WithdrawOperation],
) -> None:
    """Check every insertion rule for ``op`` against the operations already present.

    Raises:
        DuplicateCreateOperationError: If ``op`` creates an already created UTXO.
        DuplicateSpendOperationError: If ``op`` spends an already spent UTXO.
        DuplicateDepositOperationError: If ``op`` repeats a depositor.
        DuplicateWithdrawOperationError: If ``op`` repeats a withdraw target.
        BuilderAmountTooLowError: If ``op`` carries a non-positive amount.
        BuilderUnsupportedOperationTypeError: If ``op`` is not an operation.
    """
    if isinstance(op, CreateOperation):
        assert_no_duplicate_create(creates, op)
        assert_positive_amount(op.amount)
    elif isinstance(op, SpendOperation):
        assert_no_duplicate_spend(spends, op)
    elif isinstance(op, DepositOperation):
        assert_no_duplicate_deposit(deposits, op)
        assert_positive_amount(op.amount)
    elif isinstance(op, WithdrawOperation):
        assert_no_duplicate_withdraw(withdraws, op)
        assert_positive_amount(op.amount)
    else:
        raise BuilderUnsupportedOperationTypeError(getattr(op, "kind", type(op).__name__))


def assert_can_add_all(
    ops: Sequence[AnyOperation],
    creates: Sequence[CreateOperation],
    spends: Sequence[SpendOperation],
    deposits: Sequence[DepositOperation],
    withdraws: Sequence[WithdrawOperation],
) -> None:
    """Check a batch against the present operations and against itself.

    Raises:
        ShieldpoolError: The first insertion error any operation of the batch hits.
    """
    staged: dict[type, list] = {
        CreateOperation: list(creates),
        SpendOperation: list(spends),
        DepositOperation: list(deposits),
        WithdrawOperation: list(withdraws),
    }
    for op in ops:
        assert_can_add(
            op,
            staged[CreateOperation],
            staged[SpendOperation],
            staged[DepositOperation],
            staged[WithdrawOperation],
        )
        staged[type(op)].append(op)
