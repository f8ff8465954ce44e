"""Soroban authorization entries used by the privacy channel.

Two entries matter: the *deposit* entry, signed by an external account to
allow the channel to pull funds from it, and the *bundle* entry, carried by
the auth contract with the aggregated P-256 and provider signatures.
"""

from __future__ import annotations

import secrets
from typing import Optional, Sequence

from stellar_sdk import Address, Network, scval
from stellar_sdk import xdr as stellar_xdr

from ...crypto.p256 import sha256

TRANSACT_FN = "transact"
TRANSFER_FN = "transfer"

INT64_MAX = 0x7FFF_FFFF_FFFF_FFFF


def generate_nonce() -> int:
    """Random non-negative int64 for authorization credentials."""
    return int.from_bytes(secrets.token_bytes(8), "big") & INT64_MAX


def contract_invocation(
    contract_id: str,
    function_name: str,
    args: Sequence[stellar_xdr.SCVal],
    sub_invocations: Sequence[stellar_xdr.SorobanAuthorizedInvocation] = (),
) -> stellar_xdr.SorobanAuthorizedInvocation:
    return stellar_xdr.SorobanAuthorizedInvocation(
        function=stellar_xdr.SorobanAuthorizedFunction(
            stellar_xdr.SorobanAuthorizedFunctionType.SOROBAN_AUTHORIZED_FUNCTION_TYPE_CONTRACT_FN,
            contract_fn=stellar_xdr.InvokeContractArgs(
                contract_address=Address(contract_id).to_xdr_sc_address(),
                function_name=stellar_xdr.SCSymbol(function_name.encode("utf-8")),
                args=list(args),
            ),
        ),
        sub_invocations=list(sub_invocations),
    )


def address_auth_entry(
    address: str,
    nonce: int,
    signature_expiration_ledger: int,
    root_invocation: stellar_xdr.SorobanAuthorizedInvocation,
    signature: Optional[stellar_xdr.SCVal] = None,
) -> stellar_xdr.SorobanAuthorizationEntry:
    return stellar_xdr.SorobanAuthorizationEntry(
        credentials=stellar_xdr.SorobanCredentials(
            stellar_xdr.SorobanCredentialsType.SOROBAN_CREDENTIALS_ADDRESS,
            address=stellar_xdr.SorobanAddressCredentials(
                address=Address(address).to_xdr_sc_address(),
                nonce=stellar_xdr.Int64(nonce),
                signature_expiration_ledger=stellar_xdr.Uint32(signature_expiration_ledger),
                signature=signature if signature is not None else scval.to_void(),
            ),
        ),
        root_invocation=root_invocation,
    )


def build_deposit_auth_entry(
    *,
    channel_id: str,
    asset_id: str,
    depositor: str,
    amount: int,
    conditions: Sequence[stellar_xdr.SCVal],
    nonce: int,
    signature_expiration_ledger: int,
) -> stellar_xdr.SorobanAuthorizationEntry:
    """Unsigned entry authorizing ``channel.transact`` and the asset transfer it triggers.

    ``conditions`` are the call arguments of ``transact`` as the depositor
    sees them, normally a single vector of the deposit's condition values.
    """
    transfer = contract_invocation(
        asset_id,
        TRANSFER_FN,
        [
            scval.to_address(depositor),
            scval.to_address(channel_id),
            scval.to_int128(amount),
        ],
    )
    root = contract_invocation(channel_id, TRANSACT_FN, conditions, [transfer])
    return address_auth_entry(depositor, nonce, signature_expiration_ledger, root)


def build_bundle_auth_entry(
    *,
    channel_id: str,
    auth_id: str,
    args: Sequence[stellar_xdr.SCVal],
    nonce: int,
    signature_expiration_ledger: int,
    signatures_xdr: Optional[str] = None,
) -> stellar_xdr.SorobanAuthorizationEntry:
    """Entry whose credentials belong to the auth contract.

    When ``signatures_xdr`` is given it is decoded and placed in the
    credentials signature slot; otherwise the slot is void.
    """
    root = contract_invocation(channel_id, TRANSACT_FN, args)
    signature = (
        stellar_xdr.SCVal.from_xdr(signatures_xdr) if signatures_xdr is not None else None
    )
    return address_auth_entry(auth_id, nonce, signature_expiration_ledger, root, signature)


def build_operation_auth_entry_hash(
    *,
    network: str,
    root_invocation: stellar_xdr.SorobanAuthorizedInvocation,
    nonce: int,
    signature_expiration_ledger: int,
) -> bytes:
    """SHA-256 of the Soroban authorization preimage for ``root_invocation``."""
    preimage = stellar_xdr.HashIDPreimage(
        stellar_xdr.EnvelopeType.ENVELOPE_TYPE_SOROBAN_AUTHORIZATION,
        soroban_authorization=stellar_xdr.HashIDPreimageSorobanAuthorization(
            network_id=stellar_xdr.Hash(Network(network).network_id()),
            nonce=stellar_xdr.Int64(nonce),
            signature_expiration_ledger=stellar_xdr.Uint32(signature_expiration_ledger),
            invocation=root_invocation,
        ),
    )
    return sha256(preimage.to_xdr_bytes())
