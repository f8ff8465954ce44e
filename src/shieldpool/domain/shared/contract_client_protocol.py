"""Protocol interface for smart-contract client implementations.

The library never talks to the ledger directly. Reads and invocations go
through an injected client so callers can plug in any RPC stack, and tests
can use an in-memory fake.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from stellar_sdk import xdr as stellar_xdr


class ContractClientProtocol(Protocol):
    """Client bound to one deployed contract."""

    @property
    def contract_id(self) -> str:
        """Strkey (``C...``) of the contract this client talks to."""
        ...

    async def read(
        self, method: str, method_args: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """Simulate a read-only contract call and return its decoded result.

        Args:
            method: Contract function name
            method_args: Named arguments for the call

        Returns:
            The native value returned by the contract
        """
        ...

    async def invoke(
        self,
        method: str,
        method_args: Optional[Mapping[str, Any]] = None,
        auth_entries: Optional[Sequence[stellar_xdr.SorobanAuthorizationEntry]] = None,
        config: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Invoke a state-changing contract call.

        Args:
            method: Contract function name
            method_args: Named arguments for the call
            auth_entries: Pre-signed authorization entries to attach
            config: Transaction options (source, fee, timeout...) passed through

        Returns:
            Whatever the client reports for the submitted call
        """
        ...
