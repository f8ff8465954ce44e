"""In-memory implementation of ContractClientProtocol for unit testing."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from stellar_sdk import xdr as stellar_xdr


class FakeContractClient:
    """Contract client that answers channel reads from a balance table.

    Every call is recorded in ``calls`` so tests can assert on the method and
    arguments the library sent. Set ``error`` to make the next calls fail.
    """

    def __init__(self, contract_id: str) -> None:
        self._contract_id = contract_id
        self.balances: dict[bytes, int] = {}
        self.providers: set[str] = set()
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.error: Optional[Exception] = None
        self.invoke_result: Any = {"status": "SUCCESS"}
        self.last_auth_entries: Optional[list[stellar_xdr.SorobanAuthorizationEntry]] = None
        self.last_config: Optional[Mapping[str, Any]] = None

    @property
    def contract_id(self) -> str:
        return self._contract_id

    async def read(
        self, method: str, method_args: Optional[Mapping[str, Any]] = None
    ) -> Any:
        args = dict(method_args or {})
        self.calls.append(("read", method, args))
        if self.error is not None:
            raise self.error
        if method == "utxo_balance":
            return self.balances.get(bytes(args["utxo"]), 0)
        if method == "utxo_balances":
            return [self.balances.get(bytes(utxo), 0) for utxo in args["utxos"]]
        if method == "is_provider":
            return args["provider"] in self.providers
        raise KeyError(f"Unknown read method: {method}")

    async def invoke(
        self,
        method: str,
        method_args: Optional[Mapping[str, Any]] = None,
        auth_entries: Optional[Sequence[stellar_xdr.SorobanAuthorizationEntry]] = None,
        config: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        self.calls.append(("invoke", method, dict(method_args or {})))
        if self.error is not None:
            raise self.error
        self.last_auth_entries = list(auth_entries or [])
        self.last_config = config
        return self.invoke_result
