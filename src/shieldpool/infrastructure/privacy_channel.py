"""Client-side handle on a deployed privacy channel contract."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence

from ..derivation.stellar import StellarDerivator
from ..domain.errors import InvalidContractIdError, PrivacyChannelUnexpectedError
from ..domain.shared.balance_fetcher_protocol import BalanceFetcher, BatchBalanceFetcher
from ..domain.shared.contract_client_protocol import ContractClientProtocol
from .contract_handle import ContractHandle, validate_contract_id

if TYPE_CHECKING:
    from ..application.transaction_builder import TransactionBuilder
    from ..env import Settings

logger = logging.getLogger(__name__)


class ChannelReadMethod(str, Enum):
    ADMIN = "admin"
    AUTH = "auth"
    ASSET = "asset"
    SUPPLY = "supply"
    UTXO_BALANCE = "utxo_balance"
    UTXO_BALANCES = "utxo_balances"


class ChannelInvokeMethod(str, Enum):
    SET_ADMIN = "set_admin"
    SET_AUTH = "set_auth"
    UPGRADE = "upgrade"
    TRANSACT = "transact"


class _ChannelBalanceFetcher:
    def __init__(self, channel: "PrivacyChannel") -> None:
        self._channel = channel

    async def fetch_balance(self, public_key: bytes) -> int:
        balance = await self._channel.read(
            ChannelReadMethod.UTXO_BALANCE, {"utxo": public_key}
        )
        return int(balance)


class PrivacyChannel(ContractHandle):
    """A privacy channel contract together with its auth contract and network.

    The channel owns the derivation context of every UTXO it holds: keys are
    derived from the network passphrase followed by the channel contract id.
    """

    def __init__(
        self,
        client: ContractClientProtocol,
        auth_id: str,
        network_passphrase: str,
    ) -> None:
        super().__init__(client)
        if not network_passphrase:
            raise PrivacyChannelUnexpectedError.unexpected("Network passphrase is not set")
        self._auth_id = validate_contract_id(auth_id)
        self._network_passphrase = network_passphrase

    @classmethod
    def from_settings(
        cls, settings: "Settings", client: ContractClientProtocol
    ) -> "PrivacyChannel":
        if client.contract_id != settings.channel_contract_id:
            raise InvalidContractIdError(client.contract_id)
        return cls(client, settings.auth_contract_id, settings.network_passphrase)

    @property
    def channel_id(self) -> str:
        return self.contract_id

    @property
    def auth_id(self) -> str:
        return self._auth_id

    @property
    def network_passphrase(self) -> str:
        return self._network_passphrase

    def get_derivator(self) -> StellarDerivator:
        """A fresh derivator with this channel's context; the caller sets the root."""
        return StellarDerivator().with_network_and_contract(
            self._network_passphrase, self.channel_id
        )

    def get_balance_fetcher(self) -> BalanceFetcher:
        return _ChannelBalanceFetcher(self)

    def get_balances_fetcher(self) -> BatchBalanceFetcher:
        async def fetch_balances(public_keys: Sequence[bytes]) -> list[int]:
            balances = await self.read(
                ChannelReadMethod.UTXO_BALANCES, {"utxos": list(public_keys)}
            )
            return [int(b) for b in balances]

        return fetch_balances

    async def transact(
        self,
        builder: "TransactionBuilder",
        config: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Submit a fully signed bundle through the channel's ``transact`` function."""
        if builder.channel_id != self.channel_id:
            raise InvalidContractIdError(builder.channel_id)
        auth_entries = builder.get_signed_auth_entries()
        logger.info(
            "Submitting transact to %s with %d auth entries",
            self.channel_id,
            len(auth_entries),
        )
        return await self.invoke(
            ChannelInvokeMethod.TRANSACT,
            {"op": builder.build_xdr()},
            auth_entries=auth_entries,
            config=config,
        )
