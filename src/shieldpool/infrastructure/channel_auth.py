"""Client-side handle on the channel auth contract."""

from __future__ import annotations

from enum import Enum

from .contract_handle import ContractHandle


class AuthReadMethod(str, Enum):
    ADMIN = "admin"
    IS_PROVIDER = "is_provider"


class AuthInvokeMethod(str, Enum):
    SET_ADMIN = "set_admin"
    UPGRADE = "upgrade"
    ADD_PROVIDER = "add_provider"
    REMOVE_PROVIDER = "remove_provider"


class ChannelAuth(ContractHandle):
    """Auth contract that keeps the provider set of one or more channels."""

    @property
    def auth_id(self) -> str:
        return self.contract_id

    async def is_provider(self, public_key: str) -> bool:
        return bool(await self.read(AuthReadMethod.IS_PROVIDER, {"provider": public_key}))
