"""Read/invoke plumbing shared by the contract handles."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Union

from stellar_sdk import StrKey
from stellar_sdk import xdr as stellar_xdr

from ..domain.errors import (
    InvalidContractIdError,
    PrivacyChannelUnexpectedError,
    ShieldpoolError,
)
from ..domain.shared.contract_client_protocol import ContractClientProtocol

logger = logging.getLogger(__name__)

MethodName = Union[Enum, str]


def _method_name(method: MethodName) -> str:
    return method.value if isinstance(method, Enum) else method


def validate_contract_id(contract_id: str) -> str:
    """Validate a contract strkey.

    Raises:
        InvalidContractIdError: If ``contract_id`` is not a ``C...`` strkey
    """
    if not isinstance(contract_id, str) or not StrKey.is_valid_contract(contract_id):
        raise InvalidContractIdError(str(contract_id))
    return contract_id


class ContractHandle:
    """A deployed contract reached through an injected client."""

    def __init__(self, client: ContractClientProtocol) -> None:
        validate_contract_id(client.contract_id)
        self._client = client

    @property
    def contract_id(self) -> str:
        return self._client.contract_id

    async def read(
        self, method: MethodName, method_args: Optional[Mapping[str, Any]] = None
    ) -> Any:
        name = _method_name(method)
        try:
            return await self._client.read(name, method_args)
        except ShieldpoolError:
            raise
        except Exception as e:
            logger.exception("Contract read %s on %s failed", name, self.contract_id)
            raise PrivacyChannelUnexpectedError.unexpected(
                f"Contract read {name} failed",
                cause=e,
                data={"contract_id": self.contract_id, "method": name},
            ) from e

    async def invoke(
        self,
        method: MethodName,
        method_args: Optional[Mapping[str, Any]] = None,
        auth_entries: Optional[Sequence[stellar_xdr.SorobanAuthorizationEntry]] = None,
        config: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        name = _method_name(method)
        try:
            return await self._client.invoke(name, method_args, auth_entries, config)
        except ShieldpoolError:
            raise
        except Exception as e:
            logger.exception("Contract invocation %s on %s failed", name, self.contract_id)
            raise PrivacyChannelUnexpectedError.unexpected(
                f"Contract invocation {name} failed",
                cause=e,
                data={"contract_id": self.contract_id, "method": name},
            ) from e
