from __future__ import annotations

import os
from urllib.parse import urlparse

from pydantic import BaseModel, field_validator
from stellar_sdk import StrKey


class Settings(BaseModel):
    """Typed library settings built from environment variables."""

    network_passphrase: str
    channel_contract_id: str
    auth_contract_id: str
    asset_contract_id: str
    rpc_url: str = "http://localhost:8000/soroban/rpc"

    # UTXO account settings
    utxo_batch_size: int = 50
    utxo_max_reservation_age_ms: int = 300_000
    utxo_decimals: int = 7

    @field_validator("network_passphrase")
    @classmethod
    def validate_network_passphrase(cls, v: str) -> str:
        if not v:
            raise ValueError("Network passphrase cannot be empty")
        return v

    @field_validator("channel_contract_id", "auth_contract_id", "asset_contract_id")
    @classmethod
    def validate_contract_id(cls, v: str) -> str:
        if not StrKey.is_valid_contract(v):
            raise ValueError(f"Invalid contract id: {v}")
        return v

    @field_validator("rpc_url")
    @classmethod
    def validate_rpc_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in {"http", "https"}:
            raise ValueError("RPC URL must start with http:// or https://")
        if not parsed.netloc:
            raise ValueError("RPC URL must include a host")
        return v

    @field_validator("utxo_batch_size", "utxo_decimals")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Value must be at least 1")
        return v

    @field_validator("utxo_max_reservation_age_ms")
    @classmethod
    def validate_reservation_age(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Reservation age cannot be negative")
        return v


def get_settings() -> Settings:
    """Return typed settings instance sourced from env vars."""
    network_passphrase = os.environ.get("NETWORK_PASSPHRASE")
    channel_contract_id = os.environ.get("CHANNEL_CONTRACT_ID")
    auth_contract_id = os.environ.get("AUTH_CONTRACT_ID")
    asset_contract_id = os.environ.get("ASSET_CONTRACT_ID")
    if not (network_passphrase and channel_contract_id and auth_contract_id and asset_contract_id):
        raise ValueError(
            "NETWORK_PASSPHRASE, CHANNEL_CONTRACT_ID, AUTH_CONTRACT_ID, and ASSET_CONTRACT_ID are required"
        )
    return Settings(
        network_passphrase=network_passphrase,
        channel_contract_id=channel_contract_id,
        auth_contract_id=auth_contract_id,
        asset_contract_id=asset_contract_id,
        rpc_url=os.environ.get("STELLAR_RPC_URL", "http://localhost:8000/soroban/rpc"),
        utxo_batch_size=int(os.environ.get("UTXO_BATCH_SIZE", "50")),
        utxo_max_reservation_age_ms=int(os.environ.get("UTXO_MAX_RESERVATION_AGE_MS", "300000")),
        utxo_decimals=int(os.environ.get("UTXO_DECIMALS", "7")),
    )
