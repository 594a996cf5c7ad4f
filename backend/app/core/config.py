from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="JERSEYFM_", extra="ignore")

    app_name: str = "JerseyFM Mint API"
    app_version: str = "0.1.0"
    debug: bool = False

    api_prefix: str = "/api"

    public_dir: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[3] / "public")

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    storage_node_url: str = "https://node1.irys.xyz"
    storage_gateway_url: str = "https://gateway.irys.xyz"
    storage_token: str = "solana"
    storage_token_decimals: int = Field(default=9, ge=0)
    storage_currency_symbol: str = "SOL"
    storage_private_key: SecretStr = SecretStr("")

    solana_rpc_url: str = "https://mainnet.helius-rpc.com"
    mint_rpc_url: str = "https://mainnet.helius-rpc.com"
    explorer_tx_url: str = "https://xray.helius.xyz/tx"
    explorer_network: str = "mainnet"

    http_timeout_seconds: float | None = 120.0


@lru_cache
def get_settings() -> Settings:
    return Settings()
