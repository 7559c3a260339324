"""Application configuration using pydantic settings with structured sections."""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

CLUSTER_ENDPOINTS = {
    "devnet": "https://api.devnet.solana.com",
    "testnet": "https://api.testnet.solana.com",
    "mainnet-beta": "https://api.mainnet-beta.solana.com",
    "localnet": "http://127.0.0.1:8899",
}


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False


class DatabaseSettings(BaseModel):
    url: str = Field(default="sqlite+aiosqlite:///./ownnest.db", alias="url")
    echo: bool = False
    pool_size: Optional[int] = None
    max_overflow: Optional[int] = None


class LedgerSettings(BaseModel):
    cluster: Literal["devnet", "testnet", "mainnet-beta", "localnet"] = "testnet"
    rpc_url: Optional[str] = None
    program_id: str = "FJw28pVHzWdnuuQ8LPm97D4NT3aKxdbm2nj15uHh46jx"
    commitment: Literal["processed", "confirmed", "finalized"] = "confirmed"
    confirm_timeout_seconds: float = Field(default=60.0, gt=0)
    poll_interval_seconds: float = Field(default=0.5, gt=0)
    request_timeout_seconds: float = Field(default=10.0, gt=0)


class WalletSettings(BaseModel):
    keypair_path: Optional[Path] = None
    secret_key: Optional[str] = None


class TokenizationSettings(BaseModel):
    max_attempts: int = Field(default=3, ge=1)
    backoff_initial_seconds: float = Field(default=0.5, ge=0)
    backoff_max_seconds: float = Field(default=8.0, ge=0)
    backoff_jitter_seconds: float = Field(default=0.5, ge=0)


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s [%(levelname)-8s] %(name)s - %(message)s"


class Settings(BaseSettings):
    """Top-level application settings with nested sections."""

    model_config = SettingsConfigDict(
        env_prefix="OWNNEST_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    project_name: str = "OwnNest Design Registry"
    api_prefix: str = "/api"

    server: ServerSettings = ServerSettings()
    database: DatabaseSettings = DatabaseSettings()
    ledger: LedgerSettings = LedgerSettings()
    wallet: WalletSettings = WalletSettings()
    tokenization: TokenizationSettings = TokenizationSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def database_url(self) -> str:
        return self.database.url

    @property
    def host(self) -> str:
        return self.server.host

    @property
    def port(self) -> int:
        return self.server.port

    @property
    def rpc_url(self) -> str:
        return self.ledger.rpc_url or CLUSTER_ENDPOINTS[self.ledger.cluster]


@lru_cache()
def get_settings() -> Settings:
    return Settings()
