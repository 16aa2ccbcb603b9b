from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="auto", description="Log renderer: json, console or auto")

    # Routing / balance / token-list service
    api_base_url: str = Field(
        default="https://api.joinwido.com",
        description="Base URL shared by the balance, token-list and quote endpoints",
    )
    balances_path: str = Field(default="/balances", description="Balance endpoint path")
    tokens_path: str = Field(default="/tokens", description="Supported token list endpoint path")
    quote_path: str = Field(default="/quote_v2", description="Quote endpoint path")
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout applied to every outbound provider request",
    )

    # Persistent token-list cache
    token_store_dir: Path = Field(
        default=BASE_DIR / ".cache",
        description="Directory backing the persistent token-list cache",
    )
    enable_token_store: bool = Field(
        default=True,
        description="Persist the token catalog between restarts",
    )

    # Token pickers
    visible_chain_ids: List[int] = Field(
        default_factory=lambda: [1, 137, 15366, 42161, 10, 250, 56, 43114, 8453],
        description="Chains shown by default in token pickers",
    )


# Global settings instance
settings = Settings()
