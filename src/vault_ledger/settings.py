"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit, urlunsplit

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from web3 import Web3

from .constants import DEFAULT_RPC_URL, PRICE_FEED_ETH_USD, RPC_RETRY_MAX_TIME

load_dotenv()


def _checksum(value: str) -> str:
    if not Web3.is_address(value):
        raise ValueError(f"Invalid address: {value}")
    return Web3.to_checksum_address(value)


class LedgerSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with VAULT_LEDGER_)
    - Config file (TOML), lowest precedence

    Limits are read once when the vault is built and cannot be changed
    afterwards.
    """

    # --- endpoints ---
    rpc_url: str = DEFAULT_RPC_URL
    block_identifier: int | str = "latest"
    rpc_retry_max_time: float = Field(default=RPC_RETRY_MAX_TIME, gt=0)

    # --- limits (normalized unit, 6 decimals) ---
    capacity_cap: int = Field(
        default=1_000_000_000000,
        gt=0,
        description="Maximum total normalized value the ledger may hold.",
    )
    withdraw_limit: int = Field(
        default=100_000_000000,
        gt=0,
        description="Maximum normalized value of a single withdrawal request.",
    )

    # --- assets ---
    native_price_feed: str | None = PRICE_FEED_ETH_USD
    tokens: dict[str, str] = Field(default_factory=dict)  # asset -> price feed

    # --- roles ---
    admin_addresses: list[str] = Field(default_factory=list)
    operator_addresses: list[str] = Field(default_factory=list)

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="VAULT_LEDGER_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("native_price_feed")
    @classmethod
    def checksum_feed(cls, v: str | None) -> str | None:
        return None if v is None else _checksum(v)

    @field_validator("tokens")
    @classmethod
    def checksum_tokens(cls, v: dict[str, str]) -> dict[str, str]:
        return {_checksum(asset): _checksum(feed) for asset, feed in v.items()}

    @field_validator("admin_addresses", "operator_addresses")
    @classmethod
    def checksum_principals(cls, v: list[str]) -> list[str]:
        return [_checksum(address) for address in v]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("VAULT_LEDGER_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    local_config = Path("vault-ledger.toml")
                    user_config = (
                        Path.home() / ".config" / "vault-ledger" / "config.toml"
                    )
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [vault_ledger]
                body = data.get("vault_ledger", data)
                if not isinstance(body, dict):
                    return {}
                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with RPC credentials redacted."""
        data = self.model_dump()
        parts = urlsplit(self.rpc_url)
        if parts.username or parts.password:
            netloc = f"***redacted***@{parts.hostname}"
            if parts.port:
                netloc = f"{netloc}:{parts.port}"
            data["rpc_url"] = urlunsplit(parts._replace(netloc=netloc))
        return data
