"""CLI entrypoint for vault-ledger."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from decimal import Decimal
from pathlib import Path
from typing import Annotated

import typer

from .constants import TARGET_DECIMALS
from .errors import VaultLedgerError
from .logger import setup_logging
from .settings import LedgerSettings
from .state import AppState
from .vault import to_address

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Custody ledger price and conversion tools.",
)


def _build_state(config_path: Path | None, rpc_url: str | None, log_level: str | None) -> AppState:
    if config_path:
        os.environ["VAULT_LEDGER_CONFIG"] = str(config_path)

    init_kwargs: dict[str, str] = {}
    if rpc_url is not None:
        init_kwargs["rpc_url"] = rpc_url
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    settings = LedgerSettings(**init_kwargs)
    setup_logging(settings.log_level)
    return AppState(settings=settings, logger=logging.getLogger("vault_ledger"))


ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to a TOML config file (can include [vault_ledger] table).",
    ),
]
RpcOption = Annotated[
    str | None,
    typer.Option("--rpc-url", help="RPC endpoint; overrides configured RPC."),
]
LogLevelOption = Annotated[
    str | None,
    typer.Option(
        "--log-level",
        help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
    ),
]


@app.command("show-config")
def show_config(
    config_path: ConfigOption = None,
    rpc_url: RpcOption = None,
    log_level: LogLevelOption = None,
):
    """Print effective config (with credentials redacted)."""
    state = _build_state(config_path, rpc_url, log_level)
    typer.echo(json.dumps(state.settings.as_safe_dict(), indent=2, default=str))


@app.command()
def quote(
    asset: Annotated[str, typer.Argument(help="Asset address (configured in settings).")],
    amount: Annotated[int, typer.Argument(help="Amount in the asset's smallest unit.")],
    config_path: ConfigOption = None,
    rpc_url: RpcOption = None,
    log_level: LogLevelOption = None,
):
    """Show the current price reading and normalized value of AMOUNT of ASSET."""
    state = _build_state(config_path, rpc_url, log_level)
    if amount < 0:
        raise typer.BadParameter("amount must not be negative", param_hint="AMOUNT")
    try:
        asset_id = to_address(asset)
    except VaultLedgerError as e:
        raise typer.BadParameter(str(e), param_hint="ASSET") from e

    from .bootstrap import build_registry, build_web3_collaborators
    from .converter import UnitConverter

    async def _quote() -> None:
        price_source, metadata = build_web3_collaborators(state)
        registry = await build_registry(
            state, price_source, metadata, only=asset_id
        )
        converter = UnitConverter(registry)
        reading = await converter.current_price(asset_id)
        value = await converter.to_normalized(asset_id, amount)
        typer.echo(
            json.dumps(
                {
                    "asset": asset_id,
                    "amount": amount,
                    "price": reading.price,
                    "price_decimals": reading.price_decimals,
                    "round_id": reading.updated_at_round_id,
                    "updated_at": reading.updated_at_timestamp,
                    "normalized_value": value,
                    "normalized": str(Decimal(value).scaleb(-TARGET_DECIMALS)),
                },
                indent=2,
            )
        )

    try:
        asyncio.run(_quote())
    except VaultLedgerError as e:
        state.logger.error("Quote failed: %s", e)
        raise typer.Exit(code=1) from e


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
