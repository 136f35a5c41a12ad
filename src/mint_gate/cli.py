"""CLI entry point for the mint gate service."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from pathlib import Path

import click

from mint_gate.config import load_config
from mint_gate.models.config import GateConfig
from mint_gate.pipeline.tiers import TierRegistry
from mint_gate.pipeline.wallets import WalletAuthorizer, parse_expiry
from mint_gate.storage.sqlite import SQLiteGateStore
from mint_gate.tracking.identifiers import IdentifierLedger


def _iso(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _expiry_option(ctx: click.Context, param: click.Parameter, value: str | None) -> str | None:
    if value is None:
        return None
    try:
        return parse_expiry(value).isoformat()
    except ValueError:
        raise click.BadParameter(f"not an ISO-8601 datetime: {value}") from None


def _open_store(cfg: GateConfig) -> SQLiteGateStore:
    return SQLiteGateStore(str(Path(cfg.db_path).expanduser()))


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """mint-gate - Tiered, whitelisted NFT mint gate."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Server ─────────────────────────────────────────────


@cli.command()
@click.option("--host", default=None, help="Bind address (overrides config)")
@click.option("--port", type=int, default=None, help="Bind port (overrides config)")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Start the HTTP mint gate."""
    import uvicorn

    from mint_gate.api.app import create_app

    cfg = load_config(ctx.obj["config_path"])
    host = host or cfg.host
    port = port or cfg.port

    click.echo(f"Starting mint gate on {host}:{port}")
    uvicorn.run(
        create_app(cfg),
        host=host,
        port=port,
        log_level="debug" if ctx.obj["verbose"] else cfg.log_level.lower(),
    )


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show service configuration."""
    cfg = load_config(ctx.obj["config_path"])
    click.echo(f"Listen:       {cfg.host}:{cfg.port}")
    click.echo(f"RPC URL:      {cfg.rpc_url} ({cfg.commitment})")
    click.echo(f"Minter:       {cfg.minter_url}")
    click.echo(f"Collection:   {cfg.mint.collection_name} ({cfg.mint.symbol})")
    click.echo(f"Max supply:   {cfg.mint.max_supply}")
    click.echo(f"Wallet cap:   {cfg.mint.max_mints_per_wallet}")
    click.echo(f"DB path:      {cfg.db_path}")
    click.echo(f"Tracking:     {cfg.tracking_file}")
    if cfg.github.enabled:
        click.echo(f"Mirror:       github {cfg.github.owner}/{cfg.github.repo}@{cfg.github.branch}")
    else:
        click.echo("Mirror:       (disabled)")
    click.echo(f"Admin secret: {'***configured***' if cfg.admin_secret else '(not set)'}")
    click.echo(f"Airdrop admin: {cfg.airdrop_admin_wallet or '(not set)'}")


@cli.command()
@click.pass_context
def tiers(ctx: click.Context) -> None:
    """Show the tier schedule and per-tier mint counts."""
    cfg = load_config(ctx.obj["config_path"])

    async def _tiers():
        store = _open_store(cfg)
        await store.initialize()
        try:
            registry = TierRegistry(cfg.tiers, store)
            now = int(time.time())
            for s in registry.schedule(now):
                minted = await registry.tier_minted_count(s.tier.name)
                click.echo(
                    f"  [{s.status:8s}] {s.tier.name:8s} {s.tier.price_sol:>6} SOL "
                    f"minted={minted}/{s.tier.max_supply} "
                    f"{_iso(s.tier.start_time)} -> {_iso(s.tier.end_time)}"
                )
        finally:
            await store.close()

    asyncio.run(_tiers())


@cli.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Show minting statistics."""
    cfg = load_config(ctx.obj["config_path"])

    async def _stats():
        store = _open_store(cfg)
        await store.initialize()
        try:
            wallets = WalletAuthorizer(store, cfg.mint.max_mints_per_wallet)
            s = await wallets.get_minting_stats()
            click.echo("Minting Stats")
            click.echo(f"  Authorized wallets: {s.total_authorized_wallets}")
            click.echo(f"  Total mints:        {s.total_mints}")
            click.echo(f"  Wallets minted:     {s.wallets_with_mints}")
            click.echo(f"  Wallets at cap:     {s.wallets_at_max_limit}")
            if s.tier_stats:
                click.echo("")
                click.echo("Tiers")
                for name, t in s.tier_stats.items():
                    click.echo(f"  {name:8s} {t.mint_count} (last at {t.last_mint_at or '-'})")
        finally:
            await store.close()

    asyncio.run(_stats())


@cli.command()
@click.pass_context
def ledger(ctx: click.Context) -> None:
    """Show the identifier ledger (consumed NFT numbers)."""
    cfg = load_config(ctx.obj["config_path"])
    identifiers = IdentifierLedger(cfg.tracking_file, max_supply=cfg.mint.max_supply)
    record = identifiers.load()

    click.echo(f"File:            {cfg.tracking_file}")
    click.echo(f"Minted:          {len(record.minted_ids)}/{cfg.mint.max_supply}")
    click.echo(f"Last sequential: {record.last_minted_id}")
    click.echo(f"Next id:         {identifiers.next_id()}")
    out_of_band = sorted(i for i in record.minted_ids if i > record.last_minted_id)
    if out_of_band:
        click.echo(f"Ahead of sequence: {', '.join(str(i) for i in out_of_band)}")


# ── Whitelist admin ────────────────────────────────────


@cli.group()
def wallets():
    """Manage the authorized wallet whitelist."""
    pass


def _run_with_wallets(cfg: GateConfig, fn) -> None:
    async def _run():
        store = _open_store(cfg)
        await store.initialize()
        try:
            await fn(WalletAuthorizer(store, cfg.mint.max_mints_per_wallet))
        finally:
            await store.close()

    asyncio.run(_run())


@wallets.command("add")
@click.argument("addresses", nargs=-1, required=True)
@click.option("--expires-at", default=None, callback=_expiry_option,
              help="ISO-8601 expiry for the authorization")
@click.pass_context
def wallets_add(ctx: click.Context, addresses: tuple[str, ...], expires_at: str | None) -> None:
    """Authorize one or more wallets."""
    cfg = load_config(ctx.obj["config_path"])

    async def _add(authorizer: WalletAuthorizer):
        await authorizer.batch_add_authorized_wallets(list(addresses), expires_at=expires_at)
        click.echo(f"Authorized {len(addresses)} wallet(s)")

    _run_with_wallets(cfg, _add)


@wallets.command("remove")
@click.argument("address")
@click.pass_context
def wallets_remove(ctx: click.Context, address: str) -> None:
    """Remove a wallet from the whitelist."""
    cfg = load_config(ctx.obj["config_path"])

    async def _remove(authorizer: WalletAuthorizer):
        await authorizer.remove_authorized_wallet(address)
        click.echo(f"Removed {address}")

    _run_with_wallets(cfg, _remove)


@wallets.command("list")
@click.option("--include-used", is_flag=True, help="Include wallets that reached their cap")
@click.pass_context
def wallets_list(ctx: click.Context, include_used: bool) -> None:
    """List authorized wallets."""
    cfg = load_config(ctx.obj["config_path"])

    async def _list(authorizer: WalletAuthorizer):
        listings = await authorizer.list_authorized_wallets(include_used)
        if not listings:
            click.echo("No authorized wallets.")
            return
        for w in listings:
            flag = "can mint" if w.can_mint else "at cap"
            click.echo(f"  {w.wallet_address} mints={w.mint_count} [{flag}] "
                       f"expires={w.expires_at or 'never'}")

    _run_with_wallets(cfg, _list)


@wallets.command("check")
@click.argument("address")
@click.pass_context
def wallets_check(ctx: click.Context, address: str) -> None:
    """Show whether a wallet may mint and its usage."""
    cfg = load_config(ctx.obj["config_path"])

    async def _check(authorizer: WalletAuthorizer):
        authorized = await authorizer.is_authorized(address)
        s = await authorizer.get_mint_status(address)
        click.echo(f"Wallet:     {address}")
        click.echo(f"Authorized: {authorized}")
        click.echo(f"Mints:      {s.mint_count}/{s.max_allowed} (remaining {s.remaining})")
        for sig in s.mint_transactions:
            click.echo(f"  tx={sig}")

    _run_with_wallets(cfg, _check)


@wallets.command("reset")
@click.argument("address")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def wallets_reset(ctx: click.Context, address: str, yes: bool) -> None:
    """Reset a wallet's mint count to zero."""
    cfg = load_config(ctx.obj["config_path"])
    if not yes:
        click.confirm(f"Reset mint count for {address}?", abort=True)

    async def _reset(authorizer: WalletAuthorizer):
        await authorizer.reset_mint_count(address)
        click.echo(f"Reset mint count for {address}")

    _run_with_wallets(cfg, _reset)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
