"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from mint_gate.models.config import (
    LAMPORTS_PER_SOL,
    GateConfig,
    GitHubMirrorConfig,
    MintSettings,
    PricingTier,
)


def _timestamp(value: int | float | str | datetime) -> int:
    """Unix seconds from an int, ISO-8601 string or TOML datetime. Naive means UTC."""
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


def parse_tier(raw: dict) -> PricingTier:
    if "price_lamports" in raw:
        price = int(raw["price_lamports"])
    else:
        price = round(float(raw["price_sol"]) * LAMPORTS_PER_SOL)
    tier = PricingTier(
        name=str(raw["name"]),
        start_time=_timestamp(raw["start"]),
        end_time=_timestamp(raw["end"]),
        max_supply=int(raw["max_supply"]),
        price_lamports=price,
    )
    if tier.end_time <= tier.start_time:
        raise ValueError(f"Tier {tier.name!r} ends before it starts")
    return tier


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "MINT_GATE_",
) -> GateConfig:
    """Load service configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (MINT_GATE_ADMIN_SECRET, etc.)
        2. TOML config file
        3. Defaults from GateConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    top: dict = {}
    env = os.environ

    # ── Server section ─────────────────────────────────────
    server = raw.get("server", {})
    if v := server.get("host"):
        top["host"] = str(v)
    if v := server.get("port"):
        top["port"] = int(v)
    if v := server.get("log_level"):
        top["log_level"] = str(v)
    if v := server.get("heartbeat_interval"):
        top["heartbeat_interval"] = int(v)
    if v := server.get("cors_origins"):
        top["cors_origins"] = tuple(str(o) for o in v)

    # ── Mint section ───────────────────────────────────────
    mint = raw.get("mint", {})
    mint_fields = {
        k: mint[k]
        for k in (
            "max_supply", "max_mints_per_wallet", "max_airdrop_id", "collection_name",
            "symbol", "metadata_base_uri", "image_base_uri", "seller_fee_basis_points",
        )
        if k in mint
    }
    top["mint"] = MintSettings(**mint_fields)

    # ── Tiers ──────────────────────────────────────────────
    if tiers := raw.get("tiers"):
        top["tiers"] = tuple(parse_tier(t) for t in tiers)

    # ── Solana section ─────────────────────────────────────
    solana = raw.get("solana", {})
    if v := solana.get("rpc_url"):
        top["rpc_url"] = str(v)
    if v := solana.get("commitment"):
        top["commitment"] = str(v)
    if v := solana.get("timeout"):
        top["rpc_timeout"] = float(v)

    # ── Minter section ─────────────────────────────────────
    minter = raw.get("minter", {})
    if v := minter.get("url"):
        top["minter_url"] = str(v)
    if v := minter.get("api_key"):
        top["minter_api_key"] = str(v)
    if v := minter.get("timeout"):
        top["minter_timeout"] = float(v)

    # ── GitHub mirror section ──────────────────────────────
    github = dict(raw.get("github", {}))
    if v := env.get(f"{env_prefix}GITHUB_TOKEN"):
        github["token"] = v
    if v := env.get(f"{env_prefix}GITHUB_REPO_OWNER"):
        github["owner"] = v
    if v := env.get(f"{env_prefix}GITHUB_REPO_NAME"):
        github["repo"] = v
    top["github"] = GitHubMirrorConfig(
        **{
            k: str(github[k])
            for k in ("token", "owner", "repo", "branch", "path", "api_url")
            if k in github
        }
    )

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("db_path"):
        top["db_path"] = str(v)
    if v := storage.get("tracking_file"):
        top["tracking_file"] = str(v)

    # ── Auth section ───────────────────────────────────────
    auth = raw.get("auth", {})
    if v := auth.get("admin_secret"):
        top["admin_secret"] = str(v)
    if v := auth.get("airdrop_admin_wallet"):
        top["airdrop_admin_wallet"] = str(v)

    # ── Environment variable overrides (highest priority) ──
    if secret := env.get(f"{env_prefix}ADMIN_SECRET"):
        top["admin_secret"] = secret
    if wallet := env.get(f"{env_prefix}AIRDROP_ADMIN_WALLET"):
        top["airdrop_admin_wallet"] = wallet
    if rpc := env.get(f"{env_prefix}RPC_URL"):
        top["rpc_url"] = rpc
    if url := env.get(f"{env_prefix}MINTER_URL"):
        top["minter_url"] = url
    if key := env.get(f"{env_prefix}MINTER_API_KEY"):
        top["minter_api_key"] = key
    if db := env.get(f"{env_prefix}DB_PATH"):
        top["db_path"] = db
    if tracking := env.get(f"{env_prefix}TRACKING_FILE"):
        top["tracking_file"] = tracking
    if port := env.get(f"{env_prefix}PORT"):
        top["port"] = int(port)

    return GateConfig(**top)
