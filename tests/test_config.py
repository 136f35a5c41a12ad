"""Configuration loading from TOML and environment."""

from __future__ import annotations

import dataclasses

import pytest

from mint_gate.config import load_config
from mint_gate.models.config import DEFAULT_TIERS, LAMPORTS_PER_SOL

SAMPLE_TOML = """
[server]
port = 8080
cors_origins = ["http://localhost:3000"]

[mint]
max_supply = 100
symbol = "TEST"

[[tiers]]
name = "Early"
start = "2030-01-01T00:00:00Z"
end = 1893542400
max_supply = 10
price_sol = 0.25

[[tiers]]
name = "Late"
start = 1893542400
end = 1893628800
max_supply = 20
price_sol = 1.5

[solana]
rpc_url = "https://rpc.example"

[minter]
url = "http://minter.example"

[github]
token = "ghp_file"
owner = "acme"
repo = "tracking"

[storage]
db_path = "/tmp/gate.db"

[auth]
admin_secret = "from-file"
"""


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "ADMIN_SECRET", "AIRDROP_ADMIN_WALLET", "RPC_URL", "MINTER_URL", "MINTER_API_KEY",
        "GITHUB_TOKEN", "GITHUB_REPO_OWNER", "GITHUB_REPO_NAME", "DB_PATH",
        "TRACKING_FILE", "PORT",
    ):
        monkeypatch.delenv(f"MINT_GATE_{name}", raising=False)
    return monkeypatch


def test_defaults(clean_env):
    cfg = load_config()
    assert cfg.port == 3001
    assert cfg.tiers == DEFAULT_TIERS
    assert cfg.mint.max_supply == 2500
    assert cfg.mint.max_mints_per_wallet == 2
    assert cfg.github.enabled is False
    assert cfg.admin_secret == ""


def test_missing_file_uses_defaults(clean_env, tmp_path):
    cfg = load_config(tmp_path / "absent.toml")
    assert cfg.port == 3001


def test_toml_file(clean_env, tmp_path):
    path = tmp_path / "gate.toml"
    path.write_text(SAMPLE_TOML)

    cfg = load_config(path)

    assert cfg.port == 8080
    assert cfg.cors_origins == ("http://localhost:3000",)
    assert cfg.mint.max_supply == 100
    assert cfg.mint.symbol == "TEST"
    assert cfg.mint.collection_name == "In2space"
    assert cfg.rpc_url == "https://rpc.example"
    assert cfg.minter_url == "http://minter.example"
    assert cfg.db_path == "/tmp/gate.db"
    assert cfg.admin_secret == "from-file"
    assert cfg.github.enabled is True
    assert cfg.github.branch == "main"

    early, late = cfg.tiers
    assert early.start_time == 1893456000
    assert early.end_time == 1893542400
    assert early.price_lamports == LAMPORTS_PER_SOL // 4
    assert late.price_lamports == 1_500_000_000


def test_env_overrides_file(clean_env, tmp_path):
    path = tmp_path / "gate.toml"
    path.write_text(SAMPLE_TOML)
    clean_env.setenv("MINT_GATE_ADMIN_SECRET", "from-env")
    clean_env.setenv("MINT_GATE_PORT", "9000")
    clean_env.setenv("MINT_GATE_GITHUB_REPO_NAME", "other")
    clean_env.setenv("MINT_GATE_AIRDROP_ADMIN_WALLET", "Admin111")

    cfg = load_config(path)

    assert cfg.admin_secret == "from-env"
    assert cfg.port == 9000
    assert cfg.github.repo == "other"
    assert cfg.github.token == "ghp_file"
    assert cfg.airdrop_admin_wallet == "Admin111"


def test_config_is_frozen(clean_env):
    cfg = load_config()
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.port = 1
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.tiers[0].price_lamports = 1


def test_inverted_tier_rejected(clean_env, tmp_path):
    path = tmp_path / "gate.toml"
    path.write_text(
        '[[tiers]]\nname = "Bad"\nstart = 200\nend = 100\nmax_supply = 1\nprice_sol = 1\n'
    )
    with pytest.raises(ValueError, match="Bad"):
        load_config(path)
