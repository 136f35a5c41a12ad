"""Configuration models for the mint gate service."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

LAMPORTS_PER_SOL = 1_000_000_000


def _ts(iso: str) -> int:
    return int(datetime.fromisoformat(iso).replace(tzinfo=timezone.utc).timestamp())


@dataclass(frozen=True)
class PricingTier:
    """A time-boxed pricing/supply bucket.

    The validity window is half-open: ``start_time <= now < end_time``.
    """

    name: str
    start_time: int  # unix seconds, inclusive
    end_time: int  # unix seconds, exclusive
    max_supply: int
    price_lamports: int

    @property
    def price_sol(self) -> float:
        return self.price_lamports / LAMPORTS_PER_SOL

    def contains(self, now: int) -> bool:
        return self.start_time <= now < self.end_time


DEFAULT_TIERS: tuple[PricingTier, ...] = (
    PricingTier(
        name="Space Cadet NFTs",
        start_time=_ts("2025-07-15T15:55:00"),
        end_time=_ts("2025-07-17T15:55:00"),
        max_supply=1000,
        price_lamports=LAMPORTS_PER_SOL // 2,
    ),
    PricingTier(
        name="Space Voyager NFTs",
        start_time=_ts("2025-07-17T16:00:00"),
        end_time=_ts("2025-07-18T15:55:00"),
        max_supply=1000,
        price_lamports=1 * LAMPORTS_PER_SOL,
    ),
    PricingTier(
        name="Space Explorer NFTs",
        start_time=_ts("2025-07-18T16:00:00"),
        end_time=_ts("2025-07-19T15:55:00"),
        max_supply=400,
        price_lamports=5 * LAMPORTS_PER_SOL,
    ),
    PricingTier(
        name="Space Pioneer NFTs",
        start_time=_ts("2025-07-19T16:00:00"),
        end_time=_ts("2025-07-20T16:00:00"),
        max_supply=100,
        price_lamports=10 * LAMPORTS_PER_SOL,
    ),
)


@dataclass(frozen=True)
class MintSettings:
    """Collection-wide mint parameters."""

    max_supply: int = 2500
    max_mints_per_wallet: int = 2
    max_airdrop_id: int = 10_000  # airdrop ids must fall in [0, max_airdrop_id)
    collection_name: str = "In2space"
    symbol: str = "In2space"
    metadata_base_uri: str = (
        "https://bafybeibd3pjah5dbeoh76lwbbsnrr3imnjb6xoatvoaeoqwtpgh5mpkdk4.ipfs.w3s.link"
    )
    image_base_uri: str = (
        "https://bafybeiecq6fwutvn7z6ouqwlswltja76glqrdkxdov77djprjwmyekykfa.ipfs.w3s.link"
    )
    seller_fee_basis_points: int = 500

    def nft_name(self, number: int) -> str:
        return f"{self.collection_name} #{number:04d}"

    def metadata_uri(self, number: int) -> str:
        return f"{self.metadata_base_uri.rstrip('/')}/{number}.json"

    def image_url(self, number: int) -> str:
        return f"{self.image_base_uri.rstrip('/')}/{number}.png"


@dataclass(frozen=True)
class GitHubMirrorConfig:
    """Remote mirror for the identifier ledger file."""

    token: str = ""
    owner: str = ""
    repo: str = ""
    branch: str = "main"
    path: str = "mint-tracking.json"
    api_url: str = "https://api.github.com"

    @property
    def enabled(self) -> bool:
        return bool(self.token and self.owner and self.repo)


@dataclass(frozen=True)
class GateConfig:
    """Complete service configuration. Built once at startup."""

    # Server
    host: str = "0.0.0.0"
    port: int = 3001
    log_level: str = "info"
    heartbeat_interval: int = 15  # seconds between SSE heartbeats
    cors_origins: tuple[str, ...] = ("https://mint.in2space.io",)

    # Mint
    mint: MintSettings = field(default_factory=MintSettings)
    tiers: tuple[PricingTier, ...] = DEFAULT_TIERS

    # Solana
    rpc_url: str = "https://api.mainnet-beta.solana.com"
    commitment: str = "confirmed"
    rpc_timeout: float = 30.0

    # External minting service
    minter_url: str = "http://127.0.0.1:3002"
    minter_api_key: str = ""
    minter_timeout: float = 120.0

    # Remote mirror
    github: GitHubMirrorConfig = field(default_factory=GitHubMirrorConfig)

    # Storage
    db_path: str = "~/.mint_gate/state.db"
    tracking_file: str = "mint-tracking.json"

    # Auth
    admin_secret: str = ""  # loaded from env var MINT_GATE_ADMIN_SECRET
    airdrop_admin_wallet: str = ""
