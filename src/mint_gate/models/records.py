"""Record types for persisted state and operation results."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class AuthorizedWallet:
    """A whitelisted wallet."""

    wallet_address: str
    added_at: str = ""
    expires_at: str | None = None  # ISO 8601, None = never expires
    last_updated: str = ""


@dataclass
class WalletMintCount:
    """Per-wallet mint counter. mint_count == len(mint_transactions)."""

    wallet_address: str
    mint_count: int = 0
    mint_transactions: list[str] = field(default_factory=list)
    first_mint_at: str | None = None
    last_mint_at: str | None = None


@dataclass
class TierMintEntry:
    """One mint attributed to a tier."""

    signature: str
    wallet: str
    timestamp: str


@dataclass
class TierMintCount:
    """Per-tier mint counter with an audit trail of who minted."""

    tier_name: str
    mint_count: int = 0
    mint_transactions: list[TierMintEntry] = field(default_factory=list)
    first_mint_at: str | None = None
    last_mint_at: str | None = None


@dataclass
class WalletMintStatus:
    """Mint allowance summary for a single wallet."""

    wallet_address: str
    mint_count: int
    max_allowed: int
    remaining: int
    can_mint: bool
    mint_transactions: list[str] = field(default_factory=list)
    first_mint_at: str | None = None
    last_mint_at: str | None = None


@dataclass
class WalletListing:
    """An authorized wallet annotated with its mint usage."""

    wallet_address: str
    added_at: str
    expires_at: str | None
    mint_count: int
    can_mint: bool


@dataclass
class MintingStats:
    """Aggregate minting statistics across wallets and tiers."""

    total_authorized_wallets: int = 0
    total_mints: int = 0
    wallets_with_mints: int = 0
    wallets_at_max_limit: int = 0
    max_mints_per_wallet: int = 0
    tier_stats: dict[str, TierMintCount] = field(default_factory=dict)


@dataclass
class MintTrackingRecord:
    """Identifier ledger content, persisted as ``mint-tracking.json``."""

    minted_ids: set[int] = field(default_factory=set)
    last_minted_id: int = -1  # -1 means no normal mint has happened yet

    def to_json(self) -> dict:
        return {
            "mintedIds": sorted(self.minted_ids),
            "lastMintedId": self.last_minted_id,
        }

    @classmethod
    def from_json(cls, data: dict) -> MintTrackingRecord:
        return cls(
            minted_ids={int(i) for i in data["mintedIds"]},
            last_minted_id=int(data["lastMintedId"]),
        )


@dataclass
class TransactionDetails:
    """Parsed account information of a ledger transaction."""

    signature: str
    fee_payer: str
    all_addresses: list[str]
    signers: list[str]
    writable_accounts: list[str]


@dataclass
class MintRequest:
    """What the external minting service needs to mint one leaf."""

    owner: str
    nft_number: int
    name: str
    symbol: str
    uri: str
    seller_fee_basis_points: int


@dataclass
class MintResult:
    """Result of a mint submission to the external minting service."""

    success: bool
    nft_number: int
    signature: str | None = None
    asset_id: str | None = None
    error: str | None = None


@dataclass
class MintOutcome:
    """Result of a request that made it through the admission pipeline.

    The mint itself is final on-chain. ``degraded_steps`` lists bookkeeping
    writes that failed afterwards and need reconciliation.
    """

    nft_number: int
    name: str
    asset_id: str
    image_url: str
    mint_signature: str
    wallet: str
    tier_name: str | None = None
    payment_signature: str | None = None
    degraded_steps: list[str] = field(default_factory=list)

    @property
    def bookkeeping_degraded(self) -> bool:
        return bool(self.degraded_steps)
