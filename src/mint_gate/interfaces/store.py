"""GateStore protocol - wallet authorization, mint counters and replay guard."""

from __future__ import annotations

from typing import Protocol

from mint_gate.models.records import (
    AuthorizedWallet,
    TierMintCount,
    WalletMintCount,
)


class GateStore(Protocol):
    """Persists whitelist, per-wallet and per-tier counters, and consumed payments.

    Counter increments must be atomic per document: two racing increments
    for the same key both land, one as the create and one as the update.
    """

    # ── Lifecycle ──────────────────────────────────────────

    async def initialize(self) -> None:
        ...

    async def close(self) -> None:
        ...

    # ── Authorized wallets ─────────────────────────────────

    async def get_authorized_wallet(self, wallet: str) -> AuthorizedWallet | None:
        ...

    async def add_authorized_wallet(
        self, wallet: str, expires_at: str | None = None
    ) -> None:
        ...

    async def batch_add_authorized_wallets(
        self, wallets: list[str], expires_at: str | None = None
    ) -> None:
        ...

    async def remove_authorized_wallet(self, wallet: str) -> None:
        ...

    async def get_authorized_wallets(self) -> list[AuthorizedWallet]:
        ...

    # ── Wallet mint counts ─────────────────────────────────

    async def get_wallet_mint_count(self, wallet: str) -> WalletMintCount | None:
        ...

    async def get_all_wallet_mint_counts(self) -> list[WalletMintCount]:
        ...

    async def increment_wallet_mint_count(self, wallet: str, signature: str) -> int:
        """Append signature and bump the count in one transaction. Returns new count."""
        ...

    async def reset_wallet_mint_count(self, wallet: str) -> None:
        ...

    # ── Tier mint counts ───────────────────────────────────

    async def get_tier_mint_count(self, tier_name: str) -> TierMintCount | None:
        ...

    async def get_all_tier_mint_counts(self) -> list[TierMintCount]:
        ...

    async def increment_tier_mint_count(
        self, tier_name: str, signature: str, wallet: str
    ) -> int:
        ...

    async def reset_tier_mint_count(self, tier_name: str) -> None:
        ...

    # ── Replay guard ───────────────────────────────────────

    async def is_transaction_processed(self, signature: str) -> bool:
        ...

    async def mark_transaction_processed(
        self, signature: str, wallet: str | None = None
    ) -> bool:
        """Insert-if-absent. True if this call recorded the signature."""
        ...
