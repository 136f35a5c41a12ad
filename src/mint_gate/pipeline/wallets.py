"""Wallet authorization - whitelist membership and per-wallet mint caps."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from mint_gate.interfaces.store import GateStore
from mint_gate.models.records import (
    AuthorizedWallet,
    MintingStats,
    WalletListing,
    WalletMintStatus,
)

log = logging.getLogger(__name__)


def parse_expiry(value: str) -> datetime:
    """Parse an ISO-8601 expiry. Naive values are taken as UTC."""
    expires = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    return expires


def expiry_to_iso(expires: datetime) -> str:
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    return expires.isoformat()


def _is_expired(wallet: AuthorizedWallet, now: datetime) -> bool:
    if not wallet.expires_at:
        return False
    return parse_expiry(wallet.expires_at) < now


class WalletAuthorizer:
    """Decides whether a wallet may mint and keeps its mint count."""

    def __init__(self, store: GateStore, max_mints_per_wallet: int = 2) -> None:
        self._store = store
        self._max_mints = max_mints_per_wallet

    @property
    def max_mints_per_wallet(self) -> int:
        return self._max_mints

    async def is_authorized(self, wallet: str) -> bool:
        """Whitelisted, not expired, and below the mint cap.

        Any store error denies authorization.
        """
        try:
            record = await self._store.get_authorized_wallet(wallet)
            if record is None:
                log.info("Wallet %s not found in authorized wallets", wallet)
                return False
            if _is_expired(record, datetime.now(timezone.utc)):
                log.info("Wallet %s authorization has expired", wallet)
                return False
            count = await self.get_mint_count(wallet)
        except Exception as exc:
            log.error("Error checking wallet authorization for %s: %s", wallet, exc)
            return False

        if count >= self._max_mints:
            log.info("Wallet %s has reached max mint limit (%d/%d)",
                     wallet, count, self._max_mints)
            return False
        return True

    async def get_mint_count(self, wallet: str) -> int:
        record = await self._store.get_wallet_mint_count(wallet)
        return record.mint_count if record else 0

    async def increment_mint_count(self, wallet: str, signature: str) -> int:
        new_count = await self._store.increment_wallet_mint_count(wallet, signature)
        log.info("Incremented mint count for wallet %s to %d/%d",
                 wallet, new_count, self._max_mints)
        return new_count

    async def get_mint_status(self, wallet: str) -> WalletMintStatus:
        record = await self._store.get_wallet_mint_count(wallet)
        if record is None:
            return WalletMintStatus(
                wallet_address=wallet,
                mint_count=0,
                max_allowed=self._max_mints,
                remaining=self._max_mints,
                can_mint=True,
            )
        return WalletMintStatus(
            wallet_address=wallet,
            mint_count=record.mint_count,
            max_allowed=self._max_mints,
            remaining=max(0, self._max_mints - record.mint_count),
            can_mint=record.mint_count < self._max_mints,
            mint_transactions=list(record.mint_transactions),
            first_mint_at=record.first_mint_at,
            last_mint_at=record.last_mint_at,
        )

    # ── Admin ──────────────────────────────────────────────

    async def add_authorized_wallet(self, wallet: str, expires_at: str | None = None) -> None:
        await self._store.add_authorized_wallet(wallet, expires_at=expires_at)
        log.info("Wallet %s added to authorized wallets", wallet)

    async def batch_add_authorized_wallets(
        self, wallets: list[str], expires_at: str | None = None
    ) -> None:
        await self._store.batch_add_authorized_wallets(wallets, expires_at=expires_at)
        log.info("Batch added %d wallets to authorized wallets", len(wallets))

    async def remove_authorized_wallet(self, wallet: str) -> None:
        await self._store.remove_authorized_wallet(wallet)
        log.info("Wallet %s removed from authorized wallets", wallet)

    async def reset_mint_count(self, wallet: str) -> None:
        await self._store.reset_wallet_mint_count(wallet)
        log.info("Reset mint count for wallet %s", wallet)

    async def list_authorized_wallets(self, include_used: bool = False) -> list[WalletListing]:
        """All whitelisted wallets with usage. Exhausted ones only if include_used."""
        counts = {
            c.wallet_address: c.mint_count
            for c in await self._store.get_all_wallet_mint_counts()
        }
        listings = []
        for w in await self._store.get_authorized_wallets():
            count = counts.get(w.wallet_address, 0)
            can_mint = count < self._max_mints
            if include_used or can_mint:
                listings.append(WalletListing(
                    wallet_address=w.wallet_address,
                    added_at=w.added_at,
                    expires_at=w.expires_at,
                    mint_count=count,
                    can_mint=can_mint,
                ))
        return listings

    async def get_minting_stats(self) -> MintingStats:
        authorized = await self._store.get_authorized_wallets()
        counts = await self._store.get_all_wallet_mint_counts()
        tiers = await self._store.get_all_tier_mint_counts()
        return MintingStats(
            total_authorized_wallets=len(authorized),
            total_mints=sum(c.mint_count for c in counts),
            wallets_with_mints=sum(1 for c in counts if c.mint_count > 0),
            wallets_at_max_limit=sum(1 for c in counts if c.mint_count >= self._max_mints),
            max_mints_per_wallet=self._max_mints,
            tier_stats={t.tier_name: t for t in tiers},
        )
