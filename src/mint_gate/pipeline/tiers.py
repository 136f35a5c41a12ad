"""Tier registry - time-boxed pricing tiers and their supply counters."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from mint_gate.interfaces.store import GateStore
from mint_gate.models.config import PricingTier
from mint_gate.models.records import TierMintCount

log = logging.getLogger(__name__)


@dataclass
class TierStatus:
    """A tier's position in the schedule relative to some instant."""

    tier: PricingTier
    status: str  # "ACTIVE", "UPCOMING", "ENDED"
    starts_in: int | None  # seconds, None once started
    ends_in: int | None  # seconds, None once ended


class TierRegistry:
    """Resolves the active tier and reads per-tier mint counts.

    Tiers are assumed not to overlap; if they do, the first one in
    declaration order wins.
    """

    def __init__(self, tiers: tuple[PricingTier, ...], store: GateStore) -> None:
        self._tiers = tiers
        self._store = store

    @property
    def tiers(self) -> tuple[PricingTier, ...]:
        return self._tiers

    def current_tier(self, now: int) -> PricingTier | None:
        for tier in self._tiers:
            if tier.contains(now):
                return tier
        return None

    def next_tier(self, now: int) -> PricingTier | None:
        """First tier in declaration order that has not started yet."""
        for tier in self._tiers:
            if tier.start_time > now:
                return tier
        return None

    def get(self, name: str) -> PricingTier | None:
        for tier in self._tiers:
            if tier.name == name:
                return tier
        return None

    def schedule(self, now: int) -> list[TierStatus]:
        result = []
        for tier in self._tiers:
            if tier.contains(now):
                status = "ACTIVE"
            elif tier.start_time > now:
                status = "UPCOMING"
            else:
                status = "ENDED"
            starts_in = tier.start_time - now
            ends_in = tier.end_time - now
            result.append(TierStatus(
                tier=tier,
                status=status,
                starts_in=starts_in if starts_in > 0 else None,
                ends_in=ends_in if ends_in > 0 else None,
            ))
        return result

    async def tier_minted_count(self, tier_name: str) -> int:
        """Mint count for a tier. Store failures count as zero (fails open)."""
        try:
            record = await self._store.get_tier_mint_count(tier_name)
        except Exception as exc:
            log.error("Error fetching tier mint count for %s: %s", tier_name, exc)
            return 0
        return record.mint_count if record else 0

    async def increment_tier_mint_count(
        self, tier_name: str, signature: str, wallet: str
    ) -> int:
        new_count = await self._store.increment_tier_mint_count(tier_name, signature, wallet)
        log.info("Incremented mint count for tier %s to %d", tier_name, new_count)
        return new_count

    async def get_tier_stats(self, tier_name: str) -> TierMintCount:
        record = await self._store.get_tier_mint_count(tier_name)
        return record or TierMintCount(tier_name=tier_name)

    async def get_all_tier_stats(self) -> list[TierMintCount]:
        return await self._store.get_all_tier_mint_counts()

    async def reset_tier_mint_count(self, tier_name: str) -> None:
        await self._store.reset_tier_mint_count(tier_name)
        log.info("Reset mint count for tier %s", tier_name)
