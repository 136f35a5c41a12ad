"""Tier resolution, schedule view and per-tier counters."""

from __future__ import annotations

from mint_gate.models.config import DEFAULT_TIERS, PricingTier
from mint_gate.pipeline.tiers import TierRegistry
from tests.conftest import (
    IN_TIER_A,
    TIER_A_END,
    TIER_A_START,
    TIER_B_END,
    TIER_B_START,
    TEST_TIERS,
)
from tests.mocks import FailingStore


# ── Resolution ────────────────────────────────────────────────────


def test_start_is_inclusive(tiers):
    assert tiers.current_tier(TIER_A_START).name == "Tier A"


def test_end_is_exclusive(tiers):
    """The instant a tier ends it no longer applies; the gap has no tier."""
    assert tiers.current_tier(TIER_A_END - 1).name == "Tier A"
    assert tiers.current_tier(TIER_A_END) is None


def test_next_tier_resolves_at_its_start(tiers):
    assert tiers.current_tier(TIER_B_START).name == "Tier B"


def test_no_tier_outside_schedule(tiers):
    assert tiers.current_tier(TIER_A_START - 1) is None
    assert tiers.current_tier(TIER_B_END) is None


def test_overlap_first_declared_wins(store):
    first = PricingTier("First", 100, 200, max_supply=10, price_lamports=1)
    second = PricingTier("Second", 150, 250, max_supply=10, price_lamports=2)
    registry = TierRegistry((first, second), store)

    assert registry.current_tier(175).name == "First"
    assert registry.current_tier(225).name == "Second"


def test_next_tier(tiers):
    assert tiers.next_tier(TIER_A_END).name == "Tier B"
    assert tiers.next_tier(IN_TIER_A).name == "Tier B"
    assert tiers.next_tier(TIER_B_START) is None


def test_get_by_name(tiers):
    assert tiers.get("Tier B") is TEST_TIERS[1]
    assert tiers.get("Tier Z") is None


def test_default_tiers_are_ordered_and_disjoint():
    for earlier, later in zip(DEFAULT_TIERS, DEFAULT_TIERS[1:]):
        assert earlier.end_time <= later.start_time
    assert [t.price_sol for t in DEFAULT_TIERS] == [0.5, 1.0, 5.0, 10.0]
    assert sum(t.max_supply for t in DEFAULT_TIERS) == 2500


# ── Schedule ──────────────────────────────────────────────────────


def test_schedule_during_first_tier(tiers):
    schedule = tiers.schedule(IN_TIER_A)

    assert [s.status for s in schedule] == ["ACTIVE", "UPCOMING"]
    assert schedule[0].starts_in is None
    assert schedule[0].ends_in == TIER_A_END - IN_TIER_A
    assert schedule[1].starts_in == TIER_B_START - IN_TIER_A


def test_schedule_after_everything(tiers):
    schedule = tiers.schedule(TIER_B_END + 1)
    assert [s.status for s in schedule] == ["ENDED", "ENDED"]
    assert all(s.ends_in is None for s in schedule)


# ── Counters ──────────────────────────────────────────────────────


async def test_minted_count_starts_at_zero(tiers):
    assert await tiers.tier_minted_count("Tier A") == 0


async def test_increment_and_stats(tiers):
    assert await tiers.increment_tier_mint_count("Tier A", "mintsig1", "wallet1") == 1
    assert await tiers.increment_tier_mint_count("Tier A", "mintsig2", "wallet2") == 2

    stats = await tiers.get_tier_stats("Tier A")
    assert stats.mint_count == 2
    assert [e.signature for e in stats.mint_transactions] == ["mintsig1", "mintsig2"]
    assert stats.mint_transactions[1].wallet == "wallet2"
    assert stats.first_mint_at is not None

    assert await tiers.tier_minted_count("Tier A") == 2
    assert [t.tier_name for t in await tiers.get_all_tier_stats()] == ["Tier A"]


async def test_stats_for_untouched_tier(tiers):
    stats = await tiers.get_tier_stats("Tier B")
    assert stats.tier_name == "Tier B"
    assert stats.mint_count == 0
    assert stats.mint_transactions == []


async def test_reset_tier_count(tiers):
    await tiers.increment_tier_mint_count("Tier A", "mintsig1", "wallet1")
    await tiers.reset_tier_mint_count("Tier A")
    assert await tiers.tier_minted_count("Tier A") == 0


async def test_minted_count_fails_open(store):
    """A store read failure counts as zero rather than blocking mints."""
    registry = TierRegistry(TEST_TIERS, FailingStore(store, "get_tier_mint_count"))
    assert await registry.tier_minted_count("Tier A") == 0
