"""Data API aggregator - builds JSON-ready views from service state."""

from __future__ import annotations

from datetime import datetime, timezone

from mint_gate.models.config import PricingTier
from mint_gate.models.records import (
    MintingStats,
    MintOutcome,
    TierMintCount,
    WalletListing,
    WalletMintStatus,
)
from mint_gate.pipeline.tiers import TierRegistry
from mint_gate.pipeline.wallets import WalletAuthorizer


def _iso(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat().replace("+00:00", "Z")


def server_time(now: int) -> dict:
    return {"unix": now, "iso": _iso(now)}


def outcome_to_dict(outcome: MintOutcome) -> dict:
    return {
        "success": True,
        "nftId": outcome.asset_id,
        "nftNumber": outcome.nft_number,
        "name": outcome.name,
        "imageUrl": outcome.image_url,
        "bookkeepingDegraded": outcome.bookkeeping_degraded,
        "details": {
            "wallet": outcome.wallet,
            "tier": outcome.tier_name,
            "paymentSignature": outcome.payment_signature,
            "transactionId": outcome.mint_signature,
            "degradedSteps": outcome.degraded_steps,
        },
    }


def tier_count_to_dict(record: TierMintCount) -> dict:
    return {
        "tierName": record.tier_name,
        "mintCount": record.mint_count,
        "mintTransactions": [
            {"signature": e.signature, "wallet": e.wallet, "timestamp": e.timestamp}
            for e in record.mint_transactions
        ],
        "firstMintAt": record.first_mint_at,
        "lastMintAt": record.last_mint_at,
    }


def wallet_status_to_dict(status: WalletMintStatus) -> dict:
    return {
        "walletAddress": status.wallet_address,
        "mintCount": status.mint_count,
        "maxAllowed": status.max_allowed,
        "remaining": status.remaining,
        "mintTransactions": status.mint_transactions,
        "canMint": status.can_mint,
        "firstMintAt": status.first_mint_at,
        "lastMintAt": status.last_mint_at,
    }


def wallet_listing_to_dict(listing: WalletListing) -> dict:
    return {
        "walletAddress": listing.wallet_address,
        "addedAt": listing.added_at,
        "expiresAt": listing.expires_at,
        "mintCount": listing.mint_count,
        "canMint": listing.can_mint,
    }


def stats_to_dict(stats: MintingStats) -> dict:
    return {
        "totalAuthorizedWallets": stats.total_authorized_wallets,
        "totalMints": stats.total_mints,
        "walletsWithMints": stats.wallets_with_mints,
        "walletsAtMaxLimit": stats.wallets_at_max_limit,
        "maxMintsPerWallet": stats.max_mints_per_wallet,
        "tierStats": {
            name: {
                "tierName": name,
                "mintCount": t.mint_count,
                "firstMintAt": t.first_mint_at,
                "lastMintAt": t.last_mint_at,
            }
            for name, t in stats.tier_stats.items()
        },
    }


class DataAggregator:
    """Builds the tier and wallet views served to the frontend."""

    def __init__(self, tiers: TierRegistry, wallets: WalletAuthorizer) -> None:
        self._tiers = tiers
        self._wallets = wallets

    async def get_current_tier(self, now: int) -> dict:
        tier = self._tiers.current_tier(now)
        if tier is None:
            upcoming = self._tiers.next_tier(now)
            return {
                "success": True,
                "activeTier": None,
                "message": "No active tier currently",
                "serverTime": server_time(now),
                "nextTier": {
                    "name": upcoming.name,
                    "startsIn": upcoming.start_time - now,
                    "startTime": _iso(upcoming.start_time),
                } if upcoming else None,
            }

        minted = await self._tiers.tier_minted_count(tier.name)
        sold_out = minted >= tier.max_supply
        return {
            "success": True,
            "activeTier": {
                **self._tier_fields(tier),
                "minted": minted,
                "remaining": max(0, tier.max_supply - minted),
                "isSoldOut": sold_out,
                "status": "sold_out" if sold_out else "active",
                "timeRemaining": tier.end_time - now,
            },
            "serverTime": server_time(now),
        }

    def get_tier_schedule(self, now: int) -> dict:
        schedule = self._tiers.schedule(now)
        current = self._tiers.current_tier(now)
        upcoming = next((s for s in schedule if s.status == "UPCOMING"), None)
        return {
            "success": True,
            "serverTime": server_time(now),
            "activeTier": current.name if current else None,
            "allTiers": [
                {
                    **self._tier_fields(s.tier),
                    "isActive": s.status == "ACTIVE",
                    "timeUntilStart": s.starts_in,
                    "timeUntilEnd": s.ends_in,
                    "status": s.status,
                }
                for s in schedule
            ],
            "nextTier": upcoming.tier.name if upcoming else None,
        }

    @staticmethod
    def _tier_fields(tier: PricingTier) -> dict:
        return {
            "name": tier.name,
            "priceSOL": tier.price_sol,
            "priceLamports": tier.price_lamports,
            "maxSupply": tier.max_supply,
            "startDate": tier.start_time,
            "endDate": tier.end_time,
            "startTime": _iso(tier.start_time),
            "endTime": _iso(tier.end_time),
        }

    async def get_wallet_check(self, wallet: str) -> dict:
        authorized = await self._wallets.is_authorized(wallet)
        return {
            "success": True,
            "walletAddress": wallet,
            "isAuthorized": authorized,
            "message": "Wallet is authorized for minting" if authorized
            else "Wallet is not authorized for minting",
        }

    async def get_wallet_status(self, wallet: str) -> dict:
        status = await self._wallets.get_mint_status(wallet)
        return {"success": True, **wallet_status_to_dict(status)}

    async def list_wallets(self, include_used: bool) -> dict:
        listings = await self._wallets.list_authorized_wallets(include_used)
        return {
            "success": True,
            "totalWallets": len(listings),
            "wallets": [wallet_listing_to_dict(w) for w in listings],
        }

    async def get_stats(self) -> dict:
        stats = await self._wallets.get_minting_stats()
        return {"success": True, **stats_to_dict(stats)}
