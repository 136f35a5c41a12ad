"""Admission pipeline - gates a mint request behind tier, wallet and payment checks."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from mint_gate.interfaces.ledger import LedgerClient
from mint_gate.interfaces.store import GateStore
from mint_gate.interfaces.submitter import MintSubmitter
from mint_gate.models.config import LAMPORTS_PER_SOL, MintSettings, PricingTier
from mint_gate.models.errors import AdmissionError, ErrorCode, MintSubmissionError
from mint_gate.models.records import MintOutcome, MintRequest, MintResult
from mint_gate.pipeline.tiers import TierRegistry
from mint_gate.pipeline.wallets import WalletAuthorizer
from mint_gate.tracking.identifiers import IdentifierLedger

log = logging.getLogger(__name__)


def _duplicate(payment_signature: str) -> AdmissionError:
    return AdmissionError(
        ErrorCode.DUPLICATE_TRANSACTION,
        "This transaction ID has already been used",
        resolution="Please use a new, unique transaction",
        txid=payment_signature,
    )


class AdmissionPipeline:
    """Runs a mint request through the ordered admission checks.

    Stages, each of which short-circuits with an AdmissionError:
    1. An active tier exists for the current time
    2. The tier has supply left (counting mints still in flight)
    3. The wallet is whitelisted and below its mint cap
    4. The payment transferred exactly the tier price
    5. The payment has not been used before
    6. The payment transaction can be re-fetched and parsed
    7. A free NFT number below max supply is reserved
    8. The mint is submitted and finalized
    9. Bookkeeping: identifier ledger, replay guard, wallet and tier counters

    Stage 9 is best-effort. The mint is already final on-chain, so each
    failed write is logged and reported in ``MintOutcome.degraded_steps``
    rather than failing the request.

    Requests for the same wallet are serialized, so a wallet one mint below
    its cap cannot slip two concurrent mints past stage 3.
    """

    def __init__(
        self,
        settings: MintSettings,
        tiers: TierRegistry,
        wallets: WalletAuthorizer,
        store: GateStore,
        ledger: LedgerClient,
        submitter: MintSubmitter,
        identifiers: IdentifierLedger,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings
        self._tiers = tiers
        self._wallets = wallets
        self._store = store
        self._ledger = ledger
        self._submitter = submitter
        self._identifiers = identifiers
        self._clock = clock

        self._wallet_locks: dict[str, asyncio.Lock] = {}
        self._wallet_lock_users: Counter[str] = Counter()
        self._tier_in_flight: Counter[str] = Counter()
        self._pending_payments: set[str] = set()

    # ── Paid mint ──────────────────────────────────────────

    async def mint(self, wallet: str, payment_signature: str) -> MintOutcome:
        if not wallet or not payment_signature:
            raise AdmissionError(
                ErrorCode.INVALID_REQUEST,
                "userWallet and paymentSignature are required",
            )

        log.info("Mint request: wallet=%s payment=%s", wallet, payment_signature[:16])

        # 1. Resolve tier
        tier = self._tiers.current_tier(int(self._clock()))
        if tier is None:
            raise AdmissionError(
                ErrorCode.NO_ACTIVE_TIER,
                "No NFT tier is currently active for minting",
            )

        async with self._hold_wallet(wallet):
            # 2. Tier capacity
            minted = await self._tiers.tier_minted_count(tier.name)
            if minted + self._tier_in_flight[tier.name] >= tier.max_supply:
                raise AdmissionError(
                    ErrorCode.TIER_SUPPLY_EXHAUSTED,
                    f"{tier.name} is sold out",
                    resolution="This tier has reached its maximum supply limit",
                    tierName=tier.name,
                    maxSupply=tier.max_supply,
                    currentMinted=minted,
                )
            self._tier_in_flight[tier.name] += 1
            try:
                return await self._admit(wallet, payment_signature, tier)
            finally:
                self._tier_in_flight[tier.name] -= 1

    async def _admit(
        self, wallet: str, payment_signature: str, tier: PricingTier
    ) -> MintOutcome:
        # 3. Wallet authorization
        if not await self._wallets.is_authorized(wallet):
            raise AdmissionError(
                ErrorCode.WALLET_NOT_AUTHORIZED,
                "This wallet address is not authorized for minting",
                resolution="Contact admin to get your wallet whitelisted",
                wallet=wallet,
            )

        # 4. Payment amount (exact match)
        amount = await self._ledger.get_payment_amount(payment_signature)
        if amount != tier.price_lamports:
            raise AdmissionError(
                ErrorCode.INSUFFICIENT_PAYMENT,
                "Payment amount does not match required price for current tier",
                resolution="Send the correct amount and try again",
                expected=tier.price_sol,
                received=amount / LAMPORTS_PER_SOL,
                currentTier=tier.name,
                txid=payment_signature,
            )

        # 5. Replay guard. The pending entry is claimed before any await.
        if payment_signature in self._pending_payments:
            raise _duplicate(payment_signature)
        self._pending_payments.add(payment_signature)
        try:
            if await self._store.is_transaction_processed(payment_signature):
                raise _duplicate(payment_signature)

            # 6. Transaction details
            try:
                await self._ledger.get_transaction_details(payment_signature)
            except Exception as exc:
                log.warning("Failed to verify transaction %s: %s", payment_signature, exc)
                raise AdmissionError(
                    ErrorCode.TRANSACTION_VERIFICATION_FAILED,
                    "Could not verify the payment transaction",
                    details=str(exc),
                ) from exc

            # 7. Allocate id
            nft_number = await self._identifiers.allocate()

            # 8. Mint
            result = await self._submit(wallet, nft_number)

            # 9. Bookkeeping
            degraded = await self._commit(wallet, payment_signature, tier, nft_number, result)
        finally:
            self._pending_payments.discard(payment_signature)

        return MintOutcome(
            nft_number=nft_number,
            name=self._settings.nft_name(nft_number),
            asset_id=result.asset_id or "",
            image_url=self._settings.image_url(nft_number),
            mint_signature=result.signature or "",
            wallet=wallet,
            tier_name=tier.name,
            payment_signature=payment_signature,
            degraded_steps=degraded,
        )

    async def _commit(
        self,
        wallet: str,
        payment_signature: str,
        tier: PricingTier,
        nft_number: int,
        result: MintResult,
    ) -> list[str]:
        degraded: list[str] = []
        mint_signature = result.signature or ""

        try:
            await self._identifiers.record_minted(nft_number, advance_sequence=True)
        except Exception as exc:
            log.error("Failed to record NFT #%d in identifier ledger: %s",
                      nft_number, exc, exc_info=True)
            degraded.append("ledger")

        try:
            if not await self._store.mark_transaction_processed(payment_signature, wallet):
                log.warning("Payment %s was already marked processed", payment_signature)
        except Exception as exc:
            log.error("Failed to mark payment %s processed: %s",
                      payment_signature, exc, exc_info=True)
            degraded.append("replay_guard")

        try:
            await self._wallets.increment_mint_count(wallet, payment_signature)
        except Exception as exc:
            log.error("Failed to increment mint count for wallet %s: %s",
                      wallet, exc, exc_info=True)
            degraded.append("wallet_count")

        try:
            await self._tiers.increment_tier_mint_count(tier.name, mint_signature, wallet)
        except Exception as exc:
            log.error("Failed to increment mint count for tier %s: %s",
                      tier.name, exc, exc_info=True)
            degraded.append("tier_count")

        if degraded:
            log.error("NFT #%d minted but bookkeeping degraded: %s",
                      nft_number, ", ".join(degraded))
        return degraded

    # ── Airdrop ────────────────────────────────────────────

    async def airdrop(self, wallet: str, nft_id: int | str | None) -> MintOutcome:
        """Mint a specific number without payment, tier or whitelist checks.

        The caller is responsible for authenticating the airdrop admin.
        The id is marked consumed without advancing the sequence pointer.
        """
        if not wallet or nft_id is None or nft_id == "":
            raise AdmissionError(
                ErrorCode.INVALID_REQUEST,
                "Wallet address and NFT ID are required",
            )

        nft_number = self._parse_nft_id(nft_id)
        await self._identifiers.reserve(nft_number)

        log.info("Airdropping NFT #%d to %s", nft_number, wallet)
        result = await self._submit(wallet, nft_number)

        degraded: list[str] = []
        try:
            await self._identifiers.record_minted(nft_number, advance_sequence=False)
        except Exception as exc:
            log.error("Failed to record airdropped NFT #%d: %s",
                      nft_number, exc, exc_info=True)
            degraded.append("ledger")

        return MintOutcome(
            nft_number=nft_number,
            name=self._settings.nft_name(nft_number),
            asset_id=result.asset_id or "",
            image_url=self._settings.image_url(nft_number),
            mint_signature=result.signature or "",
            wallet=wallet,
            degraded_steps=degraded,
        )

    def _parse_nft_id(self, nft_id: int | str) -> int:
        invalid = AdmissionError(
            ErrorCode.INVALID_NFT_ID,
            f"NFT ID must be a valid number between 0 and {self._settings.max_airdrop_id - 1}",
        )
        if isinstance(nft_id, bool) or (isinstance(nft_id, float) and not nft_id.is_integer()):
            raise invalid
        try:
            number = int(nft_id)
        except (TypeError, ValueError):
            raise invalid from None
        if not 0 <= number < self._settings.max_airdrop_id:
            raise invalid
        return number

    # ── Helpers ────────────────────────────────────────────

    async def _submit(self, wallet: str, nft_number: int) -> MintResult:
        """Submit the mint; on any failure release the reserved id and raise."""
        request = MintRequest(
            owner=wallet,
            nft_number=nft_number,
            name=self._settings.nft_name(nft_number),
            symbol=self._settings.symbol,
            uri=self._settings.metadata_uri(nft_number),
            seller_fee_basis_points=self._settings.seller_fee_basis_points,
        )
        try:
            result = await self._submitter.submit_mint(request)
        except BaseException:
            await self._identifiers.release(nft_number)
            raise
        if not result.success:
            await self._identifiers.release(nft_number)
            raise MintSubmissionError(result.error or "Mint failed")
        log.info("NFT #%d minted for %s (tx=%s)", nft_number, wallet,
                 (result.signature or "?")[:16])
        return result

    @asynccontextmanager
    async def _hold_wallet(self, wallet: str) -> AsyncIterator[None]:
        lock = self._wallet_locks.setdefault(wallet, asyncio.Lock())
        self._wallet_lock_users[wallet] += 1
        try:
            async with lock:
                yield
        finally:
            self._wallet_lock_users[wallet] -= 1
            if self._wallet_lock_users[wallet] == 0:
                del self._wallet_lock_users[wallet]
                del self._wallet_locks[wallet]
