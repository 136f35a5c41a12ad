"""Service wiring - builds every component from one GateConfig."""

from __future__ import annotations

import hmac
import logging
import time
from pathlib import Path

from mint_gate.events import EventBroadcaster
from mint_gate.interfaces.ledger import LedgerClient
from mint_gate.interfaces.mirror import RemoteMirror
from mint_gate.interfaces.store import GateStore
from mint_gate.interfaces.submitter import MintSubmitter
from mint_gate.models.config import GateConfig
from mint_gate.models.errors import AdmissionError, ErrorCode
from mint_gate.models.records import MintOutcome
from mint_gate.pipeline.admission import AdmissionPipeline
from mint_gate.pipeline.tiers import TierRegistry
from mint_gate.pipeline.wallets import WalletAuthorizer
from mint_gate.solana.minter import HttpMintSubmitter
from mint_gate.solana.rpc import SolanaRpcLedger
from mint_gate.storage.sqlite import SQLiteGateStore
from mint_gate.tracking.identifiers import IdentifierLedger
from mint_gate.tracking.mirror import GitHubMirror

log = logging.getLogger(__name__)


def _same_secret(given: str | None, expected: str) -> bool:
    if not expected or not given:
        return False
    return hmac.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


class MintGateService:
    """Owns the store, collaborators and admission pipeline for one process.

    Components are plain attributes so tests can swap in mocks before
    ``start()``; ``rebuild_pipeline()`` re-wires the pipeline afterwards.
    """

    def __init__(self, cfg: GateConfig) -> None:
        self.cfg = cfg
        self.start_time = time.monotonic()
        self.clock = time.time

        self.store: GateStore = SQLiteGateStore(str(Path(cfg.db_path).expanduser()))
        self.ledger: LedgerClient = SolanaRpcLedger(
            cfg.rpc_url, commitment=cfg.commitment, timeout=cfg.rpc_timeout,
        )
        self.submitter: MintSubmitter = HttpMintSubmitter(
            cfg.minter_url, api_key=cfg.minter_api_key, timeout=cfg.minter_timeout,
        )
        self.mirror: RemoteMirror | None = (
            GitHubMirror(cfg.github) if cfg.github.enabled else None
        )
        self.identifiers = IdentifierLedger(
            Path(cfg.tracking_file).expanduser(),
            max_supply=cfg.mint.max_supply,
            mirror=self.mirror,
            mirror_path=cfg.github.path,
        )
        self.events = EventBroadcaster(heartbeat_interval=cfg.heartbeat_interval)
        self.rebuild_pipeline()

    def rebuild_pipeline(self) -> None:
        self.tiers = TierRegistry(self.cfg.tiers, self.store)
        self.wallets = WalletAuthorizer(self.store, self.cfg.mint.max_mints_per_wallet)
        self.pipeline = AdmissionPipeline(
            settings=self.cfg.mint,
            tiers=self.tiers,
            wallets=self.wallets,
            store=self.store,
            ledger=self.ledger,
            submitter=self.submitter,
            identifiers=self.identifiers,
            clock=lambda: self.clock(),
        )

    # ── Lifecycle ──────────────────────────────────────────

    async def start(self) -> None:
        log.info("Starting mint gate")
        log.info("  RPC: %s", self.cfg.rpc_url)
        log.info("  Minter: %s", self.cfg.minter_url)
        log.info("  Tiers: %s", ", ".join(t.name for t in self.cfg.tiers))
        log.info("  Mirror: %s", "github" if self.mirror else "disabled")
        if not self.cfg.admin_secret:
            log.warning("No admin secret configured; admin endpoints will reject all requests")

        await self.store.initialize()
        record = self.identifiers.load()
        log.info("Identifier ledger: %d minted, last sequential id %d",
                 len(record.minted_ids), record.last_minted_id)

    async def stop(self) -> None:
        await self.identifiers.flush()
        await self.store.close()
        await self.ledger.close()
        await self.submitter.close()
        if self.mirror is not None:
            await self.mirror.close()
        log.info("Mint gate shut down cleanly")

    # ── Auth ───────────────────────────────────────────────

    def require_admin(self, admin_key: str | None) -> None:
        if not _same_secret(admin_key, self.cfg.admin_secret):
            raise AdmissionError(ErrorCode.UNAUTHORIZED, "Unauthorized access")

    def require_airdrop_admin(self, authorization: str | None) -> None:
        expected = f"Bearer {self.cfg.airdrop_admin_wallet}"
        if not self.cfg.airdrop_admin_wallet or not _same_secret(authorization, expected):
            raise AdmissionError(
                ErrorCode.UNAUTHORIZED, "Unauthorized access to airdrop endpoint",
            )

    # ── Mint paths ─────────────────────────────────────────

    async def mint(self, wallet: str, payment_signature: str) -> MintOutcome:
        outcome = await self.pipeline.mint(wallet, payment_signature)
        await self._announce(outcome)
        return outcome

    async def airdrop(
        self, authorization: str | None, wallet: str, nft_id: int | str | None
    ) -> MintOutcome:
        self.require_airdrop_admin(authorization)
        outcome = await self.pipeline.airdrop(wallet, nft_id)
        await self._announce(outcome)
        return outcome

    async def _announce(self, outcome: MintOutcome) -> None:
        data: dict = {"nftNumber": outcome.nft_number, "name": outcome.name}
        if outcome.tier_name:
            tier = self.tiers.get(outcome.tier_name)
            minted = await self.tiers.tier_minted_count(outcome.tier_name)
            data["tier"] = outcome.tier_name
            if tier is not None:
                data["remaining"] = max(0, tier.max_supply - minted)
        self.events.publish("mint", data)
