"""FastAPI application exposing the mint gate over HTTP."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse

from mint_gate.api.data_api import DataAggregator, outcome_to_dict, tier_count_to_dict
from mint_gate.api.schemas import AddWalletsBody, AirdropBody, MintBody, TierBody, WalletBody
from mint_gate.models.config import GateConfig
from mint_gate.models.errors import (
    AdmissionError,
    ErrorCode,
    LedgerError,
    MintSubmissionError,
)
from mint_gate.service import MintGateService

log = logging.getLogger(__name__)

NO_CACHE = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def _describe_validation(errors) -> str:
    parts = []
    for e in errors:
        field = ".".join(str(p) for p in e.get("loc", ())[1:] if isinstance(p, str))
        parts.append(f"{field}: {e['msg']}" if field else e["msg"])
    return "; ".join(parts) or "Invalid request body"


def create_app(cfg: GateConfig | None = None, service: MintGateService | None = None) -> FastAPI:
    """Build the app. Pass ``service`` to reuse pre-wired components (tests)."""
    if service is None:
        service = MintGateService(cfg or GateConfig())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await service.start()
        try:
            yield
        finally:
            await service.stop()

    app = FastAPI(title="mint-gate", lifespan=lifespan)
    app.state.service = service
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(service.cfg.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    def data() -> DataAggregator:
        return DataAggregator(service.tiers, service.wallets)

    def now() -> int:
        return int(service.clock())

    @app.exception_handler(AdmissionError)
    async def _admission_error(request: Request, exc: AdmissionError) -> JSONResponse:
        log.info("%s %s rejected: %s", request.method, request.url.path, exc.code.value)
        return JSONResponse(status_code=exc.status, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        err = AdmissionError(ErrorCode.INVALID_REQUEST, _describe_validation(exc.errors()))
        log.info("%s %s rejected: %s", request.method, request.url.path, err.message)
        return JSONResponse(status_code=err.status, content=err.to_dict())

    @app.exception_handler(LedgerError)
    @app.exception_handler(MintSubmissionError)
    async def _collaborator_error(request: Request, exc: Exception) -> JSONResponse:
        log.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        log.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": str(exc) or "Internal server error"},
        )

    # ── Public ─────────────────────────────────────────────

    @app.get("/api/", response_class=PlainTextResponse)
    async def health() -> str:
        return "successful"

    @app.get("/api/current-tier")
    async def current_tier() -> JSONResponse:
        return JSONResponse(await data().get_current_tier(now()), headers=NO_CACHE)

    @app.get("/api/tiers")
    async def tier_schedule() -> dict:
        return data().get_tier_schedule(now())

    @app.post("/api/mint")
    async def mint(body: MintBody) -> dict:
        outcome = await service.mint(body.userWallet, body.paymentSignature)
        return outcome_to_dict(outcome)

    @app.post("/api/airdrop")
    async def airdrop(
        body: AirdropBody, authorization: Optional[str] = Header(None),
    ) -> dict:
        outcome = await service.airdrop(authorization, body.userWallet, body.nftId)
        return outcome_to_dict(outcome)

    @app.get("/api/wallet/check/{wallet_address}")
    async def wallet_check(wallet_address: str) -> dict:
        return await data().get_wallet_check(wallet_address)

    @app.get("/api/wallet/status/{wallet_address}")
    async def wallet_status(wallet_address: str) -> dict:
        return await data().get_wallet_status(wallet_address)

    @app.get("/api/events")
    async def events() -> StreamingResponse:
        return StreamingResponse(
            service.events.stream(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    # ── Admin ──────────────────────────────────────────────

    @app.post("/api/admin/wallets/add")
    async def add_wallets(body: AddWalletsBody) -> dict:
        service.require_admin(body.adminKey)
        if body.walletAddresses is None:
            raise AdmissionError(ErrorCode.INVALID_REQUEST, "walletAddresses must be an array")
        await service.wallets.batch_add_authorized_wallets(
            body.walletAddresses, expires_at=body.expires_at_iso(),
        )
        return {
            "success": True,
            "message": f"Added {len(body.walletAddresses)} wallets to authorized collection",
            "addedWallets": body.walletAddresses,
        }

    @app.post("/api/admin/wallets/remove")
    async def remove_wallet(body: WalletBody) -> dict:
        service.require_admin(body.adminKey)
        await service.wallets.remove_authorized_wallet(body.walletAddress)
        return {
            "success": True,
            "message": f"Wallet {body.walletAddress} removed from authorized collection",
        }

    @app.post("/api/admin/wallets/reset")
    async def reset_wallet(body: WalletBody) -> dict:
        service.require_admin(body.adminKey)
        await service.wallets.reset_mint_count(body.walletAddress)
        return {"success": True, "message": f"Reset mint count for wallet {body.walletAddress}"}

    @app.get("/api/admin/wallets")
    async def list_wallets(adminKey: str = "", includeUsed: str = "false") -> dict:
        service.require_admin(adminKey)
        return await data().list_wallets(includeUsed == "true")

    @app.get("/api/admin/tiers")
    async def tier_stats(adminKey: str = "") -> dict:
        service.require_admin(adminKey)
        records = await service.tiers.get_all_tier_stats()
        return {"success": True, "tiers": [tier_count_to_dict(r) for r in records]}

    @app.post("/api/admin/tiers/reset")
    async def reset_tier(body: TierBody) -> dict:
        service.require_admin(body.adminKey)
        await service.tiers.reset_tier_mint_count(body.tierName)
        return {"success": True, "message": f"Reset mint count for tier {body.tierName}"}

    @app.get("/api/admin/stats")
    async def stats(adminKey: str = "") -> dict:
        service.require_admin(adminKey)
        return await data().get_stats()

    return app
