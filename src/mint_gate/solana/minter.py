"""Mint submitter - hands compressed-NFT mints to the external minting service."""

from __future__ import annotations

import logging

import httpx

from mint_gate.models.records import MintRequest, MintResult

log = logging.getLogger(__name__)


class HttpMintSubmitter:
    """Submits mints to the minting service over HTTP.

    The service owns the collection authority keypair. It builds the
    mint-to-collection transaction, signs it, waits for ``finalized``
    commitment and replies with the transaction signature and leaf asset id.
    There is no retry: a failed or timed-out mint is reported as-is.
    """

    def __init__(
        self,
        minter_url: str,
        api_key: str = "",
        timeout: float = 120.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = f"{minter_url.rstrip('/')}/mint"
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = client or httpx.AsyncClient(timeout=timeout, headers=headers)

    async def close(self) -> None:
        await self._client.aclose()

    async def submit_mint(self, request: MintRequest) -> MintResult:
        log.info(
            "Submitting mint #%d (%s) to %s", request.nft_number, request.name,
            request.owner[:16],
        )
        payload = {
            "leafOwner": request.owner,
            "name": request.name,
            "symbol": request.symbol,
            "uri": request.uri,
            "sellerFeeBasisPoints": request.seller_fee_basis_points,
        }
        try:
            resp = await self._client.post(self._url, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as exc:
            detail = exc.response.text[:200]
            log.error("Minter rejected #%d: %s %s", request.nft_number,
                      exc.response.status_code, detail)
            return MintResult(
                success=False,
                nft_number=request.nft_number,
                error=f"minter returned {exc.response.status_code}: {detail}",
            )
        except (httpx.HTTPError, ValueError) as exc:
            log.error("Minter request failed for #%d: %s", request.nft_number, exc)
            return MintResult(success=False, nft_number=request.nft_number, error=str(exc))

        signature = data.get("signature")
        asset_id = data.get("assetId")
        if not signature or not asset_id:
            return MintResult(
                success=False,
                nft_number=request.nft_number,
                error=f"minter response missing signature/assetId: {data}",
            )

        log.info("Mint #%d finalized (asset=%s, tx=%s)", request.nft_number,
                 asset_id, signature[:16])
        return MintResult(
            success=True,
            nft_number=request.nft_number,
            signature=signature,
            asset_id=asset_id,
        )
