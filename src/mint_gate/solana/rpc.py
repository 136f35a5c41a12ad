"""Solana JSON-RPC client for payment verification."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from mint_gate.models.errors import LedgerError
from mint_gate.models.records import TransactionDetails

log = logging.getLogger(__name__)


class SolanaRpcLedger:
    """Read-only transaction lookups against a Solana RPC endpoint.

    Implements the LedgerClient protocol.
    """

    def __init__(
        self,
        rpc_url: str,
        commitment: str = "confirmed",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._rpc_url = rpc_url
        self._commitment = commitment
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def _post(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        try:
            resp = await self._client.post(self._rpc_url, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise LedgerError(f"RPC request {method} failed: {exc}") from exc
        if "error" in data:
            err = data["error"]
            message = err.get("message") if isinstance(err, dict) else str(err)
            raise LedgerError(f"RPC error: {message}")
        return data.get("result")

    async def _get_transaction(self, signature: str, encoding: str) -> dict:
        result = await self._post(
            "getTransaction",
            [
                signature,
                {
                    "encoding": encoding,
                    "commitment": self._commitment,
                    "maxSupportedTransactionVersion": 0,
                },
            ],
        )
        if not result:
            raise LedgerError("Transaction not found")
        return result

    async def get_payment_amount(self, signature: str) -> int:
        """Net lamports the fee payer sent: pre - post - fee on account 0."""
        tx = await self._get_transaction(signature, "json")
        try:
            meta = tx["meta"]
            amount = meta["preBalances"][0] - meta["postBalances"][0] - meta["fee"]
        except (KeyError, IndexError, TypeError) as exc:
            raise LedgerError(f"Malformed transaction {signature}: {exc}") from exc
        log.debug("Payment %s transferred %d lamports", signature[:16], amount)
        return amount

    async def get_transaction_details(self, signature: str) -> TransactionDetails:
        tx = await self._get_transaction(signature, "jsonParsed")
        try:
            keys = tx["transaction"]["message"]["accountKeys"]
            return TransactionDetails(
                signature=signature,
                fee_payer=keys[0]["pubkey"],
                all_addresses=[k["pubkey"] for k in keys],
                signers=[k["pubkey"] for k in keys if k.get("signer")],
                writable_accounts=[k["pubkey"] for k in keys if k.get("writable")],
            )
        except (KeyError, IndexError, TypeError) as exc:
            raise LedgerError(f"Malformed transaction {signature}: {exc}") from exc
