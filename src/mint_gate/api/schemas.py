"""Request bodies for the HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from mint_gate.pipeline.wallets import expiry_to_iso


class MintBody(BaseModel):
    userWallet: str = Field("", description="Recipient wallet public key")
    paymentSignature: str = Field("", description="Signature of the SOL payment transaction")


class AirdropBody(BaseModel):
    userWallet: str = Field("", description="Recipient wallet public key")
    # Passed through unconverted; the pipeline rejects bools and fractions.
    nftId: Any = Field(None, description="NFT number to airdrop")


class AddWalletsBody(BaseModel):
    adminKey: str = ""
    walletAddresses: Optional[List[str]] = None
    expiresAt: Optional[datetime] = Field(None, description="ISO 8601 expiry for all added wallets")

    def expires_at_iso(self) -> str | None:
        return expiry_to_iso(self.expiresAt) if self.expiresAt is not None else None


class WalletBody(BaseModel):
    adminKey: str = ""
    walletAddress: str


class TierBody(BaseModel):
    adminKey: str = ""
    tierName: str
