"""Tagged admission errors surfaced to API callers."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum


class ErrorCode(str, Enum):
    """Stable error codes returned in the ``error.code`` field."""

    NO_ACTIVE_TIER = "NO_ACTIVE_TIER"
    TIER_SUPPLY_EXHAUSTED = "TIER_SUPPLY_EXHAUSTED"
    WALLET_NOT_AUTHORIZED = "WALLET_NOT_AUTHORIZED"
    INSUFFICIENT_PAYMENT = "INSUFFICIENT_PAYMENT"
    DUPLICATE_TRANSACTION = "DUPLICATE_TRANSACTION"
    TRANSACTION_VERIFICATION_FAILED = "TRANSACTION_VERIFICATION_FAILED"
    MAX_SUPPLY_REACHED = "MAX_SUPPLY_REACHED"
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_NFT_ID = "INVALID_NFT_ID"
    UNAUTHORIZED = "UNAUTHORIZED"
    NFT_ALREADY_MINTED = "NFT_ALREADY_MINTED"
    MINT_FAILED = "MINT_FAILED"


STATUS_CODES: dict[ErrorCode, int] = {
    ErrorCode.NO_ACTIVE_TIER: 410,
    ErrorCode.TIER_SUPPLY_EXHAUSTED: 410,
    ErrorCode.MAX_SUPPLY_REACHED: 410,
    ErrorCode.WALLET_NOT_AUTHORIZED: 403,
    ErrorCode.INSUFFICIENT_PAYMENT: 409,
    ErrorCode.DUPLICATE_TRANSACTION: 409,
    ErrorCode.NFT_ALREADY_MINTED: 409,
    ErrorCode.TRANSACTION_VERIFICATION_FAILED: 400,
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.INVALID_NFT_ID: 400,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.MINT_FAILED: 500,
}


class AdmissionError(Exception):
    """A mint or airdrop request was rejected at some pipeline stage."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        resolution: str | None = None,
        **context: object,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.resolution = resolution
        self.context = context
        self.timestamp = datetime.now(timezone.utc).isoformat()

    @property
    def status(self) -> int:
        return STATUS_CODES[self.code]

    def to_dict(self) -> dict:
        error: dict = {
            "code": self.code.value,
            "message": self.message,
            **self.context,
            "timestamp": self.timestamp,
        }
        if self.resolution:
            error["resolution"] = self.resolution
        return {"success": False, "error": error}


class LedgerError(Exception):
    """The Solana RPC node returned an error or no data."""


class MintSubmissionError(Exception):
    """The external minting service could not mint."""


class MirrorError(Exception):
    """The remote version-controlled mirror rejected an update."""
