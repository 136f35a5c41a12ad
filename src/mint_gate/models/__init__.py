"""Data models for the mint gate service."""

from mint_gate.models.config import (
    DEFAULT_TIERS,
    LAMPORTS_PER_SOL,
    GateConfig,
    GitHubMirrorConfig,
    MintSettings,
    PricingTier,
)
from mint_gate.models.errors import (
    AdmissionError,
    ErrorCode,
    LedgerError,
    MintSubmissionError,
    MirrorError,
)
from mint_gate.models.records import (
    AuthorizedWallet,
    MintingStats,
    MintOutcome,
    MintRequest,
    MintResult,
    MintTrackingRecord,
    TierMintCount,
    TierMintEntry,
    TransactionDetails,
    WalletListing,
    WalletMintCount,
    WalletMintStatus,
)

__all__ = [
    "DEFAULT_TIERS", "LAMPORTS_PER_SOL", "GateConfig", "GitHubMirrorConfig",
    "MintSettings", "PricingTier",
    "AdmissionError", "ErrorCode", "LedgerError", "MintSubmissionError", "MirrorError",
    "AuthorizedWallet", "MintingStats", "MintOutcome", "MintRequest",
    "MintResult", "MintTrackingRecord", "TierMintCount", "TierMintEntry",
    "TransactionDetails", "WalletListing", "WalletMintCount", "WalletMintStatus",
]
