"""Mint admission: tiers, wallet authorization and the pipeline tying them together."""

from mint_gate.pipeline.admission import AdmissionPipeline
from mint_gate.pipeline.tiers import TierRegistry, TierStatus
from mint_gate.pipeline.wallets import WalletAuthorizer

__all__ = ["AdmissionPipeline", "TierRegistry", "TierStatus", "WalletAuthorizer"]
