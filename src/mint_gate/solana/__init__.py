"""Solana ledger access and mint submission."""

from mint_gate.solana.minter import HttpMintSubmitter
from mint_gate.solana.rpc import SolanaRpcLedger

__all__ = ["HttpMintSubmitter", "SolanaRpcLedger"]
