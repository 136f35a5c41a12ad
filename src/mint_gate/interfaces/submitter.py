"""MintSubmitter protocol - hands a mint to the external minting service."""

from __future__ import annotations

from typing import Protocol

from mint_gate.models.records import MintRequest, MintResult


class MintSubmitter(Protocol):
    """Submits a compressed-NFT mint and waits for finalization."""

    async def submit_mint(self, request: MintRequest) -> MintResult:
        ...

    async def close(self) -> None:
        ...
