"""Identifier ledger and its remote mirror."""

from mint_gate.tracking.identifiers import IdentifierLedger
from mint_gate.tracking.mirror import GitHubMirror

__all__ = ["GitHubMirror", "IdentifierLedger"]
