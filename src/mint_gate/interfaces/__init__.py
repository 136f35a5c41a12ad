"""Protocol interfaces for the mint gate's collaborators."""

from mint_gate.interfaces.ledger import LedgerClient
from mint_gate.interfaces.mirror import RemoteMirror
from mint_gate.interfaces.store import GateStore
from mint_gate.interfaces.submitter import MintSubmitter

__all__ = ["GateStore", "LedgerClient", "MintSubmitter", "RemoteMirror"]
