"""State persistence."""

from mint_gate.storage.sqlite import SQLiteGateStore

__all__ = ["SQLiteGateStore"]
