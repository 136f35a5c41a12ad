"""LedgerClient protocol - read access to payment transactions on-chain."""

from __future__ import annotations

from typing import Protocol

from mint_gate.models.records import TransactionDetails


class LedgerClient(Protocol):
    """Looks up payment transactions on the Solana ledger."""

    async def get_payment_amount(self, signature: str) -> int:
        """Net lamports sent by the fee payer (balance delta minus fee).

        Raises LedgerError if the transaction cannot be found.
        """
        ...

    async def get_transaction_details(self, signature: str) -> TransactionDetails:
        """Re-fetch and parse the transaction's account list.

        Raises LedgerError if the transaction is missing or unparseable.
        """
        ...

    async def close(self) -> None:
        ...
