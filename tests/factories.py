"""Synthetic wallets, signatures and RPC payloads for testing."""

from __future__ import annotations

import json


def make_wallet(n: int = 1) -> str:
    return f"Wa11et{n:038d}"


def make_signature(n: int = 1) -> str:
    return f"PaySig{n:082d}"


def make_tracking_file(path, minted_ids: list[int], last_minted_id: int) -> None:
    """Write a mint-tracking.json as it would exist on disk."""
    path.write_text(json.dumps({"mintedIds": minted_ids, "lastMintedId": last_minted_id}))


def make_rpc_transaction(
    pre_balance: int = 2_000_000_000,
    post_balance: int = 1_499_995_000,
    fee: int = 5_000,
) -> dict:
    """A ``getTransaction`` result in ``json`` encoding."""
    return {
        "slot": 250_000_000,
        "blockTime": 1_700_003_600,
        "meta": {
            "err": None,
            "fee": fee,
            "preBalances": [pre_balance, 10_000_000, 1],
            "postBalances": [post_balance, 510_000_000, 1],
        },
        "transaction": {
            "signatures": [make_signature()],
            "message": {"accountKeys": ["PayerKey", "TreasuryKey", "11111111111111111111111111111111"]},
        },
    }


def make_parsed_transaction() -> dict:
    """A ``getTransaction`` result in ``jsonParsed`` encoding."""
    return {
        "slot": 250_000_000,
        "meta": {"err": None, "fee": 5_000},
        "transaction": {
            "signatures": [make_signature()],
            "message": {
                "accountKeys": [
                    {"pubkey": "PayerKey", "signer": True, "writable": True},
                    {"pubkey": "TreasuryKey", "signer": False, "writable": True},
                    {"pubkey": "11111111111111111111111111111111", "signer": False, "writable": False},
                ],
            },
        },
    }


def rpc_response(result, request_id: int = 1) -> dict:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}
