"""SQLite implementation of the GateStore protocol."""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from mint_gate.models.records import (
    AuthorizedWallet,
    TierMintCount,
    TierMintEntry,
    WalletMintCount,
)

SCHEMA = """
-- Whitelist
CREATE TABLE IF NOT EXISTS authorized_wallets (
    wallet_address TEXT PRIMARY KEY,
    added_at TEXT NOT NULL,
    expires_at TEXT,
    last_updated TEXT NOT NULL
);

-- Per-wallet mint counters
CREATE TABLE IF NOT EXISTS wallet_mint_counts (
    wallet_address TEXT PRIMARY KEY,
    mint_count INTEGER NOT NULL DEFAULT 0,
    mint_transactions TEXT NOT NULL DEFAULT '[]',
    first_mint_at TEXT,
    last_mint_at TEXT,
    last_updated TEXT NOT NULL
);

-- Per-tier mint counters
CREATE TABLE IF NOT EXISTS tier_mint_counts (
    tier_name TEXT PRIMARY KEY,
    mint_count INTEGER NOT NULL DEFAULT 0,
    mint_transactions TEXT NOT NULL DEFAULT '[]',
    first_mint_at TEXT,
    last_mint_at TEXT,
    last_updated TEXT NOT NULL
);

-- Replay guard: consumed payment signatures
CREATE TABLE IF NOT EXISTS processed_transactions (
    signature TEXT PRIMARY KEY,
    wallet_address TEXT,
    processed_at TEXT NOT NULL
);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_wallet_count(row: aiosqlite.Row) -> WalletMintCount:
    return WalletMintCount(
        wallet_address=row["wallet_address"],
        mint_count=row["mint_count"],
        mint_transactions=json.loads(row["mint_transactions"]),
        first_mint_at=row["first_mint_at"],
        last_mint_at=row["last_mint_at"],
    )


def _row_to_tier_count(row: aiosqlite.Row) -> TierMintCount:
    return TierMintCount(
        tier_name=row["tier_name"],
        mint_count=row["mint_count"],
        mint_transactions=[
            TierMintEntry(**entry) for entry in json.loads(row["mint_transactions"])
        ],
        first_mint_at=row["first_mint_at"],
        last_mint_at=row["last_mint_at"],
    )


class SQLiteGateStore:
    """SQLite-backed implementation of the GateStore protocol.

    The connection runs in autocommit mode; multi-statement writes go through
    ``_transaction()`` which issues ``BEGIN IMMEDIATE`` so the read-modify-write
    of a counter holds the database write lock for its whole duration.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None
        # One connection is shared by all coroutines, so transactions on it
        # must not interleave.
        self._tx_lock = asyncio.Lock()

    async def initialize(self) -> None:
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path, isolation_level=None)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        async with self._tx_lock:
            await self.db.execute("BEGIN IMMEDIATE")
            try:
                yield self.db
            except BaseException:
                await self.db.execute("ROLLBACK")
                raise
            await self.db.execute("COMMIT")

    async def _write(self, sql: str, params: tuple = ()) -> None:
        async with self._tx_lock:
            await self.db.execute(sql, params)

    # ── Authorized wallets ─────────────────────────────────

    async def get_authorized_wallet(self, wallet: str) -> AuthorizedWallet | None:
        async with self.db.execute(
            "SELECT * FROM authorized_wallets WHERE wallet_address=?", (wallet,)
        ) as cur:
            row = await cur.fetchone()
        if row is None:
            return None
        return AuthorizedWallet(
            wallet_address=row["wallet_address"],
            added_at=row["added_at"],
            expires_at=row["expires_at"],
            last_updated=row["last_updated"],
        )

    async def add_authorized_wallet(
        self, wallet: str, expires_at: str | None = None
    ) -> None:
        await self.batch_add_authorized_wallets([wallet], expires_at=expires_at)

    async def batch_add_authorized_wallets(
        self, wallets: list[str], expires_at: str | None = None
    ) -> None:
        now = _now()
        async with self._transaction() as db:
            await db.executemany(
                "INSERT OR REPLACE INTO authorized_wallets"
                " (wallet_address, added_at, expires_at, last_updated)"
                " VALUES (?, ?, ?, ?)",
                [(w, now, expires_at, now) for w in wallets],
            )

    async def remove_authorized_wallet(self, wallet: str) -> None:
        await self._write(
            "DELETE FROM authorized_wallets WHERE wallet_address=?", (wallet,)
        )

    async def get_authorized_wallets(self) -> list[AuthorizedWallet]:
        async with self.db.execute(
            "SELECT * FROM authorized_wallets ORDER BY added_at, wallet_address"
        ) as cur:
            rows = await cur.fetchall()
        return [
            AuthorizedWallet(
                wallet_address=r["wallet_address"],
                added_at=r["added_at"],
                expires_at=r["expires_at"],
                last_updated=r["last_updated"],
            )
            for r in rows
        ]

    # ── Wallet mint counts ─────────────────────────────────

    async def get_wallet_mint_count(self, wallet: str) -> WalletMintCount | None:
        async with self.db.execute(
            "SELECT * FROM wallet_mint_counts WHERE wallet_address=?", (wallet,)
        ) as cur:
            row = await cur.fetchone()
        return _row_to_wallet_count(row) if row else None

    async def get_all_wallet_mint_counts(self) -> list[WalletMintCount]:
        async with self.db.execute("SELECT * FROM wallet_mint_counts") as cur:
            rows = await cur.fetchall()
        return [_row_to_wallet_count(r) for r in rows]

    async def increment_wallet_mint_count(self, wallet: str, signature: str) -> int:
        now = _now()
        async with self._transaction() as db:
            async with db.execute(
                "SELECT mint_count, mint_transactions FROM wallet_mint_counts"
                " WHERE wallet_address=?",
                (wallet,),
            ) as cur:
                row = await cur.fetchone()

            if row is None:
                await db.execute(
                    "INSERT INTO wallet_mint_counts (wallet_address, mint_count,"
                    " mint_transactions, first_mint_at, last_mint_at, last_updated)"
                    " VALUES (?, 1, ?, ?, ?, ?)",
                    (wallet, json.dumps([signature]), now, now, now),
                )
                return 1

            transactions = json.loads(row["mint_transactions"])
            transactions.append(signature)
            new_count = row["mint_count"] + 1
            await db.execute(
                "UPDATE wallet_mint_counts SET mint_count=?, mint_transactions=?,"
                " last_mint_at=?, last_updated=? WHERE wallet_address=?",
                (new_count, json.dumps(transactions), now, now, wallet),
            )
            return new_count

    async def reset_wallet_mint_count(self, wallet: str) -> None:
        await self._write(
            "DELETE FROM wallet_mint_counts WHERE wallet_address=?", (wallet,)
        )

    # ── Tier mint counts ───────────────────────────────────

    async def get_tier_mint_count(self, tier_name: str) -> TierMintCount | None:
        async with self.db.execute(
            "SELECT * FROM tier_mint_counts WHERE tier_name=?", (tier_name,)
        ) as cur:
            row = await cur.fetchone()
        return _row_to_tier_count(row) if row else None

    async def get_all_tier_mint_counts(self) -> list[TierMintCount]:
        async with self.db.execute(
            "SELECT * FROM tier_mint_counts ORDER BY tier_name"
        ) as cur:
            rows = await cur.fetchall()
        return [_row_to_tier_count(r) for r in rows]

    async def increment_tier_mint_count(
        self, tier_name: str, signature: str, wallet: str
    ) -> int:
        now = _now()
        entry = {"signature": signature, "wallet": wallet, "timestamp": now}
        async with self._transaction() as db:
            async with db.execute(
                "SELECT mint_count, mint_transactions FROM tier_mint_counts"
                " WHERE tier_name=?",
                (tier_name,),
            ) as cur:
                row = await cur.fetchone()

            if row is None:
                await db.execute(
                    "INSERT INTO tier_mint_counts (tier_name, mint_count,"
                    " mint_transactions, first_mint_at, last_mint_at, last_updated)"
                    " VALUES (?, 1, ?, ?, ?, ?)",
                    (tier_name, json.dumps([entry]), now, now, now),
                )
                return 1

            transactions = json.loads(row["mint_transactions"])
            transactions.append(entry)
            new_count = row["mint_count"] + 1
            await db.execute(
                "UPDATE tier_mint_counts SET mint_count=?, mint_transactions=?,"
                " last_mint_at=?, last_updated=? WHERE tier_name=?",
                (new_count, json.dumps(transactions), now, now, tier_name),
            )
            return new_count

    async def reset_tier_mint_count(self, tier_name: str) -> None:
        await self._write(
            "DELETE FROM tier_mint_counts WHERE tier_name=?", (tier_name,)
        )

    # ── Replay guard ───────────────────────────────────────

    async def is_transaction_processed(self, signature: str) -> bool:
        async with self.db.execute(
            "SELECT 1 FROM processed_transactions WHERE signature=?", (signature,)
        ) as cur:
            return await cur.fetchone() is not None

    async def mark_transaction_processed(
        self, signature: str, wallet: str | None = None
    ) -> bool:
        async with self._tx_lock:
            cur = await self.db.execute(
                "INSERT OR IGNORE INTO processed_transactions"
                " (signature, wallet_address, processed_at) VALUES (?, ?, ?)",
                (signature, wallet, _now()),
            )
            inserted = cur.rowcount == 1
            await cur.close()
        return inserted
