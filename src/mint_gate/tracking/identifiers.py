"""Identifier ledger - which sequential NFT numbers have been consumed."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path

from mint_gate.interfaces.mirror import RemoteMirror
from mint_gate.models.errors import AdmissionError, ErrorCode
from mint_gate.models.records import MintTrackingRecord

log = logging.getLogger(__name__)


class IdentifierLedger:
    """Single owner of the mint tracking record.

    The record lives in a local JSON file (``mintedIds``, ``lastMintedId``)
    and is mirrored to a remote repository after every mutation. All
    mutations run under one lock, and ids handed out by ``allocate()`` stay
    reserved until they are recorded or released, so concurrent requests
    never receive the same number.

    ``lastMintedId`` only moves on the normal mint path; airdrops mark ids
    consumed without advancing it.
    """

    def __init__(
        self,
        path: str | Path,
        max_supply: int,
        mirror: RemoteMirror | None = None,
        mirror_path: str = "mint-tracking.json",
    ) -> None:
        self._path = Path(path).expanduser()
        self._max_supply = max_supply
        self._mirror = mirror
        self._mirror_path = mirror_path
        self._record: MintTrackingRecord | None = None
        self._reserved: set[int] = set()
        self._lock = asyncio.Lock()
        self._mirror_tasks: set[asyncio.Task] = set()
        # Keeps remote commits in the same order as local writes.
        self._mirror_lock = asyncio.Lock()

    # ── Persistence ────────────────────────────────────────

    def load(self) -> MintTrackingRecord:
        """Read the persisted record, or start a fresh one if absent/corrupt."""
        try:
            with open(self._path) as f:
                record = MintTrackingRecord.from_json(json.load(f))
        except FileNotFoundError:
            log.info("No mint tracking file at %s, starting fresh", self._path)
            record = MintTrackingRecord()
            self._write(record)
        except (ValueError, KeyError, TypeError) as exc:
            log.warning("Mint tracking file %s is corrupt (%s), starting fresh",
                        self._path, exc)
            record = MintTrackingRecord()
            self._write(record)
        self._record = record
        return record

    def _write(self, record: MintTrackingRecord) -> str:
        content = json.dumps(record.to_json(), indent=2)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        with open(tmp, "w") as f:
            f.write(content)
        os.replace(tmp, self._path)
        return content

    @property
    def record(self) -> MintTrackingRecord:
        if self._record is None:
            return self.load()
        return self._record

    # ── Queries ────────────────────────────────────────────

    def next_id(self) -> int:
        return self.record.last_minted_id + 1

    def is_minted(self, nft_id: int) -> bool:
        return nft_id in self.record.minted_ids

    def is_reserved(self, nft_id: int) -> bool:
        return nft_id in self._reserved

    @property
    def max_supply(self) -> int:
        return self._max_supply

    # ── Allocation ─────────────────────────────────────────

    async def allocate(self) -> int:
        """Reserve the next free sequential id.

        Starts at ``next_id()`` and scans forward past minted or reserved
        ids. Raises MAX_SUPPLY_REACHED once the scan hits ``max_supply``.
        """
        async with self._lock:
            nft_id = self.next_id()
            if self.is_minted(nft_id) or self.is_reserved(nft_id):
                log.warning("NFT id %d already taken, scanning for next free id", nft_id)
                while self.is_minted(nft_id) or self.is_reserved(nft_id):
                    nft_id += 1
            if nft_id >= self._max_supply:
                log.error("Max supply reached (next id %d)", nft_id)
                raise AdmissionError(
                    ErrorCode.MAX_SUPPLY_REACHED,
                    "Maximum NFT supply has been reached",
                    resolution="Contact admin for refund",
                    maxSupply=self._max_supply,
                )
            self._reserved.add(nft_id)
            return nft_id

    async def reserve(self, nft_id: int) -> None:
        """Reserve a specific id for an out-of-band (airdrop) mint."""
        async with self._lock:
            if self.is_minted(nft_id) or self.is_reserved(nft_id):
                raise AdmissionError(
                    ErrorCode.NFT_ALREADY_MINTED,
                    f"NFT ID {nft_id} has already been minted",
                )
            self._reserved.add(nft_id)

    async def release(self, nft_id: int) -> None:
        """Drop a reservation whose mint did not happen."""
        async with self._lock:
            self._reserved.discard(nft_id)

    async def record_minted(self, nft_id: int, advance_sequence: bool = True) -> None:
        """Mark an id consumed, persist, and mirror in the background.

        ``advance_sequence`` is True for paid mints; airdrops pass False so
        the next sequential id is not skipped.
        """
        async with self._lock:
            record = self.record
            record.minted_ids.add(nft_id)
            if advance_sequence:
                record.last_minted_id = nft_id
            self._reserved.discard(nft_id)
            content = self._write(record)

        message = (
            f"Update mint tracking: NFT #{nft_id}" if advance_sequence
            else f"Airdrop update: NFT #{nft_id}"
        )
        self._schedule_mirror(content, message)

    # ── Remote mirror ──────────────────────────────────────

    def _schedule_mirror(self, content: str, message: str) -> None:
        if self._mirror is None:
            return
        task = asyncio.create_task(self._mirror_once(content, message))
        self._mirror_tasks.add(task)
        task.add_done_callback(self._mirror_tasks.discard)

    async def _mirror_once(self, content: str, message: str) -> None:
        try:
            async with self._mirror_lock:
                await self._mirror.update_file(self._mirror_path, content, message)
        except Exception as exc:
            log.error("Failed to mirror mint tracking (%s): %s", message, exc)

    async def flush(self) -> None:
        """Wait for in-flight mirror updates to finish."""
        if self._mirror_tasks:
            await asyncio.gather(*list(self._mirror_tasks), return_exceptions=True)
