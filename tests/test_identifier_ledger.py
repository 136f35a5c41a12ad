"""Identifier ledger: allocation, reservations, persistence and mirroring."""

from __future__ import annotations

import asyncio
import json

import pytest

from mint_gate.models.errors import AdmissionError, ErrorCode
from mint_gate.tracking.identifiers import IdentifierLedger
from tests.factories import make_tracking_file
from tests.mocks import MockMirror


async def test_fresh_ledger_writes_empty_record(tracking_path):
    ledger = IdentifierLedger(tracking_path, max_supply=10)
    record = ledger.load()

    assert record.minted_ids == set()
    assert record.last_minted_id == -1
    assert json.loads(tracking_path.read_text()) == {"mintedIds": [], "lastMintedId": -1}


async def test_corrupt_file_starts_fresh(tracking_path):
    tracking_path.write_text("{not json")
    ledger = IdentifierLedger(tracking_path, max_supply=10)

    assert ledger.load().last_minted_id == -1
    assert ledger.next_id() == 0


async def test_allocate_then_record(identifiers, tracking_path):
    assert await identifiers.allocate() == 0
    await identifiers.record_minted(0)

    assert identifiers.is_minted(0)
    assert not identifiers.is_reserved(0)
    assert await identifiers.allocate() == 1
    assert json.loads(tracking_path.read_text()) == {"mintedIds": [0], "lastMintedId": 0}


async def test_record_survives_reload(identifiers, tracking_path):
    await identifiers.allocate()
    await identifiers.record_minted(0)

    reloaded = IdentifierLedger(tracking_path, max_supply=50)
    assert reloaded.load().minted_ids == {0}
    assert reloaded.next_id() == 1


async def test_outstanding_reservations_are_distinct(identifiers):
    ids = await asyncio.gather(*(identifiers.allocate() for _ in range(10)))
    assert sorted(ids) == list(range(10))


async def test_release_frees_the_id(identifiers):
    nft_id = await identifiers.allocate()
    await identifiers.release(nft_id)
    assert await identifiers.allocate() == nft_id


async def test_airdrop_does_not_advance_sequence(identifiers):
    await identifiers.reserve(7)
    await identifiers.record_minted(7, advance_sequence=False)

    assert identifiers.record.last_minted_id == -1
    assert identifiers.is_minted(7)
    assert identifiers.next_id() == 0


async def test_scan_forward_past_airdropped_ids(tracking_path):
    make_tracking_file(tracking_path, [0, 1, 2, 3, 5], last_minted_id=3)
    ledger = IdentifierLedger(tracking_path, max_supply=10)
    ledger.load()

    assert await ledger.allocate() == 4
    await ledger.record_minted(4)
    assert await ledger.allocate() == 6


async def test_max_supply_reached(tracking_path):
    make_tracking_file(tracking_path, [0, 1], last_minted_id=1)
    ledger = IdentifierLedger(tracking_path, max_supply=2)
    ledger.load()

    with pytest.raises(AdmissionError) as exc_info:
        await ledger.allocate()
    assert exc_info.value.code == ErrorCode.MAX_SUPPLY_REACHED
    assert exc_info.value.status == 410


async def test_scan_past_max_supply(tracking_path):
    """Scanning forward over airdropped ids can run into the supply cap."""
    make_tracking_file(tracking_path, [0, 1, 2], last_minted_id=0)
    ledger = IdentifierLedger(tracking_path, max_supply=3)
    ledger.load()

    with pytest.raises(AdmissionError) as exc_info:
        await ledger.allocate()
    assert exc_info.value.code == ErrorCode.MAX_SUPPLY_REACHED


async def test_reserve_rejects_minted_and_reserved(identifiers):
    await identifiers.reserve(3)
    with pytest.raises(AdmissionError) as exc_info:
        await identifiers.reserve(3)
    assert exc_info.value.code == ErrorCode.NFT_ALREADY_MINTED

    await identifiers.record_minted(3, advance_sequence=False)
    with pytest.raises(AdmissionError) as exc_info:
        await identifiers.reserve(3)
    assert exc_info.value.code == ErrorCode.NFT_ALREADY_MINTED


# ── Remote mirror ─────────────────────────────────────────────────


async def test_mirror_commit_messages(identifiers, mock_mirror):
    await identifiers.allocate()
    await identifiers.record_minted(0)
    await identifiers.reserve(7)
    await identifiers.record_minted(7, advance_sequence=False)
    await identifiers.flush()

    assert mock_mirror.messages == [
        "Update mint tracking: NFT #0",
        "Airdrop update: NFT #7",
    ]
    path, content, _ = mock_mirror.updates[-1]
    assert path == "mint-tracking.json"
    assert json.loads(content) == {"mintedIds": [0, 7], "lastMintedId": 0}


async def test_mirror_failure_keeps_local_file(tracking_path):
    ledger = IdentifierLedger(tracking_path, max_supply=10, mirror=MockMirror(fail=True))
    ledger.load()

    await ledger.allocate()
    await ledger.record_minted(0)
    await ledger.flush()

    assert json.loads(tracking_path.read_text())["mintedIds"] == [0]


async def test_no_mirror_configured(tracking_path):
    ledger = IdentifierLedger(tracking_path, max_supply=10)
    await ledger.allocate()
    await ledger.record_minted(0)
    await ledger.flush()
    assert ledger.is_minted(0)
