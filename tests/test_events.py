"""Server-sent events: connect, heartbeat and mint notifications."""

from __future__ import annotations

import json

from mint_gate.events import EventBroadcaster, format_event
from tests.factories import make_signature, make_wallet


def test_format_event():
    assert format_event("mint", {"nftNumber": 1}) == 'event: mint\ndata: {"nftNumber": 1}\n\n'


async def test_stream_connect_and_heartbeat():
    events = EventBroadcaster(heartbeat_interval=0.01)
    stream = events.stream()

    assert await stream.__anext__() == ": connected\n\n"
    assert events.subscriber_count == 1
    assert await stream.__anext__() == ": heartbeat\n\n"

    await stream.aclose()
    assert events.subscriber_count == 0


async def test_publish_reaches_every_subscriber():
    events = EventBroadcaster(heartbeat_interval=5)
    first, second = events.stream(), events.stream()
    await first.__anext__()
    await second.__anext__()

    events.publish("mint", {"nftNumber": 3})

    expected = format_event("mint", {"nftNumber": 3})
    assert await first.__anext__() == expected
    assert await second.__anext__() == expected
    await first.aclose()
    await second.aclose()


async def test_slow_subscriber_drops_events():
    events = EventBroadcaster(heartbeat_interval=5, queue_size=1)
    stream = events.stream()
    await stream.__anext__()

    events.publish("mint", {"nftNumber": 1})
    events.publish("mint", {"nftNumber": 2})

    assert await stream.__anext__() == format_event("mint", {"nftNumber": 1})
    await stream.aclose()


async def test_mint_announces_event(service):
    stream = service.events.stream()
    await stream.__anext__()
    await service.wallets.add_authorized_wallet(make_wallet(1))

    await service.mint(make_wallet(1), make_signature(1))

    message = await stream.__anext__()
    await stream.aclose()
    assert message.startswith("event: mint\n")
    data = json.loads(message.split("data: ", 1)[1])
    assert data == {"nftNumber": 0, "name": "In2space #0000", "tier": "Tier A", "remaining": 2}


async def test_airdrop_announces_event(service):
    stream = service.events.stream()
    await stream.__anext__()

    outcome = await service.airdrop(f"Bearer {service.cfg.airdrop_admin_wallet}", make_wallet(2), 7)

    message = await stream.__anext__()
    await stream.aclose()
    assert outcome.nft_number == 7
    assert json.loads(message.split("data: ", 1)[1]) == {"nftNumber": 7, "name": "In2space #0007"}
