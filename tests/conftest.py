"""Shared fixtures for mint_gate tests."""

from __future__ import annotations

import httpx
import pytest
from pytest_metadata.plugin import metadata_key

from mint_gate.api.app import create_app
from mint_gate.models.config import LAMPORTS_PER_SOL, GateConfig, MintSettings, PricingTier
from mint_gate.pipeline.admission import AdmissionPipeline
from mint_gate.pipeline.tiers import TierRegistry
from mint_gate.pipeline.wallets import WalletAuthorizer
from mint_gate.service import MintGateService
from mint_gate.storage.sqlite import SQLiteGateStore
from mint_gate.tracking.identifiers import IdentifierLedger

from tests.mocks import FakeClock, MockLedger, MockMirror, MockSubmitter

ADMIN_SECRET = "test-admin-secret"
AIRDROP_ADMIN = "AirdropAdmin111111111111111111111111111111"

TIER_A_START = 1_700_000_000
TIER_A_END = TIER_A_START + 86_400
TIER_B_START = TIER_A_END + 300  # five-minute gap, as between production tiers
TIER_B_END = TIER_B_START + 86_400

TIER_A_PRICE = LAMPORTS_PER_SOL // 2
TIER_B_PRICE = LAMPORTS_PER_SOL

TEST_TIERS = (
    PricingTier("Tier A", TIER_A_START, TIER_A_END, max_supply=3, price_lamports=TIER_A_PRICE),
    PricingTier("Tier B", TIER_B_START, TIER_B_END, max_supply=1000, price_lamports=TIER_B_PRICE),
)

IN_TIER_A = TIER_A_START + 3_600


# ── Report metadata ──────────────────────────────────────────────


def pytest_configure(config):
    """Add run info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Solana RPC"] = "mocked"
    meta["Minting service"] = "mocked"
    meta["Tiers"] = ", ".join(t.name for t in TEST_TIERS)


def make_test_config(**overrides) -> GateConfig:
    """Build a GateConfig suitable for testing."""
    defaults = dict(
        tiers=TEST_TIERS,
        mint=MintSettings(max_supply=50),
        rpc_url="http://rpc.test",
        minter_url="http://minter.test",
        db_path=":memory:",
        tracking_file="mint-tracking.json",
        admin_secret=ADMIN_SECRET,
        airdrop_admin_wallet=AIRDROP_ADMIN,
        heartbeat_interval=1,
    )
    defaults.update(overrides)
    return GateConfig(**defaults)


def make_pipeline(
    cfg: GateConfig,
    store,
    ledger,
    submitter,
    identifiers: IdentifierLedger,
    clock,
    wallet_store=None,
) -> AdmissionPipeline:
    """Wire an AdmissionPipeline. ``wallet_store`` overrides the wallet authorizer's store."""
    return AdmissionPipeline(
        settings=cfg.mint,
        tiers=TierRegistry(cfg.tiers, store),
        wallets=WalletAuthorizer(wallet_store or store, cfg.mint.max_mints_per_wallet),
        store=store,
        ledger=ledger,
        submitter=submitter,
        identifiers=identifiers,
        clock=clock,
    )


@pytest.fixture
def test_config():
    """Default GateConfig for tests."""
    return make_test_config()


@pytest.fixture
async def store():
    """Initialized in-memory SQLiteGateStore."""
    s = SQLiteGateStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def clock():
    return FakeClock(IN_TIER_A)


@pytest.fixture
def mock_ledger():
    return MockLedger(default_amount=TIER_A_PRICE)


@pytest.fixture
def mock_submitter():
    return MockSubmitter(succeed=True)


@pytest.fixture
def mock_mirror():
    return MockMirror()


@pytest.fixture
def tracking_path(tmp_path):
    return tmp_path / "mint-tracking.json"


@pytest.fixture
def identifiers(tracking_path, test_config, mock_mirror):
    """IdentifierLedger backed by a temp file and a recording mirror."""
    ledger = IdentifierLedger(
        tracking_path, max_supply=test_config.mint.max_supply, mirror=mock_mirror,
    )
    ledger.load()
    return ledger


@pytest.fixture
def tiers(test_config, store):
    return TierRegistry(test_config.tiers, store)


@pytest.fixture
def wallets(test_config, store):
    return WalletAuthorizer(store, test_config.mint.max_mints_per_wallet)


@pytest.fixture
def pipeline(test_config, store, mock_ledger, mock_submitter, identifiers, clock):
    """AdmissionPipeline with mocked ledger and minter."""
    return make_pipeline(test_config, store, mock_ledger, mock_submitter, identifiers, clock)


@pytest.fixture
async def service(tmp_path, mock_ledger, mock_submitter, mock_mirror, clock):
    """Started MintGateService with mocked collaborators."""
    cfg = make_test_config(tracking_file=str(tmp_path / "mint-tracking.json"))
    svc = MintGateService(cfg)
    await svc.ledger.close()
    await svc.submitter.close()
    svc.ledger = mock_ledger
    svc.submitter = mock_submitter
    svc.identifiers = IdentifierLedger(
        cfg.tracking_file, max_supply=cfg.mint.max_supply, mirror=mock_mirror,
    )
    svc.clock = clock
    svc.rebuild_pipeline()
    await svc.start()
    yield svc
    await svc.stop()


@pytest.fixture
async def client(service):
    """httpx client bound to the ASGI app. Lifespan is driven by ``service``."""
    app = create_app(service=service)
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
