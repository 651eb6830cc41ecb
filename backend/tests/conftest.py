import pytest

from dicemaster.config import LedgerConfig, Settings
from dicemaster.host import EngineHost

OWNER = "owner"
ALICE = "alice"
BOB = "bob"

PLAYER_FUNDS = 10_00000000
TREASURY_SEED = 50_00000000


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        data_dir=tmp_path,
        ledger=LedgerConfig(
            owner_address=OWNER,
            treasury_seed=TREASURY_SEED,
            initial_balances={
                OWNER: 100_00000000,
                ALICE: PLAYER_FUNDS,
                BOB: PLAYER_FUNDS,
            },
        ),
    )


@pytest.fixture
def host(settings) -> EngineHost:
    """Initialized engine with a seeded treasury and approved players."""
    host = EngineHost.bootstrap(settings)
    host.approve(ALICE, PLAYER_FUNDS)
    host.approve(BOB, PLAYER_FUNDS)
    host.drain_records()
    return host


@pytest.fixture
def bare_host(settings) -> EngineHost:
    """Funded ledger, engine not initialized."""
    host = EngineHost(settings)
    for account, amount in settings.ledger.initial_balances.items():
        host.fund(account, amount)
    return host
