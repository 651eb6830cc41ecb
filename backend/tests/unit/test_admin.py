"""
Unit Tests: Administration

Test cases:
- Initialize is one-shot and sets the owner
- Owner-only actions reject everyone else
- Deposit and withdraw move treasury funds and emit records
- Read-only queries
"""

import pytest

from dicemaster.engine import (
    AlreadyInitialized,
    DepositRecord,
    NotFound,
    Unauthorized,
    WithdrawRecord,
    encode_words,
)
from dicemaster.services.ledger import InsufficientBalance

OWNER = "owner"
ALICE = "alice"
ENGINE = "dicemaster"


def test_initialize_sets_owner(bare_host) -> None:
    assert bare_host.engine.get_owner(bare_host.state) == ""

    bare_host.invoke(OWNER, "initialize", "token", "oracle")

    state = bare_host.state
    assert state.initialized is True
    assert bare_host.engine.get_owner(state) == OWNER
    assert state.ledger_address == "token"
    assert state.oracle_address == "oracle"


def test_initialize_twice_fails(bare_host) -> None:
    bare_host.invoke(OWNER, "initialize", "token", "oracle")

    with pytest.raises(AlreadyInitialized):
        bare_host.invoke(ALICE, "initialize", "token", "oracle")

    assert bare_host.engine.get_owner(bare_host.state) == OWNER


@pytest.mark.parametrize(
    "entry_point, argument",
    [
        ("withdraw", 1_000_000),
        ("deposit", 1_000_000),
        ("set_subscription_id", 7),
        ("set_oracle_key_index", 1),
        ("transfer_ownership", ALICE),
    ],
)
def test_admin_calls_require_owner(host, entry_point: str, argument) -> None:
    state_before = host.state.model_copy(deep=True)
    treasury_before = host.engine.get_treasury_balance()

    with pytest.raises(Unauthorized):
        host.invoke(ALICE, entry_point, argument)

    assert host.state == state_before
    assert host.engine.get_treasury_balance() == treasury_before
    assert host.records == []


@pytest.mark.parametrize(
    "entry_point, argument",
    [
        ("withdraw", 1_000_000),
        ("deposit", 1_000_000),
        ("set_subscription_id", 7),
        ("set_oracle_key_index", 1),
        ("transfer_ownership", ALICE),
    ],
)
def test_admin_calls_before_initialize_are_unauthorized(
    bare_host, entry_point: str, argument
) -> None:
    # No owner is set yet, so nobody passes the owner check.
    with pytest.raises(Unauthorized):
        bare_host.invoke(OWNER, entry_point, argument)

    assert bare_host.state.initialized is False
    assert bare_host.engine.get_owner(bare_host.state) == ""


def test_deposit(host) -> None:
    treasury_before = host.engine.get_treasury_balance()
    owner_before = host.balance_of(OWNER)
    host.approve(OWNER, 10_000_000)

    host.invoke(OWNER, "deposit", 10_000_000)

    assert host.engine.get_treasury_balance() == treasury_before + 10_000_000
    assert host.balance_of(OWNER) == owner_before - 10_000_000
    assert host.records == [
        DepositRecord(amount=10_000_000, from_=OWNER, to=ENGINE)
    ]


def test_withdraw(host) -> None:
    treasury_before = host.engine.get_treasury_balance()
    owner_before = host.balance_of(OWNER)

    host.invoke(OWNER, "withdraw", 5_000_000)

    assert host.engine.get_treasury_balance() == treasury_before - 5_000_000
    assert host.balance_of(OWNER) == owner_before + 5_000_000
    assert host.records == [
        WithdrawRecord(amount=5_000_000, from_=ENGINE, to=OWNER)
    ]


def test_withdraw_more_than_treasury_fails(host) -> None:
    treasury = host.engine.get_treasury_balance()

    with pytest.raises(InsufficientBalance):
        host.invoke(OWNER, "withdraw", treasury + 1)

    assert host.engine.get_treasury_balance() == treasury
    assert host.records == []


def test_transfer_ownership(host) -> None:
    host.invoke(OWNER, "transfer_ownership", ALICE)

    assert host.engine.get_owner(host.state) == ALICE
    with pytest.raises(Unauthorized):
        host.invoke(OWNER, "set_subscription_id", 3)

    host.invoke(ALICE, "set_subscription_id", 3)
    assert host.engine.get_subscription_id(host.state) == 3


def test_configuration_queries(host) -> None:
    host.invoke(OWNER, "set_subscription_id", 42)
    host.invoke(OWNER, "set_oracle_key_index", 0)

    assert host.engine.get_subscription_id(host.state) == 42
    assert host.engine.get_oracle_key_index(host.state) == 0

    limits = host.engine.get_stake_limits()
    assert limits.minimum == 1_000_000
    assert limits.maximum == 1_000_000_000


def test_subscription_id_goes_into_requests(host) -> None:
    host.invoke(OWNER, "set_subscription_id", 42)
    host.place_bet(ALICE, 1_000_000)

    assert host.oracle.queued[0].subscription_id == 42


def test_get_account_bet(host) -> None:
    with pytest.raises(NotFound):
        host.engine.get_account_bet(host.state, ALICE)

    correlation_id = host.place_bet(ALICE, 1_000_000)
    host.fulfill(correlation_id, encode_words([2, 3]))

    bet = host.engine.get_account_bet(host.state, ALICE)
    assert bet.account == ALICE
    assert (bet.die1, bet.die2) == (3, 4)
    assert bet.total == 7
    assert bet.won is True

    # Snapshot, not a live reference.
    bet.stake = 0
    assert host.state.account_bets[ALICE].stake == 1_000_000
