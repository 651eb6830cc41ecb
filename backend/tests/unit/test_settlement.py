"""
Unit Tests: Bet placement and settlement

Test cases:
- Stake bounds and balance checks
- Conservation of funds on win and loss
- One pending bet per account
- Stale, unknown, repeated and malformed fulfillments are no-ops
- Failed calls leave state, ledger and oracle queue untouched
"""

import logging

import pytest

from dicemaster.config import GameConfig
from dicemaster.engine import (
    BetAlreadyPending,
    CallContext,
    InsufficientFunds,
    InvalidOracleKeyIndex,
    InvalidStake,
    NotInitialized,
    OutcomeRecord,
    Unauthorized,
    encode_words,
)
from dicemaster.host import EngineHost
from dicemaster.services.ledger import InsufficientAllowance

ALICE = "alice"
BOB = "bob"
OWNER = "owner"
STAKE = 5_000_000

WIN = encode_words([0, 1])  # 1 + 2
LOSE = encode_words([0, 0])  # 1 + 1


@pytest.mark.parametrize(
    "stake, accepted",
    [
        (500_000, False),
        (999_999, False),
        (1_000_000, True),
        (1_000_000_000, True),
        (1_000_000_001, False),
        (1_500_000_000, False),
    ],
)
def test_stake_bounds(host, stake: int, accepted: bool) -> None:
    if accepted:
        host.place_bet(ALICE, stake)
        assert host.state.account_bets[ALICE].stake == stake
    else:
        with pytest.raises(InvalidStake):
            host.place_bet(ALICE, stake)
        assert ALICE not in host.state.account_bets


def test_place_bet_opens_pending_bet(host) -> None:
    correlation_id = host.place_bet(ALICE, STAKE)

    bet = host.state.account_bets[ALICE]
    assert bet.pending is True
    assert bet.won is False
    assert bet.stake == STAKE
    assert (bet.die1, bet.die2) == (1, 1)
    assert bet.request_height == host.height

    request = host.state.pending_requests[correlation_id]
    assert request.account == ALICE
    assert request.request_height == host.height
    assert host.state.has_outstanding_request(ALICE)

    queued = host.oracle.queued
    assert [r.correlation_id for r in queued] == [correlation_id]
    assert queued[0].specific_data.num_words == 2
    assert queued[0].specific_data.request_confirmations == 1
    assert host.records == []


def test_place_bet_moves_stake_into_treasury(host) -> None:
    player_before = host.balance_of(ALICE)
    treasury_before = host.engine.get_treasury_balance()

    host.place_bet(ALICE, STAKE)

    assert host.balance_of(ALICE) == player_before - STAKE
    assert host.engine.get_treasury_balance() == treasury_before + STAKE


def test_conservation_on_loss(host) -> None:
    player_before = host.balance_of(ALICE)
    treasury_before = host.engine.get_treasury_balance()

    correlation_id = host.place_bet(ALICE, STAKE)
    assert host.fulfill(correlation_id, LOSE) is True

    assert host.balance_of(ALICE) == player_before - STAKE
    assert host.engine.get_treasury_balance() == treasury_before + STAKE

    bet = host.state.account_bets[ALICE]
    assert bet.pending is False
    assert bet.won is False
    assert (bet.die1, bet.die2) == (1, 1)
    assert host.records == [
        OutcomeRecord(account=ALICE, stake_amount=STAKE, delta=-STAKE)
    ]


def test_conservation_on_win(host) -> None:
    player_before = host.balance_of(ALICE)
    treasury_before = host.engine.get_treasury_balance()

    correlation_id = host.place_bet(ALICE, STAKE)
    assert host.fulfill(correlation_id, WIN) is True

    assert host.balance_of(ALICE) == player_before + STAKE
    assert host.engine.get_treasury_balance() == treasury_before - STAKE

    bet = host.state.account_bets[ALICE]
    assert bet.pending is False
    assert bet.won is True
    assert (bet.die1, bet.die2) == (1, 2)
    assert host.records == [
        OutcomeRecord(account=ALICE, stake_amount=STAKE, delta=STAKE)
    ]


def test_second_bet_rejected_while_pending(host) -> None:
    correlation_id = host.place_bet(ALICE, STAKE)

    with pytest.raises(BetAlreadyPending):
        host.place_bet(ALICE, STAKE)

    host.fulfill(correlation_id, LOSE)
    second_id = host.place_bet(ALICE, STAKE)

    assert second_id != correlation_id
    assert host.state.account_bets[ALICE].pending is True


def test_accounts_are_independent(host) -> None:
    alice_id = host.place_bet(ALICE, STAKE)
    bob_id = host.place_bet(BOB, 2 * STAKE)

    # Fulfilled out of order.
    host.fulfill(bob_id, WIN)
    assert host.state.account_bets[ALICE].pending is True
    assert host.state.account_bets[BOB].won is True

    host.fulfill(alice_id, LOSE)
    assert host.state.account_bets[ALICE].won is False
    assert host.state.account_bets[BOB].stake == 2 * STAKE


def test_stale_fulfillment_is_ignored(host) -> None:
    correlation_id = host.place_bet(ALICE, STAKE)

    # Supersede the bet by moving its height away from the stored request.
    host.state.account_bets[ALICE].request_height += 1
    before = host.state.account_bets[ALICE].model_copy()
    player_before = host.balance_of(ALICE)

    assert host.fulfill(correlation_id, WIN) is False

    assert host.state.account_bets[ALICE] == before
    assert host.state.account_bets[ALICE].pending is True
    assert host.balance_of(ALICE) == player_before
    assert host.records == []


def test_unknown_correlation_id_is_ignored(host) -> None:
    host.place_bet(ALICE, STAKE)
    state_before = host.state.model_copy(deep=True)

    assert host.fulfill("00" * 32, WIN) is False
    assert host.state == state_before
    assert host.records == []


def test_repeated_fulfillment_settles_once(host) -> None:
    player_before = host.balance_of(ALICE)
    correlation_id = host.place_bet(ALICE, STAKE)

    assert host.fulfill(correlation_id, WIN) is True
    assert host.fulfill(correlation_id, WIN) is False

    assert host.balance_of(ALICE) == player_before + STAKE
    assert len(host.records) == 1


def test_old_request_cannot_settle_new_bet(host) -> None:
    first_id = host.place_bet(ALICE, STAKE)
    host.fulfill(first_id, LOSE)
    second_id = host.place_bet(ALICE, 2 * STAKE)

    assert host.fulfill(first_id, WIN) is False
    assert host.state.account_bets[ALICE].pending is True

    assert host.fulfill(second_id, WIN) is True
    assert host.state.account_bets[ALICE].won is True


def test_malformed_payload_is_ignored(host) -> None:
    correlation_id = host.place_bet(ALICE, STAKE)

    assert host.fulfill(correlation_id, b"\x01\x02") is False
    assert host.fulfill(correlation_id, encode_words([4])) is False
    assert host.state.account_bets[ALICE].pending is True


def test_fulfill_requires_oracle_sender(host) -> None:
    correlation_id = host.place_bet(ALICE, STAKE)

    with pytest.raises(Unauthorized):
        host.invoke(ALICE, "fulfill", correlation_id, WIN)

    assert host.state.account_bets[ALICE].pending is True


def test_insufficient_player_balance(host) -> None:
    host.fund("carol", 2_000_000)
    host.approve("carol", 10_000_000)

    with pytest.raises(InsufficientFunds):
        host.place_bet("carol", 5_000_000)


def test_insufficient_treasury_balance(host, caplog) -> None:
    treasury = host.engine.get_treasury_balance()
    host.invoke(OWNER, "withdraw", treasury - 1_000_000)

    with pytest.raises(InsufficientFunds):
        host.place_bet(ALICE, 2_000_000)

    # Exactly covering the stake is enough, even though a win pays double.
    with caplog.at_level(logging.WARNING, logger="dicemaster.engine.settlement"):
        host.place_bet(ALICE, 1_000_000)

    assert "cannot cover a winning payout of 2000000" in caplog.text


def test_win_pays_fixed_double_stake(settings) -> None:
    # Unknown game keys from an old config file are dropped.
    game = GameConfig.model_validate({"payout_multiplier": 3})
    host = EngineHost.bootstrap(settings.model_copy(update={"game": game}))
    host.approve(ALICE, STAKE)
    host.drain_records()
    player_before = host.balance_of(ALICE)

    correlation_id = host.place_bet(ALICE, STAKE)
    assert host.fulfill(correlation_id, WIN) is True

    [record] = host.records
    assert record.delta == STAKE
    assert host.balance_of(ALICE) - player_before == record.delta


def test_failed_bet_rolls_back_everything(host) -> None:
    host.fund("dave", STAKE)  # funded but never approved the engine
    state_before = host.state.model_copy(deep=True)
    treasury_before = host.engine.get_treasury_balance()

    with pytest.raises(InsufficientAllowance):
        host.place_bet("dave", STAKE)

    assert host.state == state_before
    assert host.oracle.queued == []
    assert host.balance_of("dave") == STAKE
    assert host.engine.get_treasury_balance() == treasury_before


def test_failed_payout_keeps_bet_pending(host) -> None:
    correlation_id = host.place_bet(ALICE, STAKE)
    host.invoke(OWNER, "withdraw", host.engine.get_treasury_balance() - STAKE)

    # Treasury holds only the stake; a win owes twice that.
    assert host.deliver_fulfillments(words=[0, 1]) == []

    assert host.state.account_bets[ALICE].pending is True
    assert [r.correlation_id for r in host.oracle.queued] == [correlation_id]


def test_place_bet_requires_initialization(bare_host) -> None:
    with pytest.raises(NotInitialized):
        bare_host.place_bet(ALICE, STAKE)


def test_invalid_oracle_key_index(host) -> None:
    host.invoke(OWNER, "set_oracle_key_index", 5)

    with pytest.raises(InvalidOracleKeyIndex):
        host.place_bet(ALICE, STAKE)
    assert ALICE not in host.state.account_bets


def test_deliver_fulfillments_settles_all_queued(host) -> None:
    host.place_bet(ALICE, STAKE)
    host.place_bet(BOB, STAKE)

    settled = host.deliver_fulfillments()

    assert len(settled) == 2
    assert host.oracle.queued == []
    assert not host.state.account_bets[ALICE].pending
    assert not host.state.account_bets[BOB].pending
    assert len(host.records) == 2


def test_engine_does_not_mutate_input_state(host) -> None:
    state = host.state
    snapshot = state.model_copy(deep=True)
    ctx = CallContext(
        sender=ALICE,
        origin=ALICE,
        height=host.height + 1,
        block_time=host.genesis_time,
    )

    result = host.engine.place_bet(state, ctx, STAKE)

    assert state == snapshot
    assert result.state.account_bets[ALICE].pending is True
