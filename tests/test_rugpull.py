"""
Tests for the Rug Pull Zone: entry, bail, jail-free cards and escape rolls.
"""

import pytest

from blockpoly import TurnPhase
from blockpoly.exceptions import (
    InsufficientBalanceError,
    NoJailFreeCardError,
    NotInRugPullZoneError,
    WrongTurnPhaseError,
)
from blockpoly.money import EventType
from blockpoly.player import CardDeck, PlayerStatus

from helpers import drain, land_on, roll


@pytest.fixture
def jailed_game(two_player_game):
    """Alice sits in the Rug Pull Zone at the start of her turn."""
    game = two_player_game
    land_on(game, "alice", 30)
    game.advance_turn()
    return game


def test_jailed_turn_starts_with_decision(jailed_game):
    assert jailed_game.turn_phase == TurnPhase.RUG_PULL_DECISION
    with pytest.raises(WrongTurnPhaseError):
        jailed_game.request_dice_roll("alice")


def test_pay_bail(jailed_game):
    jailed_game.rugpull_pay_bail("alice")
    alice = jailed_game.players["alice"]
    assert alice.balance == 1450
    assert alice.status == PlayerStatus.ACTIVE
    assert alice.rugpull_turns_remaining == 0
    assert jailed_game.turn_phase == TurnPhase.ROLL_DICE


def test_bail_needs_balance(jailed_game):
    drain(jailed_game, "alice", 10)
    with pytest.raises(InsufficientBalanceError):
        jailed_game.rugpull_pay_bail("alice")
    assert jailed_game.players["alice"].in_rug_pull_zone


def test_use_jail_free_card(jailed_game):
    alice = jailed_game.players["alice"]
    with pytest.raises(NoJailFreeCardError):
        jailed_game.rugpull_use_jail_free_card("alice")

    alice.grant_jail_free_card(CardDeck.GOVERNANCE)
    jailed_game.rugpull_use_jail_free_card("alice")
    assert not alice.in_rug_pull_zone
    assert not alice.has_jail_free_card
    exit_event = jailed_game.event_log.of_type(EventType.RUG_PULL_EXITED)[-1]
    assert exit_event.details == {"method": "jail_free_card", "card_origin": "governance"}


def test_exit_options_need_jailed_player(two_player_game):
    with pytest.raises(NotInRugPullZoneError):
        two_player_game.rugpull_pay_bail("alice")
    with pytest.raises(NotInRugPullZoneError):
        two_player_game.rugpull_attempt_doubles("alice")


def test_doubles_escape_and_move(jailed_game):
    jailed_game.rugpull_attempt_doubles("alice")
    roll(jailed_game, "alice", 3, 3)
    alice = jailed_game.players["alice"]
    assert not alice.in_rug_pull_zone
    assert alice.position == 16
    assert alice.doubles_streak == 0
    assert jailed_game.turn_phase == TurnPhase.LANDING_EFFECT


def test_failed_attempt_uses_a_turn(jailed_game):
    jailed_game.rugpull_attempt_doubles("alice")
    roll(jailed_game, "alice", 1, 2)
    alice = jailed_game.players["alice"]
    assert alice.in_rug_pull_zone
    assert alice.position == 10
    assert alice.rugpull_turns_remaining == 2

    jailed_game.resolve_landing("alice")
    assert jailed_game.get_current_player().wallet == "bob"


def test_last_failed_attempt_forces_bail(jailed_game):
    alice = jailed_game.players["alice"]
    alice.rugpull_turns_remaining = 1
    jailed_game.rugpull_attempt_doubles("alice")
    roll(jailed_game, "alice", 1, 2)

    assert not alice.in_rug_pull_zone
    assert alice.balance == 1450
    assert alice.position == 13
    methods = [e.details["method"] for e in jailed_game.event_log.of_type(EventType.RUG_PULL_EXITED)]
    assert methods[-1] == "forced_bail"


def test_forced_bail_without_funds_changes_nothing(jailed_game):
    alice = jailed_game.players["alice"]
    alice.rugpull_turns_remaining = 1
    drain(jailed_game, "alice", 20)
    jailed_game.rugpull_attempt_doubles("alice")
    with pytest.raises(InsufficientBalanceError):
        roll(jailed_game, "alice", 1, 2)

    assert alice.in_rug_pull_zone
    assert alice.rugpull_turns_remaining == 1
    assert alice.position == 10
    assert jailed_game.turn_phase == TurnPhase.AWAITING_RANDOMNESS
    assert jailed_game.pending_randomness is not None


def test_jailed_player_collects_rent(jailed_game):
    game = jailed_game
    game._acquire("alice", 6)
    game.advance_turn()
    land_on(game, "bob", 6)
    assert game.pay_rent("bob") == 6
    assert game.players["alice"].balance == 1506
    assert game.players["alice"].in_rug_pull_zone
