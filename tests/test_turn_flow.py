"""
Tests for turn flow: dice, movement, landing and turn rotation.
"""

import pytest

from blockpoly import GameConfig, TurnPhase, initialize_game
from blockpoly.exceptions import (
    DiceNotRolledError,
    InvalidRandomnessError,
    LandingAlreadyResolvedError,
    NotYourTurnError,
    RandomnessNotRequestedError,
    UnauthorizedRandomnessError,
    WrongTurnPhaseError,
)
from blockpoly.money import EventType
from blockpoly.player import PlayerStatus
from blockpoly.services import OracleAuthority

from helpers import SEED, dice_bytes, land_on, make_game, roll


def test_roll_moves_current_player(two_player_game):
    game = two_player_game
    request_id = game.request_dice_roll("alice")
    assert game.turn_phase == TurnPhase.AWAITING_RANDOMNESS
    assert game.pending_randomness == request_id

    assert game.fulfill_randomness("alice", dice_bytes(1, 2)) == (1, 2)
    assert game.players["alice"].position == 3
    assert game.pending_dice == (1, 2)
    assert game.pending_randomness is None
    assert game.turn_phase == TurnPhase.LANDING_EFFECT


def test_only_current_player_rolls(two_player_game):
    with pytest.raises(NotYourTurnError):
        two_player_game.request_dice_roll("bob")


def test_second_request_rejected(two_player_game):
    two_player_game.request_dice_roll("alice")
    with pytest.raises(WrongTurnPhaseError):
        two_player_game.request_dice_roll("alice")


def test_fulfill_without_request(two_player_game):
    with pytest.raises(RandomnessNotRequestedError):
        two_player_game.fulfill_randomness("alice", dice_bytes(1, 2))


def test_fulfill_by_other_player_rejected(two_player_game):
    two_player_game.request_dice_roll("alice")
    with pytest.raises(UnauthorizedRandomnessError):
        two_player_game.fulfill_randomness("bob", dice_bytes(6, 6))
    assert two_player_game.turn_phase == TurnPhase.AWAITING_RANDOMNESS


def test_short_payload_leaves_request_pending(two_player_game):
    two_player_game.request_dice_roll("alice")
    with pytest.raises(InvalidRandomnessError):
        two_player_game.fulfill_randomness("alice", b"\x01")
    assert two_player_game.pending_randomness is not None


def test_oracle_authority():
    game = make_game(GameConfig(), ["alice", "bob"], randomness_authority=OracleAuthority("vrf"))
    game.request_dice_roll("alice")
    with pytest.raises(UnauthorizedRandomnessError):
        game.fulfill_randomness("alice", dice_bytes(1, 2))
    game.fulfill_randomness("vrf", dice_bytes(1, 2))
    assert game.players["alice"].position == 3


def test_resolve_before_roll(two_player_game):
    with pytest.raises(DiceNotRolledError):
        two_player_game.resolve_landing("alice")


def test_landing_resolves_once(two_player_game):
    assert land_on(two_player_game, "alice", 3) == TurnPhase.BUY_DECISION
    with pytest.raises(LandingAlreadyResolvedError):
        two_player_game.resolve_landing("alice")


def test_buy_property(two_player_game, ledger):
    game = two_player_game
    land_on(game, "alice", 1)
    game.buy_property("alice")

    alice = game.players["alice"]
    assert alice.balance == 1440 + 200
    assert game.owner_of(1) == "alice"
    assert alice.properties_owned == [1]
    assert game.tokens.owners[game.properties[1].token_ref] == "alice"
    assert game.get_current_player().wallet == "bob"


def test_turn_and_round_counters(two_player_game):
    game = two_player_game
    land_on(game, "alice", 20)
    assert (game.turn_number, game.round_number) == (2, 1)
    assert game.get_current_player().wallet == "bob"
    land_on(game, "bob", 20)
    assert (game.turn_number, game.round_number) == (3, 2)
    assert game.get_current_player().wallet == "alice"
    assert game.turn_phase == TurnPhase.ROLL_DICE


def test_passing_genesis_pays_salary(two_player_game):
    game = two_player_game
    game.players["alice"].position = 38
    roll(game, "alice", 2, 3)
    assert game.players["alice"].position == 3
    assert game.players["alice"].balance == 1700
    assert game.event_log.of_type(EventType.PASSED_GENESIS)


def test_salary_on_pass_can_be_disabled():
    game = make_game(GameConfig(pay_salary_on_pass=False), ["alice", "bob"])
    game.players["alice"].position = 38
    roll(game, "alice", 2, 3)
    assert game.players["alice"].balance == 1500


def test_landing_on_genesis_pays_once(two_player_game):
    game = two_player_game
    game.players["alice"].position = 37
    roll(game, "alice", 1, 2)
    assert game.players["alice"].balance == 1500
    game.resolve_landing("alice")
    assert game.players["alice"].balance == 1700
    assert game.get_current_player().wallet == "bob"


def test_tax_space(two_player_game, ledger):
    land_on(two_player_game, "alice", 4)
    assert two_player_game.players["alice"].balance == 1300
    assert ledger.balance_of("alice") == 1300


def test_free_parking_does_nothing(two_player_game):
    land_on(two_player_game, "alice", 20)
    assert two_player_game.players["alice"].balance == 1500


def test_sec_investigation_sends_to_rug_pull_zone(two_player_game):
    game = two_player_game
    game.players["alice"].position = 27
    roll(game, "alice", 1, 2)

    alice = game.players["alice"]
    assert alice.position == 10
    assert alice.status == PlayerStatus.IN_RUG_PULL_ZONE
    assert alice.rugpull_turns_remaining == 3
    assert game.turn_phase == TurnPhase.LANDING_EFFECT

    game.resolve_landing("alice")
    game.advance_turn()
    assert game.turn_phase == TurnPhase.RUG_PULL_DECISION


def test_doubles_streak(two_player_game):
    game = two_player_game
    roll(game, "alice", 2, 2)
    assert game.players["alice"].doubles_streak == 1
    game.resolve_landing("alice")


def test_non_double_resets_streak(two_player_game):
    game = two_player_game
    game.players["alice"].doubles_streak = 2
    roll(game, "alice", 1, 2)
    assert game.players["alice"].doubles_streak == 0


def test_third_double_goes_to_rug_pull_without_moving(two_player_game):
    game = two_player_game
    alice = game.players["alice"]
    alice.position = 5
    alice.doubles_streak = 2
    roll(game, "alice", 4, 4)

    assert alice.position == 10
    assert alice.in_rug_pull_zone
    assert alice.rugpull_turns_remaining == 3
    assert alice.doubles_streak == 0
    assert game.turn_phase == TurnPhase.LANDING_EFFECT


def test_card_spaces_wait_for_draw(two_player_game):
    assert land_on(two_player_game, "alice", 17) == TurnPhase.DRAW_CARD


def test_owned_and_mortgaged_spaces_advance(two_player_game):
    game = two_player_game
    game._acquire("alice", 6)
    land_on(game, "alice", 6)
    assert game.get_current_player().wallet == "bob"

    game._acquire("alice", 9)
    game.properties[9].is_mortgaged = True
    land_on(game, "bob", 9)
    assert game.players["bob"].balance == 1500
    assert game.get_current_player().wallet == "alice"


def test_events_logged(two_player_game):
    land_on(two_player_game, "alice", 20)
    kinds = [e.event_type for e in two_player_game.event_log.get_events()]
    for kind in (EventType.GAME_STARTED, EventType.DICE_REQUESTED, EventType.DICE_ROLLED,
                 EventType.MOVE, EventType.LAND, EventType.TURN_START):
        assert kind in kinds


def test_game_ids_are_independent(game_config):
    first = initialize_game("one", "alice", config=game_config)
    second = initialize_game("two", "alice", config=game_config)
    first.join_game("alice")
    assert second.player_count == 0
