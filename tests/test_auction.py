"""
Tests for auctions of declined properties.
"""

import pytest

from blockpoly import GameConfig, TurnPhase
from blockpoly.exceptions import (
    AuctionAlreadyWonError,
    AuctionError,
    AuctionNotActiveError,
    AuctionStillOpenError,
    BidTooLowError,
    InsufficientBalanceError,
    PlayerBankruptError,
    PropertyAlreadyOwnedError,
)
from blockpoly.money import EventType

from helpers import drain, land_on, make_game


@pytest.fixture
def auction_game(two_player_game):
    """Alice declined dogwifhat (space 3, price 60)."""
    land_on(two_player_game, "alice", 3)
    two_player_game.decline_buy("alice")
    return two_player_game


def test_decline_opens_auction(auction_game):
    auction = auction_game.auction
    assert auction_game.turn_phase == TurnPhase.AUCTION_PHASE
    assert auction.position == 3
    assert auction.starting_bid == 6
    assert auction.highest_bidder is None
    assert auction.eligible == ["alice", "bob"]


def test_bid_must_exceed_current(auction_game):
    with pytest.raises(BidTooLowError):
        auction_game.auction_bid("bob", 3, 6)
    assert auction_game.auction_bid("bob", 3, 7)
    with pytest.raises(BidTooLowError):
        auction_game.auction_bid("alice", 3, 7)


def test_bid_extends_deadline(auction_game):
    auction_game.auction_bid("bob", 3, 10)
    auction = auction_game.auction
    assert auction.clock == 1
    assert auction.deadline == 1 + auction_game.config.auction_duration_turns


def test_bid_on_wrong_space(auction_game):
    with pytest.raises(AuctionNotActiveError):
        auction_game.auction_bid("bob", 1, 10)


def test_bid_needs_balance(auction_game):
    drain(auction_game, "bob", 5)
    with pytest.raises(InsufficientBalanceError):
        auction_game.auction_bid("bob", 3, 10)


def test_highest_bidder_cannot_pass(auction_game):
    auction_game.auction_bid("bob", 3, 10)
    with pytest.raises(AuctionError):
        auction_game.auction_pass("bob")


def test_double_pass_rejected(four_player_game):
    game = four_player_game
    land_on(game, "alice", 3)
    game.decline_buy("alice")
    game.auction_pass("carol")
    with pytest.raises(AuctionError):
        game.auction_pass("carol")


def test_winner_pays_and_takes_space(auction_game, ledger):
    auction_game.auction_bid("bob", 3, 25)
    auction_game.auction_pass("alice")
    assert auction_game.auction.is_expired

    assert auction_game.finalize_auction("alice") == "bob"
    assert auction_game.owner_of(3) == "bob"
    assert ledger.balance_of("bob") == 1475
    assert auction_game.auction is None
    assert auction_game.get_current_player().wallet == "bob"
    assert auction_game.event_log.of_type(EventType.AUCTION_END)[-1].details["amount"] == 25


def test_finalize_open_auction_rejected(auction_game):
    auction_game.auction_bid("bob", 3, 25)
    with pytest.raises(AuctionStillOpenError):
        auction_game.finalize_auction("alice")


def test_late_bid_closes_auction(auction_game):
    auction_game.auction_bid("bob", 3, 25)
    auction_game.auction_pass("alice")

    assert auction_game.auction_bid("alice", 3, 30) is False
    assert auction_game.owner_of(3) == "bob"
    assert auction_game.turn_phase == TurnPhase.ROLL_DICE


def test_late_low_bid_still_closes_auction(auction_game):
    auction_game.auction_bid("bob", 3, 25)
    auction_game.auction_pass("alice")

    assert auction_game.auction_bid("alice", 3, 20) is False
    assert auction_game.auction is None
    assert auction_game.owner_of(3) == "bob"
    assert auction_game.turn_phase == TurnPhase.ROLL_DICE


def test_deadline_passes_without_every_bidder_passing():
    """Six players: a bid then four passes run the clock past the deadline."""
    game = make_game(GameConfig(), ["alice", "bob", "carol", "dave", "erin", "frank"])
    land_on(game, "alice", 3)
    game.decline_buy("alice")
    game.auction_bid("bob", 3, 10)
    for wallet in ("alice", "carol", "dave", "erin"):
        game.auction_pass(wallet)

    auction = game.auction
    assert "frank" not in auction.passed
    assert auction.clock > auction.deadline
    assert auction.is_expired
    assert game.finalize_auction("frank") == "bob"
    assert game.owner_of(3) == "bob"


def test_bankrupt_player_cannot_finalize(four_player_game):
    game = four_player_game
    land_on(game, "alice", 3)
    game.decline_buy("alice")
    game.declare_bankruptcy("dave")
    game.auction_bid("bob", 3, 10)
    game.auction_pass("alice")
    game.auction_pass("carol")
    assert game.auction.is_expired

    with pytest.raises(PlayerBankruptError):
        game.finalize_auction("dave")
    assert game.finalize_auction("carol") == "bob"


def test_pass_after_expiry_rejected(four_player_game):
    game = four_player_game
    land_on(game, "alice", 3)
    game.decline_buy("alice")
    game.auction_bid("bob", 3, 10)
    for wallet in ("alice", "carol", "dave"):
        game.auction_pass(wallet)
    with pytest.raises(AuctionAlreadyWonError):
        game.auction_pass("alice")


def test_new_bid_reopens_passes(four_player_game):
    game = four_player_game
    land_on(game, "alice", 3)
    game.decline_buy("alice")
    game.auction_bid("bob", 3, 10)
    game.auction_pass("alice")
    game.auction_pass("carol")
    game.auction_bid("dave", 3, 11)
    assert game.auction.passed == set()
    assert not game.auction.is_expired


def test_no_bids_leaves_space_with_bank(auction_game):
    auction_game.auction_pass("alice")
    auction_game.auction_pass("bob")
    assert auction_game.finalize_auction("bob") is None
    assert 3 not in auction_game.properties


def test_cannot_decline_owned_space(two_player_game):
    game = two_player_game
    game._acquire("bob", 3)
    land_on(game, "alice", 3)
    with pytest.raises(PropertyAlreadyOwnedError):
        game.decline_buy("alice")


def test_no_auction_outside_phase(two_player_game):
    with pytest.raises(AuctionNotActiveError):
        two_player_game.auction_bid("bob", 3, 10)
