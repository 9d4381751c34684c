"""
Tests for trade offers.
"""

import pytest

from blockpoly.exceptions import (
    ArithmeticOverflowError,
    InsufficientBalanceError,
    InvalidTradeOfferError,
    NotPropertyOwnerError,
    RecipientNotInGameError,
    TradeExpiredError,
)
from blockpoly.money import EventType
from blockpoly.player import CardDeck
from blockpoly.services import InMemoryLedger

from helpers import WALLETS, give, make_game


class FlakyLedger(InMemoryLedger):
    """Refuses one transfer after ``allowed`` more succeed."""

    def __init__(self):
        super().__init__()
        self.allowed = None

    def transfer(self, source, destination, amount):
        if self.allowed is not None:
            if self.allowed == 0:
                self.allowed = None
                return False
            self.allowed -= 1
        return super().transfer(source, destination, amount)


@pytest.fixture
def holdings(two_player_game):
    """Alice holds BONK (1), bob holds dogwifhat (3)."""
    give(two_player_game, "alice", 1)
    give(two_player_game, "bob", 3)
    return two_player_game


def test_swap_properties_and_currency(holdings, ledger):
    game = holdings
    token_1 = game.properties[1].token_ref
    offer = game.propose_trade("alice", "bob", offered_properties=[1], requested_properties=[3], offered_amount=100)
    assert offer.expiry_turn == game.turn_number + 10

    game.accept_trade("bob", "alice")
    assert game.owner_of(1) == "bob"
    assert game.owner_of(3) == "alice"
    assert game.players["alice"].properties_owned == [3]
    assert game.players["bob"].properties_owned == [1]
    assert game.tokens.owners[token_1] == "bob"
    assert ledger.balance_of("alice") == 1400
    assert ledger.balance_of("bob") == 1600
    assert game.trades.get("alice") is None
    assert game.trades.history[-1].result == "accepted"


def test_trade_outside_own_turn(holdings):
    holdings.propose_trade("bob", "alice", offered_properties=[3], requested_amount=50)
    holdings.accept_trade("alice", "bob")
    assert holdings.owner_of(3) == "alice"


def test_reject(holdings):
    holdings.propose_trade("alice", "bob", offered_properties=[1])
    holdings.reject_trade("bob", "alice")
    assert holdings.owner_of(1) == "alice"
    assert holdings.trades.history[-1].result == "rejected"
    with pytest.raises(InvalidTradeOfferError):
        holdings.accept_trade("bob", "alice")


def test_new_offer_replaces_old(holdings):
    holdings.propose_trade("alice", "bob", offered_amount=10)
    holdings.propose_trade("alice", "bob", offered_amount=20)
    assert holdings.trades.get("alice").offered_amount == 20
    assert holdings.event_log.of_type(EventType.TRADE_REPLACED)


def test_expired_offer_stays_open(holdings):
    holdings.propose_trade("alice", "bob", offered_amount=10)
    holdings.turn_number += 11
    with pytest.raises(TradeExpiredError):
        holdings.accept_trade("bob", "alice")
    assert holdings.trades.get("alice") is not None


def test_offer_at_expiry_turn_is_valid(holdings):
    holdings.propose_trade("alice", "bob", offered_amount=10)
    holdings.turn_number += 10
    holdings.accept_trade("bob", "alice")


def test_recipient_must_be_an_opponent(holdings):
    with pytest.raises(RecipientNotInGameError):
        holdings.propose_trade("alice", "alice", offered_amount=10)
    with pytest.raises(RecipientNotInGameError):
        holdings.propose_trade("alice", "mallory", offered_amount=10)


def test_empty_offer(holdings):
    with pytest.raises(InvalidTradeOfferError):
        holdings.propose_trade("alice", "bob")


def test_offer_only_own_properties(holdings):
    with pytest.raises(NotPropertyOwnerError):
        holdings.propose_trade("alice", "bob", offered_properties=[3])


def test_duplicate_property(holdings):
    with pytest.raises(InvalidTradeOfferError):
        holdings.propose_trade("alice", "bob", offered_properties=[1, 1])


def test_negative_amount(holdings):
    with pytest.raises(ArithmeticOverflowError):
        holdings.propose_trade("alice", "bob", offered_amount=-5)


def test_holdings_changed_since_offer(holdings):
    holdings.propose_trade("alice", "bob", requested_properties=[3], offered_amount=10)
    holdings._reassign(3, "alice")
    with pytest.raises(InvalidTradeOfferError):
        holdings.accept_trade("bob", "alice")


def test_unaffordable_trade_changes_nothing(holdings, ledger):
    holdings.propose_trade("alice", "bob", offered_properties=[1], requested_amount=5000)
    with pytest.raises(InsufficientBalanceError):
        holdings.accept_trade("bob", "alice")
    assert holdings.owner_of(1) == "alice"
    assert ledger.balance_of("alice") == 1500
    assert ledger.balance_of("bob") == 1500


def test_failed_second_leg_is_reversed(game_config):
    ledger = FlakyLedger()
    game = make_game(game_config, WALLETS[:2], ledger=ledger)
    give(game, "alice", 1)
    give(game, "bob", 3)
    game.propose_trade("alice", "bob", offered_properties=[1], requested_properties=[3],
                       offered_amount=100, requested_amount=50)

    ledger.allowed = 1
    with pytest.raises(InsufficientBalanceError):
        game.accept_trade("bob", "alice")

    assert ledger.balance_of("alice") == 1500
    assert ledger.balance_of("bob") == 1500
    assert game.players["alice"].balance == 1500
    assert game.owner_of(1) == "alice"
    assert game.owner_of(3) == "bob"
    assert game.trades.get("alice") is not None


class TestJailFreeCard:
    def test_card_for_currency(self, holdings):
        holdings.players["alice"].grant_jail_free_card(CardDeck.ALPHA_CALL)
        holdings.propose_trade("alice", "bob", offer_jail_card=True, requested_amount=40)
        holdings.accept_trade("bob", "alice")
        assert not holdings.players["alice"].has_jail_free_card
        assert holdings.players["bob"].has_jail_free_card
        assert holdings.players["bob"].jail_free_card_origin == CardDeck.ALPHA_CALL

    def test_cannot_offer_missing_card(self, holdings):
        with pytest.raises(InvalidTradeOfferError):
            holdings.propose_trade("alice", "bob", offer_jail_card=True)

    def test_recipient_already_holding_a_card(self, holdings):
        holdings.players["alice"].grant_jail_free_card(CardDeck.ALPHA_CALL)
        holdings.players["bob"].grant_jail_free_card(CardDeck.GOVERNANCE)
        holdings.propose_trade("alice", "bob", offer_jail_card=True, requested_amount=40)
        with pytest.raises(InvalidTradeOfferError):
            holdings.accept_trade("bob", "alice")

    def test_card_swap(self, holdings):
        holdings.players["alice"].grant_jail_free_card(CardDeck.ALPHA_CALL)
        holdings.players["bob"].grant_jail_free_card(CardDeck.GOVERNANCE)
        holdings.propose_trade("alice", "bob", offer_jail_card=True, request_jail_card=True)
        holdings.accept_trade("bob", "alice")
        assert holdings.players["alice"].jail_free_card_origin == CardDeck.GOVERNANCE
        assert holdings.players["bob"].jail_free_card_origin == CardDeck.ALPHA_CALL
