"""
High-level rules API for legal move detection.

``get_legal_actions`` lists what a participant may invoke right now. It
mirrors the checks the engine makes, so every listed action passes the
turn and phase checks; balance checks are left to the operation itself.
"""

from enum import Enum
from typing import Any, List

from blockpoly.game import GameState, GameStatus, TurnPhase
from blockpoly.player import PlayerState
from blockpoly.spaces import SpaceType


class ActionType(Enum):
    """Types of actions a player can take."""

    JOIN_GAME = "join_game"
    START_GAME = "start_game"
    REQUEST_DICE_ROLL = "request_dice_roll"
    RESOLVE_LANDING = "resolve_landing"
    BUY_PROPERTY = "buy_property"
    DECLINE_BUY = "decline_buy"
    PAY_RENT = "pay_rent"
    AUCTION_BID = "auction_bid"
    AUCTION_PASS = "auction_pass"
    FINALIZE_AUCTION = "finalize_auction"
    DRAW_CARD = "draw_card"
    RESOLVE_CARD = "resolve_card"
    BUILD_IMPROVEMENT = "build_improvement"
    BUILD_MAX_IMPROVEMENT = "build_max_improvement"
    SELL_IMPROVEMENT = "sell_improvement"
    MORTGAGE_PROPERTY = "mortgage_property"
    UNMORTGAGE_PROPERTY = "unmortgage_property"
    RUGPULL_PAY_BAIL = "rugpull_pay_bail"
    RUGPULL_USE_JAIL_FREE_CARD = "rugpull_use_jail_free_card"
    RUGPULL_ATTEMPT_DOUBLES = "rugpull_attempt_doubles"
    REPAY_FLASH_LOAN = "repay_flash_loan"
    PROPOSE_TRADE = "propose_trade"
    ACCEPT_TRADE = "accept_trade"
    REJECT_TRADE = "reject_trade"
    DECLARE_BANKRUPTCY = "declare_bankruptcy"
    CLAIM_PRIZE = "claim_prize"


class Action:
    """Represents a game action that can be taken."""

    def __init__(self, action_type: ActionType, **params: Any):
        self.action_type = action_type
        self.params = params

    def __repr__(self) -> str:
        return f"Action({self.action_type.value}, {self.params})"


def get_legal_actions(game: GameState, wallet: str) -> List[Action]:
    """
    Get all legal actions available to a participant.

    Args:
        game: Current game state
        wallet: Participant to get actions for

    Returns:
        List of legal Action objects
    """
    if game.status == GameStatus.WAITING_FOR_PLAYERS:
        actions: List[Action] = []
        if wallet not in game.players and game.player_count < game.max_players:
            actions.append(Action(ActionType.JOIN_GAME))
        if wallet == game.host and game.player_count >= game.config.min_players:
            actions.append(Action(ActionType.START_GAME))
        return actions

    if game.status == GameStatus.FINISHED:
        if wallet == game.winner and game.prize_pool > 0:
            return [Action(ActionType.CLAIM_PRIZE)]
        return []

    player = game.players.get(wallet)
    if player is None or player.is_bankrupt:
        return []

    actions = _get_trade_actions(game, player)

    # Any bidder can act during an auction, not only the current player.
    if game.turn_phase == TurnPhase.AUCTION_PHASE and game.auction is not None:
        auction = game.auction
        if auction.is_expired:
            actions.append(Action(ActionType.FINALIZE_AUCTION, position=auction.position))
        elif wallet in auction.eligible:
            actions.append(Action(ActionType.AUCTION_BID, position=auction.position, min_bid=auction.highest_bid + 1))
            if wallet != auction.highest_bidder and wallet not in auction.passed:
                actions.append(Action(ActionType.AUCTION_PASS))

    if player.flash_loan_active:
        actions.append(Action(ActionType.REPAY_FLASH_LOAN))
    actions.append(Action(ActionType.DECLARE_BANKRUPTCY))

    if game.get_current_player().wallet != wallet:
        return actions

    phase = game.turn_phase
    if phase == TurnPhase.RUG_PULL_DECISION:
        actions.append(Action(ActionType.RUGPULL_PAY_BAIL))
        if player.has_jail_free_card:
            actions.append(Action(ActionType.RUGPULL_USE_JAIL_FREE_CARD))
        actions.append(Action(ActionType.RUGPULL_ATTEMPT_DOUBLES))
    elif phase == TurnPhase.ROLL_DICE:
        if not (player.flash_loan_active and game.turn_number > player.flash_loan_due_turn):
            actions.append(Action(ActionType.REQUEST_DICE_ROLL))
        if player.in_rug_pull_zone:
            actions.append(Action(ActionType.RUGPULL_PAY_BAIL))
            if player.has_jail_free_card:
                actions.append(Action(ActionType.RUGPULL_USE_JAIL_FREE_CARD))
    elif phase == TurnPhase.LANDING_EFFECT:
        actions.append(Action(ActionType.RESOLVE_LANDING))
    elif phase == TurnPhase.DRAW_CARD:
        if game.pending_card is None:
            actions.append(Action(ActionType.DRAW_CARD))
        else:
            deck, card_id = game.pending_card
            actions.append(Action(ActionType.RESOLVE_CARD, deck=deck, card_id=card_id))
    elif phase == TurnPhase.BUY_DECISION:
        if player.position in game.properties:
            actions.append(Action(ActionType.PAY_RENT, position=player.position))
        else:
            actions.append(Action(ActionType.BUY_PROPERTY, position=player.position))
            actions.append(Action(ActionType.DECLINE_BUY, position=player.position))

    if phase not in (TurnPhase.AWAITING_RANDOMNESS, TurnPhase.FINISHED):
        actions.extend(_get_property_management_actions(game, player))
    return actions


def _get_property_management_actions(game: GameState, player: PlayerState) -> List[Action]:
    """Get actions related to building and mortgaging."""
    actions: List[Action] = []

    for position in player.properties_owned:
        prop = game.properties[position]
        space = game.board.get_space(position)

        if space.space_type == SpaceType.PROPERTY and game.owns_color_set(player.wallet, position):
            group = [game.properties[pos] for pos in game.board.siblings(position)]
            buildable = not any(p.is_mortgaged for p in group) and not prop.has_full_protocol
            if buildable and prop.lp_count < 4 and prop.build_level <= min(p.build_level for p in group):
                actions.append(Action(ActionType.BUILD_IMPROVEMENT, position=position))
            if buildable and all(p.build_level >= 4 for p in group):
                actions.append(Action(ActionType.BUILD_MAX_IMPROVEMENT, position=position))

        siblings = [game.properties[pos] for pos in game.board.siblings(position) if pos in game.properties]
        if prop.is_improved and prop.build_level >= max(p.build_level for p in siblings):
            actions.append(Action(ActionType.SELL_IMPROVEMENT, position=position))

        if prop.is_mortgaged:
            actions.append(Action(ActionType.UNMORTGAGE_PROPERTY, position=position))
        elif not any(p.is_improved for p in siblings):
            actions.append(Action(ActionType.MORTGAGE_PROPERTY, position=position))

    return actions


def _get_trade_actions(game: GameState, player: PlayerState) -> List[Action]:
    """Get available trade actions for a player."""
    actions: List[Action] = []
    for offer in game.trades.offers_involving(player.wallet):
        if offer.recipient == player.wallet and not offer.is_expired(game.turn_number):
            actions.append(Action(ActionType.ACCEPT_TRADE, proposer=offer.proposer))
            actions.append(Action(ActionType.REJECT_TRADE, proposer=offer.proposer))
    if len(game.player_order) > 1:
        actions.append(Action(ActionType.PROPOSE_TRADE))
    return actions
