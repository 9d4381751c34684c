"""
Public snapshot serialization of GameState.

Produces a sanitized view of the current game without exposing hidden
information: deck order is never included, only the draw cursors.
Also converts a game into its persisted record shapes.
"""

from __future__ import annotations

from typing import Any, Dict, List

from blockpoly import economy
from blockpoly.game import GameState, GameStatus
from blockpoly.schemas import (
    AuctionRecord,
    GameRecord,
    PlayerRecord,
    PropertyRecord,
    TradeOfferRecord,
)


def serialize_snapshot(game: GameState) -> Dict[str, Any]:
    """Serialize a GameState into a public, stable JSON dict.

    The snapshot includes:
    - status, phase, turn and round numbers, current player
    - players with public info (balance, position, jail, holdings)
    - the active auction (if any) and open trade offers
    - deck cursors only
    """
    players: List[Dict[str, Any]] = []
    for player in sorted(game.players.values(), key=lambda p: p.player_index):
        props: List[Dict[str, Any]] = []
        for pos in player.properties_owned:
            space = game.board.get_space(pos)
            prop = game.properties.get(pos)
            entry: Dict[str, Any] = {
                "position": pos,
                "name": space.name,
                "lp_count": prop.lp_count if prop else 0,
                "full_protocol": prop.has_full_protocol if prop else False,
                "mortgaged": prop.is_mortgaged if prop else False,
            }
            if space.color_group is not None:
                entry["color_group"] = space.color_group.value
            props.append(entry)

        players.append(
            {
                "wallet": player.wallet,
                "player_index": player.player_index,
                "balance": player.balance,
                "position": player.position,
                "status": player.status.value,
                "in_rug_pull_zone": player.in_rug_pull_zone,
                "rugpull_turns_remaining": player.rugpull_turns_remaining,
                "has_jail_free_card": player.has_jail_free_card,
                "flash_loan_active": player.flash_loan_active,
                "is_bankrupt": player.is_bankrupt,
                "net_worth": economy.net_worth(
                    player.balance,
                    [game.board.get_space(pos) for pos in player.properties_owned],
                    [game.properties[pos].build_level for pos in player.properties_owned],
                ),
                "properties": props,
            }
        )

    auction = None
    if game.auction is not None:
        a = game.auction
        auction = {
            "position": a.position,
            "property_name": a.property_name,
            "highest_bid": a.highest_bid,
            "highest_bidder": a.highest_bidder,
            "deadline": a.deadline,
            "clock": a.clock,
            "is_expired": a.is_expired,
        }

    current = None
    if game.player_order and game.status == GameStatus.IN_PROGRESS:
        current = game.get_current_player().wallet

    return {
        "game_id": game.game_id,
        "status": game.status.value,
        "turn_phase": game.turn_phase.value,
        "turn_number": game.turn_number,
        "round_number": game.round_number,
        "current_player": current,
        "players": players,
        "pending_dice": list(game.pending_dice) if game.pending_dice else None,
        "bull_run_active": game.bull_run_in_effect(),
        "auction": auction,
        "trades": [
            {
                "proposer": o.proposer,
                "recipient": o.recipient,
                "offered_properties": list(o.offered_properties),
                "requested_properties": list(o.requested_properties),
                "offered_amount": o.offered_amount,
                "requested_amount": o.requested_amount,
                "expiry_turn": o.expiry_turn,
            }
            for o in game.trades.open_offers.values()
        ],
        "decks": {
            "alpha_call": {"cursor": game.alpha_deck.cursor},
            "governance": {"cursor": game.governance_deck.cursor},
        },
        "prize_pool": game.prize_pool,
        "winner": game.winner,
    }


def game_record(game: GameState) -> GameRecord:
    auction = None
    if game.auction is not None:
        a = game.auction
        auction = AuctionRecord(
            position=a.position,
            property_name=a.property_name,
            starting_bid=a.starting_bid,
            highest_bid=a.highest_bid,
            highest_bidder=a.highest_bidder,
            clock=a.clock,
            deadline=a.deadline,
            eligible=list(a.eligible),
            passed=sorted(a.passed),
        )
    return GameRecord(
        game_id=game.game_id,
        host=game.host,
        status=game.status.value,
        turn_phase=game.turn_phase.value,
        max_players=game.max_players,
        player_order=list(game.player_order),
        current_player_index=game.current_player_index,
        turn_number=game.turn_number,
        round_number=game.round_number,
        alpha_call_cursor=game.alpha_deck.cursor,
        governance_cursor=game.governance_deck.cursor,
        pending_randomness=game.pending_randomness,
        pending_dice=list(game.pending_dice) if game.pending_dice else None,
        bull_run_active=game.bull_run_active,
        bull_run_ends_round=game.bull_run_ends_round,
        auction=auction,
        prize_pool=game.prize_pool,
        winner=game.winner,
        last_rent_payer=game.last_rent_payer,
        last_rent_amount=game.last_rent_amount,
    )


def player_record(game: GameState, wallet: str) -> PlayerRecord:
    p = game.get_player(wallet)
    return PlayerRecord(
        game_id=game.game_id,
        wallet=p.wallet,
        player_index=p.player_index,
        status=p.status.value,
        position=p.position,
        balance=p.balance,
        doubles_streak=p.doubles_streak,
        rugpull_turns_remaining=p.rugpull_turns_remaining,
        has_jail_free_card=p.has_jail_free_card,
        jail_free_card_origin=p.jail_free_card_origin.value if p.jail_free_card_origin else None,
        properties_owned=list(p.properties_owned),
        flash_loan_active=p.flash_loan_active,
        flash_loan_repay_amount=p.flash_loan_repay_amount,
        flash_loan_due_turn=p.flash_loan_due_turn,
        is_bankrupt=p.is_bankrupt,
    )


def property_record(game: GameState, position: int) -> PropertyRecord:
    prop = game.properties[position]
    return PropertyRecord(
        game_id=game.game_id,
        position=position,
        name=game.board.get_space(position).name,
        owner=prop.owner,
        lp_count=prop.lp_count,
        has_full_protocol=prop.has_full_protocol,
        is_mortgaged=prop.is_mortgaged,
        token_ref=prop.token_ref,
    )


def trade_record(game: GameState, proposer: str) -> TradeOfferRecord:
    o = game.trades.open_offers[proposer]
    return TradeOfferRecord(
        game_id=game.game_id,
        proposer=o.proposer,
        recipient=o.recipient,
        offered_properties=list(o.offered_properties),
        requested_properties=list(o.requested_properties),
        offered_amount=o.offered_amount,
        requested_amount=o.requested_amount,
        offer_jail_card=o.offer_jail_card,
        request_jail_card=o.request_jail_card,
        expiry_turn=o.expiry_turn,
    )
