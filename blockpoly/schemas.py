"""
Persisted record shapes.

These pydantic models are the storage-facing view of a game: one record
per game, per player, per owned space and per open trade offer. They are
keyed the same way ``GameRegistry`` looks them up.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class PlayerRecord(BaseModel):
    game_id: str
    wallet: str
    player_index: int
    status: str
    position: int
    balance: int
    doubles_streak: int = 0
    rugpull_turns_remaining: int = 0
    has_jail_free_card: bool = False
    jail_free_card_origin: Optional[str] = None
    properties_owned: List[int] = Field(default_factory=list)
    flash_loan_active: bool = False
    flash_loan_repay_amount: int = 0
    flash_loan_due_turn: int = 0
    is_bankrupt: bool = False


class PropertyRecord(BaseModel):
    game_id: str
    position: int
    name: str
    owner: str
    lp_count: int = 0
    has_full_protocol: bool = False
    is_mortgaged: bool = False
    token_ref: Optional[str] = None


class TradeOfferRecord(BaseModel):
    game_id: str
    proposer: str
    recipient: str
    offered_properties: List[int] = Field(default_factory=list)
    requested_properties: List[int] = Field(default_factory=list)
    offered_amount: int = 0
    requested_amount: int = 0
    offer_jail_card: bool = False
    request_jail_card: bool = False
    expiry_turn: int


class AuctionRecord(BaseModel):
    position: int
    property_name: str
    starting_bid: int
    highest_bid: int
    highest_bidder: Optional[str] = None
    clock: int
    deadline: int
    eligible: List[str] = Field(default_factory=list)
    passed: List[str] = Field(default_factory=list)


class GameRecord(BaseModel):
    game_id: str
    host: str
    status: str
    turn_phase: str
    max_players: int
    player_order: List[str] = Field(default_factory=list)
    current_player_index: int = 0
    turn_number: int = 0
    round_number: int = 0
    alpha_call_cursor: int = 0
    governance_cursor: int = 0
    pending_randomness: Optional[str] = None
    pending_dice: Optional[List[int]] = None
    bull_run_active: bool = False
    bull_run_ends_round: int = 0
    auction: Optional[AuctionRecord] = None
    prize_pool: int = 0
    winner: Optional[str] = None
    last_rent_payer: Optional[str] = None
    last_rent_amount: int = 0
