"""
Player and property state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class PlayerStatus(Enum):
    """Participation status of a player."""

    ACTIVE = "active"
    IN_RUG_PULL_ZONE = "in_rug_pull_zone"
    BANKRUPT = "bankrupt"


class CardDeck(Enum):
    """The two card decks."""

    ALPHA_CALL = "alpha_call"
    GOVERNANCE = "governance"


class PlayerState:
    """Represents the complete state of a player in the game."""

    def __init__(self, wallet: str, player_index: int, starting_balance: int):
        self.wallet = wallet
        self.player_index = player_index
        self.status = PlayerStatus.ACTIVE
        self.position = 0
        self.doubles_streak = 0
        self.rugpull_turns_remaining = 0
        self.has_jail_free_card = False
        self.jail_free_card_origin: Optional[CardDeck] = None
        # Insertion ordered so iteration over holdings is deterministic.
        self.properties_owned: List[int] = []
        self.flash_loan_active = False
        self.flash_loan_repay_amount = 0
        self.flash_loan_due_turn = 0
        self.is_bankrupt = False
        self.balance = starting_balance

    @property
    def in_rug_pull_zone(self) -> bool:
        return self.status == PlayerStatus.IN_RUG_PULL_ZONE

    def add_property(self, position: int) -> None:
        if position not in self.properties_owned:
            self.properties_owned.append(position)

    def remove_property(self, position: int) -> None:
        if position in self.properties_owned:
            self.properties_owned.remove(position)

    def grant_jail_free_card(self, origin: CardDeck) -> None:
        self.has_jail_free_card = True
        self.jail_free_card_origin = origin

    def take_jail_free_card(self) -> Optional[CardDeck]:
        origin = self.jail_free_card_origin
        self.has_jail_free_card = False
        self.jail_free_card_origin = None
        return origin

    def clear_flash_loan(self) -> None:
        self.flash_loan_active = False
        self.flash_loan_repay_amount = 0
        self.flash_loan_due_turn = 0

    def __repr__(self) -> str:
        return (
            f"PlayerState(wallet='{self.wallet}', index={self.player_index}, "
            f"balance={self.balance}, position={self.position}, status={self.status.value})"
        )


@dataclass
class PropertyState:
    """
    Ownership record for a space that has left the bank.

    A Full Protocol keeps ``lp_count`` at 4 so that selling it back down
    refunds against the same improvement count.
    """

    position: int
    owner: str
    lp_count: int = 0
    has_full_protocol: bool = False
    is_mortgaged: bool = False
    token_ref: Optional[str] = None

    @property
    def build_level(self) -> int:
        """Improvement level used by the even-building rule."""
        return 5 if self.has_full_protocol else self.lp_count

    @property
    def is_improved(self) -> bool:
        return self.lp_count > 0 or self.has_full_protocol
