"""
Rug Pull Zone (jail) entry and exit rules.

These functions operate on the game handle they are given. Phase and
turn checks live in ``GameState``; this module only moves a player in
and out of the zone.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Tuple

from blockpoly.board import RUG_PULL_ZONE_POSITION
from blockpoly.exceptions import InsufficientBalanceError
from blockpoly.money import EventType
from blockpoly.player import PlayerState, PlayerStatus
from blockpoly.services import BANK

if TYPE_CHECKING:
    from blockpoly.game import GameState

logger = logging.getLogger(__name__)


class EntryReason(Enum):
    SEC_INVESTIGATION = "sec_investigation"
    CARD = "card"
    TRIPLE_DOUBLES = "triple_doubles"


class ExitMethod(Enum):
    BAIL = "bail"
    JAIL_FREE_CARD = "jail_free_card"
    DOUBLES = "doubles"
    FORCED_BAIL = "forced_bail"
    INSURANCE = "insurance"


def enter_rug_pull(game: "GameState", player: PlayerState, reason: EntryReason) -> None:
    """Send ``player`` straight to the Rug Pull Zone without passing Genesis."""
    player.position = RUG_PULL_ZONE_POSITION
    player.rugpull_turns_remaining = game.config.rugpull_max_turns
    player.status = PlayerStatus.IN_RUG_PULL_ZONE
    player.doubles_streak = 0
    game.event_log.log(EventType.RUG_PULL_ENTERED, player.wallet, reason=reason.value)
    logger.info(f"{player.wallet} entered the Rug Pull Zone ({reason.value})")


def release(game: "GameState", player: PlayerState, method: ExitMethod, **details) -> None:
    player.rugpull_turns_remaining = 0
    player.status = PlayerStatus.ACTIVE
    game.event_log.log(EventType.RUG_PULL_EXITED, player.wallet, method=method.value, **details)


def pay_bail(game: "GameState", player: PlayerState, method: ExitMethod = ExitMethod.BAIL) -> None:
    bail = game.config.rugpull_bail
    if not game.transfer(player.wallet, BANK, bail):
        raise InsufficientBalanceError(f"{player.wallet} cannot pay bail of {bail}")
    release(game, player, method)


def use_jail_free_card(game: "GameState", player: PlayerState) -> None:
    origin = player.take_jail_free_card()
    release(game, player, ExitMethod.JAIL_FREE_CARD, card_origin=origin.value if origin else None)


def resolve_escape_roll(game: "GameState", player: PlayerState, die1: int, die2: int) -> Tuple[bool, bool]:
    """
    Apply a roll made from inside the Rug Pull Zone.

    Doubles free the player. Otherwise one attempt is used up, and the
    last failed attempt forces bail. Returns ``(moves, forced_bail)``:
    whether the player now moves by the roll, and whether bail was taken.
    The bail is checked before any attempt is used up, so a player who
    cannot pay is left exactly as they were.
    """
    if die1 == die2:
        game.event_log.log(EventType.RUG_PULL_ATTEMPT, player.wallet, die1=die1, die2=die2)
        player.doubles_streak = 0
        release(game, player, ExitMethod.DOUBLES)
        return True, False

    if player.rugpull_turns_remaining <= 1:
        pay_bail(game, player, ExitMethod.FORCED_BAIL)
        game.event_log.log(EventType.RUG_PULL_ATTEMPT, player.wallet, die1=die1, die2=die2)
        player.doubles_streak = 0
        return True, True

    player.rugpull_turns_remaining -= 1
    game.event_log.log(EventType.RUG_PULL_ATTEMPT, player.wallet, die1=die1, die2=die2)
    player.doubles_streak = 0
    return False, False
