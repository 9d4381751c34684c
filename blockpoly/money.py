"""
Game event logging.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class EventType(Enum):
    """Types of game events."""

    GAME_CREATED = "game_created"
    PLAYER_JOINED = "player_joined"
    GAME_STARTED = "game_started"
    TURN_START = "turn_start"

    DICE_REQUESTED = "dice_requested"
    DICE_ROLLED = "dice_rolled"
    MOVE = "move"
    PASSED_GENESIS = "passed_genesis"
    LAND = "land"

    PURCHASE = "purchase"
    AUCTION_START = "auction_start"
    AUCTION_BID = "auction_bid"
    AUCTION_PASS = "auction_pass"
    AUCTION_END = "auction_end"

    RENT_PAYMENT = "rent_payment"
    TAX_PAYMENT = "tax_payment"

    CARD_DRAW = "card_draw"
    CARD_RESOLVED = "card_resolved"
    BULL_RUN_ACTIVATED = "bull_run_activated"
    FLASH_LOAN_REPAID = "flash_loan_repaid"

    BUILD_LP = "build_lp"
    BUILD_PROTOCOL = "build_protocol"
    SELL_IMPROVEMENT = "sell_improvement"

    MORTGAGE = "mortgage"
    UNMORTGAGE = "unmortgage"

    RUG_PULL_ENTERED = "rug_pull_entered"
    RUG_PULL_ATTEMPT = "rug_pull_attempt"
    RUG_PULL_EXITED = "rug_pull_exited"

    PROPERTY_LOST = "property_lost"
    BANKRUPTCY = "bankruptcy"
    GAME_END = "game_end"
    PRIZE_CLAIMED = "prize_claimed"

    TRADE_PROPOSED = "trade_proposed"
    TRADE_ACCEPTED = "trade_accepted"
    TRADE_REJECTED = "trade_rejected"
    TRADE_REPLACED = "trade_replaced"


@dataclass
class GameEvent:
    """A logged event in the game."""

    event_type: EventType
    wallet: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        who = self.wallet if self.wallet is not None else "System"
        return f"[{who}] {self.event_type.value}: {self.details}"


class EventLog:
    """Manages the game event log."""

    def __init__(self):
        self.events: List[GameEvent] = []

    def log(self, event_type: EventType, wallet: Optional[str] = None, **details: Any) -> None:
        """Log a game event."""
        self.events.append(GameEvent(event_type, wallet, details))

    def get_events(self) -> List[GameEvent]:
        """Get all logged events."""
        return self.events.copy()

    def get_recent_events(self, count: int = 10) -> List[GameEvent]:
        """Get the most recent events."""
        return self.events[-count:]

    def of_type(self, event_type: EventType) -> List[GameEvent]:
        return [e for e in self.events if e.event_type == event_type]
