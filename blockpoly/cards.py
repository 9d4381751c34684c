"""
Alpha Call and Governance Vote card decks.

Each deck holds 16 cards identified by id 0-15. The order is fixed once
per game by a seeded Fisher-Yates shuffle and drawn cyclically. The
card effects themselves are applied by ``GameState.resolve_card``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from blockpoly.config import DECK_SIZE, SEED_SIZE, GameConfig
from blockpoly.exceptions import DeckExhaustedError, InvalidRandomnessError
from blockpoly.player import CardDeck


ALPHA_CALL_SEED_OFFSET = 0
GOVERNANCE_SEED_OFFSET = 16


class CardType(Enum):
    """Types of card effects."""

    ADVANCE_TO = "advance_to"
    ADVANCE_TO_NEAREST_BRIDGE = "advance_to_nearest_bridge"
    ADVANCE_TO_UNOWNED_PROPERTY = "advance_to_unowned_property"
    MOVE_SPACES = "move_spaces"
    COLLECT = "collect"
    PAY = "pay"
    PAY_PER_DICE = "pay_per_dice"
    PAY_BALANCE_SHARE = "pay_balance_share"
    BULL_RUN = "bull_run"
    STEAL_LAST_RENT = "steal_last_rent"
    FLASH_LOAN = "flash_loan"
    LOSE_CHEAPEST_PROPERTY = "lose_cheapest_property"
    LOSE_MOST_VALUABLE_PROPERTY = "lose_most_valuable_property"
    GO_TO_RUG_PULL = "go_to_rug_pull"
    GET_OUT_OF_RUG_PULL = "get_out_of_rug_pull"
    COLLECT_FROM_PLAYERS = "collect_from_players"
    PAY_TO_PLAYERS = "pay_to_players"
    PAY_PER_BUILDING = "pay_per_building"
    COLLECT_PER_LP = "collect_per_lp"
    COLLECT_PER_SET = "collect_per_set"
    BRIDGE_EXPLOIT = "bridge_exploit"
    RUG_PULL_INSURANCE = "rug_pull_insurance"


@dataclass(frozen=True)
class Card:
    """A card and the parameters of its effect."""

    card_id: int
    description: str
    card_type: CardType
    value: int = 0
    value2: int = 0
    target_position: Optional[int] = None

    def __repr__(self) -> str:
        return f"Card({self.card_id}, '{self.description}')"


def create_alpha_call_cards(config: GameConfig) -> List[Card]:
    """The Alpha Call deck in id order."""
    return [
        Card(0, "Advance to Genesis Block", CardType.ADVANCE_TO, target_position=0),
        Card(1, "Advance to Solana", CardType.ADVANCE_TO, target_position=39),
        Card(2, "Advance to Nearest Bridge", CardType.ADVANCE_TO_NEAREST_BRIDGE),
        Card(3, "Advance to Wormhole", CardType.ADVANCE_TO, target_position=5),
        Card(4, "Staking Rewards", CardType.COLLECT, value=50),
        Card(5, "Get Out of Rug Pull Free", CardType.GET_OUT_OF_RUG_PULL),
        Card(6, "MEV Bot Attack", CardType.PAY_PER_DICE, value=config.mev_unit),
        Card(7, "Market Crash", CardType.PAY_BALANCE_SHARE, value=5),
        Card(8, "Bull Run", CardType.BULL_RUN),
        Card(9, "51% Attack", CardType.STEAL_LAST_RENT),
        Card(10, "Flash Loan", CardType.FLASH_LOAN),
        Card(11, "Protocol Hack", CardType.LOSE_CHEAPEST_PROPERTY),
        Card(12, "Go Back 3 Spaces", CardType.MOVE_SPACES, value=-3),
        Card(13, "SEC Investigation", CardType.GO_TO_RUG_PULL),
        Card(14, "Whale Dump", CardType.LOSE_MOST_VALUABLE_PROPERTY),
        Card(15, "Airdrop Season", CardType.ADVANCE_TO_UNOWNED_PROPERTY),
    ]


def create_governance_cards(config: GameConfig) -> List[Card]:
    """The Governance Vote deck in id order."""
    return [
        Card(0, "Protocol Treasury Release", CardType.COLLECT, value=200),
        Card(1, "Validator Node Income", CardType.COLLECT, value=100),
        Card(2, "DAO Airdrop", CardType.COLLECT_FROM_PLAYERS, value=config.peer_grant_unit),
        Card(3, "Get Out of Rug Pull Free", CardType.GET_OUT_OF_RUG_PULL),
        Card(4, "Smart Contract Exploit Found", CardType.GO_TO_RUG_PULL),
        Card(5, "Gas Fee Rebate", CardType.COLLECT, value=50),
        Card(
            6,
            "Infrastructure Levy",
            CardType.PAY_PER_BUILDING,
            value=config.lp_levy_unit,
            value2=config.protocol_levy_unit,
        ),
        Card(7, "Protocol Upgrade Vote", CardType.PAY, value=100),
        Card(8, "Liquidity Mining Rewards", CardType.COLLECT_PER_LP, value=config.mining_reward_unit),
        Card(9, "Token Unlock Cliff", CardType.PAY_TO_PLAYERS, value=config.peer_charge_unit),
        Card(10, "Bridge Exploited", CardType.BRIDGE_EXPLOIT, value=50),
        Card(11, "DAO Birthday Vote", CardType.COLLECT_FROM_PLAYERS, value=config.peer_bonus_unit),
        Card(12, "Yield Farming Season", CardType.ADVANCE_TO, target_position=20),
        Card(13, "Regulatory Compliance Fine", CardType.PAY, value=50),
        Card(14, "NFT Royalty Income", CardType.COLLECT_PER_SET, value=config.royalty_unit),
        Card(15, "Rug Pull Insurance", CardType.RUG_PULL_INSURANCE, value=75),
    ]


def fisher_yates_shuffle(order: List[int], seed: Sequence[int], offset: int) -> None:
    """
    Shuffle ``order`` in place from ``seed`` bytes.

    Walks i from the last index down to 1 and swaps with
    ``j = seed[(offset + i) % 32] % (i + 1)``. Two decks shuffled from
    the same seed diverge by using different offsets.
    """
    for i in range(len(order) - 1, 0, -1):
        j = seed[(offset + i) % SEED_SIZE] % (i + 1)
        order[i], order[j] = order[j], order[i]


class Deck:
    """A deck of cards drawn cyclically by cursor."""

    def __init__(self, deck_type: CardDeck, cards: List[Card]):
        if len(cards) != DECK_SIZE:
            raise DeckExhaustedError(f"{deck_type.value} deck needs {DECK_SIZE} cards")
        self.deck_type = deck_type
        self.cards = cards
        self.order: List[int] = list(range(DECK_SIZE))
        self.cursor = 0

    def shuffle(self, seed: Sequence[int], offset: int) -> None:
        """Reset to id order, shuffle from ``seed`` and rewind the cursor."""
        if len(seed) != SEED_SIZE:
            raise InvalidRandomnessError(f"Shuffle seed must be {SEED_SIZE} bytes")
        order = list(range(DECK_SIZE))
        fisher_yates_shuffle(order, seed, offset)
        self.order = order
        self.cursor = 0

    def draw(self) -> int:
        """Return the next card id and advance the cursor."""
        card_id = self.order[self.cursor]
        self.cursor = (self.cursor + 1) % DECK_SIZE
        return card_id

    def get_card(self, card_id: int) -> Card:
        if not 0 <= card_id < DECK_SIZE:
            raise DeckExhaustedError(f"No card {card_id} in the {self.deck_type.value} deck")
        return self.cards[card_id]


def create_decks(config: GameConfig) -> Tuple[Deck, Deck]:
    return (
        Deck(CardDeck.ALPHA_CALL, create_alpha_call_cards(config)),
        Deck(CardDeck.GOVERNANCE, create_governance_cards(config)),
    )
