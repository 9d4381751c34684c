"""
Blockpoly Rules Engine

Turn-based property-trading game engine played over an external ledger.
"""

from .board import Board
from .config import GameConfig
from .exceptions import BlockpolyError
from .game import GameState, GameStatus, TurnPhase, initialize_game
from .player import CardDeck, PlayerState, PlayerStatus, PropertyState
from .registry import GameRegistry
from .rules import Action, ActionType, get_legal_actions

__all__ = [
    "Board",
    "GameConfig",
    "BlockpolyError",
    "GameState",
    "GameStatus",
    "TurnPhase",
    "initialize_game",
    "CardDeck",
    "PlayerState",
    "PlayerStatus",
    "PropertyState",
    "GameRegistry",
    "Action",
    "ActionType",
    "get_legal_actions",
]
