from __future__ import annotations

import logging
import threading
import uuid
from typing import Dict, List, Optional

from blockpoly.config import GameConfig
from blockpoly.exceptions import GameNotFoundError, InvalidTradeOfferError, PropertyNotAvailableError
from blockpoly.game import GameState, initialize_game
from blockpoly.schemas import GameRecord, PlayerRecord, PropertyRecord, TradeOfferRecord
from blockpoly.snapshot import game_record, player_record, property_record, trade_record

logger = logging.getLogger(__name__)


class GameRegistry:
    """
    In-memory registry of games.

    Games are keyed by id. Player, property and trade records are looked
    up by (game, wallet), (game, space) and (game, proposer).
    """

    def __init__(self):
        self._games: Dict[str, GameState] = {}
        self._lock = threading.Lock()

    def create_game(
        self,
        host: str,
        *,
        game_id: Optional[str] = None,
        max_players: Optional[int] = None,
        entry_fee: Optional[int] = None,
        config: Optional[GameConfig] = None,
        **services,
    ) -> GameState:
        game_id = game_id or uuid.uuid4().hex[:12]
        game = initialize_game(
            game_id,
            host,
            max_players=max_players,
            entry_fee=entry_fee,
            config=config,
            **services,
        )
        with self._lock:
            if game_id in self._games:
                raise ValueError(f"Game {game_id} already exists")
            self._games[game_id] = game
        logger.info(f"Registered game {game_id}")
        return game

    def get(self, game_id: str) -> GameState:
        with self._lock:
            game = self._games.get(game_id)
        if game is None:
            raise GameNotFoundError(f"No game with id {game_id}")
        return game

    def remove(self, game_id: str) -> bool:
        with self._lock:
            return self._games.pop(game_id, None) is not None

    def list_games(self) -> List[str]:
        with self._lock:
            return list(self._games)

    def game(self, game_id: str) -> GameRecord:
        return game_record(self.get(game_id))

    def player(self, game_id: str, wallet: str) -> PlayerRecord:
        return player_record(self.get(game_id), wallet)

    def property(self, game_id: str, position: int) -> PropertyRecord:
        game = self.get(game_id)
        if position not in game.properties:
            raise PropertyNotAvailableError(f"Space {position} is owned by the bank")
        return property_record(game, position)

    def trade(self, game_id: str, proposer: str) -> TradeOfferRecord:
        game = self.get(game_id)
        if game.trades.get(proposer) is None:
            raise InvalidTradeOfferError(f"No open offer from {proposer}")
        return trade_record(game, proposer)
