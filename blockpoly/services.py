"""
External collaborators consumed by the engine.

The engine never moves money, mints tokens, or produces randomness on its
own. It talks to these services through the abstract interfaces below.
The in-memory implementations back tests and local play.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

if TYPE_CHECKING:
    from blockpoly.game import GameState
    from blockpoly.player import PlayerState


BANK = "bank"

Transfer = Tuple[str, str, int]


class ValueLedger(ABC):
    """Source of truth for currency balances."""

    @abstractmethod
    def transfer(self, source: str, destination: str, amount: int) -> bool:
        """
        Move ``amount`` from ``source`` to ``destination``.

        Returns False, without moving anything, when the source cannot
        cover the amount.
        """

    @abstractmethod
    def balance_of(self, wallet: str) -> int:
        """Current balance of ``wallet``."""


class InMemoryLedger(ValueLedger):
    """Dictionary-backed ledger. The bank can always pay."""

    def __init__(self, balances: Optional[Dict[str, int]] = None):
        self.balances: Dict[str, int] = dict(balances or {})
        self.history: List[Transfer] = []

    def fund(self, wallet: str, amount: int) -> None:
        self.balances[wallet] = self.balances.get(wallet, 0) + amount

    def transfer(self, source: str, destination: str, amount: int) -> bool:
        if amount == 0:
            return True
        if source != BANK and self.balances.get(source, 0) < amount:
            return False
        self.balances[source] = self.balances.get(source, 0) - amount
        self.balances[destination] = self.balances.get(destination, 0) + amount
        self.history.append((source, destination, amount))
        return True

    def balance_of(self, wallet: str) -> int:
        return self.balances.get(wallet, 0)


class OwnershipTokenRegistry(ABC):
    """Issues and moves the asset token attached to an owned space."""

    @abstractmethod
    def issue(self, game_id: str, position: int, owner: str) -> str:
        """Mint a token for a space on first acquisition and return its reference."""

    @abstractmethod
    def transfer(self, token_ref: str, new_owner: str) -> None:
        """Move an existing token to ``new_owner``."""

    @abstractmethod
    def burn(self, token_ref: str) -> None:
        """Destroy a token when its space returns to the bank."""


class InMemoryTokenRegistry(OwnershipTokenRegistry):
    def __init__(self):
        self.owners: Dict[str, str] = {}
        self._counter = 0

    def issue(self, game_id: str, position: int, owner: str) -> str:
        self._counter += 1
        token_ref = f"{game_id}:{position}:{self._counter}"
        self.owners[token_ref] = owner
        return token_ref

    def transfer(self, token_ref: str, new_owner: str) -> None:
        self.owners[token_ref] = new_owner

    def burn(self, token_ref: str) -> None:
        self.owners.pop(token_ref, None)


class RandomnessSource(ABC):
    """Asynchronous randomness provider."""

    @abstractmethod
    def request(self, game_id: str, wallet: str) -> str:
        """Register a request and return its id. Delivery happens later."""


class QueuedRandomnessSource(RandomnessSource):
    """Records requests so a test or a relay can fulfill them later."""

    def __init__(self):
        self.requests: List[Tuple[str, str, str]] = []

    def request(self, game_id: str, wallet: str) -> str:
        request_id = f"{game_id}:{len(self.requests)}"
        self.requests.append((request_id, game_id, wallet))
        return request_id


class RandomnessAuthority(ABC):
    """Decides who may deliver randomness for a game."""

    @abstractmethod
    def is_authorized(self, game: "GameState", caller: str) -> bool:
        pass


class CurrentPlayerAuthority(RandomnessAuthority):
    """The current player relays their own randomness."""

    def is_authorized(self, game: "GameState", caller: str) -> bool:
        return caller == game.get_current_player().wallet


class OracleAuthority(RandomnessAuthority):
    """Only a registered provider principal may deliver randomness."""

    def __init__(self, oracle: str):
        self.oracle = oracle

    def is_authorized(self, game: "GameState", caller: str) -> bool:
        return caller == self.oracle


class PropertyScan(ABC):
    """
    Chooses which property a card takes away.

    Each method returns the space to revert to the bank, or None to
    leave holdings untouched.
    """

    @abstractmethod
    def cheapest_unprotected(self, game: "GameState", player: "PlayerState") -> Optional[int]:
        pass

    @abstractmethod
    def most_valuable(self, game: "GameState", player: "PlayerState") -> Optional[int]:
        pass

    @abstractmethod
    def any_bridge(self, game: "GameState", player: "PlayerState") -> Optional[int]:
        pass


class NoOpPropertyScan(PropertyScan):
    """Property-loss cards resolve without touching holdings."""

    def cheapest_unprotected(self, game, player):
        return None

    def most_valuable(self, game, player):
        return None

    def any_bridge(self, game, player):
        return None


class RegistryPropertyScan(PropertyScan):
    """Picks from the game's own property records."""

    def _candidates(self, game: "GameState", player: "PlayerState") -> List[int]:
        return [pos for pos in player.properties_owned if pos in game.properties]

    def cheapest_unprotected(self, game, player):
        # Unprotected: neither mortgaged nor improved.
        candidates = [
            pos
            for pos in self._candidates(game, player)
            if not game.properties[pos].is_mortgaged and not game.properties[pos].is_improved
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda pos: game.board.get_space(pos).price)

    def most_valuable(self, game, player):
        candidates = [
            pos
            for pos in self._candidates(game, player)
            if not game.properties[pos].is_improved
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda pos: game.board.get_space(pos).price)

    def any_bridge(self, game, player):
        for pos in self._candidates(game, player):
            if pos in game.board.bridges:
                return pos
        return None


class PeerSettlement(ABC):
    """Turns an "every other player" card into concrete transfers."""

    @abstractmethod
    def collect(self, game: "GameState", wallet: str, per_peer: int) -> List[Transfer]:
        """Transfers paying ``wallet`` ``per_peer`` from each other player."""

    @abstractmethod
    def pay(self, game: "GameState", wallet: str, per_peer: int) -> List[Transfer]:
        """Transfers charging ``wallet`` ``per_peer`` for each other player."""


class BankFundedSettlement(PeerSettlement):
    """The bank stands in for the other players."""

    def collect(self, game, wallet, per_peer):
        total = per_peer * (game.player_count - 1)
        return [(BANK, wallet, total)] if total > 0 else []

    def pay(self, game, wallet, per_peer):
        total = per_peer * (game.player_count - 1)
        return [(wallet, BANK, total)] if total > 0 else []


class PeerToPeerSettlement(PeerSettlement):
    def _peers(self, game: "GameState", wallet: str) -> List[str]:
        return [w for w in game.player_order if w != wallet]

    def collect(self, game, wallet, per_peer):
        return [(peer, wallet, per_peer) for peer in self._peers(game, wallet) if per_peer > 0]

    def pay(self, game, wallet, per_peer):
        return [(wallet, peer, per_peer) for peer in self._peers(game, wallet) if per_peer > 0]
