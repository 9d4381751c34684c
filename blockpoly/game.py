"""
Main game engine and state management.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from blockpoly import economy, rugpull
from blockpoly.auction import Auction
from blockpoly.board import GENESIS_POSITION, Board
from blockpoly.cards import (
    ALPHA_CALL_SEED_OFFSET,
    GOVERNANCE_SEED_OFFSET,
    Card,
    CardType,
    Deck,
    create_decks,
)
from blockpoly.config import SEED_SIZE, GameConfig
from blockpoly.exceptions import (
    AlreadyJoinedError,
    AuctionAlreadyWonError,
    AuctionError,
    AuctionNotActiveError,
    AuctionStillOpenError,
    CannotMortgageWithBuildingsError,
    CannotUnmortgageError,
    DiceNotRolledError,
    FlashLoanAlreadyActiveError,
    FlashLoanOverdueError,
    GameFinishedError,
    GameFullError,
    GameNotFinishedError,
    GameNotStartedError,
    GameNotWaitingError,
    HostOnlyError,
    IncompleteColorSetError,
    InsufficientBalanceError,
    InvalidPlayerCountError,
    InvalidRandomnessError,
    InvalidSpaceIndexError,
    InvalidTradeOfferError,
    LandingAlreadyResolvedError,
    MaxLiquidityPoolsError,
    MaxProtocolError,
    NoFlashLoanError,
    NoImprovementsError,
    NoJailFreeCardError,
    NotInRugPullZoneError,
    NotPropertyOwnerError,
    NotWinnerError,
    NotYourTurnError,
    PlayerBankruptError,
    PlayerNotFoundError,
    PropertyAlreadyOwnedError,
    PropertyMortgagedError,
    PropertyNotAvailableError,
    RandomnessNotRequestedError,
    RandomnessPendingError,
    RecipientNotInGameError,
    SelfRentError,
    TradeExpiredError,
    UnauthorizedRandomnessError,
    UnevenBuildingError,
    WrongTurnPhaseError,
)
from blockpoly.money import EventLog, EventType
from blockpoly.player import CardDeck, PlayerState, PlayerStatus, PropertyState
from blockpoly.services import (
    BANK,
    BankFundedSettlement,
    CurrentPlayerAuthority,
    InMemoryLedger,
    InMemoryTokenRegistry,
    NoOpPropertyScan,
    OwnershipTokenRegistry,
    PeerSettlement,
    PeerToPeerSettlement,
    PropertyScan,
    QueuedRandomnessSource,
    RandomnessAuthority,
    RandomnessSource,
    RegistryPropertyScan,
    Transfer,
    ValueLedger,
)
from blockpoly.spaces import SpaceType
from blockpoly.trade import TradeBook, TradeOffer

logger = logging.getLogger(__name__)


class GameStatus(Enum):
    """Lifecycle status of a game."""

    WAITING_FOR_PLAYERS = "waiting_for_players"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class TurnPhase(Enum):
    """Phases of a single turn."""

    ROLL_DICE = "roll_dice"
    AWAITING_RANDOMNESS = "awaiting_randomness"
    LANDING_EFFECT = "landing_effect"
    DRAW_CARD = "draw_card"
    RUG_PULL_DECISION = "rug_pull_decision"
    AUCTION_PHASE = "auction_phase"
    BUY_DECISION = "buy_decision"
    FINISHED = "finished"


# Property management is allowed on your own turn outside these phases.
_NO_MANAGEMENT_PHASES = frozenset({TurnPhase.AWAITING_RANDOMNESS, TurnPhase.FINISHED})


class GameState:
    """
    Represents the complete state of a Blockpoly game.

    This is the single handle every operation goes through. Each public
    operation validates game status, turn and phase before it changes
    anything, so a raised ``BlockpolyError`` leaves the game untouched.
    Currency moves through the injected ``ValueLedger``; ``PlayerState.balance``
    only mirrors it.
    """

    def __init__(
        self,
        game_id: str,
        host: str,
        config: Optional[GameConfig] = None,
        max_players: Optional[int] = None,
        ledger: Optional[ValueLedger] = None,
        tokens: Optional[OwnershipTokenRegistry] = None,
        randomness: Optional[RandomnessSource] = None,
        randomness_authority: Optional[RandomnessAuthority] = None,
        property_scan: Optional[PropertyScan] = None,
        peer_settlement: Optional[PeerSettlement] = None,
    ):
        self.game_id = game_id
        self.host = host
        self.config = config or GameConfig()
        self.max_players = max_players if max_players is not None else self.config.max_players
        self.board = Board()
        self.event_log = EventLog()

        self.ledger = ledger or InMemoryLedger()
        self.tokens = tokens or InMemoryTokenRegistry()
        self.randomness = randomness or QueuedRandomnessSource()
        self.randomness_authority = randomness_authority or CurrentPlayerAuthority()
        if property_scan is None:
            property_scan = RegistryPropertyScan() if self.config.card_property_loss else NoOpPropertyScan()
        if peer_settlement is None:
            peer_settlement = (
                PeerToPeerSettlement() if self.config.peer_to_peer_card_transfers else BankFundedSettlement()
            )
        self.property_scan = property_scan
        self.peer_settlement = peer_settlement

        # Every player who ever joined, bankrupt ones included.
        self.players: Dict[str, PlayerState] = {}
        # Active rotation; current_player_index points into this list.
        self.player_order: List[str] = []
        # Sparse: a missing key means the bank owns the space.
        self.properties: Dict[int, PropertyState] = {}
        self.trades = TradeBook(self.event_log)

        self.status = GameStatus.WAITING_FOR_PLAYERS
        self.turn_phase = TurnPhase.ROLL_DICE
        self.current_player_index = 0
        self.turn_number = 0
        self.round_number = 0

        self.alpha_deck, self.governance_deck = create_decks(self.config)

        self.pending_randomness: Optional[str] = None
        self.pending_dice: Optional[Tuple[int, int]] = None
        self.pending_card: Optional[Tuple[CardDeck, int]] = None

        self.bull_run_active = False
        self.bull_run_ends_round = 0
        self.auction: Optional[Auction] = None

        self.prize_pool = 0
        self.winner: Optional[str] = None
        self.last_rent_payer: Optional[str] = None
        self.last_rent_amount = 0

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def player_count(self) -> int:
        return len(self.player_order)

    def get_player(self, wallet: str) -> PlayerState:
        player = self.players.get(wallet)
        if player is None:
            raise PlayerNotFoundError(f"{wallet} is not in game {self.game_id}")
        return player

    def get_current_player(self) -> PlayerState:
        """Get the player whose turn it is."""
        return self.players[self.player_order[self.current_player_index]]

    def get_active_players(self) -> List[PlayerState]:
        return [self.players[w] for w in self.player_order]

    def get_deck(self, deck: CardDeck) -> Deck:
        return self.alpha_deck if deck == CardDeck.ALPHA_CALL else self.governance_deck

    def owner_of(self, position: int) -> Optional[str]:
        prop = self.properties.get(position)
        return prop.owner if prop is not None else None

    def count_owned(self, wallet: str, positions: Sequence[int]) -> int:
        return sum(1 for pos in positions if self.owner_of(pos) == wallet)

    def owns_color_set(self, wallet: str, position: int) -> bool:
        siblings = self.board.siblings(position)
        return self.count_owned(wallet, siblings) == len(siblings)

    def complete_color_sets(self, wallet: str) -> int:
        return sum(
            1
            for members in self.board.color_groups.values()
            if self.count_owned(wallet, members) == len(members)
        )

    def improvement_counts(self, wallet: str) -> Tuple[int, int]:
        """Improvements and Full Protocols on ``wallet``'s properties."""
        lps = protocols = 0
        for prop in self.properties.values():
            if prop.owner != wallet:
                continue
            if prop.has_full_protocol:
                protocols += 1
            else:
                lps += prop.lp_count
        return lps, protocols

    def bull_run_in_effect(self) -> bool:
        return economy.bull_run_in_effect(
            self.bull_run_active, self.round_number, self.bull_run_ends_round
        )

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _require_in_progress(self) -> None:
        if self.status == GameStatus.WAITING_FOR_PLAYERS:
            raise GameNotStartedError(f"Game {self.game_id} has not started")
        if self.status == GameStatus.FINISHED:
            raise GameFinishedError(f"Game {self.game_id} is finished")

    def _require_active(self, wallet: str) -> PlayerState:
        self._require_in_progress()
        player = self.get_player(wallet)
        if player.is_bankrupt:
            raise PlayerBankruptError(f"{wallet} is bankrupt")
        return player

    def _require_current(self, wallet: str, *phases: TurnPhase) -> PlayerState:
        player = self._require_active(wallet)
        if self.get_current_player().wallet != wallet:
            raise NotYourTurnError(f"It is not {wallet}'s turn")
        if phases and self.turn_phase not in phases:
            raise WrongTurnPhaseError(
                f"Expected {' or '.join(p.value for p in phases)}, game is in {self.turn_phase.value}"
            )
        return player

    def _require_manager(self, wallet: str) -> PlayerState:
        player = self._require_current(wallet)
        if self.turn_phase in _NO_MANAGEMENT_PHASES:
            raise WrongTurnPhaseError(f"Cannot manage properties during {self.turn_phase.value}")
        return player

    def _require_owned(self, wallet: str, position: int) -> PropertyState:
        space = self.board.get_space(position)
        if not space.is_purchasable:
            raise PropertyNotAvailableError(f"{space.name} cannot be owned")
        prop = self.properties.get(position)
        if prop is None or prop.owner != wallet:
            raise NotPropertyOwnerError(f"{wallet} does not own {space.name}")
        return prop

    # ------------------------------------------------------------------
    # Money
    # ------------------------------------------------------------------

    def _sync_balance(self, wallet: str) -> None:
        player = self.players.get(wallet)
        if player is not None:
            player.balance = self.ledger.balance_of(wallet)

    def transfer(self, source: str, destination: str, amount: int) -> bool:
        """Move currency through the ledger and refresh the mirrors."""
        economy.checked_amount(amount)
        if amount == 0:
            return True
        if not self.ledger.transfer(source, destination, amount):
            return False
        self._sync_balance(source)
        self._sync_balance(destination)
        return True

    def _pay(self, source: str, destination: str, amount: int, reason: str) -> None:
        if not self.transfer(source, destination, amount):
            raise InsufficientBalanceError(f"{source} cannot pay {amount} for {reason}")

    def _execute_transfers(self, legs: List[Transfer], reason: str) -> None:
        """
        Apply every leg or none.

        Legs already applied are reversed if a later one is refused.
        """
        for _, _, amount in legs:
            economy.checked_amount(amount)
        done: List[Transfer] = []
        for leg in legs:
            source, destination, amount = leg
            if not self.transfer(source, destination, amount):
                for undo_source, undo_destination, undo_amount in reversed(done):
                    self.transfer(undo_destination, undo_source, undo_amount)
                raise InsufficientBalanceError(f"{source} cannot pay {amount} for {reason}")
            done.append(leg)

    def _pay_salary(self, player: PlayerState) -> None:
        self._pay(BANK, player.wallet, self.config.genesis_salary, "salary")
        self.event_log.log(
            EventType.PASSED_GENESIS, player.wallet, amount=self.config.genesis_salary
        )

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------

    def _acquire(self, wallet: str, position: int) -> None:
        token_ref = self.tokens.issue(self.game_id, position, wallet)
        self.properties[position] = PropertyState(position=position, owner=wallet, token_ref=token_ref)
        self.players[wallet].add_property(position)

    def _reassign(self, position: int, new_owner: str) -> None:
        prop = self.properties[position]
        self.players[prop.owner].remove_property(position)
        prop.owner = new_owner
        self.players[new_owner].add_property(position)
        if prop.token_ref is not None:
            self.tokens.transfer(prop.token_ref, new_owner)

    def _revert_to_bank(self, position: int) -> None:
        prop = self.properties.pop(position)
        self.players[prop.owner].remove_property(position)
        if prop.token_ref is not None:
            self.tokens.burn(prop.token_ref)
        self.event_log.log(
            EventType.PROPERTY_LOST,
            prop.owner,
            position=position,
            property=self.board.get_space(position).name,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def join_game(self, wallet: str) -> PlayerState:
        """Add a player and fund them with the starting balance."""
        if self.status != GameStatus.WAITING_FOR_PLAYERS:
            raise GameNotWaitingError(f"Game {self.game_id} is not accepting players")
        if self.player_count >= self.max_players:
            raise GameFullError(f"Game {self.game_id} already has {self.max_players} players")
        if wallet in self.players:
            raise AlreadyJoinedError(f"{wallet} already joined game {self.game_id}")

        player = PlayerState(wallet, self.player_count, self.config.starting_balance)
        self.players[wallet] = player
        self.player_order.append(wallet)
        self._pay(BANK, wallet, self.config.starting_balance, "starting balance")

        self.event_log.log(EventType.PLAYER_JOINED, wallet, player_index=player.player_index)
        logger.info(f"{wallet} joined game {self.game_id} as player {player.player_index}")
        return player

    def start_game(self, caller: str, shuffle_seed: Sequence[int]) -> None:
        """Shuffle both decks from ``shuffle_seed`` and hand the first turn to player 0."""
        if caller != self.host:
            raise HostOnlyError(f"Only the host can start game {self.game_id}")
        if self.status != GameStatus.WAITING_FOR_PLAYERS:
            raise GameNotWaitingError(f"Game {self.game_id} already started")
        if self.player_count < self.config.min_players:
            raise InvalidPlayerCountError(
                f"Need at least {self.config.min_players} players, have {self.player_count}"
            )
        if len(shuffle_seed) != SEED_SIZE:
            raise InvalidRandomnessError(f"Shuffle seed must be {SEED_SIZE} bytes")

        self.alpha_deck.shuffle(shuffle_seed, ALPHA_CALL_SEED_OFFSET)
        self.governance_deck.shuffle(shuffle_seed, GOVERNANCE_SEED_OFFSET)
        self.status = GameStatus.IN_PROGRESS
        self.turn_phase = TurnPhase.ROLL_DICE
        self.current_player_index = 0
        self.turn_number = 1
        self.round_number = 1

        self.event_log.log(EventType.GAME_STARTED, caller, player_count=self.player_count)
        logger.info(f"Game {self.game_id} started with {self.player_count} players")

    def advance_turn(self) -> None:
        """Hand the turn to the next player in the active rotation."""
        self._begin_turn((self.current_player_index + 1) % self.player_count)

    def _begin_turn(self, index: int) -> None:
        self.turn_number += 1
        if index == 0:
            self.round_number += 1
        self.current_player_index = index
        self.pending_dice = None
        self.pending_card = None
        self.pending_randomness = None
        if self.bull_run_active and self.round_number > self.bull_run_ends_round:
            self.bull_run_active = False

        player = self.get_current_player()
        self.turn_phase = (
            TurnPhase.RUG_PULL_DECISION if player.in_rug_pull_zone else TurnPhase.ROLL_DICE
        )
        self.event_log.log(
            EventType.TURN_START,
            player.wallet,
            turn_number=self.turn_number,
            round_number=self.round_number,
        )

    def _finish(self, winner: str) -> None:
        self.status = GameStatus.FINISHED
        self.turn_phase = TurnPhase.FINISHED
        self.winner = winner
        self.auction = None
        self.pending_randomness = None
        self.event_log.log(EventType.GAME_END, winner, prize_pool=self.prize_pool)
        logger.info(f"Game {self.game_id} finished, winner {winner}")

    # ------------------------------------------------------------------
    # Dice and movement
    # ------------------------------------------------------------------

    def request_dice_roll(self, wallet: str) -> str:
        """Ask the randomness source for a roll. Returns the request id."""
        player = self._require_current(wallet, TurnPhase.ROLL_DICE)
        if self.pending_randomness is not None:
            raise RandomnessPendingError(f"A roll is already pending for game {self.game_id}")
        if player.flash_loan_active and self.turn_number > player.flash_loan_due_turn:
            raise FlashLoanOverdueError(
                f"{wallet} must repay the flash loan due on turn {player.flash_loan_due_turn}"
            )

        request_id = self.randomness.request(self.game_id, wallet)
        self.pending_randomness = request_id
        self.turn_phase = TurnPhase.AWAITING_RANDOMNESS
        self.event_log.log(EventType.DICE_REQUESTED, wallet, request_id=request_id)
        return request_id

    def fulfill_randomness(self, caller: str, random_bytes: Sequence[int]) -> Tuple[int, int]:
        """
        Deliver the random payload for the pending roll and move the current player.

        Three consecutive doubles or landing on SEC Investigation send the
        player to the Rug Pull Zone with no further movement. A jailed
        player's roll is an escape attempt instead.
        """
        self._require_in_progress()
        if self.pending_randomness is None:
            raise RandomnessNotRequestedError(f"No roll was requested in game {self.game_id}")
        if self.turn_phase != TurnPhase.AWAITING_RANDOMNESS:
            raise WrongTurnPhaseError(f"Game is in {self.turn_phase.value}")
        if not self.randomness_authority.is_authorized(self, caller):
            raise UnauthorizedRandomnessError(f"{caller} cannot deliver randomness")
        die1, die2 = economy.dice_from_bytes(random_bytes)

        player = self.get_current_player()
        total = die1 + die2

        if player.in_rug_pull_zone:
            # Forced bail may raise, so the roll is only logged once it resolves.
            moves, _ = rugpull.resolve_escape_roll(self, player, die1, die2)
            self.event_log.log(EventType.DICE_ROLLED, player.wallet, die1=die1, die2=die2, total=total)
            if not moves:
                self._settle_roll(die1, die2)
                return die1, die2
        else:
            self.event_log.log(EventType.DICE_ROLLED, player.wallet, die1=die1, die2=die2, total=total)
            if die1 == die2:
                player.doubles_streak += 1
                if player.doubles_streak >= 3:
                    rugpull.enter_rug_pull(self, player, rugpull.EntryReason.TRIPLE_DOUBLES)
                    self._settle_roll(die1, die2)
                    return die1, die2
            else:
                player.doubles_streak = 0

        old_position = player.position
        new_position, passed = economy.advance_position(old_position, total)
        player.position = new_position
        self.event_log.log(EventType.MOVE, player.wallet, old_position=old_position, new_position=new_position)
        # Landing exactly on Genesis pays through resolve_landing instead.
        if passed and new_position != GENESIS_POSITION and self.config.pay_salary_on_pass:
            self._pay_salary(player)

        if self.board.get_space(new_position).space_type == SpaceType.SEC_INVESTIGATION:
            rugpull.enter_rug_pull(self, player, rugpull.EntryReason.SEC_INVESTIGATION)

        self._settle_roll(die1, die2)
        return die1, die2

    def _settle_roll(self, die1: int, die2: int) -> None:
        self.pending_randomness = None
        self.pending_dice = (die1, die2)
        self.turn_phase = TurnPhase.LANDING_EFFECT

    def resolve_landing(self, wallet: str) -> TurnPhase:
        """Apply the effect of the space the current player stands on."""
        player = self._require_current(wallet)
        if self.turn_phase in (TurnPhase.DRAW_CARD, TurnPhase.BUY_DECISION, TurnPhase.AUCTION_PHASE):
            raise LandingAlreadyResolvedError("Landing effect was already resolved")
        if self.turn_phase in (TurnPhase.ROLL_DICE, TurnPhase.AWAITING_RANDOMNESS, TurnPhase.RUG_PULL_DECISION):
            raise DiceNotRolledError(f"{wallet} has not rolled this turn")

        space = self.board.get_space(player.position)
        self.event_log.log(EventType.LAND, wallet, position=space.position, space=space.name)

        if space.space_type == SpaceType.GENESIS:
            self._pay_salary(player)
            self.advance_turn()
        elif space.space_type == SpaceType.TAX:
            self._pay(wallet, BANK, space.tax_amount, space.name)
            self.event_log.log(EventType.TAX_PAYMENT, wallet, space=space.name, amount=space.tax_amount)
            self.advance_turn()
        elif space.space_type in (SpaceType.ALPHA_CALL, SpaceType.GOVERNANCE):
            self.turn_phase = TurnPhase.DRAW_CARD
        elif space.is_purchasable:
            prop = self.properties.get(space.position)
            if prop is not None and (prop.owner == wallet or prop.is_mortgaged):
                self.advance_turn()
            else:
                self.turn_phase = TurnPhase.BUY_DECISION
        else:
            # DeFi Summer, visiting the Rug Pull Zone, SEC Investigation already applied.
            self.advance_turn()
        return self.turn_phase

    # ------------------------------------------------------------------
    # Buying, rent and auctions
    # ------------------------------------------------------------------

    def _require_unowned_landing(self, player: PlayerState, position: Optional[int]) -> int:
        if position is None:
            position = player.position
        if position != player.position:
            raise InvalidSpaceIndexError(f"{player.wallet} is not standing on space {position}")
        space = self.board.get_space(position)
        if not space.is_purchasable:
            raise PropertyNotAvailableError(f"{space.name} cannot be bought")
        if position in self.properties:
            raise PropertyAlreadyOwnedError(f"{space.name} is owned by {self.owner_of(position)}")
        return position

    def buy_property(self, wallet: str, position: Optional[int] = None) -> None:
        player = self._require_current(wallet, TurnPhase.BUY_DECISION)
        position = self._require_unowned_landing(player, position)
        space = self.board.get_space(position)

        self._pay(wallet, BANK, space.price, space.name)
        self._acquire(wallet, position)
        self.event_log.log(
            EventType.PURCHASE,
            wallet,
            property=space.name,
            position=position,
            price=space.price,
            new_balance=player.balance,
        )
        self.advance_turn()

    def decline_buy(self, wallet: str) -> Auction:
        """Pass on the purchase and open an auction for the space."""
        player = self._require_current(wallet, TurnPhase.BUY_DECISION)
        position = self._require_unowned_landing(player, None)
        space = self.board.get_space(position)

        self.auction = Auction(
            position=position,
            property_name=space.name,
            starting_bid=economy.auction_starting_bid(space),
            duration=self.config.auction_duration_turns,
            eligible=self.player_order,
            event_log=self.event_log,
        )
        self.turn_phase = TurnPhase.AUCTION_PHASE
        return self.auction

    def _require_auction(self, position: Optional[int] = None) -> Auction:
        self._require_in_progress()
        if self.turn_phase != TurnPhase.AUCTION_PHASE or self.auction is None:
            raise AuctionNotActiveError(f"No auction is running in game {self.game_id}")
        if position is not None and position != self.auction.position:
            raise AuctionNotActiveError(f"No auction is running for space {position}")
        return self.auction

    def auction_bid(self, wallet: str, position: int, amount: int) -> bool:
        """
        Bid on the running auction.

        Returns True when the bid stands. A bid arriving after the deadline
        closes the auction instead and returns False.
        """
        auction = self._require_auction(position)
        self._require_active(wallet)
        economy.checked_amount(amount)

        if auction.is_expired:
            self._finalize_auction()
            return False
        auction.validate_bid(wallet, amount)
        if wallet not in auction.eligible:
            raise AuctionError(f"{wallet} is not bidding in this auction")
        if self.ledger.balance_of(wallet) < amount:
            raise InsufficientBalanceError(f"{wallet} cannot cover a bid of {amount}")
        auction.place_bid(wallet, amount)
        return True

    def auction_pass(self, wallet: str) -> None:
        auction = self._require_auction()
        self._require_active(wallet)
        if auction.is_expired:
            raise AuctionAlreadyWonError("Auction deadline has passed, finalize it")
        if wallet not in auction.eligible:
            raise AuctionError(f"{wallet} is not bidding in this auction")
        auction.record_pass(wallet)

    def finalize_auction(self, caller: str) -> Optional[str]:
        """Close a lapsed auction. Returns the winning wallet, if any."""
        auction = self._require_auction()
        self._require_active(caller)
        if not auction.is_expired:
            raise AuctionStillOpenError(f"Auction for {auction.property_name} is still open")
        return self._finalize_auction()

    def _finalize_auction(self) -> Optional[str]:
        auction = self.auction
        winner = auction.highest_bidder
        if winner is not None and not self.transfer(winner, BANK, auction.highest_bid):
            logger.warning(
                f"Auction winner {winner} could not pay {auction.highest_bid} for {auction.property_name}"
            )
            winner = None
        if winner is not None:
            self._acquire(winner, auction.position)

        self.event_log.log(
            EventType.AUCTION_END,
            winner,
            property=auction.property_name,
            position=auction.position,
            amount=auction.highest_bid if winner is not None else 0,
        )
        self.auction = None
        self.advance_turn()
        return winner

    def pay_rent(self, wallet: str) -> int:
        """Pay rent to the owner of the space the current player landed on."""
        player = self._require_current(wallet, TurnPhase.BUY_DECISION)
        position = player.position
        space = self.board.get_space(position)
        prop = self.properties.get(position)
        if prop is None:
            raise PropertyNotAvailableError(f"{space.name} has no owner to pay")
        if prop.owner == wallet:
            raise SelfRentError(f"{wallet} owns {space.name}")

        dice_total = sum(self.pending_dice) if self.pending_dice else 0
        rent = economy.calculate_rent(
            space,
            prop,
            self.config,
            dice_total,
            owner_bridge_count=self.count_owned(prop.owner, self.board.bridges),
            owner_utility_count=self.count_owned(prop.owner, self.board.utilities),
            bull_run=self.bull_run_in_effect(),
            owns_color_set=space.is_property and self.owns_color_set(prop.owner, position),
        )
        self._pay(wallet, prop.owner, rent, f"rent on {space.name}")
        self.last_rent_payer = wallet
        self.last_rent_amount = rent

        self.event_log.log(EventType.RENT_PAYMENT, wallet, owner=prop.owner, property=space.name, amount=rent)
        self.advance_turn()
        return rent

    # ------------------------------------------------------------------
    # Improvements and mortgages
    # ------------------------------------------------------------------

    def _sibling_records(self, wallet: str, position: int) -> List[PropertyState]:
        """Every record in the color group, or IncompleteColorSetError."""
        if not self.owns_color_set(wallet, position):
            space = self.board.get_space(position)
            raise IncompleteColorSetError(f"{wallet} does not own all of {space.color_group.value}")
        return [self.properties[pos] for pos in self.board.siblings(position)]

    def _require_buildable(self, wallet: str, position: int) -> Tuple[PropertyState, List[PropertyState]]:
        prop = self._require_owned(wallet, position)
        space = self.board.get_space(position)
        if not space.is_property:
            raise PropertyNotAvailableError(f"{space.name} cannot be improved")
        if prop.is_mortgaged:
            raise PropertyMortgagedError(f"{space.name} is mortgaged")
        if prop.has_full_protocol:
            raise MaxProtocolError(f"{space.name} already has a Full Protocol")
        group = self._sibling_records(wallet, position)
        if any(sibling.is_mortgaged for sibling in group):
            raise PropertyMortgagedError(f"Part of the {space.color_group.value} group is mortgaged")
        return prop, group

    def build_improvement(self, wallet: str, position: int) -> int:
        """Add one Liquidity Pool. Returns the new count."""
        self._require_manager(wallet)
        prop, group = self._require_buildable(wallet, position)
        space = self.board.get_space(position)
        if prop.lp_count >= 4:
            raise MaxLiquidityPoolsError(f"{space.name} already has 4 Liquidity Pools")
        if prop.build_level > min(sibling.build_level for sibling in group):
            raise UnevenBuildingError(f"Build evenly across the {space.color_group.value} group")

        self._pay(wallet, BANK, economy.improvement_cost(space), f"Liquidity Pool on {space.name}")
        prop.lp_count += 1
        self.event_log.log(EventType.BUILD_LP, wallet, property=space.name, lp_count=prop.lp_count)
        return prop.lp_count

    def build_max_improvement(self, wallet: str, position: int) -> None:
        """Upgrade four Liquidity Pools to a Full Protocol."""
        self._require_manager(wallet)
        prop, group = self._require_buildable(wallet, position)
        space = self.board.get_space(position)
        if prop.lp_count < 4 or any(sibling.build_level < 4 for sibling in group):
            raise UnevenBuildingError(f"Every {space.color_group.value} property needs 4 Liquidity Pools first")

        self._pay(wallet, BANK, economy.improvement_cost(space), f"Full Protocol on {space.name}")
        prop.has_full_protocol = True
        prop.lp_count = 4
        self.event_log.log(EventType.BUILD_PROTOCOL, wallet, property=space.name)

    def sell_improvement(self, wallet: str, position: int) -> int:
        """Sell the top improvement back to the bank at half cost. Returns the refund."""
        self._require_manager(wallet)
        prop = self._require_owned(wallet, position)
        space = self.board.get_space(position)
        if not prop.is_improved:
            raise NoImprovementsError(f"{space.name} has no improvements")
        group = [self.properties[pos] for pos in self.board.siblings(position) if pos in self.properties]
        if prop.build_level < max(sibling.build_level for sibling in group):
            raise UnevenBuildingError(f"Sell evenly across the {space.color_group.value} group")

        refund = economy.improvement_refund(space)
        self._pay(BANK, wallet, refund, "improvement refund")
        if prop.has_full_protocol:
            prop.has_full_protocol = False
        else:
            prop.lp_count -= 1
        self.event_log.log(
            EventType.SELL_IMPROVEMENT,
            wallet,
            property=space.name,
            lp_count=prop.lp_count,
            refund=refund,
        )
        return refund

    def mortgage_property(self, wallet: str, position: int) -> int:
        self._require_manager(wallet)
        prop = self._require_owned(wallet, position)
        space = self.board.get_space(position)
        if prop.is_mortgaged:
            raise PropertyMortgagedError(f"{space.name} is already mortgaged")
        if any(
            self.properties[pos].is_improved
            for pos in self.board.siblings(position)
            if pos in self.properties
        ):
            raise CannotMortgageWithBuildingsError(f"Sell improvements in {space.name}'s group first")

        value = economy.mortgage_value(space)
        self._pay(BANK, wallet, value, "mortgage")
        prop.is_mortgaged = True
        self.event_log.log(EventType.MORTGAGE, wallet, property=space.name, amount=value)
        return value

    def unmortgage_property(self, wallet: str, position: int) -> int:
        self._require_manager(wallet)
        prop = self._require_owned(wallet, position)
        space = self.board.get_space(position)
        if not prop.is_mortgaged:
            raise CannotUnmortgageError(f"{space.name} is not mortgaged")

        cost = economy.unmortgage_cost(space)
        self._pay(wallet, BANK, cost, f"unmortgage {space.name}")
        prop.is_mortgaged = False
        self.event_log.log(EventType.UNMORTGAGE, wallet, property=space.name, amount=cost)
        return cost

    # ------------------------------------------------------------------
    # Cards
    # ------------------------------------------------------------------

    def draw_card(self, wallet: str) -> Tuple[CardDeck, int]:
        """Draw from the deck matching the current space. Returns ``(deck, card_id)``."""
        player = self._require_current(wallet, TurnPhase.DRAW_CARD)
        if self.pending_card is not None:
            raise LandingAlreadyResolvedError("A card was already drawn this turn")
        space_type = self.board.get_space(player.position).space_type
        if space_type == SpaceType.ALPHA_CALL:
            deck = self.alpha_deck
        elif space_type == SpaceType.GOVERNANCE:
            deck = self.governance_deck
        else:
            raise WrongTurnPhaseError(f"Space {player.position} is not a card space")

        card_id = deck.draw()
        self.pending_card = (deck.deck_type, card_id)
        card = deck.get_card(card_id)
        self.event_log.log(EventType.CARD_DRAW, wallet, deck=deck.deck_type.value, card_id=card_id, card=card.description)
        return deck.deck_type, card_id

    def card_aux(self, wallet: str, deck: CardDeck, card_id: int) -> int:
        """
        Auxiliary argument for a card, computed from the game's own records.

        Callers that track these aggregates elsewhere may pass their own
        value to ``resolve_card`` instead.
        """
        card = self.get_deck(deck).get_card(card_id)
        if card.card_type == CardType.PAY_PER_DICE:
            return sum(self.pending_dice) if self.pending_dice else 0
        if card.card_type == CardType.PAY_PER_BUILDING:
            return economy.pack_levy_aux(*self.improvement_counts(wallet))
        if card.card_type == CardType.COLLECT_PER_LP:
            return self.improvement_counts(wallet)[0]
        if card.card_type == CardType.COLLECT_PER_SET:
            return self.complete_color_sets(wallet)
        if card.card_type == CardType.BRIDGE_EXPLOIT:
            return 1 if self.count_owned(wallet, self.board.bridges) else 0
        return 0

    def resolve_card(self, wallet: str, deck: CardDeck, card_id: int, aux: Optional[int] = None) -> Card:
        """Apply the drawn card and end the turn."""
        player = self._require_current(wallet, TurnPhase.DRAW_CARD)
        if self.pending_card is None:
            raise WrongTurnPhaseError("Draw a card before resolving it")
        if self.pending_card != (deck, card_id):
            raise WrongTurnPhaseError(f"Card {card_id} from {deck.value} was not the card drawn")
        card = self.get_deck(deck).get_card(card_id)
        if aux is None:
            aux = self.card_aux(wallet, deck, card_id)
        economy.checked_amount(aux)

        self._apply_card(player, deck, card, aux)
        self.event_log.log(EventType.CARD_RESOLVED, wallet, deck=deck.value, card_id=card_id, card=card.description)
        self.pending_card = None
        self.advance_turn()
        return card

    def _apply_card(self, player: PlayerState, deck: CardDeck, card: Card, aux: int) -> None:
        wallet = player.wallet
        card_type = card.card_type

        if card_type == CardType.ADVANCE_TO:
            if card.target_position < player.position:
                self._pay_salary(player)
            player.position = card.target_position
        elif card_type == CardType.ADVANCE_TO_NEAREST_BRIDGE:
            player.position = self.board.nearest_bridge_ahead(player.position)
        elif card_type == CardType.ADVANCE_TO_UNOWNED_PROPERTY:
            target = self.board.nearest_property_ahead(
                player.position, accept=lambda pos: pos not in self.properties
            )
            if target is not None:
                player.position = target
        elif card_type == CardType.MOVE_SPACES:
            player.position = economy.move_back(player.position, -card.value)
        elif card_type == CardType.COLLECT:
            self._pay(BANK, wallet, card.value, card.description)
        elif card_type == CardType.PAY:
            self._pay(wallet, BANK, card.value, card.description)
        elif card_type == CardType.PAY_PER_DICE:
            self._pay(wallet, BANK, aux * card.value, card.description)
        elif card_type == CardType.PAY_BALANCE_SHARE:
            self._pay(wallet, BANK, self.ledger.balance_of(wallet) // card.value, card.description)
        elif card_type == CardType.BULL_RUN:
            self.bull_run_active = True
            self.bull_run_ends_round = self.round_number + 1
            self.event_log.log(EventType.BULL_RUN_ACTIVATED, wallet, ends_round=self.bull_run_ends_round)
        elif card_type == CardType.STEAL_LAST_RENT:
            if self.last_rent_amount > 0:
                self._pay(BANK, wallet, self.last_rent_amount, card.description)
                self.last_rent_amount = 0
        elif card_type == CardType.FLASH_LOAN:
            if player.flash_loan_active:
                raise FlashLoanAlreadyActiveError(f"{wallet} already has a flash loan")
            self._pay(BANK, wallet, self.config.flash_loan_amount, card.description)
            player.flash_loan_active = True
            player.flash_loan_repay_amount = self.config.flash_loan_repay
            player.flash_loan_due_turn = self.turn_number + self.player_count
        elif card_type == CardType.LOSE_CHEAPEST_PROPERTY:
            target = self.property_scan.cheapest_unprotected(self, player)
            if target is not None:
                self._revert_to_bank(target)
        elif card_type == CardType.LOSE_MOST_VALUABLE_PROPERTY:
            target = self.property_scan.most_valuable(self, player)
            if target is not None:
                self._pay(BANK, wallet, self.board.get_space(target).price // 2, card.description)
                self._revert_to_bank(target)
        elif card_type == CardType.GO_TO_RUG_PULL:
            rugpull.enter_rug_pull(self, player, rugpull.EntryReason.CARD)
        elif card_type == CardType.GET_OUT_OF_RUG_PULL:
            player.grant_jail_free_card(deck)
        elif card_type == CardType.COLLECT_FROM_PLAYERS:
            self._execute_transfers(self.peer_settlement.collect(self, wallet, card.value), card.description)
        elif card_type == CardType.PAY_TO_PLAYERS:
            self._execute_transfers(self.peer_settlement.pay(self, wallet, card.value), card.description)
        elif card_type == CardType.PAY_PER_BUILDING:
            lps, protocols = economy.unpack_levy_aux(aux)
            self._pay(wallet, BANK, lps * card.value + protocols * card.value2, card.description)
        elif card_type in (CardType.COLLECT_PER_LP, CardType.COLLECT_PER_SET):
            self._pay(BANK, wallet, aux * card.value, card.description)
        elif card_type == CardType.BRIDGE_EXPLOIT:
            if aux > 0:
                target = self.property_scan.any_bridge(self, player)
                if target is not None:
                    self._revert_to_bank(target)
            else:
                self._pay(BANK, wallet, card.value, card.description)
        elif card_type == CardType.RUG_PULL_INSURANCE:
            if player.in_rug_pull_zone:
                rugpull.release(self, player, rugpull.ExitMethod.INSURANCE)
            else:
                self._pay(BANK, wallet, card.value, card.description)

    def repay_flash_loan(self, wallet: str) -> int:
        """Repay an outstanding flash loan, plus the penalty once overdue."""
        player = self._require_active(wallet)
        if not player.flash_loan_active:
            raise NoFlashLoanError(f"{wallet} has no flash loan")
        amount = player.flash_loan_repay_amount
        overdue = self.turn_number > player.flash_loan_due_turn
        if overdue:
            amount += self.config.flash_loan_penalty

        self._pay(wallet, BANK, amount, "flash loan")
        player.clear_flash_loan()
        self.event_log.log(EventType.FLASH_LOAN_REPAID, wallet, amount=amount, overdue=overdue)
        return amount

    # ------------------------------------------------------------------
    # Rug Pull Zone
    # ------------------------------------------------------------------

    def _require_jailed_turn(self, wallet: str, *phases: TurnPhase) -> PlayerState:
        player = self._require_current(wallet)
        if not player.in_rug_pull_zone:
            raise NotInRugPullZoneError(f"{wallet} is not in the Rug Pull Zone")
        if self.turn_phase not in phases:
            raise WrongTurnPhaseError(f"Game is in {self.turn_phase.value}")
        return player

    def rugpull_pay_bail(self, wallet: str) -> None:
        player = self._require_jailed_turn(wallet, TurnPhase.RUG_PULL_DECISION, TurnPhase.ROLL_DICE)
        rugpull.pay_bail(self, player)
        self.turn_phase = TurnPhase.ROLL_DICE

    def rugpull_use_jail_free_card(self, wallet: str) -> None:
        player = self._require_jailed_turn(wallet, TurnPhase.RUG_PULL_DECISION, TurnPhase.ROLL_DICE)
        if not player.has_jail_free_card:
            raise NoJailFreeCardError(f"{wallet} has no Get Out of Rug Pull Free card")
        rugpull.use_jail_free_card(self, player)
        self.turn_phase = TurnPhase.ROLL_DICE

    def rugpull_attempt_doubles(self, wallet: str) -> None:
        """Choose to roll for doubles; the roll itself decides the exit."""
        self._require_jailed_turn(wallet, TurnPhase.RUG_PULL_DECISION)
        self.turn_phase = TurnPhase.ROLL_DICE

    # ------------------------------------------------------------------
    # Trades
    # ------------------------------------------------------------------

    def _check_holdings(self, wallet: str, positions: Sequence[int]) -> None:
        if len(set(positions)) != len(positions):
            raise InvalidTradeOfferError("A property is listed twice")
        for pos in positions:
            self.board.get_space(pos)
            if self.owner_of(pos) != wallet:
                raise NotPropertyOwnerError(f"{wallet} does not own space {pos}")

    def _check_jail_card_legs(self, offer: TradeOffer) -> None:
        proposer = self.players[offer.proposer]
        recipient = self.players[offer.recipient]
        if offer.offer_jail_card and not proposer.has_jail_free_card:
            raise InvalidTradeOfferError(f"{offer.proposer} has no jail-free card to offer")
        if offer.request_jail_card and not recipient.has_jail_free_card:
            raise InvalidTradeOfferError(f"{offer.recipient} has no jail-free card to give")
        # A player holds at most one card.
        if offer.offer_jail_card and not offer.request_jail_card and recipient.has_jail_free_card:
            raise InvalidTradeOfferError(f"{offer.recipient} already holds a jail-free card")
        if offer.request_jail_card and not offer.offer_jail_card and proposer.has_jail_free_card:
            raise InvalidTradeOfferError(f"{offer.proposer} already holds a jail-free card")

    def propose_trade(
        self,
        proposer: str,
        recipient: str,
        offered_properties: Sequence[int] = (),
        requested_properties: Sequence[int] = (),
        offered_amount: int = 0,
        requested_amount: int = 0,
        offer_jail_card: bool = False,
        request_jail_card: bool = False,
    ) -> TradeOffer:
        """Open an offer to ``recipient``, replacing any earlier offer from ``proposer``."""
        self._require_active(proposer)
        if recipient == proposer or recipient not in self.player_order:
            raise RecipientNotInGameError(f"{recipient} is not an active player in game {self.game_id}")
        economy.checked_amount(offered_amount)
        economy.checked_amount(requested_amount)
        offer = TradeOffer(
            proposer=proposer,
            recipient=recipient,
            offered_properties=list(offered_properties),
            requested_properties=list(requested_properties),
            offered_amount=offered_amount,
            requested_amount=requested_amount,
            offer_jail_card=offer_jail_card,
            request_jail_card=request_jail_card,
            expiry_turn=self.turn_number + self.config.trade_expiry_turns,
        )
        if offer.is_empty():
            raise InvalidTradeOfferError("Trade offer is empty")
        self._check_holdings(proposer, offer.offered_properties)
        if offer.offer_jail_card and not self.players[proposer].has_jail_free_card:
            raise InvalidTradeOfferError(f"{proposer} has no jail-free card to offer")

        self.trades.place(offer)
        return offer

    def accept_trade(self, recipient: str, proposer: str) -> TradeOffer:
        """
        Execute ``proposer``'s offer to ``recipient``.

        Every leg is checked first. Currency legs run before anything
        else and are reversed if one is refused, so either the whole
        trade happens or nothing changes.
        """
        self._require_in_progress()
        offer = self.trades.require(proposer, recipient)
        if offer.is_expired(self.turn_number):
            raise TradeExpiredError(f"Offer from {proposer} expired on turn {offer.expiry_turn}")
        for wallet in (proposer, recipient):
            if wallet not in self.player_order:
                raise RecipientNotInGameError(f"{wallet} is no longer an active player")
        try:
            self._check_holdings(proposer, offer.offered_properties)
            self._check_holdings(recipient, offer.requested_properties)
        except NotPropertyOwnerError as exc:
            raise InvalidTradeOfferError(f"Holdings changed since the offer: {exc}") from exc
        self._check_jail_card_legs(offer)

        legs = [
            (proposer, recipient, offer.offered_amount),
            (recipient, proposer, offer.requested_amount),
        ]
        self._execute_transfers([leg for leg in legs if leg[2] > 0], "trade")

        for pos in offer.offered_properties:
            self._reassign(pos, recipient)
        for pos in offer.requested_properties:
            self._reassign(pos, proposer)

        giver = self.players[proposer]
        taker = self.players[recipient]
        if offer.offer_jail_card and offer.request_jail_card:
            giver.jail_free_card_origin, taker.jail_free_card_origin = (
                taker.jail_free_card_origin,
                giver.jail_free_card_origin,
            )
        elif offer.offer_jail_card:
            taker.grant_jail_free_card(giver.take_jail_free_card())
        elif offer.request_jail_card:
            giver.grant_jail_free_card(taker.take_jail_free_card())

        self.trades.close(proposer, "accepted")
        self.event_log.log(EventType.TRADE_ACCEPTED, recipient, proposer=proposer)
        return offer

    def reject_trade(self, recipient: str, proposer: str) -> None:
        self.trades.require(proposer, recipient)
        self.trades.close(proposer, "rejected")
        self.event_log.log(EventType.TRADE_REJECTED, recipient, proposer=proposer)

    # ------------------------------------------------------------------
    # Bankruptcy and prize
    # ------------------------------------------------------------------

    def declare_bankruptcy(self, wallet: str, creditor: Optional[str] = None) -> None:
        """
        Leave the game, handing everything to ``creditor`` or the bank.

        The player drops out of the rotation. With one player left the game
        finishes; otherwise the turn moves on if it was the bankrupt player's.
        """
        player = self._require_active(wallet)
        if creditor is not None and (creditor == wallet or creditor not in self.player_order):
            raise RecipientNotInGameError(f"{creditor} cannot receive {wallet}'s assets")

        for pos in list(player.properties_owned):
            if creditor is None:
                self._revert_to_bank(pos)
            else:
                self._reassign(pos, creditor)
        remaining = self.ledger.balance_of(wallet)
        if remaining > 0:
            self._pay(wallet, creditor or BANK, remaining, "bankruptcy")
        player.take_jail_free_card()
        player.clear_flash_loan()
        for offer in self.trades.offers_involving(wallet):
            self.trades.close(offer.proposer, "cancelled")

        player.is_bankrupt = True
        player.status = PlayerStatus.BANKRUPT
        player.rugpull_turns_remaining = 0
        removed_index = self.player_order.index(wallet)
        was_current = removed_index == self.current_player_index
        self.player_order.remove(wallet)
        if self.auction is not None:
            self.auction.withdraw(wallet)

        self.event_log.log(EventType.BANKRUPTCY, wallet, creditor=creditor)
        logger.info(f"{wallet} declared bankruptcy in game {self.game_id}")

        if self.player_count == 1:
            self._finish(self.player_order[0])
        elif was_current:
            # The turn of a bankrupt player ends; any auction they opened lapses unsold.
            self.auction = None
            self._begin_turn(removed_index % self.player_count)
        elif removed_index < self.current_player_index:
            self.current_player_index -= 1

    def claim_prize(self, wallet: str) -> int:
        """Release the prize pool to the winner. Returns the amount released."""
        if self.status != GameStatus.FINISHED:
            raise GameNotFinishedError(f"Game {self.game_id} is not finished")
        if wallet != self.winner:
            raise NotWinnerError(f"{wallet} did not win game {self.game_id}")
        prize = self.prize_pool
        self.prize_pool = 0
        self.event_log.log(EventType.PRIZE_CLAIMED, wallet, amount=prize)
        return prize


def initialize_game(
    game_id: str,
    host: str,
    max_players: Optional[int] = None,
    entry_fee: Optional[int] = None,
    config: Optional[GameConfig] = None,
    **services,
) -> GameState:
    """
    Create a game waiting for players.

    ``services`` are passed through to ``GameState`` (ledger, tokens,
    randomness, randomness_authority, property_scan, peer_settlement).
    """
    config = config or GameConfig()
    if max_players is None:
        max_players = config.max_players
    if entry_fee is None:
        entry_fee = config.entry_fee
    if not config.min_players <= max_players <= config.max_players:
        raise InvalidPlayerCountError(
            f"max_players must be between {config.min_players} and {config.max_players}"
        )
    economy.checked_amount(entry_fee)

    game = GameState(game_id, host, config=config, max_players=max_players, **services)
    game.prize_pool = entry_fee
    game.event_log.log(EventType.GAME_CREATED, host, max_players=max_players, entry_fee=entry_fee)
    logger.info(f"Created game {game_id} hosted by {host}")
    return game
