"""
Exception hierarchy for the Blockpoly engine.

Every engine operation validates before it mutates, so any of these
errors leaves the game exactly as it was before the call.
"""


class BlockpolyError(Exception):
    """Base exception for all game-related errors."""


class GameNotFoundError(BlockpolyError):
    """Game does not exist."""


class PlayerNotFoundError(BlockpolyError):
    """Wallet has no player record in this game."""


# Lifecycle


class LifecycleError(BlockpolyError):
    """Game is in the wrong status for this operation."""


class GameNotWaitingError(LifecycleError):
    """Game is not accepting players."""


class GameFullError(LifecycleError):
    """Game already has the maximum number of players."""


class GameNotStartedError(LifecycleError):
    """Game has not started."""


class GameFinishedError(LifecycleError):
    """Game is already finished."""


class GameNotFinishedError(LifecycleError):
    """Game has not finished yet."""


class HostOnlyError(LifecycleError):
    """Only the host may perform this operation."""


class NotWinnerError(LifecycleError):
    """Only the winner may claim the prize."""


# Turn and phase


class TurnPhaseError(BlockpolyError):
    """Operation is out of turn or out of phase."""


class NotYourTurnError(TurnPhaseError):
    """Caller is not the current player."""


class WrongTurnPhaseError(TurnPhaseError):
    """Game is not in the phase this operation requires."""


class DiceNotRolledError(TurnPhaseError):
    """Dice have not been resolved for this turn."""


class LandingAlreadyResolvedError(TurnPhaseError):
    """Landing effect was already resolved."""


# Ownership and economy


class EconomyError(BlockpolyError):
    """Ownership or payment rule violated."""


class PropertyNotAvailableError(EconomyError):
    """Space cannot be bought."""


class PropertyAlreadyOwnedError(EconomyError):
    """Space already has an owner."""


class PropertyMortgagedError(EconomyError):
    """Property is mortgaged."""


class InsufficientBalanceError(EconomyError):
    """Payer cannot cover the amount."""


class NotPropertyOwnerError(EconomyError):
    """Caller does not own the property."""


class IncompleteColorSetError(EconomyError):
    """Owner does not hold the whole color group."""


class UnevenBuildingError(EconomyError):
    """Build or sell would break the even-building rule."""


class MaxLiquidityPoolsError(EconomyError):
    """Property already carries the maximum improvements."""


class MaxProtocolError(EconomyError):
    """Property already carries a Full Protocol."""


class CannotMortgageWithBuildingsError(EconomyError):
    """Improvements in the color group must be sold first."""


class CannotUnmortgageError(EconomyError):
    """Property is not mortgaged."""


class NoImprovementsError(EconomyError):
    """Property has no improvements to sell."""


class SelfRentError(EconomyError):
    """Owner cannot pay rent to themselves."""


class FlashLoanAlreadyActiveError(EconomyError):
    """Player already carries a flash loan."""


class FlashLoanOverdueError(EconomyError):
    """Flash loan is past due and must be repaid first."""


class NoFlashLoanError(EconomyError):
    """Player has no flash loan to repay."""


# Rug Pull Zone


class RugPullError(BlockpolyError):
    """Jail rule violated."""


class NotInRugPullZoneError(RugPullError):
    """Player is not in the Rug Pull Zone."""


class NoJailFreeCardError(RugPullError):
    """Player does not hold a Get Out of Rug Pull Free card."""


class PlayerBankruptError(BlockpolyError):
    """Player is bankrupt."""


# Randomness


class RandomnessError(BlockpolyError):
    """Randomness request or delivery out of order."""


class RandomnessPendingError(RandomnessError):
    """A randomness request is already outstanding."""


class RandomnessNotRequestedError(RandomnessError):
    """No randomness request is outstanding."""


class UnauthorizedRandomnessError(RandomnessError):
    """Caller is not allowed to deliver randomness."""


class InvalidRandomnessError(RandomnessError):
    """Random payload is too short."""


# Auctions and trades


class AuctionError(BlockpolyError):
    """Auction rule violated."""


class AuctionNotActiveError(AuctionError):
    """No auction is running."""


class AuctionAlreadyWonError(AuctionError):
    """Auction deadline has passed."""


class AuctionStillOpenError(AuctionError):
    """Auction deadline has not passed yet."""


class BidTooLowError(AuctionError):
    """Bid does not exceed the highest bid."""


class TradeError(BlockpolyError):
    """Trade rule violated."""


class InvalidTradeOfferError(TradeError):
    """Trade offer is malformed or no longer valid."""


class TradeExpiredError(TradeError):
    """Trade offer expired."""


class RecipientNotInGameError(TradeError):
    """Trade recipient is not an active participant."""


# Integrity


class IntegrityError(BlockpolyError):
    """Input or state failed an integrity check."""


class ArithmeticOverflowError(IntegrityError):
    """Amount is outside the ledger range."""


class InvalidSpaceIndexError(IntegrityError):
    """Space index is off the board."""


class InvalidPlayerCountError(IntegrityError):
    """Player count is outside the allowed range."""


class DeckExhaustedError(IntegrityError):
    """Card id or deck is invalid."""


class AlreadyJoinedError(IntegrityError):
    """Wallet already joined this game."""
