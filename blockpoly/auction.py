"""
Auction of a declined property.
"""

from typing import List, Optional, Set

from blockpoly.exceptions import AuctionError, BidTooLowError
from blockpoly.money import EventLog, EventType


class Auction:
    """
    Ascending-bid auction for a single space.

    The game turn does not move while an auction runs, so the auction
    keeps its own clock: every bid or pass is one tick. A bid moves the
    deadline to ``clock + duration``. The auction lapses once the clock
    passes the deadline, or when every eligible player other than the
    highest bidder has passed since the last bid.
    """

    def __init__(
        self,
        position: int,
        property_name: str,
        starting_bid: int,
        duration: int,
        eligible: List[str],
        event_log: EventLog,
    ):
        self.position = position
        self.property_name = property_name
        self.starting_bid = starting_bid
        self.highest_bid = starting_bid
        self.highest_bidder: Optional[str] = None
        self.duration = duration
        self.clock = 0
        self.deadline = duration
        self.eligible: List[str] = list(eligible)
        self.passed: Set[str] = set()
        self.event_log = event_log

        self.event_log.log(
            EventType.AUCTION_START,
            position=position,
            property=property_name,
            starting_bid=starting_bid,
            deadline=self.deadline,
        )

    @property
    def is_expired(self) -> bool:
        if self.clock > self.deadline:
            return True
        waiting_on = [w for w in self.eligible if w != self.highest_bidder and w not in self.passed]
        return not waiting_on

    def validate_bid(self, wallet: str, amount: int) -> None:
        if amount <= self.highest_bid:
            raise BidTooLowError(
                f"Bid {amount} for {self.property_name} must exceed {self.highest_bid}"
            )

    def place_bid(self, wallet: str, amount: int) -> None:
        """Record a validated bid and push the deadline out."""
        self.validate_bid(wallet, amount)
        self.highest_bid = amount
        self.highest_bidder = wallet
        self.clock += 1
        self.deadline = self.clock + self.duration
        self.passed.clear()

        self.event_log.log(
            EventType.AUCTION_BID,
            wallet,
            property=self.property_name,
            amount=amount,
            deadline=self.deadline,
        )

    def validate_pass(self, wallet: str) -> None:
        if wallet == self.highest_bidder:
            raise AuctionError("Highest bidder cannot pass")
        if wallet in self.passed:
            raise AuctionError(f"{wallet} already passed since the last bid")

    def record_pass(self, wallet: str) -> None:
        self.validate_pass(wallet)
        self.passed.add(wallet)
        self.clock += 1
        self.event_log.log(EventType.AUCTION_PASS, wallet, property=self.property_name)

    def withdraw(self, wallet: str) -> None:
        """
        Remove a bankrupt participant.

        If they held the high bid, bidding reopens from the starting bid.
        """
        if wallet in self.eligible:
            self.eligible.remove(wallet)
        self.passed.discard(wallet)
        if self.highest_bidder == wallet:
            self.highest_bidder = None
            self.highest_bid = self.starting_bid
