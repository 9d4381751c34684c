"""
Bilateral trade offers.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from blockpoly.exceptions import InvalidTradeOfferError
from blockpoly.money import EventLog, EventType


@dataclass
class TradeOffer:
    """
    An offer from ``proposer`` to ``recipient``.

    The proposer gives ``offered_properties``, ``offered_amount`` and
    optionally their jail-free card, and asks for the requested side in
    return. The offer can be accepted up to and including ``expiry_turn``.
    """

    proposer: str
    recipient: str
    offered_properties: List[int] = field(default_factory=list)
    requested_properties: List[int] = field(default_factory=list)
    offered_amount: int = 0
    requested_amount: int = 0
    offer_jail_card: bool = False
    request_jail_card: bool = False
    expiry_turn: int = 0
    result: Optional[str] = None

    def is_empty(self) -> bool:
        return not (
            self.offered_properties
            or self.requested_properties
            or self.offered_amount
            or self.requested_amount
            or self.offer_jail_card
            or self.request_jail_card
        )

    def is_expired(self, turn_number: int) -> bool:
        return turn_number > self.expiry_turn

    def __repr__(self) -> str:
        return (
            f"TradeOffer({self.proposer} -> {self.recipient}: "
            f"give {self.offered_properties} + {self.offered_amount}, "
            f"want {self.requested_properties} + {self.requested_amount})"
        )


class TradeBook:
    """
    Outstanding offers keyed by proposer.

    A proposer has at most one open offer; proposing again replaces it.
    """

    def __init__(self, event_log: EventLog):
        self.event_log = event_log
        self.open_offers: Dict[str, TradeOffer] = {}
        self.history: List[TradeOffer] = []

    def place(self, offer: TradeOffer) -> None:
        previous = self.open_offers.get(offer.proposer)
        if previous is not None:
            self._close(previous, "replaced")
            self.event_log.log(EventType.TRADE_REPLACED, offer.proposer, recipient=previous.recipient)
        self.open_offers[offer.proposer] = offer
        self.event_log.log(
            EventType.TRADE_PROPOSED,
            offer.proposer,
            recipient=offer.recipient,
            offered_properties=list(offer.offered_properties),
            requested_properties=list(offer.requested_properties),
            offered_amount=offer.offered_amount,
            requested_amount=offer.requested_amount,
            expiry_turn=offer.expiry_turn,
        )

    def get(self, proposer: str) -> Optional[TradeOffer]:
        return self.open_offers.get(proposer)

    def require(self, proposer: str, recipient: str) -> TradeOffer:
        """The open offer from ``proposer`` addressed to ``recipient``."""
        offer = self.open_offers.get(proposer)
        if offer is None or offer.recipient != recipient:
            raise InvalidTradeOfferError(f"No open offer from {proposer} to {recipient}")
        return offer

    def close(self, proposer: str, result: str) -> None:
        offer = self.open_offers.get(proposer)
        if offer is not None:
            self._close(offer, result)

    def _close(self, offer: TradeOffer, result: str) -> None:
        offer.result = result
        self.history.append(offer)
        del self.open_offers[offer.proposer]

    def offers_involving(self, wallet: str) -> List[TradeOffer]:
        return [o for o in self.open_offers.values() if wallet in (o.proposer, o.recipient)]
