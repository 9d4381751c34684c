"""
Pure economic rules: rent, dice, movement and price helpers.

Nothing here mutates game state; the orchestrator calls these after it
has validated an operation and before it applies any change.
"""

from typing import TYPE_CHECKING, Optional, Sequence, Tuple

from blockpoly.config import BOARD_SIZE, MAX_AMOUNT, GameConfig
from blockpoly.exceptions import (
    ArithmeticOverflowError,
    InvalidRandomnessError,
    PropertyMortgagedError,
    PropertyNotAvailableError,
)
from blockpoly.spaces import Space, SpaceType

if TYPE_CHECKING:
    from blockpoly.player import PropertyState


def checked_amount(amount: int) -> int:
    """Reject amounts the value ledger cannot represent."""
    if amount < 0 or amount > MAX_AMOUNT:
        raise ArithmeticOverflowError(f"Amount {amount} is outside the ledger range")
    return amount


def dice_from_bytes(random_bytes: Sequence[int]) -> Tuple[int, int]:
    """Derive two dice from the first two bytes of a random payload."""
    if len(random_bytes) < 2:
        raise InvalidRandomnessError("Random payload needs at least two bytes")
    return random_bytes[0] % 6 + 1, random_bytes[1] % 6 + 1


def advance_position(old_position: int, steps: int) -> Tuple[int, bool]:
    """
    Move ``steps`` spaces forward.

    Returns the new position and whether the move passed the Genesis
    Block, which is the case exactly when the new index is smaller.
    """
    new_position = (old_position + steps) % BOARD_SIZE
    return new_position, new_position < old_position


def move_back(position: int, steps: int) -> int:
    return (position - steps) % BOARD_SIZE


def bull_run_in_effect(active: bool, round_number: int, ends_round: int) -> bool:
    return active and round_number <= ends_round


def calculate_rent(
    space: Space,
    prop: "PropertyState",
    config: GameConfig,
    dice_total: int,
    owner_bridge_count: int,
    owner_utility_count: int,
    bull_run: bool = False,
    owns_color_set: bool = False,
) -> int:
    """
    Rent owed for landing on an owned space.

    Bridges charge by how many bridges the owner holds, utilities by
    the dice total and utility count. Ordinary properties charge the
    Full Protocol rent, the improvement tier, or base rent. Base rent
    doubles under an active Bull Run, and also for a complete color set
    when ``config.monopoly_doubles_base_rent`` is enabled.
    """
    if prop.is_mortgaged:
        raise PropertyMortgagedError(f"{space.name} is mortgaged and collects no rent")

    if space.space_type == SpaceType.BRIDGE:
        count = max(owner_bridge_count, 1)
        return space.bridge_rents[min(count - 1, 3)]

    if space.space_type == SpaceType.UTILITY:
        multiplier = 10 if owner_utility_count >= 2 else 4
        return dice_total * config.utility_unit * multiplier

    if space.space_type != SpaceType.PROPERTY:
        raise PropertyNotAvailableError(f"{space.name} does not collect rent")

    if prop.has_full_protocol:
        return space.rent_full_protocol
    if prop.lp_count > 0:
        return space.rent_tiers[prop.lp_count - 1]

    rent = space.rent_base
    if config.monopoly_doubles_base_rent and owns_color_set:
        rent *= 2
    if bull_run:
        rent *= 2
    return rent


def mortgage_value(space: Space) -> int:
    return space.mortgage_value


def unmortgage_cost(space: Space) -> int:
    """Mortgage value plus 10% interest."""
    value = space.mortgage_value
    return value + value // 10


def improvement_cost(space: Space) -> int:
    return space.lp_cost


def improvement_refund(space: Space) -> int:
    return space.lp_cost // 2


def auction_starting_bid(space: Space) -> int:
    return space.price // 10


def pack_levy_aux(lp_count: int, protocol_count: int) -> int:
    """Encode improvement and Full Protocol counts for the levy card."""
    return (protocol_count << 32) | (lp_count & 0xFFFFFFFF)


def unpack_levy_aux(aux: int) -> Tuple[int, int]:
    return aux & 0xFFFFFFFF, aux >> 32


def net_worth(balance: int, spaces: Sequence[Space], lp_counts: Optional[Sequence[int]] = None) -> int:
    """Balance plus list price of holdings plus improvements at cost."""
    total = balance + sum(space.price for space in spaces)
    if lp_counts is not None:
        total += sum(space.lp_cost * count for space, count in zip(spaces, lp_counts))
    return total
