"""
Board space definitions and types.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class SpaceType(Enum):
    """Types of spaces on the board."""

    GENESIS = "genesis"
    PROPERTY = "property"
    BRIDGE = "bridge"
    UTILITY = "utility"
    TAX = "tax"
    ALPHA_CALL = "alpha_call"
    GOVERNANCE = "governance"
    RUG_PULL_ZONE = "rug_pull_zone"
    SEC_INVESTIGATION = "sec_investigation"
    DEFI_SUMMER = "defi_summer"


class ColorGroup(Enum):
    """Color groups of ordinary properties."""

    BROWN = "brown"
    LIGHT_BLUE = "light_blue"
    PINK = "pink"
    ORANGE = "orange"
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"
    DARK_BLUE = "dark_blue"


PURCHASABLE_TYPES = frozenset({SpaceType.PROPERTY, SpaceType.BRIDGE, SpaceType.UTILITY})


@dataclass(frozen=True)
class Space:
    """A single board space. Fields that do not apply to a type stay zero."""

    name: str
    position: int
    space_type: SpaceType
    color_group: Optional[ColorGroup] = None
    price: int = 0
    rent_base: int = 0
    rent_tiers: Tuple[int, int, int, int] = (0, 0, 0, 0)
    rent_full_protocol: int = 0
    lp_cost: int = 0
    bridge_rents: Tuple[int, int, int, int] = (0, 0, 0, 0)
    tax_amount: int = 0

    @property
    def mortgage_value(self) -> int:
        return self.price // 2

    @property
    def is_purchasable(self) -> bool:
        return self.space_type in PURCHASABLE_TYPES

    @property
    def is_property(self) -> bool:
        return self.space_type == SpaceType.PROPERTY

    def __repr__(self) -> str:
        return f"Space(name='{self.name}', position={self.position}, type={self.space_type.value})"


def property_space(
    name: str,
    position: int,
    group: ColorGroup,
    price: int,
    rent_base: int,
    tiers: Tuple[int, int, int, int],
    rent_full_protocol: int,
    lp_cost: int,
) -> Space:
    """Build an ordinary color-group property."""
    return Space(
        name=name,
        position=position,
        space_type=SpaceType.PROPERTY,
        color_group=group,
        price=price,
        rent_base=rent_base,
        rent_tiers=tiers,
        rent_full_protocol=rent_full_protocol,
        lp_cost=lp_cost,
    )


def bridge_space(name: str, position: int) -> Space:
    return Space(
        name=name,
        position=position,
        space_type=SpaceType.BRIDGE,
        price=200,
        bridge_rents=(25, 50, 100, 200),
    )


def utility_space(name: str, position: int) -> Space:
    return Space(name=name, position=position, space_type=SpaceType.UTILITY, price=150)


def tax_space(name: str, position: int, amount: int) -> Space:
    return Space(name=name, position=position, space_type=SpaceType.TAX, tax_amount=amount)


def simple_space(name: str, position: int, space_type: SpaceType) -> Space:
    return Space(name=name, position=position, space_type=space_type)
