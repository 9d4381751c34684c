from typing import Callable, Dict, List, Optional

from blockpoly.config import BOARD_SIZE
from blockpoly.exceptions import InvalidSpaceIndexError
from blockpoly.spaces import (
    ColorGroup,
    Space,
    SpaceType,
    bridge_space,
    property_space,
    simple_space,
    tax_space,
    utility_space,
)


GENESIS_POSITION = 0
RUG_PULL_ZONE_POSITION = 10


class Board:
    """The Blockpoly board with 40 spaces."""

    def __init__(self):
        self.spaces: List[Space] = self._create_standard_board()
        self.color_groups: Dict[ColorGroup, List[int]] = self._build_color_groups()
        self.bridges: List[int] = self._positions_of(SpaceType.BRIDGE)
        self.utilities: List[int] = self._positions_of(SpaceType.UTILITY)

    def _create_standard_board(self) -> List[Space]:
        """Create the standard 40-space board."""
        brown, light_blue, pink, orange = (
            ColorGroup.BROWN,
            ColorGroup.LIGHT_BLUE,
            ColorGroup.PINK,
            ColorGroup.ORANGE,
        )
        red, yellow, green, dark_blue = (
            ColorGroup.RED,
            ColorGroup.YELLOW,
            ColorGroup.GREEN,
            ColorGroup.DARK_BLUE,
        )
        return [
            # Bottom row (0-10)
            simple_space("Genesis Block", 0, SpaceType.GENESIS),
            property_space("BONK", 1, brown, 60, 2, (10, 30, 90, 160), 250, 50),
            simple_space("Alpha Call", 2, SpaceType.ALPHA_CALL),
            property_space("dogwifhat", 3, brown, 60, 4, (20, 60, 180, 320), 450, 50),
            tax_space("Gas Fees Tax", 4, 200),
            bridge_space("Wormhole", 5),
            property_space("Pyth Network", 6, light_blue, 100, 6, (30, 90, 270, 400), 550, 50),
            simple_space("Governance Vote", 7, SpaceType.GOVERNANCE),
            property_space("Switchboard", 8, light_blue, 100, 6, (30, 90, 270, 400), 550, 50),
            property_space("Clockwork", 9, light_blue, 120, 8, (40, 100, 300, 450), 600, 50),
            simple_space("Rug Pull Zone", 10, SpaceType.RUG_PULL_ZONE),
            # Left side (11-20)
            property_space("Solflare", 11, pink, 140, 10, (50, 150, 450, 625), 750, 100),
            utility_space("QuickNode", 12),
            property_space("Phantom", 13, pink, 140, 10, (50, 150, 450, 625), 750, 100),
            property_space("Backpack", 14, pink, 160, 12, (60, 180, 500, 700), 900, 100),
            bridge_space("deBridge", 15),
            property_space("Metaplex", 16, orange, 180, 14, (70, 200, 550, 750), 950, 100),
            simple_space("Alpha Call", 17, SpaceType.ALPHA_CALL),
            property_space("Magic Eden", 18, orange, 180, 14, (70, 200, 550, 750), 950, 100),
            property_space("Tensor", 19, orange, 200, 16, (80, 220, 600, 800), 1000, 100),
            simple_space("DeFi Summer", 20, SpaceType.DEFI_SUMMER),
            # Top row (21-30)
            property_space("Raydium", 21, red, 220, 18, (90, 250, 700, 875), 1050, 150),
            simple_space("Governance Vote", 22, SpaceType.GOVERNANCE),
            property_space("Orca", 23, red, 220, 18, (90, 250, 700, 875), 1050, 150),
            property_space("Meteora", 24, red, 240, 20, (100, 300, 750, 925), 1100, 150),
            bridge_space("Allbridge", 25),
            property_space("Marginfi", 26, yellow, 260, 22, (110, 330, 850, 1025), 1200, 150),
            property_space("Kamino Finance", 27, yellow, 260, 22, (110, 330, 850, 1025), 1200, 150),
            utility_space("Triton One", 28),
            property_space("Drift Protocol", 29, yellow, 280, 24, (120, 360, 900, 1100), 1275, 150),
            simple_space("SEC Investigation", 30, SpaceType.SEC_INVESTIGATION),
            # Right side (31-39)
            property_space("Jupiter", 31, green, 300, 26, (130, 390, 900, 1100), 1275, 200),
            property_space("Jito", 32, green, 300, 26, (130, 390, 900, 1100), 1275, 200),
            simple_space("Alpha Call", 33, SpaceType.ALPHA_CALL),
            property_space("Nosana", 34, green, 320, 28, (150, 450, 1000, 1200), 1400, 200),
            bridge_space("Mayan Finance", 35),
            simple_space("Governance Vote", 36, SpaceType.GOVERNANCE),
            property_space("Helius", 37, dark_blue, 350, 35, (175, 500, 1100, 1300), 1500, 200),
            tax_space("Protocol Fee", 38, 100),
            property_space("Solana", 39, dark_blue, 400, 50, (200, 600, 1400, 1700), 2000, 200),
        ]

    def _build_color_groups(self) -> Dict[ColorGroup, List[int]]:
        """Build a mapping of color groups to property positions."""
        groups: Dict[ColorGroup, List[int]] = {}
        for space in self.spaces:
            if space.color_group is not None:
                groups.setdefault(space.color_group, []).append(space.position)
        return groups

    def _positions_of(self, space_type: SpaceType) -> List[int]:
        return [s.position for s in self.spaces if s.space_type == space_type]

    def get_space(self, position: int) -> Space:
        """Get the space at the given position."""
        if not 0 <= position < BOARD_SIZE:
            raise InvalidSpaceIndexError(f"Space index {position} is off the board")
        return self.spaces[position]

    def get_color_group(self, group: ColorGroup) -> List[int]:
        """Get all property positions in a color group."""
        return self.color_groups.get(group, [])

    def siblings(self, position: int) -> List[int]:
        """Positions sharing the color group of ``position``, itself included."""
        space = self.get_space(position)
        if space.color_group is None:
            return [position]
        return self.get_color_group(space.color_group)

    def nearest_bridge_ahead(self, position: int) -> int:
        """First bridge strictly after ``position``, wrapping to the first bridge."""
        for bridge in self.bridges:
            if bridge > position:
                return bridge
        return self.bridges[0]

    def nearest_property_ahead(
        self,
        position: int,
        accept: Optional[Callable[[int], bool]] = None,
    ) -> Optional[int]:
        """
        Scan forward from ``position`` for an ordinary property.

        ``accept`` narrows the match, e.g. to spaces nobody owns yet.
        Returns None when no space in the next 39 qualifies.
        """
        for offset in range(1, BOARD_SIZE):
            pos = (position + offset) % BOARD_SIZE
            if self.spaces[pos].is_property and (accept is None or accept(pos)):
                return pos
        return None
