"""
Block ids and data flags.

Raw block data is 4 bits wide. Neighbor rules extend it to an
"effective data" value by OR-ing in the flags below; texture lookups
fall back to the raw part when no variant for the flags exists.
"""

AIR = 0
STONE = 1
GRASS = 2
DIRT = 3
WATER_FLOWING = 8
WATER = 9
LAVA_FLOWING = 10
LAVA = 11
LEAVES = 18
GLASS = 20
FENCE = 85
IRON_BARS = 101
GLASS_PANE = 102
NETHER_FENCE = 113

DATA_MASK = 0x0F

# Connection to a horizontal neighbor
EDGE_NORTH = 0x10
EDGE_SOUTH = 0x20
EDGE_EAST = 0x40
EDGE_WEST = 0x80

# Liquid surface is covered by the same liquid
HIDE_TOP = 0x100

# Every visible face is covered by opaque neighbors
HIDDEN = 0x8000

# Ids that behave the same for neighbor checks
LIQUID_GROUPS: dict[int, str] = {
    WATER_FLOWING: "water",
    WATER: "water",
    LAVA_FLOWING: "lava",
    LAVA: "lava",
}

CONNECTION_GROUPS: dict[int, str] = {
    FENCE: "fence",
    NETHER_FENCE: "fence",
    IRON_BARS: "pane",
    GLASS_PANE: "pane",
}


def raw_data(data: int) -> int:
    """Strip neighbor flags from an effective data value."""
    return data & DATA_MASK
