"""Neighbor-dependent block appearance.

The effective data of a block decides which texture variant is drawn and
whether the block is drawn at all. It is computed by a list of rules per
block id. Rules only read the world; the same neighborhood always gives
the same result.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Protocol

from blockmap.world.blocks import (
    AIR, DATA_MASK, EDGE_NORTH, EDGE_SOUTH, EDGE_EAST, EDGE_WEST, HIDE_TOP, HIDDEN,
    LIQUID_GROUPS, CONNECTION_GROUPS,
)
from blockmap.world.cache import World
from blockmap.world.positions import BlockPos, NORTH, SOUTH, EAST, WEST, TOP


class TransparencySource(Protocol):
    def is_transparent(self, block_id: int, data: int) -> bool: ...


class Neighborhood:
    """Lazy view of the blocks around one position.

    Unloaded neighbors count as air so that chunk borders at the edge of
    the world stay visible.
    """

    def __init__(self, world: World, textures: TransparencySource,
                 pos: BlockPos, block_id: int, data: int):
        self.world = world
        self.textures = textures
        self.pos = pos
        self.block_id = block_id
        self.data = data
        self._blocks: dict[BlockPos, tuple[int, int]] = {}

    def block(self, direction: BlockPos) -> tuple[int, int]:
        """(id, raw data) of the neighbor in ``direction``."""
        block = self._blocks.get(direction)
        if block is None:
            found = self.world.block_at(self.pos + direction)
            block = (AIR, 0) if found is None else found
            self._blocks[direction] = block
        return block

    def is_opaque(self, direction: BlockPos) -> bool:
        block_id, data = self.block(direction)
        if block_id == AIR:
            return False
        return not self.textures.is_transparent(block_id, data & DATA_MASK)


class NeighborRule(ABC):
    """One step of effective data computation."""

    @abstractmethod
    def apply(self, neighbors: Neighborhood, data: int) -> int:
        """Return ``data`` with this rule's flags added."""


class OcclusionRule(NeighborRule):
    """Hide blocks whose visible faces (top, south, west) are all covered."""

    FACES = (TOP, SOUTH, WEST)

    def apply(self, neighbors: Neighborhood, data: int) -> int:
        if all(neighbors.is_opaque(face) for face in self.FACES):
            return data | HIDDEN
        return data


class ConnectionRule(NeighborRule):
    """Connect fences and panes to similar blocks and to opaque blocks."""

    EDGES = ((NORTH, EDGE_NORTH), (SOUTH, EDGE_SOUTH), (EAST, EDGE_EAST), (WEST, EDGE_WEST))

    def __init__(self, groups: Optional[dict[int, str]] = None):
        self.groups = CONNECTION_GROUPS if groups is None else groups

    def apply(self, neighbors: Neighborhood, data: int) -> int:
        group = self.groups.get(neighbors.block_id)
        for direction, flag in self.EDGES:
            other_id, _ = neighbors.block(direction)
            if (group is not None and self.groups.get(other_id) == group) or neighbors.is_opaque(direction):
                data |= flag
        return data


class LiquidRule(NeighborRule):
    """Drop the surface of a liquid covered by the same liquid."""

    def __init__(self, groups: Optional[dict[int, str]] = None):
        self.groups = LIQUID_GROUPS if groups is None else groups

    def apply(self, neighbors: Neighborhood, data: int) -> int:
        above_id, _ = neighbors.block(TOP)
        group = self.groups.get(neighbors.block_id)
        if group is not None and self.groups.get(above_id) == group:
            return data | HIDE_TOP
        return data


class NeighborRules:
    """Registry of rules per block id with a default for the rest."""

    def __init__(self, default: Optional[Iterable[NeighborRule]] = None):
        self.default: list[NeighborRule] = list(default) if default is not None else [OcclusionRule()]
        self._rules: dict[int, list[NeighborRule]] = {}

    def register(self, block_id: int, *rules: NeighborRule) -> None:
        """Replace the rules of a block id."""
        self._rules[block_id] = list(rules)

    def rules_for(self, block_id: int) -> list[NeighborRule]:
        return self._rules.get(block_id, self.default)

    def check(self, world: World, textures: TransparencySource,
              pos: BlockPos, block_id: int, data: int) -> int:
        """Effective data of a block. Raw data is kept in the low bits."""
        neighbors = Neighborhood(world, textures, pos, block_id, data & DATA_MASK)
        effective = data & DATA_MASK
        for rule in self.rules_for(block_id):
            effective = rule.apply(neighbors, effective)
        return effective


def default_neighbor_rules() -> NeighborRules:
    """Rules for the stock block ids."""
    rules = NeighborRules()
    for block_id in LIQUID_GROUPS:
        rules.register(block_id, LiquidRule(), OcclusionRule())
    for block_id in CONNECTION_GROUPS:
        rules.register(block_id, ConnectionRule())
    return rules
