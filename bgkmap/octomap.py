"""A sparse occupancy map made of octree blocks keyed by their position."""

from __future__ import annotations

import copy
import functools
from typing import Callable, Dict, Iterator, Optional, Sequence, Tuple, Type

from bgkmap.block import Block, BlockGrid
from bgkmap.occupancy import Occupancy, OccupancyParams

Point = Tuple[float, float, float]

MAP_DEFAULT_PARAMS = OccupancyParams(
    sf2=1.0,
    ell=1.0,
    free_thresh=0.3,
    occupied_thresh=0.7,
    var_thresh=1.0,
    prior_a=1.0,
    prior_b=1.0,
)


class OctoMap:
    """Blocks of ``2 ** (block_depth - 1)`` cells a side, created on demand.

    ``node_factory`` is the cell class (``Occupancy`` or a subclass); every
    cell of the map is built from it with ``params``.
    """

    def __init__(
        self,
        resolution: float = 0.1,
        block_depth: int = 4,
        params: Optional[OccupancyParams] = None,
        node_factory: Type[Occupancy] = Occupancy,
        index_bits: int = 16,
    ):
        self.params = params if params is not None else MAP_DEFAULT_PARAMS
        self.node_factory = node_factory
        self.index_bits = index_bits
        self.grid = BlockGrid(resolution, block_depth)
        self._blocks: Dict[int, Block] = {}

    @property
    def resolution(self) -> float:
        """Side length of the finest cell."""
        return self.grid.resolution

    @property
    def block_depth(self) -> int:
        """Number of octree levels in each block."""
        return self.grid.max_depth

    @property
    def block_size(self) -> float:
        """Side length of one block."""
        return self.grid.size

    def _make_node(self) -> Callable[[], Occupancy]:
        return functools.partial(self.node_factory, 0.0, 0.0, self.params)

    def set_resolution(self, resolution: float) -> None:
        """Change the cell size; blocks already created keep their old geometry."""
        self.grid = BlockGrid(resolution, self.grid.max_depth)

    def set_block_depth(self, max_depth: int) -> None:
        """Change the block depth; blocks already created keep their old geometry."""
        self.grid = BlockGrid(self.grid.resolution, max_depth)

    def add_block(self, key: int) -> Block:
        """The block for ``key``, created with fresh cells if it does not exist."""
        block = self._blocks.get(key)
        if block is None:
            block = Block(self.grid, self.grid.hash_key_to_block(key), self._make_node(), self.index_bits)
            self._blocks[key] = block
        return block

    def search_block(self, key: int) -> Optional[Block]:
        """The block for ``key``, or None if it has not been created."""
        return self._blocks.get(key)

    def search(self, x: float, y: float, z: float) -> Occupancy:
        """A copy of the finest cell containing the point.

        Where no block covers the point, a cell holding only the priors.
        """
        block = self.search_block(self.grid.block_to_hash_key(x, y, z))
        if block is None:
            return self._make_node()()
        return copy.copy(block.search((x, y, z)))

    def get_bbox(self) -> Tuple[Point, Point]:
        """Bounding box of all blocks, or two origins when the map is empty."""
        if not self._blocks:
            return (0.0, 0.0, 0.0), (0.0, 0.0, 0.0)
        centers = [block.center for block in self._blocks.values()]
        half = self.grid.size * 0.5
        xs, ys, zs = zip(*centers)
        return (
            (min(xs) - half, min(ys) - half, min(zs) - half),
            (max(xs) + half, max(ys) + half, max(zs) + half),
        )

    def __len__(self) -> int:
        return len(self._blocks)

    def __contains__(self, key: object) -> bool:
        return key in self._blocks

    def __iter__(self) -> Iterator[int]:
        return iter(self._blocks)

    def blocks(self) -> Iterator[Tuple[int, Block]]:
        """Every ``(key, block)`` pair in creation order."""
        return iter(self._blocks.items())

    def block_key(self, p: Sequence[float]) -> int:
        """Key of the block containing ``p``."""
        return self.grid.block_to_hash_key(p[0], p[1], p[2])