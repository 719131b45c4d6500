"""Blocks: fixed-size octrees tiled over space and addressed by a packed key."""

from __future__ import annotations

from collections import deque
from functools import lru_cache
from typing import Callable, Dict, Sequence, Tuple

from bgkmap.occupancy import Occupancy
from bgkmap.octree import OcTree, hash_key_to_node, node_to_hash_key

Point = Tuple[float, float, float]

_KEY_OFFSET = 524288
_KEY_MASK = 0xFFFFF


def init_key_loc_map(resolution: float, max_depth: int, index_bits: int = 16) -> Dict[int, Point]:
    """Map every node key of an octree to its centre, relative to the block centre.

    Nodes are numbered breadth first, so the children of node ``i`` at one
    depth are nodes ``8 * i`` .. ``8 * i + 7`` at the next.
    """
    key_loc_map: Dict[int, Point] = {}
    centers: deque = deque([(0.0, 0.0, 0.0)])

    for depth in range(max_depth):
        half_size = resolution * 2 ** (max_depth - depth - 1) * 0.5
        for index in range(len(centers)):
            cx, cy, cz = centers.popleft()
            key_loc_map[node_to_hash_key(depth, index, index_bits)] = (cx, cy, cz)
            if depth == max_depth - 1:
                continue
            for i in range(8):
                centers.append((
                    cx + half_size * (0.5 if i & 4 else -0.5),
                    cy + half_size * (0.5 if i & 2 else -0.5),
                    cz + half_size * (0.5 if i & 1 else -0.5),
                ))
    return key_loc_map


def init_index_map(key_loc_map: Dict[int, Point], max_depth: int, index_bits: int = 16) -> Dict[int, int]:
    """Number the finest cells in grid order (x fastest, then y, then z).

    Returns a map from that linear grid index to the node key.
    """
    leaves = [
        (key, loc)
        for key, loc in key_loc_map.items()
        if hash_key_to_node(key, index_bits)[0] == max_depth - 1
    ]
    leaves.sort(key=lambda item: (item[1][2], item[1][1], item[1][0]))
    return {index: key for index, (key, _) in enumerate(leaves)}


@lru_cache(maxsize=None)
def _maps(resolution: float, max_depth: int, index_bits: int) -> Tuple[Dict[int, Point], Dict[int, int]]:
    key_loc_map = init_key_loc_map(resolution, max_depth, index_bits)
    return key_loc_map, init_index_map(key_loc_map, max_depth, index_bits)


class BlockGrid:
    """The tiling of space into cubic blocks of ``2 ** (max_depth - 1)`` cells a side."""

    def __init__(self, resolution: float, max_depth: int):
        if resolution <= 0:
            raise ValueError("resolution must be positive")
        if max_depth <= 0:
            raise ValueError("max_depth must be positive")
        self.resolution = resolution
        self.max_depth = max_depth
        self.size = 2 ** (max_depth - 1) * resolution
        self.cell_num = int(round(self.size / resolution))

    def block_to_hash_key(self, x: float, y: float, z: float) -> int:
        """Key of the block containing the point ``(x, y, z)``."""
        def cell(v: float) -> int:
            return int(v / self.size + _KEY_OFFSET + 0.5)

        return (cell(x) << 40) | (cell(y) << 20) | cell(z)

    def hash_key_to_block(self, key: int) -> Point:
        """Centre of the block addressed by ``key``."""
        return (
            ((key >> 40) - _KEY_OFFSET) * self.size,
            (((key >> 20) & _KEY_MASK) - _KEY_OFFSET) * self.size,
            ((key & _KEY_MASK) - _KEY_OFFSET) * self.size,
        )

    def _neighbourhood(self, first: int, x: float, y: float, z: float) -> Tuple[int, ...]:
        s = self.size
        offsets = ((s, 0, 0), (-s, 0, 0), (0, s, 0), (0, -s, 0), (0, 0, s), (0, 0, -s))
        return (first,) + tuple(self.block_to_hash_key(x + dx, y + dy, z + dz) for dx, dy, dz in offsets)

    def extended_block(self, key: int) -> Tuple[int, ...]:
        """The block itself followed by its six face neighbours (+x, -x, +y, -y, +z, -z)."""
        return self._neighbourhood(key, *self.hash_key_to_block(key))


class Block(OcTree):
    """An octree covering one block of the grid, centred at ``center``."""

    def __init__(
        self,
        grid: BlockGrid,
        center: Sequence[float] = (0.0, 0.0, 0.0),
        node_factory: Callable[[], Occupancy] = Occupancy,
        index_bits: int = 16,
    ):
        super().__init__(grid.max_depth, node_factory, index_bits)
        self.grid = grid
        self.center: Point = (float(center[0]), float(center[1]), float(center[2]))
        self._key_loc_map, self._index_map = _maps(grid.resolution, grid.max_depth, index_bits)

    def extended_block(self) -> Tuple[int, ...]:
        """Keys of this block and its six face neighbours."""
        x, y, z = self.center
        return self.grid._neighbourhood(self.grid.block_to_hash_key(x, y, z), x, y, z)

    def get_node(self, x: int, y: int, z: int) -> int:
        """Key of the finest cell at grid position ``(x, y, z)`` within the block."""
        n = self.grid.cell_num
        index = x + y * n + z * n * n
        try:
            return self._index_map[index]
        except KeyError:
            raise IndexError(f"cell ({x}, {y}, {z}) is outside the block") from None

    def get_point(self, x: int, y: int, z: int) -> Point:
        """World coordinates of the centre of cell ``(x, y, z)``."""
        lx, ly, lz = self._key_loc_map[self.get_node(x, y, z)]
        cx, cy, cz = self.center
        return (lx + cx, ly + cy, lz + cz)

    def get_index(self, p: Sequence[float]) -> Tuple[int, int, int]:
        """Grid position of the cell containing ``p``, clipped to the block."""
        n = self.grid.cell_num
        res = self.grid.resolution

        def axis(value: float, centre: float) -> int:
            i = int((value - centre) / res + n // 2)
            return max(0, min(i, n - 1))

        return tuple(axis(v, c) for v, c in zip(p, self.center))  # type: ignore[return-value]

    def search(self, p: Sequence[float]) -> Occupancy:
        """The finest cell containing ``p``."""
        return self[self.get_node(*self.get_index(p))]