"""Fixed-depth octree stored as one flat list of nodes per depth."""

from __future__ import annotations

import copy
from typing import Callable, List, Optional, Tuple

from bgkmap.occupancy import Occupancy, State


def node_to_hash_key(depth: int, index: int, index_bits: int = 16) -> int:
    """Pack a depth and an index within that depth into one key."""
    return (depth << index_bits) + index


def hash_key_to_node(key: int, index_bits: int = 16) -> Tuple[int, int]:
    """Split a key into ``(depth, index)``."""
    return key >> index_bits, key & ((1 << index_bits) - 1)


class OcTree:
    """A full octree of ``max_depth`` levels; level ``d`` holds ``8 ** d`` nodes.

    Children of node ``i`` at depth ``d`` are nodes ``8 * i`` .. ``8 * i + 7``
    at depth ``d + 1``. A level is dropped entirely once every node in it has
    been merged into its parent.
    """

    def __init__(
        self,
        max_depth: int,
        node_factory: Callable[[], Occupancy] = Occupancy,
        index_bits: int = 16,
    ):
        self.max_depth = max_depth
        self.index_bits = index_bits
        self._layers: Optional[List[Optional[list]]]
        if max_depth <= 0:
            self._layers = None
        else:
            self._layers = [[node_factory() for _ in range(8 ** depth)] for depth in range(max_depth)]

    def _layer(self, depth: int) -> Optional[list]:
        if self._layers is None or not 0 <= depth < len(self._layers):
            return None
        return self._layers[depth]

    def is_leaf(self, depth: int, index: int) -> bool:
        """True if the node exists and has no live children."""
        layer = self._layer(depth)
        if layer is None or layer[index].state is State.PRUNED:
            return False
        if depth + 1 < self.max_depth:
            children = self._layer(depth + 1)
            return children is None or children[index * 8].state is State.PRUNED
        return True

    def is_leaf_key(self, key: int) -> bool:
        """``is_leaf`` addressed by a hash key."""
        return self.is_leaf(*hash_key_to_node(key, self.index_bits))

    def contains(self, key: int) -> bool:
        """True if the node addressed by ``key`` exists and is not pruned."""
        depth, index = hash_key_to_node(key, self.index_bits)
        layer = self._layer(depth)
        return layer is not None and layer[index].state is not State.PRUNED

    def prune(self) -> bool:
        """Merge every group of eight siblings that share a known state.

        Returns True if anything was merged.
        """
        if self._layers is None:
            return False

        pruned = False
        for depth in range(self.max_depth - 1, 0, -1):
            layer = self._layers[depth]
            parent_layer = self._layers[depth - 1]
            if layer is None:
                continue

            empty_layer = True
            for start in range(0, len(layer), 8):
                siblings = layer[start:start + 8]
                state = siblings[0].state
                if state is State.UNKNOWN:
                    empty_layer = False
                    continue
                if state is State.PRUNED:
                    continue

                if all(node.state is state for node in siblings):
                    parent_layer[start // 8] = copy.copy(siblings[0])
                    for node in siblings:
                        node.prune()
                    pruned = True
                else:
                    empty_layer = False

            if empty_layer:
                self._layers[depth] = None
        return pruned

    def __getitem__(self, key: int) -> Occupancy:
        depth, index = hash_key_to_node(key, self.index_bits)
        layer = self._layer(depth)
        if layer is None or not 0 <= index < len(layer):
            raise KeyError(key)
        return layer[index]