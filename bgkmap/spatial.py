"""Box queries over training points and the blocks they fall in."""

from __future__ import annotations

from typing import Generic, Iterator, List, Sequence, Tuple, TypeVar

from bgkmap.block import BlockGrid

Point = Tuple[float, float, float]
T = TypeVar("T")


def _as_point(p: Sequence[float]) -> Point:
    return (float(p[0]), float(p[1]), float(p[2]))


def _check_box(lim_min: Sequence[float], lim_max: Sequence[float]) -> None:
    if any(lo > hi for lo, hi in zip(lim_min, lim_max)):
        raise ValueError(f"box minimum {tuple(lim_min)} exceeds maximum {tuple(lim_max)}")


class PointIndex(Generic[T]):
    """A set of points, each carrying an item, queried by axis-aligned box.

    Boxes are closed: a point on the boundary is inside. Results come back
    in insertion order.
    """

    def __init__(self) -> None:
        self._entries: List[Tuple[Point, T]] = []

    def __len__(self) -> int:
        return len(self._entries)

    def insert(self, point: Sequence[float], item: T) -> None:
        """Add ``item`` at ``point``."""
        self._entries.append((_as_point(point), item))

    def _matches(self, lim_min: Sequence[float], lim_max: Sequence[float]) -> Iterator[T]:
        _check_box(lim_min, lim_max)
        x0, y0, z0 = lim_min[0], lim_min[1], lim_min[2]
        x1, y1, z1 = lim_max[0], lim_max[1], lim_max[2]
        for (x, y, z), item in self._entries:
            if x0 <= x <= x1 and y0 <= y <= y1 and z0 <= z <= z1:
                yield item

    def search(self, lim_min: Sequence[float], lim_max: Sequence[float]) -> List[T]:
        """Items whose points lie within the box."""
        return list(self._matches(lim_min, lim_max))

    def any_in(self, lim_min: Sequence[float], lim_max: Sequence[float]) -> bool:
        """True if at least one point lies within the box."""
        return next(self._matches(lim_min, lim_max), None) is not None

    def clear(self) -> None:
        """Remove every point."""
        self._entries.clear()


def block_bounds(grid: BlockGrid, key: int, half_size: float) -> Tuple[Point, Point]:
    """The box of half-width ``half_size`` around the centre of block ``key``."""
    if half_size < 0:
        raise ValueError("half_size must not be negative")
    cx, cy, cz = grid.hash_key_to_block(key)
    return (
        (cx - half_size, cy - half_size, cz - half_size),
        (cx + half_size, cy + half_size, cz + half_size),
    )


def points_in_block(index: PointIndex[T], grid: BlockGrid, key: int, half_size: float) -> List[T]:
    """Items within ``half_size`` of the centre of block ``key`` along every axis."""
    return index.search(*block_bounds(grid, key, half_size))


def has_points_in_block(index: PointIndex, grid: BlockGrid, key: int, half_size: float) -> bool:
    """True if any point lies within the box around block ``key``."""
    return index.any_in(*block_bounds(grid, key, half_size))


def has_points_in_extended_block(index: PointIndex, grid: BlockGrid, key: int, half_size: float) -> bool:
    """True if any point lies in the box of the block or of one of its six face neighbours."""
    return any(
        has_points_in_block(index, grid, neighbour, half_size)
        for neighbour in grid.extended_block(key)
    )