import pytest

from bgkmap.block import BlockGrid
from bgkmap.spatial import (
    PointIndex,
    block_bounds,
    has_points_in_block,
    has_points_in_extended_block,
    points_in_block,
)


@pytest.fixture
def grid():
    return BlockGrid(0.1, 4)


@pytest.fixture
def index():
    idx = PointIndex()
    idx.insert((0.0, 0.0, 0.0), 0)
    idx.insert((0.2, -0.1, 0.3), 1)
    idx.insert((5.0, 5.0, 5.0), 2)
    return idx


def test_search_returns_points_in_box_in_insertion_order(index):
    assert index.search((-1.0, -1.0, -1.0), (1.0, 1.0, 1.0)) == [0, 1]


def test_search_boundary_is_inclusive(index):
    assert index.search((5.0, 5.0, 5.0), (5.0, 5.0, 5.0)) == [2]


def test_search_empty_region(index):
    assert index.search((10.0, 10.0, 10.0), (11.0, 11.0, 11.0)) == []
    assert index.any_in((10.0, 10.0, 10.0), (11.0, 11.0, 11.0)) is False


def test_any_in_agrees_with_search(index):
    assert index.any_in((4.0, 4.0, 4.0), (6.0, 6.0, 6.0)) is True


def test_inverted_box_is_rejected(index):
    with pytest.raises(ValueError):
        index.search((1.0, 0.0, 0.0), (0.0, 1.0, 1.0))


def test_clear_removes_everything(index):
    index.clear()
    assert len(index) == 0
    assert index.search((-100.0, -100.0, -100.0), (100.0, 100.0, 100.0)) == []


def test_block_bounds_are_centred_on_block(grid):
    key = grid.block_to_hash_key(0.0, 0.0, 0.0)
    lo, hi = block_bounds(grid, key, grid.size / 2)
    centre = grid.hash_key_to_block(key)
    for a, b, c in zip(lo, hi, centre):
        assert a == pytest.approx(c - grid.size / 2)
        assert b == pytest.approx(c + grid.size / 2)


def test_block_bounds_negative_half_size(grid):
    with pytest.raises(ValueError):
        block_bounds(grid, grid.block_to_hash_key(0.0, 0.0, 0.0), -1.0)


def test_points_in_block(grid, index):
    key = grid.block_to_hash_key(0.0, 0.0, 0.0)
    assert points_in_block(index, grid, key, grid.size / 2) == [0, 1]
    assert has_points_in_block(index, grid, key, grid.size / 2) is True


def test_larger_half_size_finds_more(grid, index):
    key = grid.block_to_hash_key(0.0, 0.0, 0.0)
    small = points_in_block(index, grid, key, 0.05)
    large = points_in_block(index, grid, key, 10.0)
    assert small == [0]
    assert set(small) <= set(large)
    assert large == [0, 1, 2]


def test_extended_block_sees_neighbour(grid):
    idx = PointIndex()
    neighbour_centre = grid.hash_key_to_block(grid.block_to_hash_key(grid.size, 0.0, 0.0))
    idx.insert(neighbour_centre, "n")
    key = grid.block_to_hash_key(0.0, 0.0, 0.0)
    assert has_points_in_block(idx, grid, key, grid.size / 2) is False
    assert has_points_in_extended_block(idx, grid, key, grid.size / 2) is True


def test_extended_block_ignores_diagonal(grid):
    idx = PointIndex()
    idx.insert(grid.hash_key_to_block(grid.block_to_hash_key(grid.size, grid.size, 0.0)), "d")
    key = grid.block_to_hash_key(0.0, 0.0, 0.0)
    assert has_points_in_extended_block(idx, grid, key, grid.size / 4) is False