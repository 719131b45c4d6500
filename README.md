# bgkmap

`bgkmap` provides the building blocks of a 3D occupancy map. Space is cut into
cubic blocks, and each block is addressed by a hash key. Each block holds a
fixed-depth octree whose cells keep Beta-distribution evidence. The package also
turns a point cloud scan into the training samples that kernel inference works
from.

It has no dependencies beyond the standard library.

## Installation

```
pip install .
```

To run the tests, install the `test` extra and run `pytest`.

## Cells: `bgkmap.occupancy`

- `State` is the classification of a cell. Its members are `FREE`, `OCCUPIED`,
  `UNKNOWN`, `PRUNED` and `UNCERTAIN`.
- `OccupancyParams` is a frozen dataclass of the settings shared by every cell:
  - `sf2` and `ell`
  - `free_thresh`, `occupied_thresh` and `var_thresh`
  - `prior_a` and `prior_b`
  - `original_size`
  - `min_w`
- `Occupancy(a, b, params)` starts from the priors plus `a` and `b`.
  - `prob()` is `A / (A + B)`.
  - `var()` is the Beta variance.
  - `update(ybar, kbar)` adds `ybar` to `A` and `kbar - ybar` to `B`, then
    classifies the cell again.
  - `prune()` marks the cell `PRUNED`.
  - `to_bytes()` writes the counts as two little-endian float32 values.
    `Occupancy.from_bytes(data, params)` reads them back, and the priors are
    added on top again.
- `VoidOccupancy` replaces `prob()` and `var()` with versions that treat total
  evidence below `min_w` as uninformative weight. Above `var_thresh` it reports
  `UNCERTAIN` instead of `UNKNOWN`.

## Octrees and blocks

- `bgkmap.octree`
  - `node_to_hash_key(depth, index, index_bits)` and
    `hash_key_to_node(key, index_bits)` pack and unpack node keys.
  - `OcTree(max_depth, node_factory, index_bits)` stores `8 ** d` nodes at
    depth `d`.
    - It offers `is_leaf`, `is_leaf_key`, `contains` and `tree[key]`.
    - `prune()` merges each group of eight siblings that share a known state
      into their parent. A level is dropped once all of its nodes are merged.
- `bgkmap.block`
  - `BlockGrid(resolution, max_depth)` tiles space into blocks of
    `2 ** (max_depth - 1)` cells a side.
    - `block_to_hash_key` and `hash_key_to_block` convert between points and
      block keys.
    - `extended_block(key)` gives the block and its six face neighbours.
  - `Block(grid, center, node_factory, index_bits)` is an `OcTree` placed in
    space.
    - `get_index(p)` finds the cell grid position of a point, clipped to the
      block.
    - `get_node(x, y, z)` and `get_point(x, y, z)` convert a grid position to a
      node key or to a world position.
    - `search(p)` returns the finest cell containing `p`.
  - `init_key_loc_map` and `init_index_map` build the tables that relate node
    keys, cell centres and grid order.

## Training data

- `bgkmap.training`
  - `downsample(points, ds_resolution)` is a voxel-centroid filter. A negative
    resolution leaves the points unchanged.
  - `beam_sample` and `beam_sample_to_hit` place free points along a beam.
  - `point_training_data(...)` returns `(point, label)` pairs: hits labelled 1
    and downsampled free points labelled 0.
  - `line_training_data(...)` returns a `LineTrainingData` with `xy`, `rays`
    and `ray_idx`.
  - `bbox` and `blocks_in_bbox` find the blocks a scan touches.
- `bgkmap.void_training`
  - `void_training_data(cloud, origin, ds_resolution, free_resolution, max_range, ell)`
    builds hits and shortened free rays for maps of `VoidOccupancy` cells.
  - `void_beam_sample` samples along one of those rays.
- `bgkmap.spatial`
  - `PointIndex` stores items at points and answers closed-box queries with
    `search` and `any_in`.
  - `block_bounds`, `points_in_block`, `has_points_in_block` and
    `has_points_in_extended_block` run those queries around blocks.

## The map: `bgkmap.octomap`

`OctoMap(resolution, block_depth, params, node_factory, index_bits)` keeps
blocks keyed by position.

- `add_block(key)` creates a block on demand. `search_block(key)` looks one up
  and returns `None` if it does not exist.
- `search(x, y, z)` returns a copy of the cell at a point. Where no block covers
  the point, it returns a cell holding only the priors.
- `get_bbox()` returns the extent of all blocks.
- `block_key(p)` gives the key of the block containing `p`.
- `set_resolution` and `set_block_depth` change the grid. Blocks that already
  exist keep their old geometry.
- `len(map)`, `key in map`, iteration over keys and `blocks()` list the blocks.

For maps of `VoidOccupancy` cells, pass `node_factory=VoidOccupancy`.

## Example

```python
from bgkmap.occupancy import Occupancy, OccupancyParams, State
from bgkmap.octomap import OctoMap

params = OccupancyParams(prior_a=1.0, prior_b=1.0, var_thresh=1.0)
node = Occupancy(0.0, 0.0, params)
node.update(5.0, 5.0)          # five units of kernel weight, all occupied
print(node.prob(), node.state is State.OCCUPIED)   # 0.857... True

world = OctoMap()
block = world.add_block(world.block_key((0.3, 0.3, 0.3)))
block.search((0.3, 0.3, 0.3)).update(3.0, 3.0)
print(world.search(0.3, 0.3, 0.3).state)           # State.OCCUPIED
```

## What it does not do

The package contains no kernel estimator. Nothing in it trains on the samples
that `training` or `void_training` produce, or predicts `ybar` and `kbar` for
cells. It also has no single call that inserts a point cloud into an `OctoMap`.
You have to pass the predicted values to `Occupancy.update` yourself.

It does not:

- read point cloud files;
- subscribe to sensor streams;
- publish or draw the map;
- provide a command-line program.