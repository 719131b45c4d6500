"""Training data for the point-sample and ray-segment occupancy maps."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from bgkmap.block import BlockGrid

Point = Tuple[float, float, float]
Sample = Tuple[Point, float]
Ray = Tuple[Point, Point]


def _sub(a: Sequence[float], b: Sequence[float]) -> Point:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def _norm(a: Sequence[float]) -> float:
    return math.sqrt(a[0] * a[0] + a[1] * a[1] + a[2] * a[2])


def _along(origin: Sequence[float], direction: Sequence[float], t: float) -> Point:
    return (origin[0] + direction[0] * t, origin[1] + direction[1] * t, origin[2] + direction[2] * t)


def _as_point(p: Sequence[float]) -> Point:
    return (float(p[0]), float(p[1]), float(p[2]))


def _direction(hit: Sequence[float], origin: Sequence[float]) -> Tuple[Point, float]:
    delta = _sub(hit, origin)
    length = _norm(delta)
    if length == 0:
        return (0.0, 0.0, 0.0), 0.0
    return (delta[0] / length, delta[1] / length, delta[2] / length), length


def _check_resolution(free_resolution: float) -> None:
    if free_resolution <= 0:
        raise ValueError("free_resolution must be positive")


@dataclass
class LineTrainingData:
    """Samples for the ray-segment map.

    ``xy`` holds ``(point, label)`` pairs: 1 for a hit, 0 for a point on a
    free ray. ``rays`` holds the free segments as ``(start, end)``.
    ``ray_idx[i]`` is the index in ``rays`` of the ray that sample ``i``
    lies on, or -1 for a hit.
    """

    xy: List[Sample] = field(default_factory=list)
    rays: List[Ray] = field(default_factory=list)
    ray_idx: List[int] = field(default_factory=list)


def downsample(points: Sequence[Sequence[float]], ds_resolution: float) -> List[Point]:
    """Replace the points in each cubic voxel of side ``ds_resolution`` by their centroid.

    A negative resolution returns the points unchanged. Voxels come out
    ordered by z, then y, then x.
    """
    if ds_resolution < 0:
        return [_as_point(p) for p in points]
    if ds_resolution == 0:
        raise ValueError("ds_resolution must not be zero")
    voxels: Dict[Tuple[int, int, int], List[float]] = {}
    for p in points:
        cell = (
            math.floor(p[0] / ds_resolution),
            math.floor(p[1] / ds_resolution),
            math.floor(p[2] / ds_resolution),
        )
        acc = voxels.setdefault(cell, [0.0, 0.0, 0.0, 0])
        acc[0] += p[0]
        acc[1] += p[1]
        acc[2] += p[2]
        acc[3] += 1
    ordered = sorted(voxels.items(), key=lambda item: (item[0][2], item[0][1], item[0][0]))
    return [(sx / n, sy / n, sz / n) for _, (sx, sy, sz, n) in ordered]


def beam_sample(hit: Sequence[float], origin: Sequence[float], free_resolution: float) -> List[Point]:
    """Free points from ``origin`` towards ``hit``, every ``free_resolution``.

    Neither end is included; when the beam is longer than one step a last
    point one step short of the hit is added.
    """
    _check_resolution(free_resolution)
    direction, length = _direction(hit, origin)
    if length == 0:
        return []
    frees: List[Point] = []
    d = free_resolution
    while d < length:
        frees.append(_along(origin, direction, d))
        d += free_resolution
    if length > free_resolution:
        frees.append(_along(origin, direction, length - free_resolution))
    return frees


def beam_sample_to_hit(hit: Sequence[float], origin: Sequence[float], free_resolution: float) -> List[Point]:
    """Free points from one step short of ``hit`` back towards ``origin``.

    Sampling stops before reaching the origin.
    """
    _check_resolution(free_resolution)
    direction, length = _direction(hit, origin)
    if length == 0:
        return []
    frees: List[Point] = []
    d = length - free_resolution
    while d > 0.0:
        frees.append(_along(origin, direction, d))
        d -= free_resolution
    return frees


def bbox(points: Sequence[Sequence[float]]) -> Tuple[Point, Point]:
    """Axis-aligned bounding box ``(lim_min, lim_max)`` of a non-empty point set."""
    if not points:
        raise ValueError("cannot take the bounding box of no points")
    xs, ys, zs = zip(*((p[0], p[1], p[2]) for p in points))
    return (min(xs), min(ys), min(zs)), (max(xs), max(ys), max(zs))


def blocks_in_bbox(grid: BlockGrid, lim_min: Sequence[float], lim_max: Sequence[float]) -> List[int]:
    """Keys of the blocks covering the box, padded by one block below and two above."""
    size = grid.size

    def steps(lo: float, hi: float) -> List[float]:
        values = []
        v = lo - size
        while v <= hi + 2 * size:
            values.append(v)
            v += size
        return values

    return [
        grid.block_to_hash_key(x, y, z)
        for x in steps(lim_min[0], lim_max[0])
        for y in steps(lim_min[1], lim_max[1])
        for z in steps(lim_min[2], lim_max[2])
    ]


def point_training_data(
    cloud: Sequence[Sequence[float]],
    origin: Sequence[float],
    ds_resolution: float,
    free_resolution: float,
    max_range: float,
) -> List[Sample]:
    """Hits labelled 1 followed by downsampled free points labelled 0.

    Hits further than ``max_range`` from the origin are dropped when
    ``max_range`` is positive. The origin itself counts as free for every hit.
    """
    origin = _as_point(origin)
    xy: List[Sample] = []
    frees: List[Point] = []
    for p in downsample(cloud, ds_resolution):
        if max_range > 0 and _norm(_sub(p, origin)) > max_range:
            continue
        xy.append((p, 1.0))
        frees.append(origin)
        frees.extend(beam_sample(p, origin, free_resolution))
    xy.extend((f, 0.0) for f in downsample(frees, ds_resolution))
    return xy


def line_training_data(
    cloud: Sequence[Sequence[float]],
    origin: Sequence[float],
    ds_resolution: float,
    free_resolution: float,
    max_range: float,
) -> LineTrainingData:
    """Hits plus, for each hit, a free ray ending one step short of it.

    Each ray contributes the origin and its beam samples as placeholder
    points tied to it. Hits beyond ``max_range`` (when positive) and hits at
    the origin are skipped.
    """
    origin = _as_point(origin)
    data = LineTrainingData()
    idx = 0
    for p in downsample(cloud, ds_resolution):
        direction, length = _direction(p, origin)
        if max_range > 0 and length > max_range:
            continue
        if length == 0:
            continue
        occ_endpt = _along(origin, direction, length)
        data.xy.append((occ_endpt, 1.0))
        data.ray_idx.append(-1)

        data.xy.append((origin, 0.0))
        data.ray_idx.append(idx)
        for f in beam_sample_to_hit(occ_endpt, origin, free_resolution):
            data.xy.append((f, 0.0))
            data.ray_idx.append(idx)

        free_endpt = _along(origin, direction, length - free_resolution)
        data.rays.append((origin, free_endpt))
        idx += 1
    return data