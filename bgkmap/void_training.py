"""Training data for maps that model unobserved space along sensor rays."""

from __future__ import annotations

import math
from typing import Dict, List, Sequence, Tuple

Point = Tuple[float, float, float]
Sample = Tuple[Point, float]
Ray = Tuple[Point, Point]


def _sub(a: Sequence[float], b: Sequence[float]) -> Point:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def _along(origin: Sequence[float], direction: Sequence[float], t: float) -> Point:
    return (origin[0] + direction[0] * t, origin[1] + direction[1] * t, origin[2] + direction[2] * t)


def _dot(a: Sequence[float], b: Sequence[float]) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def _norm(a: Sequence[float]) -> float:
    return math.sqrt(_dot(a, a))


def _voxel_downsample(points: Sequence[Sequence[float]], leaf: float) -> List[Point]:
    if leaf < 0:
        return [(float(p[0]), float(p[1]), float(p[2])) for p in points]
    voxels: Dict[Tuple[int, int, int], List[float]] = {}
    for p in points:
        cell = (math.floor(p[0] / leaf), math.floor(p[1] / leaf), math.floor(p[2] / leaf))
        acc = voxels.setdefault(cell, [0.0, 0.0, 0.0, 0])
        acc[0] += p[0]
        acc[1] += p[1]
        acc[2] += p[2]
        acc[3] += 1
    ordered = sorted(voxels.items(), key=lambda item: (item[0][2], item[0][1], item[0][0]))
    return [(sx / n, sy / n, sz / n) for _, (sx, sy, sz, n) in ordered]


def _positive_ratio(num: float, den: float) -> bool:
    if den == 0:
        return num > 0
    return num / den > 0


def void_beam_sample(hit: Sequence[float], origin: Sequence[float], free_resolution: float) -> List[Point]:
    """Points from ``hit`` back towards ``origin``, every ``free_resolution``.

    The first point is ``hit`` itself; the origin is never included.
    """
    if free_resolution <= 0:
        raise ValueError("free_resolution must be positive")
    delta = _sub(hit, origin)
    length = _norm(delta)
    if length == 0:
        return []
    direction = (delta[0] / length, delta[1] / length, delta[2] / length)
    frees: List[Point] = []
    d = length
    while d > 0.0:
        frees.append(_along(origin, direction, d))
        d -= free_resolution
    return frees


def void_training_data(
    cloud: Sequence[Sequence[float]],
    origin: Sequence[float],
    ds_resolution: float,
    free_resolution: float,
    max_range: float,
    ell: float,
) -> Tuple[List[Sample], List[Ray], List[int]]:
    """Build training samples from one scan.

    Returns ``(xy, rays, ray_idx)``. ``xy`` holds ``(point, label)`` pairs:
    label 1 for a hit, 0 for a placeholder point along a free ray. ``rays``
    holds ``(start, end)`` free segments. ``ray_idx[i]`` is the index in
    ``rays`` of the ray sample ``i`` belongs to, or -1 for a hit.

    Hits are only recorded when ``max_range`` is positive. Each free ray is
    shortened where it passes within ``ell`` of another hit, and starts
    ``ell`` away from the sensor. Points coinciding with the origin are
    ignored.
    """
    origin = (float(origin[0]), float(origin[1]), float(origin[2]))
    sampled = _voxel_downsample(cloud, ds_resolution)

    xy: List[Sample] = []
    rays: List[Ray] = []
    ray_idx: List[int] = []

    offset = ell * math.sqrt(2.0)
    influence = ell
    idx = 0

    for p in sampled:
        delta = _sub(p, origin)
        l = _norm(delta)
        if l == 0:
            continue
        n = (delta[0] / l, delta[1] / l, delta[2] / l)

        if max_range > 0:
            if l < max_range:
                l -= offset
                xy.append((p, 1.0))
                ray_idx.append(-1)
            else:
                l = max_range - offset

        nearest_point = p
        free_endpt = _along(origin, n, l)

        nearby: List[Point] = []
        for p0 in sampled:
            if max_range > 0 and _norm(_sub(p0, origin)) > max_range:
                continue
            # Keep free space near the floor: ignore low points for rays aimed upwards.
            if p[2] > offset + origin[2] and p0[2] < origin[2] + influence:
                continue
            dist1 = _norm(_sub(free_endpt, p0))
            dist2 = _norm(_sub(origin, p0))
            if dist1 < influence or (dist1 < l and dist2 < l):
                nearby.append(p0)

        line_vec = _sub(free_endpt, origin)
        line_len = _norm(line_vec)
        if line_len > 0:
            for p1 in nearby:
                b = _dot(_sub(p1, origin), line_vec)
                if b > l ** 2:
                    continue
                nearest = _along(origin, line_vec, b / line_len ** 2)
                if _norm(_sub(p1, nearest)) < influence:
                    nearest_point = p1
                    l = b / line_len

        # Drop short downward rays close to the sensor.
        if l < max_range / 5.0 and _positive_ratio(l, offset - nearest_point[2]):
            continue

        free_endpt = _along(origin, n, l)
        free_origin = _along(origin, n, influence) if l > influence else free_endpt

        xy.append((free_origin, 0.0))
        ray_idx.append(idx)
        for f in void_beam_sample(free_endpt, free_origin, free_resolution):
            xy.append((f, 0.0))
            ray_idx.append(idx)

        rays.append((free_origin, free_endpt))
        idx += 1

    return xy, rays, ray_idx