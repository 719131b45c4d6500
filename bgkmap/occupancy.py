"""Occupancy state of a single map cell, estimated from kernel-weighted counts."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum
from typing import Optional

_PAIR = struct.Struct("<ff")


class State(Enum):
    """Classification of a cell."""

    FREE = "free"
    OCCUPIED = "occupied"
    UNKNOWN = "unknown"
    PRUNED = "pruned"
    UNCERTAIN = "uncertain"


@dataclass(frozen=True)
class OccupancyParams:
    """Hyper-parameters shared by every cell of a map."""

    sf2: float = 1.0
    ell: float = 1.0
    free_thresh: float = 0.3
    occupied_thresh: float = 0.7
    var_thresh: float = 1000.0
    prior_a: float = 0.5
    prior_b: float = 0.5
    original_size: bool = True
    min_w: float = 0.1


DEFAULT_PARAMS = OccupancyParams()


class Occupancy:
    """Beta-distributed occupancy of a cell.

    ``a`` accumulates evidence of occupancy and ``b`` evidence of free space;
    both start from the priors in ``params``.
    """

    _high_variance_state = State.UNKNOWN

    def __init__(self, a: float = 0.0, b: float = 0.0, params: Optional[OccupancyParams] = None):
        self.params = params if params is not None else DEFAULT_PARAMS
        self.a = self.params.prior_a + a
        self.b = self.params.prior_b + b
        self.classified = False
        self.state = self._classify()

    def prob(self) -> float:
        """Expected probability that the cell is occupied."""
        return self.a / (self.a + self.b)

    def var(self) -> float:
        """Variance of the occupancy estimate."""
        total = self.a + self.b
        return self.a * self.b / (total * total * (total + 1.0))

    def _classify(self) -> State:
        if self.var() > self.params.var_thresh:
            return self._high_variance_state
        p = self.prob()
        if p > self.params.occupied_thresh:
            return State.OCCUPIED
        if p < self.params.free_thresh:
            return State.FREE
        return State.UNKNOWN

    def update(self, ybar: float, kbar: float) -> None:
        """Add kernel-weighted evidence: ``ybar`` occupied out of ``kbar`` total."""
        self.classified = True
        self.a += ybar
        self.b += kbar - ybar
        self.state = self._classify()

    def prune(self) -> None:
        """Mark the cell as merged into its parent."""
        self.state = State.PRUNED

    def to_bytes(self) -> bytes:
        """Serialise the accumulated counts as two little-endian float32 values."""
        return _PAIR.pack(self.a, self.b)

    @classmethod
    def from_bytes(cls, data: bytes, params: Optional[OccupancyParams] = None) -> "Occupancy":
        """Build a cell from serialised counts; the priors are added on top."""
        if len(data) != _PAIR.size:
            raise ValueError(f"expected {_PAIR.size} bytes, got {len(data)}")
        a, b = _PAIR.unpack(data)
        return cls(a, b, params)

    def __str__(self) -> str:
        return f"({self.a:g} {self.b:g} {self.prob():g})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(a={self.a!r}, b={self.b!r}, state={self.state.name})"


class VoidOccupancy(Occupancy):
    """Occupancy whose probability accounts for unobserved ("void") weight.

    When the total evidence is below ``min_w`` the missing weight is treated
    as uninformative and pulls the estimate towards one half.
    """

    _high_variance_state = State.UNCERTAIN

    def _weight(self) -> float:
        total = self.a + self.b
        return self.params.min_w if total < self.params.min_w else total

    def prob(self) -> float:
        w = self._weight()
        if self.a > self.b:
            return self.a / (w - self.b) + (w - self.a - self.b) * 0.5 / (w - self.b)
        return 0.5 * (w - self.b - self.a) / (w - self.a)

    def var(self) -> float:
        w = self._weight()
        p = self.prob()
        return (
            self.a / w * (1.0 - p) ** 2
            + (w - self.a - self.b) / w * (0.5 - p) ** 2
            + self.b / w * p ** 2
        )