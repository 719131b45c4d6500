import struct

import pytest

from bgkmap.occupancy import (
    Occupancy,
    OccupancyParams,
    State,
    VoidOccupancy,
)


def test_default_cell_is_unknown_at_even_odds():
    cell = Occupancy()
    assert cell.prob() == pytest.approx(0.5)
    assert cell.state is State.UNKNOWN
    assert cell.classified is False


def test_priors_are_added_to_counts():
    params = OccupancyParams(prior_a=2.0, prior_b=3.0)
    cell = Occupancy(1.0, 4.0, params)
    assert cell.a == pytest.approx(3.0)
    assert cell.b == pytest.approx(7.0)


def test_update_to_occupied():
    cell = Occupancy()
    cell.update(10.0, 10.0)
    assert cell.classified is True
    assert cell.prob() > cell.params.occupied_thresh
    assert cell.state is State.OCCUPIED


def test_update_to_free():
    cell = Occupancy()
    cell.update(0.0, 10.0)
    assert cell.prob() < cell.params.free_thresh
    assert cell.state is State.FREE


def test_update_accumulates_counts():
    cell = Occupancy()
    before_a, before_b = cell.a, cell.b
    cell.update(2.0, 5.0)
    assert cell.a == pytest.approx(before_a + 2.0)
    assert cell.b == pytest.approx(before_b + 3.0)


def test_high_variance_is_unknown():
    params = OccupancyParams(var_thresh=0.0)
    cell = Occupancy(100.0, 0.0, params)
    assert cell.prob() > params.occupied_thresh
    assert cell.state is State.UNKNOWN


def test_variance_shrinks_with_evidence():
    cell = Occupancy()
    first = cell.var()
    cell.update(5.0, 10.0)
    assert 0.0 < cell.var() < first


def test_prune_marks_pruned():
    cell = Occupancy()
    cell.prune()
    assert cell.state is State.PRUNED


def test_to_bytes_layout():
    params = OccupancyParams(prior_a=0.5, prior_b=0.5)
    cell = Occupancy(1.5, 0.5, params)
    data = cell.to_bytes()
    assert len(data) == 8
    assert struct.unpack("<ff", data) == (cell.a, cell.b)


def test_from_bytes_adds_priors_again():
    params = OccupancyParams(prior_a=0.5, prior_b=0.25)
    cell = Occupancy.from_bytes(struct.pack("<ff", 2.0, 1.0), params)
    assert cell.a == pytest.approx(params.prior_a + 2.0)
    assert cell.b == pytest.approx(params.prior_b + 1.0)
    assert cell.classified is False


def test_from_bytes_round_trip_without_priors():
    params = OccupancyParams(prior_a=0.0, prior_b=0.0)
    cell = Occupancy(3.0, 1.0, params)
    restored = Occupancy.from_bytes(cell.to_bytes(), params)
    assert (restored.a, restored.b) == (cell.a, cell.b)
    assert restored.state is cell.state


def test_from_bytes_rejects_wrong_length():
    with pytest.raises(ValueError):
        Occupancy.from_bytes(b"\x00\x00\x00", None)


def test_str_contains_counts():
    params = OccupancyParams(prior_a=0.0, prior_b=0.0)
    cell = Occupancy(1.0, 1.0, params)
    assert str(cell).startswith("(1 1 ")
    assert str(cell).endswith(")")


def test_void_balanced_counts_give_zero_probability():
    params = OccupancyParams(prior_a=1.0, prior_b=1.0)
    cell = VoidOccupancy(0.0, 0.0, params)
    assert cell.prob() == pytest.approx(0.0)


def test_void_dominant_hits_give_certainty():
    params = OccupancyParams(prior_a=0.0, prior_b=0.0)
    cell = VoidOccupancy(3.0, 1.0, params)
    assert cell.prob() == pytest.approx(1.0)
    assert cell.var() == pytest.approx(cell.b / (cell.a + cell.b))


def test_void_small_weight_pulls_towards_half():
    params = OccupancyParams(prior_a=0.0, prior_b=0.0, min_w=0.1)
    cell = VoidOccupancy(0.02, 0.01, params)
    assert 0.5 < cell.prob() < 1.0


def test_void_high_variance_is_uncertain():
    params = OccupancyParams(prior_a=1.0, prior_b=1.0, var_thresh=0.1)
    cell = VoidOccupancy(0.0, 0.0, params)
    assert cell.var() > params.var_thresh
    assert cell.state is State.UNCERTAIN


def test_void_update_to_occupied():
    params = OccupancyParams(prior_a=0.0, prior_b=0.0, var_thresh=1000.0)
    cell = VoidOccupancy(0.0, 0.0, params)
    cell.update(5.0, 6.0)
    assert cell.state is State.OCCUPIED