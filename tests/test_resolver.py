import math

import numpy as np
import pytest

from cuematrix.levels import LevelStore
from cuematrix.resolver import (
    active_routes,
    calculate_gain,
    db_to_linear,
    gain_matrix,
    gain_to_db,
    has_active_routing,
)


def _connected(num_inputs=2, num_outputs=2, level=0.0):
    store = LevelStore(num_inputs, num_outputs)
    for i in range(num_inputs):
        for o in range(num_outputs):
            store.set_crosspoint(i, o, level)
    return store


@pytest.mark.parametrize("db", [-60.0, -60.5, -1000.0, -math.inf])
def test_db_to_linear_floor_is_silence(db):
    assert db_to_linear(db) == 0.0


def test_db_to_linear_values():
    assert db_to_linear(0.0) == pytest.approx(1.0)
    assert db_to_linear(-6.0) == pytest.approx(0.501187, rel=1e-5)
    assert db_to_linear(-59.9) > 0.0
    assert db_to_linear(12.0) == pytest.approx(3.981072, rel=1e-5)


def test_gain_to_db():
    assert gain_to_db(0.0) == -math.inf
    assert gain_to_db(-1.0) == -math.inf
    assert gain_to_db(1.0) == 0.0
    assert gain_to_db(10.0) == pytest.approx(20.0)


def test_stages_multiply():
    store = _connected(1, 1)
    store.set_main_level(-6.0)
    store.set_input_level(0, -3.0)
    store.set_output_level(0, 2.0)
    store.set_crosspoint(0, 0, -1.0)
    assert calculate_gain(store, 0, 0) == pytest.approx(db_to_linear(-8.0))


def test_maximum_headroom():
    store = _connected(1, 1, level=12.0)
    store.set_main_level(12.0)
    store.set_input_level(0, 12.0)
    store.set_output_level(0, 12.0)
    assert calculate_gain(store, 0, 0) == pytest.approx(10 ** (48 / 20))


def test_disconnected_differs_from_floor():
    store = LevelStore(1, 2)
    store.set_crosspoint(0, 0, -60.0)
    assert calculate_gain(store, 0, 0) == 0.0
    assert calculate_gain(store, 0, 1) == 0.0
    assert store.crosspoints[0][0] == -60.0
    store.set_crosspoint(0, 0, -59.0)
    assert calculate_gain(store, 0, 0) > 0.0


def test_mute_forces_zero_over_solo():
    store = _connected(2, 2)
    store.set_input_solo(0, True)
    store.set_input_mute(0, True)
    assert calculate_gain(store, 0, 0) == 0.0
    assert calculate_gain(store, 0, 1) == 0.0

    store = _connected(2, 2)
    store.set_output_mute(1, True)
    assert calculate_gain(store, 0, 1) == 0.0
    assert calculate_gain(store, 1, 1) == 0.0
    assert calculate_gain(store, 0, 0) == pytest.approx(1.0)


def test_input_solo_excludes_peers():
    store = _connected(3, 2)
    store.set_input_solo(1, True)
    for o in range(2):
        assert calculate_gain(store, 0, o) == 0.0
        assert calculate_gain(store, 2, o) == 0.0
        assert calculate_gain(store, 1, o) == pytest.approx(1.0)


def test_output_solo_excludes_peers():
    store = _connected(2, 3)
    store.set_output_solo(2, True)
    for i in range(2):
        assert calculate_gain(store, i, 0) == 0.0
        assert calculate_gain(store, i, 2) == pytest.approx(1.0)


def test_out_of_range_pairs_resolve_to_zero():
    store = _connected(1, 1)
    assert calculate_gain(store, 1, 0) == 0.0
    assert calculate_gain(store, 0, -1) == 0.0


def test_active_routes_row_major():
    store = _connected(2, 2)
    store.set_crosspoint(0, 1, -6.0)
    routes = active_routes(store)
    assert [(r.input, r.output) for r in routes] == [(0, 0), (0, 1), (1, 0), (1, 1)]
    assert routes[1].gain_db == pytest.approx(-6.0)
    assert routes[0].gain == pytest.approx(1.0)


def test_has_active_routing():
    store = LevelStore(2, 2)
    assert not has_active_routing(store)
    store.set_crosspoint(1, 0, 0.0)
    assert has_active_routing(store)
    store.set_input_mute(1, True)
    assert not has_active_routing(store)


def test_gain_matrix_matches_calculate_gain():
    store = LevelStore(3, 4)
    store.set_main_level(-2.0)
    for i, level in enumerate([-3.0, 0.0, 6.0]):
        store.set_input_level(i, level)
    for o, level in enumerate([1.0, -60.0, -12.0, 4.0]):
        store.set_output_level(o, level)
    store.set_crosspoint(0, 0, 0.0)
    store.set_crosspoint(0, 3, -9.0)
    store.set_crosspoint(1, 1, 3.0)
    store.set_crosspoint(2, 2, -1.5)
    store.set_crosspoint(2, 3, 12.0)
    store.set_output_mute(0, True)
    store.set_input_solo(0, True)
    store.set_input_solo(2, True)

    table = gain_matrix(store)

    assert table.shape == (3, 4)
    for i in range(3):
        for o in range(4):
            assert table[i, o] == calculate_gain(store, i, o)


def test_gain_matrix_empty_dimensions():
    assert gain_matrix(LevelStore(0, 3)).shape == (0, 3)
    assert np.all(gain_matrix(LevelStore(2, 2)) == 0.0)
